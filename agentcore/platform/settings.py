"""Application settings and configuration.

Pydantic settings loaded from environment variables with nested configuration.
This is the only place environment variables are read; `wiring` turns a
`Settings` instance into the explicit config objects the core accepts.
"""

import logging
from typing import Literal

import pydantic_settings
from pydantic import BaseModel, Field, field_validator, model_validator


class LoggingSettings(BaseModel):
    level: str = Field("INFO")
    json_output: bool = Field(True, description="True=JSON, False=console")

    @field_validator("level")
    @classmethod
    def _validate_level(cls, v):
        v_upper = v.upper()
        if v_upper not in logging._nameToLevel:
            raise ValueError(f'invalid value "{v}"')
        return v_upper


class BugsnagSettings(BaseModel):
    api_key: str
    release_stage: str = Field("development")

    @field_validator("release_stage")
    @classmethod
    def _validate_bugsnag_release_stage(cls, v):
        if v not in ["development", "production", "local"]:
            raise ValueError(f'invalid bugsnag release stage "{v}"')
        return v


class ModelSettings(BaseModel):
    """Default model used by agents that do not set one.

    Attributes:
        name: LiteLLM model identifier (e.g., "litellm_proxy/anthropic/claude-sonnet-4-5")
        api_base: Optional base URL, typically a LiteLLM proxy
        api_key: Optional API key
        temperature: Sampling temperature
    """

    name: str = Field("gpt-4o-mini")
    api_base: str | None = None
    api_key: str | None = None
    temperature: float | None = None


class RunnerSettings(BaseModel):
    streaming: bool = Field(False)
    max_llm_calls: int = Field(500, description="Model call budget per run; 0 disables the limit")


class MCPServerSettings(BaseModel):
    """Configuration for a single MCP server.

    Either `command` (stdio pipe transport) or `url` (streamable HTTP transport)
    must be set.

    Attributes:
        name: Server name used in logs and collision messages
        command: Executable for the pipe transport
        args: Arguments for the pipe transport
        env: Extra environment for the pipe transport
        url: Endpoint for the stream transport
        headers: HTTP headers for the stream transport
        prefix: Optional prefix for tool names to avoid collisions
        timeout: Connection handshake timeout in seconds
        read_timeout: Per-request read timeout in seconds
        max_retries: Reinitialize-and-retry attempts on a closed connection
    """

    name: str
    command: str | None = None
    args: list[str] = []
    env: dict[str, str] | None = None
    url: str | None = None
    headers: dict[str, str] | None = None
    prefix: str | None = None
    timeout: float | None = 30.0
    read_timeout: float = 120.0
    max_retries: int = 2

    @property
    def mode(self) -> Literal["pipe", "stream"]:
        return "pipe" if self.command else "stream"

    @field_validator("url")
    @classmethod
    def _validate_url(cls, v):
        if v is not None and not v.startswith(("http://", "https://")):
            raise ValueError(f'invalid MCP server url "{v}"')
        return v

    @model_validator(mode="after")
    def _validate_transport(self):
        if bool(self.command) == bool(self.url):
            raise ValueError(f"MCP server '{self.name}' needs exactly one of command or url")
        return self


class Settings(pydantic_settings.BaseSettings):
    model_config = pydantic_settings.SettingsConfigDict(env_nested_delimiter="__")

    app_name: str = Field("agentcore")
    log: LoggingSettings = LoggingSettings()
    bugsnag: BugsnagSettings | None = None
    default_model: ModelSettings = ModelSettings()
    runner: RunnerSettings = RunnerSettings()

    # Example: MCP_SERVERS='[{"name":"files","command":"npx","args":["-y","server-files"]}]'
    mcp_servers: list[MCPServerSettings] = []
