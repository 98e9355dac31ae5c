"""Turns `Settings` into the objects the core is built from.

Core classes never read the environment; everything they need is passed
in at construction, built here from one `Settings` instance.
"""

from agentcore.models import LiteLlm
from agentcore.platform.observability import configure_logging, get_logger
from agentcore.platform.observability.errors import initialize_bugsnag
from agentcore.platform.settings import MCPServerSettings, Settings
from agentcore.run_config import RunConfig, StreamingMode
from agentcore.tools.mcp import (
    MCPConfig,
    MCPSamplingHandler,
    MCPToolset,
    PipeTransportConfig,
    RetryConfig,
    StreamTransportConfig,
)

logger = get_logger(__name__)


def configure_observability(settings: Settings) -> None:
    """Configure logging and, when set up, Bugsnag error reporting."""
    configure_logging(settings.log.level, settings.log.json_output)
    if settings.bugsnag:
        initialize_bugsnag(settings.bugsnag.api_key, settings.bugsnag.release_stage)
    logger.info("observability_configured", app_name=settings.app_name, log_level=settings.log.level)


def build_model(settings: Settings) -> LiteLlm:
    model = settings.default_model
    return LiteLlm(model.name, api_base=model.api_base, api_key=model.api_key, temperature=model.temperature)


def build_run_config(settings: Settings) -> RunConfig:
    return RunConfig(
        streaming_mode=StreamingMode.SSE if settings.runner.streaming else StreamingMode.NONE,
        max_llm_calls=settings.runner.max_llm_calls,
    )


def build_mcp_config(server: MCPServerSettings) -> MCPConfig:
    if server.mode == "pipe":
        transport = PipeTransportConfig(command=server.command, args=tuple(server.args), env=server.env)
    else:
        transport = StreamTransportConfig(url=server.url, headers=server.headers)
    return MCPConfig(
        name=server.name,
        transport=transport,
        timeout=server.timeout,
        read_timeout=server.read_timeout,
        retry=RetryConfig(max_retries=server.max_retries),
        tool_prefix=server.prefix,
    )


def build_mcp_configs(settings: Settings) -> list[MCPConfig]:
    return [build_mcp_config(server) for server in settings.mcp_servers]


def build_mcp_toolsets(settings: Settings, sampling_handler: MCPSamplingHandler | None = None) -> list[MCPToolset]:
    """Build one unconnected toolset per configured MCP server.

    Connect them with `MCPToolset.fetch_all` from the task that will close them.
    """
    return [MCPToolset.from_config(config, sampling_handler) for config in build_mcp_configs(settings)]
