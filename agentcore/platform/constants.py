from importlib.metadata import PackageNotFoundError, version

try:
    VERSION = version("agentcore")
except PackageNotFoundError:
    VERSION = "0.0.0"

USER_AGENT = f"agentcore/{VERSION}"
