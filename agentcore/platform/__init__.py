"""Platform infrastructure: settings, observability and wiring.

Import submodules directly, e.g. `agentcore.platform.wiring`.
"""
