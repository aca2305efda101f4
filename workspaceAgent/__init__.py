"""Top-level package exports for workspaceAgent."""

from .runtime.app import AgentRuntime, build_runtime

__version__ = "0.1.0"

__all__ = ["AgentRuntime", "build_runtime", "__version__"]
