"""Runtime utilities.

``build_runtime`` lives in ``workspaceAgent.runtime.app``; it is not re-exported
here because the planner and compactor import the resolver from this package.
"""

from .model_resolver import ModelResolver, build_model_resolver

__all__ = ["ModelResolver", "build_model_resolver"]
