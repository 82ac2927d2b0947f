"""Active set module."""

from .active_set import ActiveSet, IActiveSet, apply_feature_state

__all__ = ["ActiveSet", "IActiveSet", "apply_feature_state"]
