class MixSchedError(Exception):
    """Base exception for mixsched."""

    pass


class DecodeError(MixSchedError):
    """Raised when an admitted object cannot be decoded into a workload view."""

    pass


class PolicyResolutionError(MixSchedError):
    """Raised when a weight override is not a non-negative integer."""

    pass


class PlacementVetoError(MixSchedError):
    """Raised when a deletion would breach the on-demand availability floor."""

    pass


class ClusterCacheError(MixSchedError):
    """Raised when the cluster state cache cannot serve a read."""

    pass
