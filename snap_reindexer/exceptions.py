"""Error taxonomy for the reindex pipeline."""


class SnapReindexerError(Exception):
    """Base class for pipeline errors."""
    pass


class ClusterError(SnapReindexerError):
    """An Elasticsearch call failed (transport, auth, 4xx or 5xx)."""

    def __init__(self, op: str, cause: BaseException):
        self.op = op
        self.cause = cause
        super().__init__(f"Cluster operation '{op}' failed: {cause}")


class QueueError(SnapReindexerError):
    """The queue transport is unavailable or rejected a command."""

    def __init__(self, op: str, cause: BaseException):
        self.op = op
        self.cause = cause
        super().__init__(f"Queue operation '{op}' failed: {cause}")
