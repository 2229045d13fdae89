class ComputationUnavailable(Exception):
    """Raised when the storage layer fails while computing workload figures.

    Dashboards should show a degraded-data banner instead of a zero value.
    """

    def __init__(self, operation: str, detail: str | None = None):
        self.operation = operation
        self.detail = detail
        message = f"Workload computation unavailable during {operation}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class BatchTimeout(ComputationUnavailable):
    """Raised when a team-wide batch runs past its deadline."""

    def __init__(self, operation: str, timeout_seconds: float, completed: int, total: int):
        self.timeout_seconds = timeout_seconds
        self.completed = completed
        self.total = total
        super().__init__(
            operation,
            f"deadline of {timeout_seconds}s exceeded after {completed}/{total} users",
        )
