from __future__ import annotations


class MatcherError(Exception):
    """Raised when the relational engine fails during a match call.

    The engine's own exception is always chained as ``__cause__``.
    """

    def __init__(self, engine: str, operation: str, detail: str) -> None:
        self.engine = engine
        self.operation = operation
        self.detail = detail
        super().__init__(f"{engine} engine error in {operation}: {detail}")
