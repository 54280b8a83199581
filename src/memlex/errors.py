"""memlex errors."""


class MemlexError(Exception):
    """Base class for memlex errors."""


class RetrievalError(MemlexError):
    """The full-text index could not be queried.

    Raised when the database is unreachable or SQLite rejects the MATCH
    expression. Search callers degrade this to an empty result.
    """

    def __init__(self, expression: str, cause: Exception):
        super().__init__(f"retrieval failed for {expression!r}: {cause}")
        self.expression = expression
        self.cause = cause
