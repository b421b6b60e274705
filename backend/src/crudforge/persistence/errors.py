"""Backend error vocabulary.

Store failures are normalised to PostgreSQL SQLSTATE codes regardless of
the adapter, so callers map one vocabulary to HTTP outcomes.
"""

NOT_NULL_VIOLATION = "23502"
FOREIGN_KEY_VIOLATION = "23503"
UNIQUE_VIOLATION = "23505"
CHECK_VIOLATION = "23514"
INVALID_TEXT_REPRESENTATION = "22P02"


class BackendError(Exception):
    """A failure reported by the backing store.

    Attributes:
        code: SQLSTATE-style error code (None when the store gave none)
        message: Primary error message
        detail: Detail message, when the store provides one
        constraint: Name of the violated constraint, when known
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        detail: str | None = None,
        constraint: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.detail = detail
        self.constraint = constraint

    def __repr__(self) -> str:
        return f"BackendError(code={self.code!r}, message={self.message!r})"


class RecordNotFound(Exception):
    """No row matched the requested primary key."""

    def __init__(self, table_name: str, id: int | None):
        super().__init__(f"No row in '{table_name}' with id {id}")
        self.table_name = table_name
        self.id = id
