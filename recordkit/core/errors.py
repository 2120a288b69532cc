"""
Exceptions raised outside of a validation run.

Problems found while a record is being validated are never raised; they are
accumulated as FieldError entries on the session. The exceptions below cover
malformed definitions and misuse of the session lifecycle.
"""


class DefinitionError(ValueError):
    """Raised when a record definition is malformed."""

    def __init__(self, message: str, record: str | None = None, field: str | None = None):
        self.record = record
        self.field = field
        self.message = message
        location = ".".join(part for part in (record, field) if part)
        super().__init__(f"{location}: {message}" if location else message)


class SessionStateError(RuntimeError):
    """Raised when a validation session is moved through an illegal transition."""
