"""CSRF token value objects."""

from dataclasses import dataclass
from typing import Optional


INVALID_FORMAT = "Invalid token format"
SESSION_MISMATCH = "Session mismatch"
TOKEN_EXPIRED = "Token expired"
TOKEN_NOT_FOUND = "Token not found"


@dataclass(frozen=True)
class CSRFToken:
    """Parsed ``random.timestamp.signature`` token."""

    random_value: str
    issued_at_ms: int
    signature: str

    @classmethod
    def parse(cls, token: str) -> Optional["CSRFToken"]:
        """Return None when the token is not three segments with a numeric timestamp."""
        if not isinstance(token, str):
            return None
        parts = token.split(".")
        if len(parts) != 3 or not all(parts):
            return None
        random_value, timestamp, signature = parts
        if not (timestamp.isascii() and timestamp.isdigit()):
            return None
        return cls(random_value=random_value, issued_at_ms=int(timestamp), signature=signature)

    def serialize(self) -> str:
        return f"{self.random_value}.{self.issued_at_ms}.{self.signature}"


@dataclass(frozen=True)
class CSRFValidationResult:
    """Outcome of a token check; ``reason`` is set only when invalid."""

    valid: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid
