"""Error classes for the KeyClaim SDK."""

from typing import Optional


class KeyClaimError(Exception):
    """Raised for bad input, remote rejections and transport failures.

    An invalid challenge-response pair is not an error: ``validate_challenge``
    returns a result with ``valid=False`` instead.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code

    def __repr__(self) -> str:
        return (
            f"KeyClaimError(message={self.message!r}, code={self.code!r}, "
            f"status_code={self.status_code!r})"
        )
