from __future__ import annotations


class SymbiosisHTTPError(RuntimeError):
    """Failure talking to the generation service or the memory store."""

    def __init__(self, message: str, url: str = "", attempts: int = 1) -> None:
        super().__init__(message)
        self.url = url
        self.attempts = attempts


class SymbiosisHTTPStatusError(SymbiosisHTTPError):
    def __init__(self, message: str, status_code: int | None = None, url: str = "", attempts: int = 1) -> None:
        super().__init__(message, url=url, attempts=attempts)
        self.status_code = status_code


class SymbiosisHTTPNetworkError(SymbiosisHTTPError):
    """Connect or read failures that outlasted the retry policy."""
