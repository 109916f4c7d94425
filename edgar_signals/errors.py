from __future__ import annotations


class SecApiError(RuntimeError):
    """Raised by the SEC HTTP collaborator for any non-200 response."""

    def __init__(self, message: str, status_code: int, url: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class NotFoundError(SecApiError):
    def __init__(self, url: str, detail: str = "") -> None:
        super().__init__(f"Not found: {detail or url}", 404, url)


class RateLimitError(SecApiError):
    def __init__(self, url: str) -> None:
        super().__init__(
            "SEC rate limit exceeded (fair access policy is 10 req/s). Wait a moment and retry.",
            429,
            url,
        )


class Form4ParseError(ValueError):
    """Raised when a filing document has no parseable ownershipDocument."""
