class NetworkError(Exception):
    """Raised when a request to the upstream market data API does not succeed.

    Covers connectivity failures, timeouts, non-2xx responses and responses
    whose body cannot be decoded into the expected shape. Screen controllers
    only need to know that the fetch failed, so the type is not subdivided
    beyond `ResponseParseError`.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ResponseParseError(NetworkError):
    """The upstream response was received but its body is malformed."""
