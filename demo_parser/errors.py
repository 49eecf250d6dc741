class DemoParserError(Exception):
    """Base class for failures that abort a parse request."""


class MalformedRequestError(DemoParserError):
    """Raised when a /parse body is not a JSON object with the expected fields."""


class DemoDownloadError(DemoParserError):
    """Raised when the demo cannot be fetched from object storage."""


class DemoDecodeError(DemoParserError):
    """Raised when the downloaded bytes are not a valid or complete demo."""


class DeliveryError(DemoParserError):
    """Raised when the webhook rejects the result or cannot be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
