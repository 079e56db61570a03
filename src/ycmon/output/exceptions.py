"""Errors raised by the Yandex Cloud Monitoring output."""

from typing import Optional


class YcmonError(Exception):
    """Base class for output errors."""


class MetadataError(YcmonError):
    """The metadata service answered with a non-2xx status."""

    def __init__(self, url: str, status_code: int):
        self.url = url
        self.status_code = status_code
        super().__init__(f"unable to fetch instance metadata: [{url}] {status_code}")


class MetadataMalformedError(YcmonError):
    """The metadata service answered, but the document is unusable."""

    def __init__(self, url: str, detail: str):
        self.url = url
        self.detail = detail
        super().__init__(f"{detail} from URL {url}")


class FieldCoercionError(YcmonError, ValueError):
    """A field value cannot be converted to a float."""


class DeliveryError(YcmonError):
    """A batch was not accepted by the ingestion endpoint."""

    def __init__(self, reason: str, status_code: Optional[int] = None):
        self.reason = reason
        self.status_code = status_code
        if status_code is None:
            message = f"failed to write batch: {reason}"
        else:
            message = f"failed to write batch: [{status_code}] {reason}"
        super().__init__(message)
