"""Adder service, its wire models, and the client used to call it."""

from .client import (
    AdderClient,
    AdderResponseError,
    AdderServiceError,
    AdderStatusError,
    AdderTransportError,
)
from .models import AddRequest, AddResponse

__all__ = [
    "AddRequest",
    "AddResponse",
    "AdderClient",
    "AdderServiceError",
    "AdderTransportError",
    "AdderStatusError",
    "AdderResponseError",
]
