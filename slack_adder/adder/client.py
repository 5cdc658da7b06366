"""HTTP client for the adder service."""

from __future__ import annotations

import httpx
import structlog
from pydantic import ValidationError

from slack_adder.adder.models import AddRequest, AddResponse

logger = structlog.get_logger(__name__)


class AdderServiceError(Exception):
    """Base class for failures talking to the adder service."""


class AdderTransportError(AdderServiceError):
    """The request could not be sent or no response arrived."""


class AdderStatusError(AdderServiceError):
    """The adder service answered with a non-200 status."""

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"invalid status code returned: {status_code}")


class AdderResponseError(AdderServiceError):
    """The adder service answered 200 with a body that is not an AddResponse."""


class AdderClient:
    """Call ``POST /`` on the adder service."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        *,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def add(self, payload: AddRequest) -> AddResponse:
        try:
            response = self._client.post("/", json=payload.model_dump())
        except httpx.HTTPError as exc:
            logger.error("adder_request_failed", base_url=self.base_url, error=str(exc))
            raise AdderTransportError(f"error calling adder service: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            logger.error("adder_bad_status", status_code=response.status_code, body=response.text)
            raise AdderStatusError(response.status_code)

        try:
            return AddResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise AdderResponseError(f"invalid response: {exc}") from exc

    def close(self) -> None:
        self._client.close()
