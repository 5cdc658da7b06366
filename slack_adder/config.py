"""Pydantic-based configuration helpers for Slack Adder."""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, Field, ValidationError, field_validator


class AppSettings(BaseModel):
    """Settings required to run the Slack integration service."""

    client_id: str = Field(..., alias="SLACK_CLIENT_ID")
    client_secret: str = Field(..., alias="SLACK_CLIENT_SECRET")
    signing_secret: str = Field(..., alias="SLACK_SIGNING_SECRET")
    database_url: str = Field("sqlite:///slack.db", alias="DATABASE_URL")
    adder_service_url: str = Field("http://localhost:8080", alias="ADDER_SERVICE_URL")
    http_timeout: float = Field(10.0, alias="HTTP_TIMEOUT")
    signature_tolerance: int = Field(60 * 5, alias="SIGNATURE_TOLERANCE")

    @field_validator("adder_service_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/") or value

    @field_validator("http_timeout", "signature_tolerance")
    @classmethod
    def _ensure_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Timeouts must be greater than zero")
        return value


@lru_cache()
def get_settings() -> AppSettings:
    """Fetch and cache settings from environment variables."""

    try:
        return AppSettings.model_validate(os.environ)
    except ValidationError as exc:
        # dict.fromkeys keeps the first occurrence of each name in order.
        missing = dict.fromkeys(str(error["loc"][0]) for error in exc.errors() if error["type"] == "missing")
        if not missing:
            raise RuntimeError(f"Invalid configuration: {exc}") from exc
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}") from exc
