"""Thin wrapper utilities around the Slack WebClient."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError, SlackClientError, SlackRequestError


class OAuthExchangeError(Exception):
    """Raised when a temporary OAuth code cannot be exchanged for a token."""


@dataclass(frozen=True)
class OAuthResult:
    team_id: str
    access_token: str
    app_id: str


def exchange_oauth_code(
    *,
    client_id: str,
    client_secret: str,
    code: str,
    client: WebClient | None = None,
) -> OAuthResult:
    """Exchange an authorization *code* through ``oauth.v2.access``."""

    web_client = client or WebClient()
    try:
        response = web_client.oauth_v2_access(client_id=client_id, client_secret=client_secret, code=code)
    except SlackApiError as exc:
        raise OAuthExchangeError(exc.response.get("error") or str(exc)) from exc
    except (SlackClientError, OSError) as exc:
        # URLError and socket errors from the HTTP layer are not SlackClientErrors.
        raise OAuthExchangeError(str(exc)) from exc

    team = response.get("team") or {}
    team_id = team.get("id")
    access_token = response.get("access_token")
    if not team_id or not access_token:
        raise OAuthExchangeError("oauth.v2.access response is missing team id or access token")
    return OAuthResult(team_id=team_id, access_token=access_token, app_id=response.get("app_id") or "")


class SlackClient:
    """Encapsulate Slack WebClient interactions for easier testing."""

    def __init__(self, *, token: str | None = None, client: WebClient | None = None) -> None:
        if client is None and token is None:
            raise ValueError("Either an instantiated client or a bot token must be provided.")

        self._client = client or WebClient(token=token)

    @property
    def client(self) -> WebClient:
        """Expose the underlying WebClient for advanced use cases."""

        return self._client

    def send_direct_message(self, *, user_id: str, text: str) -> Mapping[str, Any]:
        """Post *text* to the app's direct message conversation with *user_id*."""

        try:
            return self._client.chat_postMessage(channel=user_id, text=text)
        except OSError as exc:
            raise SlackRequestError(f"error reaching slack: {exc}") from exc
