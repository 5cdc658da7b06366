"""Parsing of the ``/plus`` slash command."""

from __future__ import annotations

import re
from urllib.parse import parse_qs

from pydantic import BaseModel, ConfigDict, ValidationError

from slack_adder.adder.models import AddRequest

_INTEGER = re.compile(r"[+-]?[0-9]+")
_ORDINALS = ("1st", "2nd")


class SlashCommand(BaseModel):
    """The fields of a slash command invocation this service relies on."""

    model_config = ConfigDict(extra="ignore")

    team_id: str
    user_id: str
    text: str = ""
    command: str | None = None
    channel_id: str | None = None
    response_url: str | None = None
    trigger_id: str | None = None


class SlashCommandPayloadError(ValueError):
    """The form body is not a slash command invocation."""


class CommandArgumentError(ValueError):
    """The free-text arguments of a command are unusable."""


def parse_slash_command(raw_body: bytes) -> SlashCommand:
    """Decode a form-encoded slash command body."""

    try:
        fields = parse_qs(raw_body.decode("utf-8"), keep_blank_values=True, strict_parsing=False)
    except UnicodeDecodeError as exc:
        raise SlashCommandPayloadError(str(exc)) from exc

    try:
        return SlashCommand.model_validate({key: values[0] for key, values in fields.items()})
    except ValidationError as exc:
        raise SlashCommandPayloadError(str(exc)) from exc


def _parse_integer(token: str, position: int) -> int:
    if not _INTEGER.fullmatch(token):
        raise CommandArgumentError(
            f"invalid {_ORDINALS[position]} input parameter: {token!r} is not an integer"
        )
    return int(token)


def parse_plus_arguments(text: str) -> AddRequest:
    """Turn ``"3 4"`` into ``AddRequest(num1=3, num2=4)``."""

    tokens = (text or "").split()
    if len(tokens) != 2:
        raise CommandArgumentError("invalid number of input parameters provided")
    num1, num2 = (_parse_integer(token, index) for index, token in enumerate(tokens))
    return AddRequest(num1=num1, num2=num2)


def format_sum_message(total: int) -> str:
    return f"Sum is {total}"
