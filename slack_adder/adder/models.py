"""Request and response bodies of the adder service."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, StrictInt


class AddRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    num1: StrictInt
    num2: StrictInt


class AddResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    sum: StrictInt
