"""Fixed-shape JSON envelopes returned by the account-opening endpoint."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

SUCCESS_MESSAGE = "DMAT Account created successfully."


class _Envelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    request_time: datetime = Field(default_factory=datetime.now, alias="requestTime")

    def to_json(self) -> dict[str, Any]:
        """Serialise with wire (camelCase) property names."""
        return self.model_dump(mode="json", by_alias=True)


class SuccessEnvelope(_Envelope):
    """Body returned when the account-opening request was accepted."""

    status: Literal["Success"] = "Success"
    message: str = SUCCESS_MESSAGE


class FailureEnvelope(_Envelope):
    """Body returned when the request was rejected; lists every failure."""

    status: Literal["Failed"] = "Failed"
    errors: list[str]


def failure_response(errors: list[str], status_code: int = 400) -> JSONResponse:
    """Wrap ``errors`` in a failure envelope response."""
    return JSONResponse(status_code=status_code, content=FailureEnvelope(errors=errors).to_json())
