"""HTTP route definitions for the DMAT account service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from ..domain.contracts import AccountRequest, decode_account_request
from ..domain.service import AccountService
from .envelopes import FailureEnvelope, SuccessEnvelope

router = APIRouter(prefix="/api/dmat", tags=["dmat"])

_REQUEST_BODY_DOC = {
    "requestBody": {
        "required": True,
        "content": {"application/json": {"schema": AccountRequest.model_json_schema()}},
    }
}


def get_service(request: Request) -> AccountService:
    """Resolve the `AccountService` stored on the FastAPI application state."""
    service: AccountService = request.app.state.account_service
    return service


@router.post(
    "/create",
    response_model=SuccessEnvelope,
    responses={400: {"model": FailureEnvelope, "description": "Request failed validation"}},
    openapi_extra=_REQUEST_BODY_DOC,
)
async def create_dmat_account(
    request: Request,
    service: AccountService = Depends(get_service),
) -> SuccessEnvelope:
    """Open a DMAT account for a request that has passed the validation gate.

    The body is decoded again from the replayed bytes; the gate does not hand
    its candidate downstream.
    """
    candidate = decode_account_request(await request.body())
    service.create_account(candidate)
    return SuccessEnvelope()
