"""Validation gate placed in front of the account-opening endpoint.

The gate buffers the request body once, runs it through an ordered chain of
stages, and either answers with a failure envelope or forwards the request
with the original bytes replayed from the start.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Sequence

from prometheus_client import Counter
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..domain.contracts import AccountRequest, decode_account_request
from ..domain.errors import DmatAccountError, MalformedPayloadError, ValidationRejectedError
from ..domain.validation import validate_account_request

logger = logging.getLogger(__name__)

GATED_PATH = "/api/dmat/create"

GATE_DECISIONS = Counter(
    "dmat_gate_decisions_total",
    "Account-opening requests seen by the validation gate, by outcome.",
    ["outcome"],
)


@dataclass(slots=True)
class GateContext:
    """Per-request state shared by the gate stages."""

    body: bytes
    candidate: AccountRequest | None = None
    errors: list[str] = field(default_factory=list)


Stage = Callable[[GateContext], "Response | None"]


def _terminate(error: DmatAccountError, outcome: str) -> Response:
    GATE_DECISIONS.labels(outcome=outcome).inc()
    return JSONResponse(status_code=error.http_status, content=error.to_response())


def decode_stage(context: GateContext) -> Response | None:
    """Decode the buffered body; terminate with a failure envelope if it is malformed."""
    try:
        context.candidate = decode_account_request(context.body)
    except MalformedPayloadError as exc:
        logger.warning("malformed dmat account payload: %s", exc.detail, extra={"error_code": exc.code})
        return _terminate(exc, "malformed")
    return None


def validate_stage(context: GateContext) -> Response | None:
    """Run every field rule; terminate with all failures if any rule fails."""
    if context.candidate is None:
        raise RuntimeError("validate_stage requires a decoded candidate")
    context.errors = validate_account_request(context.candidate, logger=logger)
    if context.errors:
        return _terminate(ValidationRejectedError(context.errors), "rejected")
    GATE_DECISIONS.labels(outcome="pass").inc()
    return None


DEFAULT_STAGES: tuple[Stage, ...] = (decode_stage, validate_stage)


def run_stages(body: bytes, stages: Sequence[Stage] = DEFAULT_STAGES) -> Response | None:
    """Run ``stages`` in order; return the first terminating response, or ``None`` to continue."""
    context = GateContext(body=body)
    for stage in stages:
        response = stage(context)
        if response is not None:
            return response
    return None


def matches_gated_path(path: str, gated_path: str = GATED_PATH) -> bool:
    """Segment-wise, case-insensitive prefix match of ``path`` against ``gated_path``."""
    path = path.lower()
    gated_path = gated_path.lower().rstrip("/")
    return path == gated_path or path.startswith(gated_path + "/")


class AccountValidationMiddleware:
    """ASGI middleware that gates POSTs to the account-opening endpoint."""

    def __init__(
        self,
        app: ASGIApp,
        path: str = GATED_PATH,
        stages: Sequence[Stage] = DEFAULT_STAGES,
    ) -> None:
        self.app = app
        self.path = path
        self.stages = tuple(stages)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if not self._applies(scope):
            await self.app(scope, receive, send)
            return

        body = await _read_body(receive)
        if body is None:
            logger.debug("client disconnected before the request body was read")
            return

        response = run_stages(body, self.stages)
        if response is not None:
            await response(scope, receive, send)
            return

        await self.app(scope, _replay_body(body, receive), send)

    def _applies(self, scope: Scope) -> bool:
        return (
            scope["type"] == "http"
            and scope["method"] == "POST"
            and matches_gated_path(scope["path"], self.path)
        )


async def _read_body(receive: Receive) -> bytes | None:
    """Buffer the full request body, or return ``None`` if the client went away."""
    chunks: list[bytes] = []
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            return None
        chunks.append(message.get("body", b""))
        if not message.get("more_body", False):
            return b"".join(chunks)


def _replay_body(body: bytes, receive: Receive) -> Receive:
    """Return a ``receive`` callable that yields ``body`` once, then defers to ``receive``."""
    replayed = False

    async def replay() -> Message:
        nonlocal replayed
        if not replayed:
            replayed = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay
