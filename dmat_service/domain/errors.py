"""Error kinds raised while decoding and validating account-opening requests."""

from __future__ import annotations

from typing import Any

from ..api.envelopes import FailureEnvelope

MALFORMED_PAYLOAD_MESSAGE = "Request body is not a valid DMAT account request."


class DmatAccountError(Exception):
    """Base error for requests rejected before reaching the create handler."""

    code = "DMAT_ACCOUNT_ERROR"
    http_status = 400

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = list(errors) if errors is not None else [message]

    def to_response(self) -> dict[str, Any]:
        """Convert to the failure envelope returned to the caller."""
        return FailureEnvelope(errors=self.errors).to_json()


class MalformedPayloadError(DmatAccountError):
    """Raw body could not be decoded into an ``AccountRequest``."""

    code = "MALFORMED_PAYLOAD"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(MALFORMED_PAYLOAD_MESSAGE)
        self.detail = detail


class ValidationRejectedError(DmatAccountError):
    """One or more field rules failed; carries every failure message."""

    code = "VALIDATION_REJECTED"

    def __init__(self, errors: list[str]) -> None:
        super().__init__(f"{len(errors)} validation rule(s) failed", errors)
