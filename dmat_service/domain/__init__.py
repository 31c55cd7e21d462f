"""Account-opening domain: request contract, validation rules and service."""

from .contracts import AccountRequest, decode_account_request
from .errors import DmatAccountError, MalformedPayloadError, ValidationRejectedError
from .service import AccountService
from .validation import validate_account_request

__all__ = [
    "AccountRequest",
    "AccountService",
    "DmatAccountError",
    "MalformedPayloadError",
    "ValidationRejectedError",
    "decode_account_request",
    "validate_account_request",
]
