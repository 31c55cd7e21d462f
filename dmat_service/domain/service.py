"""Account service invoked once a request has passed the validation gate."""

from __future__ import annotations

import logging

from .contracts import AccountRequest

logger = logging.getLogger(__name__)


class AccountService:
    """Account-opening workflow.

    Provisioning is handled by downstream systems; this service only records
    that a validated request was accepted.
    """

    def create_account(self, request: AccountRequest) -> None:
        """Accept a validated account-opening request."""
        logger.info(
            "dmat account request accepted",
            extra={"security_code": request.security_code, "page_index": request.page_index},
        )
