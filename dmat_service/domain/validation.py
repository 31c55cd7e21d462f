"""Field-level rules deciding whether an account-opening request may proceed.

Every rule runs on every call; failures are collected in rule order so the
caller sees all violations at once. The rules are pure functions of the
request and the supplied instant.
"""

from __future__ import annotations

import logging
import re
from datetime import MAXYEAR, datetime, timezone
from typing import Callable, Iterator

from .contracts import AccountRequest

# Largest value of a 32-bit signed integer; counts at or above it are rejected.
INT32_MAX = 2_147_483_647
ADULT_AGE_YEARS = 18

FULL_NAME_MAX_LENGTH = 100
ADDRESS_MAX_LENGTH = 250
OCCUPATION_MAX_LENGTH = 50
NOMINEE_NAME_MAX_LENGTH = 100

_EMAIL_PATTERN = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")
_MOBILE_PATTERN = re.compile(r"[0-9]{10}")
_PAN_PATTERN = re.compile(r"[A-Z]{5}[0-9]{4}[A-Z]")
_NATIONAL_ID_PATTERN = re.compile(r"[0-9]{12}")
_SECURITY_CODE_PATTERN = re.compile(r"[a-zA-Z0-9]+")

Rule = Callable[[AccountRequest, datetime], Iterator[str]]


def validate_account_request(
    request: AccountRequest,
    *,
    now: datetime | None = None,
    logger: logging.Logger | None = None,
) -> list[str]:
    """Return every rule violation for ``request``; an empty list means it passes.

    ``now`` defaults to the current instant. A naive value is read as local
    time. ``logger`` is an optional side channel for diagnostics.
    """
    current = _as_aware(now)
    errors: list[str] = []
    for rule in RULES:
        errors.extend(rule(request, current))
    if logger is not None and errors:
        logger.debug("account request rejected by %d rule(s): %s", len(errors), errors)
    return errors


def _as_aware(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.astimezone()
    return now


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _check_full_name(request: AccountRequest, now: datetime) -> Iterator[str]:
    if _is_blank(request.full_name):
        yield "FullName is required."
    elif len(request.full_name) > FULL_NAME_MAX_LENGTH:
        yield "FullName cannot exceed 100 characters."


def _check_email(request: AccountRequest, now: datetime) -> Iterator[str]:
    if _is_blank(request.email):
        yield "Email is required."
    elif not _EMAIL_PATTERN.fullmatch(request.email):
        yield "Invalid email format."


def _check_mobile_number(request: AccountRequest, now: datetime) -> Iterator[str]:
    if _is_blank(request.mobile_number):
        yield "MobileNumber is required."
    elif not _MOBILE_PATTERN.fullmatch(request.mobile_number):
        yield "MobileNumber must be exactly 10 digits."


def _check_pan_number(request: AccountRequest, now: datetime) -> Iterator[str]:
    if _is_blank(request.pan_number):
        yield "PanNumber is required."
    elif not _PAN_PATTERN.fullmatch(request.pan_number):
        yield "Invalid PAN number format."


def _check_national_id_number(request: AccountRequest, now: datetime) -> Iterator[str]:
    if _is_blank(request.national_id_number):
        yield "NationalIdNumber is required."
    elif not _NATIONAL_ID_PATTERN.fullmatch(request.national_id_number):
        yield "NationalIdNumber must be exactly 12 digits."


def _check_date_of_birth(request: AccountRequest, now: datetime) -> Iterator[str]:
    if _is_blank(request.date_of_birth):
        yield "DateOfBirth is required."
        return
    born = parse_date(request.date_of_birth)
    if born is None:
        yield "DateOfBirth must be a valid date."
    elif not is_adult(born, now):
        yield "Applicant must be at least 18 years old."


def _check_address(request: AccountRequest, now: datetime) -> Iterator[str]:
    if _is_blank(request.address):
        yield "Address is required."
    elif len(request.address) > ADDRESS_MAX_LENGTH:
        yield "Address cannot exceed 250 characters."


def _check_occupation(request: AccountRequest, now: datetime) -> Iterator[str]:
    if request.occupation is not None and len(request.occupation) > OCCUPATION_MAX_LENGTH:
        yield "Occupation cannot exceed 50 characters."


def _check_annual_income(request: AccountRequest, now: datetime) -> Iterator[str]:
    if request.annual_income is not None and request.annual_income < 0:
        yield "AnnualIncome must be a positive value."


def _check_nominee_name(request: AccountRequest, now: datetime) -> Iterator[str]:
    # An explicit empty string is rejected even though absence is allowed.
    nominee = request.nominee_name
    if nominee is not None and (nominee == "" or len(nominee) > NOMINEE_NAME_MAX_LENGTH):
        yield "NomineeName cannot exceed 100 characters."


def _check_security_code(request: AccountRequest, now: datetime) -> Iterator[str]:
    code = request.security_code
    if _is_blank(code):
        yield "SecCode is required."
    if len(code) != 4:
        yield "SecCode must be exactly 4 alphanumeric characters."
    if not _SECURITY_CODE_PATTERN.fullmatch(code):
        yield "SecCode must not contain special characters, spaces, or negative values."
    if not any(ch.isalpha() for ch in code) or not any(ch.isdecimal() for ch in code):
        yield "SecCode must contain both letters and numbers."


def _check_row_count(request: AccountRequest, now: datetime) -> Iterator[str]:
    if request.row_count <= 0:
        yield "RowCount must be greater than 0 and it must be a positive integer."
    if request.row_count >= INT32_MAX:
        yield "RowCount exceeds the maximum value for an int."


def _check_page_index(request: AccountRequest, now: datetime) -> Iterator[str]:
    if request.page_index <= 0:
        yield "PageIndex must be greater than 0 and it must be a positive integer."
    if request.page_index >= INT32_MAX:
        yield "PageIndex exceeds the maximum value for an int."


def _check_as_of_date(request: AccountRequest, now: datetime) -> Iterator[str]:
    as_of = request.as_of_date
    if as_of is None:
        return
    if as_of.tzinfo is None:
        as_of = as_of.replace(tzinfo=timezone.utc)
    if as_of > now:
        yield "DtDate cannot be a future date."


RULES: tuple[Rule, ...] = (
    _check_full_name,
    _check_email,
    _check_mobile_number,
    _check_pan_number,
    _check_national_id_number,
    _check_date_of_birth,
    _check_address,
    _check_occupation,
    _check_annual_income,
    _check_nominee_name,
    _check_security_code,
    _check_row_count,
    _check_page_index,
    _check_as_of_date,
)


def parse_date(value: str) -> datetime | None:
    """Parse an ISO-8601 date or date-time, returning ``None`` when it is not one."""
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError:
        return None


def is_adult(born: datetime, now: datetime) -> bool:
    """Return ``True`` once ``born`` plus the adult age has been reached at ``now``.

    A 29 February birthday comes of age on 28 February in non-leap years.
    Naive birth dates are compared against local wall-clock time.
    """
    year = born.year + ADULT_AGE_YEARS
    if year > MAXYEAR:
        return False
    try:
        comes_of_age = born.replace(year=year)
    except ValueError:
        comes_of_age = born.replace(year=year, day=28)
    if comes_of_age.tzinfo is None:
        return comes_of_age <= now.astimezone().replace(tzinfo=None)
    return comes_of_age <= now
