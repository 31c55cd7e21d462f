"""Domain-level request contracts shared by the gate and the create handler."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, ValidationError, model_validator

from .errors import MalformedPayloadError

# Lower-cased wire name -> field alias. Legacy spellings bind to the same field.
_WIRE_NAMES: dict[str, str] = {
    "securitycode": "securityCode",
    "seccode": "securityCode",
    "rowcount": "rowCount",
    "includeliveprice": "includeLivePrice",
    "pageindex": "pageIndex",
    "asofdate": "asOfDate",
    "dtdate": "asOfDate",
    "fullname": "fullName",
    "email": "email",
    "mobilenumber": "mobileNumber",
    "pannumber": "panNumber",
    "nationalidnumber": "nationalIdNumber",
    "aadharnumber": "nationalIdNumber",
    "dateofbirth": "dateOfBirth",
    "address": "address",
    "occupation": "occupation",
    "annualincome": "annualIncome",
    "nomineename": "nomineeName",
}


class AccountRequest(BaseModel):
    """Candidate DMAT account-opening request, decoded but not yet validated.

    Absent properties (and explicit ``null`` values) fall back to the field's
    type default so that missing data is reported by the validation rules
    rather than by the decoder.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    security_code: StrictStr = Field(default="", alias="securityCode")
    row_count: StrictInt = Field(default=0, alias="rowCount")
    include_live_price: StrictBool = Field(default=True, alias="includeLivePrice")
    page_index: StrictInt = Field(default=0, alias="pageIndex")
    as_of_date: datetime | None = Field(default=None, alias="asOfDate")
    full_name: StrictStr = Field(default="", alias="fullName")
    email: StrictStr = Field(default="", alias="email")
    mobile_number: StrictStr = Field(default="", alias="mobileNumber")
    pan_number: StrictStr = Field(default="", alias="panNumber")
    national_id_number: StrictStr = Field(default="", alias="nationalIdNumber")
    date_of_birth: StrictStr = Field(default="", alias="dateOfBirth")
    address: StrictStr = Field(default="", alias="address")
    occupation: StrictStr | None = Field(default=None, alias="occupation")
    annual_income: Decimal | None = Field(default=None, alias="annualIncome")
    nominee_name: StrictStr | None = Field(default=None, alias="nomineeName")

    @model_validator(mode="before")
    @classmethod
    def _bind_case_insensitive(cls, data: Any) -> Any:
        """Map property names onto field aliases ignoring case; drop unknowns and nulls."""
        if not isinstance(data, dict):
            return data
        bound: dict[str, Any] = {}
        for key, value in data.items():
            alias = _WIRE_NAMES.get(str(key).lower())
            if alias is None or value is None:
                continue
            bound[alias] = value
        return bound


def decode_account_request(raw: bytes) -> AccountRequest:
    """Decode a raw JSON body into an ``AccountRequest``.

    The input buffer is only read, never mutated, so callers can replay the
    same bytes downstream.

    Raises
    ------
    MalformedPayloadError
        If the body is not UTF-8 JSON, is not an object, or carries a value
        of the wrong type for a known property.
    """
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise MalformedPayloadError(str(exc)) from exc
    try:
        return AccountRequest.model_validate_json(text)
    except ValidationError as exc:
        raise MalformedPayloadError(str(exc)) from exc
