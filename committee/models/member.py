"""Member records as served by the Member Directory Service, plus derived rows.

The directory speaks camelCase JSON with a MongoDB-style ``_id``; the models
accept both the wire names and the snake_case field names.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, NonNegativeFloat, field_validator, model_validator


class UserType(str, Enum):
    """Committee role tag."""

    ADMIN = "Admin"
    USER = "User"


class ScheduleMonth(str, Enum):
    """Months of the payment schedule, in payout order."""

    MAY = "May"
    JUNE = "June"
    JULY = "July"
    AUG = "Aug"
    SEP = "Sep"
    OCT = "Oct"
    NOV = "Nov"


class CalendarMonth(str, Enum):
    """Months accepted when entering a member's receivable months."""

    JAN = "Jan"
    FEB = "Feb"
    MARCH = "March"
    APRIL = "April"
    MAY = "May"
    JUNE = "June"
    JULY = "July"
    AUG = "Aug"
    SEP = "Sep"
    OCT = "Oct"
    NOV = "Nov"
    DEC = "Dec"


# Positional order used for sorting rows; not lexical
SCHEDULE_MONTHS: list[str] = [month.value for month in ScheduleMonth]


def payment_key(month: str, receiver_id: str) -> str:
    """Key into a payer's payment status map for (month, receiver)."""
    return f"{month}_{receiver_id}"


class Member(BaseModel):
    """Snapshot of a committee member."""

    id: str = Field(alias="_id")
    name: str
    bank_name: str = Field(default="", alias="bankName")
    bank_account_no: str = Field(default="", alias="bankAccountNo")
    user_type: UserType = Field(default=UserType.USER, alias="userType")
    contributions: list[float] = Field(default_factory=list)
    receivable_months: list[str] = Field(default_factory=list, alias="receivableMonths")
    payment_status: dict[str, bool] = Field(default_factory=dict, alias="paymentStatus")

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    @field_validator("receivable_months", mode="before")
    @classmethod
    def _none_as_empty_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("contributions", mode="before")
    @classmethod
    def _null_contributions_as_zero(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [0 if amount is None else amount for amount in value]
        return value

    @field_validator("payment_status", mode="before")
    @classmethod
    def _null_flags_as_unpaid(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {key: False if paid is None else paid for key, paid in value.items()}
        return value

    def receives_in(self, month: str) -> bool:
        """Whether this member is scheduled to receive the pool in ``month``."""
        return month in self.receivable_months

    def has_paid(self, month: str, receiver_id: str) -> bool:
        return self.payment_status.get(payment_key(month, receiver_id)) is True

    def total_contributions(self) -> float:
        return float(sum(self.contributions))

    def with_payment_status(self, month: str, receiver_id: str, paid: bool) -> "Member":
        """Return a copy with exactly one payment status key set."""
        status = dict(self.payment_status)
        status[payment_key(month, receiver_id)] = paid
        return self.model_copy(update={"payment_status": status})


class MemberDraft(BaseModel):
    """Add/edit form payload for a member (everything except id and payment status).

    A single ``contribution`` amount may be given instead of ``contributions``;
    it is repeated once per receivable month.
    """

    name: str = Field(..., min_length=1)
    bank_name: str = Field(..., min_length=1, alias="bankName")
    bank_account_no: str = Field(..., min_length=1, alias="bankAccountNo")
    user_type: UserType = Field(default=UserType.USER, alias="userType")
    contributions: list[NonNegativeFloat] = Field(default_factory=list)
    receivable_months: list[CalendarMonth] = Field(
        default_factory=list, alias="receivableMonths"
    )

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    @model_validator(mode="before")
    @classmethod
    def _expand_single_contribution(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "contribution" not in data:
            return data
        data = dict(data)
        amount = data.pop("contribution")
        if data.get("contributions") is None:
            months = data.get("receivableMonths", data.get("receivable_months")) or []
            data["contributions"] = [amount] * len(months)
        return data

    @classmethod
    def from_member(cls, member: Member) -> "MemberDraft":
        """Prefill the edit form from an existing member."""
        return cls(
            name=member.name,
            bank_name=member.bank_name,
            bank_account_no=member.bank_account_no,
            user_type=member.user_type,
            contributions=member.contributions,
            receivable_months=[m for m in member.receivable_months if m in _CALENDAR_VALUES],
        )

    def to_payload(self) -> dict[str, Any]:
        """JSON body for the directory's create/update endpoints."""
        return self.model_dump(by_alias=True, mode="json")


_CALENDAR_VALUES = {month.value for month in CalendarMonth}


class PaymentUpdate(NamedTuple):
    """A payer -> receiver pair to be marked paid."""

    payer_id: str
    receiver_id: str


@dataclass(frozen=True)
class DisplayRow:
    """A member projected onto one of their receivable months."""

    member: Member
    month: str
    contribution: float

    @property
    def member_id(self) -> str:
        return self.member.id

    @property
    def name(self) -> str:
        return self.member.name

    @property
    def receivable(self) -> float:
        """Payout for the month: the monthly contribution over the whole schedule."""
        return self.contribution * len(SCHEDULE_MONTHS)
