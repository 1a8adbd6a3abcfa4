"""Data models for members, months and derived display rows."""

from committee.models.member import (
    SCHEDULE_MONTHS,
    CalendarMonth,
    DisplayRow,
    Member,
    MemberDraft,
    PaymentUpdate,
    ScheduleMonth,
    UserType,
    payment_key,
)

__all__ = [
    "SCHEDULE_MONTHS",
    "CalendarMonth",
    "DisplayRow",
    "Member",
    "MemberDraft",
    "PaymentUpdate",
    "ScheduleMonth",
    "UserType",
    "payment_key",
]
