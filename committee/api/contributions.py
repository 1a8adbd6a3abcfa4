"""Contribution schedule endpoints: the monthly who-paid-whom matrix."""

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict

from committee.api.deps import get_engine
from committee.api.errors import (
    MemberNotFoundError,
    PaymentStatusUpdateError,
    RosterUnavailableError,
    raise_app_error,
)
from committee.models import SCHEDULE_MONTHS, ScheduleMonth
from committee.services.contribution_service import ContributionMatrixEngine, UnknownMemberError
from committee.services.directory_client import DirectoryServiceError
from committee.services.locale_service import format_amount
from committee.services.localizer import t

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/contributions", tags=["contributions"])


def _log_debug(endpoint: str, start_time: float, **kwargs) -> None:
    """Log API request with timing at DEBUG level."""
    duration_ms = int((time.time() - start_time) * 1000)
    extra = " ".join(f"{k}={v}" for k, v in kwargs.items())
    logger.debug(
        "contributions.%s: %sduration_ms=%d", endpoint, f"{extra} " if extra else "", duration_ms
    )


class PayerStatusItem(BaseModel):
    """One potential payer's status towards a row's receiver."""

    member_id: str
    name: str
    paid: bool
    scheduled: bool  # payer also receives this month
    settled: bool  # paid or scheduled (shown green)


class ContributionRowItem(BaseModel):
    """A receiver row of the matrix."""

    member_id: str
    name: str
    month: str
    bank_name: str
    bank_account_no: str
    contribution: float
    contribution_display: str
    receivable: float
    receivable_display: str
    total: float
    total_display: str
    payers: list[PayerStatusItem]

    model_config = ConfigDict(from_attributes=True)


class ContributionMatrixResponse(BaseModel):
    """Response schema for the matrix endpoints."""

    month: str
    months: list[str]
    total_receivers: int
    reconciled: int  # auto-marked payments applied by this request
    rows: list[ContributionRowItem]


class TogglePaymentRequest(BaseModel):
    """Manual payment status change; ``paid`` omitted flips the current flag."""

    payer_id: str
    receiver_id: str
    paid: bool | None = None


def _build_matrix(engine: ContributionMatrixEngine, reconciled: int) -> ContributionMatrixResponse:
    month = engine.selected_month
    members = engine.members
    rows = []
    for row in engine.rows():
        total = engine.row_total(row)
        payers = []
        for payer in members:
            paid = payer.has_paid(month, row.member_id)
            scheduled = payer.receives_in(row.month)
            payers.append(
                PayerStatusItem(
                    member_id=payer.id,
                    name=payer.name,
                    paid=paid,
                    scheduled=scheduled,
                    settled=paid or scheduled,
                )
            )
        rows.append(
            ContributionRowItem(
                member_id=row.member_id,
                name=row.name,
                month=row.month,
                bank_name=row.member.bank_name,
                bank_account_no=row.member.bank_account_no,
                contribution=row.contribution,
                contribution_display=format_amount(row.contribution),
                receivable=row.receivable,
                receivable_display=format_amount(row.receivable),
                total=total,
                total_display=format_amount(total),
                payers=payers,
            )
        )
    return ContributionMatrixResponse(
        month=month,
        months=SCHEDULE_MONTHS,
        total_receivers=engine.total_receivers(),
        reconciled=reconciled,
        rows=rows,
    )


async def _ensure_roster(engine: ContributionMatrixEngine, refresh: bool = False) -> None:
    if engine.loaded and not refresh:
        return
    try:
        await engine.load_roster()
    except DirectoryServiceError as e:
        logger.error("Failed to load roster: %s", e)
        raise_app_error(RosterUnavailableError())


@router.get("/months", response_model=list[str])
async def list_months() -> list[str]:
    """Schedule months in payout order."""
    return SCHEDULE_MONTHS


@router.get("", response_model=ContributionMatrixResponse)
async def get_matrix(
    month: ScheduleMonth | None = Query(None),  # noqa: B008
    engine: ContributionMatrixEngine = Depends(get_engine),  # noqa: B008
) -> ContributionMatrixResponse:
    """Select a month and return its contribution matrix.

    Loads the roster on first use and auto-marks payers who also receive
    this month before building the view.

    Raises:
        422: Unknown month
        502: Roster could not be loaded
        500: Server error
    """
    start_time = time.time()
    try:
        if month is not None:
            engine.select_month(month.value)
        await _ensure_roster(engine)
        applied = await engine.apply_reconciliation()
        response = _build_matrix(engine, len(applied))
        _log_debug("matrix", start_time, month=engine.selected_month, rows=len(response.rows))
        return response

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in /api/contributions: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=t("errors.server_error")) from e


@router.post("/refresh", response_model=ContributionMatrixResponse)
async def refresh_matrix(
    engine: ContributionMatrixEngine = Depends(get_engine),  # noqa: B008
) -> ContributionMatrixResponse:
    """Refetch the roster, reconcile and return the matrix for the selected month.

    Raises:
        502: Roster could not be loaded
        500: Server error
    """
    start_time = time.time()
    try:
        await _ensure_roster(engine, refresh=True)
        applied = await engine.apply_reconciliation()
        response = _build_matrix(engine, len(applied))
        _log_debug("refresh", start_time, month=engine.selected_month, rows=len(response.rows))
        return response

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in /api/contributions/refresh: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=t("errors.server_error")) from e


@router.post("/toggle", response_model=ContributionMatrixResponse)
async def toggle_payment(
    payload: TogglePaymentRequest,
    engine: ContributionMatrixEngine = Depends(get_engine),  # noqa: B008
) -> ContributionMatrixResponse:
    """Set a payer's paid flag towards a receiver for the selected month.

    Raises:
        404: Payer or receiver not in the roster
        502: Roster could not be loaded or directory rejected the change
        500: Server error
    """
    start_time = time.time()
    try:
        await _ensure_roster(engine)
        month = engine.selected_month
        try:
            payer = engine.find_member(payload.payer_id)
            engine.find_member(payload.receiver_id)
        except UnknownMemberError as e:
            raise_app_error(MemberNotFoundError(e.member_id))

        paid = payload.paid
        if paid is None:
            paid = not payer.has_paid(month, payload.receiver_id)

        try:
            await engine.toggle_payment_status(payload.payer_id, payload.receiver_id, paid)
        except DirectoryServiceError as e:
            logger.error(
                "Failed to update payment status %s -> %s: %s",
                payload.payer_id,
                payload.receiver_id,
                e,
            )
            raise_app_error(PaymentStatusUpdateError())

        applied = await engine.apply_reconciliation()
        response = _build_matrix(engine, len(applied))
        _log_debug("toggle", start_time, month=month, payer_id=payload.payer_id, paid=paid)
        return response

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in /api/contributions/toggle: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=t("errors.server_error")) from e


__all__ = ["router"]
