"""Contribution matrix engine: who received money from whom in a given month.

For a selected schedule month the engine:
- expands every member scheduled to receive that month into display rows
- computes each receiver's collected total from the members flagged as paid
- auto-marks payers who are themselves receivers that month as paid

Pooled contributions of every paying member are split evenly among all
receivers scheduled for the month:
    row_total = sum(sum(payer.contributions) / total_receivers for paid payers)

The pure functions take explicit inputs so they can be tested in isolation;
ContributionMatrixEngine owns the roster snapshot, the selected month and the
reconciliation session, and talks to the Member Directory Service.
"""

import asyncio
import logging
from typing import Iterable, Sequence

from committee.models import SCHEDULE_MONTHS, DisplayRow, Member, PaymentUpdate, ScheduleMonth
from committee.services.directory_client import DirectoryServiceError, MemberDirectoryClient
from committee.services.locale_service import name_sort_key

logger = logging.getLogger(__name__)


class UnknownMemberError(Exception):
    """Member id is not present in the current roster snapshot."""

    def __init__(self, member_id: str):
        self.member_id = member_id
        super().__init__(f"Member {member_id} not found")


def _month_position(month: str) -> int:
    return SCHEDULE_MONTHS.index(month)


def derive_rows(members: Iterable[Member], selected_month: str) -> list[DisplayRow]:
    """Expand members into display rows for the selected month.

    One row per (member, index) where receivable_months[index] equals the
    selected month; the contribution at that index defaults to 0 when the
    contributions list is shorter. Rows outside the schedule months are
    dropped. Ordered by month position, then by name.
    """
    rows = []
    for member in members:
        for index, month in enumerate(member.receivable_months):
            if month != selected_month:
                continue
            contribution = member.contributions[index] if index < len(member.contributions) else 0
            rows.append(DisplayRow(member=member, month=month, contribution=contribution or 0))

    rows = [row for row in rows if row.month in SCHEDULE_MONTHS]
    # sorted() is stable: equal keys keep roster order
    return sorted(rows, key=lambda row: (_month_position(row.month), name_sort_key(row.name)))


def count_receivers(members: Iterable[Member], month: str) -> int:
    """Number of members scheduled to receive in ``month`` (members, not rows)."""
    return sum(1 for member in members if member.receives_in(month))


def compute_row_total(row: DisplayRow, members: Sequence[Member], selected_month: str) -> float:
    """Total collected by the row's member for the selected month.

    Returns 0.0 when nobody is scheduled to receive in the month.
    """
    total_receivers = count_receivers(members, selected_month)
    if total_receivers == 0:
        return 0.0

    total = 0.0
    for payer in members:
        if payer.has_paid(selected_month, row.member_id):
            total += payer.total_contributions() / total_receivers
    return total


class ReconciliationSession:
    """Payer/receiver pairs already auto-marked for one month selection."""

    def __init__(self, month: str):
        self.month = month
        self._keys: set[str] = set()

    @staticmethod
    def _key(update: PaymentUpdate, month: str) -> str:
        return f"{update.payer_id}_{month}_{update.receiver_id}"

    def reset(self, month: str) -> None:
        self.month = month
        self._keys.clear()

    def seen(self, update: PaymentUpdate) -> bool:
        return self._key(update, self.month) in self._keys

    def mark(self, update: PaymentUpdate) -> None:
        self._keys.add(self._key(update, self.month))

    def __len__(self) -> int:
        return len(self._keys)


def plan_reconciliation(
    members: Sequence[Member],
    rows: Sequence[DisplayRow],
    selected_month: str,
    session: ReconciliationSession,
    limit: int | None = None,
) -> list[PaymentUpdate]:
    """Pairs to auto-mark as paid, in row-then-roster order.

    A payer scheduled to receive in the row's month is considered to have
    paid every receiver of that month. Planned pairs are recorded in the
    session so a second call with no status changes plans nothing. Pairs
    beyond ``limit`` are left unrecorded for the next run.
    """
    if session.month != selected_month:
        session.reset(selected_month)

    updates: list[PaymentUpdate] = []
    for row in rows:
        for payer in members:
            if not payer.receives_in(row.month):
                continue
            if payer.has_paid(selected_month, row.member_id):
                continue
            update = PaymentUpdate(payer_id=payer.id, receiver_id=row.member_id)
            if session.seen(update):
                continue
            if limit is not None and len(updates) >= limit:
                return updates
            session.mark(update)
            updates.append(update)
    return updates


class ContributionMatrixEngine:
    """Roster snapshot plus month selection, backed by the directory service."""

    def __init__(
        self,
        client: MemberDirectoryClient,
        *,
        month: str = ScheduleMonth.MAY.value,
        concurrency: int = 1,
        max_batch: int | None = None,
    ):
        """Initialize engine.

        Args:
            client: Member Directory Service client
            month: Initially selected schedule month
            concurrency: Maximum payment-status updates in flight during reconciliation
            max_batch: Maximum updates per reconciliation run (None = unbounded)
        """
        self._check_month(month)
        self.client = client
        self.concurrency = max(1, concurrency)
        self.max_batch = max_batch
        self._members: list[Member] = []
        self._loaded = False
        self._selected_month = month
        self._generation = 0
        self.session = ReconciliationSession(month)

    @staticmethod
    def _check_month(month: str) -> None:
        if month not in SCHEDULE_MONTHS:
            raise ValueError(f"Unknown schedule month: {month}")

    @property
    def members(self) -> list[Member]:
        return list(self._members)

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def selected_month(self) -> str:
        return self._selected_month

    @property
    def generation(self) -> int:
        """Bumped on every month change; stale reconciliation batches stop on mismatch."""
        return self._generation

    def set_members(self, members: Iterable[Member]) -> None:
        self._members = list(members)
        self._loaded = True

    def select_month(self, month: str) -> bool:
        """Select a schedule month. Returns True if the selection changed.

        Changing the month clears the reconciliation session, so pairs
        reconciled for the previous month may be reconciled again later.
        """
        self._check_month(month)
        if month == self._selected_month:
            return False
        self._selected_month = month
        self._generation += 1
        self.session.reset(month)
        logger.debug("contributions.select_month: month=%s generation=%d", month, self._generation)
        return True

    async def load_roster(self) -> list[Member]:
        """Fetch the full roster and replace the snapshot.

        Raises:
            DirectoryServiceError: roster could not be fetched; snapshot unchanged
        """
        members = await self.client.list_members()
        self.set_members(members)
        logger.info("Loaded roster: %d members", len(members))
        return self.members

    def rows(self) -> list[DisplayRow]:
        return derive_rows(self._members, self._selected_month)

    def row_total(self, row: DisplayRow) -> float:
        return compute_row_total(row, self._members, self._selected_month)

    def total_receivers(self) -> int:
        return count_receivers(self._members, self._selected_month)

    def reconcile(self) -> list[PaymentUpdate]:
        """Plan the next batch of auto-marked payments for the selected month."""
        return plan_reconciliation(
            self._members,
            self.rows(),
            self._selected_month,
            self.session,
            limit=self.max_batch,
        )

    def _merge_status(self, payer_id: str, month: str, receiver_id: str, paid: bool) -> None:
        self._members = [
            member.with_payment_status(month, receiver_id, paid) if member.id == payer_id else member
            for member in self._members
        ]

    def find_member(self, member_id: str) -> Member:
        for member in self._members:
            if member.id == member_id:
                return member
        raise UnknownMemberError(member_id)

    async def apply_reconciliation(
        self, updates: Sequence[PaymentUpdate] | None = None
    ) -> list[PaymentUpdate]:
        """Send planned updates to the directory and merge the successful ones.

        Failures are logged and skipped. If the selected month changes while
        the batch is running, updates not yet started are dropped.

        Returns:
            Updates that were applied
        """
        if updates is None:
            updates = self.reconcile()
        if not updates:
            return []

        month = self._selected_month
        generation = self._generation
        semaphore = asyncio.Semaphore(self.concurrency)
        logger.info(
            "Reconciling %d payment statuses for %s (concurrency=%d)",
            len(updates),
            month,
            self.concurrency,
        )

        async def _send(update: PaymentUpdate) -> bool:
            async with semaphore:
                if generation != self._generation:
                    logger.info(
                        "Dropping stale reconciliation %s -> %s for %s",
                        update.payer_id,
                        update.receiver_id,
                        month,
                    )
                    return False
                try:
                    await self.client.set_payment_status(
                        update.payer_id, month, update.receiver_id, True
                    )
                except DirectoryServiceError as e:
                    logger.error(
                        "Failed to auto-update payment status for user %s: %s",
                        update.payer_id,
                        e,
                    )
                    return False
                self._merge_status(update.payer_id, month, update.receiver_id, True)
                return True

        if self.concurrency == 1:
            results = [await _send(update) for update in updates]
        else:
            results = await asyncio.gather(*(_send(update) for update in updates))

        return [update for update, ok in zip(updates, results) if ok]

    async def toggle_payment_status(
        self, payer_id: str, receiver_id: str, paid: bool, month: str | None = None
    ) -> None:
        """Set one payment flag remotely, then mirror it in the snapshot.

        Raises:
            DirectoryServiceError: update rejected; snapshot unchanged
        """
        month = month or self._selected_month
        self._check_month(month)
        await self.client.set_payment_status(payer_id, month, receiver_id, paid)
        self._merge_status(payer_id, month, receiver_id, paid)
        logger.info(
            "Payment status %s -> %s for %s set to %s", payer_id, receiver_id, month, paid
        )


__all__ = [
    "ContributionMatrixEngine",
    "ReconciliationSession",
    "UnknownMemberError",
    "compute_row_total",
    "count_receivers",
    "derive_rows",
    "plan_reconciliation",
]
