"""
Ledger Service

The async entry point to the household ledger. It ties together:
1. The transaction store (append and list only)
2. The ledger engine (balances, always recomputed from the full log)
3. The audit logger (every append is recorded)

DESIGN DECISION: The service holds no balance state. Two sessions
appending at the same time cannot corrupt a balance because there is no
balance to corrupt; the next read simply sees both entries.
"""

import datetime as dt
from typing import Optional
from uuid import UUID

import structlog

from receipt_ledger.allocation.bridge import allocation_to_drafts
from receipt_ledger.audit import AuditLogger
from receipt_ledger.config import HouseholdSettings, get_settings
from receipt_ledger.ledger.engine import compute_balances
from receipt_ledger.ledger.summary import monthly_summary, order_for_display
from receipt_ledger.models.ledger import (
    SPLIT_BOTH,
    Balance,
    BalanceStatus,
    MonthlySummary,
    Transaction,
    TransactionDraft,
    TransactionKind,
)
from receipt_ledger.models.receipt import AllocationResult
from receipt_ledger.money import MoneyInput, has_cent_precision, read_decimal
from receipt_ledger.services.storage import TransactionStoreInterface

logger = structlog.get_logger(__name__)


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class UnknownPartyError(LedgerError):
    """An entry names someone who is not one of the household's two parties."""
    pass


class NothingToSettleError(LedgerError):
    """The parties are already even."""
    pass


class InvalidSettlementError(LedgerError):
    """Settlement amount is not positive or exceeds what is owed."""
    pass


class LedgerService:
    """
    Household ledger operations on top of a transaction store.

    Every entry written must name the household's two parties (and "both"
    as split), otherwise the two balances would no longer sum to zero.
    """

    def __init__(
        self,
        store: TransactionStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
        household: Optional[HouseholdSettings] = None,
    ):
        self._store = store
        self._audit = audit_logger or AuditLogger()
        self._household = household
        # correlation id -> entries already stored by an interrupted submission
        self._partial_submissions: dict[UUID, list[Transaction]] = {}

    def _get_parties(self) -> tuple[str, str]:
        if self._household is None:
            self._household = get_settings().household
        return self._household.self_party, self._household.other_party

    def _check_party(self, party: str, role: str) -> None:
        if party not in self._get_parties():
            raise UnknownPartyError(
                f"{role} '{party}' is not a party of this household "
                f"({', '.join(self._get_parties())})"
            )

    def _check_split(self, paid_by: str, split_with: Optional[str]) -> None:
        self._check_party(paid_by, "paid_by")
        split = split_with.strip() if split_with else None
        if split and split != SPLIT_BOTH:
            self._check_party(split, "split_with")

    def _check_pair(self, first: str, second: str, roles: tuple[str, str]) -> None:
        self._check_party(first, roles[0])
        self._check_party(second, roles[1])
        if first == second:
            raise UnknownPartyError(f"{roles[0]} and {roles[1]} must be different parties")

    async def _append(
        self,
        draft: TransactionDraft,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        transaction = await self._store.append_transaction(draft)
        await self._audit.log_transaction_appended(
            transaction_id=transaction.id,
            kind=transaction.kind.value,
            amount=str(transaction.amount),
            paid_by=transaction.paid_by,
            split_with=transaction.split_with,
            correlation_id=correlation_id,
        )
        return transaction

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    async def get_balance(
        self,
        household_id: str,
        viewer: str,
        counterparty: Optional[str] = None,
    ) -> Balance:
        """Current balance, computed from the complete log."""
        transactions = await self._store.list_transactions(household_id)
        return compute_balances(transactions, viewer, counterparty=counterparty)

    async def history(self, household_id: str) -> list[Transaction]:
        """All transactions, newest first."""
        transactions = await self._store.list_transactions(household_id)
        return order_for_display(transactions)

    async def get_monthly_summary(
        self,
        household_id: str,
        viewer: str,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> MonthlySummary:
        """Expense overview for a month (default: the current one)."""
        today = dt.date.today()
        transactions = await self._store.list_transactions(household_id)
        return monthly_summary(
            transactions,
            viewer,
            year=year or today.year,
            month=month or today.month,
        )

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    async def record_expense(
        self,
        household_id: str,
        paid_by: str,
        amount: MoneyInput,
        description: str,
        split_with: Optional[str] = None,
        on: Optional[dt.date] = None,
    ) -> Transaction:
        """
        Record an expense entered by hand.

        split_with: "both" to share it, a party id to bill that party,
        None (or the payer) for a personal expense.

        Raises:
            ValueError: invalid amount or description (nothing is stored)
            UnknownPartyError: paid_by or split_with is not a household party
            StoreError: the append failed
        """
        self._check_split(paid_by, split_with)
        draft = TransactionDraft(
            kind=TransactionKind.EXPENSE,
            amount=read_decimal(amount),
            description=description,
            date=on or dt.date.today(),
            paid_by=paid_by,
            split_with=split_with,
            household_id=household_id,
        )
        return await self._append(draft)

    async def record_income(
        self,
        household_id: str,
        paid_by: str,
        amount: MoneyInput,
        description: str,
        on: Optional[dt.date] = None,
    ) -> Transaction:
        """Record income. It is kept in the log but moves no balance."""
        self._check_party(paid_by, "paid_by")
        draft = TransactionDraft(
            kind=TransactionKind.INCOME,
            amount=read_decimal(amount),
            description=description,
            date=on or dt.date.today(),
            paid_by=paid_by,
            household_id=household_id,
        )
        return await self._append(draft)

    async def settle_debt(
        self,
        household_id: str,
        viewer: str,
        counterparty: str,
        amount: Optional[MoneyInput] = None,
        on: Optional[dt.date] = None,
    ) -> Transaction:
        """
        Record a payment between the parties that reduces the debt.

        Whoever owes is recorded as the payer. amount defaults to the full
        outstanding balance.

        Raises:
            NothingToSettleError: balance is zero
            InvalidSettlementError: amount <= 0, not whole cents, or more
                than is owed
            UnknownPartyError: viewer or counterparty is not a household party
        """
        self._check_pair(viewer, counterparty, ("viewer", "counterparty"))
        balance = await self.get_balance(household_id, viewer, counterparty)
        if balance.status is BalanceStatus.SETTLED:
            raise NothingToSettleError("Nothing to settle, the balance is even")

        if amount is None:
            settle_amount = balance.outstanding
        else:
            try:
                settle_amount = read_decimal(amount)
            except ValueError as e:
                raise InvalidSettlementError(str(e)) from e

        if settle_amount <= 0:
            raise InvalidSettlementError("Settlement amount must be greater than zero")
        if not has_cent_precision(settle_amount):
            raise InvalidSettlementError("Settlement amount must be in whole cents")
        if settle_amount > balance.outstanding:
            raise InvalidSettlementError(
                f"Settlement amount {settle_amount} exceeds the outstanding {balance.outstanding}"
            )

        if balance.status is BalanceStatus.OWES:
            payer, receiver = viewer, counterparty
        else:
            payer, receiver = counterparty, viewer

        draft = TransactionDraft(
            kind=TransactionKind.SETTLEMENT,
            amount=settle_amount,
            description=f"Debt settlement - {settle_amount}",
            date=on or dt.date.today(),
            paid_by=payer,
            split_with=receiver,
            household_id=household_id,
        )
        transaction = await self._store.append_transaction(draft)
        await self._audit.log_debt_settled(
            transaction_id=transaction.id,
            paid_by=payer,
            amount=str(settle_amount),
        )
        return transaction

    async def submit_allocation(
        self,
        result: AllocationResult,
        household_id: str,
        payer: str,
        counterparty: str,
        label: Optional[str] = None,
        on: Optional[dt.date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[Transaction]:
        """
        Book a finished receipt allocation.

        Entries are appended one by one. If an append fails, the ones
        before it stay in the log (it is append-only) and the error is
        raised. Calling again with the same correlation_id appends only the
        entries that are still missing, so a failed submission can be
        retried without booking anything twice.

        Raises:
            StoreError: an append failed
            UnknownPartyError: payer or counterparty is not a household party
        """
        self._check_pair(payer, counterparty, ("payer", "counterparty"))
        drafts = allocation_to_drafts(
            result,
            household_id=household_id,
            payer=payer,
            counterparty=counterparty,
            on=on,
            label=label,
        )

        stored = list(self._partial_submissions.get(correlation_id, [])) if correlation_id else []
        if stored:
            logger.info(
                "allocation_submission_resumed",
                already_stored=len(stored),
                remaining=len(drafts) - len(stored),
                correlation_id=str(correlation_id),
            )

        for draft in drafts[len(stored):]:
            try:
                stored.append(await self._append(draft, correlation_id=correlation_id))
            except Exception:
                if correlation_id is not None and stored:
                    self._partial_submissions[correlation_id] = stored
                raise

        if correlation_id is not None:
            self._partial_submissions.pop(correlation_id, None)

        logger.info(
            "allocation_submitted",
            household_id=household_id,
            transaction_count=len(stored),
            correlation_id=str(correlation_id) if correlation_id else None,
        )
        return stored
