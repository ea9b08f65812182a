"""
Ledger Engine

Keeps account balances, card usage and limit usage consistent with the
transactions that are recorded.

Effect of a transaction (sign +1 to apply, -1 to reverse):

    type      status    method    effect
    expense   paid      account   account.balance -= amount
    expense   paid      card      card.used       += amount
    income    received  account   account.balance += amount
    transfer  any       -         from.balance -= amount, to.balance += amount
    anything else                 none

Expenses also accrue onto every active limit they match. Which expenses
accrue is governed by LimitAccrualPolicy. The transaction remembers each
limit it was counted in, with that limit's cycle start, in
limit_accruals; an update only takes the amount back from limits still
in that same cycle.

Every referenced record is loaded before anything is written, so an
unknown account or card fails the whole operation with nothing changed.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Optional

from finance_tracker.config import get_settings
from finance_tracker.ledger.errors import InvalidAmountError
from finance_tracker.ledger.limits import LimitCycleManager
from finance_tracker.log import get_logger
from finance_tracker.models import (
    PaymentMethod,
    Transaction,
    TransactionStatus,
    TransactionType,
    to_money,
)
from finance_tracker.store import EntityStore, merge


logger = get_logger(__name__)


class LimitAccrualPolicy(str, Enum):
    """Which expenses count against spending limits."""
    SETTLED = "settled"   # Only paid expenses
    ALWAYS = "always"     # Any expense, pending included


@dataclass(frozen=True)
class BalanceEffect:
    """A signed change to one numeric field of one stored record."""
    collection: str
    record_id: str
    field: str
    delta: Decimal


def balance_effects(tx: Transaction) -> list[BalanceEffect]:
    """The balance/card changes a transaction causes when applied."""
    amount = tx.amount

    if tx.type == TransactionType.TRANSFER:
        info = tx.transfer_info
        return [
            BalanceEffect("accounts", info.from_account_id, "balance", -amount),
            BalanceEffect("accounts", info.to_account_id, "balance", amount),
        ]

    if tx.type == TransactionType.EXPENSE and tx.status == TransactionStatus.PAID:
        if tx.payment_method == PaymentMethod.ACCOUNT:
            return [BalanceEffect("accounts", tx.payment_source, "balance", -amount)]
        if tx.payment_method == PaymentMethod.CARD:
            return [BalanceEffect("cards", tx.payment_source, "used", amount)]

    if (
        tx.type == TransactionType.INCOME
        and tx.status == TransactionStatus.RECEIVED
        and tx.payment_method == PaymentMethod.ACCOUNT
    ):
        return [BalanceEffect("accounts", tx.payment_source, "balance", amount)]

    return []


class LedgerEngine:
    """
    Applies transaction creates and updates to the entity store.

    Usage:
        engine = LedgerEngine(store)
        engine.apply_transaction_create(tx)
        new_tx = engine.apply_transaction_update(old_tx, {"amount": 30})
    """

    def __init__(
        self,
        store: EntityStore,
        limit_manager: Optional[LimitCycleManager] = None,
        accrual_policy: Optional[LimitAccrualPolicy] = None,
        today: Callable[[], date] = date.today,
    ):
        self.store = store
        self.limit_manager = limit_manager or LimitCycleManager()
        self.accrual_policy = LimitAccrualPolicy(
            accrual_policy or get_settings().app.limit_accrual_policy
        )
        self._today = today

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def apply_transaction_create(self, tx: Transaction) -> Transaction:
        """
        Apply the effects of a newly created transaction.

        Raises:
            InvalidAmountError: If the amount is not finite
            UnknownReferenceError: If an account or card does not exist
        """
        self._check_amount(tx)
        effects = balance_effects(tx)
        self._require_targets(effects)

        self._apply(effects, sign=1)
        tx.limit_accruals = self._accrue_limits(tx)

        logger.info(
            "ledger_transaction_applied",
            transaction_id=tx.id,
            type=tx.type.value,
            status=tx.status.value,
            amount=str(tx.amount),
            effects=len(effects),
        )
        return tx

    def apply_transaction_update(
        self,
        old_tx: Transaction,
        updates: dict[str, Any],
    ) -> Transaction:
        """
        Move the ledger from old_tx's effects to the updated transaction's.

        The old balance effect is reversed, then the new one applied.
        Limits are only touched when a field that decides accrual
        changed: the old amount comes off the limits it was counted in
        (if their cycle has not moved on) and the new transaction
        accrues as if just created. Returns the merged transaction;
        persisting it is the caller's job.

        Raises:
            pydantic.ValidationError: If the merged transaction is invalid
            InvalidAmountError: If the new amount is not finite
            UnknownReferenceError: If a new account or card does not exist
        """
        updates = {key: value for key, value in updates.items() if key != "limit_accruals"}
        new_tx = merge(old_tx, updates)
        self._check_amount(new_tx)

        old_effects = balance_effects(old_tx)
        new_effects = balance_effects(new_tx)
        self._require_targets(old_effects + new_effects)

        self._apply(old_effects, sign=-1)
        self._apply(new_effects, sign=1)

        if _accrual_key(old_tx) != _accrual_key(new_tx):
            self._release_limits(old_tx)
            new_tx.limit_accruals = self._accrue_limits(new_tx)

        logger.info(
            "ledger_transaction_reapplied",
            transaction_id=new_tx.id,
            old_amount=str(old_tx.amount),
            new_amount=str(new_tx.amount),
            old_status=old_tx.status.value,
            new_status=new_tx.status.value,
        )
        return new_tx

    def accrues(self, tx: Transaction) -> bool:
        """Does this transaction count against matching limits?"""
        if tx.type != TransactionType.EXPENSE:
            return False
        if self.accrual_policy == LimitAccrualPolicy.ALWAYS:
            return True
        return tx.status == TransactionStatus.PAID

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _check_amount(self, tx: Transaction) -> None:
        amount = tx.amount
        if not isinstance(amount, Decimal) or not amount.is_finite():
            raise InvalidAmountError(f"Amount must be a finite number, got {amount!r}")

    def _require_targets(self, effects: list[BalanceEffect]) -> None:
        for effect in effects:
            self.store.require(effect.collection, effect.record_id)

    def _apply(self, effects: list[BalanceEffect], sign: int) -> None:
        # Re-read per effect: a transfer or update may touch one account twice
        for effect in effects:
            repository = self.store.repository(effect.collection)
            record = self.store.require(effect.collection, effect.record_id)
            current = getattr(record, effect.field)
            setattr(record, effect.field, to_money(current + sign * effect.delta))
            repository.update(record)

    def _accrue_limits(self, tx: Transaction) -> dict[str, date]:
        """Add tx onto every active matching limit; returns limit id -> cycle start."""
        if not self.accrues(tx):
            return {}

        today = self._today()
        accruals = {}
        for limit in self.store.limits.list_all():
            if not limit.is_active or not limit.matches(tx.category, tx.subcategory):
                continue

            rolled = self.limit_manager.roll_over(limit, today)
            limit.current_amount = to_money(limit.current_amount + tx.amount)
            self.store.limits.update(limit)
            accruals[limit.id] = limit.start_date

            logger.info(
                "limit_accrued",
                limit_id=limit.id,
                transaction_id=tx.id,
                delta=str(tx.amount),
                current_amount=str(limit.current_amount),
                rolled_over=rolled,
            )
        return accruals

    def _release_limits(self, tx: Transaction) -> None:
        """Take tx back off the limits it was counted in, if still in that cycle."""
        today = self._today()
        for limit_id, cycle_start in tx.limit_accruals.items():
            limit = self.store.limits.get(limit_id)
            if limit is None:
                continue

            rolled = self.limit_manager.roll_over(limit, today)
            if limit.start_date == cycle_start:
                limit.current_amount = max(
                    to_money(limit.current_amount - tx.amount), Decimal("0.00")
                )
            if rolled or limit.start_date == cycle_start:
                self.store.limits.update(limit)

            logger.info(
                "limit_released",
                limit_id=limit.id,
                transaction_id=tx.id,
                same_cycle=limit.start_date == cycle_start,
                current_amount=str(limit.current_amount),
            )


def _accrual_key(tx: Transaction) -> tuple:
    """The fields that decide whether and where a transaction accrues."""
    return (tx.type, tx.status, tx.amount, tx.category, tx.subcategory)
