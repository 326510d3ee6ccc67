"""
Quota Ledger

Per-account generation entitlement: a usage counter against a capacity, or
an unlimited ("permanent") flag.

The ledger does not lock. Ordering of concurrent consumes for one account is
the store's job; SQLAlchemyAccountStore issues a single atomic UPDATE. Check
and consume are separate calls, so two concurrent requests may both pass the
check and both consume, letting an account go slightly over capacity.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, NamedTuple, Protocol

from flask import current_app
from sqlalchemy import update

from markupgen.models import Account, db

from .errors import AccountNotFound, ValidationError

if TYPE_CHECKING:
    from flask import Flask

logger = logging.getLogger(__name__)

UNLIMITED = -1


@dataclass(frozen=True)
class UsageAccount:
    """Snapshot of an account's entitlement."""

    account_id: str
    consumed: int
    capacity: int
    unlimited: bool = False

    @property
    def remaining(self) -> int:
        if self.unlimited:
            return UNLIMITED
        return max(0, self.capacity - self.consumed)


class QuotaStatus(NamedTuple):
    allowed: bool
    remaining: int


class AccountStore(Protocol):
    """External store contract the ledger relies on."""

    def get(self, account_id: str) -> UsageAccount | None: ...

    def create(
        self, account_id: str, capacity: int, unlimited: bool = False
    ) -> UsageAccount: ...

    def increment_usage(self, account_id: str) -> bool:
        """Atomically add one to consumed for a capped account; False if no row changed."""
        ...

    def update(self, account_id: str, **changes) -> UsageAccount | None: ...


def _snapshot(account: Account) -> UsageAccount:
    return UsageAccount(
        account_id=account.id,
        consumed=account.usage_count or 0,
        capacity=account.max_usage or 0,
        unlimited=bool(account.is_permanent),
    )


class SQLAlchemyAccountStore:
    """AccountStore backed by the accounts table."""

    _COLUMNS = {
        "consumed": "usage_count",
        "capacity": "max_usage",
        "unlimited": "is_permanent",
    }

    def get(self, account_id: str) -> UsageAccount | None:
        account = db.session.get(Account, account_id)
        if account is None:
            return None
        # Always read the committed row, not a stale identity-map copy
        db.session.refresh(account)
        return _snapshot(account)

    def create(
        self, account_id: str, capacity: int, unlimited: bool = False
    ) -> UsageAccount:
        account = Account(
            id=account_id,
            usage_count=0,
            max_usage=capacity,
            is_permanent=unlimited,
        )
        db.session.add(account)
        db.session.commit()
        return _snapshot(account)

    def increment_usage(self, account_id: str) -> bool:
        result = db.session.execute(
            update(Account)
            .where(Account.id == account_id, Account.is_permanent.is_(False))
            .values(usage_count=Account.usage_count + 1)
        )
        db.session.commit()
        return bool(result.rowcount)

    def update(self, account_id: str, **changes) -> UsageAccount | None:
        account = db.session.get(Account, account_id)
        if account is None:
            return None
        for key, value in changes.items():
            setattr(account, self._COLUMNS[key], value)
        db.session.commit()
        return _snapshot(account)


class QuotaLedger:
    """
    Check and consume generation entitlement.

    Usage:
        ledger = QuotaLedger(SQLAlchemyAccountStore())

        status = ledger.check(account_id)
        if status.allowed:
            ...  # generate
            ledger.consume(account_id)
    """

    def __init__(self, store: AccountStore, default_capacity: int = 3):
        self.store = store
        self.default_capacity = default_capacity

    def check(self, account_id: str) -> QuotaStatus:
        """
        Check whether an account may generate.

        Returns:
            QuotaStatus(allowed, remaining); remaining is -1 for unlimited
            accounts. Unknown accounts are not allowed.
        """
        account = self.store.get(account_id)
        if account is None:
            logger.warning(f"Quota check for unknown account {account_id}")
            return QuotaStatus(False, 0)

        remaining = account.remaining
        logger.debug(
            f"Quota check: account={account_id}, consumed={account.consumed}, "
            f"capacity={account.capacity}, unlimited={account.unlimited}"
        )
        return QuotaStatus(remaining != 0, remaining)

    def consume(self, account_id: str) -> None:
        """
        Record one generation against an account.

        No-op for unlimited accounts.

        Raises:
            AccountNotFound: If the account does not exist
        """
        account = self.store.get(account_id)
        if account is None:
            raise AccountNotFound(f"Cannot consume quota: account {account_id} not found")
        if account.unlimited:
            return

        if not self.store.increment_usage(account_id):
            # Row vanished or became permanent between the read and the update
            if self.store.get(account_id) is None:
                raise AccountNotFound(
                    f"Cannot consume quota: account {account_id} not found"
                )
            return

        logger.debug(f"Consumed one generation for account {account_id}")

    def ensure_account(self, account_id: str) -> UsageAccount:
        """Get an account, creating it with the default capacity if missing."""
        account = self.store.get(account_id)
        if account is None:
            account = self.store.create(account_id, capacity=self.default_capacity)
            logger.info(
                f"Created account {account_id} with capacity {self.default_capacity}"
            )
        return account

    def _require(self, account_id: str, **changes) -> UsageAccount:
        account = self.store.update(account_id, **changes)
        if account is None:
            raise AccountNotFound(f"Account {account_id} not found")
        logger.info(f"Updated account {account_id}: {changes}")
        return account

    def grant(self, account_id: str, amount: int) -> UsageAccount:
        """Raise an account's capacity by amount."""
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise ValidationError(
                f"Invalid grant amount {amount!r}",
                user_message="increaseUsage must be a positive integer",
            )
        account = self.store.get(account_id)
        if account is None:
            raise AccountNotFound(f"Account {account_id} not found")
        return self._require(account_id, capacity=account.capacity + amount)

    def reset(self, account_id: str) -> UsageAccount:
        """Zero an account's consumed counter."""
        return self._require(account_id, consumed=0)

    def set_capacity(self, account_id: str, capacity: int) -> UsageAccount:
        if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity < 0:
            raise ValidationError(
                f"Invalid capacity {capacity!r}",
                user_message="capacity must be a non-negative integer",
            )
        return self._require(account_id, capacity=capacity)

    def set_unlimited(self, account_id: str, unlimited: bool) -> UsageAccount:
        return self._require(account_id, unlimited=bool(unlimited))

    def usage(self, account_id: str) -> dict | None:
        """Usage summary for display, or None for unknown accounts."""
        account = self.store.get(account_id)
        if account is None:
            return None
        return {
            "accountId": account.account_id,
            "usageCount": account.consumed,
            "maxUsage": account.capacity,
            "isPermanent": account.unlimited,
            "remaining": account.remaining,
        }


def init_quota_ledger(app: Flask) -> QuotaLedger:
    """
    Initialize the quota ledger from Flask app config.

    Args:
        app: Flask application instance

    Returns:
        Configured QuotaLedger instance
    """
    default_capacity = int(app.config.get("DEFAULT_MAX_USAGE", 3))
    ledger = QuotaLedger(SQLAlchemyAccountStore(), default_capacity=default_capacity)
    app.extensions["quota_ledger"] = ledger

    logger.info(f"Quota ledger initialized: default capacity={default_capacity}")
    return ledger


def get_quota_ledger() -> QuotaLedger:
    """Get the ledger owned by the current app."""
    return current_app.extensions["quota_ledger"]
