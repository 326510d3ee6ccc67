"""Tests for the quota ledger and its SQLAlchemy store."""

import pytest

from markupgen.generation import (
    UNLIMITED,
    AccountNotFound,
    QuotaLedger,
    UsageAccount,
    ValidationError,
)


class InMemoryAccountStore:
    """Dict-backed AccountStore for ledger unit tests."""

    def __init__(self):
        self.accounts = {}

    def get(self, account_id):
        return self.accounts.get(account_id)

    def create(self, account_id, capacity, unlimited=False):
        account = UsageAccount(account_id, 0, capacity, unlimited)
        self.accounts[account_id] = account
        return account

    def increment_usage(self, account_id):
        account = self.accounts.get(account_id)
        if account is None or account.unlimited:
            return False
        self.accounts[account_id] = UsageAccount(
            account_id, account.consumed + 1, account.capacity, account.unlimited
        )
        return True

    def update(self, account_id, **changes):
        account = self.accounts.get(account_id)
        if account is None:
            return None
        values = {
            "consumed": account.consumed,
            "capacity": account.capacity,
            "unlimited": account.unlimited,
        }
        values.update({k: v for k, v in changes.items() if k in values})
        self.accounts[account_id] = UsageAccount(account_id, **values)
        return self.accounts[account_id]


@pytest.fixture
def memory_ledger():
    return QuotaLedger(InMemoryAccountStore(), default_capacity=3)


class TestUsageAccount:
    def test_remaining(self):
        assert UsageAccount("a", 1, 3).remaining == 2
        assert UsageAccount("a", 5, 3).remaining == 0
        assert UsageAccount("a", 5, 3, unlimited=True).remaining == UNLIMITED


class TestQuotaLedger:
    """Tests for check/consume semantics."""

    def test_fresh_account_has_full_capacity(self, memory_ledger):
        memory_ledger.ensure_account("acc")

        assert memory_ledger.check("acc") == (True, 3)

    def test_capacity_exhausted_after_consumes(self, memory_ledger):
        memory_ledger.ensure_account("acc")

        for expected in (2, 1, 0):
            memory_ledger.consume("acc")
            assert memory_ledger.check("acc").remaining == expected

        assert memory_ledger.check("acc") == (False, 0)

    def test_unlimited_account_never_consumes(self, memory_ledger):
        memory_ledger.ensure_account("vip")
        memory_ledger.set_unlimited("vip", True)

        for _ in range(5):
            memory_ledger.consume("vip")

        assert memory_ledger.check("vip") == (True, UNLIMITED)
        assert memory_ledger.store.get("vip").consumed == 0

    def test_unknown_account_not_allowed(self, memory_ledger):
        assert memory_ledger.check("ghost") == (False, 0)

    def test_consume_unknown_account_raises(self, memory_ledger):
        with pytest.raises(AccountNotFound):
            memory_ledger.consume("ghost")

    def test_ensure_account_is_idempotent(self, memory_ledger):
        memory_ledger.ensure_account("acc")
        memory_ledger.consume("acc")

        account = memory_ledger.ensure_account("acc")

        assert account.consumed == 1

    def test_grant_raises_capacity(self, memory_ledger):
        memory_ledger.ensure_account("acc")
        for _ in range(3):
            memory_ledger.consume("acc")

        account = memory_ledger.grant("acc", 2)

        assert account.capacity == 5
        assert memory_ledger.check("acc") == (True, 2)

    @pytest.mark.parametrize("amount", [0, -1, True, "2"])
    def test_grant_rejects_bad_amounts(self, memory_ledger, amount):
        memory_ledger.ensure_account("acc")

        with pytest.raises(ValidationError):
            memory_ledger.grant("acc", amount)

    def test_reset(self, memory_ledger):
        memory_ledger.ensure_account("acc")
        memory_ledger.consume("acc")

        memory_ledger.reset("acc")

        assert memory_ledger.check("acc") == (True, 3)

    def test_admin_operations_on_unknown_account(self, memory_ledger):
        with pytest.raises(AccountNotFound):
            memory_ledger.reset("ghost")
        with pytest.raises(AccountNotFound):
            memory_ledger.grant("ghost", 1)

    def test_set_capacity_validates(self, memory_ledger):
        memory_ledger.ensure_account("acc")

        with pytest.raises(ValidationError):
            memory_ledger.set_capacity("acc", -1)
        assert memory_ledger.set_capacity("acc", 10).capacity == 10

    def test_usage_summary(self, memory_ledger):
        memory_ledger.ensure_account("acc")
        memory_ledger.consume("acc")

        assert memory_ledger.usage("acc") == {
            "accountId": "acc",
            "usageCount": 1,
            "maxUsage": 3,
            "isPermanent": False,
            "remaining": 2,
        }
        assert memory_ledger.usage("ghost") is None


class TestSQLAlchemyAccountStore:
    """Tests for the database-backed ledger owned by the app."""

    def test_consume_persists(self, ledger, account):
        ledger.consume(account)
        ledger.consume(account)

        from markupgen.models import Account, db

        row = db.session.get(Account, account)
        assert row.usage_count == 2
        assert ledger.check(account) == (True, 1)

    def test_default_capacity_from_config(self, ledger, account):
        assert ledger.check(account) == (True, 3)

    def test_permanent_account_not_incremented(self, ledger, account):
        ledger.set_unlimited(account, True)
        ledger.consume(account)

        assert ledger.usage(account)["usageCount"] == 0
        assert ledger.check(account) == (True, UNLIMITED)

    def test_grant_and_reset(self, ledger, account):
        for _ in range(3):
            ledger.consume(account)
        assert ledger.check(account).allowed is False

        ledger.grant(account, 1)
        assert ledger.check(account) == (True, 1)

        ledger.reset(account)
        assert ledger.check(account) == (True, 4)
