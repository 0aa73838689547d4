import sys
import os
from decimal import Decimal

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from account_store import AccountStore
from models import AccountSnapshot


class TestAccountStore:
    def test_get_or_create_is_lazy_and_stable(self):
        store = AccountStore()
        assert len(store) == 0

        account = store.get_or_create_account(1)
        assert account.available == Decimal("0")
        assert account.held == Decimal("0")
        assert account.locked is False
        assert store.get_or_create_account(1) is account
        assert len(store) == 1

    def test_client_lock_is_per_client(self):
        store = AccountStore()
        assert store.get_client_lock(1) is store.get_client_lock(1)
        assert store.get_client_lock(1) is not store.get_client_lock(2)

    def test_snapshot_returns_copies(self):
        store = AccountStore()
        store.get_or_create_account(1).credit(Decimal("10"))
        store.get_or_create_account(2)

        snapshot = store.snapshot()
        store.get_or_create_account(1).credit(Decimal("5"))

        assert snapshot == {
            1: AccountSnapshot(client_id=1, available=Decimal("10")),
            2: AccountSnapshot(client_id=2),
        }

    def test_get_account(self):
        store = AccountStore()
        assert store.get_account(9) is None
        assert len(store) == 0

        store.get_or_create_account(9).credit(Decimal("1.5"))
        assert store.get_account(9) == AccountSnapshot(client_id=9, available=Decimal("1.5"))
