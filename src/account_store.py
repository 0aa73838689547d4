import threading
from typing import Dict, Optional

from models import AccountSnapshot, ClientAccount


class AccountStore:
    """
    Thread-safe account storage with per-client locking.
    Only the transaction processor mutates the accounts it hands out.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}

        # Global lock protects creation of new entries in _accounts and _client_locks dicts.
        self._global_lock = threading.Lock()
        self._client_locks: Dict[int, threading.Lock] = {}

    def get_client_lock(self, client_id: int) -> threading.Lock:
        """
        Get or create a lock for a specific client.
        Held while any transaction for that client is applied.
        """
        with self._global_lock:
            if client_id not in self._client_locks:
                self._client_locks[client_id] = threading.Lock()
            return self._client_locks[client_id]

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create an empty unlocked one."""
        with self._global_lock:
            if client_id not in self._accounts:
                self._accounts[client_id] = ClientAccount(client_id=client_id)
            return self._accounts[client_id]

    def get_account(self, client_id: int) -> Optional[AccountSnapshot]:
        account = self._accounts.get(client_id)
        if account is None:
            return None
        return account.snapshot()

    def snapshot(self) -> Dict[int, AccountSnapshot]:
        """Return read-only copies of all accounts (for final output)."""
        with self._global_lock:
            accounts = list(self._accounts.values())
        return {account.client_id: account.snapshot() for account in accounts}

    def __len__(self) -> int:
        return len(self._accounts)
