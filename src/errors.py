class PaymentsError(Exception):
    """Base class for every error raised by the payments engine."""


class DecodeError(PaymentsError, ValueError):
    """Raised when a raw record cannot be turned into a Transaction."""

    def __init__(self, message: str, record=None):
        super().__init__(message)
        self.record = record


class AccountLockedError(PaymentsError):
    """Raised when funds are moved in or out of a locked account."""

    def __init__(self, client_id: int):
        super().__init__(f"account {client_id} is locked")
        self.client_id = client_id


class InsufficientFundsError(PaymentsError):
    """Raised when a withdrawal exceeds the available balance."""

    def __init__(self, client_id: int, available, requested):
        super().__init__(
            f"account {client_id} has {available} available, {requested} requested"
        )
        self.client_id = client_id
        self.available = available
        self.requested = requested


class InvalidDisputeTransition(PaymentsError):
    """Raised when a ledger entry cannot take a dispute-lifecycle event in its current state."""

    def __init__(self, transaction_id: int, state, event: str):
        super().__init__(f"tx {transaction_id}: cannot {event} while {state.value}")
        self.transaction_id = transaction_id
        self.state = state
        self.event = event


class BalanceOverflowError(PaymentsError):
    """Raised when a movement would push a balance past what the engine can carry exactly."""

    def __init__(self, client_id: int, balance):
        super().__init__(f"account {client_id} balance {balance} out of range")
        self.client_id = client_id
        self.balance = balance
