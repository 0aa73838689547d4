import logging
import threading
from typing import Dict, Iterable, List

from account_store import AccountStore
from decoder import read_transactions
from ledger import TransactionLedger
from message_queue import ShardQueue
from models import AccountSnapshot, ProcessingResult, ProcessingStats, Transaction
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Orchestrates transaction processing over a single ordered stream.

    With one shard everything runs in the calling thread. With more, each
    client is pinned to shard ``client_id % num_shards`` and every shard has
    its own FIFO and consumer thread, so a client's transactions are applied
    in input order while different clients proceed in parallel.
    """

    def __init__(self, num_shards: int = 1):
        if num_shards < 1:
            raise ValueError(f"num_shards must be at least 1, got {num_shards}")
        self._num_shards = num_shards
        self._accounts = AccountStore()
        self._ledger = TransactionLedger()
        self._processor = TransactionProcessor(self._accounts, self._ledger)
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    @property
    def num_shards(self) -> int:
        return self._num_shards

    def process_file(self, filepath: str) -> Dict[int, AccountSnapshot]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing {filepath} with {self._num_shards} shard(s)")

        # Undecodable bytes become U+FFFD so only the row holding them fails to decode.
        with open(filepath, "r", newline="", encoding="utf-8-sig", errors="replace") as f:
            transactions = read_transactions(f, on_error=lambda _: self._stats.record_malformed())
            self.process(transactions)

        logger.info(
            f"Applied: {self._stats.applied}, "
            f"Ignored: {self._stats.ignored}, "
            f"Rejected: {self._stats.rejected}, "
            f"Malformed: {self._stats.malformed}"
        )
        return self.accounts()

    def process(self, transactions: Iterable[Transaction]) -> ProcessingStats:
        """Apply every transaction from the iterable, preserving per-client order."""
        if self._num_shards == 1:
            for transaction in transactions:
                self.process_transaction(transaction)
        else:
            self._process_sharded(transactions)
        return self._stats

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        lock = self._accounts.get_client_lock(transaction.client_id)
        with lock:
            result = self._processor.process_transaction(transaction)
        self._stats.record(result)
        return result

    def accounts(self) -> Dict[int, AccountSnapshot]:
        return self._accounts.snapshot()

    def _process_sharded(self, transactions: Iterable[Transaction]) -> None:
        queues = [ShardQueue(shard_id) for shard_id in range(self._num_shards)]
        failures: List[BaseException] = []

        consumer_threads = []
        for queue in queues:
            consumer_thread = threading.Thread(
                target=self._consume_transactions,
                args=(queue, failures),
                name=f"shard-{queue.shard_id}",
            )
            consumer_thread.start()
            consumer_threads.append(consumer_thread)

        try:
            for transaction in transactions:
                queues[transaction.client_id % self._num_shards].publish_message(transaction)
        finally:
            for queue in queues:
                queue.close()
            for consumer_thread in consumer_threads:
                consumer_thread.join()

        if failures:
            raise failures[0]

    def _consume_transactions(self, queue: ShardQueue, failures: List[BaseException]) -> None:
        """Consumer loop: pull from the shard queue until it is closed and drained."""
        while True:
            transaction = queue.consume_message()
            if transaction is None:
                if queue.is_drained():
                    break
                continue

            try:
                self.process_transaction(transaction)
            except Exception as e:
                # Keep draining so the publisher never blocks on a full queue.
                logger.exception(f"Shard {queue.shard_id} failed on {transaction}")
                failures.append(e)
