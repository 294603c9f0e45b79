import logging
import sys
from typing import Dict, Iterable, Optional

from csv_io import read_transactions
from ledger import Ledger
from models import ClientAccount, ProcessingStats, Transaction

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Replays a transaction file through a Ledger in a single ordered pass.
    """

    def __init__(self, ledger: Optional[Ledger] = None):
        self._ledger = ledger if ledger is not None else Ledger()
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing transactions from {filepath}")

        with open(filepath, "r", newline="", encoding="utf-8", errors="replace") as f:
            self.process_transactions(read_transactions(f))

        # Print final processing report to stderr
        print(self._stats, file=sys.stderr)

        return self._ledger.get_all_accounts()

    def process_transactions(self, transactions: Iterable[Optional[Transaction]]) -> Dict[int, ClientAccount]:
        """Apply transactions in order. None entries stand for malformed rows."""
        for transaction in transactions:
            if transaction is None:
                self._stats.record_malformed()
                continue
            self._stats.record_result(self._ledger.apply(transaction))

        return self._ledger.get_all_accounts()
