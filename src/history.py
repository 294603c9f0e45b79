from decimal import Decimal
from typing import Dict, Optional

from models import DisputableRecord, TransactionType


class TransactionHistory:
    """
    Index of applied deposits and withdrawals, keyed by transaction id.
    Consulted by disputes, resolves and chargebacks. Entries are never evicted.
    """

    def __init__(self):
        self._records: Dict[int, DisputableRecord] = {}

    def record(self, transaction_id: int, client_id: int, amount: Decimal, transaction_type: TransactionType) -> bool:
        """
        Store a transaction for future dispute lookups.
        First write wins: returns False and leaves the index untouched if the id is already known.
        """
        if transaction_id in self._records:
            return False
        self._records[transaction_id] = DisputableRecord(
            client_id=client_id,
            amount=amount,
            transaction_type=transaction_type,
        )
        return True

    def lookup(self, transaction_id: int) -> Optional[DisputableRecord]:
        """Retrieve stored record by ID."""
        return self._records.get(transaction_id)

    def mark_disputed(self, transaction_id: int, disputed: bool) -> None:
        """Set or clear the dispute flag. Raises KeyError for an unknown transaction."""
        self._records[transaction_id].disputed = disputed

    def __contains__(self, transaction_id: int) -> bool:
        return transaction_id in self._records

    def __len__(self) -> int:
        return len(self._records)
