import logging
from typing import Dict, Optional, Tuple

from history import TransactionHistory
from models import ClientAccount, DisputableRecord, ProcessingResult, Transaction, TransactionType

logger = logging.getLogger(__name__)


class Ledger:
    """
    Applies transactions to client accounts, in the order they are given.
    Every outcome is returned as a ProcessingResult; inapplicable transactions
    are logged and leave the account untouched.
    """

    def __init__(self, history: Optional[TransactionHistory] = None):
        self._accounts: Dict[int, ClientAccount] = {}
        self._history = history if history is not None else TransactionHistory()

    @property
    def history(self) -> TransactionHistory:
        return self._history

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
        return self._accounts[client_id]

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)

    def apply(self, transaction: Transaction) -> ProcessingResult:
        """
        Apply a single transaction.

        Returns:
            APPLIED: the account (and possibly the history) was updated
            anything else: the reason the transaction was ignored
        """
        account = self.get_or_create_account(transaction.client_id)

        if account.locked:
            logger.info(f"{transaction}: account {account.client_id} is locked, ignoring")
            return ProcessingResult.ACCOUNT_LOCKED

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(account, transaction)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(account, transaction)
            case TransactionType.DISPUTE:
                return self._handle_dispute(account, transaction)
            case TransactionType.RESOLVE:
                return self._handle_resolve(account, transaction)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(account, transaction)
            case _:
                logger.warning(f"Unsupported transaction type {transaction.transaction_type!r} for tx {transaction.transaction_id}")
                return ProcessingResult.UNSUPPORTED_TYPE

    def _check_new_funds_movement(self, transaction: Transaction) -> Optional[ProcessingResult]:
        if transaction.amount is None or transaction.amount < 0:
            logger.warning(f"{transaction}: invalid amount {transaction.amount}")
            return ProcessingResult.INVALID_AMOUNT

        if transaction.transaction_id in self._history:
            logger.warning(f"{transaction}: tx {transaction.transaction_id} already used, ignoring")
            return ProcessingResult.DUPLICATE_TRANSACTION

        return None

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        rejected = self._check_new_funds_movement(transaction)
        if rejected is not None:
            return rejected

        account.credit(transaction.amount)
        self._history.record(transaction.transaction_id, account.client_id, transaction.amount, TransactionType.DEPOSIT)
        return ProcessingResult.APPLIED

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        rejected = self._check_new_funds_movement(transaction)
        if rejected is not None:
            return rejected

        if account.available < transaction.amount:
            logger.info(f"{transaction}: insufficient funds (available {account.available})")
            return ProcessingResult.INSUFFICIENT_FUNDS

        account.debit(transaction.amount)
        self._history.record(transaction.transaction_id, account.client_id, transaction.amount, TransactionType.WITHDRAWAL)
        return ProcessingResult.APPLIED

    def _find_referenced(self, transaction: Transaction) -> Tuple[Optional[DisputableRecord], ProcessingResult]:
        original = self._history.lookup(transaction.transaction_id)

        if original is None:
            logger.info(f"{transaction}: referenced transaction not found")
            return None, ProcessingResult.TRANSACTION_NOT_FOUND

        if original.client_id != transaction.client_id:
            logger.warning(f"{transaction}: client mismatch (tx {transaction.transaction_id} belongs to client {original.client_id})")
            return None, ProcessingResult.CLIENT_MISMATCH

        return original, ProcessingResult.APPLIED

    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original, result = self._find_referenced(transaction)
        if original is None:
            return result

        if original.disputed:
            logger.info(f"{transaction}: transaction already disputed")
            return ProcessingResult.ALREADY_DISPUTED

        # available funds never go negative
        if account.available < original.amount:
            logger.info(f"{transaction}: cannot hold {original.amount}, only {account.available} available")
            return ProcessingResult.INSUFFICIENT_FUNDS

        # TODO: branch on original.transaction_type; a disputed withdrawal could credit the funds back once resolved instead of being held like a deposit
        account.hold(original.amount)
        self._history.mark_disputed(transaction.transaction_id, True)
        return ProcessingResult.APPLIED

    def _handle_resolve(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original, result = self._find_referenced(transaction)
        if original is None:
            return result

        if not original.disputed:
            logger.info(f"{transaction}: transaction is not disputed")
            return ProcessingResult.NOT_DISPUTED

        account.release_hold(original.amount)
        self._history.mark_disputed(transaction.transaction_id, False)
        return ProcessingResult.APPLIED

    def _handle_chargeback(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original, result = self._find_referenced(transaction)
        if original is None:
            return result

        if not original.disputed:
            logger.info(f"{transaction}: transaction is not disputed")
            return ProcessingResult.NOT_DISPUTED

        account.remove_held(original.amount)
        account.lock()
        self._history.mark_disputed(transaction.transaction_id, False)
        logger.info(f"{transaction}: charged back {original.amount}, account {account.client_id} locked")
        return ProcessingResult.APPLIED
