import sys
import os
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models import Transaction, TransactionType, ClientAccount, ProcessingResult, ProcessingStats


class TestTransaction:
    def test_create_deposit(self):
        transaction = Transaction(
            transaction_type=TransactionType.DEPOSIT,
            client_id=1,
            transaction_id=1,
            amount=Decimal("100.0"),
        )
        assert transaction.transaction_type == TransactionType.DEPOSIT
        assert transaction.client_id == 1
        assert transaction.transaction_id == 1
        assert transaction.amount == Decimal("100.0")

    def test_create_dispute_no_amount(self):
        transaction = Transaction(
            transaction_type=TransactionType.DISPUTE,
            client_id=1,
            transaction_id=1,
        )
        assert transaction.amount is None

    def test_immutable(self):
        transaction = Transaction(TransactionType.DEPOSIT, 1, 1, Decimal("1"))
        with pytest.raises(AttributeError):
            transaction.amount = Decimal("2")

    def test_carries_amount(self):
        assert TransactionType.DEPOSIT.carries_amount
        assert TransactionType.WITHDRAWAL.carries_amount
        assert not TransactionType.DISPUTE.carries_amount
        assert not TransactionType.RESOLVE.carries_amount
        assert not TransactionType.CHARGEBACK.carries_amount


class TestClientAccount:
    def test_default_values(self):
        account = ClientAccount(client_id=1)
        assert account.available == Decimal("0")
        assert account.held == Decimal("0")
        assert account.locked is False

    def test_total_property(self):
        account = ClientAccount(
            client_id=1,
            available=Decimal("100"),
            held=Decimal("50"),
        )
        assert account.total == Decimal("150")

    def test_hold_and_release_keep_total(self):
        account = ClientAccount(client_id=1, available=Decimal("10"))
        account.hold(Decimal("4"))
        assert account.available == Decimal("6")
        assert account.held == Decimal("4")
        assert account.total == Decimal("10")

        account.release_hold(Decimal("4"))
        assert account.available == Decimal("10")
        assert account.held == Decimal("0")

    def test_remove_held_reduces_total(self):
        account = ClientAccount(client_id=1, available=Decimal("6"), held=Decimal("4"))
        account.remove_held(Decimal("4"))
        assert account.total == Decimal("6")


class TestProcessingResult:
    def test_enum_values(self):
        assert ProcessingResult.APPLIED.value == "applied"
        assert ProcessingResult.INSUFFICIENT_FUNDS.value == "insufficient_funds"
        assert ProcessingResult.ALREADY_DISPUTED.value == "already_disputed"

    def test_only_applied_is_applied(self):
        assert ProcessingResult.APPLIED.applied
        assert not any(result.applied for result in ProcessingResult if result is not ProcessingResult.APPLIED)


class TestProcessingStats:
    def test_counts(self):
        stats = ProcessingStats()
        stats.record_result(ProcessingResult.APPLIED)
        stats.record_result(ProcessingResult.APPLIED)
        stats.record_result(ProcessingResult.NOT_DISPUTED)
        stats.record_malformed()
        assert str(stats) == "Processed: 2, Ignored: 1, Malformed: 1"
