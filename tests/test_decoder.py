import sys
import os
import io
import logging
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from decoder import decode_record, parse_amount, read_transactions
from errors import DecodeError
from models import Transaction, TransactionType


def row(type_, client, tx, amount=None):
    return {"type": type_, "client": client, "tx": tx, "amount": amount}


class TestParseAmount:
    @pytest.mark.parametrize("text, expected", [
        ("1.2345", Decimal("1.2345")),
        ("5", Decimal("5")),
        ("1.0", Decimal("1.0")),
        ("0", Decimal("0")),
        ("0.0001", Decimal("0.0001")),
        (".5", Decimal("0.5")),
        ("999999999999999999999999.9999", Decimal("999999999999999999999999.9999")),
    ])
    def test_accepts(self, text, expected):
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text", [
        "-1.0000",
        "-0",
        "1.00001",
        "1.00000",
        "abc",
        "NaN",
        "Infinity",
        "",
        "1_0",
        "+5",
        "1e3",
        "\u0661\u0662",
        "1000000000000000000000000",
        "12345678901234567890123456.7891",
    ])
    def test_rejects(self, text):
        with pytest.raises(DecodeError):
            parse_amount(text)

    def test_decode_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_amount("-1")


class TestDecodeRecord:
    def test_deposit(self):
        assert decode_record(row("deposit", "1", "1", "10.50")) == Transaction(
            TransactionType.DEPOSIT, 1, 1, Decimal("10.50")
        )

    def test_withdrawal(self):
        transaction = decode_record(row("withdrawal", "1", "100", "10.5555"))
        assert transaction.transaction_type == TransactionType.WITHDRAWAL
        assert transaction.amount == Decimal("10.5555")

    def test_whitespace_and_case(self):
        transaction = decode_record({" type": " DePoSiT ", " client": " 2", " tx": " 3 ", " amount": " 1.5"})
        assert transaction == Transaction(TransactionType.DEPOSIT, 2, 3, Decimal("1.5"))

    @pytest.mark.parametrize("type_", ["dispute", "resolve", "chargeback"])
    def test_dispute_family_without_amount(self, type_):
        transaction = decode_record({"type": type_, "client": "1", "tx": "100", "amount": None})
        assert transaction.transaction_type == TransactionType(type_)
        assert transaction.amount is None

    def test_dispute_family_ignores_amount(self):
        transaction = decode_record(row("dispute", "1", "1", "12.0"))
        assert transaction.amount is None

    def test_missing_amount_column(self):
        transaction = decode_record({"type": "resolve", "client": "1", "tx": "1"})
        assert transaction.transaction_type == TransactionType.RESOLVE

    @pytest.mark.parametrize("record, message", [
        (row("test", "1", "1", "1.1"), "unknown transaction type"),
        (row("", "1", "1", "1.1"), "missing transaction type"),
        (row("deposit", "-1", "1", "1.0"), "invalid client '-1'"),
        (row("deposit", "65536", "1", "1.0"), "client 65536 out of range"),
        (row("deposit", "abc", "1", "1.0"), "invalid client"),
        (row("deposit", "1", "-1", "1.1"), "invalid tx '-1'"),
        (row("deposit", "1", "4294967296", "1.1"), "out of range"),
        (row("deposit", "1", None, "1.1"), "missing tx"),
        (row("deposit", "1", "1"), "deposit without amount"),
        (row("withdrawal", "1", "1", ""), "withdrawal without amount"),
        (row("deposit", "1", "1", "-1.0000"), "negative amount"),
        (row("deposit", "1", "1", "1.00001"), "more than 4 decimal places"),
        (row("deposit", "1_000", "1", "1.0"), "invalid client '1_000'"),
        (row("deposit", "+5", "1", "1.0"), "invalid client '+5'"),
        (row("deposit", "١٢", "1", "1.0"), "invalid client"),
        (row("deposit", "1", "1_0", "1.0"), "invalid tx '1_0'"),
        (row("deposit", "1", "1", "1_0"), "invalid amount '1_0'"),
        (row("deposit", "1", "1", "10000000000000000000000000"), "too large"),
    ])
    def test_rejects(self, record, message):
        with pytest.raises(DecodeError) as excinfo:
            decode_record(record)
        assert message in str(excinfo.value)
        assert excinfo.value.record is record

    def test_id_bounds_accepted(self):
        transaction = decode_record(row("deposit", "65535", "4294967295", "1"))
        assert transaction.client_id == 65535
        assert transaction.transaction_id == 4294967295


class TestReadTransactions:
    def test_reads_variable_width_rows(self):
        stream = io.StringIO("\n".join([
            "type, client, tx, amount",
            "deposit, 1, 1, 1.0",
            "dispute, 1, 1,",
            "resolve, 1, 1",
            "withdrawal, 1, 2, 0.5",
        ]))

        transactions = list(read_transactions(stream))

        assert [t.transaction_type for t in transactions] == [
            TransactionType.DEPOSIT,
            TransactionType.DISPUTE,
            TransactionType.RESOLVE,
            TransactionType.WITHDRAWAL,
        ]
        assert transactions[3].amount == Decimal("0.5")

    def test_drops_malformed_rows_and_continues(self, caplog):
        stream = io.StringIO("\n".join([
            "type,client,tx,amount",
            "deposit,1,1,-5",
            "deposit,1,2,1.00001",
            "teleport,1,3,1",
            "deposit,1,4,2.5",
        ]))
        errors = []

        with caplog.at_level(logging.WARNING, logger="decoder"):
            transactions = list(read_transactions(stream, on_error=errors.append))

        assert transactions == [Transaction(TransactionType.DEPOSIT, 1, 4, Decimal("2.5"))]
        assert len(errors) == 3
        assert all(isinstance(e, DecodeError) for e in errors)
        assert "Dropping line 2" in caplog.text
        assert "Dropping line 4" in caplog.text

    def test_is_lazy(self):
        stream = io.StringIO("type,client,tx,amount\ndeposit,1,1,1\ndeposit,1,2,2\n")
        iterator = read_transactions(stream)
        first = next(iterator)
        assert first.transaction_id == 1
        assert next(iterator).transaction_id == 2

    def test_empty_input(self):
        assert list(read_transactions(io.StringIO(""))) == []

    def test_missing_header_columns(self):
        stream = io.StringIO("deposit,1,1,1.0\ndeposit,1,2,2.0\n")
        with pytest.raises(DecodeError, match="header is missing columns"):
            list(read_transactions(stream))
