import io
from datetime import date
from decimal import Decimal

import pytest

from conftest import SCENARIO, day, el, xhb
from hbquery.decoder import (
    AccountRecord, BudgetRecord, CategoryRecord, CurrencyRecord, PayeeRecord,
    PropertiesRecord, TransactionRecord, date_from_day_number, decode,
)
from hbquery.errors import DecodeError


def records_of(kind, records):
    return [r for r in records if isinstance(r, kind)]


def test_decode_scenario_in_file_order():
    records = decode(SCENARIO.encode())

    assert isinstance(records[0], PropertiesRecord)
    assert records[0].title == "Household"
    assert records[0].version == "1.4"
    assert records_of(CurrencyRecord, records) == [CurrencyRecord(1, "USD", "$", "US Dollar", 2)]
    assert [c.key for c in records_of(CategoryRecord, records)] == [3, 1, 2]
    assert len(records_of(TransactionRecord, records)) == 3
    assert records_of(PayeeRecord, records) == [PayeeRecord(1, "Grocer")]


def test_parse_simple_category():
    records = decode(xhb(el("cat", key=1, name="Name")).encode())
    assert records == [CategoryRecord(key=1, name="Name", parent=None, flags=0)]


def test_parse_simple_subcategory():
    records = decode(xhb(el("cat", key=2, name="Name", parent=1)).encode())
    assert records == [CategoryRecord(key=2, name="Name", parent=1, flags=0)]


def test_budget_attributes_become_budget_records():
    records = decode(xhb(el("cat", key=1, name="Name", b0="-400", b2="-200")).encode())

    assert records[1:] == [
        BudgetRecord(category=1, month=0, amount=Decimal("-400")),
        BudgetRecord(category=1, month=2, amount=Decimal("-200")),
    ]


def test_transaction_fields():
    text = xhb(el(
        "ope", date=day(date(2020, 3, 11)), amount="-12.34", account=1, paymode=1, st=2,
        flags=0, payee=4, category=7, wording="Lunch", info="ref 99", tags="work  food",
    ))
    (t,) = decode(text.encode())

    assert t.date == date(2020, 3, 11)
    assert t.amount == Decimal("-12.34")
    assert (t.account, t.payee, t.category) == (1, 4, 7)
    assert (t.memo, t.info, t.tags) == ("Lunch", "ref 99", ("work", "food"))
    assert (t.status, t.paymode) == (2, 1)
    assert t.splits == ()


def test_zero_reference_means_none():
    (t,) = decode(xhb(el("ope", date=730000, amount="1", account=1, payee=0, category=0)).encode())
    assert t.payee is None
    assert t.category is None


def test_split_transaction():
    text = xhb(el(
        "ope", date=730000, amount="-30", account=1,
        scat="3||0", samt="-20||-10", smem="groceries||",
    ))
    (t,) = decode(text.encode())

    assert t.category is None
    assert [(s.category, s.amount, s.memo) for s in t.splits] == [
        (3, Decimal("-20"), "groceries"),
        (None, Decimal("-10"), ""),
    ]


def test_mismatched_split_lengths_fail():
    text = xhb(el("ope", date=730000, amount="-30", account=1, scat="3||4", samt="-30"))
    with pytest.raises(DecodeError, match="mismatched split"):
        decode(text.encode())


def test_dates_are_clamped():
    assert date_from_day_number(1) == date(1900, 1, 1)
    assert date_from_day_number(10 ** 7) == date(2200, 12, 31)
    assert date_from_day_number(693596) == date(1900, 1, 1)


def test_unknown_attributes_are_ignored():
    records = decode(xhb(el("pay", key=1, name="Shop", category=4, paymode=2, colour="red")).encode())
    assert records == [PayeeRecord(1, "Shop")]


def test_known_unused_kinds_are_skipped():
    text = xhb(el("grp", key=1, name="Banks"), el("tag", key=1, name="x"), el("fav", key=1))
    assert decode(text.encode()) == []


def test_account_record():
    (a,) = decode(xhb(el("account", key=2, name="Visa", curr=1, type=4, initial="-50.5")).encode())
    assert a == AccountRecord(key=2, name="Visa", currency=1, type=4, flags=0, initial=Decimal("-50.5"))


def test_unknown_record_kind_fails():
    with pytest.raises(DecodeError, match="unknown record kind <gizmo>"):
        decode(xhb(el("gizmo", key=1)).encode())


def test_invalid_key_reports_record():
    with pytest.raises(DecodeError) as excinfo:
        decode(xhb(el("cat", key="abc", name="Broken")).encode())

    assert excinfo.value.record == {"kind": "cat", "key": "abc", "name": "Broken"}
    assert "Broken" in str(excinfo.value)


def test_invalid_amount_fails():
    with pytest.raises(DecodeError, match="invalid amount"):
        decode(xhb(el("ope", date=730000, amount="ten", account=1)).encode())


def test_missing_date_fails():
    with pytest.raises(DecodeError, match="date"):
        decode(xhb(el("ope", amount="1", account=1)).encode())


def test_malformed_xml_fails():
    with pytest.raises(DecodeError, match="malformed XML"):
        decode(b"<homebank><cat key='1' name='x'></homebank>")


def test_empty_input_fails():
    with pytest.raises(DecodeError):
        decode(b"")


def test_foreign_root_fails():
    with pytest.raises(DecodeError, match="not a HomeBank file"):
        decode(b"<gnc-v2><cat key='1'/></gnc-v2>")


def test_missing_file_fails_with_path(tmp_path):
    missing = tmp_path / "nope.xhb"
    with pytest.raises(DecodeError) as excinfo:
        decode(missing)

    assert excinfo.value.path == str(missing)
    assert "could not read" in str(excinfo.value)


def test_decode_from_file_object_and_path(write_xhb):
    path = write_xhb(SCENARIO)
    from_path = decode(path)
    from_str = decode(str(path))
    from_stream = decode(io.BytesIO(SCENARIO.encode()))

    assert from_path == from_str == from_stream
