import pytest

from hbquery.errors import ReferenceWarning
from hbquery.functional import Left, Nothing, Right, Some, check_reference, lookup

CURRENCY_FRAC = {1: 2, 2: 0}
ACCOUNT_CURRENCY = {10: 1, 11: 2, 12: 7}


def test_lookup():
    table = {1: "Food", 2: "Rent"}
    assert lookup(table, 1) == Some("Food")
    assert lookup(table, 3) == Nothing()
    assert lookup(table, None) == Nothing()


def test_lookup_map_falls_back_for_missing_key():
    names = {1: "Checking"}
    assert lookup(names, 1).map(str.upper).get_or_else("") == "CHECKING"
    assert lookup(names, 5).map(str.upper).get_or_else("") == ""


def test_chained_lookups_stop_at_first_gap():
    def frac_of(account):
        return (
            lookup(ACCOUNT_CURRENCY, account)
            .bind(lambda curr: lookup(CURRENCY_FRAC, curr))
            .get_or_else(2)
        )

    assert frac_of(11) == 0
    assert frac_of(12) == 2     # currency 7 is unknown
    assert frac_of(99) == 2
    assert frac_of(None) == 2


def test_check_reference_present_and_absent_key():
    table = {1: object()}
    assert check_reference(table, 1, "category", "transaction 0") == Right(1)
    assert check_reference(table, None, "category", "transaction 0") == Right(None)
    assert check_reference(table, 1, "category", "transaction 0").is_right()


def test_check_reference_missing_key():
    result = check_reference({}, 7, "payee", "transaction 3")

    assert result == Left(ReferenceWarning("payee", 7, "transaction 3"))
    assert result.is_left()
    assert result.get_or_else(None) is None
    assert str(result.get_error()) == "transaction 3 refers to missing payee 7"


def test_right_has_no_error():
    with pytest.raises(ValueError, match="Right"):
        Right(4).get_error()
