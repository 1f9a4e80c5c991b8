from decimal import Decimal

import pytest

from core.exceptions import StockValidationError
from stock.quantities import derive_quantities, derive_sold_from_returns, to_quantity


def test_remaining_is_derived_when_missing():
    q = derive_quantities(100, 60, 10)
    assert q.remaining_qty == Decimal("30")
    assert q.sold_qty + q.return_qty <= q.total_stock


def test_explicit_remaining_is_kept():
    q = derive_quantities(100, 60, 10, 25)
    assert q.remaining_qty == Decimal("25")


def test_missing_sold_and_return_default_to_zero():
    q = derive_quantities("12.5")
    assert q.total_stock == Decimal("12.5")
    assert q.sold_qty == 0
    assert q.return_qty == 0
    assert q.remaining_qty == Decimal("12.5")


def test_sold_plus_return_over_total_is_rejected():
    with pytest.raises(StockValidationError) as exc:
        derive_quantities(10, 8, 3, index=4)
    assert exc.value.index == 4
    assert exc.value.field == "soldQty"


def test_sold_plus_return_equal_total_is_allowed():
    q = derive_quantities(10, 7, 3)
    assert q.remaining_qty == 0


@pytest.mark.parametrize("bad", [-1, "-0.5", "abc", True, float("nan"), float("inf")])
def test_to_quantity_rejects_bad_values(bad):
    with pytest.raises(StockValidationError):
        to_quantity(bad, "totalStock")


def test_to_quantity_required():
    assert to_quantity("", "soldQty") is None
    with pytest.raises(StockValidationError) as exc:
        to_quantity(None, "totalStock", required=True, index=2)
    assert exc.value.field == "totalStock"
    assert exc.value.index == 2


def test_fractional_quantities():
    assert to_quantity(0.5, "soldQty") == Decimal("0.5")


def test_sold_from_returns_never_negative():
    assert derive_sold_from_returns(Decimal("10"), Decimal("3")) == Decimal("7")
    assert derive_sold_from_returns(Decimal("10"), None) == Decimal("10")
    assert derive_sold_from_returns(Decimal("2"), Decimal("5")) == 0


@pytest.mark.parametrize("raw", ["0.125", 0.001, "1e15", "10000000000"])
def test_quantity_must_fit_the_stored_column(raw):
    with pytest.raises(StockValidationError) as exc:
        to_quantity(raw, "totalStock", index=1)
    assert exc.value.field == "totalStock"
    assert exc.value.index == 1


def test_quantity_at_column_limits():
    assert to_quantity("9999999999.99", "totalStock") == Decimal("9999999999.99")
    assert to_quantity("12.50", "soldQty") == Decimal("12.5")


def test_sub_cent_values_cannot_sneak_past_the_sold_plus_return_check():
    with pytest.raises(StockValidationError) as exc:
        derive_quantities("0.125", "0.115", "0.01")
    assert exc.value.field == "totalStock"
