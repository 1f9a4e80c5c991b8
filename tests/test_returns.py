from decimal import Decimal

import pytest

from core.exceptions import StockValidationError
from stock.models import StockRecord
from stock.services.reconciler import replace_day_batch
from stock.services.returns import apply_returns

pytestmark = pytest.mark.django_db


@pytest.fixture
def records(make_item):
    result = replace_day_batch([
        make_item(productCategory="Apples", totalStock=20),
        make_item(productCategory="Pears", totalStock=10),
    ])
    return result.records


def test_returns_update_only_return_and_remaining(records):
    apples = records[0]
    result = apply_returns([{"id": apples.id, "returnQty": 5, "finalRemaining": 15}])

    apples.refresh_from_db()
    assert result.updated == [apples.id]
    assert apples.return_qty == Decimal("5")
    assert apples.remaining_qty == Decimal("15")
    assert apples.total_stock == Decimal("20")
    assert apples.sold_qty == Decimal("20")


def test_remaining_defaults_to_total_minus_returns(records):
    pears = records[1]
    apply_returns([{"id": str(pears.id), "returnQty": "2.5"}])
    pears.refresh_from_db()
    assert pears.remaining_qty == Decimal("7.5")


def test_legacy_final_remaining_key(records):
    pears = records[1]
    apply_returns([{"id": pears.id, "returnQty": 1, "finalRemainingQty": 9}])
    pears.refresh_from_db()
    assert pears.remaining_qty == Decimal("9")


def test_unknown_ids_are_skipped(records):
    result = apply_returns([
        {"id": records[0].id, "returnQty": 1},
        {"id": 999999, "returnQty": 1},
    ])
    assert result.updated == [records[0].id]
    assert result.skipped == [999999]


def test_return_over_total_rolls_back_everything(records):
    apples, pears = records
    with pytest.raises(StockValidationError) as exc:
        apply_returns([
            {"id": apples.id, "returnQty": 3},
            {"id": pears.id, "returnQty": 11},
        ])
    assert exc.value.index == 2
    assert StockRecord.objects.get(pk=apples.id).return_qty == 0


@pytest.mark.parametrize("payload", [
    [{"id": "abc", "returnQty": 1}],
    [{"id": 1, "returnQty": -2}],
    [{"id": 1}],
    ["x"],
])
def test_malformed_adjustments(payload):
    with pytest.raises(StockValidationError):
        apply_returns(payload)


def test_returns_must_be_a_list():
    with pytest.raises(StockValidationError) as exc:
        apply_returns({"id": 1})
    assert exc.value.field == "returns"
