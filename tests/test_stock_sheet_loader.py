from datetime import date, datetime
from decimal import Decimal

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError
from openpyxl import Workbook

from core.exceptions import StockValidationError
from core.models import ProductCategory
from imports.services.stock_sheet_loader import parse_date, parse_number, process_stock_sheet
from stock.models import StockRecord

CSV_SHEET = """Date,Market,Product Type,Product,Subcategory,Total Stock,Sold,Returned,Unit,Weather,High,Low
2024-03-10,Union Square,Fruits,Apples,Gala,50,40,5,lbs,Sunny,20,10
2024-03-10,Union Square,Fruits,Pears,,20,20,0,lbs,Sunny,20,10
2024-03-11,Union Square,Greens,Kale,,"1,5",,0.5,bunch,,,
,,,,,,,,,,,
2024-03-10,Grand Army Plaza,Fruits,Apples,,30,10,,lbs,Rainy,12,6
"""


@pytest.fixture
def csv_sheet(tmp_path):
    path = tmp_path / "stock.csv"
    path.write_text(CSV_SHEET, encoding="utf-8")
    return path


@pytest.fixture
def xlsx_sheet(tmp_path):
    wb = Workbook()
    ws = wb.active
    ws.title = "Marzo"
    ws.append(["Market stock - March"])
    ws.append(["Day", "Location", "Type", "Product Name", "Total", "Units Sold", "Unit", "Temp"])
    ws.append([datetime(2024, 3, 10), "Union Square", "Fruits", "Apples", 50, 40, "lbs", 18])
    ws.append([datetime(2024, 3, 10), "Union Square", "Fruits", "Pears", 20, 5, "lbs", 18])
    path = tmp_path / "stock.xlsx"
    wb.save(path)
    return path


@pytest.mark.parametrize("raw,expected", [
    ("2024-03-10", date(2024, 3, 10)),
    ("2024-03-10T00:00:00.000Z", date(2024, 3, 10)),
    ("03/10/2024", date(2024, 3, 10)),
    (datetime(2024, 3, 10, 9, 30), date(2024, 3, 10)),
    ("", None),
    (None, None),
])
def test_parse_date(raw, expected):
    assert parse_date(raw) == expected


@pytest.mark.parametrize("raw,expected", [
    ("1,5", Decimal("1.5")),
    ("1.234,5", Decimal("1234.5")),
    ("1,234.5", Decimal("1234.5")),
    (" 12 ", Decimal("12")),
    (7, Decimal("7")),
    (0.1, Decimal("0.1")),
    (float("nan"), None),
    ("n/a", None),
    ("", None),
])
def test_parse_number(raw, expected):
    num = parse_number(raw)
    assert num == expected
    assert num is None or isinstance(num, Decimal)


@pytest.mark.django_db
def test_csv_groups_rows_by_day_and_location(csv_sheet):
    summary = process_stock_sheet(csv_sheet)

    assert summary["rows"] == 4
    assert summary["records_created"] == 4
    assert [(b["date"], b["location"], b["items"]) for b in summary["batches"]] == [
        ("2024-03-10", "Union Square", 2),
        ("2024-03-11", "Union Square", 1),
        ("2024-03-10", "Grand Army Plaza", 1),
    ]

    apples = StockRecord.objects.get(location="Union Square", product_category="Apples")
    assert apples.remaining_qty == Decimal("5")
    assert apples.product_sub_category == "Gala"
    assert apples.weather_high_temp == Decimal("20")

    kale = StockRecord.objects.get(product_category="Kale")
    assert kale.total_stock == Decimal("1.5")
    assert kale.sold_qty == Decimal("1.0")
    assert kale.weather_condition == "Unknown"

    assert ProductCategory.objects.filter(name="Apples").count() == 1


@pytest.mark.django_db
def test_reimport_replaces_batches(csv_sheet):
    process_stock_sheet(csv_sheet)
    summary = process_stock_sheet(csv_sheet)
    assert summary["records_replaced"] == 4
    assert StockRecord.objects.count() == 4


@pytest.mark.django_db
def test_xlsx_with_title_row(xlsx_sheet):
    summary = process_stock_sheet(xlsx_sheet, sheet="Marzo")
    assert summary["batches"] == [{"date": "2024-03-10", "location": "Union Square", "items": 2, "replaced": 0}]

    pears = StockRecord.objects.get(product_category="Pears")
    assert pears.sold_qty == Decimal("5")
    assert pears.weather_low_temp == Decimal("18")


@pytest.mark.django_db
def test_unknown_sheet(xlsx_sheet):
    with pytest.raises(StockValidationError) as exc:
        process_stock_sheet(xlsx_sheet, sheet="Abril")
    assert exc.value.field == "sheet"


@pytest.mark.django_db
def test_invalid_row_rolls_back_whole_file(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text(
        "Date,Location,Product Type,Product,Total Stock,Sold,Returned,Unit\n"
        "2024-03-10,A,Fruits,Apples,10,5,0,lbs\n"
        "2024-03-11,A,Fruits,Apples,10,8,5,lbs\n",
        encoding="utf-8",
    )
    with pytest.raises(StockValidationError) as exc:
        process_stock_sheet(path)
    assert "fila 3" in exc.value.message
    assert StockRecord.objects.count() == 0


@pytest.mark.django_db
def test_missing_required_columns(tmp_path):
    path = tmp_path / "short.csv"
    path.write_text("Date,Location,Product Type,Product,Total Stock\n2024-03-10,A,Fruits,Apples,10\n", encoding="utf-8")
    with pytest.raises(StockValidationError) as exc:
        process_stock_sheet(path)
    assert "Unit" in exc.value.message


@pytest.mark.django_db
def test_upload_view(client, settings, tmp_path, csv_sheet):
    settings.MEDIA_ROOT = tmp_path / "media"
    with open(csv_sheet, "rb") as fh:
        resp = client.post("/imports/stock-sheet/", {"file": fh})
    assert resp.status_code == 201
    assert resp.json()["result"]["records_created"] == 4


@pytest.mark.django_db
def test_upload_view_requires_file(client):
    resp = client.post("/imports/stock-sheet/", {})
    assert resp.status_code == 400
    assert resp.json()["field"] == "file"


@pytest.mark.django_db
def test_import_command(csv_sheet):
    call_command("import_stock_sheet", str(csv_sheet))
    assert StockRecord.objects.count() == 4

    with pytest.raises(CommandError):
        call_command("import_stock_sheet", str(csv_sheet.with_name("missing.csv")))


@pytest.mark.django_db
def test_upload_view_rejects_broken_workbook(client, settings, tmp_path):
    settings.MEDIA_ROOT = tmp_path / "media"
    broken = tmp_path / "broken.xlsx"
    broken.write_bytes(b"not a zip")
    with open(broken, "rb") as fh:
        resp = client.post("/imports/stock-sheet/", {"file": fh})
    assert resp.status_code == 400
    assert resp.json()["field"] == "file"
    assert list((tmp_path / "media" / "uploads").iterdir()) == []


@pytest.mark.django_db
@pytest.mark.parametrize("row,field", [
    ("not-a-date,A,Fruits,Apples,10,5,0,lbs", "date"),
    ("2024-03-11,,Fruits,Apples,10,5,0,lbs", "location"),
    ("2024-03-11,A,Fruits,Apples,10,muchos,0,lbs", "soldQty"),
])
def test_unreadable_row_fails_the_import(tmp_path, row, field):
    path = tmp_path / "rows.csv"
    path.write_text(
        "Date,Location,Product Type,Product,Total Stock,Sold,Returned,Unit\n"
        "2024-03-10,A,Fruits,Apples,10,5,0,lbs\n"
        f"{row}\n",
        encoding="utf-8",
    )
    with pytest.raises(StockValidationError) as exc:
        process_stock_sheet(path)
    assert exc.value.field == field
    assert "fila 3" in exc.value.message.lower()
    assert StockRecord.objects.count() == 0
