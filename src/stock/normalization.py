"""
Normalización en el borde: todas las variantes históricas de nombres de campo
(productName vs productCategory, weatherTemperature legacy, etc.) se mapean
una sola vez a un LineItem canónico. Los servicios solo ven LineItem.
"""
import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation

from core.exceptions import StockValidationError
from core.utils.dates import parse_iso_date

from .quantities import TEMP_MAX_DIGITS, fit_precision, to_quantity

DEFAULT_WEATHER_CONDITION = "Unknown"
DEFAULT_WEATHER_DESCRIPTION = "No weather data"

REQUIRED_MESSAGE = (
    "Cada ítem debe tener date, productType, productCategory (o productName), "
    "totalStock, unit y location."
)


@dataclass
class LineItem:
    date: date
    location: str
    product_type: str
    product_category: str
    product_sub_category: str
    total_stock: Decimal
    sold_qty: Decimal | None
    return_qty: Decimal | None
    remaining_qty: Decimal | None
    unit: str
    notes: str
    weather_condition: str
    weather_high_temp: Decimal | None
    weather_low_temp: Decimal | None
    weather_temperature: Decimal | None
    weather_description: str
    index: int | None = None


def _clean_str(val) -> str:
    if val is None:
        return ""
    if isinstance(val, float) and math.isnan(val):
        return ""
    return str(val).strip()


def to_temperature(val, field: str, *, index: int | None = None) -> Decimal | None:
    # a diferencia de las cantidades, una temperatura puede ser negativa
    if val is None or (isinstance(val, str) and val.strip() == ""):
        return None
    if isinstance(val, bool) or (isinstance(val, float) and (math.isnan(val) or math.isinf(val))):
        raise StockValidationError(f"'{field}' debe ser numérico.", field=field, index=index)
    try:
        num = Decimal(str(val).strip())
    except (InvalidOperation, ValueError):
        raise StockValidationError(f"'{field}' debe ser numérico: {val!r}", field=field, index=index)
    if not num.is_finite():
        raise StockValidationError(f"'{field}' debe ser numérico.", field=field, index=index)
    return fit_precision(num, field, index=index, max_digits=TEMP_MAX_DIGITS)


def weather_snapshot(raw: dict, *, index: int | None = None, partial: bool = False) -> dict:
    """
    Campos de clima con el fallback de temperaturas:
    high/low toman weatherTemperature si no vinieron, y weatherTemperature toma high.
    Con partial=True solo devuelve lo que el request trajo (para updates).
    """
    out = {}
    has_temp = "weatherTemperature" in raw
    has_high = "weatherHighTemp" in raw
    has_low = "weatherLowTemp" in raw

    temp = to_temperature(raw.get("weatherTemperature"), "weatherTemperature", index=index)
    high = to_temperature(raw.get("weatherHighTemp"), "weatherHighTemp", index=index)
    low = to_temperature(raw.get("weatherLowTemp"), "weatherLowTemp", index=index)

    if high is None:
        high = temp
    if low is None:
        low = temp
    if temp is None:
        temp = high

    if not partial or has_temp or has_high:
        out["weather_high_temp"] = high
    if not partial or has_temp or has_low:
        out["weather_low_temp"] = low
    if not partial or has_temp or has_high:
        out["weather_temperature"] = temp

    if not partial or "weatherCondition" in raw:
        out["weather_condition"] = _clean_str(raw.get("weatherCondition")) or DEFAULT_WEATHER_CONDITION
    if not partial or "weatherDescription" in raw:
        out["weather_description"] = _clean_str(raw.get("weatherDescription")) or DEFAULT_WEATHER_DESCRIPTION
    return out


def normalize_line_item(raw, index: int | None = None, *, default_unit: str | None = None) -> LineItem:
    """
    Mapea un ítem crudo (dict JSON o fila de planilla) a LineItem.
    Si falta algún campo obligatorio levanta StockValidationError con el índice.
    """
    if not isinstance(raw, dict):
        raise StockValidationError("Cada ítem debe ser un objeto JSON.", index=index)

    category = _clean_str(raw.get("productCategory")) or _clean_str(raw.get("productName"))
    product_type = _clean_str(raw.get("productType"))
    location = _clean_str(raw.get("location"))
    unit = _clean_str(raw.get("unit")) or (default_unit or "")

    missing = [
        name for name, ok in (
            ("date", raw.get("date") not in (None, "")),
            ("productType", bool(product_type)),
            ("productCategory", bool(category)),
            ("totalStock", raw.get("totalStock") not in (None, "")),
            ("unit", bool(unit)),
            ("location", bool(location)),
        ) if not ok
    ]
    if missing:
        where = f" Revisá el ítem {index}." if index is not None else ""
        raise StockValidationError(f"{REQUIRED_MESSAGE}{where}", field=missing[0], index=index)

    return LineItem(
        date=_item_date(raw, index),
        location=location,
        product_type=product_type,
        product_category=category,
        product_sub_category=_clean_str(raw.get("productSubCategory")),
        total_stock=to_quantity(raw.get("totalStock"), "totalStock", index=index, required=True),
        sold_qty=to_quantity(raw.get("soldQty"), "soldQty", index=index),
        return_qty=to_quantity(raw.get("returnQty"), "returnQty", index=index),
        remaining_qty=to_quantity(raw.get("remainingQty"), "remainingQty", index=index),
        unit=unit,
        notes=_clean_str(raw.get("notes")),
        index=index,
        **weather_snapshot(raw, index=index),
    )


def _item_date(raw, index):
    try:
        return parse_iso_date(raw.get("date"), "date")
    except StockValidationError as e:
        e.index = index
        raise
