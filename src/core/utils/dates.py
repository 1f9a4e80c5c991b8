import calendar
from datetime import date, datetime

from core.exceptions import StockValidationError


def parse_iso_date(val, field: str = "date") -> date:
    """
    Normaliza la fecha de un request a date (la hora del día no importa).
    Acepta date/datetime, "YYYY-MM-DD" o un ISO datetime ("2024-03-10T00:00:00.000Z").
    """
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    s = "" if val is None else str(val).strip()
    if not s:
        raise StockValidationError(f"Falta '{field}'.", field=field)
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        raise StockValidationError(f"Fecha inválida en '{field}': {s!r}", field=field)


def date_range_from_request(request, *, required: bool = True):
    """(startDate, endDate) del querystring; ambos inclusive por día calendario."""
    start_raw = request.GET.get("startDate") or None
    end_raw = request.GET.get("endDate") or None
    if required:
        if not start_raw:
            raise StockValidationError("startDate es obligatorio.", field="startDate")
        if not end_raw:
            raise StockValidationError("endDate es obligatorio.", field="endDate")
    start = parse_iso_date(start_raw, "startDate") if start_raw else None
    end = parse_iso_date(end_raw, "endDate") if end_raw else None
    if start and end and start > end:
        raise StockValidationError("startDate no puede ser posterior a endDate.", field="startDate")
    return start, end


def month_bounds(year: int, month: int):
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)
