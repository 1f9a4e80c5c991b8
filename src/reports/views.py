import math

from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.http import require_GET

from core.exceptions import StockValidationError
from core.http import json_view
from core.utils.dates import date_range_from_request, month_bounds
from stock.selectors import stock_queryset

from .aggregation import group_by_day, group_by_location, group_by_product, top_returns
from .weather import analyze_weather_impact, find_low_sales_days


def _require(request, *names):
    vals = []
    for name in names:
        v = (request.GET.get(name) or "").strip()
        if not v or v == "undefined":
            raise StockValidationError(f"{', '.join(names)} son obligatorios.", field=name)
        vals.append(v)
    return vals


def _scoped_records(request, *, location_required=True):
    if location_required:
        (location,) = _require(request, "location")
    else:
        location = (request.GET.get("location") or "").strip()
        if location == "undefined":
            location = ""
    start, end = date_range_from_request(request)
    return stock_queryset(start=start, end=end, location=location or None)


# ---------------------------
# Ventas diarias con clima (ubicación opcional)
# ---------------------------

@json_view
@require_GET
def sales_by_location(request):
    days = group_by_day(_scoped_records(request, location_required=False))
    return JsonResponse([d.to_dict(with_items=False, with_weather=True) for d in days], safe=False)


@json_view
@require_GET
def location_comparison(request):
    month_raw, year_raw = _require(request, "month", "year")
    try:
        month, year = int(month_raw), int(year_raw)
    except ValueError:
        raise StockValidationError("month y year deben ser números.", field="month")
    if not 1 <= month <= 12:
        raise StockValidationError("month debe estar entre 1 y 12.", field="month")
    if not 1 <= year <= 9999:
        raise StockValidationError("year inválido.", field="year")

    start, end = month_bounds(year, month)
    raw_locs = (request.GET.get("locations") or "").strip()
    locations = [loc.strip() for loc in raw_locs.split(",") if loc.strip()] if raw_locs else None

    groups = group_by_location(stock_queryset(start=start, end=end, locations=locations), order_by="sold")
    return JsonResponse([g.to_dict(with_items=False) for g in groups], safe=False)


@json_view
@require_GET
def product_wise(request):
    groups = group_by_product(_scoped_records(request), order_by="sold")
    return JsonResponse([g.to_dict() for g in groups], safe=False)


@json_view
@require_GET
def product_wise_returns(request):
    location, product_type = _require(request, "location", "productType")
    start, end = date_range_from_request(request)
    qs = stock_queryset(start=start, end=end, location=location, product_type=product_type)
    groups = top_returns(qs, limit=settings.REPORTS_TOP_RETURNS_LIMIT)
    return JsonResponse([g.to_dict() for g in groups], safe=False)


@json_view
@require_GET
def daily_sales(request):
    days = group_by_day(_scoped_records(request))
    return JsonResponse([d.to_dict(with_items=False) for d in days], safe=False)


# ---------------------------
# Clima
# ---------------------------

@json_view
@require_GET
def weather_impact(request):
    impact = analyze_weather_impact(group_by_day(_scoped_records(request)))
    out = impact.to_dict()
    out["lowSalesThreshold"] = settings.REPORTS_LOW_SALES_THRESHOLD
    return JsonResponse(out)


@json_view
@require_GET
def weather_impact_detailed(request):
    raw = request.GET.get("threshold") or None
    threshold = settings.REPORTS_LOW_SALES_THRESHOLD
    if raw is not None:
        try:
            threshold = float(raw)
        except ValueError:
            raise StockValidationError("threshold debe ser numérico (porcentaje).", field="threshold")
        if not math.isfinite(threshold):
            raise StockValidationError("threshold debe ser un número finito.", field="threshold")
        if threshold < 0:
            raise StockValidationError("threshold no puede ser negativo.", field="threshold")

    report = find_low_sales_days(
        group_by_day(_scoped_records(request)),
        threshold=threshold,
        critical=settings.REPORTS_CRITICAL_THRESHOLD,
    )
    return JsonResponse(report.to_dict())
