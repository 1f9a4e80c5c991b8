import math
from datetime import timedelta

from django.conf import settings
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_GET, require_http_methods

from core.exceptions import StockValidationError
from core.http import json_view, method_not_allowed, parse_json_body, safe_int
from core.utils.dates import date_range_from_request, parse_iso_date
from reports.aggregation import aggregate, summarize

from .models import StockRecord
from .selectors import stock_queryset
from .serializers import stock_to_dict
from .services.reconciler import replace_day_batch
from .services.records import create_record, delete_record, get_record, update_record
from .services.returns import apply_returns

SORT_FIELDS = {
    "date": "date",
    "location": "location",
    "productType": "product_type",
    "productName": "product_category",
    "productCategory": "product_category",
    "totalStock": "total_stock",
    "soldQty": "sold_qty",
    "returnQty": "return_qty",
    "createdAt": "created_at",
}


# ---------------------------
# Alta / listado
# ---------------------------

@json_view
@require_http_methods(["GET", "POST"])
def stocks_collection(request):
    if request.method == "POST":
        record = create_record(parse_json_body(request))
        return JsonResponse(stock_to_dict(record), status=201)

    start, end = date_range_from_request(request, required=False)
    qs = stock_queryset(
        start=start,
        end=end,
        location=request.GET.get("location") or None,
        product_type=request.GET.get("productType") or None,
        product_name=request.GET.get("productName") or None,
    )

    sort_by = request.GET.get("sortBy", "date")
    if sort_by not in SORT_FIELDS:
        raise StockValidationError(f"sortBy inválido: {sort_by!r}", field="sortBy")
    order = SORT_FIELDS[sort_by]
    if request.GET.get("sortOrder", "desc") == "desc":
        order = f"-{order}"
    qs = qs.order_by(order, "id")

    page = max(1, safe_int(request.GET.get("page"), 1))
    limit = max(1, safe_int(request.GET.get("limit"), settings.STOCK_PAGE_SIZE))
    total = qs.count()
    offset = (page - 1) * limit

    return JsonResponse({
        "stocks": [stock_to_dict(s) for s in qs[offset:offset + limit]],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit),
        },
    })


@json_view
@require_http_methods(["POST"])
def stocks_bulk(request):
    result = replace_day_batch(parse_json_body(request))
    return JsonResponse({
        "message": f"{len(result.records)} registros de stock guardados",
        "stocks": [stock_to_dict(s) for s in result.records],
        "meta": {
            "date": result.date.isoformat(),
            "location": result.location,
            "replaced": result.deleted,
            "revision": result.revision,
        },
    }, status=201)


@json_view
@require_GET
def stocks_daily(request):
    date_raw = request.GET.get("date")
    location = (request.GET.get("location") or "").strip()
    if not date_raw or not location:
        raise StockValidationError("date y location son obligatorios.", field="date" if not date_raw else "location")
    day = parse_iso_date(date_raw, "date")

    qs = (StockRecord.objects
          .filter(date=day, location=location)
          .order_by("product_type", "product_category", "created_at", "id"))
    return JsonResponse([stock_to_dict(s) for s in qs], safe=False)


# ---------------------------
# Resúmenes
# ---------------------------

@json_view
@require_GET
def stocks_summary(request):
    start, end = date_range_from_request(request, required=False)
    qs = stock_queryset(start=start, end=end, location=request.GET.get("location") or None)
    return JsonResponse(summarize(qs))


@json_view
@require_GET
def stocks_report(request):
    start, end = date_range_from_request(request)
    group_by = request.GET.get("groupBy") or "day"
    qs = list(stock_queryset(
        start=start,
        end=end,
        location=request.GET.get("location") or None,
        product_type=request.GET.get("productType") or None,
    ))
    groups = aggregate(qs, group_by)
    return JsonResponse({
        "startDate": start.isoformat(),
        "endDate": end.isoformat(),
        "groupBy": group_by,
        "totalItems": len(qs),
        "data": [g.to_dict() for g in groups],
    })


@json_view
@require_GET
def stocks_product_options(request):
    def distinct(field, **filters):
        vals = StockRecord.objects.filter(**filters).values_list(field, flat=True).distinct()
        return sorted({v for v in vals if v})

    product_types = distinct("product_type")
    return JsonResponse({
        "productTypes": product_types,
        "productNames": distinct("product_category"),
        "productSubCategories": distinct("product_sub_category"),
        "locations": distinct("location"),
        "units": distinct("unit"),
        "productsByType": {pt: distinct("product_category", product_type=pt) for pt in product_types},
        "marketLocations": list(settings.MARKET_LOCATIONS),
    })


@json_view
@require_GET
def stocks_history(request):
    days = max(0, safe_int(request.GET.get("days"), settings.STOCK_HISTORY_DAYS))
    since = timezone.localdate() - timedelta(days=days)
    qs = stock_queryset(
        start=since,
        location=request.GET.get("location") or None,
        product_type=request.GET.get("productType") or None,
    )
    return JsonResponse([stock_to_dict(s) for s in qs], safe=False)


# ---------------------------
# Devoluciones (cierre del día)
# ---------------------------

@json_view
@require_http_methods(["PUT", "POST"])
def stocks_returns_bulk(request):
    body = parse_json_body(request)
    if not isinstance(body, dict) or "returns" not in body:
        raise StockValidationError("Falta 'returns'.", field="returns")
    result = apply_returns(body["returns"])
    return JsonResponse({"success": True, "updated": result.updated, "skipped": result.skipped})


# ---------------------------
# Registro individual
# ---------------------------

@json_view
def stock_detail(request, pk):
    if request.method == "GET":
        return JsonResponse(stock_to_dict(get_record(pk)))
    if request.method == "PUT":
        record = update_record(pk, parse_json_body(request))
        return JsonResponse({"message": "Registro de stock actualizado", "stock": stock_to_dict(record)})
    if request.method == "DELETE":
        record = delete_record(pk)
        return JsonResponse({
            "message": "Registro de stock borrado",
            "deletedStock": {
                "id": pk,
                "productName": record.product_category,
                "date": record.date.isoformat(),
                "location": record.location,
            },
        })
    return method_not_allowed(request)
