from stock.models import StockRecord


def stock_queryset(*, start=None, end=None, location=None, locations=None, product_type=None, product_name=None):
    """
    Registros filtrados por rango de días (inclusive), ubicación y producto.
    Orden estable: fecha, alta, id (es el orden de inserción para los agregados).
    """
    filters = {}
    if start:
        filters["date__gte"] = start
    if end:
        filters["date__lte"] = end
    if location:
        filters["location"] = location
    if locations:
        filters["location__in"] = locations
    if product_type:
        filters["product_type"] = product_type
    if product_name:
        filters["product_category__icontains"] = product_name
    return StockRecord.objects.filter(**filters).order_by("date", "created_at", "id")
