import logging

from django.conf import settings
from django.db import DatabaseError

from core.exceptions import StockNotFound, StockValidationError, StoreError
from core.utils.dates import parse_iso_date
from stock.models import StockRecord
from stock.normalization import normalize_line_item, weather_snapshot
from stock.quantities import derive_quantities
from stock.services.reconciler import build_record

logger = logging.getLogger(__name__)

QTY_FIELDS = ("totalStock", "soldQty", "returnQty")

# camelCase del request -> campo del modelo (texto)
TEXT_FIELDS = {
    "location": "location",
    "productType": "product_type",
    "productCategory": "product_category",
    "productName": "product_category",
    "productSubCategory": "product_sub_category",
    "unit": "unit",
    "notes": "notes",
}


def get_record(pk) -> StockRecord:
    try:
        return StockRecord.objects.get(pk=pk)
    except StockRecord.DoesNotExist:
        raise StockNotFound("Registro de stock no encontrado.", field="id")


def create_record(raw) -> StockRecord:
    """Alta de un registro suelto: soldQty explícito (0 si no vino)."""
    item = normalize_line_item(raw, default_unit=settings.STOCK_DEFAULT_UNIT)
    qty = derive_quantities(item.total_stock, item.sold_qty, item.return_qty, item.remaining_qty)
    record = build_record(item, qty)
    try:
        record.save()
    except DatabaseError as e:
        logger.exception("Falló el alta de stock")
        raise StoreError(f"No se pudo guardar el registro: {e}")
    return record


def update_record(pk, raw) -> StockRecord:
    """
    Actualiza cualquier campo. Si cambia alguna cantidad, los valores mezclados
    (request + guardado) pasan por el modelo de cantidades y remainingQty se
    vuelve a derivar.
    """
    if not isinstance(raw, dict):
        raise StockValidationError("El cuerpo debe ser un objeto JSON.")
    record = get_record(pk)

    if "date" in raw:
        record.date = parse_iso_date(raw["date"], "date")

    for key, attr in TEXT_FIELDS.items():
        if key in raw:
            val = "" if raw[key] is None else str(raw[key]).strip()
            if not val and attr in ("location", "product_type", "product_category", "unit"):
                raise StockValidationError(f"'{key}' no puede quedar vacío.", field=key)
            setattr(record, attr, val)

    if any(k in raw for k in QTY_FIELDS):
        qty = derive_quantities(
            raw.get("totalStock", record.total_stock),
            raw.get("soldQty", record.sold_qty),
            raw.get("returnQty", record.return_qty),
        )
        record.total_stock = qty.total_stock
        record.sold_qty = qty.sold_qty
        record.return_qty = qty.return_qty
        record.remaining_qty = qty.remaining_qty

    for attr, val in weather_snapshot(raw, partial=True).items():
        setattr(record, attr, val)

    try:
        record.save()
    except DatabaseError as e:
        logger.exception("Falló la actualización del registro %s", pk)
        raise StoreError(f"No se pudo actualizar el registro: {e}")
    return record


def delete_record(pk) -> StockRecord:
    record = get_record(pk)
    try:
        record.delete()
    except DatabaseError as e:
        logger.exception("Falló el borrado del registro %s", pk)
        raise StoreError(f"No se pudo borrar el registro: {e}")
    return record
