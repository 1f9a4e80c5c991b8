"""
Reemplazo de lote día+ubicación.

Un envío trae todo el stock de un día para una ubicación. Se valida el lote
entero antes de escribir (ningún commit parcial), se resuelve la taxonomía y,
dentro de una transacción y con la fila DailyBatch bloqueada, se borran los
registros previos de ese día+ubicación y se insertan los nuevos.

Cantidades: soldQty explícito es el camino principal y pasa por el modelo de
cantidades. Si no vino, se deriva como total - devuelto (mínimo 0).
"""
import logging
from dataclasses import dataclass

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import F
from django.utils import timezone

from core.exceptions import StockNotFound, StockValidationError, StoreError
from core.services.taxonomy import TaxonomyResolver
from stock.models import DailyBatch, StockRecord
from stock.normalization import LineItem, normalize_line_item
from stock.quantities import Quantities, derive_quantities, derive_sold_from_returns

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    date: object
    location: str
    deleted: int
    records: list[StockRecord]
    revision: int


def resolve_item_quantities(item: LineItem) -> Quantities:
    sold = item.sold_qty
    if sold is None:
        sold = derive_sold_from_returns(item.total_stock, item.return_qty)
    return derive_quantities(
        item.total_stock, sold, item.return_qty, item.remaining_qty, index=item.index
    )


def build_record(item: LineItem, qty: Quantities) -> StockRecord:
    return StockRecord(
        date=item.date,
        location=item.location,
        product_type=item.product_type,
        product_category=item.product_category,
        product_sub_category=item.product_sub_category,
        total_stock=qty.total_stock,
        sold_qty=qty.sold_qty,
        return_qty=qty.return_qty,
        remaining_qty=qty.remaining_qty,
        unit=item.unit,
        notes=item.notes,
        weather_condition=item.weather_condition,
        weather_high_temp=item.weather_high_temp,
        weather_low_temp=item.weather_low_temp,
        weather_temperature=item.weather_temperature,
        weather_description=item.weather_description,
    )


def prepare_batch(raw_items) -> list[tuple[LineItem, Quantities]]:
    """Normaliza y valida todo el lote. Sin I/O."""
    if not isinstance(raw_items, list) or not raw_items:
        raise StockValidationError("Enviá una lista de ítems de stock.")

    prepared = []
    key = None
    for i, raw in enumerate(raw_items, start=1):
        item = normalize_line_item(raw, i)
        if key is None:
            key = (item.date, item.location)
        elif (item.date, item.location) != key:
            # un lote es un solo día+ubicación
            raise StockValidationError(
                f"El ítem {i} es de {item.date} / '{item.location}', "
                f"pero el lote es de {key[0]} / '{key[1]}'.",
                field="date" if item.date != key[0] else "location",
                index=i,
            )
        prepared.append((item, resolve_item_quantities(item)))
    return prepared


def _resolve_taxonomy(prepared, resolver: TaxonomyResolver):
    for item, _ in prepared:
        try:
            pt = resolver.product_type(item.product_type, index=item.index)
            cat = resolver.category(item.product_category, pt, index=item.index)
            if item.product_sub_category:
                resolver.subcategory(item.product_sub_category, cat, index=item.index)
        except StockNotFound as e:
            # en un lote, un nombre que no resuelve es un error de entrada
            raise StockValidationError(e.message, field=e.field, index=e.index)


def replace_day_batch(raw_items, *, auto_create_taxonomy: bool | None = None) -> BatchResult:
    """
    Reemplaza el lote del (date, location) del primer ítem.
    Reenviar el mismo lote deja exactamente los ítems del último envío.
    """
    prepared = prepare_batch(raw_items)
    first = prepared[0][0]
    if auto_create_taxonomy is None:
        auto_create_taxonomy = settings.STOCK_AUTO_CREATE_TAXONOMY
    resolver = TaxonomyResolver(auto_create=auto_create_taxonomy)

    try:
        with transaction.atomic():
            _resolve_taxonomy(prepared, resolver)

            # sección crítica: mismo día+ubicación se serializa sobre esta fila
            batch, _ = DailyBatch.objects.get_or_create(date=first.date, location=first.location)
            batch = DailyBatch.objects.select_for_update().get(pk=batch.pk)

            deleted, _ = StockRecord.objects.filter(date=first.date, location=first.location).delete()
            records = StockRecord.objects.bulk_create([build_record(item, qty) for item, qty in prepared])

            DailyBatch.objects.filter(pk=batch.pk).update(
                revision=F("revision") + 1, item_count=len(records), committed_at=timezone.now()
            )
    except DatabaseError as e:
        logger.exception("Falló el reemplazo de lote %s / %s", first.date, first.location)
        raise StoreError(f"No se pudo guardar el lote: {e}")

    logger.info(
        "Lote reemplazado %s / %s: borrados=%s insertados=%s",
        first.date, first.location, deleted, len(records),
    )
    return BatchResult(
        date=first.date,
        location=first.location,
        deleted=deleted,
        records=records,
        revision=batch.revision + 1,
    )
