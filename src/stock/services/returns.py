"""
Ajuste de devoluciones sobre registros ya guardados (cierre del día).

Solo toca returnQty y remainingQty; totalStock y soldQty quedan como están.
remainingQty es el finalRemaining que calcula el cliente (total - devuelto);
si no viene, se calcula acá con la misma convención.

Todo o nada para errores de validación; los ids inexistentes se saltean y se
informan en `skipped`.
"""
import logging
from dataclasses import dataclass, field

from django.db import DatabaseError, transaction

from core.exceptions import StockValidationError, StoreError
from stock.models import StockRecord
from stock.quantities import to_quantity

logger = logging.getLogger(__name__)


@dataclass
class ReturnAdjustment:
    id: int
    return_qty: object
    final_remaining: object
    index: int


@dataclass
class ReturnsResult:
    updated: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)


def _parse_id(val, index):
    if isinstance(val, bool):
        raise StockValidationError("id inválido.", field="id", index=index)
    try:
        pk = int(str(val).strip())
    except (TypeError, ValueError):
        raise StockValidationError(f"id inválido: {val!r}", field="id", index=index)
    if pk <= 0:
        raise StockValidationError(f"id inválido: {val!r}", field="id", index=index)
    return pk


def parse_adjustments(raw_returns) -> list[ReturnAdjustment]:
    if not isinstance(raw_returns, list):
        raise StockValidationError("'returns' debe ser una lista.", field="returns")

    out = []
    for i, raw in enumerate(raw_returns, start=1):
        if not isinstance(raw, dict):
            raise StockValidationError("Cada devolución debe ser un objeto JSON.", index=i)
        final = raw.get("finalRemaining", raw.get("finalRemainingQty"))
        out.append(ReturnAdjustment(
            id=_parse_id(raw.get("id"), i),
            return_qty=to_quantity(raw.get("returnQty"), "returnQty", index=i, required=True),
            final_remaining=to_quantity(final, "finalRemaining", index=i),
            index=i,
        ))
    return out


def apply_returns(raw_returns) -> ReturnsResult:
    adjustments = parse_adjustments(raw_returns)
    result = ReturnsResult()

    try:
        with transaction.atomic():
            ids = [a.id for a in adjustments]
            records = StockRecord.objects.select_for_update().in_bulk(ids)

            for adj in adjustments:
                rec = records.get(adj.id)
                if rec is None:
                    result.skipped.append(adj.id)
                    continue

                if adj.return_qty > rec.total_stock:
                    raise StockValidationError(
                        f"La devolución ({adj.return_qty}) supera el stock total ({rec.total_stock}).",
                        field="returnQty",
                        index=adj.index,
                    )

                rec.return_qty = adj.return_qty
                if adj.final_remaining is None:
                    rec.remaining_qty = rec.total_stock - adj.return_qty
                else:
                    rec.remaining_qty = adj.final_remaining
                rec.save(update_fields=["return_qty", "remaining_qty", "updated_at"])
                result.updated.append(rec.id)
    except DatabaseError as e:
        logger.exception("Falló el ajuste de devoluciones")
        raise StoreError(f"No se pudieron guardar las devoluciones: {e}")

    if result.skipped:
        logger.warning("Devoluciones salteadas (id inexistente): %s", result.skipped)
    logger.info("Devoluciones aplicadas: %s registros", len(result.updated))
    return result
