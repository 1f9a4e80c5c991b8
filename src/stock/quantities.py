"""
Modelo de cantidades de un registro de stock.

    sold + return <= total          (se rechaza, nunca se recorta)
    remaining = total - sold - return   (solo si remaining no vino)

Las cantidades son Decimal: se permiten fracciones como 0.5.
"""
import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from core.exceptions import StockValidationError

ZERO = Decimal("0")

# mismas dimensiones que las columnas de StockRecord
QTY_MAX_DIGITS = 12
TEMP_MAX_DIGITS = 6
DECIMAL_PLACES = 2


@dataclass(frozen=True)
class Quantities:
    total_stock: Decimal
    sold_qty: Decimal
    return_qty: Decimal
    remaining_qty: Decimal


def to_quantity(val, field: str, *, index: int | None = None, required: bool = False) -> Decimal | None:
    """
    Normaliza un número de request (int, float, "12.5") a Decimal >= 0.
    None / "" -> None, salvo que sea obligatorio.
    """
    if val is None or (isinstance(val, str) and val.strip() == ""):
        if required:
            raise StockValidationError(f"Falta '{field}'.", field=field, index=index)
        return None
    if isinstance(val, bool):
        raise StockValidationError(f"'{field}' debe ser numérico.", field=field, index=index)
    if isinstance(val, float) and (math.isnan(val) or math.isinf(val)):
        raise StockValidationError(f"'{field}' debe ser numérico.", field=field, index=index)
    try:
        num = Decimal(str(val).strip())
    except (InvalidOperation, ValueError):
        raise StockValidationError(f"'{field}' debe ser numérico: {val!r}", field=field, index=index)
    if not num.is_finite():
        raise StockValidationError(f"'{field}' debe ser numérico.", field=field, index=index)
    if num < 0:
        raise StockValidationError(f"'{field}' no puede ser negativo.", field=field, index=index)
    return fit_precision(num, field, index=index)


def fit_precision(num: Decimal, field: str, *, index: int | None = None,
                  max_digits: int = QTY_MAX_DIGITS, decimal_places: int = DECIMAL_PLACES) -> Decimal:
    """
    El valor tiene que entrar tal cual en la columna: sin redondeos al guardar,
    así lo que se valida es exactamente lo que queda en la base.
    """
    try:
        fitted = num.quantize(Decimal(1).scaleb(-decimal_places))
    except InvalidOperation:
        fitted = None
    if fitted is None or len(fitted.as_tuple().digits) > max_digits:
        raise StockValidationError(
            f"'{field}' es demasiado grande (máximo {max_digits - decimal_places} dígitos enteros).",
            field=field, index=index,
        )
    if fitted != num:
        raise StockValidationError(
            f"'{field}' admite como máximo {decimal_places} decimales: {num}", field=field, index=index
        )
    return fitted


def derive_quantities(total_stock, sold_qty=None, return_qty=None, remaining_qty=None,
                      *, index: int | None = None) -> Quantities:
    """Valida y completa el cuádruple. Función pura."""
    total = to_quantity(total_stock, "totalStock", index=index, required=True)
    sold = to_quantity(sold_qty, "soldQty", index=index) or ZERO
    returned = to_quantity(return_qty, "returnQty", index=index) or ZERO
    remaining = to_quantity(remaining_qty, "remainingQty", index=index)

    if sold + returned > total:
        raise StockValidationError(
            f"Vendido ({sold}) + devuelto ({returned}) no puede superar el stock total ({total}).",
            field="soldQty",
            index=index,
        )

    if remaining is None:
        remaining = total - sold - returned

    return Quantities(total_stock=total, sold_qty=sold, return_qty=returned, remaining_qty=remaining)


def derive_sold_from_returns(total_stock, return_qty) -> Decimal:
    """Forma "bulk save": sin soldQty explícito, vendido = total - devuelto (mínimo 0)."""
    total = total_stock or ZERO
    returned = return_qty or ZERO
    return max(ZERO, total - returned)
