import math
from pathlib import Path
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from itertools import islice

import pandas as pd
from openpyxl import load_workbook
from django.db import transaction

from core.exceptions import StockError, StockValidationError
from stock.services.reconciler import replace_day_batch

import logging

logger = logging.getLogger(__name__)

REQUIRED_COLS = [
    "Date", "Location", "Product Type", "Product", "Total Stock", "Unit",
]

# columna canónica -> clave del ítem que entiende el reconciliador
CANON_TO_FIELD = {
    "Date": "date",
    "Location": "location",
    "Product Type": "productType",
    "Product": "productCategory",
    "Subcategory": "productSubCategory",
    "Total Stock": "totalStock",
    "Sold": "soldQty",
    "Returned": "returnQty",
    "Remaining": "remainingQty",
    "Unit": "unit",
    "Notes": "notes",
    "Weather": "weatherCondition",
    "High": "weatherHighTemp",
    "Low": "weatherLowTemp",
    "Temperature": "weatherTemperature",
    "Weather Description": "weatherDescription",
}

ALIASES = {
    "date": "Date", "day": "Date", "fecha": "Date",
    "location": "Location", "market": "Location", "market location": "Location",
    "product type": "Product Type", "type": "Product Type",
    "product": "Product", "product name": "Product", "category": "Product", "product category": "Product",
    "subcategory": "Subcategory", "sub category": "Subcategory", "product subcategory": "Subcategory",
    "total stock": "Total Stock", "total": "Total Stock", "stock": "Total Stock", "brought": "Total Stock",
    "sold": "Sold", "sold qty": "Sold", "units sold": "Sold",
    "returned": "Returned", "return qty": "Returned", "returns": "Returned",
    "remaining": "Remaining", "remaining qty": "Remaining",
    "unit": "Unit", "units": "Unit",
    "notes": "Notes",
    "weather": "Weather", "weather condition": "Weather", "condition": "Weather",
    "high": "High", "high temp": "High", "max temp": "High",
    "low": "Low", "low temp": "Low", "min temp": "Low",
    "temperature": "Temperature", "temp": "Temperature",
    "weather description": "Weather Description", "description": "Weather Description",
}


def parse_date(val):
    """
    Normaliza fechas de Excel / strings / datetime a date.
    """
    if val is None or (isinstance(val, float) and pd.isna(val)):
        return None

    # Si ya viene como Timestamp/datetime/date -> devolvemos date
    if isinstance(val, pd.Timestamp):
        return val.date()
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val

    s = str(val).strip()
    if s == "":
        return None

    # Intento 1: ISO (YYYY-MM-DD...)
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        pass

    # Intento 2: string mes/día/año
    try:
        return pd.to_datetime(s, dayfirst=False, errors="raise").date()
    except (ValueError, TypeError, OverflowError):
        pass

    # Intento 3: números de fecha de Excel
    try:
        return pd.to_datetime(float(s), unit="D", origin="1899-12-30").date()
    except (ValueError, TypeError, OverflowError):
        return None


def parse_number(val) -> Decimal | None:
    """
    Número de planilla a Decimal. El último separador que aparece es el decimal:
    "1.234,5" y "1,234.5" son 1234.5, "1,5" es 1.5. Texto no numérico -> None.
    """
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, float):
        return Decimal(str(val)) if math.isfinite(val) else None
    if isinstance(val, (int, Decimal)):
        return Decimal(val)

    s = str(val).strip().replace(" ", "")
    if not s:
        return None
    if s.rfind(",") > s.rfind("."):
        s = s.replace(".", "").replace(",", ".")
    else:
        s = s.replace(",", "")

    try:
        num = Decimal(s)
    except InvalidOperation:
        return None
    return num if num.is_finite() else None


def _clean_cell(val):
    if val is None or (isinstance(val, float) and pd.isna(val)):
        return None
    if isinstance(val, str):
        s = val.strip()
        return s or None
    return val


def _norm(s):
    s = "" if s is None or (isinstance(s, float) and pd.isna(s)) else str(s)
    return " ".join(s.replace("\n", " ").strip().lower().split())


def _detect_header_row(df_no_header: pd.DataFrame, max_scan: int = 30):
    required_norm = {_norm(x): x for x in REQUIRED_COLS}
    optional_norm = {_norm(x): x for x in CANON_TO_FIELD}

    best = (-1, -1, None)
    nrows = min(len(df_no_header), max_scan)

    for i in range(nrows):
        row = list(df_no_header.iloc[i].values)
        cols_map = []
        matches = 0

        for val in row:
            key = _norm(val)
            canon = ALIASES.get(key) or required_norm.get(key) or optional_norm.get(key)
            cols_map.append(canon)
            if canon in REQUIRED_COLS:
                matches += 1

        if matches > best[0]:
            best = (matches, i, cols_map)
        if matches == len(REQUIRED_COLS):
            break

    if best[0] >= len(REQUIRED_COLS) - 1:
        return best[1], best[2]
    return None, None


def _is_csv(path: Path) -> bool:
    return path.suffix.lower() in (".csv", ".txt")


def _open_sheet(path: Path, sheet: str | None):
    wb = load_workbook(path, read_only=True, data_only=True)
    if sheet in (None, ""):
        return wb, wb.worksheets[0]
    if sheet not in wb.sheetnames:
        wb.close()
        raise StockValidationError(f"La hoja '{sheet}' no existe.", field="sheet")
    return wb, wb[sheet]


def _read_header(path: Path, sheet: str | None) -> tuple[list, int]:
    """
    Lee solo la cabecera (primeras ~100 filas) y retorna:
    (nombres_canonicos, fila_datos_inicio)
    """
    if _is_csv(path):
        raw = pd.read_csv(path, header=None, nrows=100, dtype=object, skip_blank_lines=False)
    else:
        # con openpyxl las filas vacías se conservan y los índices coinciden con _iter_rows
        wb, ws = _open_sheet(path, sheet)
        try:
            raw = pd.DataFrame(list(islice(ws.iter_rows(values_only=True), 100)))
        finally:
            wb.close()

    hdr_idx, cols_map = _detect_header_row(raw, max_scan=30)
    if hdr_idx is None:
        raise StockValidationError("No pude detectar la fila de encabezados. Verificá el archivo/hoja.")

    miss = [c for c in REQUIRED_COLS if c not in cols_map]
    if miss:
        raise StockValidationError(f"Faltan columnas requeridas: {', '.join(miss)}")

    # hdr_idx + 1 es donde empiezan los datos (fila siguiente a encabezados)
    return cols_map, hdr_idx + 1


def _iter_rows(path: Path, sheet: str | None, data_start_row: int):
    """(número de fila en la planilla, tupla de valores)."""
    if _is_csv(path):
        try:
            df = pd.read_csv(path, header=None, skiprows=data_start_row, dtype=object, skip_blank_lines=False)
        except pd.errors.EmptyDataError:
            return  # solo encabezados
        for offset, row in enumerate(df.itertuples(index=False, name=None)):
            yield data_start_row + 1 + offset, row
        return

    wb, ws = _open_sheet(path, sheet)
    try:
        yield from enumerate(
            ws.iter_rows(min_row=data_start_row + 1, values_only=True),
            start=data_start_row + 1,
        )
    finally:
        wb.close()


NUMERIC_FIELDS = ("totalStock", "soldQty", "returnQty", "remainingQty",
                  "weatherHighTemp", "weatherLowTemp", "weatherTemperature")


def _row_to_item(cols_map, row, row_num: int) -> dict:
    """
    Celda vacía -> None. Celda con contenido que no se puede leer -> error con la fila,
    nunca se descarta en silencio.
    """
    item = {}
    for idx, canon in enumerate(cols_map):
        if canon is None or idx >= len(row):
            continue
        key = CANON_TO_FIELD[canon]
        raw = _clean_cell(row[idx])
        val = raw
        if key == "date":
            val = parse_date(raw)
        elif key in NUMERIC_FIELDS:
            val = parse_number(raw)
        if raw is not None and val is None:
            raise StockValidationError(f"Fila {row_num}: '{canon}' inválido: {raw}", field=key)
        item[key] = val

    for key, canon in (("date", "Date"), ("location", "Location")):
        if not item.get(key):
            raise StockValidationError(f"Fila {row_num}: falta '{canon}'.", field=key)
    return item


@transaction.atomic
def process_stock_sheet(path: Path, *, sheet: str | None = None):
    """
    Importa una planilla de stock diario (xlsx o csv):
    - Detecta encabezados automáticamente.
    - Agrupa filas por (fecha, ubicación) en orden de aparición.
    - Cada grupo es un lote que reemplaza al del mismo día+ubicación.
    Todo el archivo es una transacción: un lote inválido no deja nada guardado.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    cols_map, data_start_row = _read_header(p, sheet)

    summary = {
        "rows": 0,
        "records_created": 0,
        "records_replaced": 0,
        "batches": [],
        "detected_columns": [c for c in cols_map if c],
    }

    groups: dict[tuple, list] = {}
    for row_num, row in _iter_rows(p, sheet, data_start_row):
        if all(_clean_cell(v) is None for v in row):
            continue
        summary["rows"] += 1

        item = _row_to_item(cols_map, row, row_num)
        groups.setdefault((item["date"], str(item["location"]).strip()), []).append((row_num, item))

    logger.info("[stock_sheet] '%s': filas=%s lotes=%s", p.name, summary["rows"], len(groups))

    for (day, location), rows in groups.items():
        try:
            result = replace_day_batch([item for _, item in rows])
        except StockError as e:
            where = ""
            if e.index is not None:
                where = f" (fila {rows[e.index - 1][0]})"
            raise type(e)(f"Lote {day} / {location}{where}: {e.message}", field=e.field, index=e.index)

        summary["records_created"] += len(result.records)
        summary["records_replaced"] += result.deleted
        summary["batches"].append({
            "date": day.isoformat(),
            "location": location,
            "items": len(result.records),
            "replaced": result.deleted,
        })

    return summary
