from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from core.exceptions import StockError
from imports.services.stock_sheet_loader import process_stock_sheet


class Command(BaseCommand):
    help = ("Importa una planilla de stock diario (xlsx o csv). Cada (fecha, ubicación) "
            "reemplaza el lote existente de ese día.")

    def add_arguments(self, parser):
        parser.add_argument("path", help="Ruta al archivo .xlsx o .csv")
        parser.add_argument("--sheet", default=None, help="Nombre de hoja (solo Excel)")

    def handle(self, *args, **opts):
        path = Path(opts["path"])
        if not path.exists():
            raise CommandError(f"No existe el archivo: {path}")

        try:
            summary = process_stock_sheet(path, sheet=opts.get("sheet"))
        except StockError as e:
            raise CommandError(e.message)

        for b in summary["batches"]:
            self.stdout.write(f"  {b['date']} / {b['location']}: {b['items']} ítems (reemplazados {b['replaced']})")
        self.stdout.write(self.style.SUCCESS(
            f"OK: filas={summary['rows']} registros={summary['records_created']}"
        ))
