import logging
import tempfile
from pathlib import Path
from zipfile import BadZipFile

from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods
from openpyxl.utils.exceptions import InvalidFileException

from core.exceptions import StockValidationError
from core.http import json_view
from .forms import StockSheetUploadForm
from .services.stock_sheet_loader import process_stock_sheet

logger = logging.getLogger(__name__)


@json_view
@require_http_methods(["POST"])
def stock_sheet_upload(request):
    form = StockSheetUploadForm(request.POST, request.FILES)
    if not form.is_valid():
        field, errors = next(iter(form.errors.items()))
        raise StockValidationError(f"Revisá los datos del formulario: {errors[0]}", field=field)

    up_file = form.cleaned_data["file"]
    sheet = form.cleaned_data.get("sheet") or None

    # guardar temporal; se conserva la extensión para elegir el lector
    uploads_dir = Path(settings.MEDIA_ROOT) / "uploads"
    uploads_dir.mkdir(parents=True, exist_ok=True)
    suffix = Path(up_file.name).suffix.lower()
    with tempfile.NamedTemporaryFile(dir=uploads_dir, suffix=suffix, delete=False) as dest:
        for chunk in up_file.chunks():
            dest.write(chunk)
        tmp_path = Path(dest.name)

    try:
        summary = process_stock_sheet(tmp_path, sheet=sheet)
    except (ValueError, InvalidFileException, BadZipFile) as e:
        # planilla ilegible
        raise StockValidationError(f"Error procesando el archivo: {e}", field="file")
    finally:
        tmp_path.unlink(missing_ok=True)

    logger.info("Planilla '%s' importada: %s registros", up_file.name, summary["records_created"])
    return JsonResponse({"message": "Archivo procesado correctamente.", "result": summary}, status=201)
