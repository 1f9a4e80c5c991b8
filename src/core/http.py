import json
import logging
from functools import wraps

from django.db import DatabaseError
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt

from core.exceptions import StockError, StockValidationError

logger = logging.getLogger(__name__)


def json_view(view):
    """
    Envuelve una vista JSON: los errores de dominio salen como
    {"message", "field"?, "index"?} con su status; un DatabaseError que se
    escape de los servicios sale como 500.
    """
    @csrf_exempt
    @wraps(view)
    def _wrapped(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except StockError as e:
            if e.status >= 500:
                logger.error("%s %s -> %s", request.method, request.path, e.message)
            return JsonResponse(e.as_dict(), status=e.status)
        except DatabaseError as e:
            logger.exception("Error de base de datos en %s %s", request.method, request.path)
            return JsonResponse({"message": "Error de almacenamiento", "error": str(e)}, status=500)

    return _wrapped


def parse_json_body(request):
    try:
        return json.loads(request.body or b"null")
    except (ValueError, UnicodeDecodeError):
        raise StockValidationError("El cuerpo del request no es JSON válido.")


def method_not_allowed(request):
    return JsonResponse({"message": f"Método {request.method} no permitido."}, status=405)


def safe_int(x, default):
    try:
        return int(x)
    except (TypeError, ValueError):
        return default
