"""
Errores de dominio compartidos por stock, reportes e importaciones.

Cada error lleva lo necesario para corregir la entrada sin mirar el servidor:
el campo involucrado y, en lotes, el índice (base 1) del ítem que falló.
"""


class StockError(Exception):
    status = 400

    def __init__(self, message: str, *, field: str | None = None, index: int | None = None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.index = index

    def as_dict(self) -> dict:
        out = {"message": self.message}
        if self.field is not None:
            out["field"] = self.field
        if self.index is not None:
            out["index"] = self.index
        return out


class StockValidationError(StockError):
    """Campo faltante, cantidad inválida, violación de sold + return <= total, id mal formado."""
    status = 400


class StockNotFound(StockError):
    status = 404


class StoreError(StockError):
    """Falla de I/O del almacenamiento. Nunca se reintenta acá."""
    status = 500
