from django.db import models

from .quantities import DECIMAL_PLACES, QTY_MAX_DIGITS, TEMP_MAX_DIGITS


class DailyBatch(models.Model):
    """
    Una fila por (día, ubicación). Se bloquea con select_for_update mientras se
    reemplaza el lote, así dos envíos del mismo día+ubicación no se pisan.
    """
    date = models.DateField()
    location = models.CharField(max_length=150)
    revision = models.PositiveIntegerField(default=0)  # cuántas veces se reemplazó
    item_count = models.PositiveIntegerField(default=0)
    committed_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = (("date", "location"),)
        ordering = ["-date", "location"]

    def __str__(self):
        return f"{self.date} | {self.location} | rev {self.revision}"


class StockRecord(models.Model):
    date = models.DateField()  # día calendario, la hora no importa
    location = models.CharField(max_length=150)

    # desnormalizados de la taxonomía para consultar sin joins
    product_type = models.CharField(max_length=80)
    product_category = models.CharField(max_length=120)
    product_sub_category = models.CharField(max_length=120, blank=True, default="")

    total_stock = models.DecimalField(max_digits=QTY_MAX_DIGITS, decimal_places=DECIMAL_PLACES)
    sold_qty = models.DecimalField(max_digits=QTY_MAX_DIGITS, decimal_places=DECIMAL_PLACES)
    return_qty = models.DecimalField(max_digits=QTY_MAX_DIGITS, decimal_places=DECIMAL_PLACES, default=0)
    remaining_qty = models.DecimalField(max_digits=QTY_MAX_DIGITS, decimal_places=DECIMAL_PLACES)
    unit = models.CharField(max_length=30)
    notes = models.TextField(blank=True, default="")

    # snapshot del clima que manda el cliente
    weather_condition = models.CharField(max_length=60, default="Unknown")
    weather_high_temp = models.DecimalField(max_digits=TEMP_MAX_DIGITS, decimal_places=DECIMAL_PLACES, null=True, blank=True)
    weather_low_temp = models.DecimalField(max_digits=TEMP_MAX_DIGITS, decimal_places=DECIMAL_PLACES, null=True, blank=True)
    weather_temperature = models.DecimalField(max_digits=TEMP_MAX_DIGITS, decimal_places=DECIMAL_PLACES, null=True, blank=True)  # legacy
    weather_description = models.CharField(max_length=200, default="No weather data")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["date", "location"]),  # reemplazo de lote
            models.Index(fields=["date", "location", "product_type"]),
            models.Index(fields=["location", "date"]),
        ]
        ordering = ["date", "created_at", "id"]

    def __str__(self):
        return f"{self.date} | {self.location} | {self.product_type} • {self.product_category} | {self.total_stock}"
