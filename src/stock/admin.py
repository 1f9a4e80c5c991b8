from django.contrib import admin
from .models import DailyBatch, StockRecord

@admin.register(StockRecord)
class StockRecordAdmin(admin.ModelAdmin):
    list_display = ("date", "location", "product_type", "product_category", "total_stock",
                    "sold_qty", "return_qty", "remaining_qty", "weather_condition")
    search_fields = ("location", "product_type", "product_category", "product_sub_category")
    list_filter = ("location", "product_type", "weather_condition")
    date_hierarchy = "date"

@admin.register(DailyBatch)
class DailyBatchAdmin(admin.ModelAdmin):
    list_display = ("date", "location", "revision", "item_count", "committed_at")
    list_filter = ("location",)
