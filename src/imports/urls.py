from django.urls import path
from .views import stock_sheet_upload

app_name = "imports"

urlpatterns = [
    path("stock-sheet/", stock_sheet_upload, name="stock_sheet_upload"),
]
