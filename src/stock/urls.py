from django.urls import path
from .views import (
    stocks_collection,
    stocks_bulk,
    stocks_daily,
    stocks_summary,
    stocks_report,
    stocks_product_options,
    stocks_history,
    stocks_returns_bulk,
    stock_detail,
)

app_name = "stock"

urlpatterns = [
    path("", stocks_collection, name="stocks"),
    path("bulk/", stocks_bulk, name="stocks_bulk"),
    path("daily/", stocks_daily, name="stocks_daily"),
    path("summary/", stocks_summary, name="stocks_summary"),
    path("report/", stocks_report, name="stocks_report"),
    path("product-options/", stocks_product_options, name="product_options"),
    path("history/", stocks_history, name="stocks_history"),
    path("returns/bulk/", stocks_returns_bulk, name="returns_bulk"),
    path("<int:pk>/", stock_detail, name="stock_detail"),
]
