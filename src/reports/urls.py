from django.urls import path
from .views import (
    sales_by_location,
    location_comparison,
    product_wise,
    product_wise_returns,
    daily_sales,
    weather_impact,
    weather_impact_detailed,
)

app_name = "reports"

urlpatterns = [
    path("sales-by-location/", sales_by_location, name="sales_by_location"),
    path("location-comparison/", location_comparison, name="location_comparison"),
    path("product-wise/", product_wise, name="product_wise"),
    path("product-wise-returns/", product_wise_returns, name="product_wise_returns"),
    path("daily-sales/", daily_sales, name="daily_sales"),
    path("weather-impact/", weather_impact, name="weather_impact"),
    path("weather-impact-detailed/", weather_impact_detailed, name="weather_impact_detailed"),
]
