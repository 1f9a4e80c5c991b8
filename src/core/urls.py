from django.urls import path
from .views import (
    api_product_types,
    api_product_categories,
    api_product_subcategories,
    api_products,
    api_product_detail,
)

app_name = "core"

urlpatterns = [
    path("product-types/", api_product_types, name="product_types"),
    path("product-categories/", api_product_categories, name="product_categories"),
    path("product-subcategories/", api_product_subcategories, name="product_subcategories"),
    path("catalog/", api_products, name="products"),
    path("catalog/<int:pk>/", api_product_detail, name="product_detail"),
]
