from django.contrib import admin
from .models import ProductType, ProductCategory, ProductSubCategory, Product

@admin.register(ProductType)
class ProductTypeAdmin(admin.ModelAdmin):
    list_display = ("name", "has_subcategory")
    search_fields = ("name",)

@admin.register(ProductCategory)
class ProductCategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "product_type")
    list_filter = ("product_type",)
    search_fields = ("name",)

@admin.register(ProductSubCategory)
class ProductSubCategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "category")
    list_filter = ("category__product_type",)
    search_fields = ("name", "category__name")

@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("category", "subcategory", "unit")
    list_filter = ("category__product_type",)
    search_fields = ("category__name", "subcategory__name")
