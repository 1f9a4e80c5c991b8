from django.db import models


class ProductType(models.Model):
    name = models.CharField(max_length=80, unique=True)  # ej: "Greens", "Kitchen"
    has_subcategory = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class ProductCategory(models.Model):
    product_type = models.ForeignKey(ProductType, on_delete=models.CASCADE, related_name="categories")
    name = models.CharField(max_length=120)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = (("product_type", "name"),)
        ordering = ["product_type__name", "name"]

    def __str__(self):
        return f"{self.product_type} / {self.name}"


class ProductSubCategory(models.Model):
    category = models.ForeignKey(ProductCategory, on_delete=models.CASCADE, related_name="subcategories")
    name = models.CharField(max_length=120)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = (("category", "name"),)
        ordering = ["category__product_type__name", "category__name", "name"]

    def __str__(self):
        return f"{self.category} / {self.name}"


class Product(models.Model):
    category = models.ForeignKey(ProductCategory, on_delete=models.PROTECT, related_name="products")
    subcategory = models.ForeignKey(
        ProductSubCategory, on_delete=models.PROTECT, related_name="products", null=True, blank=True
    )
    unit = models.CharField(max_length=30, default="unit")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = (("category", "subcategory"),)
        ordering = ["category__product_type__name", "category__name"]

    def __str__(self):
        sub = f" • {self.subcategory.name}" if self.subcategory_id else ""
        return f"{self.category.product_type.name} • {self.category.name}{sub} ({self.unit})"

    def to_dict(self):
        return {
            "id": self.id,
            "productType": self.category.product_type.name,
            "productCategory": self.category.name,
            "productSubCategory": self.subcategory.name if self.subcategory_id else None,
            "unit": self.unit,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
