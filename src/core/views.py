from django.db import IntegrityError
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from core.exceptions import StockNotFound, StockValidationError
from core.http import json_view, parse_json_body
from core.models import Product, ProductCategory, ProductSubCategory, ProductType


def _body_str(body, key):
    val = body.get(key) if isinstance(body, dict) else None
    val = "" if val is None else str(val).strip()
    if not val:
        raise StockValidationError(f"Falta '{key}'.", field=key)
    return val


def _type_dict(t):
    return {"id": t.id, "name": t.name, "hasSubcategory": t.has_subcategory}


def _category_dict(c):
    return {"id": c.id, "name": c.name, "productType": _type_dict(c.product_type)}


@json_view
@require_http_methods(["GET"])
def api_product_types(request):
    return JsonResponse([_type_dict(t) for t in ProductType.objects.order_by("name")], safe=False)


@json_view
@require_http_methods(["GET", "POST"])
def api_product_categories(request):
    if request.method == "POST":
        body = parse_json_body(request)
        type_name, name = _body_str(body, "productType"), _body_str(body, "name")
        try:
            pt = ProductType.objects.get(name=type_name)
        except ProductType.DoesNotExist:
            raise StockValidationError("Tipo de producto inválido.", field="productType")
        if ProductCategory.objects.filter(product_type=pt, name=name).exists():
            raise StockValidationError("La categoría ya existe.", field="name")
        try:
            cat = ProductCategory.objects.create(product_type=pt, name=name)
        except IntegrityError:
            raise StockValidationError("La categoría ya existe.", field="name")
        return JsonResponse(_category_dict(cat), status=201)

    qs = ProductCategory.objects.select_related("product_type").order_by("name")
    type_name = request.GET.get("type")
    if type_name:
        qs = qs.filter(product_type__name=type_name)
    return JsonResponse([_category_dict(c) for c in qs], safe=False)


@json_view
@require_http_methods(["GET", "POST"])
def api_product_subcategories(request):
    if request.method == "POST":
        body = parse_json_body(request)
        cat_name, name = _body_str(body, "productCategory"), _body_str(body, "name")
        cat_qs = ProductCategory.objects.filter(name=cat_name)
        type_name = body.get("productType")
        if type_name:
            cat_qs = cat_qs.filter(product_type__name=type_name)
        cat = cat_qs.select_related("product_type").first()
        if cat is None:
            raise StockValidationError("Categoría de producto inválida.", field="productCategory")
        if ProductSubCategory.objects.filter(category=cat, name=name).exists():
            raise StockValidationError("La subcategoría ya existe.", field="name")
        try:
            sub = ProductSubCategory.objects.create(category=cat, name=name)
        except IntegrityError:
            raise StockValidationError("La subcategoría ya existe.", field="name")
        return JsonResponse({"id": sub.id, "name": sub.name, "productCategory": _category_dict(cat)}, status=201)

    qs = ProductSubCategory.objects.select_related("category__product_type").order_by("name")
    cat_name = request.GET.get("category")
    if cat_name:
        qs = qs.filter(category__name=cat_name)
    items = [{"id": s.id, "name": s.name, "productCategory": _category_dict(s.category)} for s in qs]
    return JsonResponse(items, safe=False)


def _product_target(body, *, default_type=None):
    """(categoría, subcategoría, unidad) validadas contra la taxonomía."""
    if default_type and not (isinstance(body, dict) and body.get("productType")):
        type_name = default_type
    else:
        type_name = _body_str(body, "productType")
    cat_name = _body_str(body, "productCategory")
    sub_name = str(body.get("productSubCategory") or "").strip()
    unit = str(body.get("unit") or "").strip() or "unit"

    cat = (ProductCategory.objects.select_related("product_type")
           .filter(name=cat_name, product_type__name=type_name).first())
    if cat is None:
        if ProductCategory.objects.filter(name=cat_name).exists():
            raise StockValidationError("El tipo de producto no coincide con la categoría.", field="productType")
        raise StockValidationError("Categoría de producto inválida.", field="productCategory")

    sub = None
    if sub_name:
        sub = ProductSubCategory.objects.filter(category=cat, name=sub_name).first()
        if sub is None:
            raise StockValidationError("Subcategoría de producto inválida.", field="productSubCategory")
    return cat, sub, unit


@json_view
@require_http_methods(["GET", "POST"])
def api_products(request):
    if request.method == "POST":
        cat, sub, unit = _product_target(parse_json_body(request))
        if Product.objects.filter(category=cat, subcategory=sub).exists():
            raise StockValidationError("El producto ya existe.")
        product = Product.objects.create(category=cat, subcategory=sub, unit=unit)
        return JsonResponse(product.to_dict(), status=201)

    qs = Product.objects.select_related("category__product_type", "subcategory")
    return JsonResponse([p.to_dict() for p in qs], safe=False)


@json_view
@require_http_methods(["PUT", "DELETE"])
def api_product_detail(request, pk):
    try:
        product = Product.objects.select_related("category__product_type").get(pk=pk)
    except Product.DoesNotExist:
        raise StockNotFound("Producto no encontrado.", field="id")

    if request.method == "DELETE":
        product.delete()
        return JsonResponse({"message": "Producto borrado"})

    # sin productType se mantiene el tipo actual
    cat, sub, unit = _product_target(parse_json_body(request), default_type=product.category.product_type.name)
    if Product.objects.filter(category=cat, subcategory=sub).exclude(pk=product.pk).exists():
        raise StockValidationError("El producto ya existe.")
    product.category, product.subcategory, product.unit = cat, sub, unit
    product.save(update_fields=["category", "subcategory", "unit"])
    return JsonResponse(product.to_dict())
