"""
Colaborador de taxonomía: ProductType -> ProductCategory -> ProductSubCategory.

resolve_or_create_* son idempotentes. Bajo requests concurrentes dos procesos
pueden intentar crear el mismo nombre: get_or_create atrapa el IntegrityError
del unique y vuelve a leer la fila ganadora, así que perder la carrera no es error.
"""
import logging

from core.exceptions import StockNotFound
from core.models import ProductCategory, ProductSubCategory, ProductType

logger = logging.getLogger(__name__)


class TaxonomyResolver:
    """
    Resuelve nombres a filas de taxonomía con cache por request.
    Con auto_create=False un nombre desconocido es StockNotFound.
    """

    def __init__(self, *, auto_create: bool = True):
        self.auto_create = auto_create
        self._types: dict[str, ProductType] = {}
        self._categories: dict[tuple[int, str], ProductCategory] = {}
        self._subcategories: dict[tuple[int, str], ProductSubCategory] = {}

    def product_type(self, name: str, *, index: int | None = None) -> ProductType:
        pt = self._types.get(name)
        if pt is None:
            pt = self._resolve(ProductType, {"name": name}, "productType", index,
                               defaults={"has_subcategory": False})
            self._types[name] = pt
        return pt

    def category(self, name: str, product_type: ProductType, *, index: int | None = None) -> ProductCategory:
        key = (product_type.id, name)
        cat = self._categories.get(key)
        if cat is None:
            cat = self._resolve(ProductCategory, {"name": name, "product_type": product_type},
                                "productCategory", index)
            self._categories[key] = cat
        return cat

    def subcategory(self, name: str, category: ProductCategory, *, index: int | None = None) -> ProductSubCategory:
        key = (category.id, name)
        sub = self._subcategories.get(key)
        if sub is None:
            sub = self._resolve(ProductSubCategory, {"name": name, "category": category},
                                "productSubCategory", index)
            self._subcategories[key] = sub
        return sub

    def _resolve(self, model, lookup, field, index, defaults=None):
        if not self.auto_create:
            try:
                return model.objects.get(**lookup)
            except model.DoesNotExist:
                raise StockNotFound(
                    f"{model.__name__} '{lookup['name']}' no existe.", field=field, index=index
                )

        obj, created = model.objects.get_or_create(defaults=defaults or {}, **lookup)
        if created:
            logger.info("Creado %s '%s'", model.__name__, obj)
        return obj


def resolve_or_create_type(name: str) -> int:
    return TaxonomyResolver().product_type(name.strip()).id


def resolve_or_create_category(name: str, type_id: int) -> int:
    try:
        product_type = ProductType.objects.get(pk=type_id)
    except ProductType.DoesNotExist:
        raise StockNotFound(f"ProductType {type_id} no existe.", field="productType")
    return TaxonomyResolver().category(name.strip(), product_type).id
