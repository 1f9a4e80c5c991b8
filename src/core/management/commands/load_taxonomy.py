import json, sys
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from core.models import Product
from core.services.taxonomy import TaxonomyResolver

class Command(BaseCommand):
    help = ("Carga/actualiza la taxonomía de productos desde JSON con campos: "
            "productType, productCategory, productSubCategory (opcional), unit (opcional).")

    def add_arguments(self, parser):
        parser.add_argument("json_path", nargs="?", help="Ruta al JSON. Si se omite, lee de STDIN.")

    @transaction.atomic
    def handle(self, *args, **opts):
        path = opts.get("json_path")
        try:
            if path:
                with open(path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            else:
                data = json.load(sys.stdin)
        except (OSError, ValueError) as e:
            raise CommandError(f"No pude leer el JSON: {e}")

        if not isinstance(data, list):
            raise CommandError("El JSON debe ser una lista.")

        required = {"productType", "productCategory"}
        resolver = TaxonomyResolver(auto_create=True)
        created = existing = 0

        for i, row in enumerate(data, 1):
            if not isinstance(row, dict) or not required.issubset(row):
                faltan = required - set(row if isinstance(row, dict) else ())
                raise CommandError(f"Fila {i}: faltan columnas {faltan}")

            type_name = str(row["productType"]).strip()
            cat_name = str(row["productCategory"]).strip()
            sub_name = str(row.get("productSubCategory") or "").strip()
            if not type_name or not cat_name:
                raise CommandError(f"Fila {i}: productType y productCategory no pueden estar vacíos")

            pt = resolver.product_type(type_name)
            cat = resolver.category(cat_name, pt)
            sub = None
            if sub_name:
                sub = resolver.subcategory(sub_name, cat)
                if not pt.has_subcategory:
                    pt.has_subcategory = True
                    pt.save(update_fields=["has_subcategory"])

            _, is_new = Product.objects.get_or_create(
                category=cat, subcategory=sub,
                defaults={"unit": str(row.get("unit") or "unit").strip()},
            )
            created += int(is_new)
            existing += int(not is_new)

        self.stdout.write(self.style.SUCCESS(
            f"OK: productos creados={created}, existentes={existing}"
        ))
