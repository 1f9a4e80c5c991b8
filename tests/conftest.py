"""
Fixtures compartidos: ítems de stock crudos (como los manda el frontend),
un cliente JSON y registros en memoria para probar la agregación sin BD.
"""
import json
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest


# =============================================================================
# DATOS DE EJEMPLO
# =============================================================================

@pytest.fixture
def make_item():
    """Ítem de lote con valores por defecto; se pisa lo que haga falta."""
    def _make(**overrides):
        item = {
            "date": "2024-03-10",
            "location": "Union Square",
            "productType": "Fruits",
            "productCategory": "Apples",
            "totalStock": 10,
            "unit": "lbs",
        }
        item.update(overrides)
        return item
    return _make


@pytest.fixture
def make_record():
    """Objeto con la forma de StockRecord, sin tocar la base."""
    def _make(day="2024-03-10", location="Union Square", product_type="Fruits",
              product_category="Apples", product_sub_category="", total=10, sold=0,
              returned=0, remaining=None, unit="lbs", weather="Sunny",
              high=None, low=None, description="Clear"):
        total, sold, returned = Decimal(str(total)), Decimal(str(sold)), Decimal(str(returned))
        return SimpleNamespace(
            date=date.fromisoformat(day),
            location=location,
            product_type=product_type,
            product_category=product_category,
            product_sub_category=product_sub_category,
            total_stock=total,
            sold_qty=sold,
            return_qty=returned,
            remaining_qty=Decimal(str(remaining)) if remaining is not None else total - sold - returned,
            unit=unit,
            weather_condition=weather,
            weather_high_temp=Decimal(str(high)) if high is not None else None,
            weather_low_temp=Decimal(str(low)) if low is not None else None,
            weather_description=description,
        )
    return _make


# =============================================================================
# CLIENTE HTTP
# =============================================================================

class JsonClient:
    def __init__(self, client):
        self.client = client

    def get(self, url, **params):
        return self.client.get(url, params)

    def post(self, url, body):
        return self.client.post(url, data=json.dumps(body), content_type="application/json")

    def put(self, url, body):
        return self.client.put(url, data=json.dumps(body), content_type="application/json")

    def delete(self, url):
        return self.client.delete(url)


@pytest.fixture
def api(client):
    return JsonClient(client)
