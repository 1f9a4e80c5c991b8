"""
Motor de agregación: convierte un stream (ya filtrado) de StockRecord en
acumulados por día, producto, ubicación o tipo de producto.

- Se acumula por registro; los ratios (salesPercentage, returnRate) se calculan
  recién sobre los totales finales.
- Los órdenes son estables: a igual valor, gana el orden de inserción.
- Funciona con cualquier objeto con los atributos de StockRecord (no toca la BD).
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from core.exceptions import StockValidationError
from stock.serializers import num

ZERO = Decimal("0")
GROUP_BY_CHOICES = ("day", "product", "location")


def _d(val) -> Decimal:
    if val is None:
        return ZERO
    return val if isinstance(val, Decimal) else Decimal(str(val))


def percentage(part, whole) -> float:
    whole = _d(whole)
    if whole <= 0:
        return 0.0
    return float(_d(part) / whole * 100)


@dataclass
class Rollup:
    count: int = 0
    total_stock: Decimal = ZERO
    total_sold: Decimal = ZERO
    total_returned: Decimal = ZERO
    total_remaining: Decimal = ZERO

    def add(self, rec):
        self.count += 1
        self.total_stock += _d(rec.total_stock)
        self.total_sold += _d(rec.sold_qty)
        self.total_returned += _d(rec.return_qty)
        self.total_remaining += _d(rec.remaining_qty)

    @property
    def sales_percentage(self) -> float:
        return percentage(self.total_sold, self.total_stock)

    @property
    def return_rate(self) -> float:
        return percentage(self.total_returned, self.total_stock)

    def totals_dict(self) -> dict:
        return {
            "count": self.count,
            "totalStock": num(self.total_stock),
            "totalSold": num(self.total_sold),
            "totalReturned": num(self.total_returned),
            "totalRemaining": num(self.total_remaining),
        }


@dataclass
class WeatherSnapshot:
    condition: str | None
    high_temp: Decimal | None
    low_temp: Decimal | None
    description: str | None

    @classmethod
    def from_record(cls, rec):
        return cls(
            condition=rec.weather_condition,
            high_temp=rec.weather_high_temp,
            low_temp=rec.weather_low_temp,
            description=rec.weather_description,
        )

    def to_dict(self) -> dict:
        return {
            "weatherCondition": self.condition,
            "weatherHighTemp": num(self.high_temp),
            "weatherLowTemp": num(self.low_temp),
            "weatherDescription": self.description,
        }


def _item_dict(rec, *, with_date=False, with_location=True) -> dict:
    out = {}
    if with_date:
        out["date"] = rec.date.isoformat()
    out.update({
        "productType": rec.product_type,
        "productName": rec.product_category,
        "totalStock": num(rec.total_stock),
        "soldQty": num(rec.sold_qty),
        "returnQty": num(rec.return_qty),
        "remainingQty": num(rec.remaining_qty),
        "unit": rec.unit,
    })
    if with_location:
        out["location"] = rec.location
    return out


@dataclass
class DayRollup(Rollup):
    day: date | None = None
    weather: WeatherSnapshot | None = None  # el del primer registro del día
    locations: dict = field(default_factory=dict)  # set ordenado
    items: list = field(default_factory=list)

    def add(self, rec):
        if self.weather is None:
            self.weather = WeatherSnapshot.from_record(rec)
        super().add(rec)
        self.locations.setdefault(rec.location, None)
        self.items.append(rec)

    def to_dict(self, *, with_items=True, with_weather=False) -> dict:
        out = {"date": self.day.isoformat(), **self.totals_dict()}
        out["salesPercentage"] = round(self.sales_percentage, 1)
        out["locations"] = list(self.locations)
        out["locationCount"] = len(self.locations)
        if with_items:
            out["items"] = [_item_dict(r) for r in self.items]
        if with_weather and self.weather is not None:
            out.update(self.weather.to_dict())
        return out


@dataclass
class ProductRollup(Rollup):
    product_type: str = ""
    product_category: str = ""
    product_sub_category: str | None = None
    unit: str = ""
    days: dict = field(default_factory=dict)
    locations: dict = field(default_factory=dict)

    def add(self, rec):
        if not self.unit:
            self.unit = rec.unit
        super().add(rec)
        self.days.setdefault(rec.date.isoformat(), None)
        self.locations.setdefault(rec.location, None)

    def to_dict(self) -> dict:
        out = {
            "productType": self.product_type,
            "productName": self.product_category,
            "productCategory": self.product_category,
            "unit": self.unit,
            **self.totals_dict(),
            "soldQty": num(self.total_sold),
            "returnQty": num(self.total_returned),
            "salesRate": round(self.sales_percentage, 1),
            "returnRate": round(self.return_rate, 1),
            "days": list(self.days),
            "dayCount": len(self.days),
            "locations": list(self.locations),
            "locationCount": len(self.locations),
        }
        if self.product_sub_category is not None:
            out["productSubCategory"] = self.product_sub_category
        return out


@dataclass
class LocationRollup(Rollup):
    location: str = ""
    product_types: dict = field(default_factory=dict)
    items: list = field(default_factory=list)

    def add(self, rec):
        super().add(rec)
        self.product_types.setdefault(rec.product_type, None)
        self.items.append(rec)

    def to_dict(self, *, with_items=True) -> dict:
        out = {
            "location": self.location,
            **self.totals_dict(),
            "recordCount": self.count,
            "salesPercentage": round(self.sales_percentage, 1),
            "productTypes": list(self.product_types),
            "productTypeCount": len(self.product_types),
        }
        if with_items:
            out["items"] = [_item_dict(r, with_date=True, with_location=False) for r in self.items]
        return out


@dataclass
class ProductTypeRollup(Rollup):
    product_type: str = ""

    def to_dict(self) -> dict:
        return {"productType": self.product_type, **self.totals_dict()}


# ---------------------------
# Agrupadores
# ---------------------------

def totals(records) -> Rollup:
    acc = Rollup()
    for rec in records:
        acc.add(rec)
    return acc


def group_by_day(records) -> list[DayRollup]:
    groups: dict[date, DayRollup] = {}
    for rec in records:
        g = groups.get(rec.date)
        if g is None:
            g = groups[rec.date] = DayRollup(day=rec.date)
        g.add(rec)
    return sorted(groups.values(), key=lambda g: g.day)


def group_by_product(records, *, order_by: str | None = "sold", with_subcategory: bool = False) -> list[ProductRollup]:
    """
    Clave compuesta tipo + categoría (+ subcategoría si with_subcategory).
    order_by: "sold" (más vendido primero), "returns" (más devuelto primero) o None.
    """
    groups: dict[tuple, ProductRollup] = {}
    for rec in records:
        sub = (rec.product_sub_category or "") if with_subcategory else None
        key = (rec.product_type, rec.product_category, sub)
        g = groups.get(key)
        if g is None:
            g = groups[key] = ProductRollup(
                product_type=rec.product_type,
                product_category=rec.product_category,
                product_sub_category=sub,
            )
        g.add(rec)

    out = list(groups.values())
    if order_by == "sold":
        out.sort(key=lambda g: g.total_sold, reverse=True)
    elif order_by == "returns":
        out.sort(key=lambda g: g.total_returned, reverse=True)
    return out


def group_by_location(records, *, order_by: str | None = None) -> list[LocationRollup]:
    groups: dict[str, LocationRollup] = {}
    for rec in records:
        loc = rec.location or "Unknown"
        g = groups.get(loc)
        if g is None:
            g = groups[loc] = LocationRollup(location=loc)
        g.add(rec)

    out = list(groups.values())
    if order_by == "sold":
        out.sort(key=lambda g: g.total_sold, reverse=True)
    return out


def group_by_product_type(records) -> list[ProductTypeRollup]:
    groups: dict[str, ProductTypeRollup] = {}
    for rec in records:
        pt = rec.product_type or "Unknown"
        g = groups.get(pt)
        if g is None:
            g = groups[pt] = ProductTypeRollup(product_type=pt)
        g.add(rec)
    return list(groups.values())


def top_returns(records, limit: int = 20) -> list[ProductRollup]:
    """Productos con más devoluciones: solo returnQty > 0, orden desc, primeros `limit`."""
    groups = group_by_product(records, order_by="returns", with_subcategory=True)
    return [g for g in groups if g.total_returned > 0][:limit]


def aggregate(records, group_by: str = "day") -> list:
    if group_by == "day":
        return group_by_day(records)
    if group_by == "product":
        return group_by_product(records, order_by="sold")
    if group_by == "location":
        return group_by_location(records)
    raise StockValidationError(
        f"groupBy debe ser uno de {', '.join(GROUP_BY_CHOICES)}.", field="groupBy"
    )


def summarize(records) -> dict:
    """Totales generales + desgloses por tipo de producto, ubicación y fecha."""
    records = list(records)
    overall = totals(records)
    return {
        "totalItems": overall.count,
        "totalStock": num(overall.total_stock),
        "totalSold": num(overall.total_sold),
        "totalReturned": num(overall.total_returned),
        "totalRemaining": num(overall.total_remaining),
        "byProductType": [g.to_dict() for g in group_by_product_type(records)],
        "byLocation": [
            {"location": g.location, **g.totals_dict()} for g in group_by_location(records)
        ],
        "byDate": [
            {"date": g.day.isoformat(), **g.totals_dict()} for g in group_by_day(records)
        ],
    }
