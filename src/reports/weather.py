"""
Impacto del clima en las ventas.

Trabaja sobre acumulados por día (group_by_day). Los días sin ventas se
descartan antes de promediar para no hundir la línea base. El clima de cada
día es el snapshot del primer registro de ese día.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal

from stock.serializers import num

from .aggregation import DayRollup

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"


def qualifying_days(day_rollups) -> list[DayRollup]:
    return [d for d in day_rollups if d.total_sold > 0]


def _condition(day: DayRollup) -> str:
    cond = day.weather.condition if day.weather else None
    return cond or UNKNOWN


def _mean_temp(day: DayRollup) -> Decimal | None:
    w = day.weather
    if w is None or w.high_temp is None or w.low_temp is None:
        return None
    return (Decimal(str(w.high_temp)) + Decimal(str(w.low_temp))) / 2


def _avg(total, n) -> float:
    return float(total) / n if n else 0.0


@dataclass
class ConditionStats:
    condition: str
    days: int = 0
    total_sales: Decimal = Decimal("0")
    total_stock: Decimal = Decimal("0")
    temp_sum: Decimal = Decimal("0")
    temp_days: int = 0

    @property
    def avg_sales(self) -> float:
        return _avg(self.total_sales, self.days)

    @property
    def avg_temp(self) -> float | None:
        return _avg(self.temp_sum, self.temp_days) if self.temp_days else None

    def impact(self, overall_avg: float) -> float:
        """% de diferencia del promedio diario de esta condición contra el promedio general."""
        if overall_avg <= 0:
            return 0.0
        return (self.avg_sales - overall_avg) / overall_avg * 100


@dataclass
class WeatherImpact:
    days: list
    avg_sales: float
    total_sales: Decimal
    conditions: list
    excluded_temperature_days: int

    def to_dict(self) -> dict:
        total_days = len(self.days)
        return {
            "dailyData": [d.to_dict(with_items=False, with_weather=True) for d in self.days],
            "summary": {
                "totalDays": total_days,
                "avgSales": round(self.avg_sales, 1),
                "totalSales": num(self.total_sales),
                "excludedTemperatureDays": self.excluded_temperature_days,
                "weatherStats": [
                    {
                        "weatherCondition": c.condition,
                        "days": c.days,
                        "avgSales": round(c.avg_sales, 1),
                        "avgTemp": round(c.avg_temp, 1) if c.avg_temp is not None else None,
                        "totalSales": num(c.total_sales),
                        "salesPerDay": round(c.avg_sales),
                        "impact": round(c.impact(self.avg_sales), 1),
                        "percentage": round(c.days / total_days * 100, 1) if total_days else 0,
                    }
                    for c in self.conditions
                ],
            },
        }


def analyze_weather_impact(day_rollups) -> WeatherImpact:
    days = qualifying_days(day_rollups)
    total_sales = sum((d.total_sold for d in days), Decimal("0"))
    avg_sales = _avg(total_sales, len(days))

    stats: dict[str, ConditionStats] = {}
    excluded = 0
    for d in days:
        cond = _condition(d)
        s = stats.get(cond)
        if s is None:
            s = stats[cond] = ConditionStats(condition=cond)
        s.days += 1
        s.total_sales += d.total_sold
        s.total_stock += d.total_stock

        t = _mean_temp(d)
        if t is None:
            excluded += 1
        else:
            s.temp_sum += t
            s.temp_days += 1

    if excluded:
        logger.info("Clima: %s de %s días sin máxima/mínima, fuera del promedio de temperatura",
                    excluded, len(days))

    return WeatherImpact(
        days=days,
        avg_sales=avg_sales,
        total_sales=total_sales,
        conditions=list(stats.values()),
        excluded_temperature_days=excluded,
    )


@dataclass
class LowSalesDay:
    day: DayRollup
    ratio: float  # ventas del día / promedio del período
    is_critical: bool

    def to_dict(self) -> dict:
        d = self.day
        return {
            "date": d.day.isoformat(),
            "soldQty": num(d.total_sold),
            "totalStock": num(d.total_stock),
            "salesPercentage": round(d.sales_percentage, 1),
            "salesPercentageOfAvg": round(self.ratio * 100, 1),
            "isCritical": self.is_critical,
            **(d.weather.to_dict() if d.weather else {}),
        }


@dataclass
class LowSalesReport:
    days: list
    avg_sales: float
    threshold: float
    low_days: list = field(default_factory=list)
    by_condition: list = field(default_factory=list)

    def to_dict(self) -> dict:
        total = len(self.days)
        return {
            "summary": {
                "totalDays": total,
                "lowSalesDays": len(self.low_days),
                "lowSalesPercentage": round(len(self.low_days) / total * 100, 1) if total else 0,
                "avgSales": round(self.avg_sales, 1),
                "threshold": self.threshold,
            },
            "lowSalesDays": [ld.to_dict() for ld in self.low_days],
            "weatherImpact": [
                {
                    "condition": c.condition,
                    "lowSalesDays": c.days,
                    "avgSalesDuringLow": round(c.avg_sales, 1),
                    "impact": round(c.impact(self.avg_sales), 1),
                }
                for c in self.by_condition
            ],
            "allDays": [
                {
                    "date": d.day.isoformat(),
                    "soldQty": num(d.total_sold),
                    **({k: v for k, v in d.weather.to_dict().items() if k != "weatherDescription"}
                       if d.weather else {}),
                }
                for d in self.days
            ],
        }


def find_low_sales_days(day_rollups, threshold: float = 50, critical: float = 30) -> LowSalesReport:
    """
    Día de ventas bajas: ventas / promedio < threshold% (crítico si < critical%).
    threshold y critical van en porcentaje (50 = la mitad del promedio).
    """
    days = qualifying_days(day_rollups)
    total_sales = sum((d.total_sold for d in days), Decimal("0"))
    avg_sales = _avg(total_sales, len(days))
    report = LowSalesReport(days=days, avg_sales=avg_sales, threshold=float(threshold))
    if avg_sales <= 0:
        return report

    stats: dict[str, ConditionStats] = {}
    for d in days:
        ratio = float(d.total_sold) / avg_sales
        if ratio >= float(threshold) / 100:
            continue
        report.low_days.append(LowSalesDay(day=d, ratio=ratio, is_critical=ratio * 100 < float(critical)))

        cond = _condition(d)
        s = stats.get(cond)
        if s is None:
            s = stats[cond] = ConditionStats(condition=cond)
        s.days += 1
        s.total_sales += d.total_sold
        s.total_stock += d.total_stock

    report.by_condition = list(stats.values())
    return report
