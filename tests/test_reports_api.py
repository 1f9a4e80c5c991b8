import pytest

from stock.services.reconciler import replace_day_batch

pytestmark = pytest.mark.django_db

RANGE = {"startDate": "2024-03-01", "endDate": "2024-03-31"}


@pytest.fixture
def march(make_item):
    def day(d, sold, weather, high, low, location="Union Square"):
        return make_item(date=d, location=location, totalStock=200, soldQty=sold,
                         weatherCondition=weather, weatherHighTemp=high, weatherLowTemp=low)

    replace_day_batch([day("2024-03-10", 100, "Sunny", 20, 10)])
    replace_day_batch([day("2024-03-11", 100, "Sunny", 24, 14)])
    replace_day_batch([day("2024-03-12", 10, "Rainy", 8, 4)])
    replace_day_batch([day("2024-03-12", 50, "Rainy", 8, 4, location="Grand Army Plaza")])


def test_sales_by_location_without_location(api, march):
    resp = api.get("/api/reports/sales-by-location/", **RANGE)
    assert resp.status_code == 200
    days = resp.json()
    assert [d["date"] for d in days] == ["2024-03-10", "2024-03-11", "2024-03-12"]
    assert days[2]["totalSold"] == 60
    assert days[2]["weatherCondition"] == "Rainy"


def test_sales_by_location_needs_range(api, march):
    resp = api.get("/api/reports/sales-by-location/", location="Union Square")
    assert resp.status_code == 400
    assert resp.json()["field"] == "startDate"


def test_location_comparison(api, march):
    resp = api.get("/api/reports/location-comparison/", month=3, year=2024)
    assert resp.status_code == 200
    assert [g["location"] for g in resp.json()] == ["Union Square", "Grand Army Plaza"]

    resp = api.get("/api/reports/location-comparison/", month=3, year=2024, locations="Grand Army Plaza")
    assert [g["location"] for g in resp.json()] == ["Grand Army Plaza"]


@pytest.mark.parametrize("params", [
    {"month": 13, "year": 2024},
    {"month": "x", "year": 2024},
    {"month": 3},
])
def test_location_comparison_validation(api, params):
    assert api.get("/api/reports/location-comparison/", **params).status_code == 400


def test_product_wise_requires_location(api, march):
    assert api.get("/api/reports/product-wise/", **RANGE).status_code == 400
    resp = api.get("/api/reports/product-wise/", location="Union Square", **RANGE)
    (product,) = resp.json()
    assert product["productName"] == "Apples"
    assert product["soldQty"] == 210
    assert product["dayCount"] == 3


def test_product_wise_returns(api, make_item):
    replace_day_batch([
        make_item(productCategory="Apples", totalStock=10, returnQty=2),
        make_item(productCategory="Pears", totalStock=10, returnQty=6),
        make_item(productCategory="Plums", totalStock=10, returnQty=0),
    ])
    assert api.get("/api/reports/product-wise-returns/", location="Union Square", **RANGE).status_code == 400

    resp = api.get("/api/reports/product-wise-returns/", location="Union Square", productType="Fruits", **RANGE)
    assert [p["productName"] for p in resp.json()] == ["Pears", "Apples"]


def test_daily_sales(api, march):
    resp = api.get("/api/reports/daily-sales/", location="Grand Army Plaza", **RANGE)
    (day,) = resp.json()
    assert day["totalSold"] == 50
    assert "items" not in day


def test_weather_impact(api, march):
    body = api.get("/api/reports/weather-impact/", location="Union Square", **RANGE).json()
    assert body["lowSalesThreshold"] == 50
    assert body["summary"]["totalDays"] == 3
    assert body["summary"]["avgSales"] == 70.0
    stats = {s["weatherCondition"]: s for s in body["summary"]["weatherStats"]}
    assert stats["Sunny"]["avgTemp"] == 17.0


def test_weather_impact_detailed(api, march):
    body = api.get("/api/reports/weather-impact-detailed/", location="Union Square", threshold=50, **RANGE).json()
    assert body["summary"]["lowSalesDays"] == 1
    assert body["lowSalesDays"][0]["date"] == "2024-03-12"
    assert body["lowSalesDays"][0]["isCritical"] is True


@pytest.mark.parametrize("threshold", ["abc", "-5", "nan", "inf", "-inf"])
def test_weather_impact_detailed_bad_threshold(api, march, threshold):
    resp = api.get("/api/reports/weather-impact-detailed/", location="Union Square", threshold=threshold, **RANGE)
    assert resp.status_code == 400
    assert resp.json()["field"] == "threshold"
