import pytest

from reports.aggregation import group_by_day
from reports.weather import analyze_weather_impact, find_low_sales_days


@pytest.fixture
def three_days(make_record):
    return group_by_day([
        make_record(day="2024-03-10", total=200, sold=100, weather="Sunny", high=20, low=10),
        make_record(day="2024-03-11", total=200, sold=100, weather="Sunny", high=24, low=14),
        make_record(day="2024-03-12", total=200, sold=10, weather="Rainy", high=8, low=4),
    ])


def test_low_sales_flags_only_the_weak_day(three_days):
    report = find_low_sales_days(three_days, threshold=50)
    assert [d.day.day.isoformat() for d in report.low_days] == ["2024-03-12"]
    assert report.avg_sales == pytest.approx(70)
    assert report.low_days[0].ratio == pytest.approx(10 / 70)


def test_critical_day(three_days):
    report = find_low_sales_days(three_days, threshold=50, critical=30)
    assert report.low_days[0].is_critical is True
    report = find_low_sales_days(three_days, threshold=50, critical=10)
    assert report.low_days[0].is_critical is False


def test_low_sales_report_shape(three_days):
    out = find_low_sales_days(three_days, threshold=50).to_dict()
    assert out["summary"]["totalDays"] == 3
    assert out["summary"]["lowSalesDays"] == 1
    assert out["summary"]["threshold"] == 50.0
    assert out["weatherImpact"][0]["condition"] == "Rainy"
    assert len(out["allDays"]) == 3
    assert "weatherDescription" not in out["allDays"][0]


def test_days_without_sales_are_ignored(make_record):
    days = group_by_day([
        make_record(day="2024-03-10", total=10, sold=10),
        make_record(day="2024-03-11", total=10, sold=0),
    ])
    impact = analyze_weather_impact(days)
    assert len(impact.days) == 1
    assert impact.avg_sales == pytest.approx(10)


def test_impact_by_condition(three_days):
    impact = analyze_weather_impact(three_days)
    stats = {c.condition: c for c in impact.conditions}
    assert stats["Sunny"].avg_sales == pytest.approx(100)
    assert stats["Sunny"].avg_temp == pytest.approx(17)
    assert stats["Rainy"].impact(impact.avg_sales) == pytest.approx((10 - 70) / 70 * 100)


def test_days_without_high_low_are_counted_not_averaged(make_record):
    days = group_by_day([
        make_record(day="2024-03-10", sold=5, weather="Cloudy", high=20, low=10),
        make_record(day="2024-03-11", sold=5, weather="Cloudy"),
    ])
    impact = analyze_weather_impact(days)
    assert impact.excluded_temperature_days == 1
    assert impact.conditions[0].avg_temp == pytest.approx(15)

    out = impact.to_dict()
    assert out["summary"]["excludedTemperatureDays"] == 1


def test_avg_temp_is_null_without_any_temperature(make_record):
    days = group_by_day([make_record(sold=5, weather="")])
    stats = analyze_weather_impact(days).to_dict()["summary"]["weatherStats"]
    assert stats[0]["weatherCondition"] == "Unknown"
    assert stats[0]["avgTemp"] is None


def test_empty_period():
    assert find_low_sales_days([]).low_days == []
    assert analyze_weather_impact([]).to_dict()["summary"]["totalDays"] == 0
