from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from p2p_pnl.domain.metrics import MetricsCalculator
from p2p_pnl.domain.models import DailyPoint
from p2p_pnl.domain.report import build_chart_payload


def _point(day, buy="0", sell="0", revenue="0"):
    return DailyPoint(date=day, buy=Decimal(buy), sell=Decimal(sell), revenue=Decimal(revenue))


def test_weighted_month_spread():
    points = [
        _point("2025-01-05", buy="1000", sell="0"),
        _point("2025-01-06", buy="0", sell="1100", revenue="100"),
        _point("2025-02-01", buy="500", sell="550", revenue="25"),
    ]

    months = MetricsCalculator.aggregate_by_month(points, weighted=True)

    assert [m.month for m in months] == ["Jan", "Feb"]
    jan = months[0]
    assert jan.month_index == 0
    assert jan.total_buy == Decimal("1000")
    assert jan.total_sell == Decimal("1100")
    assert jan.revenue == Decimal("100")
    assert jan.avg_spread == Decimal("0.10")
    assert months[1].avg_spread == Decimal("0.10")


def test_unweighted_month_spread_averages_rows_with_buys():
    points = [
        _point("2025-03-01", buy="100", sell="110"),   # 0.10
        _point("2025-03-02", buy="200", sell="260"),   # 0.30
        _point("2025-03-03", buy="0", sell="999"),     # ignored
    ]

    [march] = MetricsCalculator.aggregate_by_month(points, weighted=False)

    assert march.month == "Mar"
    assert march.avg_spread == Decimal("0.20")


def test_month_without_buys_has_zero_spread():
    points = [_point("2025-04-01", buy="0", sell="500")]
    for weighted in (True, False):
        [april] = MetricsCalculator.aggregate_by_month(points, weighted=weighted)
        assert april.avg_spread == 0


def test_invalid_dates_are_skipped():
    points = [_point("not-a-date", buy="1"), _point("2025-05-10", buy="10", sell="12")]
    months = MetricsCalculator.aggregate_by_month(points)
    assert [m.month_index for m in months] == [4]


def test_same_month_of_different_years_is_merged():
    points = [
        _point("2024-01-15", buy="100", sell="100", revenue="5"),
        _point("2025-01-15", buy="100", sell="120", revenue="15"),
    ]
    [jan] = MetricsCalculator.aggregate_by_month(points)
    assert jan.revenue == Decimal("20")
    assert jan.total_buy == Decimal("200")


def test_months_sorted_by_index():
    points = [_point("2025-12-01", buy="1"), _point("2025-02-01", buy="1"), _point("2025-07-01", buy="1")]
    assert [m.month for m in MetricsCalculator.aggregate_by_month(points)] == ["Feb", "Jul", "Dec"]


def test_revenue_for_range_is_inclusive():
    points = [
        _point("2025-01-01", revenue="10"),
        _point("2025-01-02", revenue="20"),
        _point("2025-01-03 06:20:29.325+00", revenue="30"),
        _point("2025-01-04", revenue="40"),
    ]
    total = MetricsCalculator.calculate_revenue_for_range(points, "2025-01-02", "2025-01-03")
    assert total == Decimal("50")


def test_revenue_windows():
    # 2025-06-18 is a Wednesday
    today = date(2025, 6, 18)
    points = [
        _point("2025-03-21", revenue="1000"),  # 89 days back, inside 90d
        _point("2025-03-20", revenue="5000"),  # outside every window
        _point("2025-05-20", revenue="300"),   # inside 30d
        _point("2025-06-01", revenue="200"),   # this month
        _point("2025-06-13", revenue="40"),    # Friday last week, inside 7d
        _point("2025-06-16", revenue="7.5"),   # Monday
        _point("2025-06-18", revenue="2.5"),   # today
        _point("2025-06-19", revenue="9999"),  # future
    ]

    windows = MetricsCalculator.revenue_windows(points, today=today)

    assert windows.this_week == Decimal("10.0")
    assert windows.this_month == Decimal("250.0")
    assert windows.last_7_days == Decimal("50.0")
    assert windows.last_30_days == Decimal("550.0")
    assert windows.last_90_days == Decimal("1550.0")
    assert windows.as_display() == {
        "thisWeek": "10",
        "thisMonth": "250",
        "last7Days": "50",
        "last30Days": "550",
        "last90Days": "1550",
    }


def test_revenue_windows_round_half_away_from_zero():
    today = date(2025, 6, 18)
    windows = MetricsCalculator.revenue_windows([_point("2025-06-18", revenue="-2.5")], today=today)
    assert windows.as_display()["last7Days"] == "-3"


def test_total_revenue():
    points = [_point("2025-01-01", revenue="10.25"), _point("2025-01-02", revenue="-0.25")]
    assert MetricsCalculator.total_revenue(points) == Decimal("10.00")


def test_filter_points_anchors_on_latest_point():
    points = [
        _point("2025-01-01"),
        _point("2025-01-24"),
        _point("2025-01-25"),
        _point("2025-01-31"),
    ]

    last_week = MetricsCalculator.filter_points_by_time_range(points, "7d")

    assert [p.date for p in last_week] == ["2025-01-25", "2025-01-31"]
    assert MetricsCalculator.filter_points_by_time_range(points, "30d") == points[1:]
    assert MetricsCalculator.filter_points_by_time_range([], "7d") == []


def test_volume_heatmap(make_order):
    orders = [
        make_order("BUY", "1", "100", "2025-06-16 09:15:00"),   # Monday 09h
        make_order("BUY", "1", "50", "2025-06-16 09:45:00"),    # Monday 09h
        make_order("BUY", "1", "30", "2025-06-22 23:00:00"),    # Sunday 23h
        make_order("SELL", "1", "500", "2025-06-16 09:30:00"),
        make_order("BUY", "1", "700", "2025-06-17 10:00:00", status="Canceled"),
    ]

    heatmap = MetricsCalculator.get_volume_heatmap(orders, "BUY")

    assert heatmap.grid[0][9] == Decimal("150")
    assert heatmap.grid[6][23] == Decimal("30")
    assert heatmap.total_volume == Decimal("180")
    assert heatmap.count == 3
    assert heatmap.max_value == Decimal("150")

    ranged = MetricsCalculator.get_volume_heatmap(
        orders, "buy", start=datetime(2025, 6, 20), end=datetime(2025, 6, 30)
    )
    assert ranged.count == 1
    assert ranged.max_value == Decimal("30")


def test_empty_heatmap_has_unit_max():
    heatmap = MetricsCalculator.get_volume_heatmap([], "SELL")
    assert heatmap.max_value == 1
    assert heatmap.count == 0


def test_equity_curve_tracks_drawdown():
    points = [
        _point("2025-01-01", revenue="100"),
        _point("2025-01-02", revenue="-30"),
        _point("2025-01-03", revenue="50"),
    ]

    curve = MetricsCalculator.get_equity_curve(points)

    assert list(curve["cumulative_revenue"]) == [100.0, 70.0, 120.0]
    assert list(curve["drawdown"]) == [0.0, -30.0, 0.0]


def test_empty_frames_have_columns():
    assert list(MetricsCalculator.get_equity_curve([]).columns) == [
        "date", "revenue", "cumulative_revenue", "drawdown"
    ]
    assert MetricsCalculator.points_to_frame([]).empty


def test_points_to_frame():
    frame = MetricsCalculator.points_to_frame([_point("2025-01-01", buy="10.5", revenue="1")])
    assert frame.iloc[0]["buy"] == 10.5
    assert frame.iloc[0]["date"] == "2025-01-01"


def test_chart_payload(make_order):
    orders = [
        make_order("BUY", "10", "1000", "2025-01-01 10:00:00"),
        make_order("SELL", "10", "1200", "2025-01-02 10:00:00"),
    ]

    payload = build_chart_payload(orders)

    assert payload["chartData"][1] == {"date": "2025-01-02", "buy": 0.0, "sell": 1200.0, "revenue": 200.0}
    assert payload["monthlySpread"] == [
        {"month": "Jan", "revenue": 200.0, "avgSpread": 0.2, "totalBuy": 1000.0, "totalSell": 1200.0}
    ]
