# Overview: Pytest coverage for the pure report aggregators.

import pytest

from shoppos.config import Config
from shoppos.services.reporting_service import (
    DEFAULT_TOP_N,
    ReportData,
    build_report,
    compute_profit,
    filter_by_date_range,
    group_by_date,
    rank_by_quantity,
    sold_items_with_stock,
    summarize,
    total_salaries,
)
from shoppos.validation import ValidationError


def _txn(created_at, total, items=()):
    return {"created_at": created_at, "total_amount": total, "items": list(items)}


def _item(product_id, name, quantity, total_price=0):
    return {"product_id": product_id, "product_name": name, "quantity": quantity, "total_price": total_price}


@pytest.fixture
def sales():
    return [
        _txn("2024-01-01T09:00:00Z", 10.00, [_item(1, "A", 3, 6.00)]),
        _txn("2024-01-01T15:30:00Z", 5.00, [_item(2, "B", 5, 5.00)]),
        _txn("2024-01-02T11:00:00Z", 20.00, [_item(1, "A", 2, 4.00)]),
    ]


class TestGroupByDate:
    def test_buckets_in_ascending_order(self, sales):
        rows = group_by_date(filter_by_date_range(sales, "2024-01-01", "2024-01-02"))
        assert [(r["date"], r["count"], r["total_amount"]) for r in rows] == [
            ("2024-01-01", 2, 15.0),
            ("2024-01-02", 1, 20.0),
        ]

    def test_item_quantity(self, sales):
        rows = group_by_date(sales)
        assert [r["item_quantity"] for r in rows] == [8, 2]

    def test_input_order_does_not_matter(self, sales):
        assert group_by_date(list(reversed(sales))) == group_by_date(sales)

    def test_empty(self):
        assert group_by_date([]) == []

    def test_bucket_follows_reporting_timezone(self):
        # 23:30 UTC on Jan 1 is already Jan 2 in Tokyo
        rows = group_by_date([_txn("2024-01-01T23:30:00Z", 7)], tz="Asia/Tokyo")
        assert rows[0]["date"] == "2024-01-02"

    def test_input_not_mutated(self, sales):
        before = [dict(s) for s in sales]
        group_by_date(sales)
        assert sales == before


class TestFilterByDateRange:
    def test_bounds_are_whole_days(self):
        txns = [
            _txn("2024-01-01T00:00:00Z", 1),
            _txn("2024-01-02T23:59:59Z", 2),
            _txn("2024-01-03T00:00:00Z", 3),
        ]
        kept = filter_by_date_range(txns, "2024-01-01", "2024-01-02")
        assert [t["total_amount"] for t in kept] == [1, 2]

    def test_open_ended(self, sales):
        assert len(filter_by_date_range(sales)) == 3
        assert len(filter_by_date_range(sales, date_from="2024-01-02")) == 1
        assert len(filter_by_date_range(sales, date_to="2024-01-01")) == 2

    def test_bad_date(self, sales):
        with pytest.raises(ValidationError, match="from must be a date"):
            filter_by_date_range(sales, "01/02/2024")


class TestRankByQuantity:
    def test_ties_keep_first_encountered_order(self, sales):
        rows = rank_by_quantity(sales, top_n=2)
        assert [(r["product_id"], r["total_quantity"]) for r in rows] == [(1, 5), (2, 5)]

    def test_amounts_summed(self, sales):
        rows = rank_by_quantity(sales)
        assert rows[0]["total_amount"] == 10.0
        assert rows[1]["total_amount"] == 5.0

    def test_top_n_truncates(self, sales):
        assert len(rank_by_quantity(sales, top_n=1)) == 1
        assert rank_by_quantity(sales, top_n=0) == []

    def test_negative_limit(self, sales):
        with pytest.raises(ValidationError):
            rank_by_quantity(sales, top_n=-1)

    def test_latest_name_snapshot_wins(self):
        txns = [
            _txn("2024-01-01T09:00:00Z", 1, [_item(1, "Old name", 1)]),
            _txn("2024-01-02T09:00:00Z", 1, [_item(1, "New name", 1)]),
        ]
        assert rank_by_quantity(txns)[0]["name"] == "New name"

    def test_empty(self):
        assert rank_by_quantity([]) == []

    def test_default_limit_follows_config(self):
        txns = [_txn("2024-01-01T09:00:00Z", 1, [_item(pid, f"P{pid}", 1) for pid in range(DEFAULT_TOP_N + 5)])]
        assert DEFAULT_TOP_N == Config.REPORT_TOP_N
        assert len(rank_by_quantity(txns)) == DEFAULT_TOP_N


class TestProfit:
    def test_salary_charged_per_bucket(self):
        sales_by_date = [{"date": "2024-01-01", "total_amount": 100.0}]
        purchases_by_date = [
            {"date": "2024-01-01", "total_amount": 30.0},
            {"date": "2024-01-02", "total_amount": 10.0},
        ]
        rows = compute_profit(sales_by_date, purchases_by_date, 50)
        assert rows == [
            {"date": "2024-01-01", "sales": 100.0, "purchases": 30.0, "salaries": 50.0, "profit": 20.0},
            {"date": "2024-01-02", "sales": 0.0, "purchases": 10.0, "salaries": 50.0, "profit": -60.0},
        ]

    def test_empty(self):
        assert compute_profit([], [], 1000) == []

    def test_total_salaries(self):
        assert float(total_salaries([{"salary": 1000.10}, {"salary": 0.2}, {"salary": None}])) == pytest.approx(1000.30)


class TestSoldItemsAndSummary:
    def test_remaining_is_current_stock(self, sales):
        rows = sold_items_with_stock(sales, [{"id": 1, "stock": 7}])
        assert rows[0] == {"product_id": 1, "name": "A", "total_quantity": 5, "remaining": 7}
        assert rows[1]["remaining"] == 0

    def test_summary(self, sales):
        purchases = [_txn("2024-01-01T10:00:00Z", 12.5)]
        result = summarize(sales, purchases, [{"salary": 10}])
        assert result == {
            "sales_count": 3,
            "sales_total": 35.0,
            "purchases_count": 1,
            "purchases_total": 12.5,
            "salaries_total": 10.0,
            "net": 12.5,
        }


class TestBuildReport:
    def test_sales_report_filters_range(self, sales):
        report = build_report("sales", ReportData(sales=sales), date_from="2024-01-02", date_to="2024-01-02")
        assert report["from"] == "2024-01-02"
        assert [r["date"] for r in report["rows"]] == ["2024-01-02"]

    def test_profit_report(self, sales):
        data = ReportData(
            sales=sales,
            purchases=[_txn("2024-01-02T08:00:00Z", 5)],
            employees=[{"salary": 1}],
        )
        rows = build_report("profit", data)["rows"]
        assert [(r["date"], r["profit"]) for r in rows] == [("2024-01-01", 14.0), ("2024-01-02", 14.0)]

    def test_unknown_report(self):
        with pytest.raises(ValidationError):
            build_report("nope", ReportData())
