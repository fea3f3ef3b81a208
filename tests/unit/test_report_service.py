"""
Unit tests for sales reports and the dashboard.
"""

import pytest
from datetime import date, datetime, timedelta

from retail_pos.exceptions import BusinessLogicError
from retail_pos.models import CustomerInfo
from retail_pos.services import report_service
from retail_pos.services.report_service import SaleFilter


@pytest.fixture
def sales(sale_factory):
    return [
        sale_factory(101, datetime(2026, 1, 14, 9, 0), [(1, 2, '10.00')], customer=CustomerInfo('Asha', '555')),
        sale_factory(102, datetime(2026, 1, 12, 12, 0), [(2, 1, '5.00')], customer=CustomerInfo('Ravi', '')),
        sale_factory(103, datetime(2026, 1, 2, 18, 0), [(1, 1, '10.00'), (3, 4, '1.00')]),
        sale_factory(104, datetime(2025, 12, 31, 23, 59), [(3, 1, '1.00')]),
    ]


class TestSaleFilter:

    def test_from_args_defaults(self):
        sale_filter = SaleFilter.from_args({})
        assert sale_filter == SaleFilter()

    def test_from_args_custom(self):
        sale_filter = SaleFilter.from_args({'search': ' asha ', 'range': 'Custom',
                                            'start': '2026-01-01', 'end': '2026-01-10'})
        assert sale_filter.search == 'asha'
        assert sale_filter.date_range == 'custom'
        assert sale_filter.start_date == date(2026, 1, 1)

    def test_unknown_range(self):
        with pytest.raises(BusinessLogicError):
            SaleFilter.from_args({'range': 'decade'})


class TestResolveDateRange:

    def test_week_runs_sunday_to_saturday(self, now):
        start, end = report_service.resolve_date_range(SaleFilter(date_range='week'), now)
        assert start == datetime(2026, 1, 11)
        assert end.date() == date(2026, 1, 17)

    def test_month(self, now):
        start, end = report_service.resolve_date_range(SaleFilter(date_range='month'), now)
        assert start == datetime(2026, 1, 1)
        assert end.date() == date(2026, 1, 31)

    def test_custom_missing_bound_means_no_filter(self, now):
        assert report_service.resolve_date_range(
            SaleFilter(date_range='custom', start_date=date(2026, 1, 1)), now) is None


class TestFilterSales:

    def test_empty_ledger(self, now):
        report = report_service.sales_report([], SaleFilter(), now)
        assert report['sales'] == []
        assert report['summary'] == {'todayTotal': '0.00', 'filteredTotal': '0.00', 'transactionCount': 0}
        assert report['topProducts'] == []

    def test_all_sorted_newest_first(self, sales, now):
        result = report_service.filter_sales(sales, SaleFilter(), now)
        assert [s.id for s in result] == [101, 102, 103, 104]

    def test_search_by_customer_or_id(self, sales, now):
        assert [s.id for s in report_service.filter_sales(sales, SaleFilter(search='ASHA'), now)] == [101]
        assert [s.id for s in report_service.filter_sales(sales, SaleFilter(search='103'), now)] == [103]

    @pytest.mark.parametrize('kind,expected', [
        ('today', [101]),
        ('week', [101, 102]),
        ('month', [101, 102, 103]),
    ])
    def test_named_ranges(self, sales, now, kind, expected):
        result = report_service.filter_sales(sales, SaleFilter(date_range=kind), now)
        assert [s.id for s in result] == expected

    def test_custom_range_is_inclusive(self, sales, now):
        sale_filter = SaleFilter(date_range='custom', start_date=date(2025, 12, 31), end_date=date(2026, 1, 2))
        assert [s.id for s in report_service.filter_sales(sales, sale_filter, now)] == [103, 104]

    def test_filtering_is_repeatable(self, sales, now):
        sale_filter = SaleFilter(date_range='month')
        first = report_service.sales_report(sales, sale_filter, now)
        assert report_service.sales_report(sales, sale_filter, now) == first


class TestSummary:

    def test_summary_metrics(self, sales, now):
        report = report_service.sales_report(sales, SaleFilter(date_range='week'), now)
        assert report['summary'] == {'todayTotal': '20.00', 'filteredTotal': '25.00', 'transactionCount': 2}

    def test_top_products_by_units(self, sales):
        top = report_service.top_products(sales)
        assert top == [
            {'name': 'Product 3', 'quantity': 5},
            {'name': 'Product 1', 'quantity': 3},
            {'name': 'Product 2', 'quantity': 1},
        ]


class TestDashboard:

    def test_dashboard(self, catalog, sales, now):
        data = report_service.dashboard(list(catalog), sales, now)

        assert data['todaySales'] == '20.00'
        assert data['transactionCount'] == 1
        assert data['totalProducts'] == 3
        assert data['lowStockCount'] == 3
        assert len(data['salesLast7Days']) == 7
        assert data['salesLast7Days'][0]['date'] == (now.date() - timedelta(days=6)).isoformat()
        assert data['salesLast7Days'][-1] == {'date': '2026-01-14', 'total': '20.00'}
        assert data['categorySales'] == {'Electronics': 4, 'Food': 5}
