"""
Report service - sale filtering, summary metrics, top products and dashboard.

All functions are pure over a ledger snapshot: calling them twice with the
same inputs gives the same ordered output.
"""
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from retail_pos.exceptions import BusinessLogicError
from retail_pos.models import Product, Sale
from retail_pos.utils.formatters import parse_date

DATE_RANGES = ('all', 'today', 'week', 'month', 'custom')
TOP_PRODUCTS_LIMIT = 3
DASHBOARD_DAYS = 7


@dataclass(frozen=True)
class SaleFilter:
    """Report filter: free-text search plus a named or custom date range."""

    search: str = ''
    date_range: str = 'all'
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @classmethod
    def from_args(cls, args) -> 'SaleFilter':
        """Build from request query args (search, range, start, end)."""
        date_range = (args.get('range') or 'all').strip().lower()
        if date_range not in DATE_RANGES:
            raise BusinessLogicError(f'Unknown date range: {date_range}')
        try:
            start = parse_date(args.get('start'))
            end = parse_date(args.get('end'))
        except ValueError as e:
            raise BusinessLogicError(str(e))
        return cls(
            search=(args.get('search') or '').strip(),
            date_range=date_range,
            start_date=start,
            end_date=end,
        )


def _end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max)


def resolve_date_range(sale_filter: SaleFilter, now: datetime) -> Optional[Tuple[datetime, datetime]]:
    """
    Inclusive (start, end) bounds for the filter, or None for no date filter.

    Weeks run Sunday through Saturday. A custom range missing either bound
    applies no date filter.
    """
    today = now.date()
    kind = sale_filter.date_range

    if kind == 'today':
        return datetime.combine(today, time.min), _end_of_day(today)

    if kind == 'week':
        sunday = today - timedelta(days=(today.weekday() + 1) % 7)
        return datetime.combine(sunday, time.min), _end_of_day(sunday + timedelta(days=6))

    if kind == 'month':
        first = today.replace(day=1)
        next_month = (first + timedelta(days=32)).replace(day=1)
        return datetime.combine(first, time.min), _end_of_day(next_month - timedelta(days=1))

    if kind == 'custom' and sale_filter.start_date and sale_filter.end_date:
        return datetime.combine(sale_filter.start_date, time.min), _end_of_day(sale_filter.end_date)

    return None


def filter_sales(sales: Iterable[Sale], sale_filter: SaleFilter, now: Optional[datetime] = None) -> List[Sale]:
    """
    Sales matching the search text and date range, newest first.

    The search matches the customer name or the sale id as a
    case-insensitive substring.
    """
    now = now or datetime.now()
    result = list(sales)

    if sale_filter.search:
        term = sale_filter.search.lower()
        result = [
            s for s in result
            if term in s.customer.name.lower() or term in str(s.id)
        ]

    bounds = resolve_date_range(sale_filter, now)
    if bounds:
        start, end = bounds
        result = [s for s in result if start <= s.timestamp <= end]

    # Stable sort keeps ledger order for equal timestamps
    result.sort(key=lambda s: s.timestamp, reverse=True)
    return result


def _sum_totals(sales: Iterable[Sale]) -> Decimal:
    return sum((s.total for s in sales), Decimal('0.00'))


def sales_on(sales: Iterable[Sale], day: date) -> List[Sale]:
    return [s for s in sales if s.timestamp.date() == day]


def top_products(sales: Iterable[Sale], limit: int = TOP_PRODUCTS_LIMIT) -> List[Dict[str, Any]]:
    """Best sellers by units, grouped by item name."""
    quantities: Dict[str, int] = OrderedDict()
    for sale in sales:
        for line in sale.items:
            quantities[line.name] = quantities.get(line.name, 0) + line.quantity

    ranked = sorted(quantities.items(), key=lambda item: item[1], reverse=True)
    return [{'name': name, 'quantity': qty} for name, qty in ranked[:limit]]


def summary_metrics(all_sales: List[Sale], filtered: List[Sale], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Today's revenue over the whole ledger plus totals for the filtered view."""
    now = now or datetime.now()
    return {
        'todayTotal': str(_sum_totals(sales_on(all_sales, now.date()))),
        'filteredTotal': str(_sum_totals(filtered)),
        'transactionCount': len(filtered),
    }


def sales_report(all_sales: List[Sale], sale_filter: SaleFilter, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Filtered sales with their summary and top products."""
    now = now or datetime.now()
    filtered = filter_sales(all_sales, sale_filter, now)
    return {
        'sales': [s.to_dict() for s in filtered],
        'summary': summary_metrics(all_sales, filtered, now),
        'topProducts': top_products(filtered),
    }


def dashboard(products: List[Product], sales: List[Sale], now: Optional[datetime] = None,
              low_stock_threshold: int = 10) -> Dict[str, Any]:
    """
    Dashboard figures.

    Returns:
        Dict with today's sales and transaction count, product and low-stock
        counts, a 7-day revenue series (oldest first) and units sold per
        category.
    """
    now = now or datetime.now()
    today_sales = sales_on(sales, now.date())

    series = []
    for offset in range(DASHBOARD_DAYS - 1, -1, -1):
        day = now.date() - timedelta(days=offset)
        series.append({'date': day.isoformat(), 'total': str(_sum_totals(sales_on(sales, day)))})

    # Units per category, using the product's current category
    categories: Dict[str, int] = OrderedDict()
    by_id = {p.id: p for p in products}
    for sale in sales:
        for line in sale.items:
            product = by_id.get(line.product_id)
            if product:
                categories[product.category] = categories.get(product.category, 0) + line.quantity

    return {
        'todaySales': str(_sum_totals(today_sales)),
        'transactionCount': len(today_sales),
        'totalProducts': len(products),
        'lowStockCount': sum(1 for p in products if p.stock < low_stock_threshold),
        'salesLast7Days': series,
        'categorySales': dict(categories),
    }
