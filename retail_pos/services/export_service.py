"""
Export service - transactions CSV, customers CSV and forecast report JSON.

Exports are generated for download and never parsed back. Every CSV field
is double-quoted; dates use M/D/YYYY and times h:MM:SS AM/PM.
"""
import csv
import io
import json
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from retail_pos.exceptions import BusinessLogicError
from retail_pos.models import Sale
from retail_pos.services.customer_service import Customer
from retail_pos.utils.formatters import money, date_us, time_us

TRANSACTION_HEADERS = [
    'Invoice ID', 'Date', 'Time', 'Customer Name', 'Customer Phone',
    'Items Count', 'Subtotal', 'Discount', 'Tax', 'Total',
]
CUSTOMER_HEADERS = [
    'Name', 'Phone', 'Email', 'Total Orders', 'Total Spent', 'First Visit', 'Last Visit',
]


def _write_csv(headers: List[str], rows: Iterable[List[Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator='\n')
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue()


def export_filename(kind: str, extension: str, now: Optional[datetime] = None) -> str:
    """E.g. transactions_2026-01-12.csv"""
    return f"{kind}_{(now or datetime.now()).date().isoformat()}.{extension}"


def transactions_csv(sales: List[Sale], invoice_prefix: str = 'INV') -> str:
    """
    CSV of the given sales, in the order given.

    Raises:
        BusinessLogicError: if there are no sales to export
    """
    if not sales:
        raise BusinessLogicError('No transactions to export')

    rows = (
        [
            f"{invoice_prefix}{sale.id}",
            date_us(sale.timestamp),
            time_us(sale.timestamp),
            sale.customer.name,
            sale.customer.phone,
            sale.items_count,
            money(sale.subtotal),
            money(sale.discount_amount),
            money(sale.tax),
            money(sale.total),
        ]
        for sale in sales
    )
    return _write_csv(TRANSACTION_HEADERS, rows)


def customers_csv(customers: Dict[str, Customer]) -> str:
    """
    CSV of every customer, in first-seen order.

    Raises:
        BusinessLogicError: if there are no customers to export
    """
    if not customers:
        raise BusinessLogicError('No customers to export')

    rows = (
        [
            c.name,
            c.phone,
            c.email,
            c.total_orders,
            money(c.total_spent),
            date_us(c.first_visit),
            date_us(c.last_visit),
        ]
        for c in customers.values()
    )
    return _write_csv(CUSTOMER_HEADERS, rows)


def forecast_report_json(forecast: Dict[str, Any], now: Optional[datetime] = None) -> str:
    """Forecast report document, indented by 2."""
    report = {
        'generatedAt': (now or datetime.now()).isoformat(),
        'lowStockAlerts': forecast['lowStockAlerts'],
        'reorderSuggestions': forecast['reorderSuggestions'],
        'demandPredictions': forecast['demandPredictions'],
        'salesTrends': forecast['salesTrends'],
    }
    return json.dumps(report, indent=2)
