"""
Forecast service - sales velocity, demand trend and reorder recommendations.

A simple linear heuristic over the sale ledger, not a statistical model.
Velocity and trend are kept as Fractions so the coverage ceilings are exact
(ceil(3/30 * 30) must be 3, not 4).
"""
import math
from datetime import datetime, timedelta
from decimal import Decimal
from fractions import Fraction
from typing import Any, Dict, Iterable, List, Optional

from retail_pos.exceptions import BusinessLogicError
from retail_pos.models import Product, Sale
from retail_pos.state import Catalog
from retail_pos.utils.number_format import parse_quantity

VELOCITY_WINDOW_DAYS = 30
TREND_WINDOW_DAYS = 60
TRENDS_WINDOW_DAYS = 90
REORDER_COVERAGE_DAYS = 30
PREDICTION_COVERAGE_DAYS = 45

LOW_STOCK_THRESHOLD = 10
LOW_STOCK_TARGET = 50
MIN_REORDER = 20
MAX_CONFIDENCE = 90

# Trend used when the prior window had no sales but the recent one does.
# Unvalidated heuristic, kept as-is.
NEW_DEMAND_TREND = Fraction(1, 2)


def _units_sold(sales: Iterable[Sale], product_id: int, start: datetime,
                end: Optional[datetime] = None) -> int:
    """Units of a product sold at or after ``start`` and, if given, before ``end``."""
    return sum(
        sale.quantity_of(product_id)
        for sale in sales
        if sale.timestamp >= start and (end is None or sale.timestamp < end)
    )


def sales_velocity(sales: List[Sale], product_id: int, now: datetime) -> Fraction:
    """Units per day over the trailing 30 days."""
    start = now - timedelta(days=VELOCITY_WINDOW_DAYS)
    return Fraction(_units_sold(sales, product_id, start), VELOCITY_WINDOW_DAYS)


def product_trend(sales: List[Sale], product_id: int, now: datetime) -> Fraction:
    """
    Relative change between the last 60 days and the 60 days before.

    Returns 1/2 when only the recent window has sales and 0 when neither does.
    """
    recent_start = now - timedelta(days=TREND_WINDOW_DAYS)
    prior_start = recent_start - timedelta(days=TREND_WINDOW_DAYS)

    recent = _units_sold(sales, product_id, recent_start)
    prior = _units_sold(sales, product_id, prior_start, recent_start)

    if prior == 0:
        return NEW_DEMAND_TREND if recent > 0 else Fraction(0)
    return Fraction(recent - prior, prior)


def low_stock_alerts(products: Iterable[Product], threshold: int = LOW_STOCK_THRESHOLD) -> List[Dict[str, Any]]:
    """Products with stock below ``threshold`` and how much to reorder."""
    return [
        {
            'id': p.id,
            'name': p.name,
            'currentStock': p.stock,
            'suggestedReorder': max(LOW_STOCK_TARGET - p.stock, MIN_REORDER),
        }
        for p in products
        if p.stock < threshold
    ]


def reorder_suggestions(products: Iterable[Product], sales: List[Sale], now: datetime) -> List[Dict[str, Any]]:
    """
    Products whose 30-day coverage exceeds current stock, largest shortfall first.

    Products with no sales in the velocity window are never suggested.
    """
    suggestions = []
    for product in products:
        velocity = sales_velocity(sales, product.id, now)
        if velocity <= 0:
            continue
        suggested_stock = math.ceil(velocity * REORDER_COVERAGE_DAYS)
        reorder_amount = suggested_stock - product.stock
        if reorder_amount <= 0:
            continue
        suggestions.append({
            'id': product.id,
            'name': product.name,
            'currentStock': product.stock,
            'suggestedStock': suggested_stock,
            'reorderAmount': reorder_amount,
            'velocity': float(velocity),
        })

    suggestions.sort(key=lambda item: item['reorderAmount'], reverse=True)
    return suggestions


def demand_predictions(products: Iterable[Product], sales: List[Sale], now: datetime) -> Dict[str, Dict[str, Any]]:
    """Per-product predicted velocity, confidence and 45-day recommended stock."""
    predictions = {}
    for product in products:
        velocity = sales_velocity(sales, product.id, now)
        trend = product_trend(sales, product.id, now)
        predicted = velocity * (1 + trend)
        predictions[str(product.id)] = {
            'name': product.name,
            'currentVelocity': float(velocity),
            'predictedVelocity': float(predicted),
            'trend': float(trend),
            'confidence': float(min(abs(trend) * 100, MAX_CONFIDENCE)),
            'recommendedStock': math.ceil(predicted * PREDICTION_COVERAGE_DAYS),
        }
    return predictions


def week_start(moment: datetime) -> datetime:
    """Sunday that starts the week containing ``moment``."""
    days_since_sunday = (moment.weekday() + 1) % 7
    return datetime.combine(moment.date() - timedelta(days=days_since_sunday), datetime.min.time())


def sales_trends(sales: Iterable[Sale], now: datetime) -> Dict[str, Dict[str, Any]]:
    """Revenue and transaction count per week over the last 90 days, keyed YYYY-MM-DD."""
    start = now - timedelta(days=TRENDS_WINDOW_DAYS)
    weeks: Dict[str, Dict[str, Any]] = {}

    for sale in sales:
        if sale.timestamp < start:
            continue
        key = week_start(sale.timestamp).date().isoformat()
        bucket = weeks.setdefault(key, {'total': Decimal('0'), 'transactions': 0})
        bucket['total'] += sale.total
        bucket['transactions'] += 1

    return {
        key: {'total': str(value['total']), 'transactions': value['transactions']}
        for key, value in sorted(weeks.items())
    }


def build_forecast(catalog: Catalog, sales: List[Sale], now: Optional[datetime] = None,
                   low_stock_threshold: int = LOW_STOCK_THRESHOLD) -> Dict[str, Any]:
    """Full forecast: alerts, reorder suggestions, demand predictions and weekly trends."""
    now = now or datetime.now()
    products = list(catalog)
    return {
        'lowStockAlerts': low_stock_alerts(products, low_stock_threshold),
        'reorderSuggestions': reorder_suggestions(products, sales, now),
        'demandPredictions': demand_predictions(products, sales, now),
        'salesTrends': sales_trends(sales, now),
    }


def reorder_product(catalog: Catalog, product_id: int, quantity: Any) -> Product:
    """
    Add received units to a product's stock.

    Raises:
        NotFoundError: unknown product
        BusinessLogicError: quantity is not a whole number >= 1
    """
    product = catalog.require(product_id)
    try:
        amount = parse_quantity(quantity)
    except ValueError as e:
        raise BusinessLogicError(str(e))
    if amount < 1:
        raise BusinessLogicError('Reorder quantity must be at least 1')

    product.stock += amount
    return product
