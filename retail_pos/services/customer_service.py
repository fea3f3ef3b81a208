"""Customer service - customers derived from the sale ledger."""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from retail_pos.exceptions import NotFoundError
from retail_pos.models import Sale


@dataclass
class Customer:
    """Aggregate of every sale recorded under one name and phone."""

    name: str
    phone: str
    email: str = ''
    total_orders: int = 0
    total_spent: Decimal = Decimal('0.00')
    first_visit: Optional[datetime] = None
    last_visit: Optional[datetime] = None
    orders: List[Sale] = field(default_factory=list)

    @property
    def key(self) -> str:
        return f"{self.name}_{self.phone}"

    def add_sale(self, sale: Sale) -> None:
        self.total_orders += 1
        self.total_spent += sale.total
        self.orders.append(sale)
        if self.last_visit is None or sale.timestamp > self.last_visit:
            self.last_visit = sale.timestamp
        if self.first_visit is None or sale.timestamp < self.first_visit:
            self.first_visit = sale.timestamp

    def to_dict(self, include_orders: bool = False) -> Dict[str, Any]:
        data = {
            'key': self.key,
            'name': self.name,
            'phone': self.phone,
            'email': self.email,
            'totalOrders': self.total_orders,
            'totalSpent': str(self.total_spent),
            'firstVisit': self.first_visit.isoformat() if self.first_visit else None,
            'lastVisit': self.last_visit.isoformat() if self.last_visit else None,
        }
        if include_orders:
            data['orders'] = [
                {
                    'id': sale.id,
                    'date': sale.timestamp.isoformat(),
                    'total': str(sale.total),
                    'items': sale.items_count,
                }
                for sale in self.orders
            ]
        return data


def aggregate_customers(sales: Iterable[Sale]) -> Dict[str, Customer]:
    """Group sales by customer name and phone. Recomputed on every call."""
    customers: Dict[str, Customer] = {}
    for sale in sales:
        key = sale.customer.key
        customer = customers.get(key)
        if customer is None:
            customer = Customer(
                name=sale.customer.name,
                phone=sale.customer.phone,
                email=sale.customer.email,
            )
            customers[key] = customer
        customer.add_sale(sale)
    return customers


def customer_stats(customers: Dict[str, Customer], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Customer count, customers first seen this month, and the top spender."""
    now = now or datetime.now()
    month_start = datetime(now.year, now.month, 1)

    top = None
    for customer in customers.values():
        if customer.total_spent > (top.total_spent if top else 0):
            top = customer

    return {
        'totalCustomers': len(customers),
        'newThisMonth': sum(
            1 for c in customers.values()
            if c.first_visit is not None and c.first_visit >= month_start
        ),
        'topCustomer': top.name if top else None,
    }


def search_customers(customers: Dict[str, Customer], term: str = '') -> List[Customer]:
    """Customers whose name, phone or email contains ``term``, highest spend first."""
    result = list(customers.values())
    if term:
        term = term.lower()
        result = [
            c for c in result
            if term in c.name.lower() or term in c.phone or term in c.email.lower()
        ]
    result.sort(key=lambda c: c.total_spent, reverse=True)
    return result


def customer_history(customers: Dict[str, Customer], key: str) -> Customer:
    """One customer with their orders."""
    customer = customers.get(key)
    if customer is None:
        raise NotFoundError('Customer not found')
    return customer
