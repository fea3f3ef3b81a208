"""Sale, cart line and discount models."""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Tuple

from retail_pos.utils.formatters import parse_timestamp
from retail_pos.utils.number_format import parse_decimal, parse_quantity


class DiscountType:
    """Discount kinds."""
    PERCENTAGE = 'percentage'
    FIXED = 'fixed'

    ALL = (PERCENTAGE, FIXED)


@dataclass
class Discount:
    """Discount applied to the whole cart."""

    type: str = DiscountType.PERCENTAGE
    value: Decimal = Decimal('0')
    code: str = ''

    @property
    def is_active(self) -> bool:
        return self.value > 0

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'value': str(self.value), 'code': self.code}


@dataclass
class CartLine:
    """Cart line. ``price`` is the product price when the line was added."""

    product_id: int
    name: str
    price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.product_id,
            'name': self.name,
            'price': str(self.price),
            'quantity': self.quantity,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CartLine':
        return cls(
            product_id=int(data['id']),
            name=str(data.get('name') or ''),
            price=parse_decimal(data['price'], 'price'),
            quantity=parse_quantity(data['quantity']),
        )


@dataclass(frozen=True)
class CustomerInfo:
    """Customer details captured at checkout."""

    name: str = ''
    phone: str = ''
    email: str = ''

    @property
    def key(self) -> str:
        return f"{self.name}_{self.phone or ''}"

    def to_dict(self) -> Dict[str, Any]:
        data = {'name': self.name, 'phone': self.phone}
        if self.email:
            data['email'] = self.email
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CustomerInfo':
        if not isinstance(data, dict):
            data = {}
        return cls(
            name=str(data.get('name') or ''),
            phone=str(data.get('phone') or ''),
            email=str(data.get('email') or ''),
        )


@dataclass(frozen=True)
class Sale:
    """Completed sale. Never modified after checkout."""

    id: int
    timestamp: datetime
    customer: CustomerInfo
    items: Tuple[CartLine, ...]
    subtotal: Decimal
    discount_amount: Decimal
    discount_type: str
    discount_value: Decimal
    tax: Decimal
    total: Decimal
    discount_code: str = field(default='')

    def __repr__(self):
        return f"<Sale(id={self.id}, total={self.total}, items={len(self.items)})>"

    @property
    def items_count(self) -> int:
        return len(self.items)

    def quantity_of(self, product_id: int) -> int:
        """Units of one product in this sale."""
        return sum(line.quantity for line in self.items if line.product_id == product_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'date': self.timestamp.isoformat(),
            'customer': self.customer.to_dict(),
            'items': [line.to_dict() for line in self.items],
            'subtotal': str(self.subtotal),
            'discount': str(self.discount_amount),
            'discountType': self.discount_type,
            'discountValue': str(self.discount_value),
            'discountCode': self.discount_code,
            'tax': str(self.tax),
            'total': str(self.total),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Sale':
        return cls(
            id=int(data['id']),
            timestamp=parse_timestamp(data['date']),
            customer=CustomerInfo.from_dict(data.get('customer')),
            items=tuple(CartLine.from_dict(item) for item in data.get('items', [])),
            subtotal=parse_decimal(data.get('subtotal', 0), 'subtotal'),
            discount_amount=parse_decimal(data.get('discount') or 0, 'discount'),
            discount_type=data.get('discountType') or DiscountType.PERCENTAGE,
            discount_value=parse_decimal(data.get('discountValue') or 0, 'discountValue'),
            tax=parse_decimal(data.get('tax', 0), 'tax'),
            total=parse_decimal(data.get('total', 0), 'total'),
            discount_code=str(data.get('discountCode') or ''),
        )
