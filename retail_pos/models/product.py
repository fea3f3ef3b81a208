"""Product model."""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from retail_pos.utils.number_format import parse_decimal, parse_quantity


@dataclass
class Product:
    """Catalog product. ``id`` never changes once assigned."""

    id: int
    name: str
    category: str
    price: Decimal
    stock: int
    barcode: str = ''
    description: str = ''
    quick_key: Optional[int] = None

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', stock={self.stock})>"

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'category': self.category,
            'price': str(self.price),
            'stock': self.stock,
            'barcode': self.barcode,
            'description': self.description,
            'quickKey': self.quick_key,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Product':
        quick_key = data.get('quickKey')
        return cls(
            id=int(data['id']),
            name=str(data['name']),
            category=str(data.get('category') or ''),
            price=parse_decimal(data['price'], 'price'),
            stock=parse_quantity(data['stock'], 'stock'),
            barcode=str(data.get('barcode') or ''),
            description=str(data.get('description') or ''),
            quick_key=int(quick_key) if quick_key not in (None, '') else None,
        )
