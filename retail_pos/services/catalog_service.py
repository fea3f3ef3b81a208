"""Catalog service - product create, update, delete, listings and sample data."""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from retail_pos.exceptions import BusinessLogicError
from retail_pos.models import Product
from retail_pos.state import Catalog, Cart
from retail_pos.utils.number_format import parse_decimal, parse_quantity

logger = logging.getLogger(__name__)

SAMPLE_PRODUCTS = [
    (1, 'Laptop', 'Electronics', '74999', 10, 'High-performance laptop'),
    (2, 'Mouse', 'Electronics', '2249', 50, 'Wireless optical mouse'),
    (3, 'Keyboard', 'Electronics', '5999', 30, 'Mechanical keyboard'),
    (4, 'T-Shirt', 'Clothing', '1499', 100, 'Cotton t-shirt'),
    (5, 'Jeans', 'Clothing', '3749', 40, 'Denim jeans'),
    (6, 'Coffee', 'Food', '299', 200, 'Premium coffee beans'),
    (7, 'Sandwich', 'Food', '449', 50, 'Fresh sandwich'),
    (8, 'Notebook', 'Other', '224', 150, 'Spiral notebook'),
]


def _parse_quick_key(value) -> Optional[int]:
    if value in (None, ''):
        return None
    try:
        return parse_quantity(value, 'quick key')
    except ValueError as e:
        raise BusinessLogicError(str(e))


def _validate_product_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate and normalize product form data.

    Raises:
        BusinessLogicError: missing required field, or negative/invalid price or stock
    """
    name = (data.get('name') or '').strip()
    category = (data.get('category') or '').strip()
    if not name or not category or data.get('price') in (None, '') or data.get('stock') in (None, ''):
        raise BusinessLogicError('Please fill all required fields')

    try:
        price = parse_decimal(data['price'], 'price')
        stock = parse_quantity(data['stock'], 'stock')
    except ValueError as e:
        raise BusinessLogicError(str(e))

    if price < 0:
        raise BusinessLogicError('Price cannot be negative')
    if stock < 0:
        raise BusinessLogicError('Stock cannot be negative')

    return {
        'name': name,
        'category': category,
        'price': price,
        'stock': stock,
        'barcode': (data.get('barcode') or '').strip(),
        'description': (data.get('description') or '').strip(),
        'quick_key': _parse_quick_key(data.get('quickKey')),
    }


def create_product(catalog: Catalog, data: Dict[str, Any]) -> Product:
    fields = _validate_product_data(data)
    product = catalog.add(Product(id=catalog.next_id(), **fields))
    logger.info(f"Product created: {product.name} (id={product.id})")
    return product


def update_product(catalog: Catalog, product_id: int, data: Dict[str, Any]) -> Product:
    """Replace a product's editable fields. The id never changes."""
    product = catalog.require(product_id)
    for attr, value in _validate_product_data(data).items():
        setattr(product, attr, value)
    logger.info(f"Product updated: {product.name} (id={product.id})")
    return product


def delete_product(catalog: Catalog, cart: Cart, product_id: int) -> Product:
    """Remove a product and its cart line."""
    product = catalog.remove(product_id)
    cart.remove_line(product_id)
    logger.info(f"Product deleted: {product.name} (id={product.id})")
    return product


def _matches(product: Product, search: str, category: str) -> bool:
    if search:
        term = search.lower()
        if term not in product.name.lower() and term not in product.category.lower():
            return False
    if category and product.category != category:
        return False
    return True


def list_sellable(catalog: Catalog, search: str = '', category: str = '') -> List[Product]:
    """Products in stock, for the sale screen."""
    return [p for p in catalog if p.in_stock and _matches(p, search, category)]


def list_inventory(catalog: Catalog, search: str = '', category: str = '') -> List[Product]:
    """All products, including those out of stock."""
    return [p for p in catalog if _matches(p, search, category)]


def seed_sample_products(catalog: Catalog) -> int:
    """Load the sample products into an empty catalog. Returns the number added."""
    if len(catalog):
        return 0
    for pid, name, category, price, stock, description in SAMPLE_PRODUCTS:
        catalog.add(Product(
            id=pid,
            name=name,
            category=category,
            price=Decimal(price),
            stock=stock,
            description=description,
        ))
    logger.info(f"Seeded {len(SAMPLE_PRODUCTS)} sample products")
    return len(SAMPLE_PRODUCTS)
