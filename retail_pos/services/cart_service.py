"""Cart service - add, update and remove cart lines, discounts, quick keys and barcodes."""
import logging
from decimal import Decimal
from typing import Any, Dict, Optional

from retail_pos.exceptions import BusinessLogicError, NotFoundError, InsufficientStockError
from retail_pos.models import CartLine, Discount, DiscountType, Product
from retail_pos.services.pricing_service import calculate_totals, TAX_RATE
from retail_pos.state import Catalog, Cart
from retail_pos.utils.formatters import parse_bool
from retail_pos.utils.number_format import parse_decimal, parse_quantity

logger = logging.getLogger(__name__)


def add_to_cart(catalog: Catalog, cart: Cart, product_id: int, quantity: int = 1) -> CartLine:
    """
    Add units of a product, merging into an existing line.

    Raises:
        BusinessLogicError: product missing, out of stock, or quantity < 1
        InsufficientStockError: the line would exceed the product's stock
    """
    quantity = parse_quantity(quantity)
    if quantity < 1:
        raise BusinessLogicError('Quantity must be at least 1')

    product = catalog.get(product_id)
    if product is None or product.stock <= 0:
        raise BusinessLogicError('Product not available')

    line = cart.get_line(product_id)
    current = line.quantity if line else 0
    if current + quantity > product.stock:
        raise InsufficientStockError(product.name, current + quantity, product.stock)

    if line:
        line.quantity += quantity
    else:
        line = CartLine(
            product_id=product.id,
            name=product.name,
            price=product.price,
            quantity=quantity,
        )
        cart.lines.append(line)

    logger.debug(f"Cart: {product.name} x{line.quantity}")
    return line


def update_quantity(catalog: Catalog, cart: Cart, product_id: int, change: int) -> Optional[CartLine]:
    """
    Change a line's quantity by ``change``.

    A resulting quantity of zero or less removes the line (returns None).
    """
    line = cart.get_line(product_id)
    if line is None:
        raise NotFoundError('Product is not in the cart')
    return set_quantity(catalog, cart, product_id, line.quantity + parse_quantity(change, 'change'))


def set_quantity(catalog: Catalog, cart: Cart, product_id: int, quantity: int) -> Optional[CartLine]:
    """Set a line's quantity; zero or less removes the line."""
    quantity = parse_quantity(quantity)
    line = cart.get_line(product_id)
    if line is None:
        raise NotFoundError('Product is not in the cart')

    if quantity <= 0:
        cart.remove_line(product_id)
        return None

    product = catalog.get(product_id)
    available = product.stock if product else 0
    if quantity > available:
        raise InsufficientStockError(line.name, quantity, available)

    line.quantity = quantity
    return line


def remove_from_cart(cart: Cart, product_id: int) -> None:
    """Drop a product's line. Removing a product that is not in the cart is a no-op."""
    cart.remove_line(product_id)


def apply_discount(cart: Cart, discount_type: str, value: Any, code: str = '') -> Discount:
    """
    Replace the cart discount.

    Raises:
        BusinessLogicError: unknown type, value <= 0, or percentage above 100
    """
    if discount_type not in DiscountType.ALL:
        raise BusinessLogicError('Discount type must be percentage or fixed')

    try:
        amount = parse_decimal(value, 'discount value')
    except ValueError:
        raise BusinessLogicError('Please enter a valid discount value')

    if amount <= 0:
        raise BusinessLogicError('Please enter a valid discount value')
    if discount_type == DiscountType.PERCENTAGE and amount > 100:
        raise BusinessLogicError('Percentage discount cannot exceed 100%')

    cart.discount = Discount(type=discount_type, value=amount, code=(code or '').strip())
    return cart.discount


def clear_discount(cart: Cart) -> None:
    cart.reset_discount()


def set_tax_enabled(cart: Cart, enabled: bool) -> None:
    """Turn tax on or off. Only a real boolean is accepted."""
    try:
        cart.tax_enabled = parse_bool(enabled, 'enabled')
    except ValueError as e:
        raise BusinessLogicError(str(e))


def add_by_quick_key(catalog: Catalog, cart: Cart, quick_key: int) -> CartLine:
    """Add one unit of the product bound to a quick key."""
    quick_key = parse_quantity(quick_key, 'quick key')
    for product in catalog:
        if product.quick_key == quick_key:
            return add_to_cart(catalog, cart, product.id, 1)
    raise NotFoundError(f'No product on quick key {quick_key}')


def find_product_by_barcode(catalog: Catalog, barcode: str) -> Optional[Product]:
    """Exact barcode match first, then a case-insensitive name match."""
    code = (barcode or '').strip()
    if not code:
        return None

    for product in catalog:
        if product.barcode and product.barcode == code:
            return product

    lowered = code.lower()
    for product in catalog:
        if lowered in product.name.lower():
            return product
    return None


def scan_barcode(catalog: Catalog, cart: Cart, external_services: Dict, barcode: str) -> CartLine:
    """Add one unit of the scanned product. The scanner must be enabled."""
    if not external_services.get('barcodeScannerEnabled'):
        raise BusinessLogicError('Barcode scanner is not enabled')

    product = find_product_by_barcode(catalog, barcode)
    if product is None:
        raise NotFoundError('Product not found')
    return add_to_cart(catalog, cart, product.id, 1)


def cart_summary(cart: Cart, tax_rate: Decimal = TAX_RATE) -> Dict[str, Any]:
    """Lines, discount, tax flag and totals for display."""
    totals = calculate_totals(cart.lines, cart.discount, cart.tax_enabled, tax_rate)
    return {
        'items': [
            dict(line.to_dict(), lineTotal=str(line.line_total))
            for line in cart.lines
        ],
        'itemCount': sum(line.quantity for line in cart.lines),
        'discount': cart.discount.to_dict(),
        'taxEnabled': cart.tax_enabled,
        'totals': totals.to_dict(),
    }
