"""
Sales service - checkout and invoice documents.

Checkout validates everything first and mutates only once every check has
passed, so a rejected checkout leaves the catalog, ledger and cart untouched.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from retail_pos.exceptions import BusinessLogicError, InsufficientStockError, NotFoundError
from retail_pos.models import CartLine, CustomerInfo, DiscountType, Product, Sale
from retail_pos.services.pricing_service import calculate_totals, TAX_RATE
from retail_pos.state import Catalog, Cart, SaleLedger
from retail_pos.utils.formatters import money, date_us, time_us
from retail_pos.utils.number_format import parse_quantity

logger = logging.getLogger(__name__)


def checkout(catalog: Catalog, cart: Cart, ledger: SaleLedger, customer: Optional[Dict] = None,
             tax_rate: Decimal = TAX_RATE, now: Optional[datetime] = None) -> Sale:
    """
    Complete the sale for the current cart.

    Steps:
    1. Reject an empty cart
    2. Re-validate every line against live stock
    3. Price the cart
    4. Decrement stock
    5. Append the immutable Sale to the ledger
    6. Clear the cart and its discount

    Args:
        catalog: Product catalog (stock is decremented)
        cart: Current cart (cleared on success)
        ledger: Sale ledger (the new sale is appended)
        customer: Optional {name, phone, email}
        tax_rate: Tax rate applied when the cart has tax enabled
        now: Sale timestamp (defaults to the current local time)

    Returns:
        The recorded Sale

    Raises:
        BusinessLogicError: if the cart is empty or a product no longer exists
        InsufficientStockError: if any line asks for more than is on hand
    """
    if cart.is_empty:
        raise BusinessLogicError('Cart is empty')

    stock_updates: List[tuple] = []
    for line in cart.lines:
        product = catalog.get(line.product_id)
        if product is None:
            raise BusinessLogicError(f'Product {line.name} is no longer available')
        if line.quantity > product.stock:
            raise InsufficientStockError(product.name, line.quantity, product.stock)
        stock_updates.append((product, line.quantity))

    totals = calculate_totals(cart.lines, cart.discount, cart.tax_enabled, tax_rate)
    timestamp = now or datetime.now()

    sale = Sale(
        id=ledger.next_id(),
        timestamp=timestamp,
        customer=CustomerInfo.from_dict(customer),
        items=tuple(
            CartLine(product_id=l.product_id, name=l.name, price=l.price, quantity=l.quantity)
            for l in cart.lines
        ),
        subtotal=totals.subtotal,
        discount_amount=totals.discount_amount,
        discount_type=cart.discount.type,
        discount_value=cart.discount.value,
        tax=totals.tax,
        total=totals.total,
        discount_code=cart.discount.code,
    )

    for product, quantity in stock_updates:
        product.stock -= quantity

    ledger.append(sale)
    cart.clear()

    logger.info(f"Sale #{sale.id} completed: {sale.items_count} lines, total {sale.total}")
    return sale


def low_stock_products(catalog: Catalog, sale: Sale, threshold: int) -> List[Product]:
    """Products sold in ``sale`` whose stock is now below ``threshold``."""
    sold_ids = {line.product_id for line in sale.items}
    return [p for p in catalog if p.id in sold_ids and p.stock < threshold]


def build_invoice(sale: Sale, settings: Dict[str, Any]) -> Dict[str, Any]:
    """
    Structured invoice document for a sale.

    The shop logo and GST number are included only when the invoice
    settings enable them.
    """
    shop = settings.get('shop', {})
    invoice = settings.get('invoice', {})

    header = {
        'name': shop.get('name') or '',
        'address': shop.get('address') or '',
        'phone': shop.get('phone') or '',
        'email': shop.get('email') or '',
    }
    if invoice.get('showLogo') and shop.get('logo'):
        header['logo'] = shop['logo']
    if invoice.get('showGST') and shop.get('gst'):
        header['gst'] = shop['gst']

    discount_label = 'Discount'
    if sale.discount_amount > 0 and sale.discount_type == DiscountType.PERCENTAGE:
        discount_label = f"Discount ({sale.discount_value.normalize():f}%)"

    return {
        'invoiceNumber': f"{invoice.get('prefix') or 'INV'}{sale.id}",
        'saleId': sale.id,
        'date': date_us(sale.timestamp),
        'time': time_us(sale.timestamp),
        'shop': header,
        'customer': {
            'name': sale.customer.name or 'Walk-in Customer',
            'phone': sale.customer.phone,
            'email': sale.customer.email,
        },
        'items': [
            {
                'name': line.name,
                'quantity': line.quantity,
                'price': money(line.price),
                'total': money(line.line_total),
            }
            for line in sale.items
        ],
        'subtotal': money(sale.subtotal),
        'discount': {
            'label': discount_label,
            'amount': money(sale.discount_amount),
            'code': sale.discount_code,
        } if sale.discount_amount > 0 else None,
        'tax': money(sale.tax),
        'total': money(sale.total),
        'footer': invoice.get('footer') or '',
    }


def invoices_for_sales(ledger: SaleLedger, sale_ids: Any, settings: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Invoice documents for a selection of sales, in selection order.

    Ids that match no sale are skipped.

    Raises:
        BusinessLogicError: nothing selected, or an id is not a whole number
        NotFoundError: none of the selected sales exist
    """
    if not isinstance(sale_ids, list) or not sale_ids:
        raise BusinessLogicError('No transactions selected')

    try:
        ids = [parse_quantity(sale_id, 'sale id') for sale_id in sale_ids]
    except ValueError as e:
        raise BusinessLogicError(str(e))

    sales = [ledger.get(sale_id) for sale_id in dict.fromkeys(ids)]
    sales = [sale for sale in sales if sale is not None]
    if not sales:
        raise NotFoundError('Selected transactions not found')

    return [build_invoice(sale, settings) for sale in sales]
