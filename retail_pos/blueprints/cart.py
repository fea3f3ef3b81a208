"""Cart blueprint - the point-of-sale cart."""
from decimal import Decimal

from flask import Blueprint, current_app, jsonify, request

from retail_pos.decorators.permissions import require_permission
from retail_pos.exceptions import BusinessLogicError
from retail_pos.middleware import get_state
from retail_pos.services import cart_service

cart_bp = Blueprint('cart', __name__, url_prefix='/cart')


def tax_rate() -> Decimal:
    return Decimal(str(current_app.config.get('TAX_RATE', '0.10')))


def _cart_response(state, message=None, status=200):
    body = {'status': 'success', 'cart': cart_service.cart_summary(state.cart, tax_rate())}
    if message:
        body['message'] = message
    return jsonify(body), status


def _int_arg(data, key, default=None):
    value = data.get(key, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BusinessLogicError(f'Invalid {key}')


@cart_bp.route('', methods=['GET'])
@require_permission('cashier')
def view_cart():
    state = get_state()
    with state.lock:
        return _cart_response(state)


@cart_bp.route('', methods=['DELETE'])
@require_permission('cashier')
def clear_cart():
    state = get_state()
    with state.lock:
        state.cart.clear()
        return _cart_response(state, 'Cart cleared')


@cart_bp.route('/items', methods=['POST'])
@require_permission('cashier')
def add_item():
    """Add units of a product: {productId, quantity = 1}."""
    data = request.get_json(silent=True) or {}
    product_id = _int_arg(data, 'productId')
    state = get_state()
    with state.lock:
        try:
            line = cart_service.add_to_cart(state.catalog, state.cart, product_id, data.get('quantity', 1))
        except ValueError as e:
            raise BusinessLogicError(str(e))
        return _cart_response(state, f'Added {line.name} to cart')


@cart_bp.route('/items/<int:product_id>', methods=['PATCH'])
@require_permission('cashier')
def update_item(product_id):
    """Change a line: {change: +/-n} or {quantity: n}. Zero removes the line."""
    data = request.get_json(silent=True) or {}
    state = get_state()
    with state.lock:
        try:
            if 'quantity' in data:
                cart_service.set_quantity(state.catalog, state.cart, product_id, data['quantity'])
            else:
                cart_service.update_quantity(state.catalog, state.cart, product_id, data.get('change', 0))
        except ValueError as e:
            raise BusinessLogicError(str(e))
        return _cart_response(state)


@cart_bp.route('/items/<int:product_id>', methods=['DELETE'])
@require_permission('cashier')
def remove_item(product_id):
    state = get_state()
    with state.lock:
        cart_service.remove_from_cart(state.cart, product_id)
        return _cart_response(state)


@cart_bp.route('/quick-key/<int:quick_key>', methods=['POST'])
@require_permission('cashier')
def quick_key(quick_key):
    state = get_state()
    with state.lock:
        line = cart_service.add_by_quick_key(state.catalog, state.cart, quick_key)
        return _cart_response(state, f'Added {line.name} to cart')


@cart_bp.route('/scan', methods=['POST'])
@require_permission('cashier')
def scan():
    data = request.get_json(silent=True) or {}
    state = get_state()
    with state.lock:
        line = cart_service.scan_barcode(
            state.catalog, state.cart, state.external_services, data.get('barcode') or ''
        )
        return _cart_response(state, f'Added {line.name} to cart')


@cart_bp.route('/discount', methods=['POST'])
@require_permission('cashier')
def apply_discount():
    """Apply {type: percentage|fixed, value, code}."""
    data = request.get_json(silent=True) or {}
    state = get_state()
    with state.lock:
        cart_service.apply_discount(state.cart, data.get('type'), data.get('value'), data.get('code') or '')
        return _cart_response(state, 'Discount applied')


@cart_bp.route('/discount', methods=['DELETE'])
@require_permission('cashier')
def clear_discount():
    state = get_state()
    with state.lock:
        cart_service.clear_discount(state.cart)
        return _cart_response(state, 'Discount removed')


@cart_bp.route('/tax', methods=['PUT'])
@require_permission('cashier')
def set_tax():
    data = request.get_json(silent=True) or {}
    state = get_state()
    with state.lock:
        cart_service.set_tax_enabled(state.cart, data.get('enabled', True))
        return _cart_response(state)
