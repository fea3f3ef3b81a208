"""Customers blueprint - customers derived from the sale ledger."""
from flask import Blueprint, Response, jsonify, request

from retail_pos.decorators.permissions import require_permission
from retail_pos.middleware import get_state
from retail_pos.services import customer_service, export_service

customers_bp = Blueprint('customers', __name__, url_prefix='/customers')


def _customers():
    state = get_state()
    with state.lock:
        return customer_service.aggregate_customers(state.ledger.snapshot())


@customers_bp.route('', methods=['GET'])
@require_permission('manager')
def list_customers():
    """Customers matching ?search=, highest spend first, with summary stats."""
    customers = _customers()
    term = (request.args.get('search') or '').strip()
    return jsonify({
        'customers': [c.to_dict() for c in customer_service.search_customers(customers, term)],
        'stats': customer_service.customer_stats(customers),
    })


@customers_bp.route('/export', methods=['GET'])
@require_permission('manager')
def export_customers():
    content = export_service.customers_csv(_customers())
    filename = export_service.export_filename('customers', 'csv')
    return Response(
        content,
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename={filename}'}
    )


@customers_bp.route('/<path:customer_key>', methods=['GET'])
@require_permission('manager')
def customer_history(customer_key):
    """One customer and their orders. The key is ``name_phone``."""
    customer = customer_service.customer_history(_customers(), customer_key)
    return jsonify({'customer': customer.to_dict(include_orders=True)})
