"""Sales blueprint - checkout, sale details and invoices."""
from flask import Blueprint, current_app, jsonify, request, send_file

from retail_pos.blueprints.cart import tax_rate
from retail_pos.blueprints.metrics import record_rejected_checkout, record_sale
from retail_pos.decorators.permissions import require_permission
from retail_pos.exceptions import BusinessLogicError
from retail_pos.middleware import get_state, json_response, persist
from retail_pos.services import sales_service
from retail_pos.services.email_service import notify_low_stock
from retail_pos.services.invoice_pdf_service import render_invoice_pdf, render_invoices_pdf
from retail_pos.services.storage_service import DATA_KEYS

sales_bp = Blueprint('sales', __name__, url_prefix='/sales')


@sales_bp.route('/checkout', methods=['POST'])
@require_permission('cashier')
def checkout():
    """
    Complete the sale for the current cart.

    Body: {customer: {name, phone, email}} (optional)

    Returns the sale and its invoice. Low-stock notifications go out after
    the sale is recorded; a failed notification never fails the checkout.
    """
    data = request.get_json(silent=True) or {}
    customer = data.get('customer') if isinstance(data.get('customer'), dict) else {}

    state = get_state()
    with state.lock:
        try:
            sale = sales_service.checkout(state.catalog, state.cart, state.ledger, customer, tax_rate())
        except BusinessLogicError:
            record_rejected_checkout()
            raise
        saved = persist(*DATA_KEYS)
        low_stock = sales_service.low_stock_products(
            state.catalog, sale, current_app.config.get('LOW_STOCK_THRESHOLD', 10)
        )
        invoice = sales_service.build_invoice(sale, state.settings)
        services = dict(state.external_services)
        shop_name = state.settings.get('shop', {}).get('name', '')

    record_sale(sale)
    notifications = notify_low_stock(services, low_stock, shop_name)

    return json_response({
        'message': 'Sale completed successfully',
        'sale': sale.to_dict(),
        'invoice': invoice,
        'lowStock': [p.to_dict() for p in low_stock],
        'notifications': notifications,
    }, saved, 201)


@sales_bp.route('/<int:sale_id>', methods=['GET'])
@require_permission('cashier')
def get_sale(sale_id):
    state = get_state()
    with state.lock:
        return jsonify({'sale': state.ledger.require(sale_id).to_dict()})


@sales_bp.route('/<int:sale_id>/invoice', methods=['GET'])
@require_permission('cashier')
def get_invoice(sale_id):
    state = get_state()
    with state.lock:
        sale = state.ledger.require(sale_id)
        return jsonify({'invoice': sales_service.build_invoice(sale, state.settings)})


@sales_bp.route('/<int:sale_id>/invoice.pdf', methods=['GET'])
@require_permission('cashier')
def download_invoice(sale_id):
    """Printable invoice."""
    state = get_state()
    with state.lock:
        invoice = sales_service.build_invoice(state.ledger.require(sale_id), state.settings)

    pdf_buffer = render_invoice_pdf(invoice)
    return send_file(
        pdf_buffer,
        mimetype='application/pdf',
        as_attachment=True,
        download_name=f"invoice_{invoice['invoiceNumber']}.pdf"
    )


@sales_bp.route('/invoices.pdf', methods=['POST'])
@require_permission('cashier')
def download_invoices():
    """Printable invoices for selected sales: {ids: [...]}, one per page."""
    data = request.get_json(silent=True) or {}
    state = get_state()
    with state.lock:
        invoices = sales_service.invoices_for_sales(state.ledger, data.get('ids'), state.settings)

    current_app.logger.info(f"Printing {len(invoices)} invoices")
    return send_file(
        render_invoices_pdf(invoices),
        mimetype='application/pdf',
        as_attachment=True,
        download_name='invoices.pdf'
    )
