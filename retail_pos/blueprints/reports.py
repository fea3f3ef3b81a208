"""Reports blueprint - filtered sales, transaction export and dashboard."""
from flask import Blueprint, Response, current_app, jsonify, request

from retail_pos.decorators.permissions import require_permission
from retail_pos.middleware import get_state
from retail_pos.services import export_service, report_service
from retail_pos.services.report_service import SaleFilter

reports_bp = Blueprint('reports', __name__)


@reports_bp.route('/reports', methods=['GET'])
@require_permission('manager')
def sales_report():
    """
    Filtered sales report.

    Query args:
        search: customer name or sale id substring
        range: all | today | week | month | custom
        start, end: YYYY-MM-DD bounds for the custom range
    """
    sale_filter = SaleFilter.from_args(request.args)
    state = get_state()
    with state.lock:
        sales = state.ledger.snapshot()
    return jsonify(report_service.sales_report(sales, sale_filter))


@reports_bp.route('/reports/export', methods=['GET'])
@require_permission('manager')
def export_transactions():
    """CSV of the sales matching the same filters as /reports."""
    sale_filter = SaleFilter.from_args(request.args)
    state = get_state()
    with state.lock:
        sales = state.ledger.snapshot()
        prefix = state.settings.get('invoice', {}).get('prefix') or 'INV'

    filtered = report_service.filter_sales(sales, sale_filter)
    content = export_service.transactions_csv(filtered, prefix)
    filename = export_service.export_filename('transactions', 'csv')
    current_app.logger.info(f"Exported {len(filtered)} transactions")
    return Response(
        content,
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename={filename}'}
    )


@reports_bp.route('/dashboard', methods=['GET'])
@require_permission('cashier')
def dashboard():
    state = get_state()
    with state.lock:
        products = list(state.catalog)
        sales = state.ledger.snapshot()
    return jsonify(report_service.dashboard(
        products, sales, low_stock_threshold=current_app.config.get('LOW_STOCK_THRESHOLD', 10)
    ))
