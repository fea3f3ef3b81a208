"""Forecast blueprint - inventory forecast, report export and reorders."""
from flask import Blueprint, Response, current_app, jsonify, request

from retail_pos.decorators.permissions import require_permission
from retail_pos.middleware import get_state, json_response, persist
from retail_pos.services import export_service, forecast_service
from retail_pos.services.storage_service import PRODUCTS

forecast_bp = Blueprint('forecast', __name__, url_prefix='/forecast')


def _build_forecast():
    state = get_state()
    with state.lock:
        return forecast_service.build_forecast(
            state.catalog,
            state.ledger.snapshot(),
            low_stock_threshold=current_app.config.get('LOW_STOCK_THRESHOLD', 10),
        )


@forecast_bp.route('', methods=['GET'])
@require_permission('manager')
def forecast():
    return jsonify(_build_forecast())


@forecast_bp.route('/export', methods=['GET'])
@require_permission('manager')
def export_forecast():
    content = export_service.forecast_report_json(_build_forecast())
    filename = export_service.export_filename('forecast_report', 'json')
    return Response(
        content,
        mimetype='application/json',
        headers={'Content-Disposition': f'attachment; filename={filename}'}
    )


@forecast_bp.route('/reorder/<int:product_id>', methods=['POST'])
@require_permission('manager')
def reorder(product_id):
    """Add received stock: {quantity}."""
    data = request.get_json(silent=True) or {}
    state = get_state()
    with state.lock:
        product = forecast_service.reorder_product(state.catalog, product_id, data.get('quantity'))
        saved = persist(PRODUCTS)
    return json_response({
        'message': f"Reordered {data.get('quantity')} units of {product.name}",
        'product': product.to_dict(),
    }, saved)
