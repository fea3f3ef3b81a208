"""Settings blueprint - shop settings, appearance, dark mode, external services and backup."""
from flask import Blueprint, jsonify, request

from retail_pos.decorators.permissions import require_permission
from retail_pos.middleware import get_state, get_store, json_response, persist
from retail_pos.services import settings_service
from retail_pos.services.backup_service import perform_cloud_backup
from retail_pos.services.storage_service import SETTINGS, EXTERNAL_SERVICES, DARK_MODE

settings_bp = Blueprint('settings', __name__, url_prefix='/settings')


def _data():
    return request.get_json(silent=True) or {}


@settings_bp.route('', methods=['GET'])
@require_permission('cashier')
def get_settings():
    state = get_state()
    with state.lock:
        return jsonify({
            'settings': state.settings,
            'externalServices': state.external_services,
            'darkMode': state.dark_mode,
        })


@settings_bp.route('/shop', methods=['PUT'])
@require_permission('admin')
def save_shop():
    state = get_state()
    with state.lock:
        shop = settings_service.save_shop_settings(state, _data())
        saved = persist(SETTINGS)
    return json_response({'message': 'Shop settings saved successfully', 'shop': shop}, saved)


@settings_bp.route('/invoice', methods=['PUT'])
@require_permission('admin')
def save_invoice():
    state = get_state()
    with state.lock:
        invoice = settings_service.save_invoice_settings(state, _data())
        saved = persist(SETTINGS)
    return json_response({'message': 'Invoice settings saved successfully', 'invoice': invoice}, saved)


@settings_bp.route('/appearance', methods=['PUT'])
@require_permission('admin')
def save_appearance():
    state = get_state()
    with state.lock:
        appearance = settings_service.save_appearance_settings(state, _data())
        saved = persist(SETTINGS)
    return json_response({'message': 'Appearance settings saved successfully', 'appearance': appearance}, saved)


@settings_bp.route('/appearance/reset', methods=['POST'])
@require_permission('admin')
def reset_appearance():
    state = get_state()
    with state.lock:
        appearance = settings_service.reset_appearance(state)
        saved = persist(SETTINGS)
    return json_response({'message': 'Appearance reset to default', 'appearance': appearance}, saved)


@settings_bp.route('/reset', methods=['POST'])
@require_permission('admin')
def reset_settings():
    state = get_state()
    with state.lock:
        settings = settings_service.reset_settings(state)
        saved = persist(SETTINGS)
    return json_response({'message': 'Settings reset to default', 'settings': settings}, saved)


@settings_bp.route('/dark-mode', methods=['POST'])
@require_permission('cashier')
def toggle_dark_mode():
    state = get_state()
    with state.lock:
        dark_mode = settings_service.toggle_dark_mode(state)
        saved = persist(DARK_MODE)
    return json_response({'darkMode': dark_mode}, saved)


@settings_bp.route('/external-services', methods=['PUT'])
@require_permission('admin')
def save_external_services():
    state = get_state()
    with state.lock:
        services = settings_service.save_external_services(state, _data())
        saved = persist(EXTERNAL_SERVICES)
    return json_response({'message': 'External services settings saved', 'externalServices': services}, saved)


@settings_bp.route('/backup', methods=['POST'])
@require_permission('admin')
def backup():
    result = perform_cloud_backup(get_state(), get_store())
    return json_response({'message': 'Cloud backup completed successfully', 'backup': result})
