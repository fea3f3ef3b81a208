"""Settings service - shop, invoice and appearance settings, dark mode and external services."""
import copy
from typing import Any, Dict

from retail_pos.exceptions import BusinessLogicError
from retail_pos.models import DEFAULT_SETTINGS, DEFAULT_EXTERNAL_SERVICES, default_settings
from retail_pos.state import AppState
from retail_pos.utils.formatters import parse_bool


def _text(data: Dict[str, Any], key: str) -> str:
    return str(data.get(key) or '').strip()


def _flag(data: Dict[str, Any], key: str) -> bool:
    """A boolean field; missing or null counts as False."""
    if data.get(key) is None:
        return False
    try:
        return parse_bool(data[key], key)
    except ValueError as e:
        raise BusinessLogicError(str(e))


def merge_settings(stored: Dict[str, Any]) -> Dict[str, Any]:
    """Shallow merge of stored sections over the defaults."""
    settings = default_settings()
    for section, values in (stored or {}).items():
        if isinstance(values, dict) and isinstance(settings.get(section), dict):
            settings[section] = {**settings[section], **values}
        else:
            settings[section] = values
    return settings


def save_shop_settings(state: AppState, data: Dict[str, Any]) -> Dict[str, Any]:
    """Replace the shop section. The shop name is required."""
    shop = {key: _text(data, key) for key in DEFAULT_SETTINGS['shop']}
    if not shop['name']:
        raise BusinessLogicError('Shop name is required')
    state.settings['shop'] = shop
    return shop


def save_invoice_settings(state: AppState, data: Dict[str, Any]) -> Dict[str, Any]:
    """Replace the invoice section. An empty prefix falls back to INV."""
    invoice = {
        'prefix': _text(data, 'prefix') or 'INV',
        'footer': _text(data, 'footer'),
        'showLogo': _flag(data, 'showLogo'),
        'showGST': _flag(data, 'showGST'),
    }
    state.settings['invoice'] = invoice
    return invoice


def save_appearance_settings(state: AppState, data: Dict[str, Any]) -> Dict[str, Any]:
    defaults = DEFAULT_SETTINGS['appearance']
    appearance = {
        'primaryColor': _text(data, 'primaryColor') or defaults['primaryColor'],
        'secondaryColor': _text(data, 'secondaryColor') or defaults['secondaryColor'],
        'enableAnimations': _flag(data, 'enableAnimations'),
        'compactMode': _flag(data, 'compactMode'),
    }
    state.settings['appearance'] = appearance
    return appearance


def reset_settings(state: AppState) -> Dict[str, Any]:
    state.settings = default_settings()
    return state.settings


def reset_appearance(state: AppState) -> Dict[str, Any]:
    state.settings['appearance'] = copy.deepcopy(DEFAULT_SETTINGS['appearance'])
    return state.settings['appearance']


def toggle_dark_mode(state: AppState) -> bool:
    state.dark_mode = not state.dark_mode
    return state.dark_mode


def save_external_services(state: AppState, data: Dict[str, Any]) -> Dict[str, Any]:
    """Shallow merge of known external service flags."""
    updates = {}
    for key, default in DEFAULT_EXTERNAL_SERVICES.items():
        if key not in data:
            continue
        updates[key] = _text(data, key) if isinstance(default, str) else _flag(data, key)
    state.external_services = {**state.external_services, **updates}
    return state.external_services
