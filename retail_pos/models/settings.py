"""Shop settings and external service defaults."""
import copy

DEFAULT_SETTINGS = {
    'shop': {
        'name': '',
        'address': '',
        'phone': '',
        'email': '',
        'gst': '',
        'logo': '',
    },
    'invoice': {
        'prefix': 'INV',
        'footer': 'Thank you for your business!',
        'showLogo': True,
        'showGST': True,
    },
    'appearance': {
        'primaryColor': '#667eea',
        'secondaryColor': '#764ba2',
        'enableAnimations': True,
        'compactMode': False,
    },
}

DEFAULT_EXTERNAL_SERVICES = {
    'emailEnabled': False,
    'smsEnabled': False,
    'cloudBackupEnabled': False,
    'barcodeScannerEnabled': False,
    'emailAddress': '',
}


def default_settings():
    """Fresh copy of the default settings."""
    return copy.deepcopy(DEFAULT_SETTINGS)


def default_external_services():
    """Fresh copy of the default external service flags."""
    return copy.deepcopy(DEFAULT_EXTERNAL_SERVICES)
