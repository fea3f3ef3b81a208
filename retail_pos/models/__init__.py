"""Models package - exports the persisted table and the domain records."""
from retail_pos.models.stored_value import StoredValue
from retail_pos.models.product import Product
from retail_pos.models.sale import Sale, CartLine, CustomerInfo, Discount, DiscountType
from retail_pos.models.user import User, UserRole
from retail_pos.models.settings import (
    DEFAULT_SETTINGS, DEFAULT_EXTERNAL_SERVICES, default_settings, default_external_services
)

__all__ = [
    'StoredValue',
    'Product', 'Sale', 'CartLine', 'CustomerInfo', 'Discount', 'DiscountType',
    'User', 'UserRole',
    'DEFAULT_SETTINGS', 'DEFAULT_EXTERNAL_SERVICES', 'default_settings', 'default_external_services',
]
