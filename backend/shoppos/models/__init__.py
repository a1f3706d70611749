from .catalog import Category, Product
from .staff import Employee, User, USER_ROLES
from .transactions import LineKey, Sale, SaleItem, PurchaseInvoice, PurchaseItem

__all__ = [
    'Category', 'Product',
    'Employee', 'User', 'USER_ROLES',
    'LineKey', 'Sale', 'SaleItem', 'PurchaseInvoice', 'PurchaseItem',
]
