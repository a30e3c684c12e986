from .catalog import Product, Customer
from .sales import Sale, SaleItem, Payment
from .inventory import StockMovement, InvoiceCounter
from .auth import User, LoginAudit

__all__ = [
    'Product', 'Customer',
    'Sale', 'SaleItem', 'Payment',
    'StockMovement', 'InvoiceCounter',
    'User', 'LoginAudit',
]
