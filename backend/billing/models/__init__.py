from .customers import Customer
from .inventory import Product, StockQuantity
from .invoices import Invoice, InvoiceLine, SettlementEntry
from .documents import DocumentSequence

__all__ = [
    'Customer',
    'Product', 'StockQuantity',
    'Invoice', 'InvoiceLine', 'SettlementEntry',
    'DocumentSequence',
]
