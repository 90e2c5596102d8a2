from .records import StoredRecord
from .catalog import Product, StockLevel
from .orders import Order, LineItem, TimelineEntry

__all__ = [
    'StoredRecord',
    'Product', 'StockLevel',
    'Order', 'LineItem', 'TimelineEntry',
]
