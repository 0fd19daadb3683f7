from .base import Base
from .entities import (  # noqa: F401
    Product,
    InventoryTransaction,
    IncomeEntry,
    ExpenseEntry,
    SalesOrder,
    OrderItem,
)
