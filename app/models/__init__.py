from app.models.audit_log import AuditAction, AuditLog
from app.models.order import Order, OrderStatus
from app.models.product import Product
from app.models.user import User

__all__ = [
    "AuditAction",
    "AuditLog",
    "Order",
    "OrderStatus",
    "Product",
    "User",
]
