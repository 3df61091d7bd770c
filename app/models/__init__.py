"""Models package - exports all SQLAlchemy models."""
from app.models.promotion_rule import PromotionRule
from app.models.sale import Sale, SaleStatus, PaymentStatus, Department
from app.models.sale_line import SaleLine

__all__ = [
    'PromotionRule',
    'Sale', 'SaleStatus', 'PaymentStatus', 'Department', 'SaleLine',
]
