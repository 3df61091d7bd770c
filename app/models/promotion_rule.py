"""Promotion rule model."""
from sqlalchemy import Column, String, Boolean, Numeric, DateTime
from sqlalchemy.sql import func
from app.database import Base, BigIntPK
from app.services.pricing_service import PromotionRule as PricingRule


class PromotionRule(Base):
    """Promotion rule (regla de descuento automática)."""

    __tablename__ = 'promotion_rule'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    kind = Column(String(20), nullable=False)  # PERCENTAGE | FIXED_AMOUNT
    value = Column(Numeric(10, 2), nullable=False)
    scope = Column(String(20), nullable=False)  # GLOBAL | COLLECTION | PRODUCT_TYPE | GENDER | PRODUCT_NAME
    target = Column(String(120), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def to_pricing_rule(self) -> PricingRule:
        """Snapshot for the pricing engine. kind/scope stay raw so bad rows surface as warnings."""
        return PricingRule(
            id=str(self.id),
            kind=self.kind,
            value=self.value,
            scope=self.scope,
            target=self.target,
            is_active=bool(self.is_active),
            name=self.name,
        )

    def to_dict(self):
        return {
            'id': str(self.id),
            'name': self.name,
            'kind': self.kind,
            'value': str(self.value),
            'scope': self.scope,
            'target': self.target,
            'is_active': bool(self.is_active),
        }

    def __repr__(self):
        return f"<PromotionRule(id={self.id}, name='{self.name}', active={self.is_active})>"
