"""Promotion rule store - create, toggle, delete and load rules for pricing."""
import logging
from decimal import Decimal
from typing import Any, Dict, List

from app.models import PromotionRule
from app.exceptions import BusinessLogicError, NotFoundError
from app.services.pricing_service import PromotionKind, PromotionScope
from app.services.pricing_service import PromotionRule as PricingRule
from app.utils.number_format import parse_pe_amount
from app.utils.payload import require_object, text_field

logger = logging.getLogger(__name__)

DEFAULT_PROMOTIONS = [
    {'name': 'Liquidación Verano', 'kind': 'PERCENTAGE', 'value': '20', 'scope': 'COLLECTION', 'target': 'VERANO'},
    {'name': 'Descuento Polos', 'kind': 'FIXED_AMOUNT', 'value': '5', 'scope': 'PRODUCT_TYPE', 'target': 'POLO'},
]


def _get_rule(session, rule_id) -> PromotionRule:
    try:
        pk = int(rule_id)
    except (TypeError, ValueError):
        raise NotFoundError('Promoción no encontrada.')
    rule = session.get(PromotionRule, pk)
    if not rule:
        raise NotFoundError('Promoción no encontrada.')
    return rule


def create_promotion(session, data: Dict[str, Any]) -> PromotionRule:
    """
    Validate and store a new active rule.

    Classification targets are stored upper-cased so they line up with
    the catalog (VERANO, POLO, HOMBRE, ...). PRODUCT_NAME targets are kept
    as typed, since product names are matched as case-sensitive substrings.
    """
    data = require_object(data)
    name = text_field(data, 'name')
    kind = PromotionKind.parse(text_field(data, 'kind'))
    scope = PromotionScope.parse(text_field(data, 'scope'))
    target = text_field(data, 'target')

    if not name:
        raise BusinessLogicError('El nombre de la promoción es obligatorio.')
    if kind is None:
        raise BusinessLogicError('El tipo debe ser PERCENTAGE o FIXED_AMOUNT.')
    if scope is None:
        raise BusinessLogicError('Alcance inválido.')

    try:
        value = parse_pe_amount(data.get('value'))
    except ValueError as e:
        raise BusinessLogicError(f'Valor inválido: {e}')
    if value <= 0:
        raise BusinessLogicError('El valor debe ser mayor a 0.')
    if kind is PromotionKind.PERCENTAGE and value > 100:
        raise BusinessLogicError('El porcentaje debe estar entre 0 y 100.')

    if scope is PromotionScope.GLOBAL:
        target = None
    elif not target:
        raise BusinessLogicError('Debe indicar el objetivo de la promoción.')
    elif scope is not PromotionScope.PRODUCT_NAME:
        target = target.upper()

    rule = PromotionRule(
        name=name,
        kind=kind.value,
        value=value.quantize(Decimal('0.01')),
        scope=scope.value,
        target=target,
        is_active=True,
    )
    try:
        session.add(rule)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(f"Promotion created: id={rule.id} {kind.value} {value} {scope.value}={target}")
    return rule


def toggle_promotion(session, rule_id) -> PromotionRule:
    """Flip is_active."""
    rule = _get_rule(session, rule_id)
    rule.is_active = not rule.is_active
    session.commit()
    logger.info(f"Promotion {rule.id} active={rule.is_active}")
    return rule


def delete_promotion(session, rule_id) -> None:
    rule = _get_rule(session, rule_id)
    session.delete(rule)
    session.commit()
    logger.info(f"Promotion {rule_id} deleted")


def list_promotions(session, active_only: bool = False) -> List[PromotionRule]:
    """Rules in creation order (the order the pricing engine breaks ties with)."""
    query = session.query(PromotionRule)
    if active_only:
        query = query.filter(PromotionRule.is_active.is_(True))
    return query.order_by(PromotionRule.id.asc()).all()


def load_pricing_rules(session) -> List[PricingRule]:
    """Snapshot every stored rule for the pricing engine, oldest first."""
    return [rule.to_pricing_rule() for rule in list_promotions(session)]


def seed_default_promotions(session) -> int:
    """Insert the default rules when the table is empty. Returns how many were created."""
    if session.query(PromotionRule).first() is not None:
        return 0
    for data in DEFAULT_PROMOTIONS:
        create_promotion(session, data)
    return len(DEFAULT_PROMOTIONS)
