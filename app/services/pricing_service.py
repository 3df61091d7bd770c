"""
Order pricing engine.

Pure function over a cart snapshot and a promotion rule set. It never reads
the database or the clock: callers load the rules (see promotion_service) and
build the line items (see sales_service) before calling it.
"""
import enum
import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from app.exceptions import PricingValidationError

logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')
ZERO = Decimal('0.00')
HUNDRED = Decimal('100')


class PromotionKind(str, enum.Enum):
    """How a promotion value is turned into a discount."""
    PERCENTAGE = 'PERCENTAGE'
    FIXED_AMOUNT = 'FIXED_AMOUNT'

    @classmethod
    def parse(cls, raw) -> Optional['PromotionKind']:
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            return None


class PromotionScope(str, enum.Enum):
    """Line-item attribute a promotion matches on."""
    GLOBAL = 'GLOBAL'
    COLLECTION = 'COLLECTION'
    PRODUCT_TYPE = 'PRODUCT_TYPE'
    GENDER = 'GENDER'
    PRODUCT_NAME = 'PRODUCT_NAME'

    @classmethod
    def parse(cls, raw) -> Optional['PromotionScope']:
        if isinstance(raw, cls):
            return raw
        key = str(raw).strip().upper()
        key = LEGACY_SCOPE_NAMES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            return None


# Names used by rules saved from the old POS screen
LEGACY_SCOPE_NAMES = {
    'TYPE': 'PRODUCT_TYPE',
    'PRODUCT': 'PRODUCT_NAME',
}


@dataclass(frozen=True)
class LineItem:
    """One product variant in the cart, snapshotted when it was added."""
    variant_id: str
    collection: str
    product_type: str
    gender: str
    product_name: str
    quantity: int
    unit_price: Decimal
    sku: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None

    @property
    def line_subtotal(self) -> Decimal:
        return _to_decimal(self.unit_price, 'unit_price') * self.quantity


@dataclass(frozen=True)
class PromotionRule:
    """Discount definition. kind/scope may be raw strings straight from storage."""
    id: str
    kind: Union[PromotionKind, str]
    value: Decimal
    scope: Union[PromotionScope, str]
    target: Optional[str] = None
    is_active: bool = True
    name: Optional[str] = None


@dataclass(frozen=True)
class LinePricing:
    """Per-line result."""
    variant_id: str
    line_subtotal: Decimal
    discount: Decimal
    promotion_id: Optional[str]

    @property
    def line_total(self) -> Decimal:
        return self.line_subtotal - self.discount


@dataclass(frozen=True)
class OrderTotals:
    """
    Pricing result for a cart.

    ``applied_promotion_ids`` holds only rules that won a line with a
    discount > 0, in order of first use. A rule that tied but lost to an
    earlier one is not listed.
    """
    subtotal: Decimal
    per_item_discount: Decimal
    global_discount: Decimal
    shipping_cost: Decimal
    total: Decimal
    applied_promotion_ids: Tuple[str, ...] = ()
    lines: Tuple[LinePricing, ...] = ()
    warnings: Tuple[str, ...] = field(default=(), compare=False)

    @property
    def discount_total(self) -> Decimal:
        """Promotions plus the manual global discount, as shown on the receipt."""
        return self.per_item_discount + self.global_discount

    def as_dict(self) -> Dict[str, Any]:
        return {
            'subtotal': str(self.subtotal),
            'per_item_discount': str(self.per_item_discount),
            'global_discount': str(self.global_discount),
            'discount_total': str(self.discount_total),
            'shipping_cost': str(self.shipping_cost),
            'total': str(self.total),
            'applied_promotion_ids': list(self.applied_promotion_ids),
            'lines': [
                {
                    'variant_id': line.variant_id,
                    'line_subtotal': str(line.line_subtotal),
                    'discount': str(line.discount),
                    'line_total': str(line.line_total),
                    'promotion_id': line.promotion_id,
                }
                for line in self.lines
            ],
            'warnings': list(self.warnings),
        }


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def _to_decimal(value, field_name: str) -> Decimal:
    """Convert to a finite Decimal or raise PricingValidationError."""
    if isinstance(value, bool) or value is None:
        raise PricingValidationError(field_name, 'debe ser un número')
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise PricingValidationError(field_name, 'debe ser un número')
    if number.is_nan() or number.is_infinite():
        raise PricingValidationError(field_name, 'debe ser un número finito')
    return number


def _non_negative(value, field_name: str) -> Decimal:
    number = _to_decimal(value, field_name)
    if number < 0:
        raise PricingValidationError(field_name, 'no puede ser negativo')
    return number


def _validate_line_items(line_items: Sequence[LineItem]) -> List[Tuple[LineItem, int, Decimal]]:
    validated = []
    seen = set()
    for idx, item in enumerate(line_items):
        prefix = f'line_items[{idx}]'
        qty = item.quantity
        if isinstance(qty, bool) or not isinstance(qty, int):
            raise PricingValidationError(f'{prefix}.quantity', 'debe ser un entero')
        if qty < 1:
            raise PricingValidationError(f'{prefix}.quantity', 'debe ser mayor a 0')
        price = _non_negative(item.unit_price, f'{prefix}.unit_price')
        if item.variant_id in seen:
            raise PricingValidationError(f'{prefix}.variant_id', f'variante repetida "{item.variant_id}"')
        seen.add(item.variant_id)
        validated.append((item, qty, price))
    return validated


def _resolve_rules(rules: Sequence[PromotionRule]) -> Tuple[list, List[str]]:
    """
    Keep active rules in input order with parsed kind/scope and checked value.

    Malformed rules are dropped with a warning; invalid numbers on a
    well-formed active rule fail the whole computation.
    """
    resolved = []
    warnings = []
    for idx, rule in enumerate(rules):
        if not rule.is_active:
            continue
        kind = PromotionKind.parse(rule.kind)
        scope = PromotionScope.parse(rule.scope)
        if kind is None or scope is None:
            message = f'Regla {rule.id} ignorada: tipo "{rule.kind}" o alcance "{rule.scope}" desconocido'
            logger.warning(message)
            warnings.append(message)
            continue
        value = _non_negative(rule.value, f'rules[{idx}].value')
        if kind is PromotionKind.PERCENTAGE and value > HUNDRED:
            raise PricingValidationError(f'rules[{idx}].value', 'el porcentaje debe estar entre 0 y 100')
        resolved.append((rule, kind, scope, value))
    return resolved, warnings


def rule_matches(scope: PromotionScope, target: Optional[str], item: LineItem) -> bool:
    """Exact, case-sensitive attribute match; PRODUCT_NAME is a substring match."""
    if scope is PromotionScope.GLOBAL:
        return True
    if target is None:
        return False
    if scope is PromotionScope.COLLECTION:
        return item.collection == target
    if scope is PromotionScope.PRODUCT_TYPE:
        return item.product_type == target
    if scope is PromotionScope.GENDER:
        return item.gender == target
    if scope is PromotionScope.PRODUCT_NAME:
        return target in (item.product_name or '')
    return False


def candidate_discount(kind: PromotionKind, value: Decimal, line_subtotal: Decimal, quantity: int) -> Decimal:
    """PERCENTAGE is off the line subtotal; FIXED_AMOUNT is per unit."""
    if kind is PromotionKind.PERCENTAGE:
        return line_subtotal * value / HUNDRED
    if kind is PromotionKind.FIXED_AMOUNT:
        return value * quantity
    return ZERO


def compute_order_totals(
    line_items: Sequence[LineItem],
    rules: Sequence[PromotionRule],
    global_discount=ZERO,
    shipping_cost=ZERO,
) -> OrderTotals:
    """
    Price a cart.

    Each line gets exactly one discount: the largest candidate among the
    active rules that match it. Discounts are never stacked. On equal
    candidates the first rule in ``rules`` order wins, so callers must pass
    rules in a stable order. The chosen discount is clamped to the line
    subtotal and the order total never goes below zero.

    Raises PricingValidationError for negative, NaN or otherwise invalid
    numbers; rules with an unknown kind or scope are skipped and reported in
    ``OrderTotals.warnings``.
    """
    validated = _validate_line_items(line_items)
    active_rules, warnings = _resolve_rules(rules)
    global_discount = _non_negative(global_discount, 'global_discount')
    shipping_cost = _non_negative(shipping_cost, 'shipping_cost')

    subtotal = ZERO
    per_item_discount = ZERO
    applied: List[str] = []
    lines: List[LinePricing] = []

    for item, qty, price in validated:
        line_subtotal = _money(price * qty)
        best = ZERO
        best_rule_id = None

        for rule, kind, scope, value in active_rules:
            if not rule_matches(scope, rule.target, item):
                continue
            candidate = candidate_discount(kind, value, line_subtotal, qty)
            # Strictly greater: first rule in input order keeps ties
            if candidate > best:
                best = candidate
                best_rule_id = rule.id

        discount = _money(min(max(best, ZERO), line_subtotal))
        if discount <= 0:
            best_rule_id = None
        elif best_rule_id not in applied:
            applied.append(best_rule_id)

        subtotal += line_subtotal
        per_item_discount += discount
        lines.append(LinePricing(
            variant_id=item.variant_id,
            line_subtotal=line_subtotal,
            discount=discount,
            promotion_id=best_rule_id,
        ))

    global_discount = _money(global_discount)
    shipping_cost = _money(shipping_cost)
    total = subtotal - per_item_discount - global_discount + shipping_cost
    if total < 0:
        total = ZERO

    return OrderTotals(
        subtotal=_money(subtotal),
        per_item_discount=_money(per_item_discount),
        global_discount=global_discount,
        shipping_cost=shipping_cost,
        total=_money(total),
        applied_promotion_ids=tuple(applied),
        lines=tuple(lines),
        warnings=tuple(warnings),
    )
