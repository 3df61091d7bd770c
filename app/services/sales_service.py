"""
Sales service with transactional logic.
Prices the POS cart with the pricing engine and records the sale snapshot.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from app.models import Sale, SaleLine, SaleStatus, PaymentStatus, Department
from app.exceptions import BusinessLogicError, NotFoundError, PricingValidationError
from app.services.pricing_service import LineItem, OrderTotals, compute_order_totals
from app.services.promotion_service import load_pricing_rules
from app.utils.number_format import parse_pe_amount, parse_quantity
from app.utils.payload import require_object, text_field

logger = logging.getLogger(__name__)

REQUIRED_ITEM_FIELDS = ('variant_id', 'product_name')


def _amount(value, field: str):
    try:
        return parse_pe_amount(value)
    except ValueError as e:
        raise PricingValidationError(field, str(e))


def build_line_items(items_payload) -> List[LineItem]:
    """Turn the POS cart JSON into pricing line items."""
    if items_payload is None:
        return []
    if not isinstance(items_payload, list):
        raise PricingValidationError('items', 'debe ser una lista')

    line_items = []
    for idx, raw in enumerate(items_payload):
        prefix = f'items[{idx}]'
        if not isinstance(raw, dict):
            raise PricingValidationError(prefix, 'formato inválido')
        for key in REQUIRED_ITEM_FIELDS:
            if not str(raw.get(key) or '').strip():
                raise PricingValidationError(f'{prefix}.{key}', 'es obligatorio')
        if raw.get('unit_price') is None:
            raise PricingValidationError(f'{prefix}.unit_price', 'es obligatorio')

        try:
            quantity = parse_quantity(raw.get('quantity', 1))
        except ValueError as e:
            raise PricingValidationError(f'{prefix}.quantity', str(e))

        line_items.append(LineItem(
            variant_id=str(raw['variant_id']).strip(),
            collection=raw.get('collection') or '',
            # "type" is what the catalog calls it
            product_type=raw.get('product_type') or raw.get('type') or '',
            gender=raw.get('gender') or '',
            product_name=str(raw['product_name']),
            quantity=quantity,
            unit_price=_amount(raw.get('unit_price'), f'{prefix}.unit_price'),
            sku=raw.get('sku'),
            color=raw.get('color'),
            size=raw.get('size'),
        ))
    return line_items


def price_payload(session, payload: Dict[str, Any]) -> Tuple[List[LineItem], OrderTotals]:
    """Price a cart payload against the stored promotion rules."""
    payload = require_object(payload)
    line_items = build_line_items(payload.get('items'))
    global_discount = _amount(payload.get('global_discount', 0), 'global_discount')
    shipping_cost = _amount(payload.get('shipping_cost', 0), 'shipping_cost')
    rules = load_pricing_rules(session)
    totals = compute_order_totals(line_items, rules, global_discount, shipping_cost)
    return line_items, totals


def quote_cart(session, payload: Dict[str, Any]) -> OrderTotals:
    """Re-price the cart without persisting anything."""
    _, totals = price_payload(session, payload)
    return totals


def _validate_customer(customer: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    customer = require_object(customer, 'customer')
    name = text_field(customer, 'name', 'customer.name')
    address = text_field(customer, 'address', 'customer.address')
    district = text_field(customer, 'district', 'customer.district')
    phone = text_field(customer, 'phone', 'customer.phone')
    reference = text_field(customer, 'reference', 'customer.reference')
    department_code = text_field(customer, 'department', 'customer.department')

    if not name:
        raise BusinessLogicError('Nombre del Cliente es obligatorio')
    if not address:
        raise BusinessLogicError('Dirección de Entrega es obligatoria')
    if not district:
        raise BusinessLogicError('Debe seleccionar un Distrito')

    try:
        department = Department((department_code or 'LIMA').upper())
    except ValueError:
        raise BusinessLogicError('Departamento inválido (LIMA o CALLAO)')

    return {
        'customer_name': name,
        'customer_address': address,
        'customer_phone': phone or None,
        'department': department,
        'district': district,
        'reference': reference or None,
    }


def _parse_delivery_date(value) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        raise BusinessLogicError('Fecha de entrega inválida (usar ISO 8601)')


def confirm_sale(session, payload: Dict[str, Any]) -> Sale:
    """
    Price the cart and record the sale with its line snapshots.

    The whole operation is one transaction: validation or pricing errors
    leave nothing behind.
    """
    payload = require_object(payload)
    if not payload.get('items'):
        raise BusinessLogicError('El carrito está vacío')

    customer_fields = _validate_customer(payload.get('customer'))
    delivery_date = _parse_delivery_date(payload.get('delivery_date'))

    try:
        line_items, totals = price_payload(session, payload)

        sale = Sale(
            **customer_fields,
            subtotal=totals.subtotal,
            per_item_discount=totals.per_item_discount,
            global_discount=totals.global_discount,
            shipping_cost=totals.shipping_cost,
            total=totals.total,
            promotions_applied=list(totals.applied_promotion_ids),
            status=SaleStatus.ADELANTADO,
            payment_status=PaymentStatus.PENDIENTE,
            delivery_date=delivery_date,
        )

        # totals.lines is in the same order as line_items
        for item, priced in zip(line_items, totals.lines):
            sale.lines.append(SaleLine(
                variant_id=item.variant_id,
                sku=item.sku,
                product_name=item.product_name,
                collection=item.collection,
                product_type=item.product_type,
                gender=item.gender,
                color=item.color,
                size=item.size,
                quantity=item.quantity,
                unit_price=item.unit_price,
                discount=priced.discount,
                line_total=priced.line_total,
                promotion_id=priced.promotion_id,
            ))

        session.add(sale)
        session.commit()

    except (BusinessLogicError, NotFoundError):
        session.rollback()
        raise
    except Exception:
        session.rollback()
        logger.exception("Error al registrar venta")
        raise

    logger.info(
        f"Sale {sale.id} registered: total={totals.total} "
        f"promotions={list(totals.applied_promotion_ids)}"
    )
    if totals.warnings:
        logger.warning(f"Sale {sale.id} priced with ignored rules: {list(totals.warnings)}")
    return sale


def get_sale(session, sale_id: int) -> Sale:
    sale = session.get(Sale, sale_id)
    if not sale:
        raise NotFoundError('Venta no encontrada.')
    return sale


def update_sale_status(session, sale_id: int, status: str) -> Sale:
    """Move a sale through ADELANTADO / COMPLETO / ENTREGADO / CANCELADO."""
    try:
        new_status = SaleStatus(str(status or '').strip().upper())
    except ValueError:
        raise BusinessLogicError(f'Estado inválido: {status}')

    sale = get_sale(session, sale_id)
    sale.status = new_status
    sale.updated_at = datetime.now()
    session.commit()
    logger.info(f"Sale {sale.id} status -> {new_status.value}")
    return sale


def update_payment_status(session, sale_id: int, payment_status: str) -> Sale:
    try:
        new_status = PaymentStatus(str(payment_status or '').strip().upper())
    except ValueError:
        raise BusinessLogicError(f'Estado de pago inválido: {payment_status}')

    sale = get_sale(session, sale_id)
    sale.payment_status = new_status
    sale.updated_at = datetime.now()
    session.commit()
    logger.info(f"Sale {sale.id} payment -> {new_status.value}")
    return sale


def list_sales(session, status: Optional[str] = None) -> List[Sale]:
    """Sales newest first, optionally filtered by status."""
    query = session.query(Sale)
    if status:
        try:
            query = query.filter(Sale.status == SaleStatus(status.strip().upper()))
        except ValueError:
            raise BusinessLogicError(f'Estado inválido: {status}')
    return query.order_by(Sale.id.desc()).all()
