"""Sales blueprint for POS pricing and sale records (JSON)."""
from flask import Blueprint, request, jsonify, current_app
from app.database import get_session
from app.services import sales_service
from app.utils.formatters import money_pe
from app.utils.payload import require_object

sales_bp = Blueprint('sales', __name__, url_prefix='/sales')


def _display(totals) -> dict:
    """Preformatted amounts for the POS summary panel."""
    symbol = current_app.config.get('CURRENCY_SYMBOL', 'S/')
    return {
        'subtotal': money_pe(totals.subtotal, symbol),
        'discount_total': money_pe(-totals.discount_total, symbol) if totals.discount_total else None,
        'shipping_cost': money_pe(totals.shipping_cost, symbol),
        'total': money_pe(totals.total, symbol),
        'promotions_label': (
            f"Descuentos ({len(totals.applied_promotion_ids)} reglas)"
            if totals.applied_promotion_ids else 'Descuentos'
        ),
    }


def _with_default_shipping(payload: dict) -> dict:
    if payload.get('shipping_cost') in (None, ''):
        payload = dict(payload, shipping_cost=current_app.config.get('DEFAULT_SHIPPING_COST', '0'))
    return payload


@sales_bp.route('/quote', methods=['POST'])
def quote():
    """Price the current cart (called on every cart change)."""
    payload = _with_default_shipping(require_object(request.get_json(silent=True)))
    totals = sales_service.quote_cart(get_session(), payload)
    return jsonify({'status': 'ok', 'totals': totals.as_dict(), 'display': _display(totals)})


@sales_bp.route('/', methods=['POST'])
def confirm():
    payload = _with_default_shipping(require_object(request.get_json(silent=True)))
    sale = sales_service.confirm_sale(get_session(), payload)
    current_app.logger.info(f"Sale {sale.id} confirmed from POS")
    resp = jsonify({'status': 'ok', 'message': 'Venta registrada', 'sale': sale.to_dict()})
    resp.headers['X-Sale-Id'] = str(sale.id)
    return resp, 201


@sales_bp.route('/', methods=['GET'])
def list_sales():
    sales = sales_service.list_sales(get_session(), status=request.args.get('status') or None)
    return jsonify({'status': 'ok', 'sales': [s.to_dict(include_lines=False) for s in sales]})


@sales_bp.route('/<int:sale_id>', methods=['GET'])
def sale_detail(sale_id):
    sale = sales_service.get_sale(get_session(), sale_id)
    return jsonify({'status': 'ok', 'sale': sale.to_dict()})


@sales_bp.route('/<int:sale_id>/status', methods=['POST'])
def update_status(sale_id):
    data = require_object(request.get_json(silent=True))
    sale = sales_service.update_sale_status(get_session(), sale_id, data.get('status'))
    return jsonify({'status': 'ok', 'sale': sale.to_dict(include_lines=False)})


@sales_bp.route('/<int:sale_id>/payment', methods=['POST'])
def update_payment(sale_id):
    data = require_object(request.get_json(silent=True))
    sale = sales_service.update_payment_status(get_session(), sale_id, data.get('payment_status'))
    return jsonify({'status': 'ok', 'sale': sale.to_dict(include_lines=False)})
