"""Promotions blueprint - rule management for the POS (JSON)."""
from flask import Blueprint, request, jsonify, current_app
from app.database import get_session
from app.services import promotion_service
from app.utils.payload import require_object

promotions_bp = Blueprint('promotions', __name__, url_prefix='/promotions')


@promotions_bp.route('/', methods=['GET'])
def list_promotions():
    """List rules in creation order; ?active=1 keeps only active ones."""
    active_only = request.args.get('active', '').lower() in ('1', 'true', 'yes')
    rules = promotion_service.list_promotions(get_session(), active_only=active_only)
    return jsonify({'status': 'ok', 'promotions': [r.to_dict() for r in rules]})


@promotions_bp.route('/', methods=['POST'])
def create_promotion():
    data = require_object(request.get_json(silent=True))
    rule = promotion_service.create_promotion(get_session(), data)
    current_app.logger.info(f"Promotion '{rule.name}' created via API")
    return jsonify({'status': 'ok', 'message': 'Promoción creada exitosamente', 'promotion': rule.to_dict()}), 201


@promotions_bp.route('/<rule_id>/toggle', methods=['POST'])
def toggle_promotion(rule_id):
    rule = promotion_service.toggle_promotion(get_session(), rule_id)
    return jsonify({'status': 'ok', 'promotion': rule.to_dict()})


@promotions_bp.route('/<rule_id>', methods=['DELETE'])
def delete_promotion(rule_id):
    promotion_service.delete_promotion(get_session(), rule_id)
    return jsonify({'status': 'ok', 'message': 'Promoción eliminada'})
