"""
Unit tests for the order pricing engine.
No database: the engine only sees the values passed in.
"""

import pytest
from decimal import Decimal

from app.exceptions import BusinessLogicError, PricingValidationError
from app.services.pricing_service import (
    LineItem, PromotionRule, PromotionKind, PromotionScope,
    compute_order_totals, rule_matches,
)


def _item(variant_id='V1', unit_price='10.00', quantity=1, collection='VERANO',
          product_type='POLO', gender='HOMBRE', product_name='Polo Basico'):
    return LineItem(
        variant_id=variant_id,
        collection=collection,
        product_type=product_type,
        gender=gender,
        product_name=product_name,
        quantity=quantity,
        unit_price=Decimal(str(unit_price)),
    )


def _rule(rule_id, kind, value, scope=PromotionScope.GLOBAL, target=None, is_active=True):
    return PromotionRule(
        id=rule_id,
        kind=kind,
        value=Decimal(str(value)),
        scope=scope,
        target=target,
        is_active=is_active,
    )


PCT = PromotionKind.PERCENTAGE
FIXED = PromotionKind.FIXED_AMOUNT


class TestScenarios:
    """Reference carts with known totals."""

    def test_percentage_global_rule(self):
        """25 x 2 with 20% off everything -> 40."""
        totals = compute_order_totals([_item(unit_price=25, quantity=2)], [_rule('r1', PCT, 20)])

        assert totals.subtotal == Decimal('50')
        assert totals.per_item_discount == Decimal('10')
        assert totals.global_discount == Decimal('0')
        assert totals.shipping_cost == Decimal('0')
        assert totals.total == Decimal('40')
        assert totals.applied_promotion_ids == ('r1',)

    def test_larger_percentage_beats_fixed_per_unit(self):
        """Fixed 3 per unit on 2 units is 6, less than 10."""
        rules = [_rule('r1', PCT, 20), _rule('r2', FIXED, 3)]
        totals = compute_order_totals([_item(unit_price=25, quantity=2)], rules)

        assert totals.per_item_discount == Decimal('10')
        assert totals.applied_promotion_ids == ('r1',)

    def test_collection_rule_only_discounts_matching_line(self):
        items = [
            _item('A', unit_price=100, collection='SUMMER'),
            _item('B', unit_price=50, collection='WINTER'),
        ]
        rules = [_rule('summer', FIXED, 10, PromotionScope.COLLECTION, 'SUMMER')]
        totals = compute_order_totals(items, rules)

        assert totals.per_item_discount == Decimal('10')
        assert totals.lines[0].discount == Decimal('10')
        assert totals.lines[1].discount == Decimal('0')
        assert totals.lines[1].promotion_id is None
        assert totals.applied_promotion_ids == ('summer',)
        assert totals.total == Decimal('140')

    def test_empty_cart_only_charges_shipping(self):
        totals = compute_order_totals([], [], Decimal('0'), Decimal('15'))

        assert totals.subtotal == Decimal('0')
        assert totals.per_item_discount == Decimal('0')
        assert totals.total == Decimal('15')
        assert totals.lines == ()

    def test_fixed_amount_larger_than_line_is_clamped(self):
        totals = compute_order_totals([_item(unit_price=20)], [_rule('big', FIXED, 50)])

        assert totals.lines[0].discount == Decimal('20')
        assert totals.lines[0].line_total == Decimal('0')
        assert totals.per_item_discount == Decimal('20')
        assert totals.total == Decimal('0')


class TestBestDiscountSelection:
    """One discount per line, never summed."""

    def test_no_stacking(self):
        rules = [_rule('ten', FIXED, 10), _rule('fifteen', FIXED, 15)]
        totals = compute_order_totals([_item(unit_price=100)], rules)

        assert totals.per_item_discount == Decimal('15')
        assert totals.applied_promotion_ids == ('fifteen',)

    def test_tie_goes_to_first_rule_in_input_order(self):
        """10% of 100 and 10 fixed are equal: the earlier rule wins."""
        pct, fixed = _rule('pct', PCT, 10), _rule('fixed', FIXED, 10)

        first = compute_order_totals([_item(unit_price=100)], [pct, fixed])
        reversed_order = compute_order_totals([_item(unit_price=100)], [fixed, pct])

        assert first.lines[0].promotion_id == 'pct'
        assert first.applied_promotion_ids == ('pct',)
        assert reversed_order.lines[0].promotion_id == 'fixed'
        assert reversed_order.applied_promotion_ids == ('fixed',)
        assert first.per_item_discount == reversed_order.per_item_discount == Decimal('10')

    def test_fixed_amount_is_per_unit(self):
        totals = compute_order_totals([_item(unit_price=30, quantity=3)], [_rule('r', FIXED, 4)])
        assert totals.per_item_discount == Decimal('12')

    def test_each_line_picks_its_own_winner(self):
        items = [
            _item('A', unit_price=100, collection='VERANO'),
            _item('B', unit_price=100, collection='INVIERNO', product_type='PANTALON'),
        ]
        rules = [
            _rule('verano', PCT, 30, PromotionScope.COLLECTION, 'VERANO'),
            _rule('todo', PCT, 5),
        ]
        totals = compute_order_totals(items, rules)

        assert [line.promotion_id for line in totals.lines] == ['verano', 'todo']
        assert totals.per_item_discount == Decimal('35')
        assert totals.applied_promotion_ids == ('verano', 'todo')

    def test_applied_ids_are_unique_in_first_use_order(self):
        items = [_item('A', unit_price=10), _item('B', unit_price=20)]
        totals = compute_order_totals(items, [_rule('r1', FIXED, 1)])
        assert totals.applied_promotion_ids == ('r1',)

    def test_zero_discount_is_not_recorded_as_applied(self):
        items = [_item('free', unit_price=0)]
        totals = compute_order_totals(items, [_rule('r1', FIXED, 5), _rule('r0', PCT, 0)])

        assert totals.per_item_discount == Decimal('0')
        assert totals.applied_promotion_ids == ()
        assert totals.lines[0].promotion_id is None

    def test_no_active_rules(self):
        rules = [_rule('off', PCT, 50, is_active=False)]
        totals = compute_order_totals([_item(unit_price=40)], rules)

        assert totals.per_item_discount == Decimal('0')
        assert totals.applied_promotion_ids == ()
        assert totals.total == Decimal('40')


class TestScopeMatching:
    """Which lines a rule can discount."""

    def test_collection_rule_ignores_other_attributes(self):
        """SUMMER in product_type does not satisfy a COLLECTION=SUMMER rule."""
        item = _item(collection='WINTER', product_type='SUMMER', product_name='SUMMER polo')
        rules = [_rule('r', PCT, 50, PromotionScope.COLLECTION, 'SUMMER')]

        totals = compute_order_totals([item], rules)

        assert totals.per_item_discount == Decimal('0')

    def test_matching_is_case_sensitive(self):
        rules = [_rule('r', PCT, 50, PromotionScope.COLLECTION, 'verano')]
        totals = compute_order_totals([_item(collection='VERANO')], rules)
        assert totals.per_item_discount == Decimal('0')

    def test_product_name_is_substring_match(self):
        item = _item(unit_price=80, product_name='Casaca Denim Azul')
        rules = [_rule('r', PCT, 25, PromotionScope.PRODUCT_NAME, 'Denim')]

        totals = compute_order_totals([item], rules)

        assert totals.per_item_discount == Decimal('20')

    def test_gender_and_type_scopes(self):
        item = _item(gender='MUJER', product_type='VESTIDO')
        assert rule_matches(PromotionScope.GENDER, 'MUJER', item)
        assert not rule_matches(PromotionScope.GENDER, 'HOMBRE', item)
        assert rule_matches(PromotionScope.PRODUCT_TYPE, 'VESTIDO', item)

    def test_global_ignores_target(self):
        assert rule_matches(PromotionScope.GLOBAL, 'ANYTHING', _item())

    def test_legacy_scope_names_are_accepted(self):
        """Rules saved as TYPE / PRODUCT still price."""
        rules = [_rule('legacy', 'FIXED_AMOUNT', 2, 'TYPE', 'POLO')]
        totals = compute_order_totals([_item(quantity=3)], rules)
        assert totals.per_item_discount == Decimal('6')


class TestMalformedRules:
    """Bad rules are skipped, the rest of the cart still prices."""

    def test_unknown_kind_is_skipped_with_warning(self, caplog):
        rules = [_rule('bogo', 'BUY_ONE_GET_ONE', 100), _rule('ok', PCT, 10)]

        with caplog.at_level('WARNING'):
            totals = compute_order_totals([_item(unit_price=50)], rules)

        assert totals.per_item_discount == Decimal('5')
        assert totals.applied_promotion_ids == ('ok',)
        assert len(totals.warnings) == 1
        assert 'bogo' in totals.warnings[0]
        assert 'bogo' in caplog.text

    def test_unknown_scope_is_skipped(self):
        rules = [_rule('variant', PCT, 50, 'VARIANT', 'V1')]
        totals = compute_order_totals([_item()], rules)

        assert totals.per_item_discount == Decimal('0')
        assert len(totals.warnings) == 1

    def test_inactive_rule_with_bad_value_is_not_validated(self):
        rules = [_rule('old', PCT, 500, is_active=False)]
        totals = compute_order_totals([_item()], rules)
        assert totals.total == Decimal('10')


class TestValidation:
    """Invalid numbers reject the whole cart."""

    @pytest.mark.parametrize('quantity', [0, -1, 1.5, True])
    def test_invalid_quantity(self, quantity):
        with pytest.raises(PricingValidationError) as exc:
            compute_order_totals([_item(quantity=quantity)], [])
        assert exc.value.field == 'line_items[0].quantity'

    def test_negative_unit_price(self):
        items = [_item('A'), _item('B', unit_price='-1')]
        with pytest.raises(PricingValidationError) as exc:
            compute_order_totals(items, [])
        assert exc.value.field == 'line_items[1].unit_price'

    def test_nan_rule_value(self):
        rule = PromotionRule(id='nan', kind=PCT, value=Decimal('NaN'), scope=PromotionScope.GLOBAL)
        with pytest.raises(PricingValidationError) as exc:
            compute_order_totals([_item()], [rule])
        assert exc.value.field == 'rules[0].value'

    def test_percentage_over_100(self):
        with pytest.raises(PricingValidationError):
            compute_order_totals([_item()], [_rule('r', PCT, 150)])

    def test_fixed_amount_over_100_is_fine(self):
        totals = compute_order_totals([_item(unit_price=500)], [_rule('r', FIXED, 150)])
        assert totals.per_item_discount == Decimal('150')

    @pytest.mark.parametrize('field,kwargs', [
        ('global_discount', {'global_discount': Decimal('-5')}),
        ('shipping_cost', {'shipping_cost': float('nan')}),
        ('shipping_cost', {'shipping_cost': float('inf')}),
    ])
    def test_invalid_order_amounts(self, field, kwargs):
        with pytest.raises(PricingValidationError) as exc:
            compute_order_totals([_item()], [], **kwargs)
        assert exc.value.field == field

    def test_duplicate_variant(self):
        with pytest.raises(PricingValidationError) as exc:
            compute_order_totals([_item('V1'), _item('V1')], [])
        assert exc.value.field == 'line_items[1].variant_id'

    def test_validation_error_is_business_error(self):
        with pytest.raises(BusinessLogicError) as exc:
            compute_order_totals([_item(unit_price='-3')], [])
        assert exc.value.status_code == 400
        assert exc.value.to_dict()['field'] == 'line_items[0].unit_price'


class TestOrderTotalsProperties:
    """Idempotence, monotonicity and the zero floor."""

    def test_idempotent(self):
        items = [_item('A', unit_price='19.90', quantity=3), _item('B', unit_price=45, collection='INVIERNO')]
        rules = [_rule('r1', PCT, 15), _rule('r2', FIXED, 4, PromotionScope.COLLECTION, 'VERANO')]

        first = compute_order_totals(items, rules, Decimal('5'), Decimal('12'))
        second = compute_order_totals(items, rules, Decimal('5'), Decimal('12'))

        assert first == second
        assert first.as_dict() == second.as_dict()

    def test_quantity_monotonicity(self):
        rules = [_rule('fixed', FIXED, 3)]
        previous = None
        for qty in range(1, 8):
            totals = compute_order_totals([_item(unit_price='7.50', quantity=qty)], rules)
            if previous is not None:
                assert totals.subtotal >= previous.subtotal
                assert totals.per_item_discount >= previous.per_item_discount
            previous = totals

    def test_global_discount_never_makes_total_negative(self):
        totals = compute_order_totals([_item(unit_price=50)], [], Decimal('100'), Decimal('10'))
        assert totals.total == Decimal('0')

    @pytest.mark.parametrize('global_discount', ['0', '3', '40', '1000'])
    @pytest.mark.parametrize('fixed_value', ['0.5', '9.99', '250'])
    def test_total_is_never_negative(self, global_discount, fixed_value):
        items = [_item('A', unit_price='9.99', quantity=2), _item('B', unit_price='0')]
        totals = compute_order_totals(items, [_rule('f', FIXED, fixed_value)], Decimal(global_discount))

        assert totals.total >= 0
        assert all(line.line_total >= 0 for line in totals.lines)

    def test_amounts_are_rounded_to_cents(self):
        """29.97 x 15% = 4.4955 -> 4.50."""
        totals = compute_order_totals([_item(unit_price='9.99', quantity=3)], [_rule('r', PCT, 15)])

        assert totals.subtotal == Decimal('29.97')
        assert totals.per_item_discount == Decimal('4.50')
        assert totals.total == Decimal('25.47')

    def test_discount_total_adds_global_discount(self):
        totals = compute_order_totals([_item(unit_price=100)], [_rule('r', PCT, 10)], Decimal('5'))

        assert totals.discount_total == Decimal('15')
        assert totals.total == Decimal('85')

    def test_as_dict_serialises_money_as_strings(self):
        totals = compute_order_totals([_item(unit_price=25, quantity=2)], [_rule('r1', PCT, 20)])
        data = totals.as_dict()

        assert data['subtotal'] == '50.00'
        assert data['per_item_discount'] == '10.00'
        assert data['total'] == '40.00'
        assert data['applied_promotion_ids'] == ['r1']
        assert data['lines'][0]['line_total'] == '40.00'
