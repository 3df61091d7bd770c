import pytest
from decimal import Decimal

from app import create_app
from app.database import get_session
from app.models import PromotionRule


@pytest.fixture(scope='function')
def app():
    """Create application instance for testing (fresh in-memory database per test)."""
    app = create_app('config.TestingConfig')
    yield app
    get_session().remove()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Create database session for testing."""
    session = get_session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(scope='function')
def summer_rule(session):
    """20% off the VERANO collection."""
    rule = PromotionRule(
        name='Liquidación Verano',
        kind='PERCENTAGE',
        value=Decimal('20'),
        scope='COLLECTION',
        target='VERANO',
        is_active=True
    )
    session.add(rule)
    session.commit()
    return rule


@pytest.fixture(scope='function')
def polo_rule(session):
    """5.00 off per unit on POLO."""
    rule = PromotionRule(
        name='Descuento Polos',
        kind='FIXED_AMOUNT',
        value=Decimal('5'),
        scope='PRODUCT_TYPE',
        target='POLO',
        is_active=True
    )
    session.add(rule)
    session.commit()
    return rule


@pytest.fixture
def cart_payload():
    """Two-line POS cart as sent by the front-end."""
    return {
        'items': [
            {
                'variant_id': 'var-polo-m-negro',
                'sku': 'PL-VER-M-NEG',
                'product_name': 'Polo Oversize',
                'collection': 'VERANO',
                'type': 'POLO',
                'gender': 'UNISEX',
                'color': 'Negro',
                'size': 'M',
                'quantity': 2,
                'unit_price': '25.00',
            },
            {
                'variant_id': 'var-jogger-l-gris',
                'sku': 'JG-INV-L-GRI',
                'product_name': 'Jogger Basico',
                'collection': 'INVIERNO',
                'type': 'PANTALON',
                'gender': 'HOMBRE',
                'color': 'Gris',
                'size': 'L',
                'quantity': 1,
                'unit_price': '60.00',
            },
        ],
        'global_discount': '0',
        'shipping_cost': '10.00',
        'customer': {
            'name': 'Ana Torres',
            'address': 'Av. Arequipa 1234',
            'phone': '999888777',
            'department': 'LIMA',
            'district': 'Miraflores',
        },
    }
