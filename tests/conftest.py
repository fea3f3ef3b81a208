import pytest
from datetime import datetime
from decimal import Decimal

from retail_pos import create_app
from retail_pos.database import get_session
from retail_pos.middleware import STATE_EXTENSION, STORE_EXTENSION
from retail_pos.models import (
    Product, Sale, CartLine, CustomerInfo, User, DiscountType
)
from retail_pos.state import Catalog, Cart, SaleLedger, UserDirectory, LoginSession


@pytest.fixture(scope='function')
def app():
    """Create application instance with a fresh in-memory database."""
    app = create_app('config.TestConfig')
    yield app
    with app.app_context():
        get_session().remove()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def state(app):
    """The application's POS state."""
    return app.extensions[STATE_EXTENSION]


@pytest.fixture(scope='function')
def store(app):
    return app.extensions[STORE_EXTENSION]


def make_product(pid, name='Widget', category='Other', price='10.00', stock=10, **kwargs):
    return Product(id=pid, name=name, category=category, price=Decimal(price), stock=stock, **kwargs)


def make_sale(sid, timestamp, lines, total=None, customer=None):
    """
    Sale from (product_id, quantity) or (product_id, quantity, price) tuples.

    Totals are the plain subtotal unless ``total`` is given.
    """
    items = []
    for line in lines:
        product_id, quantity = line[0], line[1]
        price = Decimal(line[2]) if len(line) > 2 else Decimal('1.00')
        items.append(CartLine(product_id=product_id, name=f'Product {product_id}', price=price, quantity=quantity))
    subtotal = sum((i.line_total for i in items), Decimal('0.00'))
    return Sale(
        id=sid,
        timestamp=timestamp,
        customer=customer or CustomerInfo(name='Walk-in', phone=''),
        items=tuple(items),
        subtotal=subtotal,
        discount_amount=Decimal('0.00'),
        discount_type=DiscountType.PERCENTAGE,
        discount_value=Decimal('0'),
        tax=Decimal('0.00'),
        total=Decimal(total) if total is not None else subtotal,
    )


@pytest.fixture
def catalog():
    """Catalog with three products."""
    return Catalog([
        make_product(1, 'Laptop', 'Electronics', '100.00', 5, barcode='890001'),
        make_product(2, 'Mouse', 'Electronics', '50.00', 3, quick_key=2),
        make_product(3, 'Coffee', 'Food', '2.99', 0),
    ])


@pytest.fixture
def cart():
    return Cart()


@pytest.fixture
def ledger():
    return SaleLedger()


@pytest.fixture
def now():
    """Fixed 'now': Wednesday 2026-01-14 15:00."""
    return datetime(2026, 1, 14, 15, 0, 0)


@pytest.fixture
def users():
    """Directory with one user per role. Every password is 'password123'."""
    directory = UserDirectory()
    for uid, username, role in ((1, 'admin', 'admin'), (2, 'manager', 'manager'), (3, 'cashier', 'cashier')):
        user = User(id=uid, name=username.title(), username=username, role=role)
        user.set_password('password123')
        directory.users.append(user)
    return directory


@pytest.fixture
def login_session():
    return LoginSession()


def _add_user(state, uid, username, role):
    user = User(id=uid, name=username.title(), username=username, role=role)
    user.set_password('password123')
    state.users.users.append(user)
    return user


def _login(client, username, password):
    response = client.post('/auth/login', json={'username': username, 'password': password})
    assert response.status_code == 200, response.get_json()
    return client


@pytest.fixture(scope='function')
def admin_client(client):
    """Client logged in as the default administrator."""
    return _login(client, 'admin', 'admin123')


@pytest.fixture(scope='function')
def manager_client(client, state):
    _add_user(state, 200, 'manager', 'manager')
    return _login(client, 'manager', 'password123')


@pytest.fixture(scope='function')
def cashier_client(client, state):
    _add_user(state, 300, 'cashier', 'cashier')
    return _login(client, 'cashier', 'password123')


@pytest.fixture(scope='function')
def stocked_state(state):
    """Application state with two products on sale."""
    state.catalog.add(make_product(1, 'Laptop', 'Electronics', '100.00', 5, barcode='890001'))
    state.catalog.add(make_product(2, 'Mouse', 'Electronics', '50.00', 12, quick_key=2))
    return state


@pytest.fixture
def product_factory():
    return make_product


@pytest.fixture
def sale_factory():
    return make_sale
