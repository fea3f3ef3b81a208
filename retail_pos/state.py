"""
In-memory application state.

One ``AppState`` per application instance owns every slice of POS data:
catalog, cart, sale ledger, user directory, login session, settings and
external service flags. Services receive the individual slices they work on;
nothing reaches for a module-level global.
"""
import threading
import time
from datetime import datetime
from typing import Dict, Iterator, List, Optional

from retail_pos.exceptions import BusinessLogicError, NotFoundError
from retail_pos.models import (
    Product, Sale, CartLine, Discount, User,
    default_settings, default_external_services
)


def time_based_id(existing_max: int = 0, now: Optional[float] = None) -> int:
    """Millisecond timestamp id, bumped past ``existing_max`` when the clock lags."""
    candidate = int((time.time() if now is None else now) * 1000)
    return max(candidate, existing_max + 1)


class Catalog:
    """Product list keyed by immutable id."""

    def __init__(self, products: Optional[List[Product]] = None):
        self.products: List[Product] = list(products or [])

    def __iter__(self) -> Iterator[Product]:
        return iter(self.products)

    def __len__(self) -> int:
        return len(self.products)

    def get(self, product_id: int) -> Optional[Product]:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def require(self, product_id: int) -> Product:
        product = self.get(product_id)
        if product is None:
            raise NotFoundError('Product not found')
        return product

    def add(self, product: Product) -> Product:
        if self.get(product.id) is not None:
            raise BusinessLogicError(f'Product id {product.id} already exists')
        self.products.append(product)
        return product

    def remove(self, product_id: int) -> Product:
        product = self.require(product_id)
        self.products = [p for p in self.products if p.id != product_id]
        return product

    def next_id(self) -> int:
        return time_based_id(max((p.id for p in self.products), default=0))

    def categories(self) -> List[str]:
        return sorted({p.category for p in self.products if p.category})


class Cart:
    """Pending selections plus the discount and tax flag that price them."""

    def __init__(self, lines: Optional[List[CartLine]] = None, discount: Optional[Discount] = None,
                 tax_enabled: bool = True):
        self.lines: List[CartLine] = list(lines or [])
        self.discount: Discount = discount or Discount()
        self.tax_enabled = tax_enabled

    def __iter__(self) -> Iterator[CartLine]:
        return iter(self.lines)

    def __len__(self) -> int:
        return len(self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def get_line(self, product_id: int) -> Optional[CartLine]:
        for line in self.lines:
            if line.product_id == product_id:
                return line
        return None

    def remove_line(self, product_id: int) -> None:
        self.lines = [line for line in self.lines if line.product_id != product_id]

    def reset_discount(self) -> None:
        self.discount = Discount()

    def clear(self) -> None:
        self.lines = []
        self.reset_discount()


class SaleLedger:
    """Append-only list of completed sales."""

    def __init__(self, sales: Optional[List[Sale]] = None):
        self._sales: List[Sale] = list(sales or [])

    def __iter__(self) -> Iterator[Sale]:
        return iter(self._sales)

    def __len__(self) -> int:
        return len(self._sales)

    @property
    def last_id(self) -> int:
        return max((s.id for s in self._sales), default=0)

    def next_id(self) -> int:
        return time_based_id(self.last_id)

    def append(self, sale: Sale) -> Sale:
        if sale.id <= self.last_id:
            raise BusinessLogicError(f'Sale id {sale.id} is not newer than the last recorded sale')
        self._sales.append(sale)
        return sale

    def get(self, sale_id: int) -> Optional[Sale]:
        for sale in self._sales:
            if sale.id == sale_id:
                return sale
        return None

    def require(self, sale_id: int) -> Sale:
        sale = self.get(sale_id)
        if sale is None:
            raise NotFoundError('Sale not found')
        return sale

    def snapshot(self) -> List[Sale]:
        """Copy of the sale list; the sales themselves are immutable."""
        return list(self._sales)


class UserDirectory:
    """Registered users."""

    def __init__(self, users: Optional[List[User]] = None):
        self.users: List[User] = list(users or [])

    def __iter__(self) -> Iterator[User]:
        return iter(self.users)

    def __len__(self) -> int:
        return len(self.users)

    def get(self, user_id: int) -> Optional[User]:
        for user in self.users:
            if user.id == user_id:
                return user
        return None

    def find_by_username(self, username: str) -> Optional[User]:
        for user in self.users:
            if user.username == username:
                return user
        return None

    def next_id(self) -> int:
        return time_based_id(max((u.id for u in self.users), default=0))


class LoginSession:
    """The logged-in user and when they logged in."""

    def __init__(self, user: Optional[User] = None, login_time: Optional[datetime] = None):
        self.user = user
        self.login_time = login_time

    @property
    def is_logged_in(self) -> bool:
        return self.user is not None

    def start(self, user: User, login_time: datetime) -> None:
        self.user = user
        self.login_time = login_time

    def end(self) -> None:
        self.user = None
        self.login_time = None


class AppState:
    """Single owner of all POS state for one application instance."""

    def __init__(self):
        self.catalog = Catalog()
        self.cart = Cart()
        self.ledger = SaleLedger()
        self.users = UserDirectory()
        self.session = LoginSession()
        self.settings: Dict = default_settings()
        self.external_services: Dict = default_external_services()
        self.dark_mode = False
        # Serializes request handlers and the autosave thread
        self.lock = threading.RLock()
