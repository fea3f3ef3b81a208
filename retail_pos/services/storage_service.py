"""
State storage service - JSON slices of the application state in a key-value table.

Each slice lives under its own key in ``stored_value`` and is read and
written independently. Loading fails soft: a slice that cannot be read or
parsed is logged and falls back to its default. Writing never raises:
``save`` logs the failure and returns False so the caller can warn the user
while the in-memory change stands.

Architecture:
- SQLAlchemy scoped session from ``retail_pos.database``
- One JSON document per key
- ``AutoSaver`` thread writes everything every AUTOSAVE_INTERVAL seconds
"""
import json
import logging
import threading
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError

from retail_pos.database import get_session
from retail_pos.models import Product, Sale, User, StoredValue, default_external_services
from retail_pos.services.auth_service import ensure_default_admin, restore_session, SESSION_LIFETIME
from retail_pos.services.settings_service import merge_settings
from retail_pos.state import AppState, Catalog, SaleLedger, UserDirectory

logger = logging.getLogger(__name__)

PRODUCTS = 'products'
SALES = 'sales'
USERS = 'users'
SETTINGS = 'settings'
EXTERNAL_SERVICES = 'externalServices'
DARK_MODE = 'darkMode'
CURRENT_USER = 'currentUser'
LOGIN_TIME = 'loginTime'
CLOUD_BACKUP = 'cloudBackup'

STATE_KEYS = (PRODUCTS, SALES, USERS, SETTINGS, EXTERNAL_SERVICES, DARK_MODE, CURRENT_USER, LOGIN_TIME)
SESSION_KEYS = (USERS, CURRENT_USER, LOGIN_TIME)
DATA_KEYS = (PRODUCTS, SALES)


class StateStore:
    """
    Reads and writes state slices.

    Usage:
        store = StateStore()
        store.load(state)
        ok = store.save(state, DATA_KEYS)
    """

    def read(self, key: str) -> Optional[Any]:
        """Parsed JSON under ``key``, or None when missing or unreadable."""
        try:
            row = get_session().get(StoredValue, key)
            if row is None or row.value is None:
                return None
            return json.loads(row.value)
        except (SQLAlchemyError, ValueError) as e:
            logger.error(f"[STORE] ✗ Error loading '{key}': {e}")
            get_session().rollback()
            return None

    def write(self, values: Dict[str, Any]) -> bool:
        """Write several keys in one transaction. Returns False on failure."""
        session = get_session()
        try:
            now = datetime.utcnow()
            for key, value in values.items():
                session.merge(StoredValue(key=key, value=json.dumps(value), updated_at=now))
            session.commit()
            return True
        except (SQLAlchemyError, TypeError, ValueError) as e:
            session.rollback()
            logger.error(f"[STORE] ✗ Error saving {', '.join(values)}: {e}")
            return False

    def delete(self, *keys: str) -> bool:
        session = get_session()
        try:
            session.query(StoredValue).filter(StoredValue.key.in_(keys)).delete(synchronize_session=False)
            session.commit()
            return True
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"[STORE] ✗ Error deleting {', '.join(keys)}: {e}")
            return False

    # Loading

    def _load_list(self, key: str, factory):
        data = self.read(key)
        if data is None:
            return []
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            logger.error(f"[STORE] ✗ '{key}' is not a list of records, using defaults")
            return []
        try:
            return [factory(item) for item in data]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"[STORE] ✗ Invalid '{key}' data, using defaults: {e}")
            return []

    def load(self, state: AppState, session_lifetime: timedelta = SESSION_LIFETIME,
             now: Optional[datetime] = None) -> bool:
        """
        Populate ``state`` from storage.

        Returns:
            True when defaults were created that should be written back
            (the default administrator)
        """
        state.catalog = Catalog(self._load_list(PRODUCTS, Product.from_dict))
        state.ledger = SaleLedger(self._load_list(SALES, Sale.from_dict))
        state.users = UserDirectory(self._load_list(USERS, User.from_dict))
        created_admin = ensure_default_admin(state.users)

        settings = self.read(SETTINGS)
        state.settings = merge_settings(settings if isinstance(settings, dict) else {})

        services = self.read(EXTERNAL_SERVICES)
        state.external_services = {
            **default_external_services(),
            **(services if isinstance(services, dict) else {}),
        }

        state.dark_mode = self.read(DARK_MODE) is True
        self._load_session(state, session_lifetime, now)

        logger.info(
            f"[STORE] Loaded {len(state.catalog)} products, {len(state.ledger)} sales, "
            f"{len(state.users)} users"
        )
        return created_admin

    def _load_session(self, state: AppState, lifetime: timedelta, now: Optional[datetime]) -> None:
        state.session.end()
        saved_user = self.read(CURRENT_USER)
        login_ms = self.read(LOGIN_TIME)
        if not isinstance(saved_user, dict) or login_ms is None:
            return

        try:
            login_time = datetime.fromtimestamp(int(login_ms) / 1000)
            user = state.users.get(int(saved_user['id']))
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"[STORE] ✗ Invalid login session: {e}")
            return

        if user is not None and user.is_active:
            state.session.start(user, login_time)
            restore_session(state.session, now, lifetime)

    # Saving

    def serialize(self, state: AppState, keys: Iterable[str]) -> Dict[str, Any]:
        """JSON-ready documents for the requested keys."""
        session = state.session
        builders = {
            PRODUCTS: lambda: [p.to_dict() for p in state.catalog],
            SALES: lambda: [s.to_dict() for s in state.ledger],
            USERS: lambda: [u.to_dict() for u in state.users],
            SETTINGS: lambda: state.settings,
            EXTERNAL_SERVICES: lambda: state.external_services,
            DARK_MODE: lambda: state.dark_mode,
            CURRENT_USER: lambda: session.user.to_public_dict() if session.user else None,
            LOGIN_TIME: lambda: (
                str(int(session.login_time.timestamp() * 1000)) if session.login_time else None
            ),
        }
        return {key: builders[key]() for key in keys}

    def save(self, state: AppState, keys: Iterable[str] = STATE_KEYS) -> bool:
        """Flush the given slices. Returns False (after logging) on failure."""
        with state.lock:
            try:
                values = self.serialize(state, keys)
            except (TypeError, ValueError) as e:
                logger.error(f"[STORE] ✗ Error serializing state: {e}")
                return False
        return self.write(values)


class AutoSaver:
    """Background thread that saves the whole state at a fixed interval."""

    def __init__(self, app, store: StateStore, state: AppState, interval: float = 30):
        self.app = app
        self.store = store
        self.state = state
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name='pos-autosave', daemon=True)
        self._thread.start()
        logger.info(f"[STORE] Autosave every {self.interval}s")

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self.interval)
            self._thread = None

    def save_now(self) -> bool:
        with self.app.app_context():
            try:
                return self.store.save(self.state)
            finally:
                get_session().remove()

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            if not self.save_now():
                logger.warning("[STORE] Autosave failed")
