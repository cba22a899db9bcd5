from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from bookshop.config import Settings, settings as default_settings
from bookshop.constants import REMEMBERED_USER_KEY, ROLE_ADMIN
from bookshop.db.catalog import CatalogStore
from bookshop.db.ledger import OrderLedger
from bookshop.db.sqlite import Database
from bookshop.db.users import UserStore
from bookshop.services.cart import Cart
from bookshop.services.revenue import RevenueAggregator, utc_now
from bookshop.services.seed import seed_if_empty
from bookshop.services.storage import KeyValueStore

logger = logging.getLogger(__name__)


class Shop:
    """
    All services of one running shop, built around one Database handle.

    Passed explicitly to the bot and the web app instead of module globals.
    """

    def __init__(
        self,
        settings: Settings = default_settings,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.settings = settings
        self.db = Database(settings.db_path)
        self.state = KeyValueStore(settings.state_path)
        self.catalog = CatalogStore(self.db)
        self.users = UserStore(self.db)
        self.ledger = OrderLedger(self.db, tax_rate=settings.tax_rate)
        self.revenue = RevenueAggregator(self.db, tz=settings.report_tz, clock=clock)
        self.cart = Cart(storage=self.state)
        self.current_user: Optional[dict] = None

    def open(self, seed: bool = False) -> "Shop":
        self.db.open()
        self.db.init_db()
        if self.settings.admin_email and self.settings.admin_password:
            self.users.ensure_admin(self.settings.admin_email, self.settings.admin_password)
        if seed:
            self.seed_if_empty()
        self.cart = Cart.load(self.state)
        self.current_user = self.remembered_user()
        logger.info("Shop ready: db=%s, cart lines=%s", self.settings.db_path, self.cart.line_count())
        return self

    def close(self) -> None:
        self.db.close()

    def __enter__(self) -> "Shop":
        return self.open()

    def __exit__(self, *exc: object) -> None:
        self.close()

    def seed_if_empty(self) -> int:
        return seed_if_empty(self.catalog)

    def remember_user(self, user_id: Optional[int]) -> None:
        try:
            if user_id is None:
                self.state.remove(REMEMBERED_USER_KEY)
            else:
                self.state.set(REMEMBERED_USER_KEY, str(user_id))
        except (OSError, ValueError):
            logger.exception("Error saving remembered user")

    def remembered_user(self) -> Optional[dict]:
        try:
            raw = self.state.get(REMEMBERED_USER_KEY)
        except (OSError, ValueError):
            logger.exception("Error reading remembered user")
            return None
        if not raw or not raw.isdigit():
            return None
        return self.users.get_user(int(raw))

    # ---------------- session ----------------

    def sign_in(self, email: str, password: str, remember: bool = False) -> dict:
        user = self.users.login(email, password)
        self.current_user = user
        self.remember_user(user["id"] if remember else None)
        logger.info("Signed in: user #%s (%s)", user["id"], user["role"])
        return user

    def sign_out(self) -> None:
        self.current_user = None
        self.remember_user(None)

    def is_admin(self) -> bool:
        return bool(self.current_user) and self.current_user["role"] == ROLE_ADMIN
