from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import bcrypt

from bookshop.constants import ROLE_ADMIN, ROLE_CUSTOMER
from bookshop.db.sqlite import Database, utc_now_str
from bookshop.errors import AuthError
from bookshop.utils.validators import require_email, require_text

logger = logging.getLogger(__name__)

PUBLIC_COLUMNS = "id, full_name, email, role, created_at"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode(), password_hash.encode())


class UserStore:
    def __init__(self, db: Database) -> None:
        self.db = db

    def register(
        self,
        full_name: str,
        email: str,
        password: str,
        role: str = ROLE_CUSTOMER,
    ) -> Dict[str, Any]:
        full_name = require_text(full_name, "full_name")
        email = require_email(email).lower()
        require_text(password, "password")
        if role not in (ROLE_ADMIN, ROLE_CUSTOMER):
            raise ValueError(f"unknown role: {role}")

        with self.db.transaction() as conn:
            exists = conn.execute("SELECT 1 FROM users WHERE email = ?", (email,)).fetchone()
            if exists:
                raise AuthError("Email already registered")
            cur = conn.execute(
                "INSERT INTO users(full_name, email, password_hash, role, created_at) VALUES(?,?,?,?,?)",
                (full_name, email, hash_password(password), role, utc_now_str()),
            )
            user_id = int(cur.lastrowid)
        return self.get_user(user_id)

    def login(self, email: str, password: str) -> Dict[str, Any]:
        row = self.db.query_one(
            f"SELECT {PUBLIC_COLUMNS}, password_hash FROM users WHERE email = ?",
            ((email or "").strip().lower(),),
        )
        if not row or not verify_password(password or "", row.pop("password_hash")):
            raise AuthError("Invalid email or password")
        return row

    def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        return self.db.query_one(f"SELECT {PUBLIC_COLUMNS} FROM users WHERE id = ?", (user_id,))

    def list_users(self) -> List[Dict[str, Any]]:
        return self.db.query(f"SELECT {PUBLIC_COLUMNS} FROM users ORDER BY created_at DESC, id DESC")

    def ensure_admin(self, email: str, password: str) -> None:
        row = self.db.query_one("SELECT id FROM users WHERE email = ?", (email.lower(),))
        if row:
            return
        self.register("Admin", email, password, role=ROLE_ADMIN)
        logger.info("Default admin account created: %s", email)
