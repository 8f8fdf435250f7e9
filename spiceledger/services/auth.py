from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from spiceledger.core.config import Settings, get_settings
from spiceledger.core.security import TokenPair, decode_token, hash_password, issue_token_pair, verify_password
from spiceledger.domain.errors import EmailAlreadyExistsError, InvalidCredentialsError, InvalidTokenError
from spiceledger.persistence.models import UserModel
from spiceledger.users.store import UserStore

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    def __init__(self, session: Session, users: UserStore | None = None, settings: Settings | None = None):
        self.users = users or UserStore(session)
        self.settings = settings or get_settings()

    def register(self, name: str, email: str, password: str, role: str = "user") -> UserModel:
        email = _normalize_email(email)
        if self.users.find_by_email(email) is not None:
            raise EmailAlreadyExistsError()
        user = self.users.create(
            email=email,
            name=name,
            password_hash=hash_password(password, self.settings.password_hash_iterations),
            role=role,
        )
        logger.info("registered user id=%s role=%s", user.id, user.role)
        return user

    def login(self, email: str, password: str) -> TokenPair:
        user = self.users.find_by_email(_normalize_email(email))
        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()
        return issue_token_pair(user.id, user.role)

    def refresh(self, refresh_token: str) -> TokenPair:
        claims = decode_token(refresh_token, expected_type="refresh")
        user = self.users.find_by_id(str(claims["user_id"]))
        if user is None:
            raise InvalidTokenError("token subject no longer exists")
        # Role is re-read from the user row, not copied from the old token.
        return issue_token_pair(user.id, user.role)

    def seed_admin(self) -> bool:
        email = _normalize_email(self.settings.admin_email)
        if self.users.find_by_email(email) is not None:
            logger.info("admin user already exists, skipping seed")
            return False
        self.register(
            name=self.settings.admin_name,
            email=email,
            password=self.settings.admin_password,
            role="admin",
        )
        logger.info("admin user created: %s", email)
        return True
