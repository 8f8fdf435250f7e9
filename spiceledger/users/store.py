from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from spiceledger.persistence.models import UserModel


class UserStore:
    def __init__(self, session: Session):
        self.session = session

    def create(self, email: str, name: str, password_hash: str, role: str = "user") -> UserModel:
        row = UserModel(email=email, name=name, password_hash=password_hash, role=role)
        self.session.add(row)
        self.session.flush()
        return row

    def find_by_email(self, email: str) -> UserModel | None:
        return self.session.scalar(select(UserModel).where(UserModel.email == email))

    def find_by_id(self, user_id: str) -> UserModel | None:
        return self.session.get(UserModel, user_id)

    def count(self) -> int:
        return int(self.session.scalar(select(func.count()).select_from(UserModel)) or 0)

    def count_created_between(self, start: datetime | None, end: datetime) -> int:
        stmt = select(func.count()).select_from(UserModel).where(UserModel.created_at < end)
        if start is not None:
            stmt = stmt.where(UserModel.created_at >= start)
        return int(self.session.scalar(stmt) or 0)
