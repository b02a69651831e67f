from __future__ import annotations
from datetime import datetime
from pathlib import Path
from typing import Optional

import sqlalchemy as db
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from taskboard.adapters.sql.engine import create_engine, decode_dt, encode_dt
from taskboard.domain.errors import StorageError, UserAlreadyExistsError
from taskboard.domain.task import UserId
from taskboard.domain.user import User


class SqlUserRepository:
    def __init__(self, url: str | Path | db.Engine) -> None:
        self.engine = url if isinstance(url, db.Engine) else create_engine(url)
        self.meta = db.MetaData()

        self.users = db.Table(
            "users",
            self.meta,
            db.Column("user_id", db.String, primary_key=True),
            db.Column("email", db.String, nullable=False, unique=True),
            db.Column("name", db.String, nullable=False),
            db.Column("password_hash", db.String, nullable=False),
            db.Column("created_at", db.String, nullable=False),
        )
        self.sessions = db.Table(
            "sessions",
            self.meta,
            db.Column("token", db.String, primary_key=True),
            db.Column("user_id", db.String, nullable=False, index=True),
            db.Column("created_at", db.String, nullable=False),
        )

        try:
            self.meta.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StorageError(str(e))

    def _from_row(self, row) -> User:
        return User(
            user_id=UserId(row["user_id"]),
            email=row["email"],
            name=row["name"],
            password_hash=row["password_hash"],
            created_at=decode_dt(row["created_at"]),
        )

    def _first_user(self, where) -> Optional[User]:
        stmt = db.select(self.users).where(where)
        try:
            with self.engine.connect() as conn:
                row = conn.execute(stmt).mappings().first()
        except SQLAlchemyError as e:
            raise StorageError(str(e))
        return None if row is None else self._from_row(row)

    def add(self, user: User) -> None:
        stmt = db.insert(self.users).values(
            user_id=str(user.user_id),
            email=user.email.lower(),
            name=user.name,
            password_hash=user.password_hash,
            created_at=encode_dt(user.created_at),
        )
        try:
            with self.engine.begin() as conn:
                conn.execute(stmt)
        except IntegrityError:
            # UNIQUE(email) albo konflikt PK
            raise UserAlreadyExistsError(user.email)
        except SQLAlchemyError as e:
            raise StorageError(str(e))

    def get(self, user_id: UserId) -> Optional[User]:
        return self._first_user(self.users.c.user_id == str(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return self._first_user(self.users.c.email == email.lower())

    def add_session(self, token: str, user_id: UserId, created_at: datetime) -> None:
        stmt = db.insert(self.sessions).values(
            token=token, user_id=str(user_id), created_at=encode_dt(created_at)
        )
        try:
            with self.engine.begin() as conn:
                conn.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageError(str(e))

    def user_id_for_token(self, token: str) -> Optional[UserId]:
        stmt = db.select(self.sessions.c.user_id).where(self.sessions.c.token == token)
        try:
            with self.engine.connect() as conn:
                user_id = conn.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageError(str(e))
        return None if user_id is None else UserId(user_id)

    def remove_session(self, token: str) -> None:
        stmt = db.delete(self.sessions).where(self.sessions.c.token == token)
        try:
            with self.engine.begin() as conn:
                conn.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageError(str(e))
