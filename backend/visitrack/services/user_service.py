import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from visitrack.config import get_settings
from visitrack.models.user import User, UserRole
from visitrack.schemas.user import UserUpsert

logger = logging.getLogger(__name__)

# Dialects with INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}

_TEXT_FIELDS = ("name", "email", "login_method")


class UserService:
    def __init__(self, db: Optional[AsyncSession], owner_open_id: Optional[str] = None):
        self.db = db
        self.owner_open_id = (
            owner_open_id if owner_open_id is not None else get_settings().owner_open_id
        )

    @property
    def available(self) -> bool:
        return self.db is not None

    async def get_by_open_id(self, open_id: str) -> Optional[User]:
        if self.db is None:
            logger.warning("Cannot get user: database not available")
            return None

        query = (
            select(User)
            .where(User.open_id == open_id)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def upsert(self, user_data: UserUpsert) -> None:
        """
        Insert or update a user keyed on open_id in one statement.

        Fields the caller did not set are left untouched on update. The owner
        gets the admin role when the row is first created.
        """
        if not user_data.open_id:
            raise ValueError("User open_id is required for upsert")

        if self.db is None:
            logger.warning("Cannot upsert user: database not available")
            return

        supplied = user_data.model_dump(exclude_unset=True)
        now = datetime.now(timezone.utc)

        values: dict = {"open_id": user_data.open_id}
        update_set: dict = {}

        for field in _TEXT_FIELDS:
            if field in supplied:
                values[field] = supplied[field]
                update_set[field] = supplied[field]

        if supplied.get("role") is not None:
            values["role"] = supplied["role"]
            update_set["role"] = supplied["role"]
        elif user_data.open_id == self.owner_open_id:
            values["role"] = UserRole.admin

        signed_in = supplied.get("last_signed_in") or now
        values["last_signed_in"] = signed_in
        update_set["last_signed_in"] = signed_in
        update_set["updated_at"] = func.now()

        dialect = self.db.get_bind().dialect.name
        try:
            insert = _UPSERT_INSERTS[dialect]
        except KeyError:
            raise NotImplementedError(f"User upsert is not supported on {dialect}") from None

        stmt = insert(User).values(**values)
        stmt = stmt.on_conflict_do_update(index_elements=["open_id"], set_=update_set)

        try:
            await self.db.execute(stmt)
        except SQLAlchemyError:
            logger.exception("Failed to upsert user %s", user_data.open_id)
            raise
