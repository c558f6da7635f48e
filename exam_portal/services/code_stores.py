"""SQLAlchemy-backed stores for code uniqueness checks"""

import uuid
from datetime import datetime
from typing import Iterable, Set

from sqlalchemy import select, union
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from exam_portal.models.access_pin import AccessPin
from exam_portal.models.registration import PostRegistration, StudentRegistration
from exam_portal.services.code_generator import InsertOutcome


def _conflict_ignoring_insert(db: AsyncSession, model):
    """INSERT ... ON CONFLICT DO NOTHING for the session's dialect."""
    if db.get_bind().dialect.name == "postgresql":
        return postgresql.insert(model).on_conflict_do_nothing()
    return sqlite.insert(model).on_conflict_do_nothing()


class AccessPinStore:
    """Access PIN namespace; reservations are rows in ``access_pins``."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _row(pin: str) -> dict:
        now = datetime.utcnow()
        return {
            "id": uuid.uuid4(),
            "pin": pin,
            "is_active": True,
            "usage_count": 0,
            "created_at": now,
            "updated_at": now,
        }

    async def exists_by_code(self, code: str) -> bool:
        result = await self.db.execute(select(AccessPin.id).where(AccessPin.pin == code))
        return result.first() is not None

    async def check_many_exist(self, codes: Iterable[str]) -> Set[str]:
        codes = list(codes)
        if not codes:
            return set()
        result = await self.db.execute(select(AccessPin.pin).where(AccessPin.pin.in_(codes)))
        return set(result.scalars().all())

    async def insert_if_absent(self, code: str) -> InsertOutcome:
        stmt = _conflict_ignoring_insert(self.db, AccessPin).values(**self._row(code))
        result = await self.db.execute(stmt)
        return InsertOutcome.INSERTED if result.rowcount == 1 else InsertOutcome.ALREADY_EXISTS

    async def insert_many_if_absent(self, codes: Iterable[str]) -> Set[str]:
        rows = [self._row(code) for code in codes]
        if not rows:
            return set()
        stmt = (
            _conflict_ignoring_insert(self.db, AccessPin)
            .values(rows)
            .returning(AccessPin.pin)
        )
        result = await self.db.execute(stmt)
        return set(result.scalars().all())


class AccCodeStore:
    """Account codes across both the regular and the late registration tables."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def exists_by_code(self, code: str) -> bool:
        return bool(await self.check_many_exist([code]))

    async def check_many_exist(self, codes: Iterable[str]) -> Set[str]:
        codes = list(codes)
        if not codes:
            return set()
        stmt = union(
            select(StudentRegistration.acc_code).where(StudentRegistration.acc_code.in_(codes)),
            select(PostRegistration.acc_code).where(PostRegistration.acc_code.in_(codes)),
        )
        result = await self.db.execute(stmt)
        return set(result.scalars().all())
