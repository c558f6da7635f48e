"""Result Service - candidate lookup and admin maintenance of results"""

import hmac
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from exam_portal.core.logging import get_logger
from exam_portal.models.result import ExamResult
from exam_portal.schemas.result import ResultCreate, ResultUpdate

logger = get_logger(__name__)

# Columns that may not be cleared through an update payload
_REQUIRED_FIELDS = {"exam_number", "session_year", "firstname", "othername", "lastname", "subjects", "blocked"}


class ResultService:
    """Service layer for examination results"""

    @staticmethod
    async def get_result(db: AsyncSession, result_id: UUID) -> Optional[ExamResult]:
        result = await db.execute(select(ExamResult).where(ExamResult.id == result_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_exam_number(db: AsyncSession, exam_number: str) -> Optional[ExamResult]:
        result = await db.execute(
            select(ExamResult).where(ExamResult.exam_number == exam_number.strip())
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def lookup(db: AsyncSession, exam_number: str, pin: str) -> Optional[ExamResult]:
        """
        Find a result by examination number and card PIN.

        A wrong PIN and an unknown number both return None so callers cannot
        tell which one was wrong.
        """
        row = await ResultService.get_by_exam_number(db, exam_number)
        if row is None or not row.access_pin:
            return None
        if not hmac.compare_digest(row.access_pin.encode(), pin.strip().encode()):
            return None
        return row

    @staticmethod
    async def create_result(db: AsyncSession, data: ResultCreate) -> ExamResult:
        row = ExamResult(**data.model_dump())
        db.add(row)
        await db.commit()
        await db.refresh(row)
        logger.info("Result created", extra={"exam_number": row.exam_number})
        return row

    @staticmethod
    async def list_results(
        db: AsyncSession,
        skip: int = 0,
        limit: int = 50,
        search: str = "",
        session_year: Optional[str] = None,
        lga_code: Optional[str] = None,
        school_code: Optional[str] = None,
        blocked: Optional[bool] = None,
    ) -> Tuple[List[ExamResult], int]:
        conditions = []
        if search:
            pattern = f"%{search.strip()}%"
            conditions.append(
                or_(
                    ExamResult.exam_number.ilike(pattern),
                    ExamResult.firstname.ilike(pattern),
                    ExamResult.lastname.ilike(pattern),
                    ExamResult.school_name.ilike(pattern),
                )
            )
        if session_year:
            conditions.append(ExamResult.session_year == session_year)
        if lga_code:
            conditions.append(ExamResult.lga_code == lga_code)
        if school_code:
            conditions.append(ExamResult.school_code == school_code)
        if blocked is not None:
            conditions.append(ExamResult.blocked == blocked)

        count_result = await db.execute(select(func.count(ExamResult.id)).where(*conditions))
        total = count_result.scalar_one()

        result = await db.execute(
            select(ExamResult)
            .where(*conditions)
            .order_by(ExamResult.created_at.desc(), ExamResult.exam_number)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    @staticmethod
    async def filter_options(db: AsyncSession) -> Tuple[List[str], List[str]]:
        """Distinct session years (newest first) and LGA codes present in the results."""
        years = await db.execute(
            select(ExamResult.session_year).distinct().order_by(ExamResult.session_year.desc())
        )
        lgas = await db.execute(
            select(ExamResult.lga_code)
            .where(ExamResult.lga_code.is_not(None))
            .distinct()
            .order_by(ExamResult.lga_code)
        )
        return list(years.scalars().all()), list(lgas.scalars().all())

    @staticmethod
    async def update_result(db: AsyncSession, row: ExamResult, changes: ResultUpdate) -> ExamResult:
        data = {
            key: value
            for key, value in changes.model_dump(exclude_unset=True).items()
            if value is not None or key not in _REQUIRED_FIELDS
        }
        for key, value in data.items():
            setattr(row, key, value)
        await db.commit()
        await db.refresh(row)
        logger.info("Result updated", extra={"exam_number": row.exam_number, "fields": sorted(data)})
        return row

    @staticmethod
    async def delete_result(db: AsyncSession, row: ExamResult) -> None:
        exam_number = row.exam_number
        await db.delete(row)
        await db.commit()
        logger.info("Result deleted", extra={"exam_number": exam_number})

    @staticmethod
    async def set_released(db: AsyncSession, released: bool) -> int:
        """Release (unblock) or withhold every result at once; returns rows changed."""
        outcome = await db.execute(
            update(ExamResult)
            .where(ExamResult.blocked == released)
            .values(blocked=not released)
        )
        await db.commit()
        logger.info("Results release changed", extra={"released": released, "updated": outcome.rowcount})
        return outcome.rowcount

    @staticmethod
    async def count_results(db: AsyncSession, blocked: Optional[bool] = None) -> int:
        stmt = select(func.count(ExamResult.id))
        if blocked is not None:
            stmt = stmt.where(ExamResult.blocked == blocked)
        result = await db.execute(stmt)
        return result.scalar_one()
