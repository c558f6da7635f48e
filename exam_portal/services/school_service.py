"""School Service - sign-up and registration window"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from exam_portal.core.logging import get_logger
from exam_portal.core.security import get_password_hash
from exam_portal.models.school import School
from exam_portal.services.school_reference import SchoolReferenceEntry, canonical_code

logger = get_logger(__name__)


class SchoolService:
    """Service layer for School operations"""

    @staticmethod
    async def get_school_by_id(db: AsyncSession, school_id: UUID) -> Optional[School]:
        result = await db.execute(select(School).where(School.id == school_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_school_by_codes(db: AsyncSession, lga_code: str, school_code: str) -> Optional[School]:
        result = await db.execute(
            select(School).where(
                School.lga_code == canonical_code(lga_code),
                School.school_code == canonical_code(school_code),
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def lock_school(db: AsyncSession, school_id: UUID) -> Optional[School]:
        """
        Re-read the school row FOR UPDATE.

        Serializes roster changes per school on PostgreSQL; SQLite ignores the
        clause and relies on its single-writer lock.
        """
        result = await db.execute(
            select(School).where(School.id == school_id).with_for_update()
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def create_school(
        db: AsyncSession,
        reference: SchoolReferenceEntry,
        password: str,
    ) -> School:
        lga_code, school_code = reference.key
        school = School(
            lga_code=lga_code,
            school_code=school_code,
            school_name=reference.schName,
            hashed_password=get_password_hash(password),
            registration_open=True,
        )
        db.add(school)
        await db.commit()
        await db.refresh(school)
        logger.info("School signed up", extra={"lga_code": lga_code, "school_code": school_code})
        return school

    @staticmethod
    async def reset_password(db: AsyncSession, school: School, new_password: str) -> School:
        school.hashed_password = get_password_hash(new_password)
        await db.commit()
        await db.refresh(school)
        logger.info(
            "School password reset",
            extra={"school_id": str(school.id), "lga_code": school.lga_code, "school_code": school.school_code},
        )
        return school

    @staticmethod
    async def count_schools(db: AsyncSession) -> int:
        result = await db.execute(select(func.count(School.id)))
        return result.scalar_one()

    @staticmethod
    async def list_schools(db: AsyncSession) -> List[School]:
        result = await db.execute(select(School).order_by(School.lga_code, School.school_code))
        return list(result.scalars().all())

    @staticmethod
    async def set_registration_open(db: AsyncSession, school: School, is_open: bool) -> School:
        school.registration_open = is_open
        await db.commit()
        await db.refresh(school)
        logger.info(
            "Registration window changed",
            extra={"school_id": str(school.id), "registration_open": is_open},
        )
        return school

    @staticmethod
    async def set_registration_open_for_all(db: AsyncSession, is_open: bool) -> List[School]:
        await db.execute(update(School).values(registration_open=is_open))
        await db.commit()
        logger.info("Registration window changed for all schools", extra={"registration_open": is_open})
        result = await db.execute(
            select(School)
            .order_by(School.lga_code, School.school_code)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())
