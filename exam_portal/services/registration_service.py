"""Registration Service - persists learners and keeps student numbers consistent"""

from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple, Type, Union
from uuid import UUID

from sqlalchemy import Row, func, literal, or_, select, union_all
from sqlalchemy.ext.asyncio import AsyncSession

from exam_portal.core.exceptions import RegistrationClosed
from exam_portal.core.logging import get_logger
from exam_portal.models.enums import RegistrationMode
from exam_portal.models.registration import PostRegistration, StudentRegistration
from exam_portal.models.school import School
from exam_portal.schemas.registration import RegistrationCreate, RegistrationUpdate, StudentName
from exam_portal.services.code_generator import generate_batch_acc_codes
from exam_portal.services.code_stores import AccCodeStore
from exam_portal.services.numbering import (
    RosterEntry,
    SchoolPrefix,
    incremental_student_numbers,
    next_sequence,
    normalize_surname,
    recompute_student_numbers,
)
from exam_portal.services.school_reference import SchoolReferenceCache, canonical_code
from exam_portal.services.school_service import SchoolService

logger = get_logger(__name__)

Registration = Union[StudentRegistration, PostRegistration]

# Columns that may not be cleared through an update payload
_REQUIRED_FIELDS = {"firstname", "lastname", "othername", "gender", "school_type", "scores"}


def _unresolved_warning(school: School) -> str:
    return (
        f"School LGA code {school.lga_code} / school code {school.school_code} "
        "is missing from the school reference dataset; "
        "student numbers may be missing or built from the school's own codes"
    )


class RegistrationService:
    """Service layer for student registrations"""

    @staticmethod
    def _model(late: bool) -> Type[Registration]:
        return PostRegistration if late else StudentRegistration

    @staticmethod
    async def list_registrations(db: AsyncSession, school_id: UUID, late: bool = False) -> List[Registration]:
        model = RegistrationService._model(late)
        result = await db.execute(
            select(model)
            .where(model.school_id == school_id)
            .order_by(model.student_number, model.lastname, model.firstname)
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_registration(
        db: AsyncSession, school_id: UUID, registration_id: UUID, late: bool = False
    ) -> Optional[Registration]:
        model = RegistrationService._model(late)
        result = await db.execute(
            select(model).where(model.id == registration_id, model.school_id == school_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def find_registration(db: AsyncSession, registration_id: UUID, late: bool = False) -> Optional[Registration]:
        """Look a registration up by id regardless of the owning school."""
        model = RegistrationService._model(late)
        result = await db.execute(select(model).where(model.id == registration_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def search_registrations(
        db: AsyncSession,
        skip: int = 0,
        limit: int = 100,
        search: str = "",
        lga_code: Optional[str] = None,
        school_code: Optional[str] = None,
        late: Optional[bool] = None,
    ) -> Tuple[List[Row], int]:
        """
        Registrations from both tables joined to their school, newest first.

        ``late`` restricts the listing to one table; None lists both.
        Returns (rows, total matching).
        """
        selects = []
        for model, is_late in ((StudentRegistration, False), (PostRegistration, True)):
            if late is not None and late != is_late:
                continue
            conditions = []
            if search:
                pattern = f"%{search.strip()}%"
                conditions.append(
                    or_(
                        model.firstname.ilike(pattern),
                        model.lastname.ilike(pattern),
                        model.student_number.ilike(pattern),
                    )
                )
            if lga_code:
                conditions.append(School.lga_code == canonical_code(lga_code))
            if school_code:
                conditions.append(School.school_code == canonical_code(school_code))
            selects.append(
                select(
                    model.id,
                    literal(is_late).label("late"),
                    model.acc_code,
                    model.student_number,
                    model.firstname,
                    model.othername,
                    model.lastname,
                    model.gender,
                    model.school_type,
                    School.lga_code,
                    School.school_code,
                    School.school_name,
                    model.created_at,
                )
                .join(School, School.id == model.school_id)
                .where(*conditions)
            )

        listing = (selects[0] if len(selects) == 1 else union_all(*selects)).subquery()
        count_result = await db.execute(select(func.count()).select_from(listing))
        total = count_result.scalar_one()

        result = await db.execute(
            select(listing)
            .order_by(listing.c.created_at.desc(), listing.c.lastname, listing.c.firstname)
            .offset(skip)
            .limit(limit)
        )
        return list(result.all()), total

    @staticmethod
    async def count_registrations(db: AsyncSession, late: bool = False, since: Optional[datetime] = None) -> int:
        model = RegistrationService._model(late)
        stmt = select(func.count(model.id))
        if since is not None:
            stmt = stmt.where(model.created_at >= since)
        result = await db.execute(stmt)
        return result.scalar_one()

    @staticmethod
    async def list_all_student_numbers(db: AsyncSession, lga_code: str, school_code: str) -> List[str]:
        """Every student number issued to a school, regular and late tables together."""
        stmt = union_all(
            select(StudentRegistration.student_number)
            .join(School, School.id == StudentRegistration.school_id)
            .where(School.lga_code == lga_code, School.school_code == school_code),
            select(PostRegistration.student_number)
            .join(School, School.id == PostRegistration.school_id)
            .where(School.lga_code == lga_code, School.school_code == school_code),
        )
        result = await db.execute(stmt)
        return [number for number in result.scalars().all() if number]

    @staticmethod
    async def list_all_surnames(db: AsyncSession, lga_code: str, school_code: str) -> List[str]:
        """Surnames on the school's regular roster."""
        result = await db.execute(
            select(StudentRegistration.lastname)
            .join(School, School.id == StudentRegistration.school_id)
            .where(School.lga_code == lga_code, School.school_code == school_code)
        )
        return list(result.scalars().all())

    @staticmethod
    async def late_student_numbers(
        db: AsyncSession,
        reference: SchoolReferenceCache,
        lga_code: str,
        school_code: str,
        count: int = 1,
    ) -> Tuple[List[str], bool]:
        """
        Next ``count`` late-mode numbers: max sequence across both tables + 1.

        An unresolved school falls back to a prefix built from its raw codes;
        the sequence still continues from what the school already holds.
        Returns (numbers, resolved).
        """
        prefix = reference.resolve(lga_code, school_code)
        resolved = prefix is not None
        if prefix is None:
            logger.warning(
                "School reference not found for incremental numbering",
                extra={"lga_code": lga_code, "school_code": school_code},
            )
            prefix = SchoolPrefix.from_codes(lga_code, school_code)
        existing = await RegistrationService.list_all_student_numbers(db, lga_code, school_code)
        return incremental_student_numbers(prefix, existing, count), resolved

    @staticmethod
    async def generate_incremental_student_number(
        db: AsyncSession,
        reference: SchoolReferenceCache,
        lga_code: str,
        school_code: str,
    ) -> str:
        numbers, _ = await RegistrationService.late_student_numbers(db, reference, lga_code, school_code)
        return numbers[0]

    @staticmethod
    async def renumber(
        db: AsyncSession, school: School, reference: SchoolReferenceCache
    ) -> Tuple[int, List[str]]:
        """
        Recompute every regular-table number of ``school`` from the full roster.

        Pending rows must already be flushed. Returns (rows changed, warnings);
        does not commit.
        """
        prefix = reference.resolve(school.lga_code, school.school_code)
        if prefix is None:
            logger.warning(
                "School reference not found; roster left unnumbered",
                extra={"school_id": str(school.id), "lga_code": school.lga_code, "school_code": school.school_code},
            )
            return 0, [_unresolved_warning(school)]

        result = await db.execute(
            select(StudentRegistration).where(StudentRegistration.school_id == school.id)
        )
        rows: Dict[UUID, StudentRegistration] = {row.id: row for row in result.scalars().all()}
        roster = [
            RosterEntry(key=row.id, surname=row.lastname, student_number=row.student_number)
            for row in rows.values()
        ]

        updated = 0
        for entry in recompute_student_numbers(prefix, roster):
            row = rows[entry.key]
            if row.student_number != entry.student_number:
                row.student_number = entry.student_number
                updated += 1

        logger.info(
            "Roster renumbered",
            extra={"school_id": str(school.id), "roster": len(roster), "updated": updated},
        )
        return updated, []

    @staticmethod
    async def renumber_school(
        db: AsyncSession, school: School, reference: SchoolReferenceCache
    ) -> Tuple[int, List[str]]:
        """Explicit full recompute; only allowed while the registration window is open."""
        locked = await SchoolService.lock_school(db, school.id)
        if not locked.registration_open:
            raise RegistrationClosed("Registration is closed; student numbers are frozen")
        updated, warnings = await RegistrationService.renumber(db, locked, reference)
        await db.commit()
        return updated, warnings

    @staticmethod
    async def register_students(
        db: AsyncSession,
        school: School,
        entries: Sequence[RegistrationCreate],
        reference: SchoolReferenceCache,
    ) -> Tuple[RegistrationMode, List[Registration], List[str]]:
        """
        Register a batch of learners under the school's current numbering mode.

        Account codes for the whole batch are minted before anything is
        written, so a generation failure leaves no partial registration.
        """
        locked = await SchoolService.lock_school(db, school.id)
        acc_codes = await generate_batch_acc_codes(AccCodeStore(db), len(entries))
        mode = locked.registration_mode
        warnings: List[str] = []

        if mode is RegistrationMode.REGULAR:
            rows: List[Registration] = [
                StudentRegistration(school_id=locked.id, acc_code=code, **entry.model_dump())
                for entry, code in zip(entries, acc_codes)
            ]
            db.add_all(rows)
            await db.flush()
            _, warnings = await RegistrationService.renumber(db, locked, reference)
        else:
            numbers, resolved = await RegistrationService.late_student_numbers(
                db, reference, locked.lga_code, locked.school_code, len(entries)
            )
            if not resolved:
                warnings.append(_unresolved_warning(locked))
            rows = [
                PostRegistration(
                    school_id=locked.id, acc_code=code, student_number=number, **entry.model_dump()
                )
                for entry, code, number in zip(entries, acc_codes, numbers)
            ]
            db.add_all(rows)

        await db.commit()
        logger.info(
            "Students registered",
            extra={"school_id": str(locked.id), "mode": mode.value, "count": len(rows)},
        )
        return mode, rows, warnings

    @staticmethod
    async def update_registration(
        db: AsyncSession,
        school: School,
        registration_id: UUID,
        changes: RegistrationUpdate,
        reference: SchoolReferenceCache,
        late: bool = False,
    ) -> Tuple[Optional[Registration], List[str]]:
        row = await RegistrationService.get_registration(db, school.id, registration_id, late)
        if row is None:
            return None, []

        data = {
            key: value
            for key, value in changes.model_dump(exclude_unset=True).items()
            if value is not None or key not in _REQUIRED_FIELDS
        }
        surname_changed = (
            "lastname" in data and normalize_surname(data["lastname"]) != normalize_surname(row.lastname)
        )
        for key, value in data.items():
            setattr(row, key, value)

        warnings: List[str] = []
        if not late and surname_changed:
            locked = await SchoolService.lock_school(db, school.id)
            if locked.registration_open:
                await db.flush()
                _, warnings = await RegistrationService.renumber(db, locked, reference)

        await db.commit()
        return row, warnings

    @staticmethod
    async def delete_registration(
        db: AsyncSession,
        school: School,
        registration_id: UUID,
        reference: SchoolReferenceCache,
        late: bool = False,
    ) -> Tuple[bool, List[str]]:
        row = await RegistrationService.get_registration(db, school.id, registration_id, late)
        if row is None:
            return False, []

        await db.delete(row)
        warnings: List[str] = []
        if not late:
            locked = await SchoolService.lock_school(db, school.id)
            if locked.registration_open:
                await db.flush()
                _, warnings = await RegistrationService.renumber(db, locked, reference)

        await db.commit()
        return True, warnings

    @staticmethod
    async def max_sequence(db: AsyncSession, school: School) -> int:
        numbers = await RegistrationService.list_all_student_numbers(db, school.lga_code, school.school_code)
        return next_sequence(numbers) - 1

    @staticmethod
    async def find_duplicates(
        db: AsyncSession, school_id: UUID, students: Sequence[StudentName]
    ) -> List[Tuple[Registration, RegistrationMode]]:
        """Case-insensitive name matches, regular table first, then late."""
        matches: List[Tuple[Registration, RegistrationMode]] = []
        for student in students:
            for model, mode in (
                (StudentRegistration, RegistrationMode.REGULAR),
                (PostRegistration, RegistrationMode.LATE),
            ):
                conditions = [
                    model.school_id == school_id,
                    func.lower(model.firstname) == student.firstname.strip().lower(),
                    func.lower(model.lastname) == student.lastname.strip().lower(),
                ]
                if student.othername:
                    conditions.append(func.lower(model.othername) == student.othername.strip().lower())
                result = await db.execute(select(model).where(*conditions).limit(1))
                existing = result.scalar_one_or_none()
                if existing is not None:
                    matches.append((existing, mode))
                    break
        return matches
