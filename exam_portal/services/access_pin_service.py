"""Access PIN Service - pool management and school verification"""

from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from exam_portal.core.logging import get_logger
from exam_portal.models.access_pin import AccessPin
from exam_portal.services.code_generator import (
    CodeBatch,
    access_pin_format,
    generate_pin_batch,
)
from exam_portal.services.code_stores import AccessPinStore
from exam_portal.services.school_reference import SchoolReferenceEntry

logger = get_logger(__name__)


class AccessPinService:
    """Service layer for the access PIN pool"""

    @staticmethod
    async def generate(db: AsyncSession, count: int) -> Tuple[CodeBatch, List[AccessPin]]:
        """Reserve ``count`` new unclaimed PINs and return them as stored rows."""
        batch = await generate_pin_batch(AccessPinStore(db), count)
        await db.commit()
        pins: List[AccessPin] = []
        if batch.codes:
            result = await db.execute(
                select(AccessPin)
                .where(AccessPin.pin.in_(batch.codes))
                .order_by(AccessPin.pin)
            )
            pins = list(result.scalars().all())
        logger.info(
            "Access PINs generated",
            extra={"requested": count, "generated": len(batch.codes)},
        )
        return batch, pins

    @staticmethod
    async def list_pins(db: AsyncSession, active_only: bool = False) -> List[AccessPin]:
        query = select(AccessPin).order_by(AccessPin.created_at.desc())
        if active_only:
            query = query.where(AccessPin.is_active.is_(True))
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_pin(db: AsyncSession, pin_id: UUID) -> Optional[AccessPin]:
        result = await db.execute(select(AccessPin).where(AccessPin.id == pin_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def set_active(db: AsyncSession, pin_id: UUID, is_active: bool) -> AccessPin:
        """Soft-delete (``is_active=False``) or reactivate a PIN."""
        pin = await AccessPinService.get_pin(db, pin_id)
        if pin is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Access PIN not found")
        pin.is_active = is_active
        await db.commit()
        await db.refresh(pin)
        return pin

    @staticmethod
    async def verify(
        db: AsyncSession,
        reference: SchoolReferenceEntry,
        pin_value: str,
    ) -> AccessPin:
        """
        Redeem a PIN for a school.

        The first school to verify an unclaimed PIN becomes its owner; every
        other school is rejected from then on.
        """
        lga_code, school_code = reference.key
        pin_value = pin_value.strip()

        pin = None
        if access_pin_format().matches(pin_value):
            result = await db.execute(
                select(AccessPin).where(
                    AccessPin.pin == pin_value,
                    AccessPin.is_active.is_(True),
                )
            )
            pin = result.scalar_one_or_none()

        if pin is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or inactive access PIN. Please check your PIN and try again.",
            )

        if pin.is_claimed and not pin.is_owned_by(lga_code, school_code):
            AccessPinService._reject_non_owner(pin, lga_code, school_code)

        if not pin.is_claimed:
            # Conditional claim: a concurrent verifier may have claimed it first
            claimed = await db.execute(
                update(AccessPin)
                .where(AccessPin.id == pin.id, AccessPin.owner_lga_code.is_(None))
                .values(
                    owner_lga_code=lga_code,
                    owner_school_code=school_code,
                    owner_school_name=reference.schName,
                    claimed_at=datetime.utcnow(),
                    usage_count=1,
                )
                .execution_options(synchronize_session=False)
            )
            if claimed.rowcount == 1:
                logger.info(
                    "Access PIN claimed",
                    extra={"pin_id": str(pin.id), "lga_code": lga_code, "school_code": school_code},
                )
                await db.commit()
                await db.refresh(pin)
                return pin
            await db.refresh(pin)
            if not pin.is_owned_by(lga_code, school_code):
                AccessPinService._reject_non_owner(pin, lga_code, school_code)

        await db.execute(
            update(AccessPin)
            .where(AccessPin.id == pin.id)
            .values(usage_count=AccessPin.usage_count + 1)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        await db.refresh(pin)
        return pin

    @staticmethod
    def _reject_non_owner(pin: AccessPin, lga_code: str, school_code: str) -> None:
        logger.warning(
            "Access PIN used by non-owner",
            extra={"pin_id": str(pin.id), "lga_code": lga_code, "school_code": school_code},
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This PIN is already registered to another school.",
        )
