"""
Record store access for prescriptions.

Every query is issued on behalf of a caller identity and carries the
row-level policy: a caller only ever reads prescriptions they authored or
that were issued to them, and only the authoring doctor may write. The
assembler and authoring service above this layer add no ownership filtering
of their own.
"""

from typing import Optional, List
from sqlalchemy import select, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rxportal.core.exceptions import StoreError, handle_store_error
from rxportal.core.permissions import CallerContext
from rxportal.domain.identity.models import Doctor, Patient, Profile, UserRole
from rxportal.domain.prescriptions.models import Prescription

RLS_VIOLATION = 'new row violates row-level security policy for table "prescriptions"'
PATIENT_FK_VIOLATION = (
    'insert or update on table "prescriptions" violates foreign key constraint '
    '"prescriptions_patient_id_fkey"'
)
DOCTOR_FK_VIOLATION = (
    'insert or update on table "prescriptions" violates foreign key constraint '
    '"prescriptions_doctor_id_fkey"'
)


class PrescriptionRepository:
    """Repository for prescription rows and the relations they join against"""

    def __init__(self, db: AsyncSession, identity: CallerContext):
        self.db = db
        self.identity = identity

    def _visible(self):
        return or_(
            Prescription.doctor_id == self.identity.identity_id,
            Prescription.patient_id == self.identity.identity_id
        )

    async def _fetch_all(self, query, operation: str) -> list:
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise handle_store_error(e, operation)
        return list(result.scalars().all())

    async def list_prescriptions(self) -> List[Prescription]:
        """Prescriptions visible to the caller, newest first"""
        query = select(Prescription).where(self._visible()).order_by(
            Prescription.created_at.desc(),
            Prescription.id.desc()
        )
        return await self._fetch_all(query, "list prescriptions")

    async def get_prescription(self, prescription_id: str) -> Optional[Prescription]:
        query = select(Prescription).where(
            Prescription.id == prescription_id,
            self._visible()
        )
        rows = await self._fetch_all(query, "get prescription")
        return rows[0] if rows else None

    async def list_doctors(self) -> List[Doctor]:
        return await self._fetch_all(select(Doctor), "list doctors")

    async def list_patients(self) -> List[Patient]:
        return await self._fetch_all(select(Patient), "list patients")

    async def list_profiles(self) -> List[Profile]:
        return await self._fetch_all(select(Profile), "list profiles")

    async def insert_prescription(self, data: dict) -> Prescription:
        if (
            self.identity.role != UserRole.DOCTOR
            or data.get("doctor_id") != self.identity.identity_id
        ):
            raise StoreError(RLS_VIOLATION, details={"operation": "insert prescription"})

        try:
            if await self.db.get(Doctor, data["doctor_id"]) is None:
                raise StoreError(DOCTOR_FK_VIOLATION, details={"operation": "insert prescription"})
            if await self.db.get(Patient, data["patient_id"]) is None:
                raise StoreError(PATIENT_FK_VIOLATION, details={"operation": "insert prescription"})

            prescription = Prescription(**data)
            self.db.add(prescription)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise handle_store_error(e, "insert prescription")

        await self.db.refresh(prescription)
        return prescription

    async def update_prescription(self, prescription_id: str, data: dict) -> Optional[Prescription]:
        """Overwrite the given columns; returns None when no row is visible under that id"""
        prescription = await self.get_prescription(prescription_id)
        if prescription is None:
            return None
        if prescription.doctor_id != self.identity.identity_id:
            raise StoreError(RLS_VIOLATION, details={"operation": "update prescription"})

        try:
            for field, value in data.items():
                setattr(prescription, field, value)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise handle_store_error(e, "update prescription")

        await self.db.refresh(prescription)
        return prescription
