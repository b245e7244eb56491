from typing import Optional, List
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from rxportal.core.exceptions import (
    AuthenticationError, AuthorizationError, NotFoundError, ValidationError
)
from rxportal.core.permissions import CallerContext, Permissions
from rxportal.domain.prescriptions.assembler import PrescriptionAssembler
from rxportal.domain.prescriptions.draft import PrescriptionDraft
from rxportal.domain.prescriptions.repository import PrescriptionRepository
from rxportal.schemas.prescription import (
    Medication, PrescriptionCreate, PrescriptionUpdate, PrescriptionView
)

REQUIRED_MEDICATION_FIELDS = ("name", "dosage", "frequency", "duration")


def validate_medications(medications: Optional[List[Medication]]) -> List[dict]:
    """Check the medication list and return it as stored, order preserved"""
    if not medications:
        raise ValidationError("At least one medication is required")

    stored = []
    for position, medication in enumerate(medications, start=1):
        missing = [
            name for name in REQUIRED_MEDICATION_FIELDS
            if not (getattr(medication, name) or "").strip()
        ]
        if missing:
            raise ValidationError(
                f"Medication {position} is missing: {', '.join(missing)}",
                details={"position": position, "missing": missing}
            )
        item = medication.model_dump()
        item["instructions"] = item.get("instructions") or None
        stored.append(item)
    return stored


def validate_diagnosis(diagnosis: Optional[str]) -> str:
    if not diagnosis or not diagnosis.strip():
        raise ValidationError("Diagnosis is required")
    return diagnosis


class PrescriptionService:
    """Creates and updates prescriptions on behalf of the signed-in doctor"""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _authorize(self, identity: Optional[CallerContext], permission: str, action: str) -> CallerContext:
        if identity is None:
            raise AuthenticationError(f"You must be logged in to {action} prescriptions")
        if permission not in identity.permissions:
            raise AuthorizationError(f"Only doctors can {action} prescriptions")
        return identity

    async def create_prescription(
        self,
        identity: Optional[CallerContext],
        payload: PrescriptionCreate
    ) -> PrescriptionView:
        identity = self._authorize(identity, Permissions.PRESCRIPTIONS_CREATE, "create")

        if not payload.patient_id:
            raise ValidationError("Patient is required")
        data = {
            # Always the caller; a doctor cannot author for someone else
            "doctor_id": identity.identity_id,
            "patient_id": payload.patient_id,
            "diagnosis": validate_diagnosis(payload.diagnosis),
            "medications": validate_medications(payload.medications),
            "notes": payload.notes or None,
            "status": payload.status,
        }

        repo = PrescriptionRepository(self.db, identity)
        prescription = await repo.insert_prescription(data)
        logger.info(f"Prescription {prescription.id} created by {identity.identity_id}")

        return await self._reload(identity, prescription.id)

    async def update_prescription(
        self,
        identity: Optional[CallerContext],
        prescription_id: str,
        payload: PrescriptionUpdate
    ) -> PrescriptionView:
        identity = self._authorize(identity, Permissions.PRESCRIPTIONS_UPDATE_OWN, "update")

        changes = payload.model_dump(exclude_unset=True)
        data = {}
        if "diagnosis" in changes:
            data["diagnosis"] = validate_diagnosis(payload.diagnosis)
        if "medications" in changes:
            data["medications"] = validate_medications(payload.medications)
        if "notes" in changes:
            data["notes"] = payload.notes or None
        if "status" in changes and payload.status is not None:
            data["status"] = payload.status

        repo = PrescriptionRepository(self.db, identity)
        prescription = await repo.update_prescription(prescription_id, data)
        if prescription is None:
            raise NotFoundError("Prescription not found")
        logger.info(f"Prescription {prescription_id} updated by {identity.identity_id}")

        return await self._reload(identity, prescription.id)

    async def submit(
        self,
        identity: Optional[CallerContext],
        draft: PrescriptionDraft,
        prescription_id: Optional[str] = None
    ) -> PrescriptionView:
        """Save an authoring draft: update when editing an existing prescription, create otherwise"""
        if prescription_id:
            return await self.update_prescription(identity, prescription_id, draft.to_update())
        return await self.create_prescription(identity, draft.to_create())

    async def _reload(self, identity: CallerContext, prescription_id: str) -> PrescriptionView:
        view = await PrescriptionAssembler(self.db, identity).assemble_one(prescription_id)
        if view is None:
            raise NotFoundError("Prescription not found")
        return view
