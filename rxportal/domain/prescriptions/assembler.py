"""
Read-model assembly for prescriptions.

Joins prescription rows with the counterparty's specialization and profile
rows into PrescriptionView objects. Doctors see the patient side, patients
see the doctor side. Ownership filtering is left to the record store.
"""

from typing import Dict, List, Optional, Tuple, TypeVar
from datetime import datetime
from loguru import logger
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from rxportal.core.exceptions import StoreError
from rxportal.core.permissions import CallerContext
from rxportal.core.time_utils import now_utc, parse_iso, to_iso
from rxportal.domain.identity.models import UserRole
from rxportal.domain.prescriptions.models import Prescription, PrescriptionStatus
from rxportal.domain.prescriptions.repository import PrescriptionRepository
from rxportal.schemas.identity import build_doctor_view, build_patient_view
from rxportal.schemas.prescription import Medication, PrescriptionView, PrescriptionStats

FETCH_FAILED = "Failed to fetch prescriptions"

T = TypeVar("T")


def index_first(rows: List[T]) -> Dict[str, T]:
    """Map id -> row; when ids repeat the earliest row in fetch order wins."""
    index: Dict[str, T] = {}
    for row in rows:
        index.setdefault(row.id, row)
    return index


class PrescriptionAssembler:
    """Builds the caller's list of prescription views"""

    def __init__(self, db: AsyncSession, identity: CallerContext):
        self.identity = identity
        self.repo = PrescriptionRepository(db, identity)

    async def assemble(self, now: Optional[datetime] = None) -> List[PrescriptionView]:
        """All visible prescriptions, newest first. Any fetch failure aborts the whole call."""
        now = now or now_utc()
        try:
            rows = await self.repo.list_prescriptions()
            relations = await self._fetch_relations()
            return [self._build_view(row, relations, now) for row in rows]
        except StoreError as e:
            logger.error(f"Error fetching prescriptions for {self.identity.identity_id}: {e.message}")
            raise StoreError(FETCH_FAILED, details={"original_error": e.message})
        except SchemaValidationError as e:
            logger.error(f"Malformed prescription row for {self.identity.identity_id}: {e}")
            raise StoreError(FETCH_FAILED, details={"original_error": str(e)})

    async def assemble_one(
        self,
        prescription_id: str,
        now: Optional[datetime] = None
    ) -> Optional[PrescriptionView]:
        now = now or now_utc()
        try:
            row = await self.repo.get_prescription(prescription_id)
            if row is None:
                return None
            relations = await self._fetch_relations()
            return self._build_view(row, relations, now)
        except StoreError as e:
            logger.error(f"Error fetching prescription {prescription_id}: {e.message}")
            raise StoreError(FETCH_FAILED, details={"original_error": e.message})
        except SchemaValidationError as e:
            logger.error(f"Malformed prescription {prescription_id}: {e}")
            raise StoreError(FETCH_FAILED, details={"original_error": str(e)})

    async def _fetch_relations(self) -> Tuple[Dict, Dict]:
        if self.identity.role == UserRole.DOCTOR:
            specializations = await self.repo.list_patients()
        else:
            specializations = await self.repo.list_doctors()
        profiles = await self.repo.list_profiles()
        return index_first(specializations), index_first(profiles)

    def _build_view(self, row: Prescription, relations: Tuple[Dict, Dict], now: datetime) -> PrescriptionView:
        specializations, profiles = relations
        view = PrescriptionView(
            id=row.id,
            doctor_id=row.doctor_id,
            patient_id=row.patient_id,
            date_issued=to_iso(row.date_issued, now),
            diagnosis=row.diagnosis,
            medications=[Medication(**m) for m in (row.medications or [])],
            notes=row.notes,
            pdf_url=row.pdf_url,
            status=row.status,
            created_at=to_iso(row.created_at, now),
            updated_at=to_iso(row.updated_at, now),
        )

        # The counterparty is attached only when both rows exist
        if self.identity.role == UserRole.DOCTOR:
            patient = specializations.get(row.patient_id)
            profile = profiles.get(row.patient_id)
            if patient is not None and profile is not None:
                view.patient = build_patient_view(patient, profile, now)
        else:
            doctor = specializations.get(row.doctor_id)
            profile = profiles.get(row.doctor_id)
            if doctor is not None and profile is not None:
                view.doctor = build_doctor_view(doctor, profile, now)

        return view


def summarize(views: List[PrescriptionView], now: Optional[datetime] = None) -> PrescriptionStats:
    """Dashboard counters over an assembled list"""
    now = now or now_utc()
    this_month = 0
    for view in views:
        created = parse_iso(view.created_at)
        if created.year == now.year and created.month == now.month:
            this_month += 1

    return PrescriptionStats(
        total=len(views),
        active=sum(1 for v in views if v.status == PrescriptionStatus.ACTIVE),
        this_month=this_month,
    )
