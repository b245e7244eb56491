import pytest
from datetime import datetime, timezone
from types import SimpleNamespace
from sqlalchemy.ext.asyncio import AsyncSession

from rxportal.core.exceptions import StoreError
from rxportal.domain.identity.models import UserRole
from rxportal.domain.prescriptions.assembler import PrescriptionAssembler, index_first, summarize
from rxportal.domain.prescriptions.models import PrescriptionStatus
from rxportal.domain.prescriptions.renderer import DocumentRenderer
from rxportal.domain.prescriptions.repository import PrescriptionRepository
from rxportal.domain.prescriptions.service import PrescriptionService
from rxportal.schemas.prescription import Medication, PrescriptionCreate

FIXED_NOW = datetime(2025, 3, 7, 12, 0, tzinfo=timezone.utc)


@pytest.mark.unit
class TestPrescriptionAssembler:
    """Read-model assembly for both roles."""

    async def test_doctor_view_attaches_patient(self, db_session: AsyncSession, doctor, patient, make_prescription):
        await make_prescription(doctor.identity_id, patient.identity_id)

        views = await PrescriptionAssembler(db_session, doctor).assemble()

        assert len(views) == 1
        view = views[0]
        assert view.patient is not None
        assert view.patient.id == "P1"
        assert view.patient.profiles.full_name == "Jane Roe"
        assert view.patient.date_of_birth == "1990-01-01"
        assert view.doctor is None

    async def test_patient_view_attaches_doctor(self, db_session: AsyncSession, doctor, patient, make_prescription):
        await make_prescription(doctor.identity_id, patient.identity_id)

        views = await PrescriptionAssembler(db_session, patient).assemble()

        assert len(views) == 1
        assert views[0].doctor is not None
        assert views[0].doctor.specialization == "Diagnostic Medicine"
        assert views[0].doctor.profiles.full_name == "Gregory House"
        assert views[0].patient is None

    async def test_missing_patient_profile_leaves_relation_absent(
        self, db_session: AsyncSession, doctor, make_identity, make_prescription
    ):
        orphan = await make_identity("P9", UserRole.PATIENT, "Nobody", with_profile=False)
        await make_prescription(doctor.identity_id, orphan.identity_id)

        views = await PrescriptionAssembler(db_session, doctor).assemble()

        assert len(views) == 1
        assert views[0].patient is None

    async def test_missing_doctor_profile_leaves_relation_absent(
        self, db_session: AsyncSession, make_identity, patient, make_prescription
    ):
        ghost = await make_identity("D9", UserRole.DOCTOR, "Deleted", with_profile=False)
        await make_prescription(ghost.identity_id, patient.identity_id)

        views = await PrescriptionAssembler(db_session, patient).assemble()

        assert len(views) == 1
        assert views[0].doctor is None

    async def test_newest_first(self, db_session: AsyncSession, doctor, patient, make_prescription):
        await make_prescription(
            doctor.identity_id, patient.identity_id, diagnosis="Older",
            created_at=datetime(2025, 1, 1, tzinfo=timezone.utc)
        )
        await make_prescription(
            doctor.identity_id, patient.identity_id, diagnosis="Newest",
            created_at=datetime(2025, 3, 1, tzinfo=timezone.utc)
        )
        await make_prescription(
            doctor.identity_id, patient.identity_id, diagnosis="Middle",
            created_at=datetime(2025, 2, 1, tzinfo=timezone.utc)
        )

        views = await PrescriptionAssembler(db_session, doctor).assemble()

        assert [v.diagnosis for v in views] == ["Newest", "Middle", "Older"]

    async def test_repeated_assembly_is_identical(self, db_session: AsyncSession, doctor, patient, make_prescription):
        for i in range(3):
            await make_prescription(doctor.identity_id, patient.identity_id, diagnosis=f"Visit {i}")

        assembler = PrescriptionAssembler(db_session, doctor)
        first = await assembler.assemble(now=FIXED_NOW)
        second = await assembler.assemble(now=FIXED_NOW)

        assert [v.model_dump() for v in first] == [v.model_dump() for v in second]

    async def test_dates_are_iso_and_null_falls_back_to_now(
        self, db_session: AsyncSession, doctor, patient, make_prescription
    ):
        row = await make_prescription(doctor.identity_id, patient.identity_id)
        row.date_issued = None
        await db_session.commit()

        views = await PrescriptionAssembler(db_session, doctor).assemble(now=FIXED_NOW)

        assert views[0].date_issued == FIXED_NOW.isoformat()
        # created_at came from the store
        assert datetime.fromisoformat(views[0].created_at).tzinfo is not None

    async def test_medication_order_preserved(self, db_session: AsyncSession, doctor, patient, make_prescription):
        meds = [
            {"name": name, "dosage": "1", "frequency": "daily", "duration": "1 day", "instructions": None}
            for name in ("Zinc", "Aspirin", "Metformin")
        ]
        await make_prescription(doctor.identity_id, patient.identity_id, medications=meds)

        views = await PrescriptionAssembler(db_session, patient).assemble()

        assert [m.name for m in views[0].medications] == ["Zinc", "Aspirin", "Metformin"]

    async def test_fetch_failure_aborts_whole_assembly(
        self, db_session: AsyncSession, doctor, patient, make_prescription, monkeypatch
    ):
        await make_prescription(doctor.identity_id, patient.identity_id)

        async def broken(self):
            raise StoreError("connection refused")

        monkeypatch.setattr(PrescriptionRepository, "list_profiles", broken)

        with pytest.raises(StoreError) as exc_info:
            await PrescriptionAssembler(db_session, doctor).assemble()

        assert exc_info.value.message == "Failed to fetch prescriptions"
        assert exc_info.value.details["original_error"] == "connection refused"

    async def test_malformed_medication_aborts_assembly(
        self, db_session: AsyncSession, doctor, patient, make_prescription
    ):
        row = await make_prescription(
            doctor.identity_id, patient.identity_id, medications=[{"name": "X", "dosage": "1"}]
        )
        assembler = PrescriptionAssembler(db_session, doctor)

        with pytest.raises(StoreError) as exc_info:
            await assembler.assemble()
        assert exc_info.value.message == "Failed to fetch prescriptions"
        assert "frequency" in exc_info.value.details["original_error"]

        with pytest.raises(StoreError) as exc_info:
            await assembler.assemble_one(row.id)
        assert exc_info.value.message == "Failed to fetch prescriptions"

    async def test_patient_view_with_missing_doctor_profile_renders_placeholder(
        self, db_session: AsyncSession, make_identity, patient, make_prescription
    ):
        ghost = await make_identity("D9", UserRole.DOCTOR, "Deleted", with_profile=False)
        await make_prescription(ghost.identity_id, patient.identity_id, diagnosis="Asthma")

        views = await PrescriptionAssembler(db_session, patient).assemble(now=FIXED_NOW)
        html = DocumentRenderer().render(views[0], now=FIXED_NOW)

        assert views[0].doctor is None
        assert "Unknown Doctor" in html
        assert "<strong>Specialization:</strong> N/A" in html
        assert "Asthma" in html

    async def test_assemble_one_returns_none_when_not_visible(self, db_session: AsyncSession, doctor):
        assert await PrescriptionAssembler(db_session, doctor).assemble_one("missing") is None

    async def test_bronchitis_scenario(self, db_session: AsyncSession, doctor, patient):
        await PrescriptionService(db_session).create_prescription(
            doctor,
            PrescriptionCreate(
                patient_id="P1",
                diagnosis="Bronchitis",
                medications=[Medication(
                    name="Amoxicillin", dosage="500mg", frequency="3x daily", duration="7 days"
                )],
            ),
        )

        views = await PrescriptionAssembler(db_session, patient).assemble()

        assert len(views) == 1
        assert views[0].diagnosis == "Bronchitis"
        assert len(views[0].medications) == 1
        assert views[0].notes is None
        assert views[0].doctor.profiles.full_name == "Gregory House"


@pytest.mark.unit
def test_index_first_keeps_earliest_match():
    rows = [
        SimpleNamespace(id="A", label="first"),
        SimpleNamespace(id="B", label="other"),
        SimpleNamespace(id="A", label="second"),
    ]

    index = index_first(rows)

    assert index["A"].label == "first"
    assert set(index) == {"A", "B"}


@pytest.mark.unit
async def test_summarize_counts(db_session: AsyncSession, doctor, patient, make_prescription):
    await make_prescription(
        doctor.identity_id, patient.identity_id,
        created_at=datetime(2025, 3, 2, tzinfo=timezone.utc)
    )
    await make_prescription(
        doctor.identity_id, patient.identity_id, status=PrescriptionStatus.COMPLETED,
        created_at=datetime(2025, 3, 5, tzinfo=timezone.utc)
    )
    await make_prescription(
        doctor.identity_id, patient.identity_id,
        created_at=datetime(2024, 3, 5, tzinfo=timezone.utc)
    )

    views = await PrescriptionAssembler(db_session, doctor).assemble()
    stats = summarize(views, now=FIXED_NOW)

    assert stats.total == 3
    assert stats.active == 2
    assert stats.this_month == 2
