from dataclasses import dataclass, field
from typing import List

from rxportal.core.exceptions import ValidationError
from rxportal.schemas.prescription import (
    Medication, PrescriptionCreate, PrescriptionUpdate, PrescriptionView
)

MEDICATION_FIELDS = ("name", "dosage", "frequency", "duration", "instructions")


def blank_medication() -> Medication:
    return Medication(name="", dosage="", frequency="", duration="", instructions="")


@dataclass
class PrescriptionDraft:
    """In-memory form state for one authoring session.

    Nothing here is persisted; discarding the draft leaves the store untouched.
    """
    patient_id: str = ""
    diagnosis: str = ""
    notes: str = ""
    medications: List[Medication] = field(default_factory=list)

    @classmethod
    def from_view(cls, view: PrescriptionView) -> "PrescriptionDraft":
        return cls(
            patient_id=view.patient_id,
            diagnosis=view.diagnosis,
            notes=view.notes or "",
            medications=[m.model_copy(deep=True) for m in view.medications],
        )

    def add_medication(self) -> None:
        self.medications.append(blank_medication())

    def remove_medication(self, index: int) -> None:
        self._check_index(index)
        del self.medications[index]

    def update_medication(self, index: int, field_name: str, value: str) -> None:
        self._check_index(index)
        if field_name not in MEDICATION_FIELDS:
            raise ValidationError(f"Unknown medication field: {field_name}")
        self.medications[index] = self.medications[index].model_copy(update={field_name: value})

    def discard(self) -> None:
        self.patient_id = ""
        self.diagnosis = ""
        self.notes = ""
        self.medications = []

    def to_create(self) -> PrescriptionCreate:
        return PrescriptionCreate(
            patient_id=self.patient_id,
            diagnosis=self.diagnosis,
            medications=list(self.medications),
            notes=self.notes or None,
        )

    def to_update(self) -> PrescriptionUpdate:
        return PrescriptionUpdate(
            diagnosis=self.diagnosis,
            medications=list(self.medications),
            notes=self.notes or None,
        )

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.medications):
            raise ValidationError(f"No medication at position {index}")

    @property
    def is_empty(self) -> bool:
        return not (self.patient_id or self.diagnosis or self.notes or self.medications)
