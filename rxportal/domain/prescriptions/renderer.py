"""
Prescription document rendering.

Turns a PrescriptionView into a standalone HTML document with inline
styling. Output depends only on the view and the supplied generation time,
and the view is never modified. Absent relations print placeholders so the
layout is identical whether or not the joined data was found.
"""

from datetime import datetime
from html import escape
from pathlib import Path
from typing import List, Optional, Union
from loguru import logger

from rxportal.core.config import settings
from rxportal.core.exceptions import RenderingError, handle_rendering_error
from rxportal.core.time_utils import format_locale_date, now_utc
from rxportal.schemas.prescription import Medication, PrescriptionView

NOT_AVAILABLE = "N/A"
UNKNOWN_DOCTOR = "Unknown Doctor"
UNKNOWN_PATIENT = "Unknown Patient"

STYLE = """
body { font-family: Helvetica, Arial, sans-serif; color: #1f2937; margin: 40px auto; max-width: 720px; }
header { text-align: center; border-bottom: 2px solid #2563eb; padding-bottom: 12px; margin-bottom: 24px; }
header h1 { margin: 0; color: #2563eb; font-size: 28px; }
header h2 { margin: 4px 0 0; font-size: 18px; letter-spacing: 4px; }
section { margin-bottom: 20px; }
section h3 { font-size: 15px; border-bottom: 1px solid #e5e7eb; padding-bottom: 4px; }
p { margin: 4px 0 4px 12px; }
ol { padding-left: 28px; }
li.medication { margin-bottom: 12px; }
li.medication p { margin-left: 0; }
.notes p { white-space: pre-wrap; }
footer { margin-top: 32px; font-size: 11px; color: #6b7280; text-align: center; }
""".strip()


def _field(label: str, value: Optional[str]) -> str:
    return f"<p><strong>{escape(label)}:</strong> {escape(value or NOT_AVAILABLE)}</p>"


def _issued_on(view: PrescriptionView) -> Optional[str]:
    value = view.date_issued or view.created_at
    if not value:
        return None
    try:
        return format_locale_date(value)
    except ValueError:
        return None


def _medication_item(medication: Medication) -> str:
    lines = [
        f"<strong>{escape(medication.name)}</strong>",
        _field("Dosage", medication.dosage),
        _field("Frequency", medication.frequency),
        _field("Duration", medication.duration),
    ]
    if medication.instructions:
        lines.append(_field("Instructions", medication.instructions))
    return '<li class="medication">' + "".join(lines) + "</li>"


class DocumentRenderer:
    """Renders prescription views into downloadable documents"""

    def __init__(
        self,
        brand_name: str = settings.BRAND_NAME,
        filename_prefix: str = settings.DOCUMENT_FILENAME_PREFIX,
        extension: str = settings.DOCUMENT_EXTENSION
    ):
        self.brand_name = brand_name
        self.filename_prefix = filename_prefix
        self.extension = extension

    def filename_for(self, view: PrescriptionView) -> str:
        return f"{self.filename_prefix}-{view.id[:8]}.{self.extension}"

    def render(self, view: PrescriptionView, now: Optional[datetime] = None) -> str:
        now = now or now_utc()

        patient_name = UNKNOWN_PATIENT
        date_of_birth = None
        if view.patient is not None:
            patient_name = view.patient.profiles.full_name or UNKNOWN_PATIENT
            date_of_birth = view.patient.date_of_birth

        doctor_name = UNKNOWN_DOCTOR
        specialization = license_number = None
        if view.doctor is not None:
            if view.doctor.profiles.full_name:
                doctor_name = f"Dr. {view.doctor.profiles.full_name}"
            specialization = view.doctor.specialization
            license_number = view.doctor.license_number

        parts: List[str] = [
            "<!DOCTYPE html>",
            '<html lang="en">',
            "<head>",
            '<meta charset="utf-8">',
            f"<title>Prescription {escape(view.id[:8])}</title>",
            f"<style>\n{STYLE}\n</style>",
            "</head>",
            "<body>",
            f"<header><h1>{escape(self.brand_name)}</h1><h2>PRESCRIPTION</h2></header>",
            '<section class="patient"><h3>Patient Information</h3>'
            + _field("Name", patient_name)
            + _field("Date of Birth", date_of_birth)
            + "</section>",
            '<section class="doctor"><h3>Doctor Information</h3>'
            + _field("Name", doctor_name)
            + _field("Specialization", specialization)
            + _field("License", license_number)
            + "</section>",
            '<section class="details"><h3>Prescription Details</h3>'
            + _field("Date Issued", _issued_on(view))
            + _field("Prescription ID", view.id)
            + _field("Status", view.status.value)
            + "</section>",
            '<section class="diagnosis"><h3>Diagnosis</h3>'
            + f"<p>{escape(view.diagnosis)}</p></section>",
            '<section class="medications"><h3>Medications</h3><ol>'
            + "".join(_medication_item(m) for m in view.medications)
            + "</ol></section>",
        ]

        if view.notes:
            parts.append(
                '<section class="notes"><h3>Additional Notes</h3>'
                f"<p>{escape(view.notes)}</p></section>"
            )

        parts.extend([
            f"<footer>Generated on {escape(now.isoformat(timespec='seconds'))}</footer>",
            "</body>",
            "</html>",
        ])
        return "\n".join(parts) + "\n"

    def save(
        self,
        view: PrescriptionView,
        directory: Union[str, Path, None],
        now: Optional[datetime] = None
    ) -> Path:
        """Write the rendered document into ``directory`` and return its path"""
        if directory is None:
            raise RenderingError("No download location is available")

        target_dir = Path(directory)
        if not target_dir.is_dir():
            raise RenderingError(
                "No download location is available",
                details={"directory": str(target_dir)}
            )

        content = self.render(view, now)
        path = target_dir / self.filename_for(view)
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise handle_rendering_error(e, "save document")

        logger.info(f"Saved prescription document {path.name}")
        return path
