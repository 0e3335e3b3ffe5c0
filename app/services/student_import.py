"""
Bulk student import from an uploaded spreadsheet.

Rows whose roll_no or hall_ticket_number already exists in the class are
dropped; the survivors are written in one insert with the hall ticket as
their initial password.
"""

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from supabase import Client

from app.core.exceptions import ValidationError
from app.core.security import get_password_hash
from app.services.students import is_defaulter, text_value, to_attendance

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["roll_no", "name", "hall_ticket_number", "attendance_percent"]


@dataclass
class ImportResult:
    inserted: int
    skipped: int

    @property
    def message(self) -> str:
        if not self.inserted:
            return "No new students to import (all duplicates skipped)."
        return f"Import completed. {self.inserted} new students added."


def read_student_sheet(path: str | Path) -> list[dict]:
    """
    Read the first worksheet (or a CSV file) into dicts keyed by the header row.
    Fully blank rows are skipped.
    """
    path = Path(path)
    if path.suffix.lower() == ".csv":
        try:
            with path.open(newline="", encoding="utf-8-sig") as fh:
                rows = list(csv.reader(fh))
        except (UnicodeDecodeError, csv.Error) as exc:
            raise ValidationError(f"Could not read the uploaded CSV (save it as UTF-8): {exc}")
    else:
        try:
            wb = load_workbook(path, read_only=True, data_only=True)
        except (InvalidFileException, BadZipFile) as exc:
            raise ValidationError(f"Could not read the uploaded spreadsheet: {exc}")
        try:
            ws = wb.worksheets[0]
            rows = [list(r) for r in ws.iter_rows(values_only=True)]
        finally:
            wb.close()

    if not rows:
        return []

    header = [text_value(h) for h in rows[0]]
    records = []
    for raw in rows[1:]:
        if all(v is None or text_value(v) == "" for v in raw):
            continue
        records.append({
            col: (raw[i] if i < len(raw) else None)
            for i, col in enumerate(header) if col
        })
    return records


def missing_columns(rows: list[dict]) -> list[str]:
    present = set(rows[0].keys())
    return [c for c in REQUIRED_COLUMNS if c not in present]


def import_students(db: Client, rows: list[dict], class_id) -> ImportResult:
    if not rows:
        raise ValidationError("Excel sheet is empty")

    missing = missing_columns(rows)
    if missing:
        raise ValidationError(f"Missing required columns: {', '.join(missing)}")

    existing = (
        db.table("students")
        .select("roll_no, hall_ticket_number")
        .eq("class_id", class_id)
        .execute()
    )
    seen_rolls = {text_value(s.get("roll_no")) for s in existing.data or []}
    seen_tickets = {text_value(s.get("hall_ticket_number")) for s in existing.data or []}

    students = []
    for row in rows:
        roll = text_value(row.get("roll_no"))
        ticket = text_value(row.get("hall_ticket_number"))
        # no roll or ticket means no login; counted as skipped
        if not roll or not ticket:
            continue
        if roll in seen_rolls or ticket in seen_tickets:
            continue
        seen_rolls.add(roll)
        seen_tickets.add(ticket)

        attendance = to_attendance(row.get("attendance_percent"))
        students.append({
            "roll_no": roll,
            "name": text_value(row.get("name")),
            "hall_ticket_number": ticket,
            "attendance_percent": attendance,
            "defaulter": is_defaulter(attendance),
            "class_id": class_id,
            "batch_id": None,
            "password": get_password_hash(ticket),
        })

    result = ImportResult(inserted=len(students), skipped=len(rows) - len(students))
    if students:
        db.table("students").insert(students).execute()

    logger.info(
        "Student import for class %s: %d inserted, %d skipped",
        class_id, result.inserted, result.skipped,
    )
    return result
