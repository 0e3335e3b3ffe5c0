"""
Student record helpers shared by the create, update and import paths.
"""

from app.core.config import settings

# Columns returned to staff; never includes the password hash
STUDENT_COLUMNS = (
    "id, roll_no, name, email, mobile, attendance_percent, hall_ticket_number, "
    "defaulter, class_id, batch_id, created_at, batches ( name )"
)


def to_attendance(value) -> float:
    """Parse an attendance percentage; anything unparseable counts as 0."""
    if isinstance(value, bool) or value is None:
        return 0
    try:
        number = float(str(value).strip().rstrip("%"))
    except ValueError:
        return 0
    if number != number:  # NaN
        return 0
    return int(number) if number.is_integer() else number


def is_defaulter(attendance) -> bool:
    return to_attendance(attendance) < settings.DEFAULTER_THRESHOLD


def text_value(value) -> str:
    """Spreadsheet cells come back as int/float/str; ids are stored as text."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def with_batch_name(student: dict) -> dict:
    batch = student.pop("batches", None) or {}
    return {**student, "batch_name": batch.get("name")}
