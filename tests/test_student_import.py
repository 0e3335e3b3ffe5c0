"""
Tests for the bulk student importer, as a service and through the upload route.
"""

import io

import pytest
from openpyxl import Workbook

from app.core.exceptions import ValidationError
from app.core.security import verify_password
from app.services.student_import import import_students, read_student_sheet

HEADER = ["roll_no", "name", "hall_ticket_number", "attendance_percent"]


def xlsx_bytes(rows, header=HEADER) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.append(header)
    for row in rows:
        ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


class TestReadSheet:

    def test_reads_rows_by_header_and_skips_blank_lines(self, tmp_path):
        path = tmp_path / "roster.xlsx"
        path.write_bytes(xlsx_bytes([[1, "Asha", "HT01", 80], [None, None, None, None], [2, "Ravi", "HT02", 55.5]]))
        rows = read_student_sheet(path)
        assert len(rows) == 2
        assert rows[0] == {"roll_no": 1, "name": "Asha", "hall_ticket_number": "HT01", "attendance_percent": 80}

    def test_reads_csv(self, tmp_path):
        path = tmp_path / "roster.csv"
        path.write_text("roll_no,name,hall_ticket_number,attendance_percent\n01,Asha,HT01,80\n")
        assert read_student_sheet(path) == [
            {"roll_no": "01", "name": "Asha", "hall_ticket_number": "HT01", "attendance_percent": "80"}
        ]

    def test_unreadable_file(self, tmp_path):
        path = tmp_path / "roster.xlsx"
        path.write_bytes(b"definitely not a zip")
        with pytest.raises(ValidationError):
            read_student_sheet(path)

    def test_non_utf8_csv(self, tmp_path):
        path = tmp_path / "roster.csv"
        path.write_bytes("roll_no,name,hall_ticket_number,attendance_percent\n01,José,HT01,80\n".encode("latin-1"))
        with pytest.raises(ValidationError):
            read_student_sheet(path)


class TestImportService:

    def test_empty_input_fails_without_writes(self, db):
        with pytest.raises(ValidationError) as exc:
            import_students(db, [], class_id=100)
        assert exc.value.detail == "Excel sheet is empty"
        assert db.writes("students") == []

    def test_missing_columns_are_listed(self, db):
        with pytest.raises(ValidationError) as exc:
            import_students(db, [{"roll_no": "1", "name": "A"}], class_id=100)
        assert exc.value.detail == "Missing required columns: hall_ticket_number, attendance_percent"

    def test_duplicates_by_roll_or_ticket_are_dropped(self, db):
        db.add("students", {"roll_no": "1", "hall_ticket_number": "HT01", "class_id": 100})
        db.add("students", {"roll_no": "9", "hall_ticket_number": "HT09", "class_id": 100})
        # same values in another class do not count
        db.add("students", {"roll_no": "3", "hall_ticket_number": "HT03", "class_id": 101})
        rows = [
            {"roll_no": 1, "name": "dup roll", "hall_ticket_number": "HTX", "attendance_percent": 80},
            {"roll_no": 2, "name": "dup ticket", "hall_ticket_number": "HT09", "attendance_percent": 80},
            {"roll_no": 3, "name": "New", "hall_ticket_number": "HT03", "attendance_percent": 80},
            {"roll_no": 4, "name": "Also new", "hall_ticket_number": "HT04", "attendance_percent": 40},
        ]
        result = import_students(db, rows, class_id=100)

        assert (result.inserted, result.skipped) == (2, 2)
        assert result.message == "Import completed. 2 new students added."
        assert len(db.rows("students", class_id=100)) == 4
        assert db.writes("students") == ["insert"]

    def test_new_rows_are_normalized(self, db):
        rows = [
            {"roll_no": 7.0, "name": " Meera ", "hall_ticket_number": " HT07 ", "attendance_percent": "n/a"},
            {"roll_no": 8, "name": "Kiran", "hall_ticket_number": "HT08", "attendance_percent": 75},
        ]
        import_students(db, rows, class_id=100)

        meera = db.rows("students", hall_ticket_number="HT07")[0]
        assert meera["roll_no"] == "7"
        assert meera["name"] == "Meera"
        assert meera["attendance_percent"] == 0
        assert meera["defaulter"] is True
        assert meera["batch_id"] is None
        assert verify_password("HT07", meera["password"])

        assert db.rows("students", hall_ticket_number="HT08")[0]["defaulter"] is False

    def test_repeats_inside_the_sheet_are_dropped(self, db):
        rows = [
            {"roll_no": 1, "name": "A", "hall_ticket_number": "HT01", "attendance_percent": 80},
            {"roll_no": 1, "name": "A again", "hall_ticket_number": "HT01", "attendance_percent": 80},
        ]
        result = import_students(db, rows, class_id=100)
        assert result.inserted == 1

    def test_all_duplicates_means_no_write(self, db):
        db.add("students", {"roll_no": "1", "hall_ticket_number": "HT01", "class_id": 100})
        rows = [{"roll_no": 1, "name": "A", "hall_ticket_number": "HT01", "attendance_percent": 80}]
        result = import_students(db, rows, class_id=100)
        assert result.inserted == 0
        assert result.message == "No new students to import (all duplicates skipped)."
        assert db.writes("students") == []

    def test_rows_without_roll_or_ticket_are_skipped(self, db):
        rows = [
            {"roll_no": None, "name": "No roll", "hall_ticket_number": "HT05", "attendance_percent": 80},
            {"roll_no": 6, "name": "No ticket", "hall_ticket_number": "  ", "attendance_percent": 80},
            {"roll_no": 7, "name": "Fine", "hall_ticket_number": "HT07", "attendance_percent": 80},
        ]
        result = import_students(db, rows, class_id=100)
        assert (result.inserted, result.skipped) == (1, 2)
        assert [s["hall_ticket_number"] for s in db.rows("students")] == ["HT07"]


class TestImportRoute:

    def _upload(self, client, headers, content, filename="roster.xlsx"):
        return client.post(
            "/api/class-teacher/import-students",
            files={"file": (filename, content, "application/octet-stream")},
            headers=headers,
        )

    def test_import_and_cleanup(self, client, db, upload_dir, teacher_headers):
        resp = self._upload(client, teacher_headers, xlsx_bytes([["01", "Asha", "HT01", 80], ["02", "Ravi", "HT02", 60]]))
        assert resp.status_code == 200
        assert resp.json()["inserted"] == 2
        assert len(db.rows("students", class_id=100)) == 2
        assert list(upload_dir.iterdir()) == []

    def test_no_new_students_still_cleans_up(self, client, db, upload_dir, teacher_headers):
        db.add("students", {"roll_no": "01", "hall_ticket_number": "HT01", "class_id": 100})
        resp = self._upload(client, teacher_headers, xlsx_bytes([["01", "Asha", "HT01", 80]]))
        assert resp.status_code == 200
        assert resp.json()["inserted"] == 0
        assert list(upload_dir.iterdir()) == []

    def test_empty_sheet_fails_and_cleans_up(self, client, db, upload_dir, teacher_headers):
        resp = self._upload(client, teacher_headers, xlsx_bytes([]))
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "Excel sheet is empty"}
        assert db.writes("students") == []
        assert list(upload_dir.iterdir()) == []

    def test_missing_columns_fail(self, client, upload_dir, teacher_headers):
        resp = self._upload(client, teacher_headers, xlsx_bytes([["01", "Asha"]], header=["roll_no", "name"]))
        assert resp.status_code == 400
        assert "hall_ticket_number" in resp.json()["error"]
        assert list(upload_dir.iterdir()) == []

    def test_no_file(self, client, upload_dir, teacher_headers):
        resp = client.post("/api/class-teacher/import-students", headers=teacher_headers)
        assert resp.status_code == 400

    def test_non_utf8_csv_is_400_and_cleaned_up(self, client, db, upload_dir, teacher_headers):
        content = "roll_no,name,hall_ticket_number,attendance_percent\n01,José,HT01,80\n".encode("latin-1")
        resp = self._upload(client, teacher_headers, content, filename="roster.csv")
        assert resp.status_code == 400
        assert resp.json()["success"] is False
        assert db.writes("students") == []
        assert list(upload_dir.iterdir()) == []
