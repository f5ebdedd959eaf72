from __future__ import annotations

import io

import pytest
from openpyxl import Workbook

from models import RecordState, RunStatus, UNKNOWN_COMPANY, UNKNOWN_POSITION
from services.ingestion import (
    IngestionError,
    create_batch,
    find_column_index,
    new_batch_id,
    parse_employee_file,
    COLUMN_ALIASES,
)


def _csv(text: str) -> bytes:
    return text.encode("utf-8")


def test_csv_with_aliases_defaults_and_skips():
    data = _csv(
        "Full Name,Work Email,Company Name,Job Title,Phone\n"
        "Jane Doe,jane@x.com,Acme,Engineer,555-0100\n"
        "No Email,not-an-email,Acme,Engineer,\n"
        "\n"
        ",ghost@x.com,Acme,Engineer,\n"
        "\"John Roe\",john@y.com,,,\n"
    )
    records = parse_employee_file(data, "staff.csv", "b1")

    assert [r.id for r in records] == ["emp_b1_1", "emp_b1_4"]
    jane, john = records
    assert (jane.name, jane.email, jane.company, jane.position, jane.contact) == (
        "Jane Doe",
        "jane@x.com",
        "Acme",
        "Engineer",
        "555-0100",
    )
    assert john.company == UNKNOWN_COMPANY
    assert john.position == UNKNOWN_POSITION
    assert john.contact is None


def test_semicolon_delimiter_and_bom():
    data = "\ufeffname;email;company;position\nJane Doe;jane@x.com;Acme, Inc.;Engineer\n".encode("utf-8")
    records = parse_employee_file(data, "staff.CSV", "b2")
    assert len(records) == 1
    assert records[0].company == "Acme, Inc."


def test_headers_found_by_containment():
    headers = ["employee full name", "e-mail address"]
    assert find_column_index(headers, COLUMN_ALIASES["name"]) == 0
    assert find_column_index(headers, COLUMN_ALIASES["email"]) == 1
    assert find_column_index(headers, COLUMN_ALIASES["position"]) == -1


def test_missing_email_column_rejected():
    with pytest.raises(IngestionError) as exc:
        parse_employee_file(_csv("name,company\nJane Doe,Acme\n"), "staff.csv", "b3")
    assert "Missing essential columns" in str(exc.value)


def test_header_only_file_rejected():
    with pytest.raises(IngestionError):
        parse_employee_file(_csv("name,email\n"), "staff.csv", "b4")


def test_no_valid_rows_rejected():
    with pytest.raises(IngestionError) as exc:
        parse_employee_file(_csv("name,email\nJane Doe,nope\n"), "staff.csv", "b5")
    assert "No valid employee data" in str(exc.value)


@pytest.mark.parametrize("file_name", ["staff.txt", "staff.xls", "staff"])
def test_unsupported_extension_rejected(file_name):
    with pytest.raises(IngestionError) as exc:
        parse_employee_file(_csv("name,email\nJane Doe,jane@x.com\n"), file_name, "b6")
    assert "Invalid file type" in str(exc.value)


def test_size_limit(monkeypatch):
    monkeypatch.setenv("MAX_FILE_SIZE", "10")
    with pytest.raises(IngestionError) as exc:
        parse_employee_file(_csv("name,email\nJane Doe,jane@x.com\n"), "staff.csv", "b7")
    assert "File size too large" in str(exc.value)


def test_xlsx_first_sheet():
    wb = Workbook()
    ws = wb.active
    ws.append(["Name", "Email", "Organization", "Role", "Mobile"])
    ws.append(["Jane Doe", "jane@x.com", "Acme", "Engineer", 5550100])
    ws.append([None, None, None, None, None])
    ws.append(["John Roe", "john@y.com", None, "Analyst", None])
    buffer = io.BytesIO()
    wb.save(buffer)

    records = parse_employee_file(buffer.getvalue(), "staff.xlsx", "b8")

    assert [r.name for r in records] == ["Jane Doe", "John Roe"]
    assert records[0].contact == "5550100"
    assert records[1].company == UNKNOWN_COMPANY
    assert records[1].position == "Analyst"


def test_corrupt_xlsx_rejected():
    with pytest.raises(IngestionError):
        parse_employee_file(b"definitely not a zip", "staff.xlsx", "b9")


def test_create_batch_starts_uploaded_and_pending():
    state = create_batch(_csv("name,email\nJane Doe,jane@x.com\nJohn Roe,john@y.com\n"), "staff.csv")

    assert state.status == RunStatus.UPLOADED
    assert state.file_name == "staff.csv"
    assert all(e.state == RecordState.PENDING for e in state.entries)
    assert state.entries[0].record.id == f"emp_{state.batch_id}_1"
    assert state.progress == 0


def test_batch_ids_are_unique():
    assert len({new_batch_id() for _ in range(50)}) == 50


def test_tab_delimited_csv():
    data = _csv("name\temail\tcompany\nJane Doe\tjane@x.com\tAcme, Inc.\n")
    records = parse_employee_file(data, "staff.csv", "b10")
    assert [(r.name, r.email, r.company) for r in records] == [("Jane Doe", "jane@x.com", "Acme, Inc.")]


def test_empty_csv_rejected():
    with pytest.raises(IngestionError):
        parse_employee_file(b"", "staff.csv", "b11")


def test_numeric_looking_cells_stay_text():
    data = _csv("name,email,phone\nJane Doe,jane@x.com,007123\n")
    assert parse_employee_file(data, "staff.csv", "b12")[0].contact == "007123"
