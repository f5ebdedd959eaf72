"""
Employee spreadsheet ingestion: CSV or XLSX bytes in, ordered InputRecords out.
"""

from __future__ import annotations

import csv
import io
import logging
import re
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from config.settings import Settings, get_settings
from models import BatchEntry, BatchState, InputRecord, UNKNOWN_COMPANY, UNKNOWN_POSITION


class IngestionError(ValueError):
    """Uploaded file cannot be turned into employee records."""


COLUMN_ALIASES: Dict[str, List[str]] = {
    "name": [
        "name", "full name", "employee name", "first name", "fname", "full_name",
        "employee_name", "first_name", "nome", "nom", "nombre", "имя", "نام",
    ],
    "email": [
        "email", "email address", "e-mail", "work email", "mail", "e_mail",
        "email_address", "work_email", "correo", "courriel", "почта", "ایمیل",
    ],
    "company": [
        "company", "organization", "employer", "company name", "org", "company_name",
        "organization_name", "empresa", "entreprise", "компания", "شرکت",
    ],
    "position": [
        "position", "title", "job title", "role", "designation", "job", "job_title",
        "position_title", "cargo", "poste", "должность", "موقعیت",
    ],
    "contact": [
        "contact", "phone", "mobile", "telephone", "cell", "phone_number", "contact_number",
    ],
}

_SEPARATORS = re.compile(r"[\s_-]")


def new_batch_id() -> str:
    return f"{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def find_column_index(headers: Sequence[str], aliases: Sequence[str]) -> int:
    """Exact alias match first, then containment, then separator-insensitive containment."""
    for alias in aliases:
        for idx, header in enumerate(headers):
            if header == alias:
                return idx
    for alias in aliases:
        for idx, header in enumerate(headers):
            if header and (alias in header or header in alias):
                return idx
    for alias in aliases:
        squashed_alias = _SEPARATORS.sub("", alias)
        for idx, header in enumerate(headers):
            squashed = _SEPARATORS.sub("", header)
            if squashed and (squashed_alias in squashed or squashed in squashed_alias):
                return idx
    return -1


def _blank(value: Any) -> bool:
    # Short rows come back from pandas padded with None/NaN
    return value is None or (isinstance(value, float) and pd.isna(value))


def _clean_header(value: Any) -> str:
    return re.sub(r"['\"]", "", "" if _blank(value) else str(value)).strip().lower()


def _cell(row: Sequence[Any], idx: int) -> Optional[str]:
    if idx < 0 or idx >= len(row) or _blank(row[idx]):
        return None
    text = str(row[idx]).strip().strip("\"'").strip()
    return text or None


def _non_empty_rows(df: pd.DataFrame) -> List[List[Any]]:
    rows = df.values.tolist()
    return [row for row in rows if any(not _blank(v) and str(v).strip() for v in row)]


def _read_csv(data: bytes) -> List[List[Any]]:
    # header=None keeps the header row as data so alias detection sees the raw labels
    try:
        df = pd.read_csv(
            io.BytesIO(data),
            sep=None,
            engine="python",
            encoding="utf-8-sig",
            dtype=str,
            header=None,
            na_filter=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        return []
    except (ValueError, csv.Error) as exc:
        raise IngestionError(f"Could not read CSV file: {exc}") from exc
    return _non_empty_rows(df)


def _read_xlsx(data: bytes) -> List[List[Any]]:
    try:
        df = pd.read_excel(io.BytesIO(data), sheet_name=0, dtype=str, header=None, na_filter=False, engine="openpyxl")
    except Exception as exc:
        raise IngestionError(f"Could not read Excel workbook: {exc}") from exc
    return _non_empty_rows(df)


def rows_to_records(rows: List[List[Any]], batch_id: str) -> List[InputRecord]:
    if len(rows) < 2:
        raise IngestionError("File must contain at least a header row and one data row")
    headers = [_clean_header(h) for h in rows[0]]
    indexes = {field: find_column_index(headers, aliases) for field, aliases in COLUMN_ALIASES.items()}
    logging.info(f"Column indices found: {indexes}", extra={"batch_id": batch_id, "step": "ingest"})
    if indexes["name"] == -1 or indexes["email"] == -1:
        raise IngestionError(
            f"Missing essential columns. Found headers: {', '.join(headers)}. "
            "Please ensure the file has at least Name and Email columns."
        )

    records: List[InputRecord] = []
    skipped = 0
    for row_no, row in enumerate(rows[1:], start=1):
        name = _cell(row, indexes["name"])
        email = _cell(row, indexes["email"])
        if not name or not email or "@" not in email:
            skipped += 1
            continue
        records.append(
            InputRecord(
                id=f"emp_{batch_id}_{row_no}",
                name=name,
                email=email,
                company=_cell(row, indexes["company"]) or UNKNOWN_COMPANY,
                position=_cell(row, indexes["position"]) or UNKNOWN_POSITION,
                contact=_cell(row, indexes["contact"]),
            )
        )
    if skipped:
        logging.info(f"Skipped {skipped} rows without a name or valid email", extra={"batch_id": batch_id, "step": "ingest"})
    return records


def parse_employee_file(
    data: bytes,
    file_name: str,
    batch_id: str,
    settings: Optional[Settings] = None,
) -> List[InputRecord]:
    settings = settings or get_settings()
    extension = Path(file_name).suffix.lower()
    if extension not in settings.allowed_upload_extensions:
        allowed = ", ".join(settings.allowed_upload_extensions)
        raise IngestionError(f"Invalid file type {extension or '(none)'}. Allowed: {allowed}")
    if len(data) > settings.max_upload_bytes:
        limit_mb = settings.max_upload_bytes / (1024 * 1024)
        raise IngestionError(f"File size too large. Maximum size is {limit_mb:g}MB.")

    rows = _read_csv(data) if extension == ".csv" else _read_xlsx(data)
    records = rows_to_records(rows, batch_id)
    if not records:
        raise IngestionError("No valid employee data found. Please check your file format and required columns.")
    logging.info(f"Parsed {len(records)} employee records from {file_name}", extra={"batch_id": batch_id, "step": "ingest"})
    return records


def create_batch(
    data: bytes,
    file_name: str,
    batch_id: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> BatchState:
    batch_id = batch_id or new_batch_id()
    records = parse_employee_file(data, file_name, batch_id, settings=settings)
    return BatchState(
        batch_id=batch_id,
        file_name=file_name,
        entries=[BatchEntry(record=r) for r in records],
        uploaded_at=datetime.now(timezone.utc),
    )
