"""Spreadsheet export of lead rows."""

import io
import re
from typing import Any, Dict, Iterable, List, Mapping, Union

import pandas as pd

from leadgen.models import EnrichedRecord

SHEET_NAME = "Leads"
XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# (row key, header)
COLUMNS = (
    ("name", "Nome da empresa"),
    ("city", "Cidade"),
    ("neighborhood", "Bairro"),
    ("address", "Endereço"),
    ("postal_code", "CEP"),
    ("ddd", "DDD"),
    ("phone", "Telefone"),
    ("website", "Site"),
)


def safe_filename(filename: Any, default: str = "leads") -> str:
    cleaned = re.sub(r"[^a-zA-Z0-9_-]", "_", str(filename or "").strip())
    return cleaned or default


def _row_values(row: Union[EnrichedRecord, Mapping[str, Any]]) -> Dict[str, str]:
    data = row.to_dict() if isinstance(row, EnrichedRecord) else dict(row)
    if not data.get("ddd") and data.get("area_code"):
        data["ddd"] = data["area_code"]
    return {key: "" if data.get(key) is None else str(data.get(key)) for key, _ in COLUMNS}


def rows_to_dataframe(rows: Iterable[Union[EnrichedRecord, Mapping[str, Any]]]) -> pd.DataFrame:
    records: List[Dict[str, str]] = [_row_values(row) for row in rows]
    df = pd.DataFrame(records, columns=[key for key, _ in COLUMNS])
    return df.rename(columns=dict(COLUMNS))


def export_to_xlsx(rows: Iterable[Union[EnrichedRecord, Mapping[str, Any]]]) -> bytes:
    """Render rows as an xlsx workbook with a frozen, filterable header row."""
    df = rows_to_dataframe(rows)
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=SHEET_NAME)
        sheet = writer.sheets[SHEET_NAME]
        sheet.freeze_panes = "A2"
        sheet.auto_filter.ref = sheet.dimensions
    return buffer.getvalue()
