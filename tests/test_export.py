import io

from openpyxl import load_workbook

from leadgen.etl import export
from leadgen.models import EnrichedRecord


def test_safe_filename():
    assert export.safe_filename("leads-SP_2024") == "leads-SP_2024"
    assert export.safe_filename("a b.c") == "a_b_c"
    assert export.safe_filename(None) == "leads"
    assert export.safe_filename("   ") == "leads"


def test_dataframe_uses_portuguese_headers_and_blank_cells():
    df = export.rows_to_dataframe([{"name": "Acme", "ddd": None, "area_code": "11"}])

    assert list(df.columns) == [header for _, header in export.COLUMNS]
    row = df.iloc[0]
    assert row["Nome da empresa"] == "Acme"
    assert row["DDD"] == "11"
    assert row["Site"] == ""


def test_export_accepts_records_and_mappings():
    rows = [
        EnrichedRecord(name="Guindastes Litoral", city="Guarujá", postal_code="11410-000", area_code="13"),
        {"name": "Munck Express", "city": "Santos", "phone": "(13) 3222-1000"},
    ]

    content = export.export_to_xlsx(rows)
    workbook = load_workbook(io.BytesIO(content))

    assert workbook.sheetnames == [export.SHEET_NAME]
    sheet = workbook[export.SHEET_NAME]
    assert [cell.value for cell in sheet[1]] == [header for _, header in export.COLUMNS]
    assert sheet["A2"].value == "Guindastes Litoral"
    assert sheet["E2"].value == "11410-000"
    assert sheet["F2"].value == "13"
    assert sheet["G3"].value == "(13) 3222-1000"
    assert sheet.freeze_panes == "A2"
    assert sheet.auto_filter.ref == "A1:H3"


def test_export_of_no_rows_keeps_header():
    sheet = load_workbook(io.BytesIO(export.export_to_xlsx([]))).active

    assert sheet.max_row == 1
    assert sheet["H1"].value == "Site"
