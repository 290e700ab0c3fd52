from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from openpyxl import Workbook, load_workbook

from fiscaldo.reporting import (
    PayrollEntry,
    UnknownReportError,
    payment_method_code,
    render_606,
    render_607,
    render_payroll,
    render_report,
    report_filename,
    summarize_report,
    write_summary_workbook,
)
from fiscaldo.transactions import (
    TransactionFileError,
    TransactionRecord,
    load_transactions,
)


def _purchase() -> TransactionRecord:
    return TransactionRecord(
        counterparty_id="131-00000-2",
        receipt_number="B0100000005",
        subtotal=Decimal("100.00"),
        tax=Decimal("18.00"),
        total=Decimal("118.00"),
        payment_method="card",
        timestamp="2024-01-15T10:30:00Z",
    )


def test_render_606_column_layout():
    line = render_606([_purchase()])
    columns = line.split("|")

    assert len(columns) == 23
    assert columns[:7] == [
        "131000002",
        "1",
        "09",
        "B0100000005",
        "",
        "20240115",
        "20240115",
    ]
    assert columns[7:11] == ["0.00", "100.00", "118.00", "18.00"]
    assert columns[14] == "18.00"
    assert columns[16] == ""
    assert columns[-1] == "3"


def test_render_606_uses_payment_date_when_present():
    record = _purchase()
    record.payment_date = date(2024, 2, 1)
    columns = render_606([record]).split("|")
    assert columns[5] == "20240115"
    assert columns[6] == "20240201"


def test_render_606_missing_values():
    columns = render_606([{"ncf": "B0200000001"}]).split("|")
    assert columns[0] == ""
    assert columns[1] == "2"
    assert columns[5] == ""
    assert columns[8] == "0.00"
    assert columns[-1] == "1"


def test_render_607_from_mappings():
    body = render_607(
        [
            {
                "customerRnc": "00113918205",
                "ncf": "B0100000001",
                "createdAt": "2024-03-02",
                "itbis": "36",
                "subtotal": "200",
            },
            {"ncf": "B0200000002", "createdAt": "2024-03-03", "itbis": 9, "subtotal": 50},
        ]
    )
    lines = body.split("\n")
    assert lines[0] == "00113918205|1|B0100000001||20240302|36.00|200.00"
    assert lines[1] == "|3|B0200000002||20240303|9.00|50.00"


def test_render_empty_input_gives_empty_body():
    assert render_606([]) == ""
    assert render_607([]) == ""


def test_render_payroll_placeholder():
    body = render_payroll("131000002", "202401")
    assert body.splitlines() == [
        "# T-REGISTRO - NÓMINA",
        "# Período: 202401",
        "# RNC: 131000002",
        "# Sin registros de nómina disponibles",
    ]


def test_render_payroll_with_entries():
    body = render_payroll(
        "131000002",
        "202401",
        [PayrollEntry("001-1391820-5", " Ana Pérez ", Decimal("35000"))],
    )
    assert body == "00113918205|2|Ana Pérez|35000.00"


def test_render_report_dispatch():
    assert render_report("607", [_purchase()]).startswith("131000002|1|B0100000005")
    assert render_report("payroll", company_rnc="131000002", period="202401").startswith("#")
    with pytest.raises(UnknownReportError):
        render_report("608")


def test_report_filename():
    assert report_filename("606", "131-00000-2", "202401") == "DGII_F_606_131000002_202401.TXT"
    assert report_filename("payroll", "131000002", "202401") == "T_REGISTRO_131000002_202401.TXT"
    with pytest.raises(UnknownReportError):
        report_filename("999", "131000002", "202401")


def test_payment_method_code():
    assert payment_method_code("cash") == "1"
    assert payment_method_code("Transfer") == "2"
    assert payment_method_code("mixed") == "7"
    assert payment_method_code("bitcoin") == "1"
    assert payment_method_code(None) == "1"


def test_summarize_report_totals():
    summary = summarize_report(
        [
            _purchase(),
            {"total": "59.00", "itbis": "9.00"},
            {"subtotal": "10"},
            {},
        ]
    )
    assert summary.record_count == 4
    assert summary.total_amount == Decimal("187.00")
    assert summary.total_tax == Decimal("27.00")


def test_summarize_report_empty():
    summary = summarize_report([])
    assert summary.record_count == 0
    assert summary.total_amount == 0
    assert summary.total_tax == 0


def test_write_summary_workbook(tmp_path):
    summary = summarize_report([_purchase()])
    destination = write_summary_workbook(
        summary, tmp_path / "out" / "resumen.xlsx", kind="606", period="202401"
    )

    workbook = load_workbook(destination)
    sheet = workbook["Resumen"]
    rows = list(sheet.iter_rows(values_only=True))
    assert rows[0] == ("Reporte", "Período", "Registros", "Monto total", "ITBIS total")
    assert rows[1][:3] == ("606", "202401", 1)
    assert Decimal(str(rows[1][3])) == Decimal("118")
    assert Decimal(str(rows[1][4])) == Decimal("18")


def test_load_transactions_csv(tmp_path):
    path = tmp_path / "ventas.csv"
    path.write_text(
        "RNC,NCF,Subtotal,ITBIS,Total,Fecha,Forma Pago\n"
        "131000002,B0100000001,100.00,18.00,118.00,2024-01-05,transfer\n"
        ",B0200000002,50,,59,2024-01-06,\n",
        encoding="utf-8",
    )

    records = load_transactions(path)

    assert len(records) == 2
    first, second = records
    assert first.counterparty_id == "131000002"
    assert first.subtotal == Decimal("100.00")
    assert first.payment_method == "transfer"
    assert second.counterparty_id is None
    assert second.tax is None
    assert second.total == Decimal("59")


def test_load_transactions_xlsx(tmp_path):
    path = tmp_path / "compras.xlsx"
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(["RNC/Cédula", "NCF", "Subtotal", "ITBIS", "Total", "Fecha"])
    sheet.append([131000002, "B1100000003", 200, 36, 236, date(2024, 4, 1)])
    sheet.append([None, None, None, None, None, None])
    workbook.save(path)

    records = load_transactions(path)

    assert len(records) == 1
    record = records[0]
    assert record.counterparty_id == "131000002"
    assert record.receipt_number == "B1100000003"
    assert record.tax == Decimal("36")
    assert render_607([record]) == "131000002|1|B1100000003||20240401|36.00|200.00"


def test_load_transactions_errors(tmp_path):
    with pytest.raises(TransactionFileError):
        load_transactions(tmp_path / "missing.csv")
    other = tmp_path / "datos.json"
    other.write_text("[]", encoding="utf-8")
    with pytest.raises(TransactionFileError):
        load_transactions(other)


def test_summarize_report_keeps_zero_total():
    record = TransactionRecord(subtotal=Decimal("50.00"), total=Decimal("0.00"))
    summary = summarize_report([record, {"total": "0.00", "subtotal": "20"}])
    assert summary.total_amount == Decimal("0.00")
