import json
from datetime import datetime
from decimal import Decimal

from app.recon.core.config import settings
from app.recon.db.models import Accountant, Cashier, Reconciliation
from app.ops.integrity_scan import main, run_scan


def test_integrity_scan_no_findings(db_session, capsys):
    db_session.add_all([Cashier(id=1, name="Sara"), Accountant(id=1, name="Huda")])
    db_session.commit()

    database_url = db_session.get_bind().url.render_as_string(hide_password=False)
    exit_code = run_scan("json", True, database_url=database_url)
    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["summary"] == {"total": 0, "critical": 0, "warn": 0}


def test_integrity_scan_text_report_lists_warnings(db_session, capsys):
    db_session.add(
        Reconciliation(
            id=5,
            reconciliation_number=5,
            cashier_id=77,
            accountant_id=88,
            reconciliation_date=datetime(2024, 5, 1),
            system_sales=Decimal("10.00"),
            total_receipts=Decimal("10.00"),
            surplus_deficit=Decimal("0.00"),
            status="completed",
        )
    )
    db_session.commit()

    database_url = db_session.get_bind().url.render_as_string(hide_password=False)
    exit_code = main(["--format", "text", "--fail-on-critical", "--database-url", database_url])
    output = capsys.readouterr().out
    assert exit_code == 0
    assert "WARN: 1" in output
    assert "reconciliation_hidden_from_reports" in output


def test_integrity_scan_disabled(monkeypatch, capsys):
    monkeypatch.setattr(settings, "OPS_ENABLE_INTEGRITY_SCAN", False)

    assert run_scan("json", False, database_url="sqlite+pysqlite://") == 2
    assert "disabled" in capsys.readouterr().err
