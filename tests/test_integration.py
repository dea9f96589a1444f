"""CLI integration tests."""

import json

import pytest

from clinicfin.cli.main import cli


def invoke(cli_runner, temp_db, *args):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args])


def test_help_does_not_need_database(cli_runner):
    """Test that --help works without touching a database."""
    result = cli_runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "upload" in result.output


def test_clinic_create_and_list(cli_runner, temp_db):
    """Test creating and listing clinics."""
    result = invoke(cli_runner, temp_db, "clinic", "create", "APP - West Houston")

    assert result.exit_code == 0
    assert "Created clinic 'APP - West Houston'" in result.output
    assert "Location set to 'West Houston'" in result.output

    result = invoke(cli_runner, temp_db, "clinic", "list")
    assert result.exit_code == 0
    assert "APP - West Houston" in result.output


def test_clinic_list_empty(cli_runner, temp_db):
    """Test listing clinics when none exist."""
    result = invoke(cli_runner, temp_db, "clinic", "list")

    assert result.exit_code == 0
    assert "No clinics found" in result.output


def test_clinic_create_duplicate(cli_runner, temp_db, sample_clinic):
    """Test that duplicate clinic names fail."""
    result = invoke(cli_runner, temp_db, "clinic", "create", "Webster")

    assert result.exit_code == 1
    assert "already exists" in result.output


def test_upload_file(cli_runner, temp_db, sample_clinic, pl_csv):
    """Test uploading a P&L file."""
    result = invoke(cli_runner, temp_db, "upload", str(pl_csv()))

    assert result.exit_code == 0, result.output
    assert "Upload 1 completed" in result.output
    assert "Records processed: 2" in result.output
    assert "[100%] completed" in result.output

    record = temp_db.get_financial_record(sample_clinic.id, 2024, 1)
    assert str(record.get("net_income")) in ("50000.00", "50000")


def test_upload_json_output(cli_runner, temp_db, sample_clinic, pl_csv):
    """Test machine-readable progress output."""
    result = invoke(cli_runner, temp_db, "upload", "--json", str(pl_csv()))

    assert result.exit_code == 0, result.output
    lines = [json.loads(line) for line in result.output.strip().splitlines()]
    assert lines[0]["status"] == "processing"
    assert lines[-1] == {
        "uploadId": 1,
        "status": "completed",
        "recordsProcessed": 2,
        "filesProcessed": 1,
        "clinicsAffected": 1,
        "errors": [],
    }


def test_upload_unknown_clinic_fails(cli_runner, temp_db, pl_csv):
    """Test that a batch committing nothing exits with failure."""
    result = invoke(cli_runner, temp_db, "upload", str(pl_csv()))

    assert result.exit_code == 1
    assert "Upload 1 failed" in result.output
    assert "Clinic 'Webster' not found" in result.output


def test_upload_create_clinics(cli_runner, temp_db, pl_csv):
    """Test creating clinics while uploading."""
    result = invoke(cli_runner, temp_db, "upload", "--create-clinics", str(pl_csv()))

    assert result.exit_code == 0, result.output
    assert [c.name for c in temp_db.list_clinics()] == ["Webster"]


def test_upload_history_and_show(cli_runner, temp_db, sample_clinic, pl_csv):
    """Test inspecting past uploads."""
    invoke(cli_runner, temp_db, "upload", "--uploaded-by", "alice", str(pl_csv()))

    result = invoke(cli_runner, temp_db, "upload-history")
    assert result.exit_code == 0
    assert "completed" in result.output
    assert "alice" in result.output

    result = invoke(cli_runner, temp_db, "upload-show", "1")
    assert result.exit_code == 0
    assert "Status: completed" in result.output
    assert "APP Financials 24(Webster).csv" in result.output
    assert "2024/01" in result.output
    assert "2024/02" in result.output


def test_upload_history_empty(cli_runner, temp_db):
    """Test the upload log with no uploads."""
    result = invoke(cli_runner, temp_db, "upload-history")

    assert result.exit_code == 0
    assert "No uploads found" in result.output


def test_upload_show_missing(cli_runner, temp_db):
    """Test showing an unknown upload."""
    result = invoke(cli_runner, temp_db, "upload-show", "5")

    assert result.exit_code == 1
    assert "Upload 5 not found" in result.output


def test_upload_resume_completed_batch(cli_runner, temp_db, sample_clinic, pl_csv):
    """Test that finished batches cannot be resumed."""
    path = str(pl_csv())
    invoke(cli_runner, temp_db, "upload", path)

    result = invoke(cli_runner, temp_db, "upload-resume", "1", path)

    assert result.exit_code == 1
    assert "cannot move" in result.output


def test_versions_list_and_rollback(cli_runner, temp_db, sample_clinic, pl_csv):
    """Test listing versions and rolling one back."""
    path = str(pl_csv())
    invoke(cli_runner, temp_db, "upload", path)
    invoke(cli_runner, temp_db, "upload", path)

    result = invoke(cli_runner, temp_db, "versions", "list", "--clinic", "Webster", "--month", "1")
    assert result.exit_code == 0
    assert "2024/01" in result.output
    assert "v2" in result.output
    assert "v1" in result.output

    first_jan = [v for v in temp_db.list_versions(month=1) if v.version == 1][0]
    result = invoke(cli_runner, temp_db, "versions", "rollback", str(first_jan.id), "--upload", "2")
    assert result.exit_code == 0, result.output
    assert "to version 1 (new version 3" in result.output


def test_versions_rollback_unknown(cli_runner, temp_db):
    """Test rolling back a version that does not exist."""
    result = invoke(cli_runner, temp_db, "versions", "rollback", "77")

    assert result.exit_code == 1
    assert "Version 77 not found" in result.output


def test_audit_clean(cli_runner, temp_db, sample_clinic, pl_csv):
    """Test auditing uploaded records."""
    invoke(cli_runner, temp_db, "upload", str(pl_csv()))

    result = invoke(cli_runner, temp_db, "audit", "--fix")

    assert result.exit_code == 0
    assert "Records scanned: 2" in result.output
    assert "Records with drift: 0" in result.output
    assert "Fields fixed: 0" in result.output


def test_verify_uploaded_file(cli_runner, temp_db, sample_clinic, pl_csv):
    """Test verifying a file after uploading it."""
    path = str(pl_csv())
    invoke(cli_runner, temp_db, "upload", path)

    result = invoke(cli_runner, temp_db, "verify", path)

    assert result.exit_code == 0
    assert "Months matching: 2" in result.output


def test_verify_missing_months(cli_runner, temp_db, sample_clinic, pl_csv):
    """Test verifying a file that was never uploaded."""
    result = invoke(cli_runner, temp_db, "verify", str(pl_csv()))

    assert result.exit_code == 1
    assert "Missing: 2024/01" in result.output


@pytest.mark.parametrize("category,code", [("income", "40000"), ("cogs", "53000")])
def test_line_items(cli_runner, temp_db, category, code):
    """Test listing the mapping table by category."""
    result = invoke(cli_runner, temp_db, "line-items", "--category", category)

    assert result.exit_code == 0
    assert code in result.output
    assert "66030" not in result.output
