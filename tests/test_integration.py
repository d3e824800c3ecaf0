"""Integration tests for end-to-end workflows."""

from groomreports.cli.main import cli

JANUARY_ARGS = ["--start-date", "2024-01-01", "--end-date", "2024-01-31"]


def _load(cli_runner, temp_db, fixtures_dir):
    return cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "load", str(fixtures_dir / "sample_export.json")]
    )


def test_full_workflow(cli_runner, temp_db, fixtures_dir):
    """Test complete workflow: load → report → drill → warnings."""
    # Step 1: Load the export
    result = _load(cli_runner, temp_db, fixtures_dir)
    assert result.exit_code == 0
    assert "Loaded revision 1:" in result.output
    assert "transactions" in result.output
    assert "1 normalization warning(s)" in result.output

    # Step 2: Report for January
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "report", "sales-summary"] + JANUARY_ARGS
    )
    assert result.exit_code == 0
    assert "Sales Summary" in result.output
    assert "2024-01-01" in result.output
    assert "$110.00" in result.output
    assert "By day:" in result.output

    # Step 3: Drill into a KPI
    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "drill", "sales-summary", "--metric", "net-sales"] + JANUARY_ARGS,
    )
    assert result.exit_code == 0
    assert "t1" in result.output
    assert "t5" not in result.output
    assert "matches" in result.output
    assert "DOES NOT MATCH" not in result.output

    # Step 4: Drill into a table row
    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            temp_db.database_path,
            "drill",
            "sales-summary",
            "--row",
            "card",
            "--group-by",
            "payment-method",
        ]
        + JANUARY_ARGS,
    )
    assert result.exit_code == 0
    assert "t1" in result.output
    assert "t3" in result.output
    assert "t2" not in result.output
    assert "$70.00" in result.output
    assert "DOES NOT MATCH" not in result.output

    # Step 5: Warnings
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "warnings"])
    assert result.exit_code == 0
    assert "t4" in result.output
    assert "a-missing" in result.output


def test_saved_view_workflow(cli_runner, temp_db, fixtures_dir):
    """Test saving a view, using it for a report and deleting it."""
    _load(cli_runner, temp_db, fixtures_dir)

    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "view", "save", "January", "sales-summary", "--payment-method", "card"]
        + JANUARY_ARGS,
    )
    assert result.exit_code == 0
    assert "Saved view 'January' for sales-summary" in result.output

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "view", "list"])
    assert result.exit_code == 0
    assert "January" in result.output

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "view", "show", "January"])
    assert result.exit_code == 0
    assert "Report: sales-summary" in result.output
    assert "Payment methods: card" in result.output

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "report", "sales-summary", "--view", "January"]
    )
    assert result.exit_code == 0
    assert "$70.00" in result.output

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "view", "save", "January", "tips"]
    )
    assert result.exit_code == 1
    assert "already exists" in result.output

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "view", "delete", "January"])
    assert result.exit_code == 0
    assert "Deleted view 'January'" in result.output

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "view", "list"])
    assert "No saved views found." in result.output


def test_list_reports(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "reports"])
    assert result.exit_code == 0
    assert "owner-overview" in result.output
    assert "true-profit" in result.output
    assert "taxes" in result.output


def test_report_without_data(cli_runner, temp_db):
    """Test that reporting before any load fails with a hint."""
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "report", "sales-summary"])
    assert result.exit_code == 1
    assert "No records loaded" in result.output


def test_unknown_report(cli_runner, temp_db, fixtures_dir):
    _load(cli_runner, temp_db, fixtures_dir)

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "report", "revenue"])
    assert result.exit_code == 1
    assert "Unknown report 'revenue'" in result.output
    assert "groomreports reports" in result.output


def test_invalid_custom_range(cli_runner, temp_db, fixtures_dir):
    _load(cli_runner, temp_db, fixtures_dir)

    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            temp_db.database_path,
            "report",
            "sales-summary",
            "--start-date",
            "2024-02-01",
            "--end-date",
            "2024-01-01",
        ],
    )
    assert result.exit_code == 1
    assert "must be on or before" in result.output


def test_drill_requires_one_target(cli_runner, temp_db, fixtures_dir):
    _load(cli_runner, temp_db, fixtures_dir)

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "drill", "sales-summary"])
    assert result.exit_code == 1
    assert "Specify exactly one of --metric or --row." in result.output


def test_drill_unknown_row(cli_runner, temp_db, fixtures_dir):
    _load(cli_runner, temp_db, fixtures_dir)

    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "drill", "sales-summary", "--row", "1999-01-01"] + JANUARY_ARGS,
    )
    assert result.exit_code == 1
    assert "No 'day' row '1999-01-01'" in result.output


def test_load_rejects_non_object(cli_runner, temp_db, tmp_path):
    export = tmp_path / "export.json"
    export.write_text("[1, 2, 3]", encoding="utf-8")

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "load", str(export)])
    assert result.exit_code == 1
    assert "Expected a JSON object" in result.output


def _count_line(output, collection):
    return next(line.split() for line in output.splitlines() if line.strip().startswith(collection))


def test_load_reports_stored_counts(cli_runner, temp_db, fixtures_dir, tmp_path):
    """Test that a partial load lists every stored collection."""
    result = _load(cli_runner, temp_db, fixtures_dir)
    assert _count_line(result.output, "transactions") == ["transactions", "6"]
    assert _count_line(result.output, "messages") == ["messages", "3"]

    export = tmp_path / "messages.json"
    export.write_text('{"messages": [{"id": "m9", "clientId": "c1", "sentAt": "2024-01-09T10:00:00"}]}')
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "load", str(export)])

    assert result.exit_code == 0
    assert "Loaded revision 2:" in result.output
    assert _count_line(result.output, "messages") == ["messages", "1"]
    assert _count_line(result.output, "transactions") == ["transactions", "6", "(kept)"]


def test_definitions_for_report(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "definitions", "true-profit"])

    assert result.exit_code == 0
    assert "Metric definitions: True Profit & Margin" in result.output
    assert "Contribution Margin $ (contribution-margin)" in result.output
    assert "Formula: Net Sales - COGS - Labor - Fees." in result.output
    assert "Tips Collected" not in result.output


def test_definitions_for_all_metrics(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "definitions"])

    assert result.exit_code == 0
    assert "Metric definitions: All metrics" in result.output
    assert "Sales after discounts and refunds, excluding taxes and tips." in result.output
    assert "Tips Collected (tips)" in result.output


def test_definitions_unknown_report(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "definitions", "revenue"])
    assert result.exit_code == 1
    assert "Unknown report 'revenue'" in result.output
