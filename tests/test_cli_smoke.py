import csv
import json
from pathlib import Path

import httpx
from typer.testing import CliRunner

from budget_importer.infra.http.budget_api_client import BudgetApiClient
from budget_importer.main import app

from tests.support import make_cells, make_csv

runner = CliRunner()


def base_args(tmp_path: Path) -> list[str]:
    return [
        "--log-dir", str(tmp_path / "logs"),
        "--report-dir", str(tmp_path / "reports"),
        "--store-dir", str(tmp_path / "data"),
        "--run-id", "test-run",
    ]


def write_csv(tmp_path: Path, text: str, name: str = "budgets.csv") -> str:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


def read_report(tmp_path: Path, command: str) -> dict:
    path = tmp_path / "reports" / f"report_{command}_test-run.json"
    return json.loads(path.read_text(encoding="utf-8"))


def test_help_shows_commands():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("validate", "import", "export", "template"):
        assert command in result.stdout


def test_validate_requires_csv(tmp_path: Path):
    result = runner.invoke(app, [*base_args(tmp_path), "validate"])

    assert result.exit_code == 2
    assert "--csv is required" in result.output


def test_validate_valid_file(tmp_path: Path):
    csvPath = write_csv(tmp_path, make_csv(make_cells()))

    result = runner.invoke(app, [*base_args(tmp_path), "validate", "--csv", csvPath])

    assert result.exit_code == 0
    assert "rows total=1 valid=1 invalid=0 warnings=0 drafts=0" in result.output
    report = read_report(tmp_path, "validate")
    assert report["status"] == "SUCCESS"
    assert report["summary"]["rows_total"] == 1
    assert report["meta"]["source_file"] == csvPath


def test_validate_reports_row_errors(tmp_path: Path):
    csvPath = write_csv(tmp_path, make_csv(make_cells(), make_cells()))

    result = runner.invoke(app, [*base_args(tmp_path), "validate", "--csv", csvPath])

    assert result.exit_code == 1
    assert "ERROR Row 2: duplicate of row 1" in result.output
    report = read_report(tmp_path, "validate")
    assert report["status"] == "PARTIAL"
    assert report["summary"]["by_stage"]["DEDUPE"]["errors_total"] == 1
    assert report["items"][1]["diagnostics"][0]["code"] == "DUPLICATE_RECORD"


def test_validate_header_only_is_structural_error(tmp_path: Path):
    csvPath = write_csv(tmp_path, make_csv())

    result = runner.invoke(app, [*base_args(tmp_path), "validate", "--csv", csvPath])

    assert result.exit_code == 2
    report = read_report(tmp_path, "validate")
    assert report["status"] == "FAILED"
    assert report["context"]["error"]["code"] == "NO_DATA_ROWS"


def test_import_then_export(tmp_path: Path):
    csvPath = write_csv(tmp_path, make_csv(make_cells(), make_cells(description="Bateria", cash="abc")))
    outPath = tmp_path / "out" / "export.csv"

    imported = runner.invoke(
        app, [*base_args(tmp_path), "import", "--csv", csvPath, "--owner-id", "owner-1", "--yes"]
    )
    exported = runner.invoke(
        app, [*base_args(tmp_path), "export", "--out", str(outPath), "--owner-id", "owner-1"]
    )

    assert imported.exit_code == 1
    assert "Imported 1 of 1 valid rows" in imported.output
    assert exported.exit_code == 0
    assert "Exported 1 of 1 budgets" in exported.output
    lines = outPath.read_text(encoding="utf-8").split("\n")
    assert lines[0].startswith("\ufeffTipo Aparelho;")
    assert lines[1] == "celular;Tela iPhone 11;Gold;;750,00;800,00;10;Cartão de Crédito;6;15;sim;sim"


def test_import_requires_owner(tmp_path: Path):
    csvPath = write_csv(tmp_path, make_csv(make_cells()))

    result = runner.invoke(app, [*base_args(tmp_path), "import", "--csv", csvPath, "--yes"])

    assert result.exit_code == 2
    assert "--owner-id is required" in result.output


def test_import_declined_keeps_store_empty(tmp_path: Path):
    csvPath = write_csv(tmp_path, make_csv(make_cells()))
    outPath = tmp_path / "export.csv"

    result = runner.invoke(
        app, [*base_args(tmp_path), "import", "--csv", csvPath, "--owner-id", "owner-1"], input="n\n"
    )
    exported = runner.invoke(app, [*base_args(tmp_path), "export", "--out", str(outPath)])

    assert result.exit_code == 0
    assert "Import cancelled" in result.output
    assert "Exported 0 of 0 budgets" in exported.output


def test_import_with_no_valid_rows(tmp_path: Path):
    csvPath = write_csv(tmp_path, make_csv(make_cells(cash="0")))

    result = runner.invoke(
        app, [*base_args(tmp_path), "import", "--csv", csvPath, "--owner-id", "owner-1", "--yes"]
    )

    assert result.exit_code == 1
    assert "Nothing to import" in result.output


def test_api_backend_requires_url(tmp_path: Path):
    csvPath = write_csv(tmp_path, make_csv(make_cells()))

    result = runner.invoke(
        app,
        [*base_args(tmp_path), "--store-backend", "api", "import", "--csv", csvPath, "--owner-id", "o", "--yes"],
    )

    assert result.exit_code == 2
    assert "missing API settings" in result.output


def test_import_through_api_backend(tmp_path: Path, monkeypatch):
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(201, json=[{"id": f"b-{len(seen)}"}])

    def make_client(**kwargs):
        return BudgetApiClient(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr("budget_importer.main.BudgetApiClient", make_client)
    csvPath = write_csv(tmp_path, make_csv(make_cells()))
    secret = "SUPER_SECRET_KEY"

    result = runner.invoke(
        app,
        [
            *base_args(tmp_path),
            "--store-backend", "api",
            "--api-url", "https://api.example.test",
            "--api-key", secret,
            "import", "--csv", csvPath, "--owner-id", "owner-1", "--yes",
        ],
    )

    assert result.exit_code == 0
    assert "Imported 1 of 1 valid rows" in result.output
    assert "api_key=***" in result.output
    assert secret not in result.output
    assert seen[0]["cash_price"] == 75000
    assert seen[0]["owner_id"] == "owner-1"
    report = read_report(tmp_path, "import")
    assert report["summary"]["ops"]["persist"] == {"ok": 1, "failed": 0, "count": 1}


def test_template_round_trip(tmp_path: Path):
    outPath = tmp_path / "template.csv"

    written = runner.invoke(app, [*base_args(tmp_path), "template", "--out", str(outPath)])
    validated = runner.invoke(app, [*base_args(tmp_path), "validate", "--csv", str(outPath)])

    assert written.exit_code == 0
    assert validated.exit_code == 0
    with open(outPath, encoding="utf-8-sig", newline="") as f:
        rows = list(csv.reader(f, delimiter=";"))
    assert len(rows) == 2
    assert rows[1][0] == "celular"
