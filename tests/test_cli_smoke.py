from __future__ import annotations

import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from project_risk_monitor.cli.main import main
from project_risk_monitor.io import load_activity_file, load_projects
from project_risk_monitor.pipeline import run_analysis
from project_risk_monitor.reporting.pdf import render_report_pdf, report_filename

EXAMPLES_DIR = Path(__file__).resolve().parents[1] / "examples"
MULTI_PROJECT_CSV = (
    "ProjectName,ProjectCategory,ID,Name,Duration,DaysDelayed\n"
    "Clinic EHR,Clinical,A-001,Chart migration,10,4\n"
    "Clinic EHR,Clinical,A-002,Staff training,5,0\n"
    "Portal,General,A-001,Login page,8,1\n"
    "Portal,,A-002,Payments,6,3\n"
)


def test_json_and_csv_examples_load_the_same_activities() -> None:
    from_json = load_activity_file(EXAMPLES_DIR / "software_delivery.json")
    from_csv = load_activity_file(EXAMPLES_DIR / "software_delivery.csv")

    assert from_json.project.name == "Customer Portal Rebuild"
    assert from_json.project.budget == 850000.0
    assert from_csv.project.name == "Customer Portal Rebuild"
    assert len(from_json.records) == len(from_csv.records) == 10

    json_ids = [a.activity.id for a in run_analysis(from_json.records).ranked]
    csv_result = run_analysis(from_csv.records)
    assert sorted(json_ids) == sorted(a.activity.id for a in csv_result.ranked)
    assert csv_result.find("SD-006").activity.predecessor_ids == frozenset({"SD-003", "SD-004"})


def test_json_loader_rejects_unexpected_shape(tmp_path: Path) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"tasks": []}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_activity_file(bad)


def test_cli_smoke_writes_result_and_pdf(tmp_path: Path) -> None:
    output_path = tmp_path / "result.json"
    pdf_dir = tmp_path / "reports"

    code = main(
        [
            str(EXAMPLES_DIR / "software_delivery.json"),
            "--out",
            str(output_path),
            "--pdf",
            str(pdf_dir),
            "--csv",
            str(tmp_path / "ranked.csv"),
            "--project-name",
            "Portal Rebuild",
            "--recompute-cpm",
        ]
    )

    assert code == 0
    result = json.loads(output_path.read_text(encoding="utf-8"))
    assert result["summary"]["totalActivities"] == 10
    assert result["report"]["project"]["name"] == "Portal Rebuild"
    pdfs = list(pdf_dir.glob("Risk_Analysis_Portal_Rebuild_*.pdf"))
    assert len(pdfs) == 1
    assert pdfs[0].read_bytes().startswith(b"%PDF")
    ranked_lines = (tmp_path / "ranked.csv").read_text(encoding="utf-8").splitlines()
    assert ranked_lines[0] == "#,ID,Activity,Score,Severity,Status"
    assert len(ranked_lines) == 11


def _multi_project_csv(tmp_path: Path) -> Path:
    path = tmp_path / "portfolio.csv"
    path.write_text(MULTI_PROJECT_CSV, encoding="utf-8")
    return path


def test_csv_with_several_projects_loads_one_project_each(tmp_path: Path) -> None:
    projects = load_projects(_multi_project_csv(tmp_path))

    assert [(p.project.name, p.project.category) for p in projects] == [
        ("Clinic EHR", "Clinical"),
        ("Portal", "General"),
    ]
    for loaded in projects:
        assert all("ProjectName" not in record for record in loaded.records)
        result = run_analysis(loaded.records, loaded.project)
        assert result.summary.total_activities == 2
        assert result.rejected == ()
        assert {a.activity.id for a in result.ranked} == {"A-001", "A-002"}


def test_load_activity_file_requires_a_choice_for_several_projects(tmp_path: Path) -> None:
    path = _multi_project_csv(tmp_path)

    with pytest.raises(ValueError, match="2 projects"):
        load_activity_file(path)
    assert load_activity_file(path, project_name="portal").project.name == "Portal"
    with pytest.raises(ValueError, match="not found"):
        load_activity_file(path, project_name="Warehouse")


def test_cli_analyzes_every_project_of_a_portfolio_csv(tmp_path: Path) -> None:
    path = _multi_project_csv(tmp_path)

    code = main([str(path), "--out", str(tmp_path / "result.json"), "--csv", str(tmp_path / "ranked.csv")])

    assert code == 0
    for slug in ("Clinic_EHR", "Portal"):
        result = json.loads((tmp_path / f"result_{slug}.json").read_text(encoding="utf-8"))
        assert result["summary"]["totalActivities"] == 2
        assert result["rejected"] == []
        assert (tmp_path / f"ranked_{slug}.csv").exists()
    assert not (tmp_path / "result.json").exists()


def test_cli_selects_one_project(tmp_path: Path) -> None:
    path = _multi_project_csv(tmp_path)
    output_path = tmp_path / "portal.json"

    assert main([str(path), "--project", "Portal", "--out", str(output_path)]) == 0
    result = json.loads(output_path.read_text(encoding="utf-8"))
    assert result["report"]["project"]["name"] == "Portal"
    assert [item["activity"]["name"] for item in result["ranked"]] == ["Payments", "Login page"]

    assert main([str(path), "--project", "Warehouse", "--out", str(output_path)]) == 2
    assert main([str(path), "--project-name", "Renamed", "--out", str(output_path)]) == 2


def test_cli_missing_input_returns_2(tmp_path: Path) -> None:
    assert main([str(tmp_path / "missing.json"), "--out", str(tmp_path / "out.json")]) == 2


def test_cli_invalid_input_returns_2(tmp_path: Path) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    assert main([str(bad), "--out", str(tmp_path / "out.json")]) == 2


def test_pdf_renderer_accepts_explicit_file_and_empty_report(tmp_path: Path) -> None:
    report = run_analysis([]).report
    target = tmp_path / "empty.pdf"

    written = render_report_pdf(report, target)

    assert written == target
    assert target.stat().st_size > 0
    assert report_filename(report).startswith("Risk_Analysis_Unknown_Project_")


def test_app_health_smoke(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{(tmp_path / 'health.db').as_posix()}")
    monkeypatch.setenv("RUNTIME_DIR", str(tmp_path / "runtime"))

    from app.main import create_app

    client = TestClient(create_app())
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert client.get("/api/health").json()["version"] == "0.1.0"
