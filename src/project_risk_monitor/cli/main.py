from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from ..config import get_settings
from ..io import LoadedProject, dump_result_file, load_projects, select_project
from ..models import ProjectInfo
from ..narrative import OpenAINarrativeClient
from ..pipeline import RiskAnalyzer
from ..reporting.pdf import filename_slug


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="project-risk-monitor",
        description="Score schedule activities for risk and assemble a ranked risk report.",
    )
    parser.add_argument("input", help="JSON or CSV file containing activity records")
    parser.add_argument(
        "--out",
        default="examples/output/result.json",
        help="Output JSON file path (default: examples/output/result.json)",
    )
    parser.add_argument("--pdf", default="", help="Optional PDF report path or directory")
    parser.add_argument("--csv", default="", help="Optional CSV export of the ranked risk table")
    parser.add_argument(
        "--project",
        default="",
        help="Analyze only this project of a multi-project CSV (default: every project in the file)",
    )
    parser.add_argument("--project-name", default="", help="Project name shown in the report header")
    parser.add_argument("--budget", type=float, default=None, help="Project budget shown in the report header")
    parser.add_argument("--duration", default="", help="Project duration label, e.g. '6 months'")
    parser.add_argument("--recompute-cpm", action="store_true", help="Recompute CPM dates and float from dependencies")
    parser.add_argument("--insight", action="store_true", help="Request a narrative insight when OPENAI_API_KEY is set")
    return parser


def _per_project_path(path: Path, project: ProjectInfo) -> Path:
    return path.with_name(f"{path.stem}_{filename_slug(project.name or 'project')}{path.suffix}")


def _with_overrides(project: ProjectInfo, args: argparse.Namespace) -> ProjectInfo:
    if args.project_name:
        project = replace(project, name=args.project_name)
    if args.budget is not None:
        project = replace(project, budget=args.budget)
    if args.duration:
        project = replace(project, duration=args.duration)
    return project


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    input_path = Path(args.input).resolve()
    output_path = Path(args.out).resolve()

    if not input_path.exists() or not input_path.is_file():
        print(f"error: input file not found: {input_path}", file=sys.stderr)
        return 2

    try:
        projects: list[LoadedProject] = load_projects(input_path)
        if args.project:
            projects = [select_project(projects, args.project)]
    except Exception as exc:
        print(f"error: invalid input: {exc}", file=sys.stderr)
        return 2

    several = len(projects) > 1
    if several and args.project_name:
        print("error: --project-name applies to a single project; pick one with --project", file=sys.stderr)
        return 2

    settings = get_settings()
    client = OpenAINarrativeClient.from_settings(settings) if args.insight else None
    analyzer = RiskAnalyzer(narrative_client=client, user=settings.audit_default_user)

    for loaded in projects:
        project = _with_overrides(loaded.project, args)
        analyzer.note_import(input_path.name, len(loaded.records))
        result = analyzer.analyze(loaded.records, project, recompute_cpm=args.recompute_cpm)

        result_path = _per_project_path(output_path, project) if several else output_path
        result_path.parent.mkdir(parents=True, exist_ok=True)
        dump_result_file(result_path, result.to_dict())

        if several:
            print(f"project={project.name}")
        for item in result.rejected:
            print(f"rejected record {item.index}: {item.reason}", file=sys.stderr)
        print(f"activities={result.summary.total_activities}")
        print(f"critical={result.summary.critical_count} high={result.summary.high_count}")
        print(f"total_emv={result.summary.total_emv:.2f}")
        print(f"wrote={result_path}")
        if args.csv:
            csv_path = Path(args.csv).resolve()
            csv_path = analyzer.export_csv(result, _per_project_path(csv_path, project) if several else csv_path)
            print(f"csv={csv_path}")
        if args.pdf:
            pdf_target = Path(args.pdf).resolve()
            if several and pdf_target.suffix and not pdf_target.is_dir():
                pdf_target = _per_project_path(pdf_target, project)
            pdf_path = analyzer.export_pdf(result, pdf_target)
            print(f"pdf={pdf_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
