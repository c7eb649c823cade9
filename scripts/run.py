from __future__ import annotations

import argparse
import os
import shlex
import subprocess
import sys
import tomllib
from pathlib import Path


ROOT_DIR = Path(__file__).resolve().parents[1]
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 56461

DEFAULT_CLI_ARGS = [
    "examples/software_delivery.json",
    "--out",
    "examples/output/software_delivery.json",
    "--pdf",
    "examples/output",
]


def _format_cmd(cmd: list[str]) -> str:
    if os.name == "nt":
        return subprocess.list2cmdline(cmd)
    return shlex.join(cmd)


def _run(cmd: list[str], *, env: dict[str, str] | None = None) -> int:
    print(f"+ {_format_cmd(cmd)}")
    completed = subprocess.run(cmd, cwd=ROOT_DIR, env=env)
    return completed.returncode


def _venv_python() -> Path:
    if os.name == "nt":
        return ROOT_DIR / ".venv" / "Scripts" / "python.exe"
    return ROOT_DIR / ".venv" / "bin" / "python"


def _python_for_tasks() -> str:
    venv_python = _venv_python()
    if venv_python.exists():
        return str(venv_python)
    return sys.executable


def _has_editable_install_support() -> bool:
    pyproject = ROOT_DIR / "pyproject.toml"
    if not pyproject.exists():
        return False
    try:
        data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError):
        return False
    return "build-system" in data and "project" in data


def cmd_setup(args: argparse.Namespace) -> int:
    if args.venv and not _venv_python().exists():
        code = _run([sys.executable, "-m", "venv", ".venv"])
        if code != 0:
            return code
    if not _has_editable_install_support():
        print("error: pyproject.toml with [build-system] and [project] is required.", file=sys.stderr)
        return 2
    return _run([_python_for_tasks(), "-m", "pip", "install", "-e", ".[test]"])


def cmd_test(args: argparse.Namespace) -> int:
    passthrough = list(args.pytest_args or [])
    if passthrough and passthrough[0] == "--":
        passthrough = passthrough[1:]
    return _run([_python_for_tasks(), "-m", "pytest", *passthrough])


def cmd_cli(args: argparse.Namespace) -> int:
    passthrough = list(args.cli_args or [])
    if passthrough and passthrough[0] == "--":
        passthrough = passthrough[1:]
    if not passthrough:
        passthrough = list(DEFAULT_CLI_ARGS)
    return _run([_python_for_tasks(), "-m", "project_risk_monitor.cli.main", *passthrough])


def cmd_web(args: argparse.Namespace) -> int:
    if not (ROOT_DIR / "app" / "main.py").exists():
        print("error: app/main.py not found.", file=sys.stderr)
        return 2
    print(f"starting web app at http://{args.host}:{args.port}")
    return _run(
        [
            _python_for_tasks(),
            "-m",
            "uvicorn",
            "app.main:app",
            "--host",
            args.host,
            "--port",
            str(args.port),
            "--reload",
        ],
        env=os.environ.copy(),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Cross-platform task runner for Project Risk Monitor.")
    sub = parser.add_subparsers(dest="command", required=True)

    setup_parser = sub.add_parser("setup", help="Install the project with its test extra.")
    setup_parser.add_argument("--venv", action="store_true", help="Create .venv if missing before install.")
    setup_parser.set_defaults(func=cmd_setup)

    test_parser = sub.add_parser("test", help="Run pytest.")
    test_parser.add_argument("pytest_args", nargs=argparse.REMAINDER, help="Optional pytest args.")
    test_parser.set_defaults(func=cmd_test)

    cli_parser = sub.add_parser("cli", help="Run the risk analysis CLI (defaults to the bundled example).")
    cli_parser.add_argument("cli_args", nargs=argparse.REMAINDER, help="Args forwarded to cli.main.")
    cli_parser.set_defaults(func=cmd_cli)

    web_parser = sub.add_parser("web", help="Run the FastAPI host with uvicorn.")
    web_parser.add_argument("--host", default=DEFAULT_HOST, help="Web host (default: 127.0.0.1).")
    web_parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Web port (default: 56461).")
    web_parser.set_defaults(func=cmd_web)

    return parser


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
