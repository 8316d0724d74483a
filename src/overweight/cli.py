from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from . import __version__
from .checks.engine import run_checks
from .config.loader import ConfigSource, NormalizedConfig, load_config, normalize_config
from .core.context import RunContext
from .core.logging import log_event
from .core.serialize import dumps_json
from .errors import KIND_CONFIG, KIND_USAGE, OverweightError
from .exit_codes import ERR_FAILED, OK
from .reporters import REPORTER_NAMES, get_reporter


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="overweight", description="Check built files against size budgets.")
    p.add_argument("--version", action="version", version=f"overweight {__version__}")
    p.add_argument("--config", help="path to an overweight configuration file (JSON or YAML)")
    p.add_argument("--root", help="working directory for resolving files and globs")
    p.add_argument("--reporter", help=f"reporter to use ({', '.join(REPORTER_NAMES)})")
    p.add_argument("--json", action="store_true", help="shortcut for --reporter json")
    p.add_argument("--report-file", help="output path for the json-file reporter")
    p.add_argument("--files", help="inline JSON array of file rules (overrides config file)")
    p.add_argument("-f", "--file", help="quick check for a single file or glob")
    p.add_argument("-s", "--max-size", help="max size for --file usage")
    p.add_argument("-c", "--compression", help="tester to use with --file (default gzip)")
    p.add_argument("--jobs", type=int, default=1, help="measure files with N worker threads")
    p.add_argument("--log-json", action="store_true", help="emit structured log events as JSON on stderr")
    p.add_argument("--quiet", action="store_true", help="only log warnings and errors")
    return p


def _parse_inline_files(value: str) -> dict[str, Any]:
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as exc:
        raise OverweightError(f"Failed to parse --files JSON: {exc}", kind=KIND_CONFIG) from exc
    return {"files": parsed} if isinstance(parsed, list) else parsed


def _single_rule(ns: argparse.Namespace) -> dict[str, Any] | None:
    if not ns.file:
        return None
    if not ns.max_size:
        raise OverweightError("Using --file requires --max-size to be provided.", kind=KIND_USAGE)
    rule: dict[str, Any] = {"path": ns.file, "maxSize": ns.max_size}
    if ns.compression:
        rule["compression"] = ns.compression
    return {"files": [rule]}


def resolve_cli_config(ns: argparse.Namespace, ctx: RunContext) -> NormalizedConfig:
    root = (ctx.cwd / ns.root).resolve() if ns.root else ctx.cwd
    inline = _parse_inline_files(ns.files) if ns.files else _single_rule(ns)
    if inline is not None:
        return normalize_config(inline, cwd=root, source=ConfigSource("inline"))
    return load_config(root, config_path=ns.config, ctx=ctx)


def render_error(*, as_json: bool, message: str, code: int, kind: str) -> str:
    if as_json:
        return dumps_json(
            {
                "schema_version": 1,
                "tool": "overweight",
                "status": "error",
                "errors": [{"code": code, "kind": kind, "message": message}],
            }
        )
    return message


def main(argv: list[str] | None = None) -> int:
    ns = build_parser().parse_args(argv)
    ctx = RunContext.from_env(log_json=ns.log_json or None, quiet=ns.quiet)
    as_json = ns.json or ns.reporter == "json"
    try:
        reporter_name = "json" if ns.json else (ns.reporter or "console")
        root = (ctx.cwd / ns.root).resolve() if ns.root else ctx.cwd
        reporter = get_reporter(reporter_name, report_file=ns.report_file, cwd=root)
        config = resolve_cli_config(ns, ctx)
        log_event(ctx, "info", "cli", "start", root=str(config.root), rules=len(config.rules), reporter=reporter_name)
        run = run_checks(config, jobs=ns.jobs, ctx=ctx)
        reporter(run)
        return ERR_FAILED if run.stats.has_failures else OK
    except OverweightError as exc:
        print(render_error(as_json=as_json, message=str(exc), code=exc.code, kind=exc.kind), file=sys.stderr)
        return exc.code
    except Exception as exc:  # pragma: no cover
        print(render_error(as_json=as_json, message=f"internal error: {exc}", code=ERR_FAILED, kind="internal"), file=sys.stderr)
        return ERR_FAILED


if __name__ == "__main__":
    raise SystemExit(main())
