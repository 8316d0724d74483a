from __future__ import annotations

from pathlib import Path

import pytest
from helpers import write_bytes

from overweight.checks import NO_MATCH_ERROR, run_checks
from overweight.config import normalize_config
from overweight.errors import KIND_TESTER_CONTRACT, KIND_UNKNOWN_TESTER, OverweightError
from overweight.testers import MeasureContext, create_tester


def test_file_exactly_at_budget_passes(project: Path) -> None:
    write_bytes(project / "a.js", 100)
    run = run_checks({"files": [{"path": "a.js", "maxSize": 100, "compression": "none"}]}, cwd=project)
    (result,) = run.results
    assert result.passed
    assert result.diff_bytes == 0
    assert result.measured_bytes == 100
    assert not run.stats.has_failures


def test_file_over_budget_fails(project: Path) -> None:
    write_bytes(project / "a.js", 150)
    run = run_checks({"files": [{"path": "a.js", "maxSize": 100, "compression": "none"}]}, cwd=project)
    (result,) = run.results
    assert not result.passed
    assert result.diff_bytes == 50
    assert result.diff_formatted == "+50 B"
    assert run.stats.has_failures
    assert not run.stats.has_errors
    assert run.stats.failures == (result,)


def test_missing_pattern_is_a_failing_result(project: Path) -> None:
    run = run_checks([{"path": "missing.js", "maxSize": "1 kB"}], cwd=project)
    (result,) = run.results
    assert result.error == NO_MATCH_ERROR
    assert not result.passed
    assert result.measured_bytes is None
    assert result.diff_bytes is None
    assert result.size_formatted == "N/A"
    assert result.absolute_path is None
    assert run.stats.has_failures
    assert run.stats.has_errors


def test_glob_yields_one_result_per_file(project: Path) -> None:
    write_bytes(project / "dist/b.js", 80)
    write_bytes(project / "dist/a.js", 40)
    run = run_checks([{"path": "dist/*.js", "maxSize": 50, "compression": "none", "label": "bundles"}], cwd=project)
    assert [(r.file_path, r.measured_bytes, r.passed, r.label) for r in run.results] == [
        ("dist/a.js", 40, True, "bundles"),
        ("dist/b.js", 80, False, "bundles"),
    ]
    assert run.stats.files == 2
    assert len(run.stats.failures) == 1


def test_results_keep_rule_order_with_workers(project: Path) -> None:
    for name in ("c.js", "a.js", "b.js"):
        write_bytes(project / "dist" / name, 10)
    rules = [
        {"path": "dist/c.js", "maxSize": 20, "compression": "none"},
        {"path": "dist/*.js", "maxSize": 20, "compression": "gzip"},
        {"path": "dist/missing.js", "maxSize": 20},
    ]
    sequential = run_checks(rules, cwd=project)
    threaded = run_checks(rules, cwd=project, jobs=4)
    expected = ["dist/c.js", "dist/a.js", "dist/b.js", "dist/c.js", "dist/missing.js"]
    assert [r.file_path for r in sequential.results] == expected
    assert threaded.results == sequential.results


def test_unknown_tester_aborts_before_measuring(project: Path) -> None:
    write_bytes(project / "a.js", 1)
    calls: list[str] = []
    counting = create_tester("counting", lambda buffer, ctx: calls.append(ctx.pattern) or len(buffer))
    with pytest.raises(OverweightError) as err:
        run_checks(
            [{"path": "a.js", "maxSize": 1, "compression": "counting"}, {"path": "a.js", "maxSize": 1, "compression": "zstd"}],
            testers=[counting],
            cwd=project,
        )
    assert err.value.kind == KIND_UNKNOWN_TESTER
    assert calls == []


@pytest.mark.parametrize("bad", ["12", None, -1, float("nan"), True])
def test_tester_contract_violation_aborts_the_run(project: Path, bad: object) -> None:
    write_bytes(project / "a.js", 1)
    broken = create_tester("broken", lambda _buffer, _ctx: bad)
    with pytest.raises(OverweightError) as err:
        run_checks([{"path": "a.js", "maxSize": 1, "compression": "broken"}], testers=[broken], cwd=project)
    assert err.value.kind == KIND_TESTER_CONTRACT
    assert 'Tester "broken" did not return a numeric size for "a.js"' in str(err.value)


def test_custom_tester_receives_measure_context(project: Path) -> None:
    target = write_bytes(project / "dist/app.js", 30)
    seen: list[MeasureContext] = []

    def measure(buffer: bytes, ctx: MeasureContext) -> dict[str, int]:
        seen.append(ctx)
        return {"bytes": len(buffer) * 2}

    run = run_checks(
        [{"path": "dist/*.js", "maxSize": 100, "compression": "double"}],
        testers={"double": {"id": "double", "measure": measure, "label": "doubled"}},
        cwd=project,
    )
    (result,) = run.results
    assert result.measured_bytes == 60
    assert result.tester_label == "doubled"
    assert seen == [MeasureContext(file_path=target.resolve(), pattern="dist/*.js")]


def test_normalized_config_root_is_used(project: Path) -> None:
    write_bytes(project / "packages/web/dist/app.js", 10)
    config = normalize_config({"root": "packages/web", "files": [{"path": "dist/app.js", "maxSize": 10, "compression": "none"}]}, cwd=project)
    run = run_checks(config, cwd=project / "elsewhere")
    assert run.results[0].passed
    assert run.results[0].file_path == "dist/app.js"


def test_to_dict_uses_camel_case_keys(project: Path) -> None:
    write_bytes(project / "a.js", 10)
    payload = run_checks([{"path": "a.js", "maxSize": 20, "compression": "none"}], cwd=project).to_dict()
    row = payload["results"][0]
    assert list(row) == [
        "pattern",
        "label",
        "filePath",
        "absolutePath",
        "tester",
        "testerLabel",
        "size",
        "sizeFormatted",
        "maxSize",
        "maxSizeFormatted",
        "diff",
        "diffFormatted",
        "passed",
        "error",
    ]
    assert row["diff"] == -10
    assert row["diffFormatted"] == "-10 B"
    assert payload["stats"] == {"files": 1, "failures": [], "hasFailures": False, "hasErrors": False}
