from __future__ import annotations

from pathlib import Path

from helpers import write_bytes

from overweight.files import resolve_files


def _relative(matches) -> list[str]:
    return [match.relative_path for match in matches]


def test_glob_matches_files_only_sorted(project: Path) -> None:
    write_bytes(project / "dist/b.js", 2)
    write_bytes(project / "dist/a.js", 1)
    write_bytes(project / "dist/a.css", 1)
    (project / "dist/chunks.js").mkdir()
    matches = resolve_files("dist/*.js", root=project)
    assert _relative(matches) == ["dist/a.js", "dist/b.js"]
    assert all(match.absolute_path.is_absolute() for match in matches)


def test_dotfiles_and_recursive_patterns(project: Path) -> None:
    write_bytes(project / "dist/.cache.js", 1)
    write_bytes(project / "dist/nested/deep/c.js", 1)
    write_bytes(project / "dist/top.js", 1)
    assert _relative(resolve_files("dist/**/*.js", root=project)) == [
        "dist/.cache.js",
        "dist/nested/deep/c.js",
        "dist/top.js",
    ]


def test_literal_path_with_glob_characters(project: Path) -> None:
    write_bytes(project / "dist/[id].js", 3)
    matches = resolve_files("dist/[id].js", root=project)
    assert _relative(matches) == ["dist/[id].js"]


def test_missing_pattern_yields_no_matches(project: Path) -> None:
    assert resolve_files("dist/missing.js", root=project) == []
    assert resolve_files("dist", root=project) == []


def test_absolute_pattern_inside_root(project: Path) -> None:
    target = write_bytes(project / "dist/app.js", 5)
    (match,) = resolve_files(str(target), root=project)
    assert match.relative_path == "dist/app.js"
    assert match.absolute_path == target.resolve()


def test_brace_sets_expand_and_deduplicate(project: Path) -> None:
    write_bytes(project / "dist/a.js", 1)
    write_bytes(project / "dist/b.css", 1)
    write_bytes(project / "dist/c.map", 1)
    assert _relative(resolve_files("dist/*.{js,css}", root=project)) == ["dist/a.js", "dist/b.css"]
    assert _relative(resolve_files("dist/{a,a}.js", root=project)) == ["dist/a.js"]
