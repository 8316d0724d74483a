"""Expand a rule's glob pattern into concrete files under the config root."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from wcmatch import glob

_GLOB_FLAGS = glob.GLOBSTAR | glob.BRACE | glob.DOTGLOB | glob.FOLLOW | glob.NODIR


@dataclass(frozen=True)
class FileMatch:
    absolute_path: Path
    relative_path: str


def _relative_display(path: Path, root: Path) -> str:
    try:
        relative = path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()
    return path.name if relative in {"", "."} else relative


def resolve_files(pattern: str, *, root: Path) -> list[FileMatch]:
    """Files (not directories, dotfiles included) matching ``pattern``, sorted and de-duplicated.

    Patterns support ``**`` and brace sets such as ``*.{js,css}``.

    De-duplication is per call: the same file may still appear under two rules.
    """
    root = root.resolve()
    absolute = Path(pattern).is_absolute()
    hits = glob.glob(pattern, flags=_GLOB_FLAGS, root_dir=None if absolute else str(root))
    candidates = [Path(hit) if Path(hit).is_absolute() else root / hit for hit in hits]
    literal = Path(pattern) if absolute else root / pattern
    if not candidates and literal.is_file():
        candidates = [literal]

    unique: dict[Path, None] = {}
    for candidate in candidates:
        resolved = candidate.resolve()
        if resolved.is_file():
            unique.setdefault(resolved, None)
    return [FileMatch(absolute_path=path, relative_path=_relative_display(path, root)) for path in sorted(unique)]
