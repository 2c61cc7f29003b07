"""Source discovery and import-declaration extraction for module source files."""

from __future__ import annotations

import os
import re
from bisect import bisect_right
from pathlib import Path
from typing import Iterable, Iterator

from .model import ImportStatement, Project

DEFAULT_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs", ".mts", ".cts")
DEFAULT_EXCLUDE = (".git", "dist", "build", "coverage")

_COMMENT_OR_STRING = re.compile(
    r"""
    (?P<string>'(?:\\.|[^'\\\n])*'|"(?:\\.|[^"\\\n])*"|`(?:\\.|[^`\\])*`)
    | (?P<comment>//[^\n]*|/\*.*?\*/)
    """,
    re.VERBOSE | re.DOTALL,
)

_IMPORT_DECL = re.compile(
    r"""
    (?<![\w$.])import
    (?:
        \s*(?P<q1>['"])(?P<bare>[^'"\n]+)(?P=q1)
      | (?P<clause>[\w$*\s{},]+?)\bfrom\s*(?P<q2>['"])(?P<spec>[^'"\n]+)(?P=q2)
    )
    """,
    re.VERBOSE,
)
_NON_NEWLINE = re.compile(r"[^\n]")


def _mask_source(text: str) -> tuple[str, list[tuple[int, int]]]:
    """Blank comments in place and collect the spans of string literals.

    Offsets are preserved, so spans index into the returned text as well.
    """
    literals: list[tuple[int, int]] = []

    def _repl(match: re.Match[str]) -> str:
        if match.group("comment") is None:
            literals.append(match.span())
            return match.group(0)
        return _NON_NEWLINE.sub(" ", match.group(0))

    return _COMMENT_OR_STRING.sub(_repl, text), literals


def _inside(spans: list[tuple[int, int]], starts: list[int], idx: int) -> bool:
    pos = bisect_right(starts, idx) - 1
    return pos >= 0 and idx < spans[pos][1]


def _position(text: str, idx: int) -> tuple[int, int]:
    line = text.count("\n", 0, idx) + 1
    line_start = text.rfind("\n", 0, idx) + 1
    return line, idx - line_start + 1


def scan_imports(text: str) -> list[ImportStatement]:
    source, literals = _mask_source(text)
    starts = [start for start, _ in literals]
    out: list[ImportStatement] = []
    for match in _IMPORT_DECL.finditer(source):
        if _inside(literals, starts, match.start()):
            continue
        specifier = match.group("bare") or match.group("spec")
        line, column = _position(source, match.start())
        out.append(ImportStatement(specifier=specifier, line=line, column=column))
    return out


def read_imports(path: Path) -> list[ImportStatement]:
    return scan_imports(path.read_text(encoding="utf-8", errors="ignore"))


def iter_source_files(
    project: Project,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    exclude: Iterable[str] = DEFAULT_EXCLUDE,
    start: Path | None = None,
) -> Iterator[Path]:
    suffixes = frozenset(extensions)
    pruned = frozenset(exclude) | {project.vendor_dir}
    for dirpath, dirnames, filenames in os.walk(start or project.root):
        dirnames[:] = sorted(d for d in dirnames if d not in pruned)
        for name in sorted(filenames):
            path = Path(dirpath) / name
            if path.suffix in suffixes:
                yield path


def collect_sources(
    project: Project,
    paths: Iterable[Path] = (),
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    exclude: Iterable[str] = DEFAULT_EXCLUDE,
) -> list[Path]:
    """Source files to check: explicit files as given, directories walked."""
    requested = [Path(p).resolve() for p in paths]
    if not requested:
        return list(iter_source_files(project, extensions, exclude))
    out: dict[Path, None] = {}
    for path in requested:
        if path.is_dir():
            out.update((p, None) for p in iter_source_files(project, extensions, exclude, start=path))
        elif path.is_file():
            out[path] = None
    return list(out)
