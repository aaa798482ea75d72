"""Completion rule patcher -- scope path completion to a glob set.

Completion generators usually emit a bare "any file" rule for path-typed
arguments. This module rewrites a generated completion file so those rules
only offer files matching a :class:`~comppatch.models.GlobSet`.

Each line is tested against two independent rules, in order:

1. **Path-parameter rule** -- the first ``path_open ... path_close`` match
   (greedy, so it ends at the last ``path_close`` on the line) gets the
   restriction clause appended right after it.
2. **Placeholder rule** -- every occurrence of ``placeholder`` gets the
   clause appended right after it.

Lines matching neither rule pass through byte-for-byte. With the default
markers and clause::

    'img':path ':        ->  'img':path ':_files -g "*.png|*.jpg"
    set :IMG: or :IMG:   ->  set :IMG:_files -g "*.png|*.jpg" or :IMG:_files -g "*.png|*.jpg"

The markers remain matchable after patching, so running the patcher twice
appends the clause twice.
"""

from __future__ import annotations

import difflib
import re
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError

from comppatch.config import atomic_write
from comppatch.exceptions import InvalidConfigError, IOError_, NotFoundError
from comppatch.models import (
    DEFAULT_IMAGE_GLOBS,
    GLOBS_PLACEHOLDER,
    ClauseConfig,
    GlobSet,
    MarkerConfig,
    PatchReport,
)

# Undecodable bytes survive a decode/encode round trip unchanged.
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def build_glob_set(
    patterns: Iterable[str],
    markers: Optional[MarkerConfig] = None,
    clause: Optional[ClauseConfig] = None,
) -> GlobSet:
    """Validate *patterns* against the marker and clause syntax.

    Besides the per-entry checks done by :class:`~comppatch.models.GlobSet`,
    no entry may contain the clause's separator or quote character, the
    path-parameter closing delimiter (the greedy path rule would otherwise
    extend into an already inserted clause), or the placeholder marker
    (the placeholder rule would otherwise patch inside the inserted clause).

    Raises:
        InvalidConfigError: If the set is empty or an entry is unusable.
    """
    markers = markers or MarkerConfig()
    clause = clause or ClauseConfig()
    try:
        glob_set = GlobSet(patterns=tuple(patterns))
    except ValidationError as exc:
        message = exc.errors()[0]["msg"].removeprefix("Value error, ")
        raise InvalidConfigError(f"Invalid glob set: {message}") from exc

    reserved = clause.reserved() + [markers.path_close, markers.placeholder]
    for pattern in glob_set.patterns:
        for token in reserved:
            if token in pattern:
                raise InvalidConfigError(
                    f"Invalid glob set: {pattern!r} contains reserved text {token!r}"
                )
    return glob_set


def render_clause(glob_set: GlobSet, clause: Optional[ClauseConfig] = None) -> str:
    """Render the restriction directive for *glob_set*.

    Example::

        >>> render_clause(GlobSet(patterns=("*.png", "*.jpg")))
        '_files -g "*.png|*.jpg"'
    """
    clause = clause or ClauseConfig()
    return clause.template.replace(GLOBS_PLACEHOLDER, glob_set.join(clause.separator))


def _path_rule(markers: MarkerConfig) -> re.Pattern[str]:
    return re.compile(re.escape(markers.path_open) + ".*" + re.escape(markers.path_close))


def patch_line(
    line: str,
    clause_text: str,
    markers: Optional[MarkerConfig] = None,
) -> tuple[str, int, int]:
    """Apply both marker rules to a single line (without its line ending).

    Returns:
        ``(new_line, path_clauses, placeholder_clauses)``.
    """
    markers = markers or MarkerConfig()
    return _patch_line(line, clause_text, _path_rule(markers), markers.placeholder)


def _patch_line(
    line: str,
    clause_text: str,
    path_rule: re.Pattern[str],
    placeholder: str,
) -> tuple[str, int, int]:
    line, path_hits = path_rule.subn(lambda m: m.group(0) + clause_text, line, count=1)

    placeholder_hits = line.count(placeholder)
    if placeholder_hits:
        line = line.replace(placeholder, placeholder + clause_text)

    return line, path_hits, placeholder_hits


def transform(
    text: str,
    glob_set: GlobSet,
    markers: Optional[MarkerConfig] = None,
    clause: Optional[ClauseConfig] = None,
) -> PatchReport:
    """Patch *text* in memory and report what changed.

    Lines are split on ``\\n`` only, so ``\\r\\n`` endings and a missing
    final newline come back exactly as they went in.
    """
    markers = markers or MarkerConfig()
    clause_text = render_clause(glob_set, clause)
    path_rule = _path_rule(markers)

    report = PatchReport(original=text)
    out: list[str] = []
    for line in text.split("\n"):
        new_line, path_hits, placeholder_hits = _patch_line(
            line, clause_text, path_rule, markers.placeholder
        )
        if new_line != line:
            report.lines_changed += 1
        report.path_clauses += path_hits
        report.placeholder_clauses += placeholder_hits
        out.append(new_line)

    report.lines_total = text.count("\n")
    if text and not text.endswith("\n"):
        report.lines_total += 1
    report.patched = "\n".join(out)
    return report


def patch_text(
    text: str,
    globs: Iterable[str],
    markers: Optional[MarkerConfig] = None,
    clause: Optional[ClauseConfig] = None,
) -> str:
    """Return *text* with every marker restricted to *globs*.

    Raises:
        InvalidConfigError: If *globs* is empty or malformed.
    """
    glob_set = build_glob_set(globs, markers, clause)
    return transform(text, glob_set, markers, clause).patched


def patch_file(
    path: str | Path,
    globs: Optional[Iterable[str]] = None,
    *,
    markers: Optional[MarkerConfig] = None,
    clause: Optional[ClauseConfig] = None,
    dry_run: bool = False,
) -> PatchReport:
    """Patch the completion file at *path* in place.

    The glob set is validated before the file is touched. The file is read
    fully, transformed in memory and written back through
    :func:`~comppatch.config.atomic_write`, so the original is either fully
    replaced or left as it was. Nothing is written when *dry_run* is set or
    when no marker matched.

    Args:
        path: Completion file to patch.
        globs: Glob patterns; defaults to :data:`~comppatch.models.DEFAULT_IMAGE_GLOBS`.
        markers: Marker configuration; defaults to clap's zsh output.
        clause: Clause template; defaults to zsh's ``_files -g``.
        dry_run: Compute the report without writing.

    Returns:
        A :class:`~comppatch.models.PatchReport` for the file.

    Raises:
        InvalidConfigError: If the glob set is empty or malformed.
        NotFoundError: If *path* does not exist or is not a regular file.
        IOError_: If reading, writing or renaming fails.
    """
    path = Path(path)
    glob_set = build_glob_set(
        DEFAULT_IMAGE_GLOBS if globs is None else globs, markers, clause
    )

    if not path.exists():
        raise NotFoundError(f"Completion file not found: {path}")
    if not path.is_file():
        raise NotFoundError(f"Not a regular file: {path}")

    try:
        raw = path.read_bytes()
    except FileNotFoundError as exc:
        raise NotFoundError(f"Completion file not found: {path}") from exc
    except OSError as exc:
        raise IOError_(f"Cannot read {path}: {exc}") from exc

    report = transform(raw.decode(_ENCODING, _ERRORS), glob_set, markers, clause)
    report.path = str(path)

    if dry_run or not report.changed:
        return report

    try:
        atomic_write(path, report.patched.encode(_ENCODING, _ERRORS))
    except OSError as exc:
        raise IOError_(f"Cannot replace {path}: {exc}") from exc
    report.written = True
    return report


def unified_diff(report: PatchReport, context: int = 0) -> str:
    """Return a unified diff between the original and patched text of *report*."""
    name = report.path or "completion"
    lines = difflib.unified_diff(
        report.original.splitlines(keepends=True),
        report.patched.splitlines(keepends=True),
        fromfile=f"a/{name}",
        tofile=f"b/{name}",
        n=context,
    )
    return "".join(lines)
