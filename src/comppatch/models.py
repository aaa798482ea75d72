"""Canonical Pydantic models shared across all comppatch modules.

This is the single source of truth for data shapes in the project. The models
fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory
or in a project-local ``comppatch.json``:
    :class:`MarkerConfig`, :class:`ClauseConfig`, and :class:`PatchConfig`.

**Patcher models** -- produced and consumed by :mod:`comppatch.patcher`:
    :class:`GlobSet` and :class:`PatchReport`.

All models use Pydantic v2. Structural problems (missing ``{globs}`` in a
template, an empty marker) are rejected at validation time; whether a glob
collides with the clause or marker syntax depends on the combination of
settings and is checked by :func:`comppatch.patcher.build_glob_set`.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_IMAGE_GLOBS: tuple[str, ...] = (
    "*.png",
    "*.jpg",
    "*.jpeg",
    "*.gif",
    "*.bmp",
    "*.tif",
    "*.tiff",
    "*.ico",
    "*.webp",
    "*.avif",
    "*.pnm",
    "*.pbm",
    "*.pgm",
    "*.ppm",
    "*.dds",
    "*.tga",
    "*.exr",
    "*.ff",
    "*.farbfeld",
)
"""Image formats the wallpaper daemon's decoder understands."""

GLOBS_PLACEHOLDER = "{globs}"
"""Token in :attr:`ClauseConfig.template` replaced by the joined glob set."""

_QUOTE_CHARS = ('"', "'")


# --- Markers ---


class MarkerConfig(BaseModel):
    """Textual markers identifying completion rules to restrict.

    Two kinds of marker are recognised on each line:

    * **Path-parameter marker** -- ``path_open`` followed, anywhere later on
      the same line, by ``path_close``. The match is greedy, so the clause
      lands after the *last* ``path_close`` on the line. clap's zsh
      generator emits positionals as ``':path -- Path to the image:'``
      with an empty action, which completes nothing.
    * **Placeholder marker** -- the literal ``placeholder`` token (clap
      renders a value name such as ``IMG`` as ``:IMG:``). Every occurrence
      on a line is patched.

    Example::

        MarkerConfig(path_open=":path ", path_close=":", placeholder=":IMG:")
    """

    path_open: str = Field(
        default=":path ", description="Opening sentinel of a path-parameter rule"
    )
    path_close: str = Field(
        default=":", description="Closing delimiter after which the clause is inserted"
    )
    placeholder: str = Field(
        default=":IMG:", description="Generic value placeholder patched at every occurrence"
    )

    @field_validator("path_open", "path_close", "placeholder")
    @classmethod
    def _single_line(cls, value: str) -> str:
        if not value:
            raise ValueError("marker must not be empty")
        if "\n" in value or "\r" in value:
            raise ValueError("marker must not span lines")
        return value


# --- Clause ---


class ClauseConfig(BaseModel):
    """How the glob restriction is rendered for the target completion engine.

    The default renders zsh's ``_files -g "<pattern>"`` directive, where
    ``|`` inside the quoted pattern means "or".
    """

    template: str = Field(
        default='_files -g "{globs}"',
        description="Completion directive; {globs} is replaced by the joined glob set",
    )
    separator: str = Field(
        default="|", description="Separator the completion engine reads as OR"
    )

    @field_validator("template")
    @classmethod
    def _has_placeholder(cls, value: str) -> str:
        if value.count(GLOBS_PLACEHOLDER) != 1:
            raise ValueError(f"template must contain {GLOBS_PLACEHOLDER} exactly once")
        if "\n" in value or "\r" in value:
            raise ValueError("template must fit on one line")
        return value

    @field_validator("separator")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value or value.isspace():
            raise ValueError("separator must be a non-blank string")
        return value

    def reserved(self) -> list[str]:
        """Substrings a glob must not contain for this clause to stay well-formed.

        That is the OR separator plus any quote character the template wraps
        the glob list in.
        """
        head, _, tail = self.template.partition(GLOBS_PLACEHOLDER)
        reserved = [self.separator]
        for quote in _QUOTE_CHARS:
            if quote in head or quote in tail:
                reserved.append(quote)
        return reserved


# --- Glob set ---


class GlobSet(BaseModel):
    """An ordered, non-empty, immutable sequence of filename globs.

    Entries keep their order, duplicates included, so the rendered clause
    lists exactly the configured patterns. Each entry must be a single token
    with balanced character classes.
    """

    model_config = ConfigDict(frozen=True)

    patterns: tuple[str, ...]

    @field_validator("patterns")
    @classmethod
    def _valid_patterns(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("glob set must not be empty")
        for pattern in value:
            if not pattern:
                raise ValueError("glob must not be empty")
            if any(ch.isspace() for ch in pattern):
                raise ValueError(f"glob {pattern!r} must not contain whitespace")
            if not _balanced_brackets(pattern):
                raise ValueError(f"glob {pattern!r} has unbalanced '[' ']' brackets")
        return value

    def join(self, separator: str) -> str:
        return separator.join(self.patterns)

    def __len__(self) -> int:
        return len(self.patterns)


def _balanced_brackets(pattern: str) -> bool:
    """Return ``True`` if every ``[`` opens a class that is closed by ``]``.

    Character classes follow zsh: inside a class ``[`` is an ordinary
    member, and a ``]`` right after the opening ``[`` (or ``[!`` / ``[^``)
    is a member rather than the closing bracket. A backslash escapes the
    next character. So ``*.[]]``, ``*.[[]`` and ``*.[!]]`` are balanced.
    """
    i, end = 0, len(pattern)
    while i < end:
        ch = pattern[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "]":
            return False
        if ch == "[":
            i += 1
            if i < end and pattern[i] in "!^":
                i += 1
            if i < end and pattern[i] == "]":
                i += 1
            while i < end and pattern[i] != "]":
                i += 2 if pattern[i] == "\\" else 1
            if i >= end:
                return False
        i += 1
    return True


# --- Top-level config ---


class PatchConfig(BaseModel):
    """Effective patcher configuration.

    Stored as ``config.json`` in the comppatch config directory and
    optionally overridden by a project-local ``comppatch.json`` holding any
    subset of these keys.

    Example::

        {
          "globs": ["*.png", "*.jpg"],
          "markers": {"placeholder": ":FILE:"},
          "clause": {"template": "_files -g \\"{globs}\\""}
        }
    """

    globs: list[str] = Field(default_factory=lambda: list(DEFAULT_IMAGE_GLOBS))
    markers: MarkerConfig = Field(default_factory=MarkerConfig)
    clause: ClauseConfig = Field(default_factory=ClauseConfig)


# --- Patch results ---


class PatchReport(BaseModel):
    """Outcome of patching one completion file (or an in-memory text).

    ``original`` and ``patched`` carry the full text so callers can diff or
    print it, but are excluded from serialisation.
    """

    path: Optional[str] = None
    lines_total: int = 0
    lines_changed: int = 0
    path_clauses: int = 0
    placeholder_clauses: int = 0
    written: bool = False
    original: str = Field(default="", exclude=True, repr=False)
    patched: str = Field(default="", exclude=True, repr=False)

    @property
    def clauses_inserted(self) -> int:
        return self.path_clauses + self.placeholder_clauses

    @property
    def changed(self) -> bool:
        return self.original != self.patched
