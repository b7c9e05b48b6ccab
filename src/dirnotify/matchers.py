"""Path predicates used to decide which changes are worth a notification."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple


class MatcherKind(str, Enum):
    """Matcher variants that can be referenced from configuration."""

    ANY = "any"
    FULL_NAME = "full_name"
    BASE_NAME = "base_name"
    EXTENSION = "extension"
    CONTAINS = "contains"


class PathMatcher:
    """Base class for stateless path predicates.

    ``matches`` only accepts existing regular files. ``matches_name`` applies
    the name rule alone and is what the pipeline uses for deleted entries,
    which can no longer be checked on disk.
    """

    def matches(self, path: Path) -> bool:
        if path is None:
            raise TypeError("path must not be None")
        path = Path(path)
        if not path.is_file():
            return False
        return self.matches_name(path.name)

    def matches_name(self, name: str) -> bool:
        raise NotImplementedError


class AnyFileMatcher(PathMatcher):
    """Accepts every regular file."""

    def matches_name(self, name: str) -> bool:
        return True

    def __repr__(self) -> str:
        return "AnyFileMatcher()"


class FullNameMatcher(PathMatcher):
    """Accepts files whose name, extension included, equals ``name``."""

    def __init__(self, name: str):
        self._name = _require_text(name, "File name")

    def matches_name(self, name: str) -> bool:
        return name == self._name

    def __repr__(self) -> str:
        return f"FullNameMatcher({self._name!r})"


class BaseNameMatcher(PathMatcher):
    """Accepts files whose name without the last extension equals ``base_name``."""

    def __init__(self, base_name: str):
        self._base_name = _require_text(base_name, "Base name")

    def matches_name(self, name: str) -> bool:
        return split_name(name)[0] == self._base_name

    def __repr__(self) -> str:
        return f"BaseNameMatcher({self._base_name!r})"


class ExtensionMatcher(PathMatcher):
    """Accepts files with the given extension.

    A leading dot is ignored, so ``"pdf"`` and ``".pdf"`` are equivalent. The
    empty string selects files that have no extension at all.
    """

    def __init__(self, extension: str):
        if extension is None:
            raise TypeError("File extension must not be None")
        if extension and not extension.strip():
            raise ValueError("File extension cannot contain only whitespace")
        self._extension = extension[1:] if extension.startswith(".") else extension

    def matches_name(self, name: str) -> bool:
        return split_name(name)[1] == self._extension

    def __repr__(self) -> str:
        return f"ExtensionMatcher({self._extension!r})"


class NameContainsMatcher(PathMatcher):
    """Accepts files whose name contains ``part``."""

    def __init__(self, part: str):
        self._part = _require_text(part, "Name fragment")

    def matches_name(self, name: str) -> bool:
        return self._part in name

    def __repr__(self) -> str:
        return f"NameContainsMatcher({self._part!r})"


def split_name(name: str) -> Tuple[str, str]:
    """Split a file name into ``(base, extension)``.

    A name without a dot, or whose only dot is the first character
    (``.bashrc``), is all base. A trailing dot (``notes.``) has no extension.
    """

    dot_index = name.rfind(".")
    if dot_index <= 0:
        return name, ""
    extension = "" if dot_index == len(name) - 1 else name[dot_index + 1:]
    return name[:dot_index], extension


@dataclass
class MatcherConfig:
    """Matcher definition loaded from the configuration file."""

    kind: MatcherKind
    value: Optional[str] = None


def build_matcher(config: MatcherConfig) -> PathMatcher:
    """Instantiate the matcher described by ``config``."""

    if config.kind is MatcherKind.ANY:
        return AnyFileMatcher()
    if config.kind is MatcherKind.FULL_NAME:
        return FullNameMatcher(config.value)  # type: ignore[arg-type]
    if config.kind is MatcherKind.BASE_NAME:
        return BaseNameMatcher(config.value)  # type: ignore[arg-type]
    if config.kind is MatcherKind.EXTENSION:
        return ExtensionMatcher(config.value)  # type: ignore[arg-type]
    if config.kind is MatcherKind.CONTAINS:
        return NameContainsMatcher(config.value)  # type: ignore[arg-type]
    raise ValueError(f"Unknown matcher kind: {config.kind}")


def _require_text(value: Optional[str], label: str) -> str:
    if value is None:
        raise TypeError(f"{label} must not be None")
    if not value.strip():
        raise ValueError(f"{label} cannot be blank")
    return value
