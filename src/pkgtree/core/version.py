"""Package versions: parsing, ordering, and installed-vs-candidate classification."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from functools import total_ordering

import semantic_version


class InvalidVersionError(ValueError):
    """Raised when a version string cannot be parsed."""


class VersionStatus(enum.Enum):
    """How an installed version relates to a candidate version."""

    ABSENT = "absent"
    OLDER = "older"
    SAME = "same"
    NEWER = "newer"


def _normalize(text: str) -> tuple[tuple[int, ...], str, str]:
    """Split a NuGet version into release segments, prerelease and build metadata."""
    core, has_meta, metadata = text.strip().partition("+")
    core, has_pre, prerelease = core.partition("-")
    if core.startswith(("v", "V")):
        core = core[1:]
    segments = core.split(".")
    if not 1 <= len(segments) <= 4 or not all(s.isdecimal() for s in segments):
        raise InvalidVersionError(f"Invalid version: {text!r}")
    if (has_pre and not prerelease) or (has_meta and not metadata):
        raise InvalidVersionError(f"Invalid version: {text!r}")
    return tuple(int(s) for s in segments), prerelease, metadata


@total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """
    A NuGet version: up to four numeric segments plus an optional prerelease label.

    The first three segments and the labels are held by a
    ``semantic_version.Version``; the fourth (revision) segment sorts after
    patch and before the prerelease label. Prerelease labels compare
    case-insensitively and build metadata is ignored.
    """

    release: tuple[int, ...]
    prerelease: str = ""
    metadata: str = ""
    semver: semantic_version.Version = field(init=False, repr=False)
    _sort_key: tuple = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not 1 <= len(self.release) <= 4:
            raise InvalidVersionError(f"Invalid release segments: {self.release!r}")
        major, minor, patch = (tuple(self.release[:3]) + (0, 0, 0))[:3]
        text = f"{major}.{minor}.{patch}"
        try:
            semver = semantic_version.Version(
                text
                + (f"-{self.prerelease}" if self.prerelease else "")
                + (f"+{self.metadata}" if self.metadata else "")
            )
            label = semantic_version.Version(
                "0.0.0" + (f"-{self.prerelease.lower()}" if self.prerelease else "")
            )
        except ValueError as e:
            raise InvalidVersionError(f"Invalid version: {self}") from e
        revision = self.release[3] if len(self.release) > 3 else 0
        object.__setattr__(self, "semver", semver)
        object.__setattr__(self, "_sort_key", (semver.truncate("patch"), revision, label))

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse ``1.2``, ``1.2.3``, ``1.2.3.4``, ``1.2.3-beta.1`` or ``1.2.3+build``."""
        if not isinstance(text, str):
            raise InvalidVersionError(f"Version must be a string, got {type(text).__name__}")
        release, prerelease, metadata = _normalize(text)
        return cls(release=release, prerelease=prerelease, metadata=metadata)

    @property
    def is_prerelease(self) -> bool:
        return bool(self.semver.prerelease)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._sort_key == other._sort_key

    def __lt__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._sort_key < other._sort_key

    def __hash__(self) -> int:
        return hash(self._sort_key)

    def __str__(self) -> str:
        text = ".".join(str(p) for p in self.release)
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.metadata:
            text += f"+{self.metadata}"
        return text


def classify_versions(installed: Version | None, candidate: Version) -> VersionStatus:
    """
    Classify the installed version against a candidate version.

    OLDER means the installed version is older than the candidate (an update
    is available); NEWER means the installed version is ahead of it.
    """
    if installed is None:
        return VersionStatus.ABSENT
    if installed < candidate:
        return VersionStatus.OLDER
    if installed > candidate:
        return VersionStatus.NEWER
    return VersionStatus.SAME
