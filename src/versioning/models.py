"""Data models for version constraints, package references and sync output."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from constants import Constants


class ResolutionState(Enum):
    """Whether a reference carries a usable version."""
    RESOLVED = "resolved"
    UNRESOLVABLE = "unresolvable"


@dataclass(frozen=True)
class PackageReference:
    """One package pinned to a version (``name/version@user``).

    An unresolvable reference has no version; it serializes with the reserved
    ``error`` token so callers can report which package failed. A missing
    user is filled from the configured default when the reference is built.
    """
    name: str
    version: Optional[str]
    user: Optional[str] = None
    state: ResolutionState = ResolutionState.RESOLVED

    def __post_init__(self) -> None:
        if not self.user:
            object.__setattr__(self, "user", Constants.DEFAULT_USER)

    @classmethod
    def unresolvable(cls, name: str, user: Optional[str] = None) -> "PackageReference":
        return cls(name=name, version=None, user=user, state=ResolutionState.UNRESOLVABLE)

    @property
    def is_resolved(self) -> bool:
        return self.state is ResolutionState.RESOLVED

    @property
    def display_version(self) -> str:
        return self.version if self.is_resolved and self.version else Constants.VERSION_ERROR_SENTINEL

    def to_ref_string(self) -> str:
        return f"{self.name}/{self.display_version}@{self.user}"

    def sort_key(self):
        return (self.name, self.version or "")

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "version": self.display_version, "user": self.user}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PackageReference":
        version = str(data["version"])
        user = str(data.get("user") or Constants.DEFAULT_USER)
        if version == Constants.VERSION_ERROR_SENTINEL:
            return cls.unresolvable(str(data["name"]), user)
        return cls(name=str(data["name"]), version=version, user=user)

    def __str__(self) -> str:
        return self.to_ref_string()


def sort_references(refs) -> List[PackageReference]:
    """Sort references by name, then version."""
    return sorted(refs, key=PackageReference.sort_key)


class VersionMatcher(ABC):
    """A single version constraint."""

    @abstractmethod
    def matches(self, candidate: str) -> bool:
        """Return True if ``candidate`` satisfies this constraint."""


@dataclass(frozen=True)
class ExactMatcher(VersionMatcher):
    version: str

    def matches(self, candidate: str) -> bool:
        return candidate == self.version

    def __str__(self) -> str:
        return self.version


@dataclass(frozen=True)
class PrefixFamilyMatcher(VersionMatcher):
    """``X.Y.Z``-style wildcard; ``prefix`` keeps the trailing dot (``"1.2."``).

    Besides prefix matches, the bare base (``"1.2"``) matches, and so does the
    base with trailing ``.0`` segments stripped, since registry versions may
    omit zero segments (``20231101.0.Z`` matches ``20231101``).
    """
    prefix: str

    def _bases(self) -> List[str]:
        base = self.prefix[:-1] if self.prefix.endswith(".") else self.prefix
        bases = [base]
        while base.endswith(".0"):
            base = base[:-2]
            bases.append(base)
        return bases

    def matches(self, candidate: str) -> bool:
        if candidate.startswith(self.prefix):
            return True
        return candidate in self._bases()

    def __str__(self) -> str:
        return self.prefix + "Z"


@dataclass(frozen=True)
class NamedFamilyMatcher(VersionMatcher):
    """Any build of a rolling family (``cci`` matches ``cci.20231101``)."""
    token: str = Constants.FAMILY_TOKEN

    def matches(self, candidate: str) -> bool:
        return candidate == self.token or candidate.startswith(self.token + ".")

    def __str__(self) -> str:
        return self.token


@dataclass(frozen=True)
class DependencyConstraint:
    """One requirement edge; equality ignores the raw text."""
    name: str
    matcher: VersionMatcher
    user: Optional[str] = None
    raw_text: str = field(default="", compare=False)

    def __str__(self) -> str:
        return self.raw_text or f"{self.name}/{self.matcher}"


@dataclass(frozen=True)
class DownloadArtifact:
    """A fetched archive before extraction."""
    arch: str
    path: Path


@dataclass(frozen=True)
class ArchTargets:
    """Architectures to sync and whether a missing artifact is fatal."""
    arches: List[str]
    strict: bool


@dataclass
class ProjectMetadata:
    """Derived output consumed by the build-file patchers."""
    direct_pkg_modules: List[str] = field(default_factory=list)
    shared_lib_patterns: List[str] = field(default_factory=list)
    system_libs: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "direct_pkg_modules": list(self.direct_pkg_modules),
            "shared_lib_patterns": list(self.shared_lib_patterns),
            "system_libs": list(self.system_libs),
        }
