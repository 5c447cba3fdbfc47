"""Exception hierarchy for resolution, registry access and package sync."""

from typing import Iterable, Optional


class AuroraConanError(Exception):
    """Base class for all errors raised by this project."""


class ConstraintSyntaxError(AuroraConanError):
    """A requirement string is not of the form ``name/version[@user]``."""

    def __init__(self, raw: str, reason: str):
        super().__init__(f"Invalid requirement '{raw}': {reason}")
        self.raw = raw


class UnsupportedVersionRangeError(ConstraintSyntaxError):
    """Version text uses range syntax the registry does not support."""

    def __init__(self, raw: str, version_text: str):
        super().__init__(raw, f"unsupported version range '{version_text}'")
        self.version_text = version_text


class VersionConflictError(AuroraConanError):
    """Constraints on one package cannot be satisfied together."""

    def __init__(self, name: str, message: str, versions: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.name = name
        self.versions = list(versions or [])


class UserConflictError(AuroraConanError):
    """Constraints on one package name different users."""

    def __init__(self, name: str, users: Iterable[str]):
        self.users = sorted(users)
        super().__init__(
            f"User conflict for dependency '{name}': {', '.join(self.users)}"
        )
        self.name = name


class VersionNotFoundError(AuroraConanError):
    """A pinned version is not listed by the registry."""

    def __init__(self, name: str, version: str, available: Iterable[str]):
        self.available = list(available)
        super().__init__(
            f"Version '{version}' of dependency '{name}' not found. "
            f"Available versions: {', '.join(self.available) or '<none>'}"
        )
        self.name = name
        self.version = version


class UnresolvedDependencyError(AuroraConanError):
    """A transitive dependency could not be pinned to a version."""

    def __init__(self, name: str, root: Optional[str] = None):
        where = f" (required by {root})" if root else ""
        super().__init__(f"Could not determine version of transitive dependency {name}{where}")
        self.name = name


class RegistryError(AuroraConanError):
    """The registry could not be reached or returned an unusable answer."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


class PackageNotFoundError(RegistryError):
    """The registry has no such package."""


class ArtifactNotFoundError(AuroraConanError):
    """No artifact matches a target architecture."""

    def __init__(self, arch: str, available: Iterable[str], package: Optional[str] = None):
        self.available = list(available)
        subject = f" of package {package}" if package else ""
        super().__init__(
            f"No artifact{subject} for architecture '{arch}'. "
            f"Available: {', '.join(self.available) or '<none>'}"
        )
        self.arch = arch
        self.package = package


class NoSuitableArchiveError(AuroraConanError):
    """A package could not be installed for any target architecture."""

    def __init__(self, name: str, version: str, arches: Iterable[str]):
        super().__init__(
            f"No suitable archive found for package '{name}' version '{version}' "
            f"(architectures: {', '.join(arches)})"
        )
        self.name = name
        self.version = version


class StoreError(AuroraConanError):
    """A filesystem operation on the package store failed."""

    def __init__(self, action: str, path: str, cause: Optional[BaseException] = None):
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to {action} {path}{detail}")
        self.path = path


class ManifestError(AuroraConanError):
    """The direct-dependency manifest is unreadable or malformed."""


class DependencyNotFoundError(AuroraConanError):
    """A direct dependency to remove is not declared in the manifest."""
