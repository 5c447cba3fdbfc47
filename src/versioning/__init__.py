"""Requirement parsing, graph resolution and multi-root aggregation."""

from .errors import (  # noqa: F401
    AuroraConanError,
    ConstraintSyntaxError,
    UnsupportedVersionRangeError,
    VersionConflictError,
    UserConflictError,
    VersionNotFoundError,
    UnresolvedDependencyError,
    RegistryError,
    PackageNotFoundError,
)
from .models import (  # noqa: F401
    PackageReference,
    ResolutionState,
    DependencyConstraint,
    ExactMatcher,
    PrefixFamilyMatcher,
    NamedFamilyMatcher,
    DownloadArtifact,
    ProjectMetadata,
)
from .parser import parse_constraint, parse_reference  # noqa: F401
from .resolver import GraphResolver, resolve_dependencies  # noqa: F401
from .service import build_full_dependency_set, resolve_direct_dependency  # noqa: F401
