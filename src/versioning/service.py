"""Direct-dependency selection and multi-root aggregation."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from constants import Constants
from .errors import RegistryError, UnresolvedDependencyError, VersionConflictError, VersionNotFoundError
from .models import PackageReference, sort_references
from .resolver import resolve_dependencies
from .source import MetadataSource

logger = logging.getLogger(__name__)


def select_dependency_version(name: str, available_versions: List[str],
                              requested_version: Optional[str] = None) -> str:
    """Pick the requested version if listed, else the newest listed one.

    Raises:
        RegistryError: the registry lists no versions at all.
        VersionNotFoundError: the requested version is not listed.
    """
    if not available_versions:
        raise RegistryError(f"No versions available for dependency {name}")
    if requested_version is None:
        return available_versions[0]
    if requested_version in available_versions:
        return requested_version
    raise VersionNotFoundError(name, requested_version, available_versions)


def resolve_direct_dependency(source: MetadataSource, name: str,
                              requested_version: Optional[str] = None,
                              user: Optional[str] = None) -> PackageReference:
    """Pin a user-declared dependency against the registry's version list."""
    version = select_dependency_version(name, source.list_versions(name), requested_version)
    return PackageReference(name=name, version=version, user=user or Constants.DEFAULT_USER)


def build_full_dependency_set(source: MetadataSource,
                              direct_refs: Iterable[PackageReference]) -> List[PackageReference]:
    """Merge the resolved graphs of several pinned roots into one install set.

    Disagreement between roots is never reconciled: a transitive package
    pinned to two different versions fails loudly, as does any package the
    graph walk could not pin.

    Raises:
        UnresolvedDependencyError: a transitive package has no version.
        VersionConflictError: two graphs pin one package differently.
    """
    direct = list(direct_refs)
    result: Dict[str, PackageReference] = {}
    for ref in direct:
        result.setdefault(ref.name, ref)

    for root in direct:
        transitive = resolve_dependencies(source, root.name, root.version, root.user)
        logger.info("Resolved %d dependencies below %s", len(transitive), root.to_ref_string())
        for item in transitive:
            if not item.is_resolved:
                raise UnresolvedDependencyError(item.name, root.to_ref_string())
            existing = result.get(item.name)
            if existing is not None:
                if existing.version != item.version:
                    raise VersionConflictError(
                        item.name,
                        f"Version conflict for dependency '{item.name}': "
                        f"{existing.version} and {item.version}",
                        [existing.version or "", item.version or ""],
                    )
                continue
            result[item.name] = item

    return sort_references(result.values())
