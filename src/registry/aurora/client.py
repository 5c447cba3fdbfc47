"""Aurora registry client.

Versions come from the developer portal package page; requirements, binary
records and archives come from the Conan v2 REST remote. Results are cached
per client instance, and one instance serves one CLI invocation.
"""
from __future__ import annotations

import logging
import urllib.parse
from pathlib import Path
from typing import Any, Dict, List, Optional

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from versioning.errors import AuroraConanError, PackageNotFoundError, RegistryError, StoreError
from versioning.models import DownloadArtifact, PackageReference
from versioning.parser import parse_reference
from versioning.source import ArchiveProvider, MetadataSource

import registry.aurora as aurora_pkg
from .parsing import (
    parse_binary_requires,
    parse_package_versions_html,
    parse_recipe_requires,
    parse_search_results,
    pick_binaries,
    recipe_requires_are_usable,
)

logger = logging.getLogger(__name__)


def _quote(part: str) -> str:
    return urllib.parse.quote(part, safe="")


class AuroraRegistry(MetadataSource, ArchiveProvider):
    """Metadata source and archive provider backed by the Aurora registry."""

    def __init__(self, portal_url: Optional[str] = None, remote_url: Optional[str] = None,
                 user: Optional[str] = None):
        self.portal_url = (portal_url or Constants.PORTAL_URL).rstrip("/") + "/"
        self.remote_url = (remote_url or Constants.REMOTE_URL).rstrip("/")
        self.user = user or Constants.DEFAULT_USER
        self._versions: Dict[str, List[str]] = {}
        self._constraints: Dict[tuple, List[str]] = {}
        self._revisions: Dict[tuple, str] = {}
        self._binaries: Dict[tuple, Dict[str, Any]] = {}

    # -- URLs -----------------------------------------------------------------

    def _package_page_url(self, name: str) -> str:
        return urllib.parse.urljoin(self.portal_url, f"conan/{_quote(name)}")

    def _recipe_url(self, name: str, version: str) -> str:
        # Conan 2 spells an absent channel as "_"
        return f"{self.remote_url}/v2/conans/{_quote(name)}/{_quote(version)}/{_quote(self.user)}/_"

    # -- HTTP -----------------------------------------------------------------

    def _get_json(self, url: str, what: str) -> Any:
        status, _, payload = aurora_pkg.get_json(url)
        if status == 404:
            raise PackageNotFoundError(f"{what} not found: {safe_url(url)} returned 404", status)
        if status != 200 or payload is None:
            raise RegistryError(f"Failed to fetch {what} from {safe_url(url)}: HTTP {status}", status)
        return payload

    def _latest_recipe_revision(self, name: str, version: str) -> str:
        key = (name, version)
        if key not in self._revisions:
            payload = self._get_json(f"{self._recipe_url(name, version)}/latest", f"recipe {name}/{version}")
            revision = payload.get("revision") if isinstance(payload, dict) else None
            if not revision:
                raise RegistryError(f"No recipe revision published for {name}/{version}")
            self._revisions[key] = revision
        return self._revisions[key]

    def _binary_records(self, name: str, version: str) -> Dict[str, Any]:
        key = (name, version)
        if key not in self._binaries:
            rrev = self._latest_recipe_revision(name, version)
            url = f"{self._recipe_url(name, version)}/revisions/{_quote(rrev)}/search"
            payload = self._get_json(url, f"binaries of {name}/{version}")
            self._binaries[key] = payload if isinstance(payload, dict) else {}
        return self._binaries[key]

    def _binary_requires_or_empty(self, name: str, version: str) -> List[str]:
        """Binary-record requirements for a recipe that names none literally.

        Requirements passed through variables are invisible to the recipe
        scrape, so the binary records decide; a recipe with no published
        binaries really is a leaf.
        """
        try:
            return parse_binary_requires(self._binary_records(name, version))
        except PackageNotFoundError:
            logger.debug("No binary records for %s/%s, treating it as a leaf", name, version)
            return []

    # -- MetadataSource -------------------------------------------------------

    def list_versions(self, name: str) -> List[str]:
        if name in self._versions:
            return list(self._versions[name])
        url = self._package_page_url(name)
        status, _, text = aurora_pkg.robust_get(url)
        if status == 404:
            raise PackageNotFoundError(f"Package '{name}' not found: {url} returned 404", status)
        if not 200 <= status < 300:
            raise RegistryError(f"Failed to fetch package '{name}' from {url}: HTTP {status}", status)
        try:
            versions = parse_package_versions_html(text)
        except RegistryError as exc:
            raise RegistryError(f"Could not extract versions of '{name}' from {url}: {exc}") from exc
        self._versions[name] = versions
        return list(versions)

    def list_constraints(self, name: str, version: str) -> List[str]:
        key = (name, version)
        if key in self._constraints:
            return list(self._constraints[key])

        requires: Optional[List[str]] = None
        rrev = self._latest_recipe_revision(name, version)
        recipe_url = f"{self._recipe_url(name, version)}/revisions/{_quote(rrev)}/files/conanfile.py"
        status, _, text = aurora_pkg.robust_get(recipe_url)
        if status == 200:
            candidates = parse_recipe_requires(text)
            if not candidates:
                requires = self._binary_requires_or_empty(name, version)
            elif recipe_requires_are_usable(candidates):
                requires = candidates
            else:
                logger.debug("Recipe requirements of %s/%s are conditional, using binary records", name, version)
        else:
            logger.debug("Recipe of %s/%s unavailable (HTTP %s), using binary records", name, version, status)

        if requires is None:
            requires = parse_binary_requires(self._binary_records(name, version))

        if is_debug_enabled(logger):
            logger.debug(
                "Requirements listed",
                extra=extra_context(
                    event="parse",
                    component="registry",
                    action="list_constraints",
                    target=f"{name}/{version}",
                    count=len(requires),
                ),
            )
        self._constraints[key] = requires
        return list(requires)

    # -- ArchiveProvider ------------------------------------------------------

    def download_archives(self, name: str, version: str, destination_root: Path) -> List[DownloadArtifact]:
        records = self._binary_records(name, version)
        binaries = pick_binaries(records)
        if not binaries:
            raise RegistryError(f"No binary packages published for {name}/{version}")

        rrev = self._latest_recipe_revision(name, version)
        base = f"{self._recipe_url(name, version)}/revisions/{_quote(rrev)}/packages"
        download_dir = Path(destination_root) / Constants.DOWNLOADS_DIR / name / version
        artifacts: List[DownloadArtifact] = []
        for arch, package_id in sorted(binaries.items()):
            latest = self._get_json(f"{base}/{_quote(package_id)}/latest", f"package {name}/{version}:{package_id}")
            prev = latest.get("revision") if isinstance(latest, dict) else None
            if not prev:
                raise RegistryError(f"No package revision for {name}/{version}:{package_id}")
            url = f"{base}/{_quote(package_id)}/revisions/{_quote(prev)}/files/{Constants.PACKAGE_ARCHIVE}"
            target = download_dir / f"{name}-{version}-{arch}.tgz"
            try:
                aurora_pkg.download_file(url, str(target))
            except aurora_pkg.HttpError as exc:
                raise RegistryError(str(exc), exc.status_code) from exc
            except OSError as exc:
                raise StoreError("write", str(target), exc) from exc
            logger.info("Downloaded %s/%s for %s", name, version, arch)
            artifacts.append(DownloadArtifact(arch=arch, path=target))
        return artifacts

    # -- Search ---------------------------------------------------------------

    def search(self, query: str) -> List[PackageReference]:
        """References whose name contains ``query``."""
        url = f"{self.remote_url}/v2/conans/search?q={urllib.parse.quote('*' + query + '*', safe='*')}"
        status, _, payload = aurora_pkg.get_json(url)
        if status != 200:
            raise RegistryError(f"Search for '{query}' failed: HTTP {status}", status)
        refs = []
        for raw in parse_search_results(payload):
            try:
                refs.append(parse_reference(raw, self.user))
            except AuroraConanError:
                logger.debug("Skipping unparsable search result %s", raw)
        if not refs:
            raise PackageNotFoundError(f"No packages found for '{query}'")
        return sorted(refs, key=PackageReference.sort_key)
