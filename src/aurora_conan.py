"""aurora-conan-cli - vendor Aurora Conan packages without the conan client.

Resolves direct dependencies declared in thirdparty/<vendor>/manifest.lock.json
against the registry, merges their transitive graphs and rebuilds the
per-architecture package store with pkg-config descriptors.
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from args import parse_args
from cli_config import apply_config_overrides, setup_logging
from constants import ExitCodes
from common.logging_utils import extra_context, is_debug_enabled
from registry.aurora import AuroraRegistry
from store import PackageSyncEngine, StoreLayout, load_manifest, resolve_target_arches, save_manifest
from store.layout import UnsupportedArchError
from versioning.errors import (
    ArtifactNotFoundError,
    AuroraConanError,
    ManifestError,
    NoSuitableArchiveError,
    RegistryError,
    StoreError,
)
from versioning.models import PackageReference, ProjectMetadata
from versioning.resolver import resolve_dependencies
from versioning.service import build_full_dependency_set, resolve_direct_dependency
from versioning.source import ArchiveProvider, MetadataSource

logger = logging.getLogger(__name__)


def _make_registry() -> AuroraRegistry:
    return AuroraRegistry()


def sync_store(source: MetadataSource, provider: ArchiveProvider, layout: StoreLayout,
               direct_refs: List[PackageReference], arch: Optional[str] = None) -> ProjectMetadata:
    """Resolve the full install set of ``direct_refs`` and rebuild the store."""
    targets = resolve_target_arches(arch)
    if direct_refs:
        logger.info("Building full dependency graph")
        all_refs = build_full_dependency_set(source, direct_refs)
        logger.info("Resolved package count (direct + transitive): %d", len(all_refs))
    else:
        logger.info("No direct dependencies declared")
        all_refs = []
    return PackageSyncEngine(provider, layout).sync(all_refs, targets)


def add_dependency(registry: AuroraRegistry, layout: StoreLayout, name: str,
                   version: Optional[str] = None, arch: Optional[str] = None) -> ProjectMetadata:
    """Pin ``name`` (newest version unless given), record it and sync."""
    resolved = resolve_direct_dependency(registry, name, version, registry.user)
    logger.info("Applying dependency %s", resolved.to_ref_string())
    manifest = load_manifest(layout)
    manifest.upsert(resolved)
    save_manifest(layout, manifest)
    return sync_store(registry, registry, layout, manifest.direct_requires, arch)


def remove_dependency(registry: AuroraRegistry, layout: StoreLayout, name: str,
                      arch: Optional[str] = None) -> ProjectMetadata:
    """Drop ``name`` from the manifest and sync."""
    manifest = load_manifest(layout)
    removed = manifest.remove(name)
    logger.info("Removing dependency %s", removed.to_ref_string())
    save_manifest(layout, manifest)
    return sync_store(registry, registry, layout, manifest.direct_requires, arch)


def export_metadata(metadata: ProjectMetadata, path: str) -> None:
    """Write project metadata for the build-file patchers."""
    try:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(metadata.to_dict(), fh, indent=2)
            fh.write("\n")
    except OSError as exc:
        raise StoreError("write", path, exc) from exc
    logger.info("Project metadata has been exported at: %s", path)


def run(args) -> Optional[ProjectMetadata]:
    """Dispatch one parsed command."""
    registry = _make_registry()
    layout = StoreLayout(Path(args.PROJECT_ROOT).resolve())
    command = args.COMMAND

    if command == "versions":
        for version in registry.list_versions(args.dependency):
            print(version)
        return None
    if command == "search":
        for reference in registry.search(args.dependency):
            print(reference.to_ref_string())
        return None
    if command == "deps":
        for reference in resolve_dependencies(registry, args.dependency, args.version, registry.user):
            print(reference.to_ref_string())
        return None
    if command == "download":
        for artifact in registry.download_archives(args.dependency, args.version, layout.project_root):
            print(f"{artifact.arch} {artifact.path}")
        return None

    if command == "add":
        metadata = add_dependency(registry, layout, args.dependency, args.version, args.ARCH)
    elif command == "remove":
        metadata = remove_dependency(registry, layout, args.dependency, args.ARCH)
    else:
        manifest = load_manifest(layout)
        metadata = sync_store(registry, registry, layout, manifest.direct_requires, args.ARCH)

    print(f"modules: {' '.join(metadata.direct_pkg_modules) or '-'}")
    print(f"shared libraries: {' '.join(metadata.shared_lib_patterns) or '-'}")
    if args.OUTPUT:
        export_metadata(metadata, args.OUTPUT)
    return metadata


def _exit_code_for(exc: AuroraConanError) -> ExitCodes:
    if isinstance(exc, RegistryError):
        return ExitCodes.CONNECTION_ERROR
    if isinstance(exc, (StoreError, ManifestError)):
        return ExitCodes.FILE_ERROR
    if isinstance(exc, (ArtifactNotFoundError, NoSuitableArchiveError, UnsupportedArchError)):
        return ExitCodes.SYNC_ERROR
    return ExitCodes.RESOLUTION_ERROR


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    setup_logging(args)
    apply_config_overrides(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.COMMAND)
        )

    try:
        run(args)
    except AuroraConanError as exc:
        logging.error("%s", exc)
        sys.exit(_exit_code_for(exc).value)
    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()
