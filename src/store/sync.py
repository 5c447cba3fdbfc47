"""Materialize a resolved reference set into the per-architecture package store.

Sync is not incremental: every target architecture's subtree is wiped and
rebuilt. Packages and architectures are processed strictly in order, so no
two steps ever touch the same directory at once.
"""
from __future__ import annotations

import logging
from typing import Iterable, List

from common.logging_utils import extra_context, is_debug_enabled
from versioning.errors import ArtifactNotFoundError, NoSuitableArchiveError
from versioning.models import ArchTargets, PackageReference, ProjectMetadata
from versioning.source import ArchiveProvider
from .archive import choose_artifact, discover_lib_names, extract_tgz
from .layout import StoreLayout
from .pkgconfig import write_pkg_config

logger = logging.getLogger(__name__)


class PackageSyncEngine:
    """Downloads, extracts and publishes packages for a set of architectures."""

    def __init__(self, provider: ArchiveProvider, layout: StoreLayout):
        self._provider = provider
        self.layout = layout

    def sync(self, references: Iterable[PackageReference], targets: ArchTargets) -> ProjectMetadata:
        """Rebuild the store for ``targets`` from ``references``.

        Raises:
            ArtifactNotFoundError: strict mode and the one target arch is missing.
            NoSuitableArchiveError: a package installed for no architecture.
            StoreError: any filesystem failure.
        """
        refs = list(references)
        logger.info("Target architectures: %s", ", ".join(targets.arches))
        for arch in targets.arches:
            self.layout.reset_arch(arch)

        lib_patterns: List[str] = []
        for reference in refs:
            logger.info("Processing %s", reference.to_ref_string())
            artifacts = self._provider.download_archives(
                reference.name, reference.version, self.layout.project_root
            )
            installed = 0
            for arch in targets.arches:
                try:
                    artifact = choose_artifact(artifacts, arch)
                except ArtifactNotFoundError as exc:
                    if targets.strict:
                        raise ArtifactNotFoundError(arch, exc.available, reference.to_ref_string()) from exc
                    logger.info("Skipping %s for %s: %s", reference.to_ref_string(), arch, exc)
                    continue

                package_dir = self.layout.package_root(arch, reference.name, reference.version)
                extract_tgz(artifact.path, package_dir)
                libs = discover_lib_names(package_dir)
                for lib in libs:
                    pattern = f"lib{lib}.*"
                    if pattern not in lib_patterns:
                        lib_patterns.append(pattern)
                write_pkg_config(self.layout.pkgconfig_path(arch, reference.name), reference, libs)
                installed += 1

                if is_debug_enabled(logger):
                    logger.debug(
                        "Installed package",
                        extra=extra_context(
                            event="install",
                            component="sync",
                            action="extract",
                            target=reference.to_ref_string(),
                            arch=arch,
                            artifact_arch=artifact.arch,
                            libs=",".join(libs),
                        ),
                    )

            if installed == 0:
                raise NoSuitableArchiveError(reference.name, reference.version or "", targets.arches)

        metadata = ProjectMetadata(
            direct_pkg_modules=sorted({ref.name for ref in refs}),
            shared_lib_patterns=sorted(set(lib_patterns)),
        )
        logger.info(
            "Synced %d packages: modules=%d, shared_lib_patterns=%d",
            len(refs), len(metadata.direct_pkg_modules), len(metadata.shared_lib_patterns),
        )
        return metadata
