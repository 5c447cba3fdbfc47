"""On-disk layout of the vendored package store and target architectures.

    <root>/thirdparty/<vendor>/manifest.lock.json
    <root>/thirdparty/<vendor>/<arch>/packages/<name>/<version>/...
    <root>/thirdparty/<vendor>/<arch>/pkgconfig/<name>.pc
"""
from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Mapping, Optional

from constants import Constants
from versioning.errors import AuroraConanError, StoreError
from versioning.models import ArchTargets

logger = logging.getLogger(__name__)


class UnsupportedArchError(AuroraConanError):
    """An architecture label is not one the store knows."""


def normalize_arch(value: str) -> str:
    """Map registry/RPM architecture spellings onto store labels."""
    arch = Constants.ARCH_ALIASES.get(value.strip().lower())
    if arch is None:
        raise UnsupportedArchError(f"Unsupported architecture: {value}")
    return arch


def resolve_target_arches(override: Optional[str] = None,
                          environ: Optional[Mapping[str, str]] = None) -> ArchTargets:
    """Decide which architectures to sync.

    An explicit override, then $AURORA_CONAN_ARCH, then $RPM_ARCH select one
    architecture in strict mode; otherwise every supported architecture is
    synced best-effort.
    """
    env = os.environ if environ is None else environ
    candidates = [override] + [env.get(name) for name in Constants.ENV_ARCH_OVERRIDES]
    for value in candidates:
        if value and value.strip():
            return ArchTargets(arches=[normalize_arch(value)], strict=True)
    return ArchTargets(arches=list(Constants.SUPPORTED_ARCHES), strict=False)


class StoreLayout:
    """Paths of one project's package store."""

    def __init__(self, project_root: Path, vendor: Optional[str] = None):
        self.project_root = Path(project_root)
        self.vendor = vendor or Constants.VENDOR

    @property
    def root(self) -> Path:
        return self.project_root / Constants.THIRDPARTY_DIR / self.vendor

    @property
    def manifest_path(self) -> Path:
        return self.root / Constants.MANIFEST_FILE

    def arch_root(self, arch: str) -> Path:
        return self.root / arch

    def packages_dir(self, arch: str) -> Path:
        return self.arch_root(arch) / "packages"

    def package_root(self, arch: str, name: str, version: str) -> Path:
        return self.packages_dir(arch) / name / version

    def pkgconfig_dir(self, arch: str) -> Path:
        return self.arch_root(arch) / "pkgconfig"

    def pkgconfig_path(self, arch: str, name: str) -> Path:
        return self.pkgconfig_dir(arch) / f"{name}.pc"

    def ensure(self) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreError("create", str(self.root), exc) from exc

    def reset_arch(self, arch: str) -> None:
        """Delete everything under one architecture and recreate the empty skeleton."""
        root = self.arch_root(arch)
        try:
            if root.exists():
                shutil.rmtree(root)
        except OSError as exc:
            raise StoreError("remove", str(root), exc) from exc
        for directory in (self.packages_dir(arch), self.pkgconfig_dir(arch)):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise StoreError("create", str(directory), exc) from exc
        logger.debug("Reset store for %s at %s", arch, root)
