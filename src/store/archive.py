"""Artifact selection, archive extraction and shared-library discovery."""
from __future__ import annotations

import logging
import os
import shutil
import tarfile
from pathlib import Path
from typing import List, Sequence

from constants import Arch
from versioning.errors import ArtifactNotFoundError, StoreError
from versioning.models import DownloadArtifact
from .layout import UnsupportedArchError, normalize_arch

logger = logging.getLogger(__name__)


def _label(artifact: DownloadArtifact) -> str:
    try:
        return normalize_arch(artifact.arch)
    except UnsupportedArchError:
        return ""


def choose_artifact(artifacts: Sequence[DownloadArtifact], target_arch: str) -> DownloadArtifact:
    """Exact architecture first, then the architecture-independent build.

    Raises:
        ArtifactNotFoundError: neither is available.
    """
    target = normalize_arch(target_arch)
    for artifact in artifacts:
        if _label(artifact) == target:
            return artifact
    for artifact in artifacts:
        if _label(artifact) == Arch.PACKAGE.value:
            return artifact
    raise ArtifactNotFoundError(target, [a.arch for a in artifacts])


def _is_within(directory: Path, target: Path) -> bool:
    try:
        target.resolve().relative_to(directory.resolve())
    except ValueError:
        return False
    return True


def _safe_members(archive: tarfile.TarFile, destination: Path):
    for member in archive.getmembers():
        if member.name.startswith("/") or not _is_within(destination, destination / member.name):
            raise StoreError("extract", member.name, ValueError("member escapes destination"))
        if member.issym() or member.islnk():
            link_base = destination / os.path.dirname(member.name)
            link_target = link_base / member.linkname if member.issym() else destination / member.linkname
            if os.path.isabs(member.linkname) or not _is_within(destination, link_target):
                raise StoreError("extract", member.name, ValueError("link escapes destination"))
        yield member


def extract_tgz(archive_path: Path, destination: Path) -> None:
    """Unpack a gzip tarball into ``destination``, replacing whatever was there."""
    destination = Path(destination)
    try:
        if destination.exists():
            shutil.rmtree(destination)
        destination.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StoreError("prepare", str(destination), exc) from exc

    try:
        with tarfile.open(archive_path, "r:gz") as archive:
            archive.extractall(destination, members=_safe_members(archive, destination))
    except (OSError, tarfile.TarError) as exc:
        raise StoreError("extract", str(archive_path), exc) from exc
    logger.debug("Extracted %s into %s", archive_path, destination)


def discover_lib_names(package_prefix: Path) -> List[str]:
    """Logical library names under ``<prefix>/lib`` (``libfoo.so.1`` -> ``foo``)."""
    lib_dir = Path(package_prefix) / "lib"
    if not lib_dir.is_dir():
        return []
    names: List[str] = []
    try:
        entries = sorted(os.listdir(lib_dir))
    except OSError as exc:
        raise StoreError("read", str(lib_dir), exc) from exc
    for entry in entries:
        if not entry.startswith("lib") or ".so" not in entry:
            continue
        stem = entry.split(".so", 1)[0]
        if len(stem) <= 3:
            continue
        short = stem[3:]
        if short not in names:
            names.append(short)
    return sorted(names)
