"""Shared fixtures: in-memory registry fakes and tar.gz builders."""

import io
import tarfile
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from versioning.errors import PackageNotFoundError, RegistryError
from versioning.models import DownloadArtifact
from versioning.source import ArchiveProvider, MetadataSource


class FakeMetadataSource(MetadataSource):
    """Metadata source backed by dicts; records every call."""

    def __init__(self, versions: Dict[str, List[str]], requires: Dict[str, List[str]],
                 broken_versions=(), broken_requires=()):
        self.versions = versions
        self.requires = requires
        self.broken_versions = set(broken_versions)
        self.broken_requires = set(broken_requires)
        self.calls: List[tuple] = []

    def list_versions(self, name):
        self.calls.append(("versions", name))
        if name in self.broken_versions:
            raise RegistryError(f"versions of {name} unavailable")
        if name not in self.versions:
            raise PackageNotFoundError(f"Package '{name}' not found")
        return list(self.versions[name])

    def list_constraints(self, name, version):
        self.calls.append(("constraints", name, version))
        if name in self.broken_requires:
            raise RegistryError(f"requirements of {name} unavailable")
        return list(self.requires.get(f"{name}/{version}", []))


def make_tgz(path: Path, files: Dict[str, bytes]) -> Path:
    """Write a gzip tarball containing ``files`` (archive path -> content)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(path, "w:gz") as archive:
        for member_name, content in files.items():
            info = tarfile.TarInfo(member_name)
            info.size = len(content)
            info.mode = 0o644
            archive.addfile(info, io.BytesIO(content))
    return path


def package_files(name: str, with_lib: bool = True, extra_libs: Optional[List[str]] = None) -> Dict[str, bytes]:
    files = {f"include/{name}.h": b"// test header\n"}
    if with_lib:
        files[f"lib/lib{name}.so"] = b"binary-placeholder"
    for lib in extra_libs or []:
        files[f"lib/{lib}"] = b"binary-placeholder"
    return files


class FakeArchiveProvider(ArchiveProvider):
    """Builds archives on demand for the configured architecture labels."""

    def __init__(self, arches_by_name: Dict[str, List[str]], extra_libs: Optional[Dict[str, List[str]]] = None):
        self.arches_by_name = arches_by_name
        self.extra_libs = extra_libs or {}
        self.calls: List[tuple] = []

    def download_archives(self, name, version, destination_root):
        self.calls.append((name, version))
        if name not in self.arches_by_name:
            raise RegistryError(f"No binary packages published for {name}/{version}")
        download_dir = Path(destination_root) / "downloads" / name / version
        artifacts = []
        for arch in self.arches_by_name[name]:
            path = download_dir / f"{name}-{version}-{arch}.tgz"
            make_tgz(path, package_files(name, with_lib=arch != "package",
                                         extra_libs=self.extra_libs.get(name)))
            artifacts.append(DownloadArtifact(arch=arch, path=path))
        return artifacts


@pytest.fixture
def scenario_a_source():
    """root requires a 1.3.Z and b 2.5.Z; a/1.3.2 pins b exactly to 2.5.0."""
    return FakeMetadataSource(
        versions={
            "root": ["1.0.0"],
            "a": ["1.4.0", "1.3.2", "1.2.0"],
            "b": ["2.5.1", "2.5.0"],
        },
        requires={
            "root/1.0.0": ["a/1.3.Z@aurora", "b/2.5.Z@aurora"],
            "a/1.3.2": ["b/2.5.0@aurora"],
        },
    )
