"""Capability interfaces the resolver and sync engine depend on.

Registry-specific scraping lives behind these ports so the core never sees
any particular registry's markup; tests plug in in-memory fakes.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List

from .models import DownloadArtifact


class MetadataSource(ABC):
    """Lists versions and requirement strings for packages.

    Implementations raise ``RegistryError`` (or a subclass) on failure.
    """

    @abstractmethod
    def list_versions(self, name: str) -> List[str]:
        """Available versions of ``name``, newest first."""

    @abstractmethod
    def list_constraints(self, name: str, version: str) -> List[str]:
        """Raw ``name/version[@user]`` requirement strings of one package version."""


class ArchiveProvider(ABC):
    """Downloads binary archives of one package version."""

    @abstractmethod
    def download_archives(self, name: str, version: str, destination_root: Path) -> List[DownloadArtifact]:
        """Save every gzip-tar artifact under ``destination_root`` and describe them."""
