"""Persisted record of user-declared (direct) dependencies."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import List

from constants import Constants
from versioning.errors import DependencyNotFoundError, ManifestError, StoreError
from versioning.models import PackageReference, sort_references
from .layout import StoreLayout

logger = logging.getLogger(__name__)


@dataclass
class ClearManifest:
    version: int = Constants.MANIFEST_VERSION
    direct_requires: List[PackageReference] = field(default_factory=list)

    def upsert(self, reference: PackageReference) -> None:
        """Replace the entry with the same name, or add it; keeps entries sorted."""
        kept = [item for item in self.direct_requires if item.name != reference.name]
        kept.append(reference)
        self.direct_requires = sort_references(kept)

    def remove(self, name: str) -> PackageReference:
        for item in self.direct_requires:
            if item.name == name:
                self.direct_requires = [r for r in self.direct_requires if r.name != name]
                return item
        raise DependencyNotFoundError(f"Dependency {name} is not declared in the thirdparty manifest")

    def to_dict(self):
        return {
            "version": self.version,
            "direct_requires": [ref.to_dict() for ref in self.direct_requires],
        }


def load_manifest(layout: StoreLayout) -> ClearManifest:
    """Read the manifest; a missing file is an empty manifest."""
    path = layout.manifest_path
    if not path.exists():
        return ClearManifest()
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        refs = [PackageReference.from_dict(item) for item in payload.get("direct_requires", [])]
        return ClearManifest(version=int(payload.get("version", Constants.MANIFEST_VERSION)),
                             direct_requires=refs)
    except OSError as exc:
        raise StoreError("read", str(path), exc) from exc
    except (ValueError, KeyError, TypeError, AttributeError) as exc:
        raise ManifestError(f"Failed to parse {path}: {exc}") from exc


def save_manifest(layout: StoreLayout, manifest: ClearManifest) -> None:
    layout.ensure()
    path = layout.manifest_path
    try:
        path.write_text(json.dumps(manifest.to_dict(), indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        raise StoreError("write", str(path), exc) from exc
    logger.debug("Saved manifest with %d direct dependencies to %s", len(manifest.direct_requires), path)
