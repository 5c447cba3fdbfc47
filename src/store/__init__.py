"""Vendored package store.

- layout.py: store paths, architecture normalization and target selection
- archive.py: artifact choice, tar.gz extraction, shared-library discovery
- pkgconfig.py: pkg-config descriptor rendering
- manifest.py: direct-dependency manifest persistence
- sync.py: the sync engine tying the above together
"""

from .layout import StoreLayout, normalize_arch, resolve_target_arches  # noqa: F401
from .manifest import ClearManifest, load_manifest, save_manifest  # noqa: F401
from .sync import PackageSyncEngine  # noqa: F401
