"""Aurora registry package.

- parsing.py: portal HTML, recipe text and Conan remote payload scrapers
- client.py: MetadataSource/ArchiveProvider over the portal and the remote

Public API is preserved at registry.aurora without shims.
"""

# Patch points exposed for tests (e.g., monkeypatch in tests)
from common.http_client import HttpError, download_file, get_json, robust_get  # noqa: F401

from .client import AuroraRegistry  # noqa: F401
from .parsing import (  # noqa: F401
    normalize_requirement,
    parse_binary_requires,
    parse_package_versions_html,
    parse_recipe_requires,
)

__all__ = [
    "AuroraRegistry",
    "normalize_requirement",
    "parse_binary_requires",
    "parse_package_versions_html",
    "parse_recipe_requires",
]
