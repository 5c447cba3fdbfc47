"""Scrapers for the Aurora developer portal and Conan remote payloads.

All registry markup knowledge is kept here; nothing outside the registry
package depends on it.
"""
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from versioning.errors import AuroraConanError, RegistryError
from versioning.parser import parse_constraint

_VERSION_BLOCK_RE = re.compile(r"<h5>\s*Версия\s*</h5>\s*<select[^>]*>(.*?)</select>", re.S)
_OPTION_VALUE_RE = re.compile(r"""<option[^>]*value=(?:"([^"]+)"|'([^']+)')""")
_OPTION_TEXT_RE = re.compile(r"<option[^>]*>\s*([^<]+?)\s*</option>", re.S)

_REQUIRES_CALL_RE = re.compile(r"""self\.requires\(\s*f?["']([^"']+)["']""")
_REQUIRES_ATTR_RE = re.compile(r"""^\s*requires\s*=\s*(\(.*?\)|\[.*?\]|f?["'][^"']+["'])""", re.S | re.M)
_QUOTED_RE = re.compile(r"""f?["']([^"']+)["']""")

# "name/version@user/channel#rrev:package_id#prev" -> "name/version@user"
_REF_NOISE_RE = re.compile(r"[#:].*$")


def parse_package_versions_html(html: str) -> List[str]:
    """Versions from the portal package page, newest first.

    Raises:
        RegistryError: no version block or no versions in it.
    """
    match = _VERSION_BLOCK_RE.search(html)
    if not match:
        raise RegistryError("Version block not found on the package page")
    block = match.group(1)

    versions: List[str] = []
    for captures in _OPTION_VALUE_RE.finditer(block):
        value = (captures.group(1) or captures.group(2) or "").strip()
        if value and value not in versions:
            versions.append(value)
    if not versions:
        for captures in _OPTION_TEXT_RE.finditer(block):
            value = captures.group(1).strip()
            if value and value not in versions:
                versions.append(value)
    if not versions:
        raise RegistryError("No versions listed on the package page")
    return versions


def normalize_requirement(raw: str) -> str:
    """Drop revision, package id and channel from a Conan reference."""
    text = _REF_NOISE_RE.sub("", raw.strip())
    head, sep, user = text.partition("@")
    if sep:
        user = user.split("/", 1)[0]
        return f"{head}@{user}" if user else head
    return head


def parse_recipe_requires(recipe: str) -> List[str]:
    """Requirement strings declared by a ``conanfile.py``, in order of appearance."""
    found: List[str] = []
    for match in _REQUIRES_ATTR_RE.finditer(recipe):
        for quoted in _QUOTED_RE.finditer(match.group(1)):
            found.append(normalize_requirement(quoted.group(1)))
    for match in _REQUIRES_CALL_RE.finditer(recipe):
        found.append(normalize_requirement(match.group(1)))
    return found


def recipe_requires_are_usable(requires: List[str]) -> bool:
    """Whether recipe requirements can be trusted as-is.

    A recipe that names one package twice is declaring conditional
    requirements, and one whose strings do not parse builds them
    dynamically; in both cases the binary records are authoritative.
    """
    names = []
    for raw in requires:
        try:
            names.append(parse_constraint(raw).name)
        except AuroraConanError:
            return False
    return len(names) == len(set(names))


def parse_binary_requires(search_payload: Dict[str, Any]) -> List[str]:
    """Union of ``requires`` across binary package records, deduplicated."""
    found: List[str] = []
    for record in search_payload.values():
        if not isinstance(record, dict):
            continue
        for raw in record.get("requires") or []:
            normalized = normalize_requirement(str(raw))
            if normalized and normalized not in found:
                found.append(normalized)
    return found


def binary_arch_label(record: Dict[str, Any]) -> str:
    """Architecture of a binary record; records without one are header-only."""
    settings = record.get("settings") or {}
    return str(settings.get("arch") or "package")


def pick_binaries(search_payload: Dict[str, Any]) -> Dict[str, str]:
    """Choose one package id per architecture label, preferring Release builds."""
    chosen: Dict[str, str] = {}
    release: Dict[str, bool] = {}
    for package_id, record in search_payload.items():
        if not isinstance(record, dict):
            continue
        label = binary_arch_label(record)
        is_release = (record.get("settings") or {}).get("build_type") in (None, "Release")
        if label not in chosen or (is_release and not release[label]):
            chosen[label] = package_id
            release[label] = is_release
    return chosen


def parse_search_results(payload: Optional[Dict[str, Any]]) -> List[str]:
    """References returned by the remote search endpoint."""
    if not payload:
        return []
    return [normalize_requirement(str(item)) for item in payload.get("results", []) if item]
