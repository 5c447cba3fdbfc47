"""Requirement string parsing (``name/version[@user]``)."""

from typing import Optional

from constants import Constants
from .errors import ConstraintSyntaxError, UnsupportedVersionRangeError
from .models import (
    DependencyConstraint,
    ExactMatcher,
    NamedFamilyMatcher,
    PackageReference,
    PrefixFamilyMatcher,
    VersionMatcher,
)

# Characters of range syntax (brackets, comparators, caret/tilde, globs) the registry never uses
_UNSUPPORTED_RANGE_CHARS = frozenset("[]<>^~*{}() ")


def tokenize_reference(raw: str):
    """Split ``name/version[@user]`` into its three parts.

    The name is everything before the first ``/``; the user is everything
    after the first ``@`` of the remainder. An empty user is reported as None.
    """
    if "/" not in raw:
        raise ConstraintSyntaxError(raw, "expected 'name/version[@user]'")
    name, rest = raw.split("/", 1)
    if not name:
        raise ConstraintSyntaxError(raw, "empty package name")
    version_text, _, user = rest.partition("@")
    if not version_text:
        raise ConstraintSyntaxError(raw, "empty version")
    return name, version_text, (user or None)


def parse_matcher(version_text: str, raw: Optional[str] = None) -> VersionMatcher:
    """Turn version text into a matcher, rejecting range syntax."""
    if version_text == Constants.FAMILY_TOKEN:
        return NamedFamilyMatcher(Constants.FAMILY_TOKEN)
    if version_text.endswith(Constants.FAMILY_WILDCARD):
        # "1.2.Z" -> "1.2." (drop only the wildcard letter)
        return PrefixFamilyMatcher(version_text[:-1])
    if any(ch in _UNSUPPORTED_RANGE_CHARS for ch in version_text):
        raise UnsupportedVersionRangeError(raw if raw is not None else version_text, version_text)
    return ExactMatcher(version_text)


def parse_constraint(raw: str) -> DependencyConstraint:
    """Parse one requirement string scraped from registry metadata.

    Raises:
        ConstraintSyntaxError: malformed reference.
        UnsupportedVersionRangeError: range syntax in the version text.
    """
    text = raw.strip()
    name, version_text, user = tokenize_reference(text)
    matcher = parse_matcher(version_text, text)
    return DependencyConstraint(name=name, matcher=matcher, user=user, raw_text=text)


def parse_reference(raw: str, default_user: Optional[str] = None) -> PackageReference:
    """Parse an already-pinned ``name/version[@user]`` reference."""
    text = raw.strip()
    name, version, user = tokenize_reference(text)
    if any(ch in _UNSUPPORTED_RANGE_CHARS for ch in version):
        raise UnsupportedVersionRangeError(text, version)
    return PackageReference(name=name, version=version, user=user or default_user or Constants.DEFAULT_USER)
