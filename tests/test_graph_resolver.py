"""Tests for the per-package graph resolver."""

import pytest

from conftest import FakeMetadataSource
from versioning.errors import (
    UnsupportedVersionRangeError,
    UserConflictError,
    VersionConflictError,
    VersionNotFoundError,
)
from versioning.models import PackageReference
from versioning.resolver import GraphResolver, resolve_dependencies


def refs(result):
    return [r.to_ref_string() for r in result]


class TestGraphResolver:
    """Test transitive resolution below one root."""

    def test_narrower_exact_pin_wins(self, scenario_a_source):
        result = resolve_dependencies(scenario_a_source, "root", "1.0.0")

        assert refs(result) == ["a/1.3.2@aurora", "b/2.5.0@aurora"]

    def test_pin_change_is_expanded(self, scenario_a_source):
        resolve_dependencies(scenario_a_source, "root", "1.0.0")

        expanded = [c[1:] for c in scenario_a_source.calls if c[0] == "constraints"]
        assert ("b", "2.5.1") in expanded
        assert ("b", "2.5.0") in expanded

    def test_exact_pin_skips_version_listing(self):
        source = FakeMetadataSource(
            versions={"root": ["1.0"], "zlib": ["1.3.1"]},
            requires={"root/1.0": ["zlib/1.3.1@aurora"]},
        )

        result = resolve_dependencies(source, "root", "1.0")

        assert refs(result) == ["zlib/1.3.1@aurora"]
        assert ("versions", "zlib") not in source.calls

    def test_root_version_must_be_listed(self):
        source = FakeMetadataSource(versions={"root": ["2.0"]}, requires={})

        with pytest.raises(VersionNotFoundError) as excinfo:
            resolve_dependencies(source, "root", "1.0")
        assert "2.0" in str(excinfo.value)

    def test_root_version_listing_failure_yields_error_entry(self):
        source = FakeMetadataSource(versions={}, requires={}, broken_versions=["root"])

        result = resolve_dependencies(source, "root", "1.0")

        assert result == [PackageReference.unresolvable("root")]

    def test_root_constraint_failure_yields_error_entry(self):
        source = FakeMetadataSource(versions={"root": ["1.0"]}, requires={}, broken_requires=["root"])

        result = resolve_dependencies(source, "root", "1.0")

        assert refs(result) == ["root/error@aurora"]

    def test_non_root_version_listing_failure_is_contained(self):
        source = FakeMetadataSource(
            versions={"root": ["1.0"], "good": ["2.0"]},
            requires={"root/1.0": ["flaky/1.Z@aurora", "good/2.0@aurora"]},
            broken_versions=["flaky"],
        )

        result = resolve_dependencies(source, "root", "1.0")

        assert refs(result) == ["flaky/error@aurora", "good/2.0@aurora"]
        assert not [c for c in source.calls if c[0] == "constraints" and c[1] == "flaky"]

    def test_non_root_constraint_failure_keeps_pin(self):
        source = FakeMetadataSource(
            versions={"root": ["1.0"], "leaf": ["3.1", "3.0"]},
            requires={"root/1.0": ["leaf/3.Z@aurora"]},
            broken_requires=["leaf"],
        )

        result = resolve_dependencies(source, "root", "1.0")

        assert refs(result) == ["leaf/3.1@aurora"]

    def test_distinct_exact_pins_conflict(self):
        source = FakeMetadataSource(
            versions={"root": ["1.0"], "a": ["1.0"], "b": ["1.0"], "zlib": ["1.3.1", "1.2.13"]},
            requires={
                "root/1.0": ["a/1.0@aurora", "b/1.0@aurora"],
                "a/1.0": ["zlib/1.3.1@aurora"],
                "b/1.0": ["zlib/1.2.13@aurora"],
            },
        )

        with pytest.raises(VersionConflictError) as excinfo:
            resolve_dependencies(source, "root", "1.0")
        message = str(excinfo.value)
        assert "1.3.1" in message
        assert "1.2.13" in message
        assert excinfo.value.name == "zlib"

    def test_no_candidate_satisfies_all(self):
        source = FakeMetadataSource(
            versions={"root": ["1.0"], "a": ["1.0"], "zlib": ["1.3.1", "1.2.13"]},
            requires={
                "root/1.0": ["zlib/1.2.Z@aurora", "a/1.0@aurora"],
                "a/1.0": ["zlib/1.3.Z@aurora"],
            },
        )

        with pytest.raises(VersionConflictError) as excinfo:
            resolve_dependencies(source, "root", "1.0")
        message = str(excinfo.value)
        assert "zlib/1.2.Z@aurora" in message
        assert "zlib/1.3.Z@aurora" in message
        assert "1.3.1, 1.2.13" in message

    def test_exact_pin_outside_family_falls_back_and_fails(self):
        source = FakeMetadataSource(
            versions={"root": ["1.0"], "a": ["1.0"], "zlib": ["1.3.1", "1.2.13"]},
            requires={
                "root/1.0": ["zlib/1.2.Z@aurora", "a/1.0@aurora"],
                "a/1.0": ["zlib/1.3.1@aurora"],
            },
        )

        with pytest.raises(VersionConflictError):
            resolve_dependencies(source, "root", "1.0")

    def test_user_conflict(self):
        source = FakeMetadataSource(
            versions={"root": ["1.0"], "a": ["1.0"], "zlib": ["1.3.1"]},
            requires={
                "root/1.0": ["zlib/1.3.1@aurora", "a/1.0@aurora"],
                "a/1.0": ["zlib/1.3.1@other"],
            },
        )

        with pytest.raises(UserConflictError) as excinfo:
            resolve_dependencies(source, "root", "1.0")
        assert excinfo.value.users == ["aurora", "other"]

    def test_user_taken_from_constraints(self):
        source = FakeMetadataSource(
            versions={"root": ["1.0"], "zlib": ["1.3.1"]},
            requires={"root/1.0": ["zlib/1.3.1@vendor"]},
        )

        assert refs(resolve_dependencies(source, "root", "1.0")) == ["zlib/1.3.1@vendor"]

    def test_named_family_picks_newest_build(self):
        source = FakeMetadataSource(
            versions={"root": ["1.0"], "stb": ["cci.20240531", "cci.20230920"]},
            requires={"root/1.0": ["stb/cci@aurora"]},
        )

        assert refs(resolve_dependencies(source, "root", "1.0")) == ["stb/cci.20240531@aurora"]

    def test_duplicate_constraints_are_merged(self):
        source = FakeMetadataSource(
            versions={"root": ["1.0"], "a": ["1.0"], "zlib": ["1.3.1"]},
            requires={
                "root/1.0": ["zlib/1.3.Z@aurora", "a/1.0@aurora"],
                "a/1.0": ["zlib/1.3.Z@aurora"],
            },
        )
        resolver = GraphResolver(source, "root", "1.0")

        resolver.resolve()

        assert len(resolver._constraints["zlib"]) == 1

    def test_cycle_terminates(self):
        source = FakeMetadataSource(
            versions={"root": ["1.0"], "a": ["1.0"]},
            requires={"root/1.0": ["a/1.0@aurora"], "a/1.0": ["root/1.0@aurora"]},
        )

        assert refs(resolve_dependencies(source, "root", "1.0")) == ["a/1.0@aurora", "root/1.0@aurora"]

    def test_unsupported_range_aborts(self):
        source = FakeMetadataSource(
            versions={"root": ["1.0"]},
            requires={"root/1.0": ["zlib/[>=1.2 <2]@aurora"]},
        )

        with pytest.raises(UnsupportedVersionRangeError):
            resolve_dependencies(source, "root", "1.0")

    def test_separate_calls_share_no_state(self, scenario_a_source):
        first = resolve_dependencies(scenario_a_source, "root", "1.0.0")
        scenario_a_source.requires["a/1.3.2"] = []

        second = resolve_dependencies(scenario_a_source, "root", "1.0.0")

        assert refs(first) == ["a/1.3.2@aurora", "b/2.5.0@aurora"]
        assert refs(second) == ["a/1.3.2@aurora", "b/2.5.1@aurora"]
