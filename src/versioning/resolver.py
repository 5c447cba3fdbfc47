"""Breadth-first resolution of one root package's transitive requirements.

Every time a new constraint arrives for a package name, that package's pin is
recomputed from all constraints seen so far, so a late, narrower requirement
can still override an earlier provisional choice. A changed pin is queued
again so its own requirements are walked.
"""
from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Dict, List, Optional, Set, Tuple

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled
from .errors import RegistryError, UserConflictError, VersionConflictError, VersionNotFoundError
from .models import DependencyConstraint, ExactMatcher, PackageReference, sort_references
from .parser import parse_constraint
from .source import MetadataSource

logger = logging.getLogger(__name__)


class GraphResolver:
    """Resolves the requirement graph below one pinned root.

    One instance serves one ``resolve()`` call; constraint and selection maps
    live on the instance and are discarded with it.
    """

    def __init__(self, source: MetadataSource, root_name: str, root_version: str,
                 default_user: Optional[str] = None):
        self._source = source
        self.root_name = root_name
        self.root_version = root_version
        self._default_user = default_user or Constants.DEFAULT_USER
        self._constraints: Dict[str, List[DependencyConstraint]] = {}
        self._resolved: Dict[str, PackageReference] = {}
        self._queue: Deque[PackageReference] = deque()
        self._visited: Set[Tuple[str, str]] = set()

    def _root_error(self) -> List[PackageReference]:
        return [PackageReference.unresolvable(self.root_name, self._default_user)]

    def resolve(self) -> List[PackageReference]:
        """Walk the graph and return the selected references sorted by name, version.

        Raises:
            VersionNotFoundError: the root version is not listed by the registry.
            VersionConflictError, UserConflictError: incompatible constraints.
            ConstraintSyntaxError: a requirement string could not be parsed.
        """
        try:
            available = self._source.list_versions(self.root_name)
        except RegistryError as exc:
            logger.warning("Could not list versions of %s: %s", self.root_name, exc)
            return self._root_error()
        if self.root_version not in available:
            raise VersionNotFoundError(self.root_name, self.root_version, available)

        root = PackageReference(self.root_name, self.root_version, self._default_user)
        self._queue.append(root)

        while self._queue:
            current = self._queue.popleft()
            if not current.is_resolved:
                continue
            key = (current.name, current.version)
            if key in self._visited:
                continue
            self._visited.add(key)

            try:
                requirements = self._source.list_constraints(current.name, current.version)
            except RegistryError as exc:
                if current is root:
                    logger.warning("Could not read requirements of %s: %s", current.to_ref_string(), exc)
                    return self._root_error()
                # Keep the current pin; nothing new is learned from this branch.
                logger.warning("Not expanding %s: %s", current.to_ref_string(), exc)
                continue

            if is_debug_enabled(logger):
                logger.debug(
                    "Expanding package",
                    extra=extra_context(
                        event="expand",
                        component="resolver",
                        action="list_constraints",
                        target=current.to_ref_string(),
                        count=len(requirements),
                    ),
                )

            for raw in requirements:
                constraint = parse_constraint(raw)
                self._merge(constraint)
                user = self._select_user(constraint.name)
                selected = self._select_version(constraint.name, user)
                self._update(selected)

        return sort_references(self._resolved.values())

    def _merge(self, constraint: DependencyConstraint) -> None:
        bucket = self._constraints.setdefault(constraint.name, [])
        if constraint not in bucket:
            bucket.append(constraint)

    def _select_user(self, name: str) -> str:
        users = []
        for constraint in self._constraints[name]:
            if constraint.user and constraint.user not in users:
                users.append(constraint.user)
        if len(users) > 1:
            raise UserConflictError(name, users)
        return users[0] if users else self._default_user

    def _describe(self, name: str) -> str:
        return ", ".join(str(c) for c in self._constraints[name])

    def _select_version(self, name: str, user: str) -> PackageReference:
        constraints = self._constraints[name]

        pins: List[str] = []
        for constraint in constraints:
            if isinstance(constraint.matcher, ExactMatcher) and constraint.matcher.version not in pins:
                pins.append(constraint.matcher.version)
        if len(pins) > 1:
            raise VersionConflictError(
                name,
                f"Version conflict for dependency '{name}': {' and '.join(pins)} "
                f"(constraints: {self._describe(name)})",
                pins,
            )
        if pins and all(c.matcher.matches(pins[0]) for c in constraints):
            return PackageReference(name, pins[0], user)

        try:
            candidates = self._source.list_versions(name)
        except RegistryError as exc:
            logger.warning("Could not list versions of %s: %s", name, exc)
            return PackageReference.unresolvable(name, user)

        for candidate in candidates:
            if all(c.matcher.matches(candidate) for c in constraints):
                return PackageReference(name, candidate, user)

        raise VersionConflictError(
            name,
            f"No version of '{name}' satisfies all constraints "
            f"(constraints: {self._describe(name)}; candidates: {', '.join(candidates) or '<none>'})",
            candidates,
        )

    def _update(self, selected: PackageReference) -> None:
        previous = self._resolved.get(selected.name)
        self._resolved[selected.name] = selected
        if not selected.is_resolved:
            return
        if previous is None or previous.version != selected.version:
            if is_debug_enabled(logger):
                logger.debug(
                    "Pin changed",
                    extra=extra_context(
                        event="decision",
                        component="resolver",
                        action="select_version",
                        target=selected.to_ref_string(),
                        previous=previous.to_ref_string() if previous else None,
                    ),
                )
            self._queue.append(selected)


def resolve_dependencies(source: MetadataSource, name: str, version: str,
                         default_user: Optional[str] = None) -> List[PackageReference]:
    """Resolve the transitive dependencies of ``name/version``.

    The root itself is only present in the result when it could not be
    expanded, as an unresolvable reference.
    """
    return GraphResolver(source, name, version, default_user).resolve()
