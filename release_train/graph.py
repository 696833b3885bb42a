"""Dependency graph utilities.

Provides the topological sort that decides publish order in a monorepo.
Packages must be published in dependency order so that when package A
depends on package B, B is already on the registry when A is verified.
"""

from __future__ import annotations

from collections.abc import Sequence

from .errors import ConfigError, CycleError
from .models import Dependency, Package

ORDERING_KINDS = frozenset({"normal", "build"})


def constrains_order(package: Package, dep: Dependency, releasable: set[str]) -> bool:
    """Decide whether a dependency edge matters for publish order.

    An edge counts when the target is being released too, is not the
    package itself, and is either a normal/build dependency or referenced
    from one of the package's features. Cargo compiles feature-referenced
    dev-dependencies during the publish verification build, so those must
    be published first as well.
    """
    if dep.name not in releasable or dep.name == package.name:
        return False
    return dep.kind in ORDERING_KINDS or dep.feature_gated


class PackageGraph:
    """Index-based view of a set of packages and their ordering edges.

    Each package gets a stable index in input order; ``edges[i]`` lists the
    indices package ``i`` must be published after, in declaration order.
    """

    def __init__(self, packages: Sequence[Package]) -> None:
        self.packages = list(packages)
        self.index: dict[str, int] = {}
        for i, package in enumerate(self.packages):
            if package.name in self.index:
                raise ConfigError(f"Duplicate package name: {package.name}")
            self.index[package.name] = i

        releasable = set(self.index)
        self.edges: list[list[int]] = []
        for package in self.packages:
            targets: list[int] = []
            for dep in package.dependencies:
                if constrains_order(package, dep, releasable):
                    target = self.index[dep.name]
                    if target not in targets:
                        targets.append(target)
            self.edges.append(targets)

    def __len__(self) -> int:
        return len(self.packages)


def release_order(packages: Sequence[Package]) -> list[Package]:
    """Order packages so every package follows all of its dependencies.

    Depth-first post-order over PackageGraph using an explicit stack.
    ``visited`` marks packages already placed; ``on_stack`` marks packages
    on the current descent, so reaching one of those again is a cycle.
    Roots are taken in input order and dependencies in declaration order,
    so mutually independent packages keep their input order.

    Args:
        packages: Packages to release. Names must be unique.

    Returns:
        The same packages, dependencies first.

    Raises:
        CycleError: If the filtered dependency edges contain a cycle.

    Example:
        If A depends on B, and B depends on C:
        release_order([A, B, C]) → [C, B, A]
    """
    graph = PackageGraph(packages)
    visited = [False] * len(graph)
    on_stack = [False] * len(graph)
    order: list[Package] = []

    for root in range(len(graph)):
        if visited[root]:
            continue
        # Each frame is (node, position of the next edge to follow)
        stack: list[tuple[int, int]] = [(root, 0)]
        on_stack[root] = True
        while stack:
            node, pos = stack[-1]
            edges = graph.edges[node]
            if pos < len(edges):
                stack[-1] = (node, pos + 1)
                dep = edges[pos]
                if on_stack[dep]:
                    raise CycleError(graph.packages[node].name, graph.packages[dep].name)
                if not visited[dep]:
                    on_stack[dep] = True
                    stack.append((dep, 0))
                continue
            stack.pop()
            on_stack[node] = False
            visited[node] = True
            order.append(graph.packages[node])

    return order
