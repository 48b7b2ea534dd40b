"""
Graph operations using NetworkX.

This module handles:
- Building the dependency graph from edge records
- Cycle detection for a proposed dependency (with the diagnostic path)
- Integrity checks over an existing edge set
- Transitive upstream/downstream views with hop depth

Everything here is pure: callers pass the current edge set in, nothing is
cached between calls.
"""

from dataclasses import dataclass
from typing import Any, Hashable, Iterable, Mapping, Sequence

import networkx as nx

from taskgraph.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CycleCheck:
    """Result of a pre-flight cycle check."""
    would_cycle: bool
    path: list[Hashable] | None = None


@dataclass(frozen=True)
class ChainEntry:
    """A task reached transitively from another task."""
    task_id: Hashable
    dependency_id: Hashable  # Edge that reaches this task on its shortest route
    depth: int


def _endpoints(edge: Any) -> tuple[Hashable, Hashable]:
    if isinstance(edge, Mapping):
        return edge["dependent_task_id"], edge["blocking_task_id"]
    return edge.dependent_task_id, edge.blocking_task_id


def _edge_id(edge: Any) -> Hashable:
    if isinstance(edge, Mapping):
        return edge.get("id")
    return getattr(edge, "id", None)


def build_graph(edges: Iterable[Any]) -> nx.DiGraph:
    """
    Build a NetworkX DiGraph from dependency edges.

    Accepts Dependency rows or plain dicts with dependent_task_id /
    blocking_task_id keys.

    Returns a graph where:
    - Nodes are task IDs
    - Edges go from dependent -> blocking ("depends on"), carrying the
      dependency id as the ``dependency_id`` attribute
    """
    graph = nx.DiGraph()
    for edge in edges:
        dependent, blocking = _endpoints(edge)
        graph.add_edge(dependent, blocking, dependency_id=_edge_id(edge))
    return graph


def detect_cycle(
    dependent_task_id: Hashable,
    blocking_task_id: Hashable,
    edges: Iterable[Any],
) -> CycleCheck:
    """
    Check if adding "dependent depends on blocking" would create a cycle.

    Algorithm:
    1. Build the existing graph
    2. Depth-first traversal from the blocking task along "depends on"
       edges (the DFS tree tracks visited nodes)
    3. A cycle exists iff the traversal reaches the dependent task

    The returned path runs from the blocking task to the dependent task.
    With A -> B -> C already present, proposing C -> A yields [A, B, C].
    """
    if dependent_task_id == blocking_task_id:
        return CycleCheck(would_cycle=True, path=[dependent_task_id])

    graph = build_graph(edges)
    if blocking_task_id not in graph or dependent_task_id not in graph:
        return CycleCheck(would_cycle=False)

    predecessors = nx.dfs_predecessors(graph, source=blocking_task_id)
    if dependent_task_id not in predecessors:
        return CycleCheck(would_cycle=False)

    # Walk the DFS tree back from the dependent task to the root
    path = [dependent_task_id]
    while path[-1] != blocking_task_id:
        path.append(predecessors[path[-1]])
    path.reverse()

    logger.debug(f"Cycle via {dependent_task_id} -> {blocking_task_id}: {path}")
    return CycleCheck(would_cycle=True, path=path)


def find_cycle(edges: Iterable[Any]) -> list[Hashable] | None:
    """Return the nodes of any cycle in the edge set, or None if it is a DAG."""
    graph = build_graph(edges)
    try:
        cycle = nx.find_cycle(graph)
    except nx.NetworkXNoCycle:
        return None
    return [u for u, _ in cycle]


def _reachable(graph: nx.DiGraph, task_id: Hashable) -> list[ChainEntry]:
    if task_id not in graph:
        return []

    depths = nx.single_source_shortest_path_length(graph, task_id)
    paths = nx.single_source_shortest_path(graph, task_id)

    entries = []
    for node, depth in depths.items():
        if node == task_id:
            continue
        route = paths[node]
        last_hop = graph.edges[route[-2], route[-1]]
        entries.append(ChainEntry(task_id=node, dependency_id=last_hop["dependency_id"], depth=depth))
    entries.sort(key=lambda entry: entry.depth)
    return entries


def get_upstream(task_id: Hashable, edges: Iterable[Any]) -> list[ChainEntry]:
    """
    Every task that blocks task_id, directly or transitively.

    depth is the minimum number of hops; dependency_id is the edge that
    points at the entry (the last hop of its shortest route).
    """
    return _reachable(build_graph(edges), task_id)


def get_downstream(task_id: Hashable, edges: Iterable[Any]) -> list[ChainEntry]:
    """Every task blocked by task_id, directly or transitively."""
    return _reachable(build_graph(edges).reverse(copy=False), task_id)


def format_cycle_path(path: Sequence[Hashable], titles: Mapping[Hashable, str] | None = None) -> str:
    """
    Format a cycle path as a readable chain.

    The first task is repeated at the end to close the loop:
    "Task A → Task B → Task C → Task A". Unknown ids render as the id.
    """
    titles = titles or {}
    names = [titles.get(task_id, str(task_id)) for task_id in path]
    if names:
        names.append(names[0])
    return " → ".join(names)
