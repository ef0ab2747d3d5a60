"""Validation queries over a dependency graph.

None of these change the graph or raise on an anomaly: a disconnected or duplicated graph is a legitimate
(if suspicious) outcome of enhancing noisy input, so it is reported for inspection instead.
"""
import logging
from collections import Counter
from typing import List, Tuple

import networkx as nx

from .graph import DependencyGraph, GraphView
from .graph_token import Edge, Word

logger = logging.getLogger(__name__)


def to_networkx(graph: GraphView) -> nx.MultiDiGraph:
    nx_graph = nx.MultiDiGraph()
    nx_graph.add_nodes_from(graph.vertex_list_sorted())
    for edge in graph.edges():
        nx_graph.add_edge(edge.gov, edge.dep, key=str(edge.relation), extra=edge.is_extra)
    return nx_graph


def get_roots(graph: GraphView) -> List[Word]:
    """The words with no governor, whether or not they were declared as roots."""
    return [word for word in graph.vertex_list_sorted() if not graph.in_edges(word)]


def is_connected(graph: GraphView) -> bool:
    """True if every word can be reached from the declared roots, ignoring the edge directions."""
    roots = graph.get_roots()
    if not roots:
        return len(graph) == 0
    undirected = to_networkx(graph).to_undirected(as_view=True)
    reached = set()
    for root in roots:
        reached.update(nx.node_connected_component(undirected, root))
    return len(reached) == len(graph)


def candidate_alternate_roots(graph: GraphView) -> List[Word]:
    """For a disconnected graph, the governor-less words of each fragment the roots do not reach.

    A fragment with a cycle has no governor-less word, it is then represented by its first word.
    An empty list means the graph is connected.
    """
    roots = graph.get_roots()
    nx_graph = to_networkx(graph)
    undirected = nx_graph.to_undirected(as_view=True)
    reached = set()
    for root in roots:
        reached.update(nx.node_connected_component(undirected, root))

    candidates = []
    for component in sorted((sorted(c) for c in nx.connected_components(undirected)), key=lambda c: c[0]):
        if component[0] in reached:
            continue
        heads = [word for word in component if nx_graph.in_degree(word) == 0]
        candidates.extend(heads if heads else component[:1])
    if candidates:
        logger.info("the graph is disconnected, candidate alternate roots: %s", ", ".join(map(str, candidates)))
    return candidates


def find_duplicate_edges(graph: GraphView) -> List[Tuple[Word, Word, str]]:
    """The (governor, dependent, relation) triples carried by more than one edge."""
    counts = Counter((edge.gov, edge.dep, str(edge.relation)) for edge in graph.edges())
    return sorted(key for key, count in counts.items() if count > 1)


def find_multiple_tree_edges(graph: GraphView) -> List[Edge]:
    """Non-extra edges of a (gov, dep) pair that already has an earlier non-extra edge."""
    seen = set()
    ret = []
    for edge in graph.edges():
        if edge.is_extra:
            continue
        if (edge.gov, edge.dep) in seen:
            ret.append(edge)
        seen.add((edge.gov, edge.dep))
    return ret


def remove_duplicate_edges(graph: DependencyGraph) -> int:
    """Delete exact duplicates in place, returns the number of deleted edges."""
    before = len(graph.edges())
    graph.delete_duplicate_edges()
    removed = before - len(graph.edges())
    if removed:
        logger.debug("removed %d duplicate edges", removed)
    return removed
