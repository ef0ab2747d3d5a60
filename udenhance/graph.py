from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set

from .exceptions import FrozenGraphError, GraphStructureError
from .graph_token import Edge, TokenId, TypedDependency, Word, make_root_word
from .relations import Relation, RelationCatalog


class GraphView:
    """Read access shared by the live dependency graph and its snapshots."""
    def __init__(self, catalog: RelationCatalog):
        self.catalog = catalog
        # insertion ordered, so that iteration never depends on hashing
        self._vertices: Dict[Word, None] = dict()
        self._out: Dict[Word, List[Edge]] = defaultdict(list)
        self._in: Dict[Word, List[Edge]] = defaultdict(list)
        self._roots: Set[Word] = set()

    def __contains__(self, word: Word):
        return word in self._vertices

    def __len__(self):
        return len(self._vertices)

    def vertices(self) -> List[Word]:
        return list(self._vertices)

    def vertex_list_sorted(self) -> List[Word]:
        return sorted(self._vertices)

    def get_roots(self) -> List[Word]:
        return sorted(self._roots)

    def first_root(self) -> Optional[Word]:
        roots = self.get_roots()
        return roots[0] if roots else None

    def is_root(self, word: Word) -> bool:
        return word in self._roots

    def edges(self) -> List[Edge]:
        return [edge for gov in self.vertex_list_sorted() for edge in self._out.get(gov, [])]

    def out_edges(self, word: Word) -> List[Edge]:
        return list(self._out.get(word, []))

    def out_edges_sorted(self, word: Word) -> List[Edge]:
        return sorted(self._out.get(word, []), key=lambda e: (e.dep, str(e.relation)))

    def in_edges(self, word: Word) -> List[Edge]:
        return list(self._in.get(word, []))

    def get_edges(self, gov: Word, dep: Word) -> List[Edge]:
        return [edge for edge in self._out.get(gov, []) if edge.dep == dep]

    def get_edge(self, gov: Word, dep: Word) -> Optional[Edge]:
        # the tree edge (if any) is preferred over the extra ones
        edges = self.get_edges(gov, dep)
        if not edges:
            return None
        return next((edge for edge in edges if not edge.is_extra), edges[0])

    def contains_edge(self, gov: Word, dep: Word) -> bool:
        return any(edge.dep == dep for edge in self._out.get(gov, []))

    def reln(self, gov: Word, dep: Word) -> Optional[Relation]:
        edge = self.get_edge(gov, dep)
        return edge.relation if edge is not None else None

    def get_parents(self, word: Word) -> List[Word]:
        return sorted({edge.gov for edge in self._in.get(word, [])})

    def get_parent(self, word: Word) -> Optional[Word]:
        edges = self._in.get(word, [])
        if not edges:
            return None
        return next((edge.gov for edge in edges if not edge.is_extra), edges[0].gov)

    def get_children(self, word: Word) -> List[Word]:
        return sorted({edge.dep for edge in self._out.get(word, [])})

    def children_with_reln(self, word: Word, relation: Relation) -> List[Word]:
        return sorted({edge.dep for edge in self._out.get(word, []) if edge.relation == relation})

    def has_child_with_reln(self, word: Word, relation: Relation) -> bool:
        return any(edge.relation == relation for edge in self._out.get(word, []))

    def has_parent_with_reln(self, word: Word, relation: Relation) -> bool:
        return any(edge.relation == relation for edge in self._in.get(word, []))

    def find_all_relns(self, relation: Relation) -> List[Edge]:
        return [edge for edge in self.edges() if edge.relation == relation]

    def node_by_index(self, index: int) -> Optional[Word]:
        """The word at the given sentence position (never a copy node), or None."""
        key = Word(TokenId(index), "")
        return next((word for word in self._vertices if word == key), None)

    def typed_dependencies(self) -> List[TypedDependency]:
        root_word = make_root_word()
        deps = [TypedDependency(root_word, root, self.catalog.root) for root in self.get_roots()]
        deps += [TypedDependency(edge.gov, edge.dep, edge.relation, edge.is_extra) for edge in self.edges()]
        return sorted(deps)

    def snapshot(self) -> "GraphSnapshot":
        return GraphSnapshot(self)

    def __str__(self):
        return "\n".join(str(dep) for dep in self.typed_dependencies())


class GraphSnapshot(GraphView):
    """A frozen copy of the edge lists of a graph.

    Passes iterate over a snapshot while they rewrite the live graph, the snapshot is not affected by the
    rewrites. Words are shared with the live graph, which is fine as words are never mutated in place.
    """
    def __init__(self, graph: GraphView):
        super().__init__(graph.catalog)
        self._vertices = dict(graph._vertices)
        self._out = defaultdict(list, {word: list(edges) for word, edges in graph._out.items()})
        self._in = defaultdict(list, {word: list(edges) for word, edges in graph._in.items()})
        self._roots = set(graph._roots)

    def _frozen(self, *args, **kwargs):
        raise FrozenGraphError("a graph snapshot can't be modified")

    add_vertex = add_root = remove_root = add_edge = remove_edge = set_relation = _frozen
    delete_duplicate_edges = make_copy_node = _frozen


class DependencyGraph(GraphView):
    """A mutable multigraph of words connected by typed dependencies.

    A (gov, dep) pair may carry several edges. Only one of them is expected to be a non-extra edge,
    but this is not enforced here (see diagnostics.find_duplicate_edges).
    """
    def add_vertex(self, word: Word):
        self._vertices.setdefault(word, None)

    def add_root(self, word: Word):
        self.add_vertex(word)
        self._roots.add(word)

    def remove_root(self, word: Word):
        self._roots.discard(word)

    def add_edge(self, gov: Word, dep: Word, relation: Relation, weight: float = 0.0, is_extra: bool = False) -> Edge:
        edge = Edge(gov, dep, relation, weight, is_extra)
        self.add_vertex(gov)
        self.add_vertex(dep)
        self._out[gov].append(edge)
        self._in[dep].append(edge)
        return edge

    def remove_edge(self, edge: Edge) -> bool:
        out_edges = self._out.get(edge.gov, [])
        if edge not in out_edges:
            return False
        out_edges.remove(edge)
        self._in[edge.dep].remove(edge)
        return True

    def set_relation(self, edge: Edge, relation: Relation) -> Edge:
        """Relabel an edge, keeping its position in the edge lists."""
        out_edges = self._out.get(edge.gov, [])
        if edge not in out_edges:
            raise GraphStructureError(f"no such edge: {edge}")
        new_edge = edge.with_relation(relation)
        out_edges[out_edges.index(edge)] = new_edge
        in_edges = self._in[edge.dep]
        in_edges[in_edges.index(edge)] = new_edge
        return new_edge

    def delete_duplicate_edges(self):
        """Keep only the first edge of each (gov, dep, relation) triple."""
        for gov, out_edges in self._out.items():
            seen = set()
            unique = []
            for edge in out_edges:
                key = (edge.dep, edge.relation)
                if key in seen:
                    self._in[edge.dep].remove(edge)
                    continue
                seen.add(key)
                unique.append(edge)
            self._out[gov] = unique

    def make_copy_node(self, word: Word) -> Word:
        """Add a new copy of `word`, its copy count is one more than that of any existing copy."""
        original = word.original if word.original is not None else word
        copy_count = 1 + max((w.copy_count for w in self._vertices if w.index == original.index), default=0)
        copy_node = original.copy(copy_count)
        self.add_vertex(copy_node)
        return copy_node

    @classmethod
    def from_dependencies(cls, catalog: RelationCatalog, dependencies: Iterable[TypedDependency]) -> "DependencyGraph":
        graph = cls(catalog)
        for dep in dependencies:
            if dep.relation == catalog.root or dep.gov.index == 0:
                graph.add_root(dep.dep)
            else:
                graph.add_edge(dep.gov, dep.dep, dep.relation, is_extra=dep.extra)
        return graph
