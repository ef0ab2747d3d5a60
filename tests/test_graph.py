import pytest

from udenhance.exceptions import FrozenGraphError, GraphStructureError
from udenhance.graph import DependencyGraph
from udenhance.graph_token import TokenId, TypedDependency, Word, make_root_word


def words(*forms):
    return [Word(TokenId(i), form) for i, form in enumerate(forms, start=1)]


@pytest.fixture
def sentence(catalog):
    he, saw, it = words("He", "saw", "it")
    graph = DependencyGraph(catalog)
    graph.add_root(saw)
    graph.add_edge(saw, he, catalog["nsubj"])
    graph.add_edge(saw, it, catalog["dobj"])
    return graph, he, saw, it


class TestWord:
    def test_identity(self):
        assert Word(TokenId(2), "saw") == Word(TokenId(2), "see")
        assert Word(TokenId(2), "saw") != Word(TokenId(2, 1), "saw")
        assert len({Word(TokenId(2), "a"), Word(TokenId(2), "b"), Word(TokenId(2, 1), "a")}) == 2

    def test_ordering(self):
        ordered = sorted([Word(TokenId(3), "c"), Word(TokenId(2, 1), "b"), Word(TokenId(2), "b")])
        assert [str(w) for w in ordered] == ["b-2", "b-2'", "c-3"]

    def test_copy_of_copy(self):
        word = Word(TokenId(4), "flies", "VBZ")
        first = word.copy(1)
        second = first.copy(2)
        assert first.is_copy() and second.is_copy()
        assert second.original is word
        assert second.tag == "VBZ"


class TestDependencyGraph:
    def test_queries(self, sentence, catalog):
        graph, he, saw, it = sentence
        assert graph.get_roots() == [saw]
        assert graph.get_children(saw) == [he, it]
        assert graph.get_parent(he) == saw
        assert graph.get_parent(saw) is None
        assert graph.reln(saw, it) == catalog["dobj"]
        assert graph.reln(it, saw) is None
        assert graph.has_child_with_reln(saw, catalog["nsubj"])
        assert graph.has_parent_with_reln(it, catalog["dobj"])
        assert graph.children_with_reln(saw, catalog["dobj"]) == [it]
        assert graph.node_by_index(3) == it
        assert graph.node_by_index(7) is None

    def test_get_edge_prefers_tree_edge(self, sentence, catalog):
        graph, he, saw, it = sentence
        graph.add_edge(saw, it, catalog["nsubj"], is_extra=True)
        assert graph.get_edge(saw, it).relation == catalog["dobj"]
        assert len(graph.get_edges(saw, it)) == 2

    def test_set_relation_keeps_position(self, sentence, catalog):
        graph, he, saw, it = sentence
        edge = graph.get_edge(saw, he)
        new_edge = graph.set_relation(edge, catalog["nsubjpass"])
        assert [e.dep for e in graph.out_edges(saw)] == [he, it]
        assert graph.in_edges(he) == [new_edge]
        assert new_edge.relation == catalog["nsubjpass"]

    def test_set_relation_of_missing_edge(self, sentence, catalog):
        graph, he, saw, it = sentence
        edge = graph.get_edge(saw, he)
        graph.remove_edge(edge)
        with pytest.raises(GraphStructureError):
            graph.set_relation(edge, catalog["nsubj"])

    def test_remove_edge(self, sentence):
        graph, he, saw, it = sentence
        edge = graph.get_edge(saw, he)
        assert graph.remove_edge(edge)
        assert not graph.remove_edge(edge)
        assert graph.get_parent(he) is None
        # words stay in the graph after losing their edges
        assert he in graph

    def test_delete_duplicate_edges(self, sentence, catalog):
        graph, he, saw, it = sentence
        graph.add_edge(saw, he, catalog["nsubj"], is_extra=True)
        graph.add_edge(saw, he, catalog["nsubj:xsubj"], is_extra=True)
        graph.delete_duplicate_edges()
        assert [str(e.relation) for e in graph.get_edges(saw, he)] == ["nsubj", "nsubj:xsubj"]
        assert not graph.get_edges(saw, he)[0].is_extra
        assert len(graph.in_edges(he)) == 2

    def test_make_copy_node(self, sentence):
        graph, he, saw, it = sentence
        first = graph.make_copy_node(saw)
        second = graph.make_copy_node(first)
        assert (first.index, first.copy_count) == (2, 1)
        assert (second.index, second.copy_count) == (2, 2)
        assert first.original is saw and second.original is saw
        assert first in graph and second in graph
        # copies are never found by position
        assert graph.node_by_index(2) is saw

    def test_typed_dependencies(self, sentence, catalog):
        graph, he, saw, it = sentence
        graph.add_edge(saw, it, catalog["nsubj"], is_extra=True)
        deps = graph.typed_dependencies()
        assert [str(d) for d in deps] == ["nsubj(saw-2, He-1)", "root(ROOT-0, saw-2)", "dobj(saw-2, it-3)",
                                          "nsubj(saw-2, it-3)"]
        assert [d.extra for d in deps] == [False, False, False, True]

    def test_from_dependencies(self, catalog):
        he, saw = words("He", "saw")
        graph = DependencyGraph.from_dependencies(catalog, [
            TypedDependency(make_root_word(), saw, catalog.root),
            TypedDependency(saw, he, catalog["nsubj"]),
        ])
        assert graph.get_roots() == [saw]
        assert graph.reln(saw, he) == catalog["nsubj"]


class TestSnapshot:
    def test_snapshot_is_frozen(self, sentence, catalog):
        graph, he, saw, it = sentence
        snapshot = graph.snapshot()
        with pytest.raises(FrozenGraphError):
            snapshot.add_edge(saw, he, catalog["dep"])
        with pytest.raises(FrozenGraphError):
            snapshot.remove_edge(graph.get_edge(saw, he))
        with pytest.raises(FrozenGraphError):
            snapshot.make_copy_node(saw)

    def test_snapshot_ignores_later_changes(self, sentence, catalog):
        graph, he, saw, it = sentence
        snapshot = graph.snapshot()
        graph.remove_edge(graph.get_edge(saw, he))
        graph.add_edge(it, he, catalog["dep"])
        graph.make_copy_node(saw)
        assert snapshot.get_children(saw) == [he, it]
        assert snapshot.get_children(it) == []
        assert len(snapshot) == 3
        assert len(graph) == 4

    def test_iterating_a_snapshot_while_rewriting(self, sentence, catalog):
        graph, he, saw, it = sentence
        for edge in graph.snapshot().edges():
            graph.remove_edge(edge)
            graph.add_edge(edge.gov, edge.dep, edge.relation, is_extra=True)
        assert len(graph.edges()) == 2
        assert all(edge.is_extra for edge in graph.edges())
