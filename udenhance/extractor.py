import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import networkx as nx

from .graph import DependencyGraph
from .graph_token import TokenId, TypedDependency, Word
from .relations import Relation, RelationCatalog
from .tree import HeadFinder, Tree, TreePatternOracle

logger = logging.getLogger(__name__)

TARGET = "target"
WordFilter = Callable[[Word], bool]


@dataclass
class Extraction:
    graph: DependencyGraph
    # every (governor, dependent, relation) the patterns found, including the ones left out of the basic tree
    complete_dependencies: List[TypedDependency] = field(default_factory=list)


class BasicExtractor:
    """Extracts the basic typed dependencies of a constituency tree.

    For every phrasal node, each relation that applies to the node's category is asked for its
    dependents through the tree-pattern oracle, and the head word of the node governs the head word
    of every 'target' it binds. The relation patterns are compiled once, so a single extractor can be
    reused for all the sentences of a corpus.

    Args:
        catalog: the relations to extract, with their categories and target patterns.
        tree_oracle: compiles and matches the target patterns.
        head_finder: picks the head child of a phrasal node.
        word_filter: dependents for which it returns False (e.g. punctuation) are not attached.
    """
    def __init__(self, catalog: RelationCatalog, tree_oracle: TreePatternOracle, head_finder: HeadFinder,
                 word_filter: Optional[WordFilter] = None):
        self.catalog = catalog
        self.tree_oracle = tree_oracle
        self.head_finder = head_finder
        self.word_filter = word_filter if word_filter is not None else (lambda word: True)
        self._compiled = [(rel, [tree_oracle.compile(pattern) for pattern in rel.target_patterns])
                          for rel in catalog if rel.applies_to is not None and rel.target_patterns]

    def extract(self, tree: Optional[Tree]) -> Extraction:
        # an unparsable sentence is not an error, it simply has no dependencies
        if tree is None or not tree.leaves():
            return Extraction(DependencyGraph(self.catalog))

        words = self._index_leaves(tree)
        heads: Dict[int, Optional[Word]] = dict()
        basic = nx.MultiDiGraph()
        complete = nx.MultiDiGraph()
        basic.add_nodes_from(words.values())

        self._analyze_node(tree, tree, words, heads, basic, complete)
        root_word = self._head_word(tree, words, heads) or words[id(tree.leaves()[0])]
        self._attach_stranded_nodes(tree, root_word, False, words, heads, basic)

        graph = self._to_dependency_graph(basic, root_word)
        self._post_process(graph)

        complete_dependencies = sorted(TypedDependency(gov, dep, rel) for gov, dep, rel in complete.edges(keys=True))
        logger.debug("extracted %d basic dependencies out of %d candidates",
                     len(graph.edges()), len(complete_dependencies))
        return Extraction(graph, complete_dependencies)

    @staticmethod
    def _index_leaves(tree: Tree) -> Dict[int, Word]:
        words = dict()
        for i, leaf in enumerate(tree.leaves(), start=1):
            tag = leaf.parent.label if leaf.parent is not None and leaf.parent.is_preterminal() else None
            words[id(leaf)] = Word(TokenId(i), leaf.label, tag)
        return words

    def _head_word(self, node: Tree, words: Dict[int, Word], heads: Dict[int, Optional[Word]]) -> Optional[Word]:
        if id(node) in heads:
            return heads[id(node)]
        if node.is_leaf():
            head = words[id(node)]
        elif node.is_preterminal():
            head = words[id(node.children[0])]
        else:
            head_child = self.head_finder.determine_head(node)
            head = self._head_word(head_child, words, heads) if head_child is not None else None
        heads[id(node)] = head
        return head

    def _analyze_node(self, node: Tree, root: Tree, words, heads, basic: nx.MultiDiGraph,
                      complete: nx.MultiDiGraph):
        # leaves and preterminals never govern anything
        if not node.is_phrasal():
            return
        t_head = self._head_word(node, words, heads)
        category = node.basic_category()
        for rel, patterns in self._compiled:
            if t_head is None or not (rel.is_applicable(node.label) or rel.is_applicable(category)):
                continue
            for pattern in patterns:
                for bindings in self.tree_oracle.match(pattern, node, root):
                    target = bindings.get(TARGET)
                    if target is None:
                        continue
                    u_head = self._head_word(target, words, heads)
                    if u_head is None or u_head == t_head or not self.word_filter(u_head):
                        continue
                    complete.add_edge(t_head, u_head, key=rel)
                    # a word keeps the governor it got first, and an edge that would close a cycle is dropped
                    parents = set(basic.predecessors(u_head))
                    if (not parents or t_head in parents) and not nx.has_path(basic, u_head, t_head):
                        basic.add_edge(t_head, u_head, key=rel)

        for child in node.children:
            self._analyze_node(child, root, words, heads, basic, complete)

    def _attach_stranded_nodes(self, node: Tree, root_word: Word, attach: bool, words, heads,
                               basic: nx.MultiDiGraph):
        if node.is_leaf():
            return
        head = self._head_word(node, words, heads)
        if attach and head is not None and node.parent is not None and self.word_filter(head):
            parent_head = self._head_word(node.parent, words, heads)
            if parent_head is not None and not basic.has_edge(parent_head, head) and \
                    not nx.has_path(basic.to_undirected(as_view=True), root_word, head):
                basic.add_edge(parent_head, head, key=self.catalog.dependent)
        for child in node.children:
            child_head = self._head_word(child, words, heads)
            self._attach_stranded_nodes(child, root_word, child_head != head, words, heads, basic)

    def _relation_for(self, labels: List[Relation]) -> Relation:
        # the most specific relation wins, ties are broken by declaration order
        reln = self.catalog.dependent
        for candidate in sorted(labels, key=lambda r: (self.catalog.priority(r), str(r))):
            if reln.is_ancestor(candidate):
                reln = candidate
        return reln

    def _to_dependency_graph(self, basic: nx.MultiDiGraph, root_word: Word) -> DependencyGraph:
        graph = DependencyGraph(self.catalog)
        for gov in sorted(basic.nodes):
            for dep in sorted(set(basic.successors(gov))):
                labels = list(basic.get_edge_data(gov, dep).keys())
                graph.add_edge(gov, dep, self._relation_for(labels))

        if self.word_filter(root_word):
            graph.add_root(root_word)
        else:
            # the root is filtered out (e.g. a punctuation mark), so its first dependent takes its place
            new_root = None
            for edge in sorted(graph.out_edges(root_word), key=lambda e: e.dep):
                graph.remove_edge(edge)
                if new_root is None:
                    new_root = edge.dep
                    graph.add_root(new_root)
                else:
                    graph.add_edge(new_root, edge.dep, edge.relation)
        return graph

    def _post_process(self, graph: DependencyGraph):
        self._correct_wh_attachment(graph)
        self._convert_rel(graph)

    def _correct_wh_attachment(self, graph: DependencyGraph):
        # a WH-word attached to a control verb that already has an object belongs to the embedded verb
        catalog = self.catalog
        wh_relations = (catalog.dependent, catalog["dobj"])
        obj_relations = (catalog["dobj"], catalog["iobj"])
        for xcomp in graph.snapshot().find_all_relns(catalog["xcomp"]):
            root, embedded = xcomp.gov, xcomp.dep
            for edge in graph.out_edges(root):
                wh = edge.dep
                if edge.relation not in wh_relations or wh == embedded or not (wh.tag or "").startswith("W"):
                    continue
                if any(other.relation in obj_relations and other.dep not in (wh, embedded)
                       for other in graph.out_edges(root)):
                    graph.remove_edge(edge)
                    graph.add_edge(embedded, wh, catalog["dobj"])

    def _convert_rel(self, graph: DependencyGraph):
        # 'prep' and 'rel' are intermediate relations, they never reach the basic output
        catalog = self.catalog
        nmod, rel = catalog["nmod"], catalog["rel"]
        for prep in graph.find_all_relns(catalog["prep"]):
            changed_prep = False
            for nmod_edge in graph.out_edges(prep.gov):
                if nmod_edge.relation not in (nmod, rel) or prep.dep.index < nmod_edge.dep.index:
                    continue
                graph.remove_edge(prep)
                graph.add_edge(nmod_edge.dep, prep.dep, catalog["case"])
                changed_prep = True
                if nmod_edge.relation == rel:
                    graph.set_relation(nmod_edge, nmod)
                break
            if not changed_prep:
                graph.set_relation(prep, nmod)

        for edge in graph.find_all_relns(rel):
            graph.set_relation(edge, catalog["dobj"])
