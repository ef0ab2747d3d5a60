# usage example:
# conversions = [SomeConversion, SomeConversion1, ...]
# matcher = Matcher(NamedConstraint(conversion.name, conversion.constraint) for conversion in conversions)
#
# def convert(graph, matcher):
#     m = matcher(graph.snapshot())
#     for conv_name in m.names():
#         matches = list(m.matches_for(conv_name))
#         transform(graph, matches)

from collections import defaultdict
from dataclasses import replace
from typing import Dict, Generator, List, Mapping, NamedTuple, Optional, Sequence, Set, Tuple

from .constraints import Field, FieldNames, HasNoLabel, LabelPresence, NodeConstraint, Pattern, WordPair, \
    WordTriplet
from .graph import GraphView
from .graph_token import Word


# ************************************************ graph functionality *************************************************


def get_content_by_field(word: Word, cur_field: FieldNames) -> Optional[str]:
    if cur_field == FieldNames.WORD:
        return word.form
    elif cur_field == FieldNames.LEMMA:
        return word.lemma
    elif cur_field == FieldNames.TAG:
        return word.tag
    return word.ner


# returns a string list of labels connecting child to parent (or incoming/outgoing to/from child/parent respectively)
def get_labels(graph: GraphView, child: Word = None, parent: Word = None) -> List[str]:
    if child is not None:
        edges = graph.in_edges(child)
        if parent is not None:
            edges = [edge for edge in edges if edge.gov == parent]
    elif parent is not None:
        edges = graph.out_edges(parent)
    else:
        edges = []
    return [str(edge.relation) for edge in edges]


# function that checks that a sequence of Label constraints is satisfied
def get_matched_labels(label_constraints: Sequence[LabelPresence], actual_labels: List[str]) -> Optional[Set[str]]:
    successfully_matched = set()
    # we need to satisfy all constraints in the sequence, so if one fails, return None
    for constraint in label_constraints:
        satisfied_labels = constraint.satisfied(actual_labels)
        if satisfied_labels is None:
            return None
        successfully_matched.update(satisfied_labels)
    return successfully_matched


# ****************************************************** Matcher *******************************************************

class MatchingResult:
    def __init__(self, name2word: Mapping[str, Word], words2label: Mapping[Tuple[Word, Word], Set[str]]):
        self.name2word = name2word
        self.words2label = words2label

    # return the matched word according to its name
    def token(self, name: str) -> Optional[Word]:
        # optional nodes can have no match, so asking for their names is legitimate and yields None
        return self.name2word.get(name)

    # return the set of captured labels between the two words, child first
    def edge(self, child: Word, parent: Word) -> Set[str]:
        return self.words2label.get((child, parent), set())


class GlobalMatcher:
    def __init__(self, constraint: Pattern):
        self.constraint = constraint
        self.captured_labels = defaultdict(set)
        # list of node ids that don't require a capture
        self.dont_capture_names = [node.id for node in constraint.nodes if not node.capture]

    # filter a single match group according to distance constraints
    def _filter_distance_constraints(self, match: Mapping[str, Word]) -> bool:
        for distance in self.constraint.distances:
            # a node missing from the match was an optional one, so the constraint is skipped
            if distance.node1 not in match or distance.node2 not in match:
                continue
            calculated_distance = match[distance.node2].index - match[distance.node1].index - 1
            if not distance.satisfied(calculated_distance):
                return False
        return True

    # filter a single match group according to concat constraints
    def _filter_concat_constraints(self, match: Mapping[str, Word]) -> bool:
        for concat in self.constraint.concats:
            node_names = concat.get_node_names()
            if set(node_names).difference(match):
                continue
            if not concat.satisfied("_".join(match[name].form.lower() for name in node_names)):
                return False
        return True

    @staticmethod
    def _try_merge(base_assignment: Mapping[str, Word], new_assignment: Mapping[str, Word]) -> Mapping[str, Word]:
        # try to merge two assignment if they do not contradict
        for k, v in new_assignment.items():
            if v != base_assignment.get(k, v):
                return {}
        merged_assignment = {**base_assignment, **new_assignment}
        # a merge shouldnt bind the same word twice
        if len(set(merged_assignment.values())) < len(merged_assignment.values()):
            return {}
        return merged_assignment

    def _filter_edge_constraints(self, matches: Mapping[str, List[Word]], graph: GraphView) \
            -> List[Tuple[bool, List[Dict[str, Word]]]]:
        edges_assignments = list()
        # pick possible assignments according to the edge constraint
        for edge in self.constraint.edges:
            edge_assignments = []
            # a node missing from the matches was an optional one, so the edge constraint is skipped
            for child in matches.get(edge.child, []):
                for parent in matches.get(edge.parent, []):
                    if child == parent:
                        continue
                    captured_labels = None
                    actual_labels = get_labels(graph, child=child, parent=parent)
                    if actual_labels:
                        captured_labels = get_matched_labels(edge.label, actual_labels)
                    if captured_labels is None:
                        continue
                    # store all captured labels according to the child-parent pair
                    self.captured_labels[(edge.child, child, edge.parent, parent)].update(captured_labels)
                    edge_assignments.append({edge.child: child, edge.parent: parent})
            if edge_assignments:
                edges_assignments.append((edge.optional, edge_assignments))
            elif not edge.optional:
                return []
        return edges_assignments

    @staticmethod
    def _merge_edges_assignments(edges_assignments: List[Tuple[bool, List[Dict[str, Word]]]]) \
            -> List[Dict[str, Word]]:
        merges = []
        for edge_is_optional, edge_assignments in edges_assignments:
            new_merges = []
            # we need an empty dictionary for the first cycle to start with
            for merged in (merges if merges else [{}]):
                edge_added = False
                for assignment in edge_assignments:
                    just_merged = GlobalMatcher._try_merge(merged, assignment)
                    if just_merged:
                        edge_added = True
                        new_merges.append(just_merged)
                # an optional edge that couldn't be merged leaves the existing merge as is
                if not edge_added and edge_is_optional:
                    new_merges.append(merged)
            if not new_merges:
                return []
            merges = new_merges

        return merges

    def apply(self, matches: Mapping[str, List[Word]], graph: GraphView) -> Generator[MatchingResult, None, None]:
        # labels captured on a previous graph must not leak into this one
        self.captured_labels = defaultdict(set)
        filtered = self._filter_edge_constraints(matches, graph)
        merges = self._merge_edges_assignments(filtered)

        # a pattern without edge constraints binds its (single) node to each candidate
        if not self.constraint.edges:
            merges = [{name: word} for name, words in matches.items() for word in words]

        for merged_assignment in merges:
            if self._filter_distance_constraints(merged_assignment) and \
                    self._filter_concat_constraints(merged_assignment):
                # keep only required captures
                _ = [merged_assignment.pop(name, None) for name in self.dont_capture_names]
                captured_labels = {(v1, v2): labels for (k1, v1, k2, v2), labels in self.captured_labels.items()
                                   if k1 in merged_assignment and merged_assignment[k1] == v1 and
                                   k2 in merged_assignment and merged_assignment[k2] == v2}
                yield MatchingResult(merged_assignment, captured_labels)


class NodeMatcher:
    def __init__(self, constraints: Sequence[NodeConstraint]):
        # the structural node constraints, by node id, checked after the field matching
        self.no_children = dict()
        self.is_root = dict()
        self.incoming_constraints = dict()
        self.outgoing_constraints = dict()
        self.spec_constraints = dict()
        self.required_nodes = set()
        for constraint in constraints:
            self.no_children[constraint.id] = constraint.no_children
            self.is_root[constraint.id] = constraint.is_root
            self.incoming_constraints[constraint.id] = constraint.incoming_edges
            self.outgoing_constraints[constraint.id] = constraint.outgoing_edges
            self.spec_constraints[constraint.id] = constraint.spec
            if not constraint.optional:
                self.required_nodes.add(constraint.id)

    def _post_local_matcher(self, matched_nodes: Mapping[str, List[Word]], graph: GraphView) \
            -> Mapping[str, List[Word]]:
        # handles incoming and outgoing label constraints (still in node level)
        checked_nodes = defaultdict(list)
        for name, words in matched_nodes.items():
            for word in words:
                if self.no_children[name] and graph.out_edges(word):
                    continue
                if self.is_root[name] and graph.in_edges(word):
                    continue
                if self.outgoing_constraints[name]:
                    if get_matched_labels(self.outgoing_constraints[name], get_labels(graph, parent=word)) is None:
                        continue
                if self.incoming_constraints[name]:
                    if get_matched_labels(self.incoming_constraints[name], get_labels(graph, child=word)) is None:
                        continue
                checked_nodes[name].append(word)
        return checked_nodes

    def _match_nodes(self, graph: GraphView) -> Mapping[str, List[Word]]:
        matched_nodes = defaultdict(list)
        words = graph.vertex_list_sorted()

        for con_name, field_cons in self.spec_constraints.items():
            if not field_cons:
                matched_nodes[con_name] = list(words)
                continue
            for word in words:
                if all(field_con.satisfied(word, get_content_by_field) for field_con in field_cons):
                    matched_nodes[con_name].append(word)

        return matched_nodes

    def apply(self, graph: GraphView) -> Optional[Mapping[str, List[Word]]]:
        # match nodes according to their local features
        matched_nodes = self._match_nodes(graph)

        # then according to their edges
        matched_nodes = self._post_local_matcher(matched_nodes, graph)

        # reverse validate the 'optional' constraint
        if self.required_nodes.difference(matched_nodes.keys()):
            return None

        return matched_nodes


class Match:
    def __init__(self, node_matchers: Mapping[str, NodeMatcher],
                 global_matchers: Mapping[str, GlobalMatcher], graph: GraphView):
        assert node_matchers.keys() == global_matchers.keys()
        self.node_matchers = node_matchers
        self.global_matchers = global_matchers
        self.graph = graph

    def names(self) -> List[str]:
        # return constraint-name list
        return list(self.node_matchers.keys())

    def matches_for(self, name: str) -> Generator[MatchingResult, None, None]:
        matches = self.node_matchers[name].apply(self.graph)
        if matches is None:
            return

        yield from self.global_matchers[name].apply(matches, self.graph)


class NamedConstraint(NamedTuple):
    name: str
    constraint: Pattern


# add NodeConstraints based on the other non-node constraints (optimization step).
def preprocess_constraint(constraint: Pattern) -> Pattern:
    # for each edge store the labels that could be filtered as incoming or outgoing node constraints
    #   in the parent or child accordingly
    outs = defaultdict(list)
    ins = defaultdict(list)
    for edge in constraint.edges:
        # HasNoLabel checks for a missing label between two specific nodes, as a node constraint it would be too harsh
        labels = [label for label in edge.label if not isinstance(label, HasNoLabel)]
        if not labels:
            continue
        for node in constraint.nodes:
            # we dont want to apply a constraint that came from an optional node, on a required node
            if node.id == edge.child and not node.optional:
                outs[edge.parent].extend(labels)
            if node.id == edge.parent and not node.optional:
                ins[edge.child].extend(labels)

    # for each concat store the single words of the concat with their node for a node level WORD constraint
    words = defaultdict(set)
    for concat in constraint.concats:
        zipped_concat = list(zip(*[tuple(t.split("_")) for t in concat.tuple_set]))
        # concats that are negative (not in set) can't be pushed down to the nodes
        if not concat.in_set or not zipped_concat:
            continue
        if isinstance(concat, (WordPair, WordTriplet)):
            words[concat.node1].update(set(zipped_concat[0]))
            words[concat.node2].update(set(zipped_concat[1]))
        if isinstance(concat, WordTriplet):
            words[concat.node3].update(set(zipped_concat[2]))

    # rebuild the constraint (as it is immutable)
    nodes = []
    for node in constraint.nodes:
        incoming_edges = list(node.incoming_edges) + ins.get(node.id, [])
        outgoing_edges = (list(node.outgoing_edges) + outs.get(node.id, [])) if not node.no_children else []
        # a word constraint of a concat narrows an existing WORD field
        word_fields = [s for s in node.spec if s.field == FieldNames.WORD]
        if (len(word_fields) == 0) and (node.id in words):
            word_fields = [Field(FieldNames.WORD, sorted(words[node.id]))]
        spec = [s for s in node.spec if s.field != FieldNames.WORD] + word_fields
        nodes.append(replace(node, spec=spec, incoming_edges=incoming_edges, outgoing_edges=outgoing_edges))
    return replace(constraint, nodes=nodes)


class Matcher:
    def __init__(self, constraints: Sequence[NamedConstraint]):
        self.node_matchers = dict()
        self.global_matchers = dict()
        for constraint in constraints:
            preprocessed_constraint = preprocess_constraint(constraint.constraint)

            self.node_matchers[constraint.name] = NodeMatcher(preprocessed_constraint.nodes)
            self.global_matchers[constraint.name] = GlobalMatcher(preprocessed_constraint)

    # apply the matching process on a given graph
    def __call__(self, graph: GraphView) -> Match:
        return Match(self.node_matchers, self.global_matchers, graph)
