import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from math import inf
from typing import Any, Callable, List, Optional, Sequence, Set


class FieldNames(Enum):
    WORD = 0
    LEMMA = 1
    TAG = 2
    ENTITY = 3


def is_regex(value: str) -> bool:
    return len(value) > 1 and value.startswith('/') and value.endswith('/')


def compile_regexes(values: Sequence[str], flags: int = 0) -> List[re.Pattern]:
    return [re.compile(v[1:-1], flags) for v in values if is_regex(v)]


@dataclass(frozen=True)
class Field:
    field: FieldNames
    value: Sequence[str]  # match of one of the strings in a list, '/.../' values are full-matched regexes
    in_sequence: bool = True

    def __post_init__(self):
        # validate value's type specifically because a str would be silently treated as a list of characters
        if not isinstance(self.value, list):
            raise ValueError(f"Expected <class 'list'> got {type(self.value)}")
        object.__setattr__(self, 'value', [v if is_regex(v) else v.lower() for v in self.value])
        object.__setattr__(self, '_regexes', compile_regexes(self.value, re.IGNORECASE))

    def satisfied(self, context: Any, get_content_by_field: Callable[[Any, FieldNames], Optional[str]]) -> bool:
        content = (get_content_by_field(context, self.field) or "").lower()
        found = content in self.value or any(r.fullmatch(content) for r in self._regexes)
        return not (found ^ self.in_sequence)


@dataclass(frozen=True)
class LabelPresence(ABC):
    @abstractmethod
    def satisfied(self, actual_labels: List[str]) -> Optional[Set[str]]:
        pass


@dataclass(frozen=True)
class HasLabelFromList(LabelPresence):
    # has at least one edge with one of the values
    value: Sequence[str]

    def __post_init__(self):
        if not isinstance(self.value, list):
            raise ValueError(f"Expected <class 'list'> got {type(self.value)}")
        object.__setattr__(self, '_regexes', compile_regexes(self.value))

    def satisfied(self, actual_labels: List[str]) -> Optional[Set[str]]:
        # a positive search, so we keep every label that matched one of the values
        matched = {label for label in actual_labels
                   if label in self.value or any(r.fullmatch(label) for r in self._regexes)}
        return matched if matched else None


@dataclass(frozen=True)
class HasNoLabel(LabelPresence):
    # does not have an edge with value
    value: str

    def __post_init__(self):
        object.__setattr__(self, '_regexes', compile_regexes([self.value]))

    def satisfied(self, actual_labels: List[str]) -> Optional[Set[str]]:
        # a negative search, so any matching label fails the constraint
        if any(label == self.value or any(r.fullmatch(label) for r in self._regexes) for label in actual_labels):
            return None
        return set()


@dataclass(frozen=True)
class NodeConstraint:
    id: str  # name of the node, used for retrieving it from a match
    capture: bool = True
    spec: Sequence[Field] = field(default_factory=list)
    optional: bool = False  # an optional node doesn't fail the match when it can't be bound
    incoming_edges: Sequence[LabelPresence] = field(default_factory=list)
    outgoing_edges: Sequence[LabelPresence] = field(default_factory=list)
    no_children: bool = False  # the node must have no outgoing edges
    is_root: bool = False  # the node must have no incoming edges


@dataclass(frozen=True)
class EdgeConstraint:
    child: str
    parent: str
    label: Sequence[LabelPresence]
    optional: bool = field(init=False, default=False)

    def adjust_optionality(self, is_any_opt):
        object.__setattr__(self, 'optional', is_any_opt)


@dataclass(frozen=True)
class Distance(ABC):
    node1: str
    node2: str
    distance: int

    @abstractmethod
    def satisfied(self, calculated_distance: int) -> bool:
        pass


@dataclass(frozen=True)
class ExactDistance(Distance):
    # 0 means adjacent words (node1 right before node2), 1 means exactly one word in between, etc.
    def __post_init__(self):
        if self.distance < 0:
            raise ValueError("Exact distance can't be negative")
        elif self.distance == inf:
            raise ValueError("Exact distance can't be infinity")

    def satisfied(self, calculated_distance: int) -> bool:
        return self.distance == calculated_distance


@dataclass(frozen=True)
class UptoDistance(Distance):
    # infinity means only the order of the two nodes matters
    def __post_init__(self):
        if self.distance < 0:
            raise ValueError("'up-to' distance can't be negative")

    def satisfied(self, calculated_distance: int) -> bool:
        return 0 <= calculated_distance <= self.distance


@dataclass(frozen=True)
class WordTuple(ABC):
    # the lower-cased forms of the nodes, joined by '_', must (or must not) be in the set
    tuple_set: Set[str]

    def __post_init__(self):
        if not isinstance(self.tuple_set, (set, frozenset)):
            raise ValueError(f"Expected <class 'set'> got {type(self.tuple_set)}")

    @property
    def in_set(self):
        raise NotImplementedError

    @abstractmethod
    def get_node_names(self) -> Sequence[str]:
        pass

    def satisfied(self, joined_words: str) -> bool:
        return not ((joined_words in self.tuple_set) ^ self.in_set)


@dataclass(frozen=True)
class WordPair(WordTuple):
    node1: str
    node2: str
    in_set: bool = True

    def get_node_names(self) -> Sequence[str]:
        return [self.node1, self.node2]


@dataclass(frozen=True)
class WordTriplet(WordTuple):
    node1: str
    node2: str
    node3: str
    in_set: bool = True

    def get_node_names(self) -> Sequence[str]:
        return [self.node1, self.node2, self.node3]


@dataclass(frozen=True)
class Pattern:
    """A declarative graph pattern: named nodes, the labeled edges between them, and word-level restrictions."""
    nodes: Sequence[NodeConstraint] = field(default_factory=list)
    edges: Sequence[EdgeConstraint] = field(default_factory=list)
    distances: Sequence[Distance] = field(default_factory=list)
    concats: Sequence[WordTuple] = field(default_factory=list)

    def __post_init__(self):
        names = [node.id for node in self.nodes]
        names_set = set(names)
        if len(names) != len(names_set):
            raise ValueError("used same name twice")

        used_names = set()
        for edge in self.edges:
            used_names.update({edge.child, edge.parent})
        for dist in self.distances:
            used_names.update({dist.node1, dist.node2})
        for concat in self.concats:
            used_names.update(concat.get_node_names())
        if used_names.difference(names_set):
            raise ValueError("used undefined names")

        by_name = {node.id: node for node in self.nodes}
        for edge in self.edges:
            if by_name[edge.parent].no_children:
                raise ValueError(
                    "Found an edge constraint with a parent node that already has a no_children constraint")
            if by_name[edge.child].is_root:
                raise ValueError(
                    "Found an edge constraint with a child node that already has a is_root constraint")
        for node in self.nodes:
            if (node.no_children and node.outgoing_edges) or (node.is_root and node.incoming_edges):
                raise ValueError(
                    "Found a node with a no_children/is_root constraint and outgoing_edges/incoming_edges constraint")

        for edge in self.edges:
            edge.adjust_optionality(by_name[edge.child].optional or by_name[edge.parent].optional)


# usage example, a passive clause with an optional by-agent:
#
# Pattern(
#     nodes=[
#         NodeConstraint(id="predicate"),
#         NodeConstraint(id="subjpass"),
#         NodeConstraint(id="agent", optional=True),
#         NodeConstraint(id="by", optional=True, spec=[Field(FieldNames.WORD, ["by"])])],
#     edges=[
#         EdgeConstraint(child="subjpass", parent="predicate", label=[HasLabelFromList(["/.subjpass/"])]),
#         EdgeConstraint(child="agent", parent="predicate", label=[HasLabelFromList(["/nmod(:agent)?/"])]),
#         EdgeConstraint(child="by", parent="agent", label=[HasLabelFromList(["case"])]),
#     ]
# )
