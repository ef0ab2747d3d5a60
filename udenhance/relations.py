import re
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from .exceptions import UnknownRelationError

logger = logging.getLogger(__name__)

SEPARATOR = ":"
ROOT_NAME = "root"
DEPENDENT_NAME = "dep"


class ComparisonMode(Enum):
    EXACT = 1
    CASE_INSENSITIVE = 2


@dataclass(frozen=True, eq=False)
class Relation:
    name: str
    specific: Optional[str] = None
    parent: Optional["Relation"] = field(default=None, repr=False)
    long_name: str = field(default="", repr=False)
    # regex over the basic category of a tree node, the relation is looked for only under matching nodes
    applies_to: Optional[str] = field(default=None, repr=False)
    target_patterns: Tuple[str, ...] = field(default=(), repr=False)
    comparison_mode: ComparisonMode = field(default=ComparisonMode.EXACT, repr=False)
    rel_str: str = field(init=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, 'rel_str', self.name if self.specific is None else f"{self.name}{SEPARATOR}{self.specific}")
        object.__setattr__(self, 'target_patterns', tuple(self.target_patterns))
        object.__setattr__(self, '_applies_re', re.compile(self.applies_to) if self.applies_to else None)

    def __str__(self):
        return self.rel_str

    def __eq__(self, other):
        if not isinstance(other, Relation):
            return NotImplemented
        if ComparisonMode.CASE_INSENSITIVE in (self.comparison_mode, other.comparison_mode):
            return self.rel_str.lower() == other.rel_str.lower()
        return self.name == other.name and self.specific == other.specific

    def __hash__(self):
        # lower-cased so that both comparison modes agree on hashing
        return hash(self.rel_str.lower())

    # operator overloading: less than
    def __lt__(self, other):
        return self.rel_str < other.rel_str

    @property
    def base(self) -> "Relation":
        """The relation without its specific parameter (nmod:in -> nmod)."""
        if self.specific is not None and self.parent is not None and self.parent.name == self.name:
            return self.parent
        return self

    def is_applicable(self, category: str) -> bool:
        return self._applies_re is not None and self._applies_re.fullmatch(category) is not None

    def is_ancestor(self, other: "Relation") -> bool:
        """True if this relation equals other or is one of its transitive parents."""
        while other is not None:
            if self == other:
                return True
            other = other.parent
        return False

    def with_mode(self, comparison_mode: ComparisonMode) -> "Relation":
        return Relation(self.name, self.specific, self.parent, self.long_name, self.applies_to,
                        self.target_patterns, comparison_mode)


class RelationCatalog:
    """An immutable hierarchy of grammatical relations.

    The catalog is built once and can be shared between threads, nothing in it is mutated after construction.
    Parameterized relations (e.g. nmod:in) are not stored, they are created on demand with `specific`
    and compare equal to any other instance with the same name and specific.

    Args:
        relations: the declared relations, in priority order. Must contain 'root' and 'dep'.
        strict: when True, `value_of` raises UnknownRelationError instead of synthesizing a relation.
    """
    def __init__(self, relations: Sequence[Relation], strict: bool = False):
        self._relations = tuple(relations)
        self._by_str: Dict[str, Relation] = dict()
        for rel in self._relations:
            self._by_str.setdefault(rel.rel_str.lower(), rel)
        self.strict = strict
        if ROOT_NAME not in self._by_str or DEPENDENT_NAME not in self._by_str:
            raise ValueError(f"a catalog must declare both '{ROOT_NAME}' and '{DEPENDENT_NAME}'")
        self.root = self._by_str[ROOT_NAME]
        self.dependent = self._by_str[DEPENDENT_NAME]

    def __iter__(self) -> Iterator[Relation]:
        return iter(self._relations)

    def __len__(self):
        return len(self._relations)

    def __contains__(self, rel_str: str):
        return rel_str.lower() in self._by_str

    def __getitem__(self, rel_str: str) -> Relation:
        rel = self.lookup(rel_str)
        if rel is None:
            raise UnknownRelationError(f"unknown relation: {rel_str}")
        return rel

    def priority(self, rel: Relation) -> int:
        # declaration order, parameterized relations share the priority of their base
        for i, declared in enumerate(self._relations):
            if declared == rel:
                return i
        return len(self._relations) + (self.priority(rel.parent) if rel.parent is not None else 0)

    def lookup(self, name: str, specific: Optional[str] = None) -> Optional[Relation]:
        """Exact lookup of a declared relation, returns None when there is no such relation."""
        rel_str = name if specific is None else f"{name}{SEPARATOR}{specific}"
        return self._by_str.get(rel_str.lower())

    def specific(self, base: Relation, specific: str) -> Relation:
        """Return the `specific` member of the family of `base` (e.g. nmod + 'in' -> nmod:in)."""
        base = base.base
        declared = self.lookup(base.name, specific)
        if declared is not None:
            return declared
        return Relation(base.name, specific, parent=base, long_name=base.long_name,
                        comparison_mode=base.comparison_mode)

    def value_of(self, rel_str: str) -> Relation:
        """Resolve a relation from its string representation.

        Unknown strings are split on the first separator into a base name and a specific parameter,
        and a synthetic relation is returned (unless the catalog is strict).
        """
        rel = self.lookup(rel_str)
        if rel is not None:
            return rel
        if self.strict:
            raise UnknownRelationError(f"unknown relation: {rel_str}")

        name, _, specific = rel_str.partition(SEPARATOR)
        if not name:
            name, specific = rel_str, ""
        base = self.lookup(name)
        if base is None:
            logger.warning("unknown relation %r, treating it as a kind of %s", rel_str, self.dependent)
            base = Relation(name, parent=self.dependent)
            if not specific:
                return base
        elif not specific:
            return base
        return self.specific(base, specific)

    def is_ancestor(self, ancestor: Relation, rel: Relation) -> bool:
        return ancestor.is_ancestor(rel)

    def ancestors(self, rel: Relation) -> List[Relation]:
        ret = []
        rel = rel.parent
        while rel is not None:
            ret.append(rel)
            rel = rel.parent
        return ret
