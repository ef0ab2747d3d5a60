from dataclasses import dataclass, field
from typing import Optional

from .relations import Relation

ROOT_FORM = "ROOT"


@dataclass(frozen=True)
class TokenId:
    major: int
    minor: int = 0
    token_str: str = field(init=False, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, 'token_str', f"{self.major}.{self.minor}" if self.minor else f"{self.major}")

    def __str__(self):
        return self.token_str

    def __lt__(self, other):
        return self.major < other.major or (self.major == other.major and self.minor < other.minor)


class Word:
    """A node of the dependency graph.

    Two words are the same node iff they share their TokenId, that is their sentence position (major)
    and their copy count (minor). Copies created while expanding coordination keep a reference to the
    word they were copied from in `original`.
    """
    def __init__(self, token_id: TokenId, form: str, tag: Optional[str] = None, lemma: Optional[str] = None,
                 ner: Optional[str] = None, original: Optional["Word"] = None):
        self.token_id = token_id
        self.form = form
        self.tag = tag
        self.lemma = lemma
        self.ner = ner
        self.original = original

    @property
    def index(self) -> int:
        return self.token_id.major

    @property
    def copy_count(self) -> int:
        return self.token_id.minor

    def is_copy(self) -> bool:
        return self.token_id.minor != 0

    def copy(self, copy_count: int) -> "Word":
        # a copy of a copy still points to the word that appears in the sentence
        return Word(TokenId(self.index, copy_count), self.form, self.tag, self.lemma, self.ner,
                    self.original if self.original is not None else self)

    def __eq__(self, other):
        if not isinstance(other, Word):
            return NotImplemented
        return self.token_id == other.token_id

    def __hash__(self):
        return hash(self.token_id)

    # operator overloading: less than
    def __lt__(self, other):
        return self.token_id < other.token_id

    def __str__(self):
        return f"{self.form}-{self.index}" + "'" * self.copy_count

    def __repr__(self):
        return f"Word({self.token_id}, {self.form!r}, {self.tag!r})"


def make_root_word() -> Word:
    return Word(TokenId(0), ROOT_FORM)


@dataclass(frozen=True)
class Edge:
    gov: Word
    dep: Word
    relation: Relation
    weight: float = 0.0
    is_extra: bool = False

    def with_relation(self, relation: Relation) -> "Edge":
        return Edge(self.gov, self.dep, relation, self.weight, self.is_extra)

    def __str__(self):
        return f"{self.relation}({self.gov}, {self.dep})"


@dataclass(frozen=True)
class TypedDependency:
    gov: Word
    dep: Word
    relation: Relation
    extra: bool = False

    def __str__(self):
        return f"{self.relation}({self.gov}, {self.dep})"

    def sort_key(self):
        return self.dep.token_id.major, self.dep.token_id.minor, self.gov.token_id.major, self.gov.token_id.minor, \
            str(self.relation)

    # operator overloading: less than
    def __lt__(self, other):
        return self.sort_key() < other.sort_key()
