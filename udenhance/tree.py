from typing import Iterable, Iterator, List, Mapping, Optional, Protocol, Sequence


class Tree:
    """A constituency tree node.

    Leaves carry the word as their label, pre-terminals carry the part-of-speech tag, and phrasal
    nodes carry the (possibly annotated, e.g. NP-TMP) category.
    """
    def __init__(self, label: str, children: Optional[Sequence["Tree"]] = None):
        self.label = label
        self.children: List["Tree"] = list(children) if children else []
        self.parent: Optional["Tree"] = None
        for child in self.children:
            child.parent = self

    def is_leaf(self) -> bool:
        return not self.children

    def is_preterminal(self) -> bool:
        return len(self.children) == 1 and self.children[0].is_leaf()

    def is_phrasal(self) -> bool:
        return not (self.is_leaf() or self.is_preterminal())

    def basic_category(self) -> str:
        # NP-TMP -> NP, NP=2 -> NP, but -LRB- and -NONE- are kept as is
        if self.label.startswith("-"):
            return self.label
        for i, c in enumerate(self.label):
            if c in "-=" and i > 0:
                return self.label[:i]
        return self.label

    def subtrees(self) -> Iterator["Tree"]:
        """Pre-order iteration over this node and all of its descendants."""
        yield self
        for child in self.children:
            yield from child.subtrees()

    def leaves(self) -> List["Tree"]:
        return [node for node in self.subtrees() if node.is_leaf()]

    def preterminals(self) -> List["Tree"]:
        return [node for node in self.subtrees() if node.is_preterminal()]

    def __iter__(self):
        return iter(self.children)

    def __repr__(self):
        if self.is_leaf():
            return self.label
        return f"({self.label} {' '.join(repr(child) for child in self.children)})"


class TreePatternOracle(Protocol):
    """A tree-pattern matcher (e.g. a tregex implementation).

    `match` yields one mapping per distinct match of the pattern rooted at `node`, from the capture
    names of the pattern to the matched tree nodes. `root` is the root of the whole tree, for patterns
    that look above the match root.
    """
    def compile(self, pattern: str):
        ...

    def match(self, compiled, node: Tree, root: Tree) -> Iterable[Mapping[str, Tree]]:
        ...


class HeadFinder(Protocol):
    def determine_head(self, tree: Tree) -> Optional[Tree]:
        """Return the head child of a phrasal node."""
        ...
