# the enhancement passes, each is a (pattern, transformation) pair applied over the basic dependency graph.
# global nuances:
#   1. the graph is a multi-graph, so a pattern matches every edge between two nodes, not only the first one found.
#   2. patterns are always matched against a snapshot taken right before the transformation runs,
#       so a transformation never iterates over edges it is rewriting.
#   3. passes run in a fixed order, later passes depend on the relations the earlier ones produced.

import logging
import re
from collections import defaultdict
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .constraints import *
from .graph import DependencyGraph
from .graph_token import Word
from .matcher import Matcher, MatchingResult, NamedConstraint
from .relations import Relation, RelationCatalog

logger = logging.getLogger(__name__)

# constants   # TODO - english specific, should come with the relation catalog of the language
two_word_preps_regular = {"across_from", "along_with", "alongside_of", "apart_from", "as_for", "as_from", "as_of", "as_per", "as_to", "aside_from", "based_on", "close_by", "close_to", "contrary_to", "compared_to", "compared_with", "depending_on", "except_for", "exclusive_of", "far_from", "followed_by", "inside_of", "irrespective_of", "next_to", "near_to", "off_of", "out_of", "outside_of", "owing_to", "preliminary_to", "preparatory_to", "previous_to", "prior_to", "pursuant_to", "regardless_of", "subsequent_to", "thanks_to", "together_with"}
two_word_preps_complex = {"apart_from", "as_from", "aside_from", "away_from", "close_by", "close_to", "contrary_to", "far_from", "next_to", "near_to", "out_of", "outside_of", "pursuant_to", "regardless_of", "together_with"}
three_word_preps = {"by_means_of", "in_accordance_with", "in_addition_to", "in_case_of", "in_front_of", "in_lieu_of", "in_place_of", "in_spite_of", "on_account_of", "on_behalf_of", "on_top_of", "with_regard_to", "with_respect_to"}
clause_relations = ["conj", "xcomp", "ccomp", "acl", "advcl", "acl:relcl", "parataxis", "appos", "list"]
quant_mod_3w = ['lot', 'assortment', 'number', 'couple', 'bunch', 'handful', 'litany', 'sheaf', 'slew', 'dozen', 'series', 'variety', 'multitude', 'wad', 'clutch', 'wave', 'mountain', 'array', 'spate', 'string', 'ton', 'range', 'plethora', 'heap', 'sort', 'form', 'kind', 'type', 'version', 'bit', 'pair', 'triple', 'total']
quant_mod_2w = ['lots', 'many', 'several', 'plenty', 'tons', 'dozens', 'multitudes', 'mountains', 'loads', 'pairs', 'tens', 'hundreds', 'thousands', 'millions', 'billions', 'trillions']
quant_mod_2w_det = ['some', 'all', 'both', 'neither', 'everyone', 'nobody', 'one', 'two', 'three', 'four', 'five', 'six', 'seven', 'eight', 'nine', 'ten', 'hundred', 'thousand', 'million', 'billion', 'trillion']
relativizing_words = ["that", "what", "which", "who", "whom", "whose"]
# (cc, next word) -> canonical conjunction
conj_lookahead = {("but", "rather"): "negcc", ("but", "also"): "and", ("if", "not"): "negcc", ("instead", "of"): "negcc",
                  ("rather", "than"): "negcc", ("as", "well"): "and"}
name_entity_types = ["PERSON", "LOCATION"]
punctuation_tags = ["''", "``", "-LRB-", "-RRB-", ".", ":", ","]
noun_pos = ["/NN.*/"]
pron_pos = ["/PRP.*/"]
subj_relations = ["nsubj", "nsubjpass"]

relativizer_re = re.compile(f"(?i:{'|'.join(relativizing_words)})")


@dataclass(frozen=True)
class EnhancementOptions:
    process_multi_word_prepositions: bool = False
    enhance_prepositional_modifiers: bool = True
    enhance_only_nmods: bool = False
    enhance_conjuncts: bool = True
    propagate_dependents: bool = True
    add_referent: bool = True
    add_copy_nodes: bool = False
    demote_quant_mod: bool = False
    add_xsubj: bool = True

    @classmethod
    def from_preset(cls, name: str) -> "EnhancementOptions":
        try:
            return presets[name.lower()]
        except KeyError:
            raise ValueError(f"unknown preset {name!r}, expected one of {sorted(presets)}") from None

    def replace(self, **changes) -> "EnhancementOptions":
        unknown = set(changes).difference(f.name for f in fields(self))
        if unknown:
            raise ValueError(f"unknown enhancement options: {sorted(unknown)}")
        return EnhancementOptions(**{**{f.name: getattr(self, f.name) for f in fields(self)}, **changes})


ENHANCED = EnhancementOptions(False, True, False, True, True, True, False, False, True)
ENHANCED_PLUS_PLUS = EnhancementOptions(True, True, False, True, True, True, True, True, True)
# the legacy collapsed representation: no propagation, no referents and no controlling subjects
COLLAPSED = EnhancementOptions(True, True, True, True, False, False, True, False, False)
presets = {"enhanced": ENHANCED, "enhanced++": ENHANCED_PLUS_PLUS, "collapsed": COLLAPSED}


class ConvTypes(Enum):
    CORRECTION = 1
    MULTI_WORD_PREPS = 2
    QUANT_MOD = 3
    COPY_NODES = 4
    CASE_MARKERS = 5
    CONJUNCTS = 6
    REFERENT = 7
    PROPAGATION = 8
    XSUBJ = 9


ConvFuncSignature = Callable[[DependencyGraph, Optional[List[MatchingResult]], Any], None]


@dataclass
class Conversion:
    conv_type: ConvTypes
    constraint: Optional[Pattern]
    transformation: ConvFuncSignature

    def __post_init__(self):
        self.name = self.transformation.__name__


# groups the (gov, cc, conj) matches by their (gov, cc) pair, keeping every conjunct once
def group_conjuncts(matches: Iterable[MatchingResult]) -> Dict[Tuple[Word, Word], List[Word]]:
    groups = dict()
    for cur_match in matches:
        conjs = groups.setdefault((cur_match.token("gov"), cur_match.token("cc")), [])
        conj = cur_match.token("conj")
        if conj not in conjs:
            conjs.append(conj)
    return {key: sorted(conjs) for key, conjs in sorted(groups.items())}


# unique (child, parent) pairs of the matches, in order
def matched_pairs(matches: Iterable[MatchingResult], child: str, parent: str) -> List[Tuple[Word, Word]]:
    return sorted({(cur_match.token(parent), cur_match.token(child)) for cur_match in matches})


def init_conversions(catalog: RelationCatalog) -> List[Conversion]:
    rel = catalog.__getitem__
    nsubj, nsubjpass, csubj, csubjpass = rel("nsubj"), rel("nsubjpass"), rel("csubj"), rel("csubjpass")
    subjpass_map = {nsubj: nsubjpass, csubj: csubjpass,
                    rel("nsubj:xsubj"): rel("nsubjpass:xsubj"), rel("csubj:xsubj"): rel("csubjpass:xsubj")}
    nmod, acl, advcl, conj = rel("nmod"), rel("acl"), rel("advcl"), rel("conj")
    case, mark, mwe, cop = rel("case"), rel("mark"), rel("mwe"), rel("cop")

    def case_marked_relation(reln: Relation, marker: str) -> Relation:
        # nmod:in + 'on' -> nmod:on, and relations that can't carry a marker are returned as is
        base = reln.base
        if base in (nmod, advcl, acl):
            return catalog.specific(base, marker)
        return reln

    def add_case_markers_to_reln(graph: DependencyGraph, gov: Word, mod: Word, case_markers: Sequence[Word]):
        edge = graph.get_edge(gov, mod)
        if edge is None:
            return
        last_index = None
        marker_parts = []
        for case_marker in case_markers:
            if last_index is None or case_marker.index == last_index + 1:
                marker_parts.append(case_marker.form)
            else:
                # non adjacent markers are never merged into one, each sequence gets a relation of its own
                graph.add_edge(gov, mod, case_marked_relation(edge.relation, "_".join(marker_parts).lower()),
                               is_extra=True)
                marker_parts = [case_marker.form]
            last_index = case_marker.index
        graph.set_relation(edge, case_marked_relation(edge.relation, "_".join(marker_parts).lower()))

    def conj_value(graph: DependencyGraph, cc: Word) -> Relation:
        new_conj = cc.form.lower()
        if new_conj == "not":
            prev_word = graph.node_by_index(cc.index - 1)
            if prev_word is not None and prev_word.form.lower() == "but":
                return catalog.specific(conj, "negcc")
        second_word = graph.node_by_index(cc.index + 1)
        if second_word is None:
            return catalog.specific(conj, cc.form)
        second = second_word.form.lower()
        if (new_conj, second) in conj_lookahead:
            new_conj = conj_lookahead[(new_conj, second)]
        elif (new_conj, second) == ("not", "to"):
            third_word = graph.node_by_index(cc.index + 2)
            if third_word is not None and third_word.form.lower() == "mention":
                new_conj = "and"
        return catalog.specific(conj, new_conj)

    def add_conj_to_reln(graph: DependencyGraph, gov: Word, conj_deps: Sequence[Word], cc: Word):
        for conj_dep in conj_deps:
            edge = graph.get_edge(gov, conj_dep)
            if edge is None:
                continue
            # a conjunct that precedes the coordinator keeps the bare relation, copy nodes always stand after it
            if conj_dep.index >= cc.index or conj_dep.is_copy():
                graph.set_relation(edge, conj_value(graph, cc))

    def create_mwe(graph: DependencyGraph, gov: Word, reln: Relation, words: Sequence[Word]):
        if not graph.get_roots() or gov is None or not words:
            return
        mwe_head = None
        for word in words:
            word_gov = graph.get_parent(word)
            if word_gov is not None:
                graph.remove_edge(graph.get_edge(word_gov, word))
            if mwe_head is None:
                graph.add_edge(gov, word, reln)
                mwe_head = word
            else:
                graph.add_edge(mwe_head, word, mwe)

    def reattach_children(graph: DependencyGraph, old_head: Word, new_head: Word):
        for edge in graph.out_edges_sorted(old_head):
            graph.remove_edge(edge)
            graph.add_edge(new_head, edge.dep, edge.relation, edge.weight, edge.is_extra)

    # This method corrects subjects of verbs for which we identified an auxpass,
    # but didn't identify the subject as passive.
    correct_subj_pass_constraint = Pattern(
        nodes=[
            NodeConstraint(id="gov"),
            NodeConstraint(id="aux", capture=False),
            NodeConstraint(id="subj"),
        ],
        edges=[
            EdgeConstraint(child="aux", parent="gov", label=[HasLabelFromList(["auxpass"])]),
            EdgeConstraint(child="subj", parent="gov", label=[HasLabelFromList(["/(nsubj|csubj).*/"])]),
        ],
    )

    def correct_subj_pass(graph, matches, converter):
        for gov, subj in matched_pairs(matches, "subj", "gov"):
            for edge in graph.get_edges(gov, subj):
                new_rel = subjpass_map.get(edge.relation)
                if new_rel is None:
                    continue
                graph.set_relation(edge, new_rel)

    # Consolidates named entities that were parsed as compounds, for example:
    #   compound(Smith-2, John-1)
    # would be replaced with:
    #   name(John-1, Smith-2)
    # the leftmost word of the name becomes its head, and the other modifiers of the old head move to it.
    process_names_constraint = Pattern(
        nodes=[
            NodeConstraint(id="w1", spec=[Field(FieldNames.ENTITY, name_entity_types)]),
            NodeConstraint(id="w2"),
        ],
        edges=[
            EdgeConstraint(child="w2", parent="w1", label=[HasLabelFromList(["compound"])]),
        ],
    )

    def process_names_helper(graph: DependencyGraph, old_head: Word, name_parts: List[Word]):
        if not name_parts:
            for edge in graph.out_edges(old_head):
                if edge.relation == rel("compound"):
                    graph.remove_edge(edge)
                    graph.add_edge(old_head, edge.dep, nmod, edge.weight, edge.is_extra)
            return

        name_parts = sorted(name_parts)
        # the name must be contiguous, up to punctuation
        for i in range(name_parts[0].index, old_head.index):
            node = graph.node_by_index(i)
            if node is None:
                return
            if node not in name_parts and node.tag not in punctuation_tags:
                return

        gov = graph.get_parent(old_head)
        if gov is None and not graph.is_root(old_head):
            return
        new_head = name_parts[0]
        for child in graph.get_children(old_head):
            old_edge = graph.get_edge(old_head, child)
            if child == new_head:
                if gov is None:
                    graph.add_root(new_head)
                    graph.remove_root(old_head)
                else:
                    gov_edge = graph.get_edge(gov, old_head)
                    graph.add_edge(gov, new_head, gov_edge.relation, gov_edge.weight, gov_edge.is_extra)
                    graph.remove_edge(gov_edge)
                graph.add_edge(new_head, old_head, rel("name"), old_edge.weight, old_edge.is_extra)
            elif child in name_parts:
                graph.add_edge(new_head, child, rel("name"), old_edge.weight, old_edge.is_extra)
            else:
                reln = nmod if old_edge.relation == rel("compound") else old_edge.relation
                graph.add_edge(new_head, child, reln, old_edge.weight, old_edge.is_extra)
            graph.remove_edge(old_edge)

    def process_names(graph, matches, converter):
        # a sentence without any entity tag was never run through a named-entity recognizer
        if not any(word.ner for word in graph.vertices()):
            return
        name_parts = defaultdict(list)
        for cur_match in matches:
            w1, w2 = cur_match.token("w1"), cur_match.token("w2")
            name_parts[w1]  # a head with no same-typed compounds still gets its compounds renamed
            if w2.ner == w1.ner and w2 not in name_parts[w1]:
                name_parts[w1].append(w2)
        for head in sorted(name_parts, key=lambda w: (name_entity_types.index(w.ner.upper()), w)):
            process_names_helper(graph, head, name_parts[head])

    def remove_exact_duplicates(graph, matches, converter):
        graph.delete_duplicate_edges()

    # for example: He is close to me.
    #   advmod(you-6, across-4)
    #   case(you-6, from-5)
    # would be replaced with:
    #   case(you-6, across-4)
    #   mwe(across-4, from-5)
    process_simple_2wp_constraint = Pattern(
        nodes=[
            NodeConstraint(id="w1", no_children=True),
            NodeConstraint(id="w2", no_children=True),
            NodeConstraint(id="gov")],
        edges=[
            EdgeConstraint(child="w1", parent="gov", label=[HasLabelFromList(["case", "advmod"])]),
            EdgeConstraint(child="w2", parent="gov", label=[HasLabelFromList(["case"])])
        ],
        distances=[ExactDistance("w1", "w2", distance=0)],
        concats=[WordPair(two_word_preps_regular, "w1", "w2")]
    )

    def process_simple_2wp(graph, matches, converter):
        for cur_match in matches:
            gov, w1, w2 = cur_match.token("gov"), cur_match.token("w1"), cur_match.token("w2")
            # an earlier match may have already restructured these words
            if not (graph.contains_edge(gov, w1) and graph.contains_edge(gov, w2)):
                continue
            create_mwe(graph, gov, case, [w1, w2])

    # for example: He is close to me.
    # The following relations:
    #   nsubj(close-3, He-1)
    #   cop(close-3, is-2)
    #   root(ROOT-0, close-3)
    #   case(me-5, to-4)
    #   nmod(close-3, me-5)
    # would be replaced with:
    #   nsubj(me-5, He-1)
    #   cop(me-5, is-2)
    #   case(me-5, close-3)
    #   mwe(close-3, to-4)
    #   root(ROOT-0, me-5)
    process_complex_2wp_constraint = Pattern(
        nodes=[
            NodeConstraint(id="w1"),
            NodeConstraint(id="w2", no_children=True),
            NodeConstraint(id="gov2")],
        edges=[
            EdgeConstraint(child="gov2", parent="w1", label=[HasLabelFromList(["nmod"])]),
            EdgeConstraint(child="w2", parent="gov2", label=[HasLabelFromList(["case"])])
        ],
        distances=[ExactDistance("w1", "w2", distance=0)],
        concats=[WordPair(two_word_preps_complex, "w1", "w2")]
    )

    def process_complex_2wp(graph, matches, converter):
        for cur_match in matches:
            w1, w2, gov2 = cur_match.token("w1"), cur_match.token("w2"), cur_match.token("gov2")
            edge = graph.get_edge(w1, gov2)
            if edge is None:
                continue
            if graph.is_root(w1):
                graph.remove_edge(edge)
                graph.remove_root(w1)
                graph.add_root(gov2)
            else:
                gov = graph.get_parent(w1)
                if gov is None:
                    continue
                graph.remove_edge(edge)
                # a clause-joining relation of a copular w1 is kept, otherwise the relation of gov2 is used
                reln = edge.relation
                if graph.has_child_with_reln(w1, cop):
                    gov_reln = graph.reln(gov, w1)
                    if str(gov_reln) in clause_relations:
                        reln = gov_reln
                graph.add_edge(gov, gov2, reln)

            reattach_children(graph, w1, gov2)
            create_mwe(graph, gov2, case, [w1, w2])

    # for example: I am in front of you.
    # The following relations:
    #   nsubj(front-4, I-1)
    #   cop(front-4, am-2)
    #   case(front-4, in-3)
    #   root(ROOT-0, front-4)
    #   case(you-6, of-5)
    #   nmod(front-4, you-6)
    # would be replaced with:
    #   nsubj(you-6, I-1)
    #   cop(you-6, am-2)
    #   case(you-6, in-3)
    #   mwe(in-3, front-4)
    #   mwe(in-3, of-5)
    #   root(ROOT-0, you-6)
    process_3wp_constraint = Pattern(
        nodes=[
            NodeConstraint(id="w1", no_children=True),
            NodeConstraint(id="w2"),
            NodeConstraint(id="w3", no_children=True),
            NodeConstraint(id="gov2")],
        edges=[
            EdgeConstraint(child="gov2", parent="w2", label=[HasLabelFromList(["nmod", "acl", "advcl"])]),
            EdgeConstraint(child="w1", parent="w2", label=[HasLabelFromList(["case"])]),
            EdgeConstraint(child="w3", parent="gov2", label=[HasLabelFromList(["case", "mark"])])
        ],
        distances=[ExactDistance("w1", "w2", distance=0), ExactDistance("w2", "w3", distance=0)],
        concats=[WordTriplet(three_word_preps, "w1", "w2", "w3")]
    )

    def process_3wp(graph, matches, converter):
        for cur_match in matches:
            w1, w2, w3 = cur_match.token("w1"), cur_match.token("w2"), cur_match.token("w3")
            gov2 = cur_match.token("gov2")
            edge = graph.get_edge(w2, gov2)
            if edge is None:
                continue
            marker_reln = case
            if graph.is_root(w2):
                graph.remove_edge(edge)
                graph.remove_root(w2)
                graph.add_root(gov2)
            else:
                gov = graph.get_parent(w2)
                if gov is None:
                    continue
                graph.remove_edge(edge)
                reln = graph.reln(gov, w2)
                # a clausal proxy keeps its relation, and its marker is a mark rather than a case
                if reln == nmod and edge.relation in (acl, advcl):
                    reln = edge.relation
                    marker_reln = mark
                graph.add_edge(gov, gov2, reln)

            reattach_children(graph, w2, gov2)
            create_mwe(graph, gov2, marker_reln, [w1, w2, w3])

    # The following methods correct partitives and light noun constructions,
    # by making it a multi word expression with head of det:qmod.
    # for example: A couple of people.
    # The following relations:
    #   det(couple-2, A-1)
    #   root(ROOT-0, couple-2)
    #   case(people-4, of-3)
    #   nmod(couple-2, people-4)
    # would be replaced with:
    #   det:qmod(people-4, A-1)
    #   mwe(A-1, couple-2,)
    #   mwe(A-1, of-3)
    #   root(ROOT-0, people-4)
    def demote_parent(graph: DependencyGraph, gov: Word, old_head: Word):
        if not graph.is_root(old_head):
            parent = graph.get_parent(old_head)
            if parent is None:
                return
            edge = graph.get_edge(parent, old_head)
            graph.add_edge(parent, gov, edge.relation, edge.weight, edge.is_extra)
            graph.remove_edge(edge)
        else:
            graph.remove_root(old_head)
            graph.add_root(gov)
        graph.add_edge(gov, old_head, catalog.dependent)
        edge = graph.get_edge(old_head, gov)
        if edge is not None:
            graph.remove_edge(edge)

    def demote_per_type(graph, matches, old_head_name, word_names):
        demoted = set()
        for cur_match in matches:
            gov, old_head = cur_match.token("gov"), cur_match.token(old_head_name)
            # every quantity word is demoted once, the first match wins
            if old_head in demoted or not graph.contains_edge(old_head, gov):
                continue
            demoted.add(old_head)
            demote_parent(graph, gov, old_head)
            create_mwe(graph, gov, rel("det:qmod"), [cur_match.token(name) for name in word_names])

    demote_quantificational_modifiers_3w_constraint = Pattern(
        nodes=[
            NodeConstraint(id="w1", spec=[Field(FieldNames.WORD, ["a", "an"])]),
            NodeConstraint(id="w2", spec=[Field(FieldNames.WORD, quant_mod_3w)], outgoing_edges=[HasNoLabel("amod")]),
            NodeConstraint(id="w3", spec=[Field(FieldNames.WORD, ["of"])]),
            NodeConstraint(id="gov", spec=[Field(FieldNames.TAG, noun_pos + pron_pos)]),
        ],
        edges=[
            EdgeConstraint(child="gov", parent="w2", label=[HasLabelFromList(["nmod"])]),
            EdgeConstraint(child="w1", parent="w2", label=[HasLabelFromList(["det"])]),
            EdgeConstraint(child="w3", parent="gov", label=[HasLabelFromList(["case"])]),
        ],
        distances=[ExactDistance("w2", "w3", distance=0)],
    )

    def demote_quantificational_modifiers_3w(graph, matches, converter):
        demote_per_type(graph, matches, "w2", ["w1", "w2", "w3"])

    demote_quantificational_modifiers_2w_constraint = Pattern(
        nodes=[
            NodeConstraint(id="w1", spec=[Field(FieldNames.WORD, quant_mod_2w + ["/[0-9]+s/"])]),
            NodeConstraint(id="w2", spec=[Field(FieldNames.WORD, ["of"])]),
            NodeConstraint(id="gov", spec=[Field(FieldNames.TAG, noun_pos + pron_pos)]),
        ],
        edges=[
            EdgeConstraint(child="gov", parent="w1", label=[HasLabelFromList(["nmod"])]),
            EdgeConstraint(child="w2", parent="gov", label=[HasLabelFromList(["case"])]),
        ],
        distances=[ExactDistance("w1", "w2", distance=0)]
    )

    def demote_quantificational_modifiers_2w(graph, matches, converter):
        demote_per_type(graph, matches, "w1", ["w1", "w2"])

    # some of the ..., all of them, ...
    # a noun must be determined right after the 'of' (some of the boys), a pronoun needs no determiner
    demote_quantificational_modifiers_det_constraint = Pattern(
        nodes=[
            NodeConstraint(id="w1", spec=[Field(FieldNames.WORD, quant_mod_2w_det + ["/[0-9]+/"])]),
            NodeConstraint(id="w2", spec=[Field(FieldNames.WORD, ["of"])]),
            NodeConstraint(id="gov", spec=[Field(FieldNames.TAG, noun_pos + pron_pos)]),
            NodeConstraint(id="det", optional=True),
        ],
        edges=[
            EdgeConstraint(child="gov", parent="w1", label=[HasLabelFromList(["nmod"])]),
            EdgeConstraint(child="w2", parent="gov", label=[HasLabelFromList(["case"])]),
            EdgeConstraint(child="det", parent="gov", label=[HasLabelFromList(["det"])]),
        ],
        distances=[ExactDistance("w1", "w2", distance=0), ExactDistance("w2", "det", distance=0)]
    )

    def demote_quantificational_modifiers_det(graph, matches, converter):
        matches = [cur_match for cur_match in matches
                   if cur_match.token("det") is not None or (cur_match.token("gov").tag or "").startswith("PRP")]
        demote_per_type(graph, matches, "w1", ["w1", "w2"])

    # Expands PPs with conjunctions such as in the sentence
    # "Bill flies to France and from Serbia." by copying the verb
    # that governs the prepositional phrase resulting in the following new or changed relations:
    #   conj:and(flies, flies')
    #   cc(flies, and)
    #   nmod(flies', Serbia)
    # while those where removed:
    #   cc(France-4, and-5)
    #   conj(France-4, Serbia-7)
    expand_pp_conjunctions_constraint = Pattern(
        nodes=[
            NodeConstraint(id="nmod_gov", capture=False),
            NodeConstraint(id="gov", outgoing_edges=[HasLabelFromList(["case"])]),
            NodeConstraint(id="cc"),
            NodeConstraint(id="conj", outgoing_edges=[HasLabelFromList(["case"])]),
        ],
        edges=[
            EdgeConstraint(child="gov", parent="nmod_gov", label=[HasLabelFromList(["nmod", "acl", "advcl"])]),
            EdgeConstraint(child="cc", parent="gov", label=[HasLabelFromList(["cc"])]),
            EdgeConstraint(child="conj", parent="gov", label=[HasLabelFromList(["conj"])]),
        ],
    )

    def expand_pp_conjunction(graph: DependencyGraph, gov: Word, conj_deps: Sequence[Word], cc: Word):
        nmod_gov = graph.get_parent(gov)
        if nmod_gov is None:
            return
        conj_gov = nmod_gov.original if nmod_gov.original is not None else nmod_gov
        reln = graph.reln(nmod_gov, gov)
        new_conj_deps = []
        for conj_dep in conj_deps:
            copy_node = graph.make_copy_node(nmod_gov)
            # conj(nmod-1, nmod-2) becomes nmod(nmod-1-gov-copy, nmod-2)
            edge = graph.get_edge(gov, conj_dep)
            if edge is not None:
                graph.remove_edge(edge)
                graph.add_edge(copy_node, conj_dep, reln)
            graph.add_edge(conj_gov, copy_node, conj)
            new_conj_deps.append(copy_node)

        edge = graph.get_edge(gov, cc)
        if edge is not None:
            graph.remove_edge(edge)
            graph.add_edge(conj_gov, cc, rel("cc"))
        # the conjunction information is added right away, as later on the cc might be ambiguous
        add_conj_to_reln(graph, conj_gov, new_conj_deps, cc)

    def expand_pp_conjunctions(graph, matches, converter):
        for (gov, cc), conj_deps in group_conjuncts(matches).items():
            expand_pp_conjunction(graph, gov, conj_deps, cc)

    # expands prepositions with conjunctions such as in the sentence
    # "Bill flies to and from Serbia." by copying the verb resulting
    # in the following new relations:
    #   conj:and(flies, flies')
    #   nmod:from(flies', Serbia)
    expand_prep_conjunctions_constraint = Pattern(
        nodes=[
            NodeConstraint(id="case_gov", capture=False),
            NodeConstraint(id="gov"),
            NodeConstraint(id="cc"),
            NodeConstraint(id="conj"),
        ],
        edges=[
            EdgeConstraint(child="gov", parent="case_gov", label=[HasLabelFromList(["case"])]),
            EdgeConstraint(child="cc", parent="gov", label=[HasLabelFromList(["cc"])]),
            EdgeConstraint(child="conj", parent="gov", label=[HasLabelFromList(["conj"])]),
        ],
    )

    def expand_prep_conjunction(graph: DependencyGraph, gov: Word, conj_deps: Sequence[Word], cc: Word):
        case_gov = graph.get_parent(gov)
        if case_gov is None:
            return
        case_gov_gov = graph.get_parent(case_gov)
        if case_gov_gov is None:
            return
        conj_gov = case_gov_gov.original if case_gov_gov.original is not None else case_gov_gov
        reln = graph.reln(case_gov_gov, case_gov)
        new_conj_deps = []
        for conj_dep in conj_deps:
            copy_node = graph.make_copy_node(case_gov_gov)
            graph.add_edge(conj_gov, copy_node, conj)
            new_conj_deps.append(copy_node)
            graph.add_edge(copy_node, case_gov, reln, is_extra=True)
            add_case_markers_to_reln(graph, copy_node, case_gov, [conj_dep])
        add_conj_to_reln(graph, conj_gov, new_conj_deps, cc)

    def expand_prep_conjunctions(graph, matches, converter):
        for (gov, cc), conj_deps in group_conjuncts(matches).items():
            expand_prep_conjunction(graph, gov, conj_deps, cc)

    # This conversion adds 'agent' to nmods if it is cased by 'by', and have an auxpass sibling
    add_passive_agent_constraint = Pattern(
        nodes=[
            NodeConstraint(id="gov", outgoing_edges=[HasLabelFromList(["auxpass"])]),
            NodeConstraint(id="mod"),
            NodeConstraint(id="c1", capture=False, spec=[Field(FieldNames.WORD, ["by"])]),
        ],
        edges=[
            EdgeConstraint(child="mod", parent="gov", label=[HasLabelFromList(["nmod"])]),
            EdgeConstraint(child="c1", parent="mod", label=[HasLabelFromList(["case"])]),
        ],
    )

    def add_passive_agent(graph, matches, converter):
        for gov, mod in matched_pairs(matches, "mod", "gov"):
            for edge in graph.get_edges(gov, mod):
                if edge.relation == nmod:
                    graph.set_relation(edge, catalog.specific(nmod, "agent"))

    # These conversions add the case information on the label, longest markers first.
    # Only adjacent markers are joined into a multi-word marker.
    def case_markers_constraint(mod_labels, marker_labels, marker_names):
        nodes = [NodeConstraint(id="gov"), NodeConstraint(id="mod")] + [NodeConstraint(id=name) for name in marker_names]
        edges = [
            EdgeConstraint(child="mod", parent="gov", label=[HasLabelFromList(mod_labels)]),
            EdgeConstraint(child=marker_names[0], parent="mod", label=[HasLabelFromList(marker_labels)]),
        ] + [EdgeConstraint(child=name, parent=marker_names[0], label=[HasLabelFromList(["mwe"])])
             for name in marker_names[1:]]
        return Pattern(nodes=nodes, edges=edges)

    def add_case_markers(graph, matches, marker_names):
        seen = set()
        for cur_match in matches:
            gov, mod = cur_match.token("gov"), cur_match.token("mod")
            case_markers = sorted(cur_match.token(name) for name in marker_names)
            # the same markers are matched once per permutation of the mwe dependents
            key = (gov, mod, tuple(case_markers))
            if key in seen:
                continue
            seen.add(key)
            add_case_markers_to_reln(graph, gov, mod, case_markers)

    nmod_labels, nmod_markers = ["nmod"], ["case"]
    clausal_labels, clausal_markers = ["advcl", "acl"], ["mark", "case"]
    mw3, mw2, single = ["c1", "c2", "c3"], ["c1", "c2"], ["c1"]

    add_case_markers_mw3_nmod_constraint = case_markers_constraint(nmod_labels, nmod_markers, mw3)
    add_case_markers_mw3_clausal_constraint = case_markers_constraint(clausal_labels, clausal_markers, mw3)
    add_case_markers_mw2_nmod_constraint = case_markers_constraint(nmod_labels, nmod_markers, mw2)
    add_case_markers_mw2_clausal_constraint = case_markers_constraint(clausal_labels, clausal_markers, mw2)
    add_case_markers_nmod_constraint = case_markers_constraint(nmod_labels, nmod_markers, single)
    add_case_markers_clausal_constraint = case_markers_constraint(clausal_labels, clausal_markers, single)

    def add_case_markers_mw3_nmod(graph, matches, converter):
        add_case_markers(graph, matches, mw3)

    def add_case_markers_mw3_clausal(graph, matches, converter):
        add_case_markers(graph, matches, mw3)

    def add_case_markers_mw2_nmod(graph, matches, converter):
        add_case_markers(graph, matches, mw2)

    def add_case_markers_mw2_clausal(graph, matches, converter):
        add_case_markers(graph, matches, mw2)

    def add_case_markers_nmod(graph, matches, converter):
        add_case_markers(graph, matches, single)

    def add_case_markers_clausal(graph, matches, converter):
        add_case_markers(graph, matches, single)

    # Adds the type of conjunction to all conjunct relations
    add_conj_info_constraint = Pattern(
        nodes=[
            NodeConstraint(id="gov"),
            NodeConstraint(id="cc"),
            NodeConstraint(id="conj")],
        edges=[
            EdgeConstraint(child="cc", parent="gov", label=[HasLabelFromList(["cc"])]),
            EdgeConstraint(child="conj", parent="gov", label=[HasLabelFromList(["conj"])]),
        ],
    )

    def add_conj_info(graph, matches, converter):
        for (gov, cc), conj_deps in group_conjuncts(matches).items():
            add_conj_to_reln(graph, gov, conj_deps, cc)

    # Look for ref rules for a given word. We look through the children and grandchildren of the
    # acl:relcl dependency, and if any children or grandchildren is a that/what/which/etc word,
    # we take the leftmost one as the dependent for the ref TypedDependency.
    add_ref_constraint = Pattern(
        nodes=[
            NodeConstraint(id="head"),
            NodeConstraint(id="mod"),
        ],
        edges=[
            EdgeConstraint(child="mod", parent="head", label=[HasLabelFromList(["acl:relcl"])]),
        ],
    )

    def add_ref(graph, matches, converter):
        def is_relativizer(word):
            return relativizer_re.fullmatch(word.form) is not None

        for head, mod in matched_pairs(matches, "mod", "head"):
            children = graph.get_children(mod)
            left_child = min((child for child in children if is_relativizer(child)), default=None)
            left_grandchild = min((grandchild for child in children for grandchild in graph.get_children(child)
                                   if is_relativizer(grandchild)), default=None)
            if left_grandchild is not None and (left_child is None or left_grandchild.index < left_child.index):
                new_dep = left_grandchild
            else:
                new_dep = left_child
            if new_dep is not None and not graph.contains_edge(head, new_dep):
                graph.add_edge(head, new_dep, rel("ref"))

    # Then we collapse the referent relation such as follows. e.g.:
    # "The man that I love ... " dobj(love, that) -> ref(man, that) dobj(love, man)
    collapse_referent_constraint = Pattern(
        nodes=[
            NodeConstraint(id="antecedent"),
            NodeConstraint(id="relativizer"),
        ],
        edges=[
            EdgeConstraint(child="relativizer", parent="antecedent", label=[HasLabelFromList(["ref"])]),
        ],
    )

    def collapse_referent(graph, matches, converter):
        snapshot = graph.snapshot()
        for antecedent, relativizer in matched_pairs(matches, "relativizer", "antecedent"):
            for edge in snapshot.in_edges(relativizer):
                # redirecting an edge of the antecedent itself would create a unit cycle
                if edge.relation != rel("ref") and edge.gov != antecedent:
                    graph.remove_edge(edge)
                    graph.add_edge(edge.gov, antecedent, edge.relation, is_extra=True)

    # Propagates the dependents of a conjunct's governor to the conjunct, and the subject of
    # the first conjunct to verbal/adjectival conjuncts that have none.
    # subjects and objects are not propagated between two relative clause heads.
    # NOTE - we propagate the subject as is, but correct its voice (active/passive) according to the conjunct.
    def treat_cc(graph, matches, converter):
        incoming = defaultdict(list)
        subject_map = dict()
        with_passive_aux = set()
        rcmod_heads = set()
        subject_parents = (nsubj, rel("subj"), csubj)
        for edge in graph.edges():
            incoming[edge.dep].append(edge)
            if edge.relation == rel("auxpass"):
                with_passive_aux.add(edge.gov)
            if edge.relation.parent is not None and edge.relation.parent in subject_parents:
                subject_map.setdefault(edge.gov, edge)
            if edge.relation == rel("acl:relcl"):
                rcmod_heads.add(edge.gov)

        for edge in graph.snapshot().edges():
            if edge.relation.base != conj:
                continue
            gov, dep = edge.gov, edge.dep
            for gov_edge in incoming.get(gov, []):
                new_gov, new_rel = gov_edge.gov, gov_edge.relation
                if new_gov == dep or new_rel in (catalog.root, case):
                    continue
                if gov in rcmod_heads and dep in rcmod_heads and new_rel in (rel("dobj"), nsubj):
                    continue
                logger.debug("adding new %s dependency from %s to %s", new_rel, new_gov, dep)
                graph.add_edge(new_gov, dep, new_rel, is_extra=True)

            tag = dep.tag or ""
            if gov in subject_map and tag.startswith(("VB", "JJ")) and dep not in subject_map:
                subj_edge = subject_map[gov]
                relation = subj_edge.relation
                # VB, VBZ, VBP and adjectives are never passive
                definitely_active = tag in ("VB", "VBZ", "VBP") or tag.startswith("JJ")
                if relation == nsubjpass and definitely_active:
                    relation = nsubj
                elif relation == csubjpass and definitely_active:
                    relation = csubj
                elif relation == nsubj and dep in with_passive_aux:
                    relation = nsubjpass
                elif relation == csubj and dep in with_passive_aux:
                    relation = csubjpass
                logger.debug("adding new %s dependency from %s to %s (subj propagation)", relation, dep, subj_edge.dep)
                graph.add_edge(dep, subj_edge.dep, relation, is_extra=True)

    # Add extra nsubj dependencies when collapsing basic dependencies.
    # Some notes:
    # 1. In the general case, we look for an aux modifier under an xcomp
    #   modifier, and assuming there aren't already associated nsubj
    #   dependencies as daughters of the original xcomp dependency, we
    #   add nsubj dependencies for each nsubj daughter of the governor.
    # 2. There is also a special case for "to" words, in which case we add
    #   a dependency if and only if there is no nsubj associated with the
    #   xcomp AND there is no other aux dependency. This accounts for
    #   sentences such as "he decided not to." with no following verb.
    # 3. In general, we find that the objects of the verb are better
    #   for extra nsubj than the original nsubj of the verb.  For example,
    #   "Many investors wrote asking the SEC to require ..."
    #   There is no nsubj of asking, but the dobj, SEC, is the extra nsubj of require.
    add_extra_nsubj_constraint = Pattern(
        nodes=[
            NodeConstraint(id="head"),
            NodeConstraint(id="mod", outgoing_edges=[HasNoLabel(subj) for subj in subj_relations]),
        ],
        edges=[
            EdgeConstraint(child="mod", parent="head", label=[HasLabelFromList(["xcomp"])]),
        ],
    )

    def add_extra_nsubj(graph, matches, converter):
        for head, mod in matched_pairs(matches, "mod", "head"):
            has_aux = any(edge.relation in (rel("aux"), mark) for edge in graph.out_edges(mod))
            is_to = mod.form.lower() == "to"
            if is_to == has_aux:
                continue
            objects = graph.children_with_reln(head, rel("dobj"))
            subjects = sorted({edge.dep for edge in graph.out_edges(head) if edge.relation in (nsubj, nsubjpass)})
            for new_subj in (objects if objects else subjects):
                if not graph.contains_edge(mod, new_subj):
                    graph.add_edge(mod, new_subj, rel("nsubj:xsubj"), is_extra=True)

    conversion_list = [
        Conversion(ConvTypes.CORRECTION, correct_subj_pass_constraint, correct_subj_pass),
        Conversion(ConvTypes.CORRECTION, process_names_constraint, process_names),
        Conversion(ConvTypes.CORRECTION, None, remove_exact_duplicates),
        Conversion(ConvTypes.MULTI_WORD_PREPS, process_simple_2wp_constraint, process_simple_2wp),
        Conversion(ConvTypes.MULTI_WORD_PREPS, process_complex_2wp_constraint, process_complex_2wp),
        Conversion(ConvTypes.MULTI_WORD_PREPS, process_3wp_constraint, process_3wp),
        Conversion(ConvTypes.QUANT_MOD, demote_quantificational_modifiers_3w_constraint, demote_quantificational_modifiers_3w),
        Conversion(ConvTypes.QUANT_MOD, demote_quantificational_modifiers_2w_constraint, demote_quantificational_modifiers_2w),
        Conversion(ConvTypes.QUANT_MOD, demote_quantificational_modifiers_det_constraint, demote_quantificational_modifiers_det),
        Conversion(ConvTypes.COPY_NODES, expand_pp_conjunctions_constraint, expand_pp_conjunctions),
        Conversion(ConvTypes.COPY_NODES, expand_prep_conjunctions_constraint, expand_prep_conjunctions),
        Conversion(ConvTypes.CASE_MARKERS, add_passive_agent_constraint, add_passive_agent),
        Conversion(ConvTypes.CASE_MARKERS, add_case_markers_mw3_nmod_constraint, add_case_markers_mw3_nmod),
        Conversion(ConvTypes.CASE_MARKERS, add_case_markers_mw3_clausal_constraint, add_case_markers_mw3_clausal),
        Conversion(ConvTypes.CASE_MARKERS, add_case_markers_mw2_nmod_constraint, add_case_markers_mw2_nmod),
        Conversion(ConvTypes.CASE_MARKERS, add_case_markers_mw2_clausal_constraint, add_case_markers_mw2_clausal),
        Conversion(ConvTypes.CASE_MARKERS, add_case_markers_nmod_constraint, add_case_markers_nmod),
        Conversion(ConvTypes.CASE_MARKERS, add_case_markers_clausal_constraint, add_case_markers_clausal),
        Conversion(ConvTypes.CONJUNCTS, add_conj_info_constraint, add_conj_info),
        Conversion(ConvTypes.REFERENT, add_ref_constraint, add_ref),
        Conversion(ConvTypes.REFERENT, collapse_referent_constraint, collapse_referent),
        Conversion(ConvTypes.PROPAGATION, None, treat_cc),
        Conversion(ConvTypes.XSUBJ, add_extra_nsubj_constraint, add_extra_nsubj),
        # passes 6-10 may produce subjects of passive verbs, and re-derive existing edges
        Conversion(ConvTypes.CORRECTION, correct_subj_pass_constraint, correct_subj_pass),
        Conversion(ConvTypes.CORRECTION, None, remove_exact_duplicates),
    ]
    return conversion_list


def get_conversion_names(catalog: RelationCatalog) -> List[str]:
    names = []
    for conversion in init_conversions(catalog):
        if conversion.name not in names:
            names.append(conversion.name)
    return names


# ++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++ #


def remove_funcs(conversions: List[Conversion], options: EnhancementOptions, use_name_relation: bool,
                 funcs_to_cancel: Optional[Sequence[str]]) -> List[Conversion]:
    enabled = {
        ConvTypes.CORRECTION: True,
        ConvTypes.MULTI_WORD_PREPS: options.process_multi_word_prepositions,
        ConvTypes.QUANT_MOD: options.demote_quant_mod,
        ConvTypes.COPY_NODES: options.add_copy_nodes,
        ConvTypes.CASE_MARKERS: options.enhance_prepositional_modifiers,
        ConvTypes.CONJUNCTS: options.enhance_conjuncts,
        ConvTypes.REFERENT: options.add_referent,
        ConvTypes.PROPAGATION: options.propagate_dependents,
        ConvTypes.XSUBJ: options.add_xsubj,
    }
    to_cancel = set(funcs_to_cancel) if funcs_to_cancel else set()
    if options.enhance_only_nmods:
        to_cancel.update({'add_case_markers_mw3_clausal', 'add_case_markers_mw2_clausal', 'add_case_markers_clausal'})
    if not use_name_relation:
        to_cancel.add('process_names')

    return [conversion for conversion in conversions
            if enabled[conversion.conv_type] and conversion.name not in to_cancel]


class Convert:
    """Runs the enhancement passes over basic dependency graphs.

    The passes and their patterns are built once, a converter can then be called on any number of
    graphs (one per sentence). A call rewrites the given graph in place and returns it.

    Args:
        catalog: the relations the graphs are labeled with.
        options: which optional passes to run.
        use_name_relation: consolidate PERSON/LOCATION compounds into 'name' relations
            (needs named-entity tags on the words).
        funcs_to_cancel: names of passes to skip, see get_conversion_names.
    """
    def __init__(self, catalog: RelationCatalog, options: EnhancementOptions = ENHANCED_PLUS_PLUS,
                 use_name_relation: bool = False, funcs_to_cancel: Optional[Sequence[str]] = None):
        self.catalog = catalog
        self.options = options
        self.conversions = remove_funcs(init_conversions(catalog), options, use_name_relation, funcs_to_cancel)
        constraints = dict()
        for conversion in self.conversions:
            if conversion.constraint is not None:
                constraints.setdefault(conversion.name, conversion.constraint)
        self.matcher = Matcher([NamedConstraint(name, constraint) for name, constraint in constraints.items()])

    def __call__(self, graph: DependencyGraph) -> DependencyGraph:
        for conversion in self.conversions:
            matches = None
            if conversion.constraint is not None:
                # patterns are anchored at the roots, a graph without a root is left as is
                if not graph.get_roots():
                    logger.debug("skipping %s, the graph has no root", conversion.name)
                    continue
                matches = list(self.matcher(graph.snapshot()).matches_for(conversion.name))
            conversion.transformation(graph, matches, self)
            logger.debug("after %s:\n%s", conversion.name, graph)
        return graph
