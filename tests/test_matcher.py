import math

from udenhance.constraints import *
from udenhance.matcher import *

from sentences import CONTROL, PASSIVE


def try_helper(try_code, exception_str, exception):
    try:
        try_code()
        assert False
    except exception as e:
        assert str(e) == exception_str


def match_all(graph, constraint, name="constraint"):
    matcher = Matcher([NamedConstraint(name, constraint)])
    return list(matcher(graph.snapshot()).matches_for(name))


class TestConstraints:
    def test_has_label_from_list(self):
        label_con = HasLabelFromList(['/nmod.*/', 'nsubj'])
        assert {"nmod", "nmod:of", "nsubj"} == \
               label_con.satisfied(["bla_nmod", "nmod", "nmod:of", "nsubj", "nsubjpass"])
        assert label_con.satisfied(["bla_nmod", "nsubjpass"]) is None

    def test_exact_label_is_not_a_prefix(self):
        assert HasLabelFromList(["nmod"]).satisfied(["nmod:tmod", "nmod:in"]) is None

    def test_has_no_label(self):
        no_label_con1 = HasNoLabel('/nmod.*/')
        no_label_con2 = HasNoLabel('nsubj')
        assert no_label_con1.satisfied(["bla_nmod", "nsubj", "nsubjpass"]) == set()
        assert no_label_con2.satisfied(["bla_nmod", "nmod", "nmod:of", "nsubjpass"]) == set()
        assert no_label_con1.satisfied(["bla_nmod", "nmod:of", "nsubj"]) is None
        assert no_label_con2.satisfied(["bla_nmod", "nsubj", "nsubjpass"]) is None

    def test_field(self):
        word_field = Field(FieldNames.WORD, ["By", "/[0-9]+s/"])
        not_tag_field = Field(FieldNames.TAG, ["VB", "JJ"], in_sequence=False)
        assert word_field.satisfied("by", lambda content, _: content)
        assert word_field.satisfied("1990s", lambda content, _: content)
        assert not word_field.satisfied("1990", lambda content, _: content)
        assert not not_tag_field.satisfied("VB", lambda content, _: content)
        assert not_tag_field.satisfied("NN", lambda content, _: content)
        try_helper(lambda: Field(FieldNames.WORD, "by"), "Expected <class 'list'> got <class 'str'>", ValueError)

    def test_exact_distance(self):
        dist0 = ExactDistance('tok1', 'tok2', 0)
        dist1 = ExactDistance('tok1', 'tok2', 1)
        assert dist0.satisfied(0) and not dist0.satisfied(1)
        assert dist1.satisfied(1) and not dist1.satisfied(0)
        try_helper(lambda: ExactDistance('tok1', 'tok2', -1), "Exact distance can't be negative", ValueError)
        try_helper(
            lambda: ExactDistance('tok1', 'tok2', math.inf), "Exact distance can't be infinity", ValueError)

    def test_up_to_distance(self):
        dist0 = UptoDistance('tok1', 'tok2', 0)
        dist1 = UptoDistance('tok1', 'tok2', 1)
        dist_inf = UptoDistance('tok1', 'tok2', math.inf)
        assert dist0.satisfied(0) and not dist0.satisfied(1)
        assert dist1.satisfied(0) and dist1.satisfied(1)
        assert dist_inf.satisfied(0) and dist_inf.satisfied(1000)
        assert not dist_inf.satisfied(-1)
        try_helper(lambda: UptoDistance('tok1', 'tok2', -1), "'up-to' distance can't be negative", ValueError)

    def test_word_tuple(self):
        pair_in = WordPair({"bla1_bla2"}, "tok1", "tok2", True)
        pair_not_in = WordPair({"bla1_bla2"}, "tok1", "tok2", False)
        triplet_in = WordTriplet({"bla1_bla2_bla3"}, "tok1", "tok2", "tok3", True)
        triplet_not_in = WordTriplet({"bla1_bla2_bla3"}, "tok1", "tok2", "tok3", False)
        words = {"tok1": "bla1", "tok2": "bla2", "tok3": "bla3"}
        flipped_words = {"tok1": "bla2", "tok2": "bla1", "tok3": "bla3"}

        for word_tuple in [pair_in, pair_not_in, triplet_in, triplet_not_in]:
            assert not (word_tuple.in_set ^
                        word_tuple.satisfied("_".join(words[w] for w in word_tuple.get_node_names())))
            assert (word_tuple.in_set ^
                    word_tuple.satisfied("_".join(flipped_words[w] for w in word_tuple.get_node_names())))

    def test_pattern(self):
        try_helper(
            lambda: Pattern(nodes=[NodeConstraint("clashed_name"), NodeConstraint("clashed_name")]),
            "used same name twice", ValueError)
        try_helper(
            lambda: Pattern(edges=[EdgeConstraint("name1", "name2", [])]), "used undefined names", ValueError)
        try_helper(
            lambda: Pattern(distances=[ExactDistance("name1", "name2", 0), UptoDistance("name1", "name2", 0)]),
            "used undefined names", ValueError)
        try_helper(
            lambda: Pattern(concats=[WordPair({"bla1_bla2"}, "name1", "name2")]), "used undefined names", ValueError)
        try_helper(
            lambda: Pattern(nodes=[NodeConstraint("no_child", no_children=True)],
                            edges=[EdgeConstraint("no_child", "no_child", [])]),
            "Found an edge constraint with a parent node that already has a no_children constraint", ValueError)
        try_helper(
            lambda: Pattern(nodes=[NodeConstraint("no_parent", is_root=True)],
                            edges=[EdgeConstraint("no_parent", "no_parent", [])]),
            "Found an edge constraint with a child node that already has a is_root constraint", ValueError)
        try_helper(
            lambda: Pattern(nodes=[NodeConstraint("no_child", no_children=True,
                                                  outgoing_edges=[HasLabelFromList([""])])]),
            "Found a node with a no_children/is_root constraint and outgoing_edges/incoming_edges constraint",
            ValueError)

    def test_edge_optionality(self):
        pattern = Pattern(nodes=[NodeConstraint("a"), NodeConstraint("b", optional=True), NodeConstraint("c")],
                          edges=[EdgeConstraint("b", "a", [HasLabelFromList(["x"])]),
                                 EdgeConstraint("c", "a", [HasLabelFromList(["y"])])])
        assert [edge.optional for edge in pattern.edges] == [True, False]


class TestGlobalMatcher:
    def test_get_matched_labels(self):
        assert {"nmod:of", "bla"} == get_matched_labels(
            [HasLabelFromList(["/nmod.*/", "nsubj", "bla"]), HasNoLabel("dobj")], ["nmod:of", "bla"])
        assert set() == get_matched_labels([HasNoLabel("dobj")], ["nsubjpass"])
        assert get_matched_labels(
            [HasLabelFromList(["/nmod.*/", "nsubj", "bla"]), HasNoLabel("dobj")], ["nsubjpass"]) is None
        assert get_matched_labels(
            [HasLabelFromList(["/nmod.*/", "nsubj", "bla"]), HasNoLabel("dobj")], ["nsubj", "dobj"]) is None

    def test_try_merge(self):
        assert GlobalMatcher._try_merge({"a": 1, "b": 2, "c": 3}, {"b": 2, "c": 3, "d": 4}) == \
            {"a": 1, "b": 2, "c": 3, "d": 4}
        assert GlobalMatcher._try_merge({"a": 1, "b": 2, "c": 3}, {"b": 4, "c": 3, "d": 4}) == {}
        # two names can't be bound to the same word
        assert GlobalMatcher._try_merge({"a": 1}, {"b": 1}) == {}

    def test_merge_edges_assignments(self):
        # no edges_assignments
        assert GlobalMatcher._merge_edges_assignments([]) == []
        # big unsuccessful merge
        assert GlobalMatcher._merge_edges_assignments([
            (False, [{"a": 1, "b": 2}, {"a": 1, "b": 3}, {"a": 4, "b": 5}]),
            (False, [{"b": 3, "c": 6}, {"b": 5, "c": 8}, {"b": 7, "c": 9}]),
            (False, [{"e": 100, "f": 200}]),
            (False, [{"c": 10, "d": 11}, {"c": 10, "d": 12}, {"c": 1, "d": 2}])]) == []
        # big successful merge
        assert GlobalMatcher._merge_edges_assignments([
            (False, [{"a": 1, "b": 2}, {"a": 1, "b": 3}, {"a": 4, "b": 5}]),
            (False, [{"b": 3, "c": 6}, {"b": 5, "c": 8}, {"b": 5, "c": 7}, {"b": 7, "c": 9}]),
            (False, [{"e": 100, "f": 200}]),
            (False, [{"c": 6, "d": 11}, {"c": 6, "d": 2}, {"c": 8, "d": 1000}, {"c": 10, "d": 12}, {"c": 1, "d": 2}])]) == \
            [{"a": 1, "b": 3, "c": 6, "d": 11, "e": 100, "f": 200},
             {"a": 1, "b": 3, "c": 6, "d": 2, "e": 100, "f": 200},
             {"a": 4, "b": 5, "c": 8, "d": 1000, "e": 100, "f": 200}]
        # an optional edge that doesn't merge keeps the existing merge
        assert GlobalMatcher._merge_edges_assignments([
            (False, [{"a": 1, "b": 2}]),
            (True, [{"a": 5, "c": 6}])]) == [{"a": 1, "b": 2}]

    def test_filter_distance_constraints(self, basic_graph):
        graph = basic_graph(CONTROL)
        he, wanted, to = graph.node_by_index(1), graph.node_by_index(2), graph.node_by_index(3)
        gm = GlobalMatcher(Pattern(nodes=[NodeConstraint("tok1"), NodeConstraint("tok2"),
                                          NodeConstraint("tok3", optional=True)],
                                   distances=[ExactDistance("tok1", "tok2", 0), ExactDistance("tok1", "tok3", 0)]))
        assert gm._filter_distance_constraints({"tok1": he, "tok2": wanted})
        assert not gm._filter_distance_constraints({"tok1": he, "tok2": to})
        assert not gm._filter_distance_constraints({"tok1": wanted, "tok2": he})

    def test_filter_concat_constraints(self, basic_graph):
        graph = basic_graph(CONTROL)
        he, wanted, to = graph.node_by_index(1), graph.node_by_index(2), graph.node_by_index(3)
        gm = GlobalMatcher(Pattern(nodes=[NodeConstraint("tok1"), NodeConstraint("tok2"),
                                          NodeConstraint("tok3", optional=True)],
                                   concats=[WordPair({"he_wanted"}, "tok1", "tok2"),
                                            WordPair({"he_to"}, "tok1", "tok3")]))
        assert gm._filter_concat_constraints({"tok1": he, "tok2": wanted})
        assert not gm._filter_concat_constraints({"tok1": he, "tok2": to})


class TestMatcher:
    def test_sanity(self, basic_graph):
        graph = basic_graph(CONTROL)
        matches = match_all(graph, Pattern(
            nodes=[NodeConstraint("gov"), NodeConstraint("mod", spec=[Field(FieldNames.TAG, ["/VB.*/"])])],
            edges=[EdgeConstraint("mod", "gov", [HasLabelFromList(["xcomp"])])]))
        assert len(matches) == 1
        wanted, go = graph.node_by_index(2), graph.node_by_index(4)
        assert matches[0].token("gov") == wanted
        assert matches[0].token("mod") == go
        assert matches[0].edge(go, wanted) == {"xcomp"}

    def test_labels_are_full_relation_names(self, basic_graph):
        rows = [("He", "PRP", 2, "nsubj"), ("left", "VBD", 0, "root"), ("today", "NN", 2, "nmod:tmod")]
        graph = basic_graph(rows)
        exact = Pattern(nodes=[NodeConstraint("gov"), NodeConstraint("mod")],
                        edges=[EdgeConstraint("mod", "gov", [HasLabelFromList(["nmod"])])])
        regex = Pattern(nodes=[NodeConstraint("gov"), NodeConstraint("mod")],
                        edges=[EdgeConstraint("mod", "gov", [HasLabelFromList(["/nmod(:.*)?/"])])])
        assert match_all(graph, exact) == []
        assert [m.token("mod").form for m in match_all(graph, regex)] == ["today"]

    def test_optional_node(self, basic_graph):
        graph = basic_graph(PASSIVE)
        pattern = Pattern(
            nodes=[NodeConstraint("predicate"), NodeConstraint("subj"),
                   NodeConstraint("agent", optional=True), NodeConstraint("obj", optional=True)],
            edges=[EdgeConstraint("subj", "predicate", [HasLabelFromList(["/nsubj.*/"])]),
                   EdgeConstraint("agent", "predicate", [HasLabelFromList(["nmod"])]),
                   EdgeConstraint("obj", "predicate", [HasLabelFromList(["dobj"])])])
        matches = match_all(graph, pattern)
        assert len(matches) == 1
        assert matches[0].token("agent").form == "Senate"
        assert matches[0].token("obj") is None

    def test_no_children_and_outgoing(self, basic_graph):
        graph = basic_graph(PASSIVE)
        leaves = match_all(graph, Pattern(nodes=[NodeConstraint("leaf", no_children=True)]))
        assert sorted(m.token("leaf").index for m in leaves) == [1, 3, 5, 6, 8]
        passives = match_all(graph, Pattern(
            nodes=[NodeConstraint("gov", outgoing_edges=[HasLabelFromList(["auxpass"])])]))
        assert [m.token("gov").form for m in passives] == ["passed"]

    def test_capture(self, basic_graph):
        graph = basic_graph(PASSIVE)
        matches = match_all(graph, Pattern(
            nodes=[NodeConstraint("gov"), NodeConstraint("aux", capture=False)],
            edges=[EdgeConstraint("aux", "gov", [HasLabelFromList(["auxpass"])])]))
        assert len(matches) == 1
        assert matches[0].token("aux") is None
        assert matches[0].token("gov").form == "passed"

    def test_distance_and_concat(self, basic_graph):
        graph = basic_graph(PASSIVE)
        pattern = Pattern(
            nodes=[NodeConstraint("w1"), NodeConstraint("w2")],
            edges=[EdgeConstraint("w1", "w2", [HasLabelFromList(["det"])])],
            distances=[ExactDistance("w1", "w2", 0)],
            concats=[WordPair({"the_bill", "the_senate"}, "w1", "w2")])
        assert sorted(m.token("w2").form for m in match_all(graph, pattern)) == ["Senate", "bill"]
        far = Pattern(
            nodes=[NodeConstraint("w1"), NodeConstraint("w2")],
            edges=[EdgeConstraint("w1", "w2", [HasLabelFromList(["case"])])],
            distances=[ExactDistance("w1", "w2", 0)])
        # "the" sits between by-5 and Senate-7
        assert match_all(graph, far) == []

    def test_matches_are_taken_on_the_given_graph(self, basic_graph, catalog):
        graph = basic_graph(CONTROL)
        snapshot = graph.snapshot()
        wanted, go = graph.node_by_index(2), graph.node_by_index(4)
        graph.set_relation(graph.get_edge(wanted, go), catalog["ccomp"])
        pattern = Pattern(nodes=[NodeConstraint("gov"), NodeConstraint("mod")],
                          edges=[EdgeConstraint("mod", "gov", [HasLabelFromList(["xcomp"])])])
        matcher = Matcher([NamedConstraint("xcomp", pattern)])
        assert len(list(matcher(snapshot).matches_for("xcomp"))) == 1
        assert len(list(matcher(graph).matches_for("xcomp"))) == 0

    def test_names(self):
        pattern = Pattern(nodes=[NodeConstraint("a")])
        matcher = Matcher([NamedConstraint("first", pattern), NamedConstraint("second", pattern)])
        assert matcher(None).names() == ["first", "second"]


def test_preprocess_constraint():
    ret = preprocess_constraint(Pattern(
        nodes=[NodeConstraint("tok1"), NodeConstraint("tok2"), NodeConstraint("tok3")],
        edges=[EdgeConstraint("tok1", "tok2", [HasLabelFromList(["nsubj"]), HasNoLabel("dobj")]),
               EdgeConstraint("tok2", "tok3", [HasLabelFromList(["nmod"]), HasNoLabel("xcomp")])],
        concats=[WordPair({"tok1_tok3"}, "tok1", "tok3"), WordTriplet({"tok2_tok1_tok3"}, "tok2", "tok1", "tok3")]))
    assert [node.id for node in ret.nodes] == ["tok1", "tok2", "tok3"]
    assert ret.nodes[0].incoming_edges[0].value == ["nsubj"]
    assert ret.nodes[1].outgoing_edges[0].value == ["nsubj"]
    assert ret.nodes[1].incoming_edges[0].value == ["nmod"]
    assert ret.nodes[2].outgoing_edges[0].value == ["nmod"]
    # HasNoLabel is never pushed down to the nodes
    assert all(not isinstance(label, HasNoLabel) for node in ret.nodes for label in node.incoming_edges)
    for node, word in zip(ret.nodes, ["tok1", "tok2", "tok3"]):
        assert node.spec[0].field == FieldNames.WORD
        assert node.spec[0].value == [word]
