from stanza.models.common.doc import Document
from stanza.models.constituency.parse_tree import Tree as StanzaTree

from udenhance.converter import Convert, ENHANCED
from udenhance.stanza_wrapper import UdEnhanceProcessor, enhance_stanza_doc, parse_stanza_sent, tree_from_stanza

from sentences import COORDINATED_PP, PASSIVE


def make_doc(*sentences):
    return Document([[{"id": i, "text": form, "xpos": tag, "head": head, "deprel": deprel}
                      for i, (form, tag, head, deprel) in enumerate(rows, start=1)] for rows in sentences])


def rendered(deps):
    return {str(dep) for dep in deps}


class TestParseStanzaSent:
    def test_basic_graph(self, catalog):
        doc = make_doc(PASSIVE)
        graph = parse_stanza_sent(doc.sentences[0], catalog)
        assert "nsubj(passed-4, bill-2)" in rendered(graph.typed_dependencies())
        assert graph.get_roots() == [graph.node_by_index(4)]
        assert graph.node_by_index(7).tag == "NNP"

    def test_named_entities(self, catalog):
        doc = make_doc(PASSIVE)
        doc.sentences[0].tokens[6].ner = "S-ORG"
        doc.sentences[0].tokens[0].ner = "O"
        graph = parse_stanza_sent(doc.sentences[0], catalog)
        assert graph.node_by_index(7).ner == "ORG"
        assert graph.node_by_index(1).ner is None


class TestEnhanceStanzaDoc:
    def test_udenhance_dependencies(self, catalog):
        doc = enhance_stanza_doc(make_doc(PASSIVE, COORDINATED_PP), Convert(catalog, ENHANCED))
        first, second = (rendered(sent.udenhance_dependencies) for sent in doc.sentences)
        assert "nmod:agent(passed-4, Senate-7)" in first
        assert "conj:and(France-4, Serbia-7)" in second

    def test_deps_column_untouched(self, catalog):
        doc = enhance_stanza_doc(make_doc(PASSIVE), Convert(catalog, ENHANCED))
        sent = doc.sentences[0]
        assert sent.udenhance_dependencies
        assert not sent.has_enhanced_dependencies()

    def test_processor(self):
        processor = UdEnhanceProcessor(config={"preset": "enhanced++"}, pipeline=None)
        doc = processor.process(make_doc(COORDINATED_PP))
        assert "conj:and(flies-2, flies-2')" in rendered(doc.sentences[0].udenhance_dependencies)

    def test_processor_cancels_passes(self):
        processor = UdEnhanceProcessor(config={"preset": "enhanced++", "funcs_to_cancel": ["add_passive_agent"]},
                                       pipeline=None)
        doc = processor.process(make_doc(PASSIVE))
        out = rendered(doc.sentences[0].udenhance_dependencies)
        assert "nmod:agent(passed-4, Senate-7)" not in out
        assert "nmod:by(passed-4, Senate-7)" in out


class TestTreeFromStanza:
    def test_tree(self):
        stanza_tree = StanzaTree("ROOT", [StanzaTree("S", [
            StanzaTree("NP", [StanzaTree("PRP", [StanzaTree("He")])]),
            StanzaTree("VP", [StanzaTree("VBD", [StanzaTree("left")])])])])
        tree = tree_from_stanza(stanza_tree)
        assert repr(tree) == "(ROOT (S (NP (PRP He)) (VP (VBD left))))"
        assert [leaf.label for leaf in tree.leaves()] == ["He", "left"]
        assert tree.leaves()[0].parent.label == "PRP"

    def test_no_tree(self):
        assert tree_from_stanza(None) is None
