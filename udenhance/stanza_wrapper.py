import logging

from stanza.models.common.doc import Sentence
from stanza.pipeline.processor import Processor, register_processor

from .converter import Convert, EnhancementOptions
from .english_relations import english_catalog
from .graph import DependencyGraph
from .graph_token import TokenId, Word
from .relations import RelationCatalog
from .tree import Tree

logger = logging.getLogger(__name__)

# this is here because it needs to happen only once (per import)
Sentence.add_property("udenhance_dependencies", default=None)


def parse_stanza_sent(sent: Sentence, catalog: RelationCatalog) -> DependencyGraph:
    graph = DependencyGraph(catalog)
    words = dict()
    for tok in sent.words:
        # multi-word tokens share their named entity tag
        ner = getattr(tok.parent, "ner", None) if tok.parent is not None else None
        if ner in (None, "O"):
            ner = None
        else:
            ner = ner.split("-", 1)[-1]
        words[tok.id] = Word(TokenId(tok.id), tok.text, tok.xpos or tok.upos, tok.lemma, ner)

    for tok in sent.words:
        word = words[tok.id]
        graph.add_vertex(word)
        if not tok.head:
            graph.add_root(word)
        else:
            graph.add_edge(words[tok.head], word, catalog.value_of(tok.deprel.lower()))
    return graph


def tree_from_stanza(parse_tree) -> Tree:
    """Adapt a stanza constituency tree (the `constituency` of a sentence) to a Tree."""
    if parse_tree is None:
        return None
    return Tree(parse_tree.label, [tree_from_stanza(child) for child in parse_tree.children])


def enhance_stanza_doc(doc, converter: Convert):
    for sent in doc.sentences:
        graph = converter(parse_stanza_sent(sent, converter.catalog))
        sent.udenhance_dependencies = graph.typed_dependencies()
    return doc


@register_processor("udenhance")
class UdEnhanceProcessor(Processor):
    """Adds the enhanced dependencies of every sentence as `sentence.udenhance_dependencies`.

    Configured through the pipeline keyword arguments, e.g. `udenhance_preset="enhanced"`.
    """
    _requires = {'depparse'}
    _provides = {'udenhance'}

    def __init__(self, config, pipeline, device=None):
        self._config = config
        self._pipeline = pipeline
        self._set_up_model(config, pipeline, device)

    def _set_up_model(self, config, pipeline, device):
        options = EnhancementOptions.from_preset(config.get('preset', 'enhanced++'))
        catalog = english_catalog(strict=config.get('strict', False))
        self._converter = Convert(catalog, options, config.get('use_name_relation', False),
                                  config.get('funcs_to_cancel'))
        logger.debug("set up the udenhance processor with %s", options)

    def process(self, doc):
        return enhance_stanza_doc(doc, self._converter)
