from typing import List, Optional, Sequence, Union

from spacy.language import Language

from .conllu_wrapper import parse_conllu
from .converter import Convert, EnhancementOptions, get_conversion_names as inner_get_conversion_names
from .english_relations import english_catalog
from .extractor import BasicExtractor, WordFilter
from .graph import DependencyGraph
from .graph_token import TypedDependency
from .relations import RelationCatalog
from .spacy_wrapper import parse_spacy_sent, enhance_to_spacy_doc
from .tree import HeadFinder, Tree, TreePatternOracle

Options = Union[str, EnhancementOptions]


def resolve_options(options: Options) -> EnhancementOptions:
    return EnhancementOptions.from_preset(options) if isinstance(options, str) else options


class TreeConverter:
    """Constituency tree in, enhanced typed dependencies out.

    Holds the compiled relation patterns and the enhancement passes, so one instance should serve a
    whole corpus. Sentences share no state, so an instance can be called from several threads as long
    as the oracles themselves can.
    """
    def __init__(self, tree_oracle: TreePatternOracle, head_finder: HeadFinder, options: Options = "enhanced++",
                 catalog: Optional[RelationCatalog] = None, word_filter: Optional[WordFilter] = None,
                 use_name_relation: bool = False, funcs_to_cancel: Optional[Sequence[str]] = None):
        self.catalog = catalog if catalog is not None else english_catalog()
        self.extractor = BasicExtractor(self.catalog, tree_oracle, head_finder, word_filter)
        self.converter = Convert(self.catalog, resolve_options(options), use_name_relation, funcs_to_cancel)

    def basic_graph(self, tree: Optional[Tree]) -> DependencyGraph:
        return self.extractor.extract(tree).graph

    def enhanced_graph(self, tree: Optional[Tree]) -> DependencyGraph:
        return self.converter(self.basic_graph(tree))

    def __call__(self, tree: Optional[Tree]) -> List[TypedDependency]:
        return self.enhanced_graph(tree).typed_dependencies()


def convert_conllu(conllu_text: str, options: Options = "enhanced++", use_name_relation: bool = False,
                   funcs_to_cancel: Optional[Sequence[str]] = None, strict: bool = False) -> List[DependencyGraph]:
    catalog = english_catalog(strict=strict)
    graphs, _ = parse_conllu(conllu_text, catalog)
    con = Convert(catalog, resolve_options(options), use_name_relation, funcs_to_cancel)
    return [con(graph) for graph in graphs]


def convert_spacy_doc(doc, options: Options = "enhanced++", use_name_relation: bool = False,
                      funcs_to_cancel: Optional[Sequence[str]] = None, strict: bool = False,
                      converter: Optional[Convert] = None) -> List[DependencyGraph]:
    if converter is None:
        converter = Convert(english_catalog(strict=strict), resolve_options(options), use_name_relation,
                            funcs_to_cancel)
    converted = [converter(parse_spacy_sent(sent, converter.catalog)) for sent in doc.sents]
    enhance_to_spacy_doc(doc, converted)
    return converted


class Converter:
    def __init__(self, preset="enhanced++", use_name_relation=False, funcs_to_cancel=None, strict=False):
        # make conversions and (more importantly) constraint initialization, a one timer.
        self.converter = Convert(english_catalog(strict=strict), resolve_options(preset), use_name_relation,
                                 funcs_to_cancel)
        self._converted_graphs = []

    def __call__(self, doc):
        self._converted_graphs = convert_spacy_doc(doc, converter=self.converter)
        return doc

    def get_converted_graphs(self):
        return self._converted_graphs


def get_conversion_names():
    return inner_get_conversion_names(english_catalog())


@Language.factory(
   "udenhance_spacy_pipe",
   default_config={"preset": "enhanced++", "use_name_relation": False, "funcs_to_cancel": None, "strict": False},
)
def create_udenhance_spacy_pipe(nlp, name, preset, use_name_relation, funcs_to_cancel, strict):
    return Converter(preset, use_name_relation, funcs_to_cancel, strict)
