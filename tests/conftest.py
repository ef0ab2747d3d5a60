import pytest

from udenhance.conllu_wrapper import parse_conllu
from udenhance.converter import Convert, ENHANCED_PLUS_PLUS
from udenhance.english_relations import english_catalog


def _rows_to_conllu(rows):
    # (form, tag, head, deprel) per token, the ids are given by the order
    lines = [f"{i}\t{form}\t_\t_\t{tag}\t_\t{head}\t{deprel}\t_\t_" for i, (form, tag, head, deprel) in
             enumerate(rows, start=1)]
    return "\n".join(lines)


@pytest.fixture(scope="session")
def catalog():
    return english_catalog()


@pytest.fixture
def basic_graph(catalog):
    def build(rows):
        graphs, _ = parse_conllu(_rows_to_conllu(rows), catalog)
        return graphs[0]
    return build


@pytest.fixture
def enhance(catalog, basic_graph):
    def run(rows, options=ENHANCED_PLUS_PLUS, **kwargs):
        return Convert(catalog, options, **kwargs)(basic_graph(rows))
    return run


@pytest.fixture
def deps_of():
    def render(graph):
        return {str(dep) for dep in graph.typed_dependencies()}
    return render
