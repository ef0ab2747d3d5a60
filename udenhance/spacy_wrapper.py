from typing import Any, Dict, List, Sequence

from spacy.tokens import Doc, Span
from spacy.tokens.graph import Graph

from .graph import DependencyGraph
from .graph_token import TokenId, Word
from .relations import RelationCatalog

JsonObject = Dict[str, Any]
GRAPH_NAME = "udenhance"


# this is here because it needs to happen only once (per import)
Doc.set_extension("enhanced_graphs_per_sent", default=None)
Doc.set_extension("added_nodes", default=None)


def get_enhanced(doc: Doc) -> List[List[JsonObject]]:
    """The enhanced edges of each sentence, copy nodes are given by their display string."""
    ret = []
    for i, (graph, sent) in enumerate(zip(doc._.enhanced_graphs_per_sent or [], doc.sents)):
        added = doc._.added_nodes[i]
        ret.append([])
        for edge in graph.edges:
            head_i, tail_i = edge.head.i, edge.tail.i
            ret[i].append({
                "head": added[head_i] if head_i in added else doc[sent.start + head_i],
                "tail": added[tail_i] if tail_i in added else doc[sent.start + tail_i],
                "label": edge.label_,
            })
    return ret


Doc.set_extension("get_enhanced", method=get_enhanced)


def parse_spacy_sent(sent: Span, catalog: RelationCatalog) -> DependencyGraph:
    graph = DependencyGraph(catalog)
    offset = sent.start
    words = dict()
    for tok in sent:
        words[tok.i] = Word(TokenId(tok.i + 1 - offset), tok.text, tok.tag_ or tok.pos_ or None,
                            tok.lemma_ or None, tok.ent_type_ or None)

    for tok in sent:
        word = words[tok.i]
        graph.add_vertex(word)
        # spacy marks the root by pointing it to itself
        if tok.head.i == tok.i or tok.head.i not in words:
            graph.add_root(word)
        else:
            graph.add_edge(words[tok.head.i], word, catalog.value_of(tok.dep_.lower()))
    return graph


def enhance_to_spacy_doc(orig_doc: Doc, converted_graphs: Sequence[DependencyGraph]):
    orig_doc._.enhanced_graphs_per_sent = []
    orig_doc._.added_nodes = []
    for sent_idx, (sent, graph) in enumerate(zip(orig_doc.sents, converted_graphs)):
        # a graph node per token of the sentence, in order, so that the node index is the sentence-relative token index
        nodes = [(sent.start + i,) for i in range(len(sent))]
        node_indices = {word: word.index - 1 for word in graph.vertices() if not word.is_copy()}
        added = dict()
        # copies go after the tokens and point at the token of their original, repeated so spacy keeps them apart
        for word in graph.vertex_list_sorted():
            if word.is_copy():
                node_indices[word] = len(nodes)
                added[len(nodes)] = f"{word.form}[COPY_NODE_{len(added)}]"
                nodes.append((sent.start + word.index - 1,) * (word.copy_count + 1))

        edges = []
        labels = []
        for dep in graph.typed_dependencies():
            dep_node = node_indices[dep.dep]
            # the root edge is a self loop, spacy graphs have no dummy root node
            edges.append((node_indices.get(dep.gov, dep_node), dep_node))
            label = str(dep.relation)
            _ = orig_doc.vocab[label]  # this will push the label into the vocab if it's not there
            labels.append(label)

        orig_doc._.added_nodes.append(added)
        orig_doc._.enhanced_graphs_per_sent.append(
            Graph(orig_doc, name=f"{GRAPH_NAME}_{sent_idx}", nodes=nodes, edges=edges, labels=labels))
