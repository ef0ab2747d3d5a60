from typing import List, Tuple

from .graph import DependencyGraph
from .graph_token import TokenId, Word
from .relations import RelationCatalog


def parse_conllu(text: str, catalog: RelationCatalog) -> Tuple[List[DependencyGraph], List[List[str]]]:
    """Purpose: parses the given CoNLL-U formatted text into basic dependency graphs.

    Args:
        (str) The text.
        (RelationCatalog) resolves the DEPREL column, unknown labels follow the catalog's fallback.

    returns:
        (list(DependencyGraph)) one basic graph per sentence.
        (list(list(str))) returns a list of comments list per sentence.

    Raises:
        ValueError: text must be a basic CoNLL-U, received an enhanced one.
        ValueError: text must be a basic CoNLL-U format, received a CoNLL-X format.
    """
    graphs = []
    all_comments = []

    # for each sentence
    for sent in text.strip().split('\n\n'):
        lines = [line for line in sent.strip().split('\n') if line.strip()]
        if not lines:
            continue
        comments = []
        rows = []

        # for each line (either comment or token)
        for line in lines:
            # store comments
            if line.startswith('#'):
                comments.append(line)
                continue

            # split line by any whitespace, and store the first 10 columns.
            parts = line.split()
            if len(parts) > 10:
                parts = line.split("\t")
                if len(parts) > 10:
                    raise ValueError("text must be a basic CoNLL-U format, received too many columns or separators.")
            if len(parts) < 10:
                raise ValueError(f"expected 10 columns, received {len(parts)}: {line!r}")

            new_id, form, lemma, upos, xpos, feats, head, deprel, deps, misc = parts[:10]

            # validate input
            if '-' in new_id:
                raise ValueError("text must be a basic CoNLL-U format, received a CoNLL-X format.")
            if deps != '_' or '.' in new_id:
                raise ValueError("text must be a basic CoNLL-U, received an enhanced one.")

            # fix xpos if empty to a copy of upos
            xpos = upos if xpos == '_' else xpos
            word = Word(TokenId(int(new_id)), form, xpos, lemma if lemma != '_' else None)
            rows.append((word, int(head), deprel))

        words = {word.index: word for word, _, _ in rows}
        graph = DependencyGraph(catalog)
        for word, head, deprel in rows:
            graph.add_vertex(word)
            if head == 0:
                graph.add_root(word)
            elif head not in words:
                raise ValueError(f"token {word.token_id} points to a missing head {head}")
            else:
                graph.add_edge(words[head], word, catalog.value_of(deprel.lower()))
        graphs.append(graph)
        all_comments.append(comments)

    return graphs, all_comments
