# basic (pre-enhancement) parses, as (form, tag, head, deprel) rows

PASSIVE = [
    ("The", "DT", 2, "det"),
    ("bill", "NN", 4, "nsubj"),
    ("was", "VBD", 4, "auxpass"),
    ("passed", "VBN", 0, "root"),
    ("by", "IN", 7, "case"),
    ("the", "DT", 7, "det"),
    ("Senate", "NNP", 4, "nmod"),
    (".", ".", 4, "punct"),
]

BECAUSE_OF = [
    ("He", "PRP", 2, "nsubj"),
    ("left", "VBD", 0, "root"),
    ("because", "IN", 6, "case"),
    ("of", "IN", 3, "mwe"),
    ("the", "DT", 6, "det"),
    ("rain", "NN", 2, "nmod"),
    (".", ".", 2, "punct"),
]

RELATIVE_CLAUSE = [
    ("I", "PRP", 2, "nsubj"),
    ("saw", "VBD", 0, "root"),
    ("the", "DT", 4, "det"),
    ("man", "NN", 2, "dobj"),
    ("that", "WDT", 7, "dobj"),
    ("I", "PRP", 7, "nsubj"),
    ("love", "VBP", 4, "acl:relcl"),
    (".", ".", 2, "punct"),
]

COORDINATED_PP = [
    ("Bill", "NNP", 2, "nsubj"),
    ("flies", "VBZ", 0, "root"),
    ("to", "TO", 4, "case"),
    ("France", "NNP", 2, "nmod"),
    ("and", "CC", 4, "cc"),
    ("from", "IN", 7, "case"),
    ("Serbia", "NNP", 4, "conj"),
    (".", ".", 2, "punct"),
]

COORDINATED_PREPS = [
    ("Bill", "NNP", 2, "nsubj"),
    ("flies", "VBZ", 0, "root"),
    ("to", "TO", 6, "case"),
    ("and", "CC", 3, "cc"),
    ("from", "IN", 3, "conj"),
    ("Serbia", "NNP", 2, "nmod"),
    (".", ".", 2, "punct"),
]

CONTROL = [
    ("He", "PRP", 2, "nsubj"),
    ("wanted", "VBD", 0, "root"),
    ("to", "TO", 4, "mark"),
    ("go", "VB", 2, "xcomp"),
    (".", ".", 2, "punct"),
]

OBJECT_CONTROL = [
    ("They", "PRP", 2, "nsubj"),
    ("asked", "VBD", 0, "root"),
    ("the", "DT", 4, "det"),
    ("SEC", "NNP", 2, "dobj"),
    ("to", "TO", 6, "mark"),
    ("act", "VB", 2, "xcomp"),
    (".", ".", 2, "punct"),
]

COORDINATED_VERBS = [
    ("John", "NNP", 2, "nsubj"),
    ("bought", "VBD", 0, "root"),
    ("and", "CC", 2, "cc"),
    ("ate", "VBD", 2, "conj"),
    ("apples", "NNS", 2, "dobj"),
    (".", ".", 2, "punct"),
]

COORDINATED_OBJECTS = [
    ("He", "PRP", 2, "nsubj"),
    ("saw", "VBD", 0, "root"),
    ("cats", "NNS", 2, "dobj"),
    ("and", "CC", 3, "cc"),
    ("dogs", "NNS", 3, "conj"),
    (".", ".", 2, "punct"),
]

QUANTIFIER = [
    ("A", "DT", 2, "det"),
    ("couple", "NN", 5, "nsubj"),
    ("of", "IN", 4, "case"),
    ("people", "NNS", 2, "nmod"),
    ("came", "VBD", 0, "root"),
    (".", ".", 5, "punct"),
]

THREE_WORD_PREP = [
    ("I", "PRP", 4, "nsubj"),
    ("am", "VBP", 4, "cop"),
    ("in", "IN", 4, "case"),
    ("front", "NN", 0, "root"),
    ("of", "IN", 6, "case"),
    ("you", "PRP", 4, "nmod"),
    (".", ".", 4, "punct"),
]

COMPLEX_TWO_WORD_PREP = [
    ("He", "PRP", 3, "nsubj"),
    ("is", "VBZ", 3, "cop"),
    ("close", "JJ", 0, "root"),
    ("to", "TO", 5, "case"),
    ("me", "PRP", 3, "nmod"),
    (".", ".", 3, "punct"),
]

ALL_SENTENCES = [PASSIVE, BECAUSE_OF, RELATIVE_CLAUSE, COORDINATED_PP, COORDINATED_PREPS, CONTROL, OBJECT_CONTROL,
                 COORDINATED_VERBS, COORDINATED_OBJECTS, QUANTIFIER, THREE_WORD_PREP, COMPLEX_TWO_WORD_PREP]
