from functools import lru_cache
from typing import Optional, Sequence, Tuple

from .relations import Relation, RelationCatalog, ComparisonMode, SEPARATOR

# (relation, long name, parent, categories it applies to, target patterns)
#   the patterns are opaque to this package, they are handed as is to the tree-pattern oracle,
#   and each is expected to bind the dependent constituent to the 'target' capture.
RelationRow = Tuple[str, str, Optional[str], Optional[str], Sequence[str]]

copular_words = "/^(?i:am|is|are|r|be|being|'s|'re|'m|was|were|been|s|ai|m|art|ar|wase|seem|seems|seemed|seeming|appear|appears|appeared|stay|stays|stayed|remain|remains|remained|resemble|resembles|resembled|resembling|become|becomes|became|becoming)$/"
passive_aux_words = "/^(?i:am|is|are|r|be|being|'s|'re|'m|was|were|been|s|ai|m|art|ar|wase|get|getting|gets|got|gotten)$/"
not_words = "/^(?i:n[o']?t)$/"

english_relation_rows: Sequence[RelationRow] = [
    ("root", "root", None, None, []),
    ("dep", "dependent", "root", None, []),
    ("pred", "predicate", "dep", None, []),
    ("aux", "auxiliary", "dep", "VP|SQ|SINV|CONJP", [
        "VP < VP < (/^(?:MD|VB.*|AUXG?|POS)$/=target)",
        "SQ|SINV < (/^(?:VB|MD|AUX)/=target $++ /^(?:VP|ADJP)/)"]),
    ("auxpass", "passive auxiliary", "aux", "VP|SQ|SINV", [
        f"VP < (/^(?:VB|AUX|POS)/=target < {passive_aux_words}) < (VP|ADJP [ < VBN|VBD | < (VP|ADJP < VBN|VBD) < CC ] )"]),
    ("cop", "copula", "aux", "VP|SQ|SINV|SBARQ", [
        f"VP < (/^(?:VB|AUX)/=target < {copular_words} [ $++ (/^(?:ADJP|NP$|WHNP$|PP|UCP)/ !< (VBN|VBD !$++ /^N/)) | $++ (S <: (ADJP < JJ)) ] )"]),
    ("conj", "conjunct", "dep", "VP|(?:WH)?NP(?:-TMP|-ADV)?|ADJP|PP|QP|ADVP|UCP(?:-TMP|-ADV)?|S|NX|SBAR|SBARQ|SINV|SQ|JJP|NML|RRC|PCONJP", [
        "VP|S|SBAR|SBARQ|SINV|SQ|RRC < (CC|CONJP $-- !/^(?:``|-LRB-|PRN|PP|ADVP|RB|MWE)/ $+ !/^(?:SBAR|PRN|``|''|-[LR]RB-|,|:|\\.)$/=target)",
        "NP|NML < (CC|CONJP $-- !/^(?:``|-LRB-|PRN)/ $+ !/^(?:PRN|``|''|-[LR]RB-|,|:|\\.)$/=target)"]),
    ("cc", "coordination", "dep", ".*", [
        "__ ([ < (CC=target !< /^(?i:either|neither|both)$/ ) | < (CONJP=target !< (RB < /^(?i:not)$/ $+ (RB|JJ < /^(?i:only|just|merely)$/))) ] [!> /PP/ | !>2 NP])"]),
    ("punct", "punctuation", "dep", ".*", ["__ < /^(?:\\.|:|,|''|``|\\*|-LRB-|-RRB-|HYPH)$/=target"]),
    ("arg", "argument", "dep", None, []),
    ("subj", "subject", "arg", None, []),
    ("nsubj", "nominal subject", "subj", "S|SQ|SBARQ|SINV|SBAR|PRN", [
        "S=subj < ((NP|WHNP=target !< EX) $++ VP=verb) : (=subj !> VP | !<< (=verb < TO))",
        "SQ|PRN < (NP=target !< EX $++ VP)"]),
    ("nsubjpass", "nominal passive subject", "nsubj", "S|SQ", [
        f"S|SQ < (WHNP|NP=target !< EX) < (VP < (/^(?:VB|AUX)/ < {passive_aux_words}) < (VP < VBN|VBD))"]),
    ("csubj", "clausal subject", "subj", "S", ["S < (SBAR|S=target !$+ /^,$/ $++ (VP !$-- NP))"]),
    ("csubjpass", "clausal passive subject", "csubj", "S", [
        f"S < (SBAR|S=target !$+ /^,$/ $++ (VP < (VP < VBN|VBD) < (/^(?:VB|AUXG?)/ < {passive_aux_words}) !$-- NP))"]),
    ("comp", "complement", "arg", None, []),
    ("obj", "object", "comp", None, []),
    ("dobj", "direct object", "obj", "VP|SQ|SBARQ?", [
        f"VP !< (/^(?:VB|AUX)/ < {copular_words}) < (NP|WHNP=target !$+ NP)",
        "VP < (S < (NP|WHNP=target $++ (VP < TO)))"]),
    ("iobj", "indirect object", "obj", "VP", ["VP < (NP=target !< /\\$/ !<# (/^NN/ < /^(?i:day|week|month|year)s?$/) $+ (NP !<# (/^NN/ < /^(?i:day|week|month|year)s?$/)))"]),
    ("ccomp", "clausal complement", "comp", "VP|SINV|S|ADJP|ADVP|NP(?:-.*)?", [
        "VP < (S=target < (VP !<, TO|VBG|VBN) !$-- NP)",
        "VP < (SBAR=target < (S <+(S) VP) <, (IN|DT < /^(?i:that|whether)$/))"]),
    ("xcomp", "xclausal complement", "comp", "VP|ADJP|SINV", [
        "VP < (S=target !$-- NP < (VP < TO))",
        "ADJP < (S=target <, (VP <, TO))"]),
    ("rel", "relative", "comp", "SBAR", ["SBAR < (WHNP=target !< WRB) < (S < (NP < /^-NONE-$/))"]),
    ("prep", "preposition", "comp", "VP|ADJP", ["VP|ADJP < (PP=target <: IN|TO)"]),
    ("ref", "referent", "dep", None, []),
    ("expl", "expletive", "dep", "S|SQ|SINV", ["S|SQ|SINV < (NP=target <+(NP) EX)"]),
    ("mod", "modifier", "dep", None, []),
    ("nmod", "nominal modifier", "mod", ".*", [
        "/^(?:(?:WH)?(?:NP|ADJP|ADVP|NX|NML)(?:-TMP|-ADV)?|VP|NAC|SQ|FRAG|PRN|X|RRC)$/ < (WHPP|WHPP-TMP|PP|PP-TMP=target [< @NP|WHNP|NML | < (PP < @NP|WHNP|NML)])",
        "S|SINV < (PP|PP-TMP=target !< SBAR|S) < VP|S"]),
    ("nmod:npmod", "noun phrase adverbial modifier", "mod", "VP|(?:WH)?(?:NP|ADJP|ADVP|PP)(?:-TMP|-ADV)?", [
        "@ADVP|ADJP|WHADJP|WHADVP|PP|WHPP <# (JJ|JJR|IN|RB|RBR !< notwithstanding $- (@NP=target !< NNP|NNPS))"]),
    ("nmod:tmod", "temporal modifier", "nmod", "VP|S|ADJP|PP|SBAR|SBARQ|NP|RRC", [
        "VP|ADJP|RRC [ < NP-TMP=target | < (VP=target <# NNP) ]"]),
    ("nmod:poss", "possession modifier", "mod", "(?:WH)?(NP|ADJP|INTJ|PRN|NAC|NX|NML)(?:-.*)?", [
        "/^(?:WH)?(?:NP|INTJ|ADJP|PRN|NAC|NX|NML)(?:-.*)?$/ < /^(?:WP\\$|PRP\\$)$/=target"]),
    ("advcl", "adverbial clause modifier", "mod", "VP|S|SQ|SINV|SBARQ|NP|ADVP|ADJP", [
        "VP < (@SBAR=target <= (@SBAR [ < (IN|MWE !< /^(?i:that|whether)$/) | <: (SINV <1 /^(?:VB|MD|AUX)/) | < (RB|IN < so|now) < IN | < (ADVP < (RB < now)) | <2 (ADVP < (RB < even)) ] ))",
        "S|SQ|SINV < (SBAR|SBAR-TMP=target <, (IN|MWE !< /^(?i:that|whether)$/ !$+ (NN < order)) !$-- /^(?!CC|CONJP|``|,|INTJ|PP(-.*)?).*$/ !$+ VP)"]),
    ("mark", "marker", "mod", "SBAR(?:-TMP)?|VP|PP(?:-TMP|-ADV)?", [
        "VP < VP < (TO=target)",
        "SBAR|SBAR-TMP < (IN|DT|MWE=target $++ S|FRAG)"]),
    ("amod", "adjectival modifier", "mod", "NP(?:-TMP|-ADV)?|NX|NML|NAC|WHNP|ADJP|INTJ", [
        "/^(?:NP(?:-TMP|-ADV)?|NX|NML|NAC|WHNP|INTJ)$/ < (ADJP|WHADJP|JJ|JJR|JJS|JJP|VBN|VBG|VBD|IN=target !< (QP !< /^[$]$/) !$- CC)"]),
    ("nummod", "numeric modifier", "mod", "(?:WH)?NP(?:-TMP|-ADV)?|NML|NX|ADJP|WHADJP|QP", [
        "/^(?:WH)?(?:NP|NX|NML)(?:-TMP|-ADV)?$/ < (CD|QP=target !$- CC)"]),
    ("compound", "compound modifier", "mod", "(?:WH)?(?:NP|NX|NAC|NML|ADVP|ADJP|QP)(?:-TMP|-ADV)?", [
        "/^(?:WH)?(?:NP|NX|NAC|NML)(?:-TMP|-ADV)?$/ < (NP|NML|NN|NNS|NNP|NNPS|FW|AFX=target $++ NN|NNS|NNP|NNPS|FW|CD=sister !<<- POS !$- /^,$/ !$++ (POS $++ =sister))",
        "QP|ADJP < (/^(?:CD|$|#)$/=target !$- CC)"]),
    ("name", "name", "mod", None, []),
    ("appos", "appositional modifier", "mod", "(?:WH)?NP(?:-TMP|-ADV)?", [
        "WHNP|WHNP-TMP|WHNP-ADV|NP|NP-TMP|NP-ADV < (NP=target !<: CD $- /^,$/ $-- /^(?:WH)?NP/ !$ CC|CONJP)"]),
    ("discourse", "discourse element", "mod", ".*", ["__ < (NFP|INTJ|UH=target)"]),
    ("acl", "clausal modifier of noun", "mod", "WHNP|WHNP-TMP|WHNP-ADV|NP(?:-[A-Z]+)?|NML|NX|ADJP|WHADJP|ADVP", [
        "WHNP|WHNP-TMP|WHNP-ADV|NP|NP-TMP|NP-ADV|NML|NX < (VP=target < VBG|VBN|VBD $-- @NP|NML|NX)",
        "WHNP|WHNP-TMP|WHNP-ADV|NP|NP-TMP|NP-ADV|NML|NX < (S=target < (VP < TO) $-- @NP|NML|NX)"]),
    ("acl:relcl", "relative clause modifier", "acl", "(?:WH)?(?:NP|NML|ADVP)(?:-.*)?", [
        "@NP|WHNP|NML=np $++ (SBAR=target [ <+(SBAR) WHPP|WHNP | <: (S !< (VP < TO)) ]) !$-- @NP|WHNP|NML > @NP|WHNP : (=np !$++ (CC|CONJP $++ =target))",
        "@NP|WHNP < RRC=target <# NP|WHNP|NML|DT|S"]),
    ("advmod", "adverbial modifier", "mod", "VP|ADJP|WHADJP|ADVP|WHADVP|S|SBAR|SINV|SQ|SBARQ|XS|(?:WH)?(?:PP|NP)(?:-TMP|-ADV)?|RRC|CONJP|JJP|QP", [
        f"/^(?:VP|ADJP|JJP|WHADJP|SQ?|SBARQ?|SINV|XS|RRC|(?:WH)?NP(?:-TMP|-ADV)?)$/ < (RB|RBR|RBS|WRB|ADVP|WHADVP=target !< {not_words})"]),
    ("neg", "negation modifier", "advmod", "VP|ADJP|S|SBAR|SINV|SQ|NP(?:-TMP|-ADV)?|FRAG|CONJP|PP|NAC|NML|NX|ADVP|WHADVP", [
        f"/^(?:VP|NP(?:-TMP|-ADV)?|ADJP|SQ|S|FRAG|CONJP|PP)$/< (RB=target < {not_words})"]),
    ("mwe", "multi-word expression", "mod", "MWE", ["MWE < (IN|TO|RB|NP|NN|JJ|VB|CC|VBZ|VBD|ADVP|PP|JJS|RBS=target)"]),
    ("det", "determiner", "mod", "(?:WH)?NP(?:-TMP|-ADV)?|NAC|NML|NX|X|ADVP|ADJP", [
        "/^(?:NP(?:-TMP|-ADV)?|NAC|NML|NX|X)$/ < (DT=target !< /^(?i:either|neither|both|no)$/ !$+ DT !$++ CC $++ /^(?:N[MNXP]|CD|JJ|FW|ADJP|QP|RB|PRP(?![$])|PRN)/)",
        "WHNP|WHNP-TMP|WHNP-ADV < (WDT=target !$- CC)"]),
    ("det:predet", "predeterminer", "mod", "(?:WH)?(?:NP|NX|NAC|NML)(?:-TMP|-ADV)?", [
        "/^(?:(?:WH)?NP(?:-TMP|-ADV)?|NX|NAC|NML)$/ < (PDT|DT=target $+ /^(?:DT|WP\\$|PRP\\$)$/ $++ /^(?:NN|NX|NML)/ !$++ CC)"]),
    ("cc:preconj", "preconjunct", "mod", "S|VP|ADJP|PP|ADVP|UCP(?:-TMP|-ADV)?|NX|NML|SBAR|NP(?:-TMP|-ADV)?", [
        "NP|NP-TMP|NP-ADV|NX|NML < (PDT|CC|DT=target < /^(?i:either|neither|both)$/ $++ CC)"]),
    ("case", "case marker", "mod", "(?:WH)?(?:PP.*|SBARQ|NP|NML|ADVP)(?:-TMP|-ADV)?", [
        "/(?:WH)?PP(?:-TMP)?/ < (IN|TO|MWE|PCONJP|VBN|JJ=target !$+ @SBAR [!$+ @S | $+ (S <, (VP <, NN))] )",
        "/^(?:WH)?(?:NP|NML)(?:-TMP|-ADV)?$/ < POS=target"]),
    ("compound:prt", "phrasal verb particle", "mod", "VP|ADJP", ["VP|ADJP < PRT=target"]),
    ("parataxis", "parataxis", "dep", "S|VP", [
        "VP < (PRN=target < S|SINV|SBAR)",
        "S|VP < (/^:$/ $+ /^S/=target) !<, (__ $++ CC|CONJP)"]),
    ("goeswith", "goes with", "mod", None, []),
    ("list", "list", "dep", None, []),
    ("det:qmod", "quantificational modifier", "det", None, []),
    ("nmod:agent", "agent", "nmod", None, []),
    ("nsubj:xsubj", "controlling nominal subject", "nsubj", None, []),
    ("nsubjpass:xsubj", "controlling nominal passive subject", "nsubjpass", None, []),
    ("csubj:xsubj", "controlling clausal subject", "csubj", None, []),
    ("csubjpass:xsubj", "controlling clausal passive subject", "csubjpass", None, []),
    ("sdep", "semantic dependent", "dep", None, []),
]


def build_catalog(rows: Sequence[RelationRow], strict: bool = False,
                  comparison_mode: ComparisonMode = ComparisonMode.EXACT) -> RelationCatalog:
    # parents must be declared before their children
    declared = dict()
    relations = []
    for rel_str, long_name, parent_str, applies_to, patterns in rows:
        name, _, specific = rel_str.partition(SEPARATOR)
        parent = declared[parent_str] if parent_str is not None else None
        rel = Relation(name, specific or None, parent, long_name, applies_to, tuple(patterns), comparison_mode)
        declared[rel_str] = rel
        relations.append(rel)
    return RelationCatalog(relations, strict=strict)


@lru_cache(maxsize=None)
def english_catalog(strict: bool = False, comparison_mode: ComparisonMode = ComparisonMode.EXACT) -> RelationCatalog:
    """The universal-English catalog, built once per (strict, comparison_mode) combination."""
    return build_catalog(english_relation_rows, strict, comparison_mode)
