"""
Gene-Reaction Rules for DraftGEM.

Rules are OR-only: any supporting gene is enough for a reaction. Complexes
(AND relationships) cannot be inferred from best hits and are not modelled.

Query gene ids come straight from FASTA headers ("sp|P0A7B8|HSLV_ECOLI",
"lcl|NC_000913.3_prot_1", "ORF(1)") and are not valid Python names, so rules
are tokenized here and cobra's GPR parser only ever sees placeholder names.
"""

import ast
import logging

import numpy as np
from cobra.core.gene import GPR

from draftgempy.exceptions import StructuralViolationError
from draftgempy.reference import incidence_from_gene_sets

logger = logging.getLogger(__name__)

OR_SEPARATOR = " or "
OPERATORS = ("and", "or")
_SYNTAX = OPERATORS + ("(", ")")


def rule_terms(rule):
    """
    Split a rule into operators, parentheses and gene ids.

    Words are separated by whitespace. Parentheses are only split off a word
    where they do not belong to the id itself: leading ones always, trailing
    ones while the word has more closing than opening parentheses.

    Args:
        rule (str): A gene-reaction rule, e.g. "(ORF(1) or sp|P1|X_ECOLI)".

    Returns:
        list: Terms in rule order, e.g. ["(", "ORF(1)", "or", "sp|P1|X_ECOLI", ")"].
    """
    terms = []
    for word in (rule or "").split():
        if word.lower() in OPERATORS:
            terms.append(word.lower())
            continue
        core = word.lstrip("(")
        opening = len(word) - len(core)
        closing = 0
        while core.endswith(")") and core.count(")") > core.count("("):
            core = core[:-1]
            closing += 1
        terms.extend(["("] * opening)
        if core:
            terms.append(core)
        terms.extend([")"] * closing)
    return terms


def gpr_from_rule(rule):
    """
    Parse a rule into a cobra GPR, keeping every gene id intact.

    Args:
        rule (str): A gene-reaction rule.

    Returns:
        cobra.core.gene.GPR: The parsed rule; empty for an empty rule.
    """
    tokens = {}
    safe = []
    for term in rule_terms(rule):
        if term in _SYNTAX:
            safe.append(term)
        else:
            safe.append(tokens.setdefault(term, f"g{len(tokens)}"))
    if not safe:
        return GPR()

    gpr = GPR.from_string(" ".join(safe))
    names = {token: gene for gene, token in tokens.items()}
    for node in ast.walk(gpr):
        if isinstance(node, ast.Name):
            node.id = names[node.id]
    gpr.update_genes()
    return gpr


def synthesize_gr_rules(rxn_gene_mat, genes, rxn_ids=None):
    """
    Build one OR rule per reaction row of the incidence matrix.

    Args:
        rxn_gene_mat (scipy.sparse.spmatrix): Boolean reaction x gene matrix.
        genes (list): Gene ids, one per column.
        rxn_ids (list, optional): Reaction ids, only used in error messages.

    Returns:
        list: Rule strings; genes appear in gene-list order.

    Raises:
        StructuralViolationError: If the matrix does not match the gene list or a
            reaction has no supporting gene.
    """
    if rxn_gene_mat.shape[1] != len(genes):
        raise StructuralViolationError(
            f"rxnGeneMat has {rxn_gene_mat.shape[1]} columns for {len(genes)} genes"
        )
    mat = rxn_gene_mat.tocsr()
    mat.eliminate_zeros()

    gr_rules = []
    for i in range(mat.shape[0]):
        columns = np.sort(mat.indices[mat.indptr[i] : mat.indptr[i + 1]])
        if len(columns) == 0:
            rxn = rxn_ids[i] if rxn_ids is not None else i
            raise StructuralViolationError(f"Reaction {rxn} has no supporting gene")
        gr_rules.append(OR_SEPARATOR.join(genes[c] for c in columns))
    return gr_rules


def standardize_gr_rules(model):
    """
    Canonicalize grRules and rebuild rxnGeneMat from them.

    Pure OR rules are rewritten as deduplicated genes in gene-list order; any
    other rule keeps the cobra GPR string form. Genes named in a rule but
    missing from the gene list are appended to it.

    Args:
        model (OrganismModel): Draft model with `gr_rules`, modified in place.

    Returns:
        tuple: (list of rule strings, scipy.sparse.csr_matrix incidence matrix)
    """
    genes = list(model.genes)
    gene_index = {gene: i for i, gene in enumerate(genes)}
    gene_sets = []
    gr_rules = []

    for rule in model.gr_rules:
        terms = rule_terms(rule)
        rule_genes = {term for term in terms if term not in _SYNTAX}
        for gene in sorted(rule_genes):
            if gene not in gene_index:
                gene_index[gene] = len(genes)
                genes.append(gene)
        ordered = sorted(rule_genes, key=gene_index.get)

        if not rule_genes:
            gr_rules.append("")
        elif "and" in terms:
            gr_rules.append(gpr_from_rule(rule).to_string())
        else:
            gr_rules.append(OR_SEPARATOR.join(ordered))
        gene_sets.append(ordered)

    changed = sum(old != new for old, new in zip(model.gr_rules, gr_rules))
    if changed:
        logger.info(f"Standardized {changed} grRules")

    model.genes = genes
    model.gr_rules = gr_rules
    model.rxn_gene_mat = incidence_from_gene_sets(gene_sets, genes)
    return model.gr_rules, model.rxn_gene_mat
