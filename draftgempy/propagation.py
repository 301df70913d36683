# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Gene-Reaction Propagation for DraftGEM.

Query genes inherit the reactions of the reference gene their best hit
points to. The organism incidence matrix is a column selection of the
reference rxnGeneMat; reactions without any supporting query gene are then
removed, and so are query genes that only supported removed reactions.

Functions:
    - map_best_hits: Map best hits onto reference incidence columns.
    - propagate_genes: Build and prune the draft model's reaction x gene matrix.
"""

import logging

import numpy as np

from draftgempy.exceptions import StructuralViolationError
from draftgempy.organism_model import remove_reactions
from draftgempy.utils import row_counts

logger = logging.getLogger(__name__)


def map_best_hits(best_hits, reference):
    """
    Select the reference incidence columns of the query genes.

    Best hits whose reference protein is not a gene of the reference model are
    dropped; not every protein of the search database is part of a reaction.

    Args:
        best_hits (pd.DataFrame): One row per query gene, with `query_gene` and
            `reference_protein` columns.
        reference (ReferenceModel): The reference model.

    Returns:
        tuple:
            list: Matched query genes, one per column.
            scipy.sparse.csr_matrix: (all reference reactions) x (matched query genes).
    """
    genes = []
    columns = []
    for gene, protein in zip(best_hits["query_gene"], best_hits["reference_protein"]):
        column = reference.gene_index.get(protein)
        if column is None:
            continue
        genes.append(gene)
        columns.append(column)

    logger.info(
        f"{len(genes)} of {len(best_hits)} best hits match a reference gene"
    )
    columns = np.asarray(columns, dtype=int)
    rxn_gene_mat = reference.rxn_gene_mat.tocsc()[:, columns].tocsr()
    rxn_gene_mat.eliminate_zeros()
    return genes, rxn_gene_mat


def propagate_genes(model, best_hits, reference):
    """
    Transfer gene associations from the reference model to the draft model.

    The draft model must still hold the full reference reaction list. After
    this call it only holds reactions with at least one query gene, and its
    gene list matches the columns of its incidence matrix exactly.

    Args:
        model (OrganismModel): Draft model seeded from `reference`, modified in place.
        best_hits (pd.DataFrame): Output of ``select_best_hits``.
        reference (ReferenceModel): The reference model.

    Returns:
        np.ndarray: Boolean mask over the reference reactions, True for kept reactions.

    Raises:
        StructuralViolationError: If the draft model's reactions are not the
            reference reactions.
    """
    if model.rxns != reference.rxns:
        raise StructuralViolationError(
            "Gene propagation needs the draft model to hold the reference reactions"
        )

    genes, rxn_gene_mat = map_best_hits(best_hits, reference)
    model.genes = genes
    model.rxn_gene_mat = rxn_gene_mat

    has_genes = row_counts(rxn_gene_mat) > 0
    remove_reactions(model, ~has_genes, remove_unused_genes=True)
    model.check_consistency()

    logger.info(
        f"{len(model.reactions)} reactions supported by {len(model.genes)} query genes"
    )
    return has_genes
