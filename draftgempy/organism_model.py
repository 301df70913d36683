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
Draft Model Container for DraftGEM.

The draft model is filled stage by stage. Reaction fields live in one
DataFrame so a row mask removes a reaction from all of them at once; the
incidence matrix, grRules and the stoichiometric matrix are kept aligned to
that table by `remove_reactions` and checked by `check_consistency`.

Functions:
    - remove_reactions: Drop reactions from every per-reaction field.
    - to_cobra: Convert the draft model into a cobra.Model.
    - save_model: Write the draft model with the cobra writers.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
import pandas as pd
from scipy import sparse
from cobra import Model, Reaction, Metabolite
from cobra.io import save_json_model, write_sbml_model

from draftgempy.exceptions import StructuralViolationError
from draftgempy.gene_rules import gpr_from_rule
from draftgempy.utils import column_counts, row_counts

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "Generated by homology with MetaCyc database"
# Confidence score of reactions supported by sequence homology only
HOMOLOGY_CONFIDENCE = 2

# Per-metabolite fields, all aligned to `mets`
MET_FIELDS = ["met_names", "met_formulas", "met_charges", "inchis", "met_miriams"]


@dataclass
class OrganismModel:
    id: str
    description: str = DEFAULT_DESCRIPTION
    reactions: pd.DataFrame = None
    genes: List[str] = field(default_factory=list)
    rxn_gene_mat: Optional[sparse.csr_matrix] = None
    gr_rules: Optional[List[str]] = None
    mets: Optional[List[str]] = None
    S: Optional[sparse.csr_matrix] = None
    met_names: Optional[List[str]] = None
    met_formulas: Optional[List[str]] = None
    met_charges: Optional[List[int]] = None
    inchis: Optional[List[str]] = None
    met_miriams: Optional[List[dict]] = None
    b: Optional[np.ndarray] = None
    comps: List[str] = field(default_factory=lambda: ["s"])
    comp_names: List[str] = field(default_factory=lambda: ["System"])
    met_comps: Optional[np.ndarray] = None
    bad_rxns: List[str] = field(default_factory=list)
    version: str = ""

    @classmethod
    def from_reference(cls, organism_id, reference, description=DEFAULT_DESCRIPTION):
        """Seed a draft model with every reaction field of the reference model."""
        return cls(
            id=organism_id,
            description=description,
            reactions=reference.reactions.copy(deep=True),
        )

    @property
    def rxns(self):
        return list(self.reactions.index)

    @property
    def gene_index(self):
        return {gene: i for i, gene in enumerate(self.genes)}

    def summary(self):
        return {
            "reactions": len(self.reactions),
            "genes": len(self.genes),
            "metabolites": 0 if self.mets is None else len(self.mets),
            "bad_equations": len(self.bad_rxns),
        }

    def check_consistency(self):
        """
        Make sure every per-reaction and per-metabolite field has the same length.

        Raises:
            StructuralViolationError: On any dimension mismatch.
        """
        n_rxns = len(self.reactions)
        if self.rxn_gene_mat is not None and self.rxn_gene_mat.shape != (
            n_rxns,
            len(self.genes),
        ):
            raise StructuralViolationError(
                f"rxnGeneMat is {self.rxn_gene_mat.shape} for {n_rxns} reactions "
                f"and {len(self.genes)} genes"
            )
        if self.gr_rules is not None and len(self.gr_rules) != n_rxns:
            raise StructuralViolationError(
                f"{len(self.gr_rules)} grRules for {n_rxns} reactions"
            )
        if len(set(self.genes)) != len(self.genes):
            raise StructuralViolationError("The gene list contains duplicates")
        if self.mets is None:
            return
        n_mets = len(self.mets)
        if self.S is not None and self.S.shape != (n_mets, n_rxns):
            raise StructuralViolationError(
                f"S is {self.S.shape} for {n_mets} metabolites and {n_rxns} reactions"
            )
        for name in MET_FIELDS + ["b", "met_comps"]:
            values = getattr(self, name)
            if values is not None and len(values) != n_mets:
                raise StructuralViolationError(
                    f"{name} has {len(values)} entries for {n_mets} metabolites"
                )


def remove_reactions(
    model, remove_mask, remove_unused_mets=False, remove_unused_genes=False
):
    """
    Remove reactions from the draft model.

    Every per-reaction field (the reaction table, rows of the incidence matrix,
    grRules, columns of S and the bad-equation list) is updated in one step.

    Args:
        model (OrganismModel): The draft model, modified in place.
        remove_mask (array-like of bool): True for each reaction to remove.
        remove_unused_mets (bool): Also drop metabolites no longer used by any reaction.
        remove_unused_genes (bool): Also drop genes no longer used by any reaction.

    Returns:
        OrganismModel: The same model.
    """
    remove_mask = np.asarray(remove_mask, dtype=bool)
    if len(remove_mask) != len(model.reactions):
        raise StructuralViolationError(
            f"Mask of length {len(remove_mask)} for {len(model.reactions)} reactions"
        )
    keep = np.flatnonzero(~remove_mask)

    removed_ids = set(model.reactions.index[remove_mask])
    model.reactions = model.reactions.iloc[keep].copy()
    if model.rxn_gene_mat is not None:
        model.rxn_gene_mat = model.rxn_gene_mat[keep, :].tocsr()
    if model.gr_rules is not None:
        model.gr_rules = [model.gr_rules[i] for i in keep]
    if model.S is not None:
        model.S = model.S.tocsc()[:, keep].tocsr()
    model.bad_rxns = [rxn for rxn in model.bad_rxns if rxn not in removed_ids]

    if remove_unused_genes and model.rxn_gene_mat is not None:
        used = column_counts(model.rxn_gene_mat) > 0
        model.rxn_gene_mat = model.rxn_gene_mat.tocsc()[:, np.flatnonzero(used)].tocsr()
        model.genes = [gene for gene, u in zip(model.genes, used) if u]

    if remove_unused_mets and model.S is not None:
        used = row_counts(model.S) > 0
        _select_metabolites(model, used)

    if remove_mask.any():
        logger.info(f"Removed {int(remove_mask.sum())} reactions from {model.id}")
    return model


def _select_metabolites(model, keep_mask):
    idx = np.flatnonzero(keep_mask)
    model.S = model.S[idx, :]
    model.mets = [model.mets[i] for i in idx]
    for name in MET_FIELDS:
        values = getattr(model, name)
        if values is not None:
            setattr(model, name, [values[i] for i in idx])
    if model.b is not None:
        model.b = model.b[idx]
    if model.met_comps is not None:
        model.met_comps = model.met_comps[idx]


def to_cobra(model):
    """
    Convert the draft model into a cobra.Model for serialization.

    Args:
        model (OrganismModel): A fully built draft model.

    Returns:
        cobra.Model: The equivalent COBRA model.
    """
    model.check_consistency()
    cobra_model = Model(model.id, name=model.description)
    cobra_model.compartments = dict(zip(model.comps, model.comp_names))
    if model.version:
        cobra_model.notes["version"] = model.version

    metabolites = []
    for i, met_id in enumerate(model.mets):
        met = Metabolite(
            met_id,
            name=model.met_names[i],
            formula=model.met_formulas[i] or None,
            charge=int(model.met_charges[i]),
            compartment=model.comps[model.met_comps[i]],
        )
        annotation = dict(model.met_miriams[i] or {})
        if model.inchis[i]:
            annotation["inchi"] = model.inchis[i]
        met.annotation = annotation
        metabolites.append(met)
    cobra_model.add_metabolites(metabolites)

    S = model.S.tocsc()
    reactions = []
    for j, (rxn_id, row) in enumerate(model.reactions.iterrows()):
        rxn = Reaction(
            rxn_id,
            name=row["name"],
            subsystem=row["subsystems"],
            lower_bound=row["lb"],
            upper_bound=row["ub"],
        )
        start, end = S.indptr[j], S.indptr[j + 1]
        rxn.add_metabolites(
            {
                metabolites[i]: float(coeff)
                for i, coeff in zip(S.indices[start:end], S.data[start:end])
            }
        )
        rxn.gpr = gpr_from_rule(model.gr_rules[j])
        annotation = dict(row["miriams"] or {})
        if row["eccodes"]:
            annotation["ec-code"] = row["eccodes"].split(";")
        rxn.annotation = annotation
        rxn.notes["confidence_score"] = int(row.get("confidence", HOMOLOGY_CONFIDENCE))
        if row["references"]:
            rxn.notes["references"] = row["references"]
        reactions.append(rxn)
    cobra_model.add_reactions(reactions)

    objective = {
        rxn: c
        for rxn, c in zip(cobra_model.reactions, model.reactions["c"])
        if c != 0
    }
    if objective:
        cobra_model.objective = objective

    return cobra_model


def save_model(model, path, sbml=False):
    """
    Save the draft model as COBRA JSON, and optionally SBML next to it.

    Args:
        model (OrganismModel): The draft model.
        path (str): Target path of the JSON file.
        sbml (bool): Also write an SBML file with the same stem.

    Returns:
        list: The written file paths.
    """
    cobra_model = to_cobra(model)
    save_json_model(cobra_model, path)
    logger.info(f"Model saved to {path}")
    written = [path]
    if sbml:
        sbml_path = str(path).rsplit(".", 1)[0] + ".xml"
        write_sbml_model(cobra_model, sbml_path)
        logger.info(f"Model also saved in SBML format to {sbml_path}")
        written.append(sbml_path)
    return written
