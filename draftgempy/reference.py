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
Reference Model Loading for DraftGEM.

The reference (the full MetaCyc model) is read from a COBRA model file and
turned into flat tables: one row per reaction, an ordered list of reference
genes (MetaCyc protein ids) and a sparse reaction x gene incidence matrix.

Functions:
    - load_cobra_model: Load a COBRA model from JSON, MATLAB or SBML.
    - load_reference_model: Load the reference model with category filtering.
    - metabolite_table_from_cobra: Build the reference metabolite table.
"""

import os
import re
import logging
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
from scipy import sparse
from cobra.io import load_json_model, read_sbml_model
from cobra.io.mat import load_matlab_model

from draftgempy.exceptions import StructuralViolationError
from draftgempy.utils import as_bool

logger = logging.getLogger(__name__)

REACTION_COLUMNS = [
    "name",
    "equation",
    "eccodes",
    "subsystems",
    "lb",
    "ub",
    "rev",
    "c",
    "miriams",
    "references",
]
METABOLITE_COLUMNS = ["name", "formula", "charge", "inchi", "miriams"]

_ARROW_SPLITTER = re.compile(r"\s*(?:<=+>|<-+>|=+>|-+>|<=+|<-+)\s*")


@dataclass(frozen=True)
class ReferenceModel:
    """
    Immutable reaction catalog used as the annotation source.

    Attributes:
        reactions (pd.DataFrame): Reaction fields indexed by reaction id,
            columns as in ``REACTION_COLUMNS``.
        genes (list): Reference gene ids, one per incidence column.
        rxn_gene_mat (scipy.sparse.csr_matrix): Boolean reaction x gene matrix.
        gene_index (dict): Reference gene id -> column in `rxn_gene_mat`.
    """

    reactions: pd.DataFrame
    genes: list
    rxn_gene_mat: sparse.csr_matrix
    gene_index: dict = field(init=False, repr=False)

    def __post_init__(self):
        n_rxns, n_genes = self.rxn_gene_mat.shape
        if n_rxns != len(self.reactions) or n_genes != len(self.genes):
            raise StructuralViolationError(
                f"Reference incidence matrix is {n_rxns}x{n_genes} but the model has "
                f"{len(self.reactions)} reactions and {len(self.genes)} genes"
            )
        object.__setattr__(
            self, "gene_index", {gene: i for i, gene in enumerate(self.genes)}
        )

    @property
    def rxns(self):
        return list(self.reactions.index)

    @classmethod
    def from_cobra(
        cls,
        model,
        keep_transport_rxns=False,
        keep_unbalanced=False,
        keep_undetermined=False,
    ):
        """
        Build a reference model from a COBRA model.

        Args:
            model (cobra.Model): The full reference model. Its genes are the
                reference protein ids used in the homology search database.
            keep_transport_rxns (bool): Include transport reactions.
            keep_unbalanced (bool): Include chemically unbalanced reactions.
            keep_undetermined (bool): Include reactions whose participants lack a
                structure or whose coefficients are not numeric (e.g. "n+1").

        Returns:
            ReferenceModel: The filtered reference model.
        """
        rows = []
        gene_sets = []
        dropped = {"transport": 0, "unbalanced": 0, "undetermined": 0}

        for rxn in model.reactions:
            flags = classify_reaction(rxn)
            if flags["transport"] and not keep_transport_rxns:
                dropped["transport"] += 1
                continue
            if flags["undetermined"] and not keep_undetermined:
                dropped["undetermined"] += 1
                continue
            if flags["unbalanced"] and not keep_unbalanced:
                dropped["unbalanced"] += 1
                continue

            annotation = dict(rxn.annotation)
            eccodes = annotation.pop("ec-code", [])
            if isinstance(eccodes, str):
                eccodes = [eccodes]
            rows.append(
                {
                    "id": rxn.id,
                    "name": rxn.name or "",
                    "equation": reaction_equation(rxn),
                    "eccodes": ";".join(eccodes),
                    "subsystems": rxn.subsystem or "",
                    "lb": float(rxn.lower_bound),
                    "ub": float(rxn.upper_bound),
                    "rev": bool(rxn.reversibility),
                    "c": float(rxn.objective_coefficient),
                    "miriams": annotation,
                    "references": rxn.notes.get("references", ""),
                }
            )
            gene_sets.append([gene.id for gene in rxn.genes])

        logger.info(
            f"Reference reactions kept: {len(rows)}; excluded transport: "
            f"{dropped['transport']}, undetermined: {dropped['undetermined']}, "
            f"unbalanced: {dropped['unbalanced']}"
        )

        genes = [gene.id for gene in model.genes]
        reactions = pd.DataFrame(rows, columns=["id"] + REACTION_COLUMNS).set_index("id")
        rxn_gene_mat = incidence_from_gene_sets(gene_sets, genes)
        return cls(reactions=reactions, genes=genes, rxn_gene_mat=rxn_gene_mat)


def incidence_from_gene_sets(gene_sets, genes):
    """
    Build a boolean reaction x gene CSR matrix.

    Args:
        gene_sets (list of list): Gene ids associated with each reaction.
        genes (list): Ordered gene ids, one per column.

    Returns:
        scipy.sparse.csr_matrix: Incidence matrix of shape (len(gene_sets), len(genes)).
    """
    gene_index = {gene: i for i, gene in enumerate(genes)}
    rows, cols = [], []
    for i, gene_set in enumerate(gene_sets):
        for gene in set(gene_set):
            rows.append(i)
            cols.append(gene_index[gene])
    return sparse.csr_matrix(
        (np.ones(len(rows), dtype=bool), (rows, cols)),
        shape=(len(gene_sets), len(genes)),
        dtype=bool,
    )


def reaction_equation(rxn):
    """Equation text of a reaction, preferring the original text kept in its notes."""
    return rxn.notes.get("equation") or rxn.build_reaction_string()


def has_undetermined_coefficient(equation):
    """True if any term of `equation` carries a non-numeric coefficient such as "n"."""
    for side in _ARROW_SPLITTER.split(equation):
        for term in side.split(" + "):
            parts = term.split()
            if len(parts) < 2:
                continue
            try:
                float(parts[0].lstrip("(").rstrip(")"))
            except ValueError:
                return True
    return False


def classify_reaction(rxn):
    """
    Flag a reaction as transport, unbalanced and/or undetermined.

    Flags stored in the reaction notes (as written by the MetaCyc dump parser)
    take precedence; missing flags are derived from the reaction itself.

    Args:
        rxn (cobra.Reaction): The reaction to classify.

    Returns:
        dict: Boolean values for "transport", "unbalanced" and "undetermined".
    """
    mets = list(rxn.metabolites)

    if "transport" in rxn.notes:
        transport = as_bool(rxn.notes["transport"])
    else:
        transport = len({met.compartment for met in mets}) > 1

    if "undetermined" in rxn.notes:
        undetermined = as_bool(rxn.notes["undetermined"])
    else:
        undetermined = any(not met.formula for met in mets) or (
            has_undetermined_coefficient(reaction_equation(rxn))
        )

    if "unbalanced" in rxn.notes:
        unbalanced = as_bool(rxn.notes["unbalanced"])
    elif undetermined:
        # Mass balance cannot be checked without structures
        unbalanced = False
    else:
        try:
            unbalanced = bool(rxn.check_mass_balance())
        except ValueError:
            # Formula cobra cannot parse into elements
            undetermined = True
            unbalanced = False

    return {
        "transport": transport,
        "unbalanced": unbalanced,
        "undetermined": undetermined,
    }


def metabolite_table_from_cobra(model):
    """
    Build the reference metabolite table from a COBRA model.

    Args:
        model (cobra.Model): The full reference model.

    Returns:
        pd.DataFrame: Indexed by metabolite id, columns as in ``METABOLITE_COLUMNS``.
        Missing fields are left as NaN so the annotator can apply its defaults.
    """
    rows = []
    for met in model.metabolites:
        annotation = dict(met.annotation)
        inchi = annotation.pop("inchi", None)
        if isinstance(inchi, list):
            inchi = inchi[0] if inchi else None
        rows.append(
            {
                "id": met.id,
                "name": met.name or None,
                "formula": met.formula or None,
                "charge": met.charge,
                "inchi": inchi,
                "miriams": annotation or None,
            }
        )
    table = pd.DataFrame(rows, columns=["id"] + METABOLITE_COLUMNS).set_index("id")
    return table[~table.index.duplicated(keep="first")]


def load_cobra_model(path, key=None):
    """
    Load a COBRA model from a file.

    This function supports MATLAB (.mat), JSON (.json) and SBML (.xml, .sbml) files.

    Args:
        path (str): Path to the model file.
        key (str, optional): Variable name of the model in a .mat file.

    Returns:
        cobra.Model: The loaded model.

    Raises:
        FileNotFoundError: If the specified file does not exist.
        ValueError: If the file format is unsupported.
        RuntimeError: If the file exists but cannot be read.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Model file not found at path: {path}")

    file_extension = os.path.splitext(path)[1].lower()
    if file_extension not in (".mat", ".json", ".xml", ".sbml"):
        raise ValueError(f"Unsupported file format: {file_extension}")

    try:
        if file_extension == ".mat":
            logger.info(f"Loading model from MATLAB file: {path}")
            return load_matlab_model(path, variable_name=key)
        elif file_extension == ".json":
            logger.info(f"Loading model from JSON file: {path}")
            return load_json_model(path)
        else:
            logger.info(f"Loading model from SBML file: {path}")
            return read_sbml_model(path)
    except Exception as e:
        raise RuntimeError(f"Error loading model file: {path}") from e


def load_reference_model(
    path, keep_transport_rxns=False, keep_unbalanced=False, keep_undetermined=False
):
    """
    Load the full reference model and its metabolite table.

    Args:
        path (str): Path to the reference COBRA model file.
        keep_transport_rxns (bool): Include transport reactions.
        keep_unbalanced (bool): Include chemically unbalanced reactions.
        keep_undetermined (bool): Include reactions with undetermined stoichiometry.

    Returns:
        tuple: (ReferenceModel, pd.DataFrame) the reaction catalog and the
        reference metabolite table.
    """
    model = load_cobra_model(path)
    reference = ReferenceModel.from_cobra(
        model,
        keep_transport_rxns=keep_transport_rxns,
        keep_unbalanced=keep_unbalanced,
        keep_undetermined=keep_undetermined,
    )
    return reference, metabolite_table_from_cobra(model)
