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
Stoichiometric Matrix Construction for DraftGEM.

Equations are parsed by cobra's reaction-string parser on a scratch model;
the scratch model is only used to collect metabolites and coefficients.

Functions:
    - build_stoichiometry: Parse equations into S, the metabolite list and bad equations.
    - add_stoichiometry: Attach S and the metabolite list to a draft model.
"""

import logging

from scipy import sparse
from cobra import Model, Reaction
from cobra.util.array import create_stoichiometric_matrix
from tqdm.auto import tqdm

logger = logging.getLogger(__name__)

TERM_SEPARATOR = " + "


def build_stoichiometry(equations, show_progress=False):
    """
    Construct the stoichiometric matrix from reaction equations.

    Equations cobra cannot parse (no arrow, non-numeric coefficients such as
    "n" or "(n+1)") are reported instead of failing the whole call; their
    reaction columns stay empty.

    Args:
        equations (list of str): One equation per reaction, e.g. "2 A + B => C".
        show_progress (bool): Show a tqdm progress bar.

    Returns:
        tuple:
            scipy.sparse.csr_matrix: Metabolite x reaction matrix.
            list: Metabolite ids in order of first appearance.
            list: Positions of the equations that could not be parsed.
    """
    if len(equations) == 0:
        return sparse.csr_matrix((0, 0)), [], []

    scratch = Model("stoichiometry")
    reactions = [Reaction(f"R{i}") for i in range(len(equations))]
    scratch.add_reactions(reactions)

    bad_indices = []
    for i, (rxn, equation) in enumerate(
        tqdm(
            zip(reactions, equations),
            total=len(equations),
            desc="Parsing equations",
            disable=not show_progress,
        )
    ):
        try:
            rxn.build_reaction_from_string(
                equation, verbose=False, term_split=TERM_SEPARATOR
            )
        except ValueError as e:
            logger.debug(f"Cannot parse equation {i} '{equation}': {e}")
            rxn.subtract_metabolites(rxn.metabolites, combine=True)
            bad_indices.append(i)

    orphans = [met for met in scratch.metabolites if not met.reactions]
    if orphans:
        scratch.remove_metabolites(orphans)

    mets = [met.id for met in scratch.metabolites]
    S = sparse.csr_matrix(create_stoichiometric_matrix(scratch, array_type="dok"))
    return S, mets, bad_indices


def add_stoichiometry(model, show_progress=False):
    """
    Build S for the draft model from its reaction equations.

    Args:
        model (OrganismModel): Draft model, modified in place.
        show_progress (bool): Show a tqdm progress bar.

    Returns:
        list: Positions of reactions whose equations could not be parsed.
    """
    S, mets, bad_indices = build_stoichiometry(
        list(model.reactions["equation"]), show_progress=show_progress
    )
    model.S = S
    model.mets = mets
    model.bad_rxns = [model.rxns[i] for i in bad_indices]
    if bad_indices:
        logger.warning(
            f"{len(bad_indices)} equations could not be parsed; their reactions "
            f"are kept without stoichiometry"
        )
    return bad_indices
