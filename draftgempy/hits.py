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
Alignment Hit Filtering for DraftGEM.

Functions:
    - filter_hits: Drop hits below the bitscore or positives cutoffs.
    - reduce_best_hits: Keep the highest scoring reference protein per query gene.
    - select_best_hits: Both of the above in one call.
"""

import logging

import pandas as pd

from draftgempy.utils import strip_namespace

logger = logging.getLogger(__name__)

BEST_HIT_COLUMNS = ["query_gene", "reference_protein", "bitscore", "ppos"]


def filter_hits(hits, min_score=100, min_positives=45):
    """
    Remove all hits that are below the cutoffs.

    Args:
        hits (pd.DataFrame): Hit table with at least `bitscore` and `ppos` columns.
        min_score (float): Minimum bitscore (inclusive).
        min_positives (float): Minimum percentage of positive-scoring matches (inclusive).

    Returns:
        pd.DataFrame: The passing hits, in their original order.
    """
    keep = (hits["bitscore"] >= min_score) & (hits["ppos"] >= min_positives)
    filtered = hits.loc[keep].reset_index(drop=True)
    logger.info(
        f"{len(filtered)} of {len(hits)} hits pass bitscore >= {min_score} "
        f"and positives >= {min_positives}"
    )
    return filtered


def _replaces(new, current, tie_break):
    if new["bitscore"] > current["bitscore"]:
        return True
    if new["bitscore"] < current["bitscore"] or tie_break == "first":
        return False
    if tie_break == "align_len":
        return new["align_len"] > current["align_len"]
    if tie_break == "protein_id":
        return new["reference_protein"] < current["reference_protein"]
    raise ValueError(f"Unsupported tie_break option: {tie_break}")


def reduce_best_hits(hits, tie_break="first"):
    """
    Collapse the hits of each query gene to the single best reference protein.

    Hits are scanned in order. A later hit replaces the stored one only if its
    bitscore is strictly greater, so on equal bitscores the first hit wins
    unless `tie_break` asks for the longer alignment ("align_len") or the
    lexicographically smaller protein id ("protein_id").

    Args:
        hits (pd.DataFrame): Filtered hit table.
        tie_break (str): "first", "align_len" or "protein_id".

    Returns:
        pd.DataFrame: One row per query gene with columns `query_gene`,
        `reference_protein` (namespace stripped), `bitscore` and `ppos`, in
        first-occurrence order of the query genes.
    """
    best = {}
    for hit in hits.to_dict("records"):
        hit["reference_protein"] = strip_namespace(hit["reference_protein"])
        gene = hit["query_gene"]
        if gene not in best or _replaces(hit, best[gene], tie_break):
            best[gene] = hit

    # dicts keep insertion order, so genes stay in first-occurrence order
    best_hits = pd.DataFrame(
        [[hit[c] for c in BEST_HIT_COLUMNS] for hit in best.values()],
        columns=BEST_HIT_COLUMNS,
    )
    return best_hits


def select_best_hits(hits, min_score=100, min_positives=45, tie_break="first"):
    """Filter `hits` by the cutoffs and reduce them to one best hit per query gene."""
    best_hits = reduce_best_hits(
        filter_hits(hits, min_score, min_positives), tie_break=tie_break
    )
    logger.info(f"Best hits retained for {len(best_hits)} query genes")
    return best_hits
