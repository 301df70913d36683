"""Shared fixtures: a small reference catalog, its metabolites and hit tables."""

import pandas as pd
import pytest
from cobra import Metabolite, Model, Reaction

from draftgempy.homology import HIT_COLUMNS
from draftgempy.reference import (
    METABOLITE_COLUMNS,
    REACTION_COLUMNS,
    ReferenceModel,
    incidence_from_gene_sets,
)


def _reference(reactions, genes=None):
    """reactions: list of (id, equation, [reference genes])"""
    rows = []
    gene_sets = []
    for rxn_id, equation, rxn_genes in reactions:
        rows.append(
            {
                "id": rxn_id,
                "name": f"{rxn_id} name",
                "equation": equation,
                "eccodes": "1.1.1.1",
                "subsystems": "test pathway",
                "lb": 0.0,
                "ub": 1000.0,
                "rev": False,
                "c": 0.0,
                "miriams": {},
                "references": "",
            }
        )
        gene_sets.append(rxn_genes)
    if genes is None:
        genes = sorted({gene for _, _, rxn_genes in reactions for gene in rxn_genes})
    table = pd.DataFrame(rows, columns=["id"] + REACTION_COLUMNS).set_index("id")
    return ReferenceModel(
        reactions=table,
        genes=genes,
        rxn_gene_mat=incidence_from_gene_sets(gene_sets, genes),
    )


def _hits(rows):
    """rows: (query, protein, bitscore, ppos) or (query, protein, bitscore, ppos, align_len)"""
    records = []
    for row in rows:
        query, protein, bitscore, ppos = row[:4]
        align_len = row[4] if len(row) > 4 else 300
        records.append(
            {
                "query_gene": query,
                "reference_protein": protein,
                "evalue": 1e-30,
                "align_len": align_len,
                "identity": 40.0,
                "bitscore": float(bitscore),
                "ppos": float(ppos),
            }
        )
    return pd.DataFrame(records, columns=HIT_COLUMNS)


@pytest.fixture
def make_reference():
    return _reference


@pytest.fixture
def make_hits():
    return _hits


@pytest.fixture
def reference():
    """R1 (g1, g2), R2 (g3), R3 (g2, g4), R4 (no gene); g5 has no reaction."""
    return _reference(
        [
            ("R1", "A + B => C", ["g1", "g2"]),
            ("R2", "2 C <=> D", ["g3"]),
            ("R3", "D => E + F", ["g2", "g4"]),
            ("R4", "E => G", []),
        ],
        genes=["g1", "g2", "g3", "g4", "g5"],
    )


@pytest.fixture
def met_table():
    rows = [
        ("A", "alpha", "C2H4O2", -1, "InChI=1S/A", {"chebi": "CHEBI:1"}),
        ("B", "beta", "C3H6O3", 0, "InChI=1S/B", {"chebi": "CHEBI:2"}),
        ("C", None, "C5H10O5", 0, None, None),
        ("D", "delta", None, -2, "", {"kegg.compound": "C00004"}),
    ]
    return pd.DataFrame(
        rows, columns=["id"] + METABOLITE_COLUMNS
    ).set_index("id")


@pytest.fixture
def cobra_reference():
    """A small MetaCyc-like COBRA model; genes are reference protein ids."""
    model = Model("metacyc")

    glc = Metabolite("GLC", formula="C6H12O6", name="glucose", compartment="c", charge=0)
    glc.annotation = {"inchi": "InChI=1S/C6H12O6", "chebi": "CHEBI:4167"}
    glc_e = Metabolite("GLC_e", formula="C6H12O6", name="glucose", compartment="e", charge=0)
    g6p = Metabolite("G6P", formula="C6H11O9P", name="glucose-6-phosphate", compartment="c", charge=-2)
    atp = Metabolite("ATP", formula="C10H12N5O13P3", name="ATP", compartment="c", charge=-4)
    adp = Metabolite("ADP", formula="C10H12N5O10P2", name="ADP", compartment="c", charge=-3)
    proton = Metabolite("PROTON", formula="H", name="H+", compartment="c", charge=1)
    polymer = Metabolite("POLYMER", name="", compartment="c")

    hexokinase = Reaction("GLUCOKIN_RXN", name="glucokinase", subsystem="glycolysis",
                          lower_bound=0, upper_bound=1000)
    hexokinase.add_metabolites({glc: -1, atp: -1, g6p: 1, adp: 1, proton: 1})
    hexokinase.gene_reaction_rule = "MONO1 or MONO2"
    hexokinase.annotation = {"ec-code": ["2.7.1.2"]}

    transport = Reaction("GLC_TRANS", name="glucose transport", lower_bound=-1000, upper_bound=1000)
    transport.add_metabolites({glc_e: -1, glc: 1})
    transport.gene_reaction_rule = "MONO3"

    unbalanced = Reaction("GLC_UNBAL", name="unbalanced", lower_bound=0, upper_bound=1000)
    unbalanced.add_metabolites({glc: -1, g6p: 1})
    unbalanced.gene_reaction_rule = "MONO2"

    undetermined = Reaction("POLY_RXN", name="polymerization", lower_bound=0, upper_bound=1000)
    undetermined.add_metabolites({g6p: -1, polymer: 1})
    undetermined.gene_reaction_rule = "MONO4"
    undetermined.notes["equation"] = "n G6P => POLYMER"

    model.add_reactions([hexokinase, transport, unbalanced, undetermined])
    return model
