"""Tests for metabolite annotation from the reference metabolite table."""

import numpy as np
import pandas as pd

from draftgempy.annotation import annotate_metabolites, merge_annotation
from draftgempy.organism_model import OrganismModel


def _model(mets):
    model = OrganismModel(id="org", reactions=pd.DataFrame(index=[]))
    model.mets = list(mets)
    return model


def test_known_metabolites_get_reference_fields(met_table):
    model = annotate_metabolites(_model(["A", "B"]), met_table)

    assert model.met_names == ["alpha", "beta"]
    assert model.met_formulas == ["C2H4O2", "C3H6O3"]
    assert model.met_charges == [-1, 0]
    assert model.inchis == ["InChI=1S/A", "InChI=1S/B"]
    assert model.met_miriams == [{"chebi": "CHEBI:1"}, {"chebi": "CHEBI:2"}]


def test_unknown_metabolites_keep_defaults(met_table):
    model = annotate_metabolites(_model(["E", "A"]), met_table)

    assert model.met_names == ["E", "alpha"]
    assert model.met_formulas == ["", "C2H4O2"]
    assert model.met_charges == [0, -1]
    assert model.inchis == ["", "InChI=1S/A"]
    assert model.met_miriams[0] == {}


def test_missing_fields_fall_back(met_table):
    model = annotate_metabolites(_model(["C", "D"]), met_table)

    # C has no name, D has no formula
    assert model.met_names == ["C", "delta"]
    assert model.met_formulas == ["C5H10O5", ""]
    assert model.inchis == ["", ""]
    assert model.met_miriams[0] == {}
    assert model.met_charges == [0, -2]


def test_names_are_never_empty(met_table):
    model = annotate_metabolites(_model(["A", "C", "X", "Y"]), met_table)

    assert all(model.met_names)


def test_single_system_compartment(met_table):
    model = annotate_metabolites(_model(["A", "E"]), met_table)

    assert model.comps == ["s"]
    assert model.comp_names == ["System"]
    assert model.met_comps.tolist() == [0, 0]
    assert np.array_equal(model.b, np.zeros(2))


def test_default_values_are_not_shared():
    table = pd.DataFrame(columns=["miriams"])
    values = merge_annotation(["A", "B"], table, "miriams", {})

    values[0]["chebi"] = "CHEBI:1"
    assert values[1] == {}


def test_absent_column_uses_existing_values():
    table = pd.DataFrame(index=["A"], columns=["name"], data=[["alpha"]])
    values = merge_annotation(["A", "B"], table, "inchi", "", current=["", "InChI=1S/B"])

    assert values == ["", "InChI=1S/B"]


def test_empty_model(met_table):
    model = annotate_metabolites(_model([]), met_table)

    assert model.met_names == []
    assert len(model.b) == 0


def test_repeated_reference_ids_use_first_row(met_table):
    repeated = pd.concat([met_table, met_table.loc[["A"]].assign(name="other alpha")])

    model = annotate_metabolites(_model(["A", "B"]), repeated)

    assert model.met_names == ["alpha", "beta"]
    assert merge_annotation(["A", "E"], repeated, "charge", 0) == [-1, 0]
