"""
Metabolite Annotation for DraftGEM.

Metabolites of the draft model are joined against the reference metabolite
table. Missing metabolites are normal (the reference table does not cover
every compound used in equations) and simply keep the field defaults.
"""

import copy
import logging

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

# field in the reference table -> (draft model attribute, default value)
ANNOTATION_FIELDS = {
    "name": ("met_names", ""),
    "formula": ("met_formulas", ""),
    "charge": ("met_charges", 0),
    "inchi": ("inchis", ""),
    "miriams": ("met_miriams", {}),
}


def _is_missing(value):
    if isinstance(value, (dict, list)):
        return False
    return value is None or (isinstance(value, float) and np.isnan(value))


def merge_annotation(met_ids, met_table, field, default, current=None):
    """
    Look up one annotation field for every metabolite id.

    Args:
        met_ids (list): Metabolite ids of the draft model.
        met_table (pd.DataFrame): Reference metabolite table indexed by id;
            only the first row of a repeated id is used.
        field (str): Column of `met_table` to copy.
        default: Value used when neither the reference nor `current` has one.
        current (list, optional): Values already present in the model; they
            are kept where the reference has nothing.

    Returns:
        list: One value per metabolite id.
    """
    if field in met_table.columns:
        # The first row wins for repeated metabolite ids
        column = met_table[field]
        column = column[~column.index.duplicated(keep="first")]
        found = column.reindex(met_ids)
    else:
        found = pd.Series([None] * len(met_ids), index=met_ids, dtype=object)

    values = []
    for i, value in enumerate(found):
        if _is_missing(value):
            if current is not None and not _is_missing(current[i]):
                value = current[i]
            else:
                value = copy.deepcopy(default)
        values.append(value)
    return values


def annotate_metabolites(model, met_table):
    """
    Fill in metabolite annotation of the draft model from the reference table.

    Names, formulas, charges, InChIs and cross-references are copied for every
    metabolite found in `met_table`. All metabolites are put in one
    compartment called "s" (for system) and `b` is set to zeros. Metabolites
    without a name get their id as name.

    Args:
        model (OrganismModel): Draft model with `mets` set, modified in place.
        met_table (pd.DataFrame): Reference metabolite table indexed by id.

    Returns:
        OrganismModel: The same model.
    """
    met_ids = list(model.mets)
    for field, (attribute, default) in ANNOTATION_FIELDS.items():
        values = merge_annotation(
            met_ids, met_table, field, default, current=getattr(model, attribute)
        )
        setattr(model, attribute, values)

    model.met_charges = [int(charge) for charge in model.met_charges]
    model.b = np.zeros(len(met_ids))
    model.comps = ["s"]
    model.comp_names = ["System"]
    model.met_comps = np.zeros(len(met_ids), dtype=int)

    # Metabolite names can still be empty; use the id instead
    model.met_names = [
        name if name else met_id for name, met_id in zip(model.met_names, met_ids)
    ]

    matched = int(pd.Index(met_ids).isin(met_table.index).sum())
    logger.info(
        f"Annotated {matched} of {len(met_ids)} metabolites from the reference table"
    )
    return model
