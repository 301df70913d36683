import numpy as np

META_NAMESPACE = "gnl|META|"


def as_bool(value):
    # Options come either from the questionnaire ("yes"/"no") or from YAML/dicts (bool)
    if isinstance(value, str):
        return value.strip().lower() in ("yes", "y", "true", "1")
    return bool(value)


def strip_namespace(protein_id, namespace=META_NAMESPACE):
    """Remove the database qualifier that search tools prepend to subject ids."""
    return str(protein_id).replace(namespace, "")


def row_counts(mat):
    """Number of stored entries in each row of a sparse matrix."""
    return np.diff(mat.tocsr().indptr)


def column_counts(mat):
    """Number of stored entries in each column of a sparse matrix."""
    return np.diff(mat.tocsc().indptr)
