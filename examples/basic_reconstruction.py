#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Basic example of using DraftGEMPy to build a draft model by homology.

This script builds a draft model of Streptomyces coelicolor from its protein
sequences and a COBRA export of MetaCyc. Paths are read from the command line.
"""

import os
import sys
import tempfile

from draftgempy.draftgem import run_draftgem


def main(fasta_file, reference_model, reference_proteins):
    # Create a temporary directory for outputs
    output_dir = tempfile.mkdtemp(prefix="draftgempy_example_")
    print(f"Output directory: {output_dir}")

    config = {
        # Basic settings
        "organism_id": "sco",
        "fasta_file": fasta_file,
        "reference_model": reference_model,
        "reference_proteins": reference_proteins,
        # Only balanced, non-transport reactions with known structures
        "keep_transport_rxns": "no",
        "keep_unbalanced": "no",
        "keep_undetermined": "no",
        # Hit cutoffs
        "min_score": 100,
        "min_positives": 45,
        # DIAMOND is much faster than BLASTP on a full proteome
        "use_diamond": "yes",
        "threads": 4,
        "save_sbml": "yes",
        "version_stamp": "MetaCyc 27.0",
        # Output path
        "output_path": output_dir,
    }

    print("Starting DraftGEM workflow...")
    draftgem = run_draftgem(config_dict=config)
    draft_model = draftgem.model

    print("\nReconstruction Statistics:")
    print(f"Reference reactions: {len(draftgem.reference.reactions)}")
    print(f"Draft model reactions: {len(draft_model.reactions)}")
    print(f"Draft model genes: {len(draft_model.genes)}")
    print(f"Draft model metabolites: {len(draft_model.mets)}")
    if draft_model.bad_rxns:
        print(f"Reactions without stoichiometry: {len(draft_model.bad_rxns)}")

    print(
        f"\nDraft model saved to: {os.path.join(output_dir, 'UserOutputs', 'Models', 'sco')}"
    )

    return draft_model


if __name__ == "__main__":
    if len(sys.argv) != 4:
        sys.exit(
            "usage: basic_reconstruction.py PROTEINS.faa METACYC_MODEL PROTSEQ.fsa"
        )
    draft_model = main(*sys.argv[1:])
