#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
DraftGEMPy: draft genome-scale metabolic models by homology to MetaCyc.

This module serves as the main entry point for the DraftGEM workflow. A query
proteome is searched against the MetaCyc protein sequences, each query gene
keeps its best hit, and the reactions of the hit reference genes are
transferred to a draft model of the query organism.

References:
    * RAVEN: Wang, H., et al., "RAVEN 2.0: A versatile toolbox for metabolic
      network reconstruction and a case study on Streptomyces coelicolor".
      PLoS Computational Biology, 2018. 14(10).
    * MetaCyc: Caspi, R., et al., "The MetaCyc database of metabolic pathways
      and enzymes". Nucleic Acids Research, 2018. 46(D1).
"""

import os
import logging
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from draftgempy.annotation import annotate_metabolites
from draftgempy.checkpoints import file_digest, load_checkpoint, save_checkpoint
from draftgempy.filesystem import setup_directories, save_workspace
from draftgempy.gene_rules import synthesize_gr_rules, standardize_gr_rules
from draftgempy.hits import select_best_hits
from draftgempy.homology import search_homology
from draftgempy.organism_model import (
    HOMOLOGY_CONFIDENCE,
    OrganismModel,
    save_model,
)
from draftgempy.parameters import (
    draftgem_questionnaire,
    load_config,
    validate_config,
)
from draftgempy.propagation import propagate_genes
from draftgempy.reference import ReferenceModel, load_reference_model
from draftgempy.stoichiometry import add_stoichiometry
from draftgempy.utils import as_bool, column_counts


def reconstruct_model(
    organism_id: str,
    hits: pd.DataFrame,
    reference: ReferenceModel,
    met_table: pd.DataFrame,
    min_score: float = 100,
    min_positives: float = 45,
    tie_break: str = "first",
    version: str = "",
    show_progress: bool = False,
) -> OrganismModel:
    """
    Build the draft model of an organism from its homology search hits.

    Args:
        organism_id (str): Query organism abbreviation, used as model id.
        hits (pd.DataFrame): Raw hit table of the homology search.
        reference (ReferenceModel): The reference reaction catalog.
        met_table (pd.DataFrame): The reference metabolite table.
        min_score (float): Minimum bitscore of a hit.
        min_positives (float): Minimum percentage of positives of a hit.
        tie_break (str): How equal bitscores are resolved, see ``reduce_best_hits``.
        version (str): Opaque version stamp stored on the model.
        show_progress (bool): Show progress bars for long loops.

    Returns:
        OrganismModel: The draft model.
    """
    model = OrganismModel.from_reference(organism_id, reference)
    model.version = version

    # Keep only the best hit of each query gene
    best_hits = select_best_hits(hits, min_score, min_positives, tie_break=tie_break)

    # Transfer reactions and drop those without genes
    propagate_genes(model, best_hits, reference)
    model.reactions["confidence"] = HOMOLOGY_CONFIDENCE

    # Only the OR relationship between genes is considered
    model.gr_rules = synthesize_gr_rules(model.rxn_gene_mat, model.genes, model.rxns)

    add_stoichiometry(model, show_progress=show_progress)
    annotate_metabolites(model, met_table)

    # In the end fix grRules and rxnGeneMat
    standardize_gr_rules(model)
    model.check_consistency()
    return model


class DraftGEM:
    """
    Main DraftGEM workflow class for homology-based draft reconstruction.

    Attributes:
        config (Dict): Configuration parameters for the reconstruction.
        paths (Dict): Directory paths for output and working files.
        logger (logging.Logger): Logger for tracking workflow progress.
    """

    def __init__(self, config: Dict):
        """
        Initialize the DraftGEM workflow with configuration parameters.

        Args:
            config (Dict): Configuration dictionary; missing keys take defaults.

        Raises:
            ConfigurationError: If a required input is missing or invalid.
        """
        self.config = validate_config(load_config(config_dict=config))
        self.logger = self._setup_logger()
        self.paths = setup_directories(self.config)

        # Initialize workflow state variables
        self.reference: Optional[ReferenceModel] = None
        self.met_table: Optional[pd.DataFrame] = None
        self.hits: Optional[pd.DataFrame] = None
        self.model: Optional[OrganismModel] = None
        self.saved_files = []

        self.checkpoint_dir = Path(self.paths["temp_workspace"]) / "checkpoints"
        self.checkpoint_dir.mkdir(exist_ok=True)

    def _setup_logger(self) -> logging.Logger:
        """Set up a logger for the DraftGEM workflow."""
        logger = logging.getLogger("draftgempy")
        logger.setLevel(logging.INFO)

        # Drop handlers left over from a previous run in the same process
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

        ch = logging.StreamHandler()
        ch.setLevel(logging.INFO)
        ch.setFormatter(formatter)
        logger.addHandler(ch)

        if self.config.get("output_path"):
            os.makedirs(self.config["output_path"], exist_ok=True)
            log_file = Path(self.config["output_path"]) / "draftgem.log"
            fh = logging.FileHandler(log_file)
            fh.setLevel(logging.DEBUG)
            fh.setFormatter(formatter)
            logger.addHandler(fh)

        return logger

    @property
    def engine(self) -> str:
        return "diamond" if as_bool(self.config.get("use_diamond", "yes")) else "blastp"

    def run(self) -> OrganismModel:
        """
        Execute the complete DraftGEM workflow.

        This method runs the reconstruction in sequence:
        1. Loading of the reference model and metabolite table
        2. Homology search of the query proteome
        3. Draft model reconstruction
        4. Saving of the draft model and the best-hit report

        Returns:
            OrganismModel: The draft model.
        """
        try:
            self.logger.info("Starting DraftGEM workflow...")
            self._load_reference()
            save_workspace(self.config, "Step 1: Reference Model")

            self._search_homology()
            save_workspace(
                self.config, "Step 2: Homology Search", {"hits": len(self.hits)}
            )

            self._reconstruct()
            save_workspace(
                self.config, "Step 3: Draft Reconstruction", self.model.summary()
            )

            self._save_final_model()
            self.logger.info("DraftGEM workflow completed successfully!")

        except Exception as e:
            self.logger.error(f"Error in DraftGEM workflow: {str(e)}", exc_info=True)
            raise

        return self.model

    def _load_reference(self) -> None:
        """Load the full reference model and its metabolites."""
        self.logger.info("Loading the full reference model...")
        self.reference, self.met_table = load_reference_model(
            self.config["reference_model"],
            keep_transport_rxns=as_bool(self.config.get("keep_transport_rxns")),
            keep_unbalanced=as_bool(self.config.get("keep_unbalanced")),
            keep_undetermined=as_bool(self.config.get("keep_undetermined")),
        )
        self.logger.info(
            f"The full reference model loaded: {len(self.reference.reactions)} "
            f"reactions, {len(self.reference.genes)} genes, "
            f"{len(self.met_table)} metabolites"
        )

    def _search_homology(self) -> None:
        """Search the query proteome, reusing the hits of an earlier identical search."""
        search_key = (
            self.config["fasta_file"],
            file_digest(self.config["fasta_file"]),
            self.config["reference_proteins"],
            file_digest(self.config["reference_proteins"]),
            self.engine,
            self.config["evalue"],
        )
        checkpoint_file = (
            self.checkpoint_dir / f"{self.config['organism_id']}_{self.engine}_hits.pkl"
        )
        hits = load_checkpoint(checkpoint_file, key=search_key)

        if hits is not None:
            self.logger.info("Loaded homology search hits from checkpoint.")
            self.hits = hits
            return

        self.logger.info(f"Searching query proteins with {self.engine}...")
        self.hits = search_homology(
            self.config["organism_id"],
            self.config["fasta_file"],
            self.config["reference_proteins"],
            engine=self.engine,
            work_dir=self.paths["temp_workspace"],
            threads=self.config["threads"],
            evalue=self.config["evalue"],
        )
        save_checkpoint(self.hits, checkpoint_file, key=search_key)

    def _reconstruct(self) -> None:
        """Turn the hits into a draft model."""
        self.logger.info("Reconstructing the draft model...")
        self.model = reconstruct_model(
            self.config["organism_id"],
            self.hits,
            self.reference,
            self.met_table,
            min_score=self.config["min_score"],
            min_positives=self.config["min_positives"],
            tie_break=self.config.get("tie_break", "first"),
            version=str(self.config.get("version_stamp") or ""),
            show_progress=True,
        )
        summary = self.model.summary()
        self.logger.info(
            f"Draft model {self.model.id}: {summary['reactions']} reactions, "
            f"{summary['genes']} genes, {summary['metabolites']} metabolites"
        )

    def _best_hit_report(self) -> pd.DataFrame:
        best_hits = select_best_hits(
            self.hits,
            self.config["min_score"],
            self.config["min_positives"],
            tie_break=self.config.get("tie_break", "first"),
        )
        best_hits["in_model"] = best_hits["query_gene"].isin(self.model.genes)
        best_hits["n_reactions"] = 0
        if self.model.genes:
            counts = column_counts(self.model.rxn_gene_mat)
            per_gene = dict(zip(self.model.genes, counts))
            best_hits["n_reactions"] = (
                best_hits["query_gene"].map(per_gene).fillna(0).astype(int)
            )
        return best_hits

    def _save_final_model(self) -> None:
        """Save the draft model and the best-hit report."""
        self.logger.info("Saving draft model...")
        model_path = os.path.join(
            self.paths["user_output_models"], f"{self.model.id}.json"
        )
        self.saved_files = save_model(
            self.model, model_path, sbml=as_bool(self.config.get("save_sbml"))
        )

        report_path = os.path.join(
            self.paths["user_output_reports"], f"{self.model.id}_best_hits.tsv"
        )
        self._best_hit_report().to_csv(report_path, sep="\t", index=False)
        self.saved_files.append(report_path)
        self.logger.info(f"Best-hit report saved to {report_path}")


def run_draftgem(config_file=None, config_dict=None):
    """
    Run the DraftGEM workflow with the provided configuration.

    Args:
        config_file (str, optional): Path to a YAML configuration file.
        config_dict (dict, optional): Dictionary containing configuration parameters.

    Returns:
        DraftGEM: The DraftGEM instance with the completed workflow.

    Raises:
        ValueError: If neither config_file nor config_dict is provided.
    """
    config = load_config(config_file=config_file, config_dict=config_dict)
    draftgem = DraftGEM(config)
    draftgem.run()
    return draftgem


def main(argv=None):
    import argparse

    parser = argparse.ArgumentParser(
        description="DraftGEMPy: Draft metabolic models by homology to MetaCyc"
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("-c", "--config", help="Path to configuration file")
    source.add_argument(
        "-i",
        "--interactive",
        action="store_true",
        help="Answer a questionnaire instead of reading a configuration file",
    )
    args = parser.parse_args(argv)

    if args.interactive:
        run_draftgem(config_dict=draftgem_questionnaire())
    else:
        run_draftgem(config_file=args.config)


if __name__ == "__main__":
    main()
