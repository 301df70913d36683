import os

import yaml

from draftgempy.exceptions import ConfigurationError
from draftgempy.filesystem import check_file_existence

"""
DraftGEM Parameter Setup.

This module holds the default options of the DraftGEM workflow and provides
three ways of obtaining a configuration: a YAML file, a plain dictionary, or a
console-based questionnaire.

Usage:
    Run this script directly to start the questionnaire:
    $ python parameters.py

Returns:
    dict: A dictionary of parameter names and their respective values.
"""

# Dynamically set the default output path relative to the script's location
DEFAULT_OUTPUT_PATH = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "..", "outputs")
)

SEARCH_ENGINES = ("diamond", "blastp")
TIE_BREAKS = ("first", "align_len", "protein_id")

DEFAULT_OPTIONS = {
    "organism_id": "draft",
    "fasta_file": "",
    "reference_model": "",
    "reference_proteins": "",
    "keep_transport_rxns": "no",
    "keep_unbalanced": "no",
    "keep_undetermined": "no",
    "min_score": 100,
    "min_positives": 45,
    "use_diamond": "yes",
    "tie_break": "first",
    "threads": 1,
    "evalue": 1e-5,
    "save_sbml": "no",
    "version_stamp": "",
    "output_path": DEFAULT_OUTPUT_PATH,  # Dynamically set output path
}


def load_config(config_file=None, config_dict=None):
    """
    Build a complete option dictionary from a YAML file or a dictionary.

    Keys that are not given fall back to ``DEFAULT_OPTIONS``.

    Args:
        config_file (str, optional): Path to a YAML configuration file.
        config_dict (dict, optional): Dictionary containing configuration parameters.

    Returns:
        dict: The merged configuration.

    Raises:
        ValueError: If neither config_file nor config_dict is provided.
    """
    if config_file is None and config_dict is None:
        raise ValueError("Either config_file or config_dict must be provided")

    if config_file is not None:
        with open(config_file, "r") as f:
            user_opts = yaml.safe_load(f) or {}
    else:
        user_opts = config_dict

    config = dict(DEFAULT_OPTIONS)
    config.update(user_opts)
    return config


def validate_config(config):
    """
    Check the inputs every run needs before any work starts.

    Args:
        config (dict): The DraftGEM options.

    Returns:
        dict: The same configuration, with numeric options coerced.

    Raises:
        ConfigurationError: If a required path is missing or empty, or an option
            value is outside its allowed set.
    """
    if not config.get("fasta_file"):
        raise ConfigurationError("The query FASTA filename cannot be empty!")

    config["fasta_file"] = check_file_existence(config["fasta_file"], "query FASTA")
    config["reference_model"] = check_file_existence(
        config.get("reference_model"), "reference model"
    )
    config["reference_proteins"] = check_file_existence(
        config.get("reference_proteins"), "reference protein FASTA"
    )

    if config.get("tie_break", "first") not in TIE_BREAKS:
        raise ConfigurationError(
            f"Unsupported tie_break option: {config['tie_break']}. "
            f"Choose from: {', '.join(TIE_BREAKS)}"
        )

    try:
        config["min_score"] = float(config.get("min_score", 100))
        config["min_positives"] = float(config.get("min_positives", 45))
        config["threads"] = int(config.get("threads", 1))
        config["evalue"] = float(config.get("evalue", 1e-5))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid numeric option: {e}") from e

    return config


def draftgem_questionnaire():
    """
    Console-based questionnaire for setting up parameters for the DraftGEM workflow.

    The function first asks the user if they want to use default options.
    If yes, only the input files are asked for. If no, the user is prompted
    to answer each question manually.

    Returns:
        dict: A dictionary containing the parameter names as keys and the
        user-provided or default values as values.
    """
    print("=== DraftGEM Parameter Setup ===")

    # The input files have no sensible default and are always asked for
    draftgem_opts = dict(DEFAULT_OPTIONS)
    for key in ("organism_id", "fasta_file", "reference_model", "reference_proteins"):
        value = input(f"{key.replace('_', ' ').capitalize()}: ").strip()
        if value:
            draftgem_opts[key] = value

    use_defaults = (
        input("Would you like to use the default configuration? (yes/no): ")
        .strip()
        .lower()
    )

    if use_defaults == "yes":
        print("\nUsing default configuration.")
        for k, v in draftgem_opts.items():
            print(f"{k}: {v}")
        return draftgem_opts

    print("\nPlease answer the following questions:\n")

    # Define the questions and possible options (None indicates free text input)
    questions = {
        "keep_transport_rxns": ["yes", "no"],
        "keep_unbalanced": ["yes", "no"],
        "keep_undetermined": ["yes", "no"],
        "min_score": None,  # Numeric input
        "min_positives": None,  # Numeric input
        "use_diamond": ["yes", "no"],
        "tie_break": list(TIE_BREAKS),
        "threads": None,
        "save_sbml": ["yes", "no"],
        "output_path": None,
    }

    for key, options in questions.items():
        if options is None:
            # Free text input, empty keeps the default
            value = input(
                f"{key.replace('_', ' ').capitalize()} [{draftgem_opts[key]}]: "
            ).strip()
            if not value:
                continue
        else:
            choices = "/".join(options)
            value = input(f"{key.replace('_', ' ').capitalize()} ({choices}): ").strip()

            while value not in options:
                print(f"Invalid choice. Please choose from {choices}.")
                value = input(
                    f"{key.replace('_', ' ').capitalize()} ({choices}): "
                ).strip()

        draftgem_opts[key] = value

    print("\n=== Final Options Set ===")
    for k, v in draftgem_opts.items():
        print(f"{k}: {v}")

    return draftgem_opts


if __name__ == "__main__":
    # Run the questionnaire
    final_options = draftgem_questionnaire()
