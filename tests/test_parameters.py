"""Tests for configuration loading, validation and the questionnaire."""

import pytest

from draftgempy.exceptions import ConfigurationError
from draftgempy.filesystem import check_file_existence, save_workspace, setup_directories
from draftgempy.parameters import (
    DEFAULT_OPTIONS,
    draftgem_questionnaire,
    load_config,
    validate_config,
)


@pytest.fixture
def input_files(tmp_path):
    paths = {}
    for key, name in (
        ("fasta_file", "query.faa"),
        ("reference_model", "metacyc.json"),
        ("reference_proteins", "protseq.fsa"),
    ):
        path = tmp_path / name
        path.write_text("placeholder\n")
        paths[key] = str(path)
    return paths


def test_load_config_merges_defaults():
    config = load_config(config_dict={"organism_id": "eco", "min_score": 80})

    assert config["organism_id"] == "eco"
    assert config["min_score"] == 80
    assert config["min_positives"] == DEFAULT_OPTIONS["min_positives"]
    assert config["tie_break"] == "first"


def test_load_config_from_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("organism_id: sce\nuse_diamond: no\nthreads: 8\n")

    config = load_config(config_file=str(path))

    assert config["organism_id"] == "sce"
    assert config["use_diamond"] is False
    assert config["threads"] == 8


def test_load_config_needs_a_source():
    with pytest.raises(ValueError):
        load_config()


def test_empty_fasta_is_a_configuration_error(input_files):
    config = load_config(config_dict={**input_files, "fasta_file": ""})

    with pytest.raises(ConfigurationError, match="cannot be empty"):
        validate_config(config)


def test_missing_reference_model(input_files, tmp_path):
    config = load_config(
        config_dict={**input_files, "reference_model": str(tmp_path / "none.json")}
    )

    with pytest.raises(ConfigurationError, match="reference model"):
        validate_config(config)


def test_validate_coerces_numbers(input_files):
    config = validate_config(
        load_config(config_dict={**input_files, "min_score": "120", "threads": "2"})
    )

    assert config["min_score"] == 120.0
    assert config["threads"] == 2
    assert config["fasta_file"] == input_files["fasta_file"]


def test_invalid_number(input_files):
    config = load_config(config_dict={**input_files, "min_positives": "many"})

    with pytest.raises(ConfigurationError):
        validate_config(config)


def test_invalid_tie_break(input_files):
    config = load_config(config_dict={**input_files, "tie_break": "random"})

    with pytest.raises(ConfigurationError, match="tie_break"):
        validate_config(config)


def test_questionnaire_with_defaults(monkeypatch):
    answers = iter(["eco", "query.faa", "metacyc.json", "protseq.fsa", "yes"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))

    config = draftgem_questionnaire()

    assert config["organism_id"] == "eco"
    assert config["fasta_file"] == "query.faa"
    assert config["min_score"] == DEFAULT_OPTIONS["min_score"]


def test_questionnaire_repeats_invalid_choices(monkeypatch):
    answers = iter(
        [
            "eco", "query.faa", "metacyc.json", "protseq.fsa", "no",
            "maybe", "yes",  # keep_transport_rxns
            "no",  # keep_unbalanced
            "no",  # keep_undetermined
            "150",  # min_score
            "",  # min_positives
            "no",  # use_diamond
            "align_len",  # tie_break
            "",  # threads
            "yes",  # save_sbml
            "",  # output_path
        ]
    )
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))

    config = draftgem_questionnaire()

    assert config["keep_transport_rxns"] == "yes"
    assert config["min_score"] == "150"
    assert config["min_positives"] == DEFAULT_OPTIONS["min_positives"]
    assert config["use_diamond"] == "no"
    assert config["tie_break"] == "align_len"
    assert config["output_path"] == DEFAULT_OPTIONS["output_path"]


def test_check_file_existence(tmp_path):
    with pytest.raises(ConfigurationError):
        check_file_existence("", "query FASTA")
    with pytest.raises(ConfigurationError):
        check_file_existence(str(tmp_path), "query FASTA")


def test_setup_directories_and_workspace(tmp_path):
    config = {"output_path": str(tmp_path), "organism_id": "eco"}

    paths = setup_directories(config)
    saved = save_workspace(config, "Step 2: Homology Search", {"hits": 3})

    assert set(paths) == {"temp_workspace", "user_output_models", "user_output_reports"}
    assert saved.startswith(paths["temp_workspace"])
    with open(saved) as f:
        content = f.read()
    assert "Step: Step 2: Homology Search" in content
    assert "hits: 3" in content


def test_setup_directories_needs_organism(tmp_path):
    with pytest.raises(ValueError):
        setup_directories({"output_path": str(tmp_path), "organism_id": ""})
