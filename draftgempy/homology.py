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
Homology Search for DraftGEM.

Runs DIAMOND or BLASTP of the query proteome against the reference protein
sequences and reads the tabular output into a hit table.

Functions:
    - read_query_ids: Read and check the sequence ids of a protein FASTA file.
    - build_search_command: Command lines for database creation and search.
    - parse_hit_table: Read tabular search output into a DataFrame.
    - search_homology: Run the whole search and return the hit table.
"""

import os
import shutil
import logging
import subprocess
import tempfile

import pandas as pd
from Bio import SeqIO

from draftgempy.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Output columns requested from the search tools, in this order
OUTPUT_FIELDS = ["qseqid", "sseqid", "evalue", "length", "pident", "bitscore", "ppos"]
HIT_COLUMNS = [
    "query_gene",
    "reference_protein",
    "evalue",
    "align_len",
    "identity",
    "bitscore",
    "ppos",
]
ENGINES = ("diamond", "blastp")


def read_query_ids(fasta_file):
    """
    Read the sequence ids of a protein FASTA file.

    Args:
        fasta_file (str): Path to the FASTA file.

    Returns:
        list: Sequence ids in file order.

    Raises:
        ConfigurationError: If the file holds no sequences or repeats an id.
    """
    ids = [record.id for record in SeqIO.parse(fasta_file, "fasta")]
    if not ids:
        raise ConfigurationError(f"No protein sequences found in {fasta_file}")
    if len(set(ids)) != len(ids):
        raise ConfigurationError(f"Duplicate sequence ids found in {fasta_file}")
    return ids


def build_search_command(
    engine, query_fasta, reference_fasta, db_path, out_path, threads=1, evalue=1e-5
):
    """
    Build the command lines for one homology search.

    Args:
        engine (str): "diamond" or "blastp".
        query_fasta (str): Query protein FASTA.
        reference_fasta (str): Reference protein FASTA.
        db_path (str): Path (prefix) of the database to create.
        out_path (str): Path of the tabular output file.
        threads (int): Number of threads for the search tool.
        evalue (float): Maximum e-value reported by the search tool.

    Returns:
        tuple: (database command, search command), each a list of arguments.

    Raises:
        ConfigurationError: If the engine is not supported.
    """
    if engine == "diamond":
        make_db = ["diamond", "makedb", "--in", reference_fasta, "--db", db_path]
        search = [
            "diamond",
            "blastp",
            "--query", query_fasta,
            "--db", db_path,
            "--out", out_path,
            "--more-sensitive",
            "--evalue", str(evalue),
            "--threads", str(threads),
            "--outfmt", "6", *OUTPUT_FIELDS,
        ]
    elif engine == "blastp":
        make_db = [
            "makeblastdb", "-in", reference_fasta, "-out", db_path, "-dbtype", "prot",
        ]
        search = [
            "blastp",
            "-query", query_fasta,
            "-db", db_path,
            "-out", out_path,
            "-evalue", str(evalue),
            "-num_threads", str(threads),
            "-outfmt", "6 " + " ".join(OUTPUT_FIELDS),
        ]
    else:
        raise ConfigurationError(
            f"Unsupported search engine: {engine}. Choose from: {', '.join(ENGINES)}"
        )
    return make_db, search


def parse_hit_table(path):
    """
    Read tabular search output.

    Args:
        path (str): Tab-separated file with the columns of ``OUTPUT_FIELDS``.

    Returns:
        pd.DataFrame: Hit table with the columns of ``HIT_COLUMNS``, in file order.
    """
    if os.path.getsize(path) == 0:
        # No hits at all, e.g. an unrelated proteome
        return pd.DataFrame(columns=HIT_COLUMNS).astype(
            {"bitscore": float, "ppos": float, "evalue": float, "identity": float}
        )
    hits = pd.read_csv(
        path,
        sep="\t",
        header=None,
        names=HIT_COLUMNS,
        dtype={"query_gene": str, "reference_protein": str},
    )
    return hits


def _run(command):
    logger.info(f"Running: {' '.join(command)}")
    try:
        subprocess.run(command, check=True, capture_output=True, text=True)
    except FileNotFoundError as e:
        raise RuntimeError(f"Executable not found: {command[0]}") from e
    except subprocess.CalledProcessError as e:
        raise RuntimeError(
            f"{command[0]} failed with exit code {e.returncode}: {e.stderr}"
        ) from e


def search_homology(
    organism_id,
    query_fasta,
    reference_fasta,
    engine="diamond",
    work_dir=None,
    threads=1,
    evalue=1e-5,
):
    """
    Search the query proteome against the reference protein sequences.

    Args:
        organism_id (str): Query organism abbreviation, used in file names.
        query_fasta (str): Query protein FASTA.
        reference_fasta (str): Reference protein FASTA (MetaCyc protseq.fsa).
        engine (str): "diamond" (default) or "blastp".
        work_dir (str, optional): Directory for the database and raw output.
            A temporary directory is used and removed when not given.
        threads (int): Number of threads for the search tool.
        evalue (float): Maximum e-value reported by the search tool.

    Returns:
        pd.DataFrame: Hit table with one row per query/subject pair.

    Raises:
        ConfigurationError: If the query FASTA is empty or the engine is unknown.
        RuntimeError: If a search tool is missing or fails.
    """
    query_ids = read_query_ids(query_fasta)
    logger.info(f"{len(query_ids)} query proteins read from {query_fasta}")

    cleanup = work_dir is None
    if cleanup:
        work_dir = tempfile.mkdtemp(prefix="draftgempy_search_")
    os.makedirs(work_dir, exist_ok=True)

    db_path = os.path.join(work_dir, f"{organism_id}_reference_db")
    out_path = os.path.join(work_dir, f"{organism_id}_{engine}_hits.tsv")
    make_db, search = build_search_command(
        engine, query_fasta, reference_fasta, db_path, out_path, threads, evalue
    )

    try:
        _run(make_db)
        _run(search)
        hits = parse_hit_table(out_path)
    finally:
        if cleanup:
            shutil.rmtree(work_dir, ignore_errors=True)

    logger.info(
        f"Completed searching against reference protein sequences: {len(hits)} hits"
    )
    return hits
