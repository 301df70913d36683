import os
import pickle
import hashlib
import logging

logger = logging.getLogger(__name__)


def file_digest(path, chunk_size=1 << 20):
    """SHA-256 of the contents of `path`, so edited inputs invalidate checkpoints."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


def save_checkpoint(data, filename, key=None):
    """Pickle `data` together with the `key` describing the inputs it came from."""
    with open(filename, "wb") as f:
        pickle.dump({"key": key, "data": data}, f)
    logger.info(f"Checkpoint saved to {filename}")


def load_checkpoint(filename, key=None):
    """
    Load data from a checkpoint file.

    Returns None if the file does not exist or was written for a different
    `key` (e.g. another query FASTA or search engine).
    """
    if not os.path.exists(filename):
        return None
    with open(filename, "rb") as f:
        checkpoint = pickle.load(f)
    if checkpoint.get("key") != key:
        logger.info(f"Ignoring stale checkpoint {filename}")
        return None
    logger.info(f"Loading checkpoint from {filename}")
    return checkpoint["data"]
