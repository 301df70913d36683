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
Filesystem Utilities for DraftGEM.

This module provides utility functions for checking input files, setting up
directories and saving workspace files during the DraftGEM workflow.

Functions:
    - check_file_existence: Resolve an input path and make sure it exists.
    - setup_directories: Create necessary directories for the workflow.
    - save_workspace: Save the state of the workspace at specific workflow steps.
"""

import os
from datetime import datetime
import logging

from draftgempy.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def check_file_existence(path, label="input"):
    """
    Resolve `path` to an absolute path and make sure the file exists.

    Args:
        path (str): Path given by the user.
        label (str): What the file is, used in the error message.

    Returns:
        str: The absolute path.

    Raises:
        ConfigurationError: If `path` is empty or does not point to a file.
    """
    if not path:
        raise ConfigurationError(f"The {label} filename cannot be empty!")
    full_path = os.path.abspath(os.path.expanduser(str(path)))
    if not os.path.isfile(full_path):
        raise ConfigurationError(f"The {label} file not found at path: {full_path}")
    return full_path


def setup_directories(config):
    """
    Create and organize output directories for the DraftGEM workflow.

    If directories already exist, they are preserved.

    Args:
        config (dict): A dictionary containing user-defined parameters, including:
            - output_path (str): Base path for output directories.
            - organism_id (str): Query organism abbreviation (e.g., "sce").

    Returns:
        dict: A dictionary containing the paths of the created directories:
            - temp_workspace: Temporary workspace directory (search results, checkpoints).
            - user_output_models: Directory for storing draft models.
            - user_output_reports: Directory for storing best-hit reports.

    Raises:
        ValueError: If `output_path` or `organism_id` are missing from the configuration.
    """
    # Validate required keys
    required_keys = ["output_path", "organism_id"]
    for key in required_keys:
        if key not in config or not config[key]:
            raise ValueError(f"Missing required configuration parameter: {key}")

    base_path = config["output_path"]
    paths = {
        "temp_workspace": os.path.join(
            base_path, "TEMP", "WorkSpaces", config["organism_id"]
        ),
        "user_output_models": os.path.join(
            base_path, "UserOutputs", "Models", config["organism_id"]
        ),
        "user_output_reports": os.path.join(
            base_path, "UserOutputs", "Reports", config["organism_id"]
        ),
    }

    for path_name, path in paths.items():
        os.makedirs(path, exist_ok=True)
        logger.info(f"Created or verified directory: {path_name} -> {path}")

    return paths


def save_workspace(config, step_name, summary=None):
    """
    Save the current workspace state to a timestamped file.

    This function generates a text file containing metadata about the current
    state of the workflow. It is intended for debugging or workflow recovery.

    Args:
        config (dict): A dictionary containing user-defined parameters, including:
            - output_path (str): Base path for output directories.
            - organism_id (str): Query organism abbreviation.
        step_name (str): A descriptive name for the current workflow step
            (e.g., "Step 3: Best Hits").
        summary (dict, optional): Counts describing the draft model at this step.

    Returns:
        str: The full path to the saved workspace file.

    Raises:
        ValueError: If `output_path` or `organism_id` are missing from the configuration.
    """
    required_keys = ["output_path", "organism_id"]
    for key in required_keys:
        if key not in config or not config[key]:
            raise ValueError(f"Missing required configuration parameter: {key}")

    # Generate the timestamped filename
    now = datetime.now()
    date_str = now.strftime("%Y-%m-%d")
    time_str = now.strftime("%H-%M-%S-%f")
    safe_step = step_name.replace(":", "").replace(" ", "_")
    file_name = f"{date_str}_{time_str}_{safe_step}.txt"
    save_path = os.path.join(
        config["output_path"],
        "TEMP",
        "WorkSpaces",
        config["organism_id"],
        file_name,
    )

    os.makedirs(os.path.dirname(save_path), exist_ok=True)

    with open(save_path, "w") as file:
        file.write("Workspace saved for debugging or reloading.\n")
        file.write(f"Date: {date_str}, Time: {time_str}\n")
        file.write(f"Organism: {config['organism_id']}\n")
        file.write(f"Query FASTA: {config.get('fasta_file', '')}\n")
        file.write(f"Step: {step_name}\n")
        for key, value in (summary or {}).items():
            file.write(f"{key}: {value}\n")
        logger.info(f"Workspace details written to: {save_path}")

    return save_path
