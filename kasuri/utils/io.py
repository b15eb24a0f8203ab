"""
I/O Utilities

JSON file helpers used for session files.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Union

PathLike = Union[str, Path]


def load_json(file_path: PathLike) -> Dict[str, Any]:
    """
    Load a JSON object from a file.

    Raises:
        ValueError: If the file is not valid JSON or its top level is not an object.
    """
    with open(file_path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {file_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a JSON object in {file_path}, got {type(data).__name__}"
        )
    return data


def save_json(data: Dict[str, Any], file_path: PathLike, indent: int = 2) -> Path:
    """
    Write ``data`` as JSON, creating parent directories.

    The content goes to a temporary sibling first and is then moved over the
    destination in one step.

    Returns:
        The path written.
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = file_path.with_name(file_path.name + ".tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, ensure_ascii=False)
    os.replace(tmp_path, file_path)
    return file_path
