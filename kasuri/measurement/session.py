"""
Session persistence.

Writes and reads ``SessionData`` as JSON files. The layout of the file is the
pydantic model dump; unknown major format versions are rejected on load.
"""

import logging
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from kasuri.common.types import SessionData
from kasuri.utils.io import load_json, save_json

logger = logging.getLogger(__name__)


def save_session(session: SessionData, file_path: Union[str, Path]) -> Path:
    """
    Save a session to a JSON file.

    Returns:
        The path written.
    """
    file_path = Path(file_path)
    save_json(session.model_dump(mode="json"), file_path)
    logger.info(f"Saved session with {len(session.markers)} markers to {file_path}")
    return file_path


def load_session(file_path: Union[str, Path]) -> SessionData:
    """
    Load a session from a JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file is not a valid session.
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Session file not found: {file_path}")

    try:
        session = SessionData.model_validate(load_json(file_path))
    except ValidationError as e:
        raise ValueError(f"Invalid session file {file_path}: {e}") from e

    logger.info(f"Loaded session with {len(session.markers)} markers from {file_path}")
    return session
