"""Load findings, style profiles and instructions from YAML (or plain text) files."""

import logging
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from .findings import FindingStore
from .models import Instructions, StyleProfile

LOG = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _read_yaml(path: PathLike) -> Any:
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e


def _unwrap(data: Any, key: str) -> Any:
    """Accept both a bare document and one nested under ``key``."""
    if isinstance(data, dict) and key in data:
        return data[key]
    return data


def load_findings(path: PathLike) -> FindingStore:
    """
    Load findings from a YAML list (or a mapping with a ``findings`` list).

    Raises:
        ValueError: If the file is not a list of valid findings
    """
    data = _unwrap(_read_yaml(path), 'findings')
    if data is None:
        data = []
    if not isinstance(data, list):
        raise ValueError(f"Findings file {path} must contain a list of findings")
    try:
        store = FindingStore(data)
    except ValidationError as e:
        raise ValueError(f"Invalid finding in {path}: {e}") from e
    LOG.info("Loaded %d findings from %s", len(store), path)
    return store


def load_profile(path: PathLike) -> StyleProfile:
    """Load a style profile from a YAML mapping (optionally nested under ``profile``)."""
    data = _unwrap(_read_yaml(path), 'profile')
    if not isinstance(data, dict):
        raise ValueError(f"Profile file {path} must contain a mapping")
    try:
        return StyleProfile.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid style profile in {path}: {e}") from e


def load_instructions(path: Optional[PathLike]) -> Instructions:
    """
    Load instructions from YAML, or treat any other file as the assignment text.

    A missing path gives empty instructions.
    """
    if path is None:
        return Instructions()
    path = Path(path)
    if path.suffix.lower() not in ('.yaml', '.yml'):
        return Instructions(assignment_text=path.read_text(encoding='utf-8').strip())

    data = _unwrap(_read_yaml(path), 'instructions')
    if data is None:
        return Instructions()
    if isinstance(data, str):
        return Instructions(assignment_text=data.strip())
    if not isinstance(data, dict):
        raise ValueError(f"Instructions file {path} must contain a mapping or text")
    try:
        return Instructions.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid instructions in {path}: {e}") from e
