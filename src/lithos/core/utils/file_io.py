"""
File I/O utilities: safe write and structured (YAML/JSON) loading.

All functions operate on explicit paths; no implicit directory lookups.
"""

from __future__ import annotations

import json
import os
from typing import Any

import yaml

from ..exceptions import FileIOError

STRUCTURED_EXTENSIONS = (".yaml", ".yml", ".json")


def safe_write(filepath: str, content: str, mode: str = "w", encoding: str = "utf-8") -> None:
    """Write content to a file, creating parent directories as needed."""
    os.makedirs(os.path.dirname(filepath) or ".", exist_ok=True)
    with open(filepath, mode, encoding=encoding) as f:
        f.write(content)


def load_structured(filepath: str) -> Any:
    """
    Load a YAML or JSON document.

    Raises:
        FileIOError: Missing file, unsupported extension, or unparsable content.
    """
    path = os.path.expanduser(filepath)
    ext = os.path.splitext(path)[1].lower()
    if ext not in STRUCTURED_EXTENSIONS:
        raise FileIOError(f"Unsupported file type {ext or '(none)'} for {filepath}; expected YAML or JSON")

    try:
        with open(path, encoding="utf-8") as f:
            if ext == ".json":
                return json.load(f)
            return yaml.safe_load(f)
    except FileNotFoundError as e:
        raise FileIOError(f"File not found: {filepath}") from e
    except OSError as e:
        raise FileIOError(f"Could not read {filepath}: {e}") from e
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise FileIOError(f"Could not parse {filepath}: {e}") from e
