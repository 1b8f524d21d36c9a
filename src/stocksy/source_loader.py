from __future__ import annotations

from pathlib import Path
from typing import Dict

import yaml


def load_symbol_table(path: Path) -> Dict[str, str]:
    """Read a ``company name -> ticker`` mapping from YAML.

    The file holds a flat mapping, e.g. ``ORACLE: ORCL``. Keys are upper-cased
    so lookups stay case-insensitive.
    """
    if not path.exists():
        raise FileNotFoundError(f"Symbol table not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        content = yaml.safe_load(f) or {}
    if not isinstance(content, dict):
        raise ValueError(f"Invalid symbol table format: {path}")
    return {str(name).upper().strip(): str(ticker).upper().strip() for name, ticker in content.items()}
