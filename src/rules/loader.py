from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from src.rules.models import Rules

DEFAULT_RULES_PATH = Path(__file__).resolve().parents[2] / "rules.yaml"


def parse_rules(data: Any) -> Rules:
    """Validate an already-parsed rules mapping."""
    if not isinstance(data, dict):
        raise ValueError("Rules file must contain a mapping at the top level")
    try:
        return Rules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Rules validation failed:\n{e}") from e


def load_rules(path: Path | None = None) -> Rules:
    """
    Load and validate the storefront rules file.
    Raises FileNotFoundError if file missing.
    Raises ValueError if the YAML or the schema is invalid.
    """
    path = path or DEFAULT_RULES_PATH
    if not path.exists():
        raise FileNotFoundError(f"Rules file not found at: {path}")

    with open(path, encoding="utf-8") as f:
        content = f.read()

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in rules file: {e}") from e

    return parse_rules(data)
