import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from src.rules.models import Rules

RULES_PATH_ENV = "LIFECYCLE_RULES_PATH"
DEFAULT_RULES_FILE = "rules.yaml"


def default_rules_path() -> Path:
    return Path(os.environ.get(RULES_PATH_ENV, DEFAULT_RULES_FILE)).resolve()


def _extract_yaml(content: str) -> str:
    """Return the first ```yaml fenced block, or the whole text if there is none."""
    yaml_lines: list[str] = []
    in_block = False

    for line in content.splitlines():
        stripped = line.strip()
        if stripped.startswith("```yaml"):
            in_block = True
            continue
        if in_block and stripped.startswith("```"):
            return "\n".join(yaml_lines)
        if in_block:
            yaml_lines.append(line)

    if in_block:
        # Unterminated fence: take what we collected
        return "\n".join(yaml_lines)
    return content


def load_rules(path: Path | None = None) -> Rules:
    """
    Load and validate the rules file.
    Raises FileNotFoundError if file missing.
    Raises ValueError if the YAML or the schema is invalid.
    """
    path = path or default_rules_path()
    if not path.exists():
        raise FileNotFoundError(f"Rules file not found at: {path}")

    content = path.read_text()

    try:
        data = yaml.safe_load(_extract_yaml(content))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in rules file: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Rules file {path} must contain a mapping at the top level")

    try:
        return Rules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Rules validation failed:\n{e}") from e
