import os
import sys
from pathlib import Path

from src.rules.models import Rules


def ops_problems(rules: Rules, base_dir: Path) -> list[str]:
    """Everything that would stop the API from starting cleanly."""
    problems = [
        f"missing environment variable {name}"
        for name in rules.ops.required_env
        if not os.environ.get(name)
    ]
    if not (base_dir / "migrations").is_dir():
        problems.append(f"migrations directory not found under {base_dir}")
    return problems


def validate_ops_rules(rules: Rules, base_dir: Path) -> None:
    """Exit before serving if the deployment is incomplete."""
    problems = ops_problems(rules, base_dir)
    if problems:
        for problem in problems:
            print(f"CRITICAL: {problem}", file=sys.stderr)
        sys.exit(1)
    print(f"INFO: Configuration for {rules.project.slug} validated")
