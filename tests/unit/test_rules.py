"""
Rules file loading and startup configuration checks.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from src.app_shell.config import ops_problems, validate_ops_rules
from src.rules.loader import DEFAULT_RULES_PATH, load_rules, parse_rules


@pytest.fixture
def raw_rules() -> dict[str, Any]:
    with open(DEFAULT_RULES_PATH, encoding="utf-8") as f:
        return yaml.safe_load(f)


def write_rules(tmp_path: Path, data: Any) -> Path:
    path = tmp_path / "rules.yaml"
    path.write_text(yaml.safe_dump(data) if not isinstance(data, str) else data)
    return path


class TestRulesLoading:
    def test_load_actual_rules_file(self) -> None:
        rules = load_rules()

        assert rules.project.slug == "onlypc"
        assert rules.auth.password_min_length == 6
        assert rules.roles.admin == 1 and rules.roles.manager == 3
        assert rules.rate_limits.login.max_attempts == 10
        assert rules.cookies.cart == "onlypc_cart"
        assert rules.cookies.max_age_seconds == 30 * 24 * 60 * 60
        assert rules.orders.statuses.cancelled == 7

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_rules(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = write_rules(tmp_path, "project: [unclosed")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_rules(path)

    def test_top_level_must_be_mapping(self) -> None:
        with pytest.raises(ValueError, match="mapping"):
            parse_rules(["not", "a", "mapping"])

    def test_missing_section(self, tmp_path: Path, raw_rules: dict[str, Any]) -> None:
        del raw_rules["orders"]
        with pytest.raises(ValueError, match="orders"):
            load_rules(write_rules(tmp_path, raw_rules))

    def test_verification_defaults(self, tmp_path: Path, raw_rules: dict[str, Any]) -> None:
        raw_rules["auth"]["verification"] = {}
        rules = load_rules(write_rules(tmp_path, raw_rules))

        assert rules.auth.verification.code_length == 6
        assert rules.auth.verification.key_prefix == "email_verification:"


class TestOpsValidation:
    def test_passes_for_project_root(self) -> None:
        validate_ops_rules(load_rules(), DEFAULT_RULES_PATH.parent)

    def test_missing_env_exits(
        self, raw_rules: dict[str, Any], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("ONLYPC_TEST_REQUIRED", raising=False)
        raw_rules["ops"]["required_env"] = ["ONLYPC_TEST_REQUIRED"]

        with pytest.raises(SystemExit):
            validate_ops_rules(parse_rules(raw_rules), DEFAULT_RULES_PATH.parent)

    def test_missing_migrations_dir_exits(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit):
            validate_ops_rules(load_rules(), tmp_path)

    def test_problems_are_collected(
        self, raw_rules: dict[str, Any], monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.delenv("ONLYPC_TEST_REQUIRED", raising=False)
        raw_rules["ops"]["required_env"] = ["ONLYPC_TEST_REQUIRED"]

        problems = ops_problems(parse_rules(raw_rules), tmp_path)

        assert len(problems) == 2
        assert "ONLYPC_TEST_REQUIRED" in problems[0]
