"""Tests for assistant configuration loading and validation (fail-closed)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
import yaml

from golpac_ai.brain.intent.config import (
    CONFIG_PATH_ENV,
    Calibration,
    load_config,
    parse_config,
    validate_config,
)
from golpac_ai.shared.errors import ConfigError
from golpac_ai.shared.types import Intent

if TYPE_CHECKING:
    from pathlib import Path

    from golpac_ai.brain.intent.config import AssistantConfig


@pytest.mark.unit
class TestPackagedConfig:
    def test_packaged_config_is_valid(self, raw_config: dict[str, Any]) -> None:
        assert validate_config(raw_config) == []

    def test_all_topics_configured_in_order(self, config: AssistantConfig) -> None:
        assert [c.intent for c in config.intents] == [
            Intent.PRINTERS,
            Intent.SAGE300,
            Intent.OUTLOOK_EMAIL,
            Intent.SHARED_DRIVE,
            Intent.VPN,
            Intent.NETWORK_INTERNET,
            Intent.OFFICE365,
            Intent.GENERAL_IT,
        ]

    def test_calibration_defaults(self, config: AssistantConfig) -> None:
        assert config.calibration == Calibration()
        assert config.calibration.follow_up_delay_ms == 1200
        assert config.calibration.session_timeout_seconds == 600

    def test_min_scores(self, config: AssistantConfig) -> None:
        assert config.min_score_for(Intent.PRINTERS) == 2
        assert config.min_score_for(Intent.GENERAL_IT) == 1
        assert config.min_score_for(Intent.UNKNOWN) == config.calibration.default_min_score

    def test_support_placeholders_substituted(self, config: AssistantConfig) -> None:
        closing = config.flow_for(Intent.PRINTERS).summary.closing
        assert "Golpac" in closing
        assert "888-585-0271" in closing
        assert "{org}" not in config.messages.greeting

    def test_ping_placeholder_kept_for_render_time(self, config: AssistantConfig) -> None:
        assert "{ping}" in config.messages.network_online

    def test_flow_for_unknown_uses_general_it(self, config: AssistantConfig) -> None:
        assert config.flow_for(Intent.UNKNOWN) == config.flow_for(Intent.GENERAL_IT)


@pytest.mark.unit
class TestSummaryTemplate:
    def test_render(self, config: AssistantConfig) -> None:
        text = config.flow_for(Intent.SAGE300).summary.render("General Ledger", "Error 49153")
        lines = text.splitlines()
        assert lines[0] == "Here's what I'll pass to IT:"
        assert lines[1] == "- Sage 300 module: General Ledger"
        assert lines[2] == "- Error text/code: Error 49153"
        assert lines[3].startswith("This must be handled by IT.")


@pytest.mark.unit
class TestValidation:
    def test_not_a_mapping(self) -> None:
        assert validate_config(["nope"]) == [{"section": "root", "message": "Config must be a mapping"}]

    def test_missing_section(self, raw_config: dict[str, Any]) -> None:
        del raw_config["messages"]
        errors = validate_config(raw_config)
        assert {"section": "messages", "message": "Missing required section"} in errors

    def test_unknown_intent(self, raw_config: dict[str, Any]) -> None:
        raw_config["intents"][0]["intent"] = "FAX"
        errors = validate_config(raw_config)
        assert any("Unknown intent" in e["message"] for e in errors)

    def test_duplicate_intent(self, raw_config: dict[str, Any]) -> None:
        raw_config["intents"][1]["intent"] = "PRINTERS"
        errors = validate_config(raw_config)
        assert any("Duplicate intent" in e["message"] for e in errors)

    def test_general_it_required(self, raw_config: dict[str, Any]) -> None:
        raw_config["intents"] = [e for e in raw_config["intents"] if e["intent"] != "GENERAL_IT"]
        errors = validate_config(raw_config)
        assert any(e["section"] == "intents" and "GENERAL_IT" in e["message"] for e in errors)

    def test_empty_patterns(self, raw_config: dict[str, Any]) -> None:
        raw_config["intents"][0]["patterns"] = []
        assert any("patterns" in e["message"] for e in validate_config(raw_config))

    def test_bad_min_score(self, raw_config: dict[str, Any]) -> None:
        raw_config["intents"][0]["min_score"] = 0
        assert any("min_score" in e["message"] for e in validate_config(raw_config))

    def test_missing_flow_question(self, raw_config: dict[str, Any]) -> None:
        raw_config["intents"][0]["flow"]["ask2"] = "  "
        assert any("flow.ask2" in e["message"] for e in validate_config(raw_config))

    def test_unknown_calibration_constant(self, raw_config: dict[str, Any]) -> None:
        raw_config["calibration"]["magic"] = 7
        assert any("Unknown constant" in e["message"] for e in validate_config(raw_config))

    def test_negative_calibration_constant(self, raw_config: dict[str, Any]) -> None:
        raw_config["calibration"]["typo_max_distance"] = -1
        assert any(e["section"] == "calibration" for e in validate_config(raw_config))

    def test_missing_message(self, raw_config: dict[str, Any]) -> None:
        del raw_config["messages"]["escalation"]
        errors = validate_config(raw_config)
        assert {"section": "messages", "message": "Missing message: escalation"} in errors

    def test_missing_shortcut_group(self, raw_config: dict[str, Any]) -> None:
        del raw_config["shortcuts"]["ip_status"]
        assert any(e["section"] == "shortcuts" for e in validate_config(raw_config))


@pytest.mark.unit
class TestParseAndLoad:
    def test_parse_raises_first_error(self, raw_config: dict[str, Any]) -> None:
        del raw_config["support"]
        with pytest.raises(ConfigError) as exc_info:
            parse_config(raw_config)
        assert exc_info.value.section == "support"
        assert exc_info.value.code == "CONFIG_INVALID"

    def test_load_from_path(self, raw_config: dict[str, Any], tmp_path: Path) -> None:
        raw_config["support"]["org"] = "Acme"
        path = tmp_path / "intents.yaml"
        path.write_text(yaml.safe_dump(raw_config), encoding="utf-8")
        config = load_config(path)
        assert config.org == "Acme"
        assert "Acme" in config.messages.greeting

    def test_load_from_env(
        self,
        raw_config: dict[str, Any],
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        raw_config["calibration"]["follow_up_delay_ms"] = 50
        path = tmp_path / "custom.yaml"
        path.write_text(yaml.safe_dump(raw_config), encoding="utf-8")
        monkeypatch.setenv(CONFIG_PATH_ENV, str(path))
        assert load_config().calibration.follow_up_delay_ms == 50

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path / "absent.yaml")
        assert exc_info.value.section == "file"

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("intents: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigError, match="not valid YAML"):
            load_config(path)
