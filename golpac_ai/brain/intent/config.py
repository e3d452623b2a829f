"""Assistant configuration: intent pattern sets, flow scripts, calibration.

The whole rule base lives in one YAML document (``intents.yaml`` next to this
module) and is validated fail-closed into immutable dataclasses. The dialogue
manager and classifier stay generic over this table.

Resolution order for the file: explicit path argument, then the
GOLPAC_AI_INTENTS_PATH environment variable, then the packaged default.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from golpac_ai.shared.errors import ConfigError
from golpac_ai.shared.types import NO_FLOW_INTENTS, Intent

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).with_name("intents.yaml")
CONFIG_PATH_ENV = "GOLPAC_AI_INTENTS_PATH"

_REQUIRED_SECTIONS = ("support", "calibration", "greetings", "intents", "shortcuts", "messages")
_REQUIRED_MESSAGES = (
    "greeting",
    "fallback",
    "escalation",
    "preparing",
    "not_provided",
    "diagnostics_unavailable",
    "diagnostics_intro",
    "diagnostics_closing",
    "vpn_closing",
    "network_offline",
    "network_online",
    "network_unknown",
    "troubleshoot_action",
    "ticket_action",
)
_SHORTCUT_GROUPS = ("vpn_status", "network_status", "ip_status")


@dataclass(frozen=True)
class SummaryTemplate:
    """Two-slot hand-off summary, phrased per domain."""

    lead: str
    first_label: str
    second_label: str
    closing: str

    def render(self, first: str, second: str) -> str:
        return (
            f"{self.lead}\n- {self.first_label}: {first}\n- {self.second_label}: {second}\n"
            f"{self.closing}"
        )


@dataclass(frozen=True)
class FlowScript:
    ask1: str
    ask2: str
    summary: SummaryTemplate


@dataclass(frozen=True)
class IntentConfig:
    intent: Intent
    patterns: tuple[str, ...]
    min_score: int
    flow: FlowScript


@dataclass(frozen=True)
class Calibration:
    """Tunable constants. Values are field-calibrated, not derived."""

    default_min_score: int = 2
    typo_max_distance: int = 1
    typo_max_length_delta: int = 1
    tight_match_min_length: int = 5
    recent_corpus_size: int = 3
    follow_up_delay_ms: int = 1200
    session_timeout_seconds: int = 600
    max_storage_drives: int = 2
    history_limit: int = 50


@dataclass(frozen=True)
class ShortcutPatterns:
    vpn_status: tuple[str, ...]
    network_status: tuple[str, ...]
    ip_status: tuple[str, ...]


@dataclass(frozen=True)
class Messages:
    greeting: str
    fallback: str
    escalation: str
    preparing: str
    not_provided: str
    diagnostics_unavailable: str
    diagnostics_intro: str
    diagnostics_closing: str
    vpn_closing: str
    network_offline: str
    network_online: str
    network_unknown: str
    troubleshoot_action: str
    ticket_action: str


@dataclass(frozen=True)
class AssistantConfig:
    """Immutable rule base for one assistant instance."""

    intents: tuple[IntentConfig, ...]
    switch_hints: tuple[str, ...]
    shortcuts: ShortcutPatterns
    diagnostics_keywords: tuple[str, ...]
    greeting_words: frozenset[str]
    greeting_prefixes: tuple[str, ...]
    greeting_max_tokens: int
    calibration: Calibration
    messages: Messages
    org: str
    phone: str

    def intent_config(self, intent: Intent) -> IntentConfig | None:
        for cfg in self.intents:
            if cfg.intent is intent:
                return cfg
        return None

    def min_score_for(self, intent: Intent) -> int:
        cfg = self.intent_config(intent)
        return cfg.min_score if cfg is not None else self.calibration.default_min_score

    def flow_for(self, intent: Intent) -> FlowScript:
        """Flow script for an intent; NONE/UNKNOWN use the GENERAL_IT script."""
        cfg = self.intent_config(intent)
        if cfg is None:
            cfg = self.intent_config(Intent.GENERAL_IT)
        if cfg is None:  # validated at load time
            msg = "GENERAL_IT flow is not configured"
            raise ConfigError(msg, section="intents")
        return cfg.flow


# -- Validation --


def _error(section: str, message: str) -> dict[str, str]:
    return {"section": section, "message": message}


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def validate_config(raw: Any) -> list[dict[str, str]]:
    """Validate a raw config mapping. Returns a list of {section, message} errors."""
    if not isinstance(raw, dict):
        return [_error("root", "Config must be a mapping")]

    errors: list[dict[str, str]] = []
    for section in _REQUIRED_SECTIONS:
        if section not in raw:
            errors.append(_error(section, "Missing required section"))
    if errors:
        return errors

    calibration = raw["calibration"]
    if not isinstance(calibration, dict):
        errors.append(_error("calibration", "Must be a mapping"))
    else:
        known = set(Calibration.__dataclass_fields__)
        for key, value in calibration.items():
            if key not in known:
                errors.append(_error("calibration", f"Unknown constant: {key}"))
            elif not isinstance(value, int) or isinstance(value, bool) or value < 0:
                errors.append(_error("calibration", f"{key} must be a non-negative integer"))

    greetings = raw["greetings"]
    if not isinstance(greetings, dict) or not _is_str_list(greetings.get("words")):
        errors.append(_error("greetings", "greetings.words must be a list of strings"))
    elif not _is_str_list(greetings.get("prefixes", [])):
        errors.append(_error("greetings", "greetings.prefixes must be a list of strings"))

    intents = raw["intents"]
    seen: set[Intent] = set()
    if not isinstance(intents, list) or not intents:
        errors.append(_error("intents", "Must be a non-empty list"))
        intents = []
    for idx, entry in enumerate(intents):
        where = f"intents[{idx}]"
        if not isinstance(entry, dict):
            errors.append(_error(where, "Entry must be a mapping"))
            continue
        intent = Intent.parse(entry.get("intent"))
        if intent is None or intent in NO_FLOW_INTENTS:
            errors.append(_error(where, f"Unknown intent: {entry.get('intent')!r}"))
            continue
        if intent in seen:
            errors.append(_error(where, f"Duplicate intent: {intent.value}"))
        seen.add(intent)
        if not _is_str_list(entry.get("patterns")) or not entry["patterns"]:
            errors.append(_error(where, "patterns must be a non-empty list of strings"))
        min_score = entry.get("min_score", 1)
        if not isinstance(min_score, int) or isinstance(min_score, bool) or min_score < 1:
            errors.append(_error(where, "min_score must be a positive integer"))
        flow = entry.get("flow")
        if not isinstance(flow, dict):
            errors.append(_error(where, "Missing flow script"))
            continue
        for key in ("ask1", "ask2"):
            if not isinstance(flow.get(key), str) or not flow[key].strip():
                errors.append(_error(where, f"flow.{key} must be a non-empty string"))
        summary = flow.get("summary")
        if not isinstance(summary, dict) or not all(
            isinstance(summary.get(k), str)
            for k in ("lead", "first_label", "second_label", "closing")
        ):
            errors.append(_error(where, "flow.summary needs lead, first_label, second_label, closing"))
    if intents and Intent.GENERAL_IT not in seen:
        errors.append(_error("intents", "GENERAL_IT catch-all intent is required"))

    shortcuts = raw["shortcuts"]
    if not isinstance(shortcuts, dict):
        errors.append(_error("shortcuts", "Must be a mapping"))
    else:
        for group in _SHORTCUT_GROUPS:
            if not _is_str_list(shortcuts.get(group)):
                errors.append(_error("shortcuts", f"{group} must be a list of strings"))

    for key in ("switch_hints", "diagnostics_keywords"):
        if key in raw and not _is_str_list(raw[key]):
            errors.append(_error(key, "Must be a list of strings"))

    messages = raw["messages"]
    if not isinstance(messages, dict):
        errors.append(_error("messages", "Must be a mapping"))
    else:
        for key in _REQUIRED_MESSAGES:
            if not isinstance(messages.get(key), str):
                errors.append(_error("messages", f"Missing message: {key}"))

    support = raw["support"]
    if not isinstance(support, dict) or not support.get("org") or not support.get("phone"):
        errors.append(_error("support", "support.org and support.phone are required"))

    return errors


# -- Parsing --


def parse_config(raw: Any) -> AssistantConfig:
    """Build an AssistantConfig from a raw mapping. Raises ConfigError."""
    errors = validate_config(raw)
    if errors:
        first = errors[0]
        raise ConfigError(first["message"], section=first["section"])

    org = str(raw["support"]["org"])
    phone = str(raw["support"]["phone"])

    def _text(value: str) -> str:
        # str.format would choke on the {ping} placeholder kept for render time
        return value.replace("{org}", org).replace("{phone}", phone)

    intents: list[IntentConfig] = []
    default_min = raw["calibration"].get("default_min_score", 2)
    for entry in raw["intents"]:
        flow = entry["flow"]
        summary = flow["summary"]
        intents.append(
            IntentConfig(
                intent=Intent.parse(entry["intent"]),  # type: ignore[arg-type]
                patterns=tuple(entry["patterns"]),
                min_score=entry.get("min_score", default_min),
                flow=FlowScript(
                    ask1=_text(flow["ask1"]),
                    ask2=_text(flow["ask2"]),
                    summary=SummaryTemplate(
                        lead=_text(summary["lead"]),
                        first_label=summary["first_label"],
                        second_label=summary["second_label"],
                        closing=_text(summary["closing"]),
                    ),
                ),
            )
        )

    greetings = raw["greetings"]
    shortcuts = raw["shortcuts"]
    return AssistantConfig(
        intents=tuple(intents),
        switch_hints=tuple(raw.get("switch_hints", [])),
        shortcuts=ShortcutPatterns(
            vpn_status=tuple(shortcuts["vpn_status"]),
            network_status=tuple(shortcuts["network_status"]),
            ip_status=tuple(shortcuts["ip_status"]),
        ),
        diagnostics_keywords=tuple(raw.get("diagnostics_keywords", [])),
        greeting_words=frozenset(w.lower() for w in greetings["words"]),
        greeting_prefixes=tuple(p.lower() for p in greetings.get("prefixes", [])),
        greeting_max_tokens=int(greetings.get("max_tokens", 3)),
        calibration=Calibration(**raw["calibration"]),
        messages=Messages(**{key: _text(raw["messages"][key]) for key in _REQUIRED_MESSAGES}),
        org=org,
        phone=phone,
    )


def read_raw_config(path: Path) -> Any:
    """Read the YAML document at path. Raises ConfigError if unreadable."""
    if not path.exists():
        msg = f"{path} not found"
        raise ConfigError(msg, section="file")
    try:
        with path.open(encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as exc:
        msg = f"{path} is not valid YAML: {exc}"
        raise ConfigError(msg, section="file") from exc


def load_config(path: Path | str | None = None) -> AssistantConfig:
    """Load and validate the assistant configuration."""
    resolved = Path(path or os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)
    config = parse_config(read_raw_config(resolved))
    logger.info(
        "Loaded assistant config from %s (%d intents)",
        resolved,
        len(config.intents),
    )
    return config


@lru_cache(maxsize=1)
def default_config() -> AssistantConfig:
    """Process-wide config, loaded once on first use."""
    return load_config()
