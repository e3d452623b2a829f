#!/usr/bin/env python3
"""Validate the assistant intent/flow configuration (fail-closed).

Runs the same checks the application applies at startup, plus a report of
patterns shared by more than one intent (those resolve by intent order and
are reported as warnings, not failures).

Usage:
    python scripts/validate_intent_config.py
    python scripts/validate_intent_config.py --json
    python scripts/validate_intent_config.py --config path/to/intents.yaml

Exit codes:
    0 - Configuration valid
    1 - Configuration invalid
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from golpac_ai.brain.intent.config import DEFAULT_CONFIG_PATH, read_raw_config, validate_config
from golpac_ai.brain.intent.normalizer import normalize
from golpac_ai.shared.errors import ConfigError


def load_raw(*, config_path: Path | None = None) -> Any:
    path = config_path or DEFAULT_CONFIG_PATH
    try:
        return read_raw_config(path)
    except ConfigError as exc:
        return {"_error": str(exc)}


def validate(config: Any) -> list[dict[str, str]]:
    if isinstance(config, dict) and "_error" in config:
        return [{"section": "file", "message": config["_error"]}]
    return validate_config(config)


def find_shared_patterns(config: Any) -> list[dict[str, str]]:
    """Patterns (after normalization) listed under more than one intent."""
    intents = config.get("intents") if isinstance(config, dict) else None
    if not isinstance(intents, list):
        return []

    owners: dict[str, list[str]] = {}
    for entry in intents:
        if not isinstance(entry, dict) or not isinstance(entry.get("patterns"), list):
            continue
        name = str(entry.get("intent"))
        for pattern in entry["patterns"]:
            key = normalize(str(pattern))
            if key and name not in owners.setdefault(key, []):
                owners[key].append(name)

    return [
        {
            "section": "intents",
            "message": f"pattern '{pattern}' shared by {', '.join(names)} (first wins)",
        }
        for pattern, names in owners.items()
        if len(names) > 1
    ]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--json", action="store_true", help="machine-readable output")
    parser.add_argument("--config", type=Path, default=None, help="intents YAML to check")
    args = parser.parse_args(argv)

    config_path = args.config or DEFAULT_CONFIG_PATH
    config = load_raw(config_path=config_path)
    errors = validate(config)
    warnings = [] if errors else find_shared_patterns(config)

    if args.json:
        print(
            json.dumps(
                {
                    "tool": "validate_intent_config",
                    "config_file": str(config_path),
                    "errors": errors,
                    "warnings": warnings,
                    "count": len(errors),
                    "status": "fail" if errors else "pass",
                },
                indent=2,
            )
        )
    else:
        if errors:
            print(f"FAIL: {len(errors)} configuration error(s):\n")
            for e in errors:
                print(f"  [{e['section']}] {e['message']}")
        else:
            print(f"PASS: {config_path} validated")
            for w in warnings:
                print(f"  WARN [{w['section']}] {w['message']}")

    return 1 if errors else 0


if __name__ == "__main__":
    sys.exit(main())
