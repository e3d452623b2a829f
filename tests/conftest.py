"""Root conftest - shared fixtures for all test layers.

Markers:
    @pytest.mark.unit       - No external deps
    @pytest.mark.smoke      - Fast subset
"""

from __future__ import annotations

import copy
from typing import Any

import pytest
from prometheus_client import CollectorRegistry

from golpac_ai.brain.engine.assistant import AssistantEngine
from golpac_ai.brain.intent.classifier import IntentClassifier
from golpac_ai.brain.intent.config import (
    DEFAULT_CONFIG_PATH,
    AssistantConfig,
    parse_config,
    read_raw_config,
)
from golpac_ai.brain.metrics.sli import AssistantSLI
from golpac_ai.shared.types import (
    AntivirusSummary,
    DeviceStatus,
    DriverSummary,
    DriveUsage,
    HealthStatus,
    NetworkStatus,
    StorageSummary,
    SystemIdentity,
)


@pytest.fixture
def raw_config() -> dict[str, Any]:
    """Deep copy of the packaged YAML document, safe to mutate."""
    return copy.deepcopy(read_raw_config(DEFAULT_CONFIG_PATH))


@pytest.fixture
def config(raw_config: dict[str, Any]) -> AssistantConfig:
    return parse_config(raw_config)


@pytest.fixture
def fast_config(raw_config: dict[str, Any]) -> AssistantConfig:
    """Packaged config with the follow-up delay removed."""
    raw_config["calibration"]["follow_up_delay_ms"] = 0
    return parse_config(raw_config)


@pytest.fixture
def classifier(config: AssistantConfig) -> IntentClassifier:
    return IntentClassifier(config)


@pytest.fixture
def registry() -> CollectorRegistry:
    """Isolated Prometheus registry per test."""
    return CollectorRegistry()


@pytest.fixture
def sli(registry: CollectorRegistry) -> AssistantSLI:
    return AssistantSLI(registry=registry)


@pytest.fixture
def engine(config: AssistantConfig, sli: AssistantSLI) -> AssistantEngine:
    return AssistantEngine(config=config, sli=sli)


@pytest.fixture
def device_status() -> DeviceStatus:
    """Healthy snapshot: online, on VPN, two of three drives reported."""
    return DeviceStatus(
        network=NetworkStatus(
            internet_status="online",
            vpn_status="connected",
            default_gateway="192.168.1.1",
            public_ip="203.0.113.7",
        ),
        system=SystemIdentity(
            name="GP-LT-042",
            ipv4="192.168.1.42",
            ram="16 GB",
            cpu="Intel Core i7",
        ),
        health=HealthStatus(uptime="3 days", cpu_usage=12.4),
        drivers=DriverSummary(outdated_count=2),
        antivirus=AntivirusSummary(status="ok", vendor="Defender"),
        storage=StorageSummary(
            drives=(
                DriveUsage(name="System (C:)", used_percent=48.2, free_gb=101.7),
                DriveUsage(name="Data (D:)", used_percent=71.0, free_gb=40.0),
                DriveUsage(name="Backup (E:)", used_percent=10.0, free_gb=900.0),
            )
        ),
    )
