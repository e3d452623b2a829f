"""Diagnostics query shortcut.

Direct status questions ("am I on VPN?", "am I online?", "what is my IP?")
are answered straight from caller-supplied telemetry, before any flow logic
runs, so an in-progress troubleshooting dialogue is neither engaged nor
disturbed.

A group match is dropped when the message is really a topic report for a
different area ("my printer shows offline" is a printer issue). When the
phrasing hits one group but the topic belongs to another status group
("am i connected to vpn"), the topic's own group answers.
"""

from __future__ import annotations

import enum
import math
from typing import TYPE_CHECKING

from golpac_ai.brain.intent.fuzzy import matches_any
from golpac_ai.shared.types import Intent

if TYPE_CHECKING:
    from golpac_ai.brain.intent.classifier import IntentClassifier
    from golpac_ai.brain.intent.config import AssistantConfig
    from golpac_ai.shared.types import DeviceStatus, PingResult, TelemetryContext


class ShortcutKind(enum.Enum):
    VPN_STATUS = "vpn_status"
    NETWORK_STATUS = "network_status"
    IP_STATUS = "ip_status"


# Topic each question group belongs to
_OWN_INTENT = {
    ShortcutKind.VPN_STATUS: Intent.VPN,
    ShortcutKind.NETWORK_STATUS: Intent.NETWORK_INTERNET,
    ShortcutKind.IP_STATUS: Intent.NETWORK_INTERNET,
}


def match_shortcut(text: str, classifier: IntentClassifier) -> ShortcutKind | None:
    """Return the status-question group the message belongs to, if any."""
    shortcuts = classifier.config.shortcuts
    groups = (
        (ShortcutKind.VPN_STATUS, shortcuts.vpn_status),
        (ShortcutKind.NETWORK_STATUS, shortcuts.network_status),
        (ShortcutKind.IP_STATUS, shortcuts.ip_status),
    )
    matched = [kind for kind, patterns in groups if matches_any(text, patterns)]
    if not matched:
        return None

    detected = classifier.detect_intent(text)
    if detected.is_unknown:
        return matched[0]
    for kind in matched:
        if _OWN_INTENT[kind] is detected.intent:
            return kind
    # Phrased like one group, about another group's topic
    for kind in ShortcutKind:
        if _OWN_INTENT[kind] is detected.intent:
            return kind
    return None


def is_diagnostics_question(text: str, config: AssistantConfig) -> bool:
    """Broad status vocabulary (internet, disk, cpu, antivirus, ...)."""
    return matches_any(text, config.diagnostics_keywords)


def _vpn_state(device_status: DeviceStatus | None, telemetry: TelemetryContext | None) -> str:
    network = device_status.network if device_status else None
    if network is not None and network.vpn_status != "unknown":
        return network.vpn_status
    if telemetry is not None and telemetry.last_vpn_result is not None:
        return "connected" if telemetry.last_vpn_result.active else "disconnected"
    return "unknown"


def _internet_state(device_status: DeviceStatus | None, telemetry: TelemetryContext | None) -> str:
    network = device_status.network if device_status else None
    if network is not None and network.internet_status != "unknown":
        return network.internet_status
    if telemetry is not None and telemetry.is_offline:
        return "offline"
    return "unknown"


_VPN_TEXT = {
    "connected": "VPN: connected",
    "disconnected": "VPN: not connected",
}
_INTERNET_TEXT = {
    "online": "Internet: online",
    "offline": "Internet: offline",
    "degraded": "Internet: degraded",
}


def build_vpn_status(
    device_status: DeviceStatus | None,
    telemetry: TelemetryContext | None,
    config: AssistantConfig,
) -> str:
    """One-line VPN + Internet status with gateway and public IP when known."""
    vpn_text = _VPN_TEXT.get(_vpn_state(device_status, telemetry), "VPN: status not reported")
    internet_text = _INTERNET_TEXT.get(
        _internet_state(device_status, telemetry), "Internet: not reported"
    )

    network = device_status.network if device_status else None
    extras = []
    if network is not None and network.default_gateway:
        extras.append(f"Gateway: {network.default_gateway}")
    if network is not None and network.public_ip:
        extras.append(f"Public IP: {network.public_ip}")
    vpn = telemetry.last_vpn_result if telemetry else None
    if vpn is not None and vpn.active and vpn.name:
        extras.append(f"VPN profile: {vpn.name}")
    detail = f"\n{' • '.join(extras)}" if extras else ""

    return (
        f"According to the diagnostics panel, {vpn_text} • {internet_text}{detail}\n"
        f"{config.messages.vpn_closing}"
    )


def _ping_summary(ping: PingResult | None) -> str:
    if ping is None or ping.average_ms is None or not math.isfinite(ping.average_ms):
        return ""
    loss = ""
    if ping.packet_loss is not None and math.isfinite(ping.packet_loss):
        loss = f", loss {ping.packet_loss:.0f}%"
    return f" (avg {round(ping.average_ms)} ms{loss})"


def build_network_status(
    device_status: DeviceStatus | None,
    ping: PingResult | None,
    telemetry: TelemetryContext | None,
    config: AssistantConfig,
) -> str:
    """Online/offline sentence, with ping round-trip and loss when available."""
    state = _internet_state(device_status, telemetry)
    if state == "offline":
        return config.messages.network_offline
    if state in ("online", "degraded"):
        return config.messages.network_online.replace("{ping}", _ping_summary(ping))
    return config.messages.network_unknown


def build_ip_status(
    device_status: DeviceStatus | None,
    ping: PingResult | None,
    telemetry: TelemetryContext | None,
    config: AssistantConfig,
) -> str:
    """Addresses the diagnostics panel reported, followed by the network sentence."""
    network = device_status.network if device_status else None
    system = device_status.system if device_status else None
    parts = []
    if system is not None and system.ipv4:
        parts.append(f"Local IP: {system.ipv4}")
    if network is not None and network.default_gateway:
        parts.append(f"Gateway: {network.default_gateway}")
    if network is not None and network.public_ip:
        parts.append(f"Public IP: {network.public_ip}")

    status = build_network_status(device_status, ping, telemetry, config)
    if not parts:
        return status
    return f"According to the diagnostics panel, {' • '.join(parts)}\n{status}"


def build_shortcut_answer(
    kind: ShortcutKind,
    device_status: DeviceStatus | None,
    telemetry: TelemetryContext | None,
    config: AssistantConfig,
) -> str:
    ping = telemetry.ping_state.result if telemetry is not None else None
    if kind is ShortcutKind.VPN_STATUS:
        return build_vpn_status(device_status, telemetry, config)
    if kind is ShortcutKind.NETWORK_STATUS:
        return build_network_status(device_status, ping, telemetry, config)
    return build_ip_status(device_status, ping, telemetry, config)
