"""Shared domain types used across layers.

Conversation state, telemetry snapshots and assistant responses are frozen
values: the engine receives them per call and returns new ones, it never
mutates what the caller holds.

Every type can be read from (``from_dict``) and rendered to (``to_dict``)
the camelCase JSON shape the desktop chat UI exchanges. Parsing is total:
missing keys become ``None`` and unrecognised status strings become
``"unknown"``.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from typing import Any, Literal

# -- Parsing helpers --


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _opt_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    return str(value)


def _opt_float(data: dict[str, Any], key: str) -> float | None:
    value = data.get(key)
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    # "nan", "inf" and 1e400 parse as floats but are not measurements
    return number if math.isfinite(number) else None


def _opt_int(data: dict[str, Any], key: str) -> int | None:
    value = _opt_float(data, key)
    return None if value is None else int(value)


def _choice(data: dict[str, Any], key: str, allowed: frozenset[str]) -> str:
    value = data.get(key)
    if isinstance(value, str) and value in allowed:
        return value
    return "unknown"


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


# -- Intents --


class Intent(enum.Enum):
    """Classified topic of a troubleshooting message."""

    PRINTERS = "PRINTERS"
    SAGE300 = "SAGE300"
    OUTLOOK_EMAIL = "OUTLOOK_EMAIL"
    SHARED_DRIVE = "SHARED_DRIVE"
    VPN = "VPN"
    NETWORK_INTERNET = "NETWORK_INTERNET"
    OFFICE365 = "OFFICE365"
    GENERAL_IT = "GENERAL_IT"
    NONE = "NONE"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Any) -> Intent | None:
        """Map a wire value to an Intent; unset or unrecognised -> None."""
        if isinstance(value, Intent):
            return value
        if not isinstance(value, str) or not value:
            return None
        try:
            return cls(value.upper())
        except ValueError:
            return None


# Intents that never denote an in-progress flow
NO_FLOW_INTENTS = frozenset({Intent.NONE, Intent.UNKNOWN})


# -- Conversation state --


@dataclass(frozen=True)
class GenericSlots:
    """Free-form slot storage (keys ``first``, ``second``, ``subject``)."""

    values: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def with_slot(self, key: str, value: str) -> GenericSlots:
        return GenericSlots(values={**self.values, key: value})

    def to_dict(self) -> dict[str, Any]:
        return dict(self.values)


@dataclass(frozen=True)
class SageSlots:
    """Sage 300 slot storage: module name, then exact error text."""

    module: str | None = None
    error_text: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none({"module": self.module, "errorText": self.error_text})

    @classmethod
    def from_dict(cls, data: Any) -> SageSlots:
        d = _as_dict(data)
        return cls(module=_opt_str(d, "module"), error_text=_opt_str(d, "errorText"))


Slots = GenericSlots | SageSlots


@dataclass(frozen=True)
class TicketDraft:
    """Structured ticket data handed to the ticket form for prefill."""

    subject: str | None = None
    category: str | None = None
    description: str | None = None
    user_email: str | None = None
    urgency: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "subject": self.subject,
                "category": self.category,
                "description": self.description,
                "userEmail": self.user_email,
                "urgency": self.urgency,
            }
        )

    @classmethod
    def from_dict(cls, data: Any) -> TicketDraft:
        d = _as_dict(data)
        return cls(
            subject=_opt_str(d, "subject"),
            category=_opt_str(d, "category"),
            description=_opt_str(d, "description"),
            user_email=_opt_str(d, "userEmail"),
            urgency=_opt_str(d, "urgency"),
        )


@dataclass(frozen=True)
class ConversationState:
    """Per-session dialogue state, owned by the calling chat session.

    step_index: 0 = not started, 1 = awaiting first detail,
    2 = awaiting second detail, >= 3 = nothing left to ask.
    """

    active_intent: Intent | None = None
    step_index: int = 0
    slots: Slots | None = None
    ticket_draft: TicketDraft | None = None

    @property
    def has_active_flow(self) -> bool:
        return self.active_intent is not None and self.active_intent not in NO_FLOW_INTENTS

    @property
    def sage(self) -> SageSlots | None:
        return self.slots if isinstance(self.slots, SageSlots) else None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"stepIndex": self.step_index}
        if self.active_intent is not None:
            data["activeIntent"] = self.active_intent.value
        if isinstance(self.slots, SageSlots):
            data["sage"] = self.slots.to_dict()
        elif isinstance(self.slots, GenericSlots):
            data["slots"] = self.slots.to_dict()
        if self.ticket_draft is not None:
            data["ticketDraft"] = self.ticket_draft.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Any) -> ConversationState:
        d = _as_dict(data)
        intent = Intent.parse(d.get("activeIntent"))
        step = max(_opt_int(d, "stepIndex") or 0, 0)
        slots: Slots | None = None
        if isinstance(d.get("sage"), dict):
            slots = SageSlots.from_dict(d["sage"])
            # A Sage slot object mid-flow implies the Sage flow even when the
            # caller dropped the intent field.
            if intent is None and step > 0:
                intent = Intent.SAGE300
        elif isinstance(d.get("slots"), dict):
            slots = GenericSlots(values={str(k): str(v) for k, v in d["slots"].items()})
        draft = TicketDraft.from_dict(d["ticketDraft"]) if d.get("ticketDraft") else None
        return cls(active_intent=intent, step_index=step, slots=slots, ticket_draft=draft)


@dataclass(frozen=True)
class HistoryEntry:
    """A past question/answer pair retained by the caller."""

    question: str
    answer: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> HistoryEntry:
        d = _as_dict(data)
        return cls(question=str(d.get("question") or ""), answer=str(d.get("answer") or ""))


# -- Device status snapshot --

_INTERNET_STATES = frozenset({"online", "offline", "degraded", "unknown"})
_VPN_STATES = frozenset({"connected", "disconnected", "unknown"})
_AV_STATES = frozenset({"none", "ok", "warning", "expired", "unknown"})


@dataclass(frozen=True)
class NetworkStatus:
    internet_status: str = "unknown"  # online | offline | degraded | unknown
    vpn_status: str = "unknown"  # connected | disconnected | unknown
    default_gateway: str | None = None
    public_ip: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> NetworkStatus:
        d = _as_dict(data)
        return cls(
            internet_status=_choice(d, "internetStatus", _INTERNET_STATES),
            vpn_status=_choice(d, "vpnStatus", _VPN_STATES),
            default_gateway=_opt_str(d, "defaultGateway"),
            public_ip=_opt_str(d, "publicIp"),
        )


@dataclass(frozen=True)
class SystemIdentity:
    name: str | None = None
    ipv4: str | None = None
    domain: str | None = None
    ram: str | None = None
    cpu: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> SystemIdentity:
        d = _as_dict(data)
        return cls(
            name=_opt_str(d, "name"),
            ipv4=_opt_str(d, "ipv4"),
            domain=_opt_str(d, "domain"),
            ram=_opt_str(d, "ram"),
            cpu=_opt_str(d, "cpu"),
        )


@dataclass(frozen=True)
class HealthStatus:
    uptime: str | None = None
    cpu_usage: float | None = None
    last_captured: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> HealthStatus:
        d = _as_dict(data)
        return cls(
            uptime=_opt_str(d, "uptime"),
            cpu_usage=_opt_float(d, "cpuUsage"),
            last_captured=_opt_str(d, "lastCaptured"),
        )


@dataclass(frozen=True)
class DriverSummary:
    outdated_count: int | None = None

    @classmethod
    def from_dict(cls, data: Any) -> DriverSummary:
        return cls(outdated_count=_opt_int(_as_dict(data), "outdatedCount"))


@dataclass(frozen=True)
class AntivirusSummary:
    status: str = "unknown"  # none | ok | warning | expired | unknown
    vendor: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> AntivirusSummary:
        d = _as_dict(data)
        return cls(status=_choice(d, "status", _AV_STATES), vendor=_opt_str(d, "vendor"))


@dataclass(frozen=True)
class DriveUsage:
    name: str | None = None
    mount: str | None = None
    used_percent: float | None = None
    free_gb: float | None = None
    total_gb: float | None = None

    @classmethod
    def from_dict(cls, data: Any) -> DriveUsage:
        d = _as_dict(data)
        return cls(
            name=_opt_str(d, "name"),
            mount=_opt_str(d, "mount"),
            used_percent=_opt_float(d, "usedPercent"),
            free_gb=_opt_float(d, "freeGb"),
            total_gb=_opt_float(d, "totalGb"),
        )


@dataclass(frozen=True)
class StorageSummary:
    drives: tuple[DriveUsage, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> StorageSummary:
        raw = _as_dict(data).get("drives")
        drives = raw if isinstance(raw, list) else []
        return cls(drives=tuple(DriveUsage.from_dict(d) for d in drives))


@dataclass(frozen=True)
class DeviceStatus:
    """Aggregated diagnostics snapshot assembled by the host app."""

    network: NetworkStatus | None = None
    system: SystemIdentity | None = None
    health: HealthStatus | None = None
    drivers: DriverSummary | None = None
    antivirus: AntivirusSummary | None = None
    storage: StorageSummary | None = None

    @classmethod
    def from_dict(cls, data: Any) -> DeviceStatus:
        d = _as_dict(data)

        def _section(key: str, parser: Any) -> Any:
            return parser(d[key]) if isinstance(d.get(key), dict) else None

        return cls(
            network=_section("network", NetworkStatus.from_dict),
            system=_section("system", SystemIdentity.from_dict),
            health=_section("health", HealthStatus.from_dict),
            drivers=_section("drivers", DriverSummary.from_dict),
            antivirus=_section("antivirus", AntivirusSummary.from_dict),
            storage=_section("storage", StorageSummary.from_dict),
        )


# -- Live telemetry collected by the caller --


@dataclass(frozen=True)
class PingResult:
    success: bool
    attempts: int
    responses: int
    target: str
    packet_loss: float | None = None
    average_ms: float | None = None

    @classmethod
    def from_dict(cls, data: Any) -> PingResult:
        d = _as_dict(data)
        return cls(
            success=bool(d.get("success", False)),
            attempts=_opt_int(d, "attempts") or 0,
            responses=_opt_int(d, "responses") or 0,
            target=str(d.get("target") or ""),
            packet_loss=_opt_float(d, "packet_loss"),
            average_ms=_opt_float(d, "average_ms"),
        )


@dataclass(frozen=True)
class PingState:
    status: str = "idle"  # idle | loading | success | error
    result: PingResult | None = None

    @classmethod
    def from_dict(cls, data: Any) -> PingState:
        d = _as_dict(data)
        result = PingResult.from_dict(d["result"]) if isinstance(d.get("result"), dict) else None
        return cls(status=str(d.get("status") or "idle"), result=result)


@dataclass(frozen=True)
class VpnStatus:
    active: bool
    name: str | None = None
    ip: str | None = None
    timestamp: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> VpnStatus:
        d = _as_dict(data)
        return cls(
            active=bool(d.get("active", False)),
            name=_opt_str(d, "name"),
            ip=_opt_str(d, "ip"),
            timestamp=_opt_str(d, "timestamp"),
        )


@dataclass(frozen=True)
class PrinterInfo:
    name: str
    ip: str | None = None
    status: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> PrinterInfo:
        d = _as_dict(data)
        return cls(name=str(d.get("name") or ""), ip=_opt_str(d, "ip"), status=_opt_str(d, "status"))


@dataclass(frozen=True)
class AvItem:
    name: str
    running: bool = False
    last_scan: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> AvItem:
        d = _as_dict(data)
        return cls(
            name=str(d.get("name") or ""),
            running=bool(d.get("running", False)),
            last_scan=_opt_str(d, "lastScan"),
        )


@dataclass(frozen=True)
class DiskInfo:
    name: str
    free_gb: float


@dataclass(frozen=True)
class SystemMetrics:
    cpu_usage_percent: float
    memory_used_gb: float
    memory_total_gb: float
    cpu_brand: str | None = None
    disks: tuple[DiskInfo, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> SystemMetrics:
        d = _as_dict(data)
        raw_disks = d.get("disks") if isinstance(d.get("disks"), list) else []
        disks = tuple(
            DiskInfo(name=str(_as_dict(x).get("name") or ""), free_gb=_opt_float(_as_dict(x), "free_gb") or 0.0)
            for x in raw_disks
        )
        return cls(
            cpu_usage_percent=_opt_float(d, "cpu_usage_percent") or 0.0,
            memory_used_gb=_opt_float(d, "memory_used_gb") or 0.0,
            memory_total_gb=_opt_float(d, "memory_total_gb") or 0.0,
            cpu_brand=_opt_str(d, "cpu_brand"),
            disks=disks,
        )


@dataclass(frozen=True)
class TelemetryContext:
    """Read-only check results the caller resolved before asking."""

    is_offline: bool = False
    ping_state: PingState = field(default_factory=PingState)
    printers: tuple[PrinterInfo, ...] = ()
    last_vpn_result: VpnStatus | None = None
    antivirus_items: tuple[AvItem, ...] = ()
    system_metrics: SystemMetrics | None = None

    @classmethod
    def from_dict(cls, data: Any) -> TelemetryContext:
        d = _as_dict(data)
        printers = d.get("printers") if isinstance(d.get("printers"), list) else []
        av_items = d.get("avItems", d.get("antivirusItems"))
        av_items = av_items if isinstance(av_items, list) else []
        vpn = d.get("lastVpnResult")
        metrics = d.get("systemMetrics")
        return cls(
            is_offline=bool(d.get("isOffline", False)),
            ping_state=PingState.from_dict(d.get("pingState")),
            printers=tuple(PrinterInfo.from_dict(p) for p in printers),
            last_vpn_result=VpnStatus.from_dict(vpn) if isinstance(vpn, dict) else None,
            antivirus_items=tuple(AvItem.from_dict(a) for a in av_items),
            system_metrics=SystemMetrics.from_dict(metrics) if isinstance(metrics, dict) else None,
        )


# -- Assistant response --

ActionTarget = Literal["troubleshoot", "ticket"]


@dataclass(frozen=True)
class AiResponse:
    """Caller-visible answer of one assistant turn.

    follow_up/follow_up_delay_ms declare a delayed second chat bubble; the
    caller owns the timer. flow is the state to persist for the next turn.
    """

    answer: str
    follow_up: str | None = None
    follow_up_delay_ms: int | None = None
    flow: ConversationState | None = None
    action_label: str | None = None
    action_target: ActionTarget | None = None
    ticket_data: TicketDraft | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "answer": self.answer,
                "followUp": self.follow_up,
                "followUpDelayMs": self.follow_up_delay_ms,
                "flow": self.flow.to_dict() if self.flow is not None else None,
                "actionLabel": self.action_label,
                "actionTarget": self.action_target,
                "ticketData": self.ticket_data.to_dict() if self.ticket_data is not None else None,
            }
        )


__all__ = [
    "NO_FLOW_INTENTS",
    "ActionTarget",
    "AiResponse",
    "AntivirusSummary",
    "AvItem",
    "ConversationState",
    "DeviceStatus",
    "DiskInfo",
    "DriveUsage",
    "DriverSummary",
    "GenericSlots",
    "HealthStatus",
    "HistoryEntry",
    "Intent",
    "NetworkStatus",
    "PingResult",
    "PingState",
    "PrinterInfo",
    "SageSlots",
    "Slots",
    "StorageSummary",
    "SystemIdentity",
    "SystemMetrics",
    "TelemetryContext",
    "TicketDraft",
    "VpnStatus",
]
