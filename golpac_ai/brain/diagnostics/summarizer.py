"""Plain-text diagnostics snapshot report."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from golpac_ai.brain.intent.config import AssistantConfig
    from golpac_ai.shared.types import DeviceStatus, DriveUsage, TelemetryContext


def format_number(value: float | None) -> str:
    if value is None or not math.isfinite(value):
        return "n/a"
    return str(round(value))


def _drive_line(drive: DriveUsage) -> str:
    used = "n/a" if drive.used_percent is None else f"{format_number(drive.used_percent)}%"
    free = "n/a" if drive.free_gb is None else f"{format_number(drive.free_gb)} GB free"
    return f"{drive.name or drive.mount or 'Drive'}: {used} used ({free})"


def _storage_lines(
    device_status: DeviceStatus,
    telemetry: TelemetryContext | None,
    max_drives: int,
) -> list[str]:
    storage = device_status.storage
    if storage is not None and storage.drives:
        return [_drive_line(d) for d in storage.drives[:max_drives]]
    metrics = telemetry.system_metrics if telemetry is not None else None
    if metrics is None:
        return []
    return [
        f"{disk.name or 'Drive'}: {format_number(disk.free_gb)} GB free"
        for disk in metrics.disks[:max_drives]
    ]


def _antivirus(device_status: DeviceStatus, telemetry: TelemetryContext | None) -> tuple[str, str]:
    av = device_status.antivirus
    if av is not None and (av.vendor or av.status != "unknown"):
        return av.vendor or "Unknown", av.status
    if telemetry is not None and telemetry.antivirus_items:
        item = telemetry.antivirus_items[0]
        return item.name or "Unknown", "running" if item.running else "not running"
    return "Unknown", "unknown"


def _cpu_and_ram(device_status: DeviceStatus, telemetry: TelemetryContext | None) -> tuple[str, str]:
    system = device_status.system
    cpu = system.cpu if system is not None and system.cpu else None
    ram = system.ram if system is not None and system.ram else None
    metrics = telemetry.system_metrics if telemetry is not None else None
    if metrics is not None:
        cpu = cpu or metrics.cpu_brand
        if ram is None and metrics.memory_total_gb:
            ram = f"{metrics.memory_used_gb:.1f}/{metrics.memory_total_gb:.1f} GB"
    return cpu or "Unknown", ram or "Unknown"


def _printers_line(telemetry: TelemetryContext) -> str:
    if not telemetry.printers:
        return "Printers: not reported"
    names = [f"{p.name} ({p.status})" if p.status else p.name for p in telemetry.printers]
    return f"Printers: {', '.join(names)}"


def summarize_device_status(
    device_status: DeviceStatus | None,
    config: AssistantConfig,
    telemetry: TelemetryContext | None = None,
) -> str:
    """Render the bulleted snapshot report.

    Missing sections degrade to "unknown"/"n/a" placeholders; a missing
    snapshot yields the refresh-diagnostics message. Never raises.
    """
    if device_status is None:
        return config.messages.diagnostics_unavailable

    net = device_status.network
    health = device_status.health
    drivers = device_status.drivers

    internet = f"Internet: {net.internet_status if net else 'unknown'}"
    if net is not None and net.default_gateway:
        internet += f" • Gateway {net.default_gateway}"
    if net is not None and net.public_ip:
        internet += f" • Public IP {net.public_ip}"

    cpu_name, ram = _cpu_and_ram(device_status, telemetry)
    uptime = health.uptime if health is not None and health.uptime else "unknown"
    cpu_usage = health.cpu_usage if health is not None else None
    if cpu_usage is None and telemetry is not None and telemetry.system_metrics is not None:
        cpu_usage = telemetry.system_metrics.cpu_usage_percent
    av_vendor, av_status = _antivirus(device_status, telemetry)

    lines = [
        internet,
        f"VPN: {net.vpn_status if net else 'unknown'}",
        f"System: {cpu_name} • RAM {ram} • Uptime {uptime} • CPU {format_number(cpu_usage)}%",
        f"Antivirus: {av_vendor} ({av_status})",
    ]
    if drivers is not None and drivers.outdated_count is not None:
        lines.append(f"Drivers: {drivers.outdated_count} outdated")
    lines.extend(_storage_lines(device_status, telemetry, config.calibration.max_storage_drives))
    if telemetry is not None:
        lines.append(_printers_line(telemetry))

    body = "\n- ".join(lines)
    return (
        f"{config.messages.diagnostics_intro}\n- {body}\n\n"
        f"{config.messages.diagnostics_closing}"
    )
