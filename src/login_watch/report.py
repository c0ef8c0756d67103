"""Report generation for alerts and statistics.

This module generates machine-readable (JSON) and human-readable (Markdown)
reports from analysis results.
"""

import json
import logging
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path

from login_watch.schema import SEVERITIES, AnomalyAlert, AnomalyStats

logger = logging.getLogger(__name__)

SEVERITY_EMOJI = {"critical": "🔴", "high": "🟠", "medium": "🟡", "low": "🟢"}


def _fmt_num(value, fmt: str = ",.0f", default: str = "N/A") -> str:
    """Format a number safely, returning default if not a number."""
    if isinstance(value, (int, float)):
        return f"{value:{fmt}}"
    return str(default)


def generate_alerts_json(alerts: list[AnomalyAlert], path: Path) -> None:
    """Write alerts to a JSON file.

    Args:
        alerts: List of AnomalyAlert objects.
        path: Output file path.
    """
    data = [_alert_to_dict(a) for a in alerts]

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")

    logger.info(f"Wrote {len(alerts)} alerts to {path}")


def generate_stats_json(stats: AnomalyStats, path: Path) -> None:
    """Write aggregate statistics to a JSON file.

    Args:
        stats: AnomalyStats object.
        path: Output file path.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(stats.model_dump(mode="json"), indent=2), encoding="utf-8")

    logger.info(f"Wrote anomaly statistics to {path}")


def generate_alerts_md(alerts: list[AnomalyAlert], stats: AnomalyStats, path: Path) -> None:
    """Generate a Markdown report of alerts grouped by user.

    Args:
        alerts: List of AnomalyAlert objects.
        stats: Aggregate statistics over the same alerts.
        path: Output file path.
    """
    lines: list[str] = []

    # Header
    lines.append("# Login Anomaly Report")
    lines.append("")
    lines.append(
        f"**Generated:** {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S')} UTC"
    )
    lines.append(f"**Total Alerts:** {stats.total_alerts}")

    # Summary stats
    lines.append("")
    lines.append("## Summary")
    lines.append("")
    lines.append("| Severity | Count |")
    lines.append("|----------|-------|")
    for sev in reversed(SEVERITIES):
        count = stats.alerts_by_severity.get(sev, 0)
        lines.append(f"| {SEVERITY_EMOJI[sev]} {sev.upper()} | {count} |")

    if stats.alerts_by_type:
        lines.append("")
        lines.append("| Type | Count |")
        lines.append("|------|-------|")
        for alert_type, count in sorted(stats.alerts_by_type.items(), key=lambda x: -x[1]):
            lines.append(f"| {alert_type} | {count} |")

    if stats.top_risk_users:
        lines.append("")
        lines.append("## Top Risk Users")
        lines.append("")
        lines.append("| User | Email | Alerts |")
        lines.append("|------|-------|--------|")
        for user in stats.top_risk_users:
            lines.append(f"| {user.user_id} | {user.email} | {user.alert_count} |")

    lines.append("")
    lines.append("---")

    # Alerts per user
    by_user: dict[str, list[AnomalyAlert]] = defaultdict(list)
    for alert in alerts:
        by_user[alert.user_id].append(alert)

    for user_id, user_alerts in by_user.items():
        lines.extend(_format_user_section(user_id, user_alerts))
        lines.append("")
        lines.append("---")

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines), encoding="utf-8")

    logger.info(f"Wrote alert report to {path}")


def _format_user_section(user_id: str, alerts: list[AnomalyAlert]) -> list[str]:
    """Format one user's alerts as a Markdown section.

    Args:
        user_id: User identifier.
        alerts: That user's alerts.

    Returns:
        List of Markdown lines.
    """
    lines: list[str] = []

    lines.append("")
    lines.append(f"## {user_id} ({alerts[0].email})")
    lines.append("")
    lines.append("| Time | Type | Severity | Source IP | Evidence |")
    lines.append("|------|------|----------|-----------|----------|")

    for alert in sorted(alerts, key=lambda a: a.timestamp):
        lines.append(
            f"| {_format_ts(alert.timestamp)} | {alert.type} | "
            f"{SEVERITY_EMOJI[alert.severity]} {alert.severity} | "
            f"`{alert.source_ip or 'unknown'}` | {_evidence_summary(alert)} |"
        )

    return lines


def _evidence_summary(alert: AnomalyAlert) -> str:
    details = alert.details

    if alert.type == "impossible_travel":
        return (
            f"{_fmt_num(details.get('distance_km'))} km in "
            f"{_fmt_num(details.get('time_diff_hours'), '.1f')} h "
            f"({_fmt_num(details.get('speed_kmh'))} km/h)"
        )
    if alert.type == "new_device":
        return (
            f"{details.get('device_label', 'N/A')}, "
            f"known devices: {details.get('known_devices_count', 'N/A')}"
        )
    if alert.type == "new_location":
        location = details.get("location") or {}
        place = ", ".join(p for p in (location.get("city"), location.get("country")) if p)
        return f"{place or 'N/A'}, known locations: {details.get('known_locations_count', 'N/A')}"
    if alert.type == "automated_attack":
        if details.get("reason") == "multiple_user_agents":
            return (
                f"{details.get('unique_user_agents')} user agents over "
                f"{details.get('total_attempts')} attempts"
            )
        return f"{details.get('attempts_in_hour')} attempts in {details.get('time_window')}"
    if alert.type == "suspicious_timing":
        return f"login at {details.get('unusual_hour')}h, usual: {details.get('usual_hours')}"
    return ""


def _format_ts(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def _alert_to_dict(alert: AnomalyAlert) -> dict:
    """Convert AnomalyAlert to dictionary for JSON serialization."""
    return {
        "id": alert.id,
        "user_id": alert.user_id,
        "email": alert.email,
        "type": alert.type,
        "severity": alert.severity,
        "timestamp": alert.timestamp.isoformat(),
        "details": alert.details,
        "source_ip": alert.source_ip,
        "user_agent": alert.user_agent,
    }
