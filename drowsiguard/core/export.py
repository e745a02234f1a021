import csv
import io
import logging
from pathlib import Path

from drowsiguard.core.session_engine import SessionExport
from drowsiguard.core.stats import format_duration

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "Timestamp",
    "Blink Rate (BPM)",
    "Drowsiness Level (%)",
    "Pitch (°)",
    "Roll (°)",
    "Yaw (°)",
    "Alert Triggered",
    "Battery Level (%)",
]


class NothingToExport(ValueError):
    """Raised before formatting when the session holds no samples."""


def _require_data(export) -> SessionExport:
    if export is None or not export.samples:
        raise NothingToExport("No session data available to export. Please start a session first.")
    return export


def _yes_no(flag) -> str:
    return "Yes" if flag else "No"


def _alert_flags(export: SessionExport):
    """Evaluated alert per sample; the raw producer flag if the engine did not supply it."""
    if len(export.alerts) == len(export.samples):
        return list(export.alerts)
    return [bool(s.alert_triggered) for s in export.samples]


def csv_content(export: SessionExport) -> str:
    export = _require_data(export)

    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for s, alerted in zip(export.samples, _alert_flags(export)):
        hm = s.head_movement
        writer.writerow([
            s.timestamp.isoformat(),
            f"{s.eye_blink_rate:.2f}",
            f"{s.drowsiness_level:.2f}",
            f"{hm.pitch:.2f}",
            f"{hm.roll:.2f}",
            f"{hm.yaw:.2f}",
            _yes_no(alerted),
            f"{s.battery_level:.1f}",
        ])
    return buf.getvalue()


def text_content(export: SessionExport) -> str:
    export = _require_data(export)
    start = export.start_time.astimezone()
    stats = export.stats
    duration = format_duration(stats.duration_ms) if stats else "00:00:00"

    lines = [
        "DROWSINESS DETECTION SESSION SUMMARY",
        "=====================================",
        "",
        f"Session Date: {start.strftime('%Y-%m-%d')}",
        f"Session Time: {start.strftime('%H:%M:%S')}",
        f"Session Duration: {duration}",
        f"Total Data Points: {len(export.samples)}",
        f"Total Alerts: {export.alert_count}",
        "",
    ]

    if stats is not None:
        lines += [
            "STATISTICS",
            "----------",
            f"Average Blink Rate: {stats.avg_blink_rate:.2f} BPM",
            f"Average Drowsiness Level: {stats.avg_drowsiness:.2f}%",
            f"Peak Drowsiness Level: {stats.peak_drowsiness:.2f}%",
            "",
        ]

    lines += [
        "DETAILED DATA",
        "-------------",
        "Time\t\tBlink Rate\tDrowsiness\tPitch\tRoll\tYaw\tAlert",
        "----\t\t----------\t----------\t-----\t----\t---\t-----",
    ]
    for s, alerted in zip(export.samples, _alert_flags(export)):
        hm = s.head_movement
        lines.append(
            f"{s.timestamp.astimezone().strftime('%H:%M:%S')}\t{s.eye_blink_rate:.1f}\t\t"
            f"{s.drowsiness_level:.1f}%\t\t{hm.pitch:.1f}°\t{hm.roll:.1f}°\t{hm.yaw:.1f}°\t"
            f"{_yes_no(alerted)}"
        )
    return "\n".join(lines) + "\n"


FORMATS = {
    "csv": ("drowsiness_data", csv_content),
    "txt": ("drowsiness_summary", text_content),
}


def write_export(export: SessionExport, fmt: str, out_dir: str = "exports") -> Path:
    if fmt not in FORMATS:
        raise ValueError(f"Unsupported export format: {fmt!r}")
    prefix, build = FORMATS[fmt]
    content = build(export)

    Path(out_dir).mkdir(parents=True, exist_ok=True)
    day = export.start_time.strftime("%Y-%m-%d")
    path = Path(out_dir) / f"{prefix}_{day}.{fmt}"
    path.write_text(content, encoding="utf-8")
    logger.info("Exported %d samples to %s", len(export.samples), path)
    return path
