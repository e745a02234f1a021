import argparse
import logging
import sys

from PySide6.QtCore import QCoreApplication, QTimer

from drowsiguard.core.alerts import AlertState
from drowsiguard.core.export import NothingToExport, write_export
from drowsiguard.core.session_engine import DisplayUpdate, SessionEngine
from drowsiguard.core.settings_store import SettingsStore
from drowsiguard.core.stats import format_duration
from drowsiguard.core.storage import MemoryBackend, SessionHistory
from drowsiguard.sensor.sim_feed import SimulatedFeed

APP_NAME = "Drowsiguard"
APP_VERSION = "0.1.0"

logger = logging.getLogger("drowsiguard")


def create_application(argv) -> QCoreApplication:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s - %(message)s")
    app = QCoreApplication(argv)
    app.setOrganizationName(APP_NAME)
    app.setApplicationName(APP_NAME)
    app.setApplicationVersion(APP_VERSION)
    return app


def log_update(update: DisplayUpdate) -> None:
    s = update.sample
    flag = "ALERT" if update.alert_state is AlertState.ACTIVE else "clear"
    logger.info(
        "%s blink=%.1f drowsy=%.1f%% tilt=(%.1f, %.1f, %.1f) battery=%.0f%% [%s] "
        "avg_blink=%.1f peak=%.1f%% alerts=%d duration=%s",
        s.timestamp.astimezone().strftime("%H:%M:%S"),
        s.eye_blink_rate,
        s.drowsiness_level,
        s.head_movement.pitch,
        s.head_movement.roll,
        s.head_movement.yaw,
        s.battery_level,
        flag,
        update.stats.avg_blink_rate,
        update.stats.peak_drowsiness,
        update.alert_count,
        format_duration(update.stats.duration_ms),
    )


def parse_args(argv):
    parser = argparse.ArgumentParser(description="Run a simulated drowsiness monitoring session")
    parser.add_argument("--duration", type=float, default=30.0, help="session length in seconds")
    parser.add_argument("--threshold", type=int, default=None, help="drowsiness alert threshold (0-100)")
    parser.add_argument("--tick-ms", type=int, default=None, help="simulator tick interval")
    parser.add_argument("--export", choices=["csv", "txt"], default=None)
    parser.add_argument("--out-dir", default="exports")
    parser.add_argument("--no-history", action="store_true", help="do not persist the session summary")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    app = create_application(sys.argv[:1])

    settings = SettingsStore().load()
    if args.threshold is not None:
        settings.drowsiness_threshold = max(0, min(100, args.threshold))
    if args.tick_ms is not None:
        settings.sim_tick_ms = max(100, args.tick_ms)

    history = SessionHistory(MemoryBackend()) if args.no_history else SessionHistory()
    feed = SimulatedFeed(threshold=lambda: settings.drowsiness_threshold, tick_ms=settings.sim_tick_ms)
    engine = SessionEngine(settings, history, feed=feed)
    engine.sample_processed.connect(log_update)

    def finish():
        summary = engine.stop()
        if summary is None:
            logger.info("No samples were accepted, nothing recorded")
        else:
            logger.info(
                "Summary: %d samples, %d alerts, avg blink %.1f BPM, peak drowsiness %.1f%%",
                summary.sample_count,
                summary.total_alerts,
                summary.avg_blink_rate,
                summary.peak_drowsiness,
            )
        if args.export:
            try:
                write_export(engine.export_snapshot(), args.export, args.out_dir)
            except NothingToExport as e:
                logger.warning("%s", e)
        app.quit()

    engine.start()
    QTimer.singleShot(int(args.duration * 1000), finish)
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
