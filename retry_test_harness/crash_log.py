"""Best-effort logging of catastrophic failures to disk."""

import logging
from datetime import datetime, timezone
from pathlib import Path

log = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H_%M_%SZ"


def crash_log_path(log_dir: Path, now: datetime | None = None) -> Path:
    """Path of the crash log file for the given UTC time."""
    now = now or datetime.now(timezone.utc)
    return log_dir / f"{now.strftime(TIMESTAMP_FORMAT)}.txt"


def write_crash_log(log_dir: Path, text: str) -> Path | None:
    """Write text to a timestamped file under log_dir.

    Returns the written path, or None when the file could not be written.
    """
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        path = crash_log_path(log_dir)
        path.write_text(text, encoding="utf-8", errors="backslashreplace")
    except (OSError, ValueError) as exc:
        log.warning("Failed to write crash log to %s: %s", log_dir, exc)
        return None
    return path
