"""Read access to the append-only application log."""

from collections import deque
from pathlib import Path


def read_recent_log_lines(path: str | Path, limit: int = 50) -> list[str]:
    """Return up to ``limit`` most recent non-blank lines, oldest first.

    A missing file yields an empty list.
    """
    log_path = Path(path)
    if limit <= 0 or not log_path.exists():
        return []

    recent: deque[str] = deque(maxlen=limit)
    with log_path.open("r", encoding="utf-8", errors="replace") as handle:
        for line in handle:
            line = line.rstrip("\n")
            if line.strip():
                recent.append(line)
    return list(recent)
