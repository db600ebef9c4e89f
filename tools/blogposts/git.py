from __future__ import annotations

import logging
import subprocess
from datetime import date, datetime
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def _run_git_dates(cwd: Path, args: list[str]) -> list[date]:
    try:
        proc = subprocess.run(
            ["git"] + args,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError:
        logger.debug("git is not installed")
        return []
    if proc.returncode != 0 or not proc.stdout.strip():
        return []
    dates: list[date] = []
    for line in proc.stdout.splitlines():
        line = line.strip()
        if not line:
            continue
        # ISO 8601, e.g. 2025-03-01T10:23:45+00:00
        dates.append(datetime.fromisoformat(line).date())
    return dates


def git_last_commit_date(path: Path) -> Optional[date]:
    """Author date of the last commit touching ``path``, if it is tracked."""
    path = path.resolve()
    dates = _run_git_dates(
        path.parent,
        ["log", "--follow", "-1", "--format=%aI", "--", path.name],
    )
    return dates[0] if dates else None
