"""Persistence for landmark recordings and session reports.

Recordings are JSON Lines, one detector frame per line::

    {"landmarks": [[x, y, z], ...], "handedness": "right", "timestamp_ms": 0}

``"landmarks": null`` (or a missing key) means no hand was detected.
Reports are JSON with a ``_version`` block.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from handrom import __version__
from handrom.session import SessionSummary
from handrom.types import LandmarkFrame

PathLike = Union[str, Path]


def _frame_from_record(record: Dict[str, Any], line_no: int) -> Optional[LandmarkFrame]:
    landmarks = record.get("landmarks")
    if landmarks is None:
        return None
    try:
        return LandmarkFrame.from_points(
            landmarks,
            handedness=record.get("handedness"),
            timestamp_ms=record.get("timestamp_ms", 0.0),
        )
    except (TypeError, ValueError) as e:
        raise ValueError(f"line {line_no}: invalid landmarks: {e}") from e


def load_frames(path: PathLike) -> List[Optional[LandmarkFrame]]:
    """Load a JSON Lines landmark recording.

    Args:
        path: Path to the .jsonl file.

    Returns:
        One entry per non-blank line; None where no hand was detected.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If a line is not a JSON object or has bad landmarks.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Recording not found: {path}")

    frames: List[Optional[LandmarkFrame]] = []
    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                raise ValueError(f"{path}:{line_no}: malformed JSON: {e.msg}") from e
            if not isinstance(record, dict):
                raise ValueError(f"{path}:{line_no}: expected a JSON object")
            frames.append(_frame_from_record(record, line_no))
    return frames


def save_frames(frames: Iterable[Optional[LandmarkFrame]], path: PathLike) -> None:
    """Write frames as JSON Lines (None becomes ``{"landmarks": null}``)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        for frame in frames:
            record = frame.to_dict() if frame is not None else {"landmarks": None}
            f.write(json.dumps(record) + "\n")


def save_summary(summary: SessionSummary, path: PathLike) -> None:
    """Save a session summary to JSON.

    Args:
        summary: Summary returned by MeasurementSession.stop().
        path: Output JSON file path.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = summary.to_dict()
    data["_version"] = {
        "app": "handrom",
        "app_version": __version__,
        "algorithm": summary.algorithm,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def load_summary(path: PathLike) -> SessionSummary:
    """Load a session summary saved with save_summary.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Session report not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    return SessionSummary.from_dict(data)
