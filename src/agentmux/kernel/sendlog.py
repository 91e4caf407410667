"""Append-only delivery log: `logs/send_log.jsonl` plus one file per UTC day."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

from ..contracts.v1 import DeliveryLogEntry
from ..errors import StorageError
from ..util.fs import append_line, count_lines, read_last_lines
from ..util.time import parse_utc_iso, utc_date_str

SEND_LOG = "send_log.jsonl"


def daily_log_name(timestamp: str) -> str:
    dt = parse_utc_iso(timestamp)
    return f"send_{utc_date_str(dt)}.jsonl"


def append_delivery(logs_dir: Path, *, agent: str, target: str, message: str) -> DeliveryLogEntry:
    entry = DeliveryLogEntry.for_message(agent=agent, target=target, message=message)
    line = json.dumps(entry.model_dump(), ensure_ascii=False)
    try:
        append_line(logs_dir / SEND_LOG, line)
        append_line(logs_dir / daily_log_name(entry.timestamp), line)
    except OSError as e:
        raise StorageError(f"failed to append delivery log: {e}") from e
    return entry


def recent_deliveries(logs_dir: Path, n: int = 20) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    try:
        lines = read_last_lines(logs_dir / SEND_LOG, n)
    except OSError as e:
        raise StorageError(f"failed to read delivery log: {e}") from e
    for ln in lines:
        try:
            doc = json.loads(ln)
        except ValueError:
            continue
        if isinstance(doc, dict):
            out.append(doc)
    return out


def log_stats(logs_dir: Path) -> Dict[str, Any]:
    path = logs_dir / SEND_LOG
    try:
        count = count_lines(path)
    except OSError as e:
        raise StorageError(f"failed to read delivery log: {e}") from e
    last = recent_deliveries(logs_dir, 1)
    return {
        "message_count": count,
        "last_message": str(last[-1].get("timestamp") or "") if last else None,
    }
