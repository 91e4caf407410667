from __future__ import annotations

import os
from pathlib import Path
from typing import Optional


def project_root(explicit: Optional[str] = None) -> Path:
    raw = (explicit or "").strip() or os.environ.get("AGENTMUX_PROJECT", "").strip()
    if raw:
        return Path(raw).expanduser().resolve()
    return Path.cwd().resolve()
