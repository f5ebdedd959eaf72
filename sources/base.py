from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class ConnectionReport:
    success: bool
    message: str
    mode: str  # live | mock
    details: Dict[str, Any] = field(default_factory=dict)
