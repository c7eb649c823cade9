from __future__ import annotations

import sys
from pathlib import Path

import pytest


ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
EXAMPLES_DIR = ROOT_DIR / "examples"

for path in (ROOT_DIR, SRC_DIR):
    value = str(path)
    if path.exists() and value not in sys.path:
        sys.path.insert(0, value)


@pytest.fixture
def sample_records() -> list[dict]:
    return [
        {
            "id": "A1",
            "name": "Foundation pour",
            "delayImpactDays": 5,
            "totalFloat": 0,
            "isCriticalPath": True,
            "probability": 0.8,
            "costImpact": 10000,
        },
        {
            "id": "A2",
            "name": "Site survey",
            "plannedDuration": 10,
            "totalFloat": 8,
            "probability": 0.1,
            "costImpact": 500,
            "status": "completed",
            "percentComplete": 100,
        },
        {
            "id": "A10",
            "name": "Steel delivery",
            "plannedDuration": 4,
            "delayImpactDays": 2,
            "predecessorIds": ["A1"],
            "resourceId": "CREW-2",
            "fteAllocation": 130,
            "probability": 0.5,
            "costImpact": 4000,
        },
    ]
