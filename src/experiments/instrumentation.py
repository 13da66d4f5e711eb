from __future__ import annotations

import csv
import json
import time
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

LEADING_COLUMNS = ["timestamp", "run_id", "event", "job", "size", "policy"]


@dataclass
class SimulationProfiler:
    """
    Structured event recorder for MemorySimulator runs.

    Events stay in memory; ``flush`` writes them as ``<run_id>.jsonl`` and
    ``<run_id>.csv`` under ``output_dir``. With ``write_immediately`` each
    event is also appended to the JSONL file as it happens.
    """

    run_id: str
    output_dir: Optional[str] = None
    write_immediately: bool = False
    events: List[Dict[str, object]] = field(default_factory=list)

    def record_event(self, event_type: str, payload: Dict[str, object]) -> None:
        record = {"timestamp": time.time(), "run_id": self.run_id, "event": event_type, **payload}
        self.events.append(record)
        if self.write_immediately and self.output_dir:
            with self._path("jsonl").open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(record) + "\n")

    def events_of(self, event_type: str) -> List[Dict[str, object]]:
        return [event for event in self.events if event["event"] == event_type]

    def event_counts(self) -> Dict[str, int]:
        return dict(Counter(event["event"] for event in self.events))

    def flush(self) -> None:
        if not self.output_dir or not self.events:
            return
        with self._path("jsonl").open("w", encoding="utf-8") as handle:
            handle.writelines(json.dumps(record) + "\n" for record in self.events)
        seen = {key for event in self.events for key in event}
        columns = [key for key in LEADING_COLUMNS if key in seen]
        columns += sorted(seen.difference(columns))
        with self._path("csv").open("w", newline="", encoding="utf-8") as handle:
            writer = csv.DictWriter(handle, fieldnames=columns)
            writer.writeheader()
            writer.writerows(self.events)

    def _path(self, suffix: str) -> Path:
        directory = Path(self.output_dir)
        directory.mkdir(parents=True, exist_ok=True)
        return directory / f"{self.run_id}.{suffix}"
