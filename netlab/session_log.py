from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional
import json

from .events import SimulationEvent

if TYPE_CHECKING:
    from .validator import ValidationResult


@dataclass
class SessionEntry:
    ts: str
    kind: str
    topology_id: Optional[str]
    data: Dict[str, Any]


class SessionLogger:
    """Trace of one lesson attempt: simulator event streams and validator verdicts.

    Every entry is stamped with the id of the topology it describes, so a
    trace that spans a ``Topology.clone()`` still tells the two graphs apart.
    Simulation events are stored as ``sim.<kind>``; validation runs as
    ``validation``. Only the newest ``max_entries`` entries are kept.
    """

    SCHEMA = "netlab-session-log/v1"

    def __init__(self, topology_id: Optional[str] = None, max_entries: int = 5000):
        self.topology_id = topology_id
        self.max_entries = max_entries
        self.events: List[SessionEntry] = []

    def add(self, kind: str, topology_id: Optional[str] = None, **data: Any) -> SessionEntry:
        entry = SessionEntry(
            ts=datetime.now(timezone.utc).isoformat(),
            kind=str(kind),
            topology_id=topology_id or self.topology_id,
            data=dict(data),
        )
        self.events.append(entry)
        if len(self.events) > self.max_entries:
            del self.events[: len(self.events) - self.max_entries]
        return entry

    def record_event(self, event: SimulationEvent, topology_id: Optional[str] = None) -> SessionEntry:
        payload = event.to_dict()
        kind = payload.pop("kind")
        return self.add(f"sim.{kind}", topology_id, **payload)

    def record_stream(self, events: List[SimulationEvent], topology_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Record a drained stream; returns the new entries as dicts."""
        return [asdict(self.record_event(ev, topology_id)) for ev in events]

    def record_validation(self, result: "ValidationResult", topology_id: Optional[str] = None, **context: Any) -> SessionEntry:
        return self.add("validation", topology_id, **context, **result.to_dict())

    def kinds(self) -> List[str]:
        return [e.kind for e in self.events]

    def packet_ids(self) -> List[str]:
        """Distinct packet ids seen in simulation entries, in first-seen order."""
        seen: List[str] = []
        for e in self.events:
            pkt = e.data.get("packet")
            if pkt and pkt["id"] not in seen:
                seen.append(pkt["id"])
        return seen

    def clear(self) -> None:
        self.events.clear()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema": self.SCHEMA,
            "topologyId": self.topology_id,
            "eventCount": len(self.events),
            "events": [asdict(e) for e in self.events],
        }

    def save_json(self, path: str) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
