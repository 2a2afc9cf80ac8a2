"""Events emitted by NetworkSimulator streams.

Each event is a small frozen dataclass tagged with ``kind`` so consumers can
dispatch on it (or serialize it) without isinstance checks.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, ClassVar, Dict

from .packets import Packet


@dataclass(frozen=True)
class SimulationEvent:
    kind: ClassVar[str] = "event"

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"kind": self.kind}
        for f in fields(self):
            value = getattr(self, f.name)
            out[f.name] = value.to_dict() if isinstance(value, Packet) else value
        return out


@dataclass(frozen=True)
class SimulationStarted(SimulationEvent):
    kind: ClassVar[str] = "simulation_started"


@dataclass(frozen=True)
class SimulationEnded(SimulationEvent):
    kind: ClassVar[str] = "simulation_ended"
    success: bool


@dataclass(frozen=True)
class Log(SimulationEvent):
    kind: ClassVar[str] = "log"
    message: str


@dataclass(frozen=True)
class PacketCreated(SimulationEvent):
    kind: ClassVar[str] = "packet_created"
    packet: Packet
    at_device_id: str


@dataclass(frozen=True)
class PacketInTransit(SimulationEvent):
    kind: ClassVar[str] = "packet_in_transit"
    packet: Packet
    from_device_id: str
    to_device_id: str
    progress: float  # share of the route covered once this hop completes


@dataclass(frozen=True)
class PacketDelivered(SimulationEvent):
    kind: ClassVar[str] = "packet_delivered"
    packet: Packet
    at_device_id: str


@dataclass(frozen=True)
class PacketDropped(SimulationEvent):
    kind: ClassVar[str] = "packet_dropped"
    packet: Packet
    reason: str


@dataclass(frozen=True)
class Error(SimulationEvent):
    kind: ClassVar[str] = "error"
    message: str
