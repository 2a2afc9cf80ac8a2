from __future__ import annotations

from dataclasses import dataclass, asdict, replace
from enum import Enum
from typing import Any, Dict, Optional

from .config import BROADCAST_MAC, DEFAULT_TTL


class PacketType(str, Enum):
    ICMP_ECHO_REQUEST = "ICMP_ECHO_REQUEST"
    ICMP_ECHO_REPLY = "ICMP_ECHO_REPLY"
    ARP_REQUEST = "ARP_REQUEST"
    ARP_REPLY = "ARP_REPLY"
    DATA = "DATA"
    BROADCAST = "BROADCAST"


@dataclass(frozen=True)
class Packet:
    """A simulated frame/packet. Only the header fields the lessons talk about."""

    id: str
    type: PacketType
    source_mac: str
    destination_mac: str
    source_ip: Optional[str] = None
    destination_ip: Optional[str] = None
    sequence_number: int = 0
    ttl: int = DEFAULT_TTL
    payload: str = ""

    def is_broadcast(self) -> bool:
        return self.destination_mac == BROADCAST_MAC or self.type == PacketType.ARP_REQUEST

    def decrement_ttl(self) -> Optional["Packet"]:
        if self.ttl - 1 <= 0:
            return None
        return replace(self, ttl=self.ttl - 1)

    def create_reply(self, packet_id: str, reply_type: PacketType) -> "Packet":
        """Swap source/destination addressing; keep the sequence number."""
        return Packet(
            id=packet_id,
            type=reply_type,
            source_mac=self.destination_mac,
            destination_mac=self.source_mac,
            source_ip=self.destination_ip,
            destination_ip=self.source_ip,
            sequence_number=self.sequence_number,
        )

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["type"] = self.type.value
        return d

    @staticmethod
    def create_ping(
        packet_id: str,
        source_mac: str,
        destination_mac: str,
        source_ip: str,
        destination_ip: str,
        sequence_number: int = 1,
    ) -> "Packet":
        return Packet(
            id=packet_id,
            type=PacketType.ICMP_ECHO_REQUEST,
            source_mac=source_mac,
            destination_mac=destination_mac,
            source_ip=source_ip,
            destination_ip=destination_ip,
            sequence_number=sequence_number,
        )

    @staticmethod
    def create_arp_request(packet_id: str, source_mac: str, source_ip: str, target_ip: str) -> "Packet":
        return Packet(
            id=packet_id,
            type=PacketType.ARP_REQUEST,
            source_mac=source_mac,
            destination_mac=BROADCAST_MAC,
            source_ip=source_ip,
            destination_ip=target_ip,
            payload=f"Who has {target_ip}? Tell {source_ip}",
        )

    @staticmethod
    def create_arp_reply(
        packet_id: str,
        source_mac: str,
        destination_mac: str,
        source_ip: str,
        destination_ip: str,
    ) -> "Packet":
        return Packet(
            id=packet_id,
            type=PacketType.ARP_REPLY,
            source_mac=source_mac,
            destination_mac=destination_mac,
            source_ip=source_ip,
            destination_ip=destination_ip,
            payload=f"{source_ip} is at {source_mac}",
        )
