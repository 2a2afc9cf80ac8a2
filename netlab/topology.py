from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple
import uuid

from .addressing import network_prefix
from .config import PORT_COUNTS, PORT_PREFIXES
from .logging_config import setup_logger

logger = setup_logger(__name__)


# ───────────────────────────── Errors ─────────────────────────────


class TopologyError(Exception):
    """Structural misuse of the topology graph (a programming/UI-input error)."""


class DuplicateIdError(TopologyError):
    pass


class AlreadyConnectedError(TopologyError):
    pass


class SameDeviceError(TopologyError):
    pass


class NoFreeInterfaceError(TopologyError):
    pass


class UnknownDeviceError(TopologyError, KeyError):
    pass


class UnknownInterfaceError(TopologyError, KeyError):
    pass


# ───────────────────────────── Model ─────────────────────────────


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def _mac_from_text(text: str) -> str:
    # Deterministic locally-administered unicast MAC.
    h = 0
    for ch in text.encode("utf-8"):
        h = (h * 131 + ch) & 0xFFFFFFFF
    b = [0x02, (h >> 24) & 0xFF, (h >> 16) & 0xFF, (h >> 8) & 0xFF, h & 0xFF, (h >> 1) & 0xFF]
    return ":".join(f"{x:02x}" for x in b)


class DeviceType(str, Enum):
    PC = "PC"
    SERVER = "SERVER"
    SWITCH = "SWITCH"
    ROUTER = "ROUTER"
    HUB = "HUB"

    @property
    def is_layer2(self) -> bool:
        return self in (DeviceType.SWITCH, DeviceType.HUB)

    @property
    def is_end_host(self) -> bool:
        return self in (DeviceType.PC, DeviceType.SERVER)


@dataclass
class Interface:
    id: str
    name: str
    owner_device_id: str
    mac_address: str = ""
    ip_address: Optional[str] = None
    subnet_mask: Optional[str] = None
    vlan_id: Optional[int] = None
    peer_interface_id: Optional[str] = None

    def __setattr__(self, key, value):
        # The MAC is burned in once.
        if key == "mac_address" and getattr(self, "mac_address", ""):
            raise AttributeError("mac_address is immutable once assigned")
        super().__setattr__(key, value)

    def __post_init__(self):
        if not self.mac_address:
            self.mac_address = _mac_from_text(self.id)

    def has_ip(self) -> bool:
        return bool(self.ip_address)

    def is_connected(self) -> bool:
        return self.peer_interface_id is not None

    def configure(self, ip_address: Optional[str], subnet_mask: Optional[str] = None):
        self.ip_address = ip_address or None
        self.subnet_mask = subnet_mask or None


@dataclass
class Device:
    id: str
    device_type: DeviceType
    name: str
    position: Tuple[float, float] = (0.0, 0.0)
    interfaces: Tuple[Interface, ...] = ()
    default_gateway: Optional[str] = None

    @classmethod
    def create(
        cls,
        device_type: DeviceType,
        name: str,
        x: float = 0.0,
        y: float = 0.0,
        device_id: Optional[str] = None,
    ) -> "Device":
        """Build a device with the fixed port set of its class."""
        device_type = DeviceType(device_type)
        device_id = device_id or _new_id(device_type.value.lower())
        prefix = PORT_PREFIXES[device_type.value]
        interfaces = tuple(
            Interface(id=f"{device_id}:{prefix}{i}", name=f"{prefix}{i}", owner_device_id=device_id)
            for i in range(PORT_COUNTS[device_type.value])
        )
        return cls(id=device_id, device_type=device_type, name=name, position=(float(x), float(y)), interfaces=interfaces)

    @classmethod
    def pc(cls, name: str, x: float = 0.0, y: float = 0.0, device_id: Optional[str] = None) -> "Device":
        return cls.create(DeviceType.PC, name, x, y, device_id)

    @classmethod
    def server(cls, name: str, x: float = 0.0, y: float = 0.0, device_id: Optional[str] = None) -> "Device":
        return cls.create(DeviceType.SERVER, name, x, y, device_id)

    @classmethod
    def switch(cls, name: str, x: float = 0.0, y: float = 0.0, device_id: Optional[str] = None) -> "Device":
        return cls.create(DeviceType.SWITCH, name, x, y, device_id)

    @classmethod
    def router(cls, name: str, x: float = 0.0, y: float = 0.0, device_id: Optional[str] = None) -> "Device":
        return cls.create(DeviceType.ROUTER, name, x, y, device_id)

    @classmethod
    def hub(cls, name: str, x: float = 0.0, y: float = 0.0, device_id: Optional[str] = None) -> "Device":
        return cls.create(DeviceType.HUB, name, x, y, device_id)

    def is_layer2(self) -> bool:
        return self.device_type.is_layer2

    def is_router(self) -> bool:
        return self.device_type == DeviceType.ROUTER

    def primary_interface(self) -> Optional[Interface]:
        """First interface with an IP address, if any."""
        for itf in self.interfaces:
            if itf.has_ip():
                return itf
        return None

    def primary_ip(self) -> Optional[str]:
        itf = self.primary_interface()
        return itf.ip_address if itf else None

    def free_interface(self) -> Optional[Interface]:
        for itf in self.interfaces:
            if not itf.is_connected():
                return itf
        return None

    def interface(self, name: str) -> Optional[Interface]:
        for itf in self.interfaces:
            if itf.name == name:
                return itf
        return None


@dataclass
class Link:
    id: str
    interface_a_id: str
    interface_b_id: str

    def other_interface_id(self, interface_id: str) -> Optional[str]:
        if interface_id == self.interface_a_id:
            return self.interface_b_id
        if interface_id == self.interface_b_id:
            return self.interface_a_id
        return None

    def touches(self, interface_id: str) -> bool:
        return interface_id in (self.interface_a_id, self.interface_b_id)


@dataclass
class Topology:
    """Aggregate root: devices (with their interfaces) and the links between them.

    All mutations happen in place and leave the peer references symmetric.
    Interfaces reference their peer by id; every dereference goes through the
    lookup helpers below.
    """

    name: str = ""
    id: str = field(default_factory=lambda: _new_id("topo"))
    devices: List[Device] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)

    # ───────────────────────────── Devices / Links ─────────────────────────────

    def add_device(self, device: Device) -> Device:
        if self.find_device(device.id) is not None:
            raise DuplicateIdError(f"Device id already in topology: {device.id}")
        taken = {itf.id for d in self.devices for itf in d.interfaces}
        for itf in device.interfaces:
            if itf.id in taken:
                raise DuplicateIdError(f"Interface id already in topology: {itf.id}")
        self.devices.append(device)
        logger.debug("added device %s (%s)", device.id, device.device_type.value)
        return device

    def remove_device(self, device_id: str):
        device = self.find_device(device_id)
        if device is None:
            return
        own = {itf.id for itf in device.interfaces}
        doomed = [l.id for l in self.links if l.interface_a_id in own or l.interface_b_id in own]
        for link_id in doomed:
            self.disconnect(link_id)
        self.devices = [d for d in self.devices if d.id != device_id]
        logger.debug("removed device %s and %d link(s)", device_id, len(doomed))

    def connect(self, interface_a_id: str, interface_b_id: str) -> Link:
        a = self.find_interface(interface_a_id)
        if a is None:
            raise UnknownInterfaceError(interface_a_id)
        b = self.find_interface(interface_b_id)
        if b is None:
            raise UnknownInterfaceError(interface_b_id)
        if a.owner_device_id == b.owner_device_id:
            raise SameDeviceError(f"Cannot connect {a.owner_device_id} to itself")
        for itf in (a, b):
            if itf.is_connected():
                raise AlreadyConnectedError(f"Interface {itf.id} is already connected")

        link = Link(id=self._unique_link_id(), interface_a_id=a.id, interface_b_id=b.id)
        a.peer_interface_id = b.id
        b.peer_interface_id = a.id
        self.links.append(link)
        logger.debug("connected %s <-> %s as %s", a.id, b.id, link.id)
        return link

    def connect_devices(self, device_a_id: str, device_b_id: str) -> Link:
        """Cable two devices using the first free port on each."""
        a = self._require_device(device_a_id)
        b = self._require_device(device_b_id)
        if a.id == b.id:
            raise SameDeviceError(f"Cannot connect {a.id} to itself")
        a_if = a.free_interface()
        b_if = b.free_interface()
        if a_if is None or b_if is None:
            full = a if a_if is None else b
            raise NoFreeInterfaceError(f"{full.name} has no free interface")
        return self.connect(a_if.id, b_if.id)

    def disconnect(self, link_id: str):
        link = self.find_link(link_id)
        if link is None:
            return
        for itf_id in (link.interface_a_id, link.interface_b_id):
            itf = self.find_interface(itf_id)
            if itf is not None:
                itf.peer_interface_id = None
        self.links = [l for l in self.links if l.id != link_id]
        logger.debug("disconnected %s", link_id)

    def _unique_link_id(self) -> str:
        existing = {l.id for l in self.links}
        while True:
            link_id = _new_id("link")
            if link_id not in existing:
                return link_id

    def _require_device(self, device_id: str) -> Device:
        device = self.find_device(device_id)
        if device is None:
            raise UnknownDeviceError(device_id)
        return device

    # ───────────────────────────── Lookups ─────────────────────────────

    def find_device(self, device_id: str) -> Optional[Device]:
        for d in self.devices:
            if d.id == device_id:
                return d
        return None

    def find_device_by_name(self, name: str) -> Optional[Device]:
        wanted = (name or "").strip().lower()
        for d in self.devices:
            if d.name.lower() == wanted:
                return d
        return None

    def find_device_by_ip(self, ip: str) -> Optional[Device]:
        owner = self.find_interface_by_ip(ip)
        if owner is None:
            return None
        return self.find_device(owner.owner_device_id)

    def find_interface(self, interface_id: str) -> Optional[Interface]:
        for d in self.devices:
            for itf in d.interfaces:
                if itf.id == interface_id:
                    return itf
        return None

    def find_interface_by_ip(self, ip: str) -> Optional[Interface]:
        if not ip:
            return None
        for d in self.devices:
            for itf in d.interfaces:
                if itf.ip_address == ip:
                    return itf
        return None

    def find_link(self, link_id: str) -> Optional[Link]:
        for l in self.links:
            if l.id == link_id:
                return l
        return None

    def link_for_interface(self, interface_id: str) -> Optional[Link]:
        for l in self.links:
            if l.touches(interface_id):
                return l
        return None

    def links_between(self, device_a_id: str, device_b_id: str) -> List[Tuple[Interface, Interface]]:
        """(interface on a, interface on b) for every cable joining the two devices."""
        a = self.find_device(device_a_id)
        if a is None:
            return []
        out = []
        for itf in a.interfaces:
            if itf.peer_interface_id is None:
                continue
            peer = self.find_interface(itf.peer_interface_id)
            if peer is not None and peer.owner_device_id == device_b_id:
                out.append((itf, peer))
        return out

    def neighbors(self, device_id: str) -> List[Device]:
        device = self.find_device(device_id)
        if device is None:
            return []
        seen: Set[str] = set()
        out: List[Device] = []
        for itf in device.interfaces:
            if itf.peer_interface_id is None:
                continue
            peer = self.find_interface(itf.peer_interface_id)
            if peer is None or peer.owner_device_id in seen:
                continue
            other = self.find_device(peer.owner_device_id)
            if other is not None:
                seen.add(other.id)
                out.append(other)
        return out

    def devices_by_type(self, device_type: DeviceType) -> List[Device]:
        device_type = DeviceType(device_type)
        return [d for d in self.devices if d.device_type == device_type]

    def device_count_by_type(self, device_type: DeviceType) -> int:
        return len(self.devices_by_type(device_type))

    def all_ip_addresses(self) -> List[str]:
        return [itf.ip_address for d in self.devices for itf in d.interfaces if itf.has_ip()]

    def subnets(self) -> Set[str]:
        """Distinct ``network/prefixlen`` strings across configured interfaces."""
        return {
            network_prefix(itf.ip_address, itf.subnet_mask)
            for d in self.devices
            for itf in d.interfaces
            if itf.has_ip()
        }

    # ───────────────────────────── Copy / integrity ─────────────────────────────

    def clone(self, name: Optional[str] = None) -> "Topology":
        """Deep copy with fresh device and link ids; same shape and addressing."""
        copy = Topology(name=self.name if name is None else name)
        iface_map: Dict[str, str] = {}
        for d in self.devices:
            nd = Device.create(d.device_type, d.name, d.position[0], d.position[1])
            nd.default_gateway = d.default_gateway
            for old, new in zip(d.interfaces, nd.interfaces):
                new.configure(old.ip_address, old.subnet_mask)
                new.vlan_id = old.vlan_id
                iface_map[old.id] = new.id
            copy.add_device(nd)
        for l in self.links:
            copy.connect(iface_map[l.interface_a_id], iface_map[l.interface_b_id])
        return copy

    def check_invariants(self) -> List[str]:
        """Return every broken structural invariant (empty list means healthy)."""
        problems: List[str] = []

        device_ids: Set[str] = set()
        for d in self.devices:
            if d.id in device_ids:
                problems.append(f"Duplicate device id: {d.id}")
            device_ids.add(d.id)

        for d in self.devices:
            kind = d.device_type.value
            expected = [f"{PORT_PREFIXES[kind]}{i}" for i in range(PORT_COUNTS[kind])]
            if len(d.interfaces) != len(expected):
                problems.append(f"{d.id} has {len(d.interfaces)} interfaces, a {kind} has {len(expected)}")
            for itf in d.interfaces:
                if itf.name not in expected:
                    problems.append(f"Interface {itf.id} is not a {kind} port (expected {expected[0]}..{expected[-1]})")
            names = [itf.name for itf in d.interfaces]
            if len(set(names)) != len(names):
                problems.append(f"{d.id} has duplicate interface names")

        interfaces: Dict[str, Interface] = {}
        for d in self.devices:
            for itf in d.interfaces:
                if itf.id in interfaces:
                    problems.append(f"Duplicate interface id: {itf.id}")
                if itf.owner_device_id != d.id:
                    problems.append(f"Interface {itf.id} does not belong to {d.id}")
                interfaces[itf.id] = itf

        for itf in interfaces.values():
            if itf.peer_interface_id is None:
                continue
            peer = interfaces.get(itf.peer_interface_id)
            if peer is None:
                problems.append(f"Interface {itf.id} points at missing peer {itf.peer_interface_id}")
            elif peer.peer_interface_id != itf.id:
                problems.append(f"Peer reference between {itf.id} and {peer.id} is not symmetric")

        link_ids: Set[str] = set()
        used: Set[str] = set()
        for l in self.links:
            if l.id in link_ids:
                problems.append(f"Duplicate link id: {l.id}")
            link_ids.add(l.id)
            a = interfaces.get(l.interface_a_id)
            b = interfaces.get(l.interface_b_id)
            if a is None or b is None:
                problems.append(f"Link {l.id} references a missing interface")
                continue
            if a.owner_device_id == b.owner_device_id:
                problems.append(f"Link {l.id} connects {a.owner_device_id} to itself")
            if a.peer_interface_id != b.id or b.peer_interface_id != a.id:
                problems.append(f"Link {l.id} does not match the interface peer references")
            for itf_id in (a.id, b.id):
                if itf_id in used:
                    problems.append(f"Interface {itf_id} is used by more than one link")
                used.add(itf_id)

        for itf in interfaces.values():
            if itf.peer_interface_id is not None and itf.id not in used:
                problems.append(f"Interface {itf.id} has a peer but no link")

        return problems
