from __future__ import annotations

from collections import deque
from typing import AsyncIterator, Deque, Dict, List, Optional, Tuple
import asyncio
import itertools

from . import addressing
from .config import DEFAULT_STEP_DELAY, DEFAULT_SUBNET_MASK, RTT_MS_PER_HOP
from .events import (
    Error,
    Log,
    PacketCreated,
    PacketDelivered,
    PacketDropped,
    PacketInTransit,
    SimulationEnded,
    SimulationEvent,
    SimulationStarted,
)
from .logging_config import setup_logger
from .packets import Packet, PacketType
from .topology import Device, Interface, Topology

logger = setup_logger(__name__)


async def collect(stream: AsyncIterator[SimulationEvent]) -> List[SimulationEvent]:
    """Drain an event stream into a list."""
    return [ev async for ev in stream]


class NetworkSimulator:
    """Deterministic ARP + ping emulation over one topology snapshot.

    Reachability is plain graph reachability (BFS over cabled devices); there is
    no routing-table simulation. ``step_delay`` only paces the streams for
    animation: with ``step_delay=0`` the same events come out, just faster.

    The topology must not be mutated while a stream is being consumed. Clone
    it first if the editor can change it mid-animation.
    """

    def __init__(self, topology: Topology, step_delay: Optional[float] = None):
        self.topology = topology
        self.step_delay = DEFAULT_STEP_DELAY if step_delay is None else max(0.0, float(step_delay))

        # device id -> ip -> mac
        self._arp_tables: Dict[str, Dict[str, str]] = {}
        # layer-2 device id -> mac -> ingress interface id
        self._mac_tables: Dict[str, Dict[str, str]] = {}
        self._packet_seq = itertools.count(1)

    # ───────────────────────────── Tables ─────────────────────────────

    def get_arp_table(self, device_id: str) -> Dict[str, str]:
        return dict(self._arp_tables.get(device_id, {}))

    def clear_arp_table(self, device_id: str):
        self._arp_tables.pop(device_id, None)

    def get_mac_table(self, device_id: str) -> Dict[str, str]:
        return dict(self._mac_tables.get(device_id, {}))

    def clear_all_tables(self):
        self._arp_tables.clear()
        self._mac_tables.clear()

    def _next_packet_id(self) -> str:
        return f"pkt-{next(self._packet_seq)}"

    async def _pause(self, factor: float = 1.0):
        if self.step_delay > 0:
            await asyncio.sleep(self.step_delay * factor)

    # ───────────────────────────── ARP ─────────────────────────────

    def resolve_arp(self, from_device_id: str, target_ip: str) -> Optional[str]:
        """MAC for ``target_ip`` as seen from ``from_device_id`` (None when nobody owns it)."""
        cached = self._arp_tables.get(from_device_id, {}).get(target_ip)
        if cached is not None:
            logger.debug("arp cache hit on %s for %s", from_device_id, target_ip)
            return cached

        owner = self.topology.find_interface_by_ip(target_ip)
        if owner is None:
            logger.debug("arp miss on %s for %s: no owner", from_device_id, target_ip)
            return None
        self._arp_tables.setdefault(from_device_id, {})[target_ip] = owner.mac_address
        return owner.mac_address

    # ───────────────────────────── Paths ─────────────────────────────

    def find_path(self, from_device_id: str, to_device_id: str) -> List[str]:
        """Shortest device-hop path, inclusive of both ends; [] when unreachable."""
        if self.topology.find_device(from_device_id) is None:
            return []
        if from_device_id == to_device_id:
            return [from_device_id]

        prev: Dict[str, Optional[str]] = {from_device_id: None}
        q: Deque[str] = deque([from_device_id])
        while q:
            cur = q.popleft()
            if cur == to_device_id:
                out: List[str] = []
                node: Optional[str] = cur
                while node is not None:
                    out.append(node)
                    node = prev[node]
                out.reverse()
                return out
            for nb in self.topology.neighbors(cur):
                if nb.id not in prev:
                    prev[nb.id] = cur
                    q.append(nb.id)
        return []

    def check_connectivity(self) -> Dict[Tuple[str, str], bool]:
        """Reachability for every unordered pair of IP-bearing devices."""
        hosts = [d for d in self.topology.devices if d.primary_interface() is not None]
        results: Dict[Tuple[str, str], bool] = {}
        for i, a in enumerate(hosts):
            for b in hosts[i + 1:]:
                results[(a.id, b.id)] = bool(self.find_path(a.id, b.id))
        return results

    def _learn_mac_along_path(self, path: List[str], src_mac: str):
        """Layer-2 devices on the path learn ``src_mac`` on their ingress port."""
        for prev_id, cur_id in zip(path, path[1:]):
            dev = self.topology.find_device(cur_id)
            if dev is None or not dev.is_layer2():
                continue
            cables = self.topology.links_between(cur_id, prev_id)
            if cables:
                ingress, _far = cables[0]
                self._mac_tables.setdefault(cur_id, {})[src_mac] = ingress.id

    # ───────────────────────────── Subnet helpers ─────────────────────────────

    @staticmethod
    def are_in_same_subnet(ip1: str, ip2: str, mask: str = DEFAULT_SUBNET_MASK) -> bool:
        return addressing.are_in_same_subnet(ip1, ip2, mask)

    @staticmethod
    def get_subnet(ip: str, mask: str = DEFAULT_SUBNET_MASK) -> str:
        return addressing.get_subnet(ip, mask)

    # ───────────────────────────── Streams ─────────────────────────────

    def _source(self, device_id: str) -> Tuple[Optional[Device], Optional[Interface], Optional[str]]:
        device = self.topology.find_device(device_id)
        if device is None:
            return None, None, "Source device not found"
        itf = device.primary_interface()
        if itf is None:
            return device, None, f"{device.name} has no IP address configured"
        return device, itf, None

    async def simulate_ping(
        self,
        source_device_id: str,
        destination_ip: str,
        count: int = 1,
    ) -> AsyncIterator[SimulationEvent]:
        """ICMP echo exchange, ``count`` times, as a one-shot event stream."""
        _device, src_itf, problem = self._source(source_device_id)
        if problem is not None:
            yield Error(problem)
            yield SimulationEnded(False)
            return

        dst_device = self.topology.find_device_by_ip(destination_ip)
        if dst_device is None:
            yield Error(f"Host {destination_ip} unreachable: no device owns this address")
            yield SimulationEnded(False)
            return

        source_ip = src_itf.ip_address
        logger.info("ping %s -> %s x%d", source_device_id, destination_ip, count)
        yield SimulationStarted()
        yield Log(f"PING {destination_ip} from {source_ip}")

        received = 0
        lost = 0
        for seq in range(1, count + 1):
            yield Log(f"--- Packet {seq} of {count} ---")

            cached = destination_ip in self._arp_tables.get(source_device_id, {})
            if not cached:
                yield Log(f"ARP: Who has {destination_ip}? Tell {source_ip}")
            dst_mac = self.resolve_arp(source_device_id, destination_ip)
            if dst_mac is None:
                yield Log(f"ARP: could not resolve a MAC address for {destination_ip}")
                lost += 1
            else:
                yield Log(f"ARP: {destination_ip} -> {dst_mac}" + (" (cached)" if cached else ""))
                await self._pause(0.5)

                request = Packet.create_ping(
                    self._next_packet_id(),
                    source_mac=src_itf.mac_address,
                    destination_mac=dst_mac,
                    source_ip=source_ip,
                    destination_ip=destination_ip,
                    sequence_number=seq,
                )
                yield PacketCreated(request, source_device_id)
                yield Log(f"ICMP: sending Echo Request seq={seq}")

                path = self.find_path(source_device_id, dst_device.id)
                if not path:
                    yield PacketDropped(request, "no path to destination")
                    yield Error(f"No route to {destination_ip}")
                    lost += 1
                else:
                    async for ev in self._walk(request, path):
                        yield ev
                    self._learn_mac_along_path(path, request.source_mac)
                    yield PacketDelivered(request, dst_device.id)
                    yield Log("ICMP: Echo Request delivered")
                    await self._pause(0.5)

                    reply = request.create_reply(self._next_packet_id(), PacketType.ICMP_ECHO_REPLY)
                    yield PacketCreated(reply, dst_device.id)
                    yield Log("ICMP: sending Echo Reply")
                    back = list(reversed(path))
                    async for ev in self._walk(reply, back):
                        yield ev
                    self._learn_mac_along_path(back, reply.source_mac)
                    yield PacketDelivered(reply, source_device_id)

                    rtt = (len(path) - 1) * 2 * RTT_MS_PER_HOP
                    yield Log(f"Reply from {destination_ip}: seq={seq} time={rtt}ms")
                    received += 1

            if seq < count:
                await self._pause()

        yield Log("--- Statistics ---")
        yield Log(f"Sent: {count}, Received: {received}, Lost: {lost}")
        logger.info("ping %s -> %s done: %d/%d", source_device_id, destination_ip, received, count)
        yield SimulationEnded(lost == 0)

    async def _walk(self, packet: Packet, path: List[str]) -> AsyncIterator[SimulationEvent]:
        hops = len(path) - 1
        for i in range(hops):
            yield PacketInTransit(packet, path[i], path[i + 1], (i + 1) / hops)
            await self._pause()

    async def simulate_arp(self, source_device_id: str, target_ip: str) -> AsyncIterator[SimulationEvent]:
        """One ARP exchange.

        The request is broadcast to the immediate neighbours of the source only
        (one broadcast domain hop); it is not flooded through switches.
        """
        _device, src_itf, problem = self._source(source_device_id)
        if problem is not None:
            yield Error(problem)
            yield SimulationEnded(False)
            return

        source_ip = src_itf.ip_address
        yield SimulationStarted()
        yield Log(f"ARP: Who has {target_ip}? Tell {source_ip}")

        request = Packet.create_arp_request(self._next_packet_id(), src_itf.mac_address, source_ip, target_ip)
        yield PacketCreated(request, source_device_id)
        for nb in self.topology.neighbors(source_device_id):
            yield PacketInTransit(request, source_device_id, nb.id, 1.0)
        await self._pause()

        target_itf = self.topology.find_interface_by_ip(target_ip)
        if target_itf is None:
            yield Log(f"ARP: no reply for {target_ip}, host not found")
            yield SimulationEnded(False)
            return

        target_id = target_itf.owner_device_id
        reply = Packet.create_arp_reply(
            self._next_packet_id(),
            source_mac=target_itf.mac_address,
            destination_mac=src_itf.mac_address,
            source_ip=target_ip,
            destination_ip=source_ip,
        )
        yield Log(f"ARP Reply: {target_ip} is at {target_itf.mac_address}")
        yield PacketCreated(reply, target_id)
        yield PacketInTransit(reply, target_id, source_device_id, 1.0)
        await self._pause()
        yield PacketDelivered(reply, source_device_id)

        self._arp_tables.setdefault(source_device_id, {})[target_ip] = target_itf.mac_address
        yield Log(f"ARP: cached {target_ip} -> {target_itf.mac_address}")
        yield SimulationEnded(True)
