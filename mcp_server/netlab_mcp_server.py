"""
Optional: MCP server exposing the netlab core as tools.

Lets an MCP client (MCP Inspector, Claude Desktop, a remote agent) validate a
learner's topology, score it against a task, and replay ping/ARP exchanges.

Run (example):
  pip install -e .
  python mcp_server/netlab_mcp_server.py

Then connect an MCP client to:
  http://localhost:8000/mcp
"""

from __future__ import annotations

from typing import Any, Dict, List

from mcp.server.fastmcp import FastMCP
from pydantic import ValidationError as SchemaError

from netlab import NetworkSimulator, SessionLogger, Topology, TopologyValidator, collect
from netlab.schema import task_from_dict, topology_from_dict, topology_to_dict
from netlab.topology import Device

mcp = FastMCP(
    "Netlab MCP Server",
    instructions="Tools for validating and simulating learner network topologies (netlab snapshot JSON).",
    stateless_http=True,
    json_response=True,
)


def _decode(topology_json: Dict[str, Any]):
    """Return (topology, problems)."""
    try:
        return topology_from_dict(topology_json), []
    except SchemaError as e:
        return None, [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
    except ValueError as e:
        return None, [str(e)]


def _trace(topology: Topology, events) -> List[Dict[str, Any]]:
    return SessionLogger(topology.id).record_stream(events)


@mcp.tool()
def validate_topology_json(topology_json: Dict[str, Any]) -> Dict[str, Any]:
    """Decode a topology snapshot and run the basic structural checks."""
    topology, problems = _decode(topology_json)
    if topology is None:
        return {"ok": False, "problems": problems}
    result = TopologyValidator().validate_basic(topology)
    return {"ok": True, "problems": [], "result": result.to_dict()}


@mcp.tool()
def validate_task_json(topology_json: Dict[str, Any], task_json: Dict[str, Any]) -> Dict[str, Any]:
    """Score a topology snapshot against a task's requirement list."""
    topology, problems = _decode(topology_json)
    if topology is None:
        return {"ok": False, "problems": problems}
    try:
        task = task_from_dict(task_json)
    except SchemaError as e:
        return {"ok": False, "problems": [err["msg"] for err in e.errors()]}
    result = TopologyValidator().validate_task(topology, task)
    return {"ok": True, "problems": [], "result": result.to_dict()}


@mcp.tool()
def find_path(topology_json: Dict[str, Any], from_device_id: str, to_device_id: str) -> Dict[str, Any]:
    """Shortest device-hop path between two devices ([] when unreachable)."""
    topology, problems = _decode(topology_json)
    if topology is None:
        return {"ok": False, "problems": problems}
    return {"ok": True, "path": NetworkSimulator(topology, step_delay=0).find_path(from_device_id, to_device_id)}


@mcp.tool()
def check_connectivity(topology_json: Dict[str, Any]) -> Dict[str, Any]:
    """Reachability for every pair of IP-bearing devices."""
    topology, problems = _decode(topology_json)
    if topology is None:
        return {"ok": False, "problems": problems}
    matrix = NetworkSimulator(topology, step_delay=0).check_connectivity()
    return {"ok": True, "pairs": [{"a": a, "b": b, "reachable": ok} for (a, b), ok in matrix.items()]}


@mcp.tool()
async def simulate_ping(
    topology_json: Dict[str, Any], source_device_id: str, destination_ip: str, count: int = 4
) -> Dict[str, Any]:
    """Run a ping exchange without pacing and return the full event trace."""
    topology, problems = _decode(topology_json)
    if topology is None:
        return {"ok": False, "problems": problems}
    sim = NetworkSimulator(topology, step_delay=0)
    events = await collect(sim.simulate_ping(source_device_id, destination_ip, max(1, count)))
    return {"ok": True, "success": bool(events[-1].success), "events": _trace(topology, events)}


@mcp.tool()
async def simulate_arp(topology_json: Dict[str, Any], source_device_id: str, target_ip: str) -> Dict[str, Any]:
    """Run one ARP request/reply and return the event trace plus the source's ARP table."""
    topology, problems = _decode(topology_json)
    if topology is None:
        return {"ok": False, "problems": problems}
    sim = NetworkSimulator(topology, step_delay=0)
    events = await collect(sim.simulate_arp(source_device_id, target_ip))
    return {
        "ok": True,
        "success": bool(events[-1].success),
        "events": _trace(topology, events),
        "arpTable": sim.get_arp_table(source_device_id),
    }


@mcp.tool()
def generate_switched_lab() -> Dict[str, Any]:
    """Generate a small configured lab.

    Topology: PC1 -- SW1 -- PC2, both PCs in 192.168.1.0/24.
    """
    topo = Topology(name="Switched LAN (MCP)")
    pc1 = topo.add_device(Device.pc("PC1", 150, 300, device_id="PC1"))
    sw1 = topo.add_device(Device.switch("SW1", 400, 300, device_id="SW1"))
    pc2 = topo.add_device(Device.pc("PC2", 650, 300, device_id="PC2"))
    pc1.interfaces[0].configure("192.168.1.10", "255.255.255.0")
    pc2.interfaces[0].configure("192.168.1.20", "255.255.255.0")
    pc1.default_gateway = pc2.default_gateway = "192.168.1.1"
    topo.connect_devices(pc1.id, sw1.id)
    topo.connect_devices(pc2.id, sw1.id)
    return topology_to_dict(topo)


if __name__ == "__main__":
    # Streamable HTTP transport is recommended in the MCP SDK docs.
    mcp.run(transport="streamable-http")
