"""JSON-facing schema for topology snapshots and tasks.

Editors and stores exchange plain dicts. These pydantic models check the
shape, and ``to_topology()`` re-checks the graph invariants (peer symmetry,
link endpoints) before anything downstream trusts the data.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .requirements import (
    Connectivity,
    Custom,
    DeviceCount,
    DevicesConnected,
    IpConfigured,
    PingSuccessful,
    Requirement,
    SubnetCount,
    Task,
    Vlan,
)
from .topology import Device, DeviceType, Interface, Link, Topology

SCHEMA_VERSION = 1


class InterfaceModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., description="Unique interface id, conventionally '<deviceId>:<name>'")
    name: str = Field(..., description="Port name, e.g. eth0 or port3")
    macAddress: str = Field(..., description="Burned-in MAC address")
    ipAddress: Optional[str] = None
    subnetMask: Optional[str] = None
    vlanId: Optional[int] = None
    peerInterfaceId: Optional[str] = None


class DeviceModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    type: DeviceType
    name: str
    x: float = 0.0
    y: float = 0.0
    defaultGateway: Optional[str] = None
    interfaces: List[InterfaceModel] = Field(default_factory=list)


class LinkModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    interfaceA: str
    interfaceB: str


class TopologyMeta(BaseModel):
    model_config = ConfigDict(extra="forbid")
    id: Optional[str] = None
    name: str = Field("", description="Human name for this topology")


class TopologySnapshot(BaseModel):
    model_config = ConfigDict(extra="forbid")

    schemaVersion: Literal[1] = SCHEMA_VERSION
    meta: TopologyMeta = Field(default_factory=TopologyMeta)
    devices: List[DeviceModel] = Field(default_factory=list)
    links: List[LinkModel] = Field(default_factory=list)

    @classmethod
    def from_topology(cls, topology: Topology) -> "TopologySnapshot":
        return cls(
            meta=TopologyMeta(id=topology.id, name=topology.name),
            devices=[
                DeviceModel(
                    id=d.id,
                    type=d.device_type,
                    name=d.name,
                    x=d.position[0],
                    y=d.position[1],
                    defaultGateway=d.default_gateway,
                    interfaces=[
                        InterfaceModel(
                            id=i.id,
                            name=i.name,
                            macAddress=i.mac_address,
                            ipAddress=i.ip_address,
                            subnetMask=i.subnet_mask,
                            vlanId=i.vlan_id,
                            peerInterfaceId=i.peer_interface_id,
                        )
                        for i in d.interfaces
                    ],
                )
                for d in topology.devices
            ],
            links=[LinkModel(id=l.id, interfaceA=l.interface_a_id, interfaceB=l.interface_b_id) for l in topology.links],
        )

    def to_topology(self) -> Topology:
        """Build the model graph; raises ValueError listing every broken invariant."""
        topology = Topology(name=self.meta.name)
        if self.meta.id:
            topology.id = self.meta.id
        for dm in self.devices:
            interfaces = tuple(
                Interface(
                    id=im.id,
                    name=im.name,
                    owner_device_id=dm.id,
                    mac_address=im.macAddress,
                    ip_address=im.ipAddress,
                    subnet_mask=im.subnetMask,
                    vlan_id=im.vlanId,
                    peer_interface_id=im.peerInterfaceId,
                )
                for im in dm.interfaces
            )
            # Appended directly: check_invariants reports duplicates below.
            topology.devices.append(
                Device(
                    id=dm.id,
                    device_type=dm.type,
                    name=dm.name,
                    position=(dm.x, dm.y),
                    interfaces=interfaces,
                    default_gateway=dm.defaultGateway,
                )
            )
        topology.links = [Link(id=lm.id, interface_a_id=lm.interfaceA, interface_b_id=lm.interfaceB) for lm in self.links]

        problems = topology.check_invariants()
        if problems:
            raise ValueError("Invalid topology snapshot: " + "; ".join(problems))
        return topology


def topology_from_dict(data: Dict[str, Any]) -> Topology:
    return TopologySnapshot.model_validate(data).to_topology()


def topology_to_dict(topology: Topology) -> Dict[str, Any]:
    return TopologySnapshot.from_topology(topology).model_dump(mode="json")


# ───────────────────────────── Tasks ─────────────────────────────


class _RequirementBase(BaseModel):
    model_config = ConfigDict(extra="forbid")
    description: str = ""
    errorMessage: Optional[str] = None

    def _common(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"description": self.description}
        if self.errorMessage:
            out["error_message"] = self.errorMessage
        return out


class DeviceCountModel(_RequirementBase):
    kind: Literal["device_count"]
    deviceType: DeviceType
    minCount: int = Field(..., ge=0)
    maxCount: Optional[int] = Field(default=None, ge=0)

    def to_requirement(self) -> Requirement:
        return DeviceCount(self.deviceType, self.minCount, self.maxCount, **self._common())


class DevicesConnectedModel(_RequirementBase):
    kind: Literal["devices_connected"]
    deviceNames: List[str]

    def to_requirement(self) -> Requirement:
        return DevicesConnected(tuple(self.deviceNames), **self._common())


class ConnectivityModel(_RequirementBase):
    kind: Literal["connectivity"]
    fromDeviceName: str
    toDeviceName: str

    def to_requirement(self) -> Requirement:
        return Connectivity(self.fromDeviceName, self.toDeviceName, **self._common())


class IpConfiguredModel(_RequirementBase):
    kind: Literal["ip_configured"]
    subnetPrefix: Optional[str] = None
    deviceType: Optional[DeviceType] = None

    def to_requirement(self) -> Requirement:
        return IpConfigured(self.subnetPrefix, self.deviceType, **self._common())


class SubnetCountModel(_RequirementBase):
    kind: Literal["subnet_count"]
    count: int = Field(..., ge=0)

    def to_requirement(self) -> Requirement:
        return SubnetCount(self.count, **self._common())


class PingSuccessfulModel(_RequirementBase):
    kind: Literal["ping_successful"]
    fromDeviceName: str
    toDeviceName: str

    def to_requirement(self) -> Requirement:
        return PingSuccessful(self.fromDeviceName, self.toDeviceName, **self._common())


class VlanModel(_RequirementBase):
    kind: Literal["vlan"]
    vlanId: int
    deviceNames: List[str]

    def to_requirement(self) -> Requirement:
        return Vlan(self.vlanId, tuple(self.deviceNames), **self._common())


class CustomModel(_RequirementBase):
    kind: Literal["custom"]
    checkerId: str

    def to_requirement(self) -> Requirement:
        return Custom(self.checkerId, **self._common())


RequirementModel = Annotated[
    Union[
        DeviceCountModel,
        DevicesConnectedModel,
        ConnectivityModel,
        IpConfiguredModel,
        SubnetCountModel,
        PingSuccessfulModel,
        VlanModel,
        CustomModel,
    ],
    Field(discriminator="kind"),
]


class TaskModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = ""
    title: str = ""
    description: str = ""
    requirements: List[RequirementModel] = Field(default_factory=list)
    hints: List[str] = Field(default_factory=list)
    objectives: List[str] = Field(default_factory=list)

    def to_task(self) -> Task:
        return Task(
            id=self.id,
            title=self.title,
            description=self.description,
            requirements=[r.to_requirement() for r in self.requirements],
            hints=list(self.hints),
            objectives=list(self.objectives),
        )


def task_from_dict(data: Dict[str, Any]) -> Task:
    return TaskModel.model_validate(data).to_task()
