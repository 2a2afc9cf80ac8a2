"""Task requirement variants.

A closed set of tagged records. They carry data only; every pass/fail rule
lives in ``TopologyValidator._check_requirement``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, List, Optional, Tuple

from .topology import DeviceType


@dataclass(frozen=True)
class Requirement:
    kind: ClassVar[str] = "requirement"


@dataclass(frozen=True)
class DeviceCount(Requirement):
    kind: ClassVar[str] = "device_count"
    device_type: DeviceType
    min_count: int
    max_count: Optional[int] = None
    description: str = ""
    error_message: str = "Too few or too many devices"


@dataclass(frozen=True)
class DevicesConnected(Requirement):
    kind: ClassVar[str] = "devices_connected"
    device_names: Tuple[str, ...]
    description: str = ""
    error_message: str = "Devices are not connected"


@dataclass(frozen=True)
class Connectivity(Requirement):
    kind: ClassVar[str] = "connectivity"
    from_device_name: str
    to_device_name: str
    description: str = ""
    error_message: str = "Devices are not connected"


@dataclass(frozen=True)
class IpConfigured(Requirement):
    kind: ClassVar[str] = "ip_configured"
    subnet_prefix: Optional[str] = None
    device_type: Optional[DeviceType] = None
    description: str = ""
    error_message: str = "Incorrect IP configuration"


@dataclass(frozen=True)
class SubnetCount(Requirement):
    kind: ClassVar[str] = "subnet_count"
    count: int
    description: str = ""
    error_message: str = "Not enough subnets"


@dataclass(frozen=True)
class PingSuccessful(Requirement):
    kind: ClassVar[str] = "ping_successful"
    from_device_name: str
    to_device_name: str
    description: str = ""
    error_message: str = "Devices cannot exchange packets"


@dataclass(frozen=True)
class Vlan(Requirement):
    kind: ClassVar[str] = "vlan"
    vlan_id: int
    device_names: Tuple[str, ...]
    description: str = ""
    error_message: str = "Incorrect VLAN configuration"


@dataclass(frozen=True)
class Custom(Requirement):
    kind: ClassVar[str] = "custom"
    checker_id: str
    description: str = ""
    error_message: str = "Requirement not met"


@dataclass
class Task:
    id: str = ""
    title: str = ""
    description: str = ""
    requirements: List[Requirement] = field(default_factory=list)
    hints: List[str] = field(default_factory=list)
    objectives: List[str] = field(default_factory=list)
