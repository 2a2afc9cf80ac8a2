from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional, Set

from .addressing import is_valid_ip
from .config import WARNING_PENALTY
from .logging_config import setup_logger
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
from .simulator import NetworkSimulator
from .topology import DeviceType, Topology

logger = setup_logger(__name__)


class ErrorSeverity(str, Enum):
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"


@dataclass
class ValidationError:
    message: str
    hint: Optional[str] = None
    severity: ErrorSeverity = ErrorSeverity.ERROR

    def to_dict(self) -> dict:
        return {"message": self.message, "hint": self.hint, "severity": self.severity.value}


@dataclass
class ValidationResult:
    is_valid: bool
    score: int = 0
    errors: List[ValidationError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    completed_requirements: List[str] = field(default_factory=list)
    failed_requirements: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "isValid": self.is_valid,
            "score": self.score,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": list(self.warnings),
            "completedRequirements": list(self.completed_requirements),
            "failedRequirements": list(self.failed_requirements),
        }


_TYPE_NOUNS = {
    DeviceType.PC: "PC(s)",
    DeviceType.SERVER: "server(s)",
    DeviceType.SWITCH: "switch(es)",
    DeviceType.ROUTER: "router(s)",
    DeviceType.HUB: "hub(s)",
}


def _check_vlan_configured(topology: Topology) -> bool:
    vlans = {itf.vlan_id for d in topology.devices for itf in d.interfaces if itf.vlan_id is not None}
    return len(vlans) >= 2


def _check_gateway_configured(topology: Topology) -> bool:
    hosts = [d for d in topology.devices if d.device_type.is_end_host]
    return all(d.default_gateway for d in hosts)


# checker id -> predicate. New custom checks are added here.
CUSTOM_CHECKS: Dict[str, Callable[[Topology], bool]] = {
    "vlan_configured": _check_vlan_configured,
    "gateway_configured": _check_gateway_configured,
}


class TopologyValidator:
    """Scores a topology on its own (``validate_basic``) or against a task.

    Validation never raises: every problem ends up in the returned result.
    """

    # ───────────────────────────── Basic checks ─────────────────────────────

    def validate_basic(self, topology: Topology) -> ValidationResult:
        errors: List[ValidationError] = []
        warnings: List[str] = []

        if not topology.devices:
            errors.append(ValidationError("The network is empty", hint="Add at least one device"))
            return ValidationResult(False, 0, errors)

        for device in topology.devices:
            if not device.is_layer2() and device.primary_interface() is None:
                warnings.append(f"{device.name} has no IP address")

        owners: Dict[str, str] = {}
        for device in topology.devices:
            for itf in device.interfaces:
                if not itf.has_ip():
                    continue
                ip = itf.ip_address
                if ip in owners:
                    errors.append(
                        ValidationError(
                            f"Duplicate IP address {ip} on {owners[ip]} and {device.name}",
                            hint=f"Give {device.name} an address that is not used by {owners[ip]}",
                        )
                    )
                else:
                    owners[ip] = device.name

        components = self._connected_components(topology)
        if len(components) > 1:
            warnings.append(f"The network is split into {len(components)} separate segments")

        for device in topology.devices:
            for itf in device.interfaces:
                if itf.has_ip() and not is_valid_ip(itf.ip_address):
                    errors.append(
                        ValidationError(
                            f"Invalid IP address on {device.name}: {itf.ip_address}",
                            hint="An IP address looks like x.x.x.x where each x is 0 to 255",
                        )
                    )

        has_errors = any(e.severity == ErrorSeverity.ERROR for e in errors)
        score = 0 if has_errors else max(0, 100 - WARNING_PENALTY * len(warnings))
        return ValidationResult(not has_errors, score, errors, warnings)

    def _connected_components(self, topology: Topology) -> List[Set[str]]:
        seen: Set[str] = set()
        components: List[Set[str]] = []
        for device in topology.devices:
            if device.id in seen:
                continue
            component: Set[str] = set()
            q: Deque[str] = deque([device.id])
            seen.add(device.id)
            while q:
                cur = q.popleft()
                component.add(cur)
                for nb in topology.neighbors(cur):
                    if nb.id not in seen:
                        seen.add(nb.id)
                        q.append(nb.id)
            components.append(component)
        return components

    # ───────────────────────────── Task checks ─────────────────────────────

    def validate_task(self, topology: Topology, task: Task) -> ValidationResult:
        basic = self.validate_basic(topology)
        errors = list(basic.errors)
        warnings = list(basic.warnings)
        completed: List[str] = []
        failed: List[str] = []

        simulator = NetworkSimulator(topology, step_delay=0)
        for requirement in task.requirements:
            label = getattr(requirement, "description", "") or self.describe_requirement(requirement)
            if self._check_requirement(topology, simulator, requirement):
                completed.append(label)
            else:
                failed.append(label)
                errors.append(
                    ValidationError(
                        requirement.error_message,
                        hint=self.hint_for_requirement(requirement),
                        severity=ErrorSeverity.ERROR,
                    )
                )

        total = len(task.requirements)
        score = (len(completed) * 100 // total) if total else basic.score
        is_valid = not failed and basic.is_valid
        logger.info("task %r scored %d (%d/%d requirements)", task.id, score, len(completed), total)
        return ValidationResult(is_valid, score, errors, warnings, completed, failed)

    def can_communicate(self, topology: Topology, device_a_id: str, device_b_id: str) -> bool:
        return bool(NetworkSimulator(topology, step_delay=0).find_path(device_a_id, device_b_id))

    def _check_requirement(self, topology: Topology, simulator: NetworkSimulator, requirement: Requirement) -> bool:
        if isinstance(requirement, DeviceCount):
            count = topology.device_count_by_type(requirement.device_type)
            if count < requirement.min_count:
                return False
            return requirement.max_count is None or count <= requirement.max_count

        if isinstance(requirement, DevicesConnected):
            devices = [topology.find_device_by_name(n) for n in requirement.device_names]
            if any(d is None for d in devices):
                return False
            for i, a in enumerate(devices):
                for b in devices[i + 1:]:
                    if not simulator.find_path(a.id, b.id):
                        return False
            return True

        if isinstance(requirement, Connectivity):
            a = topology.find_device_by_name(requirement.from_device_name)
            b = topology.find_device_by_name(requirement.to_device_name)
            if a is None or b is None:
                return False
            return bool(simulator.find_path(a.id, b.id))

        if isinstance(requirement, IpConfigured):
            if requirement.device_type is not None:
                devices = topology.devices_by_type(requirement.device_type)
            else:
                devices = topology.devices
            for device in devices:
                if device.is_layer2():
                    continue
                ip = device.primary_ip()
                if ip is None:
                    return False
                if requirement.subnet_prefix and not ip.startswith(requirement.subnet_prefix):
                    return False
            return True

        if isinstance(requirement, SubnetCount):
            return len(topology.subnets()) >= requirement.count

        if isinstance(requirement, PingSuccessful):
            a = topology.find_device_by_name(requirement.from_device_name)
            b = topology.find_device_by_name(requirement.to_device_name)
            if a is None or b is None or b.primary_ip() is None:
                return False
            return bool(simulator.find_path(a.id, b.id))

        if isinstance(requirement, Vlan):
            for name in requirement.device_names:
                device = topology.find_device_by_name(name)
                if device is None:
                    return False
                if any(itf.vlan_id != requirement.vlan_id for itf in device.interfaces):
                    return False
            return True

        if isinstance(requirement, Custom):
            check = CUSTOM_CHECKS.get(requirement.checker_id)
            if check is None:
                logger.warning("unknown custom checker %r treated as passed", requirement.checker_id)
                return True
            return check(topology)

        raise TypeError(f"Unsupported requirement: {type(requirement).__name__}")

    # ───────────────────────────── Feedback text ─────────────────────────────

    def describe_requirement(self, requirement: Requirement) -> str:
        if isinstance(requirement, DeviceCount):
            noun = _TYPE_NOUNS[requirement.device_type]
            if requirement.max_count is None:
                return f"At least {requirement.min_count} {noun}"
            return f"Between {requirement.min_count} and {requirement.max_count} {noun}"
        if isinstance(requirement, DevicesConnected):
            return f"Connect {', '.join(requirement.device_names)}"
        if isinstance(requirement, Connectivity):
            return f"{requirement.from_device_name} is connected to {requirement.to_device_name}"
        if isinstance(requirement, IpConfigured):
            who = _TYPE_NOUNS[requirement.device_type] if requirement.device_type else "devices"
            if requirement.subnet_prefix:
                return f"IP addresses in {requirement.subnet_prefix}x on all {who}"
            return f"IP addresses configured on all {who}"
        if isinstance(requirement, SubnetCount):
            return f"At least {requirement.count} subnet(s)"
        if isinstance(requirement, PingSuccessful):
            return f"{requirement.from_device_name} can ping {requirement.to_device_name}"
        if isinstance(requirement, Vlan):
            return f"VLAN {requirement.vlan_id} on {', '.join(requirement.device_names)}"
        if isinstance(requirement, Custom):
            return f"Custom check: {requirement.checker_id}"
        return type(requirement).__name__

    def hint_for_requirement(self, requirement: Requirement) -> str:
        if isinstance(requirement, DeviceCount):
            noun = _TYPE_NOUNS[requirement.device_type]
            if requirement.max_count is None:
                return f"Add at least {requirement.min_count} {noun}"
            return f"Use between {requirement.min_count} and {requirement.max_count} {noun}"
        if isinstance(requirement, DevicesConnected):
            return f"Make sure {', '.join(requirement.device_names)} are all cabled together"
        if isinstance(requirement, Connectivity):
            return f"Add links so that {requirement.from_device_name} reaches {requirement.to_device_name}"
        if isinstance(requirement, IpConfigured):
            if requirement.subnet_prefix:
                return f"Configure IP addresses in the {requirement.subnet_prefix}x subnet"
            return "Configure an IP address on every device"
        if isinstance(requirement, SubnetCount):
            return f"Create {requirement.count} different subnets"
        if isinstance(requirement, PingSuccessful):
            return (
                f"Check the IP address of {requirement.to_device_name} and the cabling "
                f"between {requirement.from_device_name} and {requirement.to_device_name}"
            )
        if isinstance(requirement, Vlan):
            return f"Set VLAN {requirement.vlan_id} on every interface of {', '.join(requirement.device_names)}"
        if isinstance(requirement, Custom):
            return "Check the settings described in the task"
        return "Check the task requirements"
