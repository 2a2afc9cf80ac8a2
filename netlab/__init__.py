"""Virtual network lab core: topology model, ARP/ping simulator and task validator.

The package is deterministic and designed for unit testing.
"""

from .topology import Device, DeviceType, Interface, Link, Topology
from .simulator import NetworkSimulator, collect
from .validator import TopologyValidator, ValidationError, ValidationResult, ErrorSeverity
from .requirements import Task
from .session_log import SessionLogger

__all__ = [
    "Device",
    "DeviceType",
    "Interface",
    "Link",
    "Topology",
    "NetworkSimulator",
    "collect",
    "TopologyValidator",
    "ValidationError",
    "ValidationResult",
    "ErrorSeverity",
    "Task",
    "SessionLogger",
]
