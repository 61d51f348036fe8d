from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional


class PowerAction(Enum):
    """Actions MaaS can request for a machine."""

    ON = "on"
    OFF = "off"
    CYCLE = "cycle"
    STATUS = "status"


class PoeMode(Enum):
    """PoE modes understood by the controller's port overrides."""

    AUTO = "auto"
    OFF = "off"


@dataclass
class MachineBinding:
    """A MaaS machine plugged into one port of a Unifi device."""

    maas_id: str
    port_id: int


@dataclass
class Device:
    """A Unifi device (by MAC) and the machines powered from its ports."""

    mac: str  # normalized: lower-case, colon separated
    machines: List[MachineBinding]


@dataclass
class Config:
    """
    Parsed config file.

    Only url and devices are required in the file; the rest have defaults
    that suit a self-hosted controller with a self-signed certificate.
    """

    url: str
    devices: List[Device]
    site: str = "default"
    verify_ssl: bool = False
    timeout: int = 30
    unifi_os: bool = False
    username: Optional[str] = None
    password: Optional[str] = None
    password_file: Optional[str] = None


class PortLocation(NamedTuple):
    mac: str
    port_id: int


@dataclass
class UnifiPort:
    port_idx: int
    poe_mode: Optional[str] = None


@dataclass
class UnifiDevice:
    """A device entry from the controller's stat/device listing."""

    device_id: str
    mac: str
    name: Optional[str] = None
    port_table: List[UnifiPort] = field(default_factory=list)
    # Kept raw: the controller replaces the whole list on update.
    port_overrides: List[Dict[str, Any]] = field(default_factory=list)

    def port(self, port_idx: int) -> Optional[UnifiPort]:
        for p in self.port_table:
            if p.port_idx == port_idx:
                return p
        return None


@dataclass
class PowerStatus:
    """Power state in the vocabulary of the MaaS webhook power driver."""

    status: str

    RUNNING = "running"
    STOPPED = "stopped"
    UNKNOWN = "unknown"

    @classmethod
    def from_poe_mode(cls, poe_mode: Optional[str]) -> "PowerStatus":
        if poe_mode == PoeMode.AUTO.value:
            return cls(cls.RUNNING)
        if poe_mode == PoeMode.OFF.value:
            return cls(cls.STOPPED)
        return cls(cls.UNKNOWN)

    def to_dict(self) -> Dict[str, str]:
        return {"status": self.status}
