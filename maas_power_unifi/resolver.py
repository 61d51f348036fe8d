import logging
from typing import Optional

from .errors import NotFoundError
from .models import Config, PortLocation

logger = logging.getLogger(__name__)


def resolve_machine(config: Config, maas_id: str) -> PortLocation:
    """
    Find the device port that powers the MaaS machine maas_id.

    Devices and their machines are searched in config file order and the
    first binding wins, so a maas_id listed twice always resolves the same way.
    Raises NotFoundError if no device has a binding for maas_id.
    """
    for device in config.devices:
        for machine in device.machines:
            if machine.maas_id == maas_id:
                logger.debug("Machine %s is on %s port %s", maas_id, device.mac, machine.port_id)
                return PortLocation(mac=device.mac, port_id=machine.port_id)

    raise NotFoundError(f"Machine '{maas_id}' is not bound to any configured device.")


def owning_device_mac(config: Config, maas_id: str) -> Optional[str]:
    """MAC of the device powering maas_id, or None."""
    try:
        return resolve_machine(config, maas_id).mac
    except NotFoundError:
        return None
