import logging
from typing import Callable, Optional

from .config import resolve_credentials
from .models import Config, PowerAction, PowerStatus
from .resolver import resolve_machine
from .unifi_client import UnifiClient

logger = logging.getLogger(__name__)


def run_power_action(
    config: Config,
    maas_id: str,
    action: PowerAction,
    *,
    client_factory: Callable[..., UnifiClient] = UnifiClient,
) -> Optional[PowerStatus]:
    """
    Carry out one MaaS power request:
    - Resolve maas_id to a device MAC and port (no network traffic on a miss).
    - Log in to the controller.
    - Switch the port on/off, power cycle it, or read its status.

    Returns the port's PowerStatus for PowerAction.STATUS, otherwise None.
    Every failure surfaces as a UnifiPowerError subclass; nothing is retried.
    """
    location = resolve_machine(config, maas_id)
    username, password = resolve_credentials(config)

    logger.info(
        "%s: machine %s -> device %s port %s via %s",
        action.value,
        maas_id,
        location.mac,
        location.port_id,
        config.url,
    )

    with client_factory(
        config.url,
        site=config.site,
        verify_ssl=config.verify_ssl,
        timeout=config.timeout,
        unifi_os=config.unifi_os,
    ) as client:
        client.authenticate(username, password)

        if action is PowerAction.STATUS:
            status = client.port_power_status(location.mac, location.port_id)
            logger.info("Machine %s power status: %s", maas_id, status.status)
            return status

        client.set_port_power(location.mac, location.port_id, action)
        logger.info("Machine %s: %s done", maas_id, action.value)
        return None
