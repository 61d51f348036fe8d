from unittest.mock import MagicMock

import pytest

from maas_power_unifi.errors import AuthError, ConfigError, NotFoundError
from maas_power_unifi.models import (Config, Device, MachineBinding,
                                     PowerAction, PowerStatus)
from maas_power_unifi.power import run_power_action

CONFIG = Config(
    url="https://unifi.test:8443",
    devices=[Device(mac="aa:bb:cc:dd:ee:ff", machines=[MachineBinding("abc123", 2)])],
    site="lab",
    timeout=10,
)


@pytest.fixture
def factory():
    """Stands in for the UnifiClient class; .client is the instance it yields."""
    f = MagicMock()
    f.client = f.return_value.__enter__.return_value
    return f


@pytest.mark.parametrize("action", [PowerAction.ON, PowerAction.OFF, PowerAction.CYCLE])
def test_power_actions(credentials, factory, action):
    assert run_power_action(CONFIG, "abc123", action, client_factory=factory) is None
    factory.assert_called_once_with(
        "https://unifi.test:8443", site="lab", verify_ssl=False, timeout=10, unifi_os=False)
    factory.client.authenticate.assert_called_once_with("maas", "s3cret")
    factory.client.set_port_power.assert_called_once_with("aa:bb:cc:dd:ee:ff", 2, action)
    factory.return_value.__exit__.assert_called_once()


def test_status(credentials, factory):
    factory.client.port_power_status.return_value = PowerStatus("running")
    status = run_power_action(CONFIG, "abc123", PowerAction.STATUS, client_factory=factory)
    assert status == PowerStatus("running")
    factory.client.port_power_status.assert_called_once_with("aa:bb:cc:dd:ee:ff", 2)
    factory.client.set_port_power.assert_not_called()


def test_unknown_machine_never_contacts_controller(credentials, factory):
    with pytest.raises(NotFoundError):
        run_power_action(CONFIG, "nonexistent", PowerAction.ON, client_factory=factory)
    factory.assert_not_called()


def test_missing_credentials_never_contacts_controller(no_credentials, factory):
    with pytest.raises(ConfigError):
        run_power_action(CONFIG, "abc123", PowerAction.ON, client_factory=factory)
    factory.assert_not_called()


def test_client_closed_on_error(credentials, factory):
    factory.client.authenticate.side_effect = AuthError("bad password")
    with pytest.raises(AuthError):
        run_power_action(CONFIG, "abc123", PowerAction.OFF, client_factory=factory)
    factory.return_value.__exit__.assert_called_once()
    factory.client.set_port_power.assert_not_called()
