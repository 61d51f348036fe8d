import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import requests
import urllib3
from requests.exceptions import ConnectionError, RequestException, Timeout

from .errors import AuthError, ControllerError, DeviceNotFoundError, NetworkError
from .models import PoeMode, PowerAction, PowerStatus, UnifiDevice, UnifiPort


class UnifiClient:
    """Minimal Unifi controller client for switching PoE port power."""

    def __init__(
        self,
        base_url: str,
        site: str = "default",
        verify_ssl: bool = False,
        timeout: int = 30,
        unifi_os: bool = False,
    ):
        self.base_url = base_url.rstrip("/")
        self.site = site
        self.verify_ssl = verify_ssl
        self.timeout = timeout
        self.unifi_os = unifi_os
        # UniFi OS consoles serve the network application behind a proxy path.
        self.api_url = f"{self.base_url}/proxy/network" if unifi_os else self.base_url

        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})

        if not verify_ssl:
            # disable insecure HTTPS warnings (self-signed certs)
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        self.logger = logging.getLogger(f"{__name__}.{urlparse(self.base_url).hostname}")

    def __enter__(self) -> "UnifiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def _request(self, method: str, url: str, payload: Optional[dict] = None) -> requests.Response:
        """Send one request and map every failure onto the error taxonomy."""
        self.logger.debug("%s %s", method, url)
        try:
            resp = self.session.request(
                method,
                url,
                json=payload,
                verify=self.verify_ssl,
                timeout=self.timeout,
            )
        except (ConnectionError, Timeout) as exc:
            raise NetworkError(f"Could not reach Unifi controller at {self.base_url}: {exc}") from exc
        except RequestException as exc:
            raise NetworkError(f"Request to {url} failed: {exc}") from exc

        if resp.status_code in (401, 403):
            raise AuthError(f"Unifi controller rejected the session ({resp.status_code}) for {method} {url}")
        if not resp.ok:
            raise ControllerError(
                f"Unifi controller returned {resp.status_code} for {method} {url}: {resp.text[:200]}",
                status_code=resp.status_code,
            )
        return resp

    @staticmethod
    def _data(resp: requests.Response) -> List[Dict[str, Any]]:
        """Return the `data` list of a controller reply, checking meta.rc."""
        try:
            body = resp.json()
        except ValueError as exc:
            raise ControllerError("Unifi controller returned a non-JSON response", resp.status_code) from exc

        if not isinstance(body, dict):
            raise ControllerError("Unifi controller returned an unexpected response", resp.status_code)

        meta = body.get("meta") or {}
        if meta.get("rc", "ok") != "ok":
            raise ControllerError(
                f"Unifi controller reported an error: {meta.get('msg') or meta.get('rc')}",
                status_code=resp.status_code,
            )
        return body.get("data") or []

    def authenticate(self, username: str, password: str) -> None:
        """Log in; the session cookie is kept in self.session for later calls."""
        login_url = f"{self.base_url}/api/auth/login" if self.unifi_os else f"{self.base_url}/api/login"
        self.logger.info("Logging in to Unifi controller as %s", username)
        try:
            resp = self._request("POST", login_url, {"username": username, "password": password})
        except ControllerError as exc:
            # Legacy controllers answer bad credentials with 400 api.err.Invalid.
            if exc.status_code == 400:
                raise AuthError(f"Unifi controller rejected the credentials for {username}") from exc
            raise

        # UniFi OS returns the user object rather than a meta envelope.
        if not self.unifi_os:
            try:
                self._data(resp)
            except ControllerError as exc:
                raise AuthError(f"Login failed: {exc}") from exc

        csrf_token = resp.headers.get("X-CSRF-Token")
        if csrf_token:
            self.session.headers.update({"X-CSRF-Token": csrf_token})

    def devices(self) -> List[UnifiDevice]:
        """Devices adopted on the site."""
        resp = self._request("GET", f"{self.api_url}/api/s/{self.site}/stat/device")
        devices: List[UnifiDevice] = []
        for d in self._data(resp):
            if not isinstance(d, dict):
                continue
            device_id = d.get("_id") or d.get("device_id")
            mac = d.get("mac")
            if not device_id or not mac:
                self.logger.warning("Skipping device with no id/mac: %s", d.get("name"))
                continue

            ports: List[UnifiPort] = []
            for p in d.get("port_table") or []:
                if isinstance(p, dict) and isinstance(p.get("port_idx"), int):
                    ports.append(UnifiPort(port_idx=p["port_idx"], poe_mode=p.get("poe_mode")))

            devices.append(
                UnifiDevice(
                    device_id=str(device_id),
                    mac=str(mac).lower(),
                    name=d.get("name"),
                    port_table=ports,
                    port_overrides=list(d.get("port_overrides") or []),
                )
            )
        return devices

    def device_by_mac(self, mac: str) -> UnifiDevice:
        mac = mac.lower()
        for device in self.devices():
            if device.mac == mac:
                return device
        raise DeviceNotFoundError(f"Device with MAC {mac} was not found on site {self.site}.")

    def _device_port(self, mac: str, port: int) -> UnifiDevice:
        device = self.device_by_mac(mac)
        if device.port(port) is None:
            raise ControllerError(f"Device {mac} has no port {port}.")
        return device

    def set_poe_mode(self, device: UnifiDevice, port: int, poe_mode: PoeMode) -> None:
        """Set poe_mode on one port, keeping the device's other port overrides."""
        overrides: List[Dict[str, Any]] = []
        found = False
        for o in device.port_overrides:
            if isinstance(o, dict) and o.get("port_idx") == port:
                overrides.append({**o, "poe_mode": poe_mode.value})
                found = True
            else:
                overrides.append(o)
        if not found:
            overrides.append({"port_idx": port, "poe_mode": poe_mode.value})

        self.logger.info("Setting PoE mode %s on %s port %s", poe_mode.value, device.mac, port)
        resp = self._request(
            "PUT",
            f"{self.api_url}/api/s/{self.site}/rest/device/{device.device_id}",
            {"port_overrides": overrides},
        )
        self._data(resp)

    def power_cycle_port(self, mac: str, port: int) -> None:
        self.logger.info("Power cycling %s port %s", mac, port)
        resp = self._request(
            "POST",
            f"{self.api_url}/api/s/{self.site}/cmd/devmgr",
            {"cmd": "power-cycle", "mac": mac.lower(), "port_idx": port},
        )
        self._data(resp)

    def set_port_power(self, mac: str, port: int, action: PowerAction) -> None:
        """Switch the PoE power of port on device mac on, off, or cycle it."""
        device = self._device_port(mac, port)
        if action is PowerAction.ON:
            self.set_poe_mode(device, port, PoeMode.AUTO)
        elif action is PowerAction.OFF:
            self.set_poe_mode(device, port, PoeMode.OFF)
        elif action is PowerAction.CYCLE:
            self.power_cycle_port(device.mac, port)
        else:
            raise ValueError(f"Not a power action: {action!r}")

    def port_power_status(self, mac: str, port: int) -> PowerStatus:
        device = self._device_port(mac, port)
        return PowerStatus.from_poe_mode(device.port(port).poe_mode)
