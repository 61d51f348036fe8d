import logging
import os
import re
import tomllib
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple
from urllib.parse import urlparse

import yaml

from .errors import ConfigError
from .models import Config, Device, MachineBinding

logger = logging.getLogger(__name__)

YAML_SUFFIXES = {".yaml", ".yml"}

_MAC_RE = re.compile(r"^[0-9a-f]{2}([:-])(?:[0-9a-f]{2}\1){4}[0-9a-f]{2}$", re.IGNORECASE)


def _normalize_url(url: str) -> str:
    """Normalize the controller URL and ensure it is absolute http(s)."""
    u = url.strip().rstrip("/")
    # Collapse extra slashes after :// (e.g. https:///host -> https://host)
    u = re.sub(r"(https?):///+", r"\1://", u)
    parsed = urlparse(u)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ConfigError(
            f"url must be an absolute http(s) URL: {url!r}. "
            "Use e.g. https://unifi.example.com:8443"
        )
    return u


def normalize_mac(mac: str) -> str:
    """Return mac as lower-case, colon separated; raise ConfigError if malformed."""
    m = mac.strip()
    if not _MAC_RE.match(m):
        raise ConfigError(f"Invalid MAC address: {mac!r}")
    return m.replace("-", ":").lower()


def _read_secret_file(path: Optional[str]) -> Optional[str]:
    if not path:
        return None
    p = Path(path)
    if not p.is_file():
        logger.warning("Secret file %s does not exist", p)
        return None
    try:
        return p.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read secret file: {path}") from exc


def _optional_str(raw: dict, key: str) -> Optional[str]:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{key} must be a string")
    return value.strip() or None


def _optional_bool(raw: dict, key: str, default: bool) -> bool:
    value = raw.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be boolean")
    return value


def _parse_machines(raw: object, mac: str) -> List[MachineBinding]:
    if not isinstance(raw, list):
        raise ConfigError(f"Device {mac}: machines must be a list")

    machines: List[MachineBinding] = []
    ports: Set[int] = set()
    for m in raw:
        if not isinstance(m, dict):
            raise ConfigError(f"Device {mac}: each machine must be a mapping/table")

        maas_id = m.get("maas_id")
        if not isinstance(maas_id, str) or not maas_id.strip():
            raise ConfigError(f"Device {mac}: each machine needs a non-empty maas_id")

        port_id = m.get("port_id")
        # bool is an int subclass; `port_id = true` is still a type error.
        if isinstance(port_id, bool) or not isinstance(port_id, int):
            raise ConfigError(f"Machine {maas_id!r}: port_id must be an integer, got {port_id!r}")
        if port_id <= 0:
            raise ConfigError(f"Machine {maas_id!r}: port_id must be > 0, got {port_id}")
        if port_id in ports:
            raise ConfigError(f"Device {mac}: port {port_id} is bound to more than one machine")
        ports.add(port_id)

        machines.append(MachineBinding(maas_id=maas_id.strip(), port_id=port_id))
    return machines


def _parse_config(raw: object) -> Config:
    if not isinstance(raw, dict):
        raise ConfigError("Config root must be a mapping/table")

    url = raw.get("url")
    if not isinstance(url, str) or not url.strip():
        raise ConfigError("url is required")
    url = _normalize_url(url)

    site = _optional_str(raw, "site") or "default"

    timeout = raw.get("timeout", 30)
    if isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0:
        raise ConfigError("timeout must be a positive integer (seconds)")

    dev_list = raw.get("devices")
    if not isinstance(dev_list, list) or not dev_list:
        raise ConfigError("devices must be a non-empty list")

    devices: List[Device] = []
    seen_macs: Set[str] = set()
    owners: Dict[str, Tuple[str, int]] = {}
    for d in dev_list:
        if not isinstance(d, dict):
            raise ConfigError("Each device must be a mapping/table")
        mac = d.get("mac")
        if not isinstance(mac, str) or not mac.strip():
            raise ConfigError("Each device needs a non-empty mac")
        mac = normalize_mac(mac)
        if mac in seen_macs:
            raise ConfigError(f"Device {mac} is configured more than once")
        seen_macs.add(mac)

        machines = _parse_machines(d.get("machines"), mac)
        for m in machines:
            if m.maas_id in owners:
                first_mac, first_port = owners[m.maas_id]
                logger.warning(
                    "MaaS id %s is bound more than once; %s port %s wins over %s port %s",
                    m.maas_id,
                    first_mac,
                    first_port,
                    mac,
                    m.port_id,
                )
            else:
                owners[m.maas_id] = (mac, m.port_id)
        devices.append(Device(mac=mac, machines=machines))

    return Config(
        url=url,
        devices=devices,
        site=site,
        verify_ssl=_optional_bool(raw, "verify_ssl", False),
        timeout=timeout,
        unifi_os=_optional_bool(raw, "unifi_os", False),
        username=_optional_str(raw, "username"),
        password=_optional_str(raw, "password"),
        password_file=_optional_str(raw, "password_file"),
    )


def load_config(path: str) -> Config:
    """Load and validate a TOML (or YAML, by suffix) config file."""
    p = Path(path)
    if not p.is_file():
        raise ConfigError(f"Config file not found: {path}")

    try:
        text = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read config file: {path}") from exc

    if p.suffix.lower() in YAML_SUFFIXES:
        try:
            raw = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in config file {path}: {exc}") from exc
    else:
        try:
            raw = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc

    config = _parse_config(raw)
    logger.debug(
        "Loaded %s: %s device(s), %s machine(s)",
        path,
        len(config.devices),
        sum(len(d.machines) for d in config.devices),
    )
    return config


def config_to_dict(config: Config) -> dict:
    """Plain-data form of config, omitting unset optional fields."""
    return {k: v for k, v in asdict(config).items() if v is not None}


def dump_config(config: Config, path: str) -> Path:
    """Write config as YAML; load_config() reads it back into an equal Config.

    path must end in .yaml or .yml, since load_config() picks the parser by suffix.
    """
    p = Path(path)
    if p.suffix.lower() not in YAML_SUFFIXES:
        raise ConfigError(f"Config dumps are YAML; use a .yaml or .yml file name, not {p.name!r}")
    with open(p, "w", encoding="utf-8") as f:
        yaml.safe_dump(config_to_dict(config), f, sort_keys=False)
    return p


def resolve_credentials(config: Config) -> Tuple[str, str]:
    """
    Username and password for the controller login.

    UNIFI_USERNAME / UNIFI_PASSWORD take precedence over the config file's
    username and password (or password_file).
    """
    username = os.getenv("UNIFI_USERNAME") or config.username
    password = os.getenv("UNIFI_PASSWORD") or config.password
    if not password and config.password_file:
        password = _read_secret_file(config.password_file)

    if not username:
        raise ConfigError(
            "Controller username not configured. Set UNIFI_USERNAME or username in the config file."
        )
    if not password:
        raise ConfigError(
            "Controller password not configured. Set UNIFI_PASSWORD, "
            "or password / password_file in the config file."
        )
    return username, password
