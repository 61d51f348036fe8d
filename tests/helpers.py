import json
from textwrap import dedent

import requests

CONTROLLER_URL = "https://unifi.test:8443"
DEVICE_MAC = "aa:bb:cc:dd:ee:ff"
DEVICE_ID = "5f1e2d3c4b5a697887766554"

CONFIG_TOML = dedent("""\
    url = "https://unifi.test:8443"

    [[devices]]
    mac = "aa:bb:cc:dd:ee:ff"
    machines = [ { maas_id = "abc123", port_id = 2 } ]
    """)


def make_response(status_code=200, payload=None, headers=None, url=CONTROLLER_URL):
    """A real requests.Response, as the session would return it."""
    resp = requests.Response()
    resp.status_code = status_code
    resp.reason = "OK" if status_code < 400 else "Error"
    resp.url = url
    resp.encoding = "utf-8"
    resp._content = b"" if payload is None else json.dumps(payload).encode("utf-8")
    resp.headers.update(headers or {})
    return resp


def ok_reply(data=None):
    return make_response(200, {"meta": {"rc": "ok"}, "data": data or []})


def device_listing():
    return ok_reply([
        {
            "_id": "000000000000000000000001",
            "mac": "11:22:33:44:55:66",
            "name": "other-switch",
            "port_table": [{"port_idx": 1, "poe_mode": "auto"}],
        },
        {
            "_id": DEVICE_ID,
            "mac": DEVICE_MAC.upper(),
            "name": "rack-switch",
            "port_table": [
                {"port_idx": 1, "poe_mode": "auto"},
                {"port_idx": 2, "poe_mode": "off"},
                {"port_idx": 3},
            ],
            "port_overrides": [
                {"port_idx": 1, "name": "uplink", "poe_mode": "auto"},
                {"port_idx": 2, "name": "node-2", "poe_mode": "off"},
            ],
        },
    ])


