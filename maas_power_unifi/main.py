import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import load_config
from .errors import UnifiPowerError
from .logging_config import configure_logging
from .models import PowerAction
from .power import run_power_action

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="maas-power-unifi",
        description="Switch power for MaaS machines through Unifi PoE ports.",
    )
    parser.add_argument(
        "-V", "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-c", "--config-file", required=True, metavar="CONFIG_FILE",
        help="TOML (or .yaml) file mapping MaaS machine ids to device ports")
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log debug output (default level: $LOG_LEVEL or WARNING)")
    parser.add_argument(
        "--log-dir", type=Path, default=os.getenv("MAAS_POWER_UNIFI_LOG_DIR") or None,
        help="Also write a timestamped log file in this directory")
    parser.add_argument(
        "action", choices=[a.value for a in PowerAction],
        help="'status' prints {\"status\": \"running\"|\"stopped\"|\"unknown\"}")
    parser.add_argument("maas_id", help="MaaS system id of the machine")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    configure_logging(
        "DEBUG" if args.verbose else os.getenv("LOG_LEVEL", "WARNING"),
        log_dir=args.log_dir,
    )

    try:
        config = load_config(args.config_file)
        status = run_power_action(config, args.maas_id, PowerAction(args.action))
    except UnifiPowerError as exc:
        logger.debug("%s %s failed", args.action, args.maas_id, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if status is not None:
        print(json.dumps(status.to_dict()))
    return 0


if __name__ == "__main__":
    sys.exit(main())
