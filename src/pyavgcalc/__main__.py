"""Run the pyavgcalc HTTP service.

Identity and tuning come from ``AVGCALC_*`` environment variables; the
flags below override them.
"""

from __future__ import annotations

import argparse
import logging
import sys

from aiohttp import web

from pyavgcalc.config import AvgCalcConfig
from pyavgcalc.exceptions import AuthError, ConfigError
from pyavgcalc.server import create_app

_logger = logging.getLogger("pyavgcalc")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="pyavgcalc", description=__doc__)
    parser.add_argument("--host", help="Bind address (default: AVGCALC_HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Bind port (default: AVGCALC_PORT or 3000)")
    parser.add_argument("--base-url", help="Upstream evaluation service base URL")
    parser.add_argument("--credential-path", help="File the bearer credential is persisted to")
    parser.add_argument("--window-size", type=int, help="Capacity of each category window")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")
    parser.add_argument("--trace", action="store_true", help="Log redacted upstream payloads (implies -v)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if (args.verbose or args.trace) else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides = {
        "host": args.host,
        "port": args.port,
        "base_url": args.base_url,
        "credential_path": args.credential_path,
        "window_size": args.window_size,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if args.trace:
        overrides["api_trace_enabled"] = True

    try:
        config = AvgCalcConfig.from_env(**overrides)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    try:
        web.run_app(create_app(config), host=config.host, port=config.port, print=None)
    except AuthError as exc:
        _logger.error("Failed to start server: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
