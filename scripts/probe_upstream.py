#!/usr/bin/env python3
"""Live probe of the upstream evaluation service.

Acquires (or reuses) the persisted credential, then polls every number
category a few times through the credential-gated fetcher and reports the
outcome of each call plus the resulting window.

Identity is read from the ``AVGCALC_*`` environment variables.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

import aiohttp

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyavgcalc import AvgCalcConfig, AvgCalcError, CredentialGatedFetcher, CredentialStore  # noqa: E402
from pyavgcalc._api.numbers import build_numbers_request, parse_numbers  # noqa: E402
from pyavgcalc._transport import HttpTransport  # noqa: E402
from pyavgcalc.window import BoundedUniqueWindow, average  # noqa: E402


@dataclass
class ProbeResult:
    category: str
    attempt: int
    ok: bool
    detail: str


def _print_results(results: list[ProbeResult]) -> None:
    width = max((len(f"{r.category}#{r.attempt}") for r in results), default=4)
    print(f"{'CALL'.ljust(width)}  STATUS  DETAIL")
    print("-" * (width + 24))
    for result in results:
        status = "OK" if result.ok else "FAIL"
        print(f"{f'{result.category}#{result.attempt}'.ljust(width)}  {status.ljust(6)}  {result.detail}")
    failures = [r for r in results if not r.ok]
    print("-" * (width + 24))
    print(f"Summary: {len(results) - len(failures)} OK, {len(failures)} FAIL")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Probe upstream number endpoints")
    parser.add_argument("--rounds", type=int, default=3, help="Calls per category.")
    parser.add_argument("--refresh", action="store_true", help="Force a fresh credential exchange first.")
    parser.add_argument("--json", action="store_true", help="Print final windows as JSON.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging.")
    return parser.parse_args()


async def _run(args: argparse.Namespace) -> int:
    config = AvgCalcConfig.from_env()
    results: list[ProbeResult] = []
    windows = {category: BoundedUniqueWindow(config.window_size) for category in config.categories}

    async with aiohttp.ClientSession() as http_session:
        transport = HttpTransport(config, http_session)
        store = CredentialStore(config, transport)
        fetcher = CredentialGatedFetcher(transport, store)
        try:
            credential = await (store.refresh() if args.refresh else store.current())
        except AvgCalcError as exc:
            print(f"Credential acquisition failed: {exc}")
            return 2
        print(f"Credential {credential.token_type} expires at {credential.expires_at.isoformat()}")

        for category, window in windows.items():
            for attempt in range(1, args.rounds + 1):
                try:
                    result = parse_numbers(await fetcher.fetch(build_numbers_request(category, config.fetch_timeout)))
                except AvgCalcError as exc:
                    results.append(ProbeResult(category, attempt, False, f"{type(exc).__name__}: {exc}"))
                    continue
                window.ingest_and_snapshot(result.values())
                detail = f"{len(result.values())} numbers" if result.is_ok else result.describe()
                results.append(ProbeResult(category, attempt, result.is_ok, detail))

    _print_results(results)
    summary = {c: {"window": list(w.snapshot()), "avg": average(w.snapshot())} for c, w in windows.items()}
    if args.json:
        print(json.dumps(summary, indent=2))
    return 0 if all(r.ok for r in results) else 1


def main() -> int:
    args = _parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
