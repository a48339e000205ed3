#!/usr/bin/env python3
"""
CLI for the CEP lookup race.

Usage:
    python run_lookup.py 01001000
    python run_lookup.py --normalized 01001000
    python run_lookup.py --first-success -v 01001000
"""

import argparse
import asyncio
import json
import logging
import sys

from cep_lookup.config import Config, RacePolicy
from cep_lookup.models import Outcome, Success
from cep_lookup.providers import create_http_client, create_providers
from cep_lookup.resolver import CepResolver
from cep_lookup.responses import map_outcome


def setup_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def resolve_once(config: Config, cep: str) -> Outcome:
    async with create_http_client(config) as client:
        resolver = CepResolver(create_providers(client, config), config)
        return await resolver.resolve(cep)


def render(outcome: Outcome, normalized: bool = False) -> str:
    """JSON envelope for a success, plain text otherwise."""
    if normalized and isinstance(outcome, Success):
        return json.dumps(
            {"origem": outcome.origin, "data": outcome.address.normalized().to_dict()},
            indent=2,
            ensure_ascii=False,
        )
    _, body = map_outcome(outcome)
    if isinstance(body, dict):
        return json.dumps(body, indent=2, ensure_ascii=False)
    return body


def main():
    parser = argparse.ArgumentParser(description="CEP lookup (BrasilAPI vs ViaCEP race)")
    parser.add_argument("cep", help="CEP to look up, e.g. 01001000")
    parser.add_argument("--normalized", action="store_true", help="Print provider-independent field names")
    parser.add_argument(
        "--first-success",
        action="store_true",
        help="Wait for a success instead of taking the first answer",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging (provider timings)")

    args = parser.parse_args()
    setup_logging(args.verbose)

    config = Config.from_env()
    if args.first_success:
        config.race_policy = RacePolicy.FIRST_SUCCESS

    outcome = asyncio.run(resolve_once(config, args.cep))
    print(render(outcome, normalized=args.normalized))
    sys.exit(0 if isinstance(outcome, Success) else 1)


if __name__ == "__main__":
    main()
