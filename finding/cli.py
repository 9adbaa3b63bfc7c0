"""Command line utility for running a single Finding API search."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, Iterable, List

from .config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, FindingConfig
from .credentials import credential_provider_for
from .errors import FindingError
from .lambda_handler import ROUTES
from .model import FindingClient


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Search eBay listings through the Finding API")
    parser.add_argument(
        "operation",
        choices=sorted(ROUTES),
        help="Search operation to run.",
    )
    parser.add_argument(
        "parameters",
        nargs="*",
        metavar="KEY=VALUE",
        help="Finding API query parameters, for example keywords=marshmallows or itemFilter(0).name=MaxPrice.",
    )
    parser.add_argument(
        "--app-id",
        help="Application id to send as SECURITY-APPNAME. Defaults to $EBAY_APP_ID or the SSM parameter.",
    )
    parser.add_argument(
        "--base-url",
        default=DEFAULT_BASE_URL,
        help="Finding API endpoint that will be queried.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="Timeout (in seconds) for the HTTP request to the Finding API.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Optional path to write the JSON response. If omitted it is printed to stdout.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate the parameters and print the request URL without sending it.",
    )
    return parser.parse_args(argv)


def parse_parameters(pairs: List[str]) -> Dict[str, str]:
    params: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Parameter {pair!r} is not of the form KEY=VALUE")
        if key in params:
            raise ValueError(f"Parameter {key!r} is given more than once")
        params[key] = value
    return params


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        params = parse_parameters(args.parameters)
    except ValueError as exc:
        raise SystemExit(str(exc))

    config = FindingConfig(base_url=args.base_url, timeout=args.timeout)
    client = FindingClient(
        app_id=args.app_id or credential_provider_for(config),
        base_url=config.base_url,
        timeout=config.timeout,
    )
    operation = ROUTES[args.operation]

    try:
        if args.dry_run:
            output_text = client.build_url(operation, params)
        else:
            response = client.find_items(operation, params)
            output_text = json.dumps(response.to_dict(), indent=2)
    except FindingError as exc:
        print(json.dumps(exc.to_dict(), indent=2), file=sys.stderr)
        return 2 if exc.kind.is_validation else 1

    if args.output:
        args.output.write_text(output_text, encoding="utf-8")
    else:
        print(output_text)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
