"""Run the load injector against an already running instance."""

import argparse
import asyncio
import random
import sys

from prometheus_client import CollectorRegistry

from lgtm_stack.core.config import Configuration, get_config
from lgtm_stack.core.logging import setup_logging
from lgtm_stack.domain.common.utils import StringUtils
from lgtm_stack.domain.load_test import LoadInjector, build_scenarios
from lgtm_stack.infrastructure.observability import TelemetryContext


def build_parser(config: Configuration) -> argparse.ArgumentParser:
    load_config = config.load_test
    parser = argparse.ArgumentParser(
        prog='lgtm-load-test',
        description='Fire fixed-rate synthetic traffic at the LGTM demo service.',
    )
    parser.add_argument(
        '--base-url',
        default=config.api.base_url,
        help='Service address (default: %(default)s)',
    )
    parser.add_argument(
        '--rate',
        type=float,
        default=load_config.rate,
        help='Requests per second (default: %(default)s)',
    )
    parser.add_argument(
        '--duration',
        type=float,
        default=load_config.duration,
        help='Run duration in seconds (default: %(default)s)',
    )
    parser.add_argument(
        '--timeout',
        type=float,
        default=load_config.request_timeout,
        help='Per-request timeout in seconds (default: %(default)s)',
    )
    parser.add_argument(
        '--report-dir',
        default=load_config.report_dir,
        help='Folder receiving the reports (default: %(default)s)',
    )
    parser.add_argument(
        '--seed', type=int, default=None, help='Seed for scenario selection'
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    config = get_config()
    args = build_parser(config).parse_args(argv)

    if args.rate <= 0 or args.duration <= 0:
        print('rate and duration must be positive', file=sys.stderr)
        return 2

    setup_logging(config)
    telemetry = TelemetryContext(
        StringUtils.service_name(), registry=CollectorRegistry()
    )
    injector = LoadInjector(
        telemetry,
        args.report_dir,
        scenario_name=config.load_test.scenario_name,
        request_timeout=args.timeout,
        rng=random.Random(args.seed) if args.seed is not None else None,  # noqa: S311
    )

    base_url = args.base_url.rstrip('/')
    result = asyncio.run(
        injector.run_load(
            base_url, build_scenarios(base_url), args.rate, args.duration
        )
    )

    if result is None:
        print('load test failed, see logs', file=sys.stderr)
        return 1

    print(
        f'{result.requests} requests, {result.ok} ok, {result.failed} failed; '
        f'report: {injector.last_report_paths[0]}'
    )

    return 0 if result.ok else 1


if __name__ == '__main__':
    sys.exit(main())
