import argparse
import json
import logging
import math
import os
import sys
from typing import Iterable, TextIO

from seednode.eth.filters import StreamFilters, InvalidFilters, parse_filters
from seednode.eth.payload import InvalidPayload, payload_from_json, get_block_number
from seednode.eth.screener import Screener, EncodingFailure, response_to_json
from seednode.metrics import ENCODING_FAILURES, INVALID_PAYLOADS, observe_response
from .ingest import Document, ingest_from_service, ingest_from_file


LOG = logging.getLogger(__name__)


def parse_cli_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    program = argparse.ArgumentParser(
        prog='python3 -m seednode.screen',
        description='Screens a stream of block payloads, leaving only data requested by the filters'
    )

    program.add_argument(
        'filters',
        metavar='FILTERS',
        help='JSON file with stream filters'
    )

    program.add_argument(
        '-s', '--src',
        type=str,
        metavar='URL',
        help='URL of the payload streaming service (payloads are read from stdin otherwise)'
    )

    program.add_argument(
        '--first-block',
        type=int,
        default=0,
        metavar='N',
        help='first block of a range to screen'
    )

    program.add_argument(
        '--last-block',
        type=int,
        metavar='N',
        help='last block of a range to screen'
    )

    program.add_argument(
        '--skip-empty',
        action='store_true',
        help='do not output responses without any data'
    )

    program.add_argument(
        '--prom-port',
        type=int,
        help='port to use for built-in prometheus metrics server'
    )

    return program.parse_args(argv)


def load_filters(path: str) -> StreamFilters:
    with open(path) as f:
        try:
            obj = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidFilters(f'{path} is not a valid JSON: {e}') from e
    return parse_filters(obj)


def screen_documents(
        filters: StreamFilters,
        docs: Iterable[Document],
        out: TextIO,
        skip_empty: bool = False
) -> int:
    screener = Screener()
    # malformed payloads may come out of `docs` itself, while decoding a line
    try:
        for doc in docs:
            payload = payload_from_json(doc)

            try:
                response = screener.screen(filters, payload)
            except EncodingFailure:
                ENCODING_FAILURES.inc()
                LOG.exception('failed to screen block', extra={'block_number': payload.block_number})
                return 1

            observe_response(response)

            if skip_empty and response.is_empty():
                continue

            out.write(json.dumps({
                'blockNumber': payload.block_number,
                'response': response_to_json(response)
            }))
            out.write('\n')
            out.flush()
    except InvalidPayload:
        INVALID_PAYLOADS.inc()
        LOG.exception('received malformed payload')
        return 1
    return 0


def _ingest(args: argparse.Namespace, stdin: TextIO) -> Iterable[Document]:
    if args.src:
        return ingest_from_service(
            args.src,
            get_block_number,
            args.first_block,
            args.last_block
        )
    else:
        return ingest_from_file(
            stdin,
            get_block_number,
            args.first_block,
            args.last_block if args.last_block is not None else math.inf
        )


def init_support_services(args: argparse.Namespace) -> None:
    if args.prom_port is not None:
        from prometheus_client import start_http_server
        LOG.info(f'exposing prometheus metrics on port {args.prom_port}')
        start_http_server(args.prom_port)

    if os.getenv('SENTRY_DSN'):
        import sentry_sdk
        sentry_sdk.init(
            traces_sample_rate=1.0
        )


def main(argv: list[str] | None = None) -> int:
    args = parse_cli_arguments(argv)

    try:
        filters = load_filters(args.filters)
    except InvalidFilters as e:
        LOG.error(f'invalid filters: {e}')
        return 2

    init_support_services(args)

    return screen_documents(
        filters,
        _ingest(args, sys.stdin),
        sys.stdout,
        skip_empty=args.skip_empty
    )
