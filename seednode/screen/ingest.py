import json
import logging
import math
import time
from typing import Iterable, Callable, TextIO

import httpx

from seednode.eth.payload import InvalidPayload


LOG = logging.getLogger(__name__)


Document = dict


RETRY_PAUSE = 5
IDLE_PAUSE = 300


def _decode(line: str) -> Document:
    try:
        return json.loads(line)
    except json.JSONDecodeError as e:
        raise InvalidPayload(f'payload is not a valid JSON: {e}') from e


def ingest_from_service(
        service_url: str,
        get_block_number: Callable[[Document], int],
        next_block: int,
        last_block=None,
        client: httpx.Client | None = None
) -> Iterable[Document]:
    """Streams payloads of blocks `[next_block, last_block]` from a service.

    Each request asks for `{"from": next_block, "to": last_block}` and gets
    back newline delimited payloads. After an interrupted stream the next
    request starts right after the last received block.
    """
    if last_block is None:
        last_block = math.inf

    own_client = client is None
    if own_client:
        client = httpx.Client(timeout=httpx.Timeout(None))

    try:
        while next_block <= last_block:
            data_range = {'from': next_block}
            if last_block < math.inf:
                data_range['to'] = last_block

            try:
                with client.stream('POST', service_url, json=data_range) as res:
                    res.raise_for_status()
                    for line in _iter_lines(res.iter_text()):
                        doc = _decode(line)
                        next_block = get_block_number(doc) + 1
                        yield doc
            except (httpx.NetworkError, httpx.RemoteProtocolError):
                LOG.exception('payload stream was interrupted', extra={'next_block': next_block})
                time.sleep(RETRY_PAUSE)
            else:
                if next_block <= last_block:
                    LOG.info('no new payloads, will ask again later', extra={'next_block': next_block})
                    time.sleep(IDLE_PAUSE)
    finally:
        if own_client:
            client.close()


# `res.iter_lines()` uses `str.splitlines()` under the hood, which splits "too much".
# E.g `"\u2028"` is a perfectly valid JSON,
# but it will get split into 2 pieces by `str.splitlines()`.
def _iter_lines(text_stream: Iterable[str]) -> Iterable[str]:
    pending = ''
    for chunk in text_stream:
        *lines, pending = (pending + chunk).split('\n')
        for line in lines:
            if line:
                yield line
    if pending:
        yield pending


def ingest_from_file(
        f: TextIO,
        get_block_number: Callable[[Document], int],
        next_block: int,
        last_block=math.inf
) -> Iterable[Document]:
    for line in f:
        if line.strip():
            doc = _decode(line)
            height = get_block_number(doc)
            if height > last_block:
                break
            elif next_block <= height:
                yield doc
