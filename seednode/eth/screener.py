import logging
from dataclasses import dataclass, field
from typing import Callable, Collection, TypeVar

from rlp.exceptions import RLPException

from seednode.eth.filters import StreamFilters, HeaderFilter, TrxFilter, ReceiptFilter, StateFilter, StorageFilter
from seednode.eth.payload import IPLDPayload, Key
from seednode.eth.util import address_to_key, hex_to_key, encode_header, encode_transaction, encode_receipt, encode_hex


LOG = logging.getLogger(__name__)


T = TypeVar('T')


class EncodingFailure(Exception):
    pass


@dataclass
class ResponsePayload:
    headers_rlp: list[bytes] = field(default_factory=list)
    uncles_rlp: list[bytes] = field(default_factory=list)
    transactions_rlp: list[bytes] = field(default_factory=list)
    receipts_rlp: list[bytes] = field(default_factory=list)
    state_nodes_rlp: dict[Key, bytes] = field(default_factory=dict)
    storage_nodes_rlp: dict[Key, dict[Key, bytes]] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (
            self.headers_rlp or
            self.uncles_rlp or
            self.transactions_rlp or
            self.receipts_rlp or
            self.state_nodes_rlp or
            self.storage_nodes_rlp
        )


def in_range(start: int, end: int, actual: int) -> bool:
    """`end <= 0` leaves the range open"""
    return start <= actual and (end <= 0 or actual <= end)


def match_transaction(wanted_src: Collection[str], wanted_dst: Collection[str], src: str, dst: str) -> bool:
    if not wanted_src and not wanted_dst:
        return True
    return src in wanted_src or dst in wanted_dst


def match_topics(wanted: Collection[str], actual: Collection[str]) -> bool:
    if not wanted:
        return True
    return any(topic in wanted for topic in actual)


def match_keys(wanted: Collection[Key], actual: Key) -> bool:
    if not wanted:
        return True
    return actual in wanted


def _encode(encoder: Callable[[T], bytes], item: T, what: str, block_number: int) -> bytes:
    try:
        return encoder(item)
    except (KeyError, TypeError, ValueError, NotImplementedError, RLPException) as e:
        raise EncodingFailure(f'failed to encode {what} of block {block_number}: {e!r}') from e


class Screener:
    """Packs the parts of a block a subscriber asked for into a response.

    Each category is handled by a separate pass, which reads the payload
    and the corresponding sub-filter and writes only its own response fields.
    Any encoding failure aborts the whole call.
    """

    def screen(self, filters: StreamFilters, payload: IPLDPayload) -> ResponsePayload:
        response = ResponsePayload()
        self.filter_headers(filters.headers, payload, response)
        self.filter_transactions(filters.transactions, payload, response)
        self.filter_receipts(filters.receipts, payload, response)
        self.filter_state(filters.state, payload, response)
        self.filter_storage(filters.storage, payload, response)
        LOG.debug('screened block', extra={
            'block_number': payload.block_number,
            'headers': len(response.headers_rlp),
            'uncles': len(response.uncles_rlp),
            'transactions': len(response.transactions_rlp),
            'receipts': len(response.receipts_rlp),
            'state_nodes': len(response.state_nodes_rlp),
            'storage_accounts': len(response.storage_nodes_rlp)
        })
        return response

    def filter_headers(self, f: HeaderFilter, payload: IPLDPayload, response: ResponsePayload) -> None:
        if f.off or not in_range(f.start_block, f.end_block, payload.block_number):
            return
        response.headers_rlp.append(payload.header_rlp)
        if f.uncles:
            for uncle in payload.uncles:
                response.uncles_rlp.append(
                    _encode(encode_header, uncle, 'uncle', payload.block_number)
                )

    def filter_transactions(self, f: TrxFilter, payload: IPLDPayload, response: ResponsePayload) -> None:
        if f.off or not in_range(f.start_block, f.end_block, payload.block_number):
            return
        for rec in payload.transactions:
            if match_transaction(f.src, f.dst, rec.src, rec.dst):
                response.transactions_rlp.append(
                    _encode(encode_transaction, rec.tx, 'transaction', payload.block_number)
                )

    def filter_receipts(self, f: ReceiptFilter, payload: IPLDPayload, response: ResponsePayload) -> None:
        if f.off or not in_range(f.start_block, f.end_block, payload.block_number):
            return
        for rec in payload.receipts:
            if match_topics(f.topic0s, rec.topic0s):
                response.receipts_rlp.append(
                    _encode(encode_receipt, rec.receipt, 'receipt', payload.block_number)
                )

    def filter_state(self, f: StateFilter, payload: IPLDPayload, response: ResponsePayload) -> None:
        if f.off or not in_range(f.start_block, f.end_block, payload.block_number):
            return
        keys = {address_to_key(a) for a in f.addresses}
        for key, node in payload.state_nodes.items():
            # intermediate nodes carry only trie structure, they are sent on explicit request
            if match_keys(keys, key) and (node.leaf or f.intermediate_nodes):
                response.state_nodes_rlp[key] = node.value

    def filter_storage(self, f: StorageFilter, payload: IPLDPayload, response: ResponsePayload) -> None:
        if f.off or not in_range(f.start_block, f.end_block, payload.block_number):
            return
        state_keys = {address_to_key(a) for a in f.addresses}
        storage_keys = {hex_to_key(k) for k in f.storage_keys}
        # no leaf/intermediate distinction here, unlike state nodes
        for state_key, nodes in payload.storage_nodes.items():
            if not match_keys(state_keys, state_key):
                continue
            account_storage = response.storage_nodes_rlp[state_key] = {}
            for node in nodes:
                if match_keys(storage_keys, node.key):
                    account_storage[node.key] = node.value


def screen_response(filters: StreamFilters, payload: IPLDPayload) -> ResponsePayload:
    return Screener().screen(filters, payload)


def response_to_json(response: ResponsePayload) -> dict:
    return {
        'headers': [encode_hex(b) for b in response.headers_rlp],
        'uncles': [encode_hex(b) for b in response.uncles_rlp],
        'transactions': [encode_hex(b) for b in response.transactions_rlp],
        'receipts': [encode_hex(b) for b in response.receipts_rlp],
        'stateNodes': {
            encode_hex(k): encode_hex(v) for k, v in response.state_nodes_rlp.items()
        },
        'storageNodes': {
            encode_hex(state_key): {
                encode_hex(k): encode_hex(v) for k, v in nodes.items()
            }
            for state_key, nodes in response.storage_nodes_rlp.items()
        }
    }
