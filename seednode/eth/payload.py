from typing import NamedTuple, Iterable, Mapping, Any

from seednode.eth.model import Block, Transaction, Receipt
from seednode.eth.util import encode_header, decode_hex, qty2int


Key = bytes


class InvalidPayload(Exception):
    pass


class TxRecord(NamedTuple):
    tx: Transaction
    src: str
    dst: str


class ReceiptRecord(NamedTuple):
    receipt: Receipt
    topic0s: frozenset[str]


class StateNode(NamedTuple):
    leaf: bool
    value: bytes


class StorageNode(NamedTuple):
    key: Key
    value: bytes


class IPLDPayload(NamedTuple):
    block_number: int
    header_rlp: bytes
    uncles: list[Block]
    transactions: list[TxRecord]
    receipts: list[ReceiptRecord]
    state_nodes: dict[Key, StateNode]
    storage_nodes: dict[Key, list[StorageNode]]


def tx_record(tx: Transaction) -> TxRecord:
    return TxRecord(tx, tx['from'], tx.get('to') or '')


def receipt_record(receipt: Receipt) -> ReceiptRecord:
    topic0s = frozenset(log['topics'][0] for log in receipt['logs'] if log['topics'])
    return ReceiptRecord(receipt, topic0s)


def build_payload(
        block: Block,
        receipts: Iterable[Receipt],
        uncles: Iterable[Block] = (),
        state_nodes: Mapping[Key, StateNode] | None = None,
        storage_nodes: Mapping[Key, list[StorageNode]] | None = None
) -> IPLDPayload:
    """Assembles a payload out of JSON-RPC objects.

    `block` must come with full transaction objects. Filtering metadata
    is extracted here, so that each transaction and receipt travels together
    with the values it is matched by.
    """
    try:
        transactions = block.get('transactions', [])
        receipts = list(receipts)
        if len(receipts) != len(transactions):
            raise InvalidPayload(
                f'block {block["number"]} has {len(transactions)} transactions, but {len(receipts)} receipts'
            )

        for tx in transactions:
            if not isinstance(tx, dict):
                raise InvalidPayload(f'block {block["number"]} does not contain full transaction objects')

        return IPLDPayload(
            block_number=qty2int(block['number']),
            header_rlp=encode_header(block),
            uncles=list(uncles),
            transactions=[tx_record(tx) for tx in transactions],
            receipts=[receipt_record(r) for r in receipts],
            state_nodes=dict(state_nodes or {}),
            storage_nodes={k: list(nodes) for k, nodes in (storage_nodes or {}).items()}
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise InvalidPayload(f'malformed block: {e!r}') from e


def payload_from_json(obj: Any) -> IPLDPayload:
    """Builds a payload from a document of the following shape

        {
            "block": {...},
            "uncles": [{...}],
            "receipts": [{...}],
            "stateNodes": {"0x<key>": {"leaf": true, "value": "0x.."}},
            "storageNodes": {"0x<state key>": [{"key": "0x..", "value": "0x.."}]}
        }
    """
    if not isinstance(obj, dict):
        raise InvalidPayload('payload must be a JSON object')

    try:
        state_nodes = {
            decode_hex(key): StateNode(bool(node['leaf']), decode_hex(node['value']))
            for key, node in obj.get('stateNodes', {}).items()
        }

        storage_nodes = {
            decode_hex(state_key): [
                StorageNode(decode_hex(node['key']), decode_hex(node['value'])) for node in nodes
            ]
            for state_key, nodes in obj.get('storageNodes', {}).items()
        }

        return build_payload(
            obj['block'],
            obj.get('receipts', []),
            uncles=obj.get('uncles', []),
            state_nodes=state_nodes,
            storage_nodes=storage_nodes
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise InvalidPayload(f'malformed payload: {e!r}') from e


def get_block_number(obj: Any) -> int:
    try:
        return qty2int(obj['block']['number'])
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidPayload(f'payload without block number: {e!r}') from e
