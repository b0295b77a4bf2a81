import pytest

from seednode.eth.payload import (
    InvalidPayload, TxRecord, StateNode, StorageNode, build_payload, payload_from_json, get_block_number
)
from seednode.eth.util import encode_header, encode_hex
from tests.conftest import ALICE, BOB, CAROL, TRANSFER_TOPIC, APPROVAL_TOPIC
from tests.factories import make_header, make_document, hash32, trie_key


def test_records_carry_filtering_metadata(block, receipts, payload):
    assert payload.block_number == 150
    assert payload.header_rlp == encode_header(block)
    assert [rec.tx for rec in payload.transactions] == block['transactions']
    assert payload.transactions[0] == TxRecord(block['transactions'][0], ALICE, BOB)
    assert payload.transactions[2].src == CAROL
    assert payload.transactions[2].dst == ''
    assert [rec.receipt for rec in payload.receipts] == receipts
    assert payload.receipts[0].topic0s == frozenset()
    assert payload.receipts[1].topic0s == frozenset([TRANSFER_TOPIC, APPROVAL_TOPIC])
    assert payload.receipts[2].topic0s == frozenset([hash32(0x42)])


def test_anonymous_logs_have_no_topic0(block):
    receipts = [
        {**r, 'logs': [{'address': ALICE, 'topics': [], 'data': '0x'}]}
        for r in _receipts_for(block)
    ]
    payload = build_payload(block, receipts)
    assert all(rec.topic0s == frozenset() for rec in payload.receipts)


def test_receipts_must_match_transactions(block, receipts):
    with pytest.raises(InvalidPayload):
        build_payload(block, receipts[:2])


def test_transactions_must_be_full_objects(block):
    block['transactions'] = [hash32(1)]
    with pytest.raises(InvalidPayload):
        build_payload(block, [{}])


def test_build_payload_rejects_transaction_without_sender(block, receipts):
    del block['transactions'][1]['from']
    with pytest.raises(InvalidPayload):
        build_payload(block, receipts)


def test_build_payload_rejects_block_without_number(block, receipts):
    del block['number']
    with pytest.raises(InvalidPayload):
        build_payload(block, receipts)


@pytest.mark.parametrize('doc', [
    {'receipts': []},
    {'block': None},
    {'block': {'number': 'latest'}},
    [],
])
def test_block_number_of_malformed_payload(doc):
    with pytest.raises(InvalidPayload):
        get_block_number(doc)


def test_payload_from_json(block, receipts, uncle):
    doc = make_document(
        block,
        receipts,
        uncles=[uncle],
        stateNodes={
            encode_hex(trie_key(1)): {'leaf': True, 'value': '0xc0'},
            encode_hex(trie_key(2)): {'leaf': False, 'value': '0xc1'}
        },
        storageNodes={
            encode_hex(trie_key(1)): [{'key': encode_hex(trie_key(3)), 'value': '0x01'}]
        }
    )

    payload = payload_from_json(doc)

    assert get_block_number(doc) == 150
    assert payload.block_number == 150
    assert payload.uncles == [uncle]
    assert len(payload.transactions) == 3
    assert payload.state_nodes == {
        trie_key(1): StateNode(True, b'\xc0'),
        trie_key(2): StateNode(False, b'\xc1')
    }
    assert payload.storage_nodes == {
        trie_key(1): [StorageNode(trie_key(3), b'\x01')]
    }


def test_payload_without_transactions():
    payload = payload_from_json({'block': make_header(1)})
    assert payload.transactions == []
    assert payload.receipts == []
    assert payload.state_nodes == {}
    assert payload.storage_nodes == {}


@pytest.mark.parametrize('doc', [
    None,
    [],
    {},
    {'block': {'number': '0x1'}},
    {'block': make_header(1), 'stateNodes': {'0x01': {'value': '0x00'}}},
    {'block': make_header(1), 'stateNodes': {'01': {'leaf': True, 'value': '0x00'}}},
    {'block': make_header(1), 'storageNodes': {'0x01': [{'key': '0x0g', 'value': '0x'}]}},
])
def test_malformed_payload(doc):
    with pytest.raises(InvalidPayload):
        payload_from_json(doc)


def _receipts_for(block):
    return [
        {
            'transactionHash': tx['hash'],
            'transactionIndex': tx['transactionIndex'],
            'cumulativeGasUsed': '0x5208',
            'logs': [],
            'type': tx['type'],
            'status': '0x1'
        }
        for tx in block['transactions']
    ]
