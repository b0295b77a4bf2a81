import pytest

from seednode.eth.payload import IPLDPayload, StateNode, StorageNode, build_payload
from seednode.eth.util import address_to_key, hex_to_key
from tests.factories import (
    address, hash32, trie_key, make_header, make_legacy_tx, make_dynamic_fee_tx, make_log, make_receipt
)


ALICE = address(0xa11ce)
BOB = address(0xb0b)
CAROL = address(0xca201)
TOKEN = address(0x70c3)

TRANSFER_TOPIC = '0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef'
APPROVAL_TOPIC = '0x8c5be1e5ebec7d5bd14f71427d1e84f3dd0314c0f7b2291e5b200ac8c7c3b925'

SLOT_0 = '0x0'
SLOT_1 = '0x1'


@pytest.fixture
def block():
    return make_header(
        150,
        uncles=[hash32(0x149)],
        transactions=[
            make_legacy_tx(ALICE, BOB, nonce=0),
            make_dynamic_fee_tx(BOB, TOKEN, nonce=1),
            make_legacy_tx(CAROL, None, nonce=2)
        ]
    )


@pytest.fixture
def receipts():
    return [
        make_receipt(0, []),
        make_receipt(1, [
            make_log(TOKEN, TRANSFER_TOPIC, hash32(0xb0b), hash32(0xa11ce), data=hash32(100)),
            make_log(TOKEN, APPROVAL_TOPIC, hash32(0xb0b), hash32(0xca201), data=hash32(5))
        ], tx_type='0x2'),
        make_receipt(2, [make_log(CAROL, hash32(0x42))])
    ]


@pytest.fixture
def uncle():
    return make_header(149, extraData='0x756e636c65')


@pytest.fixture
def state_nodes():
    return {
        address_to_key(ALICE): StateNode(True, b'\xf8\x44alice-account'),
        address_to_key(BOB): StateNode(True, b'\xf8\x44bob-account'),
        address_to_key(TOKEN): StateNode(False, b'\xf9\x02\x11branch'),
        trie_key(0xfeed): StateNode(False, b'\xf9\x02\x11another-branch')
    }


@pytest.fixture
def storage_nodes():
    return {
        address_to_key(TOKEN): [
            StorageNode(hex_to_key(SLOT_0), b'\xa0token-slot-0'),
            StorageNode(hex_to_key(SLOT_1), b'\xa0token-slot-1'),
            StorageNode(trie_key(0xabc), b'\xf8\x51token-branch')
        ],
        address_to_key(CAROL): [
            StorageNode(hex_to_key(SLOT_0), b'\xa0carol-slot-0')
        ]
    }


@pytest.fixture
def payload(block, receipts, uncle, state_nodes, storage_nodes) -> IPLDPayload:
    return build_payload(
        block,
        receipts,
        uncles=[uncle],
        state_nodes=state_nodes,
        storage_nodes=storage_nodes
    )
