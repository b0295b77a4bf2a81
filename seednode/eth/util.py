import binascii

import rlp
from Crypto.Hash import keccak
from eth_utils.encoding import int_to_big_endian

from seednode.eth.model import Qty, Block, Transaction, Log, Receipt


def qty2int(v: Qty) -> int:
    return int(v, 16)


def decode_hex(value: str) -> bytes:
    if not value.startswith('0x'):
        raise ValueError(f'hex string without 0x prefix - {value!r}')
    ascii_hex = value[2:].encode('ascii')
    return binascii.unhexlify(ascii_hex)


def encode_hex(value: bytes | bytearray) -> str:
    binary_hex = binascii.hexlify(value)
    return '0x' + binary_hex.decode('ascii')


def from_hex(value: str) -> bytes:
    """Lenient hex decoding: optional 0x prefix, odd length is left padded with 0"""
    if value[:2] in ('0x', '0X'):
        value = value[2:]
    if len(value) % 2 == 1:
        value = '0' + value
    return binascii.unhexlify(value.encode('ascii'))


def hex_to_address(value: str) -> bytes:
    """Converts hex string to a 20 byte address, keeping the rightmost bytes"""
    b = from_hex(value)[-20:]
    return b'\x00' * (20 - len(b)) + b


def keccak256(buffer) -> bytes:
    k = keccak.new(digest_bits=256)
    return bytes(k.update(buffer).digest())


def address_to_key(address: str) -> bytes:
    """State trie key of an account"""
    return keccak256(hex_to_address(address))


def hex_to_key(value: str) -> bytes:
    """Storage trie key of a hex encoded storage slot"""
    return keccak256(from_hex(value))


def _add_to_bloom(bloom: bytearray, bloom_entry: bytes):
    hash = keccak256(bloom_entry)
    for idx in (0, 2, 4):
        bit_to_set = int.from_bytes(hash[idx:idx+2], "big") & 0x07FF
        bit_index = 0x07FF - bit_to_set
        byte_index = bit_index // 8
        bit_value = 1 << (7 - (bit_index % 8))
        bloom[byte_index] = bloom[byte_index] | bit_value


def logs_bloom(logs: list[Log]) -> str:
    bloom = bytearray(b"\x00" * 256)
    for log in logs:
        _add_to_bloom(bloom, decode_hex(log['address']))
        for topic in log['topics']:
            _add_to_bloom(bloom, decode_hex(topic))
    return encode_hex(bloom)


def _encode_access_list(access_list: list) -> list[list[bytes | list[bytes]]]:
    encoded = []
    for item in access_list:
        address = decode_hex(item['address'])
        keys = []
        for key in item['storageKeys']:
            val = int_to_big_endian(qty2int(key))
            keys.append(b'\x00' * max(0, 32 - len(val)) + val)
        encoded.append([address, keys])
    return encoded


def _encode_logs(logs: list[Log]):
    encoded = []
    for log in logs:
        address = decode_hex(log['address'])
        topics = []
        for topic in log['topics']:
            topics.append(decode_hex(topic))
        data = decode_hex(log['data'])
        encoded.append([address, topics, data])
    return encoded


def header_fields(block: Block) -> list:
    fields = [
        decode_hex(block['parentHash']),
        decode_hex(block['sha3Uncles']),
        decode_hex(block['miner']),
        decode_hex(block['stateRoot']),
        decode_hex(block['transactionsRoot']),
        decode_hex(block['receiptsRoot']),
        decode_hex(block['logsBloom']),
        qty2int(block['difficulty']),
        qty2int(block['number']),
        qty2int(block['gasLimit']),
        qty2int(block['gasUsed']),
        qty2int(block['timestamp']),
        decode_hex(block['extraData']),
        decode_hex(block['mixHash']),
        decode_hex(block['nonce'])
    ]

    # https://eips.ethereum.org/EIPS/eip-1559#block-hash-changing
    if 'baseFeePerGas' in block:
        fields.append(qty2int(block['baseFeePerGas']))

    # https://eips.ethereum.org/EIPS/eip-4895#new-field-in-the-execution-payload-header-withdrawals-root
    if 'withdrawalsRoot' in block:
        fields.append(decode_hex(block['withdrawalsRoot']))

    # https://eips.ethereum.org/EIPS/eip-4844#header-extension
    if 'blobGasUsed' in block:
        fields.append(qty2int(block['blobGasUsed']))
        fields.append(qty2int(block['excessBlobGas']))

    # https://eips.ethereum.org/EIPS/eip-4788#block-structure-and-validity
    if 'parentBeaconBlockRoot' in block:
        fields.append(decode_hex(block['parentBeaconBlockRoot']))

    return fields


def encode_header(block: Block) -> bytes:
    return rlp.encode(header_fields(block))


def block_hash(block: Block) -> str:
    return encode_hex(keccak256(encode_header(block)))


def _y_parity(tx: Transaction) -> int:
    return qty2int(tx['yParity']) if 'yParity' in tx else qty2int(tx['v'])


def encode_transaction(tx: Transaction) -> bytes:
    """Canonical (signed) encoding of a transaction, as it appears in a block body"""
    if tx['type'] == '0x0':
        return rlp.encode([
            qty2int(tx['nonce']),
            qty2int(tx['gasPrice']),
            qty2int(tx['gas']),
            decode_hex(tx['to']) if tx['to'] else b'',
            qty2int(tx['value']),
            decode_hex(tx['input']),
            qty2int(tx['v']),
            qty2int(tx['r']),
            qty2int(tx['s'])
        ])
    elif tx['type'] == '0x1':
        return b'\x01' + rlp.encode([
            qty2int(tx['chainId']),
            qty2int(tx['nonce']),
            qty2int(tx['gasPrice']),
            qty2int(tx['gas']),
            decode_hex(tx['to']) if tx['to'] else b'',
            qty2int(tx['value']),
            decode_hex(tx['input']),
            _encode_access_list(tx.get('accessList', [])),
            _y_parity(tx),
            qty2int(tx['r']),
            qty2int(tx['s'])
        ])
    elif tx['type'] == '0x2':
        return b'\x02' + rlp.encode([
            qty2int(tx['chainId']),
            qty2int(tx['nonce']),
            qty2int(tx['maxPriorityFeePerGas']),
            qty2int(tx['maxFeePerGas']),
            qty2int(tx['gas']),
            decode_hex(tx['to']) if tx['to'] else b'',
            qty2int(tx['value']),
            decode_hex(tx['input']),
            _encode_access_list(tx.get('accessList', [])),
            _y_parity(tx),
            qty2int(tx['r']),
            qty2int(tx['s'])
        ])
    elif tx['type'] == '0x3':
        # https://eips.ethereum.org/EIPS/eip-4844
        return b'\x03' + rlp.encode([
            qty2int(tx['chainId']),
            qty2int(tx['nonce']),
            qty2int(tx['maxPriorityFeePerGas']),
            qty2int(tx['maxFeePerGas']),
            qty2int(tx['gas']),
            decode_hex(tx['to']) if tx['to'] else b'',
            qty2int(tx['value']),
            decode_hex(tx['input']),
            _encode_access_list(tx.get('accessList', [])),
            qty2int(tx['maxFeePerBlobGas']),
            [decode_hex(h) for h in tx['blobVersionedHashes']],
            _y_parity(tx),
            qty2int(tx['r']),
            qty2int(tx['s']),
        ])
    elif tx['type'] == '0x7e':
        # https://github.com/ethereum-optimism/optimism/blob/9ff3ebb3983be52c3ca189423ae7b4aec94e0fde/specs/deposits.md#the-deposited-transaction-type
        return b'\x7e' + rlp.encode([
            decode_hex(tx['sourceHash']),
            decode_hex(tx['from']),
            decode_hex(tx['to']) if tx['to'] else b'',
            qty2int(tx['mint']),
            qty2int(tx['value']),
            qty2int(tx['gas']),
            False,
            decode_hex(tx['input']),
        ])
    else:
        raise NotImplementedError(f'cannot encode tx with type {tx["type"]}')


def encode_receipt(receipt: Receipt) -> bytes:
    """Consensus encoding of a receipt, as it is stored in the receipts trie"""
    type_ = b'' if receipt['type'] == '0x0' else rlp.encode(qty2int(receipt['type']))

    # pre-byzantium receipts carry the intermediate state root instead of status
    if 'root' in receipt:
        outcome = decode_hex(receipt['root'])
    else:
        outcome = qty2int(receipt['status'])

    bloom = receipt.get('logsBloom') or logs_bloom(receipt['logs'])

    fields = [
        outcome,
        qty2int(receipt['cumulativeGasUsed']),
        decode_hex(bloom),
        _encode_logs(receipt['logs']),
    ]

    if receipt['type'] == '0x7e':
        # https://github.com/ethereum-optimism/specs/blob/main/specs/protocol/deposits.md#deposit-receipt
        fields.append(qty2int(receipt['depositNonce']))
        fields.append(int('depositReceiptVersion' in receipt))

    return type_ + rlp.encode(fields)
