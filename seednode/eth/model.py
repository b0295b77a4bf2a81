from typing import TypedDict, Optional, NotRequired


Bytes = str
Bytes8 = str
Bytes32 = str
Address20 = str
Hash32 = str
Qty = str


class Block(TypedDict):
    number: Qty
    hash: Hash32
    parentHash: Hash32
    timestamp: Qty
    transactionsRoot: Hash32
    receiptsRoot: Hash32
    stateRoot: Hash32
    logsBloom: Bytes
    sha3Uncles: Hash32
    extraData: Bytes
    miner: Address20
    nonce: NotRequired[Bytes8]
    mixHash: NotRequired[Bytes]
    size: NotRequired[Qty]
    gasLimit: Qty
    gasUsed: Qty
    difficulty: NotRequired[Qty]
    totalDifficulty: NotRequired[Qty]
    baseFeePerGas: NotRequired[Qty]
    withdrawalsRoot: NotRequired[Hash32]
    blobGasUsed: NotRequired[Qty]
    excessBlobGas: NotRequired[Qty]
    parentBeaconBlockRoot: NotRequired[Hash32]
    uncles: NotRequired[list[Hash32]]
    transactions: NotRequired[list['Transaction']]


# Alternative syntax allows to use reserved keywords as keys
Transaction = TypedDict('Transaction', {
    'blockHash': NotRequired[Hash32],
    'blockNumber': NotRequired[Qty],
    'transactionIndex': NotRequired[Qty],
    'hash': NotRequired[Hash32],
    'nonce': Qty,
    'from': Address20,
    'to': Optional[Address20],
    'input': Bytes,
    'value': Qty,
    'type': Qty,
    'gas': Qty,
    'gasPrice': NotRequired[Qty],
    'maxFeePerGas': NotRequired[Qty],
    'maxPriorityFeePerGas': NotRequired[Qty],
    'maxFeePerBlobGas': NotRequired[Qty],
    'blobVersionedHashes': NotRequired[list[Hash32]],
    'v': NotRequired[Qty],
    'r': NotRequired[Bytes32],
    's': NotRequired[Bytes32],
    'yParity': NotRequired[Qty],
    'accessList': NotRequired[list],
    'chainId': NotRequired[Qty],
    'sourceHash': NotRequired[Hash32],
    'mint': NotRequired[Qty],
})


class Log(TypedDict):
    blockHash: NotRequired[Hash32]
    blockNumber: NotRequired[Qty]
    logIndex: NotRequired[Qty]
    transactionIndex: NotRequired[Qty]
    transactionHash: NotRequired[Hash32]
    address: Address20
    data: Bytes
    topics: list[Bytes32]


class Receipt(TypedDict):
    transactionHash: Hash32
    transactionIndex: Qty
    blockHash: NotRequired[Hash32]
    blockNumber: NotRequired[Qty]
    cumulativeGasUsed: Qty
    effectiveGasPrice: NotRequired[Qty]
    gasUsed: NotRequired[Qty]
    contractAddress: NotRequired[Optional[Address20]]
    logs: list[Log]
    logsBloom: NotRequired[Bytes]
    type: Qty
    status: NotRequired[Qty]
    root: NotRequired[Hash32]
    depositNonce: NotRequired[Qty]
    depositReceiptVersion: NotRequired[Qty]
