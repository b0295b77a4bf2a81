from prometheus_client import Counter


SCREENED_BLOCKS = Counter('screened_blocks', 'Number of blocks passed through the screener')
SCREENED_ITEMS = Counter('screened_items', 'Number of items included into responses', ['category'])
ENCODING_FAILURES = Counter('num_encoding_failures', 'Number of blocks failed to be re-encoded')
INVALID_PAYLOADS = Counter('num_invalid_payloads', 'Number of received malformed payloads')


def observe_response(response) -> None:
    SCREENED_BLOCKS.inc()
    SCREENED_ITEMS.labels('header').inc(len(response.headers_rlp))
    SCREENED_ITEMS.labels('uncle').inc(len(response.uncles_rlp))
    SCREENED_ITEMS.labels('transaction').inc(len(response.transactions_rlp))
    SCREENED_ITEMS.labels('receipt').inc(len(response.receipts_rlp))
    SCREENED_ITEMS.labels('state_node').inc(len(response.state_nodes_rlp))
    SCREENED_ITEMS.labels('storage_node').inc(
        sum(len(nodes) for nodes in response.storage_nodes_rlp.values())
    )
