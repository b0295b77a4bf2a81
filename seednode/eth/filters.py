import re
from dataclasses import dataclass, field

import marshmallow as mm
import marshmallow.validate


class InvalidFilters(Exception):
    pass


_HEX_RE = re.compile(r'^(0[xX])?[0-9a-fA-F]*$')


def _require_hex(values: frozenset[str], what: str) -> None:
    for v in values:
        if not isinstance(v, str) or not _HEX_RE.match(v):
            raise InvalidFilters(f'{what}: {v!r} is not a hex string')


@dataclass(frozen=True)
class HeaderFilter:
    off: bool = False
    start_block: int = 0
    end_block: int = 0
    uncles: bool = False


@dataclass(frozen=True)
class TrxFilter:
    off: bool = False
    start_block: int = 0
    end_block: int = 0
    src: frozenset[str] = frozenset()
    dst: frozenset[str] = frozenset()


@dataclass(frozen=True)
class ReceiptFilter:
    off: bool = False
    start_block: int = 0
    end_block: int = 0
    topic0s: frozenset[str] = frozenset()


@dataclass(frozen=True)
class StateFilter:
    off: bool = False
    start_block: int = 0
    end_block: int = 0
    addresses: frozenset[str] = frozenset()
    intermediate_nodes: bool = False

    def __post_init__(self):
        _require_hex(self.addresses, 'addresses')


@dataclass(frozen=True)
class StorageFilter:
    off: bool = False
    start_block: int = 0
    end_block: int = 0
    addresses: frozenset[str] = frozenset()
    storage_keys: frozenset[str] = frozenset()

    def __post_init__(self):
        _require_hex(self.addresses, 'addresses')
        _require_hex(self.storage_keys, 'storageKeys')


@dataclass(frozen=True)
class StreamFilters:
    headers: HeaderFilter = field(default_factory=HeaderFilter)
    transactions: TrxFilter = field(default_factory=TrxFilter)
    receipts: ReceiptFilter = field(default_factory=ReceiptFilter)
    state: StateFilter = field(default_factory=StateFilter)
    storage: StorageFilter = field(default_factory=StorageFilter)


def _block_number(data_key: str):
    return mm.fields.Integer(
        data_key=data_key,
        strict=True,
        validate=mm.validate.Range(min=0, min_inclusive=True)
    )


_HEX = mm.validate.Regexp(_HEX_RE, error='not a hex string')


def _str_set(data_key: str):
    return mm.fields.List(mm.fields.Str(), data_key=data_key)


def _hex_set(data_key: str):
    return mm.fields.List(mm.fields.Str(validate=_HEX), data_key=data_key)


class _BaseFilterSchema(mm.Schema):
    off = mm.fields.Boolean()
    start_block = _block_number('fromBlock')
    end_block = _block_number('toBlock')

    @mm.validates_schema
    def validate_range(self, data, **kwargs):
        start = data.get('start_block', 0)
        end = data.get('end_block', 0)
        if 0 < end < start:
            raise mm.ValidationError(f'fromBlock={start} > toBlock={end}')


class _HeaderFilterSchema(_BaseFilterSchema):
    uncles = mm.fields.Boolean()

    @mm.post_load
    def make(self, data, **kwargs):
        return HeaderFilter(**data)


class _TrxFilterSchema(_BaseFilterSchema):
    src = _str_set('from')
    dst = _str_set('to')

    @mm.post_load
    def make(self, data, **kwargs):
        return TrxFilter(**_freeze(data, 'src', 'dst'))


class _ReceiptFilterSchema(_BaseFilterSchema):
    topic0s = _str_set('topic0')

    @mm.post_load
    def make(self, data, **kwargs):
        return ReceiptFilter(**_freeze(data, 'topic0s'))


class _StateFilterSchema(_BaseFilterSchema):
    addresses = _hex_set('addresses')
    intermediate_nodes = mm.fields.Boolean(data_key='intermediateNodes')

    @mm.post_load
    def make(self, data, **kwargs):
        return StateFilter(**_freeze(data, 'addresses'))


class _StorageFilterSchema(_BaseFilterSchema):
    addresses = _hex_set('addresses')
    storage_keys = _hex_set('storageKeys')

    @mm.post_load
    def make(self, data, **kwargs):
        return StorageFilter(**_freeze(data, 'addresses', 'storage_keys'))


class _StreamFiltersSchema(mm.Schema):
    headers = mm.fields.Nested(_HeaderFilterSchema())
    transactions = mm.fields.Nested(_TrxFilterSchema())
    receipts = mm.fields.Nested(_ReceiptFilterSchema())
    state = mm.fields.Nested(_StateFilterSchema())
    storage = mm.fields.Nested(_StorageFilterSchema())

    @mm.post_load
    def make(self, data, **kwargs):
        return StreamFilters(**data)


def _freeze(data: dict, *names: str) -> dict:
    for name in names:
        if name in data:
            data[name] = frozenset(data[name])
    return data


STREAM_FILTERS_SCHEMA = _StreamFiltersSchema()


def parse_filters(obj) -> StreamFilters:
    if not isinstance(obj, dict):
        raise InvalidFilters('filters must be a JSON object')
    try:
        return STREAM_FILTERS_SCHEMA.load(obj, unknown=mm.RAISE)
    except mm.ValidationError as err:
        raise InvalidFilters(str(err.normalized_messages()))
