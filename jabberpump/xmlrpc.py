# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import Any

import re
from collections.abc import Callable
from collections.abc import Iterable
from datetime import datetime

from jabberpump.builder import E
from jabberpump.errors import RPCDecodeError
from jabberpump.namespaces import Namespace
from jabberpump.structs import RPCResult
from jabberpump.types import Base
from jabberpump.types import Stanza
from jabberpump.util import b64decode
from jabberpump.util import b64encode
from jabberpump.util import from_xs_boolean


DATETIME_TAG = 'dateTime.iso8601'
DATETIME_FORMAT = '%Y%m%dT%H:%M:%S'

_EXPLICIT_TYPE = re.compile(
    r'(int|i4|boolean|string|double|datetime|base64):(.*)',
    re.IGNORECASE | re.DOTALL)

_INTEGER = re.compile(r'[+-]?\d+', re.ASCII)

_DOUBLE = re.compile(
    r'-?(?:\d+(?:\.\d*)?|\.\d+)|'
    r'[+-]?(?=\d|\.\d)\d*(?:\.\d*)?(?:[Ee][+-]?\d+)?',
    re.ASCII)

_EXPLICIT_TAGS = {
    'int': 'int',
    'i4': 'i4',
    'boolean': 'boolean',
    'string': 'string',
    'double': 'double',
    'datetime': DATETIME_TAG,
    'base64': 'base64',
}


def infer_scalar(value: Any) -> tuple[str, str]:
    '''
    Return the XML-RPC scalar tag and the text for a value.

    Strings may force a type with a "type:" prefix, otherwise integers,
    then reals are recognized and everything else is a string.
    '''
    if isinstance(value, bool):
        return 'boolean', '1' if value else '0'

    if isinstance(value, int):
        return 'i4', str(value)

    if isinstance(value, float):
        return 'double', repr(value)

    if isinstance(value, (bytes, bytearray)):
        return 'base64', b64encode(bytes(value))

    if isinstance(value, datetime):
        return DATETIME_TAG, value.strftime(DATETIME_FORMAT)

    if value is None:
        return 'string', ''

    text = str(value)
    match = _EXPLICIT_TYPE.fullmatch(text)
    if match is not None:
        return _EXPLICIT_TAGS[match.group(1).lower()], match.group(2)

    if _INTEGER.fullmatch(text) is not None:
        return 'i4', text

    if _DOUBLE.fullmatch(text) is not None:
        return 'double', text

    return 'string', text


def encode_value(parent: Base, value: Any) -> Base:
    node = parent.add_tag('value')

    if isinstance(value, dict):
        struct = node.add_tag('struct')
        for name, member_value in value.items():
            member = struct.add_tag('member')
            member.add_tag_text('name', str(name))
            encode_value(member, member_value)

    elif isinstance(value, (list, tuple)):
        data = node.add_tag('array').add_tag('data')
        for item in value:
            encode_value(data, item)

    else:
        tag, text = infer_scalar(value)
        node.add_tag_text(tag, text)

    return node


def _encode_params(parent: Base, params: Iterable[Any]) -> None:
    params_node = parent.add_tag('params')
    for param in params:
        encode_value(params_node.add_tag('param'), param)


def _encode_fault_struct(parent: Base,
                         code: int,
                         message: str,
                         code_type: str) -> None:

    fault = parent.add_tag('fault')
    value = fault.add_tag('value')
    struct = value.add_tag('struct')

    member = struct.add_tag('member')
    member.add_tag_text('name', 'faultCode')
    member.add_tag('value').add_tag_text(code_type, str(code))

    member = struct.add_tag('member')
    member.add_tag_text('name', 'faultString')
    member.add_tag('value').add_tag_text('string', message)


def encode_call(method: str, params: Iterable[Any] | None = None) -> Base:
    query = E('query', namespace=Namespace.RPC)
    call = query.add_tag('methodCall')
    call.add_tag_text('methodName', method)
    _encode_params(call, params or [])
    return query


def encode_response(params: Iterable[Any] | None = None,
                    fault: dict[str, Any] | None = None) -> Base:

    query = E('query', namespace=Namespace.RPC)
    response = query.add_tag('methodResponse')
    if fault is not None:
        _encode_fault_struct(response,
                             fault.get('faultCode', 0),
                             str(fault.get('faultString', '')),
                             'i4')
        return query

    _encode_params(response, params or [])
    return query


def encode_fault(code: int, message: str) -> Base:
    query = E('query', namespace=Namespace.RPC)
    response = query.add_tag('methodResponse')
    _encode_fault_struct(response, code, message, 'int')
    return query


def _decode_datetime(text: str) -> datetime:
    try:
        return datetime.strptime(text, DATETIME_FORMAT)
    except ValueError:
        return datetime.fromisoformat(text)


_SCALAR_DECODERS: list[tuple[str, Callable[[str], Any]]] = [
    ('i4', int),
    ('int', int),
    ('boolean', from_xs_boolean),
    ('string', str),
    ('double', float),
    (DATETIME_TAG, _decode_datetime),
    ('base64', b64decode),
]


def decode_value(node: Base | None) -> Any:
    if node is None:
        return None

    struct = node.find_tag('struct')
    if struct is not None:
        result: dict[str, Any] = {}
        for member in struct.iter_tags('member'):
            name = member.find_tag_text('name') or ''
            result[name] = decode_value(member.find_tag('value'))
        return result

    array = node.find_tag('array')
    if array is not None:
        # Some peers wrap every value into its own <data/>
        return [decode_value(value)
                for data in array.iter_tags('data')
                for value in data.iter_tags('value')]

    for tag, converter in _SCALAR_DECODERS:
        scalar = node.find_tag(tag)
        if scalar is not None:
            text = scalar.text or ''
            if converter is not str:
                text = text.strip()
            return converter(text)

    return node.text or ''


def _get_rpc_query(stanza: Stanza) -> Base:
    query = stanza.get_query()
    if query is None or query.namespace != Namespace.RPC:
        raise RPCDecodeError('rpc query missing', stanza)
    return query


def _decode_params(parent: Base) -> list[Any]:
    params = parent.find_tag('params')
    if params is None:
        return []
    return [decode_value(param.find_tag('value'))
            for param in params.iter_tags('param')]


def parse_response(stanza: Stanza) -> RPCResult:
    query = _get_rpc_query(stanza)
    response = query.find_tag('methodResponse')
    if response is None:
        raise RPCDecodeError('methodResponse missing', stanza)

    try:
        fault = response.find_tag('fault')
        if fault is not None:
            payload = decode_value(fault.find_tag('value'))
            if not isinstance(payload, dict):
                raise RPCDecodeError('fault is not a struct', stanza)
            return RPCResult('fault', payload)

        if not response.has_tag('params'):
            raise RPCDecodeError(
                'methodResponse has neither fault nor params', stanza)

        return RPCResult('ok', _decode_params(response))

    except ValueError as error:
        raise RPCDecodeError('invalid value: %s' % error, stanza)


def parse_call(stanza: Stanza) -> tuple[str, list[Any]]:
    query = _get_rpc_query(stanza)
    call = query.find_tag('methodCall')
    if call is None:
        raise RPCDecodeError('methodCall missing', stanza)

    method = call.find_tag_text('methodName')
    if not method:
        raise RPCDecodeError('methodName missing', stanza)

    try:
        return method, _decode_params(call)
    except ValueError as error:
        raise RPCDecodeError('invalid value: %s' % error, stanza)
