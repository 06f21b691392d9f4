# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import Any
from typing import Union

import base64
import hashlib
import logging
import time
from collections import defaultdict
from collections.abc import Callable
from logging import LoggerAdapter


def b64decode(data: Union[str, bytes]) -> bytes:
    if isinstance(data, str):
        data = data.encode()

    return base64.b64decode(data)


def b64encode(data: Union[str, bytes]) -> str:
    if isinstance(data, str):
        data = data.encode()

    result = base64.b64encode(data)
    return result.decode()


def from_xs_boolean(value: str) -> bool:
    value = value.strip()
    if value in ('1', 'true', 'True'):
        return True

    if value in ('0', 'false', 'False', ''):
        return False

    raise ValueError('Cant convert %s to python boolean' % value)


def sha1_hexdigest(*parts: str) -> str:
    return hashlib.sha1(''.join(parts).encode()).hexdigest()


def get_human_time(seconds: int) -> str:
    '''
    Render a duration the way the legacy CTCP replies do, for example
    "2 days, 3 hours, 1 second"
    '''
    seconds = max(int(seconds), 0)
    parts = []
    for unit, size in (('day', 86400),
                       ('hour', 3600),
                       ('minute', 60),
                       ('second', 1)):
        value, seconds = divmod(seconds, size)
        if value:
            parts.append('%s %s%s' % (value, unit, '' if value == 1 else 's'))

    if not parts:
        return '0 seconds'
    return ', '.join(parts)


def get_local_timestamp(timestamp: float) -> str:
    return time.strftime('%a %b %d, %Y %H:%M:%S', time.localtime(timestamp))


def get_legacy_utc(timestamp: float | None = None) -> str:
    # jabber:iq:time uses CCYYMMDDThh:mm:ss
    return time.strftime('%Y%m%dT%H:%M:%S', time.gmtime(timestamp))


class Observable:
    def __init__(self, log_: logging.Logger | LoggerAdapter):
        self._log = log_
        self._callbacks: defaultdict[str, list[Callable[..., Any]]] = defaultdict(list)

    def remove_subscriptions(self) -> None:
        self._callbacks = defaultdict(list)

    def subscribe(self, signal_name: str, func: Callable[..., Any]) -> None:
        self._callbacks[signal_name].append(func)

    def unsubscribe(self, signal_name: str, func: Callable[..., Any]) -> None:
        callbacks = self._callbacks.get(signal_name)
        if callbacks is None or func not in callbacks:
            return
        callbacks.remove(func)

    def notify(self, signal_name: str, *args: Any, **kwargs: Any) -> None:
        callbacks = self._callbacks.get(signal_name)
        if not callbacks:
            return

        self._log.debug('Signal: %s', signal_name)
        for func in list(callbacks):
            func(self, signal_name, *args, **kwargs)


class LogAdapter(LoggerAdapter):

    def set_context(self, context: str) -> None:
        self.extra['context'] = context

    def process(self, msg: Any, kwargs: Any) -> tuple[str, Any]:
        return '(%s) %s' % (self.extra['context'], msg), kwargs
