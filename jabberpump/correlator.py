# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import Any

import itertools
import logging
import time
from collections.abc import Callable

from jabberpump.const import PendingState
from jabberpump.const import ProcessResult
from jabberpump.types import Stanza
from jabberpump.util import LogAdapter


class IDCorrelator:
    """
    Pairs outgoing requests with their replies by stanza id.

    An id is registered under the tag of the request. While it is
    registered the dispatcher hands every stanza with that tag and id to
    the correlator instead of to any handler. A waiter pumps the transport
    through ``pump`` until the reply arrived or the deadline passed.

    A timed out id stays registered so that a late reply is still taken
    and dropped. Its entry is only removed when that reply arrives.
    """

    def __init__(self,
                 pump: Callable[[float], ProcessResult],
                 prefix: str = 'jabberpump',
                 default_timeout: float = 300,
                 poll_interval: float = 1,
                 log_context: str = '') -> None:

        self._log = LogAdapter(logging.getLogger('jabberpump.correlator'),
                               {'context': log_context})
        self._pump = pump
        self._prefix = prefix
        self._default_timeout = default_timeout
        self._poll_interval = poll_interval
        self._counter = itertools.count()
        self._update_func: Callable[[], Any] | None = None

        self._registry: dict[str, set[str]] = {}
        self._states: dict[str, PendingState] = {}
        self._answers: dict[str, Stanza] = {}

    def set_update_func(self, func: Callable[[], Any] | None) -> None:
        self._update_func = func

    def unique_id(self) -> str:
        return '%s-%s' % (self._prefix, next(self._counter))

    def register_id(self, tag: str, id_: str) -> None:
        if not id_:
            raise ValueError('Can not register an empty id')

        self._log.info('Register id: %s (%s)', id_, tag)
        self._registry.setdefault(tag, set()).add(id_)
        self._states[id_] = PendingState.PENDING

    def check_id(self, tag: str, id_: str | None) -> bool:
        if not id_:
            return False
        return id_ in self._registry.get(tag, ())

    def deregister_id(self, tag: str, id_: str) -> None:
        ids = self._registry.get(tag)
        if ids is None:
            return

        ids.discard(id_)
        if not ids:
            del self._registry[tag]

    def got_id(self, id_: str, stanza: Stanza) -> None:
        self._states[id_] = PendingState.ANSWERED
        self._answers[id_] = stanza

    def received_id(self, id_: str) -> bool:
        return self._states.get(id_) == PendingState.ANSWERED

    def get_id(self, id_: str) -> Stanza | None:
        return self._answers.get(id_)

    def clean_id(self, id_: str) -> None:
        self._states.pop(id_, None)
        self._answers.pop(id_, None)

    def timeout_id(self, id_: str) -> None:
        if id_ not in self._states:
            return
        self._states[id_] = PendingState.TIMED_OUT
        self._answers.pop(id_, None)

    def timed_out_id(self, id_: str) -> bool:
        return self._states.get(id_) == PendingState.TIMED_OUT

    def get_state(self, id_: str) -> PendingState | None:
        return self._states.get(id_)

    def is_pending(self, id_: str) -> bool:
        return self._states.get(id_) == PendingState.PENDING

    def resolve(self, tag: str, id_: str, stanza: Stanza) -> None:
        self.deregister_id(tag, id_)
        if self.timed_out_id(id_):
            self._log.info('Drop late answer for id: %s', id_)
            self.clean_id(id_)
            return

        self._log.info('Got answer for id: %s', id_)
        self.got_id(id_, stanza)

    def wait_for_id(self,
                    id_: str,
                    timeout: float | None = None) -> Stanza | None:

        if timeout is None:
            timeout = self._default_timeout

        self._log.info('Wait for id: %s, timeout: %ss', id_, timeout)
        deadline = time.monotonic() + timeout
        while (not self.received_id(id_) and
               time.monotonic() <= deadline):

            if self._pump(self._poll_interval) == ProcessResult.FATAL:
                self._log.warning('Stream ended while waiting for id: %s', id_)
                self.timeout_id(id_)
                return None

            if self._update_func is not None:
                self._update_func()

        if not self.received_id(id_):
            self._log.info('Timeout reached for id: %s', id_)
            self.timeout_id(id_)
            return None

        stanza = self.get_id(id_)
        self.clean_id(id_)
        return stanza
