# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import Any
from typing import Union

import logging
import time

from jabberpump.builder import parse_stanza
from jabberpump.const import ProcessResult
from jabberpump.const import RequestMode
from jabberpump.correlator import IDCorrelator
from jabberpump.dispatcher import StanzaDispatcher
from jabberpump.modules.auth import Auth
from jabberpump.modules.discovery import Discovery
from jabberpump.modules.entity_time import EntityTime
from jabberpump.modules.feature_neg import FeatureNegotiation
from jabberpump.modules.last_activity import LastActivity
from jabberpump.modules.message import BaseMessage
from jabberpump.modules.muc import MUC
from jabberpump.modules.presence import BasePresence
from jabberpump.modules.register import Register
from jabberpump.modules.roster import Roster
from jabberpump.modules.rpc import RPC
from jabberpump.modules.search import Search
from jabberpump.modules.software_version import SoftwareVersion
from jabberpump.namespaces import NamespaceRegistry
from jabberpump.presencedb import PresenceDB
from jabberpump.rosterdb import RosterDB
from jabberpump.structs import ClientInfo
from jabberpump.structs import ClientSettings
from jabberpump.structs import StanzaHandler
from jabberpump.transport import Transport
from jabberpump.types import HandlerT
from jabberpump.types import RawStanzaT
from jabberpump.types import Stanza
from jabberpump.util import LogAdapter
from jabberpump.util import Observable


log = logging.getLogger('jabberpump.client')


_MODULES = [
    Auth,
    BaseMessage,
    BasePresence,
    Discovery,
    EntityTime,
    FeatureNegotiation,
    LastActivity,
    MUC,
    Register,
    Roster,
    RPC,
    Search,
    SoftwareVersion,
]

_HOOK_SIGNALS = {
    'update': 'update',
    'send': 'stanza-sent',
    'startwait': 'start-wait',
    'endwait': 'end-wait',
}


class Client(Observable):
    """
    One session on top of a transport.

    Signals: update, start-wait, end-wait, stanza-sent, stanza-received,
    stream-end
    """

    def __init__(self,
                 transport: Transport,
                 session_id: str = '',
                 log_context: str | None = None,
                 settings: ClientSettings | None = None,
                 namespaces: NamespaceRegistry | None = None) -> None:

        if log_context is None:
            log_context = str(id(self))
        self._log_context = log_context
        self._log = LogAdapter(log, {'context': log_context})
        Observable.__init__(self, self._log)

        self._transport = transport
        self._session_id = session_id
        self._settings = settings or ClientSettings()
        self._namespaces = namespaces or NamespaceRegistry.with_defaults()
        self._info = ClientInfo()
        self._error_code = ''

        self._correlator = IDCorrelator(self.process,
                                        prefix=self._settings.id_prefix,
                                        default_timeout=self._settings.default_timeout,
                                        poll_interval=self._settings.poll_interval,
                                        log_context=log_context)
        self._correlator.set_update_func(self._on_wait_update)

        self._presence_db = PresenceDB(
            log_context=log_context,
            legacy_ordering=self._settings.legacy_priority_ordering)
        self._roster_db = RosterDB(log_context=log_context)

        self._dispatcher = StanzaDispatcher(self)
        self._modules: dict[str, Any] = {}
        self._register_modules()

        self._transport.set_dispatch_callback(self.dispatch)

        if self._settings.install_default_handlers:
            self._dispatcher.install_default_handlers(self._get_module_handlers())

    def _register_modules(self) -> None:
        for module_class in _MODULES:
            self._modules[module_class.__name__] = module_class(self)

    def _get_module_handlers(self) -> list[StanzaHandler]:
        handlers: list[StanzaHandler] = []
        for module in self._modules.values():
            handlers.extend(module.handlers)
        return handlers

    def get_module(self, name: str) -> Any:
        return self._modules[name]

    @property
    def log_context(self) -> str:
        return self._log_context

    @property
    def session_id(self) -> str:
        return self._session_id

    @session_id.setter
    def session_id(self, session_id: str) -> None:
        self._session_id = session_id

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    @property
    def namespaces(self) -> NamespaceRegistry:
        return self._namespaces

    @property
    def correlator(self) -> IDCorrelator:
        return self._correlator

    @property
    def presence_db(self) -> PresenceDB:
        return self._presence_db

    @property
    def roster_db(self) -> RosterDB:
        return self._roster_db

    @property
    def info(self) -> ClientInfo:
        return self._info

    def set_info(self, name: str, version: str, os: str = '') -> None:
        self._info = ClientInfo(name, version, os)

    def get_error_code(self) -> str:
        return self._error_code

    def set_error_code(self, error_code: str) -> None:
        self._error_code = error_code

    def set_callbacks(self, **handlers: HandlerT | None) -> None:
        self._dispatcher.registry.set_callbacks(**handlers)

    def set_iq_callbacks(self, namespace: str, handlers: Any) -> None:
        self._dispatcher.registry.set_iq_callbacks(namespace, handlers)

    def set_presence_callbacks(self, **handlers: HandlerT | None) -> None:
        self._dispatcher.registry.set_presence_callbacks(**handlers)

    def set_message_callbacks(self, **handlers: HandlerT | None) -> None:
        self._dispatcher.registry.set_message_callbacks(**handlers)

    def set_xpath_callbacks(self,
                            expression: str,
                            func: HandlerT,
                            namespaces: dict[str, str] | None = None) -> None:
        self._dispatcher.registry.set_xpath_callbacks(expression, func, namespaces)

    def remove_xpath_callbacks(self, expression: str, func: HandlerT) -> None:
        self._dispatcher.registry.remove_xpath_callbacks(expression, func)

    def _run_hook(self, name: str, *args: Any) -> None:
        hook = self._dispatcher.registry.get_hook(name)
        if hook is not None:
            hook(*args)
        self.notify(_HOOK_SIGNALS[name], *args)

    def _on_wait_update(self) -> None:
        self._run_hook('update')

    def dispatch(self, session_id: str, stanza: RawStanzaT) -> None:
        self._dispatcher.dispatch(session_id, stanza)

    def process(self, timeout: float = 0) -> ProcessResult:
        result = self._transport.process(timeout)
        if result == ProcessResult.FATAL:
            self._log.warning('Transport reported end of stream')
            self.notify('stream-end')
        return result

    def last_activity(self) -> int:
        return int(time.time() - self._transport.last_activity(self._session_id))

    def send(self,
             stanza: Union[Stanza, str],
             ignore_activity: bool = False) -> None:

        if isinstance(stanza, str):
            data = stanza
        else:
            data = stanza.to_xml()

        self._log.debug('Send: %s', data)
        self._run_hook('send', self._session_id, data)
        self._transport.ignore_activity(self._session_id, ignore_activity)
        try:
            self._transport.send(self._session_id, data)
        finally:
            self._transport.ignore_activity(self._session_id, False)

    def send_with_id(self, stanza: Union[Stanza, str, bytes]) -> str:
        if isinstance(stanza, (str, bytes)):
            stanza = parse_stanza(stanza)

        id_ = self._correlator.unique_id()
        stanza.set('id', id_)
        self._correlator.register_id(stanza.localname, id_)
        self.send(stanza)
        return id_

    def wait_for_id(self,
                    id_: str,
                    timeout: float | None = None) -> Stanza | None:
        return self._correlator.wait_for_id(id_, timeout)

    def send_and_receive_with_id(self,
                                 stanza: Union[Stanza, str, bytes],
                                 timeout: float | None = None) -> Stanza | None:

        self._run_hook('startwait')
        try:
            id_ = self.send_with_id(stanza)
            return self.wait_for_id(id_, timeout)
        finally:
            self._run_hook('endwait')

    def send_request(self,
                     stanza: Stanza,
                     mode: RequestMode = RequestMode.BLOCK,
                     timeout: float | None = None) -> Union[str, Stanza, None]:

        if mode == RequestMode.PASSTHRU:
            id_ = self._correlator.unique_id()
            stanza.set_id(id_)
            self.send(stanza)
            return id_

        if mode == RequestMode.NONBLOCK:
            return self.send_with_id(stanza)

        return self.send_and_receive_with_id(stanza, timeout)
