# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import Any
from typing import TYPE_CHECKING
from typing import Union

import logging
from collections.abc import Callable

from lxml import etree

from jabberpump.builder import parse_stanza
from jabberpump.exceptions import NodeProcessed
from jabberpump.namespaces import Namespace
from jabberpump.structs import StanzaHandler
from jabberpump.types import Base
from jabberpump.types import HandlerT
from jabberpump.types import Iq
from jabberpump.types import Message
from jabberpump.types import Presence
from jabberpump.types import RawStanzaT
from jabberpump.types import Stanza
from jabberpump.util import LogAdapter

if TYPE_CHECKING:
    from jabberpump.client import Client


# Hooks share the tag handler namespace of set_callbacks()
HOOK_NAMES = ("update", "send", "receive", "startwait", "endwait")

_XPATH_NAMESPACES = {"client": Namespace.CLIENT}

IqHandlersT = Union[HandlerT, dict[str, HandlerT]]


class _XPathEntry:
    def __init__(self, expression: str, namespaces: dict[str, str]) -> None:
        self.expression = expression
        self.xpath = etree.XPath(expression, namespaces=namespaces)

    def matches(self, stanza: Base) -> bool:
        return bool(self.xpath(stanza))


class CallbackRegistry:
    """
    Tag, iq, presence, message and XPath handler maps of one client.
    """

    def __init__(self) -> None:
        self._tag_handlers: dict[str, HandlerT] = {}
        self._hooks: dict[str, Callable[..., Any]] = {}
        self._iq_handlers: dict[str, IqHandlersT] = {}
        self._presence_handlers: dict[str, HandlerT] = {}
        self._message_handlers: dict[str, HandlerT] = {}
        self._xpath_entries: dict[str, _XPathEntry] = {}
        # Registration order across all expressions
        self._xpath_handlers: list[tuple[_XPathEntry, HandlerT]] = []

    def set_callbacks(self, **handlers: HandlerT | None) -> None:
        for name, func in handlers.items():
            target = self._hooks if name in HOOK_NAMES else self._tag_handlers
            if func is None:
                target.pop(name, None)
            else:
                target[name] = func

    def get_tag_handler(self, tag: str) -> HandlerT | None:
        return self._tag_handlers.get(tag)

    def has_tag_handler(self, tag: str) -> bool:
        return tag in self._tag_handlers

    def get_hook(self, name: str) -> Callable[..., Any] | None:
        return self._hooks.get(name)

    def set_iq_callbacks(self,
                         namespace: str,
                         handlers: HandlerT | dict[str, HandlerT | None] | None) -> None:

        if handlers is None:
            self._iq_handlers.pop(namespace, None)
            return

        if callable(handlers):
            self._iq_handlers[namespace] = handlers
            return

        current = self._iq_handlers.get(namespace)
        if not isinstance(current, dict):
            current = {}

        for type_, func in handlers.items():
            if func is None:
                current.pop(type_, None)
            else:
                current[type_] = func

        if current:
            self._iq_handlers[namespace] = current
        else:
            self._iq_handlers.pop(namespace, None)

    def get_iq_handler(self, namespace: str, type_: str) -> HandlerT | None:
        handlers = self._iq_handlers.get(namespace)
        if handlers is None:
            return None

        if callable(handlers):
            return handlers
        return handlers.get(type_)

    def set_presence_callbacks(self, **handlers: HandlerT | None) -> None:
        _update(self._presence_handlers, handlers)

    def get_presence_handler(self, type_: str) -> HandlerT | None:
        return self._presence_handlers.get(type_)

    def set_message_callbacks(self, **handlers: HandlerT | None) -> None:
        _update(self._message_handlers, handlers)

    def get_message_handler(self, type_: str) -> HandlerT | None:
        return self._message_handlers.get(type_)

    def set_xpath_callbacks(self,
                            expression: str,
                            func: HandlerT,
                            namespaces: dict[str, str] | None = None) -> None:

        entry = self._xpath_entries.get(expression)
        if entry is None:
            entry = _XPathEntry(expression, namespaces or _XPATH_NAMESPACES)
            self._xpath_entries[expression] = entry

        if (entry, func) not in self._xpath_handlers:
            self._xpath_handlers.append((entry, func))

    def remove_xpath_callbacks(self, expression: str, func: HandlerT) -> None:
        entry = self._xpath_entries.get(expression)
        if entry is None:
            return

        if (entry, func) in self._xpath_handlers:
            self._xpath_handlers.remove((entry, func))

        if not any(e is entry for e, _func in self._xpath_handlers):
            del self._xpath_entries[expression]

    def has_xpath_handlers(self) -> bool:
        return bool(self._xpath_handlers)

    def get_xpath_handlers(self, stanza: Base) -> list[HandlerT]:
        matches: dict[str, bool] = {}
        handlers: list[HandlerT] = []
        for entry, func in list(self._xpath_handlers):
            if entry.expression not in matches:
                matches[entry.expression] = entry.matches(stanza)
            if matches[entry.expression]:
                handlers.append(func)
        return handlers


def _update(target: dict[str, HandlerT], handlers: dict[str, HandlerT | None]) -> None:
    for type_, func in handlers.items():
        if func is None:
            target.pop(type_, None)
        else:
            target[type_] = func


class StanzaDispatcher:
    """
    Routes every inbound stanza of a client.

    A stanza is only built when someone wants it: a tag handler, any XPath
    handler or a pending request id. Replies to pending requests are taken
    by the correlator and never reach a handler.
    """

    def __init__(self, client: Client) -> None:
        self._client = client
        self._log = LogAdapter(logging.getLogger('jabberpump.dispatcher'),
                               {'context': client.log_context})
        self.registry = CallbackRegistry()

    def install_default_handlers(self, handlers: list[StanzaHandler]) -> None:
        self.registry.set_callbacks(message=self.callback_message,
                                    presence=self.callback_presence,
                                    iq=self.callback_iq)

        for handler in handlers:
            self.register_handler(handler)

    def register_handler(self, handler: StanzaHandler) -> None:
        if handler.name == 'iq':
            self.registry.set_iq_callbacks(handler.ns,
                                           {handler.typ: handler.callback})
        elif handler.name == 'presence':
            self.registry.set_presence_callbacks(
                **{handler.typ or 'available': handler.callback})
        elif handler.name == 'message':
            self.registry.set_message_callbacks(
                **{handler.typ or 'normal': handler.callback})
        else:
            self.registry.set_callbacks(**{handler.name: handler.callback})

    def dispatch(self, session_id: str, stanza: RawStanzaT) -> None:
        receive_hook = self.registry.get_hook('receive')
        if receive_hook is not None:
            try:
                text = _to_text(stanza)
            except UnicodeDecodeError as error:
                self._log.warning('Unable to decode stanza: %s', error)
                return
            receive_hook(session_id, text)

        try:
            element = _parse(stanza)
        except (etree.XMLSyntaxError, ValueError) as error:
            self._log.warning('Unable to parse stanza: %s', error)
            return

        tag = etree.QName(element).localname
        id_ = element.get('id') or ''
        correlated = self._client.correlator.check_id(tag, id_)
        if not (correlated or
                self.registry.has_tag_handler(tag) or
                self.registry.has_xpath_handlers()):
            self._log.info('No handler wants stanza: %s (id: %s)', tag, id_)
            return

        try:
            stanza = _normalize(element)
        except (etree.XMLSyntaxError, ValueError) as error:
            self._log.warning('Unable to build stanza: %s', error)
            return

        if not isinstance(stanza, Stanza):
            self._log.warning('Drop unknown stanza: %s', stanza.tag)
            return

        self._log.debug('Received: %s', stanza)
        self._client.notify('stanza-received', stanza)

        if correlated:
            self._client.correlator.resolve(tag, id_, stanza)
            return

        for func in self.registry.get_xpath_handlers(stanza):
            self._run_handler(func, session_id, stanza)

        handler = self.registry.get_tag_handler(tag)
        if handler is None:
            self._log.info('No tag handler for: %s', tag)
            return

        self._run_handler(handler, session_id, stanza)

    def _run_handler(self,
                     func: HandlerT,
                     session_id: str,
                     stanza: Stanza) -> None:
        try:
            func(session_id, stanza)
        except NodeProcessed:
            pass
        except Exception:
            self._log.exception('Handler error for stanza: %s', stanza.localname)

    def callback_message(self, session_id: str, stanza: Message) -> None:
        type_ = stanza.get_type() or 'normal'
        handler = self.registry.get_message_handler(type_)
        if handler is None:
            self._log.info('No message handler for type: %s', type_)
            return
        handler(session_id, stanza)

    def callback_presence(self, session_id: str, stanza: Presence) -> None:
        if self._client.settings.track_presence:
            self._client.presence_db.apply(stanza)

        type_ = stanza.get_type() or 'available'
        handler = self.registry.get_presence_handler(type_)
        if handler is None:
            self._log.info('No presence handler for type: %s', type_)
            return
        handler(session_id, stanza)

    def callback_iq(self, session_id: str, stanza: Iq) -> None:
        query = stanza.get_query()
        if query is None:
            self._log.info('Drop iq without payload: %s', stanza.get_id())
            return

        type_ = stanza.get_type() or ''
        handler = self.registry.get_iq_handler(query.namespace or '', type_)
        if handler is None:
            self._log.info('No iq handler for %s %s', query.namespace, type_)
            return
        handler(session_id, stanza)


def _to_text(stanza: RawStanzaT) -> str:
    if isinstance(stanza, bytes):
        return stanza.decode()
    if isinstance(stanza, str):
        return stanza
    return etree.tostring(stanza, encoding=str)


def _parse(stanza: RawStanzaT) -> Base:
    if isinstance(stanza, (str, bytes)):
        return parse_stanza(stanza)
    return stanza


def _normalize(element: Base) -> Base:
    if isinstance(element, Stanza) and element.getparent() is None:
        return element
    return parse_stanza(etree.tostring(element, encoding=str))
