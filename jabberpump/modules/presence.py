# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import TYPE_CHECKING

from jabberpump.builder import Presence
from jabberpump.exceptions import NodeProcessed
from jabberpump.modules.base import BaseModule
from jabberpump.structs import PresenceOptions
from jabberpump.structs import StanzaHandler
from jabberpump import types

if TYPE_CHECKING:
    from jabberpump.client import Client


class BasePresence(BaseModule):
    def __init__(self, client: Client) -> None:
        BaseModule.__init__(self, client)

        self.handlers = [
            StanzaHandler(name="presence", callback=self._on_available, typ="available"),
            StanzaHandler(name="presence", callback=self._on_subscribe, typ="subscribe"),
            StanzaHandler(
                name="presence", callback=self._on_unsubscribe, typ="unsubscribe"
            ),
            StanzaHandler(
                name="presence", callback=self._on_subscribed, typ="subscribed"
            ),
            StanzaHandler(
                name="presence", callback=self._on_unsubscribed, typ="unsubscribed"
            ),
        ]

    def send_presence(self, options: PresenceOptions | None = None) -> types.Presence:
        if options is None:
            options = PresenceOptions()

        presence = Presence(
            to=options.to,
            type=options.type,
            priority=options.priority,
            show=options.show,
            status=options.status,
            signed=options.signature,
        )
        self._client.send(presence, ignore_activity=options.ignore_activity)
        return presence

    def probe(self, jid: str) -> types.Presence:
        return self.send_presence(PresenceOptions(to=jid, type="probe"))

    def subscription(self, jid: str, type_: str) -> types.Presence:
        return self.send_presence(PresenceOptions(to=jid, type=type_))

    def _reply(self, stanza: types.Presence, type_: str | None) -> None:
        self._client.send(stanza.make_reply(type_), ignore_activity=True)

    def _on_available(self, _session_id: str, stanza: types.Presence) -> None:
        self._reply(stanza, None)
        raise NodeProcessed

    def _on_subscribe(self, _session_id: str, stanza: types.Presence) -> None:
        self._log.info("Accept subscription request from %s", stanza.get("from"))
        self._reply(stanza, "subscribed")
        self._reply(stanza, "subscribe")
        raise NodeProcessed

    def _on_unsubscribe(self, _session_id: str, stanza: types.Presence) -> None:
        self._reply(stanza, "unsubscribed")
        raise NodeProcessed

    def _on_subscribed(self, _session_id: str, stanza: types.Presence) -> None:
        self._reply(stanza, "subscribed")
        raise NodeProcessed

    def _on_unsubscribed(self, _session_id: str, stanza: types.Presence) -> None:
        self._reply(stanza, "unsubscribed")
        raise NodeProcessed
