# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import TYPE_CHECKING

from collections.abc import Iterable

from jabberpump.builder import Iq
from jabberpump.exceptions import NodeProcessed
from jabberpump.modules.base import BaseModule
from jabberpump.modules.util import process_error
from jabberpump.namespaces import Namespace
from jabberpump.rosterdb import parse_roster
from jabberpump.structs import RosterItem
from jabberpump.structs import StanzaHandler
from jabberpump import types

if TYPE_CHECKING:
    from jabberpump.client import Client


class Roster(BaseModule):
    def __init__(self, client: Client) -> None:
        BaseModule.__init__(self, client)

        self.handlers = [
            StanzaHandler(
                name="iq",
                callback=self._process_roster_push,
                typ="set",
                ns=Namespace.ROSTER,
            ),
            StanzaHandler(
                name="iq",
                callback=self._process_roster_result,
                typ="result",
                ns=Namespace.ROSTER,
            ),
        ]

    def add(
        self,
        jid: str,
        name: str | None = None,
        groups: Iterable[str] | None = None,
    ) -> types.Iq:

        iq = _make_set({"jid": jid, "name": name}, groups)
        self._client.send(iq)
        return iq

    def remove(self, jid: str) -> types.Iq:
        iq = _make_set({"jid": jid, "subscription": "remove"})
        self._client.send(iq)
        return iq

    def request(self) -> types.Iq:
        iq = Iq(type="get", query_ns=Namespace.ROSTER)
        self._client.send(iq)
        return iq

    def get(self, timeout: float | None = None) -> dict[str, RosterItem] | None:
        iq = Iq(type="get", query_ns=Namespace.ROSTER)
        response = self._client.send_and_receive_with_id(iq, timeout)
        if response is None:
            return None

        if process_error(self._client, response):
            return None

        if self._client.settings.track_roster:
            self._client.roster_db.apply_iq(response)

        return parse_roster(response)

    def _process_roster_push(self, _session_id: str, stanza: types.Iq) -> None:
        self._log.info("Push received from %s", stanza.get("from"))
        if self._client.settings.track_roster:
            self._client.roster_db.apply_iq(stanza)

        self._client.send(stanza.make_reply("result"), ignore_activity=True)
        raise NodeProcessed

    def _process_roster_result(self, _session_id: str, stanza: types.Iq) -> None:
        if self._client.settings.track_roster:
            self._client.roster_db.apply_iq(stanza)


def _make_set(
    attrs: dict[str, str | None], groups: Iterable[str] | None = None
) -> types.Iq:

    iq = Iq(type="set", query_ns=Namespace.ROSTER)
    item = iq.get_query().add_tag("item")
    for name, value in attrs.items():
        if value is not None:
            item.set(name, value)

    for group in groups or []:
        item.add_tag("group").text = group
    return iq
