# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import TYPE_CHECKING
from typing import Union

import time

from jabberpump.builder import Iq
from jabberpump.builder import Message
from jabberpump.const import RequestMode
from jabberpump.errors import MalformedStanzaError
from jabberpump.exceptions import NodeProcessed
from jabberpump.modules.base import BaseModule
from jabberpump.modules.util import process_error
from jabberpump.namespaces import Namespace
from jabberpump.structs import LastActivityData
from jabberpump.structs import RequestOptions
from jabberpump.structs import StanzaHandler
from jabberpump.util import get_human_time
from jabberpump.util import get_local_timestamp
from jabberpump import types

if TYPE_CHECKING:
    from jabberpump.client import Client


class LastActivity(BaseModule):
    def __init__(self, client: Client) -> None:
        BaseModule.__init__(self, client)

        self.handlers = [
            StanzaHandler(
                name="iq", callback=self._answer_request, typ="get", ns=Namespace.LAST
            ),
            StanzaHandler(
                name="iq", callback=self._on_result, typ="result", ns=Namespace.LAST
            ),
        ]

    def query(
        self, jid: str, options: RequestOptions | None = None
    ) -> Union[str, LastActivityData, None]:

        if options is None:
            options = RequestOptions(mode=RequestMode.PASSTHRU)

        response = self._client.send_request(
            _make_request(jid), options.mode, options.timeout
        )
        if not options.mode.is_block or response is None:
            return response

        if process_error(self._client, response):
            return None

        try:
            return _parse_response(self._client, response)
        except MalformedStanzaError as error:
            self._log.warning(error)
            self._client.set_error_code(str(error))
            return None

    def send_last(
        self,
        to: str,
        seconds: int,
        message: str | None = None,
        ignore_activity: bool = False,
    ) -> types.Iq:

        iq = Iq(to=to, type="result", query_ns=Namespace.LAST)
        query = iq.get_query()
        self._client.namespaces.set_fields(query, seconds=seconds, message=message)
        self._client.send(iq, ignore_activity=ignore_activity)
        return iq

    def _answer_request(self, _session_id: str, stanza: types.Iq) -> None:
        self._log.info("Request received from %s", stanza.get("from"))

        seconds = self._client.last_activity()
        iq = stanza.make_reply("result")
        self._client.namespaces.set_field(iq.get_query(), "seconds", seconds)
        self._log.info("Send last activity: %s", seconds)
        self._client.send(iq, ignore_activity=True)
        raise NodeProcessed

    def _on_result(self, session_id: str, stanza: types.Iq) -> None:
        try:
            data = _parse_response(self._client, stanza)
        except MalformedStanzaError as error:
            self._log.warning(error)
            raise NodeProcessed

        jid = stanza.get_from()
        if jid is None or jid.localpart is None:
            labels = ("Start Time", "Up time")
        elif jid.is_bare:
            labels = ("Logout Time", "Elapsed time")
        else:
            labels = ("Last activity", "Elapsed time")

        last_time = get_local_timestamp(time.time() - data.seconds)
        body = "%s: %s\n" % (labels[0], last_time)
        body += "%s: %s\n" % (labels[1], get_human_time(data.seconds))
        if data.message is not None:
            body += "Message: %s\n" % data.message

        message = Message(frm=stanza.get("from"), subject="Last Activity", body=body)
        self._client.dispatch(session_id, message)
        raise NodeProcessed


def _make_request(jid: str) -> types.Iq:
    return Iq(to=jid, type="get", query_ns=Namespace.LAST)


def _parse_response(client: Client, response: types.Iq) -> LastActivityData:
    query = response.get_query()
    if query is None or query.namespace != Namespace.LAST:
        raise MalformedStanzaError("query missing", response)

    seconds = client.namespaces.get_field(query, "seconds")
    try:
        seconds = int(seconds)
    except (TypeError, ValueError):
        raise MalformedStanzaError("seconds attribute invalid", response)

    return LastActivityData(
        seconds=seconds, message=client.namespaces.get_field(query, "message")
    )
