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
from jabberpump.structs import RequestOptions
from jabberpump.structs import StanzaHandler
from jabberpump.structs import TimeData
from jabberpump.util import get_legacy_utc
from jabberpump.util import get_local_timestamp
from jabberpump import types

if TYPE_CHECKING:
    from jabberpump.client import Client


class EntityTime(BaseModule):
    """
    Legacy entity time, jabber:iq:time (XEP-0090)
    """

    def __init__(self, client: Client) -> None:
        BaseModule.__init__(self, client)

        self.handlers = [
            StanzaHandler(
                name="iq", callback=self._answer_request, typ="get", ns=Namespace.TIME
            ),
            StanzaHandler(
                name="iq", callback=self._on_result, typ="result", ns=Namespace.TIME
            ),
        ]

    def query(
        self, jid: str, options: RequestOptions | None = None
    ) -> Union[str, TimeData, None]:

        if options is None:
            options = RequestOptions(mode=RequestMode.PASSTHRU)

        iq = Iq(to=jid, type="get", query_ns=Namespace.TIME)
        response = self._client.send_request(iq, options.mode, options.timeout)
        if not options.mode.is_block or response is None:
            return response

        if process_error(self._client, response):
            return None

        try:
            return self._parse_response(response)
        except MalformedStanzaError as error:
            self._log.warning(error)
            self._client.set_error_code(str(error))
            return None

    def send_time(
        self,
        to: str,
        utc: str | None = None,
        tz: str | None = None,
        display: str | None = None,
        ignore_activity: bool = False,
    ) -> types.Iq:

        iq = Iq(to=to, type="result", query_ns=Namespace.TIME)
        self._set_time(iq.get_query(), utc, tz, display)
        self._client.send(iq, ignore_activity=ignore_activity)
        return iq

    def _set_time(
        self,
        query: types.Base,
        utc: str | None = None,
        tz: str | None = None,
        display: str | None = None,
    ) -> None:

        now = time.time()
        self._client.namespaces.set_fields(
            query,
            utc=utc or get_legacy_utc(now),
            tz=tz or time.strftime("%Z", time.localtime(now)),
            display=display or get_local_timestamp(now),
        )

    def _answer_request(self, _session_id: str, stanza: types.Iq) -> None:
        self._log.info("Request received from %s", stanza.get("from"))
        iq = stanza.make_reply("result")
        self._set_time(iq.get_query())
        self._client.send(iq, ignore_activity=True)
        raise NodeProcessed

    def _on_result(self, session_id: str, stanza: types.Iq) -> None:
        try:
            data = self._parse_response(stanza)
        except MalformedStanzaError as error:
            self._log.warning(error)
            raise NodeProcessed

        body = "UTC: %s\n" % (data.utc or "")
        body += "Time: %s\n" % (data.display or "")
        body += "Timezone: %s\n" % (data.tz or "")

        message = Message(
            to=stanza.get("to"),
            frm=stanza.get("from"),
            subject="CTCP: Time",
            body=body,
        )
        self._client.dispatch(session_id, message)
        raise NodeProcessed

    def _parse_response(self, response: types.Iq) -> TimeData:
        query = response.get_query()
        if query is None or query.namespace != Namespace.TIME:
            raise MalformedStanzaError("query missing", response)

        fields = self._client.namespaces.get_fields(query)
        return TimeData(
            utc=fields.get("utc"), display=fields.get("display"), tz=fields.get("tz")
        )
