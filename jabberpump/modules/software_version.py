# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import TYPE_CHECKING
from typing import Union

from jabberpump.builder import Iq
from jabberpump.builder import Message
from jabberpump.const import RequestMode
from jabberpump.errors import MalformedStanzaError
from jabberpump.exceptions import NodeProcessed
from jabberpump.modules.base import BaseModule
from jabberpump.modules.util import process_error
from jabberpump.namespaces import Namespace
from jabberpump.structs import RequestOptions
from jabberpump.structs import SoftwareVersionResult
from jabberpump.structs import StanzaHandler
from jabberpump import types

if TYPE_CHECKING:
    from jabberpump.client import Client


class SoftwareVersion(BaseModule):
    def __init__(self, client: Client) -> None:
        BaseModule.__init__(self, client)

        self.handlers = [
            StanzaHandler(
                name="iq",
                callback=self._answer_request,
                typ="get",
                ns=Namespace.VERSION,
            ),
            StanzaHandler(
                name="iq",
                callback=self._on_result,
                typ="result",
                ns=Namespace.VERSION,
            ),
        ]

    def query(
        self, jid: str, options: RequestOptions | None = None
    ) -> Union[str, SoftwareVersionResult, None]:

        if options is None:
            options = RequestOptions(mode=RequestMode.PASSTHRU)

        iq = Iq(to=jid, type="get", query_ns=Namespace.VERSION)
        response = self._client.send_request(iq, options.mode, options.timeout)
        if not options.mode.is_block or response is None:
            return response

        if process_error(self._client, response):
            return None

        try:
            return _parse_info(self._client, response)
        except MalformedStanzaError as error:
            self._log.warning(error)
            self._client.set_error_code(str(error))
            return None

    def send_version(
        self,
        to: str,
        name: str,
        version: str,
        os: str | None = None,
        ignore_activity: bool = False,
    ) -> types.Iq:

        iq = Iq(to=to, type="result", query_ns=Namespace.VERSION)
        self._client.namespaces.set_fields(
            iq.get_query(), name=name, version=version, os=os
        )
        self._client.send(iq, ignore_activity=ignore_activity)
        return iq

    def _answer_request(self, _session_id: str, stanza: types.Iq) -> None:
        self._log.info("Request received from %s", stanza.get("from"))

        info = self._client.info
        iq = stanza.make_reply("result")
        self._client.namespaces.set_fields(
            iq.get_query(), name=info.name, version=info.version, os=info.os
        )
        self._log.info("Send software version: %s %s %s", *info)
        self._client.send(iq, ignore_activity=True)
        raise NodeProcessed

    def _on_result(self, session_id: str, stanza: types.Iq) -> None:
        try:
            result = _parse_info(self._client, stanza)
        except MalformedStanzaError as error:
            self._log.warning(error)
            raise NodeProcessed

        body = "Program: %s\n" % (result.name or "")
        body += "Version: %s\n" % (result.version or "")
        body += "OS: %s\n" % (result.os or "")

        message = Message(
            to=stanza.get("to"),
            frm=stanza.get("from"),
            subject="CTCP: Version",
            body=body,
        )
        self._client.dispatch(session_id, message)
        raise NodeProcessed


def _parse_info(client: Client, stanza: types.Iq) -> SoftwareVersionResult:
    query = stanza.get_query()
    if query is None or query.namespace != Namespace.VERSION:
        raise MalformedStanzaError("query missing", stanza)

    fields = client.namespaces.get_fields(query)
    if "name" not in fields:
        raise MalformedStanzaError("name node missing", stanza)

    return SoftwareVersionResult(
        name=fields["name"], version=fields.get("version"), os=fields.get("os")
    )
