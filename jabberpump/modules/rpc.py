# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import Any
from typing import TYPE_CHECKING
from typing import Union

from collections.abc import Callable
from collections.abc import Iterable

from jabberpump.builder import Iq
from jabberpump.errors import RPCDecodeError
from jabberpump.exceptions import NodeProcessed
from jabberpump.modules.base import BaseModule
from jabberpump.modules.util import process_error
from jabberpump.namespaces import Namespace
from jabberpump.structs import RequestOptions
from jabberpump.structs import RPCResult
from jabberpump.structs import StanzaHandler
from jabberpump.xmlrpc import encode_call
from jabberpump.xmlrpc import encode_fault
from jabberpump.xmlrpc import encode_response
from jabberpump.xmlrpc import parse_call
from jabberpump.xmlrpc import parse_response
from jabberpump import types

if TYPE_CHECKING:
    from jabberpump.client import Client


# func(iq, params) -> ("ok", [values]) or ("fault", {"faultCode": .., "faultString": ..})
RPCMethodT = Callable[[types.Iq, list[Any]], tuple[str, Any]]


class RPC(BaseModule):
    """
    Jabber-RPC (XEP-0009), XML-RPC carried in jabber:iq:rpc
    """

    def __init__(self, client: Client) -> None:
        BaseModule.__init__(self, client)

        self.handlers = [
            StanzaHandler(
                name="iq", callback=self._answer_call, typ="set", ns=Namespace.RPC
            ),
        ]

        self._methods: dict[str, RPCMethodT] = {}

    def register_method(self, name: str, func: RPCMethodT) -> None:
        self._methods[name] = func

    def unregister_method(self, name: str) -> None:
        self._methods.pop(name, None)

    def set_methods(self, **methods: RPCMethodT | None) -> None:
        for name, func in methods.items():
            if func is None:
                self.unregister_method(name)
            else:
                self.register_method(name, func)

    def call(
        self,
        to: str,
        method: str,
        params: Iterable[Any] | None = None,
        options: RequestOptions | None = None,
    ) -> Union[str, RPCResult, None]:

        if options is None:
            options = RequestOptions()

        iq = Iq(to=to, type="set")
        iq.append(encode_call(method, params))

        response = self._client.send_request(iq, options.mode, options.timeout)
        if not options.mode.is_block or response is None:
            return response

        if process_error(self._client, response):
            return None

        try:
            return parse_response(response)
        except RPCDecodeError as error:
            self._log.warning("Invalid rpc response: %s", error)
            self._client.set_error_code(str(error))
            return None

    def respond(
        self,
        to: str,
        params: Iterable[Any] | None = None,
        fault: dict[str, Any] | None = None,
        id_: str | None = None,
    ) -> types.Iq:

        iq = Iq(to=to, type="result", id=id_)
        iq.append(encode_response(params=params, fault=fault))
        self._client.send(iq)
        return iq

    def _answer_call(self, _session_id: str, stanza: types.Iq) -> None:
        reply = stanza.make_reply("result")
        reply.set_query(self._get_response(stanza))
        self._client.send(reply, ignore_activity=True)
        raise NodeProcessed

    def _get_response(self, stanza: types.Iq) -> types.Base:
        query = stanza.get_query()
        call = None if query is None else query.find_tag("methodCall")
        if call is None:
            return encode_fault(400, "Missing methodCall.")

        name = call.find_tag_text("methodName")
        if not name:
            return encode_fault(400, "Missing methodName.")

        func = self._methods.get(name)
        if func is None:
            self._log.info("Unknown method called: %s", name)
            return encode_fault(404, "methodName %s not defined." % name)

        try:
            _name, params = parse_call(stanza)
        except RPCDecodeError as error:
            self._log.warning(error)
            return encode_fault(400, str(error))

        self._log.info("Call method: %s", name)
        try:
            status, data = func(stanza, params)
        except Exception as error:
            self._log.exception("Method %s failed", name)
            return encode_fault(500, "methodName %s failed: %s" % (name, error))

        if status != "ok":
            data = data or {}
            return encode_fault(data.get("faultCode", 0),
                                data.get("faultString", ""))
        return encode_response(params=data)
