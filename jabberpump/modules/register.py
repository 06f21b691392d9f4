# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import Any
from typing import TYPE_CHECKING
from typing import Union

from jabberpump.builder import Iq
from jabberpump.modules.base import BaseModule
from jabberpump.modules.dataforms import extract_forms
from jabberpump.modules.dataforms import make_submit_form
from jabberpump.modules.oob import extract_oobs
from jabberpump.modules.util import get_result_code
from jabberpump.modules.util import process_error
from jabberpump.namespaces import Namespace
from jabberpump.structs import RegisterInfo
from jabberpump.structs import RequestOptions

if TYPE_CHECKING:
    from jabberpump.client import Client


class Register(BaseModule):
    """
    In-band registration, jabber:iq:register (XEP-0077)
    """

    def __init__(self, client: Client) -> None:
        BaseModule.__init__(self, client)

    def request(
        self, to: str | None = None, options: RequestOptions | None = None
    ) -> Union[str, RegisterInfo, None]:

        if options is None:
            options = RequestOptions()

        iq = Iq(to=to, type="get", query_ns=Namespace.REGISTER)
        response = self._client.send_request(iq, options.mode, options.timeout)
        if not options.mode.is_block or response is None:
            return response

        if process_error(self._client, response):
            return None

        query = response.get_query()
        if query is None:
            return RegisterInfo()

        return RegisterInfo(
            fields=self._client.namespaces.get_fields(query),
            form=extract_forms(query.get_x(Namespace.DATA)),
            oob=extract_oobs(query.get_x(Namespace.OOB)),
        )

    def send(
        self, to: str | None = None, timeout: float | None = None, **fields: Any
    ) -> tuple[str, str] | None:

        iq = Iq(to=to or None, type="set", query_ns=Namespace.REGISTER)
        self._client.namespaces.set_fields(iq.get_query(), **fields)
        response = self._client.send_and_receive_with_id(iq, timeout)
        return get_result_code(self._client, response)

    def send_data(
        self, to: str | None = None, timeout: float | None = None, **fields: Any
    ) -> tuple[str, str] | None:

        iq = Iq(to=to or None, type="set", query_ns=Namespace.REGISTER)
        iq.get_query().append(make_submit_form(fields))
        response = self._client.send_and_receive_with_id(iq, timeout)
        return get_result_code(self._client, response)

    def unregister(
        self, to: str | None = None, timeout: float | None = None
    ) -> tuple[str, str] | None:
        return self.send(to, timeout, remove=True)
