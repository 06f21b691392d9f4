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
from jabberpump.modules.util import process_error
from jabberpump.namespaces import Namespace
from jabberpump.structs import RequestOptions
from jabberpump.structs import SearchInfo
from jabberpump.structs import SearchItem
from jabberpump import types

if TYPE_CHECKING:
    from jabberpump.client import Client


class Search(BaseModule):
    """
    Legacy directory search, jabber:iq:search (XEP-0055)

    Results come back as an iq result which is not correlated, bind a
    handler for jabber:iq:search results and use parse_items().
    """

    def __init__(self, client: Client) -> None:
        BaseModule.__init__(self, client)

    def request(
        self, to: str | None = None, options: RequestOptions | None = None
    ) -> Union[str, SearchInfo, None]:

        if options is None:
            options = RequestOptions()

        iq = Iq(to=to, type="get", query_ns=Namespace.SEARCH)
        response = self._client.send_request(iq, options.mode, options.timeout)
        if not options.mode.is_block or response is None:
            return response

        if process_error(self._client, response):
            return None

        query = response.get_query()
        if query is None:
            return SearchInfo()

        fields = self._client.namespaces.get_fields(query)
        fields.pop("item", None)
        return SearchInfo(
            fields=fields,
            form=extract_forms(query.get_x(Namespace.DATA)),
            oob=extract_oobs(query.get_x(Namespace.OOB)),
        )

    def send(self, to: str | None = None, **fields: Any) -> types.Iq:
        iq = Iq(to=to or None, type="set", query_ns=Namespace.SEARCH)
        self._client.namespaces.set_fields(iq.get_query(), **fields)
        self._client.send(iq)
        return iq

    def send_data(self, to: str | None = None, **fields: Any) -> types.Iq:
        iq = Iq(to=to or None, type="set", query_ns=Namespace.SEARCH)
        iq.get_query().append(make_submit_form(fields))
        self._client.send(iq)
        return iq


def parse_items(stanza: types.Iq) -> list[SearchItem]:
    query = stanza.get_query()
    if query is None or query.namespace != Namespace.SEARCH:
        return []

    items: list[SearchItem] = []
    for item in query.iter_tags("item"):
        fields = {child.localname: child.text or "" for child in item.get_children()}
        items.append(SearchItem(jid=item.get("jid"), fields=fields))
    return items
