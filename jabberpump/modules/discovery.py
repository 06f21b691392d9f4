# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import TYPE_CHECKING
from typing import Union

from jabberpump.builder import Iq
from jabberpump.const import RequestMode
from jabberpump.jid import JID
from jabberpump.modules.base import BaseModule
from jabberpump.modules.util import process_error
from jabberpump.namespaces import Namespace
from jabberpump.structs import AgentInfo
from jabberpump.structs import BrowseItem
from jabberpump.structs import DiscoIdentity
from jabberpump.structs import DiscoInfo
from jabberpump.structs import RequestOptions
from jabberpump import types

if TYPE_CHECKING:
    from jabberpump.client import Client


DiscoItemsT = dict[str, dict[str, Union[str, None]]]
AgentsT = dict[str, AgentInfo]


class Discovery(BaseModule):
    def __init__(self, client: Client) -> None:
        BaseModule.__init__(self, client)

        # Last browse result per jid
        self._browse_db: dict[str, BrowseItem] = {}

    def _request(
        self, iq: types.Iq, options: RequestOptions | None
    ) -> Union[str, types.Base, None]:
        """
        Send the request in the given mode. In block mode the payload of the
        reply is returned, or None on timeout or error.
        """
        if options is None:
            options = RequestOptions()

        response = self._client.send_request(iq, options.mode, options.timeout)
        if not options.mode.is_block or response is None:
            return response

        if process_error(self._client, response):
            return None

        return response.get_query()

    def browse(
        self, jid: str, options: RequestOptions | None = None
    ) -> Union[str, BrowseItem, None]:

        iq = Iq(to=jid, type="get", query_ns=Namespace.BROWSE)
        query = self._request(iq, options)
        if query is None or isinstance(query, str):
            return query
        return parse_browse(query)

    def browse_db_query(
        self,
        jid: Union[str, JID],
        refresh: bool = False,
        timeout: float | None = 10,
    ) -> BrowseItem | None:
        """
        Return the cached browse result of a jid. The jid is browsed when
        nothing is cached yet or when refresh is requested. Failed requests
        are not cached.
        """
        index = str(jid)
        if refresh or index not in self._browse_db:
            options = RequestOptions(mode=RequestMode.BLOCK, timeout=timeout)
            item = self.browse(index, options)
            if not isinstance(item, BrowseItem):
                return None
            self._browse_db[index] = item
        return self._browse_db[index]

    def browse_db_delete(self, jid: Union[str, JID]) -> None:
        index = str(jid)
        if self._browse_db.pop(index, None) is not None:
            self._log.info("Delete %s from browse cache", index)

    def agents(
        self, jid: str, options: RequestOptions | None = None
    ) -> Union[str, AgentsT, None]:

        iq = Iq(to=jid, type="get", query_ns=Namespace.AGENTS)
        query = self._request(iq, options)
        if query is None or isinstance(query, str):
            return query
        return parse_agents(query)

    def disco_info(
        self,
        jid: str,
        node: str | None = None,
        options: RequestOptions | None = None,
    ) -> Union[str, DiscoInfo, None]:

        iq = Iq(to=jid, type="get", query_ns=Namespace.DISCO_INFO)
        if node is not None:
            iq.get_query().set("node", node)

        query = self._request(iq, options)
        if query is None or isinstance(query, str):
            return query
        return parse_disco_info(query)

    def disco_items(
        self,
        jid: str,
        node: str | None = None,
        options: RequestOptions | None = None,
    ) -> Union[str, DiscoItemsT, None]:

        iq = Iq(to=jid, type="get", query_ns=Namespace.DISCO_ITEMS)
        if node is not None:
            iq.get_query().set("node", node)

        query = self._request(iq, options)
        if query is None or isinstance(query, str):
            return query
        return parse_disco_items(query)


def parse_browse(item: types.Base) -> BrowseItem:
    namespaces = [ns.text for ns in item.iter_tags("ns") if ns.text]

    children: list[BrowseItem] = []
    for child in item.get_children():
        if child.namespace != Namespace.BROWSE or child.localname == "ns":
            continue
        children.append(parse_browse(child))

    return BrowseItem(
        category=item.get("category") or item.localname,
        type=item.get("type"),
        name=item.get("name"),
        jid=item.get("jid"),
        namespaces=namespaces,
        children=children,
    )


def parse_agents(query: types.Base) -> AgentsT:
    agents: AgentsT = {}
    for order, agent in enumerate(query.iter_tags("agent")):
        jid = agent.get("jid")
        if not jid:
            continue

        agents[jid] = AgentInfo(
            name=agent.find_tag_text("name"),
            description=agent.find_tag_text("description"),
            transport=agent.find_tag_text("transport"),
            service=agent.find_tag_text("service"),
            register=agent.has_tag("register"),
            search=agent.has_tag("search"),
            groupchat=agent.has_tag("groupchat"),
            agents=agent.has_tag("agents"),
            order=order,
        )
    return agents


def parse_disco_info(query: types.Base) -> DiscoInfo:
    identities = [
        DiscoIdentity(
            category=identity.get("category"),
            type=identity.get("type"),
            name=identity.get("name"),
        )
        for identity in query.iter_tags("identity")
    ]

    features = {
        feature.get("var") for feature in query.iter_tags("feature") if feature.get("var")
    }
    return DiscoInfo(identities=identities, features=features)


def parse_disco_items(query: types.Base) -> DiscoItemsT:
    items: DiscoItemsT = {}
    for item in query.iter_tags("item"):
        jid = item.get("jid")
        if not jid:
            continue
        items.setdefault(jid, {})[item.get("node") or ""] = item.get("name")
    return items
