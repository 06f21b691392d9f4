# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import Any
from typing import Union

import logging

from jabberpump.jid import JID
from jabberpump.namespaces import Namespace
from jabberpump.structs import RosterItem
from jabberpump.types import Iq
from jabberpump.util import LogAdapter


def parse_roster(iq: Iq) -> dict[str, RosterItem]:
    query = iq.get_query()
    if query is None or query.namespace != Namespace.ROSTER:
        return {}

    items: dict[str, RosterItem] = {}
    for item in query.iter_tags('item'):
        jid = item.get('jid')
        if not jid:
            continue

        groups = [group.text for group in item.iter_tags('group') if group.text]
        items[jid] = RosterItem(jid=jid,
                                name=item.get('name'),
                                subscription=item.get('subscription'),
                                ask=item.get('ask'),
                                groups=groups)
    return items


class RosterDB:
    def __init__(self, log_context: str = '') -> None:
        self._log = LogAdapter(logging.getLogger('jabberpump.rosterdb'),
                               {'context': log_context})
        self._items: dict[str, RosterItem] = {}

    def apply_iq(self, iq: Iq) -> None:
        if iq.get_type() not in ('set', 'result'):
            return
        self.apply_delta(parse_roster(iq))

    def apply_delta(self, items: dict[str, RosterItem]) -> None:
        for jid, item in items.items():
            if item.subscription == 'remove':
                self.remove(jid)
            else:
                self.add(jid, item)

    def add(self, jid: Union[str, JID], item: RosterItem) -> None:
        self._log.info('Add roster item: %s', jid)
        self._items[str(jid)] = item

    def remove(self, jid: Union[str, JID]) -> None:
        if self._items.pop(str(jid), None) is not None:
            self._log.info('Remove roster item: %s', jid)

    delete = remove

    def get(self, jid: Union[str, JID], field: str) -> Any:
        item = self._items.get(str(jid))
        if item is None:
            return None
        return getattr(item, field, None)

    def get_item(self, jid: Union[str, JID]) -> RosterItem | None:
        return self._items.get(str(jid))

    def jids(self) -> list[str]:
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()

    def __contains__(self, jid: Union[str, JID]) -> bool:
        return str(jid) in self._items
