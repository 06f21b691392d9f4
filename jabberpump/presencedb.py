# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import NamedTuple
from typing import Union

import logging
from dataclasses import dataclass
from dataclasses import field

from jabberpump.const import NO_RESOURCE
from jabberpump.exceptions import InvalidJid
from jabberpump.jid import JID
from jabberpump.types import Presence
from jabberpump.util import LogAdapter


PriorityT = Union[int, str]

_TRACKED_TYPES = ('', 'available', 'unavailable')


class PresenceEntry(NamedTuple):
    resource: str
    presence: Presence


@dataclass
class _PresenceRecord:
    resources: dict[str, PriorityT] = field(default_factory=dict)
    priorities: dict[PriorityT, list[PresenceEntry]] = field(default_factory=dict)


class PresenceDB:
    """
    Keeps the last availability presence of every resource of a contact,
    bucketed by priority.

    Priorities compare as integers. With ``legacy_ordering`` they compare
    as strings, which is what very old clients did ("9" beats "10").
    """

    def __init__(self,
                 log_context: str = '',
                 legacy_ordering: bool = False) -> None:

        self._log = LogAdapter(logging.getLogger('jabberpump.presencedb'),
                               {'context': log_context})
        self._legacy_ordering = legacy_ordering
        self._records: dict[str, _PresenceRecord] = {}

    def apply(self, presence: Presence) -> Presence:
        type_ = presence.get_type() or ''
        if type_ not in _TRACKED_TYPES:
            return presence

        try:
            jid = presence.get_from()
        except InvalidJid as error:
            self._log.warning('Ignore presence with invalid from: %s', error)
            return presence

        bare = '' if jid is None else jid.bare
        resource = NO_RESOURCE
        if jid is not None and jid.resource is not None:
            resource = jid.resource

        record = self._records.get(bare)
        if record is not None:
            self._remove_resource(bare, record, resource)

        if type_ != 'unavailable':
            priority = self._get_priority(presence)
            record = self._records.setdefault(bare, _PresenceRecord())
            record.resources[resource] = priority
            bucket = record.priorities.setdefault(priority, [])
            bucket.append(PresenceEntry(resource, presence))
            self._log.info('Stored presence of %s/%s (priority %s)',
                           bare, resource, priority)

        current = self.query(bare)
        if current is None:
            return presence
        return current

    def query(self, jid: Union[str, JID]) -> Presence | None:
        record = self._records.get(_get_index(jid))
        if record is None:
            return None

        priority = max(record.priorities)
        return record.priorities[priority][0].presence

    def resources(self, jid: Union[str, JID]) -> list[str]:
        record = self._records.get(_get_index(jid))
        if record is None:
            return []

        resources: list[str] = []
        for priority in sorted(record.priorities, reverse=True):
            for entry in record.priorities[priority]:
                if entry.resource != NO_RESOURCE:
                    resources.append(entry.resource)
        return resources

    def delete(self, jid: Union[str, JID]) -> None:
        self._records.pop(_get_index(jid), None)

    def clear(self) -> None:
        self._records.clear()

    def __contains__(self, jid: Union[str, JID]) -> bool:
        return _get_index(jid) in self._records

    def _get_priority(self, presence: Presence) -> PriorityT:
        if self._legacy_ordering:
            return presence.find_tag_text('priority') or '0'
        return presence.get_priority()

    def _remove_resource(self,
                         bare: str,
                         record: _PresenceRecord,
                         resource: str) -> None:

        priority = record.resources.pop(resource, None)
        if priority is None:
            return

        bucket = record.priorities[priority]
        bucket[:] = [entry for entry in bucket if entry.resource != resource]
        if not bucket:
            del record.priorities[priority]

        if not record.resources:
            del self._records[bare]


def _get_index(jid: Union[str, JID]) -> str:
    if isinstance(jid, JID):
        return jid.bare
    try:
        return JID.from_string(jid).bare
    except InvalidJid:
        return jid.split('/', 1)[0]
