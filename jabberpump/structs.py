# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import Any
from typing import NamedTuple

from dataclasses import dataclass
from dataclasses import field

from jabberpump.const import RequestMode


class StanzaHandler(NamedTuple):
    name: str
    callback: Any
    typ: str = ""
    ns: str = ""


@dataclass
class ClientSettings:
    id_prefix: str = "jabberpump"
    default_timeout: float = 300
    poll_interval: float = 1
    install_default_handlers: bool = True
    track_presence: bool = False
    track_roster: bool = False
    legacy_priority_ordering: bool = False


class ClientInfo(NamedTuple):
    name: str = "jabberpump"
    version: str = ""
    os: str = ""


@dataclass
class RequestOptions:
    mode: RequestMode = RequestMode.BLOCK
    timeout: float | None = None


@dataclass
class PresenceOptions:
    to: str | None = None
    type: str | None = None
    show: str | None = None
    status: str | None = None
    priority: int | None = None
    signature: str | None = None
    ignore_activity: bool = False


@dataclass
class MessageOptions:
    to: str
    body: str | None = None
    subject: str | None = None
    type: str | None = None
    thread: str | None = None


class RPCResult(NamedTuple):
    status: str
    payload: Any

    @property
    def is_fault(self) -> bool:
        return self.status == "fault"


class LastActivityData(NamedTuple):
    seconds: int
    message: str | None


class TimeData(NamedTuple):
    utc: str | None
    display: str | None
    tz: str | None


class SoftwareVersionResult(NamedTuple):
    name: str | None
    version: str | None
    os: str | None


@dataclass
class RosterItem:
    jid: str
    name: str | None = None
    subscription: str | None = None
    ask: str | None = None
    groups: list[str] = field(default_factory=list)


class DiscoIdentity(NamedTuple):
    category: str | None
    type: str | None
    name: str | None = None


class DiscoInfo(NamedTuple):
    identities: list[DiscoIdentity]
    features: set[str]

    def has_feature(self, feature: str) -> bool:
        return feature in self.features


@dataclass
class BrowseItem:
    category: str
    type: str | None = None
    name: str | None = None
    jid: str | None = None
    namespaces: list[str] = field(default_factory=list)
    children: list[BrowseItem] = field(default_factory=list)


class AgentInfo(NamedTuple):
    name: str | None = None
    description: str | None = None
    transport: str | None = None
    service: str | None = None
    register: bool = False
    search: bool = False
    groupchat: bool = False
    agents: bool = False
    order: int = 0


class FormOption(NamedTuple):
    value: str | None
    label: str | None = None


@dataclass
class FormField:
    var: str
    type: str | None = None
    label: str | None = None
    desc: str | None = None
    value: str | list[str] | None = None
    options: list[FormOption] = field(default_factory=list)


class ReportedField(NamedTuple):
    var: str | None
    label: str | None


@dataclass
class FormInfo:
    instructions: str | None = None
    fields: list[FormField] = field(default_factory=list)
    reported: list[ReportedField] = field(default_factory=list)


class OOBData(NamedTuple):
    url: str | None
    desc: str | None


@dataclass
class RegisterInfo:
    fields: dict[str, Any] = field(default_factory=dict)
    form: FormInfo | None = None
    oob: OOBData | None = None


@dataclass
class SearchInfo:
    fields: dict[str, Any] = field(default_factory=dict)
    form: FormInfo | None = None
    oob: OOBData | None = None


class SearchItem(NamedTuple):
    jid: str | None
    fields: dict[str, str]
