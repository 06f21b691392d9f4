# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import Any
from typing import TYPE_CHECKING

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from dataclasses import field
from enum import Enum

if TYPE_CHECKING:
    from jabberpump.elements import Base


log = logging.getLogger("jabberpump.namespaces")


@dataclass(frozen=True)
class _Namespaces:
    AGENTS: str = "jabber:iq:agents"
    AUTH: str = "jabber:iq:auth"
    BROWSE: str = "jabber:iq:browse"
    CLIENT: str = "jabber:client"
    DATA: str = "jabber:x:data"
    DELAY: str = "jabber:x:delay"
    DISCO_INFO: str = "http://jabber.org/protocol/disco#info"
    DISCO_ITEMS: str = "http://jabber.org/protocol/disco#items"
    FEATURE_NEG: str = "http://jabber.org/protocol/feature-neg"
    IDENT: str = "jabber:x:ident"
    LAST: str = "jabber:iq:last"
    MUC: str = "http://jabber.org/protocol/muc"
    OOB: str = "jabber:x:oob"
    REGISTER: str = "jabber:iq:register"
    ROSTER: str = "jabber:iq:roster"
    RPC: str = "jabber:iq:rpc"
    SEARCH: str = "jabber:iq:search"
    SIGNED: str = "jabber:x:signed"
    STANZAS: str = "urn:ietf:params:xml:ns:xmpp-stanzas"
    STREAMS: str = "http://etherx.jabber.org/streams"
    TIME: str = "jabber:iq:time"
    VERSION: str = "jabber:iq:version"
    XML: str = "http://www.w3.org/XML/1998/namespace"


Namespace = _Namespaces()


class FieldKind(Enum):
    ATTRIBUTE = "attribute"
    TEXT = "text"
    CHILD_TEXT = "child-text"
    REPEATED = "repeated"
    FLAG = "flag"


@dataclass(frozen=True)
class FieldRule:
    """
    Describes where a named field lives inside a payload element.

    ``path`` is the attribute name or the child tag; it defaults to the
    field name. Children are looked up in the namespace of the payload.
    """

    name: str
    kind: FieldKind
    path: str | None = None

    @property
    def target(self) -> str:
        return self.path or self.name


@dataclass
class NamespaceSchema:
    xmlns: str
    fields: dict[str, FieldRule] = field(default_factory=dict)


def _child_text(*names: str) -> list[FieldRule]:
    return [FieldRule(name, FieldKind.CHILD_TEXT) for name in names]


_REGISTER_FIELDS = (
    "instructions",
    "username",
    "nick",
    "password",
    "name",
    "first",
    "last",
    "email",
    "address",
    "city",
    "state",
    "zip",
    "phone",
    "url",
    "date",
    "misc",
    "text",
    "key",
)


_DEFAULT_SCHEMAS: dict[str, list[FieldRule]] = {
    Namespace.DELAY: [
        FieldRule("from", FieldKind.ATTRIBUTE),
        FieldRule("stamp", FieldKind.ATTRIBUTE),
        FieldRule("message", FieldKind.TEXT),
    ],
    Namespace.IDENT: [
        FieldRule("from", FieldKind.ATTRIBUTE),
        FieldRule("stamp", FieldKind.ATTRIBUTE),
        FieldRule("message", FieldKind.TEXT),
    ],
    Namespace.OOB: _child_text("url", "desc"),
    Namespace.LAST: [
        FieldRule("seconds", FieldKind.ATTRIBUTE),
        FieldRule("message", FieldKind.TEXT),
    ],
    Namespace.TIME: _child_text("utc", "tz", "display"),
    Namespace.VERSION: _child_text("name", "version", "os"),
    Namespace.REGISTER: [
        *_child_text(*_REGISTER_FIELDS),
        FieldRule("registered", FieldKind.FLAG),
        FieldRule("remove", FieldKind.FLAG),
    ],
    Namespace.SEARCH: [
        *_child_text("instructions", "first", "last", "nick", "email", "key"),
        FieldRule("item", FieldKind.REPEATED),
    ],
    Namespace.AUTH: _child_text(
        "username", "password", "digest", "resource", "sequence", "token", "hash"
    ),
}


class NamespaceRegistry:
    """
    Maps payload namespaces to their field layout.

    The accessors read and write fields of a payload element generically,
    so request helpers never need per namespace getters and setters.
    """

    def __init__(self) -> None:
        self._schemas: dict[str, NamespaceSchema] = {}

    @classmethod
    def with_defaults(cls) -> NamespaceRegistry:
        registry = cls()
        for xmlns, rules in _DEFAULT_SCHEMAS.items():
            registry.define(xmlns, rules)
        return registry

    def define(self, xmlns: str, rules: Iterable[FieldRule]) -> NamespaceSchema:
        schema = NamespaceSchema(xmlns, {rule.name: rule for rule in rules})
        if xmlns in self._schemas:
            log.info("Replace schema for %s", xmlns)
        self._schemas[xmlns] = schema
        return schema

    def remove(self, xmlns: str) -> None:
        self._schemas.pop(xmlns, None)

    def get_schema(self, xmlns: str) -> NamespaceSchema | None:
        return self._schemas.get(xmlns)

    def __contains__(self, xmlns: str) -> bool:
        return xmlns in self._schemas

    def _get_rule(self, element: Base, name: str) -> FieldRule:
        schema = self._schemas.get(element.namespace)
        if schema is None:
            raise KeyError("Unknown namespace: %s" % element.namespace)

        rule = schema.fields.get(name)
        if rule is None:
            raise KeyError("Unknown field %s for %s" % (name, element.namespace))
        return rule

    def get_field(self, element: Base, name: str) -> Any:
        rule = self._get_rule(element, name)
        return _get_value(element, rule)

    def set_field(self, element: Base, name: str, value: Any) -> None:
        rule = self._get_rule(element, name)
        _set_value(element, rule, value)

    def set_fields(self, element: Base, **values: Any) -> None:
        for name, value in values.items():
            if value is None:
                continue
            self.set_field(element, name, value)

    def get_fields(self, element: Base) -> dict[str, Any]:
        schema = self._schemas.get(element.namespace)
        if schema is None:
            raise KeyError("Unknown namespace: %s" % element.namespace)

        fields: dict[str, Any] = {}
        for name, rule in schema.fields.items():
            value = _get_value(element, rule)
            if value is None or value is False or value == []:
                continue
            fields[name] = value
        return fields


def _get_value(element: Base, rule: FieldRule) -> Any:
    if rule.kind == FieldKind.ATTRIBUTE:
        return element.get(rule.target)

    if rule.kind == FieldKind.TEXT:
        return element.text

    if rule.kind == FieldKind.CHILD_TEXT:
        child = element.find_tag(rule.target)
        if child is None:
            return None
        return child.text or ""

    if rule.kind == FieldKind.REPEATED:
        return element.find_tags(rule.target)

    return element.has_tag(rule.target)


def _set_value(element: Base, rule: FieldRule, value: Any) -> None:
    if rule.kind == FieldKind.ATTRIBUTE:
        element.set(rule.target, str(value))

    elif rule.kind == FieldKind.TEXT:
        element.text = str(value)

    elif rule.kind == FieldKind.CHILD_TEXT:
        element.add_tag_text(rule.target, str(value))

    elif rule.kind == FieldKind.REPEATED:
        for item in value:
            if isinstance(item, str):
                element.add_tag(rule.target).text = item
            else:
                element.append(item)

    elif value:
        if not element.has_tag(rule.target):
            element.add_tag(rule.target)

    else:
        element.remove_tag(rule.target)
