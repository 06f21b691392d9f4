# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import Any

from lxml import etree

from jabberpump.elements import Base
from jabberpump.elements import Iq
from jabberpump.elements import Message
from jabberpump.elements import Presence
from jabberpump.namespaces import Namespace


def register_class_lookup(tag: str,
                          namespace: str,
                          element_class: Any) -> None:

    _NamespaceLookup.get_namespace(namespace)[tag] = element_class


# Fallback order is important
_BaseLookup = etree.ElementDefaultClassLookup(element=Base)
_NamespaceLookup = etree.ElementNamespaceClassLookup(fallback=_BaseLookup)

ElementLookup = _NamespaceLookup


register_class_lookup('message', Namespace.CLIENT, Message)
register_class_lookup('presence', Namespace.CLIENT, Presence)
register_class_lookup('iq', Namespace.CLIENT, Iq)
