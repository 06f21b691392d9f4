# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import Optional
from typing import Union
from typing import cast

import copy

from lxml import etree

from jabberpump.const import IqType
from jabberpump.const import MessageType
from jabberpump.const import PresenceType
from jabberpump.elements import Base
from jabberpump.elements import create_nsmap_and_tag
from jabberpump.jid import JID
from jabberpump.lookups import ElementLookup
from jabberpump.namespaces import Namespace
from jabberpump import types


_element_parser = etree.XMLParser(resolve_entities=False,
                                  no_network=True,
                                  remove_comments=True,
                                  remove_pis=True)
_element_parser.set_element_class_lookup(ElementLookup)


def E(tag: str,
      text: Optional[str] = None,
      namespace: Optional[str] = None,
      **attrib: str) -> Base:

    tag, nsmap = create_nsmap_and_tag(tag, namespace)

    element = cast(Base, _element_parser.makeelement(tag,
                                                     nsmap=nsmap,
                                                     attrib=attrib))
    if text is not None:
        element.text = text
    return element


def _jid_to_string(jid: Union[str, JID]) -> str:
    if isinstance(jid, str):
        jid = JID.from_string(jid)
    return str(jid)


def Message(to: Optional[Union[str, JID]] = None,
            type: Optional[str] = None,
            id: Optional[str] = None,
            frm: Optional[Union[str, JID]] = None,
            body: Optional[str] = None,
            subject: Optional[str] = None,
            thread: Optional[str] = None) -> types.Message:

    message = cast(types.Message, E('message', namespace=Namespace.CLIENT))

    if to is not None:
        message.set_to(_jid_to_string(to))

    if frm is not None:
        message.set_from(_jid_to_string(frm))

    if type is not None:
        MessageType(type)
        message.set('type', type)

    if id is not None:
        message.set('id', id)

    if subject is not None:
        message.add_tag_text('subject', subject)

    if body is not None:
        message.add_tag_text('body', body)

    if thread is not None:
        message.add_tag_text('thread', thread)

    return message


def Iq(to: Optional[Union[str, JID]] = None,
       type: str = 'get',
       id: Optional[str] = None,
       query_ns: Optional[str] = None,
       query_tag: str = 'query') -> types.Iq:

    iq = cast(types.Iq, E('iq', namespace=Namespace.CLIENT))

    IqType(type)
    iq.set('type', type)

    if to is not None:
        iq.set_to(_jid_to_string(to))

    if id is not None:
        iq.set('id', id)

    if query_ns is not None:
        iq.add_tag(query_tag, namespace=query_ns)

    return iq


def Presence(to: Optional[Union[str, JID]] = None,
             type: Optional[str] = None,
             id: Optional[str] = None,
             priority: Optional[int] = None,
             show: Optional[str] = None,
             status: Optional[str] = None,
             signed: Optional[str] = None,
             muc_join: bool = False,
             muc_password: Optional[str] = None) -> types.Presence:

    presence = cast(types.Presence, E('presence', namespace=Namespace.CLIENT))

    if type is not None:
        PresenceType(type)
        presence.set('type', type)

    if to is not None:
        presence.set_to(_jid_to_string(to))

    if id is not None:
        presence.set('id', id)

    if status is not None:
        presence.add_tag_text('status', status)

    if priority is not None:
        if priority not in range(-128, 128):
            raise ValueError('invalid priority: %s' % priority)
        presence.add_tag_text('priority', str(priority))

    if show is not None:
        if show not in ('chat', 'away', 'xa', 'dnd'):
            raise ValueError('invalid show value: %s' % show)
        presence.add_tag_text('show', show)

    if signed is not None:
        presence.add_tag_text('x', signed, namespace=Namespace.SIGNED)

    if muc_join or muc_password is not None:
        muc_x = presence.add_tag('x', namespace=Namespace.MUC)
        if muc_password is not None:
            muc_x.add_tag_text('password', muc_password)

    return presence


def parse(data: Union[str, bytes]) -> Base:
    return cast(Base, etree.fromstring(data, _element_parser))


def parse_stanza(data: Union[str, bytes]) -> Base:
    '''
    Parse a single stanza the way it appears inside a client stream,
    stanzas without an explicit namespace end up in jabber:client.
    '''
    if isinstance(data, bytes):
        data = data.decode()

    wrapper = parse('<stream xmlns="%s">%s</stream>' % (Namespace.CLIENT,
                                                        data.strip()))
    if len(wrapper) != 1:
        raise ValueError('expected exactly one stanza, got %s' % len(wrapper))

    # Detach into its own document so XPath sees the stanza as root
    return cast(Base, copy.deepcopy(wrapper[0]))
