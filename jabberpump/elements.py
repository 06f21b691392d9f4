# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import Iterator
from typing import Optional
from typing import Union

import copy

from lxml import etree

from jabberpump.jid import JID
from jabberpump.namespaces import Namespace


NSMap = dict[Optional[str], str]


def create_nsmap_and_tag(tag: str,
                         namespace: Optional[str]) -> tuple[str, Optional[NSMap]]:
    nsmap: Optional[NSMap] = None
    if namespace is not None:
        nsmap = {None: namespace}
        tag = '{%s}%s' % (namespace, tag)
    return tag, nsmap


class Base(etree.ElementBase):

    def find_tag(self,
                 tag: str,
                 namespace: Optional[str] = None) -> Optional[Base]:

        if namespace is None:
            namespace = etree.QName(self).namespace
        if namespace is None:
            return self.find(tag)
        return self.find('{%s}%s' % (namespace, tag))

    def find_tag_text(self,
                      tag: str,
                      namespace: Optional[str] = None) -> Optional[str]:

        element = self.find_tag(tag, namespace=namespace)
        if element is None:
            return element
        return element.text

    def has_tag(self,
                tag: str,
                namespace: Optional[str] = None) -> bool:

        return self.find_tag(tag, namespace=namespace) is not None

    def add_tag(self,
                tag: str,
                namespace: Optional[str] = None,
                **attrib: str) -> Base:

        if namespace is None:
            namespace = etree.QName(self).namespace

        tag, nsmap = create_nsmap_and_tag(tag, namespace)

        element = etree.SubElement(self, tag, nsmap=nsmap, attrib=attrib)
        return element

    def add_tag_text(self,
                     tag: str,
                     text: str,
                     namespace: Optional[str] = None) -> Base:

        element = self.find_tag(tag, namespace=namespace)
        if element is None:
            element = self.add_tag(tag, namespace=namespace)
        element.text = text
        return element

    def find_tag_attr(self,
                      tag: str,
                      attr: str,
                      namespace: Optional[str] = None) -> Optional[str]:
        element = self.find_tag(tag, namespace=namespace)
        if element is None:
            return element
        return element.get(attr)

    def find_tags(self,
                  tag: str,
                  namespace: Optional[str] = None) -> list[Base]:
        return list(self.iter_tags(tag, namespace=namespace))

    def remove_tag(self,
                   tag: str,
                   namespace: Optional[str] = None) -> Optional[Base]:
        element = self.find_tag(tag, namespace=namespace)
        if element is None:
            return None
        self.remove(element)
        return element

    def iter_tags(self,
                  tag: str,
                  namespace: Optional[str] = None) -> Iterator[Base]:
        if namespace is None:
            namespace = etree.QName(self).namespace
        if namespace is None:
            return self.iterchildren(tag)
        return self.iterchildren('{%s}%s' % (namespace, tag))

    def has_x(self, namespace: str) -> bool:
        return self.find_tag('x', namespace=namespace) is not None

    def get_x(self, namespace: str) -> list[Base]:
        return self.find_tags('x', namespace=namespace)

    def get_children(self) -> list[Base]:
        return [child for child in self if isinstance(child.tag, str)]

    @property
    def localname(self) -> str:
        return etree.QName(self).localname

    @property
    def namespace(self) -> Optional[str]:
        return etree.QName(self).namespace

    def tostring(self, pretty_print: bool = False) -> str:
        return etree.tostring(self,
                              pretty_print=pretty_print,
                              encoding=str)

    def __str__(self) -> str:
        return self.tostring()

    def __repr__(self) -> str:
        repr_str = super().__repr__()
        return repr_str.replace('<Element', f'<{self.__class__.__name__}')


class Stanza(Base):

    def _jid_attr_converter(self, attr: str) -> Optional[JID]:
        jid = self.get(attr)
        if not jid:
            return None
        return JID.from_string(jid)

    def get_from(self) -> Optional[JID]:
        return self._jid_attr_converter('from')

    def set_from(self, jid: Union[str, JID]) -> None:
        self.set('from', str(jid))

    def get_to(self) -> Optional[JID]:
        return self._jid_attr_converter('to')

    def set_to(self, jid: Union[str, JID]) -> None:
        self.set('to', str(jid))

    def get_id(self) -> Optional[str]:
        return self.get('id')

    def set_id(self, id_: str) -> None:
        self.set('id', id_)

    def get_type(self) -> Optional[str]:
        return self.get('type')

    def set_type(self, type_: str) -> None:
        self.set('type', type_)

    def is_error(self) -> bool:
        return self.get('type') == 'error'

    def get_query(self) -> Optional[Base]:
        '''
        Return the first payload child, which is the first child living
        outside of the stanza namespace. Legacy protocols use this for
        <query/>, <feature/> and friends.
        '''
        own_namespace = self.namespace
        for child in self.get_children():
            if child.namespace != own_namespace and child.localname != 'x':
                return child
        return None

    def get_query_namespace(self) -> Optional[str]:
        query = self.get_query()
        if query is None:
            return None
        return query.namespace

    def set_query(self, query: Base) -> Base:
        current = self.get_query()
        if current is not None:
            self.remove(current)
        self.append(query)
        return query

    def get_error(self) -> Optional[Base]:
        return self.find_tag('error')

    def get_error_code(self) -> Optional[str]:
        error = self.get_error()
        if error is None:
            return None
        return error.get('code')

    def get_error_text(self) -> str:
        error = self.get_error()
        if error is None:
            return ''

        text = error.find_tag_text('text', namespace=Namespace.STANZAS)
        if text:
            return text

        if error.text and error.text.strip():
            return error.text.strip()

        for child in error.get_children():
            if child.namespace == Namespace.STANZAS:
                return child.localname
        return ''

    def make_reply(self, type: Optional[str] = None) -> Stanza:
        reply = self.makeelement(self.tag, nsmap={None: self.namespace})

        to = self.get('from')
        if to:
            reply.set('to', to)

        from_ = self.get('to')
        if from_:
            reply.set('from', from_)

        id_ = self.get('id')
        if id_ is not None:
            reply.set('id', id_)

        if type is not None:
            reply.set('type', type)
        return reply

    def make_error(self,
                   type: str,
                   condition: str,
                   code: Optional[str] = None,
                   text: Optional[str] = None) -> Stanza:

        stanza = copy.deepcopy(self)
        stanza.set('type', 'error')
        stanza.set('to', stanza.get('from', ''))
        stanza.attrib.pop('from', '')
        error = stanza.add_tag('error', type=type)
        if code is not None:
            error.set('code', code)
        error.add_tag(condition, namespace=Namespace.STANZAS)
        if text is not None:
            error.add_tag_text('text', text, namespace=Namespace.STANZAS)
        return stanza

    def to_xml(self) -> str:
        return self.tostring()


class Message(Stanza):

    def get_body(self) -> Optional[str]:
        return self.find_tag_text('body')

    def get_subject(self) -> Optional[str]:
        return self.find_tag_text('subject')

    def get_thread(self) -> Optional[str]:
        return self.find_tag_text('thread')

    def make_reply(self, type: Optional[str] = None) -> Message:
        if type is None:
            type = self.get('type')
        reply = super().make_reply(type)

        thread = self.get_thread()
        if thread is not None:
            reply.add_tag_text('thread', thread)
        return reply


class Presence(Stanza):

    def get_priority(self) -> int:
        priority = self.find_tag_text('priority')
        if priority is None:
            return 0

        try:
            return int(priority)
        except ValueError:
            return 0

    def get_show(self) -> Optional[str]:
        return self.find_tag_text('show')

    def get_status(self) -> Optional[str]:
        return self.find_tag_text('status')


class Iq(Stanza):

    def make_reply(self, type: Optional[str] = 'result') -> Iq:
        reply = super().make_reply(type)

        query = self.get_query()
        if query is not None:
            reply.add_tag(query.localname, namespace=query.namespace)
        return reply
