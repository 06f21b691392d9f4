import unittest

from lxml import etree

from jabberpump.builder import E
from jabberpump.builder import Iq
from jabberpump.builder import Message
from jabberpump.builder import parse_stanza
from jabberpump.elements import Base
from jabberpump.elements import Presence
from jabberpump.jid import JID
from jabberpump.namespaces import Namespace


build_lookup = etree.ElementDefaultClassLookup(element=Base)
build_parser = etree.XMLParser()
build_parser.set_element_class_lookup(build_lookup)


class ElementTest(unittest.TestCase):

    def test_e_builder(self):
        parsed = etree.fromstring('<a xmlns="j:a"><b/><c xmlns="j:c"/></a>', build_parser)
        build = E('a', namespace='j:a')
        build.add_tag('b')
        build.add_tag('c', namespace='j:c')

        self.assertTrue(parsed.tag == build.tag)
        self.assertTrue(parsed.nsmap == build.nsmap)

        for x in range(2):
            self.assertTrue(parsed[x].tag == build[x].tag)
            self.assertTrue(parsed[x].nsmap == build[x].nsmap)

    def test_find_tag(self):
        element = etree.fromstring('<a xmlns="j:a"><b/><c xmlns="j:c"/></a>', build_parser)

        self.assertIsNotNone(element.find_tag('b'))
        self.assertIsNotNone(element.find_tag('b', namespace='j:a'))

        self.assertIsNone(element.find_tag('c'))
        self.assertIsNone(element.find_tag('c', namespace='j:a'))

    def test_add_tag(self):
        element = E('a', namespace='j:a')
        element.add_tag('b', namespace='j:b')
        self.assertTrue('<a xmlns="j:a"><b xmlns="j:b"/></a>' == element.tostring())

        element_b = element.find_tag('b')
        self.assertIsNone(element_b)

        element_b = element.find_tag('b', namespace='j:b')
        self.assertTrue(element_b.tag == '{j:b}b')

        element = E('a', namespace='j:a')
        element.add_tag('b')
        self.assertTrue('<a xmlns="j:a"><b/></a>' == element.tostring())

        element_b = element.find_tag('b')
        self.assertTrue(element_b.tag == '{j:a}b')
        self.assertTrue(element_b.namespace == 'j:a')

        element_b = element.find_tag('b', namespace='j:a')
        self.assertTrue(element_b.tag == '{j:a}b')
        self.assertTrue(element_b.namespace == 'j:a')

    def test_add_tag_text(self):
        element = E('a', namespace='j:a')
        element.add_tag_text('b', 'test')
        self.assertTrue('<a xmlns="j:a"><b>test</b></a>' == element.tostring())

        element_b = element.find_tag('b')
        self.assertTrue(isinstance(element_b, Base))

        element = E('a', namespace='j:a')
        element.add_tag_text('b', 'test', namespace='j:b')
        self.assertTrue('<a xmlns="j:a"><b xmlns="j:b">test</b></a>' == element.tostring())

        element_b = element.find_tag('b', namespace='j:b')
        self.assertTrue(isinstance(element_b, Base))


class StanzaTest(unittest.TestCase):

    def test_parse_stanza_class_lookup(self):
        presence = parse_stanza('<presence from="romeo@example.net/orchard"/>')
        self.assertIsInstance(presence, Presence)
        self.assertEqual(presence.namespace, Namespace.CLIENT)
        self.assertIsNone(presence.getparent())
        self.assertEqual(presence.get_from(), JID.from_string('romeo@example.net/orchard'))

        with self.assertRaises(ValueError):
            parse_stanza('<presence/><presence/>')

    def test_get_query(self):
        iq = parse_stanza('<iq type="get"><x xmlns="jabber:x:data"/>'
                          '<query xmlns="jabber:iq:version"/></iq>')
        self.assertEqual(iq.get_query().localname, 'query')
        self.assertEqual(iq.get_query_namespace(), Namespace.VERSION)

        self.assertIsNone(Iq().get_query())
        self.assertIsNone(Iq().get_query_namespace())

    def test_iq_make_reply(self):
        iq = Iq(to='juliet@example.com/balcony', id='v1', query_ns=Namespace.VERSION)
        iq.set_from('romeo@example.net/orchard')

        reply = iq.make_reply()
        self.assertEqual(reply.get('to'), 'romeo@example.net/orchard')
        self.assertEqual(reply.get('from'), 'juliet@example.com/balcony')
        self.assertEqual(reply.get_id(), 'v1')
        self.assertEqual(reply.get_type(), 'result')
        self.assertEqual(reply.get_query_namespace(), Namespace.VERSION)

    def test_message_make_reply(self):
        message = Message(to='juliet@example.com', type='chat', thread='t1', body='hi')
        reply = message.make_reply()
        self.assertEqual(reply.get_type(), 'chat')
        self.assertEqual(reply.get_thread(), 't1')
        self.assertIsNone(reply.get_body())

    def test_make_error(self):
        iq = parse_stanza('<iq type="get" id="1" from="romeo@example.net/orchard">'
                          '<query xmlns="jabber:iq:version"/></iq>')
        error = iq.make_error('cancel', 'feature-not-implemented', code='501',
                              text='Not here')

        self.assertTrue(error.is_error())
        self.assertEqual(error.get('to'), 'romeo@example.net/orchard')
        self.assertIsNone(error.get('from'))
        self.assertEqual(error.get_error_code(), '501')
        self.assertEqual(error.get_error_text(), 'Not here')
        self.assertFalse(iq.is_error())

    def test_error_text_fallbacks(self):
        legacy = parse_stanza('<iq type="error"><error code="404"> Not Found </error></iq>')
        self.assertEqual(legacy.get_error_text(), 'Not Found')

        condition = parse_stanza(
            '<iq type="error"><error type="cancel">'
            '<item-not-found xmlns="urn:ietf:params:xml:ns:xmpp-stanzas"/></error></iq>')
        self.assertEqual(condition.get_error_text(), 'item-not-found')
        self.assertIsNone(condition.get_error_code())

        self.assertEqual(Iq().get_error_text(), '')

    def test_presence_accessors(self):
        presence = parse_stanza('<presence><show>dnd</show><status>busy</status>'
                                '<priority>x</priority></presence>')
        self.assertEqual(presence.get_show(), 'dnd')
        self.assertEqual(presence.get_status(), 'busy')
        self.assertEqual(presence.get_priority(), 0)
