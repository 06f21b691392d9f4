import unittest
from unittest.mock import Mock

from jabberpump.builder import parse_stanza
from jabberpump.exceptions import NodeProcessed
from jabberpump.namespaces import Namespace

from test.lib.util import make_client


MESSAGE = '<message from="juliet@example.com/balcony" type="chat"><body>hi</body></message>'


class DispatcherTest(unittest.TestCase):

    def setUp(self):
        self.client, self.transport = make_client(install_default_handlers=False)

    def _feed(self, *stanzas):
        for stanza in stanzas:
            self.transport.feed(stanza)
        self.transport.process_all()

    def test_tag_handler(self):
        handler = Mock()
        self.client.set_callbacks(message=handler)
        self._feed(MESSAGE)

        handler.assert_called_once()
        session_id, stanza = handler.call_args[0]
        self.assertEqual(session_id, '')
        self.assertEqual(stanza.get_body(), 'hi')
        self.assertEqual(str(stanza.get_from()), 'juliet@example.com/balcony')

    def test_remove_tag_handler(self):
        handler = Mock()
        self.client.set_callbacks(message=handler)
        self.client.set_callbacks(message=None)
        self._feed(MESSAGE)
        handler.assert_not_called()

    def test_unwanted_stanza_is_dropped(self):
        received = Mock()
        self.client.subscribe('stanza-received', received)
        self._feed(MESSAGE)
        received.assert_not_called()

    def test_receive_hook_sees_raw_text(self):
        hook = Mock()
        self.client.set_callbacks(receive=hook)
        self._feed(MESSAGE)

        hook.assert_called_once_with('', MESSAGE)
        self.assertFalse(self.client._dispatcher.registry.has_tag_handler('receive'))

    def test_invalid_xml_is_dropped(self):
        handler = Mock()
        self.client.set_callbacks(message=handler)
        with self.assertLogs('jabberpump.dispatcher', level='WARNING'):
            self._feed('<message><body>broken</message>')
        handler.assert_not_called()

        self._feed(MESSAGE)
        handler.assert_called_once()

    def test_invalid_utf8_with_receive_hook_is_dropped(self):
        hook = Mock()
        handler = Mock()
        self.client.set_callbacks(receive=hook, message=handler)
        with self.assertLogs('jabberpump.dispatcher', level='WARNING'):
            self._feed(b'<message><body>\xff\xfe</body></message>')
        hook.assert_not_called()
        handler.assert_not_called()

        self._feed(MESSAGE)
        hook.assert_called_once_with('', MESSAGE)
        handler.assert_called_once()

    def test_xpath_handlers_keep_registration_order(self):
        calls = []
        self.client.set_xpath_callbacks('/client:message',
                                        lambda _s, _st: calls.append('h1'))
        self.client.set_xpath_callbacks("/client:message[@type='chat']",
                                        lambda _s, _st: calls.append('h2'))
        self.client.set_xpath_callbacks('/client:message',
                                        lambda _s, _st: calls.append('h3'))
        self._feed(MESSAGE)
        self.assertEqual(calls, ['h1', 'h2', 'h3'])

    def test_remove_one_of_several_xpath_handlers(self):
        first = Mock()
        second = Mock()
        self.client.set_xpath_callbacks('/client:message', first)
        self.client.set_xpath_callbacks('/client:message', second)
        self.client.remove_xpath_callbacks('/client:message', first)
        self._feed(MESSAGE)

        first.assert_not_called()
        second.assert_called_once()

    def test_xpath_handlers_run_before_tag_handler(self):
        calls = []
        self.client.set_callbacks(message=lambda _s, _st: calls.append('tag'))
        self.client.set_xpath_callbacks("/client:message[@type='chat']",
                                        lambda _s, _st: calls.append('xpath'))
        self.client.set_xpath_callbacks("/client:message[@type='groupchat']",
                                        lambda _s, _st: calls.append('other'))
        self._feed(MESSAGE)
        self.assertEqual(calls, ['xpath', 'tag'])

    def test_xpath_without_tag_handler(self):
        handler = Mock()
        self.client.set_xpath_callbacks('/client:message/client:body', handler)
        self._feed(MESSAGE)
        handler.assert_called_once()

        self.client.remove_xpath_callbacks('/client:message/client:body', handler)
        self.assertFalse(self.client._dispatcher.registry.has_xpath_handlers())
        self._feed(MESSAGE)
        handler.assert_called_once()

    def test_xpath_custom_namespaces(self):
        handler = Mock()
        self.client.set_xpath_callbacks('/c:iq/v:query',
                                        handler,
                                        namespaces={'c': Namespace.CLIENT,
                                                    'v': Namespace.VERSION})
        self._feed('<iq type="get" id="1"><query xmlns="jabber:iq:version"/></iq>',
                   '<iq type="get" id="2"><query xmlns="jabber:iq:last"/></iq>')
        handler.assert_called_once()
        self.assertEqual(handler.call_args[0][1].get_id(), '1')

    def test_handler_exception_is_logged(self):
        def _raise(_session_id, _stanza):
            raise RuntimeError('boom')

        self.client.set_callbacks(message=_raise)
        with self.assertLogs('jabberpump.dispatcher', level='ERROR'):
            self._feed(MESSAGE)

    def test_node_processed_is_silent(self):
        def _processed(_session_id, _stanza):
            raise NodeProcessed

        self.client.set_callbacks(message=_processed)
        self._feed(MESSAGE)

    def test_stanza_received_signal(self):
        received = Mock()
        self.client.subscribe('stanza-received', received)
        self.client.set_callbacks(message=Mock())
        self._feed(MESSAGE)

        received.assert_called_once()
        client, signal, stanza = received.call_args[0]
        self.assertIs(client, self.client)
        self.assertEqual(signal, 'stanza-received')
        self.assertEqual(stanza.localname, 'message')

    def test_dispatch_parsed_element(self):
        handler = Mock()
        self.client.set_callbacks(message=handler)
        self.client.dispatch('s1', parse_stanza(MESSAGE))
        handler.assert_called_once()
        self.assertEqual(handler.call_args[0][0], 's1')

    def test_correlated_reply_bypasses_handlers(self):
        handler = Mock()
        self.client.set_callbacks(iq=handler)
        self.client.correlator.register_id('iq', 'abc')
        self._feed('<iq type="result" id="abc"/>')

        handler.assert_not_called()
        self.assertTrue(self.client.correlator.received_id('abc'))
        self.assertFalse(self.client.correlator.check_id('iq', 'abc'))

        self._feed('<iq type="result" id="abc"/>')
        handler.assert_called_once()

    def test_correlation_is_per_tag(self):
        handler = Mock()
        self.client.set_callbacks(message=handler)
        self.client.correlator.register_id('iq', 'abc')
        self._feed('<message id="abc"><body>x</body></message>')

        handler.assert_called_once()
        self.assertTrue(self.client.correlator.check_id('iq', 'abc'))


class DefaultHandlerTest(unittest.TestCase):

    def setUp(self):
        self.client, self.transport = make_client()

    def _feed(self, *stanzas):
        for stanza in stanzas:
            self.transport.feed(stanza)
        self.transport.process_all()

    def test_iq_by_namespace_and_type(self):
        get_handler = Mock()
        self.client.set_iq_callbacks('urn:test', {'get': get_handler})
        self._feed('<iq type="get" id="1"><query xmlns="urn:test"/></iq>',
                   '<iq type="set" id="2"><query xmlns="urn:test"/></iq>')

        get_handler.assert_called_once()
        self.assertEqual(get_handler.call_args[0][1].get_id(), '1')

    def test_iq_handler_for_every_type(self):
        handler = Mock()
        self.client.set_iq_callbacks('urn:test', handler)
        self._feed('<iq type="get" id="1"><query xmlns="urn:test"/></iq>',
                   '<iq type="set" id="2"><query xmlns="urn:test"/></iq>')
        self.assertEqual(handler.call_count, 2)

        self.client.set_iq_callbacks('urn:test', None)
        self._feed('<iq type="get" id="3"><query xmlns="urn:test"/></iq>')
        self.assertEqual(handler.call_count, 2)

    def test_iq_type_removal(self):
        get_handler = Mock()
        set_handler = Mock()
        self.client.set_iq_callbacks('urn:test', {'get': get_handler,
                                                  'set': set_handler})
        self.client.set_iq_callbacks('urn:test', {'get': None})
        self._feed('<iq type="get" id="1"><query xmlns="urn:test"/></iq>',
                   '<iq type="set" id="2"><query xmlns="urn:test"/></iq>')

        get_handler.assert_not_called()
        set_handler.assert_called_once()

    def test_message_by_type(self):
        chat = Mock()
        normal = Mock()
        self.client.set_message_callbacks(chat=chat, normal=normal)
        self._feed(MESSAGE, '<message><body>plain</body></message>')

        chat.assert_called_once()
        normal.assert_called_once()
        self.assertEqual(normal.call_args[0][1].get_body(), 'plain')

    def test_presence_by_type(self):
        probe = Mock()
        self.client.set_presence_callbacks(probe=probe)
        self._feed('<presence type="probe" from="romeo@example.net"/>')
        probe.assert_called_once()

    def test_own_presence_handler_replaces_default(self):
        available = Mock()
        self.client.set_presence_callbacks(available=available)
        self._feed('<presence from="romeo@example.net/orchard"/>')

        available.assert_called_once()
        self.assertEqual(self.transport.sent, [])

    def test_presence_tracking(self):
        client, transport = make_client(track_presence=True)
        transport.feed('<presence from="romeo@example.net/orchard"><priority>5</priority></presence>')
        transport.process_all()

        presence = client.presence_db.query('romeo@example.net')
        self.assertIsNotNone(presence)
        self.assertEqual(presence.get_priority(), 5)

    def test_presence_not_tracked_by_default(self):
        self._feed('<presence from="romeo@example.net/orchard"/>')
        self.assertNotIn('romeo@example.net', self.client.presence_db)


if __name__ == '__main__':
    unittest.main()
