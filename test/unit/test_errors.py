import unittest

from jabberpump.builder import parse_stanza
from jabberpump.errors import StanzaError
from jabberpump.jid import JID


class TestErrorParsing(unittest.TestCase):

    def test_error_parsing(self):
        stanza = '''
        <iq from='upload.montague.tld'
            id='step_03'
            to='romeo@montague.tld/garden'
            type='error'>
          <error type='modify' code='406'>
            <not-acceptable xmlns='urn:ietf:params:xml:ns:xmpp-stanzas' />
            <text xmlns='urn:ietf:params:xml:ns:xmpp-stanzas'>File too large. The maximum file size is 20000 bytes</text>
          </error>
        </iq>'''

        error = StanzaError(parse_stanza(stanza))
        self.assertEqual(error.condition, 'not-acceptable')
        self.assertEqual(error.get_text(), 'File too large. The maximum file size is 20000 bytes')
        self.assertEqual(error.type, 'modify')
        self.assertEqual(error.id, 'step_03')
        self.assertEqual(error.code, '406')
        self.assertEqual(error.jid, JID.from_string('upload.montague.tld'))
        self.assertEqual(str(error),
                         '406: File too large. The maximum file size is 20000 bytes')

    def test_legacy_error(self):
        error = StanzaError(parse_stanza(
            '<message type="error" from="@invalid"><error code="404">Not Found</error></message>'))
        self.assertIsNone(error.condition)
        self.assertIsNone(error.jid)
        self.assertEqual(error.legacy_pair(), ('404', 'Not Found'))
        self.assertEqual(str(error), '404: Not Found')


if __name__ == '__main__':
    unittest.main()
