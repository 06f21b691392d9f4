import unittest

from jabberpump.builder import parse_stanza
from jabberpump.rosterdb import RosterDB
from jabberpump.rosterdb import parse_roster
from jabberpump.structs import RosterItem


ROSTER = '''
<iq type="result" id="r1">
  <query xmlns="jabber:iq:roster">
    <item jid="romeo@example.net" name="Romeo" subscription="both">
      <group>Friends</group>
      <group>Lovers</group>
    </item>
    <item jid="mercutio@example.org" subscription="from" ask="subscribe"/>
    <item name="broken"/>
  </query>
</iq>'''


def _push(item):
    return parse_stanza(
        '<iq type="set" id="p1"><query xmlns="jabber:iq:roster">%s</query></iq>' % item)


class RosterDBTest(unittest.TestCase):

    def setUp(self):
        self.db = RosterDB()
        self.db.apply_iq(parse_stanza(ROSTER))

    def test_parse_roster(self):
        items = parse_roster(parse_stanza(ROSTER))
        self.assertEqual(set(items), {'romeo@example.net', 'mercutio@example.org'})
        self.assertEqual(items['romeo@example.net'],
                         RosterItem(jid='romeo@example.net',
                                    name='Romeo',
                                    subscription='both',
                                    groups=['Friends', 'Lovers']))
        self.assertEqual(items['mercutio@example.org'].ask, 'subscribe')

    def test_parse_foreign_query(self):
        iq = parse_stanza('<iq type="result"><query xmlns="jabber:iq:last"/></iq>')
        self.assertEqual(parse_roster(iq), {})

    def test_get(self):
        self.assertEqual(self.db.get('romeo@example.net', 'name'), 'Romeo')
        self.assertEqual(self.db.get('romeo@example.net', 'groups'),
                         ['Friends', 'Lovers'])
        self.assertIsNone(self.db.get('mercutio@example.org', 'name'))
        self.assertIsNone(self.db.get('nobody@example.org', 'name'))
        self.assertIsNone(self.db.get('romeo@example.net', 'unknown'))
        self.assertEqual(sorted(self.db.jids()),
                         ['mercutio@example.org', 'romeo@example.net'])

    def test_push_updates_item(self):
        self.db.apply_iq(_push('<item jid="romeo@example.net" name="R" subscription="to"/>'))
        item = self.db.get_item('romeo@example.net')
        self.assertEqual(item.name, 'R')
        self.assertEqual(item.subscription, 'to')
        self.assertEqual(item.groups, [])

    def test_push_removes_item(self):
        self.db.apply_iq(_push('<item jid="romeo@example.net" subscription="remove"/>'))
        self.assertNotIn('romeo@example.net', self.db)
        self.assertIn('mercutio@example.org', self.db)

        self.db.apply_iq(_push('<item jid="nobody@example.org" subscription="remove"/>'))
        self.assertNotIn('nobody@example.org', self.db)

    def test_get_request_is_ignored(self):
        iq = parse_stanza('<iq type="get"><query xmlns="jabber:iq:roster">'
                          '<item jid="tybalt@example.org"/></query></iq>')
        self.db.apply_iq(iq)
        self.assertNotIn('tybalt@example.org', self.db)

    def test_add_delete_clear(self):
        self.db.add('tybalt@example.org', RosterItem(jid='tybalt@example.org'))
        self.assertIn('tybalt@example.org', self.db)

        self.db.delete('tybalt@example.org')
        self.assertNotIn('tybalt@example.org', self.db)

        self.db.clear()
        self.assertEqual(self.db.jids(), [])


if __name__ == '__main__':
    unittest.main()
