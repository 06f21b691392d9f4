from jabberpump.builder import parse_stanza
from jabberpump.client import Client
from jabberpump.structs import ClientSettings

from test.lib.transport import MockTransport


def make_client(responder=None, session_id='', **settings):
    settings.setdefault('default_timeout', 1)
    settings.setdefault('poll_interval', 0.01)
    transport = MockTransport(responder)
    client = Client(transport,
                    session_id=session_id,
                    log_context='test',
                    settings=ClientSettings(**settings))
    return client, transport


def make_reply(data, payload='', type_='result', frm=None):
    '''
    Build the raw answer to a sent stanza, echoing the id
    '''
    request = parse_stanza(data)
    attrs = ['type="%s"' % type_]
    if request.get('id') is not None:
        attrs.append('id="%s"' % request.get('id'))

    frm = frm or request.get('to')
    if frm is not None:
        attrs.append('from="%s"' % frm)

    return '<%s %s>%s</%s>' % (request.localname,
                               ' '.join(attrs),
                               payload,
                               request.localname)


def make_error(data, code, text, frm=None):
    return make_reply(data,
                      payload='<error code="%s">%s</error>' % (code, text),
                      type_='error',
                      frm=frm)


def is_request(data):
    request = parse_stanza(data)
    return (request.localname == 'iq' and
            request.get('type') in ('get', 'set'))


def responder_for(payload='', type_='result'):
    '''
    Answer every outgoing iq request with the same payload
    '''
    def _respond(data):
        if not is_request(data):
            return None
        return make_reply(data, payload=payload, type_=type_)
    return _respond


def error_responder(code, text):
    def _respond(data):
        if not is_request(data):
            return None
        return make_error(data, code, text)
    return _respond
