# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import TYPE_CHECKING

from jabberpump.builder import Iq
from jabberpump.errors import StanzaError
from jabberpump.modules.base import BaseModule
from jabberpump.modules.util import get_result_code
from jabberpump.namespaces import Namespace
from jabberpump.util import sha1_hexdigest

if TYPE_CHECKING:
    from jabberpump.client import Client


class Auth(BaseModule):
    """
    Legacy non-SASL authentication, jabber:iq:auth (XEP-0078)
    """

    def __init__(self, client: Client) -> None:
        BaseModule.__init__(self, client)

    def send(
        self,
        username: str,
        password: str,
        resource: str,
        digest: bool = True,
        timeout: float | None = None,
    ) -> tuple[str, str] | None:

        namespaces = self._client.namespaces

        probe = Iq(type="get", query_ns=Namespace.AUTH)
        namespaces.set_field(probe.get_query(), "username", username)
        response = self._client.send_and_receive_with_id(probe, timeout)
        if response is None:
            return None

        if response.is_error():
            return StanzaError(response).legacy_pair()

        offered: set[str] = set()
        query = response.get_query()
        if query is not None and query.namespace == Namespace.AUTH:
            offered = set(namespaces.get_fields(query))

        iq = Iq(type="set", query_ns=Namespace.AUTH)
        query = iq.get_query()
        namespaces.set_fields(query, username=username, resource=resource)

        use_digest = digest and bool(self._client.session_id)
        if "password" in offered and "digest" not in offered:
            use_digest = False

        if use_digest:
            self._log.info("Use digest authentication")
            namespaces.set_field(
                query, "digest", sha1_hexdigest(self._client.session_id, password)
            )
        else:
            self._log.info("Use plaintext authentication")
            namespaces.set_field(query, "password", password)

        response = self._client.send_and_receive_with_id(iq, timeout)
        return get_result_code(self._client, response)
