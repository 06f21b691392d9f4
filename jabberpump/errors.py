# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

import logging

from jabberpump.exceptions import InvalidJid
from jabberpump.namespaces import Namespace
from jabberpump.types import Stanza


class BaseError(Exception):
    def __init__(self, is_fatal: bool = False) -> None:
        self.is_fatal = is_fatal
        self.text = ""

    def __str__(self) -> str:
        return self.text

    def get_text(self, _pref_lang: str | None = None) -> str:
        return self.text


class StanzaError(BaseError):
    """
    Error carried by an ``error`` typed stanza.

    Both the legacy form (``<error code='404'>Not Found</error>``) and the
    condition based form are understood. ``str()`` renders the legacy
    ``"code: text"`` string that ends up in ``Client.get_error_code()``.
    """

    log_level = logging.INFO

    def __init__(self, stanza: Stanza) -> None:
        BaseError.__init__(self)
        self.stanza = stanza
        self._error_node = stanza.get_error()
        self.condition = self._get_condition()
        self.code = stanza.get_error_code() or ""
        self.type = None if self._error_node is None else self._error_node.get("type")
        self.id = stanza.get_id()
        self.text = stanza.get_error_text()

        try:
            self.jid = stanza.get_from()
        except InvalidJid:
            self.jid = None

    def _get_condition(self) -> str | None:
        if self._error_node is None:
            return None

        for child in self._error_node.get_children():
            if child.namespace == Namespace.STANZAS and child.localname != "text":
                return child.localname
        return None

    def legacy_pair(self) -> tuple[str, str]:
        return self.code, self.text

    def __str__(self) -> str:
        return "%s: %s" % (self.code, self.text)


class MalformedStanzaError(BaseError):

    log_level = logging.WARNING

    def __init__(self, text: str, stanza: Stanza, is_fatal: bool = True) -> None:
        BaseError.__init__(self, is_fatal=is_fatal)
        self.stanza = stanza
        self.text = str(text)


class RPCDecodeError(MalformedStanzaError):
    pass
