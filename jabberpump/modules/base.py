# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import TYPE_CHECKING

import logging

from jabberpump.structs import StanzaHandler
from jabberpump.util import LogAdapter

if TYPE_CHECKING:
    from jabberpump.client import Client


class BaseModule:
    def __init__(self, client: Client) -> None:
        logger_name = "jabberpump.m.%s" % self.__class__.__name__.lower()
        self._log = LogAdapter(
            logging.getLogger(logger_name), {"context": client.log_context}
        )
        self._client = client
        self.handlers: list[StanzaHandler] = []
