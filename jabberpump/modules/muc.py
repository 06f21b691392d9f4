# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import TYPE_CHECKING

from jabberpump.builder import Presence
from jabberpump.modules.base import BaseModule
from jabberpump import types

if TYPE_CHECKING:
    from jabberpump.client import Client


class MUC(BaseModule):
    def __init__(self, client: Client) -> None:
        BaseModule.__init__(self, client)

    def join(
        self, room: str, server: str, nick: str, password: str | None = None
    ) -> types.Presence:

        presence = Presence(
            to="%s@%s/%s" % (room, server, nick),
            muc_join=True,
            muc_password=password or None,
        )
        self._log.info("Join %s@%s as %s", room, server, nick)
        self._client.send(presence)
        return presence
