# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import TYPE_CHECKING

from jabberpump.builder import Message
from jabberpump.modules.base import BaseModule
from jabberpump.structs import MessageOptions
from jabberpump import types

if TYPE_CHECKING:
    from jabberpump.client import Client


class BaseMessage(BaseModule):
    def __init__(self, client: Client) -> None:
        BaseModule.__init__(self, client)

    def send_message(self, options: MessageOptions) -> types.Message:
        message = Message(
            to=options.to,
            type=options.type,
            body=options.body,
            subject=options.subject,
            thread=options.thread,
        )
        self._client.send(message)
        return message
