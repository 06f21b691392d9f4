# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import Any
from typing import Protocol

from collections.abc import Callable

from jabberpump.const import ProcessResult


DispatchCallbackT = Callable[[str, Any], None]


class Transport(Protocol):
    """
    What the client needs from the connection layer.

    The transport owns the socket and the stream parser. Whenever
    ``process`` parses a complete stanza it hands it to the dispatch
    callback, either as raw XML text or as an already parsed element.
    """

    def set_dispatch_callback(self, callback: DispatchCallbackT) -> None:
        ...

    def send(self, session_id: str, data: str) -> None:
        ...

    def ignore_activity(self, session_id: str, ignore: bool) -> None:
        ...

    def last_activity(self, session_id: str) -> float:
        ...

    def process(self, timeout: float = 0) -> ProcessResult:
        ...
