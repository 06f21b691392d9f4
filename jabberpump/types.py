# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from typing import Any
from typing import Callable
from typing import Union

from jabberpump.elements import Base
from jabberpump.elements import Iq
from jabberpump.elements import Message
from jabberpump.elements import Presence
from jabberpump.elements import Stanza

__all__ = [
    "Base",
    "Iq",
    "Message",
    "Presence",
    "Stanza",
    "HandlerT",
    "RawStanzaT",
]

HandlerT = Callable[[str, Stanza], Any]
RawStanzaT = Union[str, bytes, Base]
