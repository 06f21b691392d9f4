# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from enum import Enum
from enum import IntEnum


class IqType(Enum):
    GET = "get"
    SET = "set"
    RESULT = "result"
    ERROR = "error"

    @property
    def is_get(self) -> bool:
        return self == IqType.GET

    @property
    def is_set(self) -> bool:
        return self == IqType.SET

    @property
    def is_result(self) -> bool:
        return self == IqType.RESULT

    @property
    def is_error(self) -> bool:
        return self == IqType.ERROR


class MessageType(Enum):
    NORMAL = "normal"
    CHAT = "chat"
    GROUPCHAT = "groupchat"
    HEADLINE = "headline"
    ERROR = "error"


class PresenceType(Enum):
    # Legacy servers and clients still put an explicit "available" on the wire
    AVAILABLE = "available"
    PROBE = "probe"
    SUBSCRIBE = "subscribe"
    SUBSCRIBED = "subscribed"
    UNAVAILABLE = "unavailable"
    UNSUBSCRIBE = "unsubscribe"
    UNSUBSCRIBED = "unsubscribed"
    ERROR = "error"


class ProcessResult(IntEnum):
    FATAL = -1
    NO_DATA = 0
    DATA = 1


class RequestMode(Enum):
    PASSTHRU = "passthru"
    NONBLOCK = "nonblock"
    BLOCK = "block"

    @property
    def is_block(self) -> bool:
        return self == RequestMode.BLOCK


class PendingState(Enum):
    PENDING = "pending"
    ANSWERED = "answered"
    TIMED_OUT = "timed-out"


NO_RESOURCE = " "

TEMPVAR_PREFIX = "__jabberpump__"
