# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from collections.abc import Iterable

from jabberpump.structs import OOBData
from jabberpump import types


def extract_oobs(oobs: Iterable[types.Base]) -> OOBData | None:
    # The last jabber:x:oob element wins
    result = None
    for oob in oobs:
        result = OOBData(url=oob.find_tag_text("url"), desc=oob.find_tag_text("desc"))
    return result
