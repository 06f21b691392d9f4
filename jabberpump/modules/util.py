# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import TYPE_CHECKING

import logging

from jabberpump.errors import StanzaError
from jabberpump.types import Stanza

if TYPE_CHECKING:
    from jabberpump.client import Client


log = logging.getLogger("jabberpump.m.util")


def process_error(client: Client, response: Stanza) -> bool:
    """
    Store the error of an error reply on the client, the legacy way
    callers learn why a blocking request returned nothing
    """
    if not response.is_error():
        return False

    _set_error(client, StanzaError(response))
    return True


def get_result_code(client: Client, response: Stanza | None) -> tuple[str, str] | None:
    if response is None:
        return None

    if response.is_error():
        error = StanzaError(response)
        _set_error(client, error)
        return error.legacy_pair()

    return "ok", ""


def _set_error(client: Client, error: StanzaError) -> None:
    log.log(error.log_level, "(%s) Request failed: %s", client.log_context, error)
    client.set_error_code(str(error))
