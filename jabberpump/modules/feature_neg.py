# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import TYPE_CHECKING
from typing import Union

from collections.abc import Iterable

from jabberpump.builder import E
from jabberpump.builder import Iq
from jabberpump.modules.base import BaseModule
from jabberpump.modules.util import process_error
from jabberpump.namespaces import Namespace
from jabberpump.structs import RequestOptions
from jabberpump import types

if TYPE_CHECKING:
    from jabberpump.client import Client


FeaturesT = dict[str, Union[list[str], str, None]]


class FeatureNegotiation(BaseModule):
    def __init__(self, client: Client) -> None:
        BaseModule.__init__(self, client)

    def request(
        self,
        jid: str,
        features: dict[str, Iterable[str]],
        options: RequestOptions | None = None,
    ) -> Union[str, FeaturesT, None]:

        if options is None:
            options = RequestOptions()

        iq = Iq(to=jid, type="get")
        iq.append(make_query(features))

        response = self._client.send_request(iq, options.mode, options.timeout)
        if not options.mode.is_block or response is None:
            return response

        if process_error(self._client, response):
            return None

        query = response.get_query()
        if query is None:
            return None
        return parse(query)


def make_query(features: dict[str, Iterable[str]]) -> types.Base:
    query = E("feature", namespace=Namespace.FEATURE_NEG)
    form = query.add_tag("x", namespace=Namespace.DATA, type="form")
    for var, values in features.items():
        field = form.add_tag("field", type="list-single", var=var)
        for value in values:
            field.add_tag("option").add_tag("value").text = value
    return query


def parse(query: types.Base) -> FeaturesT:
    features: FeaturesT = {}
    for form in query.get_x(Namespace.DATA):
        for field in form.iter_tags("field"):
            var = field.get("var")
            if var is None:
                continue

            options = [
                option.find_tag_text("value") or ""
                for option in field.iter_tags("option")
            ]
            if options:
                features[var] = options
            else:
                features[var] = field.find_tag_text("value")
    return features
