# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import Any

import itertools
from collections.abc import Iterable
from collections.abc import Iterator

from jabberpump.builder import E
from jabberpump.const import TEMPVAR_PREFIX
from jabberpump.namespaces import Namespace
from jabberpump.structs import FormField
from jabberpump.structs import FormInfo
from jabberpump.structs import FormOption
from jabberpump.structs import ReportedField
from jabberpump import types


def extract_forms(forms: Iterable[types.Base]) -> FormInfo | None:
    """
    Flatten jabber:x:data forms into a FormInfo.

    Fields without a var get a temporary one ("<prefix>:tempvar:N", counted
    from 1 across all forms) so a caller can still answer them. When more
    than one form is passed, later forms override earlier ones position by
    position.
    """
    forms = list(forms)
    if not forms:
        return None

    info = FormInfo()
    tempvars = itertools.count(1)
    for form in forms:
        info.instructions = form.find_tag_text("instructions")

        for order, field in enumerate(form.iter_tags("field")):
            parsed = _parse_field(field, tempvars)
            if order < len(info.fields):
                info.fields[order] = parsed
            else:
                info.fields.append(parsed)

        for reported in form.iter_tags("reported"):
            for order, field in enumerate(reported.iter_tags("field")):
                parsed_reported = ReportedField(
                    var=field.get("var"), label=field.get("label")
                )
                if order < len(info.reported):
                    info.reported[order] = parsed_reported
                else:
                    info.reported.append(parsed_reported)

    return info


def _parse_field(field: types.Base, tempvars: Iterator[int]) -> FormField:
    var = field.get("var")
    if var is None:
        var = "%s:tempvar:%s" % (TEMPVAR_PREFIX, next(tempvars))

    type_ = field.get("type")
    values = [value.text or "" for value in field.iter_tags("value")]
    value: str | list[str] | None = None
    if values:
        value = values if type_ == "list-multi" else values[0]

    options = [
        FormOption(value=option.find_tag_text("value"), label=option.get("label"))
        for option in field.iter_tags("option")
    ]

    return FormField(
        var=var,
        type=type_,
        label=field.get("label"),
        desc=field.find_tag_text("desc"),
        value=value,
        options=options,
    )


def make_submit_form(fields: dict[str, Any]) -> types.Base:
    form = E("x", namespace=Namespace.DATA, type="submit")
    for var, value in fields.items():
        if value is None or value == "":
            continue

        field = form.add_tag("field", var=var)
        values = value if isinstance(value, (list, tuple)) else [value]
        for item in values:
            field.add_tag("value").text = str(item)
    return form
