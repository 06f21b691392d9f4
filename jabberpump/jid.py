# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import Optional
from typing import Union

import functools
import ipaddress
from dataclasses import dataclass

import idna
from precis_i18n import get_profile

from jabberpump import exceptions


_localpart_disallowed_chars = set('"&\'/:<>@')


def _is_ip_address(domainpart: str) -> bool:
    try:
        ipaddress.ip_address(domainpart)
    except ValueError:
        return False
    return True


@functools.lru_cache(maxsize=None)
def validate_localpart(localpart: str) -> str:
    if not localpart or len(localpart.encode()) > 1023:
        raise exceptions.LocalpartByteLimit

    if _localpart_disallowed_chars & set(localpart):
        raise exceptions.LocalpartNotAllowedChar

    try:
        username = get_profile('UsernameCaseMapped')
        return username.enforce(localpart)
    except UnicodeError:
        raise exceptions.LocalpartNotAllowedChar


@functools.lru_cache(maxsize=None)
def validate_resourcepart(resourcepart: str) -> str:
    if not resourcepart or len(resourcepart.encode()) > 1023:
        raise exceptions.ResourcepartByteLimit

    try:
        opaque = get_profile('OpaqueString')
        return opaque.enforce(resourcepart)
    except UnicodeError:
        raise exceptions.ResourcepartNotAllowedChar


@functools.lru_cache(maxsize=None)
def validate_domainpart(domainpart: Optional[str]) -> str:
    if not domainpart:
        raise exceptions.DomainpartByteLimit

    ip_address = domainpart.strip('[]')
    if _is_ip_address(ip_address):
        return ip_address

    if len(domainpart.encode()) > 1023:
        raise exceptions.DomainpartByteLimit

    if domainpart.endswith('.'):  # RFC7622, 3.2
        domainpart = domainpart[:-1]

    try:
        idna_encode(domainpart)
    except idna.IDNAError:
        raise exceptions.DomainpartNotAllowedChar

    return domainpart


@functools.lru_cache(maxsize=None)
def idna_encode(domain: str) -> str:
    return idna.encode(domain, uts46=True).decode()


@dataclass(frozen=True)
class JID:
    localpart: Optional[str] = None
    domain: Optional[str] = None
    resource: Optional[str] = None

    def __init__(self,
                 localpart: Optional[str] = None,
                 domain: Optional[str] = None,
                 resource: Optional[str] = None):

        if localpart is not None:
            localpart = validate_localpart(localpart)
        object.__setattr__(self, 'localpart', localpart)

        domain = validate_domainpart(domain)
        object.__setattr__(self, 'domain', domain)

        if resource is not None:
            resource = validate_resourcepart(resource)
        object.__setattr__(self, 'resource', resource)

    @classmethod
    @functools.lru_cache(maxsize=None)
    def from_string(cls, jid_string: str) -> JID:
        # https://tools.ietf.org/html/rfc7622#section-3.2

        if '/' in jid_string:
            rest, resourcepart = jid_string.split('/', 1)
        else:
            rest, resourcepart = jid_string, None

        if '@' in rest:
            localpart, domainpart = rest.split('@', 1)
        else:
            localpart, domainpart = None, rest

        return cls(localpart=localpart,
                   domain=domainpart,
                   resource=resourcepart)

    def __str__(self) -> str:
        if self.localpart:
            jid = f'{self.localpart}@{self.domain}'
        else:
            jid = str(self.domain)

        if self.resource is not None:
            return f'{jid}/{self.resource}'
        return jid

    def __hash__(self) -> int:
        return hash(str(self))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JID):
            return NotImplemented

        return (self.localpart == other.localpart and
                self.domain == other.domain and
                self.resource == other.resource)

    @property
    def bare(self) -> str:
        if self.localpart is not None:
            return f'{self.localpart}@{self.domain}'
        return str(self.domain)

    @property
    def is_bare(self) -> bool:
        return self.resource is None

    @property
    def is_domain(self) -> bool:
        return self.localpart is None and self.resource is None

    def new_as_bare(self) -> JID:
        if self.resource is None:
            return self
        return JID(localpart=self.localpart, domain=self.domain)

    def new_with(self, **kwargs: Optional[str]) -> JID:
        parts = {'localpart': self.localpart,
                 'domain': self.domain,
                 'resource': self.resource}
        parts.update(kwargs)
        return JID(**parts)

    def bare_match(self, other: Union[str, JID]) -> bool:
        if isinstance(other, str):
            other = JID.from_string(other)
        return self.bare == other.bare
