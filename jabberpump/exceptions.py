# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later


class NodeProcessed(Exception):
    pass


class InvalidJid(ValueError):
    pass


class LocalpartByteLimit(InvalidJid):
    def __init__(self):
        InvalidJid.__init__(self, "Localpart must be between 1 and 1023 bytes")


class LocalpartNotAllowedChar(InvalidJid):
    def __init__(self):
        InvalidJid.__init__(self, "Not allowed character in localpart")


class ResourcepartByteLimit(InvalidJid):
    def __init__(self):
        InvalidJid.__init__(self, "Resourcepart must be between 1 and 1023 bytes")


class ResourcepartNotAllowedChar(InvalidJid):
    def __init__(self):
        InvalidJid.__init__(self, "Not allowed character in resourcepart")


class DomainpartByteLimit(InvalidJid):
    def __init__(self):
        InvalidJid.__init__(self, "Domainpart must be between 1 and 1023 bytes")


class DomainpartNotAllowedChar(InvalidJid):
    def __init__(self):
        InvalidJid.__init__(self, "Not allowed character in domainpart")
