# This file is part of jabberpump.
#
# SPDX-License-Identifier: GPL-3.0-or-later

__version__: str = "0.1.0"
