#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""GWJTAG - JTAG flash image assembler.

Builds the composite segment stream consumed by a JTAG flash programmer to write
bootloader and filesystem images onto NAND or eMMC flash of an embedded board.
"""

import os
from typing import Optional, Union

from packaging.version import Version, parse
from platformdirs import PlatformDirs


def get_gwjtag_version() -> Version:
    """Get GWJTAG version information.

    :return: Parsed version object.
    """
    from .__version__ import __version__ as gwjtag_version

    return parse(gwjtag_version)


def value_to_bool(value: Optional[Union[bool, int, str]]) -> bool:
    """Convert value to boolean from various input formats.

    Supports conversion from string representations like "True", "true", "T", "1"
    and standard Python truthy/falsy values for other types.

    :param value: Value to convert to boolean (string, int, bool, or None).
    :return: Boolean representation of the input value.
    """
    if isinstance(value, str):
        return value in ("True", "true", "T", "1")
    return bool(value)


version = get_gwjtag_version()

__author__ = "NXP"
__license__ = "BSD-3-Clause"
__version__ = str(version)

GWJTAG_VERSION_BASE = version.base_version
GWJTAG_PLATFORM_DIRS = PlatformDirs(
    appauthor="nxp",
    appname="gwjtag",
    version=GWJTAG_VERSION_BASE,
)

GWJTAG_DEBUG_LOGGING_DISABLED = value_to_bool(os.environ.get("GWJTAG_DEBUG_LOGGING_DISABLED"))
GWJTAG_DEBUG_LOG_FILE = os.environ.get(
    "GWJTAG_DEBUG_LOG_FILE", os.path.join(GWJTAG_PLATFORM_DIRS.user_log_dir, "debug.log")
)

# payload streaming granularity, the whole file is never held in memory
GWJTAG_COPY_CHUNK_SIZE = int(os.environ.get("GWJTAG_COPY_CHUNK_SIZE", 64 * 1024))
