#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Miscellaneous functions used throughout the GWJTAG."""

import logging
import os
import re
from typing import BinaryIO, Optional, Union

from gwjtag import GWJTAG_COPY_CHUNK_SIZE
from gwjtag.exceptions import GWJTAGError, GWJTAGFileError, GWJTAGSizeError

logger = logging.getLogger(__name__)

UINT32_MAX = 0xFFFF_FFFF

SIZE_UNITS = {None: 1, "k": 1 << 10, "m": 1 << 20, "g": 1 << 30}

_SIZE_RE = re.compile(
    r"(?:0x(?P<hex>[0-9a-f]+)|(?P<dec>[0-9]+))(?:(?P<unit>[kmg])i?b?)?",
    re.IGNORECASE,
)


def parse_size(token: str) -> int:
    """Convert human-readable size token into exact number of bytes.

    Accepts decimal or ``0x`` prefixed hexadecimal number followed by an optional unit
    ``K``, ``M`` or ``G`` (each optionally followed by ``i`` and/or ``B``). The unit step
    is always 1024, so ``16M``, ``16MiB`` and ``16MB`` are the same value.

    :param token: Size token, e.g. ``0x1100000``, ``14M``, ``2MiB``.
    :raises GWJTAGSizeError: Token does not match the size grammar.
    :return: Number of bytes.
    """
    if not isinstance(token, str):
        raise GWJTAGSizeError(f"Invalid size '{token}': expected string")
    match = _SIZE_RE.fullmatch(token.strip())
    if not match:
        raise GWJTAGSizeError(f"Invalid size '{token}'")
    if match.group("hex") is not None:
        number = int(match.group("hex"), 16)
    else:
        number = int(match.group("dec"), 10)
    unit = match.group("unit")
    return number * SIZE_UNITS[unit.lower() if unit else None]


def align(number: int, alignment: int = 4) -> int:
    """Align number (size or address) up to the given boundary.

    :param number: The number to be aligned.
    :param alignment: The boundary alignment.
    :raises GWJTAGError: When alignment is non-positive or number is negative.
    :return: Aligned number.
    """
    if alignment <= 0 or number < 0:
        raise GWJTAGError("Wrong alignment")

    return (number + (alignment - 1)) // alignment * alignment


def check_range(x: int, start: int = 0, end: int = UINT32_MAX) -> bool:
    """Check if the number is in range.

    :param x: Number to check.
    :param start: Lower border of range, default is 0.
    :param end: Upper border of range, default is unsigned 32-bit range.
    :return: True if fits, False otherwise.
    """
    return start <= x <= end


def size_fmt(num: Union[float, int], use_kibibyte: bool = True) -> str:
    """Format byte size into human-readable string representation.

    :param num: The byte size value to format.
    :param use_kibibyte: Use binary (1024-based) 'iB' units, otherwise decimal 'B' units.
    :return: Formatted size string, e.g. "1.5 MiB" or "1024 B".
    """
    base, suffix = [(1000.0, "B"), (1024.0, "iB")][use_kibibyte]
    i = "B"
    for i in ["B"] + [i + suffix for i in list("kMGTP")]:
        if num < base:
            break
        num /= base

    return f"{int(num)} {i}" if i == "B" else f"{num:3.1f} {i}"


def get_file_size(path: str) -> int:
    """Get size of a readable regular file.

    :param path: Path to the file.
    :raises GWJTAGFileError: File is missing, is not a regular file or is not readable.
    :return: File length in bytes.
    """
    if not os.path.isfile(path):
        raise GWJTAGFileError(f"File not found: {path}")
    if not os.access(path, os.R_OK):
        raise GWJTAGFileError(f"File is not readable: {path}")
    try:
        return os.path.getsize(path)
    except OSError as exc:
        raise GWJTAGFileError(f"Cannot determine size of {path}: {exc}") from exc


def copy_file_to_stream(
    path: str, stream: BinaryIO, length: int, chunk_size: Optional[int] = None
) -> int:
    """Stream exactly `length` bytes of a file into the output stream.

    Errors of the output stream are not caught, they propagate unchanged.

    :param path: Source file path.
    :param stream: Binary output stream.
    :param length: Number of bytes expected in the file.
    :param chunk_size: Size of one copy step, defaults to GWJTAG_COPY_CHUNK_SIZE.
    :raises GWJTAGFileError: File can't be read or it changed its length meanwhile.
    :return: Number of bytes written.
    """
    chunk_size = chunk_size or GWJTAG_COPY_CHUNK_SIZE
    written = 0
    try:
        f = open(path, "rb")  # pylint: disable=consider-using-with
    except OSError as exc:
        raise GWJTAGFileError(f"Cannot open {path}: {exc}") from exc
    with f:
        while written < length:
            try:
                chunk = f.read(min(chunk_size, length - written))
            except OSError as exc:
                raise GWJTAGFileError(f"Cannot read {path}: {exc}") from exc
            if not chunk:
                break
            stream.write(chunk)
            written += len(chunk)
    if written != length:
        raise GWJTAGFileError(
            f"File {path} was truncated while reading: {written} of {length} bytes copied"
        )
    logger.debug(f"Copied {written} bytes from {path}")
    return written
