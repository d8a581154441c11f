#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Test module for GWJTAG miscellaneous utilities."""

import io
import os
from pathlib import Path
from typing import Callable

import pytest

from gwjtag.exceptions import GWJTAGError, GWJTAGFileError, GWJTAGSizeError
from gwjtag.utils.misc import (
    align,
    check_range,
    copy_file_to_stream,
    get_file_size,
    parse_size,
    size_fmt,
)


@pytest.mark.parametrize(
    "token,expected",
    [
        ("0", 0),
        ("10", 10),
        ("0x10", 0x10),
        ("0X10", 0x10),
        ("0xE00000", 0xE00000),
        ("1K", 1024),
        ("1KB", 1024),
        ("1KiB", 1024),
        ("1Ki", 1024),
        ("1k", 1024),
        ("1kib", 1024),
        ("1M", 1048576),
        ("1MB", 1048576),
        ("1mib", 1048576),
        ("14M", 0xE00000),
        ("17MiB", 0x1100000),
        ("1G", 1073741824),
        ("1GB", 1073741824),
        ("0x10K", 0x4000),
        ("0x2M", 0x200000),
        ("0x1B", 0x1B),
        (" 64K ", 65536),
    ],
)
def test_parse_size(token: str, expected: int) -> None:
    """Test parsing of size tokens with 1024 based units.

    :param token: Size token.
    :param expected: Expected number of bytes.
    """
    assert parse_size(token) == expected


@pytest.mark.parametrize(
    "token",
    ["", "1X", "K", "0x", "0xG", "-1", "1.5M", "1KK", "1T", "1MiBB", "0b101", "12 M", "1iK"],
)
def test_parse_size_invalid(token: str) -> None:
    """Test that malformed size tokens are rejected.

    :param token: Invalid size token.
    """
    with pytest.raises(GWJTAGSizeError):
        parse_size(token)


def test_parse_size_case_insensitive() -> None:
    """Upper and lower case spellings of a unit give identical values."""
    for unit in ["K", "M", "G"]:
        variants = [unit, unit.lower(), unit + "iB", unit.lower() + "ib", unit + "B"]
        assert len({parse_size(f"3{variant}") for variant in variants}) == 1


@pytest.mark.parametrize(
    "test_input,alignment,expected",
    [
        (0, 4, 0),
        (1, 4, 4),
        (4, 4, 4),
        (5, 4, 8),
        (1, 0x20000, 0x20000),
        (0x20000, 0x20000, 0x20000),
    ],
)
def test_align(test_input: int, alignment: int, expected: int) -> None:
    """Test the align function.

    :param test_input: The input value to be aligned.
    :param alignment: The alignment boundary value.
    :param expected: The expected aligned result value.
    """
    assert align(test_input, alignment) == expected


def test_align_invalid() -> None:
    """Negative number or non-positive alignment is rejected."""
    with pytest.raises(GWJTAGError):
        align(-1)
    with pytest.raises(GWJTAGError):
        align(1, 0)


def test_check_range() -> None:
    """Default range is unsigned 32-bit."""
    assert check_range(0)
    assert check_range(0xFFFF_FFFF)
    assert not check_range(0x1_0000_0000)
    assert not check_range(-1)
    assert check_range(7, end=7)
    assert not check_range(8, end=7)


@pytest.mark.parametrize(
    "num,use_kibibyte,expected",
    [
        (0, True, "0 B"),
        (1023, True, "1023 B"),
        (1024, True, "1.0 kiB"),
        (0xE00000, True, "14.0 MiB"),
        (1000, False, "1.0 kB"),
    ],
)
def test_size_fmt(num: int, use_kibibyte: bool, expected: str) -> None:
    """Test human readable size formatting.

    :param num: Size in bytes.
    :param use_kibibyte: Use binary units.
    :param expected: Expected string.
    """
    assert size_fmt(num, use_kibibyte) == expected


def test_get_file_size(make_file: Callable[..., str], tmp_path: Path) -> None:
    """File size is reported for regular files only."""
    path = make_file("blob.bin", 1234)
    assert get_file_size(path) == 1234
    with pytest.raises(GWJTAGFileError, match="not found"):
        get_file_size(os.path.join(str(tmp_path), "missing.bin"))
    with pytest.raises(GWJTAGFileError):
        get_file_size(str(tmp_path))


@pytest.mark.parametrize("chunk_size", [1, 7, 1000, 4096, 1 << 20])
def test_copy_file_to_stream(make_file: Callable[..., str], chunk_size: int) -> None:
    """Copy gives identical data regardless of the chunk size.

    :param make_file: File factory fixture.
    :param chunk_size: Size of one copy step.
    """
    path = make_file("payload.bin", 5000)
    with open(path, "rb") as f:
        expected = f.read()
    stream = io.BytesIO()
    assert copy_file_to_stream(path, stream, len(expected), chunk_size) == len(expected)
    assert stream.getvalue() == expected


def test_copy_file_to_stream_truncated(make_file: Callable[..., str]) -> None:
    """File shorter than the announced length is reported."""
    path = make_file("short.bin", 100)
    with pytest.raises(GWJTAGFileError, match="truncated"):
        copy_file_to_stream(path, io.BytesIO(), 200)


class _BrokenStream(io.BytesIO):
    """Output stream failing on every write."""

    def write(self, data: bytes) -> int:  # type: ignore[override]
        raise BrokenPipeError("Broken pipe")


def test_copy_file_to_stream_output_error(make_file: Callable[..., str]) -> None:
    """Output error is not reported as an error of the input file."""
    path = make_file("payload.bin", 100)
    with pytest.raises(BrokenPipeError):
        copy_file_to_stream(path, _BrokenStream(), 100)


def test_copy_file_to_stream_missing(tmp_path: Path) -> None:
    """Input file which can't be opened is a file error."""
    with pytest.raises(GWJTAGFileError, match="Cannot open"):
        copy_file_to_stream(os.path.join(str(tmp_path), "missing.bin"), io.BytesIO(), 1)
