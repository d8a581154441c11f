#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Tests of placement grammar parser and legacy layout."""

import logging
from typing import Any, Optional

import pytest

from gwjtag.exceptions import GWJTAGArgumentError, GWJTAGSizeError, GWJTAGUsageError
from gwjtag.image.placement import Placement, legacy_layout, parse_placement, parse_placements
from gwjtag.image.segment import BootPartition, DeviceType, EraseMode, HwPartition, SegmentKind


@pytest.mark.parametrize(
    "token,offset,end",
    [
        ("rootfs.ubi@0x1100000", 0x1100000, None),
        ("rootfs.ubi@17M-", 0x1100000, None),
        ("u-boot.img@14M-16M", 0xE00000, 0x1000000),
        ("u-boot.img@0xE00000-0x1000000", 0xE00000, 0x1000000),
        ("SPL@0-0", 0, 0),
    ],
)
def test_parse_range_forms(token: str, offset: int, end: Optional[int]) -> None:
    """Test the plain range forms of placement token.

    :param token: Placement token.
    :param offset: Expected start offset.
    :param end: Expected end of range.
    """
    placement = parse_placement(token)
    assert placement.kind == SegmentKind.DATA
    assert placement.file == token.split("@")[0]
    assert placement.offset == offset
    assert placement.end == end
    assert placement.erase_mode == EraseMode.ERASE_NONE
    assert placement.partition is None


def test_parse_range_size() -> None:
    """Range extent is end minus start."""
    assert parse_placement("a@1M-3M").size == 0x200000
    assert parse_placement("a@1M").size is None


def test_parse_override_form_emmc() -> None:
    """Explicit partition and erase mode override on eMMC."""
    placement = parse_placement(
        "SPL@boot0:erase_part:0x2-0x45", DeviceType.EMMC, EraseMode.ERASE_ALL
    )
    assert placement.file == "SPL"
    assert placement.partition == HwPartition.BOOT0
    assert placement.erase_mode == EraseMode.ERASE_PART
    assert placement.offset == 0x2
    assert placement.end == 0x45


def test_parse_override_form_empty_partition() -> None:
    """Empty partition field means no partition."""
    placement = parse_placement("a@:erase_end:0x8a-", DeviceType.EMMC)
    assert placement.partition is None
    assert placement.erase_mode == EraseMode.ERASE_END
    assert placement.end is None


def test_parse_override_form_nand_ignores_partition() -> None:
    """Partition field is not interpreted on NAND."""
    placement = parse_placement("b@100:erase_all:200", DeviceType.NAND)
    assert placement.partition is None
    assert placement.erase_mode == EraseMode.ERASE_ALL
    assert placement.offset == 200


def test_parse_unknown_erase_mode(caplog: Any) -> None:
    """Unknown erase mode falls back to erase_none with a warning.

    :param caplog: Pytest log capture fixture.
    """
    caplog.set_level(logging.WARNING)
    placement = parse_placement("a@user:erase_some:0", DeviceType.EMMC, EraseMode.ERASE_ALL)
    assert placement.erase_mode == EraseMode.ERASE_NONE
    assert "erase_some" in caplog.text


@pytest.mark.parametrize(
    "token",
    [
        "file@@bad",
        "file",
        "@0x100",
        "file@",
        "file@0x100@0x200",
        "file@user:erase_all",
        "file@user:erase_all:0:1",
        "file@-0x100",
        "file@0-1-2",
        "file@user:erase_all:",
    ],
)
def test_parse_invalid_token(token: str) -> None:
    """Tokens matching no form are rejected.

    :param token: Invalid placement token.
    """
    with pytest.raises(GWJTAGArgumentError, match="Invalid placement"):
        parse_placement(token, DeviceType.EMMC)


@pytest.mark.parametrize("token", ["file@1X", "file@0x100-1Q", "file@user:erase_all:1.5M"])
def test_parse_invalid_size(token: str) -> None:
    """Malformed numbers are size errors.

    :param token: Placement token with invalid number.
    """
    with pytest.raises(GWJTAGSizeError):
        parse_placement(token, DeviceType.EMMC)


def test_parse_invalid_partition() -> None:
    """Unknown partition name on eMMC is rejected."""
    with pytest.raises(GWJTAGArgumentError, match="boot2"):
        parse_placement("a@boot2:erase_none:0", DeviceType.EMMC)


def test_parse_end_below_start() -> None:
    """Range end must not be below its start."""
    with pytest.raises(GWJTAGArgumentError, match="below start"):
        parse_placement("a@0x200-0x100")


def test_erase_mode_reset() -> None:
    """Erase mode never carries over to following segments."""
    placements = parse_placements(["a@0", "b@100:erase_all:200", "c@300"])
    assert [p.erase_mode for p in placements] == [
        EraseMode.ERASE_NONE,
        EraseMode.ERASE_ALL,
        EraseMode.ERASE_NONE,
    ]


def test_erase_all_first_segment_only() -> None:
    """Whole device erase applies to the first segment only."""
    placements = parse_placements(["a@0", "b@user:erase_part:1M", "c@2M"], erase_all=True)
    assert [p.erase_mode for p in placements] == [
        EraseMode.ERASE_ALL,
        EraseMode.ERASE_PART,
        EraseMode.ERASE_NONE,
    ]


def test_erase_all_overridden_by_first_token() -> None:
    """Explicit override of the first token wins over -e."""
    placements = parse_placements(["a@:erase_none:0", "b@1M"], erase_all=True)
    assert placements[0].erase_mode == EraseMode.ERASE_NONE
    assert placements[1].erase_mode == EraseMode.ERASE_NONE


def test_partconf_placement() -> None:
    """Partition-config marker precedes all data placements."""
    placements = parse_placements(
        ["SPL@user:erase_all:0x2", "u-boot.img@user:erase_none:0x8a"],
        DeviceType.EMMC,
        erase_all=True,
        partconf="user",
    )
    assert len(placements) == 3
    assert placements[0] == Placement.partconf(BootPartition.USER)
    assert placements[0].file is None
    assert placements[1].file == "SPL"


@pytest.mark.parametrize(
    "device_type,partconf",
    [(DeviceType.EMMC, "boot2"), (DeviceType.EMMC, ""), (DeviceType.NAND, "boot0")],
)
def test_partconf_invalid(device_type: DeviceType, partconf: str) -> None:
    """Unknown boot partition or NAND device is rejected.

    :param device_type: Target device.
    :param partconf: Boot partition name.
    """
    with pytest.raises(GWJTAGArgumentError):
        parse_placements(["a@0"], device_type, partconf=partconf)


def test_no_placement() -> None:
    """At least one placement is required."""
    with pytest.raises(GWJTAGUsageError):
        parse_placements([])


def test_legacy_one_file() -> None:
    """Single file is a filesystem image erased to the end."""
    assert legacy_layout(["rootfs.ubi"]) == [
        Placement.data("rootfs.ubi", 0x1100000, erase_mode=EraseMode.ERASE_END)
    ]


def test_legacy_two_files() -> None:
    """Bootloader pair layout does not depend on the files."""
    placements = legacy_layout(["X", "Y"])
    assert [(p.kind, p.file, p.offset, p.size, p.erase_mode) for p in placements] == [
        (SegmentKind.DATA, "X", 0, 0xE00000, EraseMode.ERASE_PART),
        (SegmentKind.DATA, "Y", 0xE00000, 0x200000, EraseMode.ERASE_PART),
    ]
    assert placements[1].end == 0x1000000


def test_legacy_three_files() -> None:
    """Full image layout erases the entire device first."""
    placements = legacy_layout(["A", "B", "C"])
    assert [(p.file, p.offset, p.size, p.erase_mode) for p in placements] == [
        ("A", 0, 0xE00000, EraseMode.ERASE_ALL),
        ("B", 0xE00000, None, EraseMode.ERASE_NONE),
        ("C", 0x1100000, None, EraseMode.ERASE_NONE),
    ]


@pytest.mark.parametrize("files", [[], ["a", "b", "c", "d"]])
def test_legacy_wrong_count(files: list[str]) -> None:
    """Only 1 to 3 files are accepted.

    :param files: File names.
    """
    with pytest.raises(GWJTAGUsageError, match="1, 2 or 3"):
        legacy_layout(files)


def test_legacy_emmc() -> None:
    """Legacy layout is NAND only."""
    with pytest.raises(GWJTAGUsageError, match="NAND"):
        legacy_layout(["a"], DeviceType.EMMC)


def test_legacy_with_placement() -> None:
    """Placement tokens require the placement mode."""
    with pytest.raises(GWJTAGArgumentError):
        legacy_layout(["a@0"])


def test_bootstream_requires_size() -> None:
    """Bootstream placement needs non-zero partition size."""
    with pytest.raises(GWJTAGArgumentError):
        Placement.bootstream(0, 0)
