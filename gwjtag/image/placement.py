#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Placement descriptors of JTAG image segments.

A placement tells where and how one segment lands on the target flash. Placements are
created either from the placement grammar given on command line::

    file@partition:erasemode:offset[-end]
    file@start-end
    file@start-
    file@start

or from the fixed legacy layout selected by the number of bare file names.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from gwjtag.exceptions import GWJTAGArgumentError, GWJTAGUsageError
from gwjtag.image.segment import BootPartition, DeviceType, EraseMode, HwPartition, SegmentKind
from gwjtag.utils.misc import parse_size, size_fmt

logger = logging.getLogger(__name__)

# Legacy NAND layout
LEGACY_BOOTLOADER_OFFSET = 0
LEGACY_BOOTLOADER_PART_SIZE = 0xE00000
LEGACY_SECONDARY_OFFSET = 0xE00000
LEGACY_SECONDARY_PART_SIZE = 0x200000
LEGACY_ROOTFS_OFFSET = 0x1100000


@dataclass
class Placement:
    """Placement descriptor of one JTAG image segment.

    :param kind: Kind of the segment
    :param file: Path of the payload file, only for data segments
    :param offset: Target offset
    :param end: Optional end of the target range, constrains the payload length
    :param erase_mode: Erase policy of the segment
    :param partition: Hardware partition of a data segment (eMMC only)
    :param part_size: Reserved size of a bootstream partition
    :param boot_partition: Boot partition selected by a partition-config marker
    """

    kind: SegmentKind = SegmentKind.DATA
    file: Optional[str] = None
    offset: int = 0
    end: Optional[int] = None
    erase_mode: EraseMode = EraseMode.ERASE_NONE
    partition: Optional[HwPartition] = None
    part_size: int = 0
    boot_partition: Optional[BootPartition] = None

    @classmethod
    def data(
        cls,
        file: str,
        offset: int,
        end: Optional[int] = None,
        erase_mode: EraseMode = EraseMode.ERASE_NONE,
        partition: Optional[HwPartition] = None,
    ) -> "Placement":
        """Create descriptor of a segment carrying file payload.

        :param file: Path to the payload file
        :param offset: Target offset
        :param end: Optional end of the target range
        :param erase_mode: Erase policy
        :param partition: eMMC hardware partition
        :raises GWJTAGArgumentError: End of range lies before its start
        :return: Placement object
        """
        if end is not None and end < offset:
            raise GWJTAGArgumentError(
                f"Invalid range for {file}: end 0x{end:X} is below start 0x{offset:X}"
            )
        return cls(
            kind=SegmentKind.DATA,
            file=file,
            offset=offset,
            end=end,
            erase_mode=erase_mode,
            partition=partition,
        )

    @classmethod
    def bootstream(
        cls, offset: int, part_size: int, erase_mode: EraseMode = EraseMode.ERASE_PART
    ) -> "Placement":
        """Create descriptor of a bootstream segment.

        :param offset: Target offset of the bootstream partition
        :param part_size: Size of the reserved partition, must not be zero
        :param erase_mode: Erase policy
        :raises GWJTAGArgumentError: Zero partition size
        :return: Placement object
        """
        if not part_size:
            raise GWJTAGArgumentError("Bootstream segment requires non-zero partition size")
        return cls(
            kind=SegmentKind.BOOTSTREAM, offset=offset, part_size=part_size, erase_mode=erase_mode
        )

    @classmethod
    def partconf(cls, boot_partition: BootPartition) -> "Placement":
        """Create descriptor of a partition-config marker.

        :param boot_partition: eMMC partition to boot from
        :return: Placement object
        """
        return cls(kind=SegmentKind.PARTCONF, boot_partition=boot_partition)

    @property
    def size(self) -> Optional[int]:
        """Size of the target region if known from the placement itself."""
        if self.kind == SegmentKind.BOOTSTREAM:
            return self.part_size
        if self.end is not None:
            return self.end - self.offset
        return None

    def __str__(self) -> str:
        if self.kind == SegmentKind.PARTCONF:
            assert self.boot_partition
            return f"partconf: boot from {self.boot_partition.label}"
        if self.kind == SegmentKind.BOOTSTREAM:
            return (
                f"bootstream @0x{self.offset:X}, partition {size_fmt(self.part_size)}, "
                f"{self.erase_mode.label}"
            )
        ret = f"{self.file} @0x{self.offset:X}"
        if self.end is not None:
            ret += f"-0x{self.end:X}"
        ret += f", {self.erase_mode.label}"
        if self.partition is not None:
            ret += f", {self.partition.label}"
        return ret


def _parse_erase_mode(name: str) -> EraseMode:
    """Translate erase-mode keyword, unknown keywords fall back to erase_none."""
    if EraseMode.contains(name):
        return EraseMode.from_label(name)
    logger.warning(f"Unknown erase mode '{name}', using {EraseMode.ERASE_NONE.label}")
    return EraseMode.ERASE_NONE


def _parse_partition(name: str, device_type: DeviceType) -> Optional[HwPartition]:
    """Translate hardware partition keyword for the given device."""
    if device_type != DeviceType.EMMC:
        if name:
            logger.debug(f"Ignoring partition '{name}' on {device_type.label} device")
        return None
    if not name:
        return None
    return HwPartition.from_label(name)


def _parse_range(token: str, text: str) -> tuple[int, Optional[int]]:
    """Parse `start[-[end]]` part of a placement token."""
    start_str, sep, end_str = text.partition("-")
    if not start_str or "-" in end_str:
        raise GWJTAGArgumentError(f"Invalid placement '{token}': malformed range '{text}'")
    start = parse_size(start_str)
    end = parse_size(end_str) if sep and end_str else None
    return start, end


def parse_placement(
    token: str,
    device_type: DeviceType = DeviceType.NAND,
    default_erase: EraseMode = EraseMode.ERASE_NONE,
) -> Placement:
    """Parse one placement token.

    The forms are tried in order: explicit `partition:erasemode:range` override first,
    then plain `start[-[end]]` range which uses the `default_erase` mode.

    :param token: Placement token, e.g. ``u-boot.img@0xE00000-0x1000000``
    :param device_type: Target device type
    :param default_erase: Erase mode used when the token does not override it
    :raises GWJTAGArgumentError: Token matches none of the forms or names invalid partition
    :raises GWJTAGSizeError: Offset is not a valid size
    :return: Placement object
    """
    file, sep, location = token.partition("@")
    if not file or not sep or not location or "@" in location:
        raise GWJTAGArgumentError(f"Invalid placement '{token}'")

    if ":" in location:
        fields = location.split(":")
        if len(fields) != 3:
            raise GWJTAGArgumentError(
                f"Invalid placement '{token}': expected file@partition:erasemode:offset[-end]"
            )
        part_name, erase_name, range_str = fields
        try:
            partition = _parse_partition(part_name, device_type)
        except GWJTAGArgumentError as exc:
            raise GWJTAGArgumentError(f"Invalid placement '{token}': {exc.description}") from exc
        erase_mode = _parse_erase_mode(erase_name)
    else:
        partition = None
        erase_mode = default_erase
        range_str = location

    start, end = _parse_range(token, range_str)
    return Placement.data(file, start, end, erase_mode=erase_mode, partition=partition)


def parse_placements(
    tokens: Iterable[str],
    device_type: DeviceType = DeviceType.NAND,
    erase_all: bool = False,
    partconf: Optional[str] = None,
) -> list[Placement]:
    """Parse list of placement tokens.

    Only the first segment may inherit the whole device erase, every following segment
    defaults to erase_none unless its own token says otherwise.

    :param tokens: Placement tokens in image order
    :param device_type: Target device type
    :param erase_all: Erase the entire device before the first segment
    :param partconf: Optional boot partition name for the partition-config marker (eMMC only)
    :raises GWJTAGArgumentError: Invalid token, partconf or empty token list
    :return: List of placements in image order
    """
    placements: list[Placement] = []
    if partconf is not None:
        if device_type != DeviceType.EMMC:
            raise GWJTAGArgumentError("Partition config is supported on eMMC only")
        try:
            placements.append(Placement.partconf(BootPartition.from_label(partconf)))
        except GWJTAGArgumentError as exc:
            raise GWJTAGArgumentError(f"Invalid partconf: {exc.description}") from exc

    default_erase = EraseMode.ERASE_ALL if erase_all else EraseMode.ERASE_NONE
    count = 0
    for token in tokens:
        placement = parse_placement(token, device_type, default_erase)
        logger.debug(f"Placement {count}: {placement}")
        placements.append(placement)
        default_erase = EraseMode.ERASE_NONE
        count += 1

    if not count:
        raise GWJTAGUsageError("No placement given")
    return placements


def legacy_layout(
    files: Sequence[str], device_type: DeviceType = DeviceType.NAND
) -> list[Placement]:
    """Create placements of the fixed legacy NAND layout.

    * 1 file: filesystem image erased to the end of device at 17 MiB.
    * 2 files: bootloader into 14 MiB partition at 0, second stage into 2 MiB
      partition at 14 MiB, both partitions erased.
    * 3 files: bootloader into 14 MiB partition with whole device erase, second
      stage at 14 MiB and filesystem image at 17 MiB.

    :param files: One to three file names
    :param device_type: Target device type, must be NAND
    :raises GWJTAGUsageError: Wrong device type or number of files
    :return: List of placements in image order
    """
    if device_type != DeviceType.NAND:
        raise GWJTAGUsageError("Legacy layout supports NAND devices only, use -s or -e")
    for file in files:
        if "@" in file:
            raise GWJTAGUsageError(f"Placement '{file}' requires -s or -e option")

    if len(files) == 1:
        return [Placement.data(files[0], LEGACY_ROOTFS_OFFSET, erase_mode=EraseMode.ERASE_END)]
    bootloader_end = LEGACY_BOOTLOADER_OFFSET + LEGACY_BOOTLOADER_PART_SIZE
    if len(files) == 2:
        return [
            Placement.data(
                files[0],
                LEGACY_BOOTLOADER_OFFSET,
                bootloader_end,
                erase_mode=EraseMode.ERASE_PART,
            ),
            Placement.data(
                files[1],
                LEGACY_SECONDARY_OFFSET,
                LEGACY_SECONDARY_OFFSET + LEGACY_SECONDARY_PART_SIZE,
                erase_mode=EraseMode.ERASE_PART,
            ),
        ]
    if len(files) == 3:
        return [
            Placement.data(
                files[0], LEGACY_BOOTLOADER_OFFSET, bootloader_end, erase_mode=EraseMode.ERASE_ALL
            ),
            Placement.data(files[1], LEGACY_SECONDARY_OFFSET),
            Placement.data(files[2], LEGACY_ROOTFS_OFFSET),
        ]
    raise GWJTAGUsageError(f"Legacy layout expects 1, 2 or 3 files, got {len(files)}")
