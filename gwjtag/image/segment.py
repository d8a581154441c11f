#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""JTAG image segment header.

Every segment of the JTAG image starts with a fixed header::

    magic:u16="GW" | config:u16 | offset:u32 | dsize:u32 | psize:u32

followed by `dsize` bytes of payload. All integers are little endian. The offset and
part size are counted in bytes on NAND and in 512-byte blocks on eMMC.
"""

from struct import calcsize, pack, unpack_from
from typing import Optional

from typing_extensions import Self

from gwjtag.exceptions import GWJTAGArgumentError, GWJTAGParsingError
from gwjtag.utils.abstract import BaseClass
from gwjtag.utils.gwjtag_enum import GwEnum
from gwjtag.utils.misc import check_range

EMMC_BLOCK_SIZE = 512

########################################################################################################################
# Enums
########################################################################################################################


class DeviceType(GwEnum):
    """Target flash device type."""

    NAND = (0, "nand", "Raw NAND flash, offsets in bytes")
    EMMC = (1, "emmc", "eMMC flash, offsets in blocks")

    @property
    def offset_unit(self) -> int:
        """Number of bytes addressed by one unit of segment offset and part size."""
        return EMMC_BLOCK_SIZE if self == DeviceType.EMMC else 1


class EraseMode(GwEnum):
    """Flash erase policy applied before the segment is programmed."""

    ERASE_ALL = (0, "erase_all", "Erase the entire device")
    ERASE_NONE = (1, "erase_none", "Do not erase")
    ERASE_PART = (2, "erase_part", "Erase the partition the segment lands in")
    ERASE_END = (3, "erase_end", "Erase from segment offset to the end of device")


class HwPartition(GwEnum):
    """eMMC hardware partition a data segment is written to."""

    USER = (0, "user", "User data area")
    BOOT0 = (1, "boot0", "Boot partition 0")
    BOOT1 = (2, "boot1", "Boot partition 1")
    RPMB = (3, "rpmb", "Replay protected memory block")


class BootPartition(GwEnum):
    """eMMC partition enabled for boot by the partition-config marker."""

    BOOT0 = (1, "boot0", "Boot from boot partition 0")
    BOOT1 = (2, "boot1", "Boot from boot partition 1")
    USER = (7, "user", "Boot from user data area")


class SegmentKind(GwEnum):
    """Kind of JTAG image segment."""

    DATA = (0, "data", "File payload")
    BOOTSTREAM = (1, "bootstream", "Reserved bootstream partition, no payload")
    PARTCONF = (2, "partconf", "Partition-config marker, no payload")


########################################################################################################################
# Classes
########################################################################################################################


class SegmentConfig(BaseClass):
    """Segment configuration word.

    Bit layout of the 16-bit word:

    =====  ==================  ==========================================
    bits   field               values
    =====  ==================  ==========================================
    0-1    erase mode          0=all, 1=none, 2=partition, 3=to-end
    2-4    hardware partition  0=user/none, 1=boot0, 2=boot1, 3=rpmb, 7=user (partconf)
    5      compressed          0/1
    6-12   reserved            0
    13-15  device type         0=NAND, 1=eMMC
    =====  ==================  ==========================================
    """

    ERASE_SHIFT = 0
    ERASE_MASK = 0x3
    PARTITION_SHIFT = 2
    PARTITION_MASK = 0x7
    COMPRESSED_SHIFT = 5
    RESERVED_MASK = 0x1FC0
    DEVICE_SHIFT = 13
    DEVICE_MASK = 0x7

    def __init__(
        self,
        device_type: DeviceType = DeviceType.NAND,
        erase_mode: EraseMode = EraseMode.ERASE_NONE,
        partition: int = 0,
        compressed: bool = False,
    ) -> None:
        """Constructor.

        :param device_type: Target flash device type
        :param erase_mode: Erase policy of the segment
        :param partition: Raw value of the 3-bit partition field
        :param compressed: Compressed payload flag
        :raises GWJTAGArgumentError: If the partition does not fit its field
        """
        if not check_range(partition, end=self.PARTITION_MASK):
            raise GWJTAGArgumentError(f"Partition value {partition} does not fit into 3 bits")
        if device_type != DeviceType.EMMC and partition:
            raise GWJTAGArgumentError("Hardware partition is supported on eMMC only")
        self.device_type = device_type
        self.erase_mode = erase_mode
        self.partition = partition
        self.compressed = compressed

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self.device_type.label}, {self.erase_mode.label}, "
            f"{self.partition}, {self.compressed})"
        )

    def __str__(self) -> str:
        return (
            f"{self.device_type.label.upper()}, {self.erase_mode.label}, partition: "
            f"{self.partition}{', compressed' if self.compressed else ''}"
        )

    def export(self) -> int:
        """Pack the configuration into the 16-bit config word."""
        return (
            (self.erase_mode.tag & self.ERASE_MASK) << self.ERASE_SHIFT
            | (self.partition & self.PARTITION_MASK) << self.PARTITION_SHIFT
            | int(self.compressed) << self.COMPRESSED_SHIFT
            | (self.device_type.tag & self.DEVICE_MASK) << self.DEVICE_SHIFT
        )

    @classmethod
    def parse(cls, data: int) -> Self:
        """Unpack the 16-bit config word.

        :param data: Config word
        :raises GWJTAGParsingError: Reserved bits are set or device type is unknown
        :return: SegmentConfig object
        """
        if data & cls.RESERVED_MASK:
            raise GWJTAGParsingError(f"Reserved bits set in config word 0x{data:04X}")
        device_tag = (data >> cls.DEVICE_SHIFT) & cls.DEVICE_MASK
        if not DeviceType.contains(device_tag):
            raise GWJTAGParsingError(f"Unknown device type {device_tag} in config word")
        return cls(
            device_type=DeviceType.from_tag(device_tag),
            erase_mode=EraseMode.from_tag((data >> cls.ERASE_SHIFT) & cls.ERASE_MASK),
            partition=(data >> cls.PARTITION_SHIFT) & cls.PARTITION_MASK,
            compressed=bool((data >> cls.COMPRESSED_SHIFT) & 1),
        )


class SegmentHeader(BaseClass):
    """Header of one JTAG image segment."""

    MAGIC = b"GW"
    FORMAT = "<2sHIII"
    SIZE = calcsize(FORMAT)

    def __init__(
        self,
        config: Optional[SegmentConfig] = None,
        offset: int = 0,
        data_size: int = 0,
        part_size: int = 0,
    ) -> None:
        """Constructor.

        :param config: Segment configuration
        :param offset: Target offset, bytes for NAND and blocks for eMMC
        :param data_size: Length of the payload following the header
        :param part_size: Reserved partition size, the range extent of a data segment
        :raises GWJTAGArgumentError: If any field does not fit into 32 bits
        """
        for name, value in (("offset", offset), ("data size", data_size), ("part size", part_size)):
            if not check_range(value):
                raise GWJTAGArgumentError(f"Segment {name} 0x{value:X} does not fit into 32 bits")
        self.config = config or SegmentConfig()
        self.offset = offset
        self.data_size = data_size
        self.part_size = part_size

    @property
    def kind(self) -> SegmentKind:
        """Kind of the segment derived from its sizes.

        Data segments may carry the extent of their target range in the part size.
        """
        if self.data_size:
            return SegmentKind.DATA
        if self.part_size:
            return SegmentKind.BOOTSTREAM
        return SegmentKind.PARTCONF

    @property
    def size(self) -> int:
        """Header size in bytes."""
        return self.SIZE

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self.config!r}, 0x{self.offset:X}, "
            f"{self.data_size}, {self.part_size})"
        )

    def __str__(self) -> str:
        return (
            f"{self.kind.label} <CFG:0x{self.config.export():04X}, OFFSET:0x{self.offset:08X}, "
            f"DSIZE:{self.data_size}B, PSIZE:0x{self.part_size:X}>"
        )

    def export(self) -> bytes:
        """Binary representation of the header."""
        return pack(
            self.FORMAT,
            self.MAGIC,
            self.config.export(),
            self.offset,
            self.data_size,
            self.part_size,
        )

    @classmethod
    def parse(cls, data: bytes, offset: int = 0) -> Self:
        """Parse header.

        :param data: Raw data as bytes or bytearray
        :param offset: Offset of the header in input data
        :raises GWJTAGParsingError: Data are too short or magic does not match
        :return: SegmentHeader object
        """
        if len(data) - offset < cls.SIZE:
            raise GWJTAGParsingError(
                f"Incomplete segment header: {len(data) - offset} of {cls.SIZE} bytes"
            )
        magic, config, seg_offset, data_size, part_size = unpack_from(cls.FORMAT, data, offset)
        if magic != cls.MAGIC:
            raise GWJTAGParsingError(f"Invalid segment magic {magic!r}, expected {cls.MAGIC!r}")
        try:
            return cls(SegmentConfig.parse(config), seg_offset, data_size, part_size)
        except GWJTAGArgumentError as exc:
            raise GWJTAGParsingError(f"Invalid segment header: {exc.description}") from exc
