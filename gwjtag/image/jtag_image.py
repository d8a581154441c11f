#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""JTAG image assembler.

The JTAG image is an ordered sequence of segments, each one a fixed header optionally
followed by the payload copied from a file. The programmer consumes the image strictly
in order, so the segment order is the order of the placements.
"""

import io
import logging
from typing import BinaryIO, Iterator, Optional, Sequence

import prettytable
from typing_extensions import Self

from gwjtag.exceptions import (
    GWJTAGArgumentError,
    GWJTAGError,
    GWJTAGFileError,
    GWJTAGParsingError,
)
from gwjtag.image.placement import Placement
from gwjtag.image.segment import (
    BootPartition,
    DeviceType,
    EraseMode,
    HwPartition,
    SegmentConfig,
    SegmentHeader,
    SegmentKind,
)
from gwjtag.utils.abstract import BaseClass
from gwjtag.utils.misc import align, check_range, copy_file_to_stream, get_file_size, size_fmt

logger = logging.getLogger(__name__)


class JtagSegment(BaseClass):
    """One segment of the JTAG image.

    The payload is either referenced by `file` (segment being assembled) or held in
    `data` (segment decoded from an existing image).
    """

    def __init__(
        self, header: SegmentHeader, file: Optional[str] = None, data: Optional[bytes] = None
    ) -> None:
        """Constructor.

        :param header: Segment header
        :param file: Path to the payload file
        :param data: Payload bytes
        :raises GWJTAGArgumentError: Payload does not match the header
        """
        if data is not None and len(data) != header.data_size:
            raise GWJTAGArgumentError(
                f"Payload length {len(data)} does not match data size {header.data_size}"
            )
        if header.data_size and file is None and data is None:
            raise GWJTAGArgumentError("Data segment requires payload")
        self.header = header
        self.file = file
        self.data = data

    @property
    def kind(self) -> SegmentKind:
        """Kind of the segment."""
        return self.header.kind

    @property
    def size(self) -> int:
        """Size of the exported segment including header."""
        return self.header.size + self.header.data_size

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.header!r}, {self.file!r})"

    def __str__(self) -> str:
        return str(self.header) + (f" from {self.file}" if self.file else "")

    @classmethod
    def from_placement(
        cls,
        placement: Placement,
        device_type: DeviceType,
        page_size: Optional[int] = None,
        block_size: Optional[int] = None,
    ) -> Self:
        """Resolve placement into a segment ready to be written.

        A data segment placed into an explicit range carries the range extent
        as its part size.

        :param placement: Placement descriptor
        :param device_type: Target device type of the whole image
        :param page_size: Optional page size, enables offset alignment check
        :param block_size: Optional erase block size, enables offset alignment check
        :raises GWJTAGFileError: Payload file is missing, empty or does not fit its range
        :raises GWJTAGArgumentError: Misaligned offset or invalid placement for device
        :return: Segment
        """
        if placement.kind == SegmentKind.PARTCONF:
            assert placement.boot_partition
            config = SegmentConfig(
                device_type=device_type,
                erase_mode=EraseMode.ERASE_NONE,
                partition=placement.boot_partition.tag,
            )
            return cls(SegmentHeader(config))

        _check_alignment(placement, device_type, page_size, block_size)
        if placement.kind == SegmentKind.BOOTSTREAM:
            config = SegmentConfig(device_type=device_type, erase_mode=placement.erase_mode)
            return cls(SegmentHeader(config, placement.offset, part_size=placement.part_size))

        assert placement.file
        data_size = get_file_size(placement.file)
        if not data_size:
            raise GWJTAGFileError(f"File {placement.file} is empty")
        if not check_range(data_size):
            raise GWJTAGFileError(f"File {placement.file} exceeds 4 GiB ({size_fmt(data_size)})")
        # range extent is encoded in offset units, the file length in bytes
        region = placement.size or 0
        unit = device_type.offset_unit
        if placement.end is not None and data_size > region * unit:
            raise GWJTAGFileError(
                f"File {placement.file} ({size_fmt(data_size)}) does not fit into range "
                f"0x{placement.offset:X}-0x{placement.end:X} "
                f"({size_fmt(region * unit)})"
            )
        partition = placement.partition.tag if placement.partition is not None else 0
        config = SegmentConfig(
            device_type=device_type, erase_mode=placement.erase_mode, partition=partition
        )
        return cls(
            SegmentHeader(config, placement.offset, data_size, part_size=region),
            file=placement.file,
        )

    def write(self, stream: BinaryIO) -> int:
        """Write the segment into output stream, payload is streamed by chunks.

        :param stream: Binary output stream
        :return: Number of bytes written
        """
        stream.write(self.header.export())
        if self.data is not None:
            stream.write(self.data)
        elif self.header.data_size:
            assert self.file
            copy_file_to_stream(self.file, stream, self.header.data_size)
        return self.size

    def export(self) -> bytes:
        """Export the segment into bytes."""
        with io.BytesIO() as buffer:
            self.write(buffer)
            return buffer.getvalue()

    @classmethod
    def parse(cls, data: bytes, offset: int = 0) -> Self:
        """Parse one segment including its payload.

        :param data: Raw image data
        :param offset: Offset of the segment in the data
        :raises GWJTAGParsingError: Header is invalid or payload is truncated
        :return: Segment
        """
        header = SegmentHeader.parse(data, offset)
        start = offset + header.size
        payload = data[start : start + header.data_size]
        if len(payload) != header.data_size:
            raise GWJTAGParsingError(
                f"Truncated payload at 0x{start:X}: {len(payload)} of {header.data_size} bytes"
            )
        return cls(header, data=bytes(payload) if header.data_size else None)


def _check_alignment(
    placement: Placement,
    device_type: DeviceType,
    page_size: Optional[int],
    block_size: Optional[int],
) -> None:
    """Check placement offset in bytes against the device geometry supplied by caller."""
    if placement.erase_mode in (EraseMode.ERASE_PART, EraseMode.ERASE_END):
        unit, name = block_size, "block"
    else:
        unit, name = page_size, "page"
    offset = placement.offset * device_type.offset_unit
    if unit and align(offset, unit) != offset:
        raise GWJTAGArgumentError(
            f"Offset 0x{placement.offset:X} of {placement} is not aligned to "
            f"{name} size 0x{unit:X}"
        )


class JtagImage(BaseClass):
    """JTAG flash programming image."""

    def __init__(self, device_type: DeviceType, segments: Sequence[JtagSegment]) -> None:
        """Constructor.

        :param device_type: Target device type of the whole image
        :param segments: Segments in image order
        """
        self.device_type = device_type
        self.segments = list(segments)
        self.validate()

    @classmethod
    def from_placements(
        cls,
        placements: Sequence[Placement],
        device_type: DeviceType = DeviceType.NAND,
        page_size: Optional[int] = None,
        block_size: Optional[int] = None,
    ) -> Self:
        """Assemble the image from placement descriptors.

        All payload files are checked here, so nothing is written for an image
        referencing a missing file.

        :param placements: Placements in image order
        :param device_type: Target device type
        :param page_size: Optional page size for alignment check
        :param block_size: Optional erase block size for alignment check
        :return: JTAG image
        """
        segments = []
        for placement in placements:
            segment = JtagSegment.from_placement(placement, device_type, page_size, block_size)
            logger.debug(f"Resolved {placement} -> {segment.header}")
            segments.append(segment)
        return cls(device_type, segments)

    def validate(self) -> None:
        """Validate the image.

        :raises GWJTAGArgumentError: Empty image, mixed device types or misplaced bootstream
        """
        if not self.segments:
            raise GWJTAGArgumentError("JTAG image contains no segment")
        for index, segment in enumerate(self.segments):
            if segment.header.config.device_type != self.device_type:
                raise GWJTAGArgumentError(
                    f"Segment {index} is for {segment.header.config.device_type.label}, "
                    f"image is for {self.device_type.label}"
                )
            if segment.kind == SegmentKind.BOOTSTREAM and index:
                raise GWJTAGArgumentError(
                    f"Bootstream segment must be the first segment of image, found at {index}"
                )

    @property
    def size(self) -> int:
        """Total size of the exported image."""
        return sum(segment.size for segment in self.segments)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.device_type.label}, {len(self.segments)} segments)"

    def __str__(self) -> str:
        return self.image_info()

    def image_info(self) -> str:
        """Get table with description of all segments."""
        table = prettytable.PrettyTable(
            ["#", "Kind", "Offset", "Erase", "Partition", "Data size", "Part size", "Source"]
        )
        table.set_style(prettytable.TableStyle.DOUBLE_BORDER)
        for i, segment in enumerate(self.segments):
            header = segment.header
            table.add_row(
                [
                    str(i),
                    header.kind.label,
                    f"0x{header.offset:08X}",
                    header.config.erase_mode.label,
                    _partition_name(segment),
                    size_fmt(header.data_size),
                    size_fmt(header.part_size * self.device_type.offset_unit),
                    segment.file or "",
                ]
            )
        return (
            f"JTAG image for {self.device_type.label.upper()}, {len(self.segments)} segments, "
            f"{size_fmt(self.size)}\n{table}"
        )

    def write(self, stream: BinaryIO) -> int:
        """Write the image into binary stream.

        :param stream: Binary output stream
        :raises GWJTAGFileError: Payload file can't be read
        :raises GWJTAGError: Output stream can't be written
        :return: Number of bytes written
        """
        written = 0
        try:
            for i, segment in enumerate(self.segments):
                logger.info(f"Segment {i}: {segment}")
                written += segment.write(stream)
            stream.flush()
        except GWJTAGError:
            raise
        except OSError as exc:
            raise GWJTAGError(f"Cannot write JTAG image after {written} bytes: {exc}") from exc
        logger.info(f"JTAG image written: {len(self.segments)} segments, {size_fmt(written)}")
        return written

    def export(self) -> bytes:
        """Export the whole image into bytes."""
        with io.BytesIO() as buffer:
            self.write(buffer)
            return buffer.getvalue()

    @staticmethod
    def iter_segments(stream: BinaryIO) -> Iterator[JtagSegment]:
        """Decode segments from binary stream one by one.

        :param stream: Binary input stream positioned at the first segment header
        :raises GWJTAGParsingError: Header is invalid or stream ends inside a segment
        :return: Iterator of decoded segments
        """
        while True:
            raw_header = stream.read(SegmentHeader.SIZE)
            if not raw_header:
                return
            header = SegmentHeader.parse(raw_header)
            data = stream.read(header.data_size) if header.data_size else None
            if data is not None and len(data) != header.data_size:
                raise GWJTAGParsingError(
                    f"Truncated payload: {len(data)} of {header.data_size} bytes"
                )
            yield JtagSegment(header, data=data)

    @classmethod
    def load(cls, stream: BinaryIO) -> Self:
        """Load JTAG image from binary stream.

        :param stream: Binary input stream
        :raises GWJTAGParsingError: Image is malformed
        :return: JTAG image
        """
        return cls._from_segments(list(cls.iter_segments(stream)))

    @classmethod
    def parse(cls, data: bytes) -> Self:
        """Parse JTAG image.

        :param data: Raw image data
        :raises GWJTAGParsingError: Image is malformed
        :return: JTAG image
        """
        segments = []
        offset = 0
        while offset < len(data):
            segment = JtagSegment.parse(data, offset)
            segments.append(segment)
            offset += segment.size
        return cls._from_segments(segments)

    @classmethod
    def _from_segments(cls, segments: list[JtagSegment]) -> Self:
        """Create image from decoded segments, device type is taken from the first one."""
        if not segments:
            raise GWJTAGParsingError("JTAG image contains no segment")
        try:
            return cls(segments[0].header.config.device_type, segments)
        except GWJTAGArgumentError as exc:
            raise GWJTAGParsingError(f"Invalid JTAG image: {exc.description}") from exc


def _partition_name(segment: JtagSegment) -> str:
    """Get printable name of the partition field."""
    config = segment.header.config
    if config.device_type != DeviceType.EMMC:
        return "-"
    enum = BootPartition if segment.kind == SegmentKind.PARTCONF else HwPartition
    if enum.contains(config.partition):
        return enum.from_tag(config.partition).label
    return str(config.partition)
