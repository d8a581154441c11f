#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Console script assembling JTAG flash programming images."""

import logging
import sys
from typing import BinaryIO, Optional

import click

from gwjtag.apps.utils import gwjtag_logger
from gwjtag.apps.utils.common_cli_options import (
    gwjtag_apps_common_options,
    gwjtag_device_option,
    gwjtag_output_option,
)
from gwjtag.apps.utils.utils import SIZE, catch_gwjtag_error
from gwjtag.exceptions import GWJTAGUsageError
from gwjtag.image.jtag_image import JtagImage
from gwjtag.image.placement import Placement, legacy_layout, parse_placements
from gwjtag.image.segment import BootPartition, DeviceType

logger = logging.getLogger(__name__)


def get_placements(
    files: tuple[str, ...],
    device_type: DeviceType,
    erase_all: bool,
    skip_erase: bool,
    partconf: Optional[str],
) -> list[Placement]:
    """Select the entry path and create placements.

    :param files: Placement tokens or bare file names
    :param device_type: Target device type
    :param erase_all: The first segment erases the entire device (-e)
    :param skip_erase: Placement mode without whole device erase (-s)
    :param partconf: Optional boot partition for eMMC partition-config marker
    :raises GWJTAGUsageError: Invalid combination of options
    :return: Placements in image order
    """
    if erase_all and skip_erase:
        raise GWJTAGUsageError("Options -s and -e are mutually exclusive")
    if erase_all or skip_erase:
        return parse_placements(files, device_type, erase_all=erase_all, partconf=partconf)
    if partconf is not None:
        raise GWJTAGUsageError("Option --partconf requires -s or -e")
    return legacy_layout(files, device_type)


@click.command(name="mkimage_jtag", no_args_is_help=True)
@gwjtag_device_option
@click.option(
    "-e",
    "--erase-all",
    is_flag=True,
    default=False,
    help="Use placement grammar; the first segment erases the entire device.",
)
@click.option(
    "-s",
    "--skip-erase",
    is_flag=True,
    default=False,
    help="Use placement grammar without erasing the entire device.",
)
@click.option(
    "--partconf",
    metavar="[" + "|".join(BootPartition.labels()) + "]",
    help="Set eMMC boot partition before programming (eMMC only).",
)
@click.option(
    "--page-size",
    type=SIZE(),
    help="Flash page size; when given, offsets of segments are checked against it.",
)
@click.option(
    "--block-size",
    type=SIZE(),
    help="Flash erase block size; when given, offsets of erased segments are checked against it.",
)
@gwjtag_output_option
@click.argument("files", nargs=-1, metavar="FILE[@PLACEMENT]...")
@gwjtag_apps_common_options
def main(
    device_type: Optional[str],
    erase_all: bool,
    skip_erase: bool,
    partconf: Optional[str],
    page_size: Optional[int],
    block_size: Optional[int],
    output: BinaryIO,
    files: tuple[str, ...],
    log_level: int,
) -> None:
    """Create JTAG image for flash programmer.

    \b
    Placement mode (-s or -e), FILE@PLACEMENT is one of:
      file@partition:erasemode:offset[-end]
      file@start-end
      file@start-
      file@start
    Partitions (eMMC only): user, boot0, boot1, rpmb.
    Erase modes: erase_none, erase_all, erase_part, erase_end.
    Sizes accept 0x prefix and K, M, G units (e.g. 0xE00000, 14M, 2MiB).

    \b
    Legacy mode (NAND only), bare file names:
      FS_IMAGE                  filesystem erased to end at 17MiB
      SPL UBOOT                 bootloader pair into 14MiB + 2MiB partitions
      SPL UBOOT FS_IMAGE        full image with whole device erase

    The image is written to standard output unless --output is given.
    """
    gwjtag_logger.install(level=log_level)
    device = DeviceType.from_label(device_type or DeviceType.NAND.label)
    try:
        placements = get_placements(files, device, erase_all, skip_erase, partconf)
    except GWJTAGUsageError as exc:
        raise click.UsageError(str(exc.description)) from exc

    image = JtagImage.from_placements(placements, device, page_size, block_size)
    logger.debug(f"\n{image.image_info()}")
    image.write(output)


@catch_gwjtag_error
def safe_main() -> None:
    """Call the main function."""
    sys.exit(main())  # pylint: disable=no-value-for-parameter


if __name__ == "__main__":
    safe_main()
