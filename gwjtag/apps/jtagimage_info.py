#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Console script describing content of a JTAG image."""

import sys
from typing import BinaryIO

import click

from gwjtag.apps.utils import gwjtag_logger
from gwjtag.apps.utils.common_cli_options import gwjtag_apps_common_options
from gwjtag.apps.utils.utils import catch_gwjtag_error
from gwjtag.image.jtag_image import JtagImage


@click.command(name="jtagimage-info", no_args_is_help=True)
@click.argument("image", metavar="IMAGE", type=click.File("rb"))
@gwjtag_apps_common_options
def main(image: BinaryIO, log_level: int) -> None:
    """Print segments of JTAG image.

    \b
    IMAGE    - JTAG image file, '-' for standard input
    """
    gwjtag_logger.install(level=log_level)
    jtag_image = JtagImage.load(image)
    click.echo(jtag_image.image_info())


@catch_gwjtag_error
def safe_main() -> None:
    """Call the main function."""
    sys.exit(main())  # pylint: disable=no-value-for-parameter


if __name__ == "__main__":
    safe_main()
