#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""CLI helper for Click."""

import logging
from typing import Any, Callable, TypeVar, Union

import click

from gwjtag import __version__ as gwjtag_version
from gwjtag.image.segment import DeviceType

FC = TypeVar("FC", bound=Union[Callable[..., Any], click.Command])


def gwjtag_apps_common_options(options: FC) -> FC:
    """Common click options.

    Sets --help, --version; provides: `log_level: int` for logging.

    :return: click decorator
    """
    options = click.help_option("--help")(options)
    options = click.version_option(gwjtag_version, "--version")(options)
    options = click.option(
        "-vv",
        "--debug",
        "log_level",
        flag_value=logging.DEBUG,
        help="Display more debugging information.",
    )(options)
    options = click.option(
        "-v",
        "--verbose",
        "log_level",
        flag_value=logging.INFO,
        help="Print more detailed information",
    )(options)
    return options


def gwjtag_device_option(options: FC) -> FC:
    """Device type click option decorator.

    Provides: `device_type: Optional[str]` label of selected target flash, None for default.

    :return: Click decorator
    """
    options = click.option(
        "--emmc",
        "device_type",
        flag_value=DeviceType.EMMC.label,
        help="Create image for eMMC flash, offsets are in blocks.",
    )(options)
    options = click.option(
        "--nand",
        "device_type",
        flag_value=DeviceType.NAND.label,
        help="Create image for NAND flash, offsets are in bytes (default).",
    )(options)
    return options


def gwjtag_output_option(options: FC) -> FC:
    """Output file click option decorator.

    Provides: `output: BinaryIO` opened output file, standard output by default.

    :return: Click decorator
    """
    return click.option(
        "-o",
        "--output",
        type=click.File("wb"),
        default="-",
        show_default=True,
        help="Output file for the JTAG image, '-' for standard output.",
    )(options)
