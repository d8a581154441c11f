#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""GWJTAG application utilities.

Error handling of the command line entry points and click parameter types.
"""

import logging
import sys
from functools import wraps
from typing import Any, Callable, Optional

import click

from gwjtag import GWJTAG_DEBUG_LOG_FILE, GWJTAG_DEBUG_LOGGING_DISABLED
from gwjtag.exceptions import GWJTAGError, GWJTAGSizeError
from gwjtag.utils.misc import parse_size

logger = logging.getLogger(__name__)


class SIZE(click.ParamType):
    """Size with optional K/M/G unit, decimal or hexadecimal (e.g. 0x800, 128KiB)."""

    name = "size"

    # pylint: disable=inconsistent-return-statements
    def convert(
        self,
        value: Any,
        param: Optional[click.Parameter] = None,
        ctx: Optional[click.Context] = None,
    ) -> int:
        """Perform the conversion str -> int.

        :param value: value to convert
        :param param: Click parameter, defaults to None
        :param ctx: Click context, defaults to None
        :return: value as integer
        """
        if isinstance(value, int):
            return value
        try:
            return parse_size(value)
        except GWJTAGSizeError:
            self.fail(f"{value!r} is not a valid size", param, ctx)


def catch_gwjtag_error(function: Callable) -> Callable:
    """Catch and handle GWJTAGError and other exceptions.

    GWJTAGError exits with code 2 and unexpected exceptions exit with code 3.
    The traceback is logged at debug level only.

    :param function: The function to be decorated.
    :return: The decorated function.
    """

    @wraps(function)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            retval = function(*args, **kwargs)
            return retval
        except (AssertionError, GWJTAGError) as gwjtag_exc:
            click.echo(f"{gwjtag_exc.__class__.__name__}: {gwjtag_exc}", err=True)
            logger.debug(str(gwjtag_exc), exc_info=True)
            if not GWJTAG_DEBUG_LOGGING_DISABLED:
                click.secho(
                    f"See debug log file: {GWJTAG_DEBUG_LOG_FILE} for more info",
                    fg="yellow",
                    err=True,
                )
            sys.exit(2)
        except (Exception, KeyboardInterrupt) as base_exc:  # pylint: disable=broad-except
            click.echo(f"GENERAL ERROR: {type(base_exc).__name__}: {base_exc}", err=True)
            logger.debug(str(base_exc), exc_info=True)
            sys.exit(3)

    return wrapper
