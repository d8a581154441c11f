#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""GWJTAG exception classes.

Every failure of the image assembler is fatal to the whole run, so the hierarchy
is flat: one base class and one subclass per failure category.
"""

from typing import Optional

#######################################################################
# # JTAG Image Assembler Exceptions
#######################################################################


class GWJTAGError(Exception):
    """GWJTAG Base Exception.

    :cvar fmt: Default error message format template.
    """

    fmt = "GWJTAG: {description}"

    def __init__(self, desc: Optional[str] = None) -> None:
        """Initialize the base GWJTAG Exception.

        :param desc: Optional description of the exception.
        """
        super().__init__()
        self.description = desc

    def __str__(self) -> str:
        return self.fmt.format(description=self.description or "Unknown Error")


class GWJTAGSizeError(GWJTAGError, ValueError):
    """Size or offset token does not match any recognized numeric form."""


class GWJTAGArgumentError(GWJTAGError, ValueError):
    """Invalid placement token, partition name or image layout."""


class GWJTAGUsageError(GWJTAGArgumentError):
    """Malformed invocation; the command line usage should be shown."""


class GWJTAGFileError(GWJTAGError, OSError):
    """Referenced file is missing, unreadable or does not fit its placement."""


class GWJTAGParsingError(GWJTAGError):
    """Binary JTAG image stream could not be decoded."""
