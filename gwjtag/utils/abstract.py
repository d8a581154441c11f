#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Abstract base classes for binary structures of the JTAG image."""

from abc import ABC, abstractmethod
from typing import Any

from typing_extensions import Self


########################################################################################################################
# Abstract Class for Data Classes
########################################################################################################################
class BaseClass(ABC):
    """Base class for structures exported to and parsed from binary form."""

    def __eq__(self, obj: Any) -> bool:
        """Check object equality.

        :param obj: Object to compare with this instance.
        :return: True if objects are of the same class with identical attributes.
        """
        return isinstance(obj, self.__class__) and vars(obj) == vars(self)

    def __ne__(self, obj: Any) -> bool:
        return not self.__eq__(obj)

    @abstractmethod
    def __repr__(self) -> str:
        """Get string representation of the object."""

    @abstractmethod
    def __str__(self) -> str:
        """Get object description in string format."""

    @abstractmethod
    def export(self) -> Any:
        """Export object into its binary representation."""

    @classmethod
    @abstractmethod
    def parse(cls, data: Any) -> Self:
        """Parse object from its binary representation.

        :param data: Binary representation of the object.
        :return: Parsed object instance.
        """
