#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""GWJTAG pytest configuration and shared test fixtures."""

import logging
import os
import random
from pathlib import Path
from typing import Callable, Iterator

import pytest

from tests.cli_runner import CliRunner

os.environ["GWJTAG_DEBUG_LOGGING_DISABLED"] = "True"


@pytest.fixture
def cli_runner() -> CliRunner:
    """Get CLI runner instance for testing.

    :return: CliRunner instance for testing CLI commands.
    """
    return CliRunner()


@pytest.fixture
def make_file(tmp_path: Path) -> Callable[..., str]:
    """Get factory creating binary files with pseudo-random content.

    The factory accepts file name and either size or exact content and returns
    absolute path of the created file.

    :param tmp_path: Pytest temporary directory.
    :return: File factory.
    """

    def factory(name: str, size: int = 0, data: bytes = b"") -> str:
        if not data:
            data = random.Random(name).randbytes(size)
        path = os.path.join(str(tmp_path), name)
        with open(path, "wb") as f:
            f.write(data)
        return path

    return factory


@pytest.fixture(autouse=True)
def reset_console_logging() -> Iterator[None]:
    """Remove console handlers installed by applications during the test.

    Under the CLI runner the handlers are bound to streams which are closed once
    the invocation ends.
    """
    yield
    gwjtag_logger = logging.getLogger("gwjtag")
    for handler in list(gwjtag_logger.handlers):
        if isinstance(handler, logging.StreamHandler):
            gwjtag_logger.removeHandler(handler)
