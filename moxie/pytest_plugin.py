"""pytest plugin marking pytest runs as moxie test builds."""

import os

import pytest

from moxie.config import TEST_BUILD_ENV


@pytest.hookimpl(tryfirst=True)
def pytest_load_initial_conftests(early_config, parser, args):
    # Before conftests import any @mockable class.
    os.environ.setdefault(TEST_BUILD_ENV, "1")


def pytest_report_header(config):
    return f"moxie: {TEST_BUILD_ENV}={os.environ.get(TEST_BUILD_ENV, '')}"
