import logging

import pytest

from core.log import init_logging


@pytest.fixture
def restore_root_level():
    root = logging.getLogger()
    level = root.level
    yield root
    root.setLevel(level)


def test_init_logging_sets_root_level(restore_root_level):
    init_logging("debug")
    assert restore_root_level.level == logging.DEBUG

    init_logging("warning")
    assert restore_root_level.level == logging.WARNING


def test_repeated_init_does_not_stack_handlers(restore_root_level):
    init_logging("info")
    count = len(restore_root_level.handlers)

    init_logging("info")
    assert len(restore_root_level.handlers) == count


def test_unknown_level_falls_back_to_info(restore_root_level):
    init_logging("trace")
    assert restore_root_level.level == logging.INFO
