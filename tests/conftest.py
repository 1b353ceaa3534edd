# SPDX-License-Identifier: Apache-2.0
import logging
import types

import pytest

from hookpatch import PatchRegistry


@pytest.fixture
def registry():
    registry = PatchRegistry()
    yield registry
    registry.revert_all()


@pytest.fixture
def module():
    """A throwaway module with a few functions to patch."""
    module = types.ModuleType("fake_module")

    def add(a, b):
        return a + b

    def greet(name, punctuation="!"):
        return f"hello {name}{punctuation}"

    module.add = add
    module.greet = greet
    module.answer = 42
    return module


@pytest.fixture
def counter_cls():
    """A fresh class per test exercising every kind of function slot."""

    class Counter:
        scale = 10

        def __init__(self, start=0):
            self.value = start

        def bump(self, step=1):
            """Increase the counter."""
            self.value += step
            return self.value

        @classmethod
        def scaled(cls, x):
            return cls.scale * x

        @staticmethod
        def double(x):
            return 2 * x

    return Counter


@pytest.fixture
def hook_logs(caplog):
    """The hookpatch logger does not propagate, attach caplog to it."""
    hookpatch_logger = logging.getLogger("hookpatch")
    hookpatch_logger.addHandler(caplog.handler)
    caplog.set_level(logging.DEBUG, logger="hookpatch")
    yield caplog
    hookpatch_logger.removeHandler(caplog.handler)
