# SPDX-License-Identifier: Apache-2.0
"""Logging configuration for hookpatch."""

import logging
from logging import Logger
from logging.config import dictConfig
from typing import Any

import hookpatch.envs as envs

HOOKPATCH_CONFIGURE_LOGGING = envs.HOOKPATCH_CONFIGURE_LOGGING
HOOKPATCH_LOGGING_LEVEL = envs.HOOKPATCH_LOGGING_LEVEL
HOOKPATCH_LOGGING_PREFIX = envs.HOOKPATCH_LOGGING_PREFIX

_FORMAT = (
    f"{HOOKPATCH_LOGGING_PREFIX}%(levelname)s %(asctime)s "
    "[%(filename)s:%(lineno)d] %(message)s"
)
_DATE_FORMAT = "%m-%d %H:%M:%S"

DEFAULT_LOGGING_CONFIG: dict[str, Any] = {
    "formatters": {
        "hookpatch": {
            "class": "logging.Formatter",
            "datefmt": _DATE_FORMAT,
            "format": _FORMAT,
        },
    },
    "handlers": {
        "hookpatch": {
            "class": "logging.StreamHandler",
            "formatter": "hookpatch",
            "level": HOOKPATCH_LOGGING_LEVEL,
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        "hookpatch": {
            "handlers": ["hookpatch"],
            "level": "DEBUG",
            "propagate": False,
        },
    },
    "version": 1,
    "disable_existing_loggers": False,
}


def _configure_hookpatch_root_logger() -> None:
    if HOOKPATCH_CONFIGURE_LOGGING:
        dictConfig(DEFAULT_LOGGING_CONFIG)


def init_logger(name: str) -> Logger:
    """The main purpose of this function is to ensure that loggers are
    retrieved in such a way that we can be sure the root hookpatch logger has
    already been configured."""

    return logging.getLogger(name)


# The root logger is initialized when the module is imported.
# This is thread-safe as the module is only imported once,
# guaranteed by the Python GIL.
_configure_hookpatch_root_logger()

logger = init_logger(__name__)
