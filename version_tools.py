# SPDX-License-Identifier: Apache-2.0
from setuptools_scm.version import ScmVersion


def fixed_version_scheme(version: ScmVersion) -> str:
    return "0.1.0"
