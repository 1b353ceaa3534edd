# SPDX-License-Identifier: Apache-2.0

import importlib.util
import logging
import os
import sys
from pathlib import Path

from setuptools import setup
from setuptools_scm import get_version
from setuptools_scm.version import ScmVersion


def load_module_from_path(module_name, path):
    spec = importlib.util.spec_from_file_location(module_name, path)
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return module


ROOT_DIR = Path(__file__).parent
logger = logging.getLogger(__name__)

# the version scheme lives next to setup.py so that it can be shared with
# other build tooling without importing hookpatch
version_tools = load_module_from_path(
    "version_tools", os.path.join(ROOT_DIR, "version_tools.py")
)


def always_hash(version: ScmVersion) -> str:
    """
    Always include short commit hash and current date (YYYYMMDD)
    """
    from datetime import datetime

    date_str = datetime.now().strftime("%Y%m%d")
    if version.node is not None:
        short_hash = version.node[:7]  # short commit id
        return f"{short_hash}.d{date_str}"
    return f"unknown.{date_str}"


def get_hookpatch_version() -> str:
    version = get_version(
        root=str(ROOT_DIR),
        version_scheme=version_tools.fixed_version_scheme,
        local_scheme=always_hash,
        write_to="hookpatch/_version.py",
        fallback_version=version_tools.fixed_version_scheme(None),
    )
    logger.info("building hookpatch %s", version)
    return version


def get_requirements(filename: str = "common.txt") -> list[str]:
    """Get Python package dependencies from a requirements file."""
    requirements_dir = ROOT_DIR / "requirements"

    def _read_requirements(filename: str) -> list[str]:
        with open(requirements_dir / filename) as f:
            requirements = f.read().strip().split("\n")
        resolved_requirements = []
        for line in requirements:
            if line.startswith("-r "):
                resolved_requirements += _read_requirements(line.split()[1])
            elif (
                not line.startswith("--")
                and not line.startswith("#")
                and line.strip() != ""
            ):
                resolved_requirements.append(line)
        return resolved_requirements

    return _read_requirements(filename)


setup(
    # static metadata should rather go in pyproject.toml
    version=get_hookpatch_version(),
    install_requires=get_requirements(),
    extras_require={
        "test": [
            req for req in get_requirements("test.txt")
            if req not in get_requirements()
        ],
    },
)
