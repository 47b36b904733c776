# Copyright (c) 2026 biorad Developers.
# Distributed under the terms of the Apache License, Version 2.0.
# SPDX-License-Identifier: Apache-2.0
"""Setup script for installing biorad."""

from setuptools import setup

setup(
    use_scm_version={'version_scheme': 'post-release', 'fallback_version': '0.1.0'}
)
