# SPDX-FileCopyrightText: 2025 pikeforms contributors
# SPDX-License-Identifier: MPL-2.0

from __future__ import annotations

from importlib.metadata import version as _package_version

__version__ = _package_version('pikeforms')

__all__ = ['__version__']
