# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Worker Environment Configuration

Environment variables for simulator subprocesses and worker processes:
single-threaded numerical libraries and disabled HDF5/NetCDF file locking,
so that concurrent runs do not oversubscribe cores or contend on locks.
"""

import os
from typing import Dict, Optional

HDF5_ENV_VARS: Dict[str, str] = {
    'HDF5_USE_FILE_LOCKING': 'FALSE',
    'HDF5_DISABLE_VERSION_CHECK': '1',
    'NETCDF_DISABLE_LOCKING': '1',
}
"""Environment variables for HDF5/netCDF file locking safety."""

THREAD_ENV_VARS: Dict[str, str] = {
    'OMP_NUM_THREADS': '1',
    'MKL_NUM_THREADS': '1',
    'OPENBLAS_NUM_THREADS': '1',
    'VECLIB_MAXIMUM_THREADS': '1',
    'NUMEXPR_NUM_THREADS': '1',
}
"""Environment variables to force single-threaded execution in numerical libraries."""


class WorkerEnvironmentConfig:
    """
    Environment variables for parallel simulator runs.

    Args:
        custom_vars: Extra variables that add to or override the defaults
        include_thread_limits: Whether to pin numerical libraries to one thread
    """

    def __init__(self, custom_vars: Optional[Dict[str, str]] = None, include_thread_limits: bool = True):
        self._env_vars = dict(HDF5_ENV_VARS)
        if include_thread_limits:
            self._env_vars.update(THREAD_ENV_VARS)
        if custom_vars:
            self._env_vars.update({str(k): str(v) for k, v in custom_vars.items()})

    def merge_with_current_env(self) -> Dict[str, str]:
        """
        Create a copy of current environment merged with worker settings.

        Returns:
            Complete environment dictionary for subprocess execution
        """
        env = os.environ.copy()
        env.update(self._env_vars)
        return env
