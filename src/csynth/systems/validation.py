# Copyright (C) 2025 Gil Benezer
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Validation and Error Taxonomy

Errors raised by synthesis and interconnection routines:

- :class:`DimensionMismatchError` - matrix shapes or pole counts that do not
  fit the plant (raised before any computation starts)
- :class:`UnsupportedSystemError` - configurations that are well-formed but
  not handled (MIMO pole placement, MIMO transfer-function inversion,
  feedthrough on both sides of a feedback loop)

Numerical failures (non-converging Riccati solves, singular solves) are not
wrapped: ``scipy.linalg.LinAlgError`` and friends reach the caller as-is.
"""

import numpy as np


class DimensionMismatchError(ValueError):
    """Matrix dimensions are inconsistent with the plant or with each other."""


class UnsupportedSystemError(ValueError):
    """The requested operation is not implemented for this kind of system."""


def as_matrix(M, name: str, dtype=None) -> np.ndarray:
    """
    Copy an array-like into a 2D NumPy array.

    Scalars become 1x1 matrices and 1D inputs become row vectors.

    Raises
    ------
    DimensionMismatchError
        If the input has more than two dimensions
    """
    arr = np.array(M, dtype=dtype, copy=True)
    if arr.ndim == 0:
        arr = arr.reshape(1, 1)
    elif arr.ndim == 1:
        arr = arr.reshape(1, -1)
    elif arr.ndim > 2:
        raise DimensionMismatchError(f"{name} must be a 2D matrix, got shape {arr.shape}")
    return arr


def check_square(M: np.ndarray, name: str) -> int:
    """Return the size of a square matrix, raising if it is not square."""
    if M.ndim != 2 or M.shape[0] != M.shape[1]:
        raise DimensionMismatchError(f"{name} must be square, got shape {M.shape}")
    return M.shape[0]


def check_shape(M: np.ndarray, shape: tuple, name: str) -> None:
    """Raise unless ``M`` has exactly ``shape``."""
    if M.shape != tuple(shape):
        raise DimensionMismatchError(f"{name} must be {tuple(shape)}, got {M.shape}")


def check_rows(M: np.ndarray, rows: int, name: str) -> None:
    if M.shape[0] != rows:
        raise DimensionMismatchError(f"{name} must have {rows} rows, got {M.shape[0]}")


def check_columns(M: np.ndarray, columns: int, name: str) -> None:
    if M.shape[1] != columns:
        raise DimensionMismatchError(
            f"{name} must have {columns} columns, got {M.shape[1]}"
        )


__all__ = [
    "DimensionMismatchError",
    "UnsupportedSystemError",
    "as_matrix",
    "check_square",
    "check_shape",
    "check_rows",
    "check_columns",
]
