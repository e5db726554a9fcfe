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
Polynomial Helpers

Small helpers over coefficient arrays in descending powers, shared by the
transfer-function representations and the two-degree-of-freedom feedback
builder. Unlike ``numpy.polyadd`` these accept any number of arguments and
always trim leading zeros so degrees stay honest.
"""

from typing import Sequence

import numpy as np

from csynth.types.core import PolynomialCoefficients, RootList

ROOT_TOLERANCE = 1e-9
"""Imaginary parts below this (relative) are dropped when expanding roots."""


def trim_leading_zeros(coefficients: PolynomialCoefficients) -> np.ndarray:
    """
    Remove zero high-order coefficients; [0, 0, 2, 3] becomes [2, 3].

    The zero polynomial is returned as ``[0.]``.
    """
    arr = np.atleast_1d(np.asarray(coefficients))
    if arr.ndim != 1:
        raise ValueError(f"Polynomial coefficients must be 1D, got shape {arr.shape}")
    arr = arr.astype(np.result_type(arr.dtype, np.float64))
    nonzero = np.flatnonzero(arr)
    if nonzero.size == 0:
        return np.zeros(1, dtype=arr.dtype)
    return arr[nonzero[0]:].copy()


def poly_add(*polynomials: PolynomialCoefficients) -> np.ndarray:
    """Sum of polynomials of any degree, aligned on the constant term."""
    trimmed = [trim_leading_zeros(p) for p in polynomials]
    width = max(len(p) for p in trimmed)
    dtype = np.result_type(*trimmed)
    total = np.zeros(width, dtype=dtype)
    for p in trimmed:
        total[width - len(p):] += p
    return trim_leading_zeros(total)


def poly_mul(*polynomials: PolynomialCoefficients) -> np.ndarray:
    """Product of polynomials by repeated convolution."""
    product = np.ones(1)
    for p in polynomials:
        product = np.convolve(product, trim_leading_zeros(p))
    return trim_leading_zeros(product)


def zpconv(a: PolynomialCoefficients, r: PolynomialCoefficients,
           b: PolynomialCoefficients, s: PolynomialCoefficients) -> np.ndarray:
    """a·r + b·s with zero padding of the shorter product."""
    return poly_add(poly_mul(a, r), poly_mul(b, s))


def poly_from_roots(roots: RootList) -> np.ndarray:
    """
    Monic polynomial with the given roots.

    Conjugate-symmetric root sets give real coefficients; tiny imaginary
    round-off is discarded.
    """
    roots = np.atleast_1d(np.asarray(roots))
    if roots.size == 0:
        return np.ones(1)
    coefficients = np.poly(roots)
    return real_if_close(coefficients)


def real_if_close(values: np.ndarray) -> np.ndarray:
    """Drop imaginary parts that are round-off relative to the magnitudes."""
    values = np.asarray(values)
    if not np.iscomplexobj(values):
        return values
    scale = max(1.0, float(np.max(np.abs(values)))) if values.size else 1.0
    if np.all(np.abs(values.imag) <= ROOT_TOLERANCE * scale):
        return values.real.copy()
    return values


def poly_roots(coefficients: PolynomialCoefficients) -> np.ndarray:
    """Roots of a polynomial; constants have none."""
    trimmed = trim_leading_zeros(coefficients)
    if len(trimmed) <= 1:
        return np.zeros(0, dtype=complex)
    return np.roots(trimmed)


def poly_eval(coefficients: PolynomialCoefficients, point):
    return np.polyval(trim_leading_zeros(coefficients), point)


def sorted_roots(roots: Sequence) -> np.ndarray:
    """Roots ordered by (real, imag) for tolerance comparisons."""
    roots = np.asarray(roots, dtype=complex)
    return roots[np.lexsort((roots.imag, roots.real))]


__all__ = [
    "ROOT_TOLERANCE",
    "trim_leading_zeros",
    "poly_add",
    "poly_mul",
    "zpconv",
    "poly_from_roots",
    "real_if_close",
    "poly_roots",
    "poly_eval",
    "sorted_roots",
]
