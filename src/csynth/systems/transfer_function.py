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
Transfer-Function Systems

A :class:`TransferFunction` is a (ny × nu) matrix of SISO rational functions
sharing one sampling tag. Each SISO entry has one of three representations:

- :class:`SisoPolynomial` - floating-point numerator/denominator coefficients.
  The default implementation of every operation.
- :class:`SisoRational` - exact rational coefficients held as
  ``sympy.Poly`` over QQ. Sums and products of two exact entries stay exact.
- :class:`SisoZpk` - zeros, poles and a scalar gain. Products concatenate
  roots; sums must rebuild polynomials and re-factor.

Operations look for a specialization keyed on the representation of both
operands and fall back to the polynomial path otherwise, so mixing
representations always works (and yields a :class:`SisoPolynomial`).

Coefficients are in descending powers: ``tf([1], [1, 2])`` is 1/(s + 2).

Examples
--------
>>> L = tf([1], [1, 1, 0])            # 1 / (s² + s)
>>> L.poles()
array([-1.,  0.])
>>> G = zpk([-1], [-2, -3], 4.0)      # 4(s + 1) / ((s + 2)(s + 3))
>>> H = tf_rational(["1/3"], [1, "1/2"])
>>> H.siso().representation
<Representation.RATIONAL: 'rational'>
"""

import numbers
from abc import ABC, abstractmethod
from enum import Enum
from fractions import Fraction
from typing import ClassVar, Sequence, Tuple, Union

import numpy as np
import sympy as sp

from csynth.systems.polynomials import (
    poly_add,
    poly_eval,
    poly_from_roots,
    poly_mul,
    poly_roots,
    real_if_close,
    trim_leading_zeros,
)
from csynth.systems.sampling import CONTINUOUS, Sampling, common_sampling
from csynth.systems.validation import DimensionMismatchError, UnsupportedSystemError
from csynth.types.core import PolynomialCoefficients, RootList, ScalarLike

_S = sp.Symbol("s")


def _is_scalar(value) -> bool:
    """Plain numbers and 0-d arrays; systems and sequences are not scalars."""
    if isinstance(value, (numbers.Number, np.number)):
        return True
    return isinstance(value, np.ndarray) and value.ndim == 0


class Representation(Enum):
    """Internal representation of a SISO transfer function."""

    POLYNOMIAL = "polynomial"
    RATIONAL = "rational"
    ZPK = "zpk"


# ============================================================================
# SISO Entries
# ============================================================================


class SisoTransferFunction(ABC):
    """
    Abstract SISO rational function.

    Subclasses provide coefficient access and may override the ``_mul_same``
    / ``_add_same`` / ``inverse`` / ``feedback_loop`` hooks with exact or
    structure-preserving versions.
    """

    representation: ClassVar[Representation]

    @abstractmethod
    def numerator(self) -> np.ndarray:
        """Numerator coefficients (descending powers)."""

    @abstractmethod
    def denominator(self) -> np.ndarray:
        """Denominator coefficients (descending powers)."""

    @classmethod
    @abstractmethod
    def constant(cls, value: ScalarLike) -> "SisoTransferFunction":
        """Constant entry of this representation."""

    # ------------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------------

    def poles(self) -> np.ndarray:
        return real_if_close(poly_roots(self.denominator()))

    def zeros(self) -> np.ndarray:
        return real_if_close(poly_roots(self.numerator()))

    def is_zero(self) -> bool:
        return not np.any(self.numerator())

    def is_proper(self) -> bool:
        return len(self.numerator()) <= len(self.denominator())

    def __call__(self, point):
        return poly_eval(self.numerator(), point) / poly_eval(self.denominator(), point)

    def to_polynomial(self) -> "SisoPolynomial":
        return SisoPolynomial(self.numerator(), self.denominator())

    # ------------------------------------------------------------------------
    # Algebra: specialization first, polynomial fallback second
    # ------------------------------------------------------------------------

    def _mul_same(self, other):
        return NotImplemented

    def _add_same(self, other):
        return NotImplemented

    def _coerce(self, other) -> "SisoTransferFunction":
        if isinstance(other, SisoTransferFunction):
            return other
        if _is_scalar(other):
            return type(self).constant(other)
        return NotImplemented

    def __mul__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        if type(other) is type(self):
            result = self._mul_same(other)
            if result is not NotImplemented:
                return result
        return SisoPolynomial(
            poly_mul(self.numerator(), other.numerator()),
            poly_mul(self.denominator(), other.denominator()),
        )

    def __rmul__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return other * self

    def __add__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        if type(other) is type(self):
            result = self._add_same(other)
            if result is not NotImplemented:
                return result
        return SisoPolynomial(
            poly_add(
                poly_mul(self.numerator(), other.denominator()),
                poly_mul(other.numerator(), self.denominator()),
            ),
            poly_mul(self.denominator(), other.denominator()),
        )

    def __radd__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return other + self

    def __neg__(self):
        return self * -1

    def __sub__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return self + (-other)

    def __rsub__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return other + (-self)

    def inverse(self) -> "SisoTransferFunction":
        if self.is_zero():
            raise ZeroDivisionError("Cannot invert a zero transfer function")
        return SisoPolynomial(self.denominator(), self.numerator())

    def __truediv__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return self * other.inverse()

    def __rtruediv__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return other * self.inverse()

    def feedback_loop(self) -> "SisoTransferFunction":
        """
        Unity negative feedback L / (1 + L).

        The generic version divides rational functions without cancelling,
        so the loop denominator picks up a copy of the open-loop one.
        """
        return self / (1 + self)


class SisoPolynomial(SisoTransferFunction):
    """SISO transfer function with floating-point coefficients."""

    representation = Representation.POLYNOMIAL

    def __init__(self, num: PolynomialCoefficients, den: PolynomialCoefficients):
        self._num = trim_leading_zeros(num)
        self._den = trim_leading_zeros(den)
        if not np.any(self._den):
            raise ZeroDivisionError("Transfer function denominator is zero")
        self._num.flags.writeable = False
        self._den.flags.writeable = False

    @classmethod
    def constant(cls, value: ScalarLike) -> "SisoPolynomial":
        return cls([value], [1.0])

    def numerator(self) -> np.ndarray:
        return self._num.copy()

    def denominator(self) -> np.ndarray:
        return self._den.copy()

    def __repr__(self) -> str:
        return f"SisoPolynomial(num={self._num.tolist()}, den={self._den.tolist()})"


def _to_rational(value) -> sp.Rational:
    if isinstance(value, sp.Rational):
        return value
    if isinstance(value, (bool, np.bool_)):
        raise TypeError("Boolean coefficients are not allowed")
    if isinstance(value, (int, np.integer)):
        return sp.Integer(int(value))
    if isinstance(value, Fraction):
        return sp.Rational(value.numerator, value.denominator)
    if isinstance(value, str):
        return sp.Rational(value)
    if isinstance(value, (float, np.floating)):
        return sp.nsimplify(float(value), rational=True)
    raise TypeError(f"Cannot use {value!r} as an exact rational coefficient")


def _exact_poly(coefficients) -> sp.Poly:
    if isinstance(coefficients, sp.Poly):
        return coefficients.set_domain(sp.QQ)
    values = [_to_rational(c) for c in np.atleast_1d(np.asarray(coefficients, dtype=object))]
    return sp.Poly.from_list(values, _S, domain=sp.QQ)


class SisoRational(SisoTransferFunction):
    """
    SISO transfer function with exact rational coefficients.

    Coefficients may be ints, ``fractions.Fraction``, strings like ``"1/3"``
    or floats (converted with ``sympy.nsimplify``).
    """

    representation = Representation.RATIONAL

    def __init__(self, num, den):
        self._num = _exact_poly(num)
        self._den = _exact_poly(den)
        if self._den.is_zero:
            raise ZeroDivisionError("Transfer function denominator is zero")

    @classmethod
    def constant(cls, value: ScalarLike) -> "SisoRational":
        return cls([value], [1])

    @property
    def exact_numerator(self) -> sp.Poly:
        return self._num

    @property
    def exact_denominator(self) -> sp.Poly:
        return self._den

    def numerator(self) -> np.ndarray:
        return np.array([float(c) for c in self._num.all_coeffs()])

    def denominator(self) -> np.ndarray:
        return np.array([float(c) for c in self._den.all_coeffs()])

    def is_zero(self) -> bool:
        return self._num.is_zero

    def _mul_same(self, other: "SisoRational") -> "SisoRational":
        return SisoRational(self._num * other._num, self._den * other._den)

    def _add_same(self, other: "SisoRational") -> "SisoRational":
        return SisoRational(
            self._num * other._den + other._num * self._den,
            self._den * other._den,
        )

    def inverse(self) -> "SisoRational":
        if self.is_zero():
            raise ZeroDivisionError("Cannot invert a zero transfer function")
        return SisoRational(self._den, self._num)

    def feedback_loop(self) -> "SisoRational":
        """P / (P + Q) for L = P / Q, skipping the common factor Q."""
        return SisoRational(self._num, self._num + self._den)

    def __repr__(self) -> str:
        return f"SisoRational({self._num.as_expr()} / {self._den.as_expr()})"


class SisoZpk(SisoTransferFunction):
    """SISO transfer function k·Π(s - zᵢ) / Π(s - pᵢ)."""

    representation = Representation.ZPK

    def __init__(self, zeros: RootList, poles: RootList, gain: ScalarLike):
        self._zeros = real_if_close(np.atleast_1d(np.array(zeros, dtype=complex)))
        self._poles = real_if_close(np.atleast_1d(np.array(poles, dtype=complex)))
        self._gain = gain.item() if isinstance(gain, np.generic) else gain
        if self._gain == 0:
            self._zeros = np.zeros(0)
        self._zeros.flags.writeable = False
        self._poles.flags.writeable = False

    @classmethod
    def constant(cls, value: ScalarLike) -> "SisoZpk":
        return cls([], [], value)

    @property
    def gain(self):
        return self._gain

    def zeros(self) -> np.ndarray:
        return self._zeros.copy()

    def poles(self) -> np.ndarray:
        return self._poles.copy()

    def numerator(self) -> np.ndarray:
        return real_if_close(self._gain * poly_from_roots(self._zeros))

    def denominator(self) -> np.ndarray:
        return poly_from_roots(self._poles)

    def is_zero(self) -> bool:
        return self._gain == 0

    def __call__(self, point):
        point = np.asarray(point)
        num = np.prod(np.subtract.outer(point, self._zeros), axis=-1)
        den = np.prod(np.subtract.outer(point, self._poles), axis=-1)
        return self._gain * num / den

    def _mul_same(self, other: "SisoZpk") -> "SisoZpk":
        return SisoZpk(
            np.concatenate([self._zeros, other._zeros]),
            np.concatenate([self._poles, other._poles]),
            self._gain * other._gain,
        )

    def _add_same(self, other: "SisoZpk") -> "SisoZpk":
        # k1·Z1·P2 + k2·Z2·P1 has no factored shortcut
        numerator = poly_add(
            self._gain * poly_mul(poly_from_roots(self._zeros), poly_from_roots(other._poles)),
            other._gain * poly_mul(poly_from_roots(other._zeros), poly_from_roots(self._poles)),
        )
        return SisoZpk(
            poly_roots(numerator),
            np.concatenate([self._poles, other._poles]),
            numerator[0],
        )

    def inverse(self) -> "SisoZpk":
        if self.is_zero():
            raise ZeroDivisionError("Cannot invert a zero transfer function")
        return SisoZpk(self._poles, self._zeros, 1 / self._gain)

    def feedback_loop(self) -> "SisoZpk":
        """
        k·Z / (k·Z + P) for L = k·Z / P.

        The loop denominator is rebuilt as a polynomial, normalized by its
        leading coefficient and factored again to get the closed-loop poles.
        """
        denominator = poly_add(
            self._gain * poly_from_roots(self._zeros),
            poly_from_roots(self._poles),
        )
        if not np.any(denominator):
            raise ZeroDivisionError("1 + L is identically zero")
        leading = denominator[0]
        return SisoZpk(self._zeros, poly_roots(denominator / leading), self._gain / leading)

    def __repr__(self) -> str:
        return (
            f"SisoZpk(zeros={self._zeros.tolist()}, poles={self._poles.tolist()}, "
            f"gain={self._gain})"
        )


# ============================================================================
# Transfer-Function Matrix
# ============================================================================


Operand = Union["TransferFunction", ScalarLike]


class TransferFunction:
    """
    Matrix of SISO transfer functions with a common sampling tag.

    Attributes
    ----------
    entries : Tuple[Tuple[SisoTransferFunction, ...], ...]
        Row-major entries, shape (ny, nu)
    sampling : Sampling
        Continuous or Discrete(period)
    """

    def __init__(
        self,
        entries: Sequence[Sequence[SisoTransferFunction]],
        sampling: Sampling = CONTINUOUS,
    ):
        rows = tuple(tuple(row) for row in entries)
        if not rows or not rows[0]:
            raise DimensionMismatchError("A transfer function needs at least one entry")
        width = len(rows[0])
        for row in rows:
            if len(row) != width:
                raise DimensionMismatchError("Transfer function rows must have equal length")
            for entry in row:
                if not isinstance(entry, SisoTransferFunction):
                    raise TypeError(
                        f"Entries must be SisoTransferFunction, got {type(entry).__name__}"
                    )
        if not isinstance(sampling, Sampling):
            raise TypeError(f"sampling must be a Sampling, got {type(sampling).__name__}")
        self._entries = rows
        self._sampling = sampling

    # ------------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------------

    @property
    def entries(self) -> Tuple[Tuple[SisoTransferFunction, ...], ...]:
        return self._entries

    @property
    def sampling(self) -> Sampling:
        return self._sampling

    @property
    def shape(self) -> Tuple[int, int]:
        return (len(self._entries), len(self._entries[0]))

    @property
    def ny(self) -> int:
        return self.shape[0]

    @property
    def nu(self) -> int:
        return self.shape[1]

    @property
    def is_siso(self) -> bool:
        return self.shape == (1, 1)

    @property
    def is_continuous(self) -> bool:
        return self._sampling.is_continuous

    @property
    def is_discrete(self) -> bool:
        return self._sampling.is_discrete

    def siso(self) -> SisoTransferFunction:
        """
        The single entry of a SISO transfer function.

        Raises
        ------
        UnsupportedSystemError
            If the system is MIMO
        """
        if not self.is_siso:
            raise UnsupportedSystemError(
                f"Operation requires a SISO transfer function, got shape {self.shape}"
            )
        return self._entries[0][0]

    def __getitem__(self, index) -> "TransferFunction":
        i, j = index
        return TransferFunction([[self._entries[i][j]]], self._sampling)

    def numerator(self) -> np.ndarray:
        return self.siso().numerator()

    def denominator(self) -> np.ndarray:
        return self.siso().denominator()

    def poles(self) -> np.ndarray:
        return self.siso().poles()

    def zeros(self) -> np.ndarray:
        return self.siso().zeros()

    def __call__(self, point) -> np.ndarray:
        """Evaluate every entry at a complex point, returning (ny, nu)."""
        return np.array([[entry(point) for entry in row] for row in self._entries])

    def map(self, func) -> "TransferFunction":
        return TransferFunction(
            [[func(entry) for entry in row] for row in self._entries], self._sampling
        )

    # ------------------------------------------------------------------------
    # Algebra
    # ------------------------------------------------------------------------

    def _other_sampling(self, other: "TransferFunction") -> Sampling:
        return common_sampling(self._sampling, other._sampling)

    def __add__(self, other: Operand) -> "TransferFunction":
        if isinstance(other, TransferFunction):
            sampling = self._other_sampling(other)
            if other.shape != self.shape:
                raise DimensionMismatchError(
                    f"Cannot add transfer functions of shapes {self.shape} and {other.shape}"
                )
            return TransferFunction(
                [
                    [a + b for a, b in zip(row_a, row_b)]
                    for row_a, row_b in zip(self._entries, other._entries)
                ],
                sampling,
            )
        if _is_scalar(other):
            return self.map(lambda entry: entry + other)
        return NotImplemented

    __radd__ = __add__

    def __neg__(self) -> "TransferFunction":
        return self.map(lambda entry: -entry)

    def __sub__(self, other: Operand) -> "TransferFunction":
        return self + (-other)

    def __rsub__(self, other: Operand) -> "TransferFunction":
        return (-self) + other

    def __mul__(self, other: Operand) -> "TransferFunction":
        if isinstance(other, TransferFunction):
            sampling = self._other_sampling(other)
            if other.is_siso and not self.is_siso:
                scale = other.siso()
                return TransferFunction(
                    [[entry * scale for entry in row] for row in self._entries], sampling
                )
            if self.is_siso and not other.is_siso:
                scale = self.siso()
                return TransferFunction(
                    [[scale * entry for entry in row] for row in other._entries], sampling
                )
            if self.nu != other.ny:
                raise DimensionMismatchError(
                    f"Cannot multiply transfer functions of shapes {self.shape} and {other.shape}"
                )
            product = []
            for i in range(self.ny):
                row = []
                for j in range(other.nu):
                    total = self._entries[i][0] * other._entries[0][j]
                    for k in range(1, self.nu):
                        total = total + self._entries[i][k] * other._entries[k][j]
                    row.append(total)
                product.append(row)
            return TransferFunction(product, sampling)
        if _is_scalar(other):
            return self.map(lambda entry: entry * other)
        return NotImplemented

    def __rmul__(self, other: Operand) -> "TransferFunction":
        if _is_scalar(other):
            return self.map(lambda entry: other * entry)
        return NotImplemented

    def __truediv__(self, other: Operand) -> "TransferFunction":
        if isinstance(other, TransferFunction):
            sampling = self._other_sampling(other)
            if not other.is_siso:
                raise UnsupportedSystemError(
                    "MIMO transfer function inversion is not supported"
                )
            inverse = other.siso().inverse()
            return TransferFunction(
                [[entry * inverse for entry in row] for row in self._entries], sampling
            )
        if _is_scalar(other):
            return self.map(lambda entry: entry / other)
        return NotImplemented

    def __rtruediv__(self, other: Operand) -> "TransferFunction":
        if not _is_scalar(other):
            return NotImplemented
        if not self.is_siso:
            raise UnsupportedSystemError("MIMO transfer function inversion is not supported")
        return TransferFunction([[other / self.siso()]], self._sampling)

    def __repr__(self) -> str:
        if self.is_siso:
            return f"TransferFunction({self.siso()!r}, sampling={self._sampling})"
        return f"TransferFunction(shape={self.shape}, sampling={self._sampling})"


# ============================================================================
# Constructors
# ============================================================================


def tf(
    num: PolynomialCoefficients,
    den: PolynomialCoefficients,
    sampling: Sampling = CONTINUOUS,
) -> TransferFunction:
    """
    SISO transfer function from floating-point coefficients.

    Args:
        num: Numerator coefficients, descending powers
        den: Denominator coefficients, descending powers
        sampling: Sampling tag (continuous by default)

    Returns:
        1x1 TransferFunction with a SisoPolynomial entry

    Examples
    --------
    >>> G = tf([1], [1, 2, 1])  # 1 / (s + 1)²
    """
    return TransferFunction([[SisoPolynomial(num, den)]], sampling)


def tf_rational(num, den, sampling: Sampling = CONTINUOUS) -> TransferFunction:
    """SISO transfer function with exact rational coefficients."""
    return TransferFunction([[SisoRational(num, den)]], sampling)


def zpk(
    zeros: RootList,
    poles: RootList,
    gain: ScalarLike,
    sampling: Sampling = CONTINUOUS,
) -> TransferFunction:
    """SISO transfer function in zero/pole/gain form."""
    return TransferFunction([[SisoZpk(zeros, poles, gain)]], sampling)


def tf_matrix(nums, dens, sampling: Sampling = CONTINUOUS) -> TransferFunction:
    """
    MIMO transfer function from nested lists of coefficient arrays.

    ``nums[i][j]`` / ``dens[i][j]`` is the entry from input j to output i.
    """
    if len(nums) != len(dens) or any(len(n) != len(d) for n, d in zip(nums, dens)):
        raise DimensionMismatchError("Numerator and denominator layouts differ")
    return TransferFunction(
        [[SisoPolynomial(n, d) for n, d in zip(num_row, den_row)]
         for num_row, den_row in zip(nums, dens)],
        sampling,
    )


__all__ = [
    "Representation",
    "SisoTransferFunction",
    "SisoPolynomial",
    "SisoRational",
    "SisoZpk",
    "TransferFunction",
    "tf",
    "tf_rational",
    "zpk",
    "tf_matrix",
]
