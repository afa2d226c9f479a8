"""Arbitrary-precision binary floating-point values.

A BigFloat is an exact binary number (or a signed infinity, or NaN) that
remembers the precision it was produced at. Every construction and every
operation rounds exactly once, to a Context.
"""

import fractions

import numpy as np

from ..core import utils, digital, gmpmath, conversion
from ..core.ops import RM, OP, FloatClass
from . import evalctx
from . import mpnum


# signed integer widths -> (min, max)
_int_bounds = {bits: (-(1 << (bits - 1)), (1 << (bits - 1)) - 1) for bits in (8, 16, 32, 64)}

_EXACT_BINARY32 = evalctx.BINARY32.with_rounding_policy(RM.EXACT)
_EXACT_BINARY64 = evalctx.BINARY64.with_rounding_policy(RM.EXACT)


class BigFloat(mpnum.MPNum):

    _precision : int = evalctx.DEFAULT_PRECISION
    # set once __init__ is done; fields never change afterwards
    _frozen : bool = False

    @property
    def precision(self):
        """Number of significand bits this value was produced at."""
        return self._precision

    @property
    def kind(self):
        if self._isnan:
            return FloatClass.NAN
        elif self._isinf:
            return FloatClass.INFINITE
        elif self._c == 0:
            return FloatClass.ZERO
        else:
            return FloatClass.FINITE

    @property
    def sign(self):
        """The sign bit. Always False for NaN."""
        return self._negative

    def __init__(self, x=None, ctx=None, precision=None, **kwargs):
        """BigFloat(x, ctx) converts x and rounds it to ctx. Without a context,
        x is rounded to the default context (at the given precision, if any),
        except that another BigFloat is copied as is.

        Passing digital fields as keywords (c=, exp=, negative=, isinf=, isnan=)
        builds a value directly, without rounding.
        """
        if kwargs or x is None:
            if ctx is not None:
                raise ValueError('cannot round while building a value from fields: {}'.format(repr(kwargs)))
            if precision is None:
                if isinstance(x, BigFloat):
                    precision = x._precision
                else:
                    precision = type(self)._precision
            super().__init__(x=x, **kwargs)
            self._inexact = False
            self._rc = 0
            if self._isnan:
                self._negative = False
                self._c = 0
                self._exp = 0
            self._precision = precision

        elif isinstance(x, BigFloat) and ctx is None and precision is None:
            super().__init__(x=x)
            self._precision = x._precision

        else:
            if ctx is None:
                ctx = evalctx.default_context(precision)
            elif precision is not None and precision != ctx.p:
                raise ValueError('precision={} conflicts with {}'.format(repr(precision), repr(ctx)))
            unrounded = self._to_digital(x, ctx)
            rounded = self._round_to_context(unrounded, ctx=ctx)
            super().__init__(x=rounded)
            self._precision = rounded._precision

        object.__setattr__(self, '_frozen', True)

    def __setattr__(self, name, value):
        if self._frozen:
            raise AttributeError('{} is immutable'.format(type(self).__name__))
        object.__setattr__(self, name, value)

    def __delattr__(self, name):
        raise AttributeError('{} is immutable'.format(type(self).__name__))

    @staticmethod
    def _to_digital(x, ctx):
        """Convert a native number into an exact digital number, or one truncated
        at ctx.p + 1 bits with its result code set.
        """
        if isinstance(x, digital.Digital):
            return digital.Digital(x, inexact=False, rc=0)
        elif isinstance(x, (int, np.integer)):
            return digital.Digital(m=int(x), exp=0)
        elif isinstance(x, (float, np.float16, np.float32, np.float64)):
            return conversion.float_to_digital(x)
        elif isinstance(x, fractions.Fraction):
            num = digital.Digital(m=x.numerator, exp=0)
            if x.denominator == 1:
                return num
            den = digital.Digital(c=x.denominator, exp=0)
            return gmpmath.compute(OP.div, num, den, prec=ctx.p)
        elif isinstance(x, str):
            return conversion.parse_literal(x, ctx.p, ctx.emin, ctx.emax)
        elif isinstance(x, (bytes, bytearray)):
            try:
                s = bytes(x).decode('ascii')
            except UnicodeDecodeError:
                raise utils.FloatSyntaxError('invalid literal for float: {}'.format(repr(x)))
            return conversion.parse_literal(s, ctx.p, ctx.emin, ctx.emax)
        else:
            raise TypeError('cannot convert {} to {}'.format(repr(type(x)), BigFloat.__name__))

    def _coerce(self, other):
        if isinstance(other, digital.Digital):
            return other
        elif isinstance(other, (int, np.integer)):
            i = int(other)
            bits = i.bit_length() - utils.trailing_zeros(i)
            return BigFloat(i, precision=max(2, self._precision, bits))
        elif isinstance(other, (float, np.float16, np.float32, np.float64)):
            if isinstance(other, float):
                native = np.float64
            else:
                native = type(other)
            w, pbits, nbytes = conversion.float_formats[native]
            return BigFloat(other, precision=max(self._precision, pbits + 1))
        elif isinstance(other, (str, bytes, bytearray, fractions.Fraction)):
            return BigFloat(other, precision=self._precision)
        else:
            raise TypeError('unsupported operand type {} for {}'.format(repr(type(other)), type(self).__name__))

    @classmethod
    def _select_context(cls, *args, ctx=None):
        if ctx is not None:
            return ctx
        else:
            p = max(f._precision for f in args if isinstance(f, cls))
            return evalctx.default_context(p)

    @classmethod
    def _round_to_context(cls, unrounded, ctx=None):
        if ctx is None:
            if isinstance(unrounded, cls):
                ctx = evalctx.default_context(unrounded.precision)
            else:
                raise ValueError('no context specified to round {}'.format(repr(unrounded)))

        if unrounded.isnan:
            return cls(isnan=True, precision=ctx.p)
        elif unrounded.isinf:
            if unrounded.inexact:
                # a finite result too large for the backend to hold
                return cls._overflow(unrounded.negative, ctx)
            return cls(negative=unrounded.negative, isinf=True, precision=ctx.p)

        rounded = unrounded.round_new(max_p=ctx.p, min_n=ctx.n, rm=ctx.rm)

        if rounded.c == 0:
            return cls(negative=rounded.negative, c=0, exp=0, precision=ctx.p)
        elif rounded.e > ctx.emax:
            return cls._overflow(rounded.negative, ctx)
        else:
            return cls(negative=rounded.negative, c=rounded.c, exp=rounded.exp, precision=ctx.p)

    @classmethod
    def _overflow(cls, negative, ctx):
        """The result of rounding a value beyond the largest finite one."""
        rm = ctx.rm
        if rm == RM.EXACT:
            raise utils.InexactError('overflow: {} is not representable with emax={}'
                                     .format('-inf' if negative else '+inf', ctx.emax))
        elif rm == RM.RTZ:
            to_inf = False
        elif rm == RM.RTP:
            to_inf = not negative
        elif rm == RM.RTN:
            to_inf = negative
        else:
            # all three ties-to-nearest modes, and RAZ
            to_inf = True

        if to_inf:
            return cls(negative=negative, isinf=True, precision=ctx.p)
        else:
            return cls(max_value(ctx.p, ctx.emax), negative=negative)

    def is_identical_to(self, other):
        if isinstance(other, type(self)):
            return super().is_identical_to(other) and self._precision == other._precision
        else:
            return super().is_identical_to(other)

    def __repr__(self):
        return '{}(negative={}, c={}, exp={}, isinf={}, isnan={}, precision={})'.format(
            type(self).__name__, repr(self._negative), repr(self._c), repr(self._exp),
            repr(self._isinf), repr(self._isnan), repr(self._precision),
        )

    def __str__(self):
        if self._isnan:
            return 'NaN'
        elif self._isinf:
            return '-Infinity' if self._negative else 'Infinity'
        elif self._c == 0:
            return '-0e+00' if self._negative else '0e+00'
        else:
            return gmpmath.digital_to_string(self, self._precision)

    # predicates

    def is_nan(self):
        return self._isnan

    def is_infinite(self):
        return self._isinf

    def is_finite(self):
        return not (self._isinf or self._isnan)

    def is_positive_zero(self):
        return self.is_zero() and not self._negative

    def is_negative_zero(self):
        return self.is_zero() and self._negative

    def is_subnormal(self, emin):
        """Nonzero and below the normal range of a format with exponents >= emin."""
        return self.is_finite() and self._c != 0 and self.e < emin

    def is_normal(self, emin):
        return self.is_finite() and self._c != 0 and self.e >= emin

    # sign manipulation

    def negate(self, ctx=None):
        """Flip the sign. Without a context, this is exact at the same precision."""
        if ctx is not None:
            return self.neg(ctx=ctx)
        if self._isnan:
            return self
        return BigFloat(self, negative=not self._negative)

    def abs(self, ctx=None):
        """Clear the sign. Without a context, this is exact at the same precision."""
        if ctx is not None:
            return self.fabs(ctx=ctx)
        return BigFloat(self, negative=False)

    def round(self, ctx):
        """Round this value to another context."""
        return self._round_to_context(self, ctx=ctx)

    def signum(self):
        """+1, -1, a signed zero, or NaN, at this value's precision."""
        if self._isnan or self.is_zero():
            return self
        return BigFloat(negative=self._negative, c=1, exp=0, precision=self._precision)

    # ordering

    def compare(self, other):
        """Total order: numeric value first, with -0 before +0 and NaN after
        +inf; ties broken by ascending precision. Returns -1, 0 or 1.
        """
        if self._isnan or other._isnan:
            if not other._isnan:
                return 1
            elif not self._isnan:
                return -1
            order = 0
        else:
            order = self.compareto(other)
            if order == 0 and self.is_zero() and other.is_zero() and self._negative != other._negative:
                order = -1 if self._negative else 1

        if order == 0:
            if self._precision < other._precision:
                return -1
            elif self._precision > other._precision:
                return 1
        return order

    def __eq__(self, other):
        if not isinstance(other, BigFloat):
            return NotImplemented
        return self.compare(other) == 0

    def __ne__(self, other):
        if not isinstance(other, BigFloat):
            return NotImplemented
        return self.compare(other) != 0

    def __lt__(self, other):
        if not isinstance(other, BigFloat):
            return NotImplemented
        return self.compare(other) < 0

    def __le__(self, other):
        if not isinstance(other, BigFloat):
            return NotImplemented
        return self.compare(other) <= 0

    def __gt__(self, other):
        if not isinstance(other, BigFloat):
            return NotImplemented
        return self.compare(other) > 0

    def __ge__(self, other):
        if not isinstance(other, BigFloat):
            return NotImplemented
        return self.compare(other) >= 0

    def __hash__(self):
        if self._isnan:
            return hash((FloatClass.NAN, self._precision))
        elif self._isinf or self._c == 0:
            return hash((self.kind, self._negative, self._precision))
        else:
            tz = utils.trailing_zeros(self._c)
            return hash((self._negative, self._c >> tz, self._exp + tz, self._precision))

    # IEEE 754 comparison predicates: NaN is unordered and -0 == +0

    def equal_to(self, other):
        order = self.compareto(self._coerce(other))
        return order is not None and order == 0

    def not_equal_to(self, other):
        order = self.compareto(self._coerce(other))
        return order is None or order != 0

    def less_than(self, other):
        order = self.compareto(self._coerce(other))
        return order is not None and order < 0

    def less_than_or_equal_to(self, other):
        order = self.compareto(self._coerce(other))
        return order is not None and order <= 0

    def greater_than(self, other):
        order = self.compareto(self._coerce(other))
        return order is not None and order > 0

    def greater_than_or_equal_to(self, other):
        order = self.compareto(self._coerce(other))
        return order is not None and order >= 0

    # extraction to native types

    def _truncate(self):
        if self._exp >= 0:
            i = self._c << self._exp
        else:
            i = self._c >> -self._exp
        return -i if self._negative else i

    def _saturate(self, bits):
        lo, hi = _int_bounds[bits]
        if self._isnan:
            return 0
        elif self._isinf:
            return lo if self._negative else hi
        elif self._c != 0 and self.e >= bits:
            return lo if self._negative else hi
        return min(max(self._truncate(), lo), hi)

    def _exact_integer(self, lo=None, hi=None):
        if not self.is_exact_integer():
            raise utils.InexactError('{} is not an integer'.format(str(self)))
        if lo is not None and self._c != 0 and self.e >= (hi.bit_length() + 1):
            raise utils.InexactError('{} does not fit in [{}, {}]'.format(str(self), lo, hi))
        i = self._truncate()
        if lo is not None and not (lo <= i <= hi):
            raise utils.InexactError('{} does not fit in [{}, {}]'.format(str(self), lo, hi))
        return i

    def to_int8(self):
        return self._saturate(8)

    def to_int16(self):
        return self._saturate(16)

    def to_int32(self):
        return self._saturate(32)

    def to_int64(self):
        return self._saturate(64)

    def to_int8_exact(self):
        return self._exact_integer(*_int_bounds[8])

    def to_int16_exact(self):
        return self._exact_integer(*_int_bounds[16])

    def to_int32_exact(self):
        return self._exact_integer(*_int_bounds[32])

    def to_int64_exact(self):
        return self._exact_integer(*_int_bounds[64])

    def to_integer(self):
        """Truncate toward zero to a Python int. NaN and infinities give 0."""
        if self.is_nar():
            return 0
        return self._truncate()

    def to_integer_exact(self):
        return self._exact_integer()

    def to_float64(self):
        """Round to nearest binary64, as a Python float."""
        return conversion.float_from_digital(self.round(evalctx.BINARY64), float)

    def to_float32(self):
        """Round to nearest binary32, as a numpy float32."""
        return conversion.float_from_digital(self.round(evalctx.BINARY32), np.float32)

    def to_float64_exact(self):
        if self.is_nar():
            raise utils.InexactError('{} is not a finite float'.format(str(self)))
        return conversion.float_from_digital(self.round(_EXACT_BINARY64), float)

    def to_float32_exact(self):
        if self.is_nar():
            raise utils.InexactError('{} is not a finite float'.format(str(self)))
        return conversion.float_from_digital(self.round(_EXACT_BINARY32), np.float32)

    def __int__(self):
        return self.to_integer()

    def __float__(self):
        return self.to_float64()

    # field access relative to an exponent window

    def _check_window(self, emin, emax):
        if emin > emax:
            raise utils.RangeError('empty exponent window [{}, {}]'.format(emin, emax))
        if self.is_finite() and self._c != 0:
            if self.e > emax:
                raise utils.RangeError('{} is too large for the exponent window [{}, {}]'
                                       .format(str(self), emin, emax))
            lowest = self._exp + utils.trailing_zeros(self._c)
            if lowest < emin - self._precision + 1:
                raise utils.RangeError('{} is too small for the exponent window [{}, {}]'
                                       .format(str(self), emin, emax))

    def exponent(self, emin, emax):
        """Unbiased IEEE 754 exponent: emin - 1 for zeros and subnormals,
        emax + 1 for infinities and NaN.
        """
        self._check_window(emin, emax)
        if self.is_nar():
            return emax + 1
        elif self._c == 0 or self.e < emin:
            return emin - 1
        else:
            return self.e

    def significand(self, emin, emax):
        """Integer significand, including the implicit bit for normal values."""
        if self._isnan:
            raise ValueError('NaN has no significand')
        self._check_window(emin, emax)
        if self._isinf or self._c == 0:
            return 0
        lsb = max(self.e, emin) - self._precision + 1
        return self._scaled_to(lsb)

    def _scaled_to(self, lsb):
        """The significand rescaled so its last bit is worth 2**lsb.
        Exact for any lsb that passed _check_window: the value may carry
        trailing zeros from a wider context, but no set bits below lsb.
        """
        shift = self._exp - lsb
        if shift >= 0:
            return self._c << shift
        else:
            return self._c >> -shift

    @classmethod
    def from_components(cls, sign, significand, exponent, ctx):
        """Inverse of (sign, significand(), exponent()) for the window of ctx."""
        p = ctx.p
        if significand < 0 or significand.bit_length() > p:
            raise utils.RangeError('significand {} does not fit in {} bits'.format(significand, p))
        if exponent > ctx.emax + 1 or exponent < ctx.emin - 1:
            raise utils.RangeError('exponent {} is outside [{}, {}]'
                                   .format(exponent, ctx.emin - 1, ctx.emax + 1))

        if exponent == ctx.emax + 1:
            if significand == 0:
                return cls(negative=sign, isinf=True, precision=p)
            else:
                return cls(isnan=True, precision=p)
        elif significand == 0:
            return cls(negative=sign, c=0, exp=0, precision=p)
        else:
            lsb = max(exponent, ctx.emin) - p + 1
            return cls(negative=sign, c=significand, exp=lsb, precision=p)

    # boundary navigation

    def _ordinal(self, emin, emax):
        """Position of the magnitude among the values of this precision
        in the window, counting from zero.
        """
        p = self._precision
        if self._isinf:
            return ((emax - emin + 2) << (p - 1))
        q = emin - p + 1
        if self._c == 0:
            return 0
        e = self.e
        if e < emin:
            return self._scaled_to(q)
        sig = self._scaled_to(e - p + 1)
        return ((e - emin + 1) << (p - 1)) + sig - (1 << (p - 1))

    def _from_ordinal(self, negative, ordinal, emin, emax):
        p = self._precision
        top = (emax - emin + 2) << (p - 1)
        if ordinal >= top:
            return BigFloat(negative=negative, isinf=True, precision=p)
        q = emin - p + 1
        if ordinal < (1 << (p - 1)):
            return BigFloat(negative=negative, c=ordinal, exp=q if ordinal else 0, precision=p)
        k = ordinal >> (p - 1)
        e = emin + k - 1
        sig = (1 << (p - 1)) | utils.maskbits(ordinal, p - 1)
        return BigFloat(negative=negative, c=sig, exp=e - p + 1, precision=p)

    def next_up(self, emin, emax):
        """Smallest value of this precision in the window greater than this one."""
        self._check_window(emin, emax)
        if self._isnan or (self._isinf and not self._negative):
            return self
        ordinal = self._ordinal(emin, emax)
        if self._negative and ordinal != 0:
            if ordinal == 1:
                return BigFloat(negative=True, c=0, exp=0, precision=self._precision)
            return self._from_ordinal(True, ordinal - 1, emin, emax)
        else:
            return self._from_ordinal(False, ordinal + 1, emin, emax)

    def next_down(self, emin, emax):
        """Largest value of this precision in the window less than this one."""
        if self._isnan:
            return self
        return self.negate().next_up(emin, emax).negate()

    def next_after(self, direction, emin, emax):
        """Adjacent value toward direction. If either is NaN the result is
        that NaN; if they are equal, direction's sign is kept on this value.
        """
        direction = self._coerce(direction)
        if self._isnan:
            return self
        elif direction._isnan:
            return direction
        order = self.compareto(direction)
        if order == 0:
            self._check_window(emin, emax)
            return BigFloat(self, negative=direction._negative)
        elif order < 0:
            return self.next_up(emin, emax)
        else:
            return self.next_down(emin, emax)

    # persistence

    def to_fields(self):
        """(negative, classification, significand, exponent, precision)"""
        return (self._negative, self.kind, self._c, self._exp, self._precision)

    @classmethod
    def from_fields(cls, negative, kind, c, exp, precision):
        kind = FloatClass(kind)
        if kind == FloatClass.NAN:
            return cls(isnan=True, precision=precision)
        elif kind == FloatClass.INFINITE:
            return cls(negative=negative, isinf=True, precision=precision)
        elif kind == FloatClass.ZERO:
            if c != 0:
                raise ValueError('zero with nonzero significand {}'.format(repr(c)))
            return cls(negative=negative, c=0, exp=0, precision=precision)
        else:
            if c <= 0 or c.bit_length() > precision:
                raise ValueError('significand {} does not fit in {} bits'.format(repr(c), precision))
            return cls(negative=negative, c=c, exp=exp, precision=precision)

    def __reduce__(self):
        return (_from_fields, self.to_fields())

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    # Python arithmetic protocol

    def _binary_dunder(self, other, op, reflected=False):
        try:
            other = self._coerce(other)
        except TypeError:
            return NotImplemented
        if reflected:
            return op(other, self)
        return op(self, other)

    def __add__(self, other):
        return self._binary_dunder(other, BigFloat.add)

    def __radd__(self, other):
        return self._binary_dunder(other, BigFloat.add, reflected=True)

    def __sub__(self, other):
        return self._binary_dunder(other, BigFloat.sub)

    def __rsub__(self, other):
        return self._binary_dunder(other, BigFloat.sub, reflected=True)

    def __mul__(self, other):
        return self._binary_dunder(other, BigFloat.mul)

    def __rmul__(self, other):
        return self._binary_dunder(other, BigFloat.mul, reflected=True)

    def __truediv__(self, other):
        return self._binary_dunder(other, BigFloat.div)

    def __rtruediv__(self, other):
        return self._binary_dunder(other, BigFloat.div, reflected=True)

    def __pow__(self, other):
        return self._binary_dunder(other, BigFloat.pow)

    def __rpow__(self, other):
        return self._binary_dunder(other, BigFloat.pow, reflected=True)

    def __neg__(self):
        return self.negate()

    def __pos__(self):
        return self

    def __abs__(self):
        return self.abs()

    # IEEE-style names
    max = mpnum.MPNum.fmax
    min = mpnum.MPNum.fmin


def _from_fields(negative, kind, c, exp, precision):
    return BigFloat.from_fields(negative, kind, c, exp, precision)


# special values

def zero(p):
    return BigFloat(negative=False, c=0, exp=0, precision=p)

def negative_zero(p):
    return BigFloat(negative=True, c=0, exp=0, precision=p)

def positive_infinity(p):
    return BigFloat(negative=False, isinf=True, precision=p)

def negative_infinity(p):
    return BigFloat(negative=True, isinf=True, precision=p)

def nan(p):
    return BigFloat(isnan=True, precision=p)

def max_value(p, emax):
    """Largest finite value with p bits and largest exponent emax."""
    return BigFloat(negative=False, c=(1 << p) - 1, exp=emax - p + 1, precision=p)

def min_normal(p, emin):
    """Smallest positive normal value with p bits and smallest exponent emin."""
    return BigFloat(negative=False, c=1, exp=emin, precision=p)

def min_value(p, emin):
    """Smallest positive subnormal value with p bits and smallest exponent emin."""
    return BigFloat(negative=False, c=1, exp=emin - p + 1, precision=p)


# constants

def pi(ctx=None):
    if ctx is None:
        ctx = evalctx.default_context()
    return BigFloat._round_to_context(gmpmath.compute_constant('PI', prec=ctx.p), ctx=ctx)

def e(ctx=None):
    if ctx is None:
        ctx = evalctx.default_context()
    return BigFloat._round_to_context(gmpmath.compute_constant('E', prec=ctx.p), ctx=ctx)
