"""Operators and the transcendental library, shared by every
context-rounded number type.

Each operation picks a context, asks gmpmath for the result truncated at
one extra bit with its result code, and rounds that exactly once.
"""

from abc import abstractmethod

from ..core import digital, gmpmath
from ..core.ops import OP, RM


class MPNum(digital.Digital):

    # must be implemented in subclasses
    @abstractmethod
    def _select_context(cls, *args, ctx=None):
        raise ValueError('virtual method: unimplemented')

    @abstractmethod
    def _round_to_context(cls, unrounded, ctx=None):
        raise ValueError('virtual method: unimplemented')

    def _coerce(self, other):
        """Convert a plain number operand; digital numbers pass through."""
        return other

    def _unary(self, opcode, ctx):
        ctx = self._select_context(self, ctx=ctx)
        result = gmpmath.compute(opcode, self, prec=ctx.p)
        return self._round_to_context(result, ctx=ctx)

    def _binary(self, opcode, other, ctx):
        other = self._coerce(other)
        ctx = self._select_context(self, other, ctx=ctx)
        result = gmpmath.compute(opcode, self, other, prec=ctx.p)
        return self._round_to_context(result, ctx=ctx)

    @staticmethod
    def _exact_zero_sign(result, zero_operands, ctx):
        """Exact zero sums take the sign of their operands when those are
        zeros of the same sign, and otherwise are positive, or negative when
        rounding toward negative infinity.
        """
        if result.is_nar() or not result.is_exactly_zero():
            return result
        if all(z.is_zero() for z in zero_operands):
            signs = {z.negative for z in zero_operands}
            if len(signs) == 1:
                return digital.Digital(result, negative=signs.pop())
        return digital.Digital(result, negative=(ctx.rm == RM.RTN))

    # most operations

    def add(self, other, ctx=None):
        other = self._coerce(other)
        ctx = self._select_context(self, other, ctx=ctx)
        result = gmpmath.compute(OP.add, self, other, prec=ctx.p)
        result = self._exact_zero_sign(result, (self, other), ctx)
        return self._round_to_context(result, ctx=ctx)

    def sub(self, other, ctx=None):
        other = self._coerce(other)
        ctx = self._select_context(self, other, ctx=ctx)
        result = gmpmath.compute(OP.sub, self, other, prec=ctx.p)
        negated = digital.Digital(other, negative=not other.negative)
        result = self._exact_zero_sign(result, (self, negated), ctx)
        return self._round_to_context(result, ctx=ctx)

    def mul(self, other, ctx=None):
        return self._binary(OP.mul, other, ctx)

    def div(self, other, ctx=None):
        return self._binary(OP.div, other, ctx)

    def fma(self, other1, other2, ctx=None):
        other1 = self._coerce(other1)
        other2 = self._coerce(other2)
        ctx = self._select_context(self, other1, other2, ctx=ctx)
        result = gmpmath.compute(OP.fma, self, other1, other2, prec=ctx.p)
        if self.is_zero() or other1.is_zero():
            product = digital.Digital(c=0, exp=0, negative=(self.negative != other1.negative))
        else:
            product = digital.Digital(c=1, exp=0)
        result = self._exact_zero_sign(result, (product, other2), ctx)
        return self._round_to_context(result, ctx=ctx)

    def remainder(self, other, ctx=None):
        """Truncated remainder: self - n * other, for n the integer quotient
        rounded toward zero. The result has the sign of self.
        """
        return self._binary(OP.fmod, other, ctx)

    def neg(self, ctx=None):
        return self._unary(OP.neg, ctx)

    def fabs(self, ctx=None):
        return self._unary(OP.fabs, ctx)

    def plus(self, ctx=None):
        ctx = self._select_context(self, ctx=ctx)
        return self._round_to_context(self, ctx=ctx)

    def fmax(self, other, ctx=None):
        other = self._coerce(other)
        ctx = self._select_context(self, other, ctx=ctx)
        if self.isnan:
            return self._round_to_context(other, ctx=ctx)
        elif other.isnan:
            return self._round_to_context(self, ctx=ctx)
        elif self.is_zero() and other.is_zero():
            return self._round_to_context(other if self.negative else self, ctx=ctx)
        elif self.compareto(other) < 0:
            return self._round_to_context(other, ctx=ctx)
        else:
            return self._round_to_context(self, ctx=ctx)

    def fmin(self, other, ctx=None):
        other = self._coerce(other)
        ctx = self._select_context(self, other, ctx=ctx)
        if self.isnan:
            return self._round_to_context(other, ctx=ctx)
        elif other.isnan:
            return self._round_to_context(self, ctx=ctx)
        elif self.is_zero() and other.is_zero():
            return self._round_to_context(self if self.negative else other, ctx=ctx)
        elif self.compareto(other) > 0:
            return self._round_to_context(other, ctx=ctx)
        else:
            return self._round_to_context(self, ctx=ctx)

    def rint(self, ctx=None):
        """Round to an integer with the rounding policy of the context,
        then to the context's precision.
        """
        ctx = self._select_context(self, ctx=ctx)
        if self.is_nar() or self.is_zero() or self.exp >= 0:
            return self._round_to_context(self, ctx=ctx)
        integral = digital.Digital(self, inexact=False, rc=0).round_new(min_n=-1, rm=ctx.rm)
        return self._round_to_context(digital.Digital(integral, inexact=False, rc=0), ctx=ctx)

    # transcendental library

    def sqrt(self, ctx=None):
        return self._unary(OP.sqrt, ctx)

    def cbrt(self, ctx=None):
        return self._unary(OP.cbrt, ctx)

    def root(self, n, ctx=None):
        """Real n-th root for a nonzero integer n; negative n is the reciprocal root."""
        ctx = self._select_context(self, ctx=ctx)
        if n == 0:
            return self._round_to_context(digital.Digital(isnan=True), ctx=ctx)
        result = gmpmath.compute_root(self, int(n), prec=ctx.p)
        return self._round_to_context(result, ctx=ctx)

    def pow(self, other, ctx=None):
        other = self._coerce(other)
        ctx = self._select_context(self, other, ctx=ctx)
        if other.is_zero() or (self.is_finite_real() and self.compareto(_ONE) == 0):
            # avoid possibly passing nan to gmpmath.compute
            return self._round_to_context(_ONE, ctx=ctx)
        result = gmpmath.compute(OP.pow, self, other, prec=ctx.p)
        return self._round_to_context(result, ctx=ctx)

    def exp_(self, ctx=None):
        return self._unary(OP.exp, ctx)

    def exp2(self, ctx=None):
        return self._unary(OP.exp2, ctx)

    def expm1(self, ctx=None):
        return self._unary(OP.expm1, ctx)

    def log(self, ctx=None):
        return self._unary(OP.log, ctx)

    def log10(self, ctx=None):
        return self._unary(OP.log10, ctx)

    def log1p(self, ctx=None):
        return self._unary(OP.log1p, ctx)

    def log2(self, ctx=None):
        return self._unary(OP.log2, ctx)

    def hypot(self, other, ctx=None):
        return self._binary(OP.hypot, other, ctx)

    def sin(self, ctx=None):
        return self._unary(OP.sin, ctx)

    def cos(self, ctx=None):
        return self._unary(OP.cos, ctx)

    def tan(self, ctx=None):
        return self._unary(OP.tan, ctx)

    def sec(self, ctx=None):
        return self._unary(OP.sec, ctx)

    def csc(self, ctx=None):
        return self._unary(OP.csc, ctx)

    def cot(self, ctx=None):
        return self._unary(OP.cot, ctx)

    def asin(self, ctx=None):
        return self._unary(OP.asin, ctx)

    def acos(self, ctx=None):
        return self._unary(OP.acos, ctx)

    def atan(self, ctx=None):
        return self._unary(OP.atan, ctx)

    def atan2(self, other, ctx=None):
        """Two-argument arctangent of self / other, where self is the y coordinate."""
        return self._binary(OP.atan2, other, ctx)

    def sinh(self, ctx=None):
        return self._unary(OP.sinh, ctx)

    def cosh(self, ctx=None):
        return self._unary(OP.cosh, ctx)

    def tanh(self, ctx=None):
        return self._unary(OP.tanh, ctx)

    def sech(self, ctx=None):
        return self._unary(OP.sech, ctx)

    def csch(self, ctx=None):
        return self._unary(OP.csch, ctx)

    def coth(self, ctx=None):
        return self._unary(OP.coth, ctx)

    def asinh(self, ctx=None):
        return self._unary(OP.asinh, ctx)

    def acosh(self, ctx=None):
        return self._unary(OP.acosh, ctx)

    def atanh(self, ctx=None):
        return self._unary(OP.atanh, ctx)

    def isfinite(self):
        return not (self.isinf or self.isnan)

    # isinf and isnan are properties

    def signbit(self):
        return self.negative


_ONE = digital.Digital(c=1, exp=0)
