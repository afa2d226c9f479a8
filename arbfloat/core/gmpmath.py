"""Common arithmetic operations (+-*/ sqrt log exp etc.)
implemented with GMP as a backend, but conveniently extended to arbitrary
precision and exponent range.

Every result is computed with one extra bit of precision and rounded toward
zero, so that MPFR's result code is enough to recover the guard and sticky
information needed to round again correctly in any mode.
"""


import logging

import gmpy2 as gmp

from . import digital
from .ops import OP


logger = logging.getLogger(__name__)


# MPFR's exponent range, in its own convention (x = 0.1xxx * 2**E).
# Every Context keeps emin - p - 2 and emax + p + 2 inside it, so a result
# that MPFR cannot hold is always out of range for the target context too.
EMAX = gmp.get_emax_max()
EMIN = gmp.get_emin_min()


def digital_to_mpfr(x):
    if x.isnan:
        return gmp.nan()
    elif x.isinf:
        if x.negative:
            return -gmp.inf()
        else:
            return gmp.inf()

    c = x.c
    exp = x.exp

    cbits = c.bit_length()
    ebits = exp.bit_length()

    # Apparently a multiplication between a small precision 0 and a huge
    # scale can raise a Type error indicating that gmp.mul() requires two
    # mpfr arguments - we can avoid that case entirely by special-casing
    # away the multiplication.
    if cbits == 0:
        with gmp.context(
            precision=2,
            emin=-1,
            emax=1,
            trap_underflow=True,
            trap_overflow=True,
            trap_inexact=True,
            trap_invalid=True,
            trap_erange=True,
            trap_divzero=True,
        ):
            if x.negative:
                return -gmp.zero()
            else:
                return gmp.zero()

    else:
        with gmp.context(
                precision=max(2, ebits),
                emin=min(-1, exp),
                emax=max(1, ebits, exp + 1),
                trap_underflow=True,
                trap_overflow=True,
                trap_inexact=True,
                trap_invalid=True,
                trap_erange=True,
                trap_divzero=True,
        ):
            scale = gmp.exp2(exp)

        with gmp.context(
                precision=max(2, cbits),
                emin=min(-1, exp),
                emax=max(1, cbits, exp + cbits),
                trap_underflow=True,
                trap_overflow=True,
                trap_inexact=True,
                trap_invalid=True,
                trap_erange=True,
                trap_divzero=True,
        ):
            significand = gmp.mpfr(c)
            if x.negative:
                return -gmp.mul(significand, scale)
            else:
                return gmp.mul(significand, scale)


def mpfr_to_digital(x, rc=None):
    """Convert an mpfr back to a Digital. The result code is taken from the
    mpfr itself unless an MPFR-style rc (the sign of rounded - exact) is given.
    """
    if rc is None:
        rc = x.rc
    rounded = rc != 0

    if gmp.is_nan(x):
        return digital.Digital(
            isnan=True,
            inexact=rounded,
            rc=0,
        )

    negative = gmp.is_signed(x)

    # Convert the result code. For MPFRs, 1 indicates that the approximate MPFR
    # is larger than the ideal, infinite-precision result (i.e. we rounded up)
    # and -1 indicates that the MPFR is less than the infinite-precision result.
    # We need to convert this to the code used by Digital: the result code
    # is a tiny additional factor that we would have to add to the magnitude to
    # get the right answer, so if we rounded away from zero, it's -1, and if we rounded
    # towards zero, it's 1.

    if negative:
        rc = 1 if rc > 0 else (-1 if rc < 0 else 0)
    else:
        rc = -1 if rc > 0 else (1 if rc < 0 else 0)

    if gmp.is_infinite(x):
        return digital.Digital(
            negative=negative,
            isinf=True,
            inexact=rounded,
            rc=rc,
        )

    m, exp = x.as_mantissa_exp()
    c = int(abs(m))
    exp = int(exp)

    if c == 0:
        if rc == -1:
            raise ValueError('unreachable: MPFR rounded the wrong way toward zero? got {}, rc={}'
                             .format(repr(x), repr(x.rc)))
        # zeros don't have a meaningful exponent
        exp = 0

    elif rounded:
        # The rounding engine needs every bit that MPFR computed, including
        # trailing zeros, to find the half bit of an inexact result.
        shift = x.precision - c.bit_length()
        if shift > 0:
            c <<= shift
            exp -= shift

    return digital.Digital(
        negative=negative,
        c=c,
        exp=exp,
        inexact=rounded,
        rc=rc,
    )


gmp_ops = {
    OP.add: gmp.add,
    OP.sub: gmp.sub,
    OP.mul: gmp.mul,
    OP.div: gmp.div,
    OP.neg: lambda x: -x,
    OP.sqrt: gmp.sqrt,
    OP.fma: gmp.fma,
    OP.fabs: lambda x: abs(x),
    OP.fmod: gmp.fmod,
    OP.acos: gmp.acos,
    OP.acosh: gmp.acosh,
    OP.asin: gmp.asin,
    OP.asinh: gmp.asinh,
    OP.atan: gmp.atan,
    OP.atan2: gmp.atan2,
    OP.atanh: gmp.atanh,
    OP.cos: gmp.cos,
    OP.cosh: gmp.cosh,
    OP.sin: gmp.sin,
    OP.sinh: gmp.sinh,
    OP.tan: gmp.tan,
    OP.tanh: gmp.tanh,
    OP.exp: gmp.exp,
    OP.exp2: gmp.exp2,
    OP.expm1: gmp.expm1,
    OP.log: gmp.log,
    OP.log10: gmp.log10,
    OP.log1p: gmp.log1p,
    OP.log2: gmp.log2,
    OP.cbrt: gmp.cbrt,
    OP.hypot: gmp.hypot,
    OP.pow: lambda x1, x2: x1 ** x2,
    OP.sec: gmp.sec,
    OP.csc: gmp.csc,
    OP.cot: gmp.cot,
    OP.sech: gmp.sech,
    OP.csch: gmp.csch,
    OP.coth: gmp.coth,
}


def _working_context(prec, rnd=gmp.RoundToZero):
    return gmp.context(
        precision=prec,
        emin=EMIN,
        emax=EMAX,
        subnormalize=False,
        # overflow and underflow are checked after the fact by _checked_result
        trap_underflow=False,
        trap_overflow=False,
        # inexact and invalid operations should not be a problem
        trap_inexact=False,
        trap_invalid=False,
        trap_erange=False,
        trap_divzero=False,
        round=rnd,
    )


def compute(opcode, *args, prec=53):
    """Compute op(*args), with up to prec bits of precision.
    op is specified via opcode, and arguments are universal digital numbers.
    Arguments are treated as exact: the inexactness and result code of the result
    only reflect what happened during this single operation.
    Result is truncated towards 0, but will have inexactness and result code set
    for further rounding, and it is computed with one extra bit of precision.
    NOTE: this function does not trap on invalid operations, so it will give the gmp/mpfr answer
    for special cases like sqrt(-1), arcsin(3), and so on.
    """
    op = gmp_ops[opcode]
    inputs = [digital_to_mpfr(arg) for arg in args]
    # gmpy2 really doesn't like it when you pass nan as an argument
    for f in inputs:
        if gmp.is_nan(f):
            return mpfr_to_digital(f)
    # use RTZ for easy multiple rounding later
    with _working_context(prec + 1):
        result = op(*inputs)
        return _checked_result(result)


def _checked_result(result):
    """mpfr_to_digital for a result computed in the active working context.
    Under RoundToZero, MPFR saturates an overflow to its largest finite value
    and flushes an underflow to zero; the first becomes an inexact infinity,
    which rounds like any other overflow, and the second a sticky zero.
    """
    flags = gmp.get_context()
    if flags.overflow and not gmp.is_nan(result):
        logger.debug('result overflowed the MPFR exponent range: %s', repr(result))
        return digital.Digital(negative=gmp.is_signed(result), isinf=True, inexact=True, rc=1)
    elif flags.underflow and gmp.is_zero(result):
        logger.debug('result underflowed the MPFR exponent range: %s', repr(result))
        # the exact value is strictly between this zero and the smallest mpfr
        return mpfr_to_digital(result, rc=(1 if gmp.is_signed(result) else -1))
    else:
        return mpfr_to_digital(result)


def compute_root(x, n, prec=53):
    """Compute the real n-th root of x, for a nonzero integer n, with up to
    prec bits of precision, truncated toward zero as for compute().

    MPFR only knows positive integer roots; a negative n is the reciprocal
    of the positive root, which cannot be rounded correctly in one step.
    For that case both bounds of the reciprocal are refined until they
    truncate to the same value at prec + 1 bits.
    """
    if n == 0:
        raise ValueError('root: n must be nonzero')

    mx = digital_to_mpfr(x)
    k = abs(n)

    if n > 0 or gmp.is_nan(mx):
        with _working_context(prec + 1):
            result = gmp.root(mx, k)
            return _checked_result(result)

    # special values: zeros and infinities are exact in both steps
    if x.is_zero() or x.isinf:
        with _working_context(prec + 1):
            result = gmp.div(1, gmp.root(mx, k))
            return _checked_result(result)

    if x.negative and k % 2 == 0:
        return digital.Digital(isnan=True)

    ax = digital_to_mpfr(digital.Digital(x, negative=False))
    wp = prec + 16
    while True:
        with _working_context(wp, rnd=gmp.RoundDown):
            r_lo = gmp.root(ax, k)
        with _working_context(wp, rnd=gmp.RoundUp):
            r_hi = gmp.root(ax, k)
        with _working_context(wp, rnd=gmp.RoundDown):
            lo = gmp.div(1, r_hi)
        with _working_context(wp, rnd=gmp.RoundUp):
            hi = gmp.div(1, r_lo)

        with _working_context(prec + 1):
            t_lo = gmp.mpfr(lo)
            t_hi = gmp.mpfr(hi)

        if lo == hi:
            # the reciprocal root is exact at this precision
            if t_lo == lo:
                result, rc = t_lo, 0
            else:
                result, rc = t_lo, -1
            break
        elif t_lo == t_hi and t_lo < lo:
            # the exact value is strictly above the truncation
            result, rc = t_lo, -1
            break

        wp *= 2
        logger.debug('reciprocal root of %s (n=%d): raising working precision to %d bits',
                     str(x), n, wp)

    # the result code describes the magnitude, so it survives the sign flip
    return digital.Digital(mpfr_to_digital(result, rc=rc), negative=x.negative)


constant_exprs = {
    'E' : lambda : gmp.exp(1),
    'PI' : gmp.const_pi,
}

def compute_constant(name, prec=53):
    # use RTZ for easy multiple rounding later
    with _working_context(prec + 1):
        try:
            result = constant_exprs[name]()
        except KeyError as e:
            raise ValueError('unknown constant {}'.format(repr(e.args[0])))

    return mpfr_to_digital(result)


def compute_digits(m, e, b, prec=53):
    """Compute m * b**e, with precision equal to prec. e and b must be integers, and
    b must be at least 2.
    The result is exact if m * b**e is an integer, and otherwise comes from a
    single correctly truncated division.
    """
    if (not isinstance(e, int)) or (not isinstance(b, int)) or (b < 2):
        raise ValueError('compute_digits: must have integer e, b, and b >= 2, got e={}, b={}'
                         .format(repr(e), repr(b)))

    negative = m < 0
    c = abs(m)

    if c == 0 or e >= 0:
        return digital.Digital(negative=negative, c=c * (b ** max(e, 0)), exp=0)
    else:
        num = digital.Digital(negative=negative, c=c, exp=0)
        den = digital.Digital(c=b ** -e, exp=0)
        return compute(OP.div, num, den, prec=prec)


def digital_to_string(x, prec):
    """Render a finite digital number in exponential notation, with enough
    decimal digits (rounded to nearest) to recover the value at prec bits.
    """
    with gmp.context(
            precision=max(2, prec),
            emin=gmp.get_emin_min(),
            emax=gmp.get_emax_max(),
            trap_inexact=False,
            round=gmp.RoundToNearest,
    ):
        f = gmp.mpfr(digital_to_mpfr(x), max(2, prec))
        digits, e10, _ = abs(f).digits(10, 0)

    digits = digits.rstrip('0')
    e10 = e10 - 1

    if e10 < 0:
        estr = 'e-{:02d}'.format(-e10)
    else:
        estr = 'e+{:02d}'.format(e10)

    if len(digits) > 1:
        body = digits[:1] + '.' + digits[1:]
    else:
        body = digits

    if x.negative:
        return '-' + body + estr
    else:
        return body + estr
