"""Universal representation for digital numbers (in base 2),
and the rounding engine that every operation funnels through.
"""

from enum import IntEnum, unique

from . import utils
from .ops import RM


@unique
class RoundingMode(IntEnum):
    TOWARD_ZERO = 0
    AWAY_ZERO = 1
    TO_EVEN = 2

@unique
class RoundingDirection(IntEnum):
    TRUNCATE = 0
    ROUND_AWAY = 1


class Digital(object):

    # for numbers with a real value, the magnitude is exactly _c * (2 ** _exp)
    _c : int = 0
    _exp : int = 0

    # the sign is stored separately
    _negative : bool = False

    # as is information about infiniteness or NaN
    _isinf : bool = False
    _isnan : bool = False

    # the internal state is not directly visible: expose it with properties

    @property
    def c(self):
        """Unsigned integer significand.
        The magnitude of the real value is exactly (c * 2**exp).
        """
        return self._c

    @property
    def exp(self):
        """Signed integer exponent.
        The magnitude of the real value is exactly (c * 2**exp).
        """
        return self._exp

    @property
    def m(self):
        """Signed integer significand.
        The real value is exactly (m * 2**exp).
        """
        if self._negative:
            return -self._c
        else:
            return self._c

    @property
    def e(self):
        """IEEE 754 style exponent.
        If the significand is interpreted as a binary fraction between 1 and 2,
        i.e. x = 0b1.100101001110... etc. then the real value is (x * 2**e).
        """
        return (self._exp - 1) + self._c.bit_length()

    @property
    def n(self):
        """The "sticky bit" or the binary place where digits are no longer significant.
        I.e. -1 for an integer inexact beyond the binary point. Always equal to exp - 1.
        """
        return self._exp - 1

    @property
    def p(self):
        """The precision of the significand.
        Always equal to the number of bits in c; 0 for any zero.
        """
        return self._c.bit_length()

    @property
    def negative(self):
        """The sign bit - is this value negative?"""
        return self._negative

    @property
    def isinf(self):
        """Is this value infinite?"""
        return self._isinf

    @property
    def isnan(self):
        """Is this value NaN?"""
        return self._isnan

    # exactness
    _inexact : bool = False

    # MPFR-like result code, but from the point of view of the magnitude.
    # 0 if the value is exact, 1 if the exact magnitude is larger
    # (i.e. we rounded toward zero), -1 if it is smaller (we rounded away).
    _rc : int = 0

    @property
    def inexact(self):
        """Is this value inexact?"""
        return self._inexact

    @property
    def rc(self):
        """Result code.
        If the rc is 0, this value was computed exactly.
        If the rc is 1, the exact magnitude is (c * 2**exp) + (0 < epsilon < 2**exp),
        so this value was rounded toward zero.
        If the rc is -1, this value was rounded away from zero.
        """
        return self._rc

    def is_zero(self):
        """Is this value a "classic" floating-point zero, with a zero significand?"""
        return self._c == 0 and not (self._isinf or self._isnan)

    def is_exactly_zero(self):
        """Is this value exactly zero, with a zero significand and the inexact flag unset?"""
        return self.is_zero() and (not self._inexact)

    def is_integer(self):
        """Is this value an integer (though not necessarily an exact one)?"""
        return (self._exp >= 0) or (utils.maskbits(self._c, -self._exp) == 0)

    def is_exact_integer(self):
        """Is this value an exact integer?"""
        return (not self._inexact) and self.is_finite_real() and self.is_integer()

    def is_finite_real(self):
        """Is this value a finite real number, i.e. not an infinity or NaN?"""
        return not (self._isinf or self._isnan)

    def is_nar(self):
        """Is this value "not a real" number, i.e. an infinity or NaN?"""
        return self._isinf or self._isnan

    def is_identical_to(self, other):
        """Is this value encoded identically to some other value?
        This is a structural property, and may be stricter than real valued equality.
        """
        return (
            self._c == other._c
            and self._exp == other._exp
            and self._negative == other._negative
            and self._isinf == other._isinf
            and self._isnan == other._isnan
            and self._inexact == other._inexact
            and self._rc == other._rc
        )

    def __init__(self,
                 x=None,
                 c=None,
                 negative=None,
                 m=None,
                 exp=None,
                 e=None,
                 isinf=None,
                 isnan=None,
                 inexact=None,
                 rc=None,
    ):
        """Create a new digital number. The first argument, "x", is a base number
        to clone and update, otherwise the default values will be used.
        The significand can be specified as either c or m (if m is specified, then
        negative cannot be provided as an argument).
        The exponent can be specified as either exp or e. If it is specified as e,
        then the significand will first be set based on other arguments, then exp
        will be computed accordingly.
        """
        # _c and _negative
        if c is not None:
            if m is not None:
                raise ValueError('cannot specify both c={} and m={}'.format(repr(c), repr(m)))
            if c < 0:
                raise ValueError('unsigned significand c={} must not be negative'.format(repr(c)))
            self._c = c
            if negative is not None:
                self._negative = negative
            elif x is not None:
                self._negative = x._negative
            else:
                self._negative = type(self)._negative
        elif m is not None:
            if negative is not None:
                raise ValueError('cannot specify both m={} and negative={}'.format(repr(m), repr(negative)))
            self._c = abs(m)
            self._negative = m < 0
        elif x is not None:
            self._c = x._c
            if negative is not None:
                self._negative = negative
            else:
                self._negative = x._negative
        else:
            self._c = type(self)._c
            if negative is not None:
                self._negative = negative
            else:
                self._negative = type(self)._negative

        # _exp
        if exp is not None:
            if e is not None:
                raise ValueError('cannot specify both exp={} and e={}'.format(repr(exp), repr(e)))
            self._exp = exp
        elif e is not None:
            self._exp = e - self._c.bit_length() + 1
        elif x is not None:
            self._exp = x._exp
        else:
            self._exp = type(self)._exp

        # _isinf
        if isinf is not None:
            self._isinf = isinf
        elif x is not None:
            self._isinf = x._isinf
        else:
            self._isinf = type(self)._isinf

        # _isnan
        if isnan is not None:
            self._isnan = isnan
        elif x is not None:
            self._isnan = x._isnan
        else:
            self._isnan = type(self)._isnan

        # _inexact
        if inexact is not None:
            self._inexact = inexact
        elif x is not None:
            self._inexact = x._inexact
        else:
            self._inexact = type(self)._inexact

        # _rc
        if rc is not None:
            self._rc = rc
        elif x is not None:
            self._rc = x._rc
        else:
            self._rc = type(self)._rc

    def __repr__(self):
        return '{}(negative={}, c={}, exp={}, inexact={}, rc={}, isinf={}, isnan={})'.format(
            type(self).__name__, repr(self._negative), repr(self._c), repr(self._exp),
            repr(self._inexact), repr(self._rc), repr(self._isinf), repr(self._isnan),
        )

    def __str__(self):
        return '{:s} {:d} * 2**{:d}{:s}{:s}'.format(
            '-' if self.negative else '+',
            self.c,
            self.exp,
            ' inf' if self.isinf else '',
            ' nan' if self.isnan else '',
        )

    def compareto(self, other):
        """Compare to another digital number, by real value. The ordering returned is:
            -1 iff self < other
             0 iff self = other
             1 iff self > other
          None iff self and other are unordered
        Zeros compare equal regardless of sign, and NaN is unordered with everything.
        """
        # deal with special cases
        if self.isnan or other.isnan:
            return None

        if self.isinf:
            if other.isinf and self.negative == other.negative:
                return 0
            elif self.negative:
                return -1
            else:
                return 1
        elif other.isinf:
            if other.negative:
                return 1
            else:
                return -1

        # normalize to smallest n - safe, but potentially inefficient
        n = min(self.n, other.n)

        # compare using ordinals
        self_ord = self.c << (self.n - n)
        other_ord = other.c << (other.n - n)

        if self.negative:
            self_ord = -self_ord
        if other.negative:
            other_ord = -other_ord

        if self_ord < other_ord:
            return -1
        elif self_ord == other_ord:
            return 0
        else:
            return 1

    def __lt__(self, other):
        order = self.compareto(other)
        return order is not None and order < 0

    def __le__(self, other):
        order = self.compareto(other)
        return order is not None and order <= 0

    def __eq__(self, other):
        order = self.compareto(other)
        return order is not None and order == 0

    def __ne__(self, other):
        order = self.compareto(other)
        return order is None or order != 0

    def __ge__(self, other):
        order = self.compareto(other)
        return order is not None and order >= 0

    def __gt__(self, other):
        order = self.compareto(other)
        return order is not None and order > 0

    # Rounding is hard. We can break it up into 3 phases:
    #  - determine the target p and n, and split up the input
    #  - determine which direction to round
    #  - actually apply the rounding

    # The first and last phases are independent of the rounding mode.

    def round_recover(self):
        """Recover the information that was used to round to this number.
        The result is provided as a significand and exponent c, exp
        such that the exact number is exactly c * 2**exp if low_bit is 0,
        or somewhere strictly between c * 2**exp and (c + 1) * 2**exp
        if low_bit is 1; i.e. low_bit is the "sticky bit".
        """
        if self.is_nar():
            raise ValueError('cannot recover rounding information from infinite or non-real values')

        if self._rc > 0:
            return self.c, self.exp, 1
        elif self._rc < 0:
            # We only know that the exact value lies somewhere in the last ulp
            # below this one; that is not enough to round to the same precision.
            raise utils.PrecisionError('cannot recover {} after rounding away from zero'
                                       .format(repr(self)))
        else:
            return self.c, self.exp, 0

    def round_setup(self, max_p=None, min_n=None):
        """Split the significand in preparation for rounding.
        Will fail for any value that cannot round_recover(),
        specifically infinities and NaN.

        The result is the precision p (or None, if using fixed-point style rounding),
        as well as the exponent, and the split significand: c, the half bit, and the low bit.
        """
        c, exp, low_bit = self.round_recover()

        # compute n

        if max_p is None:
            if min_n is None:
                # How are we supposed to round???
                raise ValueError('must specify max_p or min_n')
            else: # min_n is not None
                # Fixed-point rounding: limited by n, precision can change.
                n = min_n
        else: # max_p is not None
            if c == 0:
                # A zero, or a tiny value that underflowed before it got here;
                # there are no significant bits, so any position will do.
                if min_n is None:
                    n = exp - 1 - max_p
                else:
                    n = min_n
            else:
                e = (exp - 1) + c.bit_length()
                if min_n is None:
                    # Floating-point rounding: limited by some fixed precision.
                    n = e - max_p
                else:
                    # Floating-point rounding, with subnormals:
                    # limited by some fixed precision, or a smallest representable bit.
                    n = max(min_n, e - max_p)

        if c == 0:
            return max_p, n + 1, 0, 0, low_bit

        offset = n - (exp - 1)

        # Round off offset bits.
        if offset > 0:
            half_bit = (c >> (offset - 1)) & 1
            lost_bits = utils.maskbits(c, offset - 1)

            c >>= offset
            exp += offset

            if lost_bits != 0:
                low_bit = 1

        # Keep all of the bits; only exact values know their half bit.
        elif offset == 0:
            if low_bit != 0:
                raise utils.PrecisionError('insufficient precision to round {} with p={}, n={}'
                                           .format(repr(self), repr(max_p), repr(min_n)))
            half_bit = 0

        # Add on -offset bits to the right;
        # we're trying to make the number more precise.
        else: # offset < 0
            if low_bit != 0:
                raise utils.PrecisionError('cannot precisely split {} for rounding with p={}, n={}'
                                           .format(repr(self), repr(max_p), repr(min_n)))
            # extend with zeros, which is entirely fine for exact values
            c <<= -offset
            exp += offset
            half_bit = 0

        return max_p, exp, c, half_bit, low_bit

    def round_direction(self, p, exp, c, half_bit, low_bit,
                        nearest=True, mode=RoundingMode.TO_EVEN):
        """Determine which direction to round, based on two criteria:
            - nearest, which determines if we should round to nearest when possible.
            - mode, which determines which way to break ties if rounding to nearest,
              or which direction to round in general otherwise.
        """
        if nearest:
            # below half: truncate
            if half_bit == 0:
                direction = RoundingDirection.TRUNCATE
            else: # half_bit == 1
                # above half: round away
                if low_bit != 0:
                    direction = RoundingDirection.ROUND_AWAY
                # exactly halfway
                else: # low_bit == 0 and half_bit == 1
                    if mode is RoundingMode.TOWARD_ZERO:
                        direction = RoundingDirection.TRUNCATE
                    elif mode is RoundingMode.AWAY_ZERO:
                        direction = RoundingDirection.ROUND_AWAY
                    elif mode is RoundingMode.TO_EVEN:
                        if c & 1 == 0:
                            direction = RoundingDirection.TRUNCATE
                        else:
                            direction = RoundingDirection.ROUND_AWAY
                    else:
                        raise ValueError('unknown rounding mode: {}'.format(repr(mode)))

        else: # not nearest
            if mode is RoundingMode.TOWARD_ZERO:
                direction = RoundingDirection.TRUNCATE
            elif mode is RoundingMode.AWAY_ZERO:
                if (low_bit != 0) or (half_bit != 0):
                    direction = RoundingDirection.ROUND_AWAY
                else: # don't round away if we already have the value represented exactly!
                    direction = RoundingDirection.TRUNCATE
            else:
                raise ValueError('unknown rounding mode: {}'.format(repr(mode)))

        return direction

    def round_apply(self, p, exp, c, half_bit, low_bit, direction):
        """Apply a rounding direction, to produce a rounded result."""
        lost = (half_bit != 0) or (low_bit != 0)

        if direction is RoundingDirection.ROUND_AWAY:
            # If c is zero, we will round away to one, which is the smallest
            # value at this position (for floating-point, the smallest subnormal).
            c += 1
            if p is not None and c.bit_length() > p:
                # we carried: shift over to preserve the right amount of precision
                c >>= 1
                exp += 1
            rc = -1 if lost else 0

        elif direction is RoundingDirection.TRUNCATE:
            rc = 1 if lost else 0

        else:
            raise ValueError('unknown rounding direction: {}'.format(repr(direction)))

        return type(self)(self, c=c, exp=exp, inexact=(self.inexact or lost), rc=rc)

    # negative, RM -> nearest, mode
    _rounding_modes = {
        (True, RM.RNE): (True, RoundingMode.TO_EVEN),
        (False, RM.RNE): (True, RoundingMode.TO_EVEN),
        (True, RM.RNA): (True, RoundingMode.AWAY_ZERO),
        (False, RM.RNA): (True, RoundingMode.AWAY_ZERO),
        (True, RM.RNZ): (True, RoundingMode.TOWARD_ZERO),
        (False, RM.RNZ): (True, RoundingMode.TOWARD_ZERO),
        (True, RM.RTP): (False, RoundingMode.TOWARD_ZERO),
        (False, RM.RTP): (False, RoundingMode.AWAY_ZERO),
        (True, RM.RTN): (False, RoundingMode.AWAY_ZERO),
        (False, RM.RTN): (False, RoundingMode.TOWARD_ZERO),
        (True, RM.RTZ): (False, RoundingMode.TOWARD_ZERO),
        (False, RM.RTZ): (False, RoundingMode.TOWARD_ZERO),
        (True, RM.RAZ): (False, RoundingMode.AWAY_ZERO),
        (False, RM.RAZ): (False, RoundingMode.AWAY_ZERO),
    }

    def round_new(self, max_p=None, min_n=None, rm=RM.RNE):
        """Round the mantissa to at most max_p precision, or a least absolute digit
        in position min_n, whichever is less precise. Rounding is implemented generally
        for all real values, but there is no limit on the resulting exponent, and infinite
        and NaN cannot be rounded in this way.

        If only min_n is given, then rounding is performed as for fixed-point,
        and the resulting significand may have more than max_p bits.
        If max_p is given, then rounding is performed as for floating-point,
        and the exponent will be adjusted to ensure the result has at most max_p bits.
        If both max_p and min_n are specified, then min_n takes precedence,
        so the result may have significantly less than max_p precision.
        This behavior is used to produce subnormals.

        With rm=RM.EXACT_REQUIRED, an InexactError is raised instead of
        discarding any nonzero bits.
        """

        # round_setup will raise exceptions for bad max_p/min_n,
        # as well as for unroundable values like NaN.
        p, exp, c, half_bit, low_bit = self.round_setup(max_p=max_p, min_n=min_n)

        if rm == RM.EXACT_REQUIRED:
            if half_bit != 0 or low_bit != 0:
                raise utils.InexactError('{} is not representable with p={}, n={}'
                                         .format(str(self), repr(max_p), repr(min_n)))
            return type(self)(self, c=c, exp=exp, rc=0)

        # convert the rounding mode and sign of this number into the internal rounding mode
        try:
            nearest, mode = Digital._rounding_modes[(self.negative, rm)]
        except KeyError:
            raise ValueError('invalid rounding mode: {} (negative={})'
                             .format(repr(rm), repr(self.negative)))

        direction = self.round_direction(p, exp, c, half_bit, low_bit,
                                         nearest=nearest, mode=mode)

        return self.round_apply(p, exp, c, half_bit, low_bit, direction)
