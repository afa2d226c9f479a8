"""Conversions between some common numeric types (float, np.floatXX, str)
and universal digital numbers.
"""


import logging
import re
import sys

import gmpy2 as gmp
import numpy as np

from . import utils
from . import digital
from . import gmpmath


logger = logging.getLogger(__name__)


# Binary conversions are relatively simple for numpy's floating point types.
# float16 : w = 5,  p = 11
# float32 : w = 8,  p = 24
# float64 : w = 11, p = 53
# float128: unsupported, not an IEEE 754 128-bit float, possibly 80bit x87?
#           doc says this uses longdouble on the underlying system

# ftype -> w, pbits, nbytes
float_formats = {
    float: (11, 52, 8),
    np.float16: (5, 10, 2),
    np.float32: (8, 23, 4),
    np.float64: (11, 52, 8),
}


def np_byteorder(ftype):
    """Converts from numpy byteorder conventions for a floating point datatype
    to sys.byteorder 'big' or 'little'.
    """
    bo = np.dtype(ftype).byteorder
    if bo == '=':
        return sys.byteorder
    elif bo == '<':
        return 'little'
    elif bo == '>':
        return 'big'
    else:
        raise ValueError('unknown numpy byteorder {} for dtype {}'.format(repr(bo), repr(ftype)))


def float_to_digital(f):
    """Converts a python or numpy float into an exact digital number,
    including signed zeros, infinities, and NaN.
    """
    if isinstance(f, float):
        f = np.float64(f)
    try:
        w, pbits, nbytes = float_formats[type(f)]
    except KeyError:
        raise TypeError('expected float or np.float{{16,32,64}}, got {}'.format(repr(type(f))))

    emax = (1 << (w - 1)) - 1

    bits = int.from_bytes(f.tobytes(), np_byteorder(type(f)))

    S = bits >> (w + pbits) & utils.bitmask(1)
    E = bits >> (pbits) & utils.bitmask(w)
    C = bits & utils.bitmask(pbits)

    negative = (S == 1)
    e = E - emax

    if E == 0:
        # subnormal
        return digital.Digital(negative=negative, c=C, exp=-emax - pbits + 1)
    elif e <= emax:
        # normal
        return digital.Digital(negative=negative, c=C | (1 << pbits), exp=e - pbits)
    elif C == 0:
        return digital.Digital(negative=negative, isinf=True)
    else:
        return digital.Digital(isnan=True)


def float_from_digital(x, ftype=float):
    """Converts a digital number into a python or numpy float according to ftype.
    The number must already be representable in the target format: this
    function does not round, and raises RangeError if given too much precision
    or too large an exponent.
    """
    try:
        w, pbits, nbytes = float_formats[ftype]
    except KeyError:
        raise TypeError('expected float or np.float{{16,32,64}}, got {}'.format(repr(ftype)))

    p = pbits + 1
    emax = (1 << (w - 1)) - 1
    emin = 1 - emax

    S = 1 if x.negative else 0

    if x.isnan:
        # quiet NaN, no payload
        S = 0
        E = utils.bitmask(w)
        C = 1 << (pbits - 1)
    elif x.isinf:
        E = utils.bitmask(w)
        C = 0
    elif x.is_zero():
        E = 0
        C = 0
    else:
        c = x.c
        cbits = c.bit_length()
        e = x.e

        if e < emin:
            # subnormal
            lz = (emin - 1) - e
            if lz > pbits or (lz == pbits and cbits > 0):
                raise utils.RangeError('exponent out of range: {}'.format(e))
            elif lz + cbits > pbits:
                raise utils.RangeError('too much precision: given {}, can represent {}'
                                       .format(cbits, pbits - lz))
            E = 0
            C = c << (pbits - lz - cbits)
        elif e <= emax:
            # normal
            if cbits > p:
                raise utils.RangeError('too much precision: given {}, can represent {}'
                                       .format(cbits, p))
            E = e + emax
            C = (c << (p - cbits)) & utils.bitmask(pbits)
        else:
            # overflow
            raise utils.RangeError('exponent out of range: {}'.format(e))

    f = np.frombuffer(
        ((S << (w + pbits)) | (E << pbits) | C).to_bytes(nbytes, np_byteorder(ftype)),
        dtype=ftype, count=1, offset=0,
    )[0]

    if ftype == float:
        return float(f)
    else:
        return f


# literals

#                            1         2          3                  4
_dec_re = re.compile(r'([-+]?)([0-9]+)(?:\.([0-9]+))?(?:[eE]([-+]?[0-9]+))?')
#                            1                2                       3                     4
_hex_re = re.compile(r'([-+]?)0[xX]([0-9a-fA-F]+)(?:\.([0-9a-fA-F]+))?[pP]([-+]?[0-9]+)')
_inf_re = re.compile(r'([-+]?)(?:Infinity|inf)')
_nan_re = re.compile(r'NaN|nan')


def parse_literal(s, prec, emin, emax):
    """Parse a decimal or hexadecimal literal into a digital number.
    The result is exact when the literal denotes a dyadic rational, and
    otherwise is truncated at prec + 1 bits with the result code set, so it
    can be rounded once more to any format with at most prec bits and
    exponents in [emin, emax].
    """
    m = _dec_re.fullmatch(s)
    if m is not None:
        negative = m.group(1) == '-'
        frac = m.group(3) or ''
        digits = (m.group(2) + frac).lstrip('0')
        e10 = _decimal_int(m.group(4) or '0') - len(frac)
        return _decimal_to_digital(negative, digits, e10, prec, emin, emax, s)

    m = _hex_re.fullmatch(s)
    if m is not None:
        negative = m.group(1) == '-'
        frac = m.group(3) or ''
        c = int(m.group(2) + frac, 16)
        exp = _decimal_int(m.group(4)) - 4 * len(frac)
        return digital.Digital(negative=negative, c=c, exp=exp)

    m = _inf_re.fullmatch(s)
    if m is not None:
        return digital.Digital(negative=(m.group(1) == '-'), isinf=True)

    if _nan_re.fullmatch(s):
        return digital.Digital(isnan=True)

    raise utils.FloatSyntaxError('invalid literal for float: {}'.format(repr(s)))


def _decimal_int(s):
    """int(s) for a signed decimal string of any length.
    Python refuses to convert very long digit strings itself.
    """
    i = int(gmp.mpz(s.lstrip('+-'), 10))
    return -i if s.startswith('-') else i


def _decimal_to_digital(negative, digits, e10, prec, emin, emax, s):
    if not digits:
        return digital.Digital(negative=negative, c=0, exp=0)

    # c10 * 10**e10 lies in [10**(d-1), 10**d), and 2**(3k) <= 10**k for k >= 0,
    # 10**k <= 2**(3k) for k <= 0.
    d = e10 + len(digits)
    if 3 * (d - 1) > emax + 1:
        logger.debug('literal %s overflows any format with emax=%d', s, emax)
        # e = emax + 2, with prec + 2 bits so it can still be rounded
        return digital.Digital(negative=negative, c=1 << (prec + 1), exp=emax + 1 - prec,
                               inexact=True, rc=1)
    elif d <= 0 and 3 * d <= emin - prec:
        logger.debug('literal %s underflows any format with emin=%d, p=%d', s, emin, prec)
        return digital.Digital(negative=negative, c=0, exp=0, inexact=True, rc=1)

    c10 = _decimal_int(digits)
    m = -c10 if negative else c10
    return gmpmath.compute_digits(m, e10, 10, prec=prec)
