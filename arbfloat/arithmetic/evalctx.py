"""Evaluation contexts: precision, exponent range and rounding policy,
shared by every arbitrary-precision operation, plus the process defaults
used when a caller does not supply one.
"""

import logging

from ..core import utils, gmpmath
from ..core.ops import RM


logger = logging.getLogger(__name__)


binary16_synonyms = {'binary16', 'float16', 'float16_t', 'half'}
binary32_synonyms = {'binary32', 'float32', 'float32_t', 'single', 'float'}
binary64_synonyms = {'binary64', 'float64', 'float64_t', 'double'}
binary128_synonyms = {'binary128', 'float128', 'float128_t', 'quadruple', 'quad'}

RNE_synonyms = {'rne', 'nearesteven', 'roundnearesteven', 'nearesttiestoeven', 'roundnearesttiestoeven', 'halfeven'}
RNA_synonyms = {'rna', 'nearestaway', 'roundnearestaway', 'nearesttiestoaway', 'roundnearesttiestoaway',
                'nearesttiesawayfromzero', 'halfup'}
RNZ_synonyms = {'rnz', 'nearestzero', 'roundnearestzero', 'nearesttiestozero', 'roundnearesttiestozero',
                'nearesttiestowardzero', 'halfdown'}
RTP_synonyms = {'rtp', 'topositive', 'roundtopositive', 'towardpositive', 'roundtowardpositive',
                'towardpositiveinfinity', 'ceiling'}
RTN_synonyms = {'rtn', 'tonegative', 'roundtonegative', 'towardnegative', 'roundtowardnegative',
                'towardnegativeinfinity', 'floor'}
RTZ_synonyms = {'rtz', 'tozero', 'roundtozero', 'towardzero', 'roundtowardzero', 'down'}
RAZ_synonyms = {'raz', 'awayzero', 'roundawayzero', 'awayfromzero', 'roundawayfromzero', 'up'}
EXACT_synonyms = {'exact', 'exactrequired', 'unnecessary'}

IEEE_rm = {}
IEEE_rm.update((k, RM.RNE) for k in RNE_synonyms)
IEEE_rm.update((k, RM.RNA) for k in RNA_synonyms)
IEEE_rm.update((k, RM.RNZ) for k in RNZ_synonyms)
IEEE_rm.update((k, RM.RTP) for k in RTP_synonyms)
IEEE_rm.update((k, RM.RTN) for k in RTN_synonyms)
IEEE_rm.update((k, RM.RTZ) for k in RTZ_synonyms)
IEEE_rm.update((k, RM.RAZ) for k in RAZ_synonyms)
IEEE_rm.update((k, RM.EXACT) for k in EXACT_synonyms)

# precision, emin, emax
IEEE_formats = {}
IEEE_formats.update((k, (11, -14, 15)) for k in binary16_synonyms)
IEEE_formats.update((k, (24, -126, 127)) for k in binary32_synonyms)
IEEE_formats.update((k, (53, -1022, 1023)) for k in binary64_synonyms)
IEEE_formats.update((k, (113, -16382, 16383)) for k in binary128_synonyms)

# Widest biased exponent field: every Context must also keep emin - p - 2 and
# emax + p + 2 inside the backend's own exponent range.
MAX_EXPONENT_BITS = min(gmpmath.EMAX, -gmpmath.EMIN).bit_length()
# Any precision may use a field as wide as binary16's; beyond that the field
# can be at most one bit wider than the significand.
MIN_EXPONENT_BITS = 5

DEFAULT_PRECISION = 53


def exponent_bits(emin, emax):
    """Width of a biased exponent field that holds every code from emin - 1
    (zeros and subnormals) through emax + 1 (infinity and NaN).
    """
    return (emax - emin + 2).bit_length()


def lookup_rm(rm):
    """Decode a rounding policy given as an RM or as a (case-insensitive) name."""
    if isinstance(rm, RM):
        return rm
    elif isinstance(rm, str):
        key = rm.lower().replace('_', '').replace('-', '').replace(' ', '')
        try:
            return IEEE_rm[key]
        except KeyError:
            raise utils.ConfigurationError('unsupported rounding policy {}'.format(repr(rm)))
    else:
        try:
            return RM(rm)
        except ValueError:
            raise utils.ConfigurationError('unsupported rounding policy {}'.format(repr(rm)))


class Context(object):
    """Precision, exponent range, and rounding policy for arbitrary-precision
    binary floating-point. Contexts are immutable and validated on construction.

    Context(p) derives a symmetric exponent range from the precision.
    Context(p, emax) uses the IEEE convention emin = 1 - emax.
    Context(p, emin, emax) gives both bounds.
    Any of these can be followed by a rounding policy, or given as keywords.
    """

    __slots__ = ('p', 'emin', 'emax', 'rm', 'n', 'w')

    def __init__(self, precision, *args, emin=None, emax=None, rm=None):
        args = list(args)
        if args and isinstance(args[-1], (RM, str)):
            if rm is not None:
                raise TypeError('rounding policy given twice')
            rm = args.pop()

        if len(args) == 1:
            if emax is not None:
                raise TypeError('emax given twice')
            emax = args[0]
        elif len(args) == 2:
            if emin is not None or emax is not None:
                raise TypeError('exponent range given twice')
            emin, emax = args
        elif len(args) > 2:
            raise TypeError('too many arguments for {}: {}'.format(type(self).__name__, repr(args)))

        if rm is None:
            rm = RM.RNE
        rm = lookup_rm(rm)

        if not isinstance(precision, int) or isinstance(precision, bool):
            raise utils.ConfigurationError('precision must be an integer, got {}'.format(repr(precision)))
        if precision < 2:
            raise utils.ConfigurationError('precision must be at least 2, got {}'.format(repr(precision)))

        if emax is None:
            if emin is not None:
                raise utils.ConfigurationError('cannot give emin={} without emax'.format(repr(emin)))
            w = min(precision + 1, MAX_EXPONENT_BITS)
            emax = (1 << (w - 1)) - 1
            emin = 1 - emax
        elif emin is None:
            emin = 1 - emax

        if emin > emax:
            raise utils.ConfigurationError('exponent range is empty: emin={} > emax={}'
                                           .format(repr(emin), repr(emax)))

        w = exponent_bits(emin, emax)
        if w > max(precision + 1, MIN_EXPONENT_BITS) or w > MAX_EXPONENT_BITS:
            raise utils.ConfigurationError(
                'exponent range [{}, {}] needs a {}-bit exponent field, too wide for precision {}'
                .format(emin, emax, w, precision))
        if emax + precision + 2 > gmpmath.EMAX or emin - precision - 2 < gmpmath.EMIN:
            raise utils.ConfigurationError(
                'exponent range [{}, {}] at precision {} does not fit the backend range [{}, {}]'
                .format(emin, emax, precision, gmpmath.EMIN, gmpmath.EMAX))

        object.__setattr__(self, 'p', precision)
        object.__setattr__(self, 'emin', emin)
        object.__setattr__(self, 'emax', emax)
        object.__setattr__(self, 'rm', rm)
        object.__setattr__(self, 'n', emin - precision)
        object.__setattr__(self, 'w', w)

    def __setattr__(self, name, value):
        raise AttributeError('{} is immutable'.format(type(self).__name__))

    @property
    def precision(self):
        return self.p

    @property
    def min_exponent(self):
        return self.emin

    @property
    def max_exponent(self):
        return self.emax

    @property
    def rounding_policy(self):
        return self.rm

    def with_rounding_policy(self, rm):
        """Copy of this context with a different rounding policy."""
        rm = lookup_rm(rm)
        if rm == self.rm:
            return self
        return Context(self.p, self.emin, self.emax, rm=rm)

    def _key(self):
        return (self.p, self.emin, self.emax, self.rm)

    def __eq__(self, other):
        if not isinstance(other, Context):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __getstate__(self):
        return self._key()

    def __setstate__(self, state):
        p, emin, emax, rm = state
        for name, value in zip(('p', 'emin', 'emax', 'rm', 'n', 'w'),
                               (p, emin, emax, RM(rm), emin - p, exponent_bits(emin, emax))):
            object.__setattr__(self, name, value)

    def __repr__(self):
        return '{}({}, emin={}, emax={}, rm={})'.format(
            type(self).__name__, repr(self.p), repr(self.emin), repr(self.emax), str(self.rm))


BINARY16 = Context(11, -14, 15)
BINARY32 = Context(24, -126, 127)
BINARY64 = Context(53, -1022, 1023)
BINARY128 = Context(113, -16382, 16383)


def context_for(name, rm=RM.RNE):
    """Look up an IEEE 754 interchange format by name, i.e. 'double' or 'binary32'."""
    try:
        p, emin, emax = IEEE_formats[str(name).lower()]
    except KeyError:
        raise utils.ConfigurationError('unsupported IEEE 754 format {}'.format(repr(name)))
    return Context(p, emin, emax, rm=rm)


# process-wide defaults

_defaults = None
_default_ctxs = {}
# distinct (precision, rm) pairs remembered before the cache starts over
MAX_CACHED_CONTEXTS = 256

def set_defaults(min_exponent, max_exponent, precision):
    """Install the exponent range and precision used by operations that are not
    given a context. Not thread safe: call before sharing values across threads.
    """
    global _defaults
    ctx = Context(precision, min_exponent, max_exponent)
    _defaults = ctx
    _default_ctxs.clear()
    logger.info('default context set: p=%d, emin=%d, emax=%d', precision, min_exponent, max_exponent)

def reset_defaults():
    """Forget any installed defaults."""
    global _defaults
    _defaults = None
    _default_ctxs.clear()
    logger.info('default context reset')

def get_defaults():
    """The installed default context, or None."""
    return _defaults

def default_context(precision=None, rm=RM.RNE):
    """Context used when none is given. Without installed defaults, the
    precision falls back to DEFAULT_PRECISION with its derived exponent range.
    """
    rm = lookup_rm(rm)
    key = (precision, rm)
    try:
        return _default_ctxs[key]
    except KeyError:
        pass

    if _defaults is None:
        if precision is None:
            precision = DEFAULT_PRECISION
        ctx = Context(precision, rm=rm)
    else:
        if precision is None:
            precision = _defaults.p
        ctx = Context(precision, _defaults.emin, _defaults.emax, rm=rm)

    if len(_default_ctxs) >= MAX_CACHED_CONTEXTS:
        _default_ctxs.clear()
    _default_ctxs[key] = ctx
    return ctx
