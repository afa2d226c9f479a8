"""General utilities, such as exception classes."""

# arbfloat-specific exceptions

class BigFloatError(Exception):
    """Base arbfloat error."""

class ConfigurationError(BigFloatError, ValueError):
    """Invalid context: bad precision, inverted exponent range,
    or an exponent range too wide for the exponent field.
    """

class FloatSyntaxError(BigFloatError, ValueError, SyntaxError):
    """Malformed numeric literal."""

class InexactError(BigFloatError, ArithmeticError):
    """Exact rounding was required, but the true result is not representable."""

class RangeError(BigFloatError, ValueError):
    """A value does not fit the exponent window or encoding it was given."""

class PrecisionError(BigFloatError):
    """Insufficient precision to perform rounding."""


# Useful things

def bitmask(n: int) -> int:
    """Produces a bitmask of n 1s if n is positive, or n 0s if n is negative."""
    if n >= 0:
        return (1 << n) - 1
    else:
        return -1 << -n

def maskbits(x: int, n:int) -> int:
    """Mask x & bitmask(n)"""
    if n >= 0:
        return x & ((1 << n) - 1)
    else:
        return x & (-1 << -n)

def trailing_zeros(x: int) -> int:
    """Number of trailing zero bits in x; 0 for x == 0."""
    if x == 0:
        return 0
    return (x & -x).bit_length() - 1

