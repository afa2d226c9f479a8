"""Standard codes: rounding policies, operations, and value classes."""

from enum import IntEnum, unique

class RM(IntEnum):
    NEAREST_TIES_TO_EVEN = 0
    RNE = 0
    NEAREST_TIES_AWAY_FROM_ZERO = 1
    RNA = 1
    TOWARD_POSITIVE_INFINITY = 2
    RTP = 2
    TOWARD_NEGATIVE_INFINITY = 3
    RTN = 3
    TOWARD_ZERO = 4
    RTZ = 4
    AWAY_FROM_ZERO = 5
    RAZ = 5
    NEAREST_TIES_TOWARD_ZERO = 6
    RNZ = 6
    EXACT_REQUIRED = 7
    EXACT = 7

RoundingPolicy = RM

@unique
class FloatClass(IntEnum):
    ZERO = 0
    FINITE = 1
    INFINITE = 2
    NAN = 3

@unique
class OP(IntEnum):
    add = 0
    sub = 1
    mul = 2
    div = 3
    neg = 4
    sqrt = 5
    fma = 6
    fabs = 7
    fmod = 8
    acos = 9
    acosh = 10
    asin = 11
    asinh = 12
    atan = 13
    atan2 = 14
    atanh = 15
    cos = 16
    cosh = 17
    sin = 18
    sinh = 19
    tan = 20
    tanh = 21
    exp = 22
    exp2 = 23
    expm1 = 24
    log = 25
    log10 = 26
    log1p = 27
    log2 = 28
    cbrt = 29
    hypot = 30
    pow = 31
    sec = 32
    csc = 33
    cot = 34
    sech = 35
    csch = 36
    coth = 37
