import math

import gmpy2
import pytest

from arbfloat import (
    BigFloat, Context, RM, InexactError,
    BINARY32, BINARY64,
    zero, negative_zero, positive_infinity, negative_infinity, nan,
    max_value, min_value, default_context,
)
from arbfloat.core import digital, gmpmath
from arbfloat.core.ops import OP

from conftest import with_rm


def bf32(x):
    return BigFloat(x, BINARY32)


def bf64(x):
    return BigFloat(x, BINARY64)


# special values

def test_special_value_regressions(specials):
    inf, neginf = specials['inf'], specials['neginf']
    one, z, nz = specials['one'], specials['zero'], specials['negzero']

    assert inf.add(neginf, BINARY32).is_nan()
    assert z.mul(inf, BINARY32).is_nan()
    assert one.div(z, BINARY32) == inf
    assert one.div(nz, BINARY32) == neginf
    assert inf.div(inf, BINARY32).is_nan()
    assert z.div(z, BINARY32).is_nan()
    assert one.div(inf, BINARY32).is_positive_zero()
    assert one.negate().div(inf, BINARY32).is_negative_zero()
    assert inf.sub(inf, BINARY32).is_nan()
    assert specials['nan'].add(one, BINARY32).is_nan()


def test_cancellation_sign():
    x = bf32('0.1')
    assert x.add(x.negate(), BINARY32).is_positive_zero()
    assert x.add(x.negate(), with_rm(BINARY32, RM.RTN)).is_negative_zero()
    assert x.sub(x, BINARY32).is_positive_zero()
    assert x.sub(x, with_rm(BINARY32, RM.RTN)).is_negative_zero()
    assert x.sub(x, with_rm(BINARY32, RM.RTP)).is_positive_zero()


def test_zero_sums():
    z, nz = zero(24), negative_zero(24)
    assert nz.add(nz, BINARY32).is_negative_zero()
    assert z.add(nz, BINARY32).is_positive_zero()
    assert z.add(nz, with_rm(BINARY32, RM.RTN)).is_negative_zero()
    assert nz.sub(z, BINARY32).is_negative_zero()
    assert z.sub(z, BINARY32).is_positive_zero()
    assert nz.add(bf32(1), BINARY32) == bf32(1)


def test_fma_zero_sign():
    z, nz = zero(24), negative_zero(24)
    assert nz.fma(bf32(3), nz, BINARY32).is_negative_zero()
    assert z.fma(bf32(-3), z, BINARY32).is_positive_zero()
    assert bf32(2).fma(bf32(3), bf32(-6), BINARY32).is_positive_zero()
    assert bf32(2).fma(bf32(3), bf32(-6), with_rm(BINARY32, RM.RTN)).is_negative_zero()
    assert bf32(2).fma(bf32(3), bf32(1), BINARY32) == bf32(7)


def test_product_signs():
    assert negative_zero(24).mul(bf32(3), BINARY32).is_negative_zero()
    assert bf32(-2).mul(negative_infinity(24), BINARY32) == positive_infinity(24)
    assert bf32(-2).div(bf32(4), BINARY32) == bf32(-0.5)


def test_fma_single_rounding():
    # (1 + 2**-12)**2 - 1 loses its low term if the product is rounded first
    x = bf32(1 + 2 ** -12)
    fused = x.fma(x, bf32(-1), BINARY32)
    assert fused == bf32(2 ** -11 + 2 ** -24)
    separate = x.mul(x, BINARY32).sub(bf32(1), BINARY32)
    assert separate == bf32(2 ** -11)


# rounding policies

@pytest.mark.parametrize('rm, five, seven', [
    (RM.RNE, 4, 8),
    (RM.RTZ, 4, 6),
    (RM.RTN, 4, 6),
    (RM.RTP, 6, 8),
    (RM.RAZ, 6, 8),
    (RM.RNA, 6, 8),
    (RM.RNZ, 4, 6),
])
def test_rounding_policies(rm, five, seven):
    ctx = Context(2, rm)
    assert BigFloat(5, ctx).to_int64_exact() == five
    assert BigFloat(7, ctx).to_int64_exact() == seven
    mirrored = {RM.RTN: RM.RTP, RM.RTP: RM.RTN}.get(rm, rm)
    assert BigFloat(-5, Context(2, mirrored)).to_int64_exact() == -five
    assert BigFloat(-7, Context(2, mirrored)).to_int64_exact() == -seven


def test_exact_policy():
    exact = Context(2, RM.EXACT)
    with pytest.raises(InexactError):
        BigFloat(5, exact)
    with pytest.raises(ArithmeticError):
        bf32(1).div(bf32(3), with_rm(BINARY32, RM.EXACT))
    assert BigFloat(6, exact).to_int64_exact() == 6
    assert bf32(1).div(bf32(4), with_rm(BINARY32, RM.EXACT)) == bf32(0.25)


def test_results_are_correctly_rounded():
    x, y = bf64(0.1), bf64(0.2)
    assert x.add(y, BINARY64).to_float64() == 0.1 + 0.2
    assert x.mul(y, BINARY64).to_float64() == 0.1 * 0.2
    assert bf64(1).div(bf64(3), BINARY64).to_float64() == 1 / 3
    assert bf64(2).sqrt(BINARY64).to_float64() == math.sqrt(2)
    assert bf64(7.5).sub(bf64(1e-20), BINARY64).to_float64() == 7.5 - 1e-20


def test_directed_rounding_brackets():
    third = [bf32(1).div(bf32(3), with_rm(BINARY32, rm)) for rm in (RM.RTN, RM.RTP)]
    lo, hi = third
    assert lo < hi
    assert lo.next_up(-126, 127) == hi
    assert bf32(1).div(bf32(3), with_rm(BINARY32, RM.RTZ)) == lo
    assert bf32(-1).div(bf32(3), with_rm(BINARY32, RM.RAZ)) == hi.negate()


# overflow and underflow

def test_overflow():
    big = max_value(24, 127)
    assert big.mul(bf32(2), BINARY32) == positive_infinity(24)
    assert big.mul(bf32(2), with_rm(BINARY32, RM.RTZ)) == big
    assert big.mul(bf32(-2), with_rm(BINARY32, RM.RTP)) == big.negate()
    assert big.mul(bf32(-2), with_rm(BINARY32, RM.RTN)) == negative_infinity(24)
    assert big.mul(bf32(2), with_rm(BINARY32, RM.RTN)) == big
    with pytest.raises(InexactError):
        big.mul(bf32(2), with_rm(BINARY32, RM.EXACT))


def test_rounding_up_to_overflow():
    big = max_value(24, 127)
    half_ulp = BigFloat(negative=False, c=1, exp=127 - 24, precision=24)
    assert big.add(half_ulp, BINARY32) == positive_infinity(24)
    assert big.add(half_ulp, with_rm(BINARY32, RM.RTZ)) == big


def test_gradual_underflow():
    tiny = min_value(24, -126)
    assert tiny.div(bf32(2), BINARY32).is_positive_zero()
    assert tiny.div(bf32(2), with_rm(BINARY32, RM.RAZ)) == tiny
    assert tiny.div(bf32(3), with_rm(BINARY32, RM.RTP)) == tiny
    assert tiny.negate().div(bf32(3), with_rm(BINARY32, RM.RTP)).is_negative_zero()
    assert tiny.mul(bf32(3), BINARY32).div(bf32(2), BINARY32) == tiny.mul(bf32(2), BINARY32)


def test_overflow_at_the_default_range():
    ctx = default_context()
    big = BigFloat(negative=False, c=1, exp=ctx.emax, precision=ctx.p)
    assert big.mul(big) == positive_infinity(ctx.p)
    assert big.mul(big, with_rm(ctx, RM.RTZ)) == max_value(ctx.p, ctx.emax)
    assert big.negate().mul(big, with_rm(ctx, RM.RTP)) == max_value(ctx.p, ctx.emax).negate()

    tiny = min_value(ctx.p, ctx.emin)
    assert tiny.mul(tiny).is_positive_zero()
    assert tiny.mul(tiny, with_rm(ctx, RM.RAZ)) == tiny


def test_results_beyond_the_backend_range():
    ctx = default_context()
    two = BigFloat(2, ctx)
    huge = BigFloat(2 ** 70, ctx)
    assert two.pow(huge) == positive_infinity(ctx.p)
    assert two.pow(huge, with_rm(ctx, RM.RTZ)) == max_value(ctx.p, ctx.emax)
    assert two.negate().pow(huge, with_rm(ctx, RM.RTN)) == max_value(ctx.p, ctx.emax)
    assert two.negate().pow(huge, with_rm(ctx, RM.RTP)) == positive_infinity(ctx.p)
    with pytest.raises(InexactError):
        two.pow(huge, with_rm(ctx, RM.EXACT))

    assert two.pow(huge.negate()).is_positive_zero()
    assert two.pow(huge.negate(), with_rm(ctx, RM.RAZ)) == min_value(ctx.p, ctx.emin)
    assert two.pow(huge.negate(), with_rm(ctx, RM.RTZ)).is_positive_zero()


def test_backend_overflow_and_underflow_are_flagged():
    two = digital.Digital(c=1, exp=1)
    huge = digital.Digital(c=1, exp=70)
    over = gmpmath.compute(OP.pow, two, huge, prec=53)
    assert over.isinf and over.inexact
    under = gmpmath.compute(OP.pow, two, digital.Digital(huge, negative=True), prec=53)
    assert under.is_zero() and under.inexact
    assert under.rc == 1


def test_subnormal_quotient():
    x = bf64('0x1.1235P-1021')
    y = bf64('34.3')
    q = x.div(y, BINARY64)
    assert q.is_subnormal(-1022)
    assert q.to_float64() == float.fromhex('0x1.1235p-1021') / 34.3


# other operators

def test_rint():
    half = bf32(0.5)
    assert half.rint(with_rm(BINARY32, RM.RTN)).is_positive_zero()
    assert half.rint(with_rm(BINARY32, RM.RTP)) == bf32(1)
    assert half.rint(BINARY32).is_positive_zero()
    assert bf32(1.5).rint(BINARY32) == bf32(2)
    assert bf32(2.5).rint(BINARY32) == bf32(2)
    assert bf32(2.5).rint(with_rm(BINARY32, RM.RNA)) == bf32(3)
    assert bf32(-0.5).rint(BINARY32).is_negative_zero()
    assert bf32(-2.5).rint(with_rm(BINARY32, RM.RTN)) == bf32(-3)
    assert bf32(1e30).rint(BINARY32) == bf32(1e30)
    assert positive_infinity(24).rint(BINARY32) == positive_infinity(24)


def test_remainder():
    assert bf32(7).remainder(bf32(3), BINARY32) == bf32(1)
    assert bf32(-7).remainder(bf32(3), BINARY32) == bf32(-1)
    assert bf32(7.5).remainder(bf32(-2), BINARY32) == bf32(1.5)
    assert bf32(-3).remainder(bf32(-3), BINARY32).is_negative_zero()
    assert bf32(5).remainder(positive_infinity(24), BINARY32) == bf32(5)
    assert positive_infinity(24).remainder(bf32(1), BINARY32).is_nan()
    assert bf32(1).remainder(zero(24), BINARY32).is_nan()


def test_min_max():
    one = bf32(1)
    assert one.max(nan(24), BINARY32) == one
    assert nan(24).max(one, BINARY32) == one
    assert one.min(nan(24), BINARY32) == one
    assert nan(24).min(nan(24), BINARY32).is_nan()
    assert zero(24).min(negative_zero(24), BINARY32).is_negative_zero()
    assert negative_zero(24).max(zero(24), BINARY32).is_positive_zero()
    assert one.max(bf32(2), BINARY32) == bf32(2)
    assert one.min(negative_infinity(24), BINARY32) == negative_infinity(24)


def test_negate_abs():
    assert zero(24).negate().is_negative_zero()
    assert negative_zero(24).negate().is_positive_zero()
    assert negative_infinity(24).abs() == positive_infinity(24)
    assert nan(24).negate().is_nan()
    assert bf32(-3).abs() == bf32(3)
    assert bf32(5).negate(Context(2)) == BigFloat(-4, Context(2))
    assert (-bf32(3)).sign
    assert abs(bf32(-3)) == bf32(3)


def test_signum():
    assert bf32(-7.25).signum() == bf32(-1)
    assert bf32(1e-30).signum() == bf32(1)
    assert negative_zero(24).signum().is_negative_zero()
    assert nan(24).signum().is_nan()


def test_plus_round():
    x = bf64('0.1')
    assert x.plus(BINARY32) == bf32('0.1')
    assert x.round(BINARY32) == bf32('0.1')
    assert x.round(BINARY32).precision == 24


# pow

@pytest.mark.parametrize('base', [3, float('nan'), 0.0, -0.0, float('inf'), float('-inf')])
def test_pow_zero_exponent(base):
    assert bf32(base).pow(zero(24), BINARY32) == bf32(1)
    assert bf32(base).pow(negative_zero(24), BINARY32) == bf32(1)


def test_pow():
    three = bf32(3)
    assert bf32(-3).pow(bf32(2), BINARY32) == three.pow(bf32(2), BINARY32)
    assert bf32(-3).pow(bf32(3), BINARY32) == three.pow(bf32(3), BINARY32).negate()
    assert three.pow(bf32(3), BINARY32) == bf32(27)
    third = bf32(1).div(three, BINARY32)
    assert bf32(-3).pow(third, BINARY32).is_nan()
    assert bf32(2).pow(bf32(-2), BINARY32) == bf32(0.25)


def test_pow_specials():
    assert bf32(1).pow(nan(24), BINARY32) == bf32(1)
    assert bf32(-1).pow(positive_infinity(24), BINARY32) == bf32(1)
    assert nan(24).pow(bf32(1), BINARY32).is_nan()
    assert zero(24).pow(bf32(2), BINARY32).is_positive_zero()
    assert negative_zero(24).pow(bf32(3), BINARY32).is_negative_zero()
    assert zero(24).pow(bf32(-1), BINARY32) == positive_infinity(24)
    assert negative_zero(24).pow(bf32(-1), BINARY32) == negative_infinity(24)
    assert positive_infinity(24).pow(bf32(2), BINARY32) == positive_infinity(24)
    assert positive_infinity(24).pow(bf32(-2), BINARY32).is_positive_zero()
    assert bf32(0.5).pow(positive_infinity(24), BINARY32).is_positive_zero()


# roots

def test_root():
    assert bf32(4).root(-2, BINARY32) == bf32(0.5)
    assert bf32(8).root(-3, BINARY32) == bf32(0.5)
    assert bf32(27).root(3, BINARY32) == bf32(3)
    assert bf32(-27).root(3, BINARY32) == bf32(-3)
    assert bf32(-8).root(-3, BINARY32) == bf32(-0.5)
    assert negative_zero(24).root(3, BINARY32).is_negative_zero()
    assert negative_zero(24).root(-3, BINARY32) == negative_infinity(24)
    assert bf32(-1).root(2, BINARY32).is_nan()
    assert bf32(-1).root(-2, BINARY32).is_nan()
    assert bf32(1).root(0, BINARY32).is_nan()
    assert negative_infinity(24).root(3, BINARY32) == negative_infinity(24)
    assert positive_infinity(24).root(-2, BINARY32).is_positive_zero()
    assert zero(24).root(-2, BINARY32) == positive_infinity(24)
    assert nan(24).root(-2, BINARY32).is_nan()


def test_root_matches_sqrt_and_cbrt():
    x = bf64(3)
    assert x.root(2, BINARY64) == x.sqrt(BINARY64)
    assert x.root(3, BINARY64) == x.cbrt(BINARY64)
    assert x.sqrt(BINARY64).to_float64() == math.sqrt(3)


@pytest.mark.parametrize('x', [2, 3, 10, 0.1, 1e300, 5e-324])
def test_reciprocal_square_root(x):
    with gmpy2.context(gmpy2.ieee(64)):
        expected = float(gmpy2.rec_sqrt(gmpy2.mpfr(x)))
    assert bf64(x).root(-2, BINARY64).to_float64() == expected


@pytest.mark.parametrize('rm, rnd', [
    (RM.RTZ, gmpy2.RoundToZero),
    (RM.RTP, gmpy2.RoundUp),
    (RM.RTN, gmpy2.RoundDown),
])
def test_reciprocal_square_root_directed(rm, rnd):
    ctx = Context(8, rm)
    with gmpy2.context(precision=8, round=rnd):
        expected = float(gmpy2.rec_sqrt(gmpy2.mpfr(3)))
    assert BigFloat(3, ctx).root(-2, ctx).to_float64() == expected


def test_hypot():
    assert bf32(3).hypot(bf32(4), BINARY32) == bf32(5)
    assert negative_infinity(24).hypot(bf32(1), BINARY32) == positive_infinity(24)


# Python operators

def test_dunders():
    x = bf32(1.5)
    assert (x + 2).equal_to(3.5)
    assert (2 + x).equal_to(3.5)
    assert (x - 2).equal_to(-0.5)
    assert (2 - x).equal_to(0.5)
    assert (x * x).equal_to(2.25)
    assert (x / 2).equal_to(0.75)
    assert (3 / x).equal_to(2)
    assert (x ** 2).equal_to(2.25)
    assert (x + 2).precision == 24
    assert (x + '0.5').equal_to(2)
    assert (-x).equal_to(-1.5)
    assert +x is x


def test_dunder_type_errors():
    with pytest.raises(TypeError):
        bf32(1) + object()
    with pytest.raises(TypeError):
        bf32(1).add([1])
