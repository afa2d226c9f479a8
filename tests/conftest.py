import pytest
from fractions import Fraction

from arbfloat import evalctx
from arbfloat import BigFloat, BINARY32, BINARY64


@pytest.fixture(autouse=True)
def clean_defaults():
    """Process defaults are global: never leak them between tests."""
    evalctx.reset_defaults()
    yield
    evalctx.reset_defaults()


@pytest.fixture
def f32():
    return BINARY32


@pytest.fixture
def f64():
    return BINARY64


@pytest.fixture
def specials():
    """Special values at binary32 precision, keyed by name."""
    return {
        'nan': BigFloat(float('nan'), BINARY32),
        'inf': BigFloat(float('inf'), BINARY32),
        'neginf': BigFloat(float('-inf'), BINARY32),
        'zero': BigFloat(0.0, BINARY32),
        'negzero': BigFloat(-0.0, BINARY32),
        'one': BigFloat(1, BINARY32),
        'half': BigFloat(0.5, BINARY32),
    }


def as_fraction(x):
    """Exact value of a finite digital number."""
    return Fraction(x.m) * Fraction(2) ** x.exp


def with_rm(ctx, rm):
    return ctx.with_rounding_policy(rm)
