from .core import utils, ops, digital, gmpmath, conversion
from .arithmetic import evalctx, mpnum, bigfloat

RM = ops.RM
RoundingPolicy = ops.RoundingPolicy
FloatClass = ops.FloatClass

Context = evalctx.Context
BINARY16 = evalctx.BINARY16
BINARY32 = evalctx.BINARY32
BINARY64 = evalctx.BINARY64
BINARY128 = evalctx.BINARY128
context_for = evalctx.context_for
set_defaults = evalctx.set_defaults
reset_defaults = evalctx.reset_defaults
default_context = evalctx.default_context

BigFloat = bigfloat.BigFloat
zero = bigfloat.zero
negative_zero = bigfloat.negative_zero
positive_infinity = bigfloat.positive_infinity
negative_infinity = bigfloat.negative_infinity
nan = bigfloat.nan
max_value = bigfloat.max_value
min_normal = bigfloat.min_normal
min_value = bigfloat.min_value
pi = bigfloat.pi
e = bigfloat.e

BigFloatError = utils.BigFloatError
ConfigurationError = utils.ConfigurationError
FloatSyntaxError = utils.FloatSyntaxError
InexactError = utils.InexactError
RangeError = utils.RangeError
PrecisionError = utils.PrecisionError
