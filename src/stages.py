from amaranth import *
from amaranth.lib import data

from fp12 import EXP_BITS, FP12

OPERANDS = 4

# 3 growth bits + hidden one + fraction + 4 alignment bits
MAG_WIDTH = 14
# Bit lane of the implicit one in the extended magnitude and after normalization.
HIDDEN_LANE = 10
# MAG_WIDTH + 2 bits for the four-way sum + 2 spare
ACC_WIDTH = 18
ABS_WIDTH = ACC_WIDTH - 1


class Captured(data.Struct):
    valid: 1
    operands: data.ArrayLayout(FP12, OPERANDS)


class Decoded(data.Struct):
    valid: 1
    max_exponent: EXP_BITS
    signs: OPERANDS
    shifts: data.ArrayLayout(EXP_BITS, OPERANDS)
    magnitudes: data.ArrayLayout(MAG_WIDTH, OPERANDS)


class Aligned(data.Struct):
    valid: 1
    max_exponent: EXP_BITS
    sticky: 1
    values: data.ArrayLayout(signed(MAG_WIDTH), OPERANDS)


class PartialSums(data.Struct):
    valid: 1
    max_exponent: EXP_BITS
    sticky: 1
    sums: data.ArrayLayout(signed(ACC_WIDTH), OPERANDS // 2)


class Total(data.Struct):
    valid: 1
    max_exponent: EXP_BITS
    sticky: 1
    sum: signed(ACC_WIDTH)


class SignMagnitude(data.Struct):
    valid: 1
    max_exponent: EXP_BITS
    sticky: 1
    sign: 1
    magnitude: ABS_WIDTH


class Normalized(data.Struct):
    valid: 1
    result: FP12
