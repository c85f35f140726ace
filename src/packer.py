from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

from fp12 import EXP_BITS, EXP_MAX, EXP_MIN, FP12, FRAC_BITS, SAT_FRACTION


class SaturatingPacker(wiring.Component):
    """Applies the FP12 range policy and assembles the result

    - zero magnitude or exponent < EXP_MIN: all-zero word, sign dropped
    - exponent > EXP_MAX: {sign, EXP_MAX, SAT_FRACTION}
    - exponent == EXP_MAX with fraction > SAT_FRACTION: same clamp
    - otherwise {sign, exponent, fraction}
    """

    def __init__(self, exp_width: int = 7):
        self.exp_width = exp_width

        super().__init__(
            {
                "sign": In(1),
                "nonzero": In(1),
                "exponent": In(signed(exp_width)),
                "fraction": In(FRAC_BITS),
                "result": Out(FP12),
                "underflow": Out(1),
                "saturated": Out(1),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        m.d.comb += self.underflow.eq(self.nonzero & (self.exponent < EXP_MIN))
        m.d.comb += self.saturated.eq(
            self.nonzero
            & ((self.exponent > EXP_MAX) | ((self.exponent == EXP_MAX) & (self.fraction > SAT_FRACTION)))
        )

        with m.If(~self.nonzero | self.underflow):
            m.d.comb += self.result.sign.eq(0)
            m.d.comb += self.result.exponent.eq(0)
            m.d.comb += self.result.fraction.eq(0)
        with m.Elif(self.saturated):
            m.d.comb += self.result.sign.eq(self.sign)
            m.d.comb += self.result.exponent.eq(EXP_MAX)
            m.d.comb += self.result.fraction.eq(SAT_FRACTION)
        with m.Else():
            m.d.comb += self.result.sign.eq(self.sign)
            m.d.comb += self.result.exponent.eq(self.exponent[0:EXP_BITS])
            m.d.comb += self.result.fraction.eq(self.fraction)

        return m
