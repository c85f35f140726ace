from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

from fp12 import EXP_BITS


class ExponentCompare(wiring.Component):
    """Group maximum exponent and per-operand alignment shifts

    max = max(max(e0, e1), max(e2, e3))
    shift[i] = SHIFT_FLUSH if e[i] == 0 else max - e[i]

    A nonzero exponent never differs from the maximum by more than 30, so
    the flush sentinel cannot collide with a real shift distance.
    """

    SHIFT_FLUSH = (1 << EXP_BITS) - 1

    def __init__(self, count: int = 4):
        self.count = count

        super().__init__(
            {
                "exponents": In(EXP_BITS).array(count),
                "max_exponent": Out(EXP_BITS),
                "shift_amounts": Out(EXP_BITS).array(count),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        # ---- Pairwise Max Tree ----
        level = list(self.exponents)
        depth = 0
        while len(level) > 1:
            nxt = []
            for i in range(0, len(level) - 1, 2):
                pair_max = Signal(EXP_BITS, name=f"max_{depth}_{i // 2}")
                m.d.comb += pair_max.eq(Mux(level[i] >= level[i + 1], level[i], level[i + 1]))
                nxt.append(pair_max)
            if len(level) % 2:
                nxt.append(level[-1])
            level = nxt
            depth += 1

        m.d.comb += self.max_exponent.eq(level[0])

        # ---- Shift Distances ----
        for exp, shift in zip(self.exponents, self.shift_amounts):
            with m.If(exp == 0):
                m.d.comb += shift.eq(self.SHIFT_FLUSH)
            with m.Elif(exp > self.max_exponent):
                m.d.comb += shift.eq(0)
            with m.Else():
                m.d.comb += shift.eq(self.max_exponent - exp)

        return m
