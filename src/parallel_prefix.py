from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out


class KoggeStone(wiring.Component):
    """Kogge-Stone parallel prefix network for carry computation

    ceil(log2(width)) combine levels; for the 18-bit accumulator that is
    5 levels instead of an 18-deep ripple.
    """

    def __init__(self, width: int = 18):
        self.width = width

        super().__init__(
            {
                "generate": In(width),
                "propagate": In(width),
                "carry_in": In(1),
                "carries": Out(width + 1),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        g = [self.generate[i] for i in range(self.width)]
        p = [self.propagate[i] for i in range(self.width)]

        span = 1
        lvl = 0
        while span < self.width:
            g_next = list(g[:span])
            p_next = list(p[:span])
            for i in range(span, self.width):
                gi = Signal(name=f"g_{lvl}_{i}")
                pi = Signal(name=f"p_{lvl}_{i}")
                m.d.comb += gi.eq(g[i] | (p[i] & g[i - span]))
                m.d.comb += pi.eq(p[i] & p[i - span])
                g_next.append(gi)
                p_next.append(pi)
            g, p = g_next, p_next
            span <<= 1
            lvl += 1

        m.d.comb += self.carries[0].eq(self.carry_in)
        for i in range(self.width):
            m.d.comb += self.carries[i + 1].eq(g[i] | (p[i] & self.carry_in))

        return m


class SignedPrefixAdder(wiring.Component):
    """Two's-complement adder on a Kogge-Stone carry network

    sum wraps modulo 2**width.
    """

    def __init__(self, width: int = 18):
        self.width = width

        super().__init__(
            {
                "a": In(signed(width)),
                "b": In(signed(width)),
                "sum": Out(signed(width)),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        m.submodules.prefix = prefix = KoggeStone(width=self.width)

        a = self.a.as_unsigned()
        b = self.b.as_unsigned()

        m.d.comb += prefix.generate.eq(a & b)
        m.d.comb += prefix.propagate.eq(a ^ b)
        m.d.comb += prefix.carry_in.eq(0)

        m.d.comb += self.sum.eq((prefix.propagate ^ prefix.carries[: self.width]).as_signed())

        return m
