from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out


class LeadingOneDetector(wiring.Component):
    """Priority encoder: bit index of the most significant one

    position is 0 when value_in is zero; check found before using it.
    """

    def __init__(self, width: int = 17):
        self.width = width

        super().__init__(
            {
                "value_in": In(width),
                "position": Out(range(width)),
                "found": Out(1),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        position = 0
        for i in range(self.width):
            position = Mux(self.value_in[i], i, position)

        m.d.comb += self.position.eq(position)
        m.d.comb += self.found.eq(self.value_in.any())

        return m
