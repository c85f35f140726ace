from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out


class Aligner(wiring.Component):
    """Right shifter with sticky tracking for operand alignment

    - shift_amount == flush: operand is zero, nothing kept, no sticky
    - shift_amount >= width: everything shifted out, sticky = |value_in
    - otherwise: value_in >> shift_amount, sticky = |(displaced bits)
    """

    def __init__(self, width: int = 14, shift_bits: int = 5):
        self.width = width
        self.shift_bits = shift_bits
        self.flush = (1 << shift_bits) - 1

        super().__init__(
            {
                "value_in": In(width),
                "shift_amount": In(shift_bits),
                "value_out": Out(width),
                "sticky": Out(1),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        shifted = Signal(self.width)
        m.d.comb += shifted.eq(self.value_in >> self.shift_amount)

        # Shifting the kept bits back exposes what fell off the bottom.
        restored = Signal(self.width)
        m.d.comb += restored.eq(shifted << self.shift_amount)

        with m.If(self.shift_amount == self.flush):
            m.d.comb += self.value_out.eq(0)
            m.d.comb += self.sticky.eq(0)
        with m.Elif(self.shift_amount >= self.width):
            m.d.comb += self.value_out.eq(0)
            m.d.comb += self.sticky.eq(self.value_in.any())
        with m.Else():
            m.d.comb += self.value_out.eq(shifted)
            m.d.comb += self.sticky.eq(restored != self.value_in)

        return m
