from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out


class Normalizer(wiring.Component):
    """Moves the leading one of the magnitude onto the hidden-bit lane

    - lead >= hidden: right shift, guard/round/sticky from the bits below
      the fraction plus everything displaced plus sticky_in
    - lead < hidden: left shift, guard = round = 0, sticky = sticky_in
    - exp_adjust = lead - hidden

    The fraction is returned truncated; guard/round/sticky are reported
    but never folded back into it.
    """

    def __init__(self, width: int = 17, hidden: int = 10, frac_bits: int = 6):
        self.width = width
        self.hidden = hidden
        self.frac_bits = frac_bits
        # Lowest bit of the kept fraction after normalization.
        self.frac_lsb = hidden - frac_bits

        super().__init__(
            {
                "magnitude": In(width),
                "lead": In(range(width)),
                "sticky_in": In(1),
                "fraction": Out(frac_bits),
                "guard": Out(1),
                "round_bit": Out(1),
                "sticky": Out(1),
                "exp_adjust": Out(signed(width.bit_length() + 1)),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        shifted = Signal(self.width)

        m.d.comb += self.exp_adjust.eq(self.lead - self.hidden)

        with m.If(self.lead >= self.hidden):
            # ---- Right Shift ----
            rshift = Signal(range(self.width))
            m.d.comb += rshift.eq(self.lead - self.hidden)
            m.d.comb += shifted.eq(self.magnitude >> rshift)

            restored = Signal(self.width)
            m.d.comb += restored.eq(shifted << rshift)

            # Lanes below the fraction: guard = 3, round = 2, sticky = OR of 1..0
            # plus every bit the right shift pushed out.
            m.d.comb += self.guard.eq(shifted[self.frac_lsb - 1])
            m.d.comb += self.round_bit.eq(shifted[self.frac_lsb - 2])
            m.d.comb += self.sticky.eq(
                shifted[0 : self.frac_lsb - 2].any() | (restored != self.magnitude) | self.sticky_in
            )
        with m.Else():
            # ---- Left Shift ----
            lshift = Signal(range(self.hidden + 1))
            m.d.comb += lshift.eq(self.hidden - self.lead)
            m.d.comb += shifted.eq(self.magnitude << lshift)
            m.d.comb += self.guard.eq(0)
            m.d.comb += self.round_bit.eq(0)
            m.d.comb += self.sticky.eq(self.sticky_in)

        m.d.comb += self.fraction.eq(shifted[self.frac_lsb : self.hidden])

        return m
