from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

from aligner import Aligner
from exp_compare import ExponentCompare
from fp12 import EXP_BITS, FP12, FRAC_BITS
from leading_one import LeadingOneDetector
from normalizer import Normalizer
from packer import SaturatingPacker
from parallel_prefix import SignedPrefixAdder
from stages import (
    ABS_WIDTH,
    ACC_WIDTH,
    HIDDEN_LANE,
    MAG_WIDTH,
    OPERANDS,
    Aligned,
    Captured,
    Decoded,
    Normalized,
    PartialSums,
    SignMagnitude,
    Total,
)


class FP12Sum4(wiring.Component):
    """Pipelined z = a + b + c + d in FP12

    Eight register stages, one input group accepted every cycle:

    1. capture operands and push_in
    2. decode, group max exponent, shift distances, extended magnitudes
    3. align with sticky, apply signs
    4. a + b and c + d
    5. final sum
    6. sign / magnitude split
    7. normalize, truncate, flush or saturate, pack
    8. output register

    push_out follows push_in exactly LATENCY cycles later. srst loads zero
    into every register, the outputs included, on the clock edge.
    """

    a: In(FP12)
    b: In(FP12)
    c: In(FP12)
    d: In(FP12)
    push_in: In(1)
    srst: In(1)

    z: Out(FP12)
    push_out: Out(1)

    LATENCY = 8

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        m.submodules.exp_compare = exp_compare = ExponentCompare(count=OPERANDS)
        aligners = []
        for i in range(OPERANDS):
            aligners.append(Aligner(width=MAG_WIDTH, shift_bits=EXP_BITS))
            m.submodules[f"aligner_{i}"] = aligners[i]
        m.submodules.add_ab = add_ab = SignedPrefixAdder(width=ACC_WIDTH)
        m.submodules.add_cd = add_cd = SignedPrefixAdder(width=ACC_WIDTH)
        m.submodules.add_total = add_total = SignedPrefixAdder(width=ACC_WIDTH)
        m.submodules.lod = lod = LeadingOneDetector(width=ABS_WIDTH)
        m.submodules.normalizer = normalizer = Normalizer(width=ABS_WIDTH, hidden=HIDDEN_LANE, frac_bits=FRAC_BITS)
        m.submodules.packer = packer = SaturatingPacker()

        # Stage registers and the values they load on the next edge.
        captured = Signal(Captured)
        decoded = Signal(Decoded)
        aligned = Signal(Aligned)
        partial = Signal(PartialSums)
        total = Signal(Total)
        signmag = Signal(SignMagnitude)
        normalized = Signal(Normalized)

        captured_next = Signal(Captured)
        decoded_next = Signal(Decoded)
        aligned_next = Signal(Aligned)
        partial_next = Signal(PartialSums)
        total_next = Signal(Total)
        signmag_next = Signal(SignMagnitude)
        normalized_next = Signal(Normalized)

        # ---- Stage 1: Capture ----
        m.d.comb += captured_next.valid.eq(self.push_in)
        for i, operand in enumerate((self.a, self.b, self.c, self.d)):
            m.d.comb += captured_next.operands[i].eq(operand)

        # ---- Stage 2: Decode & Exponent Compare ----
        for i in range(OPERANDS):
            m.d.comb += exp_compare.exponents[i].eq(captured.operands[i].exponent)

        m.d.comb += decoded_next.valid.eq(captured.valid)
        m.d.comb += decoded_next.max_exponent.eq(exp_compare.max_exponent)
        for i in range(OPERANDS):
            operand = captured.operands[i]
            m.d.comb += decoded_next.signs[i].eq(operand.sign)
            m.d.comb += decoded_next.shifts[i].eq(exp_compare.shift_amounts[i])
            m.d.comb += decoded_next.magnitudes[i].eq(
                Cat(Const(0, HIDDEN_LANE - FRAC_BITS), operand.fraction, Const(1, 1))
            )

        # ---- Stage 3: Alignment ----
        for i, aligner in enumerate(aligners):
            m.d.comb += aligner.value_in.eq(decoded.magnitudes[i])
            m.d.comb += aligner.shift_amount.eq(decoded.shifts[i])
            m.d.comb += aligned_next.values[i].eq(
                Mux(decoded.signs[i], -aligner.value_out, aligner.value_out)
            )

        m.d.comb += aligned_next.valid.eq(decoded.valid)
        m.d.comb += aligned_next.max_exponent.eq(decoded.max_exponent)
        m.d.comb += aligned_next.sticky.eq(Cat(*[aligner.sticky for aligner in aligners]).any())

        # ---- Stage 4: Partial Sums ----
        m.d.comb += add_ab.a.eq(aligned.values[0])
        m.d.comb += add_ab.b.eq(aligned.values[1])
        m.d.comb += add_cd.a.eq(aligned.values[2])
        m.d.comb += add_cd.b.eq(aligned.values[3])

        m.d.comb += partial_next.valid.eq(aligned.valid)
        m.d.comb += partial_next.max_exponent.eq(aligned.max_exponent)
        m.d.comb += partial_next.sticky.eq(aligned.sticky)
        m.d.comb += partial_next.sums[0].eq(add_ab.sum)
        m.d.comb += partial_next.sums[1].eq(add_cd.sum)

        # ---- Stage 5: Final Sum ----
        m.d.comb += add_total.a.eq(partial.sums[0])
        m.d.comb += add_total.b.eq(partial.sums[1])

        m.d.comb += total_next.valid.eq(partial.valid)
        m.d.comb += total_next.max_exponent.eq(partial.max_exponent)
        m.d.comb += total_next.sticky.eq(partial.sticky)
        m.d.comb += total_next.sum.eq(add_total.sum)

        # ---- Stage 6: Sign / Magnitude ----
        negative = Signal()
        m.d.comb += negative.eq(total.sum < 0)

        m.d.comb += signmag_next.valid.eq(total.valid)
        m.d.comb += signmag_next.max_exponent.eq(total.max_exponent)
        m.d.comb += signmag_next.sticky.eq(total.sticky)
        m.d.comb += signmag_next.sign.eq(negative)
        m.d.comb += signmag_next.magnitude.eq(Mux(negative, -total.sum, total.sum))

        # ---- Stage 7: Normalize & Pack ----
        m.d.comb += lod.value_in.eq(signmag.magnitude)

        m.d.comb += normalizer.magnitude.eq(signmag.magnitude)
        m.d.comb += normalizer.lead.eq(lod.position)
        m.d.comb += normalizer.sticky_in.eq(signmag.sticky)

        result_exp = Signal(signed(packer.exp_width))
        m.d.comb += result_exp.eq(signmag.max_exponent + normalizer.exp_adjust)

        m.d.comb += packer.sign.eq(signmag.sign)
        m.d.comb += packer.nonzero.eq(lod.found)
        m.d.comb += packer.exponent.eq(result_exp)
        m.d.comb += packer.fraction.eq(normalizer.fraction)

        m.d.comb += normalized_next.valid.eq(signmag.valid)
        m.d.comb += normalized_next.result.eq(packer.result)

        # ---- Registers ----
        stages = [
            (captured, captured_next),
            (decoded, decoded_next),
            (aligned, aligned_next),
            (partial, partial_next),
            (total, total_next),
            (signmag, signmag_next),
            (normalized, normalized_next),
        ]

        with m.If(self.srst):
            for reg, _ in stages:
                m.d.sync += reg.as_value().eq(0)
            m.d.sync += self.z.as_value().eq(0)
            m.d.sync += self.push_out.eq(0)
        with m.Else():
            for reg, nxt in stages:
                m.d.sync += reg.eq(nxt)
            # ---- Stage 8: Output ----
            m.d.sync += self.z.eq(normalized.result)
            m.d.sync += self.push_out.eq(normalized.valid)

        return m
