"""Bit-exact software model of the FP12 four-operand adder pipeline

Each stage is a pure function from one stage tuple to the next; the
pipeline model holds one tuple per register and advances all of them
together on tick(). The combinational path is sum4().
"""

from typing import NamedTuple

from fp12 import EXP_BITS, EXP_MAX, EXP_MIN, FRAC_BITS, SAT_FRACTION, SATURATED, FP12Value
from stages import ABS_WIDTH, ACC_WIDTH, HIDDEN_LANE, MAG_WIDTH, OPERANDS

SHIFT_FLUSH = (1 << EXP_BITS) - 1
FRAC_LSB = HIDDEN_LANE - FRAC_BITS


class Captured(NamedTuple):
    valid: bool = False
    operands: tuple = (0,) * OPERANDS


class Decoded(NamedTuple):
    valid: bool = False
    max_exponent: int = 0
    signs: tuple = (0,) * OPERANDS
    shifts: tuple = (0,) * OPERANDS
    magnitudes: tuple = (0,) * OPERANDS


class Aligned(NamedTuple):
    valid: bool = False
    max_exponent: int = 0
    sticky: bool = False
    values: tuple = (0,) * OPERANDS


class PartialSums(NamedTuple):
    valid: bool = False
    max_exponent: int = 0
    sticky: bool = False
    sums: tuple = (0,) * (OPERANDS // 2)


class Total(NamedTuple):
    valid: bool = False
    max_exponent: int = 0
    sticky: bool = False
    sum: int = 0


class SignMagnitude(NamedTuple):
    valid: bool = False
    max_exponent: int = 0
    sticky: bool = False
    sign: int = 0
    magnitude: int = 0


class Packed(NamedTuple):
    valid: bool = False
    result: int = 0


class Normalized(NamedTuple):
    result: int
    guard: int
    round_bit: int
    sticky: bool


def wrap(value: int, width: int) -> int:
    """Reinterpret value as a width-bit two's-complement number."""
    value &= (1 << width) - 1
    if value >> (width - 1):
        value -= 1 << width
    return value


def decode(bits: int) -> tuple[int, int, int]:
    """Split an FP12 word into (sign, exponent, extended magnitude)."""
    sign, exp, frac = FP12Value.from_bits(bits).unpack()
    magnitude = ((1 << FRAC_BITS) | frac) << FRAC_LSB
    return sign, exp, magnitude


def max_exponent(exponents) -> int:
    level = list(exponents)
    while len(level) > 1:
        nxt = [max(level[i], level[i + 1]) for i in range(0, len(level) - 1, 2)]
        if len(level) % 2:
            nxt.append(level[-1])
        level = nxt
    return level[0]


def shift_amount(exponent: int, group_max: int) -> int:
    if exponent == 0:
        return SHIFT_FLUSH
    if exponent > group_max:
        return 0
    return group_max - exponent


def align(sign: int, shift: int, magnitude: int) -> tuple[int, bool]:
    """Aligned two's-complement value and whether any set bit was shifted out."""
    if shift == SHIFT_FLUSH:
        return 0, False
    if shift >= MAG_WIDTH:
        return 0, magnitude != 0

    kept = magnitude >> shift
    lost = magnitude & ((1 << shift) - 1)
    return wrap(-kept if sign else kept, MAG_WIDTH), lost != 0


def sign_magnitude(total: int) -> tuple[int, int]:
    if total < 0:
        return 1, (-total) & ((1 << ABS_WIDTH) - 1)
    return 0, total & ((1 << ABS_WIDTH) - 1)


def pack(sign: int, exponent: int, fraction: int) -> int:
    """Range policy: flush below EXP_MIN, saturate above EXP_MAX."""
    if exponent < EXP_MIN:
        return 0
    if exponent > EXP_MAX or (exponent == EXP_MAX and fraction > SAT_FRACTION):
        return SATURATED[sign].to_bits()
    return FP12Value.pack(sign, exponent, fraction).to_bits()


def normalize(sign: int, magnitude: int, group_max: int, sticky: bool) -> Normalized:
    """Normalize, truncate and pack a sign/magnitude sum.

    Guard, round and sticky are returned for inspection only; the packed
    result is always the truncated fraction.
    """
    if magnitude == 0:
        return Normalized(0, 0, 0, sticky)

    lead = magnitude.bit_length() - 1
    exponent = group_max + lead - HIDDEN_LANE

    if lead >= HIDDEN_LANE:
        rshift = lead - HIDDEN_LANE
        if rshift >= ABS_WIDTH:
            shifted = 0
            lost = True
        else:
            shifted = magnitude >> rshift
            lost = (magnitude & ((1 << rshift) - 1)) != 0
        guard = (shifted >> (FRAC_LSB - 1)) & 1
        round_bit = (shifted >> (FRAC_LSB - 2)) & 1
        sticky = (shifted & ((1 << (FRAC_LSB - 2)) - 1)) != 0 or lost or sticky
    else:
        shifted = (magnitude << (HIDDEN_LANE - lead)) & ((1 << ABS_WIDTH) - 1)
        guard = 0
        round_bit = 0

    fraction = (shifted >> FRAC_LSB) & ((1 << FRAC_BITS) - 1)
    return Normalized(pack(sign, exponent, fraction), guard, round_bit, bool(sticky))


def decode_stage(reg: Captured) -> Decoded:
    fields = [decode(bits) for bits in reg.operands]
    group_max = max_exponent(exp for _, exp, _ in fields)
    return Decoded(
        valid=reg.valid,
        max_exponent=group_max,
        signs=tuple(sign for sign, _, _ in fields),
        shifts=tuple(shift_amount(exp, group_max) for _, exp, _ in fields),
        magnitudes=tuple(mag for _, _, mag in fields),
    )


def align_stage(reg: Decoded) -> Aligned:
    results = [align(*args) for args in zip(reg.signs, reg.shifts, reg.magnitudes)]
    return Aligned(
        valid=reg.valid,
        max_exponent=reg.max_exponent,
        sticky=any(sticky for _, sticky in results),
        values=tuple(value for value, _ in results),
    )


def partial_stage(reg: Aligned) -> PartialSums:
    v = reg.values
    sums = tuple(wrap(v[i] + v[i + 1], ACC_WIDTH) for i in range(0, OPERANDS, 2))
    return PartialSums(reg.valid, reg.max_exponent, reg.sticky, sums)


def total_stage(reg: PartialSums) -> Total:
    return Total(reg.valid, reg.max_exponent, reg.sticky, wrap(sum(reg.sums), ACC_WIDTH))


def sign_magnitude_stage(reg: Total) -> SignMagnitude:
    sign, magnitude = sign_magnitude(reg.sum)
    return SignMagnitude(reg.valid, reg.max_exponent, reg.sticky, sign, magnitude)


def normalize_stage(reg: SignMagnitude) -> Packed:
    norm = normalize(reg.sign, reg.magnitude, reg.max_exponent, reg.sticky)
    return Packed(reg.valid, norm.result)


STEPS = (decode_stage, align_stage, partial_stage, total_stage, sign_magnitude_stage, normalize_stage)


def sum4(a: int, b: int, c: int, d: int) -> int:
    """FP12 bits of a + b + c + d as the pipeline computes it."""
    reg = Captured(True, (a, b, c, d))
    for step in STEPS:
        reg = step(reg)
    return reg.result


class Fp12Sum4Model:
    """Cycle-accurate model of FP12Sum4

    tick() plays one rising clock edge: every register loads the value
    computed from the registers as they were before the edge.
    """

    LATENCY = 8

    def __init__(self):
        self.reset()

    def reset(self):
        self.captured = Captured()
        self.decoded = Decoded()
        self.aligned = Aligned()
        self.partial = PartialSums()
        self.total = Total()
        self.signmag = SignMagnitude()
        self.normalized = Packed()
        self.output = Packed()

    @property
    def z(self) -> int:
        return self.output.result

    @property
    def push_out(self) -> bool:
        return self.output.valid

    def tick(self, operands=(0,) * OPERANDS, push=False, srst=False) -> Packed:
        if len(operands) != OPERANDS:
            raise ValueError(f"expected {OPERANDS} operands, got {len(operands)}")
        # Raises on a word outside 12 bits before any register is touched.
        operands = tuple(FP12Value.from_bits(bits).to_bits() for bits in operands)

        if srst:
            self.reset()
            return self.output

        (
            self.captured,
            self.decoded,
            self.aligned,
            self.partial,
            self.total,
            self.signmag,
            self.normalized,
            self.output,
        ) = (
            Captured(bool(push), tuple(operands)),
            decode_stage(self.captured),
            align_stage(self.decoded),
            partial_stage(self.aligned),
            total_stage(self.partial),
            sign_magnitude_stage(self.total),
            normalize_stage(self.signmag),
            Packed(self.normalized.valid, self.normalized.result),
        )

        return self.output
