import math

from amaranth.lib import data

BIAS = 15
EXP_BITS = 5
FRAC_BITS = 6

# Largest exponent field ever produced; 31 is reserved and never emitted.
EXP_MAX = 30
# Results whose exponent would land below this are flushed to zero.
EXP_MIN = 2
SAT_FRACTION = 0b110000


class FP12(data.Struct):
    """12-bit float: 1 sign + 5 exponent (bias 15) + 6 fraction

    No subnormals, infinities or NaNs. An exponent field of zero is read as
    zero whatever the fraction holds.
    """

    fraction: FRAC_BITS
    exponent: EXP_BITS
    sign: 1


class FP12Value:
    def __init__(self, bits: int):
        if not 0 <= bits < (1 << 12):
            raise ValueError(f"FP12 bit pattern out of range: {bits:#x}")
        self.bits = bits

    def __eq__(self, other):
        if not isinstance(other, FP12Value):
            return NotImplemented
        return self.bits == other.bits

    def __hash__(self):
        return hash(self.bits)

    def __repr__(self):
        sign, exp, frac = self.unpack()
        return f"FP12Value(sign={sign}, exponent={exp}, fraction={frac:#08b})"

    @classmethod
    def from_bits(cls, bits: int):
        return cls(bits)

    def to_bits(self) -> int:
        return self.bits

    @classmethod
    def from_float(cls, f: float):
        """Convert by truncation; tiny magnitudes flush to zero."""
        if not math.isfinite(f):
            raise ValueError(f"FP12 has no encoding for {f}")

        sign = 1 if math.copysign(1.0, f) < 0 else 0
        if f == 0:
            return cls.pack(sign, 0, 0)

        mant, exp2 = math.frexp(abs(f))
        exp = exp2 - 1 + BIAS
        if exp < 1:
            return cls.pack(sign, 0, 0)
        if exp >= (1 << EXP_BITS):
            raise OverflowError(f"{f} is too large for FP12")

        frac = int((mant * 2 - 1) * (1 << FRAC_BITS))
        return cls.pack(sign, exp, frac)

    def to_float(self) -> float:
        sign, exp, frac = self.unpack()
        if exp == 0:
            return -0.0 if sign else 0.0
        value = math.ldexp(1 + frac / (1 << FRAC_BITS), exp - BIAS)
        return -value if sign else value

    def unpack(self) -> tuple[int, int, int]:
        sign = (self.bits >> 11) & 0x1
        exp = (self.bits >> FRAC_BITS) & 0x1F
        frac = self.bits & 0x3F
        return sign, exp, frac

    @classmethod
    def pack(cls, sign: int, exp: int, frac: int):
        if sign not in (0, 1):
            raise ValueError(f"sign must be 0 or 1, got {sign}")
        if not 0 <= exp < (1 << EXP_BITS):
            raise ValueError(f"exponent field out of range: {exp}")
        if not 0 <= frac < (1 << FRAC_BITS):
            raise ValueError(f"fraction field out of range: {frac}")
        return cls((sign << 11) | (exp << FRAC_BITS) | frac)

    def to_fields(self) -> dict:
        sign, exp, frac = self.unpack()
        return {"sign": sign, "exponent": exp, "fraction": frac}

    @classmethod
    def from_fields(cls, fields):
        return cls.pack(fields["sign"], fields["exponent"], fields["fraction"])

    def is_zero(self) -> bool:
        return self.unpack()[1] == 0


SATURATED = {sign: FP12Value.pack(sign, EXP_MAX, SAT_FRACTION) for sign in (0, 1)}
