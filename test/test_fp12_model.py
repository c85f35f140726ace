import numpy as np
import pytest

import fp12_model
from fp12 import FP12Value


def enc(sign, exp, frac):
    return FP12Value.pack(sign, exp, frac).to_bits()


ONE = enc(0, 15, 0)
MINUS_ONE = enc(1, 15, 0)


def exact_sum(operands):
    return sum(FP12Value.from_bits(bits).to_float() for bits in operands)


def test_four_ones():
    assert fp12_model.sum4(ONE, ONE, ONE, ONE) == enc(0, 17, 0)


def test_flushed_operands_do_not_contribute():
    for frac in (0, 1, 42, 63):
        zero = enc(0, 0, frac)
        assert fp12_model.sum4(ONE, zero, zero, zero) == ONE


def test_exact_cancellation_is_positive_zero():
    zero = enc(1, 0, 17)
    assert fp12_model.sum4(MINUS_ONE, ONE, zero, zero) == 0
    assert fp12_model.sum4(enc(1, 20, 9), enc(0, 20, 9), enc(1, 3, 1), enc(0, 3, 1)) == 0


@pytest.mark.parametrize("sign", [0, 1])
def test_saturation(sign):
    big = enc(sign, 30, 0)
    assert fp12_model.sum4(big, big, big, big) == enc(sign, 30, 48)
    assert fp12_model.sum4(enc(sign, 31, 0), 0, 0, 0) == enc(sign, 30, 48)
    assert fp12_model.sum4(enc(sign, 30, 63), 0, 0, 0) == enc(sign, 30, 48)
    assert fp12_model.sum4(enc(sign, 30, 48), 0, 0, 0) == enc(sign, 30, 48)
    assert fp12_model.sum4(enc(sign, 30, 40), 0, 0, 0) == enc(sign, 30, 40)


def test_underflow():
    # exponent field 1 is readable but never written
    assert fp12_model.sum4(enc(0, 1, 5), 0, 0, 0) == 0
    assert fp12_model.sum4(enc(1, 2, 5), 0, 0, 0) == enc(1, 2, 5)
    # cancellation leaving 2**-14 with a group exponent of 5
    assert fp12_model.sum4(enc(0, 5, 1), enc(1, 5, 0), 0, 0) == 0


def test_truncation_not_round_to_nearest():
    b = enc(0, 14, 3)
    result = fp12_model.sum4(ONE, b, 0, 0)

    # 1 + 0.5234375 = 1.5234375; nearest-even would give fraction 34
    assert result == enc(0, 15, 33)

    reg = fp12_model.Captured(True, (ONE, b, 0, 0))
    for step in fp12_model.STEPS[:-1]:
        reg = step(reg)
    norm = fp12_model.normalize(reg.sign, reg.magnitude, reg.max_exponent, reg.sticky)
    assert norm.guard == 1
    assert norm.result == result


def test_alignment_sticky_is_tracked():
    small = enc(0, 4, 1)
    reg = fp12_model.decode_stage(fp12_model.Captured(True, (ONE, small, 0, 0)))
    aligned = fp12_model.align_stage(reg)
    assert aligned.sticky
    assert aligned.values[1] == 0


@pytest.mark.parametrize(
    "shift, expected",
    [
        (0, (1040, False)),
        (4, (65, False)),
        (5, (32, True)),
        (10, (1, True)),
        (11, (0, True)),
        (13, (0, True)),
        (14, (0, True)),
        (30, (0, True)),
        (31, (0, False)),
    ],
)
def test_align(shift, expected):
    assert fp12_model.align(0, shift, 1040) == expected


def test_align_negates():
    assert fp12_model.align(1, 1, 1024) == (-512, False)


def test_shift_amount():
    assert fp12_model.shift_amount(0, 20) == fp12_model.SHIFT_FLUSH
    assert fp12_model.shift_amount(21, 20) == 0
    assert fp12_model.shift_amount(5, 20) == 15
    assert fp12_model.max_exponent([3, 0, 19, 7]) == 19


def test_random_same_sign_sums_track_exact_value():
    rng = np.random.default_rng(42)
    for _ in range(2000):
        sign = int(rng.integers(2))
        operands = [enc(sign, int(rng.integers(8, 22)), int(rng.integers(64))) for _ in range(4)]
        result = FP12Value.from_bits(fp12_model.sum4(*operands))
        exact = exact_sum(operands)
        got = result.to_float()

        # Every truncation along the way loses magnitude: less than one unit
        # in the last place at the end and a quarter of one during alignment.
        ulp = 2.0 ** (result.unpack()[1] - 15 - 6)
        assert np.sign(got) == np.sign(exact)
        assert abs(got) <= abs(exact)
        assert abs(exact - got) < 2 * ulp


def test_model_latency():
    model = fp12_model.Fp12Sum4Model()
    model.tick((ONE, ONE, ONE, ONE), push=True)
    for cycle in range(2, 20):
        out = model.tick()
        if cycle == model.LATENCY:
            assert out.valid
            assert out.result == enc(0, 17, 0)
        else:
            assert not out.valid, f"valid at cycle {cycle}"


def test_model_back_to_back():
    model = fp12_model.Fp12Sum4Model()
    groups = [(enc(0, 15, i), 0, 0, 0) for i in range(10)]
    outputs = []
    for group in groups:
        outputs.append(model.tick(group, push=True))
    for _ in range(model.LATENCY):
        outputs.append(model.tick())

    results = [out.result for out in outputs if out.valid]
    assert results == [group[0] for group in groups]
    assert [out.valid for out in outputs].index(True) == model.LATENCY - 1


def test_model_reset_discards_in_flight():
    model = fp12_model.Fp12Sum4Model()
    for _ in range(5):
        model.tick((ONE, ONE, 0, 0), push=True)
    model.tick((ONE, ONE, 0, 0), push=True, srst=True)
    assert (model.z, model.push_out) == (0, False)
    for _ in range(2 * model.LATENCY):
        assert not model.tick().valid


def test_model_rejects_wrong_operand_count():
    with pytest.raises(ValueError):
        fp12_model.Fp12Sum4Model().tick((ONE, ONE), push=True)


@pytest.mark.parametrize("bad", [1 << 12, -1, 0xFFFF])
def test_model_rejects_out_of_range_word_without_state_change(bad):
    model = fp12_model.Fp12Sum4Model()
    model.tick((ONE, ONE, 0, 0), push=True)
    before = (model.captured, model.decoded, model.output)

    with pytest.raises(ValueError):
        model.tick((bad, 0, 0, 0), push=True)
    assert (model.captured, model.decoded, model.output) == before

    # The model keeps running; the group pushed before the bad word still arrives
    outputs = [model.tick() for _ in range(model.LATENCY)]
    assert [out.result for out in outputs if out.valid] == [enc(0, 16, 0)]
