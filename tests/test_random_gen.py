import math

import pytest

from randsketch.random_gen import (
    Philox4x32,
    RNGState,
    boxmulall,
    boxmuller,
    generate_boxmul,
    generate_uneg11,
    incr_counter,
    u01,
    uneg11,
)

I32MAX = 2**32 - 1


@pytest.mark.parametrize(
    "ctr, key, expected",
    [
        (
            (0, 0, 0, 0),
            (0, 0),
            (0x6627E8D5, 0xE169C58D, 0xBC57AC4C, 0x9B00DBD8),
        ),
        (
            (0xFFFFFFFF,) * 4,
            (0xFFFFFFFF, 0xFFFFFFFF),
            (0x408F276D, 0x41C83B0E, 0xA20BC7C6, 0x6D5451FD),
        ),
        (
            (0x243F6A88, 0x85A308D3, 0x13198A2E, 0x03707344),
            (0xA4093822, 0x299F31D0),
            (0xD16CFE09, 0x94FDCCEB, 0x5001E420, 0x24126EA1),
        ),
    ],
)
def test_philox4x32_10_known_answers(ctr, key, expected):
    assert Philox4x32()(ctr, key) == expected


def test_philox_zero_rounds_is_identity():
    assert Philox4x32(rounds=0)((1, 2, 3, 4), (5, 6)) == (1, 2, 3, 4)


def test_philox_rejects_bad_lengths():
    with pytest.raises(ValueError):
        Philox4x32()((0, 0, 0), (0, 0))
    with pytest.raises(ValueError):
        Philox4x32()((0, 0, 0, 0), (0,))


def test_rngstate_default_constructor():
    s = RNGState()
    assert s.key == (0, 0)
    assert s.counter == (0, 0, 0, 0)
    assert s.len_c == 4


def test_rngstate_uint_key_constructor():
    t = RNGState(42)
    assert t.key == (42, 0)
    assert t.counter == (0, 0, 0, 0)
    ctr, key = t
    assert ctr == (0, 0, 0, 0)
    assert key == (42, 0)


def test_rngstate_advanced_leaves_original():
    s = RNGState(7)
    t = s.advanced(I32MAX + 3)
    assert t.counter == (2, 1, 0, 0)
    assert t.key == (7, 0)
    assert s.counter == (0, 0, 0, 0)


def test_rngstate_rejects_wrong_counter_length():
    with pytest.raises(ValueError):
        RNGState(0, counter=(0, 0))


def test_big_incr():
    c = (0, 0, 0, 0)
    c = incr_counter(c, I32MAX, 32)
    assert c == (I32MAX, 0, 0, 0)
    c = incr_counter(c, 1, 32)
    assert c == (0, 1, 0, 0)
    c = incr_counter(c, 3, 32)
    assert c == (3, 1, 0, 0)

    two32 = 1 << 32
    assert incr_counter((0, 0, 0, 0), two32 - 1, 32) == (I32MAX, 0, 0, 0)
    assert incr_counter((0, 0, 0, 0), two32, 32) == (0, 1, 0, 0)

    two63 = 1 << 63
    c = incr_counter((0, 0, 0, 0), two63, 32)
    c = incr_counter(c, two63 - two32, 32)
    assert c == (0, I32MAX, 0, 0)
    c = incr_counter(c, two32, 32)
    assert c == (0, 0, 1, 0)

    assert incr_counter((I32MAX, I32MAX, I32MAX, 0), 1, 32) == (0, 0, 0, 1)


def test_incr_wraps_at_full_range():
    assert incr_counter((I32MAX,) * 4, 1, 32) == (0, 0, 0, 0)


def test_u01_endpoints():
    assert u01(0, 32) == 2.0**-33
    assert u01(I32MAX, 32) == 1.0
    assert u01(0, 64) == 2.0**-65


def test_uneg11_endpoints():
    assert uneg11(0, 32) == 2.0**-32
    assert uneg11(0x80000000, 32) == -1.0
    assert uneg11(0x7FFFFFFF, 32) == 1.0
    assert uneg11(1 << 63, 64) == -1.0


def test_bad_width():
    with pytest.raises(ValueError):
        u01(0, 16)


def test_boxmuller_radius():
    x, y = boxmuller(0x12345678, 0x9ABCDEF0, 64)
    r2 = -2.0 * math.log(u01(0x9ABCDEF0, 64))
    assert math.isclose(x * x + y * y, r2, rel_tol=1e-12)


def test_boxmuller_zero_angle():
    x, y = boxmuller(0, 0x80000000, 64)
    assert abs(x) < 1e-9
    assert y > 0


def test_boxmulall_odd_length():
    with pytest.raises(ValueError):
        boxmulall((1, 2, 3), 32)


def test_generate_uneg11_matches_words():
    rng = Philox4x32()
    words = rng((0, 0, 0, 0), (0, 0))
    out = generate_uneg11(rng, (0, 0, 0, 0), (0, 0))
    assert out == tuple(uneg11(w, 32) for w in words)
    assert all(-1.0 <= v <= 1.0 for v in out)


def test_generate_boxmul_length_and_determinism():
    rng = Philox4x32()
    a = generate_boxmul(rng, (1, 0, 0, 0), (3, 0))
    b = generate_boxmul(rng, (1, 0, 0, 0), (3, 0))
    assert len(a) == 4
    assert a == b


def test_uneg11_stream_is_centered():
    rng = Philox4x32()
    state = RNGState(1)
    values = []
    for _ in range(2000):
        values.extend(generate_uneg11(rng, state.counter, state.key))
        state = state.advanced(1)
    mean = sum(values) / len(values)
    assert abs(mean) < 0.03
    assert min(values) >= -1.0 and max(values) <= 1.0