import numpy as np

from noise import apply_noise, make_rng, noise_bound


def gray(value=128, shape=(48, 32, 3)):
    return np.full(shape, value, np.uint8)


def test_same_seed_same_grain():
    a = apply_noise(gray(), make_rng(42))
    b = apply_noise(gray(), make_rng(42))
    assert np.array_equal(a, b)
    assert not np.array_equal(a, apply_noise(gray(), make_rng(43)))


def test_grain_is_bounded():
    assert noise_bound() == 0.5 * 255 * 0.06
    out = apply_noise(gray(), make_rng(0)).astype(int)
    assert np.abs(out - 128).max() <= 8


def test_grain_is_luminance_only():
    out = apply_noise(gray(), make_rng(5))
    assert np.array_equal(out[..., 0], out[..., 1])
    assert np.array_equal(out[..., 1], out[..., 2])


def test_clamped_at_both_ends():
    dark  = apply_noise(gray(0), make_rng(9))
    light = apply_noise(gray(255), make_rng(9))
    assert dark.max() <= 8
    assert light.min() >= 247
    assert dark.dtype == light.dtype == np.uint8


def test_zero_strength_is_identity():
    frame = gray(77)
    out = apply_noise(frame, make_rng(1), strength=0.0)
    assert np.array_equal(out, frame)
    assert out is not frame
