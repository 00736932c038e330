import numpy as np
import pytest
from seeded_pcg import EmptyInput, InvalidRange, LengthMismatch, Pcg32Rng


def test_weighted_choice_matches_golden_values() -> None:
    rng = Pcg32Rng(seed=7)
    assert [rng.weighted_choice([1, 2, 3]) for _ in range(10)] == [1, 2, 1, 2, 0, 2, 1, 1, 2, 2]
    assert [rng.weighted_choice([0.5, 0, 1.5], ["x", "y", "z"]) for _ in range(6)] == [
        "z",
        "x",
        "x",
        "x",
        "z",
        "z",
    ]


def test_weighted_choice_frequencies_follow_weights() -> None:
    rng = Pcg32Rng(seed=99)
    draws = 60000
    picks = [rng.weighted_choice([1, 2, 3]) for _ in range(draws)]

    freq = np.bincount(picks, minlength=3) / float(draws)
    np.testing.assert_allclose(freq, [1.0 / 6.0, 2.0 / 6.0, 3.0 / 6.0], atol=0.015)


def test_weighted_choice_returns_items_and_skips_zero_weights() -> None:
    rng = Pcg32Rng(seed=12)
    items = ["north", "east", "south", "west"]
    seen = {rng.weighted_choice([0, 1, 0, 1], items) for _ in range(2000)}
    assert seen == {"east", "west"}


def test_weighted_choice_consumes_exactly_one_draw() -> None:
    rng = Pcg32Rng(seed=5)
    mirror = Pcg32Rng(seed=5)

    rng.weighted_choice([0.2, 0.3, 0.5])
    mirror.next_u32()

    assert rng.next_u32() == mirror.next_u32()


def test_weighted_choice_accepts_numpy_weights() -> None:
    from_list = Pcg32Rng(seed=7).weighted_choice([1.0, 2.0, 3.0])
    from_array = Pcg32Rng(seed=7).weighted_choice(np.array([1.0, 2.0, 3.0]))
    assert from_list == from_array == 1


def test_length_mismatch_is_detected() -> None:
    with pytest.raises(LengthMismatch, match="same length"):
        Pcg32Rng().weighted_choice([1, 2], ["a"])


def test_empty_weights_raise() -> None:
    with pytest.raises(EmptyInput):
        Pcg32Rng().weighted_choice([])


@pytest.mark.parametrize(
    "weights",
    [[0, 0, 0], [1, -1, 2], [1.0, float("nan")], [float("inf"), 1.0], [1.0e308, 1.0e308]],
)
def test_invalid_weights_raise(weights: list[float]) -> None:
    rng = Pcg32Rng(seed=2)
    untouched = Pcg32Rng(seed=2)

    with pytest.raises(InvalidRange):
        rng.weighted_choice(weights)

    assert rng.next_u32() == untouched.next_u32()


def test_rounding_fallback_selects_last_positive_weight(monkeypatch) -> None:
    rng = Pcg32Rng(seed=1)
    # Force the draw onto the total, which no cumulative sum strictly exceeds.
    monkeypatch.setattr(rng, "next_float", lambda bound: bound)

    assert rng.weighted_choice([1, 2, 0]) == 1
    assert rng.weighted_choice([3, 0, 4, 0], ["a", "b", "c", "d"]) == "c"
