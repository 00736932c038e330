from collections import Counter

import numpy as np
import pytest
from seeded_pcg import InvalidRange, Pcg32Rng

SEED7_PERMUTATION_10 = [7, 0, 3, 2, 8, 9, 1, 5, 4, 6]


def test_sample_permutation_matches_golden_values() -> None:
    rng = Pcg32Rng(seed=7)
    assert rng.sample_permutation(10) == SEED7_PERMUTATION_10
    assert rng.sample_permutation(["a", "b", "c", "d", "e"]) == ["d", "a", "e", "b", "c"]

    assert Pcg32Rng().sample_permutation(5) == [2, 1, 3, 4, 0]


def test_shuffle_matches_golden_values() -> None:
    values = list(range(10))
    Pcg32Rng(seed=7).shuffle(values)
    assert values == SEED7_PERMUTATION_10


def test_sample_permutation_does_not_mutate_input() -> None:
    data = [5, 3, 3, 9, 1, 1, 1, 0]
    before = list(data)

    result = Pcg32Rng(seed=4).sample_permutation(data)

    assert data == before
    assert result is not data
    assert Counter(result) == Counter(before)


@pytest.mark.parametrize("length", [2, 3, 7, 25, 64])
def test_shuffle_and_sample_permutation_agree(length: int) -> None:
    data = [f"item-{i % 5}" for i in range(length)]
    in_place = list(data)

    expected = Pcg32Rng(seed=length).sample_permutation(data)
    Pcg32Rng(seed=length).shuffle(in_place)

    assert in_place == expected
    assert Counter(in_place) == Counter(data)


@pytest.mark.parametrize("length", [0, 1, 2, 9, 40])
def test_permutation_consumes_length_minus_one_draws(length: int) -> None:
    rng = Pcg32Rng(seed=99)
    mirror = Pcg32Rng(seed=99)

    rng.sample_permutation(length)
    for _ in range(max(0, length - 1)):
        mirror.next_u32()

    assert rng.next_u32() == mirror.next_u32()


def test_degenerate_inputs() -> None:
    rng = Pcg32Rng(seed=1)
    assert rng.sample_permutation(0) == []
    assert rng.sample_permutation([]) == []
    assert rng.sample_permutation(["only"]) == ["only"]
    assert rng.sample_permutation(1) == [0]

    empty: list[int] = []
    rng.shuffle(empty)
    assert empty == []

    single = ["x"]
    rng.shuffle(single)
    assert single == ["x"]


def test_negative_length_raises() -> None:
    with pytest.raises(InvalidRange):
        Pcg32Rng().sample_permutation(-3)


def test_permutation_accepts_any_sequence() -> None:
    from_tuple = Pcg32Rng(seed=7).sample_permutation(tuple(range(10)))
    from_range = Pcg32Rng(seed=7).sample_permutation(range(10))
    from_numpy_int = Pcg32Rng(seed=7).sample_permutation(np.int64(10))

    assert from_tuple == SEED7_PERMUTATION_10
    assert from_range == SEED7_PERMUTATION_10
    assert from_numpy_int == SEED7_PERMUTATION_10
    assert sorted(Pcg32Rng(seed=2).sample_permutation("pcg32")) == sorted("pcg32")


def test_ndarray_permutation_returns_array_and_keeps_input() -> None:
    arr = np.arange(10, dtype=np.int32)

    result = Pcg32Rng(seed=7).sample_permutation(arr)

    assert isinstance(result, np.ndarray)
    assert result.dtype == np.int32
    np.testing.assert_array_equal(result, SEED7_PERMUTATION_10)
    np.testing.assert_array_equal(arr, np.arange(10, dtype=np.int32))


def test_ndarray_shuffle_in_place_permutes_rows() -> None:
    flat = np.arange(10)
    Pcg32Rng(seed=7).shuffle(flat)
    np.testing.assert_array_equal(flat, SEED7_PERMUTATION_10)

    grid = np.arange(12).reshape(6, 2)
    Pcg32Rng(seed=3).shuffle(grid)
    assert grid.shape == (6, 2)
    assert sorted(tuple(row) for row in grid.tolist()) == [
        (0, 1),
        (2, 3),
        (4, 5),
        (6, 7),
        (8, 9),
        (10, 11),
    ]


def test_bytearray_shuffle_in_place() -> None:
    data = bytearray(b"abcdefgh")
    Pcg32Rng(seed=6).shuffle(data)
    assert sorted(data) == sorted(b"abcdefgh")
