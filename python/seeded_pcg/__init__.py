from .constants import DEFAULT_INCREMENT, DEFAULT_MULTIPLIER, DEFAULT_STATE
from .errors import EmptyInput, InvalidRange, LengthMismatch, RngError
from .pcg32_rng import Pcg32Rng, output_permutation, rotr32

__all__ = [
    "Pcg32Rng",
    "output_permutation",
    "rotr32",
    "RngError",
    "InvalidRange",
    "LengthMismatch",
    "EmptyInput",
    "DEFAULT_STATE",
    "DEFAULT_MULTIPLIER",
    "DEFAULT_INCREMENT",
]
