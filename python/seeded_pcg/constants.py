"""Fixed-width masks and default PCG32 constants."""

MASK64 = (1 << 64) - 1
MASK32 = (1 << 32) - 1

DEFAULT_STATE = 0x4D595DF4D0F33173
DEFAULT_MULTIPLIER = 6364136223846793005
DEFAULT_INCREMENT = 1442695040888963407

# Output uses the top 5 bits of the pre-advance state as the rotation.
ROTATE_SHIFT = 59
XORSHIFT = 18
OUTPUT_SHIFT = 27

# next_u32() * 2**-32 maps a raw draw onto [0, 1).
U32_TO_UNIT = 2.0**-32
U32_RANGE = 1 << 32
