"""Digitizer geometry and word-size constants."""

UINT_BITS = 32
UINT_MAX = (1 << UINT_BITS) - 1
UINT_FORMAT = "<I"

N_CHANNELS = 8
N_SAMPLES = 1024
N_GROUPS = 2
N_CHUNKS = 128


def group_mask(group: int) -> int:
    """Return the enable-mask bit for a channel group."""
    if not 0 <= group < UINT_BITS:
        raise ValueError(f"group must be in [0, {UINT_BITS}), got {group}")
    return 1 << group