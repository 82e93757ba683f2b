import random
from typing import Protocol

# Floor applied when jitter would produce an already-expired entry.
MIN_TTL_SECONDS = 1.0


class RandomSource(Protocol):
    def random(self) -> float: ...


def jittered(
    base: float,
    ratio: float,
    minimum: float | None = None,
    rng: RandomSource | None = None,
) -> float:
    """
    Spread ``base`` uniformly over ``[base - ratio*base, base + ratio*base]``.

    Entries written around the same moment (cold start, deploy) would
    otherwise expire together and stampede the database.

    Args:
        base: TTL in seconds
        ratio: Jitter ratio, clamped to 1.0
        minimum: Lower bound for the result, if given
        rng: Object with a ``random()`` method; module-level generator if None

    Returns:
        TTL in seconds, always > 0 unless ``base`` or ``ratio`` is degenerate,
        in which case ``base`` is returned unchanged
    """
    if base <= 0 or ratio <= 0:
        return base
    ratio = min(ratio, 1.0)

    r = rng.random() if rng is not None else random.random()
    out = base + (r * 2 - 1) * ratio * base

    if minimum is not None and out < minimum:
        out = minimum
    if out <= 0:
        out = MIN_TTL_SECONDS
    return out
