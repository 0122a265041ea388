"""Deterministic hash-seeded random sampler.

Every path draws its random numbers from a stream that is a pure function of
(iteration, pixel index, bounce depth). No generator state is shared between
paths or carried across kernel launches, so renders are reproducible and the
order in which paths are processed never changes the result.

The stream is a 32-bit xorshift generator seeded by chaining an integer
mixing hash over the three inputs.

Example:
    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     state = seed_sampler(1, 42, 0)
    ...     state, u = next_float(state)
    ...     return u
"""

import taichi as ti

# Depth slot reserved for camera samples (jitter, lens, time)
CAMERA_STREAM = 1023

# Substitute seed for the single fixed point of xorshift
_ZERO_STATE_SEED = 0x2545F491

# 1 / 2^24, maps the top 24 bits of the state to [0, 1)
_INV_2_24 = 1.0 / 16777216.0


@ti.func
def wang_hash(value: ti.u32) -> ti.u32:
    """Mix the bits of a 32-bit integer.

    Args:
        value: The integer to hash.

    Returns:
        A well-distributed 32-bit hash of value.
    """
    a = value
    a = (a ^ ti.u32(61)) ^ ti.bit_shr(a, 16)
    a = a * ti.u32(9)
    a = a ^ ti.bit_shr(a, 4)
    a = a * ti.u32(0x27D4EB2D)
    a = a ^ ti.bit_shr(a, 15)
    return a


@ti.func
def seed_sampler(iteration: ti.i32, index: ti.i32, depth: ti.i32) -> ti.u32:
    """Seed a sample stream for one path at one bounce.

    Args:
        iteration: The iteration (sample) number.
        index: The pixel index owning the path.
        depth: The bounce depth, or CAMERA_STREAM for camera samples.

    Returns:
        The initial generator state (never zero).
    """
    h = wang_hash(ti.cast(depth, ti.u32))
    h = wang_hash(h ^ ti.cast(index, ti.u32))
    h = wang_hash(h ^ ti.cast(iteration, ti.u32))
    if h == ti.u32(0):
        h = ti.u32(_ZERO_STATE_SEED)
    return h


@ti.func
def next_state(state: ti.u32) -> ti.u32:
    """Advance a xorshift32 generator by one step."""
    x = state
    x = x ^ (x << 13)
    x = x ^ ti.bit_shr(x, 17)
    x = x ^ (x << 5)
    return x


@ti.func
def next_float(state: ti.u32):
    """Draw a uniform float from the stream.

    Args:
        state: The current generator state.

    Returns:
        A tuple (new_state, u) with u uniformly distributed in [0, 1).
    """
    new_state = next_state(state)
    u = ti.cast(ti.bit_shr(new_state, 8), ti.f32) * _INV_2_24
    return new_state, u


@ti.func
def next_float2(state: ti.u32):
    """Draw two uniform floats from the stream.

    Returns:
        A tuple (new_state, u1, u2).
    """
    s1, u1 = next_float(state)
    s2, u2 = next_float(s1)
    return s2, u1, u2
