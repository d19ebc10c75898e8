"""
Coherent Noise - Functional Core

Seeded Perlin-style noise used to displace the line fields.

A table of 4096 pseudo-random values is filled from a linear congruential
generator, then sampled with cosine interpolation over a lattice of
x, y and z cells. Several octaves are summed with decreasing amplitude.
Output is deterministic for a given seed and lies in [0, 1).

All sampling is vectorised: x, y and z may be scalars or numpy arrays
that broadcast against each other.
"""

import numpy as np
from typing import Optional, Union

ArrayLike = Union[float, np.ndarray]

# Lattice layout of the value table
YWRAP_BITS = 4
YWRAP = 1 << YWRAP_BITS
ZWRAP_BITS = 8
ZWRAP = 1 << ZWRAP_BITS
TABLE_SIZE = 4096
TABLE_MASK = TABLE_SIZE - 1

# Numerical Recipes LCG constants
LCG_MODULUS = 4294967296
LCG_MULTIPLIER = 1664525
LCG_INCREMENT = 1013904223


def lcg_table(seed: int, size: int = TABLE_SIZE) -> np.ndarray:
    """Fill a value table from a linear congruential generator

    Args:
        seed: Generator seed (reduced to 32 bits)
        size: Number of values

    Returns:
        float64 array of values in [0, 1)
    """
    z = int(seed) % LCG_MODULUS
    values = np.empty(size, dtype=np.float64)
    for i in range(size):
        z = (LCG_MULTIPLIER * z + LCG_INCREMENT) % LCG_MODULUS
        values[i] = z / LCG_MODULUS
    return values


def scaled_cosine(t: np.ndarray) -> np.ndarray:
    """Cosine ease from 0 to 1 over t in [0, 1]"""
    return 0.5 * (1.0 - np.cos(t * np.pi))


class PerlinNoise:
    """Seeded coherent-noise function

    Usage:
        noise = PerlinNoise(seed=42)
        value = noise(0.3, 1.7)            # float
        grid = noise(xs[None, :], ys[:, None])  # 2D array
    """

    def __init__(self, seed: Optional[int] = None, octaves: int = 4, falloff: float = 0.5):
        """
        Args:
            seed: Table seed; a random seed is drawn when None
            octaves: Number of octaves summed
            falloff: Amplitude multiplier from one octave to the next
        """
        if octaves < 1:
            raise ValueError(f"octaves must be at least 1, got {octaves}")
        if seed is None:
            seed = int(np.random.default_rng().integers(0, LCG_MODULUS))
        self.seed = int(seed) % LCG_MODULUS
        self.octaves = octaves
        self.falloff = falloff
        self.table = lcg_table(self.seed)

    def __call__(self, x: ArrayLike, y: ArrayLike = 0.0, z: ArrayLike = 0.0) -> ArrayLike:
        return self.sample(x, y, z)

    def max_value(self) -> float:
        """Upper bound of the summed octave amplitudes"""
        amplitude = 0.5
        total = 0.0
        for _ in range(self.octaves):
            total += amplitude
            amplitude *= self.falloff
        return total

    def sample(self, x: ArrayLike, y: ArrayLike = 0.0, z: ArrayLike = 0.0) -> ArrayLike:
        """Evaluate the noise at (x, y, z)

        Negative coordinates are mirrored onto their absolute value.

        Returns:
            float for scalar inputs, otherwise an array of the broadcast shape
        """
        x, y, z = np.broadcast_arrays(
            np.abs(np.asarray(x, dtype=np.float64)),
            np.abs(np.asarray(y, dtype=np.float64)),
            np.abs(np.asarray(z, dtype=np.float64)),
        )
        scalar = x.ndim == 0

        xi = np.floor(x).astype(np.int64)
        yi = np.floor(y).astype(np.int64)
        zi = np.floor(z).astype(np.int64)
        xf = x - xi
        yf = y - yi
        zf = z - zi

        table = self.table
        result = np.zeros(x.shape, dtype=np.float64)
        amplitude = 0.5

        for _ in range(self.octaves):
            offset = xi + (yi << YWRAP_BITS) + (zi << ZWRAP_BITS)

            rxf = scaled_cosine(xf)
            ryf = scaled_cosine(yf)

            n1 = table[offset & TABLE_MASK]
            n1 = n1 + rxf * (table[(offset + 1) & TABLE_MASK] - n1)
            n2 = table[(offset + YWRAP) & TABLE_MASK]
            n2 = n2 + rxf * (table[(offset + YWRAP + 1) & TABLE_MASK] - n2)
            n1 = n1 + ryf * (n2 - n1)

            offset = offset + ZWRAP
            n2 = table[offset & TABLE_MASK]
            n2 = n2 + rxf * (table[(offset + 1) & TABLE_MASK] - n2)
            n3 = table[(offset + YWRAP) & TABLE_MASK]
            n3 = n3 + rxf * (table[(offset + YWRAP + 1) & TABLE_MASK] - n3)
            n2 = n2 + ryf * (n3 - n2)

            n1 = n1 + scaled_cosine(zf) * (n2 - n1)

            result += n1 * amplitude
            amplitude *= self.falloff

            # Next octave doubles the frequency
            xi = xi << 1
            xf = xf * 2.0
            yi = yi << 1
            yf = yf * 2.0
            zi = zi << 1
            zf = zf * 2.0

            carry = xf >= 1.0
            xi = xi + carry
            xf = xf - carry
            carry = yf >= 1.0
            yi = yi + carry
            yf = yf - carry
            carry = zf >= 1.0
            zi = zi + carry
            zf = zf - carry

        if scalar:
            return float(result)
        return result
