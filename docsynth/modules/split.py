"""
Deterministic train/test split assignment keyed by output file name.
"""

from enum import Enum
from typing import List, Optional

WIDTH = 256
MASK = WIDTH - 1
CHUNKS = 6
START_DENOM = float(WIDTH ** CHUNKS)
SIGNIFICANCE = float(2 ** 52)
OVERFLOW = SIGNIFICANCE * 2


class Split(str, Enum):
    TRAIN = "train"
    TEST = "test"


def _utf16_units(text: str) -> List[int]:
    """UTF-16 code units of `text`, surrogate pairs included."""
    data = text.encode("utf-16-le", "surrogatepass")
    return [int.from_bytes(data[i:i + 2], "little") for i in range(0, len(data), 2)]


def mix_key(seed: str) -> List[int]:
    """Smear the characters of `seed` into an RC4 key of at most 256 bytes."""
    key: List[int] = []
    smear = 0
    for j, unit in enumerate(_utf16_units(seed)):
        slot = MASK & j
        if slot < len(key):
            smear ^= key[slot] * 19
            key[slot] = MASK & (smear + unit)
        else:
            key.append(MASK & (smear + unit))
    return key


class ARC4SeedRandom:
    """
    Seeded pseudo-random generator, bit-compatible with the default ARC4
    generator of the JavaScript `seedrandom` library (3.x).

    The seed string is mixed into a key, the RC4 key schedule runs over a
    256-byte state and the first 256 keystream bytes are discarded. For a
    given seed the output sequence is fixed forever; split assignments
    depend on it, so the algorithm must not change.
    """

    def __init__(self, seed: str):
        key = mix_key(seed) or [0]
        keylen = len(key)

        s = list(range(WIDTH))
        j = 0
        for i in range(WIDTH):
            t = s[i]
            j = MASK & (j + key[i % keylen] + t)
            s[i] = s[j]
            s[j] = t

        self._s = s
        self._i = 0
        self._j = 0
        self.next_bytes(WIDTH)

    def next_bytes(self, count: int) -> int:
        """Read `count` keystream bytes as one big-endian unsigned integer."""
        s = self._s
        i, j = self._i, self._j
        r = 0
        for _ in range(count):
            i = MASK & (i + 1)
            t = s[i]
            j = MASK & (j + t)
            s[i] = s[j]
            s[j] = t
            r = r * WIDTH + s[MASK & (s[i] + t)]
        self._i, self._j = i, j
        return r

    def int32(self) -> int:
        """Next signed 32-bit integer."""
        r = self.next_bytes(4)
        return r - (1 << 32) if r & 0x80000000 else r

    def random(self) -> float:
        """Next float in [0, 1) with 52 bits of randomness."""
        n = float(self.next_bytes(CHUNKS))
        d = START_DENOM
        x = 0
        while n < SIGNIFICANCE:
            n = (n + x) * WIDTH
            d *= WIDTH
            x = self.next_bytes(1)
        while n >= OVERFLOW:
            n /= 2
            d /= 2
            x >>= 1
        return (n + x) / d


def name_to_unit_interval(name: str) -> float:
    """Map a name to one of 0.0, 0.1, ..., 0.9, stable across runs."""
    return abs(ARC4SeedRandom(name).int32()) % 10 / 10


def validate_ratio(train_ratio: float) -> float:
    if not 0.0 < train_ratio < 1.0:
        raise ValueError(f"Train ratio must be between 0 and 1 (exclusive), got {train_ratio}")
    return float(train_ratio)


class SplitAssigner:
    """
    Assigns output files to the train or test split by name.

    Stateless: the bucket is derived from `name` alone, so regenerating an
    output always places it in the same directory, and consumers can
    recompute the split without replaying generation.
    """

    def __init__(self, train_ratio: float = 0.8):
        self.train_ratio = validate_ratio(train_ratio)

    def assign(self, name: str) -> Split:
        return self(name, self.train_ratio)

    def __call__(self, name: str, train_ratio: Optional[float] = None) -> Split:
        ratio = self.train_ratio if train_ratio is None else validate_ratio(train_ratio)
        return Split.TRAIN if name_to_unit_interval(name) < ratio else Split.TEST
