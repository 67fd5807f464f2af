#Seed derived key material: the facelet labels and the round-constant table. Both come from the same
#sine PRNG, rand(s) = frac(sin(s) * 10000), fed with plain and position weighted character code sums.

import logging, typing, dataclasses, math
from . import log, alphabet
from .errors import KeyScheduleError

LABEL_POOL = alphabet.ALPHABET + "A"
NUM_LABELS = 54
DEFAULT_ROUND_CONSTANTS = 512

assert len(LABEL_POOL) == NUM_LABELS

def sine_random(s: float) -> float:
    x = math.sin(s) * 10000
    return x - math.floor(x)

def label_permutation(seed: str) -> typing.List[str]:
    seed_num = sum(alphabet.char_codes(seed))

    def rand() -> float:
        nonlocal seed_num
        r = sine_random(seed_num)
        seed_num += 1
        return r

    #Fisher-Yates shuffle, from the back
    pool = list(LABEL_POOL)
    for i in range(len(pool) - 1, 0, -1):
        j = math.floor(rand() * (i+1))
        pool[i], pool[j] = pool[j], pool[i]

    return pool

def round_constants(seed: str, length: int = DEFAULT_ROUND_CONSTANTS) -> typing.List[int]:
    if length < 0: raise KeyScheduleError(f"round-constant table length must not be negative: {length}")

    s = sum(c * (i+1) for i, c in enumerate(alphabet.char_codes(seed)))
    consts = []
    for i in range(length):
        s += i + 1
        consts.append(math.floor(sine_random(s) * alphabet.SIZE))

    return consts

@dataclasses.dataclass(frozen=True)
class KeySchedule:
    seed: str
    labels: typing.Tuple[str, ...]
    round_constants: typing.Tuple[int, ...]

    @staticmethod
    def derive(seed: str, length: int = DEFAULT_ROUND_CONSTANTS, use_round_constants: bool = True) -> "KeySchedule":
        sched = KeySchedule(seed, tuple(label_permutation(seed)), tuple(round_constants(seed, length if use_round_constants else 0)))
        log.LOGGER.log(logging.DEBUG, f"derived key schedule for seed {seed!r}: labels '{''.join(sched.labels)}', {len(sched.round_constants)} round constants")
        return sched

    def round_constant(self, i: int) -> int:
        #An empty table means the legacy variant without round constants
        if not self.round_constants: return 0
        return self.round_constants[i % len(self.round_constants)]
