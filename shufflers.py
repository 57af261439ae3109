from secrets import token_bytes

import numpy as np

from errors import InvalidConfiguration


class StrongShuffler:
    """Sort-by-random-key shuffle with keys drawn from the OS CSPRNG.

    Every slot gets an independent 64-bit key from ``secrets``; the stable
    argsort of the keys is the permutation. Equal keys are resolved by the
    input order, but with 64-bit keys a tie in an 80 card deck happens
    about once in 5e15 shuffles.
    """

    name = "strong"

    def shuffle(self, sequence):
        return self.shuffle_many(sequence, 1)[0]

    def shuffle_many(self, sequence, count):
        deck = np.asarray(sequence)
        size = count * len(deck)
        keys = np.frombuffer(token_bytes(8 * size), dtype=np.uint64).reshape(count, len(deck))
        order = np.argsort(keys, axis=1, kind="stable")
        return deck[order]

    def spawn(self, n):
        # the OS entropy source carries no state to split
        return [self for _ in range(n)]


class FastShuffler:
    """numpy ``Generator`` (PCG64) shuffle.

    Much faster than :class:`StrongShuffler` at hundreds of thousands of
    permutations and reproducible when seeded. Known limitation: PCG64 is a
    general-purpose generator, not a cryptographic one. Its permutations are
    fine for Monte Carlo estimates but carry no uniformity guarantee beyond
    the generator's own statistical quality.
    """

    name = "fast"

    def __init__(self, seed=None):
        self.seed_sequence = seed if isinstance(seed, np.random.SeedSequence) else np.random.SeedSequence(seed)
        self.rng = np.random.default_rng(self.seed_sequence)

    def shuffle(self, sequence):
        return self.rng.permutation(np.asarray(sequence))

    def shuffle_many(self, sequence, count):
        decks = np.tile(np.asarray(sequence), (count, 1))
        return self.rng.permuted(decks, axis=1)

    def spawn(self, n):
        return [FastShuffler(child) for child in self.seed_sequence.spawn(n)]


SHUFFLERS = {
    "fast": FastShuffler,
    "strong": StrongShuffler,
}


def make_shuffler(kind, seed=None):
    match kind:
        case "fast":
            return FastShuffler(seed)
        case "strong":
            return StrongShuffler()
        case _:
            raise InvalidConfiguration(f"Unknown shuffler: {kind!r} (expected one of {', '.join(SHUFFLERS)})")
