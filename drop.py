'''Keep/drop rules, computed by enumerating every raw outcome'''
import logging
import math
import numpy as np
from die import (Distribution, EmptyPool, EnumerationSpaceTooLarge, InvalidDie,
    RuleMode, SelectionRule)

logger = logging.getLogger(__name__)

# Enumeration is exponential in the pool size, so anything bigger is refused up front.
MAX_ENUMERATED_OUTCOMES = 300_000

def apply_rule(rolls, rule: SelectionRule) -> int|np.ndarray:
    '''
    Sums the part of a sorted roll that rule selects.
    rolls: Face values sorted ascending. Either a single roll (1-D) or one roll
           per row (2-D numpy array), in which case every row is handled at once.
    rule: A SelectionRule. Its count is clamped to the number of dice.
    Returns an int for a single roll, otherwise an array with one total per row.
    '''
    rolls = np.asarray(rolls)
    n = rolls.shape[-1]
    if not rule.active:
        kept = rolls
    else:
        c = rule.clamped(n)
        if rule.mode is RuleMode.KEEP_HIGH:
            kept = rolls[..., n-c:]
        elif rule.mode is RuleMode.KEEP_LOW:
            kept = rolls[..., :c]
        elif rule.mode is RuleMode.DROP_HIGH:
            kept = rolls[..., :n-c]
        elif rule.mode is RuleMode.DROP_LOW:
            kept = rolls[..., c:]
        else:
            raise ValueError(f'Unhandled rule mode {rule.mode}')
    totals = kept.sum(axis=-1, dtype=np.int64)
    if rolls.ndim == 1:
        return int(totals)
    return totals

def outcome_grid(pool) -> np.ndarray:
    '''
    Returns every raw outcome of pool, one row per outcome and one column per die.
    Faces run from 1 to sides. The caller is responsible for keeping this small.
    '''
    pool = tuple(int(sides) for sides in pool)
    # Outcome number i, written in mixed radix with one digit per die, gives the
    # face of each die. Unlike np.indices this doesn't need an axis per die.
    idx = np.arange(math.prod(pool), dtype=np.int64)
    grid = np.empty((len(idx), len(pool)), dtype=np.int32)
    stride = 1
    for i in range(len(pool)-1, -1, -1):
        grid[:, i] = (idx // stride) % pool[i] + 1
        stride *= pool[i]
    return grid

def enumerate_counts(pool, rule: SelectionRule,
                     max_outcomes: int = MAX_ENUMERATED_OUTCOMES) -> dict[int, int]:
    '''
    Returns the exact distribution of pool's total under rule as a dict mapping
    each total to its number of raw outcomes.
    pool: A non-empty sequence of positive integer side counts.
    rule: A SelectionRule.
    max_outcomes: The largest number of raw outcomes that will be enumerated.
    Raises EnumerationSpaceTooLarge before doing any work if the pool is too big.
    '''
    pool = tuple(int(sides) for sides in pool)
    if not pool:
        raise EmptyPool()
    # exact integer product, so a huge pool can't overflow past the check
    outcomes = math.prod(pool)
    if outcomes > max_outcomes:
        logger.warning('refusing to enumerate %d outcomes (cap %d)', outcomes, max_outcomes)
        raise EnumerationSpaceTooLarge(outcomes, max_outcomes)
    logger.debug('enumerating %d outcomes of %s', outcomes, pool)
    # This is equivalent to
    # for roll in product(range(1, a+1), range(1, b+1), ...):
    #     counts[apply_rule(sorted(roll), rule)] += 1
    # but vectorized. Equal faces are interchangeable, so plain sorting is enough.
    rolls = np.sort(outcome_grid(pool), axis=1)
    totals, counts = np.unique(apply_rule(rolls, rule), return_counts=True)
    return {int(total): int(count) for total, count in zip(totals, counts)}

def drop(count: int, faces: int, mode: str, n: int = 1,
         max_outcomes: int = MAX_ENUMERATED_OUTCOMES) -> Distribution:
    '''
    Calculates the distribution of rolling count dice, where each die has faces sides,
    then keeping or dropping n of them. For example drop(4, 6, 'dl') is 4d6 drop lowest 1.
    count: int, the number of dice
    faces: int, the number of faces on each die
    mode: string. Any combination of "keep"/"drop" and "highest"/"lowest", ie
        "keep highest" is valid. You can also abbreviate to "kh", "dl" and so on.
    n: int, the number of dice kept or dropped, depending on mode

    Returns a new Distribution.
    '''
    if faces < 1:
        raise InvalidDie(faces, low=1, high=None)
    pool = (faces,)*count
    rule = SelectionRule.parse(mode, n)
    return Distribution(enumerate_counts(pool, rule, max_outcomes), pool, rule)
