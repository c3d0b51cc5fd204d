'''User-facing functions'''
from numbers import Integral
import logging
import numpy as np
from die import (Distribution, EngineError, EmptyPool, InvalidDie, SelectionRule, NO_RULE,
    convolve_counts)
from drop import MAX_ENUMERATED_OUTCOMES, enumerate_counts

logger = logging.getLogger(__name__)

def compute(pool, rule: SelectionRule|None = None, *,
            max_outcomes: int = MAX_ENUMERATED_OUTCOMES) -> Distribution:
    '''
    Returns the exact distribution of the total of pool after rule.
    Without an active rule the dice are convolved; with one, every raw outcome is
    enumerated. Exactly one of the two is used for any call.
    pool: A non-empty sequence of positive integer side counts. Use pool.check_pool
          first to hold it to the supported ranges.
    rule (optional): A SelectionRule. None, NONE, or a count below 1 or not
          finite all mean "sum every die".
    max_outcomes: The enumeration cap, only used when the rule is active.
    Raises EmptyPool, InvalidDie or EnumerationSpaceTooLarge.
    '''
    pool = tuple(pool)
    if not pool:
        raise EmptyPool()
    for sides in pool:
        if isinstance(sides, bool) or not isinstance(sides, Integral) or sides < 1:
            raise InvalidDie(sides, low=1, high=None)
    if rule is None or not rule.active:
        logger.debug('convolving %s', pool)
        return Distribution(convolve_counts(pool), pool, NO_RULE)
    logger.debug('applying %s to %s by enumeration', rule, pool)
    return Distribution(enumerate_counts(pool, rule, max_outcomes), pool, rule)

def build_distribution(pool, rule: SelectionRule|None = None, *,
                       max_outcomes: int = MAX_ENUMERATED_OUTCOMES) -> Distribution|EngineError:
    '''
    Same as compute, but an EngineError is returned rather than raised, so callers
    can branch on the result type. Nothing partial is ever returned.
    '''
    try:
        return compute(pool, rule, max_outcomes=max_outcomes)
    except EngineError as e:
        return e

def mean(d: Distribution) -> float:
    '''Returns the expected total of d.'''
    x = np.array(d.totals, dtype=float)
    out = float(np.sum(x * d.probabilities))
    if abs(out) < 2**(-53): # values below this are likely rounding artifacts
        out = 0.0
    return out

def var(d: Distribution) -> float:
    '''Returns the variance of d.'''
    x = np.array(d.totals, dtype=float)
    mu = mean(d)
    return max(float(np.sum(d.probabilities * (x-mu)**2)), 0.0)

def sd(d: Distribution) -> float:
    '''Returns the standard deviation of d.'''
    return float(np.sqrt(var(d)))

def value_range(d: Distribution) -> tuple[int, int]:
    '''Returns the lowest and highest attainable totals.'''
    return d.totals[0], d.totals[-1]

def cdf(d: Distribution) -> np.ndarray:
    '''Returns P[total <= x] for every x in d.totals.'''
    return np.cumsum(d.probabilities)
