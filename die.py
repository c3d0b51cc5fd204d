'''Internal math: the distribution value, selection rules and convolution'''
from bisect import bisect_left
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from functools import reduce
from numbers import Real
import math
import re
import numpy as np

class EngineError(Exception):
    '''Base class for every reason a distribution can't be produced.'''

class EmptyPool(EngineError):
    def __init__(self):
        super().__init__('Add at least one die to see the distribution.')

class InvalidDie(EngineError):
    def __init__(self, sides, low: int = 2, high: int|None = 200):
        self.sides = sides
        if high is None:
            super().__init__(f'All dice must have at least {low} side (got {sides}).')
        else:
            super().__init__(f'All dice must have between {low} and {high} sides (got {sides}).')

class PoolTooLarge(EngineError):
    def __init__(self, size: int, limit: int = 30):
        self.size = size
        self.limit = limit
        super().__init__(f"Let's cap it at {limit} dice to keep things readable (got {size}).")

class EnumerationSpaceTooLarge(EngineError):
    def __init__(self, outcomes: int, cap: int):
        self.outcomes = outcomes
        self.cap = cap
        super().__init__(
            f'Keep/drop rules are supported up to {cap:,} outcome combinations '
            f'({outcomes:,} requested). Reduce dice count or sides to apply the rule.')

class RuleMode(Enum):
    NONE = 'none'
    KEEP_HIGH = 'keep-high'
    KEEP_LOW = 'keep-low'
    DROP_HIGH = 'drop-high'
    DROP_LOW = 'drop-low'

    @property
    def label(self) -> str:
        return {
            RuleMode.NONE: '',
            RuleMode.KEEP_HIGH: 'keep highest',
            RuleMode.KEEP_LOW: 'keep lowest',
            RuleMode.DROP_HIGH: 'drop highest',
            RuleMode.DROP_LOW: 'drop lowest',
        }[self]

_MODE_RE = re.compile(r'(k|keep|d|drop) ?(h|high|highest|l|low|lowest)')

@dataclass(frozen=True)
class SelectionRule:
    '''
    Which sub-run of the sorted roll gets summed.
    mode: A RuleMode
    count: How many dice are kept or dropped. Clamped to the pool size when applied,
           and a count that isn't a finite number of at least 1 switches the rule off.
           Fractional counts are truncated.
    '''
    mode: RuleMode = RuleMode.NONE
    count: float = 0

    @property
    def active(self) -> bool:
        return (self.mode is not RuleMode.NONE and isinstance(self.count, Real)
                and math.isfinite(self.count) and self.count >= 1)

    def clamped(self, n: int) -> int:
        '''The number of dice this rule keeps or drops out of a roll of n dice.'''
        return min(int(self.count), n)

    @classmethod
    def parse(cls, mode: str, count: float = 1) -> 'SelectionRule':
        '''
        Builds a rule from text. "keep highest", "keep-high", "kh", "Drop Lowest", "dl"
        and so on all work, as does "none".
        Raises ValueError for anything else.
        '''
        text = re.sub(r'[\s_\-]+', ' ', mode.strip().lower())
        if text in ('', 'none'):
            return cls()
        match = _MODE_RE.fullmatch(text)
        if not match:
            raise ValueError(f'Unknown keep/drop rule: {mode!r}')
        keep = match.group(1)[0] == 'k'
        high = match.group(2)[0] == 'h'
        if keep:
            rule_mode = RuleMode.KEEP_HIGH if high else RuleMode.KEEP_LOW
        else:
            rule_mode = RuleMode.DROP_HIGH if high else RuleMode.DROP_LOW
        return cls(rule_mode, count)

NO_RULE = SelectionRule()

class Distribution:
    '''
    The exact distribution of the total of a dice pool, possibly after a keep/drop rule.
    Instances are values: they're computed fresh, never modified, and compare by contents.

    Initialization parameters:
    counts: A mapping from total to the number of raw outcomes giving that total.
    pool: The side counts of the dice that were rolled.
    rule (optional): The SelectionRule that was applied. Inactive rules are stored as NO_RULE.
    '''
    def __init__(self, counts: dict[int, int], pool, rule: SelectionRule|None = None):
        self.pool: tuple[int, ...] = tuple(int(sides) for sides in pool)
        if rule is None or not rule.active:
            rule = NO_RULE
        self.rule: SelectionRule = rule
        self.total_outcomes: int = math.prod(self.pool)
        items = sorted((int(total), int(count)) for total, count in counts.items() if count)
        self.totals: tuple[int, ...] = tuple(total for total, _ in items)
        self.counts: tuple[int, ...] = tuple(count for _, count in items)
        # int / int is correctly rounded even when the counts don't fit in a float
        self.probabilities: np.ndarray = np.array(
            [count / self.total_outcomes for count in self.counts], dtype=float)
        self.probabilities.flags.writeable = False

    @property
    def rule_count(self) -> int:
        return int(self.rule.count) if self.rule.active else 0

    def rows(self):
        '''Yields (total, count, probability) triples in ascending order of total.'''
        for total, count, p in zip(self.totals, self.counts, self.probabilities):
            yield total, count, float(p)

    def __iter__(self):
        return self.rows()

    def __len__(self) -> int:
        return len(self.totals)

    def __getitem__(self, total: int) -> float:
        '''The probability of total, 0.0 if it can't be rolled.'''
        lo = bisect_left(self.totals, total)
        if lo < len(self.totals) and self.totals[lo] == total:
            return float(self.probabilities[lo])
        return 0.0

    def count(self, total: int) -> int:
        '''The number of raw outcomes giving total.'''
        i = bisect_left(self.totals, total)
        if i < len(self.totals) and self.totals[i] == total:
            return self.counts[i]
        return 0

    def __eq__(self, other) -> bool:
        if self is other:
            return True
        if not isinstance(other, Distribution):
            return NotImplemented
        return (self.pool == other.pool and self.rule == other.rule
                and self.totals == other.totals and self.counts == other.counts)

    def __hash__(self) -> int:
        return hash((self.pool, self.rule, self.totals, self.counts))

    def __repr__(self) -> str:
        return f'Distribution({dict(zip(self.totals, self.counts))}, {self.pool}, {self.rule})'

    def __str__(self) -> str:
        return describe_pool(self.pool) + describe_rule(self.rule)

def describe_pool(pool) -> str:
    '''
    Groups equal dice, smallest first.
    Ex: describe_pool([6, 8, 6]) returns "2d6 + 1d8".
    '''
    if not len(pool):
        return 'No dice'
    counts = Counter(int(sides) for sides in pool)
    return ' + '.join(f'{counts[sides]}d{sides}' for sides in sorted(counts))

def describe_rule(rule: SelectionRule|None) -> str:
    '''Returns a suffix like " (drop lowest 1)", or "" if the rule does nothing.'''
    if rule is None or not rule.active:
        return ''
    return f' ({rule.mode.label} {int(rule.count)})'

def _add_die(state: tuple[int, np.ndarray], sides: int) -> tuple[int, np.ndarray]:
    '''
    Internal function, one step of the convolution fold.
    state: (start, arr) where arr[x-start] is the number of ways to reach partial sum x.
    sides: The side count of the next die.
    Returns a new (start, arr) pair. The input isn't modified.
    '''
    start, arr = state
    # This is equivalent to
    # out = {}
    # for partial, count in state:
    #     for face in 1..sides:
    #         out[partial+face] += count
    # but each new entry is a window sum over the old array, so we take
    # differences of a running total instead of looping over faces.
    # dtype=object keeps the counts as exact Python integers.
    n = len(arr) + sides - 1
    padded = np.concatenate([arr, np.zeros(sides-1, dtype=object)])
    running = np.concatenate([np.zeros(sides, dtype=object), np.cumsum(padded)])
    return start + 1, running[sides:] - running[:n]

def convolve_counts(pool) -> dict[int, int]:
    '''
    Returns the exact sum distribution of pool with no rule applied, as a dict
    mapping each attainable total to its number of raw outcomes.
    pool: A sequence of positive integer side counts.
    '''
    initial = (0, np.array([1], dtype=object))
    start, arr = reduce(_add_die, (int(sides) for sides in pool), initial)
    return {start + i: int(count) for i, count in enumerate(arr) if count}

def ndm(n: int, m: int) -> dict[int, int]:
    '''
    Returns the counts of ndm, ie ndm(3, 6) gives the distribution of 3d6.
    n: A positive integer
    m: A positive integer
    '''
    return convolve_counts([m]*n)
