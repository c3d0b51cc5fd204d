'''Checks dice and pools against the supported ranges before they reach the engine'''
from numbers import Integral
from die import EngineError, EmptyPool, InvalidDie, PoolTooLarge

MIN_SIDES = 2
MAX_SIDES = 200
MAX_POOL_SIZE = 30

def check_die(sides) -> int:
    '''
    Raises InvalidDie unless sides is an integer between MIN_SIDES and MAX_SIDES inclusive.
    Returns sides as an int.
    '''
    if isinstance(sides, bool) or not isinstance(sides, Integral):
        raise InvalidDie(sides, MIN_SIDES, MAX_SIDES)
    if sides < MIN_SIDES or sides > MAX_SIDES:
        raise InvalidDie(sides, MIN_SIDES, MAX_SIDES)
    return int(sides)

def check_pool(pool, new_die=None) -> tuple[int, ...]:
    '''
    Checks the pool that would result from adding new_die (if given) to pool.
    Nothing is modified: the resulting pool is returned as a new tuple.
    Bad dice are reported before pool size, so a pool of 31 d1s gives InvalidDie.
    pool: A sequence of side counts
    new_die (optional): The side count of a die about to be added
    Raises EmptyPool, InvalidDie or PoolTooLarge.
    '''
    candidate = tuple(pool) if new_die is None else (*pool, new_die)
    if not candidate:
        raise EmptyPool()
    checked = tuple(check_die(sides) for sides in candidate)
    if len(checked) > MAX_POOL_SIZE:
        raise PoolTooLarge(len(checked), MAX_POOL_SIZE)
    return checked

def validate_pool(pool, new_die=None) -> EngineError|None:
    '''Like check_pool, but returns the failure instead of raising it. None means valid.'''
    try:
        check_pool(pool, new_die)
    except EngineError as e:
        return e
    return None

def add_die(pool, sides) -> tuple[int, ...]:
    '''Returns pool with a sides-sided die appended, or raises like check_pool.'''
    return check_pool(pool, sides)

def remove_die(pool, index: int) -> tuple[int, ...]:
    '''Returns pool without the die at index. Raises IndexError for a bad index.'''
    pool = tuple(pool)
    if not -len(pool) <= index < len(pool):
        raise IndexError(f'No die at position {index}')
    index %= len(pool)
    return pool[:index] + pool[index+1:]
