import math
import numpy as np
import pytest
from die import (Distribution, RuleMode, SelectionRule, NO_RULE, convolve_counts, ndm,
    describe_pool, describe_rule)

def test_single_die_is_uniform():
    assert convolve_counts([20]) == {i: 1 for i in range(1, 21)}

def test_two_d6():
    counts = ndm(2, 6)
    assert counts[7] == 6
    assert counts[2] == counts[12] == 1
    assert sum(counts.values()) == 36
    assert [counts[t] for t in range(2, 13)] == [1, 2, 3, 4, 5, 6, 5, 4, 3, 2, 1]

def test_mixed_pool():
    # d4 + d6: totals 2..10, plateau of 4 in the middle
    counts = convolve_counts([4, 6])
    assert counts == {2: 1, 3: 2, 4: 3, 5: 4, 6: 4, 7: 4, 8: 3, 9: 2, 10: 1}

def test_order_doesnt_matter():
    assert convolve_counts([4, 10, 6]) == convolve_counts([10, 6, 4])

@pytest.mark.parametrize('pool', [[2], [6, 6, 6], [3, 7, 11], [200]*30])
def test_convolution_range_and_total(pool):
    counts = convolve_counts(pool)
    assert min(counts) == len(pool)
    assert max(counts) == sum(pool)
    assert sum(counts.values()) == math.prod(pool)
    assert all(isinstance(c, int) for c in counts.values())

def test_huge_counts_stay_exact():
    counts = ndm(30, 200)
    # the mode of a symmetric distribution sits in the middle
    assert counts[30*201//2] == max(counts.values())
    assert sum(counts.values()) == 200**30
    assert counts[30] == counts[6000] == 1

def test_distribution_rows():
    d = Distribution({7: 6, 2: 1, 12: 1}, [6, 6])
    assert d.totals == (2, 7, 12)
    assert d.counts == (1, 6, 1)
    assert d.total_outcomes == 36
    rows = list(d)
    assert rows[1] == (7, 6, pytest.approx(6/36))
    assert len(d) == 3

def test_distribution_lookup():
    d = Distribution(ndm(2, 6), [6, 6])
    assert d[7] == pytest.approx(1/6)
    assert d[1] == 0.0
    assert d[13] == 0.0
    assert d.count(7) == 6
    assert d.count(100) == 0

def test_distribution_is_read_only():
    d = Distribution(ndm(1, 6), [6])
    with pytest.raises(ValueError):
        d.probabilities[0] = 1.0

def test_distribution_equality():
    a = Distribution(ndm(3, 6), [6, 6, 6])
    b = Distribution(ndm(3, 6), (6, 6, 6))
    assert a == b
    assert hash(a) == hash(b)
    assert a != Distribution(ndm(3, 6), [6, 6, 6], SelectionRule(RuleMode.KEEP_HIGH, 5))

def test_inactive_rule_is_stored_as_none():
    d = Distribution(ndm(1, 6), [6], SelectionRule(RuleMode.KEEP_HIGH, 0))
    assert d.rule == NO_RULE
    assert d.rule_count == 0

def test_probabilities_of_tiny_counts():
    d = Distribution(ndm(30, 200), [200]*30)
    assert d[30] > 0
    assert np.all(d.probabilities > 0)
    assert np.all(d.probabilities <= 1)
    assert math.isclose(float(np.sum(d.probabilities)), 1.0)

@pytest.mark.parametrize('text,mode', [
    ('keep highest', RuleMode.KEEP_HIGH),
    ('kh', RuleMode.KEEP_HIGH),
    ('keep-high', RuleMode.KEEP_HIGH),
    ('Keep Lowest', RuleMode.KEEP_LOW),
    ('k l', RuleMode.KEEP_LOW),
    ('drop_high', RuleMode.DROP_HIGH),
    ('dh', RuleMode.DROP_HIGH),
    ('drop lowest', RuleMode.DROP_LOW),
    ('dl', RuleMode.DROP_LOW),
    ('none', RuleMode.NONE),
])
def test_parse_rule(text, mode):
    assert SelectionRule.parse(text, 2).mode is mode

def test_parse_bad_rule():
    with pytest.raises(ValueError):
        SelectionRule.parse('keep middle')

@pytest.mark.parametrize('count', [0, -1, 0.5, 0.999, math.inf, math.nan])
def test_rule_needs_positive_finite_count(count):
    assert not SelectionRule(RuleMode.DROP_LOW, count).active

def test_rule_clamps_to_pool():
    assert SelectionRule(RuleMode.KEEP_HIGH, 10).clamped(4) == 4
    assert SelectionRule(RuleMode.KEEP_HIGH, 2).clamped(4) == 2
    assert SelectionRule(RuleMode.KEEP_HIGH, 2.7).clamped(4) == 2

def test_describe_pool():
    assert describe_pool([6, 8, 6]) == '2d6 + 1d8'
    assert describe_pool([20]) == '1d20'
    assert describe_pool([]) == 'No dice'

def test_describe_rule():
    assert describe_rule(SelectionRule(RuleMode.DROP_LOW, 1)) == ' (drop lowest 1)'
    assert describe_rule(NO_RULE) == ''
    assert describe_rule(None) == ''
    d = Distribution(ndm(4, 6), [6]*4, SelectionRule(RuleMode.KEEP_HIGH, 3))
    assert str(d) == '4d6 (keep highest 3)'

def test_count_lookup_on_wide_distribution():
    d = Distribution(convolve_counts([100]*30), (100,)*30)
    assert len(d) == 2971
    assert d.count(30) == 1
    assert d.count(3000) == 1
    assert d.count(31) == 30
    assert d.count(29) == 0
    assert d.count(3001) == 0
    assert sum(d.count(t) for t in d.totals) == 100**30
