#!/usr/bin/env python3
'''
Exact distributions of dice pools, with optional keep/drop rules.
This module can be run directly, which starts a REPL where you type things like
"4d6 dl" or "1d6 + 2d8 keep highest 2". It also provides an API of sorts, in the
form of the "handle" function, which allows you to do things like
    d, f = handle('4d6 drop lowest 1')
    f.show()
to get a nice plot.
'''
import argparse
import logging
import re
import sys
import numpy as np
from die import (Distribution, EngineError, PoolTooLarge, SelectionRule, describe_pool,
    describe_rule)
from dice_functions import build_distribution, mean, sd, value_range, cdf
from drop import MAX_ENUMERATED_OUTCOMES
from pool import MAX_POOL_SIZE, check_pool
import dice_strings

__all__ = ['main', 'handle', 'plot', 'table', 'caption', 'summary', 'parse',
           'process_input']

logger = logging.getLogger(__name__)

_TERM = r'(\d*)\s*d\s*(\d+)'
_POOL_RE = re.compile(rf'{_TERM}(?:\s*\+?\s*{_TERM})*')
_RULE_RE = re.compile(r'\s*(keep|drop|k|d)\s*(highest|high|lowest|low|h|l)\s*(\d*)\s*$')

def parse(text: str) -> tuple[tuple[int, ...], SelectionRule]:
    '''
    Turns text like "4d6 dl", "d6 d8 d8 kh2" or "3d6 + 1d4 keep highest 2" into a
    (pool, rule) pair. A rule without a number keeps or drops 1 die.
    Only the syntax is checked here; the pool still has to go through check_pool.
    Raises ValueError for text that isn't a dice expression.
    '''
    text = re.sub(r'\s+', ' ', text.lower()).strip()
    rule = SelectionRule()
    match = _RULE_RE.search(text)
    if match:
        count = int(match.group(3)) if match.group(3) else 1
        rule = SelectionRule.parse(f'{match.group(1)} {match.group(2)}', count)
        text = text[:match.start()].strip()
    if not _POOL_RE.fullmatch(text):
        raise ValueError(f'Not a valid dice expression: {text!r}')
    terms = [(int(n) if n else 1, int(sides)) for n, sides in re.findall(_TERM, text)]
    size = sum(n for n, _ in terms)
    # don't build a million-element tuple just to reject it
    if size > MAX_POOL_SIZE:
        raise PoolTooLarge(size, MAX_POOL_SIZE)
    pool = tuple(sides for n, sides in terms for _ in range(n))
    return pool, rule

def process_input(text: str, max_outcomes: int = MAX_ENUMERATED_OUTCOMES) -> Distribution|EngineError:
    '''
    Parses text, checks the pool, then builds its distribution.
    Returns either a Distribution or the EngineError explaining why there isn't one.
    Raises ValueError if text can't be parsed.
    '''
    try:
        pool, rule = parse(text)
        pool = check_pool(pool)
    except EngineError as e:
        return e
    return build_distribution(pool, rule, max_outcomes=max_outcomes)

def caption(d: Distribution) -> str:
    '''Ex: "3d6 (drop lowest 1): exact probability of totals (3 to 18)."'''
    lo, hi = value_range(d)
    return f'{d}: exact probability of totals ({lo} to {hi}).'

def summary(d: Distribution) -> str:
    '''The dice, mean and range of d, one per line.'''
    lo, hi = value_range(d)
    return '\n'.join((
        f'Dice: {describe_pool(d.pool)}{describe_rule(d.rule)}',
        f'Mean: {mean(d):.2f}  standard deviation: {sd(d):.2f}',
        f'Range: {lo} - {hi}',
    ))

def table(d: Distribution) -> str:
    '''
    Returns a text table with one row per total: the total, how many raw outcomes
    give it and its probability as a percentage, followed by the number of combinations.
    '''
    header = ('Total', 'Outcomes', 'Probability')
    rows = [(str(total), f'{count:,}', f'{p*100:.3f}%') for total, count, p in d.rows()]
    widths = [max(len(row[i]) for row in rows + [header]) for i in range(3)]
    lines = ['  '.join(h.rjust(w) for h, w in zip(header, widths))]
    lines.append('  '.join('-'*w for w in widths))
    for row in rows:
        lines.append('  '.join(cell.rjust(w) for cell, w in zip(row, widths)))
    lines.append(f'Total combinations: {d.total_outcomes:,}')
    return '\n'.join(lines)

def plot(d: Distribution, name: str|None = None) -> 'matplotlib.figure.Figure': # type: ignore
    '''
    Returns a matplotlib figure with the probability of every total, and the
    cumulative probability on a second axis.
    d: A Distribution
    name (optional): The window title, defaults to a description of d.
    '''
    import matplotlib.pyplot as plt
    name = name or str(d)
    fig, ax = plt.subplots()
    if fig.canvas.manager is not None:
        fig.canvas.manager.set_window_title(name)
    ax.set_title('Distribution of ' + name)
    x = np.array(d.totals)
    y = np.asarray(d.probabilities)
    cumulative = cdf(d)
    # For larger supports, we plot differently to reduce clutter.
    threshold_small_heads = 100
    threshold_no_heads = 1000
    if len(y) < threshold_small_heads:
        ax.stem(x, y, label='Probability', basefmt=' ')
    elif len(y) < threshold_no_heads:
        ax.stem(x, y, label='Probability', markerfmt='.', basefmt=' ')
    else:
        ax.plot(x, y, label='Probability', color='tab:blue')
        ax.fill_between(x, y, color='tab:blue', alpha=.5)
    ax.set_xlabel(f'Total ({x[0]} - {x[-1]})')
    ax.tick_params(axis='y', labelcolor='tab:blue')
    ax2 = ax.twinx()
    ax2.set_ylim(-.05, 1.05)
    ax2.plot(x, cumulative, 'tab:red', label='Cumulative')
    ax2.tick_params(axis='y', labelcolor='tab:red')
    fig.legend()
    return fig

def handle(text: str) -> 'tuple[Distribution|None, matplotlib.figure.Figure|None]': # type: ignore
    '''
    text: A dice expression, such as "4d6 dl"
    Returns (d, f) where d is the Distribution of the expression and f is a
    matplotlib figure of it. If no distribution can be built, returns (None, None).
    Ex:
    d, f = handle('4d6 dl')
    f.savefig('4d6dl.png')
    '''
    x = process_input(text)
    if isinstance(x, Distribution):
        return x, plot(x, text)
    logger.info('nothing to plot for %r: %s', text, x)
    return None, None

def report(result: Distribution|EngineError) -> str:
    '''Everything that gets printed for one input. Errors replace the whole output.'''
    if isinstance(result, EngineError):
        return str(result)
    return '\n'.join((caption(result), summary(result), '', table(result)))

def _run_once(text: str, args: argparse.Namespace) -> None:
    '''Handles one input. Only unparseable text is caught, everything else propagates.'''
    try:
        result = process_input(text, args.max_outcomes)
    except ValueError as e:
        print(f'Not a valid input. {e}')
        return
    print(report(result))
    if isinstance(result, Distribution) and not args.no_plot:
        import matplotlib.pyplot as plt
        plot(result, text)
        print('Plotting in other window. That window must be closed to continue.')
        plt.show()

def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='dice',
        description='Exact distributions of dice pools with keep/drop rules.')
    parser.add_argument('expression', nargs='*',
                        help='for example "4d6 dl". Starts a REPL if omitted.')
    parser.add_argument('--max-outcomes', type=int, default=MAX_ENUMERATED_OUTCOMES,
                        help='largest number of raw outcomes a keep/drop rule will enumerate')
    parser.add_argument('--no-plot', action='store_true', help="don't open a plot window")
    parser.add_argument('-v', '--verbose', action='store_true', help='log debug output')
    return parser

def main(argv: list[str]|None = None) -> int:
    '''
    Starts an interactive session where the user can type in expressions
    such as 4d6 dl, and the result will be printed and plotted. If an
    expression is given on the command line, handles only that one.
    '''
    args = make_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')
    if args.expression:
        _run_once(' '.join(args.expression), args)
        return 0
    print('Getting started: Try typing 3d6 or 4d6 drop lowest.')
    while True:
        print('\nEnter q to quit. Enter help for options.')
        try:
            text = input('>>').lower().strip()
        except EOFError:
            break
        text = re.sub(r'\s+', ' ', text)
        if text in ('q', 'quit', 'exit'):
            break
        if text in ('?', 'h', 'help'):
            print(dice_strings.help_string)
            continue
        if text in ('rules', 'help rules', 'h rules', '? rules'):
            print(dice_strings.rules_help)
            continue
        if len(text) > 0:
            _run_once(text, args)
    return 0

if __name__ == '__main__':
    print('\33]0;Dice Pool\a', end='')
    sys.stdout.flush()
    sys.exit(main())
