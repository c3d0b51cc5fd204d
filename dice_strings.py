help_string = '''
Available things:
 dice:
   Write each group of identical dice as NdS, eg 3d6 is three six-sided dice.
   Groups can be separated by spaces or +, eg 2d6 + 1d8 or d4 d6 d8.
   A missing N means 1, so d20 is the same as 1d20.
   Dice need between 2 and 200 sides, and a pool can hold at most 30 dice.

 keep highest, keep lowest, drop highest, drop lowest:
   This gives the distribution of a roll with some of the lowest/highest dice dropped.
   For example, "5d6 drop lowest 2" gives the result of rolling 5d6 and adding up the three
   highest dice.
   You can abbreviate keep highest to kh, drop lowest to dl, etc.
   If no number is specified, as in "5d6dl", it defaults to 1, so that's the same as "5d6dl1".
   Ex: "4d6 kh 3", "4d6 keep highest 3", "4d6kh3", "4d6dl" are all equivalent.

Every result is exact: the table counts how many of the equally likely rolls give each
total. Type "help rules" for how keep/drop rules are computed.'''

rules_help = '''
Without a rule, the dice are added up one at a time, so even 30d200 is quick.

With a keep/drop rule, every possible roll is listed, sorted, and the kept dice are
added up. That's only done for up to 300,000 possible rolls (the product of the side
counts), so 4d20 kh3 works but 6d20 kh3 doesn't. Anything larger is refused rather
than estimated.

Keeping or dropping more dice than the pool has is the same as keeping or dropping
all of them, eg "3d6 kh 5" is just 3d6.'''
