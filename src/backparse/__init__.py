"""
A backtracking parser combinator library.

Parsers consume a string or any other sequence of tokens, and produce every
way they matched as a `Result` of `(value, remainder)` derivations. An empty
result means the parser failed.

See the `backparse.general` module for ready-made parsers you can use as examples.

Defining parsers:
```
digit = item().satisfy(str.isdigit).map(int)
add_op = operations((item().equals("+"), operator.add))
sum_ = digit.chain(add_op)

expr = lazy(lambda self: digit.or_(self.between(item().equals("("), item().equals(")"))))
```

Using parsers:
```
result = sum_.parse("1+2+3")

if result:
    value, remainder = result.first()   # 6, ""
else:
    ... # failed
```

Debugging:
```
import logging
logging.basicConfig(level=logging.DEBUG)    # logs every parser that's tried
```
"""

import backparse.const as const
import backparse.main
from backparse.const import Accumulate
from backparse.main import (
    MISSING,
    GrammarError,
    Derivation,
    Result,
    Parser,
    Unit,
    Zero,
    Item,
    Negation,
    Bind,
    Choice,
    Many,
    Lazy,
    LazyCell,
    as_parser,
    as_strategy,
    accumulator,
    to_list,
    adapt_callback,
    result,
    zero,
    item,
    lazy,
    operations,
    default_junk,
)
import backparse.general as general
