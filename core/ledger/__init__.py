"""
잔고 정합성 (Balance Consistency) 계산 모듈

거래가 계좌 잔고에 미치는 효과를 계산하는 순수 로직.

사용 예시:
```python
from core.ledger import effects_of, reversal_of, combine

deltas = combine(
    reversal_of(old.entry, old.amount) + effects_of(new_entry, new_amount)
)
```
"""

from core.ledger.accumulator import (
    BalanceDelta,
    apply_transfer,
    combine,
    effect,
    effects_of,
    normalize_amount,
    normalize_balance,
    reversal_of,
    reverse,
)

__all__ = [
    "BalanceDelta",
    "effect",
    "apply_transfer",
    "reverse",
    "effects_of",
    "reversal_of",
    "combine",
    "normalize_amount",
    "normalize_balance",
]
