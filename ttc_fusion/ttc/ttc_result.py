"""
Result type shared by the range and visual TTC estimators.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TTCStatus(Enum):
    """Outcome of a TTC estimate."""
    OK            = "OK"
    INDETERMINATE = "INDETERMINATE"   # zero closing rate, TTC is infinite
    UNAVAILABLE   = "UNAVAILABLE"     # not enough data for this region


@dataclass(frozen=True)
class TTCResult:
    """
    Attributes:
        status:  See TTCStatus.
        value:   TTC in seconds for OK (may be negative), ``inf`` for
                 INDETERMINATE, None for UNAVAILABLE.
        reason:  Short human-readable explanation for non-OK results.
        samples: Number of points / distance ratios the estimate used.
    """
    status:  TTCStatus
    value:   Optional[float] = None
    reason:  str = ""
    samples: int = 0

    @classmethod
    def ok(cls, value: float, samples: int = 0) -> 'TTCResult':
        return cls(TTCStatus.OK, float(value), "", samples)

    @classmethod
    def indeterminate(cls, reason: str, samples: int = 0) -> 'TTCResult':
        return cls(TTCStatus.INDETERMINATE, math.inf, reason, samples)

    @classmethod
    def unavailable(cls, reason: str, samples: int = 0) -> 'TTCResult':
        return cls(TTCStatus.UNAVAILABLE, None, reason, samples)

    @property
    def is_valid(self) -> bool:
        return self.status == TTCStatus.OK

    def to_dict(self) -> dict:
        """JSON-friendly representation (``inf`` is written as the string "inf")."""
        value = self.value
        if value is not None and math.isinf(value):
            value = "inf" if value > 0 else "-inf"
        return {
            'status': self.status.value,
            'value': value,
            'reason': self.reason,
            'samples': self.samples,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'TTCResult':
        value = data.get('value')
        if isinstance(value, str):
            value = float(value)
        return cls(
            status=TTCStatus(data['status']),
            value=value,
            reason=data.get('reason', ""),
            samples=data.get('samples', 0),
        )
