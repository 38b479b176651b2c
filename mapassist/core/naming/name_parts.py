"""Split names like ``B3-023`` into a literal prefix and a numeric suffix."""

from __future__ import annotations

import re
from dataclasses import dataclass

_TRAILING_DIGITS = re.compile(r"(.*?)(\d+)\Z", re.DOTALL)


@dataclass(frozen=True)
class NameParts:
    prefix: str
    number: int
    padding_width: int  # 0 = no zero padding

    @classmethod
    def parse(cls, name: str) -> "NameParts | None":
        """Take the maximal trailing digit run; None if the name has none.

        The padding width is only recorded when the run carries a leading
        zero. Decrementing ``C10`` formats ``C9``, while decrementing
        ``B3-023`` keeps the width and formats ``B3-022``.
        """
        m = _TRAILING_DIGITS.match(name)
        if m is None:
            return None
        prefix, digits = m.group(1), m.group(2)
        padding = len(digits) if len(digits) > 1 and digits.startswith("0") else 0
        return cls(prefix, int(digits), padding)

    def format(self, number: int, padding_width: int | None = None) -> str:
        width = self.padding_width if padding_width is None else padding_width
        return f"{self.prefix}{str(number).zfill(width)}"
