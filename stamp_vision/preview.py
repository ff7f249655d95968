"""Request ordering for interactive previews.

Every slider move issues a new render; only the most recent one may reach
the screen. Renders themselves are pure, so a stale result is simply dropped.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Tuple

from .config import ProcessingParams
from .models import ProcessedImage, RawImage
from .pipeline import process


class LatestRequestGate:
    def __init__(self):
        self._counter = itertools.count(1)
        self._latest = 0

    @property
    def latest(self) -> int:
        return self._latest

    def issue(self) -> int:
        self._latest = next(self._counter)
        return self._latest

    def accept(self, token: int) -> bool:
        """True only for the most recently issued token."""
        return token == self._latest


@dataclass(frozen=True)
class PreviewRequest:
    token: int
    image: RawImage
    params: ProcessingParams


def render(request: PreviewRequest) -> Tuple[int, ProcessedImage]:
    return request.token, process(request.image, request.params)
