"""Cross-correlation scoring over flat recorded value vectors."""

from __future__ import annotations

from typing import Sequence

import numpy as np


class CrossCorrelationScorer:
    """Scores a candidate vector against training vectors by correlation.

    Vectors may differ in length. The covariance term only sums over the
    overlapping prefix, while each variance term sums over its own vector.
    """

    def correlate(
        self, candidate: Sequence[float], templates: Sequence[Sequence[float]]
    ) -> float:
        """Mean correlation of ``candidate`` with every template.

        Returns NaN when a variance term is zero or there are no templates;
        callers decide how to treat that.
        """
        if len(templates) == 0:
            return float("nan")

        x = np.asarray(candidate, dtype=np.float64).ravel()
        if len(x) == 0:
            return float("nan")
        dx = x - x.mean()
        sx = float(np.dot(dx, dx))

        total = 0.0
        with np.errstate(divide="ignore", invalid="ignore"):
            for template in templates:
                y = np.asarray(template, dtype=np.float64).ravel()
                if len(y) == 0:
                    return float("nan")
                dy = y - y.mean()
                sy = float(np.dot(dy, dy))
                k = min(len(dx), len(dy))
                sxy = float(np.dot(dx[:k], dy[:k]))
                total += float(np.float64(sxy) / np.sqrt(np.float64(sx * sy)))

        return total / len(templates)
