"""Grouped statistics over people who have finished their journey.

Buckets are keyed by (education, sex, ses).  For each one we report:

  count          people matching all three keys
  count_in_bar   people matching (education, sex), any status
  percent_above  share of the bar with a strictly higher status index
  percent        this bucket's share of its bar

An empty bar reports 0 for both ratios: the denominator falls back to 1, so
0 / 1 rather than NaN.  Treat that as a display convention, not a guarantee
about the underlying rates.
"""
from collections import namedtuple

import numpy as np

AggregateBucket = namedtuple(
    "AggregateBucket",
    ["education", "sex", "ses", "count", "count_in_bar", "percent_above", "percent"],
)


def bucket_counts(education, sex, ses, n_outcomes, n_sexes, n_ses):
    """Count arrivals into a (n_outcomes, n_sexes, n_ses) array in one bincount pass."""
    education = np.asarray(education, dtype=np.int64)
    sex = np.asarray(sex, dtype=np.int64)
    ses = np.asarray(ses, dtype=np.int64)
    flat = (education * n_sexes + sex) * n_ses + ses
    counts = np.bincount(flat, minlength=n_outcomes * n_sexes * n_ses)
    return counts.reshape(n_outcomes, n_sexes, n_ses)


def aggregate(education, sex, ses, n_outcomes, n_sexes, n_ses):
    """Return one AggregateBucket per (education, sex, ses), empty buckets included.

    Order is education-major, then sex, then ses, which is the order the
    ending bars are drawn in.
    """
    counts = bucket_counts(education, sex, ses, n_outcomes, n_sexes, n_ses)
    in_bar = counts.sum(axis=2)                          # shape: (K, sexes)
    # people with a higher status = bar total minus everyone at or below this status
    above = in_bar[:, :, None] - np.cumsum(counts, axis=2)
    safe_in_bar = np.where(in_bar > 0, in_bar, 1)[:, :, None]
    percent_above = above / safe_in_bar
    percent = counts / safe_in_bar

    buckets = []
    for e in range(n_outcomes):
        for x in range(n_sexes):
            for s in range(n_ses):
                buckets.append(AggregateBucket(
                    education=e,
                    sex=x,
                    ses=s,
                    count=int(counts[e, x, s]),
                    count_in_bar=int(in_bar[e, x]),
                    percent_above=float(percent_above[e, x, s]),
                    percent=float(percent[e, x, s]),
                ))
    return buckets
