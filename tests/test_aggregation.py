import math
import os
import sys
import unittest

import numpy as np

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from src.aggregation import aggregate, bucket_counts

K, SEXES, S = 6, 2, 3


def by_key(buckets):
    return {(b.education, b.sex, b.ses): b for b in buckets}


class TestAggregate(unittest.TestCase):

    def test_empty_population(self):
        """No arrivals yet: all 36 buckets exist and report zeros, never NaN."""
        buckets = aggregate([], [], [], K, SEXES, S)
        self.assertEqual(len(buckets), K * SEXES * S)
        for b in buckets:
            self.assertEqual(b.count, 0)
            self.assertEqual(b.count_in_bar, 0)
            self.assertEqual(b.percent, 0.0)
            self.assertEqual(b.percent_above, 0.0)
            self.assertFalse(math.isnan(b.percent))

    def test_order(self):
        """education-major, then sex, then ses."""
        keys = [(b.education, b.sex, b.ses) for b in aggregate([], [], [], K, SEXES, S)]
        expected = [(e, x, s) for e in range(K) for x in range(SEXES) for s in range(S)]
        self.assertEqual(keys, expected)

    def test_bar_stats(self):
        # Bachelor's (5), female (0): statuses low, low, middle, high
        education = [5, 5, 5, 5, 1]
        sex = [0, 0, 0, 0, 1]
        ses = [0, 0, 1, 2, 2]
        buckets = by_key(aggregate(education, sex, ses, K, SEXES, S))

        low, mid, high = buckets[(5, 0, 0)], buckets[(5, 0, 1)], buckets[(5, 0, 2)]
        self.assertEqual((low.count, mid.count, high.count), (2, 1, 1))
        for b in (low, mid, high):
            self.assertEqual(b.count_in_bar, 4)
        self.assertAlmostEqual(low.percent, 0.5)
        self.assertAlmostEqual(low.percent_above, 0.5)
        self.assertAlmostEqual(mid.percent, 0.25)
        self.assertAlmostEqual(mid.percent_above, 0.25)
        self.assertAlmostEqual(high.percent_above, 0.0)

        # male High School bar holds only the single high-status person
        self.assertEqual(buckets[(1, 1, 2)].percent, 1.0)
        self.assertEqual(buckets[(1, 1, 0)].percent_above, 1.0)
        # other sex in the same tier stays empty
        self.assertEqual(buckets[(5, 1, 0)].count_in_bar, 0)

    def test_counts_sum_to_bar_total(self):
        rng = np.random.default_rng(9)
        n = 2000
        education = rng.integers(K, size=n)
        sex = rng.integers(SEXES, size=n)
        ses = rng.integers(S, size=n)
        buckets = aggregate(education, sex, ses, K, SEXES, S)

        totals = {}
        for b in buckets:
            totals.setdefault((b.education, b.sex), []).append(b)
        for (e, x), bar in totals.items():
            self.assertEqual(sum(b.count for b in bar), bar[0].count_in_bar)
            if bar[0].count_in_bar:
                self.assertAlmostEqual(sum(b.percent for b in bar), 1.0)
                # stacked segments tile the bar: each one starts where the higher ones end
                for b in bar:
                    above = sum(o.percent for o in bar if o.ses > b.ses)
                    self.assertAlmostEqual(b.percent_above, above)
        self.assertEqual(sum(b.count for b in buckets), n)

    def test_bucket_counts_shape(self):
        counts = bucket_counts(np.array([0, 5], dtype=np.int8), np.array([1, 1], dtype=np.int8),
                               np.array([2, 2], dtype=np.int8), K, SEXES, S)
        self.assertEqual(counts.shape, (K, SEXES, S))
        self.assertEqual(counts[5, 1, 2], 1)
        self.assertEqual(counts.sum(), 2)


if __name__ == '__main__':
    unittest.main()
