import math

import numpy as np


class MalformedInputError(ValueError):
    """A dataset row is missing a field (or carries a non-numeric percentage)."""


class UnknownGroupError(KeyError):
    """Sampling was requested for a demographic group the table was never built with."""


def group_key(sex, ses):
    """Build the lookup key for a demographic group, e.g. "female--middle"."""
    return "--".join([sex, ses])


class ProbabilityTable:
    """
    Per-group cumulative outcome distribution, built once from survey rows.

    Each entry is a non-decreasing numpy array with one value per outcome
    category, the last value pinned to exactly 1.0.
    """

    def __init__(self, outcomes, cumulative):
        self.outcomes = list(outcomes)
        self._cumulative = {}
        for key, seq in cumulative.items():
            arr = np.array(seq, dtype=np.float64)
            arr.setflags(write=False)
            self._cumulative[key] = arr

    @classmethod
    def build(cls, rows, outcomes):
        """Stack each row's percentages into cumulative probabilities.

        Percentages are divided by 100 and summed in the canonical outcome
        order. Rounding drift in the source data is absorbed by forcing the
        final entry to 1.0. A later row for the same group replaces an
        earlier one.
        """
        cumulative = {}
        for i, row in enumerate(rows):
            for field in ("sex", "ses"):
                if field not in row:
                    raise MalformedInputError(f"Row {i} is missing '{field}'.")
                if not isinstance(row[field], str):
                    raise MalformedInputError(
                        f"Row {i}: '{field}' must be a string, got {row[field]!r}.")
            key = group_key(row["sex"], row["ses"])

            stacked = []
            running = 0.0
            for j, name in enumerate(outcomes):
                if name not in row:
                    raise MalformedInputError(f"Row {i} ({key}) is missing '{name}'.")
                try:
                    value = float(row[name])
                except (TypeError, ValueError) as e:
                    raise MalformedInputError(
                        f"Row {i} ({key}): '{name}' is not a number ({row[name]!r}).") from e
                if not math.isfinite(value):
                    raise MalformedInputError(f"Row {i} ({key}): '{name}' is not finite ({value!r}).")
                running += value / 100.0
                if j == len(outcomes) - 1:
                    stacked.append(1.0)
                else:
                    stacked.append(running)
            # Guard against negative or over-100 entries leaving the sequence unsorted
            cumulative[key] = np.maximum.accumulate(np.clip(stacked, 0.0, 1.0))
        return cls(outcomes, cumulative)

    # ---------------------------------------------------------------------- #
    #  Lookup                                                                 #
    # ---------------------------------------------------------------------- #

    def __len__(self):
        return len(self._cumulative)

    def has_group(self, key):
        return key in self._cumulative

    __contains__ = has_group

    @property
    def groups(self):
        return list(self._cumulative)

    def cumulative(self, key):
        try:
            return self._cumulative[key]
        except KeyError:
            raise UnknownGroupError(key) from None

    def sample(self, key, u):
        """Return the index of the first cumulative entry >= u.

        u must be a uniform draw in [0, 1). u == 0 always lands on outcome 0.
        """
        if not 0.0 <= u < 1.0:
            raise ValueError(f"Uniform draw must lie in [0, 1), got {u}.")
        return int(np.searchsorted(self.cumulative(key), u, side="left"))

    def as_dict(self):
        return {key: [round(float(p), 4) for p in seq] for key, seq in self._cumulative.items()}
