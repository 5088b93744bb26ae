from collections import namedtuple

import numpy as np

from .probability import group_key

# One simulated person.  sex / ses / education are indices into the
# category enumerations; start_time is simulation-relative milliseconds.
Individual = namedtuple("Individual", ["id", "sex", "ses", "education", "start_time", "y_jitter"])


class PersonGenerator:
    """
    Creates simulated people with random demographics and a sampled outcome.

    The id counter lives on the instance so separate simulations in one
    process never share ids.  Ids are never reused, even after the store is
    cleared.
    """
    JITTER_RANGE = 15.0

    def __init__(self, table, sexes, ses_names, rng=None, jitter_range=None):
        self.table = table
        self.sexes = list(sexes)
        self.ses_names = list(ses_names)
        self.rng = rng if rng is not None else np.random.default_rng()
        self.jitter_range = self.JITTER_RANGE if jitter_range is None else float(jitter_range)
        self.last_id = 0

        # Fail at startup, not mid-animation, if the enumerations and table disagree.
        for sex in self.sexes:
            for ses in self.ses_names:
                self.table.cumulative(group_key(sex, ses))

    def next(self, elapsed):
        sex = int(self.rng.integers(len(self.sexes)))
        ses = int(self.rng.integers(len(self.ses_names)))
        key = group_key(self.sexes[sex], self.ses_names[ses])
        education = self.table.sample(key, float(self.rng.random()))

        self.last_id += 1
        return Individual(
            id=self.last_id,
            sex=sex,
            ses=ses,
            education=education,
            start_time=float(elapsed),
            y_jitter=float(self.rng.uniform(-self.jitter_range, self.jitter_range)),
        )


class PopulationStore:
    """Append-only, capped arena of people held as parallel numpy columns."""

    COLUMNS = (
        ("id", np.int64),
        ("sex", np.int8),
        ("ses", np.int8),
        ("education", np.int8),
        ("start_time", np.float64),
        ("y_jitter", np.float64),
    )

    def __init__(self, cap):
        if cap < 0:
            raise ValueError("Population cap must be non-negative.")
        self.cap = int(cap)
        self._data = {name: np.zeros(self.cap, dtype=dtype) for name, dtype in self.COLUMNS}
        self.size = 0

    def __len__(self):
        return self.size

    @property
    def is_full(self):
        return self.size >= self.cap

    def append(self, person):
        """Store person in the next free slot.  Returns False (and drops it) at the cap."""
        if self.is_full:
            return False
        slot = self.size
        for name, _ in self.COLUMNS:
            self._data[name][slot] = getattr(person, name)
        self.size += 1
        return True

    def columns(self):
        """Read-only views of the filled slots, keyed by column name."""
        views = {}
        for name, _ in self.COLUMNS:
            view = self._data[name][:self.size]
            view.flags.writeable = False
            views[name] = view
        return views

    def all(self):
        cols = self.columns()
        return [
            Individual(
                id=int(cols["id"][i]),
                sex=int(cols["sex"][i]),
                ses=int(cols["ses"][i]),
                education=int(cols["education"][i]),
                start_time=float(cols["start_time"][i]),
                y_jitter=float(cols["y_jitter"][i]),
            )
            for i in range(self.size)
        ]

    def clear(self):
        self.size = 0
