import os
from collections import deque, namedtuple

import numpy as np

from .aggregation import aggregate
from .dataset import EDUCATION_NAMES, SES_NAMES, SEXES, validate_rows
from .layout import ChartLayout
from .population import PersonGenerator, PopulationStore
from .probability import ProbabilityTable

# Everything the renderer needs for one frame.  Marker arrays cover only
# people still in transit; buckets cover only people who have arrived.
Frame = namedtuple("Frame", [
    "elapsed", "ids", "sex", "ses", "education", "x", "y", "opacity",
    "buckets", "population", "arrived",
])


class FlowSimulator:
    """
    Drives the animated population flow.

    Every tick adds a small batch of new people (until the cap), works out
    how far each person has travelled from the absolute elapsed time, and
    regroups everyone who has arrived.  Nothing but the population store
    survives between ticks, so tick() can be called at any frame rate, or
    from a test with made-up timestamps.
    """
    # --- Simulation Constants ---
    MAX_PEOPLE = 10000
    BATCH_SIZE = 2
    TRANSIT_MS = 5000.0
    LINE_LINK_LENGTH = 6
    AUDIT_EVERY_PEOPLE = 300   # dump the bucket table every 300 people generated

    AUDIT_HEADER = ("tick,elapsed_ms,people,education,sex,ses,"
                    "count,count_in_bar,percent_above,percent\n")

    def __init__(self, rows, max_people=None, batch_size=None, transit_ms=None,
                 link_length=None, rng=None, layout=None, audit_path="flow_audit.csv",
                 sexes=SEXES, ses_names=SES_NAMES, outcomes=EDUCATION_NAMES):
        self.max_people = self.MAX_PEOPLE if max_people is None else int(max_people)
        self.batch_size = self.BATCH_SIZE if batch_size is None else int(batch_size)
        self.transit_ms = self.TRANSIT_MS if transit_ms is None else float(transit_ms)
        link_length = self.LINE_LINK_LENGTH if link_length is None else int(link_length)
        if self.max_people < 0:
            raise ValueError("max_people must be non-negative.")
        if self.batch_size < 0:
            raise ValueError("batch_size must be non-negative.")
        if self.transit_ms <= 0:
            raise ValueError("transit_ms must be positive.")

        self.sexes = list(sexes)
        self.ses_names = list(ses_names)
        self.outcomes = list(outcomes)

        self.table = ProbabilityTable.build(validate_rows(rows, self.outcomes), self.outcomes)
        self.generator = PersonGenerator(self.table, self.sexes, self.ses_names, rng=rng)
        self.store = PopulationStore(self.max_people)
        self.layout = layout or ChartLayout(len(self.ses_names), len(self.outcomes),
                                            link_length=link_length)

        self.tick_count = 0
        self.log_messages = deque(maxlen=100)
        self.log_messages.append(f"Probability table built for {len(self.table)} groups")
        for key, seq in self.table.as_dict().items():
            self.log_messages.append(f"  {key}: {seq}")
        self._cap_logged = False
        self._last_audit_id = 0

        self.audit_path = audit_path
        if self.audit_path and not os.path.exists(self.audit_path):
            with open(self.audit_path, "w") as f:
                f.write(self.AUDIT_HEADER)

    # ---------------------------------------------------------------------- #
    #  Growth                                                                 #
    # ---------------------------------------------------------------------- #

    def grow(self, elapsed):
        """Add up to batch_size new people, stopping at the cap.  Returns how many were added."""
        added = 0
        for _ in range(self.batch_size):
            if self.store.is_full:
                if not self._cap_logged:
                    self.log_messages.append(
                        f"[{self.tick_count}] Population cap reached ({self.max_people:,})")
                    self._cap_logged = True
                break
            self.store.append(self.generator.next(elapsed))
            added += 1
        return added

    def progress(self, elapsed, start_time):
        """Fraction of the transit covered; 0 for anyone created after `elapsed`."""
        return np.maximum((elapsed - np.asarray(start_time)) / self.transit_ms, 0.0)

    # ---------------------------------------------------------------------- #
    #  Master update                                                          #
    # ---------------------------------------------------------------------- #

    def tick(self, elapsed):
        # 1. Growth
        self.grow(elapsed)

        # 2. Progress for the whole population, recomputed from scratch
        cols = self.store.columns()
        progress = self.progress(elapsed, cols["start_time"])
        in_transit = progress < 1.0
        arrived = ~in_transit

        # 3. Positions + visibility for people still moving
        x, y = self.layout.marker_positions(
            progress[in_transit],
            cols["ses"][in_transit],
            cols["education"][in_transit],
            cols["y_jitter"][in_transit],
        )
        opacity = self.layout.opacity(x)

        # 4. Arrivals -> grouped statistics
        buckets = aggregate(
            cols["education"][arrived], cols["sex"][arrived], cols["ses"][arrived],
            len(self.outcomes), len(self.sexes), len(self.ses_names),
        )

        frame = Frame(
            elapsed=float(elapsed),
            ids=cols["id"][in_transit],
            sex=cols["sex"][in_transit],
            ses=cols["ses"][in_transit],
            education=cols["education"][in_transit],
            x=x,
            y=y,
            opacity=opacity,
            buckets=buckets,
            population=len(self.store),
            arrived=int(np.sum(arrived)),
        )
        self.log_telemetry(frame)
        self.tick_count += 1
        return frame

    def reset(self):
        """Drop every person.  Ids keep counting from where they were."""
        dropped = len(self.store)
        self.store.clear()
        self._cap_logged = False
        self.log_messages.append(f"[{self.tick_count}] Reset: {dropped:,} people cleared")

    # ---------------------------------------------------------------------- #
    #  Telemetry                                                              #
    # ---------------------------------------------------------------------- #

    def log_telemetry(self, frame):
        last_id = self.generator.last_id
        if last_id == self._last_audit_id or last_id % self.AUDIT_EVERY_PEOPLE != 0:
            return
        self._last_audit_id = last_id
        self.log_messages.append(
            f"[{self.tick_count}] {last_id:,} people generated, {frame.arrived:,} arrived")
        if not self.audit_path:
            return
        with open(self.audit_path, "a") as f:
            for b in frame.buckets:
                f.write(f"{self.tick_count},{frame.elapsed:.0f},{last_id},"
                        f"\"{self.outcomes[b.education]}\",{self.sexes[b.sex]},"
                        f"{self.ses_names[b.ses]},{b.count},{b.count_in_bar},"
                        f"{b.percent_above:.4f},{b.percent:.4f}\n")
