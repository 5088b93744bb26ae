import numpy as np


class ChartLayout:
    """
    Geometry of the flow chart, in pixels relative to the bounded plot area.

    People enter on the left at a height keyed by socioeconomic status and
    leave on the right at a height keyed by education outcome.  The vertical
    move happens inside a narrow window around the horizontal midpoint whose
    half-width is 0.5 / link_length of the journey.
    """
    # --- Dimension Constants ---
    WIDTH = 1200
    HEIGHT = 500
    MARGIN_TOP = 10
    MARGIN_RIGHT = 200
    MARGIN_BOTTOM = 10
    MARGIN_LEFT = 120
    PATH_HEIGHT = 50
    ENDS_BAR_WIDTH = 15
    ENDING_BAR_PADDING = 3

    # Markers stay hidden until 10px in and vanish 30px before the end bars
    FADE_IN_PX = 10
    FADE_OUT_PX = 30

    START_COLOR = (0x12, 0xcb, 0xc4)
    END_COLOR = (0xb5, 0x34, 0x71)
    EMPTY_COLOR = (0xda, 0xda, 0xdd)

    def __init__(self, n_ses, n_outcomes, link_length=6, width=None, height=None):
        if link_length < 2:
            raise ValueError("Link length must be at least 2.")
        self.n_ses = n_ses
        self.n_outcomes = n_outcomes
        self.link_length = link_length
        self.width = self.WIDTH if width is None else width
        self.height = self.HEIGHT if height is None else height
        self.bounded_width = self.width - self.MARGIN_LEFT - self.MARGIN_RIGHT
        self.bounded_height = self.height - self.MARGIN_TOP - self.MARGIN_BOTTOM
        if self.bounded_width <= 0 or self.bounded_height <= 0:
            raise ValueError("Chart is smaller than its margins.")

    # ---------------------------------------------------------------------- #
    #  Scales                                                                 #
    # ---------------------------------------------------------------------- #

    def x_scale(self, progress):
        return np.clip(progress, 0.0, 1.0) * self.bounded_width

    def start_y(self, ses):
        """Domain [n_ses, -1] -> [0, bounded_height]; higher status sits higher up."""
        return (self.n_ses - np.asarray(ses, dtype=np.float64)) / (self.n_ses + 1) * self.bounded_height

    def end_y(self, education):
        return ((self.n_outcomes - np.asarray(education, dtype=np.float64))
                / (self.n_outcomes + 1) * self.bounded_height)

    def blend(self, progress):
        """Vertical progress: 0 before the midpoint window, 1 after it, linear inside."""
        half_window = 0.5 / self.link_length
        return np.clip((np.asarray(progress) - (0.5 - half_window)) / (2 * half_window), 0.0, 1.0)

    # ---------------------------------------------------------------------- #
    #  Markers                                                                #
    # ---------------------------------------------------------------------- #

    def marker_positions(self, progress, ses, education, y_jitter):
        x = self.x_scale(progress)
        y_start = self.start_y(ses)
        y_end = self.end_y(education)
        y = y_start + (y_end - y_start) * self.blend(progress) + np.asarray(y_jitter)
        return x, y

    def opacity(self, x):
        x = np.asarray(x)
        visible = (x > self.FADE_IN_PX) & (x < self.bounded_width - self.FADE_OUT_PX)
        return np.where(visible, 1.0, 0.0)

    # ---------------------------------------------------------------------- #
    #  Links                                                                  #
    # ---------------------------------------------------------------------- #

    def link_points(self, ses, education, samples=60):
        """Centre line of the (ses -> education) link as a list of (x, y).

        The link runs through link_length evenly spaced control points; the
        first half sit on the start height, the rest on the end height.  A
        monotone cubic through those points is flat everywhere except the one
        segment that crosses between them, where it reduces to a Hermite
        curve with zero end tangents (smoothstep).
        """
        n_start = int(np.ceil(self.link_length / 2))
        step = self.bounded_width / (self.link_length - 1)
        seg_start = (n_start - 1) * step
        y0 = float(self.start_y(ses))
        y1 = float(self.end_y(education))

        xs = np.linspace(0.0, self.bounded_width, samples)
        t = np.clip((xs - seg_start) / step, 0.0, 1.0)
        ys = y0 + (y1 - y0) * (3 * t ** 2 - 2 * t ** 3)
        return list(zip(xs.tolist(), ys.tolist()))

    # ---------------------------------------------------------------------- #
    #  Ending bars                                                            #
    # ---------------------------------------------------------------------- #

    def ending_bar(self, bucket):
        """Rect (x, y, w, h) of a bucket's bar, x relative to the right edge of the plot.

        Each (education, sex) bar stacks its statuses with the highest on top;
        an empty bar is drawn at full height as a placeholder.
        """
        x = (-self.ENDS_BAR_WIDTH * 2
             + bucket.sex * self.ENDS_BAR_WIDTH
             + (bucket.sex - 1) * self.ENDING_BAR_PADDING)
        y = (float(self.end_y(bucket.education))
             - self.PATH_HEIGHT / 2
             + self.PATH_HEIGHT * bucket.percent_above)
        if bucket.count_in_bar:
            h = self.PATH_HEIGHT * bucket.percent
        else:
            h = self.PATH_HEIGHT
        return x, y, self.ENDS_BAR_WIDTH, h

    def bar_color(self, bucket):
        return self.ses_color(bucket.ses) if bucket.count_in_bar else self.EMPTY_COLOR

    def ses_color(self, ses):
        t = ses / (self.n_ses - 1) if self.n_ses > 1 else 0.0
        return tuple(
            int(round(a + (b - a) * t)) for a, b in zip(self.START_COLOR, self.END_COLOR)
        )
