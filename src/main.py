"""Live window for the education flow chart.  Run from the project root:

    python -m src.main [dataset.json]
"""
import sys

import numpy as np
import pygame

from .dataset import DEFAULT_DATASET, load_dataset
from .engine import FlowSimulator

# --- Rendering Constants ---
STATUS_H  = 130        # status strip under the chart
BG_COLOR  = (255, 255, 255)
LINK_RGBA = (228, 228, 236, 110)
TEXT_DARK = (52, 73, 94)
TEXT_DIM  = (120, 130, 140)
TRIANGLE  = [(-7, 6), (0, -6), (7, 6)]
MARKER_R  = 5.5
FPS       = 60


def sentence_case(text):
    return text[:1].upper() + text[1:]


def build_link_layer(layout, size):
    """Pre-render the static links once; each link blends on top of the others."""
    links = pygame.Surface(size, pygame.SRCALPHA)
    for ses in range(layout.n_ses):
        for edu in range(layout.n_outcomes):
            layer = pygame.Surface(size, pygame.SRCALPHA)
            points = [(x + layout.MARGIN_LEFT, y + layout.MARGIN_TOP)
                      for x, y in layout.link_points(ses, edu)]
            pygame.draw.lines(layer, LINK_RGBA, False, points, layout.PATH_HEIGHT)
            links.blit(layer, (0, 0))
    return links


def draw_peripherals(screen, sim, font, font_sm):
    layout = sim.layout
    ox, oy = layout.MARGIN_LEFT, layout.MARGIN_TOP

    # Start side: status labels + coloured bars
    for ses, name in enumerate(sim.ses_names):
        y = oy + float(layout.start_y(ses))
        label = font.render(sentence_case(name), True, TEXT_DARK)
        screen.blit(label, (ox - 20 - label.get_width(), y - label.get_height() / 2))
        rect = pygame.Rect(ox, y - layout.PATH_HEIGHT / 2, layout.ENDS_BAR_WIDTH, layout.PATH_HEIGHT)
        pygame.draw.rect(screen, layout.ses_color(ses), rect)
    top_y = oy + float(layout.start_y(len(sim.ses_names) - 1))
    for i, line in enumerate(("Socioeconomic", "Status")):
        title = font.render(line, True, TEXT_DIM)
        screen.blit(title, (ox - 20 - title.get_width(), top_y - 72 + 15 * i))

    # End side: outcome labels + sex markers
    ex = ox + layout.bounded_width + 20
    for edu, name in enumerate(sim.outcomes):
        y = oy + float(layout.end_y(edu))
        screen.blit(font.render(name, True, TEXT_DARK), (ex, y - 15 - font.get_height() / 2))
        pygame.draw.polygon(screen, TEXT_DIM, [(ex + 5 + px, y + 5 + py) for px, py in TRIANGLE])
        pygame.draw.circle(screen, TEXT_DIM, (int(ex + 5), int(y + 20)), int(MARKER_R))

    # Legend above the ending bars
    lx = ox + layout.bounded_width
    female = font_sm.render("Female", True, TEXT_DIM)
    male = font_sm.render("Male", True, TEXT_DIM)
    screen.blit(female, (lx - layout.ENDS_BAR_WIDTH * 1.5 - 20 - female.get_width(), oy))
    screen.blit(male, (lx + 10, oy))


def draw_markers(screen, sim, frame):
    layout = sim.layout
    ox, oy = layout.MARGIN_LEFT, layout.MARGIN_TOP
    visible = np.where(frame.opacity > 0)[0]
    for i in visible:
        x = ox + float(frame.x[i])
        y = oy + float(frame.y[i])
        color = layout.ses_color(int(frame.ses[i]))
        if frame.sex[i] == 0:
            pygame.draw.polygon(screen, color, [(x + px, y + py) for px, py in TRIANGLE])
        else:
            pygame.draw.circle(screen, color, (int(x), int(y)), int(MARKER_R))


def draw_ending_bars(screen, sim, frame, font_sm):
    layout = sim.layout
    bar_x0 = layout.MARGIN_LEFT + layout.bounded_width
    label_x0 = bar_x0 + 20
    for b in frame.buckets:
        x, y, w, h = layout.ending_bar(b)
        color = layout.bar_color(b)
        rect = pygame.Rect(bar_x0 + x, layout.MARGIN_TOP + y, w, max(h, 0))
        pygame.draw.rect(screen, color, rect)

        ty = (layout.MARGIN_TOP + float(layout.end_y(b.education))
              - layout.PATH_HEIGHT / 2 + 14 * b.sex + 35)
        count = font_sm.render(str(b.count), True, color)
        screen.blit(count, (label_x0 + b.ses * 33 + 47, ty - count.get_height() / 2))


def draw_status(screen, sim, frame, paused, font_sm):
    top = sim.layout.height
    pygame.draw.line(screen, (220, 220, 228), (10, top), (sim.layout.width - 10, top))
    stats = [
        f"TIME     : {frame.elapsed / 1000:7.1f} s  {'[PAUSED]' if paused else ''}",
        f"PEOPLE   : {frame.population:,} / {sim.max_people:,}",
        f"IN FLIGHT: {len(frame.ids):,}",
        f"ARRIVED  : {frame.arrived:,}",
        "[p] pause  [r] reset  [esc] quit",
    ]
    for i, txt in enumerate(stats):
        screen.blit(font_sm.render(txt, True, TEXT_DARK), (20, top + 10 + 20 * i))

    log_x = 360
    for i, entry in enumerate(list(sim.log_messages)[-6:]):
        screen.blit(font_sm.render(entry[:90], True, TEXT_DIM), (log_x, top + 10 + 18 * i))


def main():
    path = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_DATASET
    rows = load_dataset(path)

    pygame.init()
    sim = FlowSimulator(rows)
    size = (sim.layout.width, sim.layout.height + STATUS_H)
    screen = pygame.display.set_mode(size)
    pygame.display.set_caption("Education outcomes by socioeconomic status")
    font    = pygame.font.SysFont("Helvetica", 14)
    font_sm = pygame.font.SysFont("Courier", 12)
    clock   = pygame.time.Clock()

    links = build_link_layer(sim.layout, size)
    elapsed = 0.0
    paused = False
    frame = sim.tick(elapsed)

    while True:
        # ------------------------------------------------------------------ #
        #  Event handling                                                     #
        # ------------------------------------------------------------------ #
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                pygame.quit()
                return
            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    pygame.quit()
                    return
                if event.key == pygame.K_p:
                    paused = not paused
                    sim.log_messages.append(f"{'--- PAUSED ---' if paused else '--- RESUMED ---'}")
                if event.key == pygame.K_r:
                    sim.reset()

        # ------------------------------------------------------------------ #
        #  Simulation step (clock frozen while paused)                        #
        # ------------------------------------------------------------------ #
        dt = clock.tick(FPS)
        if not paused:
            elapsed += dt
            frame = sim.tick(elapsed)

        # ------------------------------------------------------------------ #
        #  Render                                                             #
        # ------------------------------------------------------------------ #
        screen.fill(BG_COLOR)
        screen.blit(links, (0, 0))
        draw_peripherals(screen, sim, font, font_sm)
        draw_markers(screen, sim, frame)
        draw_ending_bars(screen, sim, frame, font_sm)
        draw_status(screen, sim, frame, paused, font_sm)
        pygame.display.flip()


if __name__ == "__main__":
    main()
