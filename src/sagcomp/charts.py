"""Matplotlib-based rendering of the learned curves.

Renders the per-bucket sag table and decay rates as SVG with CSS-friendly
theme colors, for the learned-state report.
"""

import io
from dataclasses import dataclass
from typing import Literal, Optional

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend for server-side rendering
import matplotlib.pyplot as plt

from .buckets import bucket_mid
from .codec import LearnedRecord
from . import log


ThemeName = Literal["light", "dark"]


@dataclass(frozen=True)
class ChartTheme:
    """Color palette for chart rendering."""

    name: str
    # Colors as hex values (without #)
    background: str
    canvas: str
    text: str
    axis: str
    grid: str
    line: str
    area: str  # Includes alpha channel


CHART_THEMES: dict[ThemeName, ChartTheme] = {
    "light": ChartTheme(
        name="light",
        background="faf8f5",
        canvas="ffffff",
        text="1a1915",
        axis="8a857a",
        grid="e8e4dc",
        line="b45309",
        area="b4530926",
    ),
    "dark": ChartTheme(
        name="dark",
        background="0f1114",
        canvas="161a1e",
        text="f0efe8",
        axis="706d62",
        grid="252a30",
        line="f59e0b",
        area="f59e0b33",
    ),
}


def _hex_to_rgba(hex_color: str) -> tuple[float, float, float, float]:
    """Convert hex color (without #) to RGBA tuple (0-1 range).

    Accepts 6-char (RGB) or 8-char (RGBA) hex strings.
    """
    r = int(hex_color[0:2], 16) / 255
    g = int(hex_color[2:4], 16) / 255
    b = int(hex_color[4:6], 16) / 255
    a = int(hex_color[6:8], 16) / 255 if len(hex_color) >= 8 else 1.0
    return (r, g, b, a)


def curve_points(values: list[Optional[float]], scale: float = 1.0) -> tuple[list[float], list[float]]:
    """(throttle %, value) pairs for the defined buckets."""
    xs: list[float] = []
    ys: list[float] = []
    for i, v in enumerate(values):
        if v is None:
            continue
        xs.append(bucket_mid(i) * 100)
        ys.append(v * scale)
    return xs, ys


def render_curve_svg(
    xs: list[float],
    ys: list[float],
    theme: ChartTheme,
    y_label: str,
    width: int = 640,
    height: int = 260,
) -> str:
    """Render one per-bucket curve as SVG.

    Args:
        xs: Throttle positions in percent
        ys: Values at those positions
        theme: Color theme to apply
        y_label: Y-axis label including unit
        width: Chart width in pixels
        height: Chart height in pixels

    Returns:
        SVG document as a string
    """
    dpi = 100
    fig, ax = plt.subplots(figsize=(width / dpi, height / dpi), dpi=dpi)

    try:
        fig.patch.set_facecolor(f"#{theme.background}")
        ax.set_facecolor(f"#{theme.canvas}")

        ax.spines['top'].set_visible(False)
        ax.spines['right'].set_visible(False)
        ax.spines['left'].set_color(f"#{theme.grid}")
        ax.spines['bottom'].set_color(f"#{theme.grid}")

        ax.tick_params(colors=f"#{theme.axis}", labelsize=10)
        ax.yaxis.label.set_color(f"#{theme.text}")
        ax.xaxis.label.set_color(f"#{theme.text}")
        ax.grid(True, linestyle='-', alpha=0.5, color=f"#{theme.grid}")
        ax.set_axisbelow(True)

        ax.set_xlim(0, 100)
        ax.set_xlabel("Throttle (%)")
        ax.set_ylabel(y_label)

        if not xs:
            ax.text(
                0.5, 0.5, "Not learned yet",
                transform=ax.transAxes,
                ha='center', va='center',
                fontsize=12,
                color=f"#{theme.axis}"
            )
        else:
            area_color = _hex_to_rgba(theme.area)
            ax.fill_between(xs, ys, alpha=area_color[3], color=f"#{theme.line}")
            ax.plot(xs, ys, color=f"#{theme.line}", linewidth=2, marker='o', markersize=3)
            top = max(ys)
            ax.set_ylim(0, top * 1.15 if top > 0 else 1)

        plt.tight_layout(pad=0.5)

        svg_buffer = io.StringIO()
        fig.savefig(svg_buffer, format='svg', bbox_inches='tight', pad_inches=0.1)
        svg_content = svg_buffer.getvalue()
    finally:
        # Ensure figure is closed to prevent memory leaks
        plt.close(fig)

    return svg_content


def render_sag_curve_svg(record: LearnedRecord, theme: ChartTheme) -> str:
    """Learned sag per bucket in millivolts."""
    xs, ys = curve_points(record.sag, scale=1000.0)
    log.debug(f"Rendering sag curve ({len(xs)} learned buckets, {theme.name})")
    return render_curve_svg(xs, ys, theme, "Sag (mV/cell)")


def render_decay_curve_svg(record: LearnedRecord, theme: ChartTheme) -> str:
    """Learned OCV decay rate per bucket in mV/s."""
    xs, ys = curve_points(list(record.decay_mvps))
    return render_curve_svg(xs, ys, theme, "Decay (mV/s)")
