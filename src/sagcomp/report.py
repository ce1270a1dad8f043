"""HTML report of learned parameters using Jinja2 templates."""

from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, PackageLoader, select_autoescape

from . import log
from .buckets import BUCKETS, bucket_mid
from .charts import CHART_THEMES, ThemeName, render_decay_curve_svg, render_sag_curve_svg
from .codec import LearnedRecord
from .formatters import (
    format_chemistry,
    format_delay,
    format_percent,
    format_rate,
    format_sag,
    format_volts,
)

# Singleton Jinja2 environment
_jinja_env: Optional[Environment] = None


def get_jinja_env() -> Environment:
    """Get or create the singleton Jinja2 environment.

    Uses PackageLoader to load templates from src/sagcomp/templates/
    with autoescape enabled for security.
    """
    global _jinja_env
    if _jinja_env is not None:
        return _jinja_env

    env = Environment(
        loader=PackageLoader("sagcomp", "templates"),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )

    env.filters["format_volts"] = format_volts
    env.filters["format_sag"] = format_sag
    env.filters["format_rate"] = format_rate
    env.filters["format_delay"] = format_delay
    env.filters["format_percent"] = format_percent
    env.filters["format_chemistry"] = format_chemistry

    _jinja_env = env
    return env


def build_bucket_rows(record: LearnedRecord) -> list[dict[str, Any]]:
    """One table row per throttle bucket."""
    rows = []
    for i in range(BUCKETS):
        rows.append({
            "index": i + 1,
            "throttle_mid": bucket_mid(i),
            "sag": record.sag[i],
            "down_frac": record.down_frac[i],
            "decay": record.decay_mvps[i],
        })
    return rows


def build_report_context(
    record: LearnedRecord,
    model_name: str,
    theme: ThemeName = "light",
) -> dict[str, Any]:
    """Build template context for the learned-state page."""
    chart_theme = CHART_THEMES[theme]
    learned = sum(1 for v in record.sag if v is not None)
    return {
        "model_name": model_name,
        "theme": theme,
        "version": record.version,
        "chemistry": record.chemistry,
        "recovery_delay": record.recovery_delay,
        "learned_buckets": learned,
        "total_buckets": BUCKETS,
        "rows": build_bucket_rows(record),
        # Raw SVG markup, inserted with | safe
        "sag_svg": render_sag_curve_svg(record, chart_theme),
        "decay_svg": render_decay_curve_svg(record, chart_theme),
    }


def render_learned_report(
    record: LearnedRecord,
    model_name: str,
    theme: ThemeName = "light",
) -> str:
    """Render the learned-state HTML page."""
    env = get_jinja_env()
    context = build_report_context(record, model_name, theme)
    template = env.get_template("report.html")
    return template.render(**context)


def write_report(
    record: LearnedRecord,
    model_name: str,
    out_dir: Path,
    theme: ThemeName = "light",
) -> Path:
    """Write report_<theme>.html plus standalone SVGs for one model into out_dir."""
    target = out_dir / model_name
    target.mkdir(parents=True, exist_ok=True)

    chart_theme = CHART_THEMES[theme]
    (target / f"sag_{theme}.svg").write_text(render_sag_curve_svg(record, chart_theme))
    (target / f"decay_{theme}.svg").write_text(render_decay_curve_svg(record, chart_theme))

    page = target / f"report_{theme}.html"
    page.write_text(render_learned_report(record, model_name, theme))
    log.info(f"Wrote learned-state report to {page}")
    return page
