# ----------------------------------------------------------------
# Nord-Themed Console, Logging and Banner Helpers
# ----------------------------------------------------------------
import datetime
import gzip
import logging
import os
import shutil
from typing import TYPE_CHECKING, Dict, List, Tuple

import pyfiglet
from rich.align import Align
from rich.box import ROUNDED
from rich.console import Console, Group
from rich.logging import RichHandler
from rich.panel import Panel
from rich.style import Style
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from . import APP_NAME, APP_SUBTITLE, VERSION
from .config import AppConfig

if TYPE_CHECKING:
    from .pipeline import PipelineResult

LOGGER_NAME = "os_reinstall"
LOG_FORMAT = "[%(asctime)s] %(levelname)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class NordColors:
    """Nord color palette for consistent theming throughout the application."""

    # Polar Night (dark background)
    POLAR_NIGHT_4: str = "#4C566A"

    # Snow Storm (light text)
    SNOW_STORM_1: str = "#D8DEE9"
    SNOW_STORM_2: str = "#E5E9F0"

    # Frost (blue accents)
    FROST_1: str = "#8FBCBB"
    FROST_2: str = "#88C0D0"
    FROST_3: str = "#81A1C1"
    FROST_4: str = "#5E81AC"

    # Aurora (other accents)
    RED: str = "#BF616A"
    YELLOW: str = "#EBCB8B"
    GREEN: str = "#A3BE8C"

    @classmethod
    def get_frost_gradient(cls, text_lines: List[str]) -> List[Tuple[str, str]]:
        colors = [cls.FROST_1, cls.FROST_2, cls.FROST_3, cls.FROST_4]
        return [(line, colors[i % len(colors)]) for i, line in enumerate(text_lines)]


console = Console(
    theme=Theme(
        {
            "info": f"bold {NordColors.FROST_2}",
            "warning": f"bold {NordColors.YELLOW}",
            "error": f"bold {NordColors.RED}",
            "success": f"bold {NordColors.GREEN}",
            "section": f"{NordColors.FROST_3} bold",
            "step": f"{NordColors.FROST_2}",
            "path": f"italic {NordColors.FROST_1}",
        }
    )
)

logger = logging.getLogger(LOGGER_NAME)


def rotate_log(log_file: str, max_size: int) -> None:
    """Compress the log file aside once it grows past max_size."""
    if not os.path.exists(log_file) or os.path.getsize(log_file) <= max_size:
        return
    ts = datetime.datetime.now().strftime("%Y%m%d%H%M%S")
    rotated = f"{log_file}.{ts}.gz"
    try:
        with open(log_file, "rb") as fin, gzip.open(rotated, "wb") as fout:
            shutil.copyfileobj(fin, fout)
        open(log_file, "w").close()
        console.print(f"Rotated log file to [path]{rotated}[/path]")
    except OSError as e:
        console.print(f"[warning]Failed to rotate log file: {e}[/warning]")


def setup_logging(config: AppConfig) -> logging.Logger:
    """Configure logging with Rich handler and file output."""
    os.makedirs(os.path.dirname(config.log_file) or ".", exist_ok=True)
    rotate_log(config.log_file, config.max_log_size)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(logging.DEBUG)

    console_handler = RichHandler(
        console=console, markup=False, rich_tracebacks=True, show_path=False
    )
    console_handler.setLevel(logging.INFO)
    logger.addHandler(console_handler)

    file_handler = logging.FileHandler(config.log_file)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)

    logger.debug("Logging initialized: %s", config.log_file)
    return logger


def create_header() -> Panel:
    """
    Create an ASCII art header using Pyfiglet with a Nord-themed gradient.

    Returns:
        Panel: A Rich Panel containing the styled header.
    """
    fonts = ["slant", "big", "standard", "small"]
    width = min(console.width - 10, 80)
    ascii_art = ""

    for font in fonts:
        try:
            ascii_art = pyfiglet.Figlet(font=font, width=width).renderText(APP_NAME)
        except pyfiglet.FontNotFound:
            continue
        if ascii_art.strip():
            break

    if not ascii_art.strip():
        ascii_art = f"=== {APP_NAME} ===\n"

    lines = [line for line in ascii_art.splitlines() if line.strip()]
    styled_text = ""
    for line, color in NordColors.get_frost_gradient(lines):
        escaped_line = line.replace("[", "\\[").replace("]", "\\]")
        styled_text += f"[bold {color}]{escaped_line}[/]\n"

    border = f"[{NordColors.FROST_3}]{'━' * min(60, max(width - 5, 10))}[/]"

    return Panel(
        Text.from_markup(f"{border}\n{styled_text}{border}"),
        border_style=Style(color=NordColors.FROST_1),
        padding=(1, 2),
        box=ROUNDED,
        title=f"[bold {NordColors.SNOW_STORM_2}]v{VERSION}[/]",
        title_align="right",
        subtitle=f"[bold {NordColors.SNOW_STORM_1}]{APP_SUBTITLE}[/]",
        subtitle_align="center",
    )


def print_section(title: str) -> None:
    """Print a section header and mark it in the log file."""
    console.print()
    console.print(
        pyfiglet.figlet_format(title, font="small"),
        style=f"bold {NordColors.FROST_2}",
    )
    console.print(f"[{NordColors.FROST_3}]{'─' * 60}[/]")
    logger.debug("--- %s ---", title)


STATUS_ICONS: Dict[str, str] = {
    "success": "✓",
    "failed": "✗",
    "tolerated": "⚠",
    "skipped": "↷",
    "pending": "?",
}

STATUS_STYLES: Dict[str, str] = {
    "success": "success",
    "failed": "error",
    "tolerated": "warning",
    "skipped": "warning",
    "pending": "step",
}


def status_report(result: "PipelineResult") -> None:
    """Display a table reporting the status of every provisioning stage."""
    table = Table(
        show_header=True,
        header_style=f"bold {NordColors.FROST_1}",
        border_style=NordColors.FROST_3,
        box=ROUNDED,
        title=f"[bold {NordColors.FROST_2}]Provisioning Status[/]",
        title_justify="center",
        expand=True,
    )
    table.add_column("Stage", style=f"bold {NordColors.FROST_2}")
    table.add_column("Status", justify="center")
    table.add_column("Message", style=NordColors.SNOW_STORM_1, ratio=3)

    counts: Dict[str, int] = {}
    for stage in result.results:
        counts[stage.status] = counts.get(stage.status, 0) + 1
        style = STATUS_STYLES.get(stage.status, "step")
        icon = STATUS_ICONS.get(stage.status, "?")
        table.add_row(
            stage.name.replace("_", " ").title(),
            f"[{style}]{icon} {stage.status.upper()}[/]",
            Text(stage.message),
        )

    summary = Text()
    summary.append("Final state: ", style=f"bold {NordColors.FROST_3}")
    summary.append(result.state.name, style=f"bold {NordColors.FROST_2}")
    summary.append(" | ")
    summary.append(f"{counts.get('success', 0)} Succeeded", style=f"bold {NordColors.GREEN}")
    summary.append(" | ")
    summary.append(f"{counts.get('failed', 0)} Failed", style=f"bold {NordColors.RED}")
    summary.append(" | ")
    summary.append(
        f"{counts.get('pending', 0)} Pending", style=f"bold {NordColors.POLAR_NIGHT_4}"
    )

    console.print(
        Panel(
            Group(table, Align.center(summary)),
            border_style=Style(color=NordColors.FROST_4),
            padding=(0, 1),
            box=ROUNDED,
        )
    )
