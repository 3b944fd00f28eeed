import os
from typing import Iterable, List, Optional, Tuple

from llm_mem.metadata import MemoryBreakdown
from llm_mem.utils.constants import BYTES_PER_GB

MAX_NAME_LEN = 13
MAX_DATA_LEN = 32
BORDERS_AND_PADDING = 7

HORIZONTAL, VERTICAL = "─", "│"
# (left, middle, right) corners for each horizontal line of the table
DIVIDERS = {
    "header": ("┌", "─", "┐"),
    "top": ("├", "┬", "┤"),
    "middle": ("├", "┼", "┤"),
    "bottom": ("└", "┴", "┘"),
}
SHORT_NUMBER_UNITS = [(1e12, "T"), (1e9, "B"), (1e6, "M"), (1e3, "K")]


def print_color(content: str) -> None:
    # NOTE: https://no-color.org, any non-empty `NO_COLOR` disables the ANSI colour codes
    if os.getenv("NO_COLOR"):
        print(content)
    else:
        print(f"\x1b[38;2;244;183;63m{content}\x1b[0m")


def _column_width(texts: Iterable[str]) -> int:
    return min(max(len(text) for text in texts), MAX_DATA_LEN)


def _print_header(current_len):
    left, _, right = DIVIDERS["header"]
    print_color(left + HORIZONTAL * (current_len + MAX_NAME_LEN + BORDERS_AND_PADDING - 2) + right)


def _print_centered(text, current_len):
    total_width = current_len + MAX_NAME_LEN + BORDERS_AND_PADDING - 2
    text = text if len(text) <= total_width else text[: total_width - 3] + "..."
    print_color(f"{VERTICAL}{text:^{total_width}}{VERTICAL}")


def _print_divider(current_len, side="middle"):
    left, mid, right = DIVIDERS[side]
    print_color(left + HORIZONTAL * (MAX_NAME_LEN + 2) + mid + HORIZONTAL * (current_len + 2) + right)


def _format_name(name):
    name = str(name)
    if len(name) > MAX_NAME_LEN:
        return name[: MAX_NAME_LEN - 3] + "..."
    return f"{name:<{MAX_NAME_LEN}}"


def _print_row(name, text, current_len):
    print_color(f"{VERTICAL} {_format_name(name)} {VERTICAL} {str(text):<{current_len}} {VERTICAL}")


def make_bar(fraction: float, width: int) -> str:
    filled = round(min(max(fraction, 0.0), 1.0) * width)
    return "█" * filled + "░" * (width - filled)


def format_short_number(n: float) -> str:
    """Format e.g. 6738415616 as `6.7B` and 2048 as `2.0K`."""
    for threshold, unit in SHORT_NUMBER_UNITS:
        if abs(n) >= threshold:
            return f"{n / threshold:.1f}{unit}"
    return f"{int(n)}"


def bytes_to_gb(nbytes):
    return nbytes / BYTES_PER_GB
def build_rows(breakdown: MemoryBreakdown) -> List[Tuple[str, float]]:
    return [
        (f"WEIGHTS {breakdown.quantization.value.upper()}", breakdown.parameter_bytes),
        (f"CONTEXT {format_short_number(breakdown.context_window_tokens)}", breakdown.context_bytes),
        ("OS OVERHEAD", breakdown.overhead_bytes),
    ]


def print_report(breakdown: MemoryBreakdown, model_id: Optional[str] = None) -> None:
    total_gb = breakdown.total_gb
    params = format_short_number(breakdown.parameters_in_billions * 1e9)
    total_text = f"{total_gb:.2f} GB ({params} params)"
    title = f"`{model_id}`" if model_id else f"{params} PARAMS @ {breakdown.quantization.value.upper()}"

    rows = build_rows(breakdown)
    current_len = _column_width([total_text] + [f"{bytes_to_gb(nbytes):.2f} / {total_gb:.2f} GB" for _, nbytes in rows])

    _print_header(current_len)
    _print_centered("MEMORY ESTIMATE FOR", current_len)
    _print_centered(title, current_len)
    _print_divider(current_len, "top")
    _print_row("TOTAL MEMORY", total_text, current_len)
    _print_row("REQUIREMENTS", make_bar(1.0, current_len), current_len)

    for name, nbytes in rows:
        _print_divider(current_len)
        _print_row(name, f"{bytes_to_gb(nbytes):.2f} / {total_gb:.2f} GB", current_len)
        _print_row("", make_bar(nbytes / breakdown.total_bytes if breakdown.total_bytes else 0.0, current_len), current_len)

    _print_divider(current_len, "bottom")
