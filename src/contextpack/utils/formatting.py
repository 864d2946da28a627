# src/contextpack/utils/formatting.py


def format_size(num_bytes: int) -> str:
    """Human readable size using 1024 steps, e.g. ``1.5 KB``."""
    unit = 1024
    if num_bytes < unit:
        return f"{num_bytes} B"
    div, exp = unit, 0
    n = num_bytes // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{num_bytes / div:.1f} {'KMGTPE'[exp]}B"


def format_number(n: int) -> str:
    if n < 1000:
        return str(n)
    if n < 1_000_000:
        return f"{n / 1000:.1f}K"
    return f"{n / 1_000_000:.1f}M"


def estimate_processing_time(file_count: int) -> float:
    """Rough seconds needed to scan and process ``file_count`` files."""
    base = file_count * 0.001
    return base * 1.5
