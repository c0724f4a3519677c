"""
Display helpers shared by the scanner, the report and the CLI.
"""

BYTE_UNITS = ["Bytes", "KB", "MB", "GB", "TB"]


def format_bytes(num_bytes: int, decimals: int = 2) -> str:
    """Human readable size with base-1024 units, e.g. '1.5 KB'."""
    if num_bytes <= 0:
        return "0 Bytes"
    decimals = max(0, decimals)
    index = 0
    while num_bytes >= 1024 ** (index + 1) and index < len(BYTE_UNITS) - 1:
        index += 1
    text = f"{num_bytes / 1024**index:.{decimals}f}"
    if decimals:
        # 1.50 -> 1.5, 2.00 -> 2
        text = text.rstrip("0").rstrip(".")
    return f"{text} {BYTE_UNITS[index]}"


def format_duration(seconds: float) -> str:
    return f"{seconds:.2f}s"
