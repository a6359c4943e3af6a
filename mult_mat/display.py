"""Box-drawn table rendering for matrices."""

CELL_FORMAT = "5.2f"


def _rule(left: str, mid: str, right: str, width: int, columns: int) -> str:
    return left + mid.join("─" * (width + 2) for _ in range(columns)) + right


def format_matrix(matrix) -> str:
    """One table row per matrix row, each element right-aligned as ``5.2f``."""
    n = matrix.n
    cells = [format(v, CELL_FORMAT) for v in matrix.values.tolist()]
    width = max(len(c) for c in cells)

    lines = [_rule("┌", "┬", "┐", width, n)]
    for i in range(n):
        if i:
            lines.append(_rule("├", "┼", "┤", width, n))
        row = cells[i * n:(i + 1) * n]
        lines.append("│" + "│".join(f" {c:>{width}} " for c in row) + "│")
    lines.append(_rule("└", "┴", "┘", width, n))
    return "\n".join(lines) + "\n"
