from typing import Literal, Optional, TypeAlias

from rich.live import Live
from rich.panel import Panel
from rich.table import Table

from cipher_breaker.core.state_queue import SingleSlotQueue
from cipher_breaker.models.recovery import RecoverySnapshot


COLORS = {
    "current_byte": "bold yellow on black",
    "unsolved": "dark_red",
    "solved": "spring_green2",
    "partial": "green",
}

BlockState: TypeAlias = Literal["unsolved", "solved", "current"]


def block_to_string(block: bytes, block_size: int, block_state: BlockState) -> str:
    """Hex-render a secret block; unknown bytes show as ?? and the next byte is highlighted."""
    cells = [f"{b:02x}" for b in block] + ["??"] * (block_size - len(block))

    if block_state == "solved":
        return " ".join(f"[{COLORS['solved']}]{c}[/{COLORS['solved']}]" for c in cells)
    if block_state == "unsolved":
        return " ".join(f"[{COLORS['unsolved']}]{c}[/{COLORS['unsolved']}]" for c in cells)
    if block_state != "current":
        raise ValueError(f"Invalid block state: {block_state}")

    rendered = []
    for i, c in enumerate(cells):
        if i < len(block):
            style = COLORS["partial"]
        elif i == len(block):
            style = COLORS["current_byte"]
        else:
            style = COLORS["unsolved"]
        rendered.append(f"[{style}]{c}[/{style}]")
    return " ".join(rendered)


def ascii_cell(block: bytes) -> str:
    return "".join(chr(b) if 0x20 <= b < 0x7F else "." for b in block).replace("[", r"\[")


def render(state: Optional[RecoverySnapshot]):
    """Render the recovery snapshot."""
    if state is None:
        return Panel("Interrogating oracle…", title="ECB byte-at-a-time", border_style="dim")

    status = "done" if state.complete else f"byte {state.position + 1} / {state.secret_length}"
    table = Table(
        title=(
            f"Block size {state.block_size}  |  prefix {state.prefix_length}  |  "
            f"{status}  |  {state.queries} queries  |  v{state.state_version}"
        )
    )
    table.add_column("Block", justify="right")
    table.add_column("Secret (hex)")
    table.add_column("ASCII")

    bs = state.block_size
    current_block = state.position // bs
    for index in range(state.block_count):
        start = index * bs
        width = min(bs, state.secret_length - start)
        known = state.recovered[start:start + width]

        if len(known) == width:
            block_state: BlockState = "solved"
        elif index == current_block and not state.complete:
            block_state = "current"
        else:
            block_state = "unsolved"
        table.add_row(str(index), block_to_string(known, width, block_state), ascii_cell(known))

    return table


def ui_loop(state_queue: SingleSlotQueue[RecoverySnapshot]) -> None:
    """Redraw on every snapshot until the queue closes."""
    with Live(render(None), refresh_per_second=30, screen=False) as live:
        while True:
            state = state_queue.get()
            if state is None:
                break
            live.update(render(state))
