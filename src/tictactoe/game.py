"""Core rules for single-board Tic-Tac-Toe."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

Player = str  # "X" or "O"
Line = Tuple[int, int, int]

PLAYER_MARK: Player = "X"
BOT_MARK: Player = "O"
EMPTY = " "
MARKS = (PLAYER_MARK, BOT_MARK, EMPTY)
BOARD_SIZE = 9
CENTER = 4
CORNERS: Tuple[int, ...] = (0, 2, 6, 8)

WINNING_LINES: Tuple[Line, ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class GameStatus(str, Enum):
    PLAYING = "playing"
    WON = "won"
    DRAW = "draw"


@dataclass(frozen=True)
class Outcome:
    """Status of a board, always derived from its cells."""

    status: GameStatus
    winner: Optional[Player] = None
    line: Optional[Line] = None


def other(player: Player) -> Player:
    return BOT_MARK if player == PLAYER_MARK else PLAYER_MARK


def empty_cells(cells: Sequence[str]) -> List[int]:
    return [i for i, c in enumerate(cells) if c == EMPTY]


def winning_line(cells: Sequence[str], player: Player) -> Optional[Line]:
    for line in WINNING_LINES:
        a, b, c = line
        if cells[a] == cells[b] == cells[c] == player:
            return line
    return None


def evaluate_board(cells: Sequence[str]) -> Outcome:
    """Classify a board as won, drawn, or still in progress."""
    for player in (PLAYER_MARK, BOT_MARK):
        line = winning_line(cells, player)
        if line is not None:
            return Outcome(GameStatus.WON, winner=player, line=line)
    if EMPTY not in cells:
        return Outcome(GameStatus.DRAW)
    return Outcome(GameStatus.PLAYING)


def validate_board(cells: Sequence[str]) -> None:
    if len(cells) != BOARD_SIZE:
        raise ValueError(f"Board must have {BOARD_SIZE} cells, got {len(cells)}")
    for index, value in enumerate(cells):
        if value not in MARKS:
            raise ValueError(f"Invalid mark {value!r} at cell {index}")


@dataclass
class TicTacToeGame:
    # 'X', 'O', or ' ' (space) for empty
    cells: List[str] = field(default_factory=lambda: [EMPTY] * BOARD_SIZE)
    current_player: Player = PLAYER_MARK

    def __post_init__(self) -> None:
        validate_board(self.cells)

    # ---- derived state ----

    @property
    def outcome(self) -> Outcome:
        return evaluate_board(self.cells)

    @property
    def winner(self) -> Optional[Player]:
        return self.outcome.winner

    @property
    def drawn(self) -> bool:
        return self.outcome.status is GameStatus.DRAW

    @property
    def finished(self) -> bool:
        return self.outcome.status is not GameStatus.PLAYING

    @property
    def winning_line(self) -> Optional[Line]:
        return self.outcome.line

    # ---- moves ----

    def available_moves(self) -> List[int]:
        if self.finished:
            return []
        return empty_cells(self.cells)

    def play_move(self, index: int) -> None:
        """Place the current player's mark and hand the turn over."""
        if self.finished:
            raise ValueError("Game already finished")
        if not 0 <= index < BOARD_SIZE:
            raise ValueError(f"Cell index {index} is off the board")
        if self.cells[index] != EMPTY:
            raise ValueError("Cell already occupied")
        self.cells[index] = self.current_player
        self.current_player = other(self.current_player)

    def clone(self) -> "TicTacToeGame":
        return TicTacToeGame(cells=self.cells.copy(), current_player=self.current_player)

    def reset(self, first_player: Player = PLAYER_MARK) -> None:
        self.cells = [EMPTY] * BOARD_SIZE
        self.current_player = first_player

    def pretty(self) -> str:
        rows = [" | ".join(self.cells[i : i + 3]) for i in range(0, BOARD_SIZE, 3)]
        return "\n---------\n".join(rows)
