# planning/core/board.py
from enum import IntEnum
from typing import Iterator, List, Optional, Set, Tuple

from .constants import BOARD_SIZE, LINE_DIRECTIONS, WIN_LENGTH

Cell = Tuple[int, int]


class Stone(IntEnum):
    EMPTY = 0
    BLACK = 1
    WHITE = 2
    # Marks a cell the AI may not pick this turn. Never a real stone.
    BLOCKED = 3

    def opponent(self) -> "Stone":
        if self is Stone.BLACK:
            return Stone.WHITE
        if self is Stone.WHITE:
            return Stone.BLACK
        raise ValueError(f"{self.name} has no opponent")


class Board:
    def __init__(self, size: int = BOARD_SIZE, cells: Optional[List[List[Stone]]] = None):
        """
        Board uses (x, y) indexing: cells[x][y].
        Mutated in place by the search (place, recurse, clear).
        """
        self.size = size
        self.cells = cells if cells is not None else [[Stone.EMPTY] * size for _ in range(size)]
        self.blocked: Set[Cell] = set()

    @classmethod
    def from_matrix(cls, matrix: List[List[int]]) -> "Board":
        """
        Builds a board from a row-major matrix (matrix[y][x]), the way boards
        are written out in tests: each inner list is one row.
        """
        size = len(matrix)
        board = cls(size)
        for y, row in enumerate(matrix):
            if len(row) != size:
                raise ValueError("Board matrix must be square")
            for x, val in enumerate(row):
                stone = Stone(val)
                board.cells[x][y] = stone
                if stone is Stone.BLOCKED:
                    board.blocked.add((x, y))
        return board

    def copy(self) -> "Board":
        clone = Board(self.size, [col[:] for col in self.cells])
        clone.blocked = set(self.blocked)
        return clone

    # --- Bounds-checked access ---

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def _check(self, x: int, y: int):
        # Coordinates always come from a valid grid lookup; anything else is a bug.
        if not self.in_bounds(x, y):
            raise IndexError(f"Cell ({x}, {y}) is outside the {self.size}x{self.size} board")

    def get(self, x: int, y: int) -> Stone:
        self._check(x, y)
        return self.cells[x][y]

    def is_empty(self, x: int, y: int) -> bool:
        return self.get(x, y) is Stone.EMPTY

    def center(self) -> Cell:
        return (self.size // 2, self.size // 2)

    # --- Mutation ---

    def place(self, x: int, y: int, stone: Stone):
        self._check(x, y)
        if self.cells[x][y] is not Stone.EMPTY:
            raise ValueError(f"Cell ({x}, {y}) is not empty")
        self.cells[x][y] = stone

    def clear(self, x: int, y: int):
        """Undo for place()."""
        self._check(x, y)
        self.cells[x][y] = Stone.EMPTY

    def block(self, x: int, y: int):
        self.place(x, y, Stone.BLOCKED)
        self.blocked.add((x, y))

    def unblock(self, x: int, y: int):
        if (x, y) in self.blocked:
            self.blocked.discard((x, y))
            self.cells[x][y] = Stone.EMPTY

    def clear_blocked(self):
        for x, y in list(self.blocked):
            self.unblock(x, y)

    def reset(self):
        self.cells = [[Stone.EMPTY] * self.size for _ in range(self.size)]
        self.blocked.clear()

    # --- Queries ---

    def iter_cells(self) -> Iterator[Tuple[int, int, Stone]]:
        for x in range(self.size):
            for y in range(self.size):
                yield x, y, self.cells[x][y]

    def has_stones(self) -> bool:
        return any(stone in (Stone.BLACK, Stone.WHITE) for _, _, stone in self.iter_cells())

    def is_full(self) -> bool:
        return all(stone is not Stone.EMPTY for _, _, stone in self.iter_cells())

    def empty_cells(self) -> List[Cell]:
        return [(x, y) for x, y, stone in self.iter_cells() if stone is Stone.EMPTY]

    def count_in_direction(self, x: int, y: int, dx: int, dy: int, stone: Stone) -> int:
        """Counts consecutive `stone` cells starting one step away from (x, y)."""
        count = 0
        nx, ny = x + dx, y + dy
        while self.in_bounds(nx, ny) and self.cells[nx][ny] is stone:
            count += 1
            nx += dx
            ny += dy
        return count

    def five_through(self, x: int, y: int) -> Optional[Stone]:
        """Checks for five-in-a-row passing through the stone at (x, y)."""
        stone = self.get(x, y)
        if stone not in (Stone.BLACK, Stone.WHITE):
            return None
        for dx, dy in LINE_DIRECTIONS:
            count = 1
            count += self.count_in_direction(x, y, dx, dy, stone)
            count += self.count_in_direction(x, y, -dx, -dy, stone)
            if count >= WIN_LENGTH:
                return stone
        return None

    def has_five(self, stone: Stone) -> bool:
        """Full-board scan used by the search, which has no 'last move'."""
        for x, y, cell in self.iter_cells():
            if cell is not stone:
                continue
            for dx, dy in LINE_DIRECTIONS:
                # Only start counting at the first stone of a line
                px, py = x - dx, y - dy
                if self.in_bounds(px, py) and self.cells[px][py] is stone:
                    continue
                if 1 + self.count_in_direction(x, y, dx, dy, stone) >= WIN_LENGTH:
                    return True
        return False

    # --- Formatting ---

    def render(self) -> str:
        """Generates an ASCII grid, one line per y."""
        symbols = {Stone.EMPTY: ".", Stone.BLACK: "X", Stone.WHITE: "O", Stone.BLOCKED: "#"}
        header = "  " + " ".join(str(x) for x in range(self.size))
        rows = []
        for y in range(self.size):
            rows.append(f"{y} " + " ".join(symbols[self.cells[x][y]] for x in range(self.size)))
        return header + "\n" + "\n".join(rows)

    def __str__(self) -> str:
        return self.render()
