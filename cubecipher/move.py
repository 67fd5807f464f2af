import typing, enum, math
from . import alphabet, state
from .errors import InvalidMoveError

class Move(enum.Enum):
    U = "U"
    Ur = "U'"
    D = "D"
    Dr = "D'"
    L = "L"
    Lr = "L'"
    R = "R"
    Rr = "R'"
    F = "F"
    Fr = "F'"
    B = "B"
    Br = "B'"

    @property
    def face(self) -> state.Face: return state.Face[self.name[0:1]]
    @property
    def is_ccw(self) -> bool: return 'r' in self.name
    @property
    def inverse(self) -> "Move": return Move[self.name[0:1] if self.is_ccw else self.name + 'r']

    @property
    def turn(self) -> int:
        #+1 / -1 quarter turn about the positive world axis; clockwise as seen from outside the face
        return -self.face.layer * (-1 if self.is_ccw else +1)

    @property
    def angle(self) -> float: return self.turn * math.pi / 2

    @property
    def rot_matrix(self) -> state.Mat:
        s = self.turn
        axis = self.face.axis
        if axis == 0:
            return (
                ( 1,  0,  0),
                ( 0,  0, -s),
                ( 0, +s,  0)
            )
        elif axis == 1:
            return (
                ( 0,  0, +s),
                ( 0,  1,  0),
                (-s,  0,  0)
            )
        elif axis == 2:
            return (
                ( 0, -s,  0),
                (+s,  0,  0),
                ( 0,  0,  1)
            )
        else: assert False

    @staticmethod
    def parse(notation: str) -> "Move":
        try: return Move(notation.strip())
        except ValueError: raise InvalidMoveError(f"unknown move {notation!r}") from None

    def __str__(self): return self.value
    def __format__(self, spec): return format(str(self), spec)

def parse_sequence(seq: str) -> typing.List[Move]: return [Move.parse(m) for m in seq.split()]

#Every one of these turns the layer holding the sensor corner
SELECTOR_MOVES = (Move.U, Move.Ur, Move.R, Move.Rr, Move.F, Move.Fr)

def select_move(driving: typing.Optional[str]) -> Move:
    if not driving: return Move.U
    return SELECTOR_MOVES[alphabet.char_code(driving) % len(SELECTOR_MOVES)]
