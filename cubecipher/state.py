import typing, enum, collections, hashlib
from . import key_schedule
from .errors import KeyScheduleError, SensorFault

Vec = typing.Tuple[int, int, int]
Mat = typing.Tuple[Vec, Vec, Vec]

IDENTITY: Mat = ((1, 0, 0), (0, 1, 0), (0, 0, 1))
LATTICE: typing.List[Vec] = [(x, y, z) for x in (-1, 0, 1) for y in (-1, 0, 1) for z in (-1, 0, 1)]

SENSOR_POS: Vec = (1, 1, 1)
SENSOR_DIRECTION: Vec = (0, 1, 0)
SENSOR_THRESHOLD = 0.9

def mat_vec(m: Mat, v: Vec) -> Vec: return tuple(sum(m[r][c] * v[c] for c in range(3)) for r in range(3))
def mat_mul(a: Mat, b: Mat) -> Mat: return tuple(tuple(sum(a[r][k] * b[k][c] for k in range(3)) for c in range(3)) for r in range(3))
def dot(a: Vec, b: Vec) -> int: return sum(a[i] * b[i] for i in range(3))

class Face(enum.Enum):
    #Declaration order is the facelet assignment order
    R = 'R'
    L = 'L'
    U = 'U'
    D = 'D'
    F = 'F'
    B = 'B'

    @property
    def direction(self) -> Vec: return {
        Face.R: (+1,  0,  0),
        Face.L: (-1,  0,  0),
        Face.U: ( 0, +1,  0),
        Face.D: ( 0, -1,  0),
        Face.F: ( 0,  0, +1),
        Face.B: ( 0,  0, -1)
    }[self]

    @property
    def axis(self) -> int: return next(i for i, d in enumerate(self.direction) if d != 0)
    @property
    def layer(self) -> int: return self.direction[self.axis]

    @property
    def opposite(self) -> "Face": return {
        Face.R: Face.L,
        Face.L: Face.R,
        Face.U: Face.D,
        Face.D: Face.U,
        Face.F: Face.B,
        Face.B: Face.F
    }[self]

    def is_on_face(self, x: int, y: int, z: int) -> bool: return (x, y, z)[self.axis] == self.layer

    @staticmethod
    def from_direction(d: Vec) -> "Face": return next(f for f in Face if f.direction == tuple(d))

class Cell:
    home: Vec
    pos: Vec
    orientation: Mat
    labels: typing.Dict[Face, str]

    def __init__(self, home: Vec, labels: typing.Dict[Face, str] = None):
        self.home = self.pos = tuple(home)
        self.orientation = IDENTITY
        self.labels = dict(labels or {})

    def world_normal(self, face: Face) -> Vec: return mat_vec(self.orientation, face.direction)

    #Best aligned local face and its alignment
    def label_facing(self, direction: Vec) -> typing.Tuple[typing.Optional[str], float]:
        best_face, best_dot = None, None
        for f in Face:
            d = dot(self.world_normal(f), direction)
            if best_dot is None or d > best_dot: best_face, best_dot = f, d

        return self.labels.get(best_face), float(best_dot)

    def rotate(self, rot: Mat):
        self.pos = tuple(round(c) for c in mat_vec(rot, self.pos))
        self.orientation = mat_mul(rot, self.orientation)

    def copy(self) -> "Cell":
        c = Cell(self.home, self.labels)
        c.pos, c.orientation = self.pos, self.orientation
        return c

    @property
    def num_exposed(self) -> int: return sum(1 for c in self.home if c != 0)
    @property
    def is_core(self) -> bool: return self.num_exposed == 0
    @property
    def is_center(self) -> bool: return self.num_exposed == 1
    @property
    def is_edge(self) -> bool: return self.num_exposed == 2
    @property
    def is_corner(self) -> bool: return self.num_exposed == 3

    def __repr__(self): return f"Cell(home={self.home}, pos={self.pos}, labels={''.join(self.labels.values())!r})"

class CubeState:
    cells: typing.List[Cell]
    _grid: typing.Dict[Vec, Cell]

    def __init__(self, labels: typing.Sequence[str]):
        labels_it = iter(labels)
        def next_label() -> str:
            try: return next(labels_it)
            except StopIteration: raise KeyScheduleError(f"expected {key_schedule.NUM_LABELS} facelet labels, got {len(labels)}") from None

        #Hand out labels to the exposed faces, cell by cell
        self.cells = []
        for x, y, z in LATTICE:
            self.cells.append(Cell((x, y, z), { f: next_label() for f in Face if f.is_on_face(x, y, z) }))

        if next(labels_it, None) is not None: raise KeyScheduleError(f"expected {key_schedule.NUM_LABELS} facelet labels, got {len(labels)}")

        self._grid = { c.pos: c for c in self.cells }

    @staticmethod
    def from_seed(seed: str) -> "CubeState": return CubeState(key_schedule.label_permutation(seed))

    def apply_move(self, move: "Move"):
        rot = move.rot_matrix
        face = move.face
        for c in self.cells:
            if face.is_on_face(*c.pos): c.rotate(rot)

        self._grid = { c.pos: c for c in self.cells }
        assert len(self._grid) == len(LATTICE) and all(p in self._grid for p in LATTICE)

    def cell_at(self, pos: Vec) -> Cell: return self._grid[tuple(pos)]

    def sensor(self, pos: Vec = SENSOR_POS, direction: Vec = SENSOR_DIRECTION, threshold: float = SENSOR_THRESHOLD) -> str:
        label, alignment = self.cell_at(pos).label_facing(direction)
        if alignment < threshold: raise SensorFault(pos, direction, alignment)
        if label is None: raise SensorFault(pos, direction, alignment, f"cell at {tuple(pos)} shows an unlabelled face towards {tuple(direction)}")
        return label

    def face_labels(self, face: Face) -> typing.List[str]:
        return [self.cell_at(p).label_facing(face.direction)[0] for p in LATTICE if face.is_on_face(*p)]

    def labels(self) -> typing.Counter[str]: return collections.Counter(l for c in self.cells for l in c.labels.values())

    @property
    def is_home(self) -> bool: return all(c.pos == c.home and c.orientation == IDENTITY for c in self.cells)

    def state_hash(self) -> str:
        h = hashlib.sha256()
        for c in self.cells: h.update(repr((c.pos, c.orientation)).encode())
        return h.hexdigest()[:12].upper()

    def copy(self) -> "CubeState":
        st = CubeState.__new__(CubeState)
        st.cells = [c.copy() for c in self.cells]
        st._grid = { c.pos: c for c in st.cells }
        return st

    def __iter__(self) -> typing.Iterator[typing.Tuple[Vec, Cell]]:
        for p in LATTICE: yield p, self._grid[p]

    def __str__(self): return " ".join("".join(self.face_labels(f)) for f in Face)
