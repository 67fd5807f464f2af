from .log import LOGGER
from .errors import CubeCipherError, AlphabetError, KeyScheduleError, InvalidMoveError, MoveInFlightError, ProtocolError, SensorFault
from .config import CipherConfig
from .key_schedule import KeySchedule, label_permutation, round_constants
from .state import Face, Cell, CubeState
from .move import Move, parse_sequence, select_move
from .move_handler import MoveHandler
from .engine import CipherEngine, CipherSession, Mode, SessionState, Step, encrypt, decrypt
from .stream import StreamEncryptor, StreamDecryptor
