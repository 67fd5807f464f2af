#Cipher feedback engine. Each symbol costs one move, picked from the driving character (the IV, then
#the previous ciphertext symbol); the label at the sensor afterwards is the key symbol K.
#  encrypt: C = (P + K + RC[i]) mod 53
#  decrypt: P = (C - K - RC[i]) mod 53
#Decryption drives the cube with the incoming ciphertext, so both peers turn it identically.

import asyncio, dataclasses, enum, logging, typing
from . import log, alphabet
from .config import CipherConfig
from .errors import ProtocolError, SensorFault
from .key_schedule import KeySchedule
from .move import Move, select_move
from .move_handler import MoveHandler

class Mode(enum.Enum):
    ENCRYPT = "encrypt"
    DECRYPT = "decrypt"

class SessionState(enum.Enum):
    IDLE = enum.auto()
    AWAITING_MOVE = enum.auto()
    COMPUTING_SYMBOL = enum.auto()
    DONE = enum.auto()
    ABORTED = enum.auto()

    @property
    def is_terminal(self) -> bool: return self in (SessionState.DONE, SessionState.ABORTED)

_TRANSITIONS: typing.Dict[SessionState, typing.Set[SessionState]] = {
    SessionState.IDLE: { SessionState.AWAITING_MOVE, SessionState.DONE, SessionState.ABORTED },
    SessionState.AWAITING_MOVE: { SessionState.COMPUTING_SYMBOL, SessionState.ABORTED },
    SessionState.COMPUTING_SYMBOL: { SessionState.AWAITING_MOVE, SessionState.DONE, SessionState.ABORTED },
    SessionState.DONE: set(),
    SessionState.ABORTED: set()
}

@dataclasses.dataclass(frozen=True)
class Step:
    index: int
    move: Move
    p: str
    k: str
    rc: int
    c: str

    def __str__(self): return f"#{self.index:<4d} {self.move:2s} P={self.p!r} K={self.k!r} RC={self.rc:2d} C={self.c!r}"

class CipherSession:
    mode: Mode
    data: str
    iv: str
    offset: int
    index: int
    driving: str
    output: typing.List[str]
    steps: typing.List[Step]

    _state: SessionState

    def __init__(self, mode: Mode, text: str, iv: str = "A", offset: int = 0):
        self.mode = mode
        self.offset = offset
        self.data = alphabet.filter_text(text)
        self.iv = self.driving = iv
        self.index = 0
        self.output = []
        self.steps = []
        self._state = SessionState.IDLE

    @property
    def state(self) -> SessionState: return self._state

    def transition(self, new: SessionState):
        if new not in _TRANSITIONS[self._state]: raise ProtocolError(f"invalid session transition {self._state.name} -> {new.name}")
        self._state = new

    @property
    def remaining(self) -> int: return len(self.data) - self.index
    @property
    def result(self) -> str: return "".join(self.output)

class CipherEngine:
    handler: MoveHandler
    config: CipherConfig
    schedule: KeySchedule

    def __init__(self, handler: MoveHandler, config: CipherConfig = None):
        self.handler = handler
        self.config = (config or CipherConfig(seed=handler.seed)).validate()
        self.schedule = self._derive(self.config.seed)

    @staticmethod
    def from_config(config: CipherConfig) -> "CipherEngine":
        config.validate()
        handler = MoveHandler(config.seed, animation_ms=config.animation_ms, sensor_threshold=config.sensor_threshold)
        return CipherEngine(handler, config)

    def _derive(self, seed: str) -> KeySchedule:
        return KeySchedule.derive(seed, self.config.round_constant_count, self.config.use_round_constants)

    def rekey(self, seed: str = None):
        #Puts the cube back into its keyed starting configuration
        if seed is not None and seed != self.schedule.seed:
            self.config = dataclasses.replace(self.config, seed=seed)
            self.schedule = self._derive(seed)

        self.handler.initialize(self.schedule.seed, self.schedule.labels)

    async def encrypt_sequence(self, text: str, iv: str = None, on_progress: typing.Callable[[Step], None] = None, rekey: bool = True, offset: int = 0) -> str:
        return await self.run(CipherSession(Mode.ENCRYPT, text, self.config.iv if iv is None else iv, offset), on_progress, rekey)

    async def decrypt_sequence(self, text: str, iv: str = None, on_progress: typing.Callable[[Step], None] = None, rekey: bool = True, offset: int = 0) -> str:
        return await self.run(CipherSession(Mode.DECRYPT, text, self.config.iv if iv is None else iv, offset), on_progress, rekey)

    async def run(self, session: CipherSession, on_progress: typing.Callable[[Step], None] = None, rekey: bool = True) -> str:
        async with self.handler.session(): return await self.run_claimed(session, on_progress, rekey)

    async def run_claimed(self, session: CipherSession, on_progress: typing.Callable[[Step], None] = None, rekey: bool = True) -> str:
        #The caller must hold the handler's claim
        if session.state != SessionState.IDLE: raise ProtocolError(f"session has already been run (state {session.state.name})")
        if rekey: self.rekey()

        try:
            if not session.data:
                session.transition(SessionState.DONE)
                return session.result

            session.transition(SessionState.AWAITING_MOVE)
            while True:
                #Turn the cube and wait for the move to be committed
                move = select_move(session.driving)
                await self.handler.apply(move)
                session.transition(SessionState.COMPUTING_SYMBOL)

                step = self._compute_step(session, move, self._read_sensor())
                session.output.append(step.c if session.mode == Mode.ENCRYPT else step.p)
                session.steps.append(step)
                session.driving = step.c
                session.index += 1

                log.LOGGER.log(logging.DEBUG, f"{session.mode.value} {step}")
                if on_progress: on_progress(step)

                if session.index >= len(session.data): break
                session.transition(SessionState.AWAITING_MOVE)

            session.transition(SessionState.DONE)
        except BaseException:
            #Cancellation included; the cube is left wherever the last committed move put it
            if not session.state.is_terminal: session.transition(SessionState.ABORTED)
            log.LOGGER.log(logging.INFO, f"{session.mode.value} session aborted after {session.index}/{len(session.data)} symbol(s)")
            raise

        log.LOGGER.log(logging.INFO, f"{session.mode.value} session done: {len(session.data)} symbol(s), {self.handler.move_count} move(s) since keying")
        return session.result

    def _read_sensor(self) -> str:
        attempts = 1 + (self.config.sensor_retries if self.config.sensor_fault_policy == "retry" else 0)
        for attempt in range(attempts):
            try: return self.handler.sensor()
            except SensorFault as e:
                if attempt + 1 >= attempts: raise
                log.LOGGER.log(logging.WARNING, f"sensor fault ({e}), re-reading ({attempt + 1}/{attempts - 1})")

        assert False

    def _compute_step(self, session: CipherSession, move: Move, sensor_val: str) -> Step:
        i = session.index
        k = alphabet.encode(sensor_val)
        rc = self.schedule.round_constant(session.offset + i)

        if session.mode == Mode.ENCRYPT:
            p_char = session.data[i]
            c_char = alphabet.decode((alphabet.encode(p_char) + k + rc) % alphabet.SIZE)
        else:
            c_char = session.data[i]
            p_char = alphabet.decode(((alphabet.encode(c_char) - k - rc) % alphabet.SIZE + alphabet.SIZE) % alphabet.SIZE)

        return Step(session.offset + i, move, p_char, sensor_val, rc, c_char)

def encrypt(text: str, seed: str = "DEFAULT", iv: str = "A", **config) -> str:
    async def run():
        return await CipherEngine.from_config(CipherConfig(seed=seed, iv=iv, **config)).encrypt_sequence(text)
    return asyncio.run(run())

def decrypt(text: str, seed: str = "DEFAULT", iv: str = "A", **config) -> str:
    async def run():
        return await CipherEngine.from_config(CipherConfig(seed=seed, iv=iv, **config)).decrypt_sequence(text)
    return asyncio.run(run())
