import asyncio, contextlib, logging, typing
from . import log, state, key_schedule
from .move import Move
from .errors import MoveInFlightError

MoveCallback = typing.Callable[[state.CubeState, Move], None]

#Owns the cube state. One move is in flight between `apply` and its commit; issuing another move,
#reading the sensor or re-keying in that window fails fast. Observers get the committed state and
#must not mutate it.
class MoveHandler:
    SLOWEST_MS = 1000
    FASTEST_MS = 50

    seed: str
    cur_state: state.CubeState
    animation_ms: float
    sensor_threshold: float
    auto_process: bool
    move_count: int
    version: int

    _lock: asyncio.Lock
    _session_lock: asyncio.Lock
    _handlers: typing.List[MoveCallback]
    _in_flight: typing.Optional[Move]
    _step_evt: asyncio.Event

    def __init__(self, seed: str = "DEFAULT", animation_ms: float = 0.0, sensor_threshold: float = state.SENSOR_THRESHOLD, auto_process: bool = True):
        self.animation_ms = animation_ms
        self.sensor_threshold = sensor_threshold
        self.auto_process = auto_process

        self._lock = asyncio.Lock()
        self._session_lock = asyncio.Lock()
        self._handlers = []
        self._in_flight = None
        self._step_evt = asyncio.Event()
        self.version = 0

        self.initialize(seed)

    def initialize(self, seed: str, labels: typing.Sequence[str] = None):
        if self._in_flight is not None: raise MoveInFlightError(f"can't re-key the cube while move {self._in_flight} is in flight")

        self.seed = seed
        self.cur_state = state.CubeState(labels if labels is not None else key_schedule.label_permutation(seed))
        self.move_count = 0
        self.version += 1
        log.LOGGER.log(logging.INFO, f"Initialized cube from seed {seed!r}")
        log.LOGGER.log(logging.DEBUG, f"cube labels: {self.cur_state}")

    @property
    def in_flight(self) -> typing.Optional[Move]: return self._in_flight
    @property
    def in_session(self) -> bool: return self._session_lock.locked()

    async def register_handler(self, cb: MoveCallback):
        async with self._lock: self._handlers.append(cb)

    async def unregister_handler(self, cb: MoveCallback):
        async with self._lock: self._handlers.remove(cb)

    #Exclusive use of the cube, for one cipher session or a whole chunked message
    async def claim(self): await self._session_lock.acquire()
    def release(self): self._session_lock.release()

    @contextlib.asynccontextmanager
    async def session(self) -> typing.AsyncIterator["MoveHandler"]:
        await self.claim()
        try: yield self
        finally: self.release()

    async def apply(self, move: Move) -> Move:
        if self._in_flight is not None: raise MoveInFlightError(f"can't apply move {move} while move {self._in_flight} is in flight")
        self._in_flight = move
        try:
            #Let the move settle
            if self.animation_ms > 0: await asyncio.sleep(self.animation_ms / 1000)
            if not self.auto_process: await self._step_evt.wait()
            self._step_evt.clear()

            #Commit the transform
            self.cur_state.apply_move(move)
            self.move_count += 1
            self.version += 1
        finally:
            self._in_flight = None
            self._step_evt.clear()

        log.LOGGER.log(logging.DEBUG, f"move #{self.move_count} {move:2s} -> {self.cur_state.state_hash()}")

        #Invoke handlers
        async with self._lock:
            for h in self._handlers: h(self.cur_state, move)

        return move

    async def apply_sequence(self, moves: typing.Iterable[Move]):
        for m in moves: await self.apply(m)

    def sensor(self) -> str:
        if self._in_flight is not None: raise MoveInFlightError(f"can't read the sensor while move {self._in_flight} is in flight")
        return self.cur_state.sensor(threshold=self.sensor_threshold)

    def step(self) -> bool:
        #Releases the pending move in manual mode
        if self._in_flight is None or self.auto_process: return False
        self._step_evt.set()
        return True

    def set_auto_process(self, val: bool):
        self.auto_process = val
        if not val: self._step_evt.clear()
        elif self._in_flight is not None: self._step_evt.set()

    def set_speed(self, val: int):
        #1 = slowest, 10 = fastest
        if not 1 <= val <= 10: raise ValueError(f"speed must be in [1;10], got {val}")
        self.animation_ms = MoveHandler.SLOWEST_MS - (val - 1) * (MoveHandler.SLOWEST_MS - MoveHandler.FASTEST_MS) / 9
