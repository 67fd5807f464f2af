import logging, typing
from . import log
from .engine import CipherEngine, CipherSession, Mode, Step
from .errors import ProtocolError

#One message arriving as several chunks. The stream claims the cube from the first chunk until
#end_message(): the cube is keyed once, every chunk continues where the previous one left it, and
#the driving character and round-constant position are threaded across chunk boundaries. Other
#sessions on the same cube wait until the message is done.
class _ChunkedStream:
    MODE: Mode

    engine: CipherEngine
    iv: str
    last_char: str
    position: int
    chunks: int

    _started: bool
    _version: int

    def __init__(self, engine: CipherEngine, iv: str = None):
        self.engine = engine
        self.iv = engine.config.iv if iv is None else iv
        self.last_char = self.iv
        self.position = self.chunks = 0
        self._started = False
        self._version = None

    @property
    def started(self) -> bool: return self._started

    async def start(self):
        if self._started: raise ProtocolError("stream message already started")

        await self.engine.handler.claim()
        try: self.engine.rekey()
        except BaseException:
            self.engine.handler.release()
            raise

        self.last_char = self.iv
        self.position = self.chunks = 0
        self._version = self.engine.handler.version
        self._started = True

    async def feed(self, chunk: str, on_progress: typing.Callable[[Step], None] = None) -> str:
        if not self._started: await self.start()

        #Moves issued behind the claim would desynchronise us from the peer
        if self.engine.handler.version != self._version:
            self.end_message()
            raise ProtocolError("cube was turned outside of the stream between chunks")

        session = CipherSession(self.MODE, chunk, self.last_char, self.position)
        try: out = await self.engine.run_claimed(session, on_progress, rekey=False)
        except BaseException:
            self.end_message()
            raise

        if session.data: self.last_char = session.driving
        self.position += len(session.data)
        self.chunks += 1
        self._version = self.engine.handler.version

        log.LOGGER.log(logging.DEBUG, f"{type(self).__name__}: chunk #{self.chunks}, {len(session.data)} symbol(s), register {self.last_char!r}")
        return out

    def end_message(self):
        #The next message starts over on a freshly keyed cube
        if not self._started: return
        self._started = False
        self.engine.handler.release()
        log.LOGGER.log(logging.DEBUG, f"{type(self).__name__}: message done after {self.chunks} chunk(s), {self.position} symbol(s)")

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, *exc): self.end_message()

class StreamEncryptor(_ChunkedStream):
    MODE = Mode.ENCRYPT

class StreamDecryptor(_ChunkedStream):
    MODE = Mode.DECRYPT
