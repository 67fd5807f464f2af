import typing

class CubeCipherError(Exception):
    pass

class AlphabetError(CubeCipherError, ValueError):
    pass

class KeyScheduleError(CubeCipherError):
    pass

class InvalidMoveError(CubeCipherError, ValueError):
    pass

#Another move has not completed yet
class MoveInFlightError(CubeCipherError):
    pass

class ProtocolError(CubeCipherError):
    pass

#No labelled facelet is aligned with the sensor
class SensorFault(CubeCipherError):
    pos: typing.Tuple[int, int, int]
    direction: typing.Tuple[int, int, int]
    alignment: float

    def __init__(self, pos, direction, alignment: float, msg: str = None):
        self.pos, self.direction, self.alignment = tuple(pos), tuple(direction), alignment
        super().__init__(msg or f"no facelet of cell at {self.pos} faces {self.direction} (best alignment {alignment:.3f})")
