import argparse, dataclasses
from . import key_schedule, state

SENSOR_FAULT_POLICIES = ("abort", "retry")
@dataclasses.dataclass
class CipherConfig:
    seed: str = "DEFAULT"
    iv: str = "A"
    round_constant_count: int = key_schedule.DEFAULT_ROUND_CONSTANTS
    use_round_constants: bool = True
    sensor_threshold: float = state.SENSOR_THRESHOLD
    sensor_fault_policy: str = "abort"
    sensor_retries: int = 0
    animation_ms: float = 0.0

    def validate(self) -> "CipherConfig":
        if len(self.iv) != 1: raise ValueError(f"IV must be a single character, got {self.iv!r}")
        if self.round_constant_count < 0: raise ValueError(f"round-constant count must not be negative: {self.round_constant_count}")
        if not 0 < self.sensor_threshold <= 1: raise ValueError(f"sensor threshold must be in (0;1]: {self.sensor_threshold}")
        if self.sensor_fault_policy not in SENSOR_FAULT_POLICIES: raise ValueError(f"unknown sensor fault policy {self.sensor_fault_policy!r}, expected one of {SENSOR_FAULT_POLICIES}")
        if self.sensor_retries < 0: raise ValueError(f"sensor retries must not be negative: {self.sensor_retries}")
        if self.animation_ms < 0: raise ValueError(f"animation duration must not be negative: {self.animation_ms}")
        return self

    @staticmethod
    def add_arguments(parser: argparse.ArgumentParser):
        parser.add_argument("-k", "--seed", help="Key seed string the cube and round constants are derived from")
        parser.add_argument("--iv", help="Initial driving character")
        parser.add_argument("--round-constants", dest="round_constant_count", type=int, help="Length of the round-constant table")
        parser.add_argument("--no-round-constants", dest="use_round_constants", action="store_false", default=None, help="Use the legacy C = (P + K) mod 53 variant")
        parser.add_argument("--sensor-fault-policy", choices=SENSOR_FAULT_POLICIES, help="What to do when the sensor can't be read")
        parser.add_argument("--sensor-retries", type=int, help="Sensor re-reads before giving up (retry policy)")
        parser.add_argument("--animation-ms", type=float, help="Simulated time each move takes to settle")

    @staticmethod
    def from_args(args: argparse.Namespace) -> "CipherConfig":
        #Unset flags keep the defaults
        overrides = { f.name: getattr(args, f.name) for f in dataclasses.fields(CipherConfig) if getattr(args, f.name, None) is not None }
        return CipherConfig(**overrides).validate()
