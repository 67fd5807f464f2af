import argparse
import pytest
from cubecipher import CipherConfig, CipherEngine

def test_defaults():
    cfg = CipherConfig().validate()
    assert cfg.seed == "DEFAULT"
    assert cfg.iv == "A"
    assert cfg.round_constant_count == 512
    assert cfg.use_round_constants
    assert cfg.sensor_fault_policy == "abort"

@pytest.mark.parametrize("kwargs", [
    { "iv": "" }, { "iv": "AB" }, { "round_constant_count": -1 }, { "sensor_threshold": 0 },
    { "sensor_threshold": 1.5 }, { "sensor_fault_policy": "ignore" }, { "sensor_retries": -1 }, { "animation_ms": -5 },
])
def test_validate_rejects(kwargs):
    with pytest.raises(ValueError):
        CipherConfig(**kwargs).validate()

def test_from_args():
    parser = argparse.ArgumentParser()
    CipherConfig.add_arguments(parser)

    args = parser.parse_args(["--seed", "CLI", "--iv", "q", "--round-constants", "64", "--no-round-constants", "--sensor-fault-policy", "retry", "--sensor-retries", "3"])
    cfg = CipherConfig.from_args(args)
    assert cfg == CipherConfig("CLI", "q", 64, False, CipherConfig.sensor_threshold, "retry", 3, 0.0)
    assert isinstance(cfg.round_constant_count, int) and isinstance(cfg.sensor_retries, int)

    assert CipherConfig.from_args(parser.parse_args([])) == CipherConfig()

def test_from_args_rejects_bad_values():
    parser = argparse.ArgumentParser()
    CipherConfig.add_arguments(parser)

    with pytest.raises(SystemExit):
        parser.parse_args(["--sensor-retries", "lots"])
    with pytest.raises(SystemExit):
        parser.parse_args(["--sensor-fault-policy", "ignore"])
    with pytest.raises(ValueError):
        CipherConfig.from_args(parser.parse_args(["--iv", "AB"]))

def test_engine_picks_up_config():
    engine = CipherEngine.from_config(CipherConfig(seed="SECRET", round_constant_count=8, animation_ms=0.5))
    assert engine.handler.seed == "SECRET"
    assert engine.handler.animation_ms == 0.5
    assert len(engine.schedule.round_constants) == 8
