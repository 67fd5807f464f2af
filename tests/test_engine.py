import asyncio
import pytest
from cubecipher import (alphabet, CipherConfig, CipherEngine, CipherSession, Mode, Move, MoveHandler, ProtocolError,
                        SensorFault, SessionState, select_move, encrypt, decrypt)

@pytest.mark.asyncio
async def test_hello_world_round_trip(engine):
    ct = await engine.encrypt_sequence("HELLO WORLD", "A")
    assert len(ct) == 11
    assert alphabet.is_valid(ct)
    assert ct != "HELLO WORLD"
    assert engine.handler.move_count == 11

    assert await engine.decrypt_sequence(ct, "A") == "HELLO WORLD"

@pytest.mark.asyncio
async def test_encryption_is_deterministic(engine):
    ct1 = await engine.encrypt_sequence("HELLO WORLD")
    ct2 = await engine.encrypt_sequence("HELLO WORLD")
    assert ct1 == ct2

    other = CipherEngine.from_config(CipherConfig(seed="DEFAULT"))
    assert await other.encrypt_sequence("HELLO WORLD") == ct1

@pytest.mark.asyncio
async def test_empty_input_makes_no_moves(engine):
    moves = []
    await engine.handler.register_handler(lambda st, mv: moves.append(mv))

    assert await engine.encrypt_sequence("") == ""
    assert await engine.decrypt_sequence("") == ""
    assert await engine.encrypt_sequence("!?123") == ""
    assert moves == []
    assert engine.handler.move_count == 0

@pytest.mark.asyncio
async def test_foreign_characters_are_dropped(engine):
    ct = await engine.encrypt_sequence("Hello, World!")
    assert len(ct) == len("Hello World")
    assert ct == await engine.encrypt_sequence("Hello World")
    assert await engine.decrypt_sequence(ct) == "Hello World"

@pytest.mark.asyncio
@pytest.mark.parametrize("seed", ["DEFAULT", "SECRET", "", "a much longer key phrase"])
@pytest.mark.parametrize("iv", ["A", "z", " ", "#"])
async def test_round_trip(seed, iv):
    text = "The quick brown fox jumps over the lazy dog"
    engine = CipherEngine.from_config(CipherConfig(seed=seed, iv=iv))
    ct = await engine.encrypt_sequence(text)
    assert len(ct) == len(text)
    assert await engine.decrypt_sequence(ct) == text

@pytest.mark.asyncio
async def test_round_trip_beyond_round_constant_table():
    engine = CipherEngine.from_config(CipherConfig(seed="DEFAULT", round_constant_count=7))
    text = "abcdefghijklmnopqrstuvwxyz ABCDEFGHIJKLMNOPQRSTUVWXYZ" * 3
    assert await engine.decrypt_sequence(await engine.encrypt_sequence(text)) == text

@pytest.mark.asyncio
async def test_cross_seed_divergence():
    a = await CipherEngine.from_config(CipherConfig(seed="DEFAULT")).encrypt_sequence("HELLO WORLD")
    b = await CipherEngine.from_config(CipherConfig(seed="OTHER")).encrypt_sequence("HELLO WORLD")
    assert len(a) == len(b) == 11
    assert a != b

@pytest.mark.asyncio
async def test_iv_changes_ciphertext(engine):
    assert await engine.encrypt_sequence("HELLO WORLD", "A") != await engine.encrypt_sequence("HELLO WORLD", "B")

@pytest.mark.asyncio
async def test_step_trace(engine):
    steps = []
    ct = await engine.encrypt_sequence("HELLO WORLD", "A", on_progress=steps.append)

    assert [s.index for s in steps] == list(range(11))
    assert "".join(s.c for s in steps) == ct
    assert "".join(s.p for s in steps) == "HELLO WORLD"

    driving = "A"
    for s in steps:
        assert s.move is select_move(driving)
        assert s.rc == engine.schedule.round_constant(s.index)
        assert (alphabet.encode(s.p) + alphabet.encode(s.k) + s.rc) % 53 == alphabet.encode(s.c)
        driving = s.c

@pytest.mark.asyncio
async def test_decryption_replays_the_same_moves(engine):
    enc_steps, dec_steps = [], []
    ct = await engine.encrypt_sequence("Attack at dawn", on_progress=enc_steps.append)
    await engine.decrypt_sequence(ct, on_progress=dec_steps.append)
    assert [s.move for s in enc_steps] == [s.move for s in dec_steps]
    assert [s.k for s in enc_steps] == [s.k for s in dec_steps]

@pytest.mark.asyncio
async def test_wrong_key_garbles():
    ct = await CipherEngine.from_config(CipherConfig(seed="DEFAULT")).encrypt_sequence("HELLO WORLD")
    pt = await CipherEngine.from_config(CipherConfig(seed="WRONG")).decrypt_sequence(ct)
    assert len(pt) == 11
    assert pt != "HELLO WORLD"

@pytest.mark.asyncio
async def test_legacy_variant_without_round_constants():
    engine = CipherEngine.from_config(CipherConfig(seed="DEFAULT", use_round_constants=False))
    steps = []
    ct = await engine.encrypt_sequence("HELLO WORLD", on_progress=steps.append)
    assert all(s.rc == 0 for s in steps)
    assert await engine.decrypt_sequence(ct) == "HELLO WORLD"

@pytest.mark.asyncio
async def test_without_rekey_continues_from_current_state(engine):
    text = "the cube keeps turning between messages"
    await engine.handler.apply_sequence([Move.R, Move.U])
    a = await engine.encrypt_sequence(text, rekey=False)
    assert engine.handler.move_count == 2 + len(text)
    b = await engine.encrypt_sequence(text)
    assert a != b

@pytest.mark.asyncio
async def test_rekey_with_new_seed(engine):
    ct = await engine.encrypt_sequence("HELLO WORLD")
    engine.rekey("OTHER")
    assert engine.schedule.seed == "OTHER"
    assert engine.handler.seed == "OTHER"
    assert await engine.encrypt_sequence("HELLO WORLD") != ct

@pytest.mark.asyncio
async def test_session_state_machine(engine):
    session = CipherSession(Mode.ENCRYPT, "HI", "A")
    assert session.state == SessionState.IDLE
    assert await engine.run(session) == session.result
    assert session.state == SessionState.DONE
    assert session.remaining == 0

    with pytest.raises(ProtocolError):
        await engine.run(session)

def test_invalid_transitions():
    session = CipherSession(Mode.DECRYPT, "HI")
    with pytest.raises(ProtocolError):
        session.transition(SessionState.COMPUTING_SYMBOL)

    session.transition(SessionState.AWAITING_MOVE)
    with pytest.raises(ProtocolError):
        session.transition(SessionState.AWAITING_MOVE)
    with pytest.raises(ProtocolError):
        session.transition(SessionState.DONE)

    session.transition(SessionState.ABORTED)
    with pytest.raises(ProtocolError):
        session.transition(SessionState.IDLE)

def _faulty_sensor(handler: MoveHandler, failures: int):
    real = handler.sensor
    calls = { "n": 0 }

    def sensor():
        calls["n"] += 1
        if calls["n"] <= failures: raise SensorFault((1, 1, 1), (0, 1, 0), 0.5)
        return real()

    handler.sensor = sensor
    return calls

@pytest.mark.asyncio
async def test_sensor_fault_aborts_session(engine):
    _faulty_sensor(engine.handler, 1)
    session = CipherSession(Mode.ENCRYPT, "HELLO")

    with pytest.raises(SensorFault):
        await engine.run(session)

    assert session.state == SessionState.ABORTED
    assert session.result == ""
    #The move which preceded the failed read stays committed
    assert engine.handler.move_count == 1
    assert not engine.handler.in_session

@pytest.mark.asyncio
async def test_sensor_fault_retry_policy():
    expected = await CipherEngine.from_config(CipherConfig(seed="DEFAULT")).encrypt_sequence("HELLO")

    engine = CipherEngine.from_config(CipherConfig(seed="DEFAULT", sensor_fault_policy="retry", sensor_retries=2))
    calls = _faulty_sensor(engine.handler, 2)
    assert await engine.encrypt_sequence("HELLO") == expected
    assert calls["n"] == 5 + 2

@pytest.mark.asyncio
async def test_sensor_fault_retry_gives_up():
    engine = CipherEngine.from_config(CipherConfig(seed="DEFAULT", sensor_fault_policy="retry", sensor_retries=1))
    _faulty_sensor(engine.handler, 2)
    with pytest.raises(SensorFault):
        await engine.encrypt_sequence("HELLO")

@pytest.mark.asyncio
async def test_concurrent_sessions_are_serialized():
    engine = CipherEngine.from_config(CipherConfig(seed="DEFAULT", animation_ms=1))
    expected = await engine.encrypt_sequence("HELLO WORLD")

    results = await asyncio.gather(*(engine.encrypt_sequence("HELLO WORLD") for _ in range(3)))
    assert results == [expected] * 3

@pytest.mark.asyncio
async def test_cancelled_session_aborts():
    engine = CipherEngine.from_config(CipherConfig(seed="DEFAULT", animation_ms=1000))
    session = CipherSession(Mode.ENCRYPT, "HELLO")
    task = asyncio.ensure_future(engine.run(session))
    await asyncio.sleep(0.01)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert session.state == SessionState.ABORTED
    assert engine.handler.in_flight is None
    assert not engine.handler.in_session

def test_sync_helpers():
    ct = encrypt("HELLO WORLD", seed="DEFAULT", iv="A")
    assert len(ct) == 11
    assert decrypt(ct, seed="DEFAULT", iv="A") == "HELLO WORLD"
    assert decrypt(encrypt("Hi there", seed="k", round_constant_count=3), seed="k", round_constant_count=3) == "Hi there"

@pytest.mark.asyncio
async def test_known_ciphertext():
    engine = CipherEngine.from_config(CipherConfig(seed="DEFAULT", iv="z"))
    assert await engine.encrypt_sequence("HELLO WORLD") == "ZsuPSnvAmIn"
    assert await engine.decrypt_sequence("ZsuPSnvAmIn") == "HELLO WORLD"

@pytest.mark.asyncio
async def test_rekey_leaves_caller_config_alone():
    cfg = CipherConfig(seed="DEFAULT")
    engine = CipherEngine.from_config(cfg)
    engine.rekey("OTHER")
    assert cfg.seed == "DEFAULT"
    assert engine.config.seed == "OTHER"

def test_known_ciphertext_sync():
    assert encrypt("HELLO WORLD", seed="DEFAULT", iv="z") == "ZsuPSnvAmIn"

@pytest.mark.asyncio
async def test_sensor_retries_do_not_suspend():
    engine = CipherEngine.from_config(CipherConfig(seed="DEFAULT", sensor_fault_policy="retry", sensor_retries=3))
    assert not asyncio.iscoroutinefunction(engine._read_sensor)
    calls = _faulty_sensor(engine.handler, 3)
    assert engine._read_sensor() == engine.handler.cur_state.sensor()
    assert calls["n"] == 4
