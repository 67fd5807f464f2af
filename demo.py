import asyncio, aioconsole, logging, cubecipher, argparse

logging.basicConfig(level=logging.INFO)

parser = argparse.ArgumentParser()
parser.add_argument("-d", "--debug", action="store_true", help="Enable debug logging")
parser.add_argument("-s", "--speed", type=int, help="Animate moves, 1 (slow) to 10 (fast)")
cubecipher.CipherConfig.add_arguments(parser)
args = parser.parse_args()

if args.debug: cubecipher.LOGGER.setLevel(logging.DEBUG)

def print_step(step: cubecipher.Step):
    print(f"    {step}")

async def command_loop(engine: cubecipher.CipherEngine):
    handler = engine.handler

    #Main command loop
    while True:
        line = (await aioconsole.ainput("> ")).strip()
        cmd, _, arg = line.partition(" ")
        cmd = cmd.lower()
        if cmd == "h" or cmd == "help":
            print("(h)elp:         Shows this help text")
            print("(q)uit:         Exits the demo")
            print("(k)ey <seed>:   Re-keys the cube")
            print("(e)nc <text>:   Encrypts a message on the freshly keyed cube")
            print("(d)ec <text>:   Decrypts a message on the freshly keyed cube")
            print("(m)oves:        Shows moves being made in real time")
            print("(s)tate:        Shows the current cube state")
            print("(v)erbose:      Toggles debug logging")
        elif cmd == "q" or cmd == "quit":
            print("Exiting...")
            break
        elif cmd == "k" or cmd == "key":
            engine.rekey(arg or engine.config.seed)
            print(f"Keyed cube with {engine.schedule.seed!r}: {handler.cur_state}")
        elif cmd == "e" or cmd == "enc":
            ct = await engine.encrypt_sequence(arg, on_progress=print_step)
            print(f"Ciphertext: {ct!r}")
        elif cmd == "d" or cmd == "dec":
            pt = await engine.decrypt_sequence(arg, on_progress=print_step)
            print(f"Plaintext: {pt!r}")
        elif cmd == "m" or cmd == "moves":
            def move_cb(state: cubecipher.CubeState, move: cubecipher.Move):
                print(f"MOVE | {state} | {move}")

            await handler.register_handler(move_cb)
            await aioconsole.ainput("Press ENTER to stop\n")
            await handler.unregister_handler(move_cb)
        elif cmd == "s" or cmd == "state":
            print(f"seed:    {engine.schedule.seed!r}")
            print(f"faces:   {handler.cur_state}")
            print(f"hash:    {handler.cur_state.state_hash()}")
            print(f"#moves:  {handler.move_count}")
            try: print(f"sensor:  {handler.sensor()!r}")
            except cubecipher.SensorFault as e: print(f"sensor:  FAULT ({e})")
        elif cmd == "v" or cmd == "verbose":
            if cubecipher.LOGGER.level != logging.DEBUG:
                cubecipher.LOGGER.setLevel(logging.DEBUG)
                print("Enabled debug logging")
            else:
                cubecipher.LOGGER.setLevel(logging.INFO)
                print("Disabled debug logging")
        elif not cmd: continue
        else: print("Unknown command")

async def main():
    engine = cubecipher.CipherEngine.from_config(cubecipher.CipherConfig.from_args(args))
    if args.speed: engine.handler.set_speed(args.speed)

    print(f"Cube keyed with {engine.schedule.seed!r}, IV {engine.config.iv!r}")
    await command_loop(engine)

asyncio.run(main())
