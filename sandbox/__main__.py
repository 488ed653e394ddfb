from sandbox.main import run

run()
