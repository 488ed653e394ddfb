from controlplane.main import run

run()
