from toxcore_client import ToxCore, version

major, minor, patch = version()
print(f"toxcore {major}.{minor}.{patch}")
with ToxCore() as core:
    print(f"tox id: {core.self_get_address().hex().upper()}")
    print(f"iteration interval: {core.iteration_interval()} ms")
