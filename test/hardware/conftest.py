import os

import pytest

from fsmhost.system import load_rig_config


@pytest.fixture(scope="session")
def rig():
    """Rig named by FSMHOST_TEST_RIG, skipped unless its device is attached."""
    name = os.environ.get("FSMHOST_TEST_RIG")
    if not name:
        pytest.skip("FSMHOST_TEST_RIG not set")
    return load_rig_config(name)


@pytest.fixture
def device(rig):
    sm = rig.create_device()
    if sm.emulator_mode:
        pytest.skip(f"No device detected on {rig.port}")
    ok, msg = sm.open()
    if not ok:
        pytest.skip(msg)
    yield sm
    sm.close()
