import pytest

from rvgadget.core.logging import RVGadgetLogger

from fakes import FakeDecoder


@pytest.fixture(autouse=True)
def _drop_log_handlers():
    """CLI runs bind handlers to the captured stderr of their test."""
    yield
    RVGadgetLogger.reset()


@pytest.fixture
def decoder() -> FakeDecoder:
    return FakeDecoder()


@pytest.fixture
def addi_jr(decoder):
    """``addi a0, a0, 1 ; c.jr ra`` decoded at 0x1000."""
    return list(decoder.decode(bytes.fromhex("130515008280"), 0x1000))
