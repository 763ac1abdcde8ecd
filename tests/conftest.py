import pytest

from u2netp_cutout import config


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    for name in ("U2NETP_MODEL_PATH", "U2NETP_INPUT_WIDTH", "U2NETP_INPUT_HEIGHT", "U2NETP_SERIALIZE_INFERENCE"):
        monkeypatch.delenv(name, raising=False)
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()
