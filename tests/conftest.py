import pytest

from tests.helpers import CONFIG_TOML


@pytest.fixture
def write_config(tmp_path):
    def _write(text=CONFIG_TOML, name="config.toml"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def credentials(monkeypatch):
    monkeypatch.setenv("UNIFI_USERNAME", "maas")
    monkeypatch.setenv("UNIFI_PASSWORD", "s3cret")


@pytest.fixture
def no_credentials(monkeypatch):
    monkeypatch.delenv("UNIFI_USERNAME", raising=False)
    monkeypatch.delenv("UNIFI_PASSWORD", raising=False)
