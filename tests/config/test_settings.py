import pytest

from core.config import Settings


def _settings() -> Settings:
    return Settings(_env_file=None)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("http://a.example,http://b.example", ["http://a.example", "http://b.example"]),
        (" http://a.example , http://b.example ,", ["http://a.example", "http://b.example"]),
        ('["http://a.example", "http://b.example"]', ["http://a.example", "http://b.example"]),
        ("http://only.example", ["http://only.example"]),
        ("*", ["*"]),
    ],
)
def test_cors_origins_from_env(monkeypatch, raw, expected):
    monkeypatch.setenv("CORS_ORIGINS", raw)
    assert _settings().CORS_ORIGINS == expected


def test_cors_origins_default_allows_any(monkeypatch):
    monkeypatch.delenv("CORS_ORIGINS", raising=False)
    assert _settings().CORS_ORIGINS == ["*"]


def test_nested_vending_delay_from_env(monkeypatch):
    monkeypatch.setenv("VENDING__DELAY_MS", "1500")
    monkeypatch.setenv("PORT", "4000")
    s = _settings()
    assert s.vending.delay_ms == 1500
    assert s.PORT == 4000


def test_negative_vending_delay_is_rejected(monkeypatch):
    monkeypatch.setenv("VENDING__DELAY_MS", "-1")
    with pytest.raises(ValueError):
        _settings()
