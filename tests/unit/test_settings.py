from enrollment.settings import get_settings


def test_get_settings_is_cached():
    get_settings.cache_clear()
    s1 = get_settings()
    s2 = get_settings()
    assert s1 is s2


def test_env_overrides_and_cache_clear(monkeypatch):
    monkeypatch.setenv("CODE_TTL_SECONDS", "123")
    monkeypatch.setenv("STORE_BACKEND", "memory")
    monkeypatch.setenv("CODE_MAX_ATTEMPTS", "0")
    get_settings.cache_clear()
    s = get_settings()
    assert s.code_ttl_seconds == 123
    assert s.store_backend == "memory"
    assert s.code_max_attempts == 0

    monkeypatch.delenv("CODE_TTL_SECONDS", raising=False)
    get_settings.cache_clear()
    assert get_settings().code_ttl_seconds != 123
    get_settings.cache_clear()
