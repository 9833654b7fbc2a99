from claus.env_api_keys import has_api_key


def test_has_api_key_true_when_set(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
    assert has_api_key() is True


def test_has_api_key_false_when_unset(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    assert has_api_key() is False


def test_has_api_key_false_when_empty(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    assert has_api_key() is False
