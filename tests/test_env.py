from hailstorm.env import EnvModuleConf, env_module, read_env


def test_module_exposes_read_function(monkeypatch):
    monkeypatch.setenv("RUNE_TEST_VAR", "789")
    module = env_module(EnvModuleConf().with_prefix("RUNE"))
    assert module.read("TEST_VAR") == "789"


def test_read_without_prefix(monkeypatch):
    monkeypatch.setenv("RUNE_TEST_VAR", "789")
    module = env_module(EnvModuleConf())
    assert module.read("RUNE_TEST_VAR") == "789"
    assert module.read("TEST_VAR") is None or module.read("TEST_VAR") != "789"


def test_missing_variable_is_none(monkeypatch):
    monkeypatch.delenv("RUNE_MISSING_VAR", raising=False)
    assert read_env("RUNE", "MISSING_VAR") is None


def test_prefix_is_joined_with_underscore(monkeypatch):
    monkeypatch.setenv("MYAPP__NAME", "double")
    monkeypatch.delenv("MYAPP_NAME", raising=False)
    assert read_env("MYAPP_", "NAME") == "double"
    assert read_env("MYAPP", "NAME") is None


def test_with_prefix_leaves_original_unchanged():
    cfg = EnvModuleConf()
    prefixed = cfg.with_prefix("RUNE")
    assert cfg.prefix is None
    assert prefixed.prefix == "RUNE"