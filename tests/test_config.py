import pytest

from query_orchestrator import OrchestratorOptions, PRESETS, build_orchestrator_options


def test_defaults():
    opts = OrchestratorOptions()
    assert (opts.min_length, opts.debounce_ms, opts.cache_ttl_ms) == (3, 75, 60_000)
    assert opts.use_cache is True
    assert opts.refresh_on_cache is False
    assert opts.debounce_seconds == pytest.approx(0.075)
    assert opts.cache_ttl_seconds == 60


def test_background_search_preset(monkeypatch):
    for key in ("MIN_LENGTH", "DEBOUNCE_MS", "CACHE_TTL_MS"):
        monkeypatch.delenv(f"QUERY_ORCHESTRATOR_{key}", raising=False)
    opts = build_orchestrator_options(preset="background_search")
    assert (opts.min_length, opts.debounce_ms, opts.cache_ttl_ms) == (5, 400, 300_000)
    # presets are copied, never shared
    opts.min_length = 99
    assert PRESETS["background_search"].min_length == 5


def test_unknown_preset():
    with pytest.raises(ValueError):
        build_orchestrator_options(preset="nope")


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("QUERY_ORCHESTRATOR_DEBOUNCE_MS", "250")
    monkeypatch.setenv("QUERY_ORCHESTRATOR_MIN_LENGTH", "not-a-number")
    monkeypatch.setenv("QUERY_ORCHESTRATOR_REFRESH_ON_CACHE", "yes")
    monkeypatch.setenv("QUERY_ORCHESTRATOR_USE_CACHE", "0")

    opts = build_orchestrator_options(base=OrchestratorOptions(min_length=4))
    assert opts.debounce_ms == 250
    assert opts.min_length == 4
    assert opts.refresh_on_cache is True
    assert opts.use_cache is False


def test_merged_keeps_original_untouched():
    base = OrchestratorOptions()
    changed = base.merged({"min_length": 7, "use_cache": "no", "unknown": 1})
    assert changed.min_length == 7
    assert changed.use_cache is True
    assert base.min_length == 3


def test_unrecognised_bool_env_values_are_ignored(monkeypatch):
    monkeypatch.setenv("QUERY_ORCHESTRATOR_USE_CACHE", "maybe")
    monkeypatch.setenv("QUERY_ORCHESTRATOR_REFRESH_ON_CACHE", "sometimes")

    opts = build_orchestrator_options(
        base=OrchestratorOptions(use_cache=True, refresh_on_cache=True)
    )
    assert opts.use_cache is True
    assert opts.refresh_on_cache is True


@pytest.mark.parametrize(
    "raw, expected",
    [("false", False), (" No ", False), ("TRUE", True), ("1", True)],
)
def test_bool_env_spellings(monkeypatch, raw, expected):
    monkeypatch.setenv("QUERY_ORCHESTRATOR_USE_CACHE", raw)
    opts = build_orchestrator_options(base=OrchestratorOptions(use_cache=not expected))
    assert opts.use_cache is expected
