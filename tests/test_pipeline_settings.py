import pytest

from prdigest import pipeline_settings


#============================================
def test_load_settings_missing_file(tmp_path) -> None:
	"""
	Missing settings file should return empty settings.
	"""
	settings, resolved_path = pipeline_settings.load_settings(str(tmp_path / "missing.yaml"))
	assert settings == {}
	assert resolved_path.endswith("missing.yaml")


#============================================
def test_load_settings_reads_yaml(tmp_path) -> None:
	"""
	YAML settings should be parsed into nested mapping values.
	"""
	settings_path = tmp_path / "settings.yaml"
	settings_path.write_text(
		"github:\n"
		"  repository: dotnet/aspnetcore\n"
		"llm:\n"
		"  max_tokens: 999\n",
		encoding="utf-8",
	)
	settings, _ = pipeline_settings.load_settings(str(settings_path))
	assert pipeline_settings.get_repository(settings) == "dotnet/aspnetcore"
	assert pipeline_settings.get_setting_int(settings, ["llm", "max_tokens"], 1200) == 999


#============================================
def test_load_settings_rejects_non_mapping(tmp_path) -> None:
	settings_path = tmp_path / "settings.yaml"
	settings_path.write_text("- a\n- b\n", encoding="utf-8")
	with pytest.raises(RuntimeError):
		pipeline_settings.load_settings(str(settings_path))


#============================================
def test_get_setting_int_invalid_value_raises() -> None:
	"""
	Invalid integer setting should raise RuntimeError.
	"""
	settings = {"llm": {"max_tokens": "abc"}}
	with pytest.raises(RuntimeError):
		pipeline_settings.get_setting_int(settings, ["llm", "max_tokens"], 1200)


#============================================
def test_get_setting_bool_values() -> None:
	settings = {"a": "yes", "b": 0, "c": "maybe"}
	assert pipeline_settings.get_setting_bool(settings, ["a"], False) is True
	assert pipeline_settings.get_setting_bool(settings, ["b"], True) is False
	assert pipeline_settings.get_setting_bool(settings, ["missing"], True) is True
	with pytest.raises(RuntimeError):
		pipeline_settings.get_setting_bool(settings, ["c"], False)


#============================================
def test_get_repository_default_and_invalid() -> None:
	assert pipeline_settings.get_repository({}) == "dotnet/runtime"
	with pytest.raises(RuntimeError):
		pipeline_settings.get_repository({"github": {"repository": "no-slash"}})


#============================================
def test_get_github_token_env_fallback(monkeypatch) -> None:
	"""
	Settings token wins; GITHUB_TOKEN is used otherwise.
	"""
	monkeypatch.setenv("GITHUB_TOKEN", " env-token ")
	assert pipeline_settings.get_github_token({}) == "env-token"
	assert pipeline_settings.get_github_token({"github": {"token": "file-token"}}) == "file-token"


#============================================
def test_get_ollama_settings() -> None:
	settings = {
		"llm": {
			"max_retries": 5,
			"providers": {
				"ollama": {"enabled": True, "model": "qwen3:8b", "base_url": "http://gpu:11434"},
			},
		}
	}
	ollama = pipeline_settings.get_ollama_settings(settings)
	assert ollama["model"] == "qwen3:8b"
	assert ollama["base_url"] == "http://gpu:11434"
	assert ollama["max_retries"] == 5
	assert ollama["max_tokens"] == 1024


#============================================
def test_get_ollama_settings_disabled_raises() -> None:
	settings = {"llm": {"providers": {"ollama": {"enabled": False}}}}
	with pytest.raises(RuntimeError):
		pipeline_settings.get_ollama_settings(settings)
