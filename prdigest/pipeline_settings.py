"""YAML settings for the digest pipeline."""

# Standard Library
import os

# PIP3 modules
import yaml


DEFAULT_REPOSITORY = "dotnet/runtime"
DEFAULT_OLLAMA_URL = "http://localhost:11434"


#============================================
def get_repo_root() -> str:
	"""
	Return repository root based on this module location.
	"""
	module_dir = os.path.dirname(os.path.abspath(__file__))
	return os.path.dirname(module_dir)


#============================================
def resolve_settings_path(path_text: str) -> str:
	"""
	Resolve settings path against cwd first, then repo root.
	"""
	if os.path.isabs(path_text):
		return path_text
	cwd_candidate = os.path.abspath(path_text)
	if os.path.isfile(cwd_candidate):
		return cwd_candidate
	repo_candidate = os.path.join(get_repo_root(), path_text)
	return os.path.abspath(repo_candidate)


#============================================
def load_settings(path_text: str) -> tuple[dict, str]:
	"""
	Load YAML settings dict and return it with resolved path.
	"""
	resolved_path = resolve_settings_path(path_text)
	if not os.path.isfile(resolved_path):
		return {}, resolved_path
	with open(resolved_path, "r", encoding="utf-8") as handle:
		data = yaml.safe_load(handle.read())
	if data is None:
		return {}, resolved_path
	if not isinstance(data, dict):
		raise RuntimeError(f"Settings file must contain a mapping: {resolved_path}")
	return data, resolved_path


#============================================
def get_nested_value(settings: dict, keys: list[str], default_value):
	"""
	Read nested mapping value by key path.
	"""
	current = settings
	for key in keys:
		if not isinstance(current, dict):
			return default_value
		if key not in current:
			return default_value
		current = current[key]
	return current


#============================================
def get_setting_str(settings: dict, keys: list[str], default_value: str) -> str:
	value = get_nested_value(settings, keys, default_value)
	if value is None:
		return default_value
	return str(value).strip()


#============================================
def get_setting_int(settings: dict, keys: list[str], default_value: int) -> int:
	"""
	Read an integer setting; raise RuntimeError naming the key path on junk.
	"""
	value = get_nested_value(settings, keys, default_value)
	if value is None:
		return default_value
	try:
		return int(value)
	except (TypeError, ValueError) as error:
		raise RuntimeError(f"Invalid integer for setting path {'.'.join(keys)}: {value}") from error


#============================================
def get_setting_bool(settings: dict, keys: list[str], default_value: bool) -> bool:
	value = get_nested_value(settings, keys, default_value)
	if isinstance(value, bool):
		return value
	if isinstance(value, str):
		text = value.strip().lower()
		if text in {"1", "true", "yes", "on"}:
			return True
		if text in {"0", "false", "no", "off"}:
			return False
		raise RuntimeError(f"Invalid boolean for setting path {'.'.join(keys)}: {value}")
	if isinstance(value, int):
		return value != 0
	if value is None:
		return default_value
	raise RuntimeError(f"Invalid boolean for setting path {'.'.join(keys)}: {value}")


#============================================
def get_github_token(settings: dict) -> str:
	"""
	GitHub token from settings, falling back to GITHUB_TOKEN.
	"""
	token = get_setting_str(settings, ["github", "token"], "")
	if token:
		return token
	return (os.environ.get("GITHUB_TOKEN", "") or "").strip()


#============================================
def get_repository(settings: dict) -> str:
	"""
	Target repository as 'owner/name'.
	"""
	value = get_setting_str(settings, ["github", "repository"], DEFAULT_REPOSITORY)
	if value.count("/") != 1 or value.startswith("/") or value.endswith("/"):
		raise RuntimeError(f"Invalid github.repository (expected owner/name): {value}")
	return value


#============================================
def get_ollama_settings(settings: dict) -> dict:
	"""
	Resolve Ollama model, URL and request policy.
	"""
	enabled = get_setting_bool(settings, ["llm", "providers", "ollama", "enabled"], True)
	if not enabled:
		raise RuntimeError(
			"No enabled LLM provider found in settings.yaml. "
			+ "Set llm.providers.ollama.enabled to true."
		)
	model = get_setting_str(settings, ["llm", "providers", "ollama", "model"], "")
	if not model:
		model = get_setting_str(settings, ["llm", "model"], "")
	return {
		"model": model,
		"base_url": get_setting_str(
			settings,
			["llm", "providers", "ollama", "base_url"],
			DEFAULT_OLLAMA_URL,
		),
		"max_tokens": get_setting_int(settings, ["llm", "max_tokens"], 1024),
		"timeout_seconds": get_setting_int(settings, ["llm", "timeout_seconds"], 300),
		"max_retries": get_setting_int(settings, ["llm", "max_retries"], 3),
	}
