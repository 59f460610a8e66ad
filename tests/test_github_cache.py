import json

from prdigest import github_cache


#============================================
def test_set_then_get(tmp_path) -> None:
	cache = github_cache.GitHubQueryCache(str(tmp_path), 3600)
	path = cache.set("pull_request", {"number": 3}, {"title": "x"})
	assert path.startswith(str(tmp_path))
	assert cache.get("pull_request", {"number": 3}) == {"title": "x"}
	assert cache.get("pull_request", {"number": 4}) is None


#============================================
def test_expired_entry_is_a_miss(tmp_path) -> None:
	"""
	Entries older than the TTL are ignored.
	"""
	cache = github_cache.GitHubQueryCache(str(tmp_path), 3600)
	path = cache.set("search_merged", {"q": "a"}, [1])
	with open(path, "r", encoding="utf-8") as handle:
		payload = json.load(handle)
	payload["fetched_at"] = "2000-01-01T00:00:00+00:00"
	with open(path, "w", encoding="utf-8") as handle:
		json.dump(payload, handle)
	assert cache.get("search_merged", {"q": "a"}) is None
	assert cache.get("search_merged", {"q": "a"}, ttl_seconds=-1) == [1]


#============================================
def test_damaged_file_is_a_miss(tmp_path) -> None:
	cache = github_cache.GitHubQueryCache(str(tmp_path), 3600)
	path = cache.set("issue_comments", {"number": 1}, [])
	with open(path, "w", encoding="utf-8") as handle:
		handle.write("{not json")
	assert cache.get("issue_comments", {"number": 1}) is None


#============================================
def test_parse_fetched_at() -> None:
	assert github_cache.parse_fetched_at("") is None
	assert github_cache.parse_fetched_at("junk") is None
	value = github_cache.parse_fetched_at("2026-10-18T00:00:00Z")
	assert value.tzinfo is not None
