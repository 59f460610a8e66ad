# Standard Library
import hashlib
import json
import os
from datetime import datetime
from datetime import timezone


#============================================
def parse_fetched_at(text: str) -> datetime | None:
	"""
	Parse a cache timestamp, returning None when unusable.
	"""
	text = (text or "").strip()
	if not text:
		return None
	try:
		value = datetime.fromisoformat(text.replace("Z", "+00:00"))
	except ValueError:
		return None
	if value.tzinfo is None:
		value = value.replace(tzinfo=timezone.utc)
	return value.astimezone(timezone.utc)


#============================================
class GitHubQueryCache:
	"""
	JSON files keyed by (category, query) holding GitHub payloads.
	"""

	def __init__(self, cache_dir: str, default_ttl_seconds: int):
		self.cache_dir = os.path.abspath(cache_dir)
		self.default_ttl_seconds = int(default_ttl_seconds)

	#============================================
	def cache_path(self, category: str, query: dict) -> str:
		key_text = json.dumps(
			{"category": category, "query": query},
			sort_keys=True,
			ensure_ascii=True,
		)
		digest = hashlib.sha256(key_text.encode("utf-8")).hexdigest()
		return os.path.join(self.cache_dir, category, f"{digest}.json")

	#============================================
	def get(self, category: str, query: dict, ttl_seconds: int | None = None):
		"""
		Return cached data, or None on miss, expiry or a damaged file.
		"""
		if ttl_seconds is None:
			ttl_seconds = self.default_ttl_seconds
		path = self.cache_path(category, query)
		if not os.path.isfile(path):
			return None
		try:
			with open(path, "r", encoding="utf-8") as handle:
				payload = json.load(handle)
		except (OSError, ValueError):
			return None
		if not isinstance(payload, dict):
			return None
		fetched_at = parse_fetched_at(str(payload.get("fetched_at", "")))
		if fetched_at is None:
			return None
		age_seconds = (datetime.now(timezone.utc) - fetched_at).total_seconds()
		if age_seconds < 0:
			return None
		if ttl_seconds >= 0 and age_seconds > ttl_seconds:
			return None
		return payload.get("data")

	#============================================
	def set(self, category: str, query: dict, data) -> str:
		"""
		Store data and return the cache file path.
		"""
		path = self.cache_path(category, query)
		os.makedirs(os.path.dirname(path), exist_ok=True)
		payload = {
			"category": category,
			"query": query,
			"fetched_at": datetime.now(timezone.utc).isoformat(),
			"data": data,
		}
		with open(path, "w", encoding="utf-8") as handle:
			json.dump(payload, handle, ensure_ascii=False, sort_keys=True, indent=2)
			handle.write("\n")
		return path
