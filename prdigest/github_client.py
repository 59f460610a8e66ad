"""PyGithub wrapper for fetching merged pull requests of one repository."""

# Standard Library
import random
import time
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from datetime import timezone

# PIP3 modules
from github import Auth
from github import Github
from github.GithubException import GithubException

# local repo modules
from prdigest import github_cache


DEFAULT_CACHE_TTL_SECONDS = 24 * 60 * 60
RATE_LIMIT_STATUSES = (403, 429)


#============================================
class RateLimitError(RuntimeError):
	"""
	Raised when GitHub API rate limits block further requests.
	"""


#============================================
@dataclass
class PullRequestInfo:
	"""
	Raw REST payloads gathered for one merged pull request.
	"""
	issue: dict
	pull_request: dict
	files: list[dict] = field(default_factory=list)
	issue_comments: list[dict] = field(default_factory=list)
	reviews: list[dict] = field(default_factory=list)

	@property
	def number(self) -> int:
		return int(self.issue.get("number", 0))


#============================================
def normalize_datetime(value: datetime) -> datetime:
	"""
	Normalize datetime to timezone-aware UTC.
	"""
	if value.tzinfo is None:
		return value.replace(tzinfo=timezone.utc)
	return value.astimezone(timezone.utc)


#============================================
def search_timestamp(value: datetime) -> str:
	return normalize_datetime(value).strftime("%Y-%m-%dT%H:%M:%SZ")


#============================================
def build_merged_query(repo_full_name: str, start: datetime, end: datetime) -> str:
	"""
	GitHub search query for PRs merged inside [start, end].
	"""
	return (
		f"repo:{repo_full_name} is:pr is:merged "
		+ f"merged:{search_timestamp(start)}..{search_timestamp(end)}"
	)


#============================================
def raw_payload(obj) -> dict:
	return dict(getattr(obj, "raw_data", {}) or {})


#============================================
class GitHubClient:
	"""
	Thin PyGithub wrapper with caching and rate-limit handling.
	"""

	def __init__(
		self,
		token: str,
		cache_dir: str = "out/cache/github_api",
		log_fn=None,
	):
		self.log_fn = log_fn
		self._rate_check_count = 0
		self._low_remaining_threshold = 5
		self._max_proactive_sleep_seconds = 10
		self._api_call_count = 0
		self._cache_hit_count = 0
		self._cache_miss_count = 0
		self.cache = github_cache.GitHubQueryCache(
			cache_dir=cache_dir,
			default_ttl_seconds=DEFAULT_CACHE_TTL_SECONDS,
		)
		if token:
			self.client = Github(auth=Auth.Token(token), retry=None)
		else:
			self.client = Github(retry=None)

	#============================================
	def log(self, message: str) -> None:
		if self.log_fn is not None:
			self.log_fn(message)

	#============================================
	def api_usage_snapshot(self) -> dict:
		"""
		Return API/caching counters for reporting.
		"""
		return {
			"api_call_count": self._api_call_count,
			"cache_hit_count": self._cache_hit_count,
			"cache_miss_count": self._cache_miss_count,
		}

	#============================================
	def parse_rate_limit_reset(self, reset_value) -> datetime:
		"""
		Normalize PyGithub reset values to timezone-aware UTC datetime.
		"""
		if isinstance(reset_value, datetime):
			return normalize_datetime(reset_value)
		if isinstance(reset_value, (int, float)):
			return datetime.fromtimestamp(float(reset_value), tz=timezone.utc)
		if isinstance(reset_value, str):
			return normalize_datetime(datetime.fromisoformat(reset_value.replace("Z", "+00:00")))
		raise RuntimeError(f"Unsupported rate-limit reset value: {reset_value!r}")

	#============================================
	def get_core_rate_limit_snapshot(self) -> tuple[int, datetime]:
		"""
		Read core rate-limit remaining/reset across PyGithub versions.
		"""
		overview = self.client.get_rate_limit()
		rate_limit = getattr(overview, "core", None)
		if rate_limit is None:
			resources = getattr(overview, "resources", None)
			if isinstance(resources, dict):
				rate_limit = resources.get("core")
			elif resources is not None:
				rate_limit = getattr(resources, "core", None)
		if rate_limit is None:
			raise RuntimeError("Rate limit data does not expose core resource fields.")
		remaining = int(getattr(rate_limit, "remaining"))
		reset_time = self.parse_rate_limit_reset(getattr(rate_limit, "reset"))
		return remaining, reset_time

	#============================================
	def maybe_wait_for_rate_limit(self, context: str, force: bool = False) -> None:
		"""
		Sleep until reset when the remaining budget is very low.
		"""
		self._rate_check_count += 1
		if (not force) and (self._rate_check_count % 15 != 0):
			return
		try:
			remaining, reset_time = self.get_core_rate_limit_snapshot()
		except (GithubException, RuntimeError) as error:
			self.log(f"Rate limit check ({context}) unavailable: {error}")
			return
		self.log(
			f"Rate limit check ({context}): remaining={remaining}, "
			+ f"reset_at={reset_time.isoformat()}"
		)
		if remaining > self._low_remaining_threshold:
			return
		sleep_seconds = int((reset_time - datetime.now(timezone.utc)).total_seconds()) + 1
		if sleep_seconds <= 0:
			return
		if sleep_seconds > self._max_proactive_sleep_seconds:
			self.log(
				"Rate limit is low, but proactive wait exceeds cap "
				+ f"({sleep_seconds}s > {self._max_proactive_sleep_seconds}s); skipping."
			)
			return
		self.log(f"Rate limit is low ({remaining}); sleeping {sleep_seconds}s until reset.")
		time.sleep(sleep_seconds)

	#============================================
	def call_api(self, context: str, call_fn):
		"""
		Run one API call after a short random jitter.
		"""
		time.sleep(random.random())
		self._api_call_count += 1
		try:
			return call_fn()
		except GithubException as error:
			self.raise_from_github_error(error, context)

	#============================================
	def raise_from_github_error(self, error: Exception, context: str) -> None:
		"""
		Raise a readable RateLimitError for 403/429, else re-raise.
		"""
		status = getattr(error, "status", None)
		if status not in RATE_LIMIT_STATUSES:
			raise error
		reset_text = "unknown"
		remaining_text = "unknown"
		try:
			remaining, reset_time = self.get_core_rate_limit_snapshot()
			reset_text = reset_time.isoformat()
			remaining_text = str(remaining)
		except (GithubException, RuntimeError) as snapshot_error:
			self.log(f"Rate limit snapshot unavailable: {snapshot_error}")
		raise RateLimitError(
			f"GitHub API rate limit exceeded while {context}; "
			+ f"remaining={remaining_text}; reset_at={reset_text}. "
			+ "Provide settings.yaml github.token or GITHUB_TOKEN for higher limits."
		) from error

	#============================================
	def cached_query(self, category: str, query: dict, context: str, call_fn):
		"""
		Resolve one query through the filesystem cache, then the API.
		"""
		cached = self.cache.get(category, query)
		if cached is not None:
			self._cache_hit_count += 1
			self.log(f"GitHub cache hit [{category}]")
			return cached
		self._cache_miss_count += 1
		self.maybe_wait_for_rate_limit(context)
		data = self.call_api(context, call_fn)
		self.cache.set(category, query, data)
		return data

	#============================================
	def _pull_object(self, repo_full_name: str, number: int):
		repo_obj = self.client.get_repo(repo_full_name, lazy=True)
		return repo_obj.get_pull(number)

	#============================================
	def search_merged_pull_requests(
		self,
		repo_full_name: str,
		start: datetime,
		end: datetime,
	) -> list[dict]:
		"""
		Issue payloads of pull requests merged inside the window.
		"""
		query_text = build_merged_query(repo_full_name, start, end)
		self.maybe_wait_for_rate_limit("search_merged_pull_requests", force=True)
		return self.cached_query(
			"search_merged",
			{"q": query_text},
			f"GET /search/issues q={query_text}",
			lambda: [
				raw_payload(issue_obj)
				for issue_obj in self.client.search_issues(query_text, sort="created", order="asc")
			],
		)

	#============================================
	def get_pull_request(self, repo_full_name: str, number: int) -> dict:
		return self.cached_query(
			"pull_request",
			{"repo": repo_full_name, "number": number},
			f"GET /repos/{repo_full_name}/pulls/{number}",
			lambda: raw_payload(self._pull_object(repo_full_name, number)),
		)

	#============================================
	def list_pull_request_files(self, repo_full_name: str, number: int) -> list[dict]:
		return self.cached_query(
			"pull_request_files",
			{"repo": repo_full_name, "number": number},
			f"GET /repos/{repo_full_name}/pulls/{number}/files",
			lambda: [
				raw_payload(file_obj)
				for file_obj in self._pull_object(repo_full_name, number).get_files()
			],
		)

	#============================================
	def list_issue_comments(self, repo_full_name: str, number: int) -> list[dict]:
		return self.cached_query(
			"issue_comments",
			{"repo": repo_full_name, "number": number},
			f"GET /repos/{repo_full_name}/issues/{number}/comments",
			lambda: [
				raw_payload(comment_obj)
				for comment_obj in self._pull_object(repo_full_name, number).get_issue_comments()
			],
		)

	#============================================
	def list_pull_request_reviews(self, repo_full_name: str, number: int) -> list[dict]:
		return self.cached_query(
			"pull_request_reviews",
			{"repo": repo_full_name, "number": number},
			f"GET /repos/{repo_full_name}/pulls/{number}/reviews",
			lambda: [
				raw_payload(review_obj)
				for review_obj in self._pull_object(repo_full_name, number).get_reviews()
			],
		)


#============================================
def fetch_pull_request_infos(
	client: GitHubClient,
	repo_full_name: str,
	start: datetime,
	end: datetime,
) -> list[PullRequestInfo]:
	"""
	Collect issue, pull, files, comments and reviews for each merged PR.

	Args:
		client: GitHubClient instance.
		repo_full_name: 'owner/name'.
		start: window start (inclusive).
		end: window end (inclusive).

	Returns:
		PullRequestInfo list in search order.
	"""
	infos = []
	for issue in client.search_merged_pull_requests(repo_full_name, start, end):
		number = int(issue.get("number", 0))
		client.log(f"Fetching pull request #{number}.")
		infos.append(
			PullRequestInfo(
				issue=issue,
				pull_request=client.get_pull_request(repo_full_name, number),
				files=client.list_pull_request_files(repo_full_name, number),
				issue_comments=client.list_issue_comments(repo_full_name, number),
				reviews=client.list_pull_request_reviews(repo_full_name, number),
			)
		)
	return infos
