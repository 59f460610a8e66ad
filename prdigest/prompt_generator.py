# local repo modules
from prdigest import template_loader


MAX_FILE_COUNT = 30
COPILOT_REVIEWER_LOGIN = "copilot-pull-request-reviewer[bot]"
EMPTY_TEXT = "なし"


#============================================
def load_system_prompt() -> str:
	"""
	System prompt describing the summary format.
	"""
	return template_loader.load_template("system_prompt.txt").strip()


#============================================
def format_files_changed(files: list[dict], max_files: int = MAX_FILE_COUNT) -> str:
	"""
	One line per changed file, capped with an overflow line.
	"""
	lines = []
	for file_info in files[:max_files]:
		lines.append(
			f"- {file_info.get('filename', '')} "
			+ f"(+{file_info.get('additions', 0)}/-{file_info.get('deletions', 0)}, "
			+ f"total: {file_info.get('changes', 0)})"
		)
	if len(files) > max_files:
		lines.append(f"- その他 {len(files) - max_files} files")
	return "\n".join(lines)


#============================================
def format_reviewers(reviews: list[dict]) -> str:
	logins = []
	for review in reviews:
		user = review.get("user") or {}
		logins.append(str(user.get("login", "")))
	return ", ".join(logins)


#============================================
def latest_copilot_overview(reviews: list[dict]) -> str:
	"""
	Body of the newest Copilot reviewer review, or the empty marker.
	"""
	copilot_reviews = [
		review for review in reviews
		if (review.get("user") or {}).get("login") == COPILOT_REVIEWER_LOGIN
	]
	if not copilot_reviews:
		return EMPTY_TEXT
	copilot_reviews.sort(key=lambda review: str(review.get("submitted_at") or ""), reverse=True)
	overview = str(copilot_reviews[0].get("body") or "").strip()
	return overview or EMPTY_TEXT


#============================================
def generate_prompt(pr_info, repository: str) -> str:
	"""
	Render the per-pull-request summary prompt.

	Args:
		pr_info: PullRequestInfo with raw REST payloads.
		repository: 'owner/name' shown in the prompt.

	Returns:
		Prompt text for the LLM.
	"""
	pull = pr_info.pull_request
	body = str(pull.get("body") or "")
	if not body.strip():
		body = EMPTY_TEXT
	user = pull.get("user") or {}
	values = {
		"repository": repository,
		"title": str(pull.get("title", "")),
		"number": str(pull.get("number", "")),
		"author": str(user.get("login", "")),
		"reviewers": format_reviewers(pr_info.reviews),
		"body": body,
		"copilot_overview": latest_copilot_overview(pr_info.reviews),
		"files_changed": format_files_changed(pr_info.files),
	}
	template = template_loader.load_template("pr_prompt.txt")
	return template_loader.render_template(template, values)
