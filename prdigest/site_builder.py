"""Generate the daily digest and rebuild the static site from archives."""

# Standard Library
import concurrent.futures
import os
from datetime import datetime
from datetime import timedelta
from datetime import timezone

# local repo modules
from prdigest import digest_markdown
from prdigest import github_client
from prdigest import html_generator
from prdigest import llm_client
from prdigest import prompt_generator


#============================================
def _log(log_fn, message: str) -> None:
	if log_fn is not None:
		log_fn(message)


#============================================
def compute_previous_day_window(now_utc: datetime | None = None) -> tuple[datetime, datetime]:
	"""
	Previous UTC day: 00:00:00 to 23:59:59.
	"""
	value = now_utc or datetime.now(timezone.utc)
	if value.tzinfo is None:
		value = value.replace(tzinfo=timezone.utc)
	value = value.astimezone(timezone.utc)
	today_start = value.replace(hour=0, minute=0, second=0, microsecond=0)
	window_start = today_start - timedelta(days=1)
	window_end = today_start - timedelta(seconds=1)
	return window_start, window_end


#============================================
def archive_path(root_dir: str, day: datetime, extension: str) -> str:
	"""
	Return '<root>/<yyyy>/<mm>/<dd>.<ext>', creating the month directory.
	"""
	month_dir = os.path.join(root_dir, day.strftime("%Y"), day.strftime("%m"))
	os.makedirs(month_dir, exist_ok=True)
	return os.path.join(month_dir, f"{day.strftime('%d')}.{extension}")


#============================================
def write_text(path: str, text: str) -> None:
	with open(path, "w", encoding="utf-8") as handle:
		handle.write(text)


#============================================
def summarize_pull_requests(llm, pr_infos: list, repository: str, max_tokens: int) -> list[tuple]:
	"""
	Ask the LLM for one summary per pull request, in order.
	"""
	entries = []
	total = len(pr_infos)
	for index, pr_info in enumerate(pr_infos, start=1):
		prompt = prompt_generator.generate_prompt(pr_info, repository)
		summary = llm.generate(
			prompt,
			purpose=f"pull request summary #{pr_info.number} ({index}/{total})",
			max_tokens=max_tokens,
		)
		entries.append((pr_info, summary.strip()))
	return entries


#============================================
def summarize_current_pull_requests(
	archives_dir: str,
	outputs_dir: str,
	github,
	llm,
	repository: str,
	max_tokens: int = 1024,
	now_utc: datetime | None = None,
	site: html_generator.SiteInfo = html_generator.DEFAULT_SITE,
	log_fn=None,
) -> str | None:
	"""
	Build the previous day's digest markdown and HTML.

	Args:
		archives_dir: markdown archive root.
		outputs_dir: HTML output root.
		github: GitHubClient (or compatible) instance.
		llm: LLMClient (or compatible) instance.
		repository: 'owner/name' to digest.
		max_tokens: generation budget per summary.
		now_utc: clock override.
		site: site-wide page values.
		log_fn: optional progress logger.

	Returns:
		Path of the written markdown file, or None when nothing was written.
	"""
	window_start, window_end = compute_previous_day_window(now_utc)
	pr_infos = github_client.fetch_pull_request_infos(github, repository, window_start, window_end)
	window_text = f"{window_start:%Y/%m/%d} and {window_end:%Y/%m/%d}"
	if not pr_infos:
		_log(log_fn, f"There were no PRs merged into {repository} between {window_text}.")
		return None
	_log(log_fn, f"{len(pr_infos)} pull requests into {repository} were merged between {window_text}.")

	try:
		entries = summarize_pull_requests(llm, pr_infos, repository, max_tokens)
	except llm_client.LLMRateLimitError as error:
		_log(log_fn, f"LLM rate limit exceeded: {error}")
		return None
	except llm_client.LLMRequestError as error:
		_log(log_fn, f"LLM request rejected: {error}")
		return None
	markdown_text = digest_markdown.build_digest_markdown(entries)

	markdown_path = archive_path(archives_dir, window_start, "md")
	write_text(markdown_path, markdown_text)
	_log(log_fn, f"Wrote {markdown_path}")
	html_path = archive_path(outputs_dir, window_start, "html")
	page = html_generator.generate_html_from_markdown(
		f"{window_start:%Y年%m月%d日}",
		markdown_text,
		site=site,
	)
	write_text(html_path, page)
	_log(log_fn, f"Wrote {html_path}")
	return markdown_path


#============================================
def list_archive_files(archives_dir: str) -> list[tuple[str, str, str]]:
	"""
	Return (year, month, markdown path) for every '<yyyy>/<mm>/*.md'.
	"""
	found = []
	if not os.path.isdir(archives_dir):
		return found
	for year in sorted(os.listdir(archives_dir)):
		year_dir = os.path.join(archives_dir, year)
		if not os.path.isdir(year_dir):
			continue
		for month in sorted(os.listdir(year_dir)):
			month_dir = os.path.join(year_dir, month)
			if not os.path.isdir(month_dir):
				continue
			for file_name in sorted(os.listdir(month_dir)):
				if file_name.endswith(".md"):
					found.append((year, month, os.path.join(month_dir, file_name)))
	return found


#============================================
def convert_archive_file(
	year: str,
	month: str,
	markdown_path: str,
	outputs_dir: str,
	site: html_generator.SiteInfo,
) -> str:
	"""
	Render one archived markdown day into '<outputs>/<yyyy>/<mm>/<dd>.html'.
	"""
	day = os.path.splitext(os.path.basename(markdown_path))[0]
	with open(markdown_path, "r", encoding="utf-8") as handle:
		markdown_text = handle.read()
	page = html_generator.generate_html_from_markdown(f"{year}年{month}月{day}日", markdown_text, site=site)
	output_dir = os.path.join(outputs_dir, year, month)
	os.makedirs(output_dir, exist_ok=True)
	html_path = os.path.join(output_dir, f"{day}.html")
	write_text(html_path, page)
	return html_path


#============================================
def convert_archives(
	archives_dir: str,
	outputs_dir: str,
	max_workers: int = 4,
	site: html_generator.SiteInfo = html_generator.DEFAULT_SITE,
	log_fn=None,
) -> list[str]:
	"""
	Convert every archived markdown file to HTML and rewrite index.html.

	Files are rendered on a bounded thread pool; each render is independent.
	"""
	os.makedirs(archives_dir, exist_ok=True)
	os.makedirs(outputs_dir, exist_ok=True)
	archive_files = list_archive_files(archives_dir)
	written = []
	with concurrent.futures.ThreadPoolExecutor(max_workers=max(1, int(max_workers))) as executor:
		futures = [
			executor.submit(convert_archive_file, year, month, path, outputs_dir, site)
			for year, month, path in archive_files
		]
		for future in futures:
			written.append(future.result())
	_log(log_fn, f"Converted {len(written)} archived digest(s) to HTML.")

	index_path = os.path.join(outputs_dir, "index.html")
	write_text(index_path, html_generator.generate_index(archives_dir, outputs_dir, site=site))
	_log(log_fn, f"Wrote {index_path}")
	return written
