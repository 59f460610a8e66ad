#!/usr/bin/env python3
"""Generate the daily pull request digest and rebuild the static site."""

# Standard Library
import argparse
import time
from datetime import datetime

# PIP3 modules
import rich.console

# local repo modules
from prdigest import github_client
from prdigest import html_generator
from prdigest import llm_client
from prdigest import pipeline_settings
from prdigest import prompt_generator
from prdigest import site_builder


RICH_CONSOLE = rich.console.Console()


#============================================
def log_step(message: str) -> None:
	"""
	Print one timestamped progress line.
	"""
	now_text = datetime.now().strftime("%H:%M:%S")
	line = f"[prdigest {now_text}] {message}"
	lower = message.lower()
	style = "cyan"
	if ("failed" in lower) or ("error" in lower) or ("rejected" in lower):
		style = "bold red"
	elif ("rate limit" in lower) or ("no prs" in lower):
		style = "yellow"
	elif ("wrote " in lower) or ("converted" in lower):
		style = "green"
	RICH_CONSOLE.print(line, style=style, markup=False, highlight=False)


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Summarize merged pull requests and render the digest site."
	)
	parser.add_argument("archives_dir", help="Markdown archive root (<yyyy>/<mm>/<dd>.md).")
	parser.add_argument("outputs_dir", help="HTML output root.")
	parser.add_argument(
		"-g", "--generate",
		action="store_true",
		help="Generate the previous UTC day's digest before rebuilding the site.",
	)
	parser.add_argument(
		"--settings",
		default="settings.yaml",
		help="YAML settings path.",
	)
	parser.add_argument(
		"--max-workers",
		dest="max_workers",
		type=int,
		default=None,
		help="Parallel HTML conversions (defaults from settings.yaml, else 4).",
	)
	return parser.parse_args(argv)


#============================================
def generate_today(args: argparse.Namespace, settings: dict, site: html_generator.SiteInfo) -> None:
	"""
	Fetch, summarize and write the previous day's digest.
	"""
	repository = site.repository
	token = pipeline_settings.get_github_token(settings)
	if token:
		log_step("Using authenticated GitHub API mode.")
	else:
		log_step("Using unauthenticated GitHub API mode (lower rate limit).")
	cache_dir = pipeline_settings.get_setting_str(
		settings, ["github", "cache_dir"], "out/cache/github_api"
	)
	github = github_client.GitHubClient(token, cache_dir=cache_dir, log_fn=log_step)

	ollama = pipeline_settings.get_ollama_settings(settings)
	llm = llm_client.create_llm_client(
		model=ollama["model"],
		base_url=ollama["base_url"],
		system_message=prompt_generator.load_system_prompt(),
		timeout_seconds=ollama["timeout_seconds"],
		max_retries=ollama["max_retries"],
		log_fn=log_step,
	)
	log_step(f"Summarizing with ollama(model={ollama['model']}).")
	try:
		site_builder.summarize_current_pull_requests(
			args.archives_dir,
			args.outputs_dir,
			github,
			llm,
			repository,
			max_tokens=ollama["max_tokens"],
			site=site,
			log_fn=log_step,
		)
	except github_client.RateLimitError as error:
		log_step(str(error))
		log_step("Digest generation stopped by rate limit.")
	usage = github.api_usage_snapshot()
	log_step(
		f"GitHub API calls={usage['api_call_count']}, "
		+ f"cache hits={usage['cache_hit_count']}, misses={usage['cache_miss_count']}"
	)


#============================================
def main(argv: list[str] | None = None) -> None:
	"""
	Run digest generation (with -g) and the site rebuild.
	"""
	start_time = time.perf_counter()
	args = parse_args(argv)
	settings, settings_path = pipeline_settings.load_settings(args.settings)
	log_step(f"Using settings file: {settings_path}")
	site = html_generator.SiteInfo(
		repository=pipeline_settings.get_repository(settings),
		site_name=pipeline_settings.get_setting_str(settings, ["site", "name"], "PR Digest"),
		site_url=pipeline_settings.get_setting_str(settings, ["site", "url"], "./"),
	)
	if args.generate:
		generate_today(args, settings, site)

	max_workers = args.max_workers
	if max_workers is None:
		max_workers = pipeline_settings.get_setting_int(settings, ["site", "max_workers"], 4)
	site_builder.convert_archives(
		args.archives_dir,
		args.outputs_dir,
		max_workers=max_workers,
		site=site,
		log_fn=log_step,
	)
	elapsed = time.perf_counter() - start_time
	log_step(f"Total elapsed time: {elapsed:.2f} seconds.")


if __name__ == "__main__":
	main()
