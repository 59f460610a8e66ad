"""Render digest markdown and analyzer results into static HTML pages."""

# Standard Library
import html
import os
import re
from dataclasses import dataclass

# PIP3 modules
import mistune

# local repo modules
from prdigest import digest_analyzer
from prdigest import heading_text
from prdigest import markdown_tree
from prdigest import template_loader


TAG_RE = re.compile(r"<[^>]+>")
SLUG_DROP_RE = re.compile(r"[^\w\- ]")
NUMBER_SPLIT_RE = re.compile(r"(\d+)")
LABEL_CHIP_STYLE = (
	"color: #000000; display: inline-block; padding: 0 7px; font-size: 12px; "
	+ "font-weight: 500; line-height: 18px; border-radius: 2em; "
	+ "border: 1px solid transparent;"
)


#============================================
@dataclass(frozen=True)
class SiteInfo:
	"""
	Site-wide values substituted into every page.
	"""
	repository: str = "dotnet/runtime"
	site_name: str = "PR Digest"
	site_url: str = "./"

	@property
	def sub_title(self) -> str:
		return f"{self.repository}にマージされたPull RequestをAIで日本語要約"

	@property
	def description(self) -> str:
		return f"Merged pull request in {self.repository} digest."


DEFAULT_SITE = SiteInfo()


#============================================
def github_slug(text: str) -> str:
	"""
	GitHub-style heading anchor from rendered heading HTML.
	"""
	plain = html.unescape(TAG_RE.sub("", text)).strip().lower()
	slug = SLUG_DROP_RE.sub("", plain).replace(" ", "-")
	return slug


#============================================
class DigestHTMLRenderer(mistune.HTMLRenderer):
	"""
	HTML renderer that honors '{#id}' heading attributes.
	"""

	def __init__(self):
		super().__init__(escape=False)
		self._seen_slugs: dict[str, int] = {}

	def _unique_slug(self, slug: str) -> str:
		count = self._seen_slugs.get(slug, 0)
		self._seen_slugs[slug] = count + 1
		if count == 0:
			return slug
		return f"{slug}-{count}"

	def heading(self, text: str, level: int, **attrs) -> str:
		match = markdown_tree.HEADING_ATTRIBUTE_RE.search(text)
		if match is not None:
			anchor = match.group(1)
			text = text[:match.start()]
		else:
			anchor = self._unique_slug(github_slug(text))
		tag = f"h{level}"
		return f'<{tag} id="{html.escape(anchor, quote=True)}">{text}</{tag}>\n'


#============================================
def render_markdown_html(markdown_text: str) -> str:
	"""
	Convert markdown to HTML, passing raw inline HTML through.
	"""
	markdown = mistune.create_markdown(
		renderer=DigestHTMLRenderer(),
		plugins=markdown_tree.MISTUNE_PLUGINS,
	)
	return markdown(markdown_text or "")


#============================================
def split_toc_html(content_html: str) -> tuple[str, str]:
	"""
	Split rendered HTML into the TOC part and the entry details part.

	The TOC ends at the first '</ol>'; details start at the next '<hr'.
	"""
	toc_end = content_html.find("</ol>")
	if toc_end < 0:
		return content_html, ""
	toc_end += len("</ol>")
	hr_index = content_html.find("<hr", toc_end)
	toc_html = content_html[:toc_end]
	if hr_index < 0:
		return toc_html, content_html[toc_end:]
	return toc_html, content_html[hr_index:]


#============================================
def generate_heading_list_item(heading) -> str:
	entry = heading_text.render_heading_entry(heading)
	return f'    <li><a href="#{entry.anchor_id}">{entry.display_text}</a></li>\n'


#============================================
def _heading_group_html(summary_html: str, headings) -> str:
	lines = [
		'<details class="label-group">\n',
		f'  <summary class="label-group-summary">{summary_html} '
		+ f'<span class="label-pr-count">({len(headings)} PRs)</span></summary>\n',
		'  <ol class="label-pr-list">\n',
	]
	for heading in headings:
		lines.append(generate_heading_list_item(heading))
	lines.append("  </ol>\n")
	lines.append("</details>\n")
	return "".join(lines)


#============================================
def label_chip_html(label: str, color: str | None) -> str:
	"""
	Label name as a span, colored when a color is known.
	"""
	name = html.escape(label)
	if not color:
		return f"<span>{name}</span>"
	style = f"background-color: {html.escape(color, quote=True)}; {LABEL_CHIP_STYLE}"
	return f'<span style="{style}">{name}</span>'


#============================================
def generate_label_view_html(result: digest_analyzer.AnalysisResult) -> str:
	"""
	Label-grouped entry lists, largest group first.
	"""
	if result.label_count == 0:
		return "<p>ラベル情報がありません。</p>"
	parts = ["<h3>ラベル別PR一覧</h3>\n"]
	for label, headings in result.labels_by_group_size():
		chip = label_chip_html(label, result.label_to_color.get(label))
		parts.append(_heading_group_html(chip, headings))
	return "".join(parts)


#============================================
def generate_categorized_html(result: digest_analyzer.AnalysisResult) -> str:
	"""
	Community and bot entry lists.
	"""
	parts = [
		"<h3>カテゴリ別PR一覧</h3>\n",
		_heading_group_html("Community PRs", result.community_headings),
		_heading_group_html("Bot PRs", result.bot_headings),
	]
	return "".join(parts)


#============================================
def generate_stats_html(result: digest_analyzer.AnalysisResult) -> str:
	return template_loader.render_named_template(
		"stats.html",
		{
			"total_count": str(result.total_entry_count),
			"bot_count": str(result.bot_entry_count),
			"label_count": str(result.label_count),
		},
	)


#============================================
def generate_page_html(
	title: str,
	content: str,
	site: SiteInfo = DEFAULT_SITE,
	include_view_script: bool = False,
) -> str:
	"""
	Wrap page content in the shared page shell.
	"""
	view_script = ""
	if include_view_script:
		view_script = template_loader.load_template("view_script.html")
	return template_loader.render_named_template(
		"page.html",
		{
			"title": html.escape(title),
			"sub_title": html.escape(site.sub_title),
			"description": html.escape(site.description, quote=True),
			"site_name": html.escape(site.site_name),
			"site_url": html.escape(site.site_url, quote=True),
			"repository": html.escape(site.repository),
			"style": template_loader.load_template("style.css"),
			"content": content,
			"view_script": view_script,
		},
	)


#============================================
def generate_html_from_markdown(
	date_title: str,
	markdown_text: str,
	site: SiteInfo = DEFAULT_SITE,
) -> str:
	"""
	Render one day's digest markdown into a full page with list views.

	Args:
		date_title: display date such as '2026年10月18日'.
		markdown_text: digest markdown document.
		site: site-wide page values.

	Returns:
		Complete HTML document.
	"""
	content_html = render_markdown_html(markdown_text)
	toc_html, details_html = split_toc_html(content_html)
	result = digest_analyzer.analyze(markdown_tree.parse_markdown(markdown_text))
	content = template_loader.render_named_template(
		"day_content.html",
		{
			"repository": html.escape(site.repository),
			"toc_html": toc_html,
			"category_html": generate_categorized_html(result),
			"label_html": generate_label_view_html(result),
			"details_html": details_html,
		},
	)
	return generate_page_html(
		f"Pull Request on {date_title}",
		content,
		site=site,
		include_view_script=True,
	)


#============================================
def numeric_sort_key(name: str) -> list:
	"""
	Sort key that orders embedded numbers by value.
	"""
	key = []
	for part in NUMBER_SPLIT_RE.split(name):
		if part.isdigit():
			key.append((0, int(part), ""))
		elif part:
			key.append((1, 0, part))
	return key


#============================================
def _sorted_entries(path: str, want_dirs: bool, suffix: str = "", reverse: bool = False) -> list[str]:
	if not os.path.isdir(path):
		return []
	names = []
	for name in os.listdir(path):
		full_path = os.path.join(path, name)
		if want_dirs and os.path.isdir(full_path):
			names.append(name)
		elif (not want_dirs) and os.path.isfile(full_path) and name.endswith(suffix):
			names.append(name)
	names.sort(key=lambda name: numeric_sort_key(os.path.basename(name)), reverse=reverse)
	return names


#============================================
def generate_month_details_html(outputs_dir: str) -> str:
	"""
	Per-month <details> lists of day pages, newest month first.
	"""
	parts = []
	for year in _sorted_entries(outputs_dir, True, reverse=True):
		year_dir = os.path.join(outputs_dir, year)
		for month in _sorted_entries(year_dir, True, reverse=True):
			month_dir = os.path.join(year_dir, month)
			parts.append("<details>\n")
			parts.append(f"   <summary>{year}年{month}月</summary>\n")
			parts.append('   <ul class="daylist">\n')
			for file_name in _sorted_entries(month_dir, False, ".html"):
				day = os.path.splitext(file_name)[0]
				parts.append(
					f'     <li class="dayitem"><a href="./{year}/{month}/{file_name}">'
					+ f"{year}年{month}月{day}日</a> </li>\n"
				)
			parts.append("   </ul>\n")
			parts.append("</details>\n")
	return "".join(parts)


#============================================
def find_latest_day(outputs_dir: str) -> tuple[str, str, str] | None:
	"""
	Return (year, month, html file name) of the newest day page.
	"""
	years = _sorted_entries(outputs_dir, True, reverse=True)
	if not years:
		return None
	year = years[0]
	months = _sorted_entries(os.path.join(outputs_dir, year), True, reverse=True)
	if not months:
		return None
	month = months[0]
	days = _sorted_entries(os.path.join(outputs_dir, year, month), False, ".html", reverse=True)
	if not days:
		return None
	return year, month, days[0]


#============================================
def generate_index(archives_dir: str, outputs_dir: str, site: SiteInfo = DEFAULT_SITE) -> str:
	"""
	Render index.html: latest digest with stats, then the monthly archive.
	"""
	latest_html = ""
	latest = find_latest_day(outputs_dir)
	if latest is not None:
		year, month, file_name = latest
		day = os.path.splitext(file_name)[0]
		stats_html = ""
		markdown_path = os.path.join(archives_dir, year, month, f"{day}.md")
		if os.path.isfile(markdown_path):
			with open(markdown_path, "r", encoding="utf-8") as handle:
				markdown_text = handle.read()
			result = digest_analyzer.analyze(markdown_tree.parse_markdown(markdown_text))
			stats_html = generate_stats_html(result)
		latest_html = template_loader.render_named_template(
			"index_latest.html",
			{
				"year": year,
				"month": month,
				"day": day,
				"file_name": file_name,
				"stats_html": stats_html,
			},
		)
	content = latest_html + generate_month_details_html(outputs_dir)
	return generate_page_html(site.site_name, content, site=site)
