"""Build the daily digest markdown document.

The layout written here is the contract digest_analyzer reads back:
a TOC list first, then per entry one heading followed immediately by the
four-item metadata list (author, created, merged, labels).
"""

# Standard Library
import html
import re
from datetime import datetime
from datetime import timezone


TOC_HEADING = "### 目次 {#table-of-contents}"
SEPARATOR = "\n---\n"
NO_LABELS_TEXT = "指定なし"
ESCAPED_TITLE_CHARS = "[]()<>"
# a backtick run closed by a run of the same length; escapes are literal inside
CODE_SPAN_RE = re.compile(r"(`+)(?!`).*?(?<!`)\1(?!`)", re.DOTALL)
LABEL_SPAN_STYLE = (
	"color: #000000; display: inline-block; padding: 0 7px; font-size:12px; "
	+ "font-weight:500; line-height:18px; border-radius:2em; "
	+ "border:1px solid transparent; white-space:nowrap; cursor:default;"
)


#============================================
def escape_title(title: str) -> str:
	"""
	Backslash-escape characters that would turn a title into link or HTML syntax.

	Backtick code spans are copied unchanged.
	"""
	if not any(char in title for char in ESCAPED_TITLE_CHARS):
		return title
	parts = []
	position = 0
	for match in CODE_SPAN_RE.finditer(title):
		parts.append(_escape_plain_text(title[position:match.start()]))
		parts.append(match.group(0))
		position = match.end()
	parts.append(_escape_plain_text(title[position:]))
	return "".join(parts)


#============================================
def _escape_plain_text(text: str) -> str:
	parts = []
	for char in text:
		if char in ESCAPED_TITLE_CHARS:
			parts.append("\\")
		parts.append(char)
	return "".join(parts)


#============================================
def format_timestamp(value) -> str:
	"""
	Format an ISO string or datetime as 'YYYY年MM月DD日 HH:MM:SS(UTC)'.
	"""
	if not value:
		return ""
	if isinstance(value, str):
		value = datetime.fromisoformat(value.replace("Z", "+00:00"))
	if value.tzinfo is None:
		value = value.replace(tzinfo=timezone.utc)
	value = value.astimezone(timezone.utc)
	return value.strftime("%Y年%m月%d日 %H:%M:%S") + "(UTC)"


#============================================
def format_label_spans(labels: list[dict]) -> str:
	"""
	Render labels as colored span chips, or the no-labels caption.
	"""
	spans = []
	for label in labels or []:
		name = str(label.get("name", "")).strip()
		if not name:
			continue
		color = str(label.get("color", "")).strip().lstrip("#") or "ededed"
		spans.append(
			f'<span style="background-color: #{color}; {LABEL_SPAN_STYLE}">'
			+ f"{html.escape(name)}</span>"
		)
	if not spans:
		return NO_LABELS_TEXT
	return " ".join(spans)


#============================================
def build_entry_header(pr_info) -> str:
	"""
	Heading plus four-item metadata list for one pull request.
	"""
	issue = pr_info.issue
	pull = pr_info.pull_request
	number = issue.get("number", 0)
	title = escape_title(str(issue.get("title", "")))
	user = issue.get("user") or {}
	login = escape_title(str(user.get("login", "")))
	lines = [
		f"### [#{number}]({issue.get('html_url', '')}) {title} {{#{number}}}",
		f"- 作成者: [@{login}]({user.get('html_url', '')})",
		f"- 作成日時: {format_timestamp(issue.get('created_at'))}",
		f"- マージ日時: {format_timestamp(pull.get('merged_at'))}",
		f"- ラベル: {format_label_spans(pull.get('labels') or issue.get('labels'))}",
		"",
		"",
	]
	return "\n".join(lines)


#============================================
def build_toc_line(index: int, pr_info) -> str:
	issue = pr_info.issue
	number = issue.get("number", 0)
	title = escape_title(str(issue.get("title", "")))
	return f"{index}. [#{number} {title}](#{number})"


#============================================
def build_digest_markdown(entries: list[tuple]) -> str:
	"""
	Assemble the full digest document.

	Args:
		entries: list of (PullRequestInfo, summary markdown) pairs in order.

	Returns:
		Markdown text: TOC, separator, then each entry and a separator.
	"""
	toc_lines = [TOC_HEADING]
	body_parts = []
	for index, (pr_info, summary) in enumerate(entries, start=1):
		toc_lines.append(build_toc_line(index, pr_info))
		body_parts.append(build_entry_header(pr_info) + summary.strip() + "\n")
		body_parts.append(SEPARATOR)
	return "\n".join(toc_lines) + "\n" + SEPARATOR + "".join(body_parts)
