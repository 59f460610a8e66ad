"""Load packaged text templates and fill their {{token}} placeholders."""

# Standard Library
import os
import re


TOKEN_RE = re.compile(r"\{\{([A-Za-z0-9_]+)\}\}")
_TEMPLATE_CACHE = {}
TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")


#============================================
def load_template(template_name: str) -> str:
	"""
	Load a text template from prdigest/templates/.
	"""
	if not template_name:
		raise ValueError("template_name is required")
	path = os.path.join(TEMPLATE_DIR, template_name)
	if path in _TEMPLATE_CACHE:
		return _TEMPLATE_CACHE[path]
	if not os.path.exists(path):
		raise FileNotFoundError(f"Template file not found: {path}")
	with open(path, "r", encoding="utf-8") as handle:
		text = handle.read()
	_TEMPLATE_CACHE[path] = text
	return text


#============================================
def render_template(template: str, values: dict[str, str]) -> str:
	"""
	Replace {{token}} placeholders with supplied values.
	"""
	if not template:
		return ""

	def replace_token(match: re.Match) -> str:
		key = match.group(1)
		if key not in values:
			return match.group(0)
		value = values[key]
		return str(value) if value is not None else ""

	# single pass so substituted text is never re-scanned for tokens
	rendered = TOKEN_RE.sub(replace_token, template)
	return rendered


#============================================
def render_named_template(template_name: str, values: dict[str, str]) -> str:
	"""
	Load one template by name and render it.
	"""
	template = load_template(template_name)
	return render_template(template, values)
