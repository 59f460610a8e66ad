"""Document tree for generated digest markdown.

A closed set of block and inline node types plus a mistune-based front end
that turns digest markdown into that tree. The digest analyzer and the
heading text extractor only ever see these node types.
"""

# Standard Library
import re
from dataclasses import dataclass
from dataclasses import field

# PIP3 modules
import mistune


MISTUNE_PLUGINS = ["strikethrough", "table", "url", "task_lists"]
HEADING_ATTRIBUTE_RE = re.compile(r"\s*\{#([^}\s]+)\}\s*$")


#============================================
@dataclass(frozen=True)
class Literal:
	"""
	Plain text run.
	"""
	text: str


#============================================
@dataclass(frozen=True)
class Link:
	"""
	Inline link with its own inline children.
	"""
	target: str
	children: tuple = ()


#============================================
@dataclass(frozen=True)
class Code:
	"""
	Inline code span, raw text.
	"""
	text: str


#============================================
@dataclass(frozen=True)
class HtmlSpan:
	"""
	Raw inline HTML fragment such as an opening span tag.
	"""
	raw_tag: str


#============================================
@dataclass(frozen=True)
class LinkDelimiter:
	"""
	Unmatched bracket marker kept by some front ends, with the inline
	nodes that followed it. parse_markdown never emits it; mistune folds
	escaped brackets into literal text.
	"""
	marker: str
	children: tuple = ()

	def to_literal(self) -> str:
		return self.marker


#============================================
@dataclass(frozen=True)
class Styled:
	"""
	Emphasis, strong or strikethrough container.
	"""
	style: str
	children: tuple = ()


#============================================
@dataclass(frozen=True)
class Heading:
	level: int
	children: tuple = ()
	anchor: str = ""


#============================================
@dataclass(frozen=True)
class ListItem:
	children: tuple = ()
	sublists: tuple = ()


#============================================
@dataclass(frozen=True)
class ListBlock:
	items: tuple = ()
	ordered: bool = False


#============================================
@dataclass(frozen=True)
class Paragraph:
	children: tuple = ()


#============================================
@dataclass(frozen=True)
class OtherBlock:
	"""
	Any block the analyzer ignores (code blocks, rules, raw HTML blocks).
	"""
	kind: str
	raw: str = field(default="", compare=False)


INLINE_CONTAINERS = (Link, LinkDelimiter, Styled)


#============================================
def iter_inlines(nodes):
	"""
	Yield inline nodes in document order, descending into containers.
	"""
	for node in nodes:
		yield node
		if isinstance(node, INLINE_CONTAINERS):
			yield from iter_inlines(node.children)


#============================================
def literal_texts(nodes) -> list[str]:
	"""
	Return the text of every Literal under the given inline nodes.
	"""
	texts = [node.text for node in iter_inlines(nodes) if isinstance(node, Literal)]
	return texts


#============================================
def _merge_literals(nodes: list) -> tuple:
	"""
	Collapse adjacent Literal nodes into one.
	"""
	merged = []
	for node in nodes:
		if merged and isinstance(node, Literal) and isinstance(merged[-1], Literal):
			merged[-1] = Literal(merged[-1].text + node.text)
			continue
		merged.append(node)
	return tuple(merged)


#============================================
def _convert_inlines(tokens: list) -> tuple:
	"""
	Convert mistune inline tokens into inline nodes.
	"""
	nodes = []
	for token in tokens or []:
		token_type = token.get("type", "")
		if token_type == "text":
			nodes.append(Literal(token.get("raw", "")))
		elif token_type in ("softbreak", "linebreak"):
			nodes.append(Literal(" "))
		elif token_type == "link":
			attrs = token.get("attrs") or {}
			children = _convert_inlines(token.get("children"))
			nodes.append(Link(str(attrs.get("url", "")), children))
		elif token_type == "codespan":
			nodes.append(Code(token.get("raw", "")))
		elif token_type == "inline_html":
			nodes.append(HtmlSpan(token.get("raw", "")))
		elif token_type in ("emphasis", "strong", "strikethrough"):
			children = _convert_inlines(token.get("children"))
			nodes.append(Styled(token_type, children))
		elif token.get("children"):
			# images and plugin spans: keep their text reachable
			nodes.extend(_convert_inlines(token.get("children")))
	return _merge_literals(nodes)


#============================================
def _strip_heading_attribute(children: tuple) -> tuple[tuple, str]:
	"""
	Remove a trailing {#id} attribute from heading text.
	"""
	if not children or not isinstance(children[-1], Literal):
		return children, ""
	match = HEADING_ATTRIBUTE_RE.search(children[-1].text)
	if match is None:
		return children, ""
	remaining = children[-1].text[:match.start()]
	if remaining:
		return children[:-1] + (Literal(remaining),), match.group(1)
	return children[:-1], match.group(1)


#============================================
def _convert_list(token: dict) -> ListBlock:
	attrs = token.get("attrs") or {}
	items = []
	for item_token in token.get("children") or []:
		if item_token.get("type") != "list_item":
			continue
		inline_nodes = []
		sublists = []
		for child in item_token.get("children") or []:
			child_type = child.get("type", "")
			if child_type in ("block_text", "paragraph"):
				if inline_nodes:
					inline_nodes.append(Literal(" "))
				inline_nodes.extend(_convert_inlines(child.get("children")))
			elif child_type == "list":
				sublists.append(_convert_list(child))
		items.append(ListItem(_merge_literals(inline_nodes), tuple(sublists)))
	return ListBlock(tuple(items), bool(attrs.get("ordered", False)))


#============================================
def convert_tokens(tokens: list) -> tuple:
	"""
	Convert mistune AST block tokens into block nodes.
	"""
	blocks = []
	for token in tokens:
		token_type = token.get("type", "")
		if token_type == "blank_line":
			continue
		if token_type == "heading":
			attrs = token.get("attrs") or {}
			children = _convert_inlines(token.get("children"))
			children, anchor = _strip_heading_attribute(children)
			blocks.append(Heading(int(attrs.get("level", 1)), children, anchor))
		elif token_type == "list":
			blocks.append(_convert_list(token))
		elif token_type == "paragraph":
			blocks.append(Paragraph(_convert_inlines(token.get("children"))))
		else:
			blocks.append(OtherBlock(token_type, str(token.get("raw", ""))))
	return tuple(blocks)


#============================================
def parse_markdown(text: str) -> tuple:
	"""
	Parse markdown text into a tuple of block nodes.
	"""
	markdown = mistune.create_markdown(renderer="ast", plugins=MISTUNE_PLUGINS)
	tokens = markdown(text or "")
	return convert_tokens(tokens)
