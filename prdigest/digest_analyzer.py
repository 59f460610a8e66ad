"""Recover entry classification from a generated digest document.

The digest markdown has no explicit data contract, so everything here is
positional: the first list is the table of contents, a heading whose link
text matches a TOC target is a tracked entry, and the next list after a
tracked heading is that entry's four-slot metadata list
(author, created, merged, labels).
"""

# Standard Library
from dataclasses import dataclass
from dataclasses import field
from types import MappingProxyType

# local repo modules
from prdigest.markdown_tree import Heading
from prdigest.markdown_tree import HtmlSpan
from prdigest.markdown_tree import INLINE_CONTAINERS
from prdigest.markdown_tree import Link
from prdigest.markdown_tree import ListBlock
from prdigest.markdown_tree import Literal
from prdigest.markdown_tree import iter_inlines
from prdigest.markdown_tree import literal_texts


AUTHOR_SLOT = 0
CREATED_SLOT = 1
MERGED_SLOT = 2
LABELS_SLOT = 3
METADATA_SLOT_COUNT = 4

LABEL_CAPTION = "ラベル"
LABEL_CAPTION_PREFIXES = (LABEL_CAPTION + ":", LABEL_CAPTION + "：")
NO_LABELS_CAPTION = "指定なし"
BOT_SUFFIX = "[bot]"
COPILOT_MARKER = "@copilot"
BACKGROUND_COLOR = "background-color"


#============================================
@dataclass(frozen=True)
class AnalysisResult:
	"""
	Read-only categorization data recovered from one digest document.
	"""
	total_entry_count: int = 0
	bot_entry_count: int = 0
	label_to_headings: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))
	label_to_color: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))
	community_headings: tuple = ()
	bot_headings: tuple = ()

	@property
	def label_count(self) -> int:
		return len(self.label_to_headings)

	@property
	def community_entry_count(self) -> int:
		return len(self.community_headings)

	def labels_by_group_size(self) -> list[tuple[str, tuple]]:
		"""
		Label groups ordered by descending entry count, first-seen order on ties.
		"""
		groups = list(self.label_to_headings.items())
		groups.sort(key=lambda item: len(item[1]), reverse=True)
		return groups


#============================================
def metadata_slot(list_block: ListBlock, index: int):
	"""
	Return one metadata list item, or None when the list is too short.
	"""
	if index < 0 or index >= len(list_block.items):
		return None
	return list_block.items[index]


#============================================
def first_link(nodes):
	for node in iter_inlines(nodes):
		if isinstance(node, Link):
			return node
	return None


#============================================
def first_literal_child(link: Link):
	for child in link.children:
		if isinstance(child, Literal):
			return child.text
	return None


#============================================
def collect_toc_targets(toc: ListBlock) -> tuple[int, set[str]]:
	"""
	Count TOC items and collect the trimmed link target of each.
	"""
	targets = set()
	for item in toc.items:
		link = first_link(item.children)
		if link is not None:
			targets.add(link.target.strip())
	return len(toc.items), targets


#============================================
def heading_link_text(heading: Heading):
	"""
	Text of the first literal inside the heading's first link.
	"""
	link = first_link(heading.children)
	if link is None:
		return None
	return first_literal_child(link)


#============================================
def read_author(author_item) -> str | None:
	"""
	The author token is the second literal; the first is the caption.
	"""
	if author_item is None:
		return None
	texts = literal_texts(author_item.children)
	if len(texts) < 2:
		return None
	return texts[1]


#============================================
def is_bot_author(author: str | None) -> bool:
	if not author:
		return False
	lowered = author.strip().lower()
	return lowered.endswith(BOT_SUFFIX) or (COPILOT_MARKER in lowered)


#============================================
def label_name(text: str) -> str | None:
	"""
	Return a trimmed label name, or None for blanks and captions.

	A leading 'ラベル:' column caption is removed first; what remains is a
	label unless it is empty or the no-labels caption.
	"""
	name = text.strip()
	for prefix in LABEL_CAPTION_PREFIXES:
		if name.startswith(prefix):
			name = name[len(prefix):].strip()
			break
	if not name or name == NO_LABELS_CAPTION:
		return None
	return name


#============================================
def read_labels(labels_item) -> list[str]:
	if labels_item is None:
		return []
	names = []
	for text in literal_texts(labels_item.children):
		name = label_name(text)
		if name is not None:
			names.append(name)
	return names


#============================================
def parse_background_color(raw_tag: str) -> str | None:
	"""
	Extract the value between 'background-color:' and the next ';'.
	"""
	start = raw_tag.find(BACKGROUND_COLOR)
	if start < 0:
		return None
	colon = raw_tag.find(":", start + len(BACKGROUND_COLOR))
	if colon < 0:
		return None
	end = raw_tag.find(";", colon + 1)
	if end < 0:
		return None
	color = raw_tag[colon + 1:end].strip()
	return color or None


#============================================
def read_label_colors(nodes) -> list[tuple[str, str]]:
	"""
	Pair each background-color span with the next literal sibling.
	"""
	pairs = []
	nodes = tuple(nodes)
	for index, node in enumerate(nodes):
		if isinstance(node, INLINE_CONTAINERS):
			pairs.extend(read_label_colors(node.children))
			continue
		if not isinstance(node, HtmlSpan) or BACKGROUND_COLOR not in node.raw_tag:
			continue
		color = parse_background_color(node.raw_tag)
		if color is None:
			continue
		for sibling in nodes[index + 1:]:
			if isinstance(sibling, Literal):
				name = label_name(sibling.text)
				if name is not None:
					pairs.append((name, color))
				break
	return pairs


#============================================
def analyze(document) -> AnalysisResult:
	"""
	Scan the block sequence once and build an AnalysisResult.

	Args:
		document: ordered sequence of block nodes from markdown_tree.

	Returns:
		Immutable AnalysisResult; malformed input degrades, never raises.
	"""
	toc_seen = False
	known_targets: set[str] = set()
	pending_heading = None

	total_entry_count = 0
	bot_entry_count = 0
	label_to_headings: dict[str, list] = {}
	label_to_color: dict[str, str] = {}
	community_headings = []
	bot_headings = []

	for block in document:
		if isinstance(block, Heading):
			if not toc_seen:
				continue
			link_text = heading_link_text(block)
			if link_text is not None and link_text in known_targets:
				pending_heading = block
			continue
		if not isinstance(block, ListBlock):
			continue
		if not toc_seen:
			total_entry_count, known_targets = collect_toc_targets(block)
			toc_seen = True
			continue
		if pending_heading is None:
			continue

		author = read_author(metadata_slot(block, AUTHOR_SLOT))
		if is_bot_author(author):
			bot_headings.append(pending_heading)
			bot_entry_count += 1
		else:
			community_headings.append(pending_heading)

		labels_item = metadata_slot(block, LABELS_SLOT)
		for name in read_labels(labels_item):
			label_to_headings.setdefault(name, []).append(pending_heading)
		if labels_item is not None:
			for name, color in read_label_colors(labels_item.children):
				if name not in label_to_color:
					label_to_color[name] = color

		pending_heading = None

	result = AnalysisResult(
		total_entry_count=total_entry_count,
		bot_entry_count=bot_entry_count,
		label_to_headings=MappingProxyType(
			{name: tuple(headings) for name, headings in label_to_headings.items()}
		),
		label_to_color=MappingProxyType(dict(label_to_color)),
		community_headings=tuple(community_headings),
		bot_headings=tuple(bot_headings),
	)
	return result
