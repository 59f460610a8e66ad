"""Anchor id and display text for a digest entry heading."""

# Standard Library
import html
from dataclasses import dataclass

# local repo modules
from prdigest.markdown_tree import Code
from prdigest.markdown_tree import Heading
from prdigest.markdown_tree import Link
from prdigest.markdown_tree import LinkDelimiter
from prdigest.markdown_tree import Literal
from prdigest.markdown_tree import literal_texts


#============================================
@dataclass(frozen=True)
class HeadingEntry:
	anchor_id: str
	display_text: str


#============================================
def render_heading_entry(heading: Heading) -> HeadingEntry:
	"""
	Recover the '#<number>' token and title text of one entry heading.

	The number token is the first literal of a link child; later links
	overwrite earlier ones. Literals and code spans build the title. A
	LinkDelimiter right after a literal is folded back into the title, which
	reassembles titles the front end split around escaped brackets.

	Args:
		heading: Heading node from markdown_tree.

	Returns:
		HeadingEntry with anchor id (number without '#') and HTML-escaped
		display text.
	"""
	number_token = ""
	title_parts = []
	children = heading.children
	for index, node in enumerate(children):
		if isinstance(node, Link):
			for child in node.children:
				if isinstance(child, Literal):
					number_token = child.text
					break
		elif isinstance(node, Literal):
			title_parts.append(node.text)
			following = children[index + 1] if index + 1 < len(children) else None
			if isinstance(following, LinkDelimiter):
				title_parts.append(following.to_literal())
				title_parts.extend(literal_texts(following.children))
		elif isinstance(node, Code):
			title_parts.append(node.text)

	title_text = "".join(title_parts).strip()
	anchor_id = number_token.lstrip("#")
	display_text = html.escape(f"{number_token} {title_text}", quote=True)
	return HeadingEntry(anchor_id=anchor_id, display_text=display_text)
