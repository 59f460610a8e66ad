from prdigest import markdown_tree
from prdigest.markdown_tree import Code
from prdigest.markdown_tree import Heading
from prdigest.markdown_tree import HtmlSpan
from prdigest.markdown_tree import Link
from prdigest.markdown_tree import ListBlock
from prdigest.markdown_tree import Literal
from prdigest.markdown_tree import OtherBlock
from prdigest.markdown_tree import Styled


#============================================
def test_heading_attribute_becomes_anchor() -> None:
	"""
	Trailing '{#id}' is removed from the heading text and kept as anchor.
	"""
	document = markdown_tree.parse_markdown("### [#42](https://x/42) Title {#42}\n")
	heading = document[0]
	assert isinstance(heading, Heading)
	assert heading.level == 3
	assert heading.anchor == "42"
	assert heading.children[0] == Link("https://x/42", (Literal("#42"),))
	assert heading.children[-1] == Literal(" Title")


#============================================
def test_list_items_keep_inline_nodes() -> None:
	"""
	Tight list items expose links, raw HTML and code spans.
	"""
	text = (
		"- 作成者: [@alice](https://github.com/alice)\n"
		"- ラベル: <span style=\"background-color: #fff;\">bug</span>\n"
		"- uses `Span<T>`\n"
	)
	document = markdown_tree.parse_markdown(text)
	assert len(document) == 1
	list_block = document[0]
	assert isinstance(list_block, ListBlock)
	assert not list_block.ordered
	author, labels, code = list_block.items
	assert author.children[0] == Literal("作成者: ")
	assert isinstance(author.children[1], Link)
	assert HtmlSpan('<span style="background-color: #fff;">') in labels.children
	assert Literal("bug") in labels.children
	assert Code("Span<T>") in code.children


#============================================
def test_ordered_list_and_thematic_break() -> None:
	document = markdown_tree.parse_markdown("1. one\n2. two\n\n---\n")
	assert isinstance(document[0], ListBlock)
	assert document[0].ordered
	assert len(document[0].items) == 2
	assert isinstance(document[1], OtherBlock)


#============================================
def test_nested_list_is_a_sublist() -> None:
	document = markdown_tree.parse_markdown("- parent\n  - child\n")
	item = document[0].items[0]
	assert item.children == (Literal("parent"),)
	assert len(item.sublists) == 1
	assert item.sublists[0].items[0].children == (Literal("child"),)


#============================================
def test_iter_inlines_descends_into_containers() -> None:
	nodes = (
		Styled("strong", (Literal("a"), Link("u", (Literal("b"),)))),
		Literal("c"),
	)
	assert markdown_tree.literal_texts(nodes) == ["a", "b", "c"]


#============================================
def test_adjacent_literals_are_merged() -> None:
	"""
	Escaped punctuation does not fragment literal text.
	"""
	document = markdown_tree.parse_markdown("- [@dependabot\\[bot\\]](https://x)\n")
	link = document[0].items[0].children[0]
	assert link.children == (Literal("@dependabot[bot]"),)
