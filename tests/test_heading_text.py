from prdigest import heading_text
from prdigest import markdown_tree
from prdigest.markdown_tree import Code
from prdigest.markdown_tree import Heading
from prdigest.markdown_tree import HtmlSpan
from prdigest.markdown_tree import Link
from prdigest.markdown_tree import LinkDelimiter
from prdigest.markdown_tree import Literal


#============================================
def number_link(number: str) -> Link:
	return Link("https://github.com/o/r/pull/1", (Literal(number),))


#============================================
def test_plain_heading() -> None:
	"""
	Number link plus literal title.
	"""
	heading = Heading(3, (number_link("#123"), Literal(" Improve startup  ")))
	entry = heading_text.render_heading_entry(heading)
	assert entry.anchor_id == "123"
	assert entry.display_text == "#123 Improve startup"


#============================================
def test_code_span_is_kept_verbatim_and_escaped() -> None:
	"""
	Code spans join the title; the whole display text is HTML-escaped.
	"""
	heading = Heading(
		3,
		(number_link("#7"), Literal(" Use "), Code("Span<T>"), Literal(" in \"parser\"")),
	)
	entry = heading_text.render_heading_entry(heading)
	assert entry.display_text == "#7 Use Span&lt;T&gt; in &quot;parser&quot;"


#============================================
def test_link_delimiter_reassembles_title() -> None:
	"""
	A delimiter after a literal is folded back in without duplication.
	"""
	heading = Heading(
		3,
		(
			number_link("#5"),
			Literal(" "),
			LinkDelimiter("[", (Literal("Fix] Use List<T> correctly"),)),
		),
	)
	entry = heading_text.render_heading_entry(heading)
	assert entry.anchor_id == "5"
	assert entry.display_text == "#5 [Fix] Use List&lt;T&gt; correctly"


#============================================
def test_escaped_title_through_front_end() -> None:
	"""
	Backslash-escaped brackets and angle brackets survive parsing.
	"""
	text = "### [#5](https://github.com/o/r/pull/5) \\[Fix\\] Use List\\<T\\> correctly {#5}\n"
	document = markdown_tree.parse_markdown(text)
	entry = heading_text.render_heading_entry(document[0])
	assert entry.anchor_id == "5"
	assert entry.display_text == "#5 [Fix] Use List&lt;T&gt; correctly"


#============================================
def test_missing_number_and_title() -> None:
	"""
	No link and no text yields empty anchor and empty title.
	"""
	entry = heading_text.render_heading_entry(Heading(3, (HtmlSpan("<br>"),)))
	assert entry.anchor_id == ""
	assert entry.display_text == " "


#============================================
def test_last_link_wins() -> None:
	heading = Heading(3, (number_link("#1"), Literal(" a "), number_link("#2")))
	entry = heading_text.render_heading_entry(heading)
	assert entry.anchor_id == "2"
	assert entry.display_text == "#2 a"


#============================================
def test_extraction_is_repeatable() -> None:
	heading = Heading(3, (number_link("#9"), Literal(" title")))
	assert heading_text.render_heading_entry(heading) == heading_text.render_heading_entry(heading)
