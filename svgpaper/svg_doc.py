"""
SVG page templates: parsing, id lookup, cloning and serialization.
"""

# Standard Library
import copy
import math
import re
import xml.etree.ElementTree as StdElementTree

# PIP3 modules
import defusedxml.ElementTree as ElementTree

# local repo modules
import svgpaper as svp
import svgpaper.config
import svgpaper.errors


SVG_NS = svp.config.SVG_NS
XLINK_NS = svp.config.XLINK_NS
DEFAULT_FONT_SIZE = svp.config.DEFAULT_FONT_SIZE

MissingElement = svp.errors.MissingElement
InvalidGeometry = svp.errors.InvalidGeometry
TemplateConfigError = svp.errors.TemplateConfigError

StdElementTree.register_namespace("", SVG_NS)
StdElementTree.register_namespace("xlink", XLINK_NS)

NUMBER_PATTERN = r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?"
NUMBER_RE = re.compile(rf"^\s*({NUMBER_PATTERN})")
NUMBER_TOKEN_RE = re.compile(NUMBER_PATTERN)
TRANSLATE_RE = re.compile(r"translate\(([^)]*)\)")


class PageTemplate:
	"""
	Read-only parsed SVG for one page archetype.

	Never mutate `root` directly; call `clone()` to get a PageDocument
	that owns its own element tree.
	"""

	def __init__(self, root: StdElementTree.Element, name: str = "") -> None:
		self.root = root
		self.name = name

	@classmethod
	def from_string(cls, content: str | bytes, name: str = "") -> "PageTemplate":
		try:
			root = ElementTree.fromstring(content)
		except ElementTree.ParseError as error:
			raise TemplateConfigError(f"SVG parse error in {name or 'template'}: {error}") from error
		if local_name(root.tag) != "svg":
			raise TemplateConfigError(f"Root element of {name or 'template'} is not <svg>")
		return cls(root, name)

	def clone(self) -> "PageDocument":
		return PageDocument(copy.deepcopy(self.root))

	def has_id(self, element_id: str) -> bool:
		return find_by_id(self.root, element_id) is not None


class PageDocument:
	"""
	Mutable per-page copy of a page template.
	"""

	def __init__(self, root: StdElementTree.Element) -> None:
		self.root = root

	def find(self, element_id: str) -> StdElementTree.Element | None:
		return find_by_id(self.root, element_id)

	def require(self, element_id: str) -> StdElementTree.Element:
		element = self.find(element_id)
		if element is None:
			raise MissingElement(
				f"Required element not found: #{element_id}",
				element_id=element_id,
			)
		return element

	def parent_of(self, element: StdElementTree.Element) -> StdElementTree.Element | None:
		for candidate in self.root.iter():
			for child in candidate:
				if child is element:
					return candidate
		return None

	def serialize(self) -> str:
		return serialize(self.root)


#============================================
def local_name(tag: str) -> str:
	"""
	Strip the namespace from an element tag.

	Args:
		tag: Element tag, possibly "{ns}name".

	Returns:
		Local tag name.
	"""
	if not isinstance(tag, str):
		return ""
	if tag.startswith("{") and "}" in tag:
		return tag.split("}", 1)[1]
	return tag


#============================================
def svg_tag(name: str) -> str:
	"""
	Build a namespaced SVG tag.

	Args:
		name: Local tag name.

	Returns:
		Qualified tag.
	"""
	return f"{{{SVG_NS}}}{name}"


#============================================
def find_by_id(
	root: StdElementTree.Element,
	element_id: str,
) -> StdElementTree.Element | None:
	"""
	Find the first element with the given id.

	Args:
		root: Subtree root to search, inclusive.
		element_id: Id attribute value.

	Returns:
		Matching element or None.
	"""
	for element in root.iter():
		if element.attrib.get("id") == element_id:
			return element
	return None


#============================================
def serialize(root: StdElementTree.Element) -> str:
	"""
	Serialize an element tree to SVG markup.

	Args:
		root: Root element.

	Returns:
		Markup string.
	"""
	return StdElementTree.tostring(root, encoding="unicode")


#============================================
def get_text_content(element: StdElementTree.Element) -> str:
	"""
	Collect all text below an element.

	Args:
		element: Element to read.

	Returns:
		Concatenated text.
	"""
	return "".join(element.itertext())


#============================================
def set_text_content(element: StdElementTree.Element, text: str) -> None:
	"""
	Replace all children of an element with a single text node.

	Args:
		element: Element to write.
		text: New text.
	"""
	for child in list(element):
		element.remove(child)
	element.text = text


#============================================
def set_text_lines(
	element: StdElementTree.Element,
	lines: list[str],
	line_height: float,
) -> None:
	"""
	Replace an element's content with one positioned tspan per line.

	The first line sits on the element's own baseline; each following
	line moves down by line_height.

	Args:
		element: Text element.
		lines: Ordered lines.
		line_height: Distance between baselines.
	"""
	for child in list(element):
		element.remove(child)
	element.text = None
	x_value = element.attrib.get("x")
	base_y = parse_number(element.attrib.get("y"), 0.0)
	tspan_tag = svg_tag("tspan")
	if not element.tag.startswith("{"):
		tspan_tag = "tspan"
	for index, line in enumerate(lines):
		tspan = StdElementTree.SubElement(element, tspan_tag)
		if x_value is not None:
			tspan.set("x", x_value)
		tspan.set("y", format_number(base_y + index * line_height))
		tspan.text = line


#============================================
def parse_number(value: str | None, default_value: float | None) -> float | None:
	"""
	Parse a leading number from an attribute value like "12px".

	Args:
		value: Attribute string.
		default_value: Fallback when parsing fails or the value is not finite.

	Returns:
		Parsed float value.
	"""
	if value is None:
		return default_value
	match = NUMBER_RE.match(value)
	if match is None:
		return default_value
	number = float(match.group(1))
	if not math.isfinite(number):
		return default_value
	return number


#============================================
def format_number(value: float) -> str:
	"""
	Format a float for an SVG attribute without trailing zeros.

	Args:
		value: Number.

	Returns:
		Compact string.
	"""
	text = f"{value:.4f}".rstrip("0").rstrip(".")
	if text in ("", "-0"):
		return "0"
	return text


#============================================
def parse_style(value: str | None) -> list[tuple[str, str]]:
	"""
	Split an inline style attribute into (property, value) pairs.

	Args:
		value: Style attribute.

	Returns:
		Ordered list of pairs.
	"""
	pairs: list[tuple[str, str]] = []
	if not value:
		return pairs
	for part in value.split(";"):
		if ":" not in part:
			continue
		name, _, prop_value = part.partition(":")
		name = name.strip()
		if name:
			pairs.append((name, prop_value.strip()))
	return pairs


#============================================
def get_font_size(element: StdElementTree.Element, fallback: float = DEFAULT_FONT_SIZE) -> float:
	"""
	Read an element's font size from its attribute or inline style.

	Args:
		element: Text element.
		fallback: Size used when none is declared.

	Returns:
		Font size in user units.
	"""
	attribute = element.attrib.get("font-size")
	if attribute is not None:
		return parse_number(attribute, fallback)
	for name, value in parse_style(element.attrib.get("style")):
		if name.lower() == "font-size":
			return parse_number(value, fallback)
	return fallback


#============================================
def set_font_size(element: StdElementTree.Element, size: float) -> None:
	"""
	Write a font size to both the attribute and the inline style.

	Args:
		element: Text element.
		size: New font size.
	"""
	size_text = format_number(size)
	pairs = [
		(name, value)
		for name, value in parse_style(element.attrib.get("style"))
		if name.lower() != "font-size"
	]
	pairs.append(("font-size", f"{size_text}px"))
	element.set("style", "; ".join(f"{name}:{value}" for name, value in pairs))
	element.set("font-size", size_text)


#============================================
def parse_number_list(value: str) -> list[float] | None:
	"""
	Parse a comma or whitespace separated list of SVG numbers.

	Signs start a new number, so "10-20" reads as [10.0, -20.0].

	Args:
		value: Argument list such as the inside of translate(...).

	Returns:
		Numbers in order, or None when anything else is present.
	"""
	tokens = NUMBER_TOKEN_RE.findall(value)
	leftover = NUMBER_TOKEN_RE.sub(" ", value).replace(",", " ")
	if leftover.strip():
		return None
	return [float(token) for token in tokens]


#============================================
def get_translate(element: StdElementTree.Element) -> tuple[float, float] | None:
	"""
	Read the translate() offset from an element's transform.

	Args:
		element: Element to inspect.

	Returns:
		(x, y) offset or None when no translate is present.
	"""
	transform = element.attrib.get("transform", "")
	match = TRANSLATE_RE.search(transform)
	if match is None:
		return None
	numbers = parse_number_list(match.group(1))
	if not numbers or len(numbers) > 2:
		raise InvalidGeometry(
			f"Cannot parse transform {transform!r}",
			element_id=element.attrib.get("id"),
		)
	x_value = numbers[0]
	y_value = numbers[1] if len(numbers) > 1 else 0.0
	return (x_value, y_value)


#============================================
def set_translate(element: StdElementTree.Element, x_value: float, y_value: float) -> None:
	"""
	Set the translate() offset of an element, keeping other transforms.

	Args:
		element: Element to update.
		x_value: Horizontal offset.
		y_value: Vertical offset.
	"""
	translate = f"translate({format_number(x_value)}, {format_number(y_value)})"
	transform = element.attrib.get("transform", "")
	if TRANSLATE_RE.search(transform):
		transform = TRANSLATE_RE.sub(translate, transform, count=1)
	elif transform.strip():
		transform = f"{translate} {transform.strip()}"
	else:
		transform = translate
	element.set("transform", transform)
