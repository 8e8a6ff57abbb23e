"""
Inspect text elements of an SVG page for template authoring.

Lists every <text> element with its page position, font size and two
width measurements: the fit engine's estimate and a reference width
from ReportLab's Helvetica metrics, useful when calibrating fit boxes.
"""

# Standard Library
import dataclasses
import json
import pathlib
import re
import xml.etree.ElementTree as StdElementTree

# PIP3 modules
import reportlab.pdfbase.pdfmetrics

# local repo modules
import svgpaper as svp
import svgpaper.config
import svgpaper.errors
import svgpaper.svg_doc
import svgpaper.textfit


PageTemplate = svp.svg_doc.PageTemplate
TemplateConfigError = svp.errors.TemplateConfigError

REFERENCE_FONT = svp.config.REFERENCE_FONT
ROW_SORT_TOLERANCE = svp.config.ROW_SORT_TOLERANCE

TRANSFORM_FN_RE = re.compile(r"([a-zA-Z]+)\(([^)]*)\)")
CLASS_RULE_RE = re.compile(r"\.([A-Za-z0-9_-]+)\s*\{([^}]*)\}")
CSS_FONT_SIZE_RE = re.compile(r"font-size\s*:\s*([0-9.]+)", re.IGNORECASE)

Matrix = tuple[float, float, float, float, float, float]
IDENTITY: Matrix = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)


@dataclasses.dataclass
class TextElementInfo:
	id: str | None
	content: str
	x: float
	y: float
	font_size: float | None
	font_family: str | None
	text_anchor: str | None
	parent_group: str | None
	suggested_id: str
	estimated_width: float | None
	reference_width: float | None


@dataclasses.dataclass
class SvgTextAnalysis:
	file: str
	width: float
	height: float
	unit: str
	elements: list[TextElementInfo]
	warnings: list[str]

	@property
	def with_id(self) -> int:
		return sum(1 for element in self.elements if element.id)

	@property
	def without_id(self) -> int:
		return sum(1 for element in self.elements if not element.id)


#============================================
def multiply(a: Matrix, b: Matrix) -> Matrix:
	return (
		a[0] * b[0] + a[2] * b[1],
		a[1] * b[0] + a[3] * b[1],
		a[0] * b[2] + a[2] * b[3],
		a[1] * b[2] + a[3] * b[3],
		a[0] * b[4] + a[2] * b[5] + a[4],
		a[1] * b[4] + a[3] * b[5] + a[5],
	)


#============================================
def parse_transform(value: str) -> Matrix:
	"""
	Parse matrix/translate/scale functions of a transform attribute.

	Args:
		value: Transform attribute.

	Returns:
		Combined affine matrix.
	"""
	matrix = IDENTITY
	for match in TRANSFORM_FN_RE.finditer(value):
		name = match.group(1).lower()
		numbers = []
		for token in re.split(r"[,\s]+", match.group(2).strip()):
			if not token:
				continue
			try:
				numbers.append(float(token))
			except ValueError:
				continue
		if name == "matrix" and len(numbers) >= 6:
			local = tuple(numbers[:6])
		elif name == "translate" and numbers:
			local = (1.0, 0.0, 0.0, 1.0, numbers[0], numbers[1] if len(numbers) > 1 else 0.0)
		elif name == "scale" and numbers:
			local = (numbers[0], 0.0, 0.0, numbers[1] if len(numbers) > 1 else numbers[0], 0.0, 0.0)
		else:
			continue
		matrix = multiply(matrix, local)
	return matrix


#============================================
def class_font_sizes(root: StdElementTree.Element) -> dict[str, float]:
	"""
	Collect font sizes declared for CSS classes in <style> blocks.

	Args:
		root: SVG root.

	Returns:
		Font size by class name.
	"""
	sizes: dict[str, float] = {}
	for element in root.iter():
		if svp.svg_doc.local_name(element.tag) != "style":
			continue
		css = element.text or ""
		for rule in CLASS_RULE_RE.finditer(css):
			size_match = CSS_FONT_SIZE_RE.search(rule.group(2))
			if size_match:
				sizes[rule.group(1)] = float(size_match.group(1))
	return sizes


#============================================
def resolve_font_size(
	element: StdElementTree.Element,
	sizes_by_class: dict[str, float],
) -> float | None:
	"""
	Resolve a text element's font size from attribute, style or class.

	Args:
		element: Text element.
		sizes_by_class: Class font sizes.

	Returns:
		Font size or None when undeclared.
	"""
	size = svp.svg_doc.get_font_size(element, -1.0)
	if size > 0:
		return size
	for class_name in element.attrib.get("class", "").split():
		if class_name in sizes_by_class:
			return sizes_by_class[class_name]
	return None


#============================================
def suggest_id(content: str, x: float, y: float) -> str:
	"""
	Suggest a snake_case id from text content.

	Args:
		content: Text content.
		x: Page x position.
		y: Page y position.

	Returns:
		Suggested id.
	"""
	fallback = f"text_{round(x)}_{round(y)}"
	if not content:
		return fallback
	cleaned = re.sub(r"^\d+[).]\s*", "", content)
	cleaned = re.sub(r"^[(\[]\d+[)\]]\s*", "", cleaned)
	cleaned = re.sub(r"^No\.?\s*", "", cleaned, flags=re.IGNORECASE).strip()
	suggested = re.sub(r"[^a-z0-9\s_-]", "", cleaned.lower())
	suggested = re.sub(r"\s+", "_", suggested)
	suggested = re.sub(r"_+", "_", suggested)[:40].rstrip("_")
	if len(suggested) < 2:
		return fallback
	return suggested


#============================================
def page_size(root: StdElementTree.Element) -> tuple[float, float, str]:
	"""
	Read page width, height and unit from the root <svg>.

	Args:
		root: SVG root.

	Returns:
		Tuple of (width, height, unit).
	"""
	width_attr = root.attrib.get("width", "0")
	height_attr = root.attrib.get("height", "0")
	width = svp.svg_doc.parse_number(width_attr, 0.0)
	height = svp.svg_doc.parse_number(height_attr, 0.0)
	view_box = root.attrib.get("viewBox")
	if (not width or not height) and view_box:
		parts = view_box.replace(",", " ").split()
		if len(parts) == 4:
			width = float(parts[2])
			height = float(parts[3])
	unit = "px"
	for candidate in ("mm", "pt", "cm"):
		if candidate in width_attr:
			unit = candidate
			break
	return (width, height, unit)


#============================================
def reference_width(text: str, font_size: float) -> float:
	"""
	Measure text with ReportLab's Helvetica metrics.

	Args:
		text: Text line.
		font_size: Font size.

	Returns:
		Width in the same units as font_size.
	"""
	return reportlab.pdfbase.pdfmetrics.stringWidth(text, REFERENCE_FONT, font_size)


#============================================
def analyze_template(template: PageTemplate, name: str = "") -> SvgTextAnalysis:
	"""
	Analyze the text elements of a parsed SVG page.

	Args:
		template: Parsed page template.
		name: File name used in the report.

	Returns:
		SvgTextAnalysis with elements sorted top-to-bottom, left-to-right.
	"""
	root = template.root
	width, height, unit = page_size(root)
	sizes_by_class = class_font_sizes(root)
	warnings: list[str] = []
	elements: list[TextElementInfo] = []

	def walk(node: StdElementTree.Element, matrix: Matrix, group_id: str | None) -> None:
		transform = node.attrib.get("transform")
		if transform:
			matrix = multiply(matrix, parse_transform(transform))
		tag = svp.svg_doc.local_name(node.tag)
		if tag == "text":
			elements.append(describe_text(node, matrix, group_id, sizes_by_class))
			return
		if tag == "g" and node.attrib.get("id"):
			group_id = node.attrib["id"]
		for child in node:
			walk(child, matrix, group_id)

	walk(root, IDENTITY, None)

	if not elements:
		path_like = sum(
			1 for node in root.iter()
			if svp.svg_doc.local_name(node.tag) in ("path", "use")
		)
		if path_like:
			warnings.append(
				f"No <text> elements but {path_like} path/use elements; text may be outlined and cannot be bound."
			)

	def sort_key(info: TextElementInfo) -> tuple[float, float]:
		return (round(info.y / ROW_SORT_TOLERANCE), info.x)

	elements.sort(key=sort_key)
	return SvgTextAnalysis(
		file=name or template.name,
		width=width,
		height=height,
		unit=unit,
		elements=elements,
		warnings=warnings,
	)


#============================================
def describe_text(
	node: StdElementTree.Element,
	matrix: Matrix,
	group_id: str | None,
	sizes_by_class: dict[str, float],
) -> TextElementInfo:
	"""
	Build a TextElementInfo for one <text> element.

	Args:
		node: Text element.
		matrix: Cumulative transform including the element's own.
		group_id: Nearest enclosing group id.
		sizes_by_class: Class font sizes.

	Returns:
		TextElementInfo.
	"""
	content = svp.svg_doc.get_text_content(node).strip()
	local_x = svp.svg_doc.parse_number(node.attrib.get("x"), 0.0)
	local_y = svp.svg_doc.parse_number(node.attrib.get("y"), 0.0)
	x_value = matrix[0] * local_x + matrix[2] * local_y + matrix[4]
	y_value = matrix[1] * local_x + matrix[3] * local_y + matrix[5]
	font_size = resolve_font_size(node, sizes_by_class)
	estimated = None
	measured = None
	if font_size is not None and content:
		estimated = svp.textfit.estimate_text_width(content, font_size)
		measured = reference_width(content, font_size)
	return TextElementInfo(
		id=node.attrib.get("id"),
		content=content,
		x=x_value,
		y=y_value,
		font_size=font_size,
		font_family=node.attrib.get("font-family"),
		text_anchor=node.attrib.get("text-anchor"),
		parent_group=group_id,
		suggested_id=suggest_id(content, x_value, y_value),
		estimated_width=estimated,
		reference_width=measured,
	)


#============================================
def analyze_svg_file(svg_path: pathlib.Path) -> SvgTextAnalysis:
	"""
	Parse and analyze an SVG file.

	Args:
		svg_path: SVG path.

	Returns:
		SvgTextAnalysis.
	"""
	template = PageTemplate.from_string(svg_path.read_bytes(), svg_path.name)
	return analyze_template(template, str(svg_path))


#============================================
def analyze_template_dir(template_dir: pathlib.Path) -> list[SvgTextAnalysis]:
	"""
	Analyze every SVG in a template directory.

	Args:
		template_dir: Directory with page SVGs.

	Returns:
		Analyses in file name order.
	"""
	svg_paths = sorted(template_dir.glob("*.svg"))
	if not svg_paths:
		raise TemplateConfigError(f"No SVG files found in {template_dir}")
	return [analyze_svg_file(path) for path in svg_paths]


#============================================
def print_text_report(analysis: SvgTextAnalysis) -> None:
	"""
	Print a text element report.

	Args:
		analysis: Analysis to print.
	"""
	print(f"=== Text elements: {pathlib.Path(analysis.file).name} ===")
	print(f"Page size: {analysis.width:.1f}x{analysis.height:.1f} {analysis.unit}")
	print(f"Total: {len(analysis.elements)}  with id: {analysis.with_id}  without id: {analysis.without_id}")
	for warning in analysis.warnings:
		print(f"Warning: {warning}")
	print("  #  | ID          | X      | Y      | Font   | Est W  | Ref W  | Content")
	for index, element in enumerate(analysis.elements, start=1):
		id_text = element.id[:11].ljust(11) if element.id else "[missing]  "
		font_text = f"{element.font_size:6.1f}" if element.font_size is not None else "   N/A"
		est_text = f"{element.estimated_width:6.1f}" if element.estimated_width is not None else "   N/A"
		ref_text = f"{element.reference_width:6.1f}" if element.reference_width is not None else "   N/A"
		content = element.content
		if len(content) > 30:
			content = content[:27] + "..."
		print(
			f"  {index:2d} | {id_text} | {element.x:6.1f} | {element.y:6.1f} | "
			f"{font_text} | {est_text} | {ref_text} | {content}"
		)
	missing = [element for element in analysis.elements if not element.id]
	if missing:
		print("Suggested ids:")
		for element in missing:
			print(f"  \"{element.content[:40]}\" -> {element.suggested_id}")


#============================================
def write_text_json(analysis: SvgTextAnalysis, output_path: pathlib.Path) -> None:
	"""
	Write the analysis as JSON for external tools.

	Args:
		analysis: Analysis to export.
		output_path: Output JSON path.
	"""
	data = {
		"file": analysis.file,
		"page_size": {"width": analysis.width, "height": analysis.height, "unit": analysis.unit},
		"elements": [
			dict(index=index, **dataclasses.asdict(element))
			for index, element in enumerate(analysis.elements, start=1)
		],
		"warnings": analysis.warnings,
	}
	with output_path.open("w", encoding="utf-8") as handle:
		json.dump(data, handle, indent=2, sort_keys=True, ensure_ascii=False)
