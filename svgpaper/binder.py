"""
Bind resolved values onto a cloned page document.

Every function here mutates only the PageDocument it is given.
"""

# Standard Library
import copy
import xml.etree.ElementTree as StdElementTree

# local repo modules
import svgpaper as svp
import svgpaper.config
import svgpaper.errors
import svgpaper.formatter
import svgpaper.model
import svgpaper.resolver
import svgpaper.svg_doc
import svgpaper.textfit


PageDocument = svp.svg_doc.PageDocument
FieldBinding = svp.model.FieldBinding
TableBinding = svp.model.TableBinding
PageNumberBinding = svp.model.PageNumberBinding
FormatterRegistry = svp.formatter.FormatterRegistry
ElementMetrics = svp.textfit.ElementMetrics
FitOutcome = svp.textfit.FitOutcome
RenderWarning = svp.errors.RenderWarning
MissingElement = svp.errors.MissingElement
InvalidGeometry = svp.errors.InvalidGeometry
SvgPaperError = svp.errors.SvgPaperError

TEXT_ANCHORS = svp.config.TEXT_ANCHORS
DEFAULT_FONT_SIZE = svp.config.DEFAULT_FONT_SIZE
DEFAULT_LEADING = svp.config.DEFAULT_LEADING
DEFAULT_SHRINK_FLOOR_RATIO = svp.config.DEFAULT_SHRINK_FLOOR_RATIO

FIT_WIDTH_ATTR = "data-fit-width"
FIT_LINES_ATTR = "data-fit-lines"
FIT_LABEL_ATTR = "data-fit-label"
ROW_TYPE_ATTR = "data-row-type"
ROW_INDEX_ATTR = "data-row-index"


class BindContext:
	"""
	Per-page state shared by the bind functions.

	Collects warnings and optional trace entries so the renderer can
	hand them back with the result.
	"""

	def __init__(
		self,
		formatters: FormatterRegistry,
		page_index: int | None = None,
		archetype_id: str | None = None,
		floor_ratio: float = DEFAULT_SHRINK_FLOOR_RATIO,
		leading: float = DEFAULT_LEADING,
		trace: list[dict] | None = None,
	) -> None:
		self.formatters = formatters
		self.page_index = page_index
		self.archetype_id = archetype_id
		self.floor_ratio = floor_ratio
		self.leading = leading
		self.trace = trace
		self.warnings: list[RenderWarning] = []

	def warn(self, warning: RenderWarning | None, element_id: str) -> None:
		if warning is None:
			return
		warning.page_index = self.page_index
		warning.archetype_id = self.archetype_id
		warning.element_id = element_id
		self.warnings.append(warning)

	def record(self, entry: dict) -> None:
		if self.trace is None:
			return
		entry.setdefault("page_index", self.page_index)
		entry.setdefault("archetype_id", self.archetype_id)
		self.trace.append(entry)


#============================================
def read_metrics(
	doc: PageDocument,
	element: StdElementTree.Element,
) -> tuple[ElementMetrics | None, float]:
	"""
	Read fit metrics declared on a text element.

	Box width comes from data-fit-width, or else from the estimated
	width of the element named by data-fit-label.

	Args:
		doc: Page document, for label lookup.
		element: Target text element.

	Returns:
		Tuple of (metrics or None when no box width is declared, font size).
	"""
	font_size = svp.svg_doc.get_font_size(element, DEFAULT_FONT_SIZE)
	max_lines = None
	lines_attr = element.attrib.get(FIT_LINES_ATTR)
	if lines_attr is not None:
		try:
			max_lines = int(lines_attr)
		except ValueError:
			max_lines = None
		if max_lines is not None and max_lines <= 0:
			max_lines = None

	# a width that is not a finite number counts as undeclared
	box_width = svp.svg_doc.parse_number(element.attrib.get(FIT_WIDTH_ATTR), None)
	if box_width is not None:
		return (ElementMetrics(box_width, font_size, max_lines), font_size)

	label_id = element.attrib.get(FIT_LABEL_ATTR)
	if label_id:
		label = doc.find(label_id)
		if label is not None:
			label_text = svp.svg_doc.get_text_content(label)
			if label_text:
				label_size = svp.svg_doc.get_font_size(label, DEFAULT_FONT_SIZE)
				box_width = svp.textfit.estimate_text_width(label_text, label_size)
				return (ElementMetrics(box_width, font_size, max_lines), font_size)
	return (None, font_size)


#============================================
def write_text(
	doc: PageDocument,
	element: StdElementTree.Element,
	text: str,
	fit_policy: str,
	align: str | None,
	context: BindContext,
) -> FitOutcome | None:
	"""
	Fit a display string to an element and write it.

	Args:
		doc: Page document.
		element: Target text element.
		text: Formatted display string.
		fit_policy: none, shrink, wrap or clip.
		align: left, center, right or None.
		context: Bind context.

	Returns:
		FitOutcome, or None when the element declares no box width and
		the text was written unfitted.
	"""
	if align:
		element.set("text-anchor", TEXT_ANCHORS[align])

	metrics, font_size = read_metrics(doc, element)
	if metrics is None or fit_policy == "none":
		if metrics is None:
			metrics = ElementMetrics(0.0, font_size)
		outcome = None
		if fit_policy == "none":
			outcome = svp.textfit.fit(metrics, text, "none", leading=context.leading)
		write_lines(element, text.split("\n"), font_size * context.leading)
		return outcome

	outcome = svp.textfit.fit(
		metrics,
		text,
		fit_policy,
		floor_ratio=context.floor_ratio,
		leading=context.leading,
	)
	if outcome.scaled:
		svp.svg_doc.set_font_size(element, outcome.font_size)
	write_lines(element, list(outcome.lines), outcome.line_height)
	return outcome


#============================================
def write_lines(element: StdElementTree.Element, lines: list[str], line_height: float) -> None:
	"""
	Write one line as plain text, several lines as positioned tspans.

	Args:
		element: Target text element.
		lines: Lines to write.
		line_height: Baseline distance for multi-line text.
	"""
	if len(lines) <= 1:
		svp.svg_doc.set_text_content(element, lines[0] if lines else "")
		return
	svp.svg_doc.set_text_lines(element, lines, line_height)


#============================================
def describe_outcome(outcome: FitOutcome | None) -> dict | None:
	if outcome is None:
		return None
	return {
		"policy": outcome.policy,
		"font_size": outcome.font_size,
		"natural_width": outcome.natural_width,
		"lines": list(outcome.lines),
		"scaled": outcome.scaled,
		"truncated": outcome.truncated,
	}


#============================================
def bind_value(
	doc: PageDocument,
	element: StdElementTree.Element,
	binding: FieldBinding,
	raw_value: str,
	context: BindContext,
	kind: str,
	element_id: str,
) -> None:
	"""
	Format, fit and write one resolved value.

	Args:
		doc: Page document.
		element: Target element.
		binding: Field or cell binding.
		raw_value: Resolved raw string.
		context: Bind context.
		kind: Trace label (field, cell, header).
		element_id: Id used in warnings and errors.
	"""
	display, warning = context.formatters.apply(raw_value, binding.format)
	context.warn(warning, element_id)
	try:
		outcome = write_text(doc, element, display, binding.fit, binding.align, context)
	except SvgPaperError as error:
		raise error.annotate(element_id=element_id)
	context.record(
		{
			"action": kind,
			"element_id": element_id,
			"raw": raw_value,
			"formatted": display,
			"fit": describe_outcome(outcome),
			"fitted": outcome is not None or binding.fit == "none",
		}
	)


#============================================
def bind_field(
	doc: PageDocument,
	binding: FieldBinding,
	raw_value: str,
	context: BindContext,
) -> None:
	"""
	Bind a resolved value to the element named by a field binding.

	Args:
		doc: Page document (a clone).
		binding: Field binding.
		raw_value: Resolved raw string.
		context: Bind context.
	"""
	try:
		element = doc.require(binding.svg_id)
	except MissingElement as error:
		raise error.annotate(context.page_index, context.archetype_id)
	bind_value(doc, element, binding, raw_value, context, "field", binding.svg_id)


#============================================
def bind_table_header(
	doc: PageDocument,
	table: TableBinding,
	sources: dict,
	context: BindContext,
) -> None:
	"""
	Bind a table's header cells.

	Args:
		doc: Page document (a clone).
		table: Table binding.
		sources: Data sources by name.
		context: Bind context.
	"""
	for cell in table.header_cells:
		if not cell.enabled:
			continue
		raw_value, warning = svp.resolver.resolve_value(cell.value, sources)
		context.warn(warning, cell.svg_id)
		try:
			element = doc.require(cell.svg_id)
		except MissingElement as error:
			raise error.annotate(context.page_index, context.archetype_id)
		bind_value(doc, element, cell, raw_value, context, "header", cell.svg_id)


#============================================
def suffix_ids(root: StdElementTree.Element, suffix: str) -> dict[str, StdElementTree.Element]:
	"""
	Make ids below a row clone unique by appending a suffix.

	Args:
		root: Row clone root.
		suffix: Suffix such as "-r3".

	Returns:
		Mapping of original id to element in the clone.
	"""
	by_original_id: dict[str, StdElementTree.Element] = {}
	for element in root.iter():
		if element is root:
			continue
		element_id = element.attrib.get("id")
		if not element_id:
			continue
		if element_id not in by_original_id:
			by_original_id[element_id] = element
		element.set("id", f"{element_id}{suffix}")
	return by_original_id


#============================================
def bind_table_window(
	doc: PageDocument,
	table: TableBinding,
	rows: list[dict[str, str]],
	row_offset: int,
	sources: dict,
	context: BindContext,
) -> None:
	"""
	Expand a table's row template for one page window.

	The row group is cloned once per row, each clone is translated by
	its window-local index times the row pitch, cells are bound from the
	row, and the unbound row template is removed.

	Args:
		doc: Page document (a clone).
		table: Table binding.
		rows: Rows of this window, in order.
		row_offset: Global index of the first row in the window.
		sources: Data sources by name.
		context: Bind context.
	"""
	try:
		template_row = doc.require(table.row_group_id)
	except MissingElement as error:
		raise error.annotate(context.page_index, context.archetype_id)
	container = doc.parent_of(template_row)
	if container is None:
		raise MissingElement(
			f"Row template #{table.row_group_id} has no parent container",
			context.page_index,
			context.archetype_id,
			table.row_group_id,
		)

	# cell ids must live inside the row group subtree
	for cell in table.cells:
		if not cell.enabled:
			continue
		if cell.svg_id == table.row_group_id or svp.svg_doc.find_by_id(template_row, cell.svg_id) is None:
			raise MissingElement(
				f"Table cell #{cell.svg_id} not found inside row group #{table.row_group_id}",
				context.page_index,
				context.archetype_id,
				cell.svg_id,
			)

	pitch = svp.config.mm_to_units(table.row_height_mm)
	try:
		translate = svp.svg_doc.get_translate(template_row)
	except InvalidGeometry as error:
		raise error.annotate(context.page_index, context.archetype_id)
	base_x, base_y = translate if translate is not None else (0.0, 0.0)
	if table.start_y_mm is not None:
		base_y = svp.config.mm_to_units(table.start_y_mm)

	insert_at = list(container).index(template_row)
	for index, row in enumerate(rows):
		row_index = row_offset + index
		clone = copy.deepcopy(template_row)
		clone.attrib.pop("id", None)
		clone.set(ROW_TYPE_ATTR, "data")
		clone.set(ROW_INDEX_ATTR, str(row_index))
		svp.svg_doc.set_translate(clone, base_x, base_y + index * pitch)
		cells_by_id = suffix_ids(clone, f"-r{row_index}")
		for cell in table.cells:
			if not cell.enabled:
				continue
			raw_value, warning = svp.resolver.resolve_value(
				cell.value,
				sources,
				row=row,
				row_source=table.source,
			)
			context.warn(warning, cell.svg_id)
			bind_value(doc, cells_by_id[cell.svg_id], cell, raw_value, context, "cell", cell.svg_id)
		container.insert(insert_at + 1 + index, clone)

	container.remove(template_row)
	context.record(
		{
			"action": "table",
			"element_id": table.row_group_id,
			"source": table.source,
			"row_start": row_offset,
			"row_count": len(rows),
		}
	)


#============================================
def bind_page_number(
	doc: PageDocument,
	binding: PageNumberBinding,
	current: int,
	total: int,
	context: BindContext,
) -> None:
	"""
	Write the page number text.

	Args:
		doc: Page document (a clone).
		binding: Page number binding.
		current: 1-based page number.
		total: Total page count.
		context: Bind context.
	"""
	try:
		element = doc.require(binding.svg_id)
	except MissingElement as error:
		raise error.annotate(context.page_index, context.archetype_id)
	text = binding.format.replace("{current}", str(current)).replace("{total}", str(total))
	svp.svg_doc.set_text_content(element, text)
	context.record(
		{
			"action": "page_number",
			"element_id": binding.svg_id,
			"formatted": text,
		}
	)
