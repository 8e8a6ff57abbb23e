"""
Template, binding and data source model.
"""

# Standard Library
import dataclasses

# local repo modules
import svgpaper as svp
import svgpaper.config
import svgpaper.errors


TemplateConfigError = svp.errors.TemplateConfigError
TemplateMismatch = svp.errors.TemplateMismatch

FIT_POLICIES = svp.config.FIT_POLICIES
PAGE_KINDS = svp.config.PAGE_KINDS
TEXT_ANCHORS = svp.config.TEXT_ANCHORS
DEFAULT_PAGE_NUMBER_FORMAT = svp.config.DEFAULT_PAGE_NUMBER_FORMAT


@dataclasses.dataclass(frozen=True)
class StaticValue:
	text: str


@dataclasses.dataclass(frozen=True)
class DataRef:
	source: str
	key: str


@dataclasses.dataclass(frozen=True)
class FieldBinding:
	svg_id: str
	value: StaticValue | DataRef
	fit: str = "none"
	align: str | None = None
	format: str | None = None
	enabled: bool = True


# table row cells and header cells share the field binding shape
TableCell = FieldBinding


@dataclasses.dataclass(frozen=True)
class TableBinding:
	source: str
	row_group_id: str
	row_height_mm: float
	rows_per_page: int
	start_y_mm: float | None = None
	header_cells: tuple[FieldBinding, ...] = ()
	cells: tuple[FieldBinding, ...] = ()


@dataclasses.dataclass(frozen=True)
class PageNumberBinding:
	svg_id: str
	format: str = DEFAULT_PAGE_NUMBER_FORMAT


@dataclasses.dataclass(frozen=True)
class PageArchetype:
	id: str
	svg: str
	kind: str
	tables: tuple[TableBinding, ...] = ()
	fields: tuple[FieldBinding, ...] = ()
	page_number: PageNumberBinding | None = None

	def table_for_source(self, source: str) -> TableBinding | None:
		for table in self.tables:
			if table.source == source:
				return table
		return None


@dataclasses.dataclass(frozen=True)
class FormatterDef:
	kind: str | None = None
	pattern: str | None = None
	currency: str | None = None


@dataclasses.dataclass(frozen=True)
class TemplateConfig:
	template_id: str
	version: str
	pages: tuple[PageArchetype, ...]
	fields: tuple[FieldBinding, ...] = ()
	formatters: dict[str, FormatterDef] = dataclasses.field(default_factory=dict)

	def first_page(self) -> PageArchetype:
		firsts = [page for page in self.pages if page.kind == "first"]
		if len(firsts) != 1:
			raise TemplateConfigError(
				f"Expected exactly one page with kind=\"first\", found {len(firsts)}"
			)
		return firsts[0]

	def repeat_page(self) -> PageArchetype | None:
		repeats = [page for page in self.pages if page.kind == "repeat"]
		if len(repeats) > 1:
			raise TemplateConfigError(
				f"Expected at most one page with kind=\"repeat\", found {len(repeats)}"
			)
		if not repeats:
			return None
		return repeats[0]


@dataclasses.dataclass(frozen=True)
class JobManifest:
	job_id: str
	template_id: str
	template_version: str
	locale: str | None = None


@dataclasses.dataclass(frozen=True)
class KeyValueSource:
	values: dict[str, str]


@dataclasses.dataclass(frozen=True)
class TableSource:
	rows: tuple[dict[str, str], ...]
	headers: tuple[str, ...] = ()


#============================================
def require_object(data, path: str) -> dict:
	"""
	Ensure a decoded JSON value is an object.

	Args:
		data: Decoded JSON value.
		path: Location used in error messages.

	Returns:
		The same object.
	"""
	if not isinstance(data, dict):
		raise TemplateConfigError(f"Expected an object at {path}, got {type(data).__name__}")
	return data


#============================================
def require_value(data: dict, key: str, path: str):
	"""
	Read a required key from a decoded JSON object.

	Args:
		data: Decoded JSON object.
		key: Required key.
		path: Location used in error messages.

	Returns:
		The stored value.
	"""
	if key not in data or data[key] is None:
		raise TemplateConfigError(f"Missing required key {key!r} at {path}")
	return data[key]


#============================================
def parse_int_value(value, key: str, path: str) -> int:
	try:
		return int(value)
	except (TypeError, ValueError) as error:
		raise TemplateConfigError(f"{key} must be an integer, got {value!r} at {path}") from error


#============================================
def parse_float_value(value, key: str, path: str) -> float:
	try:
		return float(value)
	except (TypeError, ValueError) as error:
		raise TemplateConfigError(f"{key} must be a number, got {value!r} at {path}") from error


#============================================
def parse_value_binding(data: dict, path: str) -> StaticValue | DataRef:
	"""
	Parse a value binding.

	Args:
		data: Decoded JSON object.
		path: Location used in error messages.

	Returns:
		StaticValue or DataRef.
	"""
	data = require_object(data, path)
	kind = data.get("type")
	if kind == "static":
		return StaticValue(text=str(data.get("text", "")))
	if kind == "data":
		return DataRef(
			source=str(require_value(data, "source", path)),
			key=str(require_value(data, "key", path)),
		)
	raise TemplateConfigError(f"Unknown value binding type {kind!r} at {path}")


#============================================
def parse_field_binding(data: dict, path: str) -> FieldBinding:
	"""
	Parse a field binding or table cell.

	Args:
		data: Decoded JSON object.
		path: Location used in error messages.

	Returns:
		FieldBinding.
	"""
	data = require_object(data, path)
	if "value" in data:
		value = parse_value_binding(data["value"], f"{path}.value")
	elif "source" in data and "key" in data:
		# v0.1 templates put source/key directly on the binding
		value = DataRef(source=str(data["source"]), key=str(data["key"]))
	elif "column" in data:
		value = DataRef(source="", key=str(data["column"]))
	else:
		raise TemplateConfigError(f"Binding has no value at {path}")

	fit = data.get("fit", "none")
	if fit not in FIT_POLICIES:
		raise TemplateConfigError(f"Unknown fit policy {fit!r} at {path}")
	align = data.get("align")
	if align is not None and align not in TEXT_ANCHORS:
		raise TemplateConfigError(f"Unknown alignment {align!r} at {path}")

	return FieldBinding(
		svg_id=str(require_value(data, "svg_id", path)),
		value=value,
		fit=fit,
		align=align,
		format=data.get("format"),
		enabled=bool(data.get("enabled", True)),
	)


#============================================
def parse_table_binding(data: dict, path: str) -> TableBinding:
	"""
	Parse a table binding.

	Args:
		data: Decoded JSON object.
		path: Location used in error messages.

	Returns:
		TableBinding.
	"""
	data = require_object(data, path)
	source = str(require_value(data, "source", path))
	rows_per_page = parse_int_value(
		require_value(data, "rows_per_page", path), "rows_per_page", path,
	)
	if rows_per_page < 0:
		raise TemplateConfigError(
			f"rows_per_page must be >= 0, got {rows_per_page} at {path}"
		)
	cells = []
	for index, cell in enumerate(data.get("cells", [])):
		binding = parse_field_binding(cell, f"{path}.cells[{index}]")
		# v0.1 column cells read from the table's own source
		if isinstance(binding.value, DataRef) and not binding.value.source:
			binding = dataclasses.replace(
				binding,
				value=DataRef(source=source, key=binding.value.key),
			)
		cells.append(binding)
	header_cells = []
	header = require_object(data.get("header") or {}, f"{path}.header")
	for index, cell in enumerate(header.get("cells", [])):
		header_cells.append(parse_field_binding(cell, f"{path}.header.cells[{index}]"))

	start_y_mm = data.get("start_y_mm")
	return TableBinding(
		source=source,
		row_group_id=str(require_value(data, "row_group_id", path)),
		row_height_mm=parse_float_value(
			require_value(data, "row_height_mm", path), "row_height_mm", path,
		),
		rows_per_page=rows_per_page,
		start_y_mm=None if start_y_mm is None else parse_float_value(start_y_mm, "start_y_mm", path),
		header_cells=tuple(header_cells),
		cells=tuple(cells),
	)


#============================================
def parse_page(data: dict, path: str) -> PageArchetype:
	"""
	Parse a page archetype.

	Args:
		data: Decoded JSON object.
		path: Location used in error messages.

	Returns:
		PageArchetype.
	"""
	data = require_object(data, path)
	kind = data.get("kind")
	if kind not in PAGE_KINDS:
		raise TemplateConfigError(f"Unknown page kind {kind!r} at {path}")
	tables = tuple(
		parse_table_binding(table, f"{path}.tables[{index}]")
		for index, table in enumerate(data.get("tables", []))
	)
	fields = tuple(
		parse_field_binding(field, f"{path}.fields[{index}]")
		for index, field in enumerate(data.get("fields", []))
	)
	page_number = None
	page_number_data = data.get("page_number")
	if page_number_data:
		require_object(page_number_data, f"{path}.page_number")
	if page_number_data and page_number_data.get("svg_id"):
		page_number = PageNumberBinding(
			svg_id=str(page_number_data["svg_id"]),
			format=page_number_data.get("format", DEFAULT_PAGE_NUMBER_FORMAT),
		)
	return PageArchetype(
		id=str(require_value(data, "id", path)),
		svg=str(require_value(data, "svg", path)),
		kind=kind,
		tables=tables,
		fields=fields,
		page_number=page_number,
	)


#============================================
def parse_template_config(data: dict) -> TemplateConfig:
	"""
	Parse a decoded template.json into a TemplateConfig.

	Schema conformance is checked elsewhere; this only rejects shapes
	the renderer cannot work with.

	Args:
		data: Decoded template.json.

	Returns:
		TemplateConfig.
	"""
	data = require_object(data, "template.json")
	template_ref = require_object(data.get("template") or {}, "template")
	pages = tuple(
		parse_page(page, f"pages[{index}]")
		for index, page in enumerate(data.get("pages", []))
	)
	fields = tuple(
		parse_field_binding(field, f"fields[{index}]")
		for index, field in enumerate(data.get("fields", []))
	)
	formatters: dict[str, FormatterDef] = {}
	for name, definition in require_object(data.get("formatters") or {}, "formatters").items():
		definition = require_object(definition, f"formatters.{name}")
		formatters[name] = FormatterDef(
			kind=definition.get("kind"),
			pattern=definition.get("pattern"),
			currency=definition.get("currency"),
		)
	config = TemplateConfig(
		template_id=str(template_ref.get("id", "")),
		version=str(template_ref.get("version", "")),
		pages=pages,
		fields=fields,
		formatters=formatters,
	)
	# fail early on archetype cardinality
	config.first_page()
	config.repeat_page()
	return config


#============================================
def parse_manifest(data: dict) -> JobManifest:
	"""
	Parse a decoded job manifest.

	Args:
		data: Decoded manifest.json.

	Returns:
		JobManifest.
	"""
	data = require_object(data, "manifest")
	template_ref = require_object(data.get("template") or {}, "template")
	return JobManifest(
		job_id=str(data.get("job_id", "")),
		template_id=str(template_ref.get("id", "")),
		template_version=str(template_ref.get("version", "")),
		locale=data.get("locale"),
	)


#============================================
def parse_data_sources(data: dict) -> dict[str, KeyValueSource | TableSource]:
	"""
	Build data sources from a decoded JSON object.

	Objects become key-value sources, lists of objects become tables.

	Args:
		data: Mapping of source name to object or list.

	Returns:
		Data sources by name.
	"""
	sources: dict[str, KeyValueSource | TableSource] = {}
	for name, payload in data.items():
		if isinstance(payload, dict):
			values = {str(key): stringify(value) for key, value in payload.items()}
			sources[name] = KeyValueSource(values=values)
			continue
		if isinstance(payload, list):
			rows = []
			headers: list[str] = []
			for row in payload:
				if not isinstance(row, dict):
					raise TemplateConfigError(f"Table source {name!r} has a non-object row")
				converted = {str(key): stringify(value) for key, value in row.items()}
				for key in converted:
					if key not in headers:
						headers.append(key)
				rows.append(converted)
			sources[name] = TableSource(rows=tuple(rows), headers=tuple(headers))
			continue
		raise TemplateConfigError(f"Data source {name!r} must be an object or a list")
	return sources


#============================================
def stringify(value) -> str:
	"""
	Convert a decoded JSON scalar to the string form bindings expect.

	Args:
		value: JSON scalar.

	Returns:
		String value.
	"""
	if value is None:
		return ""
	if isinstance(value, bool):
		return "true" if value else "false"
	return str(value)


#============================================
def check_template_match(template: TemplateConfig, manifest: JobManifest) -> None:
	"""
	Ensure the template matches the manifest's template reference.

	Args:
		template: Loaded template.
		manifest: Job manifest.
	"""
	if template.template_id != manifest.template_id:
		raise TemplateMismatch(
			f"Template ID mismatch: expected {manifest.template_id}, got {template.template_id}"
		)
	if template.version != manifest.template_version:
		raise TemplateMismatch(
			f"Template version mismatch: expected {manifest.template_version}, got {template.version}"
		)
