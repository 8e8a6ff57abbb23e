"""
Rendering orchestration: page plan, per-page binding and serialization.
"""

# local repo modules
import svgpaper as svp
import svgpaper.binder
import svgpaper.config
import svgpaper.errors
import svgpaper.formatter
import svgpaper.model
import svgpaper.paginator
import svgpaper.resolver
import svgpaper.svg_doc
import svgpaper.textfit


JobManifest = svp.model.JobManifest
TemplateConfig = svp.model.TemplateConfig
PageArchetype = svp.model.PageArchetype
TableSource = svp.model.TableSource
KeyValueSource = svp.model.KeyValueSource
PageTemplate = svp.svg_doc.PageTemplate
PageWindow = svp.paginator.PageWindow
BindContext = svp.binder.BindContext
RenderOptions = svp.config.RenderOptions
RenderResult = svp.config.RenderResult
RenderedPage = svp.config.RenderedPage
SvgPaperError = svp.errors.SvgPaperError
TemplateConfigError = svp.errors.TemplateConfigError


#============================================
def table_rows(sources: dict, source_name: str) -> tuple[dict[str, str], ...]:
	"""
	Get the rows of a table source, empty when it is missing.

	Args:
		sources: Data sources by name.
		source_name: Table source name.

	Returns:
		Rows in order.
	"""
	source = sources.get(source_name)
	if isinstance(source, TableSource):
		return source.rows
	return ()


#============================================
def bind_fields(
	doc: "svp.svg_doc.PageDocument",
	template: TemplateConfig,
	archetype: PageArchetype,
	sources: dict,
	context: BindContext,
) -> None:
	"""
	Bind global and page-level field bindings on one page.

	Global fields are required on the first archetype; on the repeat
	archetype they bind only where the target element exists.

	Args:
		doc: Page document (a clone).
		template: Template configuration.
		archetype: Archetype of this page.
		sources: Data sources by name.
		context: Bind context.
	"""
	for field in template.fields:
		if not field.enabled:
			continue
		if archetype.kind != "first" and doc.find(field.svg_id) is None:
			context.record({"action": "field", "element_id": field.svg_id, "skipped": True})
			continue
		raw_value, warning = svp.resolver.resolve_value(field.value, sources)
		context.warn(warning, field.svg_id)
		svp.binder.bind_field(doc, field, raw_value, context)

	for field in archetype.fields:
		if not field.enabled:
			continue
		raw_value, warning = svp.resolver.resolve_value(field.value, sources)
		context.warn(warning, field.svg_id)
		svp.binder.bind_field(doc, field, raw_value, context)


#============================================
def render_page(
	page: PageWindow,
	archetype: PageArchetype,
	document: PageTemplate,
	template: TemplateConfig,
	sources: dict,
	total_pages: int,
	context: BindContext,
) -> RenderedPage:
	"""
	Clone an archetype and bind everything that belongs on one page.

	Args:
		page: Page window from the plan.
		archetype: Archetype for this page.
		document: Parsed archetype SVG.
		template: Template configuration.
		sources: Data sources by name.
		total_pages: Final page count.
		context: Bind context for this page.

	Returns:
		RenderedPage.
	"""
	doc = document.clone()
	bind_fields(doc, template, archetype, sources, context)

	for table in archetype.tables:
		svp.binder.bind_table_header(doc, table, sources, context)
		row_start, row_count = page.slices.get(table.source, (0, 0))
		rows = list(table_rows(sources, table.source)[row_start:row_start + row_count])
		svp.binder.bind_table_window(doc, table, rows, row_start, sources, context)

	if archetype.page_number is not None:
		svp.binder.bind_page_number(
			doc,
			archetype.page_number,
			page.page_index + 1,
			total_pages,
			context,
		)

	return RenderedPage(
		page_number=page.page_index + 1,
		markup=doc.serialize(),
		archetype_id=archetype.id,
	)


#============================================
def render(
	manifest: JobManifest,
	template: TemplateConfig,
	sources: dict[str, KeyValueSource | TableSource],
	documents: dict[str, PageTemplate],
	options: RenderOptions | None = None,
) -> RenderResult:
	"""
	Render all pages of a job.

	Windows for every table are computed before any page is bound, so
	page-number bindings always see the final page count. Any fatal
	error aborts the whole render.

	Args:
		manifest: Job manifest.
		template: Template configuration.
		sources: Data sources by name.
		documents: Parsed SVG per archetype id; never mutated.
		options: Render options.

	Returns:
		RenderResult with pages in order.
	"""
	if options is None:
		options = RenderOptions()
	svp.textfit.check_floor_ratio(options.shrink_floor_ratio)
	formatters = svp.formatter.build_registry(template.formatters, options.custom_formatters)
	archetypes = {page.id: page for page in template.pages}

	row_counts = {}
	for archetype in template.pages:
		for table in archetype.tables:
			row_counts[table.source] = len(table_rows(sources, table.source))
	plan = svp.paginator.build_page_plan(template, row_counts, options.skip_empty_tables)
	total_pages = len(plan)

	trace: list[dict] | None = [] if options.debug else None
	warnings = []
	for source_name in row_counts:
		if not isinstance(sources.get(source_name), TableSource):
			warnings.append(
				svp.errors.RenderWarning(
					code=svp.errors.UNRESOLVED_DATA_REFERENCE,
					message=f"table source {source_name!r} not found, rendering no rows",
				)
			)
	pages: list[RenderedPage] = []
	for page in plan:
		archetype = archetypes[page.archetype_id]
		document = documents.get(archetype.id)
		if document is None:
			raise TemplateConfigError(
				f"SVG not loaded for page {archetype.id}",
				page.page_index,
				archetype.id,
			)
		context = BindContext(
			formatters,
			page_index=page.page_index,
			archetype_id=archetype.id,
			floor_ratio=options.shrink_floor_ratio,
			leading=options.leading,
			trace=trace,
		)
		try:
			rendered = render_page(page, archetype, document, template, sources, total_pages, context)
		except SvgPaperError as error:
			raise error.annotate(page.page_index, archetype.id)
		warnings.extend(context.warnings)
		pages.append(rendered)

	return RenderResult(
		job_id=manifest.job_id,
		template_id=template.template_id,
		template_version=template.version,
		total_pages=total_pages,
		pages=pages,
		warnings=warnings,
		trace=trace,
	)
