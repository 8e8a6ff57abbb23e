"""
Pure functions for splitting table rows into per-page windows.
"""

# Standard Library
import dataclasses

# local repo modules
import svgpaper as svp
import svgpaper.errors
import svgpaper.model


TemplateConfig = svp.model.TemplateConfig
MissingRepeatArchetype = svp.errors.MissingRepeatArchetype
ZeroCapacityOverflow = svp.errors.ZeroCapacityOverflow
InvalidTableBinding = svp.errors.InvalidTableBinding


@dataclasses.dataclass(frozen=True)
class RowWindow:
	kind: str
	row_start: int
	row_count: int

	@property
	def row_stop(self) -> int:
		return self.row_start + self.row_count


@dataclasses.dataclass(frozen=True)
class PageWindow:
	page_index: int
	archetype_id: str
	is_first: bool
	# source name -> (row_start, row_count)
	slices: dict[str, tuple[int, int]]


#============================================
def paginate(
	first_capacity: int | None,
	repeat_capacity: int | None,
	total_rows: int,
	skip_empty: bool = False,
	repeat_configured: bool = True,
) -> list[RowWindow]:
	"""
	Split a table's rows into ordered page windows.

	Args:
		first_capacity: rows_per_page on the first archetype, None if the
			table is not placed there.
		repeat_capacity: rows_per_page on the repeat archetype, None if the
			table is not placed there.
		total_rows: Number of rows in the table source.
		skip_empty: Return no windows for an empty table.
		repeat_configured: Whether the template has a repeat archetype.

	Returns:
		Windows whose slices partition range(total_rows) in order.
	"""
	for capacity in (first_capacity, repeat_capacity):
		if capacity is not None and capacity < 0:
			raise InvalidTableBinding(f"rows_per_page must be >= 0, got {capacity}")
	if total_rows < 0:
		raise ValueError(f"total_rows must be >= 0, got {total_rows}")

	if total_rows == 0:
		if skip_empty:
			return []
		return [RowWindow("first", 0, 0)]

	first_size = min(first_capacity or 0, total_rows)
	windows = [RowWindow("first", 0, first_size)]
	start = first_size
	if start < total_rows and not repeat_configured:
		raise MissingRepeatArchetype(
			f"{total_rows - start} rows overflow the first page and no repeat page is configured"
		)
	if start < total_rows and not repeat_capacity:
		raise ZeroCapacityOverflow(
			f"{total_rows - start} rows remain but the repeat page holds 0 rows of this table"
		)
	while start < total_rows:
		size = min(repeat_capacity, total_rows - start)
		windows.append(RowWindow("repeat", start, size))
		start += size
	return windows


#============================================
def build_page_plan(
	template: TemplateConfig,
	row_counts: dict[str, int],
	skip_empty: bool = False,
) -> list[PageWindow]:
	"""
	Compute windows for every table and align them by page index.

	Page 0 uses the first archetype and later pages the repeat archetype.
	Tables that run out of rows get empty slices on later pages.

	Args:
		template: Template configuration.
		row_counts: Row count per table source name.
		skip_empty: Skip empty tables instead of rendering an empty page.

	Returns:
		Ordered page windows.
	"""
	first = template.first_page()
	repeat = template.repeat_page()

	sources: list[str] = []
	for archetype in (first, repeat):
		if archetype is None:
			continue
		for table in archetype.tables:
			if table.source not in sources:
				sources.append(table.source)

	windows_by_source: dict[str, list[RowWindow]] = {}
	for source in sources:
		first_table = first.table_for_source(source)
		repeat_table = repeat.table_for_source(source) if repeat is not None else None
		archetype_id = first.id
		try:
			windows_by_source[source] = paginate(
				first_table.rows_per_page if first_table is not None else None,
				repeat_table.rows_per_page if repeat_table is not None else None,
				row_counts.get(source, 0),
				skip_empty=skip_empty,
				repeat_configured=repeat is not None,
			)
		except ZeroCapacityOverflow as error:
			if repeat is not None:
				archetype_id = repeat.id
			raise error.annotate(archetype_id=archetype_id)
		except svp.errors.SvgPaperError as error:
			raise error.annotate(archetype_id=archetype_id)

	if not sources:
		total_pages = 1
	else:
		total_pages = max(len(windows) for windows in windows_by_source.values())

	plan: list[PageWindow] = []
	for page_index in range(total_pages):
		is_first = page_index == 0
		archetype = first if is_first else repeat
		slices: dict[str, tuple[int, int]] = {}
		for source, windows in windows_by_source.items():
			if page_index < len(windows):
				window = windows[page_index]
				slices[source] = (window.row_start, window.row_count)
			else:
				slices[source] = (row_counts.get(source, 0), 0)
		plan.append(
			PageWindow(
				page_index=page_index,
				archetype_id=archetype.id,
				is_first=is_first,
				slices=slices,
			)
		)
	return plan
