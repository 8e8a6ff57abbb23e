"""
Resolve value bindings to raw strings.
"""

# local repo modules
import svgpaper as svp
import svgpaper.errors
import svgpaper.model


StaticValue = svp.model.StaticValue
DataRef = svp.model.DataRef
KeyValueSource = svp.model.KeyValueSource
TableSource = svp.model.TableSource
RenderWarning = svp.errors.RenderWarning

UNRESOLVED_DATA_REFERENCE = svp.errors.UNRESOLVED_DATA_REFERENCE


#============================================
def resolve_value(
	value: StaticValue | DataRef,
	sources: dict[str, KeyValueSource | TableSource],
	row: dict[str, str] | None = None,
	row_source: str | None = None,
) -> tuple[str, RenderWarning | None]:
	"""
	Resolve a value binding against the active data sources.

	Inside a table row, references to the row's own source read the row.
	A table source referenced outside a row reads its first row.

	Args:
		value: Static text or data reference.
		sources: Data sources by name.
		row: Current table row, if binding a row cell.
		row_source: Name of the source the row came from.

	Returns:
		Tuple of (raw string, warning or None). Unresolved references
		resolve to an empty string with a warning.
	"""
	if isinstance(value, StaticValue):
		return (value.text, None)

	if row is not None and value.source == row_source:
		if value.key in row:
			return (row[value.key], None)
		return ("", unresolved(value, f"column {value.key!r} not in row of {value.source!r}"))

	source = sources.get(value.source)
	if source is None:
		return ("", unresolved(value, f"data source {value.source!r} not found"))

	if isinstance(source, KeyValueSource):
		if value.key in source.values:
			return (source.values[value.key], None)
		return ("", unresolved(value, f"key {value.key!r} not in {value.source!r}"))

	if not source.rows:
		return ("", unresolved(value, f"table {value.source!r} has no rows"))
	first_row = source.rows[0]
	if value.key in first_row:
		return (first_row[value.key], None)
	return ("", unresolved(value, f"column {value.key!r} not in {value.source!r}"))


#============================================
def unresolved(value: DataRef, reason: str) -> RenderWarning:
	"""
	Build an unresolved-reference warning.

	Args:
		value: Data reference that failed.
		reason: Human readable reason.

	Returns:
		RenderWarning.
	"""
	return RenderWarning(
		code=UNRESOLVED_DATA_REFERENCE,
		message=f"{value.source}.{value.key}: {reason}",
	)
