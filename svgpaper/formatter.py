"""
Value formatters: built-in date, number and currency formats plus
named custom formatters from the template.
"""

# Standard Library
import datetime
import math
import re
from typing import Callable

# local repo modules
import svgpaper as svp
import svgpaper.errors
import svgpaper.model


FormatterDef = svp.model.FormatterDef
RenderWarning = svp.errors.RenderWarning

UNKNOWN_FORMATTER = svp.errors.UNKNOWN_FORMATTER

Formatter = Callable[[str], str]

ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
DATE_TOKEN_RE = re.compile(r"YYYY|MM|DD|M|D")
DEFAULT_CURRENCY = "¥"
DEFAULT_MAX_DECIMALS = 3


#============================================
def parse_date(value: str) -> datetime.date | None:
	"""
	Parse an ISO date or datetime string.

	Args:
		value: Input string.

	Returns:
		Date or None when the value is not a date.
	"""
	value = value.strip()
	match = ISO_DATE_RE.match(value)
	try:
		if match:
			return datetime.date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
		return datetime.datetime.fromisoformat(value).date()
	except ValueError:
		return None


#============================================
def parse_number(value: str) -> float | None:
	"""
	Parse a numeric string, ignoring thousands separators.

	Args:
		value: Input string.

	Returns:
		Float or None when not a finite number.
	"""
	try:
		number = float(value.strip().replace(",", ""))
	except ValueError:
		return None
	if not math.isfinite(number):
		return None
	return number


#============================================
def format_grouped(number: float, decimals: int | None = None, grouping: bool = True) -> str:
	"""
	Format a number with thousands separators.

	Args:
		number: Value to format.
		decimals: Fixed decimal places, or None for up to three trimmed places.
		grouping: Whether to insert thousands separators.

	Returns:
		Formatted string.
	"""
	separator = "," if grouping else ""
	if decimals is None:
		text = f"{number:{separator}.{DEFAULT_MAX_DECIMALS}f}"
		if "." in text:
			text = text.rstrip("0").rstrip(".")
	else:
		text = f"{number:{separator}.{decimals}f}"
	if text.startswith("-") and parse_number(text) == 0:
		text = text[1:]
	return text


#============================================
def format_raw(value: str) -> str:
	return value


#============================================
def format_date(value: str) -> str:
	"""
	Format an ISO date as YYYY年M月D日.
	"""
	if not value:
		return ""
	parsed = parse_date(value)
	if parsed is None:
		return value
	return f"{parsed.year}年{parsed.month}月{parsed.day}日"


#============================================
def format_number(value: str) -> str:
	if not value:
		return ""
	number = parse_number(value)
	if number is None:
		return value
	return format_grouped(number)


#============================================
def format_currency(value: str) -> str:
	if not value:
		return ""
	number = parse_number(value)
	if number is None:
		return value
	return f"{DEFAULT_CURRENCY}{format_grouped(number)}"


BUILTIN_FORMATTERS: dict[str, Formatter] = {
	"raw": format_raw,
	"date": format_date,
	"number": format_number,
	"currency": format_currency,
}
# legacy aliases accepted in older templates
BUILTIN_ALIASES = {
	"yen": "currency",
}


#============================================
def make_date_formatter(pattern: str) -> Formatter:
	"""
	Build a date formatter from a YYYY/MM/M/DD/D pattern.

	Args:
		pattern: Pattern like "YYYY/MM/DD".

	Returns:
		Formatter function.
	"""
	def formatter(value: str) -> str:
		if not value:
			return ""
		parsed = parse_date(value)
		if parsed is None:
			return value
		tokens = {
			"YYYY": f"{parsed.year:04d}",
			"MM": f"{parsed.month:02d}",
			"M": str(parsed.month),
			"DD": f"{parsed.day:02d}",
			"D": str(parsed.day),
		}
		return DATE_TOKEN_RE.sub(lambda match: tokens[match.group(0)], pattern)
	return formatter


#============================================
def parse_number_pattern(pattern: str | None) -> tuple[int | None, bool]:
	"""
	Read decimal places and grouping from a pattern like "#,##0.00".

	Args:
		pattern: Number pattern or None.

	Returns:
		Tuple of (decimals, grouping).
	"""
	if not pattern:
		return (None, True)
	grouping = "," in pattern
	if "." in pattern:
		fraction = pattern.split(".", 1)[1]
		decimals = sum(1 for char in fraction if char in "0#")
		return (decimals, grouping)
	return (0, grouping)


#============================================
def make_number_formatter(pattern: str | None, prefix: str = "") -> Formatter:
	"""
	Build a number or currency formatter.

	Args:
		pattern: Number pattern or None for the default format.
		prefix: Currency symbol placed before the number.

	Returns:
		Formatter function.
	"""
	decimals, grouping = parse_number_pattern(pattern)

	def formatter(value: str) -> str:
		if not value:
			return ""
		number = parse_number(value)
		if number is None:
			return value
		return f"{prefix}{format_grouped(number, decimals, grouping)}"
	return formatter


#============================================
def make_custom_formatter(definition: FormatterDef) -> Formatter | None:
	"""
	Build a formatter from a template formatter definition.

	Args:
		definition: FormatterDef from template.json.

	Returns:
		Formatter, or None when the definition is incomplete.
	"""
	if definition.kind == "date" and definition.pattern:
		return make_date_formatter(definition.pattern)
	if definition.kind == "number":
		return make_number_formatter(definition.pattern)
	if definition.kind == "currency":
		return make_number_formatter(definition.pattern, definition.currency or DEFAULT_CURRENCY)
	return None


class FormatterRegistry:
	"""
	Formatter lookup owned by a single render call.
	"""

	def __init__(self, custom: dict[str, Formatter] | None = None) -> None:
		self.custom: dict[str, Formatter] = dict(custom or {})

	def register(self, name: str, formatter: Formatter) -> None:
		self.custom[name] = formatter

	def lookup(self, name: str | None) -> Formatter | None:
		if not name:
			return format_raw
		if name in self.custom:
			return self.custom[name]
		name = BUILTIN_ALIASES.get(name, name)
		return BUILTIN_FORMATTERS.get(name)

	def apply(self, value: str, name: str | None) -> tuple[str, RenderWarning | None]:
		"""
		Format a value; unknown names fall back to raw with a warning.

		Args:
			value: Raw string.
			name: Formatter name or None.

		Returns:
			Tuple of (display string, warning or None).
		"""
		formatter = self.lookup(name)
		if formatter is None:
			warning = RenderWarning(
				code=UNKNOWN_FORMATTER,
				message=f"formatter {name!r} is not defined, using raw",
			)
			return (value, warning)
		return (formatter(value), None)


#============================================
def build_registry(
	definitions: dict[str, FormatterDef] | None = None,
	custom: dict[str, Formatter] | None = None,
) -> FormatterRegistry:
	"""
	Build a registry from template definitions and caller functions.

	Caller supplied functions win over template definitions of the
	same name.

	Args:
		definitions: Template formatter definitions by name.
		custom: Extra formatter functions by name.

	Returns:
		FormatterRegistry.
	"""
	registry = FormatterRegistry()
	for name, definition in (definitions or {}).items():
		formatter = make_custom_formatter(definition)
		if formatter is not None:
			registry.register(name, formatter)
	for name, formatter in (custom or {}).items():
		registry.register(name, formatter)
	return registry
