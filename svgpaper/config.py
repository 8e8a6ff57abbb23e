"""
Shared configuration and constants.
"""

import dataclasses


SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"

# SVG user units per millimeter at 96 dpi
MM_TO_UNITS = 3.7795

DEFAULT_FONT_SIZE = 12.0
DEFAULT_LEADING = 1.2
DEFAULT_SHRINK_FLOOR_RATIO = 0.5
ELLIPSIS = "…"
DEFAULT_PAGE_NUMBER_FORMAT = "{current}/{total}"
PAGE_FILE_DIGITS = 3

FIT_POLICIES = ("none", "shrink", "wrap", "clip")
PAGE_KINDS = ("first", "repeat")
TEXT_ANCHORS = {
	"left": "start",
	"center": "middle",
	"right": "end",
}

# Em-width table used by the text fit engine. Changing any entry changes
# rendered output for existing templates.
WIDE_CHAR_RANGES = (
	(0x3000, 0x9FFF),
	(0xFF01, 0xFF60),
)
WIDE_CHAR_WIDTH = 1.0
UPPER_DIGIT_WIDTH = 0.75
NARROW_CHAR_WIDTH = 0.6

REFERENCE_FONT = "Helvetica"
ROW_SORT_TOLERANCE = 5.0


@dataclasses.dataclass
class RenderOptions:
	debug: bool = False
	skip_empty_tables: bool = False
	shrink_floor_ratio: float = DEFAULT_SHRINK_FLOOR_RATIO
	leading: float = DEFAULT_LEADING
	custom_formatters: dict | None = None


@dataclasses.dataclass(frozen=True)
class RenderedPage:
	page_number: int
	markup: str
	archetype_id: str


@dataclasses.dataclass
class RenderResult:
	job_id: str
	template_id: str
	template_version: str
	total_pages: int
	pages: list[RenderedPage]
	warnings: list = dataclasses.field(default_factory=list)
	trace: list[dict] | None = None


#============================================
def mm_to_units(value: float) -> float:
	"""
	Convert millimeters to SVG user units.

	Args:
		value: Millimeters value.

	Returns:
		User units value.
	"""
	return value * MM_TO_UNITS
