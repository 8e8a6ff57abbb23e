"""
Text fit engine.

Approximates rendered text width from a per-character-class em table
and reconciles a string with its element box using one of four
policies: none, shrink, wrap or clip. Every function here is pure.
"""

# Standard Library
import dataclasses

# local repo modules
import svgpaper as svp
import svgpaper.config
import svgpaper.errors


InvalidGeometry = svp.errors.InvalidGeometry

WIDE_CHAR_RANGES = svp.config.WIDE_CHAR_RANGES
WIDE_CHAR_WIDTH = svp.config.WIDE_CHAR_WIDTH
UPPER_DIGIT_WIDTH = svp.config.UPPER_DIGIT_WIDTH
NARROW_CHAR_WIDTH = svp.config.NARROW_CHAR_WIDTH
DEFAULT_LEADING = svp.config.DEFAULT_LEADING
DEFAULT_SHRINK_FLOOR_RATIO = svp.config.DEFAULT_SHRINK_FLOOR_RATIO
ELLIPSIS = svp.config.ELLIPSIS
FIT_POLICIES = svp.config.FIT_POLICIES


@dataclasses.dataclass(frozen=True)
class ElementMetrics:
	box_width: float
	font_size: float
	max_lines: int | None = None


@dataclasses.dataclass(frozen=True)
class FitOutcome:
	policy: str
	text: str
	font_size: float
	lines: tuple[str, ...]
	line_height: float
	natural_width: float
	scaled: bool = False
	truncated: bool = False


#============================================
def is_wide_char(char: str) -> bool:
	"""
	Check whether a character is full-width (CJK or full-width form).

	Args:
		char: Single character.

	Returns:
		True for full-width characters.
	"""
	code = ord(char)
	for start, end in WIDE_CHAR_RANGES:
		if start <= code <= end:
			return True
	return False


#============================================
def char_width_units(char: str) -> float:
	"""
	Em width of one character according to the width table.

	Args:
		char: Single character.

	Returns:
		Width in em units.
	"""
	if is_wide_char(char):
		return WIDE_CHAR_WIDTH
	if ("A" <= char <= "Z") or ("0" <= char <= "9"):
		return UPPER_DIGIT_WIDTH
	return NARROW_CHAR_WIDTH


#============================================
def estimate_text_width(text: str, font_size: float) -> float:
	"""
	Estimate the rendered width of a single line of text.

	Args:
		text: Text line.
		font_size: Font size in user units.

	Returns:
		Estimated width in user units.
	"""
	units = sum(char_width_units(char) for char in text)
	return units * font_size


#============================================
def check_geometry(metrics: ElementMetrics) -> None:
	"""
	Reject non-positive box widths and font sizes.

	Args:
		metrics: Element metrics.
	"""
	if metrics.box_width <= 0:
		raise InvalidGeometry(f"Box width must be > 0, got {metrics.box_width}")
	if metrics.font_size <= 0:
		raise InvalidGeometry(f"Font size must be > 0, got {metrics.font_size}")


#============================================
def check_floor_ratio(floor_ratio: float) -> None:
	"""
	Reject shrink floors outside (0, 1].

	Args:
		floor_ratio: Smallest allowed fraction of the nominal size.
	"""
	if not 0 < floor_ratio <= 1:
		raise InvalidGeometry(f"Shrink floor ratio must be in (0, 1], got {floor_ratio}")


#============================================
def shrink_font_size(
	text: str,
	box_width: float,
	font_size: float,
	floor_ratio: float = DEFAULT_SHRINK_FLOOR_RATIO,
) -> float:
	"""
	Compute a font size that makes text fit the box, never growing it.

	Args:
		text: Text to fit; multi-line text uses its widest line.
		box_width: Available width.
		font_size: Nominal font size.
		floor_ratio: Smallest allowed fraction of the nominal size.

	Returns:
		Font size no larger than the nominal size.
	"""
	widest = max(
		(estimate_text_width(line, font_size) for line in text.split("\n")),
		default=0.0,
	)
	if widest <= box_width:
		return font_size
	target = font_size * box_width / widest
	return min(font_size, max(font_size * floor_ratio, target))


#============================================
def split_char_runs(word: str, font_size: float, max_width: float) -> list[str]:
	"""
	Break a word at character boundaries so each piece fits.

	A single character wider than the box still gets its own line.

	Args:
		word: Word or unbroken run.
		font_size: Font size.
		max_width: Line width limit.

	Returns:
		Pieces in order.
	"""
	pieces: list[str] = []
	current = ""
	for char in word:
		candidate = current + char
		if not current or estimate_text_width(candidate, font_size) <= max_width:
			current = candidate
			continue
		pieces.append(current)
		current = char
	if current:
		pieces.append(current)
	return pieces


#============================================
def tokenize_for_wrap(text: str) -> list[tuple[str, bool]]:
	"""
	Split a paragraph into wrap tokens.

	Each full-width character is its own token; runs of other
	non-space characters form words. The flag tells whether a space
	separated the token from the previous one.

	Args:
		text: Single paragraph without newlines.

	Returns:
		List of (token, space_before) pairs.
	"""
	tokens: list[tuple[str, bool]] = []
	word = ""
	space_before = False
	pending_space = False
	for char in text:
		if char.isspace():
			if word:
				tokens.append((word, space_before))
				word = ""
			pending_space = True
			continue
		if is_wide_char(char):
			if word:
				tokens.append((word, space_before))
				word = ""
				pending_space = False
			tokens.append((char, pending_space and bool(tokens)))
			pending_space = False
			continue
		if not word:
			space_before = pending_space and bool(tokens)
			pending_space = False
		word += char
	if word:
		tokens.append((word, space_before))
	return tokens


#============================================
def wrap_paragraph(text: str, font_size: float, max_width: float) -> list[str]:
	"""
	Greedily pack one paragraph into lines.

	Args:
		text: Paragraph without newlines.
		font_size: Font size.
		max_width: Line width limit.

	Returns:
		Lines, at least one (possibly empty).
	"""
	tokens = tokenize_for_wrap(text)
	if not tokens:
		return [""]
	lines: list[str] = []
	current = ""
	for token, space_before in tokens:
		joiner = " " if (current and space_before) else ""
		candidate = f"{current}{joiner}{token}"
		if estimate_text_width(candidate, font_size) <= max_width:
			current = candidate
			continue
		if current:
			lines.append(current)
			current = ""
		if estimate_text_width(token, font_size) <= max_width:
			current = token
			continue
		pieces = split_char_runs(token, font_size, max_width)
		lines.extend(pieces[:-1])
		current = pieces[-1]
	lines.append(current)
	return lines


#============================================
def wrap_lines(text: str, font_size: float, max_width: float) -> list[str]:
	"""
	Wrap text into lines; explicit newlines always break.

	Args:
		text: Text to wrap.
		font_size: Font size.
		max_width: Line width limit.

	Returns:
		Ordered lines.
	"""
	lines: list[str] = []
	for paragraph in text.replace("\r\n", "\n").split("\n"):
		lines.extend(wrap_paragraph(paragraph, font_size, max_width))
	return lines


#============================================
def clip_text(text: str, font_size: float, max_width: float) -> tuple[str, bool]:
	"""
	Truncate text to the longest prefix that fits with an ellipsis.

	When the box is narrower than the ellipsis itself, the result is the
	bare ellipsis, which still overflows the box.

	Args:
		text: Single line of text.
		font_size: Font size.
		max_width: Width limit.

	Returns:
		Tuple of (text, truncated flag).
	"""
	if estimate_text_width(text, font_size) <= max_width:
		return (text, False)
	budget = max_width - estimate_text_width(ELLIPSIS, font_size)
	width = 0.0
	cut = 0
	for index, char in enumerate(text):
		width += char_width_units(char) * font_size
		if width > budget:
			break
		cut = index + 1
	return (text[:cut].rstrip() + ELLIPSIS, True)


#============================================
def fit(
	metrics: ElementMetrics,
	text: str,
	policy: str,
	floor_ratio: float = DEFAULT_SHRINK_FLOOR_RATIO,
	leading: float = DEFAULT_LEADING,
) -> FitOutcome:
	"""
	Reconcile text with an element box.

	Args:
		metrics: Box width, nominal font size and optional line limit.
		text: Final display string.
		policy: One of none, shrink, wrap, clip.
		floor_ratio: Shrink floor as a fraction of the nominal size.
		leading: Line height as a multiple of the font size.

	Returns:
		FitOutcome describing the text, size and lines to write.
	"""
	if policy not in FIT_POLICIES:
		raise ValueError(f"Unknown fit policy: {policy}")
	font_size = metrics.font_size
	line_height = font_size * leading

	if policy == "none":
		natural = estimate_text_width(text, font_size) if font_size > 0 else 0.0
		return FitOutcome(
			policy=policy,
			text=text,
			font_size=font_size,
			lines=tuple(text.split("\n")),
			line_height=line_height,
			natural_width=natural,
		)

	check_geometry(metrics)
	natural = estimate_text_width(text, font_size)

	if policy == "shrink":
		check_floor_ratio(floor_ratio)
		new_size = shrink_font_size(text, metrics.box_width, font_size, floor_ratio)
		return FitOutcome(
			policy=policy,
			text=text,
			font_size=new_size,
			lines=tuple(text.split("\n")),
			line_height=new_size * leading,
			natural_width=natural,
			scaled=new_size < font_size,
		)

	if policy == "wrap":
		lines = wrap_lines(text, font_size, metrics.box_width)
		truncated = False
		if metrics.max_lines is not None and 0 < metrics.max_lines < len(lines):
			lines = lines[:metrics.max_lines]
			# the marker goes on the last kept line, clipped again if needed
			lines[-1], _ = clip_text(lines[-1] + ELLIPSIS, font_size, metrics.box_width)
			truncated = True
		return FitOutcome(
			policy=policy,
			text="\n".join(lines),
			font_size=font_size,
			lines=tuple(lines),
			line_height=line_height,
			natural_width=natural,
			truncated=truncated,
		)

	clipped, truncated = clip_text(text.replace("\n", " "), font_size, metrics.box_width)
	return FitOutcome(
		policy=policy,
		text=clipped,
		font_size=font_size,
		lines=(clipped,),
		line_height=line_height,
		natural_width=natural,
		truncated=truncated,
	)
