"""
Error taxonomy and render warnings.
"""

# Standard Library
import dataclasses


UNRESOLVED_DATA_REFERENCE = "UnresolvedDataReference"
UNKNOWN_FORMATTER = "UnknownFormatter"


class SvgPaperError(Exception):
	"""
	Base class for fatal render errors.

	Context fields are filled in as the error travels up through the
	binder and renderer, so the final message names the page, archetype
	and element that failed.
	"""

	def __init__(
		self,
		message: str,
		page_index: int | None = None,
		archetype_id: str | None = None,
		element_id: str | None = None,
	) -> None:
		super().__init__(message)
		self.message = message
		self.page_index = page_index
		self.archetype_id = archetype_id
		self.element_id = element_id

	def annotate(
		self,
		page_index: int | None = None,
		archetype_id: str | None = None,
		element_id: str | None = None,
	) -> "SvgPaperError":
		"""
		Fill in context fields that are still unset.

		Returns:
			The same error, for re-raising.
		"""
		if self.page_index is None:
			self.page_index = page_index
		if self.archetype_id is None:
			self.archetype_id = archetype_id
		if self.element_id is None:
			self.element_id = element_id
		return self

	def __str__(self) -> str:
		parts = []
		if self.page_index is not None:
			parts.append(f"page index {self.page_index}")
		if self.archetype_id is not None:
			parts.append(f"archetype {self.archetype_id}")
		if self.element_id is not None:
			parts.append(f"element #{self.element_id}")
		if not parts:
			return self.message
		return f"{self.message} ({', '.join(parts)})"


class MissingRepeatArchetype(SvgPaperError):
	pass


class ZeroCapacityOverflow(SvgPaperError):
	pass


class MissingElement(SvgPaperError):
	pass


class InvalidGeometry(SvgPaperError):
	pass


class InvalidTableBinding(SvgPaperError):
	pass


class TemplateConfigError(SvgPaperError):
	pass


class TemplateMismatch(SvgPaperError):
	pass


@dataclasses.dataclass
class RenderWarning:
	code: str
	message: str
	page_index: int | None = None
	archetype_id: str | None = None
	element_id: str | None = None

	def __str__(self) -> str:
		location = []
		if self.page_index is not None:
			location.append(f"page index {self.page_index}")
		if self.element_id is not None:
			location.append(f"element #{self.element_id}")
		if not location:
			return f"{self.code}: {self.message}"
		return f"{self.code}: {self.message} ({', '.join(location)})"
