"""
Load templates, manifests and data files from disk.
"""

# Standard Library
import json
import pathlib

# local repo modules
import svgpaper as svp
import svgpaper.errors
import svgpaper.model
import svgpaper.svg_doc


TemplateConfig = svp.model.TemplateConfig
JobManifest = svp.model.JobManifest
PageTemplate = svp.svg_doc.PageTemplate
TemplateConfigError = svp.errors.TemplateConfigError

TEMPLATE_FILENAME = "template.json"


#============================================
def read_json(path: pathlib.Path) -> dict:
	"""
	Read a JSON file.

	Args:
		path: JSON path.

	Returns:
		Decoded object.
	"""
	text = path.read_text(encoding="utf-8")
	try:
		return json.loads(text)
	except json.JSONDecodeError as error:
		raise TemplateConfigError(f"Invalid JSON in {path.name}: {error}") from error


#============================================
def load_template_dir(
	template_dir: pathlib.Path,
) -> tuple[TemplateConfig, dict[str, PageTemplate]]:
	"""
	Load template.json and the SVG for every page archetype.

	Args:
		template_dir: Directory holding template.json and page SVGs.

	Returns:
		Tuple of (template config, page templates by archetype id).
	"""
	config_path = template_dir / TEMPLATE_FILENAME
	try:
		config = svp.model.parse_template_config(read_json(config_path))
	except TemplateConfigError as error:
		raise TemplateConfigError(f"{config_path}: {error.message}") from error
	documents: dict[str, PageTemplate] = {}
	for page in config.pages:
		svg_path = template_dir / page.svg
		if not svg_path.is_file():
			raise TemplateConfigError(
				f"SVG file not found: {page.svg}",
				archetype_id=page.id,
			)
		documents[page.id] = PageTemplate.from_string(svg_path.read_bytes(), page.svg)
	return (config, documents)


#============================================
def load_manifest(path: pathlib.Path) -> JobManifest:
	"""
	Load a job manifest file.

	Args:
		path: manifest.json path.

	Returns:
		JobManifest.
	"""
	try:
		return svp.model.parse_manifest(read_json(path))
	except TemplateConfigError as error:
		raise TemplateConfigError(f"{path}: {error.message}") from error


#============================================
def load_data_file(path: pathlib.Path) -> dict:
	"""
	Load data sources from a JSON file.

	Args:
		path: JSON file mapping source names to objects or row lists.

	Returns:
		Data sources by name.
	"""
	data = read_json(path)
	if not isinstance(data, dict):
		raise TemplateConfigError(f"{path.name} must contain a JSON object")
	return svp.model.parse_data_sources(data)
