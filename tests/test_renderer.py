"""
End-to-end render tests over a two-archetype invoice template.
"""

# Standard Library
import pathlib

# PIP3 modules
import defusedxml.ElementTree as ElementTree
import pytest

# local repo modules
import svgpaper as svp
import svgpaper.config
import svgpaper.errors
import svgpaper.loader
import svgpaper.model
import svgpaper.renderer
import svgpaper.svg_doc

import conftest


RenderOptions = svp.config.RenderOptions


#============================================
def _render(
	tmp_path: pathlib.Path,
	row_count: int,
	first_rows: int = 2,
	repeat_rows: int | None = 3,
	options: RenderOptions | None = None,
	data: dict | None = None,
):
	template_dir = conftest.write_template_dir(tmp_path, first_rows, repeat_rows)
	template, documents = svp.loader.load_template_dir(template_dir)
	if data is None:
		data = conftest.build_data(row_count)
	sources = svp.model.parse_data_sources(data)
	manifest = svp.model.JobManifest("job-1", template.template_id, template.version)
	result = svp.renderer.render(manifest, template, sources, documents, options)
	return (result, documents)


#============================================
def _page_text(markup: str, element_id: str) -> str | None:
	root = ElementTree.fromstring(markup)
	element = svp.svg_doc.find_by_id(root, element_id)
	if element is None:
		return None
	return svp.svg_doc.get_text_content(element)


#============================================
def test_rows_overflow_onto_repeat_pages(tmp_path: pathlib.Path) -> None:
	result, _ = _render(tmp_path, 7)
	assert result.total_pages == 3
	assert [page.archetype_id for page in result.pages] == ["page-first", "page-repeat", "page-repeat"]
	assert [page.page_number for page in result.pages] == [1, 2, 3]

	expected_rows = [[0, 1], [2, 3, 4], [5, 6]]
	for page, row_indexes in zip(result.pages, expected_rows):
		for index in row_indexes:
			assert _page_text(page.markup, f"item-name-r{index}") == f"Item {index}"
		# no row belongs to two pages
		for index in range(7):
			if index not in row_indexes:
				assert _page_text(page.markup, f"item-name-r{index}") is None


#============================================
def test_page_numbers_use_final_total(tmp_path: pathlib.Path) -> None:
	result, _ = _render(tmp_path, 7)
	assert [_page_text(page.markup, "page-no") for page in result.pages] == ["1/3", "2/3", "3/3"]


#============================================
def test_fields_and_cells_are_formatted(tmp_path: pathlib.Path) -> None:
	result, _ = _render(tmp_path, 3)
	first = result.pages[0].markup
	assert _page_text(first, "title") == "Invoice"
	assert _page_text(first, "customer") == "ACME Corp"
	assert _page_text(first, "item-amount-r1") == "1,001"
	assert result.warnings == []


#============================================
def test_global_field_skipped_where_repeat_page_lacks_it(tmp_path: pathlib.Path) -> None:
	result, _ = _render(tmp_path, 4)
	repeat = result.pages[1].markup
	assert _page_text(repeat, "title") == "Invoice"
	assert _page_text(repeat, "customer") is None


#============================================
def test_single_page_when_rows_fit(tmp_path: pathlib.Path) -> None:
	result, _ = _render(tmp_path, 3, first_rows=10, repeat_rows=None)
	assert result.total_pages == 1
	assert _page_text(result.pages[0].markup, "page-no") == "1/1"


#============================================
def test_empty_table_renders_empty_first_page(tmp_path: pathlib.Path) -> None:
	result, _ = _render(tmp_path, 0)
	assert result.total_pages == 1
	root = ElementTree.fromstring(result.pages[0].markup)
	assert svp.svg_doc.find_by_id(root, "item-row") is None
	rows = [element for element in root.iter() if element.get("data-row-type") == "data"]
	assert rows == []


#============================================
def test_empty_table_skipped(tmp_path: pathlib.Path) -> None:
	options = RenderOptions(skip_empty_tables=True)
	result, _ = _render(tmp_path, 0, options=options)
	assert result.total_pages == 0
	assert result.pages == []


#============================================
def test_missing_repeat_archetype_fails_before_any_page(tmp_path: pathlib.Path) -> None:
	with pytest.raises(svp.errors.MissingRepeatArchetype) as info:
		_render(tmp_path, 5, first_rows=2, repeat_rows=None)
	assert info.value.archetype_id == "page-first"


#============================================
def test_archetype_documents_not_mutated(tmp_path: pathlib.Path) -> None:
	template_dir = conftest.write_template_dir(tmp_path)
	template, documents = svp.loader.load_template_dir(template_dir)
	before = {key: svp.svg_doc.serialize(doc.root) for key, doc in documents.items()}
	sources = svp.model.parse_data_sources(conftest.build_data(7))
	manifest = svp.model.JobManifest("job-1", "invoice", "0.2")
	first = svp.renderer.render(manifest, template, sources, documents)
	after = {key: svp.svg_doc.serialize(doc.root) for key, doc in documents.items()}
	assert before == after
	# a second render over the same documents gives the same pages
	second = svp.renderer.render(manifest, template, sources, documents)
	assert [page.markup for page in first.pages] == [page.markup for page in second.pages]


#============================================
def test_unresolved_reference_warns(tmp_path: pathlib.Path) -> None:
	data = conftest.build_data(2)
	data["meta"] = {}
	result, _ = _render(tmp_path, 2, data=data)
	assert _page_text(result.pages[0].markup, "customer") == ""
	codes = [warning.code for warning in result.warnings]
	assert codes == ["UnresolvedDataReference"]
	assert result.warnings[0].element_id == "customer"
	assert result.warnings[0].page_index == 0


#============================================
def test_missing_table_source_warns(tmp_path: pathlib.Path) -> None:
	data = {"meta": {"customer": "ACME"}}
	result, _ = _render(tmp_path, 0, data=data)
	assert result.total_pages == 1
	assert any("items" in warning.message for warning in result.warnings)


#============================================
def test_missing_element_error_names_page(tmp_path: pathlib.Path) -> None:
	template_dir = conftest.write_template_dir(tmp_path)
	svg_text = conftest.REPEAT_SVG.replace('id="page-no"', 'id="folio"')
	(template_dir / "repeat.svg").write_text(svg_text, encoding="utf-8")
	template, documents = svp.loader.load_template_dir(template_dir)
	sources = svp.model.parse_data_sources(conftest.build_data(7))
	manifest = svp.model.JobManifest("job-1", "invoice", "0.2")
	with pytest.raises(svp.errors.MissingElement) as info:
		svp.renderer.render(manifest, template, sources, documents)
	assert info.value.page_index == 1
	assert info.value.archetype_id == "page-repeat"
	assert info.value.element_id == "page-no"


#============================================
def test_debug_trace(tmp_path: pathlib.Path) -> None:
	result, _ = _render(tmp_path, 3, options=RenderOptions(debug=True))
	actions = [entry["action"] for entry in result.trace]
	assert "field" in actions
	assert "cell" in actions
	assert "table" in actions
	assert "page_number" in actions
	title = [entry for entry in result.trace if entry.get("element_id") == "title"][0]
	assert title["fit"]["policy"] == "shrink"


#============================================
def test_no_trace_without_debug(tmp_path: pathlib.Path) -> None:
	result, _ = _render(tmp_path, 3)
	assert result.trace is None


#============================================
def test_exhausted_table_leaves_later_pages_empty(tmp_path: pathlib.Path) -> None:
	template_dir = conftest.write_two_table_template_dir(tmp_path)
	template, documents = svp.loader.load_template_dir(template_dir)
	data = conftest.build_data(7)
	data["notes"] = [{"text": "Thank you"}]
	sources = svp.model.parse_data_sources(data)
	manifest = svp.model.JobManifest("job-1", template.template_id, template.version)
	result = svp.renderer.render(manifest, template, sources, documents)

	assert result.total_pages == 3
	first, second, third = [page.markup for page in result.pages]
	assert _page_text(first, "note-text-r0") == "Thank you"
	assert _page_text(first, "item-name-r1") == "Item 1"
	for markup in (second, third):
		assert _page_text(markup, "note-row") is None
		assert _page_text(markup, "note-text") is None
		assert _page_text(markup, "note-text-r0") is None
		assert 'data-row-index="0"' not in markup
	assert _page_text(third, "item-name-r6") == "Item 6"


#============================================
def test_shrink_floor_outside_unit_interval_rejected(tmp_path: pathlib.Path) -> None:
	with pytest.raises(svp.errors.InvalidGeometry):
		_render(tmp_path, 3, options=RenderOptions(shrink_floor_ratio=1.5))


#============================================
def test_unparsable_row_transform_names_page(tmp_path: pathlib.Path) -> None:
	template_dir = conftest.write_template_dir(tmp_path)
	svg_text = conftest.REPEAT_SVG.replace("translate(20, 60)", "translate(20px, 60px)")
	(template_dir / "repeat.svg").write_text(svg_text, encoding="utf-8")
	template, documents = svp.loader.load_template_dir(template_dir)
	sources = svp.model.parse_data_sources(conftest.build_data(7))
	manifest = svp.model.JobManifest("job-1", "invoice", "0.2")
	with pytest.raises(svp.errors.InvalidGeometry) as info:
		svp.renderer.render(manifest, template, sources, documents)
	assert info.value.page_index == 1
	assert info.value.archetype_id == "page-repeat"
	assert info.value.element_id == "item-row"
