"""
Pytest configuration for local imports and shared template fixtures.
"""

# Standard Library
import json
import os
import pathlib
import sys

# PIP3 modules
import pytest

#============================================


def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()


FIRST_SVG = """<svg xmlns="http://www.w3.org/2000/svg" width="210mm" height="297mm" viewBox="0 0 793.7 1122.5">
	<text id="title" x="20" y="40" font-size="16" data-fit-width="300">Title</text>
	<text id="customer" x="20" y="60" font-size="12">Customer</text>
	<g id="items">
		<g id="item-row" transform="translate(20, 100)">
			<text id="item-name" x="0" y="0" font-size="10" data-fit-width="120">name</text>
			<text id="item-amount" x="200" y="0" font-size="10">0</text>
		</g>
	</g>
	<text id="page-no" x="700" y="1100" font-size="10">0/0</text>
</svg>
"""

REPEAT_SVG = """<svg xmlns="http://www.w3.org/2000/svg" width="210mm" height="297mm" viewBox="0 0 793.7 1122.5">
	<text id="title" x="20" y="40" font-size="16" data-fit-width="300">Title</text>
	<g id="items">
		<g id="item-row" transform="translate(20, 60)">
			<text id="item-name" x="0" y="0" font-size="10" data-fit-width="120">name</text>
			<text id="item-amount" x="200" y="0" font-size="10">0</text>
		</g>
	</g>
	<text id="page-no" x="700" y="1100" font-size="10">0/0</text>
</svg>
"""


#============================================
def _table_binding(rows_per_page: int) -> dict:
	return {
		"source": "items",
		"row_group_id": "item-row",
		"row_height_mm": 6,
		"rows_per_page": rows_per_page,
		"cells": [
			{
				"svg_id": "item-name",
				"value": {"type": "data", "source": "items", "key": "name"},
				"fit": "clip",
			},
			{
				"svg_id": "item-amount",
				"value": {"type": "data", "source": "items", "key": "amount"},
				"format": "number",
				"align": "right",
			},
		],
	}


#============================================
def build_template_data(first_rows: int = 2, repeat_rows: int | None = 3) -> dict:
	"""
	Build a decoded invoice template.json.

	Args:
		first_rows: rows_per_page on the first page.
		repeat_rows: rows_per_page on the repeat page, None for no repeat page.

	Returns:
		Decoded template config.
	"""
	pages = [
		{
			"id": "page-first",
			"svg": "first.svg",
			"kind": "first",
			"tables": [_table_binding(first_rows)],
			"page_number": {"svg_id": "page-no"},
		},
	]
	if repeat_rows is not None:
		pages.append(
			{
				"id": "page-repeat",
				"svg": "repeat.svg",
				"kind": "repeat",
				"tables": [_table_binding(repeat_rows)],
				"page_number": {"svg_id": "page-no"},
			}
		)
	return {
		"template": {"id": "invoice", "version": "0.2"},
		"fields": [
			{"svg_id": "title", "value": {"type": "static", "text": "Invoice"}, "fit": "shrink"},
			{"svg_id": "customer", "value": {"type": "data", "source": "meta", "key": "customer"}},
		],
		"pages": pages,
	}


#============================================
def build_data(row_count: int) -> dict:
	"""
	Build a decoded data file with a meta object and an items table.
	"""
	return {
		"meta": {"customer": "ACME Corp"},
		"items": [
			{"name": f"Item {index}", "amount": 1000 + index}
			for index in range(row_count)
		],
	}


#============================================
def write_template_dir(
	root: pathlib.Path,
	first_rows: int = 2,
	repeat_rows: int | None = 3,
) -> pathlib.Path:
	"""
	Write template.json and page SVGs into a new directory.

	Returns:
		Template directory path.
	"""
	template_dir = root / "invoice"
	template_dir.mkdir(parents=True, exist_ok=True)
	data = build_template_data(first_rows, repeat_rows)
	(template_dir / "template.json").write_text(json.dumps(data), encoding="utf-8")
	(template_dir / "first.svg").write_text(FIRST_SVG, encoding="utf-8")
	(template_dir / "repeat.svg").write_text(REPEAT_SVG, encoding="utf-8")
	return template_dir


#============================================
@pytest.fixture
def template_dir(tmp_path: pathlib.Path) -> pathlib.Path:
	return write_template_dir(tmp_path)


#============================================
@pytest.fixture
def data_path(tmp_path: pathlib.Path) -> pathlib.Path:
	path = tmp_path / "data.json"
	path.write_text(json.dumps(build_data(7)), encoding="utf-8")
	return path


NOTES_GROUP = """<g id="notes">
		<g id="note-row" transform="translate(20, 900)">
			<text id="note-text" x="0" y="0" font-size="9">note</text>
		</g>
	</g>
	"""


#============================================
def add_notes_table(template_data: dict, rows_per_page: int = 1) -> dict:
	"""
	Add a second table, fed by a notes source, to every page archetype.
	"""
	for page in template_data["pages"]:
		page["tables"].append(
			{
				"source": "notes",
				"row_group_id": "note-row",
				"row_height_mm": 5,
				"rows_per_page": rows_per_page,
				"cells": [
					{"svg_id": "note-text", "value": {"type": "data", "source": "notes", "key": "text"}},
				],
			}
		)
	return template_data


#============================================
def write_two_table_template_dir(root: pathlib.Path) -> pathlib.Path:
	"""
	Write the invoice template with an extra one-row notes table.

	Returns:
		Template directory path.
	"""
	template_dir = write_template_dir(root)
	data = add_notes_table(build_template_data())
	(template_dir / "template.json").write_text(json.dumps(data), encoding="utf-8")
	for name, svg_text in (("first.svg", FIRST_SVG), ("repeat.svg", REPEAT_SVG)):
		svg_text = svg_text.replace('<text id="page-no"', NOTES_GROUP + '<text id="page-no"')
		(template_dir / name).write_text(svg_text, encoding="utf-8")
	return template_dir
