"""
Text inspector tests.
"""

# Standard Library
import json
import pathlib

# PIP3 modules
import pytest

# local repo modules
import svgpaper as svp
import svgpaper.text_inspect


INSPECT_SVG = """<svg xmlns="http://www.w3.org/2000/svg" width="210mm" height="297mm" viewBox="0 0 793.7 1122.5">
	<style>.label { font-size: 14px; fill: #333; }</style>
	<text x="300" y="40" class="label">Invoice Date</text>
	<text id="heading" x="20" y="40" font-size="20">INVOICE</text>
	<g id="party" transform="translate(10, 100)">
		<text x="5" y="7" style="font-size:9px">1. Customer Name</text>
	</g>
	<g transform="matrix(2 0 0 2 0 0)">
		<text id="scaled" x="10" y="100">x</text>
	</g>
</svg>
"""


#============================================
def _analyze(tmp_path: pathlib.Path) -> svp.text_inspect.SvgTextAnalysis:
	path = tmp_path / "page.svg"
	path.write_text(INSPECT_SVG, encoding="utf-8")
	return svp.text_inspect.analyze_svg_file(path)


#============================================
def test_elements_sorted_by_row_then_column(tmp_path: pathlib.Path) -> None:
	analysis = _analyze(tmp_path)
	contents = [element.content for element in analysis.elements]
	assert contents == ["INVOICE", "Invoice Date", "1. Customer Name", "x"]
	assert analysis.with_id == 2
	assert analysis.without_id == 2


#============================================
def test_page_size_and_unit(tmp_path: pathlib.Path) -> None:
	analysis = _analyze(tmp_path)
	assert analysis.width == pytest.approx(210.0)
	assert analysis.height == pytest.approx(297.0)
	assert analysis.unit == "mm"


#============================================
def test_transforms_and_font_sizes(tmp_path: pathlib.Path) -> None:
	analysis = _analyze(tmp_path)
	by_content = {element.content: element for element in analysis.elements}
	customer = by_content["1. Customer Name"]
	assert (customer.x, customer.y) == pytest.approx((15.0, 107.0))
	assert customer.font_size == pytest.approx(9.0)
	assert customer.parent_group == "party"
	assert by_content["Invoice Date"].font_size == pytest.approx(14.0)
	scaled = by_content["x"]
	assert (scaled.x, scaled.y) == pytest.approx((20.0, 200.0))
	assert scaled.font_size is None
	assert scaled.estimated_width is None


#============================================
def test_widths_are_measured(tmp_path: pathlib.Path) -> None:
	analysis = _analyze(tmp_path)
	heading = analysis.elements[0]
	assert heading.estimated_width == pytest.approx(svp.textfit.estimate_text_width("INVOICE", 20.0))
	assert heading.reference_width > 0


#============================================
@pytest.mark.parametrize(
	"content, expected",
	[
		("1. Customer Name", "customer_name"),
		("(2) Total Amount", "total_amount"),
		("No. Invoice", "invoice"),
		("合計", "text_10_20"),
		("", "text_10_20"),
	],
)
def test_suggest_id(content: str, expected: str) -> None:
	assert svp.text_inspect.suggest_id(content, 10.2, 19.8) == expected


#============================================
def test_report_and_json(tmp_path: pathlib.Path, capsys: pytest.CaptureFixture) -> None:
	analysis = _analyze(tmp_path)
	svp.text_inspect.print_text_report(analysis)
	output = capsys.readouterr().out
	assert "Total: 4" in output
	assert "customer_name" in output

	json_path = tmp_path / "page.json"
	svp.text_inspect.write_text_json(analysis, json_path)
	data = json.loads(json_path.read_text(encoding="utf-8"))
	assert data["page_size"]["unit"] == "mm"
	assert len(data["elements"]) == 4
	assert data["elements"][0]["index"] == 1


#============================================
def test_outlined_text_warning(tmp_path: pathlib.Path) -> None:
	path = tmp_path / "outlined.svg"
	path.write_text(
		'<svg xmlns="http://www.w3.org/2000/svg"><path d="M0 0L1 1"/></svg>',
		encoding="utf-8",
	)
	analysis = svp.text_inspect.analyze_svg_file(path)
	assert analysis.elements == []
	assert len(analysis.warnings) == 1
