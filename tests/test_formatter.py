"""
Formatter tests.
"""

# PIP3 modules
import pytest

# local repo modules
import svgpaper as svp
import svgpaper.formatter
import svgpaper.model


FormatterDef = svp.model.FormatterDef


#============================================
def test_date_formatter() -> None:
	assert svp.formatter.format_date("2024-03-05") == "2024年3月5日"
	assert svp.formatter.format_date("2024-03-05T10:00:00") == "2024年3月5日"


#============================================
def test_date_formatter_passes_non_dates_through() -> None:
	assert svp.formatter.format_date("soon") == "soon"
	assert svp.formatter.format_date("") == ""


#============================================
@pytest.mark.parametrize(
	"value, expected",
	[
		("1234567.891", "1,234,567.891"),
		("1200", "1,200"),
		("1,200.50", "1,200.5"),
		("-42", "-42"),
		("abc", "abc"),
		("", ""),
	],
)
def test_number_formatter(value: str, expected: str) -> None:
	assert svp.formatter.format_number(value) == expected


#============================================
def test_currency_formatter() -> None:
	assert svp.formatter.format_currency("1200") == "¥1,200"
	assert svp.formatter.format_currency("n/a") == "n/a"


#============================================
def test_custom_date_pattern() -> None:
	formatter = svp.formatter.make_date_formatter("YYYY/MM/DD")
	assert formatter("2024-03-05") == "2024/03/05"
	formatter = svp.formatter.make_date_formatter("M/D")
	assert formatter("2024-03-05") == "3/5"


#============================================
def test_custom_number_pattern() -> None:
	assert svp.formatter.make_number_formatter("#,##0.00")("1234.5") == "1,234.50"
	assert svp.formatter.make_number_formatter("0")("1234.5") == "1234"


#============================================
def test_registry_unknown_formatter_warns() -> None:
	registry = svp.formatter.build_registry()
	text, warning = registry.apply("12", "roman")
	assert text == "12"
	assert warning.code == "UnknownFormatter"


#============================================
def test_registry_builtins_and_aliases() -> None:
	registry = svp.formatter.build_registry()
	assert registry.apply("1200", None) == ("1200", None)
	assert registry.apply("1200", "raw") == ("1200", None)
	assert registry.apply("1200", "yen") == ("¥1,200", None)


#============================================
def test_registry_template_and_caller_formatters() -> None:
	definitions = {
		"short_date": FormatterDef(kind="date", pattern="YYYY.MM.DD"),
		"usd": FormatterDef(kind="currency", pattern="#,##0.00", currency="$"),
		"loud": FormatterDef(kind="date", pattern="YYYY"),
	}
	registry = svp.formatter.build_registry(definitions, {"loud": str.upper})
	assert registry.apply("2024-01-02", "short_date") == ("2024.01.02", None)
	assert registry.apply("5", "usd") == ("$5.00", None)
	# caller functions win over template definitions
	assert registry.apply("hi", "loud") == ("HI", None)


#============================================
def test_registries_are_independent() -> None:
	first = svp.formatter.build_registry({"d": FormatterDef(kind="date", pattern="YYYY")})
	second = svp.formatter.build_registry()
	assert first.apply("2024-01-02", "d") == ("2024", None)
	assert second.apply("2024-01-02", "d")[1] is not None
