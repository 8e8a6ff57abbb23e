"""
CLI entry points for rendering and inspecting SVG paper templates.
"""

# Standard Library
import argparse
import dataclasses
import json
import pathlib
import sys
import time

# local repo modules
import svgpaper as svp
import svgpaper.config
import svgpaper.errors
import svgpaper.loader
import svgpaper.model
import svgpaper.renderer
import svgpaper.text_inspect


JobManifest = svp.model.JobManifest
RenderOptions = svp.config.RenderOptions
RenderResult = svp.config.RenderResult
SvgPaperError = svp.errors.SvgPaperError

PAGE_FILE_DIGITS = svp.config.PAGE_FILE_DIGITS
DEFAULT_SHRINK_FLOOR_RATIO = svp.config.DEFAULT_SHRINK_FLOOR_RATIO


#============================================
def floor_ratio_arg(value: str) -> float:
	"""
	Argparse type for the shrink floor ratio.

	Args:
		value: Raw argument.

	Returns:
		Ratio in (0, 1].
	"""
	try:
		ratio = float(value)
	except ValueError:
		raise argparse.ArgumentTypeError(f"not a number: {value!r}")
	if not 0 < ratio <= 1:
		raise argparse.ArgumentTypeError(f"must be in (0, 1], got {value}")
	return ratio


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Args:
		argv: Argument list, sys.argv when None.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Bind data onto SVG page templates.")
	subparsers = parser.add_subparsers(dest="command", required=True)

	render_parser = subparsers.add_parser("render", help="Render pages from a template and data file.")
	render_parser.add_argument("template_dir", help="Template directory with template.json and page SVGs.")
	render_parser.add_argument("data_path", help="Data JSON file.")

	output_group = render_parser.add_argument_group("Output")
	output_group.add_argument("-o", "--output", dest="output_dir", required=True, help="Output directory.")
	output_group.add_argument("-m", "--manifest", dest="manifest_path", default=None, help="Job manifest JSON path.")
	output_group.add_argument("-d", "--debug", dest="debug", action="store_true", help="Write debug/render.json trace.")

	behavior_group = render_parser.add_argument_group("Behavior")
	behavior_group.add_argument(
		"-s", "--skip-empty-tables",
		dest="skip_empty_tables",
		action="store_true",
		help="Render no page when every table is empty.",
	)
	behavior_group.add_argument(
		"-f", "--shrink-floor",
		dest="shrink_floor_ratio",
		type=floor_ratio_arg,
		default=DEFAULT_SHRINK_FLOOR_RATIO,
		help="Smallest font size ratio allowed by the shrink policy.",
	)

	inspect_parser = subparsers.add_parser("inspect", help="List text elements of an SVG page.")
	inspect_parser.add_argument("svg_path", help="SVG file or template directory.")
	inspect_parser.add_argument("-j", "--json", dest="json_path", default=None, help="Write the analysis as JSON.")

	parser.set_defaults(debug=False, skip_empty_tables=False)

	args = parser.parse_args(argv)
	return args


#============================================
def page_filename(page_number: int) -> str:
	"""
	Build the file name of a rendered page.

	Args:
		page_number: One-based page number.

	Returns:
		File name like page-001.svg.
	"""
	return f"page-{page_number:0{PAGE_FILE_DIGITS}d}.svg"


#============================================
def write_pages(result: RenderResult, output_dir: pathlib.Path) -> list[pathlib.Path]:
	"""
	Write rendered pages into output_dir/pages.

	Args:
		result: Render result.
		output_dir: Output directory.

	Returns:
		Written page paths in order.
	"""
	pages_dir = output_dir / "pages"
	pages_dir.mkdir(parents=True, exist_ok=True)
	paths = []
	for page in result.pages:
		path = pages_dir / page_filename(page.page_number)
		path.write_text(page.markup, encoding="utf-8")
		paths.append(path)
	return paths


#============================================
def write_debug_trace(result: RenderResult, output_dir: pathlib.Path) -> pathlib.Path:
	"""
	Write the render trace and warnings to output_dir/debug/render.json.

	Args:
		result: Render result with trace.
		output_dir: Output directory.

	Returns:
		Path to the written file.
	"""
	debug_dir = output_dir / "debug"
	debug_dir.mkdir(parents=True, exist_ok=True)
	data = {
		"job_id": result.job_id,
		"template": {"id": result.template_id, "version": result.template_version},
		"total_pages": result.total_pages,
		"pages": [
			{"page_number": page.page_number, "archetype_id": page.archetype_id}
			for page in result.pages
		],
		"warnings": [dataclasses.asdict(warning) for warning in result.warnings],
		"trace": result.trace or [],
	}
	path = debug_dir / "render.json"
	with path.open("w", encoding="utf-8") as handle:
		json.dump(data, handle, indent=2, sort_keys=True, ensure_ascii=False)
	return path


#============================================
def run_render(args: argparse.Namespace) -> RenderResult:
	"""
	Load inputs, render every page and write the output tree.

	Args:
		args: Parsed argparse namespace.

	Returns:
		Render result.
	"""
	template_dir = pathlib.Path(args.template_dir)
	output_dir = pathlib.Path(args.output_dir)
	print(f"Template: {template_dir}")
	print(f"Data: {args.data_path}")
	print(f"Output: {output_dir}")

	start_time = time.perf_counter()
	template, documents = svp.loader.load_template_dir(template_dir)
	sources = svp.loader.load_data_file(pathlib.Path(args.data_path))
	if args.manifest_path:
		manifest = svp.loader.load_manifest(pathlib.Path(args.manifest_path))
		svp.model.check_template_match(template, manifest)
	else:
		manifest = JobManifest(
			job_id=template_dir.name,
			template_id=template.template_id,
			template_version=template.version,
		)
	print(f"Template id: {template.template_id} v{template.version}")
	print(f"Page archetypes: {len(template.pages)}")

	options = RenderOptions(
		debug=args.debug,
		skip_empty_tables=args.skip_empty_tables,
		shrink_floor_ratio=args.shrink_floor_ratio,
	)
	result = svp.renderer.render(manifest, template, sources, documents, options)
	for warning in result.warnings:
		print(f"Warning: {warning}")

	paths = write_pages(result, output_dir)
	print(f"Pages written: {len(paths)}")
	if args.debug:
		trace_path = write_debug_trace(result, output_dir)
		print(f"Debug trace: {trace_path}")
	print(f"Timing: total={time.perf_counter() - start_time:.2f}s")
	return result


#============================================
def run_inspect(args: argparse.Namespace) -> None:
	"""
	Print the text element report for an SVG file or template directory.

	Args:
		args: Parsed argparse namespace.
	"""
	target = pathlib.Path(args.svg_path)
	if target.is_dir():
		analyses = svp.text_inspect.analyze_template_dir(target)
	else:
		analyses = [svp.text_inspect.analyze_svg_file(target)]
	for analysis in analyses:
		svp.text_inspect.print_text_report(analysis)
	if args.json_path:
		json_path = pathlib.Path(args.json_path)
		if len(analyses) == 1:
			svp.text_inspect.write_text_json(analyses[0], json_path)
			print(f"JSON written: {json_path}")
		else:
			for analysis in analyses:
				stem_path = json_path.with_name(f"{json_path.stem}-{pathlib.Path(analysis.file).stem}.json")
				svp.text_inspect.write_text_json(analysis, stem_path)
				print(f"JSON written: {stem_path}")


#============================================
def main(argv: list[str] | None = None) -> int:
	"""
	Main entry point.

	Args:
		argv: Argument list, sys.argv when None.

	Returns:
		Process exit status.
	"""
	args = parse_args(argv)
	try:
		if args.command == "render":
			run_render(args)
		else:
			run_inspect(args)
	except SvgPaperError as error:
		print(f"Error: {error}", file=sys.stderr)
		return 1
	except FileNotFoundError as error:
		print(f"Error: {error}", file=sys.stderr)
		return 1
	return 0


if __name__ == "__main__":
	sys.exit(main())
