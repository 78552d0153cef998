"""
Pytest Configuration and HTML Report Hooks

Configures the pipeline test suite. Every run writes a pytest-html report
under tests/test_pipeline/test_reports/, with two extra columns: the
test_meta marker text (description, goal, passing criteria) and any
diagnostic plots a test attached through helpers.attach_plot_to_html_report.
"""

import sys
from html import escape
from pathlib import Path

import pytest

# Project root, two levels above this file
ROOT = Path(__file__).resolve().parents[2]

# Make lidar_frames importable without installing it
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _report_name_from_args(args):
    """
    Pick the HTML report filename from the pytest command-line arguments.

    A run of a single test module gets its own report named after the
    module (``test_batcher.py`` -> ``report_batcher.html``). Anything else
    is written to ``report_pipeline.html``.

    :param args: Command-line arguments passed to pytest.
    :return: Report filename.
    """
    modules = set()
    for arg in args:
        text = str(arg)
        if text.startswith("-"):
            continue
        # Strip a node-id suffix such as "::test_name"
        path = Path(text.split("::", 1)[0])
        if path.suffix == ".py" and path.name.startswith("test_"):
            modules.add(path.stem.lower())

    if len(modules) == 1:
        component = next(iter(modules)).removeprefix("test_")
        if component:
            return f"report_{component}.html"
    return "report_pipeline.html"


@pytest.hookimpl(tryfirst=True)
def pytest_configure(config):
    """Point pytest-html at tests/test_pipeline/test_reports unless --html was given."""
    if any(str(arg).startswith("--html") for arg in config.invocation_params.args):
        return

    report_dir = Path(__file__).resolve().parent / "test_reports"
    report_dir.mkdir(parents=True, exist_ok=True)
    config.option.htmlpath = str(report_dir / _report_name_from_args(config.invocation_params.args))


def pytest_html_results_table_header(cells):
    # Extra columns after the default Result / Test / Duration columns
    cells.insert(3, '<th class="col-testmeta">Test Description</th>')
    cells.insert(4, '<th class="col-plot">Plot</th>')


def _format_test_meta(report):
    """
    Render the test_meta marker kwargs stored on a report as an HTML block.

    :param report: pytest TestReport.
    :return: HTML string, or a grey "n/a" when the test has no metadata.
    """
    meta = getattr(report, "test_meta", None)
    if not meta:
        return '<div style="color:#666;">n/a</div>'

    description = escape(str(meta.get("description", "")))
    goal = escape(str(meta.get("goal", "")))
    passing = escape(str(meta.get("passing_criteria", "")))
    return (
        '<div style="min-width:340px;max-width:520px;line-height:1.35;">'
        f"<div><strong>Test Description:</strong> {description}</div>"
        f"<div><strong>Test Goal:</strong> {goal}</div>"
        f"<div><strong>Passing Criteria:</strong> {passing}</div>"
        "</div>"
    )


def pytest_html_results_table_row(report, cells):
    cells.insert(3, f'<td class="col-testmeta">{_format_test_meta(report)}</td>')

    images = [
        extra.get("content")
        for extra in getattr(report, "extras", [])
        if extra.get("format_type") == "image" and extra.get("content")
    ]
    html = "".join(
        f'<a href="{content}" target="_blank" rel="noopener noreferrer">'
        f'<img src="{content}" alt="plot" '
        f'style="max-width:320px;height:auto;display:block;margin:4px 0;cursor:zoom-in;" />'
        f"</a>"
        for content in images
    )
    cells.insert(4, f'<td class="col-plot">{html}</td>')


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """
    Copy test_meta marker kwargs and attached plots onto the call-phase report.

    :param item: The test item that just ran.
    :param call: CallInfo for the phase.
    """
    outcome = yield
    report = outcome.get_result()

    # Setup and teardown reports carry nothing to show
    if report.when != "call":
        return

    marker = item.get_closest_marker("test_meta")
    if marker:
        report.test_meta = {
            "description": marker.kwargs.get("description", ""),
            "goal": marker.kwargs.get("goal", ""),
            "passing_criteria": marker.kwargs.get("passing_criteria", ""),
        }

    item_extra = getattr(item, "extra", None)
    if not item_extra:
        return

    extras = getattr(report, "extras", [])
    extras.extend([dict(extra) for extra in item_extra])
    report.extras = extras

    # Older pytest-html versions read report.extra
    if hasattr(report, "extra"):
        report.extra = extras
