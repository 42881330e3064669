from pathlib import Path

from lgtm_stack.domain.common.utils import DateTimeUtils, StringUtils

from .models import LoadTestReport

REPORT_TIMESTAMP_FORMAT = '%Y%m%dT%H%M%S%f'


def render_markdown(report: LoadTestReport) -> str:
    lines = [
        f'# Load test report: {report.scenario_name}',
        '',
        f'- started: {report.started_at.isoformat()}',
        f'- finished: {report.finished_at.isoformat()}',
        f'- target rate: {report.rate_per_second:g} req/s '
        f'for {report.duration_seconds:g} s',
        f'- requests: {report.requests} (ok: {report.ok}, failed: {report.failed})',
        f'- achieved rate: {report.requests_per_second:g} req/s',
        '',
        '| scenario | requests | ok | failed | mean ms | p50 ms | p95 ms | p99 ms '
        '| max ms |',
        '|---|---|---|---|---|---|---|---|---|',
    ]

    for item in report.scenarios:
        lat = item.latency
        lines.append(
            f'| {item.name} | {item.requests} | {item.ok} | {item.failed} '
            f'| {lat.mean_ms} | {lat.p50_ms} | {lat.p95_ms} | {lat.p99_ms} '
            f'| {lat.max_ms} |'
        )

    return '\n'.join(lines) + '\n'


def _unused_paths(folder: Path, stem: str) -> tuple[Path, Path]:
    """JSON and Markdown paths for *stem*, suffixed until neither exists."""
    candidate = stem
    counter = 1
    while (folder / f'{candidate}.json').exists() or (
        folder / f'{candidate}.md'
    ).exists():
        candidate = f'{stem}-{counter}'
        counter += 1

    return folder / f'{candidate}.json', folder / f'{candidate}.md'


def write_report(report: LoadTestReport, report_dir: str | Path) -> list[Path]:
    """Write the JSON and Markdown artifacts, returning their paths."""
    folder = Path(report_dir)
    folder.mkdir(parents=True, exist_ok=True)

    stem = (
        f'{DateTimeUtils.format(report.started_at, REPORT_TIMESTAMP_FORMAT)}_'
        f'{StringUtils.slugify(report.scenario_name)}'
    )
    json_path, md_path = _unused_paths(folder, stem)

    json_path.write_text(report.model_dump_json(indent=2), encoding='utf-8')
    md_path.write_text(render_markdown(report), encoding='utf-8')

    return [json_path, md_path]
