# src/site_auditor/handlers/audit_handler.py
import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

from site_auditor.controllers.audit_controller import WebsiteAuditor
from site_auditor.managers.config_manager import config_manager
from site_auditor.managers.progress_manager import ProgressManager
from site_auditor.model import AuditOptions, AuditReport
from site_auditor.services.company_info_service import calculate_company_info_score
from site_auditor.services.seo_analysis_service import calculate_seo_score

logger = logging.getLogger(__name__)

audit_help_text = """
WEBSITE AUDIT:
  audit <url>            Audit one website (technologies, TLS, SEO, company info, WHOIS).
  batch <url> [<url>..]  Audit several websites, optionally read from --file.
""".strip()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="site-audit",
        description="Website audit engine.",
        epilog=audit_help_text,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="subcommand")

    def add_common(sub: argparse.ArgumentParser):
        sub.add_argument("--no-domain", action="store_true", help="Skip the WHOIS lookup.")
        sub.add_argument("--no-tech", action="store_true", help="Skip technology detection.")
        sub.add_argument("--no-ssl", action="store_true", help="Skip the TLS certificate probe.")
        sub.add_argument("--no-seo", action="store_true", help="Skip SEO extraction.")
        sub.add_argument("--no-company", action="store_true", help="Skip company-info extraction.")
        sub.add_argument("--timeout", type=int, default=None, help="HTTP timeout in milliseconds.")
        sub.add_argument("--retries", type=int, default=None, help="Attempts per page fetch.")
        sub.add_argument("--json", action="store_true", help="Print the report as JSON.")

    audit_parser = subparsers.add_parser("audit", help="Audit a single website")
    audit_parser.add_argument("url", help="URL or bare domain to audit.")
    add_common(audit_parser)

    batch_parser = subparsers.add_parser("batch", help="Audit several websites")
    batch_parser.add_argument("urls", nargs="*", help="URLs or bare domains.")
    batch_parser.add_argument("--file", type=str, default=None, help="Text file with one URL per line.")
    batch_parser.add_argument(
        "--concurrency", type=int, default=int(config_manager.get_nested("batch.concurrency", 3)),
        help="URLs audited in parallel per chunk."
    )
    add_common(batch_parser)

    return parser


def _options_from_args(parsed_args: argparse.Namespace) -> AuditOptions:
    values = {
        "include_domain": not parsed_args.no_domain,
        "include_technologies": not parsed_args.no_tech,
        "include_ssl": not parsed_args.no_ssl,
        "include_seo": not parsed_args.no_seo,
        "include_company_info": not parsed_args.no_company,
    }
    if parsed_args.timeout is not None:
        values["timeout"] = parsed_args.timeout
    if parsed_args.retries is not None:
        values["max_retries"] = parsed_args.retries
    return AuditOptions(**values)


def _read_url_file(path: str) -> List[str]:
    lines = Path(path).read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip() and not line.strip().startswith("#")]


def _to_jsonable(report: AuditReport) -> dict:
    return report.model_dump(mode="json", by_alias=True, exclude_none=True)


def _print_report(report: AuditReport):
    print(f"\n🌐 {report.url}")
    if report.error:
        print(f"  ❌ Error: {report.error}")
        return

    if report.technologies is not None:
        print(f"  Technologies ({len(report.technologies)}):")
        for tech in report.technologies:
            version = f" {tech.version}" if tech.version else ""
            print(f"    - {tech.name}{version} [{tech.category}] {tech.confidence}%")

    if report.ssl_info:
        ssl_info = report.ssl_info
        if ssl_info.valid:
            print(f"  🔒 TLS: valid, {ssl_info.days_remaining} days left ({ssl_info.issuer}, {ssl_info.protocol})")
        else:
            print(f"  🔓 TLS: invalid ({ssl_info.error or 'outside validity period'})")

    if report.seo_data:
        seo_score = calculate_seo_score(report.seo_data)
        print(f"  SEO score: {seo_score.score}/100")
        for issue in seo_score.issues:
            print(f"    - {issue}")

    if report.company_info:
        info = report.company_info
        company_score = calculate_company_info_score(info)
        print(f"  Company info: {company_score.completeness}% complete")
        for label, value in (("Name", info.name), ("Email", info.email), ("Phone", info.phone),
                             ("Address", info.address), ("Founded", info.founded_year)):
            if value:
                print(f"    {label}: {value}")
        if info.social_media:
            print(f"    Social: {', '.join(sorted(info.social_media))}")

    if report.domain_info and report.domain_info.registrar:
        print(f"  Registrar: {report.domain_info.registrar}")


async def _run_audit(url: str, options: AuditOptions) -> AuditReport:
    async with WebsiteAuditor.from_options(options) as auditor:
        return await auditor.audit(url, options)


async def _run_batch(urls: List[str], options: AuditOptions, concurrency: int) -> List[AuditReport]:
    with ProgressManager(total=len(urls), desc="Auditing") as progress:
        def on_chunk(chunk_reports: List[AuditReport]):
            progress.advance(len(chunk_reports), failures=sum(1 for r in chunk_reports if r.error))

        async with WebsiteAuditor.from_options(options) as auditor:
            return await auditor.batch_audit(urls, options, concurrency, progress=on_chunk)


def handle_audit(args: Optional[List[str]] = None) -> int:
    """
    Entry point for the `site-audit` command. Returns the process exit code.
    """
    parser = _build_parser()
    try:
        parsed_args = parser.parse_args(args)
    except SystemExit as e:
        return 0 if e.code == 0 else 1

    if parsed_args.subcommand is None:
        parser.print_help()
        return 1

    options = _options_from_args(parsed_args)

    if parsed_args.subcommand == "audit":
        report = asyncio.run(_run_audit(parsed_args.url, options))
        if parsed_args.json:
            print(json.dumps(_to_jsonable(report), indent=2))
        else:
            _print_report(report)
        return 1 if report.error else 0

    urls = list(parsed_args.urls)
    if parsed_args.file:
        try:
            urls.extend(_read_url_file(parsed_args.file))
        except OSError as e:
            print(f"❌ Could not read URL file: {e}")
            return 1
    if not urls:
        print("❌ No URLs given. Pass them as arguments or with --file.")
        return 1

    reports = asyncio.run(_run_batch(urls, options, parsed_args.concurrency))
    if parsed_args.json:
        print(json.dumps([_to_jsonable(r) for r in reports], indent=2))
    else:
        for report in reports:
            _print_report(report)
        failed = sum(1 for r in reports if r.error)
        print(f"\n✅ {len(reports) - failed} audited, ❌ {failed} failed.")

    return 1 if any(r.error for r in reports) else 0
