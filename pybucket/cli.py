"""CLI interface for pybucket."""

import logging
from datetime import datetime
from typing import Any, Optional

import click

from .api import BucketClient
from .cli_progress import TransferProgressDisplay
from .config import Config
from .exceptions import BucketError
from .models import ObjectInfo
from .output import OutputFormatter
from .sync.comparator import DiffType
from .sync.diff import DiffReport

logger = logging.getLogger(__name__)

# Detail fields printed by stat, in order, with their labels
STAT_DETAIL_LABELS = (
    ("content_type", "Content"),
    ("storage", "Storage"),
    ("checksum_crc32", "CRC32"),
    ("checksum_crc32c", "CRC32C"),
    ("checksum_sha1", "SHA1"),
    ("checksum_sha256", "SHA256"),
    ("server_side_encryption", "Encryption"),
    ("cache_control", "Cache"),
    ("expires", "Expires"),
    ("region", "Region"),
    ("versioning", "Versioning"),
    ("mode", "Mode"),
    ("uid", "UID"),
    ("gid", "GID"),
    ("inode", "Inode"),
    ("links", "Links"),
)

DIFF_SECTIONS = (
    (DiffType.ONLY_IN_SOURCE, "Only in source", "+"),
    (DiffType.ONLY_IN_DEST, "Only in destination", "-"),
    (DiffType.SIZE_DIFFERS, "Size differs", "≠"),
    (DiffType.CONTENT_DIFFERS, "Content differs", "≠"),
)


def _format_time(value: Any) -> str:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    return "N/A"


def _get_client(ctx: Any, progress: Optional[TransferProgressDisplay] = None) -> BucketClient:
    """Build a BucketClient from the global options stored on the context."""
    config = Config.load(**ctx.obj["config_overrides"])
    return BucketClient(
        config=config,
        output=ctx.obj["out"],
        progress_factory=progress.make_callback if progress else None,
    )


def _run_transfer(ctx: Any, operation: Any) -> Any:
    """Run ``operation(client)`` with a progress bar unless output is quiet."""
    out: OutputFormatter = ctx.obj["out"]
    if out.quiet:
        return operation(_get_client(ctx))
    with TransferProgressDisplay(console=out.console) as display:
        return operation(_get_client(ctx, display))


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging output")
@click.option("--endpoint-url", help="Override the S3 endpoint URL")
@click.option(
    "--no-verify-ssl",
    is_flag=True,
    help="Disable SSL certificate verification (use with caution)",
)
@click.option("--profile", help="Use a specific AWS profile from credentials file")
@click.option("--region", help="AWS region to use")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.version_option(package_name="pybucket")
@click.pass_context
def main(
    ctx: Any,
    debug: bool,
    endpoint_url: Optional[str],
    no_verify_ssl: bool,
    profile: Optional[str],
    region: Optional[str],
    quiet: bool,
) -> None:
    """pybucket - Copy, sync, diff and inspect local files and S3 buckets."""
    ctx.ensure_object(dict)
    ctx.obj["out"] = OutputFormatter(quiet=quiet)
    ctx.obj["config_overrides"] = {
        "endpoint_url": endpoint_url,
        "region": region,
        "profile": profile,
        "verify_ssl": not no_verify_ssl,
        "debug": debug,
    }

    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("pybucket").setLevel(logging.DEBUG)
    else:
        # Set default logging level to WARNING to suppress debug/info messages
        logging.basicConfig(level=logging.WARNING)


@main.command("ls")
@click.argument("path", required=False)
@click.option("--recursive", "-r", is_flag=True, help="List all objects recursively")
@click.pass_context
def ls(ctx: Any, path: Optional[str], recursive: bool) -> None:
    """List buckets, or the objects below an S3 prefix.

    PATH: S3 URI (s3://bucket/prefix), omit to list all buckets
    """
    out: OutputFormatter = ctx.obj["out"]
    try:
        client = _get_client(ctx)
        if path is None:
            buckets = list(client.list())
            if not buckets:
                out.print("No buckets found")
                return
            for bucket in buckets:
                out.print(f"{_format_time(bucket.last_modified):30} {bucket.key}")
            out.info(f"\nTotal buckets: {len(buckets)}")
            return

        total_count = 0
        total_size = 0
        for item in client.list(path, recursive=recursive):
            if item.is_prefix:
                out.print(f"{'PRE':>20} {item.key}")
                continue
            out.print(f"{_format_time(item.last_modified):30} {item.size:>12} {item.key}")
            total_count += 1
            total_size += item.size
        out.info(f"\nTotal objects: {total_count}, Total size: {total_size} bytes")
    except BucketError as e:
        out.error(str(e))
        ctx.exit(1)


@main.command()
@click.argument("source")
@click.argument("dest")
@click.option("--recursive", "-r", is_flag=True, help="Copy directories recursively")
@click.option(
    "--include", multiple=True, help="Include files matching pattern (repeatable)"
)
@click.option(
    "--exclude", multiple=True, help="Exclude files matching pattern (repeatable)"
)
@click.option(
    "--checksum-mode", help="Checksum mode (ENABLED for single object operations)"
)
@click.option(
    "--checksum-algorithm", help="Checksum algorithm (CRC32, CRC32C, SHA1, SHA256)"
)
@click.pass_context
def cp(
    ctx: Any,
    source: str,
    dest: str,
    recursive: bool,
    include: tuple[str, ...],
    exclude: tuple[str, ...],
    checksum_mode: Optional[str],
    checksum_algorithm: Optional[str],
) -> None:
    """Copy files between local paths and S3.

    SOURCE and DEST are local paths or s3://bucket/key URIs.
    """
    out: OutputFormatter = ctx.obj["out"]
    try:
        results = _run_transfer(
            ctx,
            lambda client: client.copy(
                source,
                dest,
                recursive=recursive,
                include=include,
                exclude=exclude,
                checksum_mode=checksum_mode,
                checksum_algorithm=checksum_algorithm,
            ),
        )
        if recursive:
            out.success(f"Copied {len(results)} objects")
    except BucketError as e:
        out.error(str(e))
        ctx.exit(1)


@main.command()
@click.argument("source")
@click.argument("dest")
@click.option(
    "--include", multiple=True, help="Include files matching pattern (repeatable)"
)
@click.option(
    "--exclude", multiple=True, help="Exclude files matching pattern (repeatable)"
)
@click.pass_context
def sync(
    ctx: Any,
    source: str,
    dest: str,
    include: tuple[str, ...],
    exclude: tuple[str, ...],
) -> None:
    """Copy new and changed files from SOURCE to DEST.

    Files are compared by size only. Nothing is ever deleted at DEST.
    """
    out: OutputFormatter = ctx.obj["out"]
    try:
        stats = _run_transfer(
            ctx,
            lambda client: client.sync(source, dest, include=include, exclude=exclude),
        )
        out.info(
            f"\nSync complete: {stats['copied']} {stats['verb']}, "
            f"{stats['skipped']} skipped (unchanged)"
        )
    except BucketError as e:
        out.error(str(e))
        ctx.exit(1)


@main.command()
@click.argument("source")
@click.argument("dest")
@click.option("--recursive", "-r", is_flag=True, help="Move directories recursively")
@click.option(
    "--include", multiple=True, help="Include files matching pattern (repeatable)"
)
@click.option(
    "--exclude", multiple=True, help="Exclude files matching pattern (repeatable)"
)
@click.pass_context
def mv(
    ctx: Any,
    source: str,
    dest: str,
    recursive: bool,
    include: tuple[str, ...],
    exclude: tuple[str, ...],
) -> None:
    """Move files: copy, then remove the source when it is in S3.

    Local source files are never deleted.
    """
    out: OutputFormatter = ctx.obj["out"]
    try:
        _run_transfer(
            ctx,
            lambda client: client.move(
                source, dest, recursive=recursive, include=include, exclude=exclude
            ),
        )
    except BucketError as e:
        out.error(str(e))
        ctx.exit(1)


@main.command()
@click.argument("path")
@click.option("--recursive", "-r", is_flag=True, help="Remove objects recursively")
@click.option(
    "--include", multiple=True, help="Include files matching pattern (repeatable)"
)
@click.option(
    "--exclude", multiple=True, help="Exclude files matching pattern (repeatable)"
)
@click.pass_context
def rm(
    ctx: Any,
    path: str,
    recursive: bool,
    include: tuple[str, ...],
    exclude: tuple[str, ...],
) -> None:
    """Remove S3 objects.

    PATH: S3 URI (s3://bucket/key)
    """
    out: OutputFormatter = ctx.obj["out"]
    try:
        client = _get_client(ctx)
        client.remove(path, recursive=recursive, include=include, exclude=exclude)
    except BucketError as e:
        out.error(str(e))
        ctx.exit(1)


def _print_stat(out: OutputFormatter, name: str, info: ObjectInfo) -> None:
    out.print(f"{'Name':<10}: {name}")
    if info.kind == "bucket":
        out.print(f"{'Type':<10}: s3 bucket")
        out.print(f"{'Status':<10}: exists")
    else:
        out.print(f"{'Type':<10}: {info.kind}")
        out.print(f"{'Size':<10}: {info.size} bytes ({info.size / 1024:.2f} KB)")
        if info.modified_at is not None:
            out.print(f"{'Modified':<10}: {_format_time(info.modified_at)}")
        if info.digest:
            out.print(f"{'ETag':<10}: \"{info.digest}\"")

    for key, label in STAT_DETAIL_LABELS:
        if key in info.details:
            out.print(f"{label:<10}: {info.details[key]}")

    metadata = info.details.get("metadata")
    if metadata:
        out.print(f"\n{'Metadata':<10}:")
        for meta_key, meta_value in metadata.items():
            out.print(f"  {meta_key}: {meta_value}")


@main.command()
@click.argument("path")
@click.option("--recursive", "-r", is_flag=True, help="Stat objects recursively")
@click.option("--checksum-mode", help="Checksum mode (ENABLED to compute checksums)")
@click.option(
    "--checksum-algorithm", help="Checksum algorithm (CRC32, CRC32C, SHA1, SHA256)"
)
@click.pass_context
def stat(
    ctx: Any,
    path: str,
    recursive: bool,
    checksum_mode: Optional[str],
    checksum_algorithm: Optional[str],
) -> None:
    """Display file, object or bucket information.

    PATH: local path, s3://bucket/key or s3://bucket
    """
    out: OutputFormatter = ctx.obj["out"]
    try:
        client = _get_client(ctx)
        results = client.stat(
            path,
            recursive=recursive,
            checksum_mode=checksum_mode,
            checksum_algorithm=checksum_algorithm,
        )
        for index, (location, info) in enumerate(results):
            if index:
                out.print()
            _print_stat(out, str(location), info)
        if recursive:
            out.info(f"\nTotal: {len(results)} objects")
    except BucketError as e:
        out.error(str(e))
        ctx.exit(1)


def _print_diff(out: OutputFormatter, report: DiffReport) -> None:
    if report.identical:
        out.print("No differences found between:")
        out.print(f"  Source: {report.source}")
        out.print(f"  Dest:   {report.dest}")
        return

    out.print("Differences between:")
    out.print(f"  Source: {report.source}")
    out.print(f"  Dest:   {report.dest}")
    out.print()

    for diff_type, title, marker in DIFF_SECTIONS:
        entries = report.of_type(diff_type)
        if not entries:
            continue
        out.print(f"{title} ({len(entries)} files):")
        for entry in entries:
            out.print(f"  {marker} {entry.relative_key}")
        out.print()

    counts = report.counts()
    out.print("Summary:")
    out.print(f"  Only in source:      {counts[DiffType.ONLY_IN_SOURCE]}")
    out.print(f"  Only in destination: {counts[DiffType.ONLY_IN_DEST]}")
    out.print(f"  Size differs:        {counts[DiffType.SIZE_DIFFERS]}")
    out.print(f"  Content differs:     {counts[DiffType.CONTENT_DIFFERS]}")
    out.print(f"  Total differences:   {report.total}")


@main.command()
@click.argument("source")
@click.argument("dest")
@click.option(
    "--compare-content",
    is_flag=True,
    help="Compare object contents using ETag/checksums (slower)",
)
@click.option(
    "--include", multiple=True, help="Include files matching pattern (repeatable)"
)
@click.option(
    "--exclude", multiple=True, help="Exclude files matching pattern (repeatable)"
)
@click.pass_context
def diff(
    ctx: Any,
    source: str,
    dest: str,
    compare_content: bool,
    include: tuple[str, ...],
    exclude: tuple[str, ...],
) -> None:
    """Compare two directories or prefixes and show differences.

    Differences are reported, the command still succeeds.
    """
    out: OutputFormatter = ctx.obj["out"]
    try:
        client = _get_client(ctx)
        report = client.diff(
            source,
            dest,
            compare_content=compare_content,
            include=include,
            exclude=exclude,
        )
        _print_diff(out, report)
    except BucketError as e:
        out.error(str(e))
        ctx.exit(1)


@main.command()
@click.argument("path")
@click.option("--range", "range_string", help='Byte range, e.g. "0-100" or "bytes=0-100"')
@click.option("--offset", type=int, help="Offset to start reading from (bytes)")
@click.option("--size", type=int, help="Number of bytes to read")
@click.pass_context
def cat(
    ctx: Any,
    path: str,
    range_string: Optional[str],
    offset: Optional[int],
    size: Optional[int],
) -> None:
    """Print file or object content to stdout.

    PATH: local path or s3://bucket/key
    """
    out: OutputFormatter = ctx.obj["out"]
    try:
        client = _get_client(ctx)
        sink = click.get_binary_stream("stdout")
        client.cat(path, sink, range_string=range_string, offset=offset, size=size)
    except BucketError as e:
        out.error(str(e))
        ctx.exit(1)


@main.command()
@click.argument("path1")
@click.argument("path2")
@click.option("--range", "range_string", help='Byte range, e.g. "0-100" or "bytes=0-100"')
@click.option("--offset", type=int, help="Offset to start comparing from (bytes)")
@click.option("--size", type=int, help="Number of bytes to compare")
@click.pass_context
def cmp(
    ctx: Any,
    path1: str,
    path2: str,
    range_string: Optional[str],
    offset: Optional[int],
    size: Optional[int],
) -> None:
    """Compare two files or objects byte by byte.

    Prints nothing when they are identical, otherwise the first differing
    byte, and exits with status 1.
    """
    out: OutputFormatter = ctx.obj["out"]
    try:
        client = _get_client(ctx)
        result = client.cmp(
            path1, path2, range_string=range_string, offset=offset, size=size
        )
    except BucketError as e:
        out.error(str(e))
        ctx.exit(1)
        return

    if not result.identical:
        click.echo(result.describe(), err=True)
        ctx.exit(1)


if __name__ == "__main__":
    main()
