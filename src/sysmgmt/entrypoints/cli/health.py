"""SYSMGMT health CLI: register external APIs and check them.

Commands
- ``register``: add an API to the registry.
- ``list``: show registered APIs with their priority and effectiveness.
- ``check``: check some APIs (by id) or every effective one.
- ``unhealthy``: list the APIs in the unhealthy cache.
- ``watch``: run the periodic scheduler in the foreground.
- ``summary``: count available APIs and grade the overall health.
- ``status``: show the availability of one API.

The unhealthy cache lives in-process, so ``unhealthy``, ``summary`` and
``status`` run a check first unless ``--no-refresh`` is given.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from functools import wraps
from typing import TYPE_CHECKING, Any, TypeVar

import click
import click_extra as clickx
from rich.console import Console
from rich.table import Table

from sysmgmt import config
from sysmgmt.bootstrap import AppContainer, bootstrap
from sysmgmt.domain.errors import InvalidExternalApiError
from sysmgmt.domain.models import ApiDomain, ApiKeyword, ExternalApi, HTTP_METHODS
from sysmgmt.interfaces.api_registry import (
    DuplicateApiError,
    RegistryUnavailableError,
)
from sysmgmt.interfaces.result_store import ResultStoreUnavailableError

from .db import MISSING_DB_URL_MSG, UPGRADE_SCHEMA_INSTRUCTIONS
from .helpers import error, hyperlink, success, warn

if TYPE_CHECKING:
    from sysmgmt.domain.models import HealthCheckResult

F = TypeVar("F", bound=Callable[..., Any])

STORE_UNAVAILABLE_MSG = (
    "The API registry or result store is not available.\n" + UPGRADE_SCHEMA_INSTRUCTIONS
)

_STATUS_STYLES = {
    "HEALTHY": "green",
    "DEGRADED": "yellow",
    "UNHEALTHY": "red",
    "TIMEOUT": "red",
    "UNKNOWN": "magenta",
}


def _container(settings: config.Settings) -> AppContainer:
    """Bootstrap for the running command; resources are released when it ends."""
    try:
        container = bootstrap(settings.profile)
    except config.DatabaseUrlNotSetError as e:
        raise click.ClickException(MISSING_DB_URL_MSG) from e
    except config.ConfigError as e:
        raise click.ClickException(str(e)) from e
    click.get_current_context().call_on_close(container.close)
    return container


def translate_store_errors(fn: F) -> F:
    """Turn storage outages raised by `fn` into a ClickException."""

    @wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except (RegistryUnavailableError, ResultStoreUnavailableError) as e:
            raise click.ClickException(STORE_UNAVAILABLE_MSG) from e

    return wrapper  # type: ignore[return-value]


def _enum_choice(enum_type: type) -> click.Choice:
    return click.Choice([member.name for member in enum_type], case_sensitive=False)


def _print_results(results: Iterable[HealthCheckResult]) -> None:
    table = Table("API", "Status", "HTTP", "Time (ms)", "Score", "Error")
    for result in results:
        style = _STATUS_STYLES[result.status.name]
        table.add_row(
            result.api_id,
            f"[{style}]{result.status.value}[/{style}]",
            str(result.http_status_code or "-"),
            str(result.response_time_ms if result.response_time_ms is not None else "-"),
            str(result.health_score()),
            result.error_message or "",
        )
    Console().print(table)


@click.group(cls=clickx.ExtraGroup)
def health() -> None:
    """External API health commands."""


@health.command()
@click.argument("api_id")
@click.option("--name", required=True, help="Display name of the API.")
@click.option("--url", required=True, help="Endpoint probed by health checks.")
@click.option("--issuer", required=True, help="Organisation that provides the API.")
@click.option("--domain", type=_enum_choice(ApiDomain), default="OTHER", show_default=True)
@click.option("--keyword", type=_enum_choice(ApiKeyword), default="REST_API", show_default=True)
@click.option(
    "--method",
    "http_method",
    type=click.Choice(sorted(HTTP_METHODS), case_sensitive=False),
    default="GET",
    show_default=True,
)
@click.option("--owner", default=None, help="Who registered the API.")
@click.option("--description", default=None)
@click.pass_obj
@translate_store_errors
def register(  # pylint: disable=too-many-arguments, too-many-positional-arguments
    settings: config.Settings,
    api_id: str,
    name: str,
    url: str,
    issuer: str,
    domain: str,
    keyword: str,
    http_method: str,
    owner: str | None,
    description: str | None,
) -> None:
    """Register an external API under API_ID."""
    try:
        api = ExternalApi(
            api_id=api_id,
            name=name,
            url=url,
            issuer=issuer,
            domain=ApiDomain[domain.upper()],
            keyword=ApiKeyword[keyword.upper()],
            http_method=http_method.upper(),
            owner=owner,
            description=description,
        )
    except InvalidExternalApiError as e:
        raise click.BadParameter(e.reason) from e

    try:
        _container(settings).health_checks.register_api(api)
    except DuplicateApiError as e:
        raise click.ClickException(str(e)) from e
    success(f"Registered {api_id} ({api.priority.name} priority)")


@health.command(name="list")
@click.option("--all", "show_all", is_flag=True, help="Include non-effective APIs.")
@click.pass_obj
@translate_store_errors
def list_apis(settings: config.Settings, show_all: bool) -> None:
    """List registered APIs."""
    apis = _container(settings).health_checks.apis
    table = Table("ID", "Name", "Issuer", "Priority", "Effective", "URL")
    for api in apis.list_all() if show_all else apis.list_effective():
        table.add_row(
            api.api_id,
            api.name,
            api.issuer,
            api.priority.name,
            "yes" if api.effective else "no",
            hyperlink(api.url),
        )
    Console().print(table)


@health.command()
@click.argument("api_ids", nargs=-1)
@click.option(
    "--fail-on-unhealthy",
    is_flag=True,
    help="Exit with status 1 if any checked API is not healthy or degraded.",
)
@click.pass_context
@translate_store_errors
def check(
    ctx: click.Context,
    api_ids: tuple[str, ...],
    fail_on_unhealthy: bool,
) -> None:
    """Check the given APIs, or every effective API when none is given."""
    service = _container(ctx.obj).health_checks
    if api_ids:
        results = []
        for api_id in api_ids:
            if (api := service.apis.get(api_id)) is None:
                raise click.ClickException(f"Unknown API id: {api_id}")
            results.append(service.check_api(api))
    else:
        results = list(service.check_all_apis().values())

    if not results:
        warn("No APIs to check.")
        return
    _print_results(sorted(results, key=lambda r: r.api_id))

    failures = sum(1 for result in results if result.is_failure)
    if failures:
        warn(f"{failures} of {len(results)} APIs failed their health check.")
        if fail_on_unhealthy:
            ctx.exit(1)
    else:
        success(f"All {len(results)} APIs answered.")


@health.command()
@click.option(
    "--refresh/--no-refresh",
    default=True,
    show_default=True,
    help="Check every effective API before reading the cache.",
)
@click.pass_obj
@translate_store_errors
def unhealthy(settings: config.Settings, refresh: bool) -> None:
    """List APIs currently cached as unhealthy."""
    service = _container(settings).health_checks
    if refresh:
        service.check_all_apis()
    api_ids = service.unhealthy_api_ids()
    for api_id in api_ids:
        click.echo(api_id)
    if api_ids:
        warn(f"{len(api_ids)} unhealthy API(s).")
    else:
        success("No unhealthy APIs.")


@health.command()
@click.option(
    "--iterations",
    type=click.IntRange(min=1),
    default=None,
    help="Stop after this many runs (default: run until interrupted).",
)
@click.pass_obj
def watch(settings: config.Settings, iterations: int | None) -> None:
    """Run the periodic health check scheduler in the foreground."""
    if not settings.scheduler_enabled:
        error(f"The scheduler is disabled in profile {settings.profile!r}.")
        return
    service = _container(settings).health_checks

    stop_event = threading.Event()
    try:
        runs = service.run_scheduler(stop_event, iterations=iterations)
    except KeyboardInterrupt:
        stop_event.set()
        warn("Interrupted.")
        return
    success(f"Completed {runs} scheduled run(s).")


_HEALTH_STYLES = {
    "EXCELLENT": "green",
    "GOOD": "green",
    "FAIR": "yellow",
    "POOR": "red",
    "CRITICAL": "red",
    "UNKNOWN": "magenta",
}


@health.command()
@click.option(
    "--refresh/--no-refresh",
    default=True,
    show_default=True,
    help="Check every effective API before summarising.",
)
@click.pass_obj
@translate_store_errors
def summary(settings: config.Settings, refresh: bool) -> None:
    """Summarise how many registered APIs are available."""
    container = _container(settings)
    if refresh:
        container.health_checks.check_all_apis()
    report = container.status.status_summary()

    grade = report.system_health.name
    style = _HEALTH_STYLES[grade]
    console = Console()
    console.print(
        f"System health: [{style}]{grade}[/{style}] ({report.simple_status()}, "
        f"{report.total_apis} registered)"
    )

    by_priority = Table("Priority", "Available")
    for priority, count in report.priority_stats.items():
        by_priority.add_row(priority.name, str(count))
    console.print(by_priority)

    by_domain = Table("Domain", "Available")
    for domain, count in report.domain_stats.items():
        if count:
            by_domain.add_row(domain.value, str(count))
    console.print(by_domain)

    estimates = container.status.recovery_estimates()
    if estimates:
        retry = Table("Unavailable API", "Retried in (s)")
        for api_id, ttl_s in estimates.items():
            retry.add_row(api_id, str(round(ttl_s)))
        console.print(retry)


@health.command()
@click.argument("api_id")
@click.option(
    "--refresh/--no-refresh",
    default=True,
    show_default=True,
    help="Check the API before reading its status.",
)
@click.pass_obj
@translate_store_errors
def status(settings: config.Settings, api_id: str, refresh: bool) -> None:
    """Show whether API_ID is available and why not."""
    container = _container(settings)
    if (api := container.health_checks.apis.get(api_id)) is None:
        raise click.ClickException(f"Unknown API id: {api_id}")
    if refresh:
        container.health_checks.check_api(api)

    details = container.status.api_status_details(api_id)
    if details.available:
        success(f"{api_id} is available.")
        return
    warn(f"{api_id} is unavailable: {details.status} ({details.severity.name} severity)")
    click.echo(f"Message: {details.message}")
    click.echo(f"Consecutive failures: {details.consecutive_failures}")
    click.echo(f"Last checked: {details.checked_at.isoformat()}")
    if details.ttl_s is not None:
        click.echo(f"Retried as available in {round(details.ttl_s)}s")
