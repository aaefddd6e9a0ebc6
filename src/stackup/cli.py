"""Command-line interface for stackup."""

from __future__ import annotations

import functools
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import click
from botocore.exceptions import BotoCoreError, ClientError

from .config import StackupConfig, configure_logging
from .differ import DiffStyle, DiffView
from .documents import load_document, render
from .exceptions import NoSuchStack, StackupError
from .models import DEFAULT_CAPABILITIES, ChangeRequest, OnFailure, StackEvent
from .parameters import merge, parse_overrides, tags_from_remote_form
from .stack import Stack


@dataclass
class CliContext:
    """State shared by all subcommands."""

    stack_name: str
    config: StackupConfig
    fmt: str
    _stack: Stack | None = None

    @property
    def stack(self) -> Stack:
        if self._stack is None:
            self._stack = Stack(self.stack_name, config=self.config)
        return self._stack


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Turn stackup and AWS errors into a one-line message and exit status 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (StackupError, ClientError, BotoCoreError) as e:
            click.echo(f"✗ {e}", err=True)
            sys.exit(1)

    return wrapper


pass_context = click.make_pass_decorator(CliContext)


def echo_document(ctx: CliContext, document: Any) -> None:
    click.echo(render(document, ctx.fmt), nl=False)


def format_event(event: StackEvent) -> str:
    timestamp = event.timestamp.strftime("%Y-%m-%d %H:%M:%S") if event.timestamp else "-"
    return f"[{timestamp}] {event.summary()}"


@click.group()
@click.version_option(package_name="stackup")
@click.argument("stack_name")
@click.option("--region", help="AWS region (default: use boto3 defaults)")
@click.option(
    "--endpoint-url",
    help="CloudFormation endpoint URL (e.g., http://localhost:4566 for LocalStack)",
)
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "-Y", "--yaml", "fmt", flag_value="yaml", default="yaml", help="Output YAML (default)"
)
@click.option("-J", "--json", "fmt", flag_value="json", help="Output JSON")
@click.pass_context
@handle_errors
def cli(
    ctx: click.Context,
    stack_name: str,
    region: str | None,
    endpoint_url: str | None,
    debug: bool,
    fmt: str,
) -> None:
    """Manage the CloudFormation stack STACK_NAME."""
    configure_logging(debug)
    config = StackupConfig.from_env(region=region, endpoint_url=endpoint_url)
    ctx.obj = CliContext(stack_name=stack_name, config=config, fmt=fmt)


def change_inputs(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options describing a planned stack definition (shared by ``up`` and ``diff``)."""
    options = [
        click.option(
            "-t", "--template", "template_file", type=click.Path(), help="Template file"
        ),
        click.option(
            "-p",
            "--parameters",
            "parameter_files",
            type=click.Path(),
            multiple=True,
            help="Parameters file (repeatable; later files win)",
        ),
        click.option(
            "-o",
            "--override",
            "overrides",
            multiple=True,
            metavar="KEY=VALUE",
            help="Override a parameter value (repeatable)",
        ),
        click.option("--tags", "tags_file", type=click.Path(), help="Tags file"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def load_parameters(parameter_files: tuple[str, ...], overrides: tuple[str, ...]) -> Any:
    """Merged parameters from files and overrides, or None if none were given."""
    if not parameter_files and not overrides:
        return None
    merged: dict[str, Any] = {}
    for path in parameter_files:
        merged = merge(merged, load_document(path) or {})
    return merge(merged, parse_overrides(overrides))


def load_tags(tags_file: str | None) -> Any:
    if tags_file is None:
        return None
    return tags_from_remote_form(load_document(tags_file) or {})


@cli.command()
@pass_context
@handle_errors
def status(ctx: CliContext) -> None:
    """Print the stack status."""
    stack_status = ctx.stack.status()
    if stack_status is None:
        raise NoSuchStack(ctx.stack_name)
    click.echo(stack_status)


@cli.command()
@change_inputs
@click.option(
    "-T",
    "--use-previous-template",
    is_flag=True,
    help="Update using the deployed template",
)
@click.option("--template-url", help="S3 URL of the template")
@click.option("--policy", "policy_file", type=click.Path(), help="Stack policy file")
@click.option(
    "--on-failure",
    type=click.Choice([o.value for o in OnFailure]),
    default=OnFailure.ROLLBACK.value,
    show_default=True,
    help="Action when stack creation fails",
)
@click.option(
    "--capability",
    "capabilities",
    multiple=True,
    help=f"Acknowledged capability (repeatable, default: {', '.join(DEFAULT_CAPABILITIES)})",
)
@click.option(
    "--timeout-in-minutes", type=click.IntRange(min=1), help="Stack creation timeout"
)
@pass_context
@handle_errors
def up(
    ctx: CliContext,
    template_file: str | None,
    parameter_files: tuple[str, ...],
    overrides: tuple[str, ...],
    tags_file: str | None,
    use_previous_template: bool,
    template_url: str | None,
    policy_file: str | None,
    on_failure: str,
    capabilities: tuple[str, ...],
    timeout_in_minutes: int | None,
) -> None:
    """Create or update the stack."""
    request = ChangeRequest(
        template=load_document(template_file) if template_file else None,
        template_url=template_url,
        use_previous_template=use_previous_template,
        parameters=load_parameters(parameter_files, overrides),
        tags=load_tags(tags_file),
        stack_policy=load_document(policy_file) if policy_file else None,
        capabilities=capabilities,
        on_failure=OnFailure(on_failure),
        timeout_in_minutes=timeout_in_minutes,
    )
    result = ctx.stack.create_or_update(request)
    click.echo(f"✓ Stack {ctx.stack_name}: {result}")


@cli.command()
@change_inputs
@click.option(
    "--diff-style",
    type=click.Choice([s.value for s in DiffStyle]),
    default=DiffStyle.COLOR.value,
    show_default=True,
    help="Diff rendering",
)
@pass_context
@handle_errors
def diff(
    ctx: CliContext,
    template_file: str | None,
    parameter_files: tuple[str, ...],
    overrides: tuple[str, ...],
    tags_file: str | None,
    diff_style: str,
) -> None:
    """Compare a planned definition with the live stack."""
    planned = DiffView(
        template=load_document(template_file) if template_file else None,
        parameters=load_parameters(parameter_files, overrides),
        tags=load_tags(tags_file),
    )
    click.echo(ctx.stack.diff(planned, style=diff_style, fmt=ctx.fmt), nl=False)


@cli.command()
@pass_context
@handle_errors
def down(ctx: CliContext) -> None:
    """Delete the stack."""
    result = ctx.stack.delete()
    click.echo(f"✓ Stack {ctx.stack_name}: {result}")


cli.add_command(down, "delete")


@cli.command("cancel-update")
@pass_context
@handle_errors
def cancel_update(ctx: CliContext) -> None:
    """Cancel an in-progress update."""
    result = ctx.stack.cancel_update()
    click.echo(f"✓ Stack {ctx.stack_name}: {result}")


@cli.command()
@pass_context
@handle_errors
def wait(ctx: CliContext) -> None:
    """Wait until the stack is no longer changing."""
    click.echo(ctx.stack.wait() or "NONE")


@cli.command()
@click.option("--follow", "-f", is_flag=True, help="Keep polling for new events")
@pass_context
@handle_errors
def events(ctx: CliContext, follow: bool) -> None:
    """Print stack events, oldest first."""
    if not follow:
        for event in ctx.stack.events():
            click.echo(format_event(event))
        return
    # The watcher reads a missing stack as "no events yet".
    ctx.stack.stack_id()
    with ctx.stack.watch(zero=False) as watcher:
        try:
            while True:
                for event in watcher.new_events():
                    click.echo(format_event(event))
                time.sleep(ctx.config.poll_interval)
        except KeyboardInterrupt:
            return


@cli.command()
@pass_context
@handle_errors
def template(ctx: CliContext) -> None:
    """Print the deployed template."""
    echo_document(ctx, ctx.stack.template())


@cli.command()
@pass_context
@handle_errors
def parameters(ctx: CliContext) -> None:
    """Print stack parameters."""
    echo_document(ctx, ctx.stack.parameters())


@cli.command()
@pass_context
@handle_errors
def resources(ctx: CliContext) -> None:
    """Print logical to physical resource ids."""
    echo_document(ctx, ctx.stack.resources())


@cli.command()
@pass_context
@handle_errors
def outputs(ctx: CliContext) -> None:
    """Print stack outputs."""
    echo_document(ctx, ctx.stack.outputs())


@cli.command()
@pass_context
@handle_errors
def inspect(ctx: CliContext) -> None:
    """Print status, parameters, tags, resources and outputs."""
    echo_document(ctx, ctx.stack.inspect())


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
