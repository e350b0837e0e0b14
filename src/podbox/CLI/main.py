"""
Command Line Interface for podbox.
"""
import sys
import click
from ..PARSERS.config_parser import ConfigParser
from ..MANAGERS.sandbox_orchestrator import SandboxOrchestrator
from ..errors import PodboxError
from .menu import ManagementMenu

# Subcommands that change the container or the host take the instance lock.
# install takes it itself, after the preflight check.
LOCKED_COMMANDS = {'materialize', 'build', 'start', 'stop', 'login', 'cleanup',
                   'troubleshoot', 'menu'}


def _fail(sandbox: SandboxOrchestrator, error: PodboxError):
    sandbox.report(error)
    sys.exit(1)


@click.group(invoke_without_command=True)
@click.option('--workspace', '-w', default=None, help='Sandbox workspace directory')
@click.pass_context
def cli(ctx, workspace):
    """
    podbox - rootless Podman sandbox provisioner.

    Without a command, runs the full installation: dependencies, container
    files, image build, container start and login.
    """
    ctx.ensure_object(dict)
    if 'sandbox' not in ctx.obj:
        try:
            config = ctx.obj.get('config') or ConfigParser().parse(workspace=workspace)
        except PodboxError as e:
            click.echo(f"Error: {e}")
            sys.exit(1)
        ctx.obj['sandbox'] = SandboxOrchestrator(config, runner=ctx.obj.get('runner'),
                                                preflight=ctx.obj.get('preflight'))

    if ctx.invoked_subcommand in LOCKED_COMMANDS:
        sandbox = ctx.obj['sandbox']
        try:
            ctx.with_resource(sandbox.lock())
        except PodboxError as e:
            _fail(sandbox, e)

    if ctx.invoked_subcommand is None:
        ctx.invoke(install)


@cli.command()
@click.pass_context
def install(ctx):
    """Install dependencies, build the image and start the container."""
    sandbox = ctx.obj['sandbox']
    try:
        started = sandbox.install()
    except PodboxError as e:
        _fail(sandbox, e)
    if not started:
        sys.exit(1)


@cli.command()
@click.pass_context
def materialize(ctx):
    """Write the container files into the workspace."""
    ctx.obj['sandbox'].materialize()


@cli.command()
@click.pass_context
def build(ctx):
    """Build the image, falling back to host network and a reduced definition."""
    sandbox = ctx.obj['sandbox']
    try:
        sandbox.build()
    except PodboxError as e:
        _fail(sandbox, e)


@cli.command()
@click.pass_context
def start(ctx):
    """Start the container (host network, then port mapping)."""
    if not ctx.obj['sandbox'].lifecycle.start().success:
        sys.exit(1)


@cli.command()
@click.pass_context
def stop(ctx):
    """Stop the container."""
    if not ctx.obj['sandbox'].lifecycle.stop():
        sys.exit(1)


@cli.command()
@click.pass_context
def status(ctx):
    """Show container status, ports and recent logs."""
    ctx.obj['sandbox'].lifecycle.status()


@cli.command()
@click.pass_context
def logs(ctx):
    """Show the container logs."""
    if not ctx.obj['sandbox'].lifecycle.logs():
        sys.exit(1)


@cli.command()
@click.option('--entry', '-e', type=click.Choice(['1', '2', '3', '4', '5']), default=None,
              help='Login option (1 shell, 2 terminal client, 3 service status, 4 help, 5 cancel)')
@click.pass_context
def login(ctx, entry):
    """Log in to the running container."""
    if not ctx.obj['sandbox'].lifecycle.login(entry):
        sys.exit(1)


@cli.command(name='open')
@click.pass_context
def open_interfaces(ctx):
    """Open the web interfaces in the browser."""
    if not ctx.obj['sandbox'].lifecycle.open_web_interfaces():
        sys.exit(1)


@cli.command()
@click.pass_context
def cleanup(ctx):
    """Stop and remove the container and prune dangling images."""
    if not ctx.obj['sandbox'].lifecycle.cleanup():
        sys.exit(1)


@cli.command()
@click.pass_context
def troubleshoot(ctx):
    """Repair container networking step by step."""
    ctx.obj['sandbox'].installer.troubleshoot_network()


@cli.command()
@click.pass_context
def menu(ctx):
    """Interactive management menu."""
    ManagementMenu(ctx.obj['sandbox']).run()


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
