#!/usr/bin/env python3
"""
Install/uninstall commands shared by the generic and per-stack CLIs.
"""

import asyncio
import logging
import sys
import traceback
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import click

from ..config import AwsSettings, InstallerConfig
from ..deployment import DeploymentResult, StackInstaller
from ..lambda_utils.template import ParameterSpec, get_parameter_schema, load_template, read_template
from ..naming import env_prefix
from ..progress import ConsoleProgressLogger

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # botocore is extremely chatty at DEBUG
    logging.getLogger("botocore").setLevel(logging.INFO if verbose else logging.WARNING)


def handle_error(error: BaseException, verbose: bool) -> None:
    """Print the failure (full traceback when verbose) and exit 1."""
    if verbose:
        click.echo(
            "".join(traceback.format_exception(type(error), error, error.__traceback__)),
            err=True,
        )
    else:
        click.echo(f"Error: {error}", err=True)
    sys.exit(1)


def confirm(message: str) -> bool:
    return click.confirm(f"  - {message}", default=False)


def standard_options(f: Callable) -> Callable:
    """AWS credentials, rollback handling and verbosity options."""
    options = [
        click.option(
            "--aws-region", envvar="AWS_REGION", required=True, help="AWS region"
        ),
        click.option(
            "--aws-access-key-id", envvar="AWS_ACCESS_KEY_ID", help="AWS access key ID"
        ),
        click.option(
            "--aws-secret-access-key",
            envvar="AWS_SECRET_ACCESS_KEY",
            help="AWS secret access key",
        ),
        click.option("--profile", envvar="AWS_PROFILE", help="AWS profile to use"),
        click.option(
            "--force-when-rolled-back",
            is_flag=True,
            hidden="--show-hidden" not in sys.argv,
            help="Force delete stack when rolled back",
        ),
        click.option("--verbose", "-v", is_flag=True, help="Show verbose output"),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def build_settings(options: Dict[str, Any]) -> AwsSettings:
    return AwsSettings.from_env(
        region=options.get("aws_region"),
        access_key_id=options.get("aws_access_key_id"),
        secret_access_key=options.get("aws_secret_access_key"),
        profile=options.get("profile"),
    )


def echo_outputs(result: DeploymentResult) -> None:
    if result.outputs:
        click.echo("\nOutputs:")
        for key, value in result.outputs.items():
            click.echo(f"  {key}: {value}")


def run_install(
    stack_name: str,
    template_path: Union[str, Path],
    brand_name: Optional[str],
    values: Dict[str, Any],
    options: Dict[str, Any],
) -> None:
    """Run an install from parsed command line options, exiting 1 on failure."""
    verbose = bool(options.get("verbose"))
    configure_logging(verbose)
    config = InstallerConfig(
        stack_name=stack_name,
        template_path=Path(template_path),
        brand_name=brand_name,
        force_when_rolled_back=bool(options.get("force_when_rolled_back")),
    )
    try:
        installer = StackInstaller(
            config,
            settings=build_settings(options),
            progress=ConsoleProgressLogger(),
            confirm=confirm,
        )
        result = asyncio.run(installer.install(values))
    except Exception as e:
        handle_error(e, verbose)
        return

    if result.changed:
        echo_outputs(result)


def run_uninstall(
    stack_name: str, brand_name: Optional[str], options: Dict[str, Any]
) -> None:
    """Run an uninstall from parsed command line options, exiting 1 on failure."""
    verbose = bool(options.get("verbose"))
    configure_logging(verbose)
    config = InstallerConfig(stack_name=stack_name, brand_name=brand_name)
    try:
        installer = StackInstaller(
            config, settings=build_settings(options), progress=ConsoleProgressLogger()
        )
        asyncio.run(installer.uninstall())
    except Exception as e:
        handle_error(e, verbose)


def parameter_options(schema: List[ParameterSpec], prefix: str) -> List[click.Option]:
    """One ``--kebab-case`` option per template parameter.

    Values can also come from ``<PREFIX>_<PARAMETER>`` environment variables.
    """
    options = []
    for spec in schema:
        kwargs: Dict[str, Any] = {
            "help": spec.description,
            "required": spec.required,
            "envvar": f"{prefix}_{env_prefix(spec.name)}",
        }
        # An explicit default=None counts as a default and disables required
        if spec.default is not None:
            kwargs["default"] = spec.default
            kwargs["show_default"] = True
        options.append(click.Option([f"--{spec.option_name}"], **kwargs))
    return options


STANDARD_OPTION_NAMES = {
    "aws_region",
    "aws_access_key_id",
    "aws_secret_access_key",
    "profile",
    "force_when_rolled_back",
    "verbose",
}


def split_options(kwargs: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Separate standard options from template parameter values."""
    options = {k: v for k, v in kwargs.items() if k in STANDARD_OPTION_NAMES}
    values = {k: v for k, v in kwargs.items() if k not in STANDARD_OPTION_NAMES}
    return {"options": options, "values": values}


def create_cli(
    stack_name: str,
    template_path: Union[str, Path],
    brand_name: Optional[str] = None,
) -> click.Group:
    """
    Build an ``install``/``uninstall`` CLI dedicated to one stack.

    Template parameters become command line options of ``install``.

    Args:
        stack_name: CloudFormation stack name
        template_path: Path to the stack template
        brand_name: Human readable name used in help and progress output

    Returns:
        A click group, ready to be called
    """
    config = InstallerConfig(
        stack_name=stack_name, template_path=template_path, brand_name=brand_name
    )
    display_name = config.display_name
    schema = get_parameter_schema(load_template(read_template(config.template_path)))

    @click.group(help=f"Install or uninstall {display_name}.")
    @click.version_option(package_name="aws-install")
    def main() -> None:
        pass

    @main.command(help=f"Install {display_name}")
    @standard_options
    def install(**kwargs: Any) -> None:
        parsed = split_options(kwargs)
        run_install(stack_name, template_path, brand_name, parsed["values"], parsed["options"])

    install.params[:0] = parameter_options(schema, config.env_prefix)

    @main.command(help=f"Uninstall {display_name}")
    @standard_options
    def uninstall(**kwargs: Any) -> None:
        run_uninstall(stack_name, brand_name, kwargs)

    return main
