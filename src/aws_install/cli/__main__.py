#!/usr/bin/env python3
"""Main CLI entry point: install or uninstall any template as a named stack."""

from typing import Any, Dict, Optional, Tuple

import click

from .app import run_install, run_uninstall, split_options, standard_options


def parse_parameters(values: Tuple[str, ...]) -> Dict[str, str]:
    """Turn ``Key=Value`` pairs into a mapping."""
    parsed = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Expected KEY=VALUE, got '{item}'", param_hint="--parameter")
        parsed[key.strip()] = value
    return parsed


@click.group()
@click.version_option(package_name="aws-install")
@click.option("--stack-name", "-s", required=True, help="CloudFormation stack name")
@click.option("--brand-name", help="Name shown in progress output")
@click.pass_context
def cli(ctx: click.Context, stack_name: str, brand_name: Optional[str]) -> None:
    """Install and uninstall a CloudFormation stack through change sets."""
    ctx.obj = {"stack_name": stack_name, "brand_name": brand_name}


@cli.command()
@click.option(
    "--template",
    "-t",
    "template_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to the CloudFormation template",
)
@click.option(
    "--parameter",
    "-p",
    "parameters",
    multiple=True,
    help="Template parameter as KEY=VALUE (repeatable)",
)
@standard_options
@click.pass_obj
def install(obj: Dict[str, Any], template_path: str, parameters: Tuple[str, ...], **kwargs: Any) -> None:
    """Create or update the stack from a template."""
    values = parse_parameters(parameters)
    options = split_options(kwargs)["options"]
    run_install(obj["stack_name"], template_path, obj["brand_name"], values, options)


@cli.command()
@standard_options
@click.pass_obj
def uninstall(obj: Dict[str, Any], **kwargs: Any) -> None:
    """Delete the stack and its asset bucket."""
    run_uninstall(obj["stack_name"], obj["brand_name"], kwargs)


if __name__ == "__main__":
    cli()
