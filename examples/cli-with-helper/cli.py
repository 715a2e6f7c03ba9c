#!/usr/bin/env python3
"""
Example stack CLI built with create_cli.

Usage:
    AWS_REGION=eu-west-1 python examples/cli-with-helper/cli.py install --stage-name dev
    AWS_REGION=eu-west-1 python examples/cli-with-helper/cli.py uninstall
"""

from pathlib import Path

from aws_install import create_cli

main = create_cli(
    stack_name="aws-install-example-cli-with-helper",
    template_path=Path(__file__).parent / "stack.yml",
    brand_name="Example (CLI with helper)",
)

if __name__ == "__main__":
    main()
