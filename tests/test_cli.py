"""
Tests for the command line interfaces.
"""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import click
import pytest
from click.testing import CliRunner

from aws_install.cli import create_cli
from aws_install.cli.__main__ import cli, parse_parameters
from aws_install.cli.app import split_options
from aws_install.deployment import DeploymentResult, DeploymentStatus

TEMPLATE = """\
Parameters:
  StageName:
    Type: String
    Description: Deployment stage
  MemorySize:
    Type: Number
    Default: 128
Resources:
  Topic:
    Type: AWS::SNS::Topic
"""


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def template_path(tmp_path: Path) -> Path:
    path = tmp_path / "stack.yml"
    path.write_text(TEMPLATE)
    return path


@pytest.fixture
def installer_cls():
    """StackInstaller replaced by a mock whose flows succeed."""
    with patch("aws_install.cli.app.StackInstaller") as installer_cls:
        installer = installer_cls.return_value
        installer.install = AsyncMock(
            return_value=DeploymentResult(
                status=DeploymentStatus.SUCCESS,
                stack_name="test-stack",
                outputs={"TopicArn": "arn:aws:sns:us-east-1:123456789012:topic"},
            )
        )
        installer.uninstall = AsyncMock(
            return_value=DeploymentResult(
                status=DeploymentStatus.NOTHING_TO_UNINSTALL, stack_name="test-stack"
            )
        )
        yield installer_cls


class TestCreateCli:
    """Test per-stack CLIs built from a template."""

    def test_parameters_become_options(self, runner, template_path) -> None:
        main = create_cli("test-stack", template_path, "Hello World")

        result = runner.invoke(main, ["install", "--help"])

        assert result.exit_code == 0
        assert "--stage-name" in result.output
        assert "--memory-size" in result.output
        assert "Deployment stage" in result.output
        assert "--aws-region" in result.output
        assert "--force-when-rolled-back" not in result.output

    def test_install(self, runner, template_path, installer_cls) -> None:
        main = create_cli("test-stack", template_path, "Hello World")

        result = runner.invoke(
            main, ["install", "--stage-name", "dev", "--aws-region", "eu-west-1"]
        )

        assert result.exit_code == 0, result.output
        config = installer_cls.call_args.args[0]
        assert config.stack_name == "test-stack"
        assert config.display_name == "Hello World"
        assert config.template_path == Path(template_path)
        assert installer_cls.call_args.kwargs["settings"].region == "eu-west-1"
        values = installer_cls.return_value.install.call_args.args[0]
        assert values == {"stage_name": "dev", "memory_size": "128"}
        assert "TopicArn: arn:aws:sns:us-east-1:123456789012:topic" in result.output

    def test_no_changes_skips_outputs(self, runner, template_path, installer_cls) -> None:
        installer_cls.return_value.install.return_value = DeploymentResult(
            status=DeploymentStatus.NO_CHANGES,
            stack_name="test-stack",
            outputs={"TopicArn": "arn:aws:sns:us-east-1:123456789012:topic"},
        )
        main = create_cli("test-stack", template_path)

        result = runner.invoke(
            main, ["install", "--stage-name", "dev", "--aws-region", "us-east-1"]
        )

        assert result.exit_code == 0, result.output
        assert "Outputs:" not in result.output

    def test_parameter_from_environment(self, runner, template_path, installer_cls) -> None:
        """Test parameters can be supplied as <STACK>_<PARAMETER> variables."""
        main = create_cli("test-stack", template_path)

        result = runner.invoke(
            main,
            ["install"],
            env={"TEST_STACK_STAGE_NAME": "prod", "AWS_REGION": "us-east-1"},
        )

        assert result.exit_code == 0, result.output
        values = installer_cls.return_value.install.call_args.args[0]
        assert values["stage_name"] == "prod"

    def test_missing_required_parameter(self, runner, template_path, installer_cls) -> None:
        main = create_cli("test-stack", template_path)

        result = runner.invoke(main, ["install", "--aws-region", "us-east-1"])

        assert result.exit_code == 2
        assert "--stage-name" in result.output
        installer_cls.assert_not_called()

    def test_missing_region(self, runner, template_path, installer_cls) -> None:
        main = create_cli("test-stack", template_path)

        result = runner.invoke(main, ["uninstall"], env={"AWS_REGION": ""})

        assert result.exit_code == 2
        installer_cls.assert_not_called()

    def test_force_flag(self, runner, template_path, installer_cls) -> None:
        main = create_cli("test-stack", template_path)

        result = runner.invoke(
            main,
            ["install", "--stage-name", "dev", "--aws-region", "us-east-1", "--force-when-rolled-back"],
        )

        assert result.exit_code == 0, result.output
        assert installer_cls.call_args.args[0].force_when_rolled_back is True

    def test_uninstall_nothing(self, runner, template_path, installer_cls) -> None:
        main = create_cli("test-stack", template_path)

        result = runner.invoke(main, ["uninstall", "--aws-region", "us-east-1"])

        assert result.exit_code == 0, result.output
        installer_cls.return_value.uninstall.assert_awaited_once()

    def test_error_exits_1(self, runner, template_path, installer_cls) -> None:
        """Test failures print a short message and exit 1."""
        installer_cls.return_value.install.side_effect = RuntimeError("boom")
        main = create_cli("test-stack", template_path)

        result = runner.invoke(
            main, ["install", "--stage-name", "dev", "--aws-region", "us-east-1"]
        )

        assert result.exit_code == 1
        assert "Error: boom" in result.output
        assert "Traceback" not in result.output

    def test_verbose_error_shows_traceback(self, runner, template_path, installer_cls) -> None:
        installer_cls.return_value.uninstall.side_effect = RuntimeError("boom")
        main = create_cli("test-stack", template_path)

        result = runner.invoke(main, ["uninstall", "--aws-region", "us-east-1", "-v"])

        assert result.exit_code == 1
        assert "Traceback" in result.output
        assert "RuntimeError: boom" in result.output


class TestGenericCli:
    """Test the aws-install entry point."""

    def test_install(self, runner, template_path, installer_cls) -> None:
        result = runner.invoke(
            cli,
            [
                "--stack-name",
                "my-stack",
                "install",
                "--template",
                str(template_path),
                "-p",
                "StageName=dev",
                "--aws-region",
                "us-east-1",
            ],
        )

        assert result.exit_code == 0, result.output
        assert installer_cls.call_args.args[0].stack_name == "my-stack"
        installer_cls.return_value.install.assert_awaited_once_with({"StageName": "dev"})

    def test_install_bad_parameter(self, runner, template_path, installer_cls) -> None:
        result = runner.invoke(
            cli,
            [
                "-s",
                "my-stack",
                "install",
                "-t",
                str(template_path),
                "-p",
                "StageName",
                "--aws-region",
                "us-east-1",
            ],
        )

        assert result.exit_code == 2
        assert "KEY=VALUE" in result.output
        installer_cls.assert_not_called()

    def test_install_missing_template(self, runner, tmp_path, installer_cls) -> None:
        result = runner.invoke(
            cli,
            ["-s", "my-stack", "install", "-t", str(tmp_path / "missing.yml"), "--aws-region", "us-east-1"],
        )

        assert result.exit_code == 2
        installer_cls.assert_not_called()

    def test_uninstall(self, runner, installer_cls) -> None:
        result = runner.invoke(
            cli, ["-s", "my-stack", "--brand-name", "My App", "uninstall", "--aws-region", "us-east-1"]
        )

        assert result.exit_code == 0, result.output
        assert installer_cls.call_args.args[0].display_name == "My App"


class TestHelpers:
    """Test option parsing helpers."""

    def test_parse_parameters(self) -> None:
        assert parse_parameters(("StageName=dev", "Url=https://x?a=b")) == {
            "StageName": "dev",
            "Url": "https://x?a=b",
        }

    def test_parse_parameters_rejects_bare_keys(self) -> None:
        with pytest.raises(click.BadParameter):
            parse_parameters(("StageName",))

    def test_split_options(self) -> None:
        parsed = split_options({"aws_region": "us-east-1", "verbose": True, "stage_name": "dev"})

        assert parsed["options"] == {"aws_region": "us-east-1", "verbose": True}
        assert parsed["values"] == {"stage_name": "dev"}
