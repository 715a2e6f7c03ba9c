"""CloudFormation template loading, dumping and parameter extraction."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ..naming import kebab_case

logger = logging.getLogger(__name__)

TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class CloudFormationYAMLLoader(yaml.SafeLoader):
    """YAML loader that expands CloudFormation short form intrinsic functions.

    ``!Ref Foo`` becomes ``{"Ref": "Foo"}``, ``!GetAtt Foo.Arn`` becomes
    ``{"Fn::GetAtt": ["Foo", "Arn"]}`` and every other ``!Name`` becomes
    ``{"Fn::Name": ...}``, so the result can be dumped as plain YAML.
    """


# Keep dates such as AWSTemplateFormatVersion as strings
CloudFormationYAMLLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _construct_node(loader: yaml.SafeLoader, node: yaml.Node) -> Any:
    if isinstance(node, yaml.ScalarNode):
        return loader.construct_scalar(node)
    elif isinstance(node, yaml.SequenceNode):
        return loader.construct_sequence(node, deep=True)
    elif isinstance(node, yaml.MappingNode):
        return loader.construct_mapping(node, deep=True)
    raise yaml.constructor.ConstructorError(
        None, None, f"could not determine a constructor for the tag {node.tag}", node.start_mark
    )


def cfn_tag_constructor(loader: yaml.SafeLoader, tag_suffix: str, node: yaml.Node) -> Dict[str, Any]:
    """Generic constructor for CloudFormation tags."""
    value = _construct_node(loader, node)

    if tag_suffix == "Ref":
        return {"Ref": value}
    if tag_suffix == "Condition":
        return {"Condition": value}
    if tag_suffix == "GetAtt" and isinstance(value, str):
        resource, _, attribute = value.partition(".")
        return {"Fn::GetAtt": [resource, attribute]}
    return {f"Fn::{tag_suffix}": value}


cfn_tags = [
    "Ref", "GetAtt", "GetAZs", "ImportValue", "Join", "Select",
    "Split", "Sub", "Transform", "Base64", "Cidr", "FindInMap",
    "Condition", "Equals", "If", "Not", "And", "Or", "Length", "ToJsonString",
]

for tag in cfn_tags:
    CloudFormationYAMLLoader.add_constructor(
        f"!{tag}",
        lambda loader, node, tag=tag: cfn_tag_constructor(loader, tag, node),
    )


class CloudFormationYAMLDumper(yaml.SafeDumper):
    """Dumper that keeps mapping order and never emits aliases."""

    def ignore_aliases(self, data: Any) -> bool:
        return True


def load_template(body: str) -> Dict[str, Any]:
    """Parse a YAML (or JSON) template body."""
    template = yaml.load(body, Loader=CloudFormationYAMLLoader)
    if not isinstance(template, dict):
        raise ValueError("Template must be a mapping")
    return template


def dump_template(template: Dict[str, Any]) -> str:
    return yaml.dump(
        template,
        Dumper=CloudFormationYAMLDumper,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )


def read_template(template_path: Union[str, Path]) -> str:
    with open(template_path, "r", encoding="utf-8") as f:
        return f.read()


def parameter_value(value: Any) -> str:
    """Render a YAML scalar the way CloudFormation expects (``true``, not ``True``)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass
class ParameterSpec:
    """A template parameter exposed as a command line option."""

    name: str
    option_name: str
    description: Optional[str] = None
    default: Optional[str] = None

    @property
    def required(self) -> bool:
        return self.default is None


def get_parameter_schema(template: Dict[str, Any]) -> List[ParameterSpec]:
    """Describe the template's ``Parameters`` section."""
    schema = []
    for name, definition in (template.get("Parameters") or {}).items():
        definition = definition or {}
        default = definition.get("Default")
        schema.append(
            ParameterSpec(
                name=name,
                option_name=kebab_case(name),
                description=definition.get("Description"),
                default=None if default is None else parameter_value(default),
            )
        )
    return schema


def get_parameters(
    schema: List[ParameterSpec], values: Dict[str, Any]
) -> List[Dict[str, str]]:
    """Build CloudFormation ``Parameters`` from option values.

    ``values`` may be keyed by parameter name or by option name (kebab or
    snake case). Parameters without a value are left to their template
    default.
    """
    parameters = []
    for spec in schema:
        value = None
        for key in (spec.name, spec.option_name, spec.option_name.replace("-", "_")):
            if values.get(key) is not None:
                value = values[key]
                break
        if value is None:
            value = spec.default
        if value is None:
            logger.debug(f"No value for template parameter {spec.name}")
            continue
        parameters.append(
            {"ParameterKey": spec.name, "ParameterValue": parameter_value(value)}
        )
    return parameters
