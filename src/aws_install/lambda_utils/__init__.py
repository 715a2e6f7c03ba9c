"""Lambda asset packaging utilities."""

from .bucket import BucketProvisioner
from .packager import AssetPackager
from .template import ParameterSpec, get_parameter_schema, get_parameters, load_template

__all__ = [
    "AssetPackager",
    "BucketProvisioner",
    "ParameterSpec",
    "get_parameter_schema",
    "get_parameters",
    "load_template",
]
