"""
Source resolution: merge process environment, file values and defaults.
"""

from typing import Dict, Mapping, Optional

from ...core.domain.schema import FieldSchema
from ...core.domain.values import RawValue, ValueOrigin
from ...core.interfaces.environment import IEnvironmentSource
from .parser import stringify_value


class SourceResolver:
    """
    Produce one ``RawValue`` per schema field.

    Precedence: process environment (unless skipped), then the env file,
    then the stringified schema default. An empty string counts as "not
    provided" by that source.
    """

    def resolve(
        self,
        schema: Mapping[str, FieldSchema],
        file_map: Mapping[str, str],
        environment: Optional[IEnvironmentSource],
        skip_os_env: bool = False
    ) -> Dict[str, RawValue]:
        return {
            name: self.resolve_field(field, file_map, environment, skip_os_env)
            for name, field in schema.items()
        }

    def resolve_field(
        self,
        field: FieldSchema,
        file_map: Mapping[str, str],
        environment: Optional[IEnvironmentSource],
        skip_os_env: bool = False
    ) -> RawValue:
        if not skip_os_env and environment is not None:
            env_value = environment.read(field.name)
            if env_value is not None and env_value != "":
                return RawValue(env_value, ValueOrigin.PROCESS_ENVIRONMENT)

        file_value = file_map.get(field.name)
        if file_value is not None and file_value != "":
            return RawValue(file_value, ValueOrigin.FILE)

        if field.has_default and field.default is not None:
            return RawValue(stringify_value(field.default), ValueOrigin.DEFAULT)

        return RawValue.absent()
