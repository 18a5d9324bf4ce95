# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import os
import re
from collections.abc import Mapping
from typing import Any, ClassVar, Literal

from ._identity import AWSCredentialIdentity, Credentials
from .exceptions import ConfigurationError

SOURCE_CONSTRUCTOR = "constructor"
SOURCE_ENVIRONMENT = "environment"
SOURCE_DEFAULT = "default"
SOURCE_IN_CODE_UPDATE = "in_code_update"

SourceType = Literal["constructor", "environment", "default", "in_code_update"]

_REGION_RE = re.compile(r"^[a-z]{2}(-[a-z]+)+-\d+$")
_SERVICE_RE = re.compile(r"^[a-z0-9][a-z0-9-]*$")


class ConfigValue:
    """Configuration value with metadata about its source"""

    def __init__(self, value: Any, source: SourceType):
        self.value = value
        self.source = source

    def __repr__(self) -> str:
        return f"ConfigValue(source={self.source!r})"


class SignerConfig:
    """
    Signer configuration with precedence-based resolution.

    Each field resolves from the constructor first, then the environment, then its
    default. The sentinel value (...) distinguishes "not provided" from "explicitly
    set to None", so passing ``region=None`` disables the environment lookup.

    ``service`` is the signing name used in the credential scope. ``endpoint_prefix``
    is the host label the service is served from and defaults to ``service``; SES,
    for example, signs as ``ses`` but is reached at ``email.<region>.amazonaws.com``.
    """

    CONFIG_FIELDS: ClassVar[dict[str, dict[str, Any]]] = {
        "aws_access_key_id": {
            "env_vars": ("AWS_ACCESS_KEY_ID",),
            "default": None,
        },
        "aws_secret_access_key": {
            "env_vars": ("AWS_SECRET_ACCESS_KEY",),
            "default": None,
        },
        "region": {
            "env_vars": ("AWS_REGION", "AWS_DEFAULT_REGION"),
            "default": None,
        },
        "service": {
            "default": None,
        },
        "endpoint_prefix": {
            "default": None,
        },
    }

    def __init__(
        self,
        *,
        aws_access_key_id: str | None = ...,  # type: ignore[assignment]
        aws_secret_access_key: str | None = ...,  # type: ignore[assignment]
        region: str | None = ...,  # type: ignore[assignment]
        service: str | None = ...,  # type: ignore[assignment]
        endpoint_prefix: str | None = ...,  # type: ignore[assignment]
        environ: Mapping[str, str] | None = None,
    ):
        """
        :param environ: The environment to resolve from. Defaults to ``os.environ``.
        """
        constructor_values = {
            k: v
            for k, v in locals().items()
            if k not in ("self", "environ") and v is not ...
        }
        env_values = os.environ if environ is None else environ
        for field_name, field_info in self.CONFIG_FIELDS.items():
            resolved = self._resolve_field(
                field_name, field_info, constructor_values, env_values
            )
            setattr(self, f"_{field_name}", resolved)

    def _resolve_field(
        self,
        field_name: str,
        field_info: dict[str, Any],
        constructor_values: dict[str, Any],
        env_values: Mapping[str, str],
    ) -> ConfigValue:
        if field_name in constructor_values:
            return ConfigValue(constructor_values[field_name], SOURCE_CONSTRUCTOR)
        for env_var in field_info.get("env_vars", ()):
            if env_values.get(env_var):
                return ConfigValue(env_values[env_var], SOURCE_ENVIRONMENT)
        return ConfigValue(field_info["default"], SOURCE_DEFAULT)

    def get_config_value_object(self, field_name: str) -> ConfigValue:
        """Get the raw ConfigValue object for a field"""
        if field_name not in self.CONFIG_FIELDS:
            raise KeyError(field_name)
        return getattr(self, f"_{field_name}")

    def validate(self) -> None:
        """Check every field required for signing.

        :raises ConfigurationError: If a credential field is missing or empty, or the
            region or service is not a valid name.
        """
        for field_name in ("aws_access_key_id", "aws_secret_access_key"):
            value = getattr(self, field_name)
            if not isinstance(value, str) or not value:
                raise ConfigurationError(f"{field_name} must be a non-empty string.")

        region = self.region
        if not isinstance(region, str) or not _REGION_RE.match(region):
            raise ConfigurationError(f"Invalid region: {region!r}")

        for field_name in ("service", "endpoint_prefix"):
            value = getattr(self, field_name)
            if not isinstance(value, str) or not _SERVICE_RE.match(value):
                raise ConfigurationError(f"Invalid {field_name}: {value!r}")

    def credentials(self) -> Credentials:
        """Validate the configuration and return the credentials it describes."""
        self.validate()
        return Credentials(
            identity=AWSCredentialIdentity(
                access_key_id=self.aws_access_key_id,  # type: ignore[arg-type]
                secret_access_key=self.aws_secret_access_key,  # type: ignore[arg-type]
            ),
            region=self.region,  # type: ignore[arg-type]
            service=self.service,  # type: ignore[arg-type]
        )

    @property
    def host(self) -> str:
        return f"{self.endpoint_prefix}.{self.region}.amazonaws.com"

    @property
    def aws_access_key_id(self) -> str | None:
        return self._aws_access_key_id.value

    @aws_access_key_id.setter
    def aws_access_key_id(self, value: str | None) -> None:
        self._aws_access_key_id = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def aws_secret_access_key(self) -> str | None:
        return self._aws_secret_access_key.value

    @aws_secret_access_key.setter
    def aws_secret_access_key(self, value: str | None) -> None:
        self._aws_secret_access_key = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def region(self) -> str | None:
        return self._region.value

    @region.setter
    def region(self, value: str | None) -> None:
        self._region = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def service(self) -> str | None:
        return self._service.value

    @service.setter
    def service(self, value: str | None) -> None:
        self._service = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def endpoint_prefix(self) -> str | None:
        if self._endpoint_prefix.value is None:
            return self.service
        return self._endpoint_prefix.value

    @endpoint_prefix.setter
    def endpoint_prefix(self, value: str | None) -> None:
        self._endpoint_prefix = ConfigValue(value, SOURCE_IN_CODE_UPDATE)
