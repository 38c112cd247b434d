import json
from pathlib import Path
from typing import Any, List, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from base32_decoder import FormatError, decode_base32


MAX_T0_REPRESENTATION = "2000-01-01T00:00:00Z"
MAX_T0 = 946684800

VALID_DIGITS = (6, 7, 8)
Algorithm = Literal["sha1", "sha256", "sha512"]
VALID_ALGORITHMS = get_args(Algorithm)

SECRET_ENCODING_STRING = "string"
SECRET_ENCODING_BASE32 = "base32"
SecretEncoding = Literal["string", "base32"]
VALID_SECRET_ENCODINGS = get_args(SecretEncoding)

CONFIG_FILE_SPECIFIER = "@"


def _one_of(values) -> str:
    return "one of: " + ", ".join(json.dumps(v) for v in values)


FIELD_DESCRIPTIONS = {
    "t0": f"an integer from 0 to {MAX_T0}; ({MAX_T0} represents {MAX_T0_REPRESENTATION})",
    "period": "a positive integer",
    "digits": _one_of(VALID_DIGITS),
    "algorithm": _one_of(VALID_ALGORITHMS),
    "secret_encoding": _one_of(VALID_SECRET_ENCODINGS),
    "secret": "a non-empty string",
}


class ConfigError(ValueError):
    """Configuration is missing, malformed or has unknown keys."""


def secret_to_bytes(secret: str, secret_encoding: str, trace=None) -> bytes:
    if secret_encoding == SECRET_ENCODING_BASE32:
        return decode_base32(secret, trace=trace)
    return secret.encode("utf-8")


class Configuration(BaseModel):
    """Validated TOTP parameters (see rfc6238). Immutable once built."""

    model_config = ConfigDict(strict=True, frozen=True, extra="forbid")

    t0: int = Field(default=0, ge=0, le=MAX_T0)
    period: int = Field(default=30, gt=0)
    digits: int = 6
    algorithm: Algorithm = "sha1"
    secret_encoding: SecretEncoding = SECRET_ENCODING_BASE32
    secret: str = Field(min_length=1)

    @field_validator("t0", "period", "digits", mode="before")
    @classmethod
    def whole_number_floats(cls, value: Any) -> Any:
        # JSON has one number type; 30.0 means 30
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return value

    @field_validator("digits")
    @classmethod
    def check_digits(cls, value: int) -> int:
        if value not in VALID_DIGITS:
            raise ValueError(f"digits must be one of {VALID_DIGITS}")
        return value

    @model_validator(mode="after")
    def check_secret_bytes(self) -> "Configuration":
        try:
            secret_bytes = self.secret_bytes
        except FormatError as e:
            raise ValueError(f'"secret" must be a valid base32 string: {e}')
        if not secret_bytes:
            raise ValueError('"secret" must decode to at least one byte')
        return self

    @property
    def secret_bytes(self) -> bytes:
        return secret_to_bytes(self.secret, self.secret_encoding)


def _error_message(error: dict) -> str:
    loc = error.get("loc") or ()
    if not loc:
        # model-level check; message is ours
        ctx_error = (error.get("ctx") or {}).get("error")
        return str(ctx_error) if ctx_error is not None else error["msg"]

    key = str(loc[0])
    if error["type"] == "extra_forbidden":
        known = '", "'.join(Configuration.model_fields)
        return f'extraneous key "{key}" is not one of: "{known}"'
    if error["type"] == "missing":
        return f'"{key}" must be specified and must be {FIELD_DESCRIPTIONS[key]}'
    return f'"{key}" must be {FIELD_DESCRIPTIONS[key]}'


def validate_config(raw: Any, default_secret_encoding: str = SECRET_ENCODING_BASE32) -> Configuration:
    """
    Validate a JSON-like object and build a Configuration.

    Args:
        raw: decoded JSON (must be an object)
        default_secret_encoding: encoding assumed when "secret_encoding" is
            absent; "string" for configs written before base32 support

    Returns:
        Configuration with defaults filled in

    Raises:
        ConfigError: with a message naming the offending field
    """
    if not isinstance(raw, dict):
        raise ConfigError("config must be a JSON object")
    if default_secret_encoding not in VALID_SECRET_ENCODINGS:
        raise ConfigError(f"default secret encoding must be {FIELD_DESCRIPTIONS['secret_encoding']}")

    data = dict(raw)
    if "secret_encoding" not in data:
        data["secret_encoding"] = default_secret_encoding

    try:
        return Configuration.model_validate(data)
    except ValidationError as e:
        errors = e.errors()
        # unknown keys are reported before anything else
        errors.sort(key=lambda err: err["type"] != "extra_forbidden")
        raise ConfigError(_error_message(errors[0])) from e


def load_config(config_spec: str, default_secret_encoding: str = SECRET_ENCODING_BASE32) -> Configuration:
    """
    Parse a config given as JSON text, or as "@path" to a JSON file.
    """
    if config_spec.startswith(CONFIG_FILE_SPECIFIER):
        path = Path(config_spec[len(CONFIG_FILE_SPECIFIER):])
        try:
            config_json = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"cannot read config file {path}: {e.strerror or e}") from e
    else:
        config_json = config_spec

    try:
        raw = json.loads(config_json)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid JSON: {e}") from e

    return validate_config(raw, default_secret_encoding=default_secret_encoding)


def describe_fields() -> List[str]:
    """Usage lines for every config key: required flag or default, then allowed values."""
    width = max(len(key) for key in Configuration.model_fields)
    lines = []
    for key, field in Configuration.model_fields.items():
        spacing = " " * (width - len(key))
        if field.is_required():
            status = "(required)"
        else:
            status = f"(default: {json.dumps(field.default)})"
        lines.append(f'    "{key}": {spacing}{status} {FIELD_DESCRIPTIONS[key]}')
    return lines
