import logging
from collections.abc import Callable
from sys import modules
from typing import Any, get_type_hints

from pydantic import create_model
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, SettingsConfigDict


def _is_setting_name(name: str) -> bool:
    return name[:1] != '_' and name.isupper()


def pydantic_settings_integration(
    caller_name: str,
    caller_globals: dict[str, Any],
    /,
    config: SettingsConfigDict | None = None,
    name_filter: Callable[[str], bool] = _is_setting_name,
) -> frozenset[str]:
    """
    Load the UPPER_CASE globals of a settings module from the environment.

    The module globals act as the field declarations: their annotations are the
    field types and their values are the defaults. A dynamic pydantic-settings
    model validates the environment (and .env file) against them, and the
    validated values are written back into the module globals.

    Returns the names whose values were overridden.
    """
    settings = {k: v for k, v in caller_globals.items() if name_filter(k)}
    if not settings:
        logging.warning('No settings found in %s matching the filter', caller_name)
        return frozenset()

    type_hints = get_type_hints(modules[caller_name], caller_globals)
    fields: dict[str, tuple[Any, Any]] = {
        name: (
            type_hints.get(name, Any if isinstance(value, FieldInfo) else type(value)),
            value,
        )
        for name, value in settings.items()
    }

    base = type(
        f'{caller_name}_SettingsBase',
        (BaseSettings,),
        {'model_config': config if config is not None else BaseSettings.model_config},
    )
    instance = create_model(f'{caller_name}_Settings', __base__=base, **fields)()  # type: ignore

    overridden = instance.model_fields_set
    for name in settings:
        caller_globals[name] = getattr(instance, name)

    if overridden:
        logging.debug('Settings overridden from environment: %s', ', '.join(sorted(overridden)))
    return frozenset(overridden)
