# SPDX-License-Identifier: MIT

from yaml import dump

try:
    from yaml import CDumper as Dumper
except ImportError:
    from yaml import Dumper  # type: ignore[assignment]

from plangrid import configuration
from plangrid.logger import configure_logging


def initialize() -> configuration.Configuration:
    configuration.CONFIG_PATH.mkdir(parents=True, exist_ok=True)
    __ensure_config_file()

    config = configuration.load_configuration()
    configuration.load_data_path_configuration(config)
    configuration.DATA_PATH.mkdir(parents=True, exist_ok=True)

    configure_logging(config["log_level"])
    return config


def __ensure_config_file() -> None:
    if not configuration.APP_CONFIG_PATH.is_file():
        configuration.APP_CONFIG_PATH.write_text(
            dump(configuration.get_default_configuration(), Dumper=Dumper)
        )
