"""
ctv settings, layered as defaults < config file < explicit cli options
"""
import json
import logging
import os

try:
    import tomllib

    HAS_TOMLLIB = True
except ImportError:
    HAS_TOMLLIB = False

log = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = os.path.join(os.path.expanduser("~"), ".ctv")

DEFAULTS = {
    "log_level": "error",
    "input_format": "hex",
    "output_format": "hex",
}
LOG_LEVELS = ("trace", "debug", "info", "warning", "error")
FORMATS = ("raw", "bin", "hex")


class Config(object):
    """
    Settings shared by all subcommands

    Only the keys in DEFAULTS are kept, anything else passed in (e.g. the full
    argparse namespace) is ignored.
    """

    def __init__(self, **kwargs):
        for option, default in DEFAULTS.items():
            setattr(self, option, kwargs.get(option, default))
        self._validate()

    def _validate(self):
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {self.log_level!r}")
        for option in ["input_format", "output_format"]:
            if getattr(self, option) not in FORMATS:
                raise ValueError(
                    f"{option} must be one of {FORMATS}, got {getattr(self, option)!r}"
                )

    def config_file(self, config_dir: str = DEFAULT_CONFIG_DIR):
        """
        Path of the config file in config_dir, config.toml preferred over
        config.json, or None
        """
        toml_file = os.path.join(config_dir, "config.toml")
        json_file = os.path.join(config_dir, "config.json")
        if HAS_TOMLLIB and os.path.exists(toml_file):
            return toml_file
        if os.path.exists(json_file):
            return json_file
        return None

    def load_config(self, config_dir: str = DEFAULT_CONFIG_DIR):
        filename = self.config_file(config_dir=config_dir)
        if not filename:
            return
        if filename.endswith(".toml"):
            with open(filename, "rb") as config_file:
                settings = tomllib.load(config_file)
        else:
            with open(filename) as config_file:
                settings = json.load(config_file)
        unknown = sorted(set(settings) - set(DEFAULTS))
        if unknown:
            log.warning(f"ignoring unknown options in {filename}: {', '.join(unknown)}")
        self.update(**settings)

    def update(self, **kwargs):
        """
        Update with kwargs, keys not in DEFAULTS are ignored
        """
        settings = {option: getattr(self, option) for option in DEFAULTS}
        settings.update({key: kwargs[key] for key in DEFAULTS if key in kwargs})
        self.__init__(**settings)
