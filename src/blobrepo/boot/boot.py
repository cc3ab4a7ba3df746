import logging
import os
import pathlib
import zirconium as zr
import zrlog
import blobrepo


def _config_paths():
    yield pathlib.Path(".").absolute()
    yield pathlib.Path("~").expanduser().absolute()
    custom_config_path = os.environ.get("BLOBREPO_CONFIG_SEARCH_PATHS", "./config")
    if custom_config_path:
        paths = custom_config_path.split(";")
        for path in paths:
            if path:
                p = pathlib.Path(path).absolute()
                if p.exists():
                    yield p


def init_blobrepo(app_type: str = "app"):
    # The SDK logs every HTTP request at INFO
    logging.getLogger("azure.core.pipeline.policies.http_logging_policy").setLevel(logging.WARNING)

    @zr.configure
    def set_config(app_config: zr.ApplicationConfig):
        config_paths = [x for x in _config_paths()]
        logging.getLogger("blobrepo.boot").info(f"Config Search Paths: {';'.join(str(x) for x in config_paths)}")
        for path in config_paths:
            app_config.register_default_file(path / ".blobrepo.defaults.toml")
            app_config.register_default_file(path / f".blobrepo.{app_type}.defaults.toml")
            app_config.register_file(path / ".blobrepo.toml")
            app_config.register_file(path / f".blobrepo.{app_type}.toml")
    zrlog.set_default_extra("app_type", app_type)
    zrlog.set_default_extra("version", blobrepo.__VERSION__)
    zrlog.init_logging()
