from typing import Dict, Type, List, Optional
import importlib
import logging
import pkgutil
from pathlib import Path

from .trace import TraceConfig, TraceKind

logger = logging.getLogger(__name__)


class ConfigRegistry:
    _instance: Optional["ConfigRegistry"] = None
    _configs: Dict[str, Type[TraceConfig]] = {}
    _repeated: Dict[TraceKind, Type[TraceConfig]] = {}

    def __new__(cls) -> "ConfigRegistry":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def register(cls, tag: str, config_class: Type[TraceConfig], repeated: bool = False) -> None:
        if not isinstance(config_class, type) or not issubclass(config_class, TraceConfig):
            raise ValueError(f"Config {config_class} must inherit from TraceConfig")
        existing = cls._configs.get(tag)
        if existing is not None and existing is not config_class:
            raise ValueError(f"Tag {tag!r} is already registered to {existing.__name__}")
        config_class.tag = tag
        cls._configs[tag] = config_class
        if repeated:
            cls._repeated[config_class.kind] = config_class
        logger.debug("Registered %s for %s traces", tag, config_class.kind.value)

    @classmethod
    def get_config(cls, tag: str) -> Optional[Type[TraceConfig]]:
        return cls._configs.get(tag)

    @classmethod
    def get_repeated_config(cls, kind: TraceKind) -> Type[TraceConfig]:
        config_class = cls._repeated.get(kind)
        if config_class is None:
            raise ValueError(f"No repeated pattern config registered for {kind.value} traces")
        return config_class

    @classmethod
    def list_configs(cls, kind: Optional[TraceKind] = None) -> List[str]:
        return [
            tag for tag, config_class in cls._configs.items()
            if kind is None or config_class.kind == kind
        ]

    @classmethod
    def create_config(cls, tag: str, **fields) -> TraceConfig:
        config_class = cls.get_config(tag)
        if config_class is None:
            raise ValueError(f"Unknown trace config: {tag}")
        return config_class(**fields)

    @classmethod
    def discover_models(cls, package_path: str = "netemtrace.models") -> None:
        package = importlib.import_module(package_path)
        package_dir = Path(package.__file__).parent

        # Walk through all Python modules in the models package
        for _, module_name, _ in pkgutil.iter_modules([str(package_dir)]):
            module_path = f"{package_path}.{module_name}"
            try:
                importlib.import_module(module_path)
            except ImportError as e:
                logger.warning("Skipping trace models in %s: %s", module_path, e)


def register_config(tag: str, repeated: bool = False):
    def decorator(cls: Type[TraceConfig]) -> Type[TraceConfig]:
        ConfigRegistry.register(tag, cls, repeated=repeated)
        return cls
    return decorator
