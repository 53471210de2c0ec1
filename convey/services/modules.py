"""
Design module loading.

The orchestrator receives design modules through a ModuleLoader, so the
core never touches the filesystem. A design module is any Python module
exposing an optional ``design`` mapping and an optional ``editor``
callable:

    design = {"_id": "_design/users", "views": {...}}

    def editor(doc):
        if doc.get("type") != "user":
            return None
        return EditResult(edited={**doc, "active": True})
"""

import hashlib
import importlib
import importlib.util
from collections.abc import Mapping
from pathlib import Path
from types import ModuleType
from typing import Any, Protocol

import structlog

from convey.exceptions import ModuleLoadError
from convey.models.design import DesignModule

logger = structlog.get_logger(__name__)


class ModuleLoader(Protocol):
    """Resolves a module path into a DesignModule."""

    def load(self, module_path: str) -> DesignModule:
        ...


def design_module_from(module: Any, name: str) -> DesignModule:
    """
    Build a DesignModule from an object with ``design``/``editor`` attributes.

    Raises:
        ModuleLoadError: If the attributes have the wrong shape
    """
    design = getattr(module, "design", None)
    editor = getattr(module, "editor", None)

    if design is not None and not isinstance(design, Mapping):
        raise ModuleLoadError(name, "'design' must be a mapping")
    try:
        return DesignModule(
            design=dict(design) if design is not None else None,
            editor=editor,
            name=name,
        )
    except (TypeError, ValueError) as e:
        raise ModuleLoadError(name, str(e)) from e


class FileModuleLoader:
    """
    Loads design modules from Python files or importable module names.

    Paths are resolved against ``base_dir``; anything that is not an
    existing file or package directory is tried as a dotted module name.

    Usage:
        loader = FileModuleLoader("deploy")
        module = loader.load("designs/users.py")
    """

    def __init__(self, base_dir: str | Path = ".") -> None:
        self.base_dir = Path(base_dir)

    def _resolve(self, module_path: str) -> Path | None:
        path = Path(module_path)
        if not path.is_absolute():
            path = self.base_dir / path
        if path.is_dir():
            path = path / "__init__.py"
        if path.is_file():
            return path
        if path.suffix != ".py" and path.with_suffix(".py").is_file():
            return path.with_suffix(".py")
        return None

    def _load_file(self, module_path: str, path: Path) -> ModuleType:
        # Unique name per file so two designs named alike do not collide
        digest = hashlib.sha1(str(path.resolve()).encode("utf-8")).hexdigest()[:12]
        spec = importlib.util.spec_from_file_location(f"convey_design_{digest}", path)
        if spec is None or spec.loader is None:
            raise ModuleLoadError(module_path, f"not a Python module: {path}")

        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module

    def load(self, module_path: str) -> DesignModule:
        """
        Load a design module.

        Args:
            module_path: File path (relative to ``base_dir``) or dotted name

        Returns:
            The resolved DesignModule

        Raises:
            ModuleLoadError: If the module cannot be found, imported or has
                an invalid shape
        """
        path = self._resolve(module_path)
        try:
            if path is not None:
                module = self._load_file(module_path, path)
            elif module_path.replace(".", "").replace("_", "").isalnum():
                module = importlib.import_module(module_path)
            else:
                raise ModuleLoadError(module_path, "no such file or module")
        except ModuleLoadError:
            raise
        except Exception as e:
            raise ModuleLoadError(module_path, f"{type(e).__name__}: {e}") from e

        logger.debug("Design module loaded", module=module_path, path=str(path) if path else None)
        return design_module_from(module, module_path)


class MappingModuleLoader:
    """
    Serves pre-built design modules from a mapping.

    Values may be DesignModule instances or any object with ``design``
    and ``editor`` attributes.
    """

    def __init__(self, modules: Mapping[str, Any]) -> None:
        self._modules = dict(modules)

    def load(self, module_path: str) -> DesignModule:
        try:
            module = self._modules[module_path]
        except KeyError:
            raise ModuleLoadError(module_path, "not registered") from None
        if isinstance(module, DesignModule):
            return module
        return design_module_from(module, module_path)
