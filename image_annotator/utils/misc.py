import importlib.util
import sys
from pathlib import Path
from typing import Optional


def load_module(script_path, module_name: Optional[str] = None):
    """Import a python file by path, registering it under ``module_name``."""
    script_path = Path(script_path)
    if module_name is None:
        module_name = script_path.stem

    spec = importlib.util.spec_from_file_location(module_name, str(script_path))
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load module from {script_path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return module
