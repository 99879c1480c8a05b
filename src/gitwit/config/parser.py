"""YAML parser for resilience configurations."""

import os
import re
from pathlib import Path
from typing import Any, Dict, Set

import yaml
from pydantic import ValidationError

from gitwit.config.schema import ResilienceConfig


class ConfigurationError(ValueError):
    """Raised when a configuration file cannot be loaded or validated."""
    pass


class YAMLParser:
    """YAML parser with environment variables and imports."""

    def __init__(self):
        self.env_pattern = re.compile(r'\$\{([^}]+)\}')
        self.import_cache: Dict[str, Any] = {}
        self._import_stack: Set[str] = set()  # For circular import detection

    def parse_file(self, file_path: str) -> ResilienceConfig:
        """Parse a YAML configuration file."""
        path = Path(file_path).resolve()

        data = self._load(path)

        if 'imports' in data:
            data = self._process_imports(data, path.parent, str(path))

        return self._validate(data)

    def parse_string(self, yaml_content: str) -> ResilienceConfig:
        """Parse YAML from string."""
        content = self._substitute_env_vars(yaml_content)
        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML: {e}") from e
        return self._validate(data)

    def _load(self, path: Path) -> Dict[str, Any]:
        try:
            with open(path, 'r') as f:
                raw_content = f.read()
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration {path}: {e}") from e

        content = self._substitute_env_vars(raw_content)
        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Top level of {path} must be a mapping")
        return data

    def _validate(self, data: Dict[str, Any]) -> ResilienceConfig:
        if not isinstance(data, dict) or 'resilience' not in data:
            raise ConfigurationError("YAML must contain 'resilience' top-level key")
        try:
            return ResilienceConfig.model_validate(data['resilience'] or {})
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

    def _substitute_env_vars(self, content: str) -> str:
        """Replace ${VAR} with environment variable values."""
        def replacer(match):
            var_name = match.group(1)
            # Support default values: ${VAR:-default}
            if ':-' in var_name:
                var_name, default = var_name.split(':-', 1)
                return os.environ.get(var_name, default)
            return os.environ.get(var_name, match.group(0))

        return self.env_pattern.sub(replacer, content)

    def _process_imports(self, data: Dict, base_path: Path, current_file: str) -> Dict:
        """Process import statements with circular import detection."""
        if current_file in self._import_stack:
            raise ConfigurationError(f"Circular import detected: {current_file}")

        self._import_stack.add(current_file)

        try:
            imports = data.pop('imports', [])

            for import_path in imports:
                full_path = (base_path / import_path).resolve()
                cache_key = str(full_path)

                if cache_key in self.import_cache:
                    imported_data = self.import_cache[cache_key]
                else:
                    imported_data = self._load(full_path)

                    if 'imports' in imported_data:
                        imported_data = self._process_imports(
                            imported_data,
                            full_path.parent,
                            str(full_path)
                        )

                    self.import_cache[cache_key] = imported_data

                # The importing file wins over what it imports
                data = self._deep_merge(imported_data, data)

            return data
        finally:
            self._import_stack.remove(current_file)

    def _deep_merge(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dictionaries; provider lists are merged by name."""
        result = dict(base)

        for key, value in override.items():
            if key not in result:
                result[key] = value
            elif key == 'providers' and isinstance(result[key], list) and isinstance(value, list):
                result[key] = self._merge_providers(result[key], value)
            elif isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _merge_providers(self, base: list, override: list) -> list:
        merged = {p.get('name'): dict(p) for p in base if isinstance(p, dict)}
        order = list(merged)
        for provider in override:
            name = provider.get('name') if isinstance(provider, dict) else None
            if name in merged:
                merged[name] = self._deep_merge(merged[name], provider)
            else:
                merged[name] = provider
                order.append(name)
        return [merged[name] for name in order]
