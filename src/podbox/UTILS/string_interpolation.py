"""
Utilities for expanding ${VAR} references in configuration files.
"""
import re
from typing import Dict, List

_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)(?::(-|\+)([^}]*))?\}')


class EnvironmentInterpolator:
    """
    Expands ${VAR}, ${VAR:-default} and ${VAR:+value} against a context.
    """
    def __init__(self, context: Dict[str, str]):
        self.context = context
        self.missing: List[str] = []

    def interpolate(self, template: str) -> str:
        """
        Interpolates the template. Unset plain ${VAR} references expand to an
        empty string and are recorded in ``missing``.

        :param template: The string containing ${VAR} placeholders.
        :return: The interpolated string.
        """
        def replace(match):
            var_name, modifier, alt_value = match.group(1), match.group(2), match.group(3)
            value = self.context.get(var_name)

            if modifier == '-':
                return value if value else alt_value
            if modifier == '+':
                return alt_value if value else ''
            if value is None:
                self.missing.append(var_name)
                return ''
            return value

        return _PATTERN.sub(replace, template)
