from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


class LogSeverity(str, Enum):
    INFORMATION = "information"
    ERROR = "error"

    @property
    def method_name(self) -> str:
        """Name of the structlog logger method that emits at this severity."""

        return "info" if self is LogSeverity.INFORMATION else "error"


def render_template(template: str, properties: Mapping[str, Any]) -> str:
    """Substitute ``{Name}`` placeholders; unknown names are left as-is."""

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in properties:
            return match.group(0)
        value = properties[name]
        return "" if value is None else str(value)

    return _PLACEHOLDER.sub(_replace, template)


@dataclass(frozen=True)
class LogRecord:
    severity: LogSeverity
    template: str
    properties: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Freeze a private copy so later mutation of the source dict can't leak in.
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    @property
    def message(self) -> str:
        return render_template(self.template, self.properties)
