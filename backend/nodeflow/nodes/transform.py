"""Transform nodes: keyword filtering and list reshaping."""
from typing import Any, Literal

from pydantic import field_validator

from .base import BaseNode, InputSpec, NodeConfig, OutputSpec, PortType
from .registry import NodeRegistry


class KeywordFilterConfig(NodeConfig):
    keywords: list[str] = []
    case_sensitive: bool = False

    @field_validator("keywords", mode="before")
    @classmethod
    def _split_keywords(cls, value: Any) -> Any:
        # The editor sends a comma-separated text field
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, (list, tuple)):
            return [str(k).strip() for k in value if str(k).strip()]
        return value


class _KeywordMatcher:
    def __init__(self, keywords: list[str], case_sensitive: bool):
        self.case_sensitive = case_sensitive
        self.keywords = keywords if case_sensitive else [k.lower() for k in keywords]

    def matches(self, text: Any) -> bool:
        if not isinstance(text, str) or not text:
            return False
        haystack = text if self.case_sensitive else text.lower()
        return any(k in haystack for k in self.keywords)

    def filter_list(self, items: list[Any]) -> list[Any]:
        """Keep matching strings, and whole dicts that contain a match anywhere."""
        kept = []
        for item in items:
            if isinstance(item, str):
                if self.matches(item):
                    kept.append(item)
            elif isinstance(item, dict):
                if self.filter_dict(item)[1] > 0:
                    kept.append(item)
        return kept

    def filter_dict(self, data: dict[str, Any]) -> tuple[dict[str, Any], int]:
        """Keep only matching values, recursing into lists and dicts."""
        result: dict[str, Any] = {}
        matches = 0
        for key, value in data.items():
            if isinstance(value, str):
                if self.matches(value):
                    result[key] = value
                    matches += 1
            elif isinstance(value, list):
                kept = self.filter_list(value)
                if kept:
                    result[key] = kept
                    matches += len(kept)
            elif isinstance(value, dict):
                nested, nested_matches = self.filter_dict(value)
                if nested_matches:
                    result[key] = nested
                    matches += nested_matches
        return result, matches


@NodeRegistry.register("keyword-filter")
class KeywordFilterNode(BaseNode):
    CATEGORY = "Transform"
    DISPLAY_NAME = "Keyword Filter"
    DESCRIPTION = "Keep only the parts of a string, list or object that mention a keyword"

    Config = KeywordFilterConfig

    @classmethod
    def INPUT_TYPES(cls):
        return {
            "exec": InputSpec(PortType.EXEC, multiple=True),
            "input": InputSpec(
                PortType.ANY, required=True,
                description="String, list, or object with text values",
            ),
        }

    @classmethod
    def RETURN_TYPES(cls):
        return [
            OutputSpec(PortType.EXEC, "exec"),
            OutputSpec(PortType.DATA, "output", "Filtered input, same shape"),
            OutputSpec(PortType.DATA, "matches", "Number of matches found"),
        ]

    async def execute(self, inputs, context):
        config: KeywordFilterConfig = context.config
        value = inputs.get("input")
        if value is None or value == "":
            raise ValueError("Input is required")

        if not config.keywords:
            context.logger.info("No keywords specified, passing through all input")
            return {
                "output": value,
                "matches": len(value) if isinstance(value, list) else 1,
            }

        context.logger.info(f"Filtering with keywords: {', '.join(config.keywords)}")
        matcher = _KeywordMatcher(config.keywords, config.case_sensitive)
        if isinstance(value, list):
            output = matcher.filter_list(value)
            matches = len(output)
        elif isinstance(value, dict):
            output, matches = matcher.filter_dict(value)
        elif isinstance(value, str):
            matched = matcher.matches(value)
            output, matches = (value, 1) if matched else ("", 0)
        else:
            output, matches = value, 0

        context.logger.info(f"Found {matches} matches")
        return {"output": output, "matches": matches}


class DataTransformConfig(NodeConfig):
    operation: Literal["map", "filter", "sort", "merge"] = "map"
    map_fields: list[str] = []  # dotted paths to keep
    filter_field: str = ""
    filter_value: Any = None  # None keeps items whose field is truthy
    sort_field: str = "title"
    sort_direction: Literal["asc", "desc"] = "desc"


def get_nested(item: Any, path: str) -> Any:
    current = item
    for part in path.split("."):
        if isinstance(current, dict):
            current = current.get(part)
        elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            return None
    return current


def _sort_group(value: Any) -> int:
    if value is None:
        return 3
    if isinstance(value, (int, float)):
        return 0
    if isinstance(value, str):
        return 1
    return 2


def _flatten(values: list[Any] | None) -> list[Any]:
    items: list[Any] = []
    for value in values or []:
        if isinstance(value, list):
            items.extend(value)
        elif value is not None:
            items.append(value)
    return items


@NodeRegistry.register("data-transform")
class DataTransformNode(BaseNode):
    CATEGORY = "Transform"
    DISPLAY_NAME = "Data Transform"
    DESCRIPTION = "Map, filter, sort or merge a list of items"

    Config = DataTransformConfig

    @classmethod
    def INPUT_TYPES(cls):
        return {
            "exec": InputSpec(PortType.EXEC, multiple=True),
            "data": InputSpec(PortType.DATA, multiple=True, description="Primary items"),
            "secondary_data": InputSpec(
                PortType.DATA, multiple=True, description="Items appended by 'merge'",
            ),
        }

    @classmethod
    def RETURN_TYPES(cls):
        return [
            OutputSpec(PortType.EXEC, "exec"),
            OutputSpec(PortType.DATA, "result"),
            OutputSpec(PortType.DATA, "count"),
        ]

    async def execute(self, inputs, context):
        config: DataTransformConfig = context.config
        data = _flatten(inputs.get("data"))
        context.logger.info(f"Processing {len(data)} items with operation: {config.operation}")

        if config.operation == "map":
            result = self._map(data, config.map_fields)
        elif config.operation == "filter":
            result = self._filter(data, config.filter_field, config.filter_value)
        elif config.operation == "sort":
            result = self._sort(data, config.sort_field, config.sort_direction)
        else:
            result = data + _flatten(inputs.get("secondary_data"))

        return {"result": result, "count": len(result)}

    @staticmethod
    def _map(data: list[Any], fields: list[str]) -> list[Any]:
        if not fields:
            return list(data)
        return [{f: get_nested(item, f) for f in fields} for item in data]

    @staticmethod
    def _filter(data: list[Any], field: str, expected: Any) -> list[Any]:
        if not field:
            return list(data)
        if expected is None:
            return [item for item in data if get_nested(item, field)]
        return [item for item in data if get_nested(item, field) == expected]

    @staticmethod
    def _sort(data: list[Any], field: str, direction: str) -> list[Any]:
        if not field:
            return list(data)
        # Numbers, then strings, then anything else; items without the field go last.
        # The direction applies within each group.
        groups: tuple[list[Any], ...] = ([], [], [], [])
        for item in data:
            groups[_sort_group(get_nested(item, field))].append(item)
        numbers, strings, others, missing = groups
        descending = direction == "desc"
        numbers.sort(key=lambda item: get_nested(item, field), reverse=descending)
        strings.sort(key=lambda item: get_nested(item, field), reverse=descending)
        others.sort(key=lambda item: repr(get_nested(item, field)), reverse=descending)
        return numbers + strings + others + missing
