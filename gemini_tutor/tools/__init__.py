from gemini_tutor.tools.mocks import Scenario, mock_result, mock_result_json
from gemini_tutor.tools.registry import (
    ToolDescriptor,
    default_tools,
    default_tools_json,
    parse,
    to_tool_definitions,
)

__all__ = [
    "Scenario",
    "ToolDescriptor",
    "default_tools",
    "default_tools_json",
    "mock_result",
    "mock_result_json",
    "parse",
    "to_tool_definitions",
]
