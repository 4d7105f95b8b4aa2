"""Canned tool results used to pre-fill the mock-response editor."""

from __future__ import annotations

import enum
import json
from typing import Any


class Scenario(str, enum.Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"


GENERIC_MOCK = {"info": "Generic mock response. You can edit this JSON manually."}


def _gpu_price(args: dict[str, Any], scenario: Scenario) -> dict[str, Any]:
    model_name = args.get("modelName") or "Unknown GPU"
    if scenario is Scenario.SUCCESS:
        return {
            "model": model_name,
            "price": 1599,
            "currency": "USD",
            "availability": "In Stock",
            "source": "MockDatabase_v2",
        }
    if scenario is Scenario.FAILURE:
        return {"model": model_name, "availability": "Out of Stock", "restockDate": "2025-01-01"}
    return {"error": "InvalidModel", "message": f"GPU '{model_name}' not found."}


def _send_email(args: dict[str, Any], scenario: Scenario) -> dict[str, Any]:
    if scenario is Scenario.SUCCESS:
        return {"success": True, "messageId": "smtp_12345", "status": "queued"}
    if scenario is Scenario.FAILURE:
        return {"success": False, "error": "Timeout", "details": "SMTP server unavailable"}
    return {"success": False, "error": "Validation", "details": "Invalid email format"}


MOCK_TABLE = {
    "getNvidiaGpuPrice": _gpu_price,
    "sendEmail": _send_email,
}


def mock_result(tool_name: str, args: dict[str, Any] | None, scenario: Scenario | str) -> dict[str, Any]:
    """Return the canned record for ``tool_name`` under ``scenario``.

    Unknown tools get a generic placeholder regardless of the scenario.
    """
    scenario = Scenario(scenario)
    factory = MOCK_TABLE.get(tool_name)
    if factory is None:
        return dict(GENERIC_MOCK)
    return factory(args or {}, scenario)


def mock_result_json(tool_name: str, args: dict[str, Any] | None, scenario: Scenario | str) -> str:
    return json.dumps(mock_result(tool_name, args, scenario), indent=2)
