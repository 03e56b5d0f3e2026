"""Operation tools exposed to the MCP server.

Each tool forwards a page operation to the browser tab identified by
``session_id`` and returns the client's answer as MCP text content.
"""

from __future__ import annotations

import json
from typing import Any, Awaitable, Callable, Literal

import structlog
from pydantic import BaseModel, Field

from .exceptions import OperationError, OperationErrorCodes
from .manager import ConnectionManager

logger = structlog.get_logger(__name__)

NOT_CONNECTED_MESSAGE = "Client not connected, make sure the user has the AI assistant open"

ElementAction = Literal["click", "type", "select", "focus", "scroll", "hover"]


class GetPageContextParams(BaseModel):
    """Pagination is bounded here: max_elements must be at least 1 and offset
    cannot be negative, so the client never receives an empty or negative page.
    """

    session_id: str = Field(description="Session identifier")
    include_elements: bool = Field(default=True, description="Whether to return the element list")
    interactive_only: bool = Field(default=False, description="Only return interactive elements")
    max_elements: int = Field(default=50, ge=1, description="Number of elements per page")
    offset: int = Field(default=0, ge=0, description="Pagination offset")
    container: str | None = Field(
        default=None, description="Container selector limiting the scanned area"
    )


class ExecuteActionParams(BaseModel):
    session_id: str = Field(description="Session identifier")
    action: str = Field(description="Action name, shorthand such as open_task_123 is accepted")
    params: dict[str, Any] | None = Field(default=None, description="Action parameters")


class ExecuteElementActionParams(BaseModel):
    session_id: str = Field(description="Session identifier")
    element_uid: str = Field(description="Element identifier (such as e1) or a CSS selector")
    action: ElementAction = Field(
        description="click, type (input text), select, focus, scroll or hover"
    )
    value: str | None = Field(default=None, description="Input value for type/select")


def text_content(result: Any) -> dict[str, Any]:
    return {
        "content": [
            {
                "type": "text",
                "text": json.dumps(result, ensure_ascii=False, indent=2),
            }
        ]
    }


class OperationTools:
    """Tool handlers backed by a ConnectionManager."""

    def __init__(self, manager: ConnectionManager) -> None:
        self._manager = manager

    async def _forward(self, session_id: str, action: str, payload: dict[str, Any]) -> dict[str, Any]:
        if not self._manager.has(session_id):
            raise OperationError(
                code=OperationErrorCodes.NOT_CONNECTED,
                message=NOT_CONNECTED_MESSAGE,
            )
        result = await self._manager.send_request(session_id, action, payload)
        return text_content(result)

    async def get_page_context(self, params: GetPageContextParams) -> dict[str, Any]:
        logger.info(
            "get_page_context called",
            session_id=params.session_id,
            offset=params.offset,
            container=params.container,
        )
        return await self._forward(
            params.session_id,
            "get_page_context",
            params.model_dump(exclude={"session_id"}, exclude_none=True),
        )

    async def execute_action(self, params: ExecuteActionParams) -> dict[str, Any]:
        logger.info("execute_action called", session_id=params.session_id, action=params.action)
        return await self._forward(
            params.session_id,
            "execute_action",
            {"name": params.action, "params": params.params or {}},
        )

    async def execute_element_action(self, params: ExecuteElementActionParams) -> dict[str, Any]:
        logger.info(
            "execute_element_action called",
            session_id=params.session_id,
            element_uid=params.element_uid,
            action=params.action,
        )
        return await self._forward(
            params.session_id,
            "execute_element_action",
            params.model_dump(exclude={"session_id"}, exclude_none=True),
        )

    def definitions(self) -> list[dict[str, Any]]:
        """Name, description, input schema and handler of every tool."""
        tools: list[tuple[str, str, type[BaseModel], Callable[[Any], Awaitable[dict[str, Any]]]]] = [
            (
                "get_page_context",
                "Get information about the user's current page: page type, element list "
                "and available_actions. Supports pagination.",
                GetPageContextParams,
                self.get_page_context,
            ),
            (
                "execute_action",
                "Run an action on the user's page (open task or dialog details, switch "
                "project, navigate). Pick the action name from available_actions.",
                ExecuteActionParams,
                self.execute_action,
            ),
            (
                "execute_element_action",
                "Operate on a page element. Element identifiers come from the elements "
                "returned by get_page_context.",
                ExecuteElementActionParams,
                self.execute_element_action,
            ),
        ]
        return [
            {
                "name": name,
                "description": description,
                "input_schema": model.model_json_schema(),
                "params_model": model,
                "handler": handler,
            }
            for name, description, model, handler in tools
        ]

    async def call(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        """Validate ``arguments`` and run the tool called ``name``."""
        for tool in self.definitions():
            if tool["name"] == name:
                params = tool["params_model"].model_validate(arguments)
                return await tool["handler"](params)
        raise KeyError(f"Unknown tool: {name}")
