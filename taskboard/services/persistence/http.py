"""REST persistence backend speaking JSON over httpx."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
from pydantic import TypeAdapter, ValidationError
from pydantic_core import to_jsonable_python

from taskboard.core.errors import NotFoundError, PersistenceError, ValidationFailedError
from taskboard.core.logging import get_logger
from taskboard.schemas.attachments import AttachmentRead
from taskboard.schemas.boards import BoardMemberRead, BoardRead
from taskboard.schemas.columns import ColumnRead
from taskboard.schemas.comments import CommentRead, ReplyCommentRead
from taskboard.schemas.tasks import TaskRead

if TYPE_CHECKING:
    from uuid import UUID

    from taskboard.schemas.boards import BoardRole

logger = get_logger(__name__)

_BOARD_LIST = TypeAdapter(list[BoardRead])
_COLUMN_LIST = TypeAdapter(list[ColumnRead])
_COMMENT = TypeAdapter(CommentRead)


class HttpPersistenceAdapter:
    """Client for the kanban REST API.

    Bodies are the package's own schemas serialized to JSON. A 404 maps to
    `NotFoundError`, a 400/409/422 to `ValidationFailedError`, and every
    other transport or status failure to a retryable `PersistenceError`.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        body = to_jsonable_python(json) if json is not None else None
        try:
            response = await self._client.request(method, path, json=body, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            detail = _error_detail(exc.response)
            logger.warning(
                "persistence.http.status_error",
                extra={"method": method, "path": path, "status": status},
            )
            if status == 404:
                raise NotFoundError(detail or "Not found", path=path) from exc
            if status in {400, 409, 422}:
                raise ValidationFailedError(detail or "Request rejected", path=path) from exc
            raise PersistenceError(
                detail or f"{method} {path} failed with status {status}",
                path=path,
                status=status,
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning(
                "persistence.http.transport_error",
                extra={"method": method, "path": path, "error": str(exc) or type(exc).__name__},
            )
            raise PersistenceError(f"{method} {path} failed: {exc}", path=path) from exc
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            logger.warning(
                "persistence.http.malformed_body",
                extra={"method": method, "path": path, "status": response.status_code},
            )
            raise PersistenceError("Malformed response from server", path=path) from exc

    def _parse(self, adapter_or_model: Any, data: Any) -> Any:
        try:
            if isinstance(adapter_or_model, TypeAdapter):
                return adapter_or_model.validate_python(data)
            return adapter_or_model.model_validate(data)
        except ValidationError as exc:
            raise PersistenceError("Malformed response from server") from exc

    async def _delete(self, path: str) -> bool:
        await self._request("DELETE", path)
        return True

    # Boards

    async def list_boards(self, *, user_id: str | None = None) -> list[BoardRead]:
        params = {"user_id": user_id} if user_id is not None else None
        data = await self._request("GET", "/api/kanban/boards", params=params)
        return self._parse(_BOARD_LIST, data)

    async def read_board(self, board_id: UUID) -> BoardRead:
        data = await self._request("GET", f"/api/kanban/boards/{board_id}")
        return self._parse(BoardRead, data)

    async def create_board(self, board: BoardRead) -> BoardRead:
        data = await self._request("POST", "/api/kanban/boards", json=board.model_dump())
        return self._parse(BoardRead, data)

    async def update_board(self, board_id: UUID, fields: dict[str, object]) -> BoardRead:
        data = await self._request("PUT", f"/api/kanban/boards/{board_id}", json=fields)
        return self._parse(BoardRead, data)

    async def delete_board(self, board_id: UUID) -> bool:
        return await self._delete(f"/api/kanban/boards/{board_id}")

    # Columns

    async def create_column(self, board_id: UUID, column: ColumnRead) -> ColumnRead:
        data = await self._request(
            "POST",
            f"/api/kanban/boards/{board_id}/columns",
            json=column.model_dump(exclude={"tasks"}),
        )
        return self._parse(ColumnRead, data)

    async def update_column(self, column_id: UUID, fields: dict[str, object]) -> ColumnRead:
        data = await self._request("PUT", f"/api/kanban/columns/{column_id}", json=fields)
        return self._parse(ColumnRead, data)

    async def delete_column(self, column_id: UUID) -> bool:
        return await self._delete(f"/api/kanban/columns/{column_id}")

    async def list_columns(self, board_id: UUID) -> list[ColumnRead]:
        data = await self._request("GET", f"/api/kanban/boards/{board_id}/columns")
        return self._parse(_COLUMN_LIST, data)

    # Tasks

    async def create_task(self, column_id: UUID, task: TaskRead) -> TaskRead:
        payload = task.model_dump(exclude={"comments", "attachments"})
        payload["column_id"] = column_id
        data = await self._request("POST", "/api/kanban/tasks", json=payload)
        return self._parse(TaskRead, data)

    async def update_task(self, task_id: UUID, fields: dict[str, object]) -> TaskRead:
        data = await self._request("PUT", f"/api/kanban/tasks/{task_id}", json=fields)
        return self._parse(TaskRead, data)

    async def delete_task(self, task_id: UUID) -> bool:
        return await self._delete(f"/api/kanban/tasks/{task_id}")

    async def move_task(self, task_id: UUID, destination_column_id: UUID) -> TaskRead:
        data = await self._request(
            "PUT",
            f"/api/tasks/{task_id}/move",
            json={"destinationColumnId": destination_column_id},
        )
        return self._parse(TaskRead, data)

    # Comments

    async def create_comment(self, task_id: UUID, comment: CommentRead) -> CommentRead:
        payload: dict[str, object] = {"id": comment.id, "content": comment.content}
        if isinstance(comment, ReplyCommentRead):
            payload["parent_id"] = comment.parent_id
        data = await self._request("POST", f"/api/tasks/{task_id}/comments", json=payload)
        return self._parse(_COMMENT, data)

    async def update_comment(self, comment_id: UUID, content: str) -> CommentRead:
        data = await self._request(
            "PUT",
            f"/api/comments/{comment_id}",
            json={"content": content},
        )
        return self._parse(_COMMENT, data)

    async def delete_comment(self, comment_id: UUID) -> bool:
        return await self._delete(f"/api/comments/{comment_id}")

    # Attachments

    async def create_attachment(
        self,
        task_id: UUID,
        attachment: AttachmentRead,
    ) -> AttachmentRead:
        data = await self._request(
            "POST",
            f"/api/tasks/{task_id}/attachments",
            json=attachment.model_dump(),
        )
        return self._parse(AttachmentRead, data)

    async def delete_attachment(self, attachment_id: UUID) -> bool:
        return await self._delete(f"/api/attachments/{attachment_id}")

    # Membership

    async def invite_member(
        self,
        board_id: UUID,
        email: str,
        role: BoardRole,
    ) -> BoardMemberRead:
        data = await self._request(
            "POST",
            f"/api/boards/{board_id}/members",
            json={"email": email, "role": role},
        )
        return self._parse(BoardMemberRead, data)

    async def update_member_role(
        self,
        board_id: UUID,
        user_id: str,
        role: BoardRole,
    ) -> BoardMemberRead:
        data = await self._request(
            "PUT",
            f"/api/boards/{board_id}/members/{user_id}",
            json={"role": role},
        )
        return self._parse(BoardMemberRead, data)

    async def remove_member(self, board_id: UUID, user_id: str) -> bool:
        return await self._delete(f"/api/boards/{board_id}/members/{user_id}")

    async def aclose(self) -> None:
        await self._client.aclose()


def _error_detail(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return response.text or None
    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            value = body.get(key)
            if isinstance(value, str):
                return value
    return None
