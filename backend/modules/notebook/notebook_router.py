"""
笔记本API路由
所有接口均为 POST + JSON，业务状态放在响应体的 status 字段中
"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel
from pydantic_core import PydanticSerializationError

from core.errors import ErrorCode, AppException, AuthException, success_response

from .notebook_schemas import (
    NotePublishRequest, NoteUpdateRequest, NotesRequest, NoteRequest,
    NoteDeleteRequest, AuthRequest,
    NotesResponse, NoteResponse, NoteIdResponse, TagsResponse,
    AuthResponse, IsAuthResponse
)
from .notebook_services import ContentService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_content_service(request: Request) -> ContentService:
    """获取应用启动时创建的服务实例"""
    return request.app.state.content_service


def get_session_token(
    request: Request,
    service: ContentService = Depends(get_content_service)
) -> str:
    """从 Cookie 中读取会话令牌"""
    return request.cookies.get(service.settings.token_name) or ""


async def require_session(
    token: str = Depends(get_session_token),
    service: ContentService = Depends(get_content_service)
) -> str:
    """要求已登录"""
    if not await service.is_authenticated(token):
        raise AuthException()
    return token


def dump(model: BaseModel) -> dict:
    """序列化响应数据（使用对外字段名）"""
    try:
        return model.model_dump(mode="json", by_alias=True)
    except PydanticSerializationError as e:
        logger.error(f"响应序列化失败: {e}")
        raise AppException(ErrorCode.ENCODE_ERROR) from e


# ============ 笔记接口 ============

@router.post("/note/publish")
async def publish_note(
    data: NotePublishRequest,
    service: ContentService = Depends(get_content_service),
    _: str = Depends(require_session)
):
    """发布笔记"""
    note_id = await service.publish(data.title, data.content, data.private, data.tags)
    return success_response(dump(NoteIdResponse(note_id=note_id)), message="发布成功")


@router.post("/notes")
async def list_notes(
    data: NotesRequest,
    service: ContentService = Depends(get_content_service),
    token: str = Depends(get_session_token)
):
    """获取笔记列表（page_no 从1开始，tag 为 0 表示全部）"""
    notes, page = await service.list_notes(data.page_no, data.tag, token)
    return success_response(dump(NotesResponse(notes=notes, page=page)))


@router.post("/note")
async def get_note(
    data: NoteRequest,
    service: ContentService = Depends(get_content_service),
    token: str = Depends(get_session_token)
):
    """获取单篇笔记"""
    note = await service.get_note(data.note_id, token)
    return success_response(dump(NoteResponse(note=note)))


@router.post("/note/update")
async def update_note(
    data: NoteUpdateRequest,
    service: ContentService = Depends(get_content_service),
    _: str = Depends(require_session)
):
    """更新笔记"""
    await service.update(data.note_id, data.title, data.content, data.private, data.tags)
    return success_response(dump(NoteIdResponse(note_id=data.note_id)), message="更新成功")


@router.post("/note/delete")
async def delete_note(
    data: NoteDeleteRequest,
    service: ContentService = Depends(get_content_service),
    _: str = Depends(require_session)
):
    """删除笔记"""
    await service.delete(data.note_id)
    return success_response(dump(NoteIdResponse(note_id=data.note_id)), message="删除成功")


# ============ 标签接口 ============

@router.post("/tags")
async def list_tags(service: ContentService = Depends(get_content_service)):
    """获取标签列表（含关联笔记数）"""
    tags = await service.list_tags()
    return success_response(dump(TagsResponse(tags=tags)))


# ============ 会话接口 ============

@router.post("/auth")
async def auth(
    data: AuthRequest,
    response: Response,
    service: ContentService = Depends(get_content_service)
):
    """口令登录，成功后写入会话 Cookie"""
    token = await service.authenticate(data.password)
    settings = service.settings
    response.set_cookie(
        key=settings.token_name,
        value=token,
        max_age=settings.token_expire,
        httponly=True,
        samesite="lax"
    )
    return success_response(dump(AuthResponse(token=token)), message="登录成功")


@router.post("/is_auth")
async def is_auth(
    service: ContentService = Depends(get_content_service),
    token: str = Depends(get_session_token)
):
    """查询当前是否已登录"""
    authenticated = await service.is_authenticated(token)
    return success_response(dump(IsAuthResponse(is_auth=authenticated)))


@router.post("/logout")
async def logout(
    response: Response,
    service: ContentService = Depends(get_content_service),
    _: str = Depends(require_session)
):
    """注销"""
    await service.logout()
    response.delete_cookie(service.settings.token_name)
    return success_response(message="已注销")
