"""
错误处理模块测试
"""
import pytest
from fastapi import status
from fastapi.responses import JSONResponse
from httpx import AsyncClient

from core.errors import (
    ErrorCode,
    AppException,
    ValidationException,
    AuthException,
    NotFoundException,
    StorageException,
    ExtractionException,
    app_exception_handler,
    success_response,
    error_response,
    ERROR_MESSAGES
)


class TestErrors:
    """错误处理测试"""

    def test_error_codes(self):
        """测试错误码定义"""
        assert ErrorCode.SUCCESS == 0
        assert ErrorCode.DEFAULT_ERROR == -1
        assert ErrorCode.NOT_AUTH == -1000
        assert ErrorCode.METHOD_NOT_ALLOWED == -1006
        assert ErrorCode.PUBLISH_NOTE_FAILED == -2000
        assert ErrorCode.GET_TAGS_FAILED == -2010

    def test_every_code_has_message(self):
        for code in ErrorCode:
            assert code in ERROR_MESSAGES

    def test_app_exception(self):
        """测试应用异常基类"""
        exc = AppException(code=ErrorCode.GET_NOTE_FAILED)
        assert exc.code == ErrorCode.GET_NOTE_FAILED
        assert exc.message == ERROR_MESSAGES[ErrorCode.GET_NOTE_FAILED]

        # 测试 to_dict
        d = exc.to_dict()
        assert d == {"status": -2002, "message": exc.message, "data": None}

        # 业务错误的 HTTP 状态码固定为 200
        resp = exc.to_response()
        assert isinstance(resp, JSONResponse)
        assert resp.status_code == status.HTTP_200_OK

    def test_specific_exceptions(self):
        """测试具体异常类"""
        v_exc = ValidationException("标题不能为空")
        assert v_exc.code == ErrorCode.PARAMS_ERROR
        assert v_exc.data is None

        a_exc = AuthException()
        assert a_exc.code == ErrorCode.NOT_AUTH
        assert AuthException(ErrorCode.AUTH_FAILED).code == ErrorCode.AUTH_FAILED

        n_exc = NotFoundException(resource="笔记", resource_id=123, code=ErrorCode.GET_NOTE_FAILED)
        assert n_exc.code == ErrorCode.GET_NOTE_FAILED
        assert "123" in n_exc.message

        s_exc = StorageException(code=ErrorCode.PUBLISH_NOTE_FAILED)
        assert s_exc.message == ERROR_MESSAGES[ErrorCode.PUBLISH_NOTE_FAILED]

        # 提取失败不属于对外错误
        assert not issubclass(ExtractionException, AppException)

    @pytest.mark.asyncio
    async def test_exception_handler(self):
        """测试异常处理器"""
        exc = AppException(code=ErrorCode.DELETE_NOTE_FAILED, message="删除失败")
        resp = await app_exception_handler(None, exc)
        assert resp.status_code == 200
        assert b'"status":-2004' in resp.body

    def test_response_builders(self):
        """测试响应构建器"""
        assert success_response({"id": 1}) == {
            "status": 0,
            "message": "操作成功",
            "data": {"id": 1}
        }

        err = error_response(ErrorCode.PARAMS_ERROR)
        assert err["status"] == -1005
        assert err["message"] == ERROR_MESSAGES[ErrorCode.PARAMS_ERROR]
        assert err["data"] is None


class TestExceptionHandlers:
    """注册到应用上的异常处理器"""

    @pytest.mark.asyncio
    async def test_method_not_allowed(self, client: AsyncClient):
        """非 POST 请求返回 405 和对应状态码"""
        response = await client.get("/api/notes")
        assert response.status_code == 405
        assert response.json()["status"] == ErrorCode.METHOD_NOT_ALLOWED

    @pytest.mark.asyncio
    async def test_invalid_json(self, client: AsyncClient):
        """请求体不是合法 JSON"""
        response = await client.post(
            "/api/notes",
            content=b"{not json",
            headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 200
        assert response.json() == {
            "status": ErrorCode.DECODE_ERROR,
            "message": ERROR_MESSAGES[ErrorCode.DECODE_ERROR],
            "data": None
        }

    @pytest.mark.asyncio
    async def test_invalid_params(self, client: AsyncClient):
        """字段类型错误"""
        response = await client.post("/api/note", json={"note_id": "abc"})
        assert response.status_code == 200
        assert response.json()["status"] == ErrorCode.PARAMS_ERROR
        assert response.json()["data"] is None
