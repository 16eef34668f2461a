"""
后端 HTTP 客户端封装 - 统一处理鉴权头、超时与错误体
"""
from typing import Any, Optional

import httpx

from review_orchestrator.core import get_settings, get_logger
from review_orchestrator.core.exceptions import ApiError

logger = get_logger(__name__)

NETWORK_ERROR_CODE = "NETWORK_ERROR"


def _parse_error(response: httpx.Response) -> ApiError:
    """
    把后端错误响应转换为 ApiError

    后端错误体格式: {"status": 429, "error": "...", "code": "...", "message": "..."}
    """
    code = None
    message = None
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        code = body.get("code")
        message = body.get("message") or body.get("error")

    if not message:
        message = f"HTTP {response.status_code}"

    return ApiError(message=message, code=code, status_code=response.status_code)


class ApiClient:
    """
    异步 HTTP 客户端

    所有失败（包括网络层异常）都以 ApiError 抛出
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        headers = {"Content-Type": "application/json"}
        token = token if token is not None else settings.api_token
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.base_url = base_url or settings.api_base_url
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout if timeout is not None else settings.request_timeout,
            transport=transport,
        )

    def set_token(self, token: str) -> None:
        """设置鉴权 Token"""
        self._client.headers["Authorization"] = f"Bearer {token}"

    def clear_token(self) -> None:
        """移除鉴权 Token"""
        self._client.headers.pop("Authorization", None)

    async def request(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
    ) -> Any:
        """
        发送请求并返回解析后的 JSON

        Args:
            method: HTTP 方法
            path: 相对路径，如 /logs
            json: 请求体

        Returns:
            响应 JSON（空响应体返回 None）
        """
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.warning(f"请求失败: {method} {path}: {e}")
            raise ApiError(message=str(e) or type(e).__name__, code=NETWORK_ERROR_CODE) from e

        if response.is_error:
            error = _parse_error(response)
            logger.warning(
                f"接口返回错误: {method} {path} status={error.status_code} code={error.code}"
            )
            raise error

        if not response.content:
            return None
        return response.json()

    async def get(self, path: str) -> Any:
        return await self.request("GET", path)

    async def post(self, path: str, json: Optional[dict] = None) -> Any:
        return await self.request("POST", path, json=json)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


# 全局单例
_api_client: Optional[ApiClient] = None


def get_api_client() -> ApiClient:
    """获取 HTTP 客户端单例"""
    global _api_client
    if _api_client is None:
        _api_client = ApiClient()
    return _api_client
