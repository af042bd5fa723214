"""DHRU Fusion API 클라이언트 및 주문 게이트웨이 어댑터"""
import base64
import json
from typing import Dict, Any, Optional
from xml.sax.saxutils import escape

import httpx
from loguru import logger

from config import settings
from application.ports.order_gateway import OrderGatewayPort, OrderSubmission, SubmitResult, StatusResult
from domain.exceptions import GatewayUnavailableError, ProviderCreditExhaustedError

GATEWAY_NAME = "DHRU"

# 제공자 측 크레딧 부족을 나타내는 문구. 제공자가 문구를 바꾸면 여기만 고친다.
CREDIT_ERROR_MESSAGES = ("creditprocesserror",)
CREDIT_ERROR_PHRASES = ("not enough credit", "enough credit")


def is_provider_credit_exhausted(response: Dict[str, Any]) -> bool:
    """ERROR payload가 제공자 크레딧 부족인지 판별"""
    errors = response.get("ERROR") if isinstance(response, dict) else None
    if not isinstance(errors, list):
        return False
    for error in errors:
        if not isinstance(error, dict):
            continue
        message = str(error.get("MESSAGE") or "").lower()
        full = str(error.get("FULL_DESCRIPTION") or "").lower()
        if message in CREDIT_ERROR_MESSAGES or any(p in full for p in CREDIT_ERROR_PHRASES):
            return True
    return False


def success_entries(response: Dict[str, Any]) -> list:
    entries = response.get("SUCCESS") if isinstance(response, dict) else None
    return entries if isinstance(entries, list) else []


def first_error_message(response: Dict[str, Any]) -> Optional[str]:
    errors = response.get("ERROR") if isinstance(response, dict) else None
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        return errors[0].get("MESSAGE") or errors[0].get("FULL_DESCRIPTION")
    return None


def to_xml_parameters(params: Dict[str, Any]) -> str:
    parts = ["<PARAMETERS>"]
    for key, value in params.items():
        if value is None:
            continue
        tag = str(key).upper()
        parts.append(f"<{tag}>{escape(str(value))}</{tag}>")
    parts.append("</PARAMETERS>")
    return "".join(parts)


class DhruClient:
    """DHRU HTTP 클라이언트. 모든 요청은 /api/index.php 로의 form POST."""

    def __init__(self, api_url: Optional[str] = None, username: Optional[str] = None,
                 api_key: Optional[str] = None, timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_url = (api_url or settings.DHRU_API_URL).rstrip("/")
        self.username = username if username is not None else settings.DHRU_USERNAME
        self.api_key = api_key if api_key is not None else settings.DHRU_API_KEY
        self.timeout = timeout or settings.DHRU_TIMEOUT
        self._transport = transport

    async def request(self, action: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        form = {"username": self.username, "apiaccesskey": self.api_key,
                "requestformat": "JSON", "action": action}
        form.update({k: str(v) for k, v in (params or {}).items()})
        url = f"{self.api_url}/api/index.php"

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(url, data=form)
            except httpx.TimeoutException:
                logger.error(f"DHRU 타임아웃: action={action}")
                raise GatewayUnavailableError(GATEWAY_NAME, "timeout")
            except httpx.RequestError as e:
                logger.error(f"DHRU 연결 실패: action={action} - {e}")
                raise GatewayUnavailableError(GATEWAY_NAME, str(e))

        if response.status_code >= 500:
            logger.error(f"DHRU 서버 오류 ({response.status_code}): action={action}")
            raise GatewayUnavailableError(GATEWAY_NAME, f"HTTP {response.status_code}")
        try:
            data = response.json()
        except ValueError:
            logger.error(f"DHRU 응답 파싱 실패: action={action} body={response.text[:200]}")
            raise GatewayUnavailableError(GATEWAY_NAME, "invalid JSON response")
        if not isinstance(data, dict):
            raise GatewayUnavailableError(GATEWAY_NAME, "unexpected response shape")
        return data

    async def account_info(self) -> Dict[str, Any]:
        return await self.request("accountinfo")

    async def services_list(self) -> Dict[str, Any]:
        return await self.request("imeiservicelist")

    async def file_services(self) -> Dict[str, Any]:
        return await self.request("fileservicelist")

    async def place_imei_order(self, params: Dict[str, Any]) -> Dict[str, Any]:
        params = dict(params)
        if "ID" in params and "service_id" not in params:
            params["service_id"] = params.pop("ID")
        return await self.request("placeimeiorder", {"parameters": to_xml_parameters(params)})

    async def get_imei_order(self, reference_id: str) -> Dict[str, Any]:
        return await self.request("getimeiorder", {"parameters": to_xml_parameters({"id": reference_id})})


class DhruOrderGateway(OrderGatewayPort):
    def __init__(self, client: Optional[DhruClient] = None, order_username: Optional[str] = None):
        self.client = client or DhruClient()
        self.order_username = order_username if order_username is not None else settings.DHRU_ORDER_USERNAME

    def build_parameters(self, submission: OrderSubmission) -> Dict[str, Any]:
        params: Dict[str, Any] = {"service_id": submission.service_id}
        if submission.imei:
            params["imei"] = submission.imei
        if submission.device_model:
            params["model"] = submission.device_model
        if submission.quantity and submission.quantity > 1:
            params["QNT"] = str(submission.quantity)
        for key, value in (submission.provider_params or {}).items():
            if value:
                params[key] = value

        # 시도마다 새 OrderUniqueId를 넣는다
        custom = {k: v for k, v in (submission.custom_fields or {}).items() if k != "notes" and v}
        custom["OrderUniqueId"] = submission.idempotency_token
        custom["Username"] = self.order_username
        params["CUSTOMFIELD"] = base64.b64encode(json.dumps(custom).encode()).decode()
        return params

    async def submit(self, submission: OrderSubmission) -> SubmitResult:
        params = self.build_parameters(submission)
        logger.info(f"DHRU 주문 접수 요청: service_id={submission.service_id} token={submission.idempotency_token}")
        response = await self.client.place_imei_order(params)
        logger.debug(f"DHRU 주문 접수 응답: {response}")

        if is_provider_credit_exhausted(response):
            logger.warning(f"DHRU 크레딧 부족: token={submission.idempotency_token}")
            raise ProviderCreditExhaustedError(response)

        entries = success_entries(response)
        reference_id = entries[0].get("REFERENCEID") if entries and isinstance(entries[0], dict) else None
        if not entries:
            logger.warning(f"DHRU 주문 거부: token={submission.idempotency_token} error={first_error_message(response)}")
        return SubmitResult(accepted=bool(entries),
                            reference_id=str(reference_id) if reference_id not in (None, "") else None,
                            raw_response=response,
                            error_message=None if entries else first_error_message(response))

    async def query_status(self, reference_id: str) -> StatusResult:
        response = await self.client.get_imei_order(reference_id)
        entries = success_entries(response)
        code = None
        details = None
        if entries and isinstance(entries[0], dict):
            details = entries[0]
            code = details.get("STATUS")
            code = "0" if code in (None, "") else str(code)
        return StatusResult(provider_status_code=code, raw_response=response, details=details)
