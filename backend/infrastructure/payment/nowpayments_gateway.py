"""NOWPayments API 클라이언트"""
import hashlib
import hmac
import json
from typing import Dict, Any, Optional, List

import httpx
from loguru import logger

from config import settings
from application.ports.payment_gateway import PaymentGatewayPort, PaymentRequest, CreatedPayment
from domain.enums import GatewayName
from domain.exceptions import GatewayUnavailableError, GatewayRequestRejectedError


def canonicalize_ipn_body(body: Dict[str, Any]) -> str:
    """키 정렬 + 공백 없는 JSON 직렬화"""
    return json.dumps(body, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def compute_ipn_signature(body: Dict[str, Any], secret: str) -> str:
    return hmac.new(secret.encode(), canonicalize_ipn_body(body).encode(), hashlib.sha512).hexdigest()


CLOSED_PAYMENT_STATUSES = {"failed", "expired", "refunded"}


def _payment_rank(status: Optional[str]) -> int:
    if status == "finished":
        return 0
    if status in CLOSED_PAYMENT_STATUSES:
        return 2
    return 1


def pick_payment_status(payments: List[Dict[str, Any]]) -> Optional[str]:
    """같은 주문에 결제가 여러 건이면 finished > 진행 중 > 실패/만료 순으로 고른다"""
    statuses = [p.get("payment_status") for p in payments if p.get("payment_status")]
    if not statuses:
        return None
    return min(statuses, key=_payment_rank)


class NowPaymentsGateway(PaymentGatewayPort):
    name = GatewayName.NOWPAYMENTS.value

    def __init__(self, api_key: Optional[str], ipn_secret: Optional[str],
                 api_url: Optional[str] = None, timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key or ""
        self.ipn_secret = ipn_secret or ""
        self.api_url = (api_url or settings.NOWPAYMENTS_API_URL).rstrip("/")
        self.timeout = timeout or settings.NOWPAYMENTS_TIMEOUT
        self._transport = transport

    def _get_headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json", "X-API-KEY": self.api_key}

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        async with httpx.AsyncClient(base_url=self.api_url, headers=self._get_headers(),
                                     timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.request(method, path, **kwargs)
                response.raise_for_status()
                return response.json()
            except httpx.TimeoutException:
                logger.error(f"NOWPayments 타임아웃: {method} {path}")
                raise GatewayUnavailableError(self.name, "timeout")
            except httpx.HTTPStatusError as e:
                logger.error(f"NOWPayments 요청 실패 ({e.response.status_code}): {e.response.text[:500]}")
                if e.response.status_code >= 500:
                    raise GatewayUnavailableError(self.name, f"HTTP {e.response.status_code}")
                raise GatewayRequestRejectedError(self.name, e.response.text[:200])
            except httpx.RequestError as e:
                logger.error(f"NOWPayments 연결 실패: {e}")
                raise GatewayUnavailableError(self.name, str(e))
            except ValueError:
                logger.error(f"NOWPayments 응답 파싱 실패: {method} {path}")
                raise GatewayUnavailableError(self.name, "invalid JSON response")

    @staticmethod
    def _payment_payload(request: PaymentRequest) -> Dict[str, Any]:
        payload = {
            "price_amount": float(request.amount),
            "price_currency": request.currency,
            "ipn_callback_url": request.ipn_callback_url,
            "order_id": request.order_id,
            "order_description": request.description,
        }
        # 'any'면 통화 선택을 NOWPayments에 맡긴다
        if request.pay_currency and request.pay_currency != "any":
            payload["pay_currency"] = request.pay_currency
        if request.success_url:
            payload["success_url"] = request.success_url
        if request.cancel_url:
            payload["cancel_url"] = request.cancel_url
        return payload

    async def create_invoice(self, request: PaymentRequest) -> CreatedPayment:
        payload = {**self._payment_payload(request), "is_fee_paid_by_user": True}
        data = await self._request("POST", "/invoice", json=payload)
        if data.get("id") is None:
            raise GatewayRequestRejectedError(self.name, "invoice id missing in response")
        return CreatedPayment(external_id=str(data["id"]), redirect_url=data.get("invoice_url"),
                              raw_response=data)

    async def create_payment(self, request: PaymentRequest) -> CreatedPayment:
        data = await self._request("POST", "/payment", json=self._payment_payload(request))
        if data.get("payment_id") is None:
            raise GatewayRequestRejectedError(self.name, "payment id missing in response")
        return CreatedPayment(external_id=str(data["payment_id"]),
                              redirect_url=data.get("payment_url") or data.get("invoice_url"),
                              raw_response=data)

    async def get_status(self, external_id: str) -> Optional[str]:
        data = await self._request("GET", f"/payment/{external_id}")
        return data.get("payment_status")

    async def list_payments(self, limit: int = 10, offset: int = 0) -> Dict[str, Any]:
        return await self._request("GET", "/payments", params={"limit": limit, "offset": offset})

    async def find_status_by_order_id(self, order_id: str) -> Optional[str]:
        data = await self.list_payments(limit=100)
        payments: List[Dict[str, Any]] = data.get("payments") or data.get("data") or []
        return pick_payment_status([p for p in payments if str(p.get("order_id")) == str(order_id)])

    async def find_status_by_invoice_id(self, invoice_id: str) -> Optional[str]:
        data = await self._request("GET", "/payment/", params={"invoiceId": invoice_id, "limit": 100})
        payments: List[Dict[str, Any]] = data.get("data") or data.get("payments") or []
        return pick_payment_status(
            [p for p in payments if str(p.get("invoice_id", invoice_id)) == str(invoice_id)])

    async def get_api_status(self) -> Dict[str, Any]:
        return await self._request("GET", "/status")

    async def get_available_currencies(self) -> Dict[str, Any]:
        return await self._request("GET", "/currencies")

    async def get_minimum_payment_amount(self, currency_from: str, currency_to: str) -> Dict[str, Any]:
        return await self._request("GET", "/min-amount",
                                   params={"currency_from": currency_from, "currency_to": currency_to})

    async def get_estimated_price(self, amount, currency_from: str, currency_to: str) -> Dict[str, Any]:
        return await self._request("GET", "/estimate",
                                   params={"amount": amount, "currency_from": currency_from,
                                           "currency_to": currency_to})

    def verify_callback(self, body: Dict[str, Any], signature: Optional[str]) -> bool:
        """IPN 서명 검증. 비밀키가 없으면 항상 실패한다."""
        if not self.ipn_secret:
            logger.error("NOWPayments IPN 비밀키가 설정되지 않아 콜백을 거부합니다.")
            return False
        if not signature or not isinstance(body, dict):
            return False
        expected = compute_ipn_signature(body, self.ipn_secret)
        return hmac.compare_digest(expected, signature.strip().lower())
