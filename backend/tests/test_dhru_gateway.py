"""DHRU 클라이언트 / 주문 게이트웨이 어댑터 테스트"""
import base64
import json
from urllib.parse import parse_qs

import httpx
import pytest

from application.ports.order_gateway import OrderSubmission
from domain.exceptions import GatewayUnavailableError, ProviderCreditExhaustedError
from infrastructure.dhru.dhru_gateway import (
    DhruClient, DhruOrderGateway, is_provider_credit_exhausted, to_xml_parameters,
)


class FakeDhru:
    def __init__(self, response=None, status_code=200):
        self.response = response if response is not None else {"SUCCESS": [{"REFERENCEID": "88123"}]}
        self.status_code = status_code
        self.forms = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        self.forms.append((str(request.url), form))
        if isinstance(self.response, (dict, list)):
            return httpx.Response(self.status_code, json=self.response)
        return httpx.Response(self.status_code, text=self.response)


def make_gateway(fake):
    client = DhruClient(api_url="https://dhru.example.com/", username="reseller", api_key="KEY-123",
                        timeout=5, transport=httpx.MockTransport(fake))
    return DhruOrderGateway(client, order_username="shop-user")


def submission(**overrides):
    values = dict(service_id=12, idempotency_token="tok-1", imei="356938035643809",
                  device_model="SM-G991B", custom_fields={"serial": "R58N", "notes": "call me", "empty": ""})
    values.update(overrides)
    return OrderSubmission(**values)


def decode_customfield(form):
    xml = form["parameters"]
    start = xml.index("<CUSTOMFIELD>") + len("<CUSTOMFIELD>")
    return json.loads(base64.b64decode(xml[start:xml.index("</CUSTOMFIELD>")]))


@pytest.mark.asyncio
async def test_submit_sends_form_request():
    fake = FakeDhru()
    gateway = make_gateway(fake)

    result = await gateway.submit(submission())

    url, form = fake.forms[0]
    assert url == "https://dhru.example.com/api/index.php"
    assert form["username"] == "reseller"
    assert form["apiaccesskey"] == "KEY-123"
    assert form["requestformat"] == "JSON"
    assert form["action"] == "placeimeiorder"
    assert "<SERVICE_ID>12</SERVICE_ID>" in form["parameters"]
    assert "<IMEI>356938035643809</IMEI>" in form["parameters"]
    assert "<MODEL>SM-G991B</MODEL>" in form["parameters"]
    assert "<QNT>" not in form["parameters"]
    assert result.accepted is True
    assert result.reference_id == "88123"


@pytest.mark.asyncio
async def test_customfield_carries_unique_token_per_attempt():
    fake = FakeDhru()
    gateway = make_gateway(fake)

    await gateway.submit(submission(idempotency_token="tok-1"))
    await gateway.submit(submission(idempotency_token="tok-2", quantity=3))

    first = decode_customfield(fake.forms[0][1])
    second = decode_customfield(fake.forms[1][1])
    assert first == {"serial": "R58N", "OrderUniqueId": "tok-1", "Username": "shop-user"}
    assert second["OrderUniqueId"] == "tok-2"
    assert "<QNT>3</QNT>" in fake.forms[1][1]["parameters"]


def test_build_parameters_merges_provider_params():
    gateway = DhruOrderGateway(DhruClient(api_url="https://dhru.example.com"), order_username="u")
    params = gateway.build_parameters(submission(provider_params={"network": "AT&T", "blank": ""}))

    assert params["network"] == "AT&T"
    assert "blank" not in params
    assert "<NETWORK>AT&amp;T</NETWORK>" in to_xml_parameters(params)


def test_to_xml_parameters_skips_none():
    assert to_xml_parameters({"id": 5, "imei": None}) == "<PARAMETERS><ID>5</ID></PARAMETERS>"


@pytest.mark.parametrize("response,expected", [
    ({"ERROR": [{"MESSAGE": "CreditprocessError"}]}, True),
    ({"ERROR": [{"MESSAGE": "Failed", "FULL_DESCRIPTION": "Not enough credit in account"}]}, True),
    ({"ERROR": [{"MESSAGE": "Failed", "FULL_DESCRIPTION": "You do not have enough credit"}]}, True),
    ({"ERROR": [{"MESSAGE": "Invalid IMEI"}]}, False),
    ({"SUCCESS": [{"REFERENCEID": "1"}]}, False),
    ({"ERROR": "CreditprocessError"}, False),
])
def test_is_provider_credit_exhausted(response, expected):
    assert is_provider_credit_exhausted(response) is expected


@pytest.mark.asyncio
async def test_submit_raises_on_provider_credit_error():
    fake = FakeDhru({"ERROR": [{"MESSAGE": "CreditprocessError", "FULL_DESCRIPTION": "Not enough credit"}]})

    with pytest.raises(ProviderCreditExhaustedError) as exc_info:
        await make_gateway(fake).submit(submission())

    assert exc_info.value.raw_response["ERROR"][0]["MESSAGE"] == "CreditprocessError"


@pytest.mark.asyncio
async def test_submit_rejected():
    fake = FakeDhru({"ERROR": [{"MESSAGE": "Invalid IMEI"}]})

    result = await make_gateway(fake).submit(submission())

    assert result.accepted is False
    assert result.reference_id is None
    assert result.error_message == "Invalid IMEI"


@pytest.mark.asyncio
@pytest.mark.parametrize("fake", [
    FakeDhru({"message": "down"}, status_code=503),
    FakeDhru("<html>maintenance</html>"),
    FakeDhru(["not", "a", "dict"]),
])
async def test_unusable_responses_are_gateway_unavailable(fake):
    with pytest.raises(GatewayUnavailableError):
        await make_gateway(fake).submit(submission())


@pytest.mark.asyncio
async def test_timeout_is_gateway_unavailable():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    client = DhruClient(api_url="https://dhru.example.com", username="u", api_key="k",
                        transport=httpx.MockTransport(handler))
    with pytest.raises(GatewayUnavailableError) as exc_info:
        await DhruOrderGateway(client, order_username="u").submit(submission())
    assert exc_info.value.detail == "timeout"


@pytest.mark.asyncio
async def test_query_status():
    fake = FakeDhru({"SUCCESS": [{"STATUS": 4, "CODE": "UNLOCK-CODE-1", "COMMENTS": ""}]})

    result = await make_gateway(fake).query_status("88123")

    form = fake.forms[0][1]
    assert form["action"] == "getimeiorder"
    assert form["parameters"] == "<PARAMETERS><ID>88123</ID></PARAMETERS>"
    assert result.provider_status_code == "4"
    assert result.details["CODE"] == "UNLOCK-CODE-1"


@pytest.mark.asyncio
async def test_query_status_without_success_entry():
    result = await make_gateway(FakeDhru({"ERROR": [{"MESSAGE": "Invalid order"}]})).query_status("1")
    assert result.provider_status_code is None
    assert result.details is None

    result = await make_gateway(FakeDhru({"SUCCESS": [{"STATUS": ""}]})).query_status("1")
    assert result.provider_status_code == "0"


@pytest.mark.asyncio
async def test_account_and_service_listing_actions():
    fake = FakeDhru({"SUCCESS": [{"AccoutInfo": {"credit": "120.00"}}]})
    client = make_gateway(fake).client

    await client.account_info()
    await client.services_list()
    await client.file_services()

    assert [form["action"] for _, form in fake.forms] == ["accountinfo", "imeiservicelist", "fileservicelist"]
