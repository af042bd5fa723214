"""도메인 예외

각 예외는 HTTP 레이어가 그대로 사용할 상태 코드를 갖는다.
"""


class DomainError(Exception):
    """도메인 레이어 기본 예외"""
    http_status = 500

    def __init__(self, message: str = "처리 중 오류가 발생했습니다."):
        super().__init__(message)
        self.message = message


class InsufficientFundsError(DomainError):
    http_status = 400

    def __init__(self):
        super().__init__("Insufficient balance")


class InvalidAmountError(DomainError):
    http_status = 400

    def __init__(self, message: str = "Invalid amount"):
        super().__init__(message)


class UserNotFoundError(DomainError):
    http_status = 404

    def __init__(self):
        super().__init__("사용자를 찾을 수 없습니다.")


class OrderNotFoundError(DomainError):
    http_status = 404

    def __init__(self, order_id=None):
        super().__init__(f"주문을 찾을 수 없습니다: {order_id}")


class DepositNotFoundError(DomainError):
    http_status = 404

    def __init__(self, deposit_id=None):
        super().__init__(f"입금 기록을 찾을 수 없습니다: {deposit_id}")


class InvoiceNotFoundError(DomainError):
    http_status = 404

    def __init__(self, invoice_id=None):
        super().__init__(f"인보이스를 찾을 수 없습니다: {invoice_id}")


class GatewayConfigNotFoundError(DomainError):
    http_status = 404

    def __init__(self, config_id=None):
        super().__init__(f"결제 게이트웨이 설정을 찾을 수 없습니다: {config_id}")


class NotOwnerError(DomainError):
    http_status = 403

    def __init__(self):
        super().__init__("권한이 없습니다.")


class InvalidOrderStateError(DomainError):
    """현재 상태에서 허용되지 않는 전이"""
    http_status = 400

    def __init__(self, message: str = "Cannot cancel"):
        super().__init__(message)


class OrderConflictError(DomainError):
    """동시에 다른 요청이 같은 주문을 전이시킨 경우"""
    http_status = 409

    def __init__(self, order_id=None):
        super().__init__(f"주문이 이미 처리 중이거나 처리되었습니다: {order_id}")


class DuplicateReferenceError(DomainError):
    """다른 주문이 같은 제공자 참조 ID를 먼저 기록한 경우"""
    http_status = 409

    def __init__(self, reference_id=None):
        super().__init__(f"이미 사용 중인 제공자 참조 ID입니다: {reference_id}")
        self.reference_id = reference_id


class ProviderCreditExhaustedError(DomainError):
    """DHRU 측 크레딧 부족"""
    http_status = 200

    def __init__(self, raw_response=None):
        super().__init__("Provider credit exhausted")
        self.raw_response = raw_response


class GatewayUnavailableError(DomainError):
    """외부 게이트웨이 네트워크/타임아웃/5xx 오류. 재시도 가능."""
    http_status = 502

    def __init__(self, gateway: str, detail: str = ""):
        super().__init__(f"{gateway} 게이트웨이에 연결할 수 없습니다. 잠시 후 다시 시도해주세요.")
        self.gateway = gateway
        self.detail = detail


class GatewayRequestRejectedError(DomainError):
    """게이트웨이가 요청 자체를 거부 (4xx)"""
    http_status = 400

    def __init__(self, gateway: str, detail: str = ""):
        super().__init__(f"{gateway} 요청이 거부되었습니다: {detail}")
        self.gateway = gateway
        self.detail = detail


class GatewayNotConfiguredError(DomainError):
    http_status = 400

    def __init__(self, gateway: str):
        super().__init__(f"{gateway} gateway not found or not active")
        self.gateway = gateway


class InvalidSignatureError(DomainError):
    http_status = 400

    def __init__(self, message: str = "Invalid IPN callback signature"):
        super().__init__(message)


class InvalidCredentialsError(DomainError):
    http_status = 401

    def __init__(self):
        super().__init__("이메일 또는 비밀번호가 올바르지 않습니다.")


class GatewayConfigInUseError(DomainError):
    http_status = 400

    def __init__(self, message: str = "Cannot delete the default payment gateway"):
        super().__init__(message)


class ConcurrentUpdateError(DomainError):
    """다른 요청이 같은 행을 먼저 변경함"""
    http_status = 409

    def __init__(self, message: str = "다른 요청이 먼저 변경했습니다. 다시 시도해주세요."):
        super().__init__(message)


class EmailAlreadyRegisteredError(DomainError):
    http_status = 400

    def __init__(self):
        super().__init__("이미 등록된 이메일입니다.")


class InactiveUserError(DomainError):
    http_status = 403

    def __init__(self):
        super().__init__("비활성화된 계정입니다.")
