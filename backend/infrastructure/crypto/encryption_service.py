"""게이트웨이 자격 증명 암호화 (Fernet)"""
import base64
import hashlib
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from loguru import logger

from config import settings


class CredentialDecryptionError(Exception):
    pass


class EncryptionService:
    """API 키/시크릿 키를 저장 전에 암호화하고 읽을 때 복호화한다"""

    def __init__(self, key_material: Optional[str] = None):
        material = key_material or settings.CREDENTIALS_ENCRYPTION_KEY or settings.SECRET_KEY
        # 임의 길이의 키 문자열을 32바이트 Fernet 키로 파생
        digest = hashlib.sha256(material.encode()).digest()
        self.fernet = Fernet(base64.urlsafe_b64encode(digest))

    def encrypt(self, plaintext: Optional[str]) -> Optional[str]:
        if not plaintext:
            return None
        return self.fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, token: Optional[str]) -> Optional[str]:
        if not token:
            return None
        try:
            return self.fernet.decrypt(token.encode()).decode()
        except InvalidToken:
            logger.error("게이트웨이 자격 증명 복호화 실패. 암호화 키가 변경되었는지 확인하세요.")
            raise CredentialDecryptionError("Failed to decrypt gateway credential")


encryption_service = EncryptionService()
