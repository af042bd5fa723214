"""인증 인프라"""
from infrastructure.auth.jwt_service import create_access_token, decode_token
from infrastructure.auth.password_service import hash_password, verify_password
